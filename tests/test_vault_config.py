"""Tests for reading the plugin's timer settings."""

from bar_tomato.vault.config import PomodoroConfig, is_vault_valid, read_pomodoro_config

from conftest import write_plugin_config


def test_vault_requires_plugin_folder(tmp_path, vault):
    assert is_vault_valid(vault)
    assert not is_vault_valid(tmp_path / "elsewhere")
    (tmp_path / "bare" / ".obsidian").mkdir(parents=True)
    assert not is_vault_valid(tmp_path / "bare")


def test_missing_file_gives_defaults(vault):
    assert read_pomodoro_config(vault) == PomodoroConfig()


def test_reads_all_fields(vault):
    write_plugin_config(vault, {
        "pomodoroDuration": 50,
        "shortBreakDuration": 10,
        "longBreakDuration": 30,
        "longBreakInterval": 3,
        "autoStartBreak": True,
        "pomodoroSound": False,
        "someOtherPluginSetting": "ignored",
    })
    config = read_pomodoro_config(vault)
    assert config == PomodoroConfig(
        pomodoro_duration=50,
        short_break_duration=10,
        long_break_duration=30,
        long_break_interval=3,
        auto_start_break=True,
        pomodoro_sound=False,
    )


def test_invalid_values_fall_back_per_field(vault):
    write_plugin_config(vault, {
        "pomodoroDuration": 0,
        "shortBreakDuration": "10",
        "longBreakDuration": True,
        "longBreakInterval": 2,
        "autoStartBreak": "yes",
    })
    config = read_pomodoro_config(vault)
    assert config.pomodoro_duration == 25
    assert config.short_break_duration == 5
    assert config.long_break_duration == 15
    assert config.long_break_interval == 2
    assert config.auto_start_break is False


def test_malformed_json_gives_defaults(vault):
    write_plugin_config(vault, "{oops")
    assert read_pomodoro_config(vault) == PomodoroConfig()


def test_non_object_gives_defaults(vault):
    write_plugin_config(vault, "[25, 5]")
    assert read_pomodoro_config(vault) == PomodoroConfig()


def test_to_dict_uses_plugin_keys():
    data = PomodoroConfig().to_dict()
    assert data == {
        "pomodoroDuration": 25,
        "shortBreakDuration": 5,
        "longBreakDuration": 15,
        "longBreakInterval": 4,
        "autoStartBreak": False,
        "pomodoroSound": True,
    }
