"""Tests for the command layer: engine transitions plus vault side effects."""

import json

import pytest

from bar_tomato.core import commands as commands_module
from bar_tomato.core.commands import Commands
from bar_tomato.data.config import AppConfig
from bar_tomato.data.records import RecordStore
from bar_tomato.utils.constants import NotificationKind, RecordStatus, TimerPhase
from bar_tomato.utils.errors import (
    NoteEncodingError,
    RecordsFileError,
    TimerStateError,
    VaultNotConfiguredError,
    VaultValidationError,
)
from bar_tomato.utils.notifications import Notifier

from conftest import SAMPLE_NOTE, TODAY, read_daily_note, write_daily_note, write_latin1_note, write_plugin_config

DEVICE = "dev123"
DUALBASIC = "1. 项目/科学研究-DualBasic/DualBasic.README.md"


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent = []

    def notify(self, kind, payload=None):
        self.sent.append((kind, payload))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_commands(engine, notifier, tmp_path):
    def factory(vault_path=None):
        config = AppConfig(vault_path=str(vault_path) if vault_path else None)
        return Commands(
            engine,
            config,
            DEVICE,
            notifier=notifier,
            today=lambda: TODAY,
            config_path=tmp_path / "config.json",
        )
    return factory


@pytest.fixture
def commands(make_commands, vault):
    return make_commands(vault)


def stored_records(vault):
    return RecordStore.for_vault(vault, DEVICE).read().records


class TestStop:
    def test_idle_stop_does_nothing(self, commands, vault):
        outcome = commands.stop()
        assert outcome.record is None
        assert outcome.ok
        assert stored_records(vault) == []

    def test_interrupted_pomodoro_recorded(self, commands, engine, clock, vault):
        write_daily_note(vault, SAMPLE_NOTE)
        commands.start_pomodoro("Draft", "科学研究-DualBasic", DUALBASIC)
        clock.advance(10 * 60 + 30)

        outcome = commands.stop()

        assert engine.phase == TimerPhase.IDLE
        assert outcome.ok
        record = outcome.record
        assert record.duration == 10
        assert record.status == RecordStatus.INTERRUPTED
        assert record.pomodoro_index == 1
        assert record.task_text == "Draft"
        assert record.date == "2026-03-14"
        assert stored_records(vault) == [record]

        assert outcome.note_updated
        assert outcome.habit_checked
        content = read_daily_note(vault)
        assert f"[[{DUALBASIC}|科学研究-DualBasic]] 0hr40" in content
        assert "- [x] 使用番茄钟 ✅ 2026-03-14" in content

    def test_under_a_minute_not_recorded(self, commands, engine, clock, vault):
        commands.start_pomodoro()
        clock.advance(59)
        outcome = commands.stop()
        assert outcome.record is None
        assert engine.phase == TimerPhase.IDLE
        assert not RecordStore.for_vault(vault, DEVICE).path.exists()

    def test_paused_session_recorded(self, commands, clock, vault):
        commands.start_pomodoro()
        clock.advance(5 * 60)
        commands.pause()
        clock.advance(60 * 60)
        outcome = commands.stop()
        assert outcome.record.duration == 5

    def test_stopped_past_target_counts_as_completed(self, commands, engine, clock):
        commands.start_pomodoro()
        clock.advance(26 * 60)
        engine.pause()
        outcome = commands.stop()
        assert outcome.record.status == RecordStatus.COMPLETED

    def test_stopwatch(self, commands, clock, notifier):
        commands.start_stopwatch("Reading")
        clock.advance(42 * 60)
        outcome = commands.stop()
        assert outcome.record.mode == "stopwatch"
        assert outcome.record.status == RecordStatus.COMPLETED
        assert outcome.record.pomodoro_index is None
        assert notifier.sent == [(NotificationKind.STOPWATCH_STOPPED, {"minutes": 42})]

    def test_broken_records_file_still_stops(self, commands, engine, clock, vault):
        write_daily_note(vault, SAMPLE_NOTE)
        path = RecordStore.for_vault(vault, DEVICE).path
        path.parent.mkdir(parents=True)
        path.write_text("{broken", encoding="utf-8")

        commands.start_pomodoro("Draft", "科学研究-DualBasic", DUALBASIC)
        clock.advance(5 * 60)
        outcome = commands.stop()

        assert engine.phase == TimerPhase.IDLE
        assert outcome.record is None
        assert len(outcome.errors) == 1
        assert isinstance(outcome.errors[0], RecordsFileError)
        # the other side effects still ran
        assert outcome.note_updated
        assert path.read_text(encoding="utf-8") == "{broken"

    def test_missing_section_reported(self, commands, clock, vault):
        write_daily_note(vault, "# Day\n- [ ] 使用番茄钟\n")
        commands.start_pomodoro("Draft", "科学研究-DualBasic", DUALBASIC)
        clock.advance(5 * 60)
        outcome = commands.stop()
        assert outcome.record is not None
        assert not outcome.note_updated
        assert outcome.habit_checked
        assert len(outcome.errors) == 1

    def test_without_vault_nothing_written(self, make_commands, clock):
        commands = make_commands()
        commands.start_pomodoro()
        clock.advance(5 * 60)
        outcome = commands.stop()
        assert outcome.record is None
        assert outcome.ok


class TestCompletePomodoro:
    def test_records_and_starts_break(self, commands, engine, clock, vault, notifier):
        commands.start_pomodoro("Draft")
        clock.advance(27 * 60)

        outcome = commands.complete_pomodoro()

        assert engine.pomodoro_count == 1
        assert engine.phase == TimerPhase.SHORT_BREAK
        assert outcome.record.duration == 27
        assert outcome.record.status == RecordStatus.COMPLETED
        assert outcome.record.pomodoro_index == 1
        assert notifier.sent == [(NotificationKind.POMODORO_COMPLETE, {"count": 1})]
        assert stored_records(vault) == [outcome.record]

    def test_fourth_pomodoro_gets_long_break(self, commands, engine, clock):
        for _ in range(4):
            commands.start_pomodoro()
            clock.advance(25 * 60)
            commands.complete_pomodoro()
            if engine.phase == TimerPhase.SHORT_BREAK:
                commands.skip_break()
        assert engine.phase == TimerPhase.LONG_BREAK

    def test_early_completion_counts_one_minute(self, commands, clock):
        commands.start_pomodoro()
        clock.advance(10)
        assert commands.complete_pomodoro().record.duration == 1

    def test_undecodable_note_still_records_and_notifies(self, commands, engine, clock, vault, notifier):
        write_latin1_note(vault)
        commands.start_pomodoro("Draft", "科学研究-DualBasic", DUALBASIC)
        clock.advance(25 * 60)

        outcome = commands.complete_pomodoro()

        assert engine.phase == TimerPhase.SHORT_BREAK
        assert stored_records(vault) == [outcome.record]
        assert not outcome.note_updated
        assert not outcome.habit_checked
        assert len(outcome.errors) == 2
        assert all(isinstance(e, NoteEncodingError) for e in outcome.errors)
        assert notifier.sent == [(NotificationKind.POMODORO_COMPLETE, {"count": 1})]

    def test_undecodable_records_file_still_updates_note(self, commands, engine, clock, vault, notifier):
        write_daily_note(vault, SAMPLE_NOTE)
        path = RecordStore.for_vault(vault, DEVICE).path
        path.parent.mkdir(parents=True)
        path.write_bytes(b'{"version": 1, "records": []}\xff')
        commands.start_pomodoro("Draft", "科学研究-DualBasic", DUALBASIC)
        clock.advance(25 * 60)

        outcome = commands.complete_pomodoro()

        assert engine.phase == TimerPhase.SHORT_BREAK
        assert outcome.record is None
        assert len(outcome.errors) == 1
        assert isinstance(outcome.errors[0], RecordsFileError)
        assert outcome.note_updated
        assert outcome.habit_checked
        assert "- [x] 使用番茄钟 ✅ 2026-03-14" in read_daily_note(vault)
        assert notifier.sent == [(NotificationKind.POMODORO_COMPLETE, {"count": 1})]

    def test_requires_running_pomodoro(self, commands, engine, clock):
        with pytest.raises(TimerStateError):
            commands.complete_pomodoro()

        commands.start_stopwatch()
        with pytest.raises(TimerStateError):
            commands.complete_pomodoro()

        commands.start_pomodoro()
        commands.pause()
        with pytest.raises(TimerStateError):
            commands.complete_pomodoro()
        assert engine.pomodoro_count == 0

    def test_today_stats(self, commands, clock):
        commands.start_pomodoro()
        clock.advance(25 * 60)
        commands.complete_pomodoro()
        commands.skip_break()
        commands.start_stopwatch()
        clock.advance(15 * 60)
        commands.stop()

        stats = commands.get_today_stats()
        assert stats.total_minutes == 40
        assert stats.pomodoro_count == 1


class TestBreaks:
    def test_complete_break(self, commands, engine, notifier):
        engine.pomodoro_count = 1
        engine.start_break()
        assert commands.complete_break()
        assert engine.phase == TimerPhase.IDLE
        assert notifier.sent == [(NotificationKind.BREAK_COMPLETE, None)]

    def test_complete_break_outside_break(self, commands, notifier):
        assert not commands.complete_break()
        assert notifier.sent == []


class TestVault:
    def test_restores_saved_vault_on_start(self, make_commands, engine, vault):
        write_plugin_config(vault, {"pomodoroDuration": 50})
        commands = make_commands(vault)
        assert commands.get_vault_path() == vault
        assert commands.get_config().pomodoro_duration == 50
        assert engine.pomodoro_minutes == 50

    def test_set_vault_path(self, make_commands, engine, vault, tmp_path):
        write_plugin_config(vault, {"shortBreakDuration": 7})
        commands = make_commands()

        config = commands.set_vault_path(vault)

        assert config.short_break_duration == 7
        assert engine.short_break_minutes == 7
        assert commands.get_vault_path() == vault
        saved = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))
        assert saved["vault_path"] == str(vault)

    def test_invalid_vault_rejected_without_changes(self, commands, vault, tmp_path):
        with pytest.raises(VaultValidationError):
            commands.set_vault_path(tmp_path / "not-a-vault")
        assert commands.get_vault_path() == vault
        assert not (tmp_path / "config.json").exists()

    def test_vault_operations_need_a_vault(self, make_commands):
        commands = make_commands()
        for operation in (commands.get_today_stats, commands.scan_projects, commands.scan_tasks):
            with pytest.raises(VaultNotConfiguredError):
                operation()

    def test_get_config_is_a_copy(self, commands):
        commands.get_config().pomodoro_duration = 99
        assert commands.get_config().pomodoro_duration == 25


class TestAutostart:
    def test_enable_persists_on_success(self, commands, monkeypatch, tmp_path):
        monkeypatch.setattr(commands_module, "enable_autostart", lambda: True)
        assert commands.set_autostart(True)
        assert commands.app_config.autostart
        saved = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))
        assert saved["autostart"] is True

    def test_failure_not_persisted(self, commands, monkeypatch, tmp_path):
        monkeypatch.setattr(commands_module, "disable_autostart", lambda: False)
        commands.app_config.autostart = True
        assert not commands.set_autostart(False)
        assert commands.app_config.autostart
        assert not (tmp_path / "config.json").exists()

    def test_query_delegates(self, commands, monkeypatch):
        monkeypatch.setattr(commands_module, "is_autostart_enabled", lambda: True)
        assert commands.get_autostart()


def test_status_and_tray_title(commands, clock):
    commands.start_pomodoro()
    clock.advance(60)
    assert commands.get_status().remaining_secs == 24 * 60
    assert commands.get_tray_title() == "24:00"
