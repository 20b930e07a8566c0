"""
Timer settings stored by the lifeos-pro plugin inside the vault.
"""

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path

from bar_tomato.utils.constants import (
    DEFAULT_AUTO_START_BREAK,
    DEFAULT_LONG_BREAK_INTERVAL,
    DEFAULT_LONG_BREAK_MINUTES,
    DEFAULT_POMODORO_MINUTES,
    DEFAULT_POMODORO_SOUND,
    DEFAULT_SHORT_BREAK_MINUTES,
    OBSIDIAN_DIR,
    PLUGIN_DATA_FILE,
    PLUGIN_ID,
)

logger = logging.getLogger(__name__)


@dataclass
class PomodoroConfig:
    """Durations in minutes, as configured in the plugin."""

    pomodoro_duration: int = DEFAULT_POMODORO_MINUTES
    short_break_duration: int = DEFAULT_SHORT_BREAK_MINUTES
    long_break_duration: int = DEFAULT_LONG_BREAK_MINUTES
    long_break_interval: int = DEFAULT_LONG_BREAK_INTERVAL
    auto_start_break: bool = DEFAULT_AUTO_START_BREAK
    pomodoro_sound: bool = DEFAULT_POMODORO_SOUND

    def to_dict(self) -> dict:
        """camelCase keys, same as the plugin's data.json."""
        return {_camel(key): value for key, value in asdict(self).items()}


def _camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


def plugin_dir(vault_root: Path) -> Path:
    return Path(vault_root) / OBSIDIAN_DIR / "plugins" / PLUGIN_ID


def is_vault_valid(vault_root: Path) -> bool:
    """A usable vault has an .obsidian folder with lifeos-pro installed."""
    return plugin_dir(vault_root).is_dir()


def _positive_int(data: dict, key: str, default: int) -> int:
    value = data.get(key)
    # bool is an int subclass; reject it along with zero, negatives and floats
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    if key in data:
        logger.warning("Ignoring invalid %s=%r in plugin config, using %d", key, value, default)
    return default


def _flag(data: dict, key: str, default: bool) -> bool:
    value = data.get(key)
    if isinstance(value, bool):
        return value
    if key in data:
        logger.warning("Ignoring invalid %s=%r in plugin config, using %s", key, value, default)
    return default


def read_pomodoro_config(vault_root: Path) -> PomodoroConfig:
    """
    Read timer settings from the plugin's data.json.

    Each field falls back to its default when missing or of the wrong type;
    a missing or unparseable file gives the full defaults.
    """
    path = plugin_dir(vault_root) / PLUGIN_DATA_FILE
    if not path.exists():
        logger.info("No plugin config at %s, using defaults", path)
        return PomodoroConfig()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Could not read plugin config %s: %s", path, e)
        return PomodoroConfig()

    if not isinstance(data, dict):
        logger.warning("Plugin config %s is not an object, using defaults", path)
        return PomodoroConfig()

    return PomodoroConfig(
        pomodoro_duration=_positive_int(data, 'pomodoroDuration', DEFAULT_POMODORO_MINUTES),
        short_break_duration=_positive_int(data, 'shortBreakDuration', DEFAULT_SHORT_BREAK_MINUTES),
        long_break_duration=_positive_int(data, 'longBreakDuration', DEFAULT_LONG_BREAK_MINUTES),
        long_break_interval=_positive_int(data, 'longBreakInterval', DEFAULT_LONG_BREAK_INTERVAL),
        auto_start_break=_flag(data, 'autoStartBreak', DEFAULT_AUTO_START_BREAK),
        pomodoro_sound=_flag(data, 'pomodoroSound', DEFAULT_POMODORO_SOUND),
    )
