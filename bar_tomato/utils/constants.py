"""
Application-wide constants for Bar Tomato.
"""

import os
import sys
from enum import Enum
from pathlib import Path

# App info
APP_NAME = "BarTomato"
APP_SLUG = "bar-tomato"
APP_VERSION = "0.1.0"


def _default_data_dir() -> Path:
    """Per-user directory holding config.json and the log file."""
    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA")
        return Path(base) / APP_NAME if base else Path.home() / "AppData" / "Local" / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_SLUG
    base = os.environ.get("XDG_CONFIG_HOME")
    return (Path(base) if base else Path.home() / ".config") / APP_SLUG


# Paths
APP_DATA_DIR = _default_data_dir()
CONFIG_FILE = APP_DATA_DIR / "config.json"
LOG_FILE = APP_DATA_DIR / "bar-tomato.log"

# Timer defaults (classic 25/5/15, long break every 4)
DEFAULT_POMODORO_MINUTES = 25
DEFAULT_SHORT_BREAK_MINUTES = 5
DEFAULT_LONG_BREAK_MINUTES = 15
DEFAULT_LONG_BREAK_INTERVAL = 4
DEFAULT_AUTO_START_BREAK = False
DEFAULT_POMODORO_SOUND = True

# Scheduler cadence
TICK_INTERVAL = 1.0  # seconds

# Vault layout, shared with the lifeos-pro Obsidian plugin
OBSIDIAN_DIR = ".obsidian"
PLUGIN_ID = "lifeos-pro"
PLUGIN_DATA_FILE = "data.json"
PLUGIN_STORAGE_DIR = "storage"
RECORDS_FILE_PREFIX = "pomodoro-records"
RECORDS_FILE_VERSION = 1

PERIODIC_NOTES_DIR = "0. 周期笔记"
DAILY_DIR = "Daily"
PROJECTS_DIR = "1. 项目"
AREAS_DIR = "2. 领域"
TEMPLATES_MARKER = "Templates"

PROJECT_SECTION_HEADING = "## 项目列表"
HABIT_LABEL = "使用番茄钟"

# Daily note update
NOTE_UPDATE_ATTEMPTS = 3
NOTE_RETRY_DELAY = 0.05  # seconds

# Theme
DEFAULT_THEME = "darkly"


class TimerPhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"

    @property
    def is_break(self) -> bool:
        return self in (TimerPhase.SHORT_BREAK, TimerPhase.LONG_BREAK)


class TimerMode(str, Enum):
    POMODORO = "pomodoro"
    STOPWATCH = "stopwatch"


class RecordStatus:
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"


class NotificationKind:
    POMODORO_COMPLETE = "pomodoro_complete"
    BREAK_COMPLETE = "break_complete"
    STOPWATCH_STOPPED = "stopwatch_stopped"
