"""
Pomodoro session records stored inside the vault.

One JSON file per vault and device, shared with the lifeos-pro plugin:
    {"version": 1, "records": [...]}
Writes go through a locked sibling temp file and an atomic rename, so a
reader sees either the previous file or the new one, never a partial write.
Two separate processes appending to the same file are not serialized.
"""

import json
import logging
import os
import threading
import uuid
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from bar_tomato.utils.constants import (
    OBSIDIAN_DIR,
    PLUGIN_ID,
    PLUGIN_STORAGE_DIR,
    RECORDS_FILE_PREFIX,
    RECORDS_FILE_VERSION,
    TimerMode,
    RecordStatus,
)
from bar_tomato.utils.errors import RecordsFileError

if os.name == "nt":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)

TEMP_FILE_SUFFIX = ".tmp"

# Serializes appends and temp file cleanup across RecordStore instances in this process
_write_lock = threading.RLock()

_RECORD_KEYS = (
    'id', 'date', 'startTime', 'endTime', 'duration', 'mode', 'status',
    'projectPath', 'taskText', 'pomodoroIndex',
)


@dataclass(frozen=True)
class PomodoroRecord:
    """One finished session. Never modified after it is written."""
    id: str
    date: str  # ISO format YYYY-MM-DD, local time
    start_time: int  # epoch ms
    end_time: int  # epoch ms
    duration: int  # minutes
    mode: str
    status: str
    project_path: Optional[str] = None
    task_text: Optional[str] = None
    pomodoro_index: Optional[int] = None
    # keys written by other clients that we do not model
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def create(
        cls,
        day: date,
        start_time: int,
        end_time: int,
        duration: int,
        mode: str,
        status: str = RecordStatus.COMPLETED,
        project_path: Optional[str] = None,
        task_text: Optional[str] = None,
        pomodoro_index: Optional[int] = None,
    ) -> 'PomodoroRecord':
        """Build a new record with a fresh id."""
        return cls(
            id=str(uuid.uuid4()),
            date=day.isoformat(),
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            mode=mode,
            status=status,
            project_path=project_path,
            task_text=task_text,
            pomodoro_index=pomodoro_index,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = dict(self.extra)
        data.update({
            'id': self.id,
            'date': self.date,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'duration': self.duration,
            'mode': self.mode,
            'status': self.status,
        })
        if self.project_path is not None:
            data['projectPath'] = self.project_path
        if self.task_text is not None:
            data['taskText'] = self.task_text
        if self.pomodoro_index is not None:
            data['pomodoroIndex'] = self.pomodoro_index
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'PomodoroRecord':
        """Create from dictionary."""
        return cls(
            id=str(data['id']),
            date=str(data['date']),
            start_time=int(data.get('startTime', 0)),
            end_time=int(data.get('endTime', 0)),
            duration=int(data.get('duration', 0)),
            mode=str(data.get('mode', TimerMode.POMODORO.value)),
            status=str(data.get('status', RecordStatus.COMPLETED)),
            project_path=data.get('projectPath'),
            task_text=data.get('taskText'),
            pomodoro_index=data.get('pomodoroIndex'),
            extra={k: v for k, v in data.items() if k not in _RECORD_KEYS},
        )


@dataclass
class RecordsFile:
    """Versioned, append-only list of records."""
    version: int = RECORDS_FILE_VERSION
    records: List[PomodoroRecord] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data['version'] = self.version
        data['records'] = [record.to_dict() for record in self.records]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'RecordsFile':
        return cls(
            version=int(data.get('version', RECORDS_FILE_VERSION)),
            records=[PomodoroRecord.from_dict(item) for item in data.get('records', [])],
            extra={k: v for k, v in data.items() if k not in ('version', 'records')},
        )


@dataclass
class TodayStats:
    """Totals for one calendar day."""
    total_minutes: int = 0
    pomodoro_count: int = 0

    def to_dict(self) -> dict:
        return {'totalMinutes': self.total_minutes, 'pomodoroCount': self.pomodoro_count}


def records_file_path(vault_root: Path, device_hash: str) -> Path:
    """
    Location of this device's records file inside a vault.

    The vault folder name and device hash keep devices syncing the same
    vault from writing to the same file.
    """
    vault_root = Path(vault_root)
    vault_name = vault_root.name or "vault"
    storage_dir = vault_root / OBSIDIAN_DIR / "plugins" / PLUGIN_ID / PLUGIN_STORAGE_DIR
    return storage_dir / f"{RECORDS_FILE_PREFIX}-{vault_name}.{device_hash}.json"


def _lock_file(f) -> None:
    if os.name == "nt":
        f.seek(0)
        msvcrt.locking(f.fileno(), msvcrt.LK_LOCK, 1)
    else:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)


def _unlock_file(f) -> None:
    if os.name == "nt":
        f.seek(0)
        msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)


class RecordStore:
    """
    Reads and appends the records file at one path.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def for_vault(cls, vault_root: Path, device_hash: str) -> 'RecordStore':
        return cls(records_file_path(vault_root, device_hash))

    @property
    def temp_path(self) -> Path:
        return self.path.with_name(self.path.name + TEMP_FILE_SUFFIX)

    def read(self) -> RecordsFile:
        """
        Load the records file.

        Returns:
            The parsed file, or an empty version-1 file if none exists yet

        Raises:
            RecordsFileError: If the file exists but is not a records file
        """
        if not self.path.exists():
            return RecordsFile()

        try:
            content = self.path.read_text(encoding='utf-8')
            if not content.strip():
                return RecordsFile()
            data = json.loads(content)
            if not isinstance(data, dict):
                raise TypeError(f"expected an object, got {type(data).__name__}")
            return RecordsFile.from_dict(data)
        except (ValueError, TypeError, KeyError) as e:
            raise RecordsFileError(f"Cannot parse records file {self.path}: {e}") from e

    def append(self, record: PomodoroRecord) -> None:
        """Append one record and rewrite the file atomically."""
        with _write_lock:
            self._cleanup_temp_file()
            records = self.read()
            records.records.append(record)
            self.write(records)
        logger.info("Recorded %s session of %d min to %s", record.mode, record.duration, self.path.name)

    def write(self, records: RecordsFile) -> None:
        """
        Replace the file contents via temp file + rename.

        Raises:
            OSError: If the directory, temp file, lock or rename fails
        """
        content = json.dumps(records.to_dict(), indent=2, ensure_ascii=False)
        temp_path = self.temp_path

        with _write_lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(temp_path, 'w', encoding='utf-8') as f:
                    _lock_file(f)
                    try:
                        f.write(content)
                        f.flush()
                        os.fsync(f.fileno())
                    finally:
                        _unlock_file(f)
                os.replace(temp_path, self.path)
            except OSError:
                if temp_path.exists():
                    temp_path.unlink()
                raise

    def _cleanup_temp_file(self) -> None:
        """Remove a temp file left behind by a crashed write. Call with _write_lock held."""
        temp_path = self.temp_path
        if temp_path.exists():
            logger.warning("Removing orphaned temp file from previous crash: %s", temp_path)
            temp_path.unlink()

    def today_stats(self, day: date) -> TodayStats:
        """Sum minutes of all records on day and count completed pomodoros."""
        key = day.isoformat()
        stats = TodayStats()
        for record in self.read().records:
            if record.date != key:
                continue
            stats.total_minutes += record.duration
            if record.mode == TimerMode.POMODORO.value and record.status == RecordStatus.COMPLETED:
                stats.pomodoro_count += 1
        return stats
