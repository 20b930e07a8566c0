"""
User-facing commands: the tray menu and the main window both call these.

Ordering contract for session-ending commands: snapshot the engine and make
the transition under the engine lock, release it, then do the vault I/O.
Vault failures are collected in the returned SessionOutcome and never undo
the transition.
"""

import copy
import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional

from bar_tomato.core.timer import TimerEngine, TimerSnapshot, TimerStatus
from bar_tomato.data.config import AppConfig
from bar_tomato.data.records import PomodoroRecord, RecordStore, TodayStats
from bar_tomato.utils.autostart import disable_autostart, enable_autostart, is_autostart_enabled
from bar_tomato.utils.constants import (
    CONFIG_FILE,
    NotificationKind,
    RecordStatus,
    TimerMode,
    TimerPhase,
)
from bar_tomato.utils.errors import (
    BarTomatoError,
    TimerStateError,
    VaultNotConfiguredError,
    VaultValidationError,
)
from bar_tomato.utils.notifications import Notifier
from bar_tomato.vault.config import PomodoroConfig, is_vault_valid, read_pomodoro_config
from bar_tomato.vault.daily_note import check_habit, update_project_time
from bar_tomato.vault.projects import Project, scan_projects
from bar_tomato.vault.tasks import VaultTask, scan_tasks

logger = logging.getLogger(__name__)


@dataclass
class SessionOutcome:
    """What happened to the vault when a session ended."""
    record: Optional[PomodoroRecord] = None
    note_updated: bool = False
    habit_checked: bool = False
    errors: List[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Commands:
    """
    Orchestrates the timer engine, the records file and the daily note.
    """

    def __init__(
        self,
        engine: TimerEngine,
        app_config: AppConfig,
        device_hash: str,
        notifier: Optional[Notifier] = None,
        today: Callable[[], date] = date.today,
        config_path: Path = CONFIG_FILE,
    ):
        """
        Initialize the command layer and restore the saved vault, if any.

        Args:
            engine: The single timer instance
            app_config: Persisted application preferences
            device_hash: Identifier naming this device's records file
            notifier: Receives pomodoro/break/stopwatch notifications
            today: Returns the local calendar date used for records
            config_path: Where app_config is saved
        """
        self.engine = engine
        self.app_config = app_config
        self.device_hash = device_hash
        self.notifier = notifier or Notifier()
        self._today = today
        self._config_path = config_path

        self._lock = threading.Lock()
        self._vault_path: Optional[Path] = None
        self._pomodoro_config = PomodoroConfig()

        if app_config.vault_path:
            self._load_vault(Path(app_config.vault_path))

    def _load_vault(self, vault_path: Path) -> PomodoroConfig:
        config = read_pomodoro_config(vault_path)
        self.engine.apply_config(config)
        with self._lock:
            self._vault_path = vault_path
            self._pomodoro_config = config
        logger.info("Using vault %s", vault_path)
        return config

    # ---- Timer commands ----

    def start_pomodoro(
        self,
        task: Optional[str] = None,
        project: Optional[str] = None,
        project_path: Optional[str] = None,
    ) -> None:
        self.engine.start_pomodoro(task, project, project_path)

    def start_stopwatch(
        self,
        task: Optional[str] = None,
        project: Optional[str] = None,
        project_path: Optional[str] = None,
    ) -> None:
        self.engine.start_stopwatch(task, project, project_path)

    def pause(self) -> None:
        self.engine.pause()

    def resume(self) -> None:
        self.engine.resume()

    def stop(self) -> SessionOutcome:
        """
        End the current session, recording it if at least a minute was worked.

        The engine is Idle afterwards whatever happens to the vault writes.
        """
        with self.engine.lock:
            snapshot = self.engine.snapshot() if self.engine.is_active else None
            self.engine.stop()

        outcome = SessionOutcome()
        if snapshot is None:
            return outcome

        minutes = snapshot.elapsed_minutes
        if minutes <= 0:
            logger.info("Stopped %s session under a minute, not recorded", snapshot.mode.value)
            return outcome

        is_pomodoro = snapshot.mode == TimerMode.POMODORO
        if is_pomodoro and not snapshot.reached_target:
            status = RecordStatus.INTERRUPTED
        else:
            status = RecordStatus.COMPLETED
        index = snapshot.pomodoro_count + 1 if is_pomodoro else None

        self._record_session(snapshot, minutes, status, index, outcome)

        if not is_pomodoro:
            self.notifier.notify(NotificationKind.STOPWATCH_STOPPED, {'minutes': minutes})
        return outcome

    def complete_pomodoro(self) -> SessionOutcome:
        """
        Finish the running pomodoro (overtime included) and start a break.

        Raises:
            TimerStateError: If no pomodoro is running
        """
        with self.engine.lock:
            if self.engine.phase != TimerPhase.RUNNING or self.engine.mode != TimerMode.POMODORO:
                raise TimerStateError("No pomodoro running")
            self.engine.pomodoro_count += 1
            snapshot = self.engine.snapshot()
            self.engine.start_break()

        outcome = SessionOutcome()
        minutes = max(1, snapshot.elapsed_minutes)
        self._record_session(snapshot, minutes, RecordStatus.COMPLETED, snapshot.pomodoro_count, outcome)
        self.notifier.notify(NotificationKind.POMODORO_COMPLETE, {'count': snapshot.pomodoro_count})
        return outcome

    def skip_break(self) -> None:
        self.engine.skip_break()

    def complete_break(self) -> bool:
        """End a finished break. Returns False if no break was running."""
        with self.engine.lock:
            if not self.engine.phase.is_break:
                return False
            self.engine.skip_break()
        self.notifier.notify(NotificationKind.BREAK_COMPLETE)
        return True

    def get_status(self) -> TimerStatus:
        return self.engine.status()

    def get_tray_title(self) -> str:
        return self.engine.display_string()

    # ---- Vault recording ----

    def _record_session(
        self,
        snapshot: TimerSnapshot,
        minutes: int,
        status: str,
        pomodoro_index: Optional[int],
        outcome: SessionOutcome,
    ) -> None:
        """Append the record, update the daily note, tick the habit; each independently."""
        vault = self.get_vault_path()
        if vault is None:
            logger.info("No vault configured, session not recorded")
            return

        day = self._today()
        record = PomodoroRecord.create(
            day=day,
            start_time=snapshot.start_wall_ms or 0,
            end_time=snapshot.end_wall_ms,
            duration=minutes,
            mode=snapshot.mode.value,
            status=status,
            project_path=snapshot.project_path,
            task_text=snapshot.task,
            pomodoro_index=pomodoro_index,
        )

        try:
            RecordStore.for_vault(vault, self.device_hash).append(record)
            outcome.record = record
        except (OSError, BarTomatoError) as e:
            logger.error("Failed to write session record: %s", e)
            outcome.errors.append(e)

        if snapshot.project_path and snapshot.project:
            try:
                outcome.note_updated = update_project_time(
                    vault, day, snapshot.project_path, snapshot.project, minutes
                )
            except (OSError, BarTomatoError) as e:
                logger.error("Failed to update daily note: %s", e)
                outcome.errors.append(e)

        try:
            outcome.habit_checked = check_habit(vault, day)
        except (OSError, BarTomatoError) as e:
            logger.error("Failed to check pomodoro habit: %s", e)
            outcome.errors.append(e)

    # ---- Vault commands ----

    def set_vault_path(self, path) -> PomodoroConfig:
        """
        Switch to another vault and remember it.

        Raises:
            VaultValidationError: If the folder has no lifeos-pro plugin
        """
        vault_path = Path(path).expanduser()
        if not is_vault_valid(vault_path):
            raise VaultValidationError(f"{vault_path} is not a vault with the lifeos-pro plugin installed")

        config = self._load_vault(vault_path)
        self.app_config.vault_path = str(vault_path)
        self.save_app_config()
        return copy.copy(config)

    def get_vault_path(self) -> Optional[Path]:
        with self._lock:
            return self._vault_path

    def _require_vault(self) -> Path:
        vault = self.get_vault_path()
        if vault is None:
            raise VaultNotConfiguredError("Vault not configured")
        return vault

    def get_config(self) -> PomodoroConfig:
        with self._lock:
            return copy.copy(self._pomodoro_config)

    def scan_projects(self) -> List[Project]:
        return scan_projects(self._require_vault())

    def scan_tasks(self) -> List[VaultTask]:
        return scan_tasks(self._require_vault())

    def get_today_stats(self) -> TodayStats:
        vault = self._require_vault()
        return RecordStore.for_vault(vault, self.device_hash).today_stats(self._today())

    # ---- App settings ----

    def save_app_config(self) -> None:
        self.app_config.save(self._config_path)

    def set_autostart(self, enabled: bool) -> bool:
        """Register or unregister start at login. Returns False if the OS call failed."""
        ok = enable_autostart() if enabled else disable_autostart()
        if ok:
            self.app_config.autostart = enabled
            self.save_app_config()
        return ok

    def get_autostart(self) -> bool:
        return is_autostart_enabled()
