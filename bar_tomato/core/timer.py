"""
Pomodoro/stopwatch timer state machine for Bar Tomato.

Durations are measured on a monotonic clock; the wall clock is only read to
stamp records. Both clocks are injectable for deterministic tests.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from bar_tomato.utils.constants import (
    DEFAULT_LONG_BREAK_INTERVAL,
    DEFAULT_LONG_BREAK_MINUTES,
    DEFAULT_POMODORO_MINUTES,
    DEFAULT_SHORT_BREAK_MINUTES,
    TimerMode,
    TimerPhase,
)


@dataclass
class TimerStatus:
    """Read model handed to the UI."""
    phase: TimerPhase
    mode: TimerMode
    elapsed_secs: int
    remaining_secs: Optional[int]
    overtime_secs: int
    pomodoro_count: int
    current_task: Optional[str] = None
    current_project: Optional[str] = None
    current_project_path: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'phase': self.phase.value,
            'mode': self.mode.value,
            'elapsedSecs': self.elapsed_secs,
            'remainingSecs': self.remaining_secs,
            'overtimeSecs': self.overtime_secs,
            'pomodoroCount': self.pomodoro_count,
            'currentTask': self.current_task,
            'currentProject': self.current_project,
            'currentProjectPath': self.current_project_path,
        }


@dataclass(frozen=True)
class TimerSnapshot:
    """Everything needed to record a session, captured under the engine lock."""
    phase: TimerPhase
    mode: TimerMode
    elapsed_secs: int
    target_secs: int
    start_wall_ms: Optional[int]
    end_wall_ms: int
    pomodoro_count: int
    task: Optional[str]
    project: Optional[str]
    project_path: Optional[str]

    @property
    def elapsed_minutes(self) -> int:
        return self.elapsed_secs // 60

    @property
    def reached_target(self) -> bool:
        return self.target_secs > 0 and self.elapsed_secs >= self.target_secs


def _format_mm_ss(seconds: int) -> str:
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


class TimerEngine:
    """
    Owns the timer state. One re-entrant lock guards it; the scheduler and
    the command layer both take `engine.lock` for compound operations.
    Calls that make no sense in the current phase are ignored.
    """

    def __init__(
        self,
        pomodoro_minutes: int = DEFAULT_POMODORO_MINUTES,
        short_break_minutes: int = DEFAULT_SHORT_BREAK_MINUTES,
        long_break_minutes: int = DEFAULT_LONG_BREAK_MINUTES,
        long_break_interval: int = DEFAULT_LONG_BREAK_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the engine in the Idle phase.

        Args:
            pomodoro_minutes: Length of a work interval
            short_break_minutes: Length of a short break
            long_break_minutes: Length of a long break
            long_break_interval: Pomodoros between long breaks
            clock: Monotonic clock in seconds
            wall_clock: Wall clock in epoch seconds
        """
        self.lock = threading.RLock()
        self._clock = clock
        self._wall_clock = wall_clock

        self.pomodoro_minutes = pomodoro_minutes
        self.short_break_minutes = short_break_minutes
        self.long_break_minutes = long_break_minutes
        self.long_break_interval = long_break_interval

        self._phase = TimerPhase.IDLE
        self._mode = TimerMode.POMODORO
        self._start_anchor: Optional[float] = None
        self._start_wall_ms: Optional[int] = None
        self._accumulated = 0.0
        self._target_secs = pomodoro_minutes * 60
        self._completion_notified = False

        self.pomodoro_count = 0
        self.current_task: Optional[str] = None
        self.current_project: Optional[str] = None
        self.current_project_path: Optional[str] = None

    # ---- Read-only properties ----

    @property
    def phase(self) -> TimerPhase:
        return self._phase

    @property
    def mode(self) -> TimerMode:
        return self._mode

    @property
    def target_secs(self) -> int:
        return self._target_secs

    @property
    def start_wall_ms(self) -> Optional[int]:
        return self._start_wall_ms

    @property
    def completion_notified(self) -> bool:
        return self._completion_notified

    @property
    def is_active(self) -> bool:
        """Running or paused work session (not a break)."""
        return self._phase in (TimerPhase.RUNNING, TimerPhase.PAUSED)

    # ---- Transitions ----

    def start_pomodoro(
        self,
        task: Optional[str] = None,
        project: Optional[str] = None,
        project_path: Optional[str] = None,
    ) -> None:
        """Start a fixed-length work interval, discarding any current session."""
        with self.lock:
            self._begin(TimerMode.POMODORO, self.pomodoro_minutes * 60, task, project, project_path)

    def start_stopwatch(
        self,
        task: Optional[str] = None,
        project: Optional[str] = None,
        project_path: Optional[str] = None,
    ) -> None:
        """Start an open-ended session that only ends on stop()."""
        with self.lock:
            self._begin(TimerMode.STOPWATCH, 0, task, project, project_path)

    def _begin(self, mode, target_secs, task, project, project_path) -> None:
        self.current_task = task
        self.current_project = project
        self.current_project_path = project_path
        self._mode = mode
        self._phase = TimerPhase.RUNNING
        self._start_anchor = self._clock()
        self._start_wall_ms = int(self._wall_clock() * 1000)
        self._accumulated = 0.0
        self._target_secs = target_secs
        self._completion_notified = False

    def pause(self) -> None:
        """Pause a running session."""
        with self.lock:
            if self._phase != TimerPhase.RUNNING:
                return
            self._accumulated += self._running_interval()
            self._start_anchor = None
            self._phase = TimerPhase.PAUSED

    def resume(self) -> None:
        """Resume a paused session."""
        with self.lock:
            if self._phase != TimerPhase.PAUSED:
                return
            self._start_anchor = self._clock()
            self._phase = TimerPhase.RUNNING

    def stop(self) -> None:
        """Return to Idle. The pomodoro count survives."""
        with self.lock:
            self._phase = TimerPhase.IDLE
            self._start_anchor = None
            self._start_wall_ms = None
            self._accumulated = 0.0

    def start_break(self) -> None:
        """
        Enter a break after a completed pomodoro.
        The caller has already incremented pomodoro_count.
        """
        with self.lock:
            interval = self.long_break_interval
            if self.pomodoro_count > 0 and interval > 0 and self.pomodoro_count % interval == 0:
                self._phase = TimerPhase.LONG_BREAK
                self._target_secs = self.long_break_minutes * 60
            else:
                self._phase = TimerPhase.SHORT_BREAK
                self._target_secs = self.short_break_minutes * 60
            self._start_anchor = self._clock()
            self._accumulated = 0.0
            self._completion_notified = False

    def skip_break(self) -> None:
        """Leave the break (or whatever is running) and go Idle."""
        with self.lock:
            self._phase = TimerPhase.IDLE
            self._start_anchor = None
            self._accumulated = 0.0

    def apply_config(self, config) -> None:
        """Take durations from a PomodoroConfig; used from the next phase on."""
        with self.lock:
            self.pomodoro_minutes = config.pomodoro_duration
            self.short_break_minutes = config.short_break_duration
            self.long_break_minutes = config.long_break_duration
            self.long_break_interval = config.long_break_interval

    def mark_completion_notified(self) -> bool:
        """
        Flag the current phase as announced.

        Returns:
            True the first time it is called on a completed phase, False after
        """
        with self.lock:
            if self._completion_notified or not self.is_completed():
                return False
            self._completion_notified = True
            return True

    # ---- Derived values ----

    def _running_interval(self) -> float:
        if self._start_anchor is None:
            return 0.0
        # Monotonic clocks should never go backwards, but never count negative time
        return max(0.0, self._clock() - self._start_anchor)

    def elapsed(self) -> float:
        """Seconds spent running in the current phase."""
        with self.lock:
            return self._accumulated + self._running_interval()

    def elapsed_secs(self) -> int:
        return int(self.elapsed())

    def remaining(self) -> Optional[int]:
        """Whole seconds left, or None when there is no target."""
        with self.lock:
            if self._mode == TimerMode.STOPWATCH and self._phase == TimerPhase.RUNNING:
                return None
            if self._target_secs == 0:
                return None
            return max(0, self._target_secs - self.elapsed_secs())

    def overtime(self) -> int:
        """Whole seconds past the target of a running pomodoro."""
        with self.lock:
            if self._mode != TimerMode.POMODORO or self._phase != TimerPhase.RUNNING:
                return 0
            return max(0, self.elapsed_secs() - self._target_secs)

    def is_completed(self) -> bool:
        with self.lock:
            if self._phase == TimerPhase.RUNNING and self._mode == TimerMode.POMODORO:
                return self.elapsed_secs() >= self._target_secs
            if self._phase.is_break:
                return self.elapsed_secs() >= self._target_secs
            return False

    def progress(self) -> Optional[float]:
        """Percent of the target reached, capped at 100; None without a target."""
        with self.lock:
            if self._target_secs <= 0:
                return None
            return min(100.0, self.elapsed() / self._target_secs * 100)

    def display_string(self) -> str:
        """Short text for the tray title."""
        with self.lock:
            phase = self._phase
            if phase == TimerPhase.IDLE:
                return ""

            if phase.is_break:
                remaining = self.remaining()
                return "☕" if remaining is None else f"☕ {_format_mm_ss(remaining)}"

            if self._mode == TimerMode.STOPWATCH:
                text = _format_mm_ss(self.elapsed_secs())
            else:
                # overtime() is zero while paused, the "+" marker is not
                over = max(0, self.elapsed_secs() - self._target_secs)
                remaining = self.remaining()
                if over > 0:
                    text = f"+{_format_mm_ss(over)}"
                elif remaining is not None:
                    text = _format_mm_ss(remaining)
                else:
                    text = ""

            if phase == TimerPhase.PAUSED:
                return f"⏸ {text}".rstrip()
            return text

    def status(self) -> TimerStatus:
        with self.lock:
            return TimerStatus(
                phase=self._phase,
                mode=self._mode,
                elapsed_secs=self.elapsed_secs(),
                remaining_secs=self.remaining(),
                overtime_secs=self.overtime(),
                pomodoro_count=self.pomodoro_count,
                current_task=self.current_task,
                current_project=self.current_project,
                current_project_path=self.current_project_path,
            )

    def snapshot(self) -> TimerSnapshot:
        with self.lock:
            return TimerSnapshot(
                phase=self._phase,
                mode=self._mode,
                elapsed_secs=self.elapsed_secs(),
                target_secs=self._target_secs,
                start_wall_ms=self._start_wall_ms,
                end_wall_ms=int(self._wall_clock() * 1000),
                pomodoro_count=self.pomodoro_count,
                task=self.current_task,
                project=self.current_project,
                project_path=self.current_project_path,
            )
