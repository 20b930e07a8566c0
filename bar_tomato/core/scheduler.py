"""
Once-per-second driver for the timer.

Detects phase completion exactly once and pushes display state to the
tray/window observers. Observers are always called with the engine lock
released, so they may call back into the command layer.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from bar_tomato.core.timer import TimerEngine
from bar_tomato.utils.constants import TICK_INTERVAL, TimerMode, TimerPhase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickState:
    """Display/progress state computed on one tick."""
    phase: TimerPhase
    mode: TimerMode
    elapsed_secs: int
    target_secs: int
    display: str
    progress: Optional[float]  # percent, None when indeterminate
    pomodoro_count: int


class TickScheduler:
    """
    Fixed-cadence loop polling a TimerEngine.
    """

    def __init__(
        self,
        engine: TimerEngine,
        on_tick: Optional[Callable[[TickState], None]] = None,
        on_pomodoro_complete: Optional[Callable[[int], None]] = None,
        on_break_complete: Optional[Callable[[], None]] = None,
        interval: float = TICK_INTERVAL,
    ):
        """
        Initialize the scheduler.

        Args:
            engine: Timer to poll
            on_tick: Called every tick with the current TickState
            on_pomodoro_complete: Called once when a pomodoro reaches its target,
                with the pomodoro count
            on_break_complete: Called once when a break reaches its target
            interval: Seconds between ticks
        """
        self.engine = engine
        self.on_tick = on_tick
        self.on_pomodoro_complete = on_pomodoro_complete
        self.on_break_complete = on_break_complete
        self.interval = interval

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the tick thread."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="tick-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the tick thread and wait for it to exit."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        """Timer thread main loop."""
        while not self._stop_event.wait(self.interval):
            self.tick()

    def tick(self) -> TickState:
        """Run one tick synchronously and return the state handed to observers."""
        engine = self.engine
        pomodoro_done: Optional[int] = None
        break_done = False

        with engine.lock:
            if engine.mark_completion_notified():
                if engine.phase == TimerPhase.RUNNING and engine.mode == TimerMode.POMODORO:
                    pomodoro_done = engine.pomodoro_count
                elif engine.phase.is_break:
                    break_done = True

            state = TickState(
                phase=engine.phase,
                mode=engine.mode,
                elapsed_secs=engine.elapsed_secs(),
                target_secs=engine.target_secs,
                display=engine.display_string(),
                progress=engine.progress(),
                pomodoro_count=engine.pomodoro_count,
            )

        if pomodoro_done is not None:
            logger.info("Pomodoro reached its target (count=%d)", pomodoro_done)
            self._notify(self.on_pomodoro_complete, pomodoro_done)
        if break_done:
            logger.info("Break finished")
            self._notify(self.on_break_complete)
        self._notify(self.on_tick, state)

        return state

    @staticmethod
    def _notify(callback: Optional[Callable], *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Tick observer %r failed", callback)
