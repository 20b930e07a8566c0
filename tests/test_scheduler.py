"""Tests for TickScheduler, ticking synchronously."""

import threading

from bar_tomato.core.scheduler import TickScheduler
from bar_tomato.utils.constants import TimerPhase


class Recorder:
    def __init__(self):
        self.ticks = []
        self.pomodoros = []
        self.breaks = 0

    def on_tick(self, state):
        self.ticks.append(state)

    def on_pomodoro_complete(self, count):
        self.pomodoros.append(count)

    def on_break_complete(self):
        self.breaks += 1


def make_scheduler(engine, recorder):
    return TickScheduler(
        engine,
        on_tick=recorder.on_tick,
        on_pomodoro_complete=recorder.on_pomodoro_complete,
        on_break_complete=recorder.on_break_complete,
    )


class TestTick:
    def test_idle_tick_reports_state(self, engine):
        recorder = Recorder()
        state = make_scheduler(engine, recorder).tick()
        assert state.phase == TimerPhase.IDLE
        assert state.display == ""
        assert recorder.ticks == [state]

    def test_pomodoro_completion_fires_exactly_once(self, engine, clock):
        recorder = Recorder()
        scheduler = make_scheduler(engine, recorder)
        engine.pomodoro_count = 2
        engine.start_pomodoro()

        clock.advance(25 * 60 - 1)
        scheduler.tick()
        assert recorder.pomodoros == []

        for _ in range(5):
            clock.advance(1)
            scheduler.tick()
        assert recorder.pomodoros == [2]
        # keeps ticking (overtime) after the notification
        assert recorder.ticks[-1].display == "+00:04"

    def test_break_completion_fires_once(self, engine, clock):
        recorder = Recorder()
        scheduler = make_scheduler(engine, recorder)
        engine.pomodoro_count = 1
        engine.start_break()
        clock.advance(5 * 60)
        scheduler.tick()
        scheduler.tick()
        assert recorder.breaks == 1
        assert recorder.pomodoros == []

    def test_stopwatch_never_fires(self, engine, clock):
        recorder = Recorder()
        scheduler = make_scheduler(engine, recorder)
        engine.start_stopwatch()
        clock.advance(3 * 3600)
        scheduler.tick()
        assert recorder.pomodoros == []
        assert recorder.breaks == 0
        assert recorder.ticks[-1].progress is None

    def test_observers_run_without_engine_lock(self, engine, clock):
        held = []

        def on_pomodoro_complete(count):
            # another thread must be able to take the lock right now
            result = []
            thread = threading.Thread(target=lambda: result.append(engine.lock.acquire(timeout=1)))
            thread.start()
            thread.join()
            if result[0]:
                engine.lock.release()
            held.append(not result[0])

        scheduler = TickScheduler(engine, on_pomodoro_complete=on_pomodoro_complete)
        engine.start_pomodoro()
        clock.advance(25 * 60)
        scheduler.tick()
        assert held == [False]

    def test_failing_observer_does_not_stop_others(self, engine, clock):
        recorder = Recorder()

        def boom(count):
            raise RuntimeError("observer failed")

        scheduler = TickScheduler(engine, on_tick=recorder.on_tick, on_pomodoro_complete=boom)
        engine.start_pomodoro()
        clock.advance(25 * 60)
        scheduler.tick()
        assert len(recorder.ticks) == 1


def test_start_and_stop_thread(engine):
    ticked = threading.Event()
    scheduler = TickScheduler(engine, on_tick=lambda state: ticked.set(), interval=0.01)
    scheduler.start()
    try:
        assert ticked.wait(2)
        assert scheduler.is_running
    finally:
        scheduler.stop(timeout=2)
    assert not scheduler.is_running
