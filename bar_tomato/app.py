"""
Main application orchestration for Bar Tomato.
"""

import logging
import threading

import ttkbootstrap as ttk
from tkinter import messagebox
from typing import Callable

from bar_tomato.core.commands import Commands, SessionOutcome
from bar_tomato.core.scheduler import TickScheduler, TickState
from bar_tomato.core.timer import TimerEngine
from bar_tomato.data.config import AppConfig
from bar_tomato.ui.main_window import MainWindow
from bar_tomato.ui.settings_window import SettingsWindow
from bar_tomato.ui.tray_icon import TrayIcon
from bar_tomato.utils.constants import TimerPhase
from bar_tomato.utils.errors import BarTomatoError, TimerStateError
from bar_tomato.utils.notifications import TrayNotifier

logger = logging.getLogger(__name__)


class BarTomatoApp:
    """
    Main application class that orchestrates all components.

    Tk is single-threaded: tray clicks and scheduler callbacks arrive on
    their own threads and are handed to the Tk loop with root.after().
    """

    def __init__(self, config: AppConfig, device_hash: str):
        """
        Initialize the application.

        Args:
            config: Application configuration
            device_hash: Identifier for this device's records file
        """
        self.config = config

        # Initialize root window
        self.root = ttk.Window(themename=config.theme)
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

        # Initialize tray icon first, notifications go through it
        self._init_tray()

        # Initialize core components
        self._init_core(device_hash)

        # Initialize UI
        self._init_ui()

        if self.tray_icon.is_available():
            self.tray_icon.start()
        self.scheduler.start()

        # Handle start minimized
        if config.start_minimized and self.tray_icon.is_available():
            self.root.withdraw()

    def _init_core(self, device_hash: str) -> None:
        """Initialize the timer, its scheduler and the command layer."""
        self.engine = TimerEngine()
        self.notifier = TrayNotifier(
            show=self.tray_icon.notify,
            bell=lambda: self.root.after(0, self.root.bell),
            sound_enabled=lambda: self.commands.get_config().pomodoro_sound,
        )
        self.commands = Commands(self.engine, self.config, device_hash, notifier=self.notifier)
        self.scheduler = TickScheduler(
            self.engine,
            on_tick=self._on_timer_tick,
            on_pomodoro_complete=self._on_pomodoro_complete,
            on_break_complete=self._on_break_complete,
        )

    def _init_ui(self) -> None:
        """Initialize the user interface."""
        self.main_window = MainWindow(
            root=self.root,
            on_start_pomodoro=self._on_start_pomodoro,
            on_start_stopwatch=self._on_start_stopwatch,
            on_toggle_pause=self._on_toggle_pause,
            on_complete=self._on_complete,
            on_stop=self._on_stop,
            on_skip_break=self._on_skip_break,
            on_settings=self._on_settings,
            on_refresh=self._refresh_vault,
        )
        self.main_window.set_idle_time(self.engine.pomodoro_minutes)
        self._refresh_vault()

    def _init_tray(self) -> None:
        """Initialize the system tray icon."""
        self.tray_icon = TrayIcon(
            on_show=self._from_tray(self._on_tray_show),
            on_start_pomodoro=self._from_tray(self._on_start_pomodoro),
            on_start_stopwatch=self._from_tray(self._on_start_stopwatch),
            on_toggle_pause=self._from_tray(self._on_toggle_pause),
            on_complete=self._from_tray(self._on_complete),
            on_stop=self._from_tray(self._on_stop),
            on_skip_break=self._from_tray(self._on_skip_break),
            on_settings=self._from_tray(self._on_settings),
            on_exit=self._from_tray(self._on_exit),
        )

    def _from_tray(self, handler: Callable) -> Callable:
        return lambda: self.root.after(0, handler)

    # ---- Scheduler callbacks (tick thread) ----

    def _on_timer_tick(self, state: TickState) -> None:
        """Handle timer tick - update UI."""
        self.root.after(0, lambda: self.main_window.update_tick(state))
        self.tray_icon.update_state(state.phase, state.display)

    def _on_pomodoro_complete(self, count: int) -> None:
        """The running pomodoro reached its target."""
        if self.commands.get_config().auto_start_break:
            try:
                outcome = self.commands.complete_pomodoro()
            except TimerStateError:
                # Stopped or paused between the tick and now
                return
            self.root.after(0, lambda: self._after_session(outcome))
        else:
            # Keep counting overtime until the user completes it
            self.root.after(0, self._show_attention)

    def _on_break_complete(self) -> None:
        self.commands.complete_break()
        self.root.after(0, self._show_attention)

    def _show_attention(self) -> None:
        """Bring the window to front and beep."""
        self.main_window.show()
        if self.commands.get_config().pomodoro_sound:
            self.root.bell()

    # ---- Commands (Tk thread) ----

    def _on_start_pomodoro(self) -> None:
        if self.engine.phase != TimerPhase.IDLE:
            return
        task, project, project_path = self.main_window.selection()
        self.commands.start_pomodoro(task, project, project_path)
        self.scheduler.tick()

    def _on_start_stopwatch(self) -> None:
        if self.engine.phase != TimerPhase.IDLE:
            return
        task, project, project_path = self.main_window.selection()
        self.commands.start_stopwatch(task, project, project_path)
        self.scheduler.tick()

    def _on_toggle_pause(self) -> None:
        if self.engine.phase == TimerPhase.PAUSED:
            self.commands.resume()
        else:
            self.commands.pause()
        self.scheduler.tick()

    def _on_complete(self) -> None:
        try:
            outcome = self.commands.complete_pomodoro()
        except TimerStateError:
            return
        self.scheduler.tick()
        self._after_session(outcome)

    def _on_stop(self) -> None:
        outcome = self.commands.stop()
        self.scheduler.tick()
        self.main_window.set_idle_time(self.engine.pomodoro_minutes)
        self._after_session(outcome)

    def _on_skip_break(self) -> None:
        self.commands.skip_break()
        self.scheduler.tick()
        self.main_window.set_idle_time(self.engine.pomodoro_minutes)

    def _after_session(self, outcome: SessionOutcome) -> None:
        """Refresh stats and report vault write failures."""
        self._refresh_stats()
        if outcome.errors:
            details = "\n".join(str(e) for e in outcome.errors)
            messagebox.showwarning(
                "Vault Update Failed",
                f"The session ended but could not be fully saved to the vault:\n\n{details}"
            )

    # ---- Vault ----

    def _refresh_stats(self) -> None:
        if self.commands.get_vault_path() is None:
            self.main_window.update_stats(None)
            return
        try:
            self.main_window.update_stats(self.commands.get_today_stats())
        except (OSError, BarTomatoError) as e:
            logger.warning("Could not read today's stats: %s", e)

    def _refresh_vault(self) -> None:
        """Rescan projects and tasks in the background."""
        self._refresh_stats()
        if self.commands.get_vault_path() is None:
            return
        threading.Thread(target=self._scan_vault, daemon=True).start()

    def _scan_vault(self) -> None:
        try:
            projects = self.commands.scan_projects()
            tasks = self.commands.scan_tasks()
        except (OSError, BarTomatoError) as e:
            logger.warning("Vault scan failed: %s", e)
            return
        logger.info("Found %d projects and %d open tasks", len(projects), len(tasks))
        self.root.after(0, lambda: self.main_window.set_projects(projects))
        self.root.after(0, lambda: self.main_window.set_tasks(tasks))

    # ---- Windows ----

    def _on_settings(self) -> None:
        """Handle settings button click."""
        self.main_window.show()
        SettingsWindow(
            parent=self.root,
            commands=self.commands,
            on_save=self._on_settings_save,
        )

    def _on_settings_save(self) -> None:
        """Handle settings save."""
        self.main_window.set_idle_time(self.engine.pomodoro_minutes)
        self._refresh_vault()

    def _on_tray_show(self) -> None:
        """Handle tray icon show click."""
        self.main_window.show()

    def _on_close(self) -> None:
        """Handle window close - minimize to tray if there is one."""
        if self.tray_icon.is_available():
            self.main_window.hide()
        else:
            self._on_exit()

    def _on_exit(self) -> None:
        """Handle application exit."""
        # A running session is recorded like a stop
        if self.engine.is_active:
            self.commands.stop()
        self.scheduler.stop(timeout=2)
        self.tray_icon.stop()

        # Destroy window
        self.root.quit()
        self.root.destroy()

    def run(self) -> None:
        """Run the application main loop."""
        self.root.mainloop()
