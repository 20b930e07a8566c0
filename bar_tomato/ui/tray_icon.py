"""
System tray icon for Bar Tomato.

The icon title carries the timer text (e.g. "12:34", "☕ 04:10"), which
menu-bar hosts show next to the icon.
"""

import threading
from typing import Callable, Optional
from PIL import Image, ImageDraw

try:
    import pystray
    from pystray import Icon, Menu, MenuItem
    PYSTRAY_AVAILABLE = True
except ImportError:
    PYSTRAY_AVAILABLE = False

from bar_tomato.utils.constants import APP_NAME, TimerPhase

PHASE_COLORS = {
    TimerPhase.RUNNING: "#E74C3C",      # Red
    TimerPhase.PAUSED: "#F39C12",       # Orange
    TimerPhase.SHORT_BREAK: "#2ECC71",  # Green
    TimerPhase.LONG_BREAK: "#1ABC9C",   # Teal
}
IDLE_COLOR = "#808080"


class TrayIcon:
    """
    System tray icon with context menu.
    """

    def __init__(
        self,
        on_show: Callable,
        on_start_pomodoro: Callable,
        on_start_stopwatch: Callable,
        on_toggle_pause: Callable,
        on_complete: Callable,
        on_stop: Callable,
        on_skip_break: Callable,
        on_settings: Callable,
        on_exit: Callable,
    ):
        """
        Initialize the tray icon.

        Args:
            on_show: Callback to show main window
            on_start_pomodoro: Callback to start a pomodoro
            on_start_stopwatch: Callback to start the stopwatch
            on_toggle_pause: Callback to pause or resume
            on_complete: Callback to complete the running pomodoro
            on_stop: Callback to stop the session
            on_skip_break: Callback to skip the current break
            on_settings: Callback to show settings
            on_exit: Callback to exit application
        """
        self.on_show = on_show
        self.on_start_pomodoro = on_start_pomodoro
        self.on_start_stopwatch = on_start_stopwatch
        self.on_toggle_pause = on_toggle_pause
        self.on_complete = on_complete
        self.on_stop = on_stop
        self.on_skip_break = on_skip_break
        self.on_settings = on_settings
        self.on_exit = on_exit

        self._icon: Optional[Icon] = None
        self._current_phase = TimerPhase.IDLE

        if PYSTRAY_AVAILABLE:
            self._setup_icon()

    def _create_icon_image(self, color: str = IDLE_COLOR) -> Image:
        """
        Draw a tomato in the given color.

        Args:
            color: Fill color for the icon

        Returns:
            PIL Image object
        """
        size = 64
        image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
        draw = ImageDraw.Draw(image)

        margin = 6
        draw.ellipse(
            [margin, margin + 6, size - margin, size - margin],
            fill=color,
            outline="#FFFFFF",
            width=2
        )

        # Stem
        draw.polygon(
            [(size // 2 - 10, margin + 4), (size // 2, margin + 12), (size // 2 + 10, margin + 4)],
            fill="#27AE60"
        )

        return image

    def _setup_icon(self) -> None:
        """Set up the system tray icon."""
        image = self._create_icon_image()

        menu = Menu(
            MenuItem("Show Timer", self._on_show_click, default=True),
            Menu.SEPARATOR,
            MenuItem("Start Pomodoro", self._on_start_pomodoro_click, visible=self._is_idle),
            MenuItem("Start Stopwatch", self._on_start_stopwatch_click, visible=self._is_idle),
            MenuItem(self._pause_text, self._on_toggle_pause_click, visible=self._is_active),
            MenuItem("Complete", self._on_complete_click, visible=self._is_running),
            MenuItem("Stop", self._on_stop_click, visible=self._is_active),
            MenuItem("Skip Break", self._on_skip_break_click, visible=self._is_break),
            Menu.SEPARATOR,
            MenuItem("Settings", self._on_settings_click),
            Menu.SEPARATOR,
            MenuItem("Exit", self._on_exit_click),
        )

        self._icon = Icon(
            APP_NAME,
            image,
            APP_NAME,
            menu
        )

    # pystray evaluates these each time the menu opens

    def _is_idle(self, item) -> bool:
        return self._current_phase == TimerPhase.IDLE

    def _is_active(self, item) -> bool:
        return self._current_phase in (TimerPhase.RUNNING, TimerPhase.PAUSED)

    def _is_running(self, item) -> bool:
        return self._current_phase == TimerPhase.RUNNING

    def _is_break(self, item) -> bool:
        return self._current_phase.is_break

    def _pause_text(self, item) -> str:
        return "Resume" if self._current_phase == TimerPhase.PAUSED else "Pause"

    def _on_show_click(self, icon, item) -> None:
        self.on_show()

    def _on_start_pomodoro_click(self, icon, item) -> None:
        self.on_start_pomodoro()

    def _on_start_stopwatch_click(self, icon, item) -> None:
        self.on_start_stopwatch()

    def _on_toggle_pause_click(self, icon, item) -> None:
        self.on_toggle_pause()

    def _on_complete_click(self, icon, item) -> None:
        self.on_complete()

    def _on_stop_click(self, icon, item) -> None:
        self.on_stop()

    def _on_skip_break_click(self, icon, item) -> None:
        self.on_skip_break()

    def _on_settings_click(self, icon, item) -> None:
        self.on_settings()

    def _on_exit_click(self, icon, item) -> None:
        # The app calls stop() when actually exiting
        self.on_exit()

    def start(self) -> None:
        """Start the tray icon in a background thread."""
        if self._icon:
            thread = threading.Thread(target=self._icon.run, daemon=True)
            thread.start()

    def stop(self) -> None:
        """Stop the tray icon."""
        if self._icon:
            self._icon.stop()

    def update_state(self, phase: TimerPhase, display: str) -> None:
        """
        Update the icon color and title from a tick.

        Args:
            phase: Current timer phase
            display: Timer text, empty when idle
        """
        phase_changed = phase != self._current_phase
        self._current_phase = phase

        if not self._icon:
            return

        if phase_changed:
            self._icon.icon = self._create_icon_image(PHASE_COLORS.get(phase, IDLE_COLOR))
            self._icon.update_menu()
        self._icon.title = f"{APP_NAME} {display}" if display else APP_NAME

    def notify(self, message: str, title: Optional[str] = None) -> None:
        """Show a desktop notification through the tray backend."""
        if self._icon:
            self._icon.notify(message, title)

    def is_available(self) -> bool:
        """Check if system tray is available."""
        return PYSTRAY_AVAILABLE
