"""
Desktop notifications for timer events.
"""

import logging
from typing import Any, Callable, Optional

from bar_tomato.utils.constants import APP_NAME, NotificationKind

logger = logging.getLogger(__name__)

MESSAGES = {
    NotificationKind.POMODORO_COMPLETE: ("🍅 Pomodoro complete", "Time for a break!"),
    NotificationKind.BREAK_COMPLETE: ("☕ Break over", "Ready for the next pomodoro?"),
    NotificationKind.STOPWATCH_STOPPED: ("⏱ Stopwatch stopped", "Tracked {minutes} minutes."),
}


def build_message(kind: str, payload: Optional[dict] = None) -> tuple:
    """Title and body for a notification kind."""
    title, body = MESSAGES.get(kind, (APP_NAME, ""))
    return title, body.format(**(payload or {}))


class Notifier:
    """Delivers notifications; the base class only logs them."""

    def notify(self, kind: str, payload: Optional[dict] = None) -> None:
        title, body = build_message(kind, payload)
        logger.info("%s: %s", title, body)


class TrayNotifier(Notifier):
    """
    Shows notifications through the tray icon and optionally rings a bell.
    """

    def __init__(
        self,
        show: Callable[[str, str], Any],
        bell: Optional[Callable[[], Any]] = None,
        sound_enabled: Callable[[], bool] = lambda: True,
    ):
        """
        Args:
            show: Displays (body, title), e.g. pystray's Icon.notify
            bell: Plays an alert sound, e.g. Tk's bell
            sound_enabled: Read on every notification so config changes apply
        """
        self.show = show
        self.bell = bell
        self.sound_enabled = sound_enabled

    def notify(self, kind: str, payload: Optional[dict] = None) -> None:
        super().notify(kind, payload)
        title, body = build_message(kind, payload)
        try:
            self.show(body, title)
        except Exception as e:
            # pystray backends without notification support raise here
            logger.warning("Could not show notification: %s", e)
        if self.bell is not None and self.sound_enabled():
            self.bell()
