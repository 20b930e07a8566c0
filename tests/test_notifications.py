"""Tests for notification delivery."""

from bar_tomato.utils.constants import NotificationKind
from bar_tomato.utils.notifications import TrayNotifier, build_message


def test_build_message_formats_payload():
    title, body = build_message(NotificationKind.STOPWATCH_STOPPED, {"minutes": 42})
    assert "Stopwatch" in title
    assert body == "Tracked 42 minutes."


def test_tray_notifier_shows_and_rings():
    shown, rung = [], []
    notifier = TrayNotifier(show=lambda body, title: shown.append(title), bell=lambda: rung.append(1))
    notifier.notify(NotificationKind.BREAK_COMPLETE)
    assert shown == ["☕ Break over"]
    assert rung == [1]


def test_sound_disabled():
    rung = []
    notifier = TrayNotifier(show=lambda body, title: None, bell=lambda: rung.append(1), sound_enabled=lambda: False)
    notifier.notify(NotificationKind.POMODORO_COMPLETE)
    assert rung == []


def test_show_failure_is_not_fatal():
    def show(body, title):
        raise NotImplementedError("no notification support")

    rung = []
    TrayNotifier(show=show, bell=lambda: rung.append(1)).notify(NotificationKind.POMODORO_COMPLETE)
    assert rung == [1]
