"""
Start-at-login registration.

Windows uses the HKCU Run key, macOS a Launch Agent plist, Linux an XDG
autostart .desktop entry. All three functions report success as a bool.
"""

import logging
import os
import plistlib
import subprocess
import sys
from pathlib import Path
from typing import List

from bar_tomato.utils.constants import APP_NAME, APP_SLUG

if sys.platform == "win32":
    import winreg

logger = logging.getLogger(__name__)

REG_PATH = r"Software\Microsoft\Windows\CurrentVersion\Run"
PLIST_LABEL = f"com.{APP_NAME.lower()}"
PLIST_PATH = Path.home() / "Library" / "LaunchAgents" / f"{PLIST_LABEL}.plist"
DESKTOP_ENTRY_PATH = (
    Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config") / "autostart" / f"{APP_SLUG}.desktop"
)


def get_command_args() -> List[str]:
    """
    Get the command that launches the app.

    Returns:
        Executable followed by its arguments
    """
    if getattr(sys, 'frozen', False):
        # Running as compiled executable
        return [sys.executable]
    # Running from source/installed package
    return [sys.executable, "-m", "bar_tomato.main"]


# ---- Windows ----

def _windows_enable() -> bool:
    command = " ".join(f'"{arg}"' if " " in arg else arg for arg in get_command_args())
    try:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, REG_PATH, 0, winreg.KEY_SET_VALUE) as key:
            winreg.SetValueEx(key, APP_NAME, 0, winreg.REG_SZ, command)
        return True
    except OSError as e:
        logger.error("Error enabling autostart: %s", e)
        return False


def _windows_disable() -> bool:
    try:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, REG_PATH, 0, winreg.KEY_SET_VALUE) as key:
            winreg.DeleteValue(key, APP_NAME)
        return True
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.error("Error disabling autostart: %s", e)
        return False


def _windows_is_enabled() -> bool:
    try:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, REG_PATH, 0, winreg.KEY_READ) as key:
            winreg.QueryValueEx(key, APP_NAME)
        return True
    except OSError:
        return False


# ---- macOS ----

def _mac_enable() -> bool:
    plist_data = {
        'Label': PLIST_LABEL,
        'ProgramArguments': get_command_args(),
        'RunAtLoad': True,
        'KeepAlive': False,
    }
    try:
        PLIST_PATH.parent.mkdir(parents=True, exist_ok=True)
        with open(PLIST_PATH, 'wb') as f:
            plistlib.dump(plist_data, f)
        subprocess.run(['launchctl', 'load', str(PLIST_PATH)], capture_output=True)
        logger.info("Autostart enabled via Launch Agent")
        return True
    except OSError as e:
        logger.error("Error enabling autostart: %s", e)
        return False


def _mac_disable() -> bool:
    try:
        if PLIST_PATH.exists():
            subprocess.run(['launchctl', 'unload', str(PLIST_PATH)], capture_output=True)
            PLIST_PATH.unlink()
        logger.info("Autostart disabled")
        return True
    except OSError as e:
        logger.error("Error disabling autostart: %s", e)
        return False


# ---- Linux / other XDG desktops ----

def _desktop_entry() -> str:
    return "\n".join([
        "[Desktop Entry]",
        "Type=Application",
        f"Name={APP_NAME}",
        "Exec=" + " ".join(get_command_args()),
        "X-GNOME-Autostart-enabled=true",
        "",
    ])


def _xdg_enable() -> bool:
    try:
        DESKTOP_ENTRY_PATH.parent.mkdir(parents=True, exist_ok=True)
        DESKTOP_ENTRY_PATH.write_text(_desktop_entry(), encoding='utf-8')
        return True
    except OSError as e:
        logger.error("Error enabling autostart: %s", e)
        return False


def _xdg_disable() -> bool:
    try:
        if DESKTOP_ENTRY_PATH.exists():
            DESKTOP_ENTRY_PATH.unlink()
        return True
    except OSError as e:
        logger.error("Error disabling autostart: %s", e)
        return False


def enable_autostart() -> bool:
    """Register the app to start at login."""
    if sys.platform == "win32":
        return _windows_enable()
    if sys.platform == "darwin":
        return _mac_enable()
    return _xdg_enable()


def disable_autostart() -> bool:
    """Remove the start-at-login registration."""
    if sys.platform == "win32":
        return _windows_disable()
    if sys.platform == "darwin":
        return _mac_disable()
    return _xdg_disable()


def is_autostart_enabled() -> bool:
    """Check whether the app is registered to start at login."""
    if sys.platform == "win32":
        return _windows_is_enabled()
    if sys.platform == "darwin":
        return PLIST_PATH.exists()
    return DESKTOP_ENTRY_PATH.exists()
