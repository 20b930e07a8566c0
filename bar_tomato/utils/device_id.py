"""
Stable per-machine identifier used to name the records file.
"""

import getpass
import hashlib
import logging
import re
import socket
import subprocess
import sys
from pathlib import Path
from typing import Optional

if sys.platform == "win32":
    import winreg

logger = logging.getLogger(__name__)

MACHINE_ID_FILES = (Path("/etc/machine-id"), Path("/var/lib/dbus/machine-id"))
_IOREG_UUID = re.compile(r'"IOPlatformUUID"\s*=\s*"([^"]+)"')


def _read_machine_id() -> Optional[str]:
    """OS machine id, or None if it cannot be determined."""
    if sys.platform == "win32":
        try:
            with winreg.OpenKey(
                winreg.HKEY_LOCAL_MACHINE,
                r"SOFTWARE\Microsoft\Cryptography",
                0,
                winreg.KEY_READ | winreg.KEY_WOW64_64KEY,
            ) as key:
                value, _ = winreg.QueryValueEx(key, "MachineGuid")
                return str(value)
        except OSError:
            return None

    if sys.platform == "darwin":
        try:
            result = subprocess.run(
                ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],
                capture_output=True, text=True, timeout=5,
            )
        except (OSError, subprocess.SubprocessError):
            return None
        match = _IOREG_UUID.search(result.stdout)
        return match.group(1) if match else None

    for path in MACHINE_ID_FILES:
        try:
            value = path.read_text().strip()
        except OSError:
            continue
        if value:
            return value
    return None


def get_device_hash() -> str:
    """
    SHA-256 hex digest identifying this machine.

    Falls back to hostname + username when no machine id is available.
    """
    hasher = hashlib.sha256()
    machine_id = _read_machine_id()
    if machine_id:
        hasher.update(b"bar-tomato-")
        hasher.update(machine_id.encode('utf-8'))
    else:
        logger.warning("No machine id available, deriving device hash from hostname and user")
        try:
            username = getpass.getuser()
        except (KeyError, OSError):
            username = "unknown"
        hasher.update(b"bar-tomato-fallback-")
        hasher.update(socket.gethostname().encode('utf-8'))
        hasher.update(username.encode('utf-8'))
    return hasher.hexdigest()
