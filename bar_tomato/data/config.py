"""
Configuration management for Bar Tomato.
"""

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

from bar_tomato.utils.constants import CONFIG_FILE, DEFAULT_THEME

logger = logging.getLogger(__name__)

# JSON types accepted for each saved field
_FIELD_TYPES = {
    'vault_path': (str, type(None)),
    'autostart': bool,
    'start_minimized': bool,
    'theme': str,
}


@dataclass
class AppConfig:
    """Application preferences (the timer durations live in the vault)."""

    # Vault integration
    vault_path: Optional[str] = None

    # System settings
    autostart: bool = False
    start_minimized: bool = True

    # UI settings
    theme: str = DEFAULT_THEME

    def save(self, path: Path = CONFIG_FILE) -> None:
        """Save configuration to file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(asdict(self), f, indent=2, ensure_ascii=False)

    @classmethod
    def load(cls, path: Path = CONFIG_FILE) -> 'AppConfig':
        """Load configuration from file, or create default if not exists."""
        if not path.exists():
            return cls()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Invalid config file %s, using defaults: %s", path, e)
            return cls()

        if not isinstance(data, dict):
            return cls()

        # Keys from older or newer versions are dropped instead of failing
        values = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if isinstance(value, _FIELD_TYPES[f.name]):
                values[f.name] = value
            else:
                logger.warning("Ignoring invalid %s=%r in %s, using %r", f.name, value, path, f.default)
        return cls(**values)
