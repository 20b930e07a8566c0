"""
Logging configuration for Bar Tomato.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from bar_tomato.utils.constants import LOG_FILE

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = LOG_FILE,
    console: bool = True,
) -> logging.Logger:
    """
    Configure the package logger once.

    Args:
        level: Minimum level for all handlers
        log_file: Rotating log file location, or None to skip file logging
        console: Also log to stderr

    Returns:
        The configured "bar_tomato" logger
    """
    logger = logging.getLogger("bar_tomato")
    logger.setLevel(level)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
            )
        except OSError as e:
            logger.warning("Could not open log file %s: %s", log_file, e)
        else:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
