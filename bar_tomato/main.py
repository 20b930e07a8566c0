"""
Entry point for Bar Tomato.
"""

import argparse
import logging
import sys
import os

# Add parent directory to path for imports when running as script
if __name__ == "__main__":
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bar_tomato.app import BarTomatoApp
from bar_tomato.data.config import AppConfig
from bar_tomato.utils.constants import APP_NAME, APP_VERSION
from bar_tomato.utils.device_id import get_device_hash
from bar_tomato.utils.logging_setup import setup_logging

logger = logging.getLogger("bar_tomato.main")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(prog="bar-tomato", description=f"{APP_NAME} focus timer")
    parser.add_argument("--debug", action="store_true", help="log debug messages")
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    args = parser.parse_args()

    setup_logging(logging.DEBUG if args.debug else logging.INFO)
    logger.info("Starting %s %s", APP_NAME, APP_VERSION)

    # Load configuration
    config = AppConfig.load()

    # Create and run the application
    app = BarTomatoApp(config, device_hash=get_device_hash())
    app.run()


if __name__ == "__main__":
    main()
