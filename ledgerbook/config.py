"""
Settings for ledgerbook.

Plain constants; the ones a user is likely to change can be overridden
through environment variables.
"""

import logging
import os
from pathlib import Path

VERSION = "0.1.0"

# Data file
DEFAULT_DATA_FILE = Path.home() / ".ledgerbook.json"
DATA_FILE = Path(os.getenv("LEDGERBOOK_FILE", str(DEFAULT_DATA_FILE))).expanduser()

# Display
CURRENCY = os.getenv("LEDGERBOOK_CURRENCY", "£")

# Statement periods start on this day of the month; validated when a statement is shown
DEFAULT_PAYDAY = os.getenv("LEDGERBOOK_PAYDAY", "25")

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")


def get_log_level():
    """Get the configured log level."""
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(LOG_LEVEL.upper(), logging.WARNING)
