"""Configuration for the demo web application."""

import logging
import os
import sys
from pathlib import Path

# Application directories
APP_DIR = Path(__file__).parent
TEMPLATES_DIR = APP_DIR / "templates"
STATIC_DIR = APP_DIR / "static"

# Server configuration
HOST = os.environ.get("DEMOAPP_HOST", "localhost")
PORT = int(os.environ.get("DEMOAPP_PORT", "5000"))

# Text shown in the header once the button has been clicked
CLICK_MESSAGE = os.environ.get("DEMOAPP_CLICK_MESSAGE", "Button clicked")

# Logging configuration
# Valid values: DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_LEVEL_STR = os.environ.get("DEMOAPP_LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_STR, logging.INFO)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging() -> logging.Logger:
    """Configure logging for the demo application.

    Installs a single stderr handler on the ``demoapp`` package logger.
    Safe to call more than once.

    Returns:
        The package logger.
    """
    logger = logging.getLogger("demoapp")
    logger.setLevel(LOG_LEVEL)

    # Avoid duplicate handlers if setup is called multiple times
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(console_handler)

    logger.propagate = False

    return logger
