"""Configuration for the browser harness.

Values come from HARNESS_* environment variables, read by load_settings()
into the HarnessSettings handle that is passed explicitly to the host, the
driver factory and the cases. The dataclass fields hold the defaults.
"""

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass

# Browser kinds exercised by default (comma separated)
DEFAULT_BROWSERS = "chrome,firefox,ie"

# Logging configuration
LOG_LEVEL_STR = os.environ.get("HARNESS_LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_STR, logging.INFO)
LOG_FILE = os.environ.get("HARNESS_LOG_FILE")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class HarnessSettings:
    """Settings shared by one harness run. All durations are in seconds."""

    app_host: str = "localhost"
    app_port: int = 5000
    browsers: tuple[str, ...] = tuple(DEFAULT_BROWSERS.split(","))
    headless: bool = True
    wait_timeout: float = 10.0
    poll_interval: float = 0.25
    implicit_wait: float = 5.0
    page_load_timeout: float = 30.0
    case_timeout: float = 60.0
    startup_timeout: float = 10.0
    shutdown_timeout: float = 10.0
    skip_unavailable: bool = False
    chrome_channel: str | None = None
    iedriver_path: str | None = None

    @property
    def base_url(self) -> str:
        """URL of the application under test."""
        return f"http://{self.app_host}:{self.app_port}"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _parse_browsers(value: str) -> tuple[str, ...]:
    # Imported here to keep config free of the selenium/playwright imports
    from harness.drivers import BrowserKind

    browsers = []
    for name in value.split(","):
        name = name.strip().lower()
        if not name:
            continue
        browsers.append(BrowserKind.parse(name).value)
    if not browsers:
        raise ValueError("HARNESS_BROWSERS must name at least one browser")
    return tuple(browsers)


def load_settings(environ: Mapping[str, str] | None = None) -> HarnessSettings:
    """Build settings from HARNESS_* variables.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Raises:
        ValueError: If a variable holds an invalid value.
    """
    env = os.environ if environ is None else environ
    defaults = HarnessSettings()

    def optional(name: str) -> str | None:
        value = env.get(name, "").strip()
        return value or None

    def number(name: str, default: float) -> float:
        value = env.get(name)
        return default if value is None else float(value)

    def flag(name: str, default: bool) -> bool:
        value = env.get(name)
        return default if value is None else _parse_bool(value)

    browsers = env.get("HARNESS_BROWSERS")
    port = env.get("HARNESS_APP_PORT")

    return HarnessSettings(
        app_host=env.get("HARNESS_APP_HOST", defaults.app_host),
        app_port=defaults.app_port if port is None else int(port),
        browsers=defaults.browsers if browsers is None else _parse_browsers(browsers),
        headless=flag("HARNESS_HEADLESS", defaults.headless),
        wait_timeout=number("HARNESS_WAIT_TIMEOUT", defaults.wait_timeout),
        poll_interval=number("HARNESS_POLL_INTERVAL", defaults.poll_interval),
        implicit_wait=number("HARNESS_IMPLICIT_WAIT", defaults.implicit_wait),
        page_load_timeout=number("HARNESS_PAGE_LOAD_TIMEOUT", defaults.page_load_timeout),
        case_timeout=number("HARNESS_CASE_TIMEOUT", defaults.case_timeout),
        startup_timeout=number("HARNESS_STARTUP_TIMEOUT", defaults.startup_timeout),
        shutdown_timeout=number("HARNESS_SHUTDOWN_TIMEOUT", defaults.shutdown_timeout),
        skip_unavailable=flag("HARNESS_SKIP_UNAVAILABLE", defaults.skip_unavailable),
        chrome_channel=optional("HARNESS_CHROME_CHANNEL"),
        iedriver_path=optional("HARNESS_IEDRIVER_PATH"),
    )


def setup_logging() -> logging.Logger:
    """Configure logging for the harness.

    Sets up a stderr handler, plus a file handler when HARNESS_LOG_FILE is
    set. The log level is configurable via HARNESS_LOG_LEVEL.

    Returns:
        The root logger for the harness package.
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    logger = logging.getLogger("harness")
    logger.setLevel(LOG_LEVEL)

    # Avoid duplicate handlers if setup is called multiple times
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if LOG_FILE:
        try:
            file_handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
            file_handler.setLevel(LOG_LEVEL)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            # If file logging fails, log warning to console and continue
            logger.warning("Could not set up file logging to %s: %s", LOG_FILE, e)

    logger.propagate = False

    return logger
