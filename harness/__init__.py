"""Browser harness - boots the demo app and clicks its button in real browsers."""

from harness.config import HarnessSettings, load_settings
from harness.drivers import BrowserKind, DriverSession, create_driver, driver_session
from harness.exceptions import (
    CaseTimeoutError,
    DriverUnavailableError,
    ElementNotFoundError,
    HarnessError,
    LifecycleError,
    NavigationError,
    SessionLostError,
    SessionTerminatedError,
    StartupError,
    WaitCancelledError,
)
from harness.host import AppHost, HostState
from harness.scenario import ButtonClickCase, CaseResult, CaseState, DomContract
from harness.waits import CaseWatchdog, text_equals, wait_until

__all__ = [
    "AppHost",
    "HostState",
    "BrowserKind",
    "DriverSession",
    "create_driver",
    "driver_session",
    "wait_until",
    "text_equals",
    "CaseWatchdog",
    "ButtonClickCase",
    "CaseResult",
    "CaseState",
    "DomContract",
    "HarnessSettings",
    "load_settings",
    "HarnessError",
    "LifecycleError",
    "StartupError",
    "DriverUnavailableError",
    "NavigationError",
    "ElementNotFoundError",
    "SessionLostError",
    "SessionTerminatedError",
    "WaitCancelledError",
    "CaseTimeoutError",
]
