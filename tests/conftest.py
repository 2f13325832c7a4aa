"""Shared fixtures for harness unit tests.

FakeSession stands in for a browser: it records calls, keeps a header text
that changes on click, and can be told to fail or hang in specific steps.
"""

import socket
import threading
from collections.abc import Callable
from contextlib import closing
from typing import Any, cast

import pytest

from harness.config import HarnessSettings
from harness.drivers import BrowserKind
from harness.exceptions import ElementNotFoundError, HarnessError, SessionTerminatedError


def find_free_port() -> int:
    """Find an available port on localhost."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("127.0.0.1", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return cast(int, s.getsockname()[1])


class FakeSession:
    """In-memory DriverSession."""

    def __init__(
        self,
        kind: BrowserKind = BrowserKind.CHROME,
        header_after_click: str | None = "Button clicked",
        missing: tuple[str, ...] = (),
        navigate_error: HarnessError | None = None,
        hang_on_navigate: bool = False,
    ) -> None:
        self.kind = kind
        self.header = "Click the button"
        self.header_after_click = header_after_click
        self.missing = missing
        self.navigate_error = navigate_error
        self.hang_on_navigate = hang_on_navigate
        self.calls: list[tuple[str, Any]] = []
        self.release_count = 0
        self.terminated = threading.Event()

    @property
    def released(self) -> bool:
        return self.release_count > 0

    def navigate(self, url: str, timeout: float) -> None:
        self.calls.append(("navigate", url))
        if self.hang_on_navigate:
            # Block like a hung browser until the watchdog terminates us
            self.terminated.wait(10)
            raise SessionTerminatedError(self.kind.value)
        if self.navigate_error is not None:
            raise self.navigate_error

    def click(self, element_id: str, timeout: float) -> None:
        self.calls.append(("click", element_id))
        if element_id in self.missing:
            raise ElementNotFoundError(element_id)
        if self.header_after_click is not None:
            self.header = self.header_after_click

    def text_of(self, element_id: str, timeout: float) -> str:
        self.calls.append(("text_of", element_id))
        if element_id in self.missing:
            raise ElementNotFoundError(element_id)
        return self.header

    def release(self) -> None:
        self.release_count += 1

    def terminate(self) -> None:
        self.terminated.set()


@pytest.fixture
def make_session() -> Callable[..., FakeSession]:
    """Factory for FakeSession instances."""
    return FakeSession


@pytest.fixture
def fast_settings() -> HarnessSettings:
    """Settings with short timeouts for unit tests."""
    return HarnessSettings(
        app_host="127.0.0.1",
        app_port=5000,
        wait_timeout=0.5,
        poll_interval=0.05,
        implicit_wait=0.2,
        page_load_timeout=1.0,
        case_timeout=5.0,
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for a test server."""
    return find_free_port()
