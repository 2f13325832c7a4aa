"""Exception classes for the browser harness.

Every error the harness raises is a HarnessError, tagged with a category so
a report can tell a broken environment apart from a misbehaving application.

Exception Hierarchy:
    HarnessError (base)
    ├── LifecycleError (host started twice)
    ├── StartupError (application failed to bind or become ready)
    ├── DriverUnavailableError (browser or driver executable missing)
    ├── NavigationError (application address unreachable)
    ├── ElementNotFoundError (DOM contract violated)
    ├── SessionTerminatedError (session killed by the case watchdog)
    ├── SessionLostError (browser or driver connection failed mid-case)
    ├── WaitCancelledError (poll loop cancelled)
    └── CaseTimeoutError (per-case hard timeout exceeded)
"""

from typing import Any

ENVIRONMENT = "environment"
BEHAVIOR = "behavior"


class HarnessError(Exception):
    """Base exception for all harness errors.

    Attributes:
        message: Human-readable error description.
        detail: Technical details for debugging (optional).
        category: "environment" or "behavior".
    """

    category = BEHAVIOR

    def __init__(self, message: str, detail: str | None = None) -> None:
        self.message = message
        self.detail = detail
        super().__init__(message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for reports."""
        result: dict[str, Any] = {
            "error": self.__class__.__name__,
            "category": self.category,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        return result


class LifecycleError(HarnessError):
    """Raised when the application host is started while already running."""


class StartupError(HarnessError):
    """Raised when the application under test cannot be started."""

    category = ENVIRONMENT

    def __init__(self, message: str, address: str | None = None, detail: str | None = None) -> None:
        super().__init__(message, detail)
        self.address = address


class DriverUnavailableError(HarnessError):
    """Raised when a browser session cannot be created for a browser kind.

    This covers missing browser binaries, missing driver executables and
    unsupported platforms (Internet Explorer outside Windows).
    """

    category = ENVIRONMENT

    def __init__(self, message: str, kind: str, detail: str | None = None) -> None:
        super().__init__(message, detail)
        self.kind = kind

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["kind"] = self.kind
        return result


class NavigationError(HarnessError):
    """Raised when the browser cannot load the application page."""

    category = ENVIRONMENT

    def __init__(self, message: str, url: str, detail: str | None = None) -> None:
        super().__init__(message, detail)
        self.url = url

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["url"] = self.url
        return result


class ElementNotFoundError(HarnessError):
    """Raised when an element of the DOM contract is missing from the page."""

    def __init__(self, element_id: str, detail: str | None = None) -> None:
        super().__init__(f"Element not found: #{element_id}", detail)
        self.element_id = element_id

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["element_id"] = self.element_id
        return result


class SessionTerminatedError(HarnessError):
    """Raised when a session is used after the watchdog terminated it."""

    category = ENVIRONMENT

    def __init__(self, kind: str, detail: str | None = None) -> None:
        super().__init__(f"{kind} session was terminated", detail)
        self.kind = kind


class SessionLostError(HarnessError):
    """Raised when the browser or its driver fails while a case is using it."""

    category = ENVIRONMENT

    def __init__(self, kind: str, detail: str | None = None) -> None:
        super().__init__(f"{kind} session was lost", detail)
        self.kind = kind


class WaitCancelledError(HarnessError):
    """Raised when a wait loop observes cancellation of its case."""

    def __init__(self, message: str = "Wait cancelled") -> None:
        super().__init__(message)


class CaseTimeoutError(HarnessError, TimeoutError):
    """Raised when a case exceeds its hard timeout."""

    category = ENVIRONMENT

    def __init__(self, timeout: float, detail: str | None = None) -> None:
        super().__init__(f"Case exceeded its {timeout:g}s timeout", detail)
        self.timeout = timeout
