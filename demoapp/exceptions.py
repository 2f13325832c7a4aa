"""Exception classes for the demo web application.

Exception Hierarchy:
    DemoAppError (base)
    └── ClickRejectedError (button endpoint disabled)
"""

from typing import Any


class DemoAppError(Exception):
    """Base exception for all demo application errors.

    Attributes:
        message: Human-readable error description.
        detail: Technical details for debugging (optional).
        status_code: HTTP status code for the JSON response.
    """

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        status_code: int = 500,
    ) -> None:
        self.message = message
        self.detail = detail
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for JSON responses."""
        result: dict[str, Any] = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        return result


class ClickRejectedError(DemoAppError):
    """Raised when the application is configured to ignore button clicks."""

    def __init__(self, message: str = "Button clicks are disabled") -> None:
        super().__init__(message, status_code=503)
