"""Bounded polling against a live browser session."""

import logging
import threading
import time
from collections.abc import Callable
from types import TracebackType

from harness.drivers import DriverSession
from harness.exceptions import ElementNotFoundError, WaitCancelledError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.25

Predicate = Callable[[DriverSession], bool]


def wait_until(
    session: DriverSession,
    predicate: Predicate,
    timeout: float,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    cancel: threading.Event | None = None,
    ignored_exceptions: tuple[type[BaseException], ...] = (ElementNotFoundError,),
) -> bool:
    """Poll predicate(session) until it holds or timeout seconds pass.

    The predicate is evaluated once straight away, then after every
    poll_interval. Exceptions listed in ignored_exceptions count as "not
    yet"; anything else propagates.

    Args:
        session: Session handed to the predicate.
        predicate: Condition to wait for.
        timeout: Maximum time to wait, in seconds.
        poll_interval: Pause between evaluations, in seconds.
        cancel: Event that aborts the wait when set. Checked before every
            evaluation and observed during the pause.
        ignored_exceptions: Exception types treated as a false result.

    Returns:
        True if the predicate held in time, False on timeout.

    Raises:
        WaitCancelledError: If cancel was set before the wait finished.
        ValueError: If timeout is negative or poll_interval is not positive.
    """
    if timeout < 0:
        raise ValueError(f"timeout must be >= 0, got {timeout}")
    if poll_interval <= 0:
        raise ValueError(f"poll_interval must be > 0, got {poll_interval}")

    deadline = time.monotonic() + timeout
    attempts = 0
    while True:
        if cancel is not None and cancel.is_set():
            raise WaitCancelledError()

        attempts += 1
        try:
            if predicate(session):
                logger.debug("Condition met after %d attempt(s)", attempts)
                return True
        except ignored_exceptions as e:
            logger.debug("Ignoring %s while waiting: %s", e.__class__.__name__, e)

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.info("Condition not met within %.1fs (%d attempts)", timeout, attempts)
            return False

        pause = min(poll_interval, remaining)
        if cancel is not None:
            if cancel.wait(pause):
                raise WaitCancelledError()
        else:
            time.sleep(pause)


def text_equals(
    element_id: str,
    expected: str,
    lookup_timeout: float = 1.0,
    observed: list[str] | None = None,
) -> Predicate:
    """Build a predicate that holds when an element's text equals expected.

    Every text read is appended to observed when a list is given.
    """

    def predicate(session: DriverSession) -> bool:
        text = session.text_of(element_id, lookup_timeout)
        if observed is not None:
            observed.append(text)
        return text == expected

    return predicate


class CaseWatchdog:
    """Hard timeout for one case.

    When the timeout expires the watchdog sets ``cancelled`` and terminates
    the session from the timer thread, so a hung browser cannot hold the
    suite.
    """

    def __init__(self, timeout: float, session: DriverSession) -> None:
        self.timeout = timeout
        self.cancelled = threading.Event()
        self._session = session
        self._deadline: float | None = None
        self._timer = threading.Timer(timeout, self._expire)
        self._timer.daemon = True

    @property
    def expired(self) -> bool:
        return self.cancelled.is_set()

    def start(self) -> None:
        self._deadline = time.monotonic() + self.timeout
        self._timer.start()

    def cancel(self) -> None:
        self._timer.cancel()

    def remaining(self) -> float:
        """Seconds left before expiry (the full timeout before start())."""
        if self._deadline is None:
            return self.timeout
        return max(self._deadline - time.monotonic(), 0.0)

    def clamp(self, timeout: float) -> float:
        """Limit an operation timeout to what is left of the case."""
        return min(timeout, self.remaining())

    def _expire(self) -> None:
        logger.error("%s case exceeded %.1fs, terminating session", self._session.kind.value, self.timeout)
        self.cancelled.set()
        try:
            self._session.terminate()
        except Exception:
            logger.exception("Failed to terminate %s session", self._session.kind.value)

    def __enter__(self) -> "CaseWatchdog":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.cancel()
