"""The button-click case: navigate, click, wait for the header to change."""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from harness.config import HarnessSettings
from harness.drivers import BrowserKind, DriverFactory, DriverSession, create_driver, driver_session
from harness.exceptions import CaseTimeoutError
from harness.waits import CaseWatchdog, text_equals, wait_until

logger = logging.getLogger(__name__)


class CaseState(str, Enum):
    """States a case passes through, in order."""

    IDLE = "idle"
    DRIVER_ACQUIRED = "driver_acquired"
    NAVIGATED = "navigated"
    CLICKED = "clicked"
    CONDITION_CHECKED = "condition_checked"
    RELEASED = "released"


@dataclass(frozen=True)
class DomContract:
    """Element ids and text the demo page is expected to expose."""

    page_path: str = "/"
    button_id: str = "clickmeButton"
    header_id: str = "displayHeader"
    expected_text: str = "Button clicked"


@dataclass
class CaseResult:
    """Outcome of one case for one browser kind."""

    kind: BrowserKind
    state: CaseState
    condition_met: bool
    observed_text: str | None = None
    elapsed: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "state": self.state.value,
            "condition_met": self.condition_met,
            "observed_text": self.observed_text,
            "elapsed": round(self.elapsed, 3),
        }


@dataclass
class ButtonClickCase:
    """Clicks the demo button in one browser and checks the header text.

    run() covers the whole lifecycle including the session. exercise() starts
    from an already acquired session, for callers (such as pytest fixtures)
    that own acquisition and release.
    """

    base_url: str
    settings: HarnessSettings
    dom: DomContract = field(default_factory=DomContract)
    history: list[CaseState] = field(default_factory=lambda: [CaseState.IDLE])

    @property
    def state(self) -> CaseState:
        return self.history[-1]

    def _transition(self, state: CaseState) -> None:
        logger.debug("Case %s -> %s", self.state.value, state.value)
        self.history.append(state)

    def run(self, kind: BrowserKind, factory: DriverFactory = create_driver) -> CaseResult:
        """Acquire a session for kind, exercise the page, release the session.

        Raises:
            DriverUnavailableError: If no session can be created for kind.
            NavigationError: If the application cannot be loaded.
            ElementNotFoundError: If the button or header is missing.
            SessionLostError: If the browser fails during the case.
            CaseTimeoutError: If the case exceeds settings.case_timeout.
        """
        self.history = [CaseState.IDLE]
        try:
            with driver_session(kind, self.settings, factory) as session:
                self._transition(CaseState.DRIVER_ACQUIRED)
                result = self.exercise(session)
        finally:
            if self.state is not CaseState.IDLE:
                self._transition(CaseState.RELEASED)
        result.state = self.state
        return result

    def exercise(self, session: DriverSession) -> CaseResult:
        """Navigate, click and wait for the expected header text.

        Each call starts a fresh history unless run() has just acquired the
        session.
        """
        if self.state is not CaseState.DRIVER_ACQUIRED:
            self.history = [CaseState.IDLE]
            self._transition(CaseState.DRIVER_ACQUIRED)

        settings = self.settings
        dom = self.dom
        url = self.base_url.rstrip("/") + dom.page_path
        started = time.monotonic()
        observed: list[str] = []

        with CaseWatchdog(settings.case_timeout, session) as watchdog:
            try:
                session.navigate(url, watchdog.clamp(settings.page_load_timeout))
                self._transition(CaseState.NAVIGATED)

                session.click(dom.button_id, watchdog.clamp(settings.implicit_wait))
                self._transition(CaseState.CLICKED)

                # The header must exist before polling its text
                observed.append(session.text_of(dom.header_id, watchdog.clamp(settings.implicit_wait)))

                condition_met = wait_until(
                    session,
                    text_equals(
                        dom.header_id,
                        dom.expected_text,
                        lookup_timeout=watchdog.clamp(settings.poll_interval),
                        observed=observed,
                    ),
                    timeout=watchdog.clamp(settings.wait_timeout),
                    poll_interval=settings.poll_interval,
                    cancel=watchdog.cancelled,
                )
                self._transition(CaseState.CONDITION_CHECKED)
            except Exception as e:
                if watchdog.expired:
                    raise CaseTimeoutError(settings.case_timeout, detail=f"{session.kind.value}: {e}") from e
                raise

        result = CaseResult(
            kind=session.kind,
            state=self.state,
            condition_met=condition_met,
            observed_text=observed[-1] if observed else None,
            elapsed=time.monotonic() - started,
        )
        logger.info(
            "%s case finished: condition_met=%s, header=%r (%.2fs)",
            session.kind.value,
            result.condition_met,
            result.observed_text,
            result.elapsed,
        )
        return result
