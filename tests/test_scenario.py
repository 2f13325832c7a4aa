"""Tests for the button-click case orchestration using in-memory sessions."""

import time

import pytest

from harness.config import HarnessSettings
from harness.drivers import BrowserKind
from harness.exceptions import (
    CaseTimeoutError,
    DriverUnavailableError,
    ElementNotFoundError,
    NavigationError,
    SessionLostError,
)
from harness.scenario import ButtonClickCase, CaseResult, CaseState, DomContract

BASE_URL = "http://127.0.0.1:5000"

FULL_PATH = [
    CaseState.IDLE,
    CaseState.DRIVER_ACQUIRED,
    CaseState.NAVIGATED,
    CaseState.CLICKED,
    CaseState.CONDITION_CHECKED,
    CaseState.RELEASED,
]


def factory_for(session):
    """Driver factory that hands out a prepared session."""

    def factory(kind: BrowserKind, settings: HarnessSettings):
        session.kind = kind
        return session

    return factory


class TestButtonClickRun:
    """Tests for ButtonClickCase.run() over the full lifecycle."""

    @pytest.mark.parametrize("kind", list(BrowserKind))
    def test_header_updates(self, make_session, fast_settings: HarnessSettings, kind: BrowserKind) -> None:
        session = make_session()
        case = ButtonClickCase(BASE_URL, fast_settings)

        result = case.run(kind, factory_for(session))

        assert result.condition_met
        assert result.kind is kind
        assert result.observed_text == "Button clicked"
        assert result.state is CaseState.RELEASED
        assert case.history == FULL_PATH
        assert session.release_count == 1

    def test_steps_use_dom_contract(self, make_session, fast_settings: HarnessSettings) -> None:
        session = make_session()
        ButtonClickCase(BASE_URL + "/", fast_settings).run(BrowserKind.CHROME, factory_for(session))

        assert session.calls[0] == ("navigate", "http://127.0.0.1:5000/")
        assert session.calls[1] == ("click", "clickmeButton")
        assert ("text_of", "displayHeader") in session.calls

    def test_custom_dom_contract(self, make_session, fast_settings: HarnessSettings) -> None:
        session = make_session(header_after_click="Done")
        dom = DomContract(page_path="/demo", button_id="go", header_id="status", expected_text="Done")

        case = ButtonClickCase(BASE_URL, fast_settings, dom=dom)
        result = case.run(BrowserKind.FIREFOX, factory_for(session))

        assert result.condition_met
        assert session.calls[0] == ("navigate", "http://127.0.0.1:5000/demo")
        assert session.calls[1] == ("click", "go")

    def test_header_never_updates(self, make_session, fast_settings: HarnessSettings) -> None:
        """A broken app fails the condition at the wait timeout, not before."""
        session = make_session(header_after_click=None)
        case = ButtonClickCase(BASE_URL, fast_settings)

        start = time.monotonic()
        result = case.run(BrowserKind.CHROME, factory_for(session))
        elapsed = time.monotonic() - start

        assert not result.condition_met
        assert result.observed_text == "Click the button"
        assert fast_settings.wait_timeout <= elapsed < fast_settings.wait_timeout + 2
        assert case.history == FULL_PATH
        assert session.release_count == 1

    def test_driver_unavailable(self, fast_settings: HarnessSettings) -> None:
        def unavailable(kind: BrowserKind, settings: HarnessSettings):
            raise DriverUnavailableError("IEDriverServer missing", kind=kind.value)

        case = ButtonClickCase(BASE_URL, fast_settings)
        with pytest.raises(DriverUnavailableError) as exc_info:
            case.run(BrowserKind.INTERNET_EXPLORER, unavailable)

        assert exc_info.value.category == "environment"
        assert case.history == [CaseState.IDLE]

    def test_navigation_error_releases_session(self, make_session, fast_settings: HarnessSettings) -> None:
        session = make_session(navigate_error=NavigationError("refused", url=BASE_URL + "/"))
        case = ButtonClickCase(BASE_URL, fast_settings)

        with pytest.raises(NavigationError):
            case.run(BrowserKind.CHROME, factory_for(session))

        assert case.history == [CaseState.IDLE, CaseState.DRIVER_ACQUIRED, CaseState.RELEASED]
        assert session.release_count == 1

    def test_missing_button(self, make_session, fast_settings: HarnessSettings) -> None:
        session = make_session(missing=("clickmeButton",))
        case = ButtonClickCase(BASE_URL, fast_settings)

        with pytest.raises(ElementNotFoundError) as exc_info:
            case.run(BrowserKind.FIREFOX, factory_for(session))

        assert exc_info.value.element_id == "clickmeButton"
        assert exc_info.value.category == "behavior"
        assert CaseState.NAVIGATED in case.history
        assert CaseState.CLICKED not in case.history
        assert case.state is CaseState.RELEASED
        assert session.release_count == 1

    def test_missing_header(self, make_session, fast_settings: HarnessSettings) -> None:
        session = make_session(missing=("displayHeader",))

        with pytest.raises(ElementNotFoundError) as exc_info:
            ButtonClickCase(BASE_URL, fast_settings).run(BrowserKind.CHROME, factory_for(session))

        assert exc_info.value.element_id == "displayHeader"
        assert session.release_count == 1

    def test_lost_session_is_released(self, make_session, fast_settings: HarnessSettings) -> None:
        session = make_session()

        def lost(element_id: str, timeout: float) -> str:
            raise SessionLostError(session.kind.value, detail="browser has been closed")

        session.text_of = lost
        with pytest.raises(SessionLostError) as exc_info:
            ButtonClickCase(BASE_URL, fast_settings).run(BrowserKind.FIREFOX, factory_for(session))

        assert exc_info.value.category == "environment"
        assert exc_info.value.kind == "firefox"
        assert session.release_count == 1

    def test_run_twice_starts_from_idle(self, make_session, fast_settings: HarnessSettings) -> None:
        case = ButtonClickCase(BASE_URL, fast_settings)

        case.run(BrowserKind.CHROME, factory_for(make_session()))
        result = case.run(BrowserKind.FIREFOX, factory_for(make_session()))

        assert result.kind is BrowserKind.FIREFOX
        assert case.history == FULL_PATH

    def test_hung_browser_hits_case_timeout(self, make_session) -> None:
        settings = HarnessSettings(case_timeout=0.3, wait_timeout=10, poll_interval=0.05)
        session = make_session(hang_on_navigate=True)

        start = time.monotonic()
        with pytest.raises(CaseTimeoutError) as exc_info:
            ButtonClickCase(BASE_URL, settings).run(BrowserKind.CHROME, factory_for(session))

        assert time.monotonic() - start < 3
        assert isinstance(exc_info.value, TimeoutError)
        assert session.terminated.is_set()
        assert session.release_count == 1


class TestButtonClickExercise:
    """Tests for ButtonClickCase.exercise() with an externally owned session."""

    def test_exercise_does_not_release(self, make_session, fast_settings: HarnessSettings) -> None:
        session = make_session()
        case = ButtonClickCase(BASE_URL, fast_settings)

        result = case.exercise(session)

        assert result.condition_met
        assert result.state is CaseState.CONDITION_CHECKED
        assert session.release_count == 0
        assert case.history == FULL_PATH[:-1]

    def test_exercise_twice_starts_from_idle(self, make_session, fast_settings: HarnessSettings) -> None:
        session = make_session()
        case = ButtonClickCase(BASE_URL, fast_settings)

        case.exercise(session)
        case.exercise(session)

        assert case.history == FULL_PATH[:-1]


class TestCaseResult:
    """Tests for CaseResult serialization."""

    def test_to_dict(self) -> None:
        result = CaseResult(
            kind=BrowserKind.INTERNET_EXPLORER,
            state=CaseState.RELEASED,
            condition_met=False,
            observed_text="Click the button",
            elapsed=10.01234,
        )
        assert result.to_dict() == {
            "kind": "ie",
            "state": "released",
            "condition_met": False,
            "observed_text": "Click the button",
            "elapsed": 10.012,
        }
