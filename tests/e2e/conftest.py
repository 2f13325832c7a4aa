"""Real-browser fixtures for the demo app click tests.

The demo app is started once per session on the configured address; each
test gets a fresh browser session for one BrowserKind, released in teardown.
A browser that cannot be started surfaces as a setup error (or a skip with
HARNESS_SKIP_UNAVAILABLE=1), never as a failed assertion.
"""

from collections.abc import Generator

import pytest

from demoapp.app import create_app
from harness.config import HarnessSettings, load_settings, setup_logging
from harness.drivers import BrowserKind, DriverFactory, DriverSession, create_driver
from harness.exceptions import DriverUnavailableError, StartupError
from harness.host import AppHost


def pytest_configure(config: pytest.Config) -> None:
    setup_logging()


def pytest_generate_tests(metafunc: pytest.Metafunc) -> None:
    """Parameterize browser_kind over HARNESS_BROWSERS."""
    if "browser_kind" in metafunc.fixturenames:
        kinds = [BrowserKind(value) for value in load_settings().browsers]
        metafunc.parametrize("browser_kind", kinds, ids=[kind.value for kind in kinds])


@pytest.fixture(scope="session")
def harness_settings() -> HarnessSettings:
    """Settings for this run, read from HARNESS_* variables."""
    return load_settings()


def _start_or_abort(host: AppHost) -> None:
    try:
        host.start()
    except StartupError as e:
        # No case can pass without the application, so stop the whole run
        pytest.exit(f"StartupError: {e}", returncode=3)


@pytest.fixture(scope="session")
def app_host(harness_settings: HarnessSettings) -> Generator[AppHost, None, None]:
    """Start the demo app once for all cases and stop it after the last one."""
    host = AppHost(
        create_app(),
        host=harness_settings.app_host,
        port=harness_settings.app_port,
        startup_timeout=harness_settings.startup_timeout,
        shutdown_timeout=harness_settings.shutdown_timeout,
    )
    _start_or_abort(host)
    yield host
    host.stop()


@pytest.fixture(scope="module")
def broken_app_host(harness_settings: HarnessSettings) -> Generator[AppHost, None, None]:
    """A demo app whose button does nothing, on an ephemeral port."""
    host = AppHost(
        create_app(click_enabled=False),
        host=harness_settings.app_host,
        port=0,
        startup_timeout=harness_settings.startup_timeout,
        shutdown_timeout=harness_settings.shutdown_timeout,
    )
    _start_or_abort(host)
    yield host
    host.stop()


@pytest.fixture(scope="session")
def driver_factory() -> DriverFactory:
    """Creates the browser sessions handed out by the driver fixture."""
    return create_driver


@pytest.fixture
def driver(
    browser_kind: BrowserKind,
    harness_settings: HarnessSettings,
    driver_factory: DriverFactory,
) -> Generator[DriverSession, None, None]:
    """A live browser session for browser_kind, released after the test."""
    try:
        session = driver_factory(browser_kind, harness_settings)
    except DriverUnavailableError as e:
        if harness_settings.skip_unavailable:
            pytest.skip(f"{browser_kind.label} unavailable: {e}")
        raise
    try:
        yield session
    finally:
        session.release()
