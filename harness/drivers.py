"""Browser sessions for the harness.

Each BrowserKind maps to exactly one factory function. Chrome and Firefox
are driven through Playwright; Internet Explorer, which Playwright does not
support, goes through Selenium's IEDriverServer.

Sessions are always used through driver_session(), which releases them on
every exit path.
"""

import logging
import sys
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Protocol

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import Browser, Page, Playwright, sync_playwright
from selenium import webdriver
from selenium.common.exceptions import (
    NoSuchElementException,
    StaleElementReferenceException,
    WebDriverException,
)
from selenium.webdriver.common.by import By
from selenium.webdriver.ie.service import Service as IeService

from harness.config import HarnessSettings
from harness.exceptions import (
    DriverUnavailableError,
    ElementNotFoundError,
    NavigationError,
    SessionLostError,
    SessionTerminatedError,
)

logger = logging.getLogger(__name__)


class BrowserKind(str, Enum):
    """Browsers the harness can drive."""

    CHROME = "chrome"
    FIREFOX = "firefox"
    INTERNET_EXPLORER = "ie"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, name: str) -> "BrowserKind":
        """Look up a kind by value or alias ("chromium", "internetexplorer")."""
        key = name.strip().lower().replace(" ", "").replace("_", "")
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown browser '{name}' (expected one of: {valid})") from None


_LABELS = {
    BrowserKind.CHROME: "Chrome",
    BrowserKind.FIREFOX: "Firefox",
    BrowserKind.INTERNET_EXPLORER: "Internet Explorer",
}

_ALIASES = {
    "chromium": "chrome",
    "googlechrome": "chrome",
    "gecko": "firefox",
    "internetexplorer": "ie",
    "msie": "ie",
}


class DriverSession(Protocol):
    """A live browser automation session.

    Timeouts are in seconds. Implementations translate backend errors into
    NavigationError, ElementNotFoundError or SessionLostError.
    """

    kind: BrowserKind

    @property
    def released(self) -> bool: ...

    def navigate(self, url: str, timeout: float) -> None: ...

    def click(self, element_id: str, timeout: float) -> None: ...

    def text_of(self, element_id: str, timeout: float) -> str: ...

    def release(self) -> None: ...

    def terminate(self) -> None: ...


def _ms(seconds: float) -> float:
    # Playwright reads a zero timeout as "wait forever"
    return max(seconds * 1000, 1.0)


class PlaywrightSession:
    """Session backed by a Playwright browser and a single page.

    Playwright's sync API is bound to the thread that started it, so
    terminate() only marks the session. Every call carries a timeout; the
    next call after terminate() closes the browser from the owning thread
    and raises SessionTerminatedError.
    """

    def __init__(self, kind: BrowserKind, playwright: Playwright, browser: Browser, page: Page) -> None:
        self.kind = kind
        self._playwright = playwright
        self._browser = browser
        self._page = page
        self._released = False
        self._terminated = threading.Event()
        self._lock = threading.Lock()

    @property
    def released(self) -> bool:
        return self._released

    def _check_alive(self) -> None:
        if self._terminated.is_set():
            self.release()
            raise SessionTerminatedError(self.kind.value)

    def navigate(self, url: str, timeout: float) -> None:
        self._check_alive()
        try:
            self._page.goto(url, timeout=_ms(timeout), wait_until="load")
        except PlaywrightError as e:
            self._check_alive()
            raise NavigationError(f"Could not load {url}", url=url, detail=e.message) from e

    def click(self, element_id: str, timeout: float) -> None:
        self._check_alive()
        try:
            self._page.locator(f"#{element_id}").click(timeout=_ms(timeout))
        except PlaywrightTimeoutError as e:
            self._check_alive()
            raise ElementNotFoundError(element_id, detail=e.message) from e
        except PlaywrightError as e:
            self._check_alive()
            raise SessionLostError(self.kind.value, detail=e.message) from e

    def text_of(self, element_id: str, timeout: float) -> str:
        self._check_alive()
        try:
            text = self._page.locator(f"#{element_id}").text_content(timeout=_ms(timeout))
        except PlaywrightTimeoutError as e:
            self._check_alive()
            raise ElementNotFoundError(element_id, detail=e.message) from e
        except PlaywrightError as e:
            self._check_alive()
            raise SessionLostError(self.kind.value, detail=e.message) from e
        return (text or "").strip()

    def terminate(self) -> None:
        logger.warning("Terminating %s session", self.kind.label)
        self._terminated.set()

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True

        try:
            self._browser.close()
        except PlaywrightError as e:
            logger.warning("Failed to close %s browser: %s", self.kind.label, e.message)
        try:
            self._playwright.stop()
        except Exception as e:
            logger.warning("Failed to stop Playwright for %s: %s", self.kind.label, e)
        logger.debug("Released %s session", self.kind.label)


class SeleniumSession:
    """Session backed by a Selenium WebDriver."""

    def __init__(self, kind: BrowserKind, driver: webdriver.Remote) -> None:
        self.kind = kind
        self._driver = driver
        self._released = False
        self._terminated = threading.Event()
        self._lock = threading.Lock()

    @property
    def released(self) -> bool:
        return self._released

    def _check_alive(self) -> None:
        if self._terminated.is_set():
            raise SessionTerminatedError(self.kind.value)

    def navigate(self, url: str, timeout: float) -> None:
        self._check_alive()
        try:
            self._driver.set_page_load_timeout(timeout)
            self._driver.get(url)
        except WebDriverException as e:
            self._check_alive()
            raise NavigationError(f"Could not load {url}", url=url, detail=e.msg) from e

    @contextmanager
    def _translate_errors(self, element_id: str) -> Iterator[None]:
        try:
            yield
        except (NoSuchElementException, StaleElementReferenceException) as e:
            # A replaced element counts as missing until the next lookup
            self._check_alive()
            raise ElementNotFoundError(element_id, detail=e.msg) from e
        except WebDriverException as e:
            self._check_alive()
            raise SessionLostError(self.kind.value, detail=e.msg) from e

    def click(self, element_id: str, timeout: float) -> None:
        self._check_alive()
        with self._translate_errors(element_id):
            self._driver.implicitly_wait(timeout)
            self._driver.find_element(By.ID, element_id).click()

    def text_of(self, element_id: str, timeout: float) -> str:
        self._check_alive()
        with self._translate_errors(element_id):
            self._driver.implicitly_wait(timeout)
            return self._driver.find_element(By.ID, element_id).text.strip()

    def terminate(self) -> None:
        # Killing the driver service makes any in-flight command fail
        logger.warning("Terminating %s session", self.kind.label)
        self._terminated.set()
        try:
            self._driver.service.stop()
        except Exception as e:
            logger.warning("Failed to stop %s driver service: %s", self.kind.label, e)

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True

        try:
            self._driver.quit()
        except Exception as e:
            logger.warning("Failed to quit %s driver: %s", self.kind.label, e)
        logger.debug("Released %s session", self.kind.label)


def _launch_playwright(
    kind: BrowserKind,
    browser_name: str,
    settings: HarnessSettings,
    **launch_args: str,
) -> PlaywrightSession:
    """Start Playwright and launch one of its bundled browser engines."""
    try:
        playwright = sync_playwright().start()
    except PlaywrightError as e:
        raise DriverUnavailableError(
            f"Playwright could not start for {kind.label}", kind=kind.value, detail=e.message
        ) from e

    try:
        browser_type = getattr(playwright, browser_name)
        browser = browser_type.launch(
            headless=settings.headless,
            timeout=_ms(settings.page_load_timeout),
            **launch_args,
        )
        page = browser.new_page()
    except PlaywrightError as e:
        playwright.stop()
        raise DriverUnavailableError(
            f"{kind.label} could not be launched", kind=kind.value, detail=e.message
        ) from e

    page.set_default_timeout(_ms(settings.implicit_wait))
    page.set_default_navigation_timeout(_ms(settings.page_load_timeout))
    return PlaywrightSession(kind, playwright, browser, page)


def _create_chrome(settings: HarnessSettings) -> DriverSession:
    launch_args: dict[str, str] = {}
    if settings.chrome_channel:
        launch_args["channel"] = settings.chrome_channel
    return _launch_playwright(BrowserKind.CHROME, "chromium", settings, **launch_args)


def _create_firefox(settings: HarnessSettings) -> DriverSession:
    return _launch_playwright(BrowserKind.FIREFOX, "firefox", settings)


def _create_internet_explorer(settings: HarnessSettings) -> DriverSession:
    kind = BrowserKind.INTERNET_EXPLORER
    if sys.platform != "win32":
        raise DriverUnavailableError(
            "Internet Explorer is only available on Windows",
            kind=kind.value,
            detail=f"platform: {sys.platform}",
        )

    # IEDriverServer needs protected mode and zoom settings configured on the
    # workstation; ignore_zoom_level avoids the most common startup failure.
    options = webdriver.IeOptions()
    options.ignore_zoom_level = True
    options.ensure_clean_session = True
    if settings.iedriver_path:
        service = IeService(executable_path=settings.iedriver_path)
    else:
        service = IeService()

    try:
        driver = webdriver.Ie(options=options, service=service)
    except WebDriverException as e:
        raise DriverUnavailableError(
            f"{kind.label} driver could not be started", kind=kind.value, detail=e.msg
        ) from e

    driver.set_page_load_timeout(settings.page_load_timeout)
    driver.implicitly_wait(settings.implicit_wait)
    return SeleniumSession(kind, driver)


DriverFactory = Callable[[BrowserKind, HarnessSettings], DriverSession]

_FACTORIES: dict[BrowserKind, Callable[[HarnessSettings], DriverSession]] = {
    BrowserKind.CHROME: _create_chrome,
    BrowserKind.FIREFOX: _create_firefox,
    BrowserKind.INTERNET_EXPLORER: _create_internet_explorer,
}


def create_driver(kind: BrowserKind, settings: HarnessSettings) -> DriverSession:
    """Create a live session for a browser kind.

    Raises:
        DriverUnavailableError: If the browser or its driver is missing.
    """
    logger.info("Creating %s session", kind.label)
    session = _FACTORIES[kind](settings)
    logger.info("%s session ready", kind.label)
    return session


@contextmanager
def driver_session(
    kind: BrowserKind,
    settings: HarnessSettings,
    factory: DriverFactory = create_driver,
) -> Iterator[DriverSession]:
    """Create a session and release it however the block exits."""
    session = factory(kind, settings)
    try:
        yield session
    finally:
        session.release()
