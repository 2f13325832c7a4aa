"""In-process host for the application under test.

AppHost binds the listening socket itself, so a port conflict surfaces as a
StartupError from start(), and then serves the ASGI application with
uvicorn on a background thread of the test process.
"""

import logging
import socket
import threading
import time
from enum import Enum
from types import TracebackType
from typing import Any

import requests
import uvicorn

from harness.exceptions import LifecycleError, StartupError

logger = logging.getLogger(__name__)

READY_POLL_INTERVAL = 0.1


class HostState(str, Enum):
    """Application host lifecycle states."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOPPED = "stopped"


class AppHost:
    """Runs an ASGI application on a fixed local address.

    Usage:
        host = AppHost(create_app(), host="localhost", port=5000)
        host.start()
        ...
        host.stop()
    """

    def __init__(
        self,
        app: Any,
        host: str = "localhost",
        port: int = 5000,
        startup_timeout: float = 10.0,
        shutdown_timeout: float = 10.0,
        health_path: str = "/health",
    ) -> None:
        """Initialize the host.

        Args:
            app: ASGI application to serve.
            host: Address to bind.
            port: Port to bind. 0 picks a free port, readable from
                ``port`` once started.
            startup_timeout: Seconds to wait for the application to answer
                its health check.
            shutdown_timeout: Seconds uvicorn waits for in-flight requests
                when stopping.
            health_path: Path polled to decide the application is ready.
        """
        self.app = app
        self.host = host
        self.port = port
        self.startup_timeout = startup_timeout
        self.shutdown_timeout = shutdown_timeout
        self.health_path = health_path
        self.state = HostState.NOT_STARTED

        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None
        self._socket: socket.socket | None = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def base_url(self) -> str:
        return f"http://{self.address}"

    def _bind(self) -> socket.socket:
        try:
            sock = socket.create_server((self.host, self.port))
        except OSError as e:
            raise StartupError(
                f"Could not bind {self.address}",
                address=self.address,
                detail=str(e),
            ) from e
        # Port 0 asks the OS for a free port; keep the one it picked
        self.port = sock.getsockname()[1]
        return sock

    def start(self) -> None:
        """Start serving and block until the application is ready.

        Raises:
            LifecycleError: If the host is already running.
            StartupError: If the address cannot be bound or the application
                does not become ready within startup_timeout.
        """
        if self.state is HostState.RUNNING:
            raise LifecycleError(f"Application host already running on {self.address}")

        self._socket = self._bind()
        config = uvicorn.Config(
            self.app,
            log_config=None,
            lifespan="on",
            timeout_graceful_shutdown=self.shutdown_timeout,
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={"sockets": [self._socket]},
            name=f"app-host-{self.port}",
            daemon=True,
        )
        self._thread.start()

        try:
            self._wait_until_ready()
        except StartupError:
            self._shutdown()
            self.state = HostState.STOPPED
            raise

        self.state = HostState.RUNNING
        logger.info("Application running at %s", self.base_url)

    def _wait_until_ready(self) -> None:
        """Wait for uvicorn to start, then for the health check to pass."""
        assert self._server is not None and self._thread is not None
        deadline = time.monotonic() + self.startup_timeout
        health_url = f"{self.base_url}{self.health_path}"
        last_error = "server did not start"

        # Proxy settings from the environment must not apply to localhost
        with requests.Session() as http:
            http.trust_env = False
            while time.monotonic() < deadline:
                if not self._thread.is_alive():
                    raise StartupError(
                        "Application exited during startup",
                        address=self.address,
                        detail=last_error,
                    )
                if self._server.started:
                    try:
                        response = http.get(health_url, timeout=2)
                        if response.status_code == 200:
                            return
                        last_error = f"health check returned {response.status_code}"
                    except requests.RequestException as e:
                        last_error = str(e)
                time.sleep(READY_POLL_INTERVAL)

        raise StartupError(
            f"Application not ready after {self.startup_timeout:g}s",
            address=self.address,
            detail=last_error,
        )

    def stop(self) -> None:
        """Stop serving and release the port.

        Never raises: failures are logged so they cannot hide the outcome
        of the tests that ran against the application.
        """
        if self.state is not HostState.RUNNING:
            logger.warning("Stop requested but application host is %s", self.state.value)
            return

        try:
            self._shutdown()
        except Exception:
            logger.exception("Error while stopping application host")
        finally:
            self.state = HostState.STOPPED
        logger.info("Application at %s stopped", self.base_url)

    def _shutdown(self) -> None:
        server, thread = self._server, self._thread
        try:
            if server is not None and thread is not None:
                server.should_exit = True
                # uvicorn drains connections for up to shutdown_timeout
                thread.join(self.shutdown_timeout + 5)
                if thread.is_alive():
                    logger.warning("Application host did not exit in time, forcing shutdown")
                    server.force_exit = True
                    thread.join(5)
        finally:
            if self._socket is not None:
                self._socket.close()
            self._server = None
            self._thread = None
            self._socket = None

    def __enter__(self) -> "AppHost":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.stop()
