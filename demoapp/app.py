"""Demo web application - a page with one button and one status header."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from demoapp.config import (
    CLICK_MESSAGE,
    HOST,
    LOG_LEVEL_STR,
    PORT,
    STATIC_DIR,
    TEMPLATES_DIR,
    setup_logging,
)
from demoapp.exceptions import ClickRejectedError, DemoAppError

setup_logging()
logger = logging.getLogger(__name__)

INITIAL_HEADER = "Click the button"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


class ClickResponse(BaseModel):
    """Response model for a button click."""

    message: str


def create_app(click_message: str = CLICK_MESSAGE, click_enabled: bool = True) -> FastAPI:
    """Build the demo application.

    Args:
        click_message: Header text returned after the button is clicked.
        click_enabled: If False, clicks are rejected and the header never
            changes. Used to simulate a broken application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Demo app starting: click_enabled=%s, log_level=%s",
            click_enabled,
            LOG_LEVEL_STR,
        )
        yield
        logger.info("Demo app shutting down")

    app = FastAPI(
        title="Demo Web App",
        description="Single page application used by the browser harness",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.exception_handler(DemoAppError)
    async def demo_error_handler(request: Request, exc: DemoAppError) -> JSONResponse:
        """Handle DemoAppError exceptions with consistent JSON responses."""
        logger.error(
            "Demo app error: %s - %s (status=%d)",
            exc.__class__.__name__,
            exc.message,
            exc.status_code,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions with a generic error response."""
        logger.exception("Unexpected error: %s", exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": "InternalServerError",
                "message": "An unexpected error occurred.",
            },
        )

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(content={"status": "ok"})

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request) -> HTMLResponse:
        """Render the page with the button and the status header."""
        return templates.TemplateResponse(
            request,
            "index.html",
            {"initial_header": INITIAL_HEADER},
        )

    @app.post("/api/click", response_model=ClickResponse)
    async def click() -> ClickResponse:
        """Record a button click and return the new header text."""
        if not click_enabled:
            raise ClickRejectedError()
        logger.debug("Button clicked")
        return ClickResponse(message=click_message)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("demoapp.app:app", host=HOST, port=PORT)
