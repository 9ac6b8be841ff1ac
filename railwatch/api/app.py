"""FastAPI application factory for the railwatch host bridge.

Usage::

    from railwatch.api.app import create_app

    app = create_app(monitor=monitor, feed=feed)

The factory is used by both the production bootstrap (``railwatch.app``)
and unit tests.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from railwatch.api.feed import EventFeed
from railwatch.api.routes import router
from railwatch.api.schemas import ErrorResponse

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api/v1"


def create_app(monitor: Any, feed: EventFeed | None = None) -> FastAPI:
    """Create and configure the host bridge application.

    Args:
        monitor: DeploymentMonitor instance.
        feed:    EventFeed attached to the monitor's dispatcher.  A fresh,
                 unattached feed is used when omitted.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from railwatch import __version__

    app = FastAPI(
        title="railwatch",
        summary="Railway deployment state bridge",
        version=__version__,
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
        openapi_url="/api/v1/openapi.json",
    )

    app.state.monitor = monitor
    app.state.feed = feed or EventFeed()

    app.include_router(router, prefix=_API_PREFIX)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        first_msg = str(errors[0].get("msg", "")) if errors else ""
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="INVALID_REQUEST", detail=first_msg).model_dump(),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        _request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=f"HTTP_{exc.status_code}", detail=str(exc.detail)).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="INTERNAL_ERROR", detail="An unexpected error occurred.").model_dump(),
        )

    return app
