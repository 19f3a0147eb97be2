"""
FastAPI application entrypoint for the listening gazette.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gazette.api.routes import router as api_router
from gazette.core.config import get_settings
from gazette.core.errors import GazetteError, Unauthenticated
from gazette.core.logging import configure_logging

logger = logging.getLogger(__name__)


async def _handle_gazette_error(request: Request, exc: GazetteError) -> JSONResponse:
    if not isinstance(exc, Unauthenticated):
        logger.warning(
            "%s %s failed with %s: %s",
            request.method,
            request.url.path,
            exc.__class__.__name__,
            exc.detail,
        )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.public_message})


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Listening Gazette",
        version="0.1.0",
        description="Spotify login and listening statistics for the newspaper front page.",
    )
    app.add_exception_handler(GazetteError, _handle_gazette_error)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
