"""
FastAPI application wiring the request ID middleware.
"""
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request

from .config import Settings, get_settings
from .core.logging_config import configure_logging_from_settings
from .core.propagation import get_request_id
from .middleware.request_id import RequestIDMiddleware

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create the application with request tracing installed."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging_from_settings(settings)
        logger.info("Starting up", service=settings.APP_NAME, version=settings.VERSION)
        yield
        logger.info("Shutting down", service=settings.APP_NAME)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings

    app.add_middleware(RequestIDMiddleware, settings=settings)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.VERSION,
            "request_id": get_request_id(request),
        }

    return app
