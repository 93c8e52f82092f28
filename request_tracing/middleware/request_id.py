"""
Request ID middleware for request tracking.
"""
import time
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp

from ..config import Settings, settings as default_settings
from ..core.context import RequestContext
from ..core.propagation import (
    REQUEST_ID_KEY,
    HEADER_REQUEST_ID,
    HEADER_CORRELATION_ID,
    context_with_request_id,
    generate_request_id,
)

logger = structlog.get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to attach a request ID to every request for tracking."""

    def __init__(self, app: ASGIApp, settings: Optional[Settings] = None):
        super().__init__(app)
        self.settings = settings or default_settings

    def resolve_inbound(self, request: Request) -> str:
        """Get request ID from headers or generate a new one."""
        if self.settings.TRUST_INBOUND_REQUEST_ID:
            for header in (HEADER_REQUEST_ID, HEADER_CORRELATION_ID):
                request_id = request.headers.get(header, "").strip()
                if request_id:
                    return request_id
        return generate_request_id()

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = self.resolve_inbound(request)

        # Store on request state and extend whatever context outer layers attached
        rc = RequestContext(request)
        rc.set(REQUEST_ID_KEY, request_id)
        rc.context = context_with_request_id(rc.context, request_id)

        log = logger.bind(request_id=request_id)

        try:
            response = await call_next(request)
        except Exception as exc:
            log.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.time() - start_time) * 1000, 2),
                error_type=type(exc).__name__,
                exc_info=True
            )
            raise

        log.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.time() - start_time) * 1000, 2)
        )

        if self.settings.ECHO_RESPONSE_HEADERS:
            response.headers[HEADER_REQUEST_ID] = request_id
            response.headers[HEADER_CORRELATION_ID] = request_id

        return response
