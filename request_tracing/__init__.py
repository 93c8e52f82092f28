"""
Request ID propagation across HTTP boundaries.
"""

from .core import (
    BaseContext,
    Context,
    RequestContext,
    REQUEST_ID_KEY,
    HEADER_REQUEST_ID,
    HEADER_CORRELATION_ID,
    generate_request_id,
    get_request_id,
    get_request_id_from_context,
    context_with_request_id,
    context_from_request,
    propagate_request_id,
)
from .middleware.request_id import RequestIDMiddleware
from .clients import (
    request_id_hook,
    async_request_id_hook,
    traced_client,
    traced_async_client,
)

__version__ = "1.0.0"

__all__ = [
    "BaseContext",
    "Context",
    "RequestContext",
    "REQUEST_ID_KEY",
    "HEADER_REQUEST_ID",
    "HEADER_CORRELATION_ID",
    "generate_request_id",
    "get_request_id",
    "get_request_id_from_context",
    "context_with_request_id",
    "context_from_request",
    "propagate_request_id",
    "RequestIDMiddleware",
    "request_id_hook",
    "async_request_id_hook",
    "traced_client",
    "traced_async_client",
]
