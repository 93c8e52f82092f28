"""
Core request ID propagation module.

This module contains the immutable context types and the functions that
resolve, attach and forward request identifiers.
"""

from .context import BaseContext, Context, RequestContext
from .propagation import (
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
]
