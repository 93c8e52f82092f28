"""
Request ID propagation across HTTP boundaries.

An identifier found upstream (request state or generic context) is reused
unchanged; a fresh UUID4 is generated only when none can be found. None of
these functions can fail.

Usage::

    ctx = context_from_request(request)
    result = await service.do_something(ctx, params)

    # ... later, inside the service
    req = client.build_request("GET", url)
    propagate_request_id(ctx, req)
    response = await client.send(req)
"""
import uuid
from typing import Any

from .context import BaseContext, Context, RequestContext, as_request_context

# Well-known key under which the framework stores the identifier in request.state
REQUEST_ID_KEY = "request_id"

HEADER_REQUEST_ID = "X-Request-ID"
HEADER_CORRELATION_ID = "X-Correlation-ID"


class _RequestIDKey:
    """Private context key type; instances only compare equal to themselves."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<request_id key>"


_request_id_key = _RequestIDKey()


def generate_request_id() -> str:
    """Generate a new random (UUID4) request ID."""
    return str(uuid.uuid4())


def get_request_id(request_context: Any) -> str:
    """Return the request ID stored on the request, or a freshly generated one.

    Accepts a :class:`RequestContext` or a Starlette request. The generated
    value is not stored back on the request.
    """
    rc = as_request_context(request_context)
    if rc is not None:
        request_id = rc.get_string(REQUEST_ID_KEY)
        if request_id:
            return request_id
    return generate_request_id()


def get_request_id_from_context(ctx: Any) -> str:
    """Return the request ID carried by ``ctx``, or a freshly generated one.

    Request-scoped contexts are resolved with :func:`get_request_id`.
    """
    rc = as_request_context(ctx)
    if rc is not None:
        return get_request_id(rc)

    if isinstance(ctx, BaseContext):
        request_id = ctx.value(_request_id_key)
        if isinstance(request_id, str) and request_id:
            return request_id
    return generate_request_id()


def context_with_request_id(ctx: BaseContext, request_id: str) -> Context:
    """Return a child of ``ctx`` carrying ``request_id``. ``ctx`` is left untouched."""
    return ctx.with_value(_request_id_key, request_id)


def context_from_request(request_context: Any) -> Context:
    """Hand-off from a request to a generic context for downstream calls.

    The result derives from the request's own context, so any deadline it
    carries is preserved.
    """
    rc = as_request_context(request_context)
    if rc is None:
        raise TypeError(f"expected a request or RequestContext, got {type(request_context).__name__}")
    return context_with_request_id(rc.context, get_request_id(rc))


def propagate_request_id(ctx: Any, request: Any) -> None:
    """Set ``X-Request-ID`` and ``X-Correlation-ID`` on an outbound request.

    ``request`` is anything with a mutable ``headers`` mapping, such as
    :class:`httpx.Request`. Both headers receive the same value.
    """
    request_id = get_request_id_from_context(ctx)
    request.headers[HEADER_REQUEST_ID] = request_id
    request.headers[HEADER_CORRELATION_ID] = request_id


__all__ = [
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
