"""
httpx integration: stamp the request ID on every outbound request.
"""
from typing import Any, Awaitable, Callable, Dict

import httpx

from .core.propagation import propagate_request_id


def request_id_hook(ctx: Any) -> Callable[[httpx.Request], None]:
    """Build a request event hook for :class:`httpx.Client`."""
    def hook(request: httpx.Request) -> None:
        propagate_request_id(ctx, request)
    return hook


def async_request_id_hook(ctx: Any) -> Callable[[httpx.Request], Awaitable[None]]:
    """Build a request event hook for :class:`httpx.AsyncClient`."""
    async def hook(request: httpx.Request) -> None:
        propagate_request_id(ctx, request)
    return hook


def _with_hook(kwargs: Dict[str, Any], hook) -> Dict[str, Any]:
    event_hooks = dict(kwargs.pop("event_hooks", None) or {})
    event_hooks["request"] = list(event_hooks.get("request", [])) + [hook]
    event_hooks.setdefault("response", [])
    kwargs["event_hooks"] = event_hooks
    return kwargs


def traced_client(ctx: Any, **kwargs) -> httpx.Client:
    """Create an :class:`httpx.Client` that forwards the request ID from ``ctx``."""
    return httpx.Client(**_with_hook(kwargs, request_id_hook(ctx)))


def traced_async_client(ctx: Any, **kwargs) -> httpx.AsyncClient:
    """Create an :class:`httpx.AsyncClient` that forwards the request ID from ``ctx``.

    Usage::

        ctx = context_from_request(request)
        async with traced_async_client(ctx, timeout=10.0) as client:
            response = await client.get(url)
    """
    return httpx.AsyncClient(**_with_hook(kwargs, async_request_id_hook(ctx)))
