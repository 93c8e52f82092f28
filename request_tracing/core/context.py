"""
Immutable, chainable context objects carried explicitly through call chains.

Two implementations share the :class:`BaseContext` interface:

* :class:`Context` - a generic value chain. Deriving a child never touches
  the parent, so any number of children may be derived from one parent
  concurrently.
* :class:`RequestContext` - a view over a Starlette request. Values set by
  middleware live in ``request.state``; the request also carries its own
  generic :class:`Context`, which is where derived contexts start from.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from starlette.requests import HTTPConnection

# request.state attribute holding the request's generic context
CONTEXT_STATE_ATTR = "tracing_context"

_NO_KEY = object()


class BaseContext(ABC):
    """Read-only key/value carrier with an optional deadline."""

    __slots__ = ()

    @abstractmethod
    def value(self, key: Any) -> Any:
        """Return the value bound to ``key``, or ``None``."""

    @property
    @abstractmethod
    def deadline(self) -> Optional[datetime]:
        """Deadline inherited by every derived context."""

    @abstractmethod
    def with_value(self, key: Any, val: Any) -> "Context":
        """Return a child context with ``key`` bound to ``val``."""


class Context(BaseContext):
    """Immutable node in a context chain."""

    __slots__ = ("_parent", "_key", "_val", "_deadline")

    def __init__(self, parent: Optional["Context"] = None, key: Any = _NO_KEY,
                 val: Any = None, deadline: Optional[datetime] = None):
        # A child never outlives its parent
        if parent is not None and parent.deadline is not None:
            if deadline is None or parent.deadline < deadline:
                deadline = parent.deadline
        object.__setattr__(self, "_parent", parent)
        object.__setattr__(self, "_key", key)
        object.__setattr__(self, "_val", val)
        object.__setattr__(self, "_deadline", deadline)

    def __setattr__(self, name, value):
        raise AttributeError("Context is immutable; derive a child with with_value()")

    def __delattr__(self, name):
        raise AttributeError("Context is immutable")

    def __repr__(self) -> str:
        if self._key is _NO_KEY:
            return "Context.background()" if self._parent is None else f"{self._parent!r}.with_deadline({self._deadline!r})"
        return f"{self._parent!r}.with_value({self._key!r}, {self._val!r})"

    @classmethod
    def background(cls) -> "Context":
        """Empty root context."""
        return cls()

    @property
    def parent(self) -> Optional["Context"]:
        return self._parent

    @property
    def deadline(self) -> Optional[datetime]:
        return self._deadline

    def value(self, key: Any) -> Any:
        node = self
        while node is not None:
            if node._key is not _NO_KEY and node._key == key:
                return node._val
            node = node._parent
        return None

    def with_value(self, key: Any, val: Any) -> "Context":
        if key is None:
            raise ValueError("context key must not be None")
        return Context(parent=self, key=key, val=val)

    def with_deadline(self, deadline: datetime) -> "Context":
        """Return a child whose deadline is the earlier of ``deadline`` and the current one."""
        return Context(parent=self, deadline=deadline)


class RequestContext(BaseContext):
    """Request-scoped context backed by a Starlette request."""

    __slots__ = ("request",)

    def __init__(self, request: HTTPConnection):
        self.request = request

    def __repr__(self) -> str:
        return f"RequestContext({self.request.url.path!r})"

    def get_string(self, key: str) -> str:
        """Return ``request.state.<key>`` when it is a string, otherwise ``""``."""
        val = getattr(self.request.state, key, None)
        return val if isinstance(val, str) else ""

    def set(self, key: str, val: Any) -> None:
        setattr(self.request.state, key, val)

    def header(self, name: str) -> str:
        return self.request.headers.get(name, "")

    @property
    def context(self) -> Context:
        """The request's own generic context (background when none was attached)."""
        ctx = getattr(self.request.state, CONTEXT_STATE_ATTR, None)
        return ctx if isinstance(ctx, Context) else Context.background()

    @context.setter
    def context(self, ctx: Context) -> None:
        setattr(self.request.state, CONTEXT_STATE_ATTR, ctx)

    @property
    def deadline(self) -> Optional[datetime]:
        return self.context.deadline

    def value(self, key: Any) -> Any:
        if isinstance(key, str):
            val = getattr(self.request.state, key, None)
            if val is not None:
                return val
        return self.context.value(key)

    def with_value(self, key: Any, val: Any) -> Context:
        return self.context.with_value(key, val)


def as_request_context(obj: Any) -> Optional[RequestContext]:
    """Return ``obj`` as a :class:`RequestContext` when it is (or wraps) a request."""
    if isinstance(obj, RequestContext):
        return obj
    if isinstance(obj, HTTPConnection):
        return RequestContext(obj)
    return None
