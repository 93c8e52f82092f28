"""
Test configuration and fixtures.
"""
import pytest
from starlette.requests import Request

from request_tracing.config import Settings
from request_tracing.main import create_app


def make_request(headers=None, path="/test") -> Request:
    """Build a bare Starlette request without running an app."""
    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    ]
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "server": ("testserver", 80),
        "path": path,
        "root_path": "",
        "query_string": b"",
        "headers": raw_headers,
    }
    return Request(scope)


@pytest.fixture
def request_factory():
    """Factory for bare Starlette requests."""
    return make_request


@pytest.fixture
def settings():
    """Settings isolated from the process environment and .env files."""
    return Settings(_env_file=None, LOG_JSON=False)


@pytest.fixture
def app(settings):
    """Application with the request ID middleware installed."""
    return create_app(settings)
