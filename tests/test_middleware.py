"""
Unit tests for middleware components.
"""
import re
import uuid
from datetime import datetime, timezone

import httpx
import pytest
from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.testclient import TestClient

from request_tracing.clients import traced_async_client
from request_tracing.config import Settings
from request_tracing.core.context import Context, RequestContext
from request_tracing.core.propagation import (
    context_from_request,
    get_request_id,
    get_request_id_from_context,
)
from request_tracing.middleware.request_id import RequestIDMiddleware

UUID4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


def _downstream(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={
        "request_id": request.headers.get("X-Request-ID"),
        "correlation_id": request.headers.get("X-Correlation-ID"),
    })


def build_app(settings: Settings) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware, settings=settings)

    @app.get("/test")
    async def test_endpoint(request: Request):
        ctx = context_from_request(request)
        return {
            "state_request_id": getattr(request.state, "request_id", None),
            "request_id": get_request_id(request),
            "context_request_id": get_request_id_from_context(RequestContext(request).context),
            "derived_request_id": get_request_id_from_context(ctx),
        }

    @app.get("/forward")
    async def forward_endpoint(request: Request):
        ctx = context_from_request(request)
        async with traced_async_client(ctx, transport=httpx.MockTransport(_downstream)) as client:
            response = await client.get("http://downstream.example/items")
        return response.json()

    @app.get("/boom")
    async def boom_endpoint():
        raise RuntimeError("boom")

    return app


class TestRequestIDMiddleware:
    """Test RequestID middleware functionality."""

    @pytest.fixture
    def client(self, settings):
        return TestClient(build_app(settings))

    def test_request_id_generation(self, client):
        """Test that a request ID is generated when not provided."""
        response = client.get("/test")

        assert response.status_code == 200
        request_id = response.headers["X-Request-ID"]
        assert len(request_id) == 36
        assert UUID4_PATTERN.match(request_id)
        assert response.headers["X-Correlation-ID"] == request_id

        data = response.json()
        assert data["state_request_id"] == request_id
        assert data["request_id"] == request_id
        assert data["context_request_id"] == request_id
        assert data["derived_request_id"] == request_id

    def test_request_id_preservation(self, client):
        """Test that a provided X-Request-ID is preserved."""
        custom_request_id = str(uuid.uuid4())

        response = client.get("/test", headers={"X-Request-ID": custom_request_id})

        assert response.headers["X-Request-ID"] == custom_request_id
        assert response.headers["X-Correlation-ID"] == custom_request_id
        assert response.json()["derived_request_id"] == custom_request_id

    def test_correlation_header_fallback(self, client):
        """Test that X-Correlation-ID is used when X-Request-ID is absent."""
        response = client.get("/test", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
        assert response.json()["request_id"] == "abc-123"

    def test_request_id_header_wins(self, client):
        response = client.get(
            "/test",
            headers={"X-Request-ID": "primary", "X-Correlation-ID": "secondary"}
        )

        assert response.json()["request_id"] == "primary"

    def test_blank_header_generates(self, client):
        response = client.get("/test", headers={"X-Request-ID": "   "})

        assert UUID4_PATTERN.match(response.json()["request_id"])

    def test_distinct_requests_get_distinct_ids(self, client):
        first = client.get("/test").headers["X-Request-ID"]
        second = client.get("/test").headers["X-Request-ID"]

        assert first != second

    def test_untrusted_inbound_ignored(self):
        settings = Settings(_env_file=None, TRUST_INBOUND_REQUEST_ID=False)
        client = TestClient(build_app(settings))

        response = client.get("/test", headers={"X-Request-ID": "abc-123"})

        request_id = response.json()["request_id"]
        assert request_id != "abc-123"
        assert UUID4_PATTERN.match(request_id)

    def test_response_echo_disabled(self):
        settings = Settings(_env_file=None, ECHO_RESPONSE_HEADERS=False)
        client = TestClient(build_app(settings))

        response = client.get("/test", headers={"X-Request-ID": "abc-123"})

        assert response.json()["request_id"] == "abc-123"
        assert "X-Request-ID" not in response.headers
        assert "X-Correlation-ID" not in response.headers

    def test_propagates_to_downstream_call(self, client):
        """Scenario: inbound abc-123 reaches both downstream headers."""
        response = client.get("/forward", headers={"X-Request-ID": "abc-123"})

        assert response.status_code == 200
        assert response.json() == {"request_id": "abc-123", "correlation_id": "abc-123"}

    def test_generated_id_propagates_to_downstream_call(self, client):
        response = client.get("/forward")

        request_id = response.headers["X-Request-ID"]
        assert response.json() == {"request_id": request_id, "correlation_id": request_id}

    def test_exceptions_are_reraised(self, client):
        with pytest.raises(RuntimeError, match="boom"):
            client.get("/boom")


DEADLINE = datetime(2030, 1, 1, tzinfo=timezone.utc)


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Outer middleware attaching its own context to the request."""

    async def dispatch(self, request: Request, call_next):
        RequestContext(request).context = (
            Context.background().with_deadline(DEADLINE).with_value("tenant", "acme")
        )
        return await call_next(request)


class TestRequestIDMiddlewareWithOuterContext:
    """Test that an already attached request context is extended, not replaced."""

    @pytest.fixture
    def client(self, settings):
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware, settings=settings)
        app.add_middleware(TenantContextMiddleware)

        @app.get("/context")
        async def context_endpoint(request: Request):
            ctx = context_from_request(request)
            return {
                "tenant": ctx.value("tenant"),
                "deadline": ctx.deadline.isoformat() if ctx.deadline else None,
                "request_id": get_request_id_from_context(ctx),
                "attached_request_id": get_request_id_from_context(RequestContext(request).context),
            }

        return TestClient(app)

    def test_outer_values_survive(self, client):
        response = client.get("/context", headers={"X-Request-ID": "abc-123"})

        assert response.json() == {
            "tenant": "acme",
            "deadline": DEADLINE.isoformat(),
            "request_id": "abc-123",
            "attached_request_id": "abc-123",
        }

    def test_generated_id_added_to_outer_context(self, client):
        data = client.get("/context").json()

        assert data["tenant"] == "acme"
        assert UUID4_PATTERN.match(data["request_id"])
        assert data["attached_request_id"] == data["request_id"]


class TestApplication:
    """Test the application factory."""

    def test_health_reports_request_id(self, app):
        with TestClient(app) as client:
            response = client.get("/health", headers={"X-Request-ID": "abc-123"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "request-tracing"
        assert data["request_id"] == "abc-123"
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_settings_exposed_on_app_state(self, app, settings):
        assert app.state.settings is settings
