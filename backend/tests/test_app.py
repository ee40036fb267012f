"""Tests for application-level endpoints and error rendering."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from subplatform.db.engine import get_db
from subplatform.main import app


def _failing_session(exc: Exception):
    async def override_db():
        session = AsyncMock()
        session.execute.side_effect = exc
        yield session

    return override_db


@pytest.fixture
async def broken_client():
    """Client whose app returns 500 responses instead of re-raising."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.mark.asyncio
class TestServiceEndpoints:
    async def test_root(self, client):
        resp = await client.get("/")
        assert resp.status_code == 200
        assert resp.text == "Subscription Platform API"

    async def test_health_ok(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["service"] == "subscription-platform-backend"
        assert "timestamp" in data

    async def test_health_db_down(self, broken_client):
        app.dependency_overrides[get_db] = _failing_session(
            OperationalError("SELECT 1", {}, Exception("unable to open database file"))
        )
        resp = await broken_client.get("/health")
        assert resp.status_code == 503
        assert resp.json() == {"status": "unhealthy", "error": "Database unavailable"}

    async def test_metrics_exposition(self, client):
        await client.get("/plans")
        resp = await client.get("/metrics")
        assert resp.status_code == 200
        assert "# TYPE subplatform_auth_failure_total counter" in resp.text
        assert 'subplatform_auth_failure_total{gate="api_key",reason="missing"} 1' in resp.text

    async def test_openapi_document(self, client):
        resp = await client.get("/doc")
        assert resp.status_code == 200
        schemes = resp.json()["components"]["securitySchemes"]
        assert schemes["APIKeyHeader"]["name"] == "X-API-Key"
        assert schemes["BasicAuth"]["name"] == "Authorization"


@pytest.mark.asyncio
class TestErrorRendering:
    async def test_not_found_uses_error_shape(self, client):
        resp = await client.get("/nope")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not Found"}

    async def test_validation_error(self, client, make_product):
        _, api_key = await make_product("Acme")
        resp = await client.post(
            "/admin/verify", json={"approve": "maybe"}, headers={"X-API-Key": api_key}
        )
        assert resp.status_code == 422
        body = resp.json()
        assert body["error"] == "Invalid request"
        assert body["details"]

    async def test_unexpected_error_hides_internals(self, broken_client):
        app.dependency_overrides[get_db] = _failing_session(RuntimeError("connection pool exhausted"))
        resp = await broken_client.get("/plans", headers={"X-API-Key": "acme_prod_abc"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal Server Error"}
        assert "pool" not in resp.text
