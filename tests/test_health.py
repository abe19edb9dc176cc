"""Tests for the /health endpoints and request-id propagation."""

import uuid
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from formbuilder.config import VERSION
from formbuilder.main import app


client = TestClient(app)


def test_health_returns_ok(monkeypatch):
    """GET /health returns 200 when the database check is bypassed."""
    monkeypatch.setenv("TESTING", "1")
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "db": "connected"}


@patch("formbuilder.api.routers.health.get_pool", new_callable=AsyncMock)
def test_health_reports_connected_db(mock_get_pool, monkeypatch):
    monkeypatch.delenv("TESTING", raising=False)
    mock_get_pool.return_value.fetchval = AsyncMock(return_value=1)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["db"] == "connected"


@patch("formbuilder.api.routers.health.get_pool", new_callable=AsyncMock)
def test_health_degraded_when_db_unreachable(mock_get_pool, monkeypatch):
    monkeypatch.delenv("TESTING", raising=False)
    mock_get_pool.side_effect = OSError("connection refused")
    response = client.get("/health")
    assert response.status_code == 503
    assert response.json() == {"status": "degraded", "db": "unreachable"}


def test_health_version_returns_version():
    response = client.get("/health/version")
    assert response.status_code == 200
    assert response.json()["version"] == VERSION


def test_request_id_header_generated(monkeypatch):
    """Every response gets an X-Request-ID header."""
    monkeypatch.setenv("TESTING", "1")
    response = client.get("/health")
    assert "X-Request-ID" in response.headers
    uuid.UUID(response.headers["X-Request-ID"])


def test_request_id_header_echoed(monkeypatch):
    """Client-supplied X-Request-ID is echoed back."""
    monkeypatch.setenv("TESTING", "1")
    response = client.get("/health", headers={"X-Request-ID": "my-trace-123"})
    assert response.headers["X-Request-ID"] == "my-trace-123"
