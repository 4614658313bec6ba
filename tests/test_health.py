"""
tests/test_health.py -- Integration tests for GET /health.

Covers:
  - 200 response with status, version, and database fields
  - database reports 'error' when the store cannot be reached
  - No authentication required
"""

from __future__ import annotations


def test_health_returns_200(api_client):
    """Health endpoint returns 200 with status, version, and database."""
    resp = api_client.client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert "version" in data
    assert data["database"] == "ok"


def test_health_reports_unreachable_store(api_client, monkeypatch):
    """A failing store ping is reported, not raised."""
    monkeypatch.setattr(api_client.store, "ping", lambda: False)
    resp = api_client.client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["database"] == "error"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    resp = api_client.client.get("/health", headers={})
    assert resp.status_code == 200


def test_api_docs_served(api_client):
    """Interactive docs live at /api-docs and declare the bearer scheme."""
    assert api_client.client.get("/api-docs").status_code == 200
    schema = api_client.client.get("/openapi.json").json()
    assert "HTTPBearer" in schema["components"]["securitySchemes"]
