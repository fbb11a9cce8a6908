"""
Integration tests for health probes and response headers.
"""
import pytest


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_ready_checks_database(client):
    resp = await client.get("/ready")
    assert resp.status_code == 200
    assert resp.json()["checks"]["database"] == "ok"


@pytest.mark.asyncio
async def test_ready_without_database(app, client, monkeypatch):
    monkeypatch.setattr(app.state, "database", None)
    resp = await client.get("/ready")
    assert resp.status_code == 503
    assert resp.json()["status"] == "not_ready"


@pytest.mark.asyncio
async def test_security_headers(client):
    resp = await client.get("/health")
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert "Permissions-Policy" in resp.headers


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    resp = await client.get("/health", headers={"X-Correlation-ID": "req-123"})
    assert resp.headers["X-Correlation-ID"] == "req-123"
    assert resp.headers["X-Event-ID"]


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(client):
    resp = await client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Not Found"}
