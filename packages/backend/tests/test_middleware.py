"""Tests for middleware — security headers, request IDs."""

import pytest

from notevault.db.engine import get_db


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    """Health endpoint returns security headers."""
    r = await client.get("/api/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"


@pytest.mark.asyncio
async def test_google_popup_isolation_headers(client):
    """COOP/COEP are relaxed so the Google sign-in popup can post back."""
    r = await client.get("/api/auth/me")
    assert r.headers["Cross-Origin-Opener-Policy"] == "same-origin-allow-popups"
    assert r.headers["Cross-Origin-Embedder-Policy"] == "unsafe-none"


@pytest.mark.asyncio
async def test_security_headers_on_error_responses(client):
    """Headers are present on 401s from the auth gate too."""
    r = await client.get("/api/notes")
    assert r.status_code == 401
    assert r.headers["X-Frame-Options"] == "DENY"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.get("/api/health")
    r2 = await client.get("/api/health")
    assert "X-Request-ID" in r1.headers
    assert "X-Request-ID" in r2.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    custom_id = "test-trace-12345"
    r = await client.get("/api/health", headers={"X-Request-ID": custom_id})
    assert r.headers["X-Request-ID"] == custom_id


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on HTTP connections (only HTTPS)."""
    r = await client.get("/api/health")
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_cors_allows_configured_origin_with_credentials(client):
    r = await client.options(
        "/api/auth/login",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert r.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert r.headers["access-control-allow-credentials"] == "true"


@pytest.mark.asyncio
async def test_unexpected_error_keeps_middleware_headers(app, client):
    """A crash inside a route is a 500 that still carries request id, security and CORS headers."""

    async def broken_db():
        raise RuntimeError("database unavailable")
        yield

    app.dependency_overrides[get_db] = broken_db

    r = await client.post(
        "/api/auth/login",
        json={"email": "ada@example.com", "password": "pw"},
        headers={"Origin": "http://localhost:5173", "X-Request-ID": "trace-500"},
    )

    assert r.status_code == 500
    assert r.json() == {"message": "Server error"}
    assert "database unavailable" not in r.text
    assert r.headers["X-Request-ID"] == "trace-500"
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["access-control-allow-origin"] == "http://localhost:5173"
