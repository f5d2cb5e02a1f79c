"""Tests for the security headers middleware."""

import logging

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from personapass.api.app import app


def _assert_security_headers(response):
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert response.headers["Permissions-Policy"] == "camera=(), microphone=(), geolocation=()"


async def test_security_headers_on_health_endpoint(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    _assert_security_headers(response)


async def test_security_headers_on_post_endpoint(client: AsyncClient):
    response = await client.post(
        "/api/identity/create-did", json={"firstName": "Ann", "lastName": "Lee"}
    )
    assert response.status_code == 200
    _assert_security_headers(response)


async def test_security_headers_on_error_response(client: AsyncClient):
    response = await client.get("/does-not-exist")
    assert response.status_code == 404
    _assert_security_headers(response)


async def test_content_security_policy_allows_chain(client: AsyncClient):
    response = await client.get("/health")
    csp = response.headers["Content-Security-Policy"]
    assert "default-src 'self'" in csp
    assert "frame-ancestors 'none'" in csp
    assert "connect-src 'self'" in csp


async def test_request_id_header(client: AsyncClient):
    response = await client.get("/health")
    assert len(response.headers["X-Request-ID"]) == 8


async def test_cors_preflight_for_allowed_origin(client: AsyncClient):
    response = await client.options(
        "/api/auth/totp-setup",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


async def test_cors_wildcard_subdomain(client: AsyncClient):
    response = await client.get("/health", headers={"Origin": "https://app.personapass.me"})
    assert response.headers["access-control-allow-origin"] == "https://app.personapass.me"


async def test_cors_unknown_origin_not_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"Origin": "https://evil.example"})
    assert "access-control-allow-origin" not in response.headers


@pytest_asyncio.fixture
async def failing_client(service):
    """Client whose blockchain status handler raises an unexpected error."""

    async def explode():
        raise RuntimeError("status cache corrupted")

    service.blockchain_status = explode
    app.state.service = service

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def test_security_headers_on_internal_error(failing_client: AsyncClient):
    response = await failing_client.get(
        "/api/blockchain/status", headers={"Origin": "http://localhost:3000"}
    )
    assert response.status_code == 500
    _assert_security_headers(response)
    assert len(response.headers["X-Request-ID"]) == 8
    assert response.json()["request_id"] == response.headers["X-Request-ID"]
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


async def test_internal_error_is_request_logged(failing_client: AsyncClient, caplog):
    with caplog.at_level(logging.INFO, logger="personapass"):
        await failing_client.get("/api/blockchain/status")
    records = [r for r in caplog.records if getattr(r, "status_code", None) == 500]
    assert records
    assert records[-1].path == "/api/blockchain/status"
