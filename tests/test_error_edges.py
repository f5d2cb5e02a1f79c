"""Tests for error edge cases.

Covers:
  - Malformed JSON payloads
  - Wrong field types
  - Uncaught exceptions in development and production
  - Error envelope request ids
"""

from __future__ import annotations

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from personapass.api.app import app
from personapass.config import settings

# ---------------------------------------------------------------------------
# Malformed input
# ---------------------------------------------------------------------------


class TestMalformedJSON:
    async def test_invalid_json_body_returns_400(self, client):
        resp = await client.post(
            "/api/identity/create-did",
            content=b"not valid json",
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "validation_error"
        assert body["message"].startswith("Invalid request")

    async def test_empty_body_returns_400(self, client):
        resp = await client.post(
            "/api/auth/totp-setup",
            content=b"",
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400

    async def test_wrong_field_type_returns_400(self, client):
        resp = await client.post("/api/auth/totp-setup", json={"email": ["a@b.co"]})
        assert resp.status_code == 400
        assert "email" in resp.json()["message"]


class TestErrorEnvelope:
    async def test_request_id_matches_header(self, client):
        resp = await client.post("/api/auth/totp-setup", json={})
        assert resp.json()["request_id"] == resp.headers["X-Request-ID"]


# ---------------------------------------------------------------------------
# Uncaught exceptions
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def crash_client(service):
    """Client whose blockchain status handler raises an unexpected error."""

    async def explode():
        raise RuntimeError("validator table corrupted")

    service.blockchain_status = explode
    app.state.service = service

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestUnhandledErrors:
    async def test_development_exposes_message_and_stack(self, crash_client, monkeypatch):
        monkeypatch.setattr(settings, "environment", "development")
        resp = await crash_client.get("/api/blockchain/status")
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "internal_error"
        assert body["message"] == "validator table corrupted"
        assert any("RuntimeError" in line for line in body["stack"])

    async def test_production_hides_details(self, crash_client, monkeypatch):
        monkeypatch.setattr(settings, "environment", "production")
        resp = await crash_client.get("/api/blockchain/status")
        assert resp.status_code == 500
        body = resp.json()
        assert body["message"] == "Internal server error"
        assert "stack" not in body
        assert "corrupted" not in resp.text
