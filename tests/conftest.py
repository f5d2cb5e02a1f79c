"""Shared fixtures for PersonaPass tests."""

from __future__ import annotations

import random

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from personapass.api.app import app, limiter
from personapass.chain.client import ChainClient
from personapass.core.service import IdentityService

CHAIN_RPC = "http://chain.test:26657"
CHAIN_API = "http://chain.test:1317"


def chain_down(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def chain_up(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"result": {"sync_info": {"latest_block_height": "12345"}}})


def make_service(handler=chain_down) -> IdentityService:
    """Fresh service with empty stores and a mocked PersonaChain."""
    chain = ChainClient(
        rpc_url=CHAIN_RPC,
        api_url=CHAIN_API,
        chain_id="personachain-1",
        timeout=0.5,
        transport=httpx.MockTransport(handler),
    )
    return IdentityService(chain, rng=random.Random(7))


@pytest.fixture(autouse=True)
def _limiter_off():
    """Rate limiting stays off unless a test turns it on."""
    limiter.enabled = False
    limiter.reset()
    yield
    limiter.enabled = False


@pytest.fixture
def service() -> IdentityService:
    return make_service()


@pytest.fixture
def live_service() -> IdentityService:
    """Service whose PersonaChain answers /status with 200."""
    return make_service(chain_up)


@pytest_asyncio.fixture
async def client():
    """HTTP test client wired to a fresh service, rate limiting off."""
    app.state.service = make_service()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
