from __future__ import annotations

import asyncio
from datetime import timedelta
from urllib.parse import parse_qs

import httpx
import pytest

from racetime_client.application.events import EventEmitter
from racetime_client.application.exceptions import AuthError
from racetime_client.infrastructure.auth.credentials import CredentialManager
from tests.conftest import BASE_URL, token_payload


def _manager(server, clock, events=None) -> CredentialManager:
    return CredentialManager(server.http(), "bot-id", "bot-secret", clock, events=events)


@pytest.mark.asyncio
async def test_first_call_exchanges_client_credentials(server, clock):
    manager = _manager(server, clock)

    credential = await manager.ensure_valid()

    assert credential.access_token == "tok-1"
    assert credential.authorization == "Bearer tok-1"
    assert credential.expires_at == clock.now() + timedelta(seconds=3600)
    [request] = server.calls("POST", "/o/token")
    form = parse_qs(request.content.decode())
    assert form == {
        "client_id": ["bot-id"],
        "client_secret": ["bot-secret"],
        "grant_type": ["client_credentials"],
    }
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"


@pytest.mark.asyncio
async def test_valid_token_is_reused(server, clock):
    manager = _manager(server, clock)

    first = await manager.ensure_valid()
    clock.advance(3599)
    second = await manager.ensure_valid()

    assert first is second
    assert len(server.calls("POST", "/o/token")) == 1


@pytest.mark.asyncio
async def test_expired_token_is_refreshed_once(server, clock):
    server.routes[("POST", "/o/token")] = []
    server.add("POST", "/o/token", json=token_payload("tok-1", expires_in=60))
    server.add("POST", "/o/token", json=token_payload("tok-2", expires_in=60))
    manager = _manager(server, clock)

    await manager.ensure_valid()
    clock.advance(60)
    refreshed = await manager.ensure_valid()

    assert refreshed.access_token == "tok-2"
    assert refreshed.expires_at == clock.now() + timedelta(seconds=60)
    assert len(server.calls("POST", "/o/token")) == 2


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_refresh(clock):
    exchanges = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal exchanges
        exchanges += 1
        await asyncio.sleep(0.01)
        return httpx.Response(200, json=token_payload(f"tok-{exchanges}"))

    http = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    manager = CredentialManager(http, "bot-id", "bot-secret", clock)

    results = await asyncio.gather(*(manager.ensure_valid() for _ in range(5)))

    assert exchanges == 1
    assert {c.access_token for c in results} == {"tok-1"}


@pytest.mark.asyncio
async def test_rejected_credentials_raise_and_emit(server, clock):
    server.routes[("POST", "/o/token")] = []
    server.add("POST", "/o/token", 401, json={"error": "invalid_client"})
    events = EventEmitter()
    errors: list[str] = []
    events.on("auth-error", errors.append)
    manager = _manager(server, clock, events)

    with pytest.raises(AuthError):
        await manager.ensure_valid()

    assert len(errors) == 1
    assert "401" in errors[0]
    assert manager.credential is None


@pytest.mark.asyncio
async def test_unreachable_token_endpoint_raises_auth_error(clock):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    manager = CredentialManager(http, "bot-id", "bot-secret", clock)

    with pytest.raises(AuthError, match="unreachable"):
        await manager.ensure_valid()


@pytest.mark.asyncio
async def test_malformed_token_body_raises_auth_error(server, clock):
    server.routes[("POST", "/o/token")] = []
    server.add("POST", "/o/token", json={"token_type": "Bearer"})

    with pytest.raises(AuthError, match="Malformed"):
        await _manager(server, clock).ensure_valid()


@pytest.mark.asyncio
async def test_authorize_forces_exchange_and_emits_success(server, clock):
    events = EventEmitter()
    successes: list[bool] = []
    events.on("auth-success", lambda: successes.append(True))
    manager = _manager(server, clock, events)

    await manager.ensure_valid()
    await manager.authorize()

    assert len(server.calls("POST", "/o/token")) == 2
    assert successes == [True, True]
