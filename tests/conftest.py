"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest

from racetime_client.application.exceptions import TransportError
from racetime_client.client import RacetimeClient
from racetime_client.config import Settings

BASE_URL = "https://racetime.test"
WS_URL = "wss://racetime.test"

_CLOSED = object()


async def settle(rounds: int = 10) -> None:
    """Let background reader/reconnect tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@dataclass
class ManualClock:
    current: datetime = field(default_factory=lambda: datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@dataclass
class FakeConnection:
    url: str
    headers: dict[str, str]
    sent: list[str] = field(default_factory=list)
    close_code: int | None = None
    close_reason: str = ""
    broken: bool = False
    _inbox: asyncio.Queue[Any] = field(default_factory=asyncio.Queue)

    @property
    def actions(self) -> list[dict[str, Any]]:
        return [json.loads(raw) for raw in self.sent]

    async def send(self, text: str) -> None:
        if self.close_code is not None or self.broken:
            raise TransportError("socket is closed")
        self.sent.append(text)

    async def frames(self):
        while True:
            item = await self._inbox.get()
            if item is _CLOSED:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.close_code is None:
            self.drop(code, reason)

    def push(self, frame: dict[str, Any] | str | bytes) -> None:
        self._inbox.put_nowait(frame if isinstance(frame, (str, bytes)) else json.dumps(frame))

    def fail(self, exc: Exception) -> None:
        """Make the frame iterator raise *exc*."""
        self._inbox.put_nowait(exc)

    def drop(self, code: int = 1006, reason: str = "") -> None:
        self.close_code = code
        self.close_reason = reason
        self._inbox.put_nowait(_CLOSED)


@dataclass
class FakeConnector:
    attempts: list[str] = field(default_factory=list)
    connections: list[FakeConnection] = field(default_factory=list)
    failures: int = 0
    gate: asyncio.Event | None = None
    broken_sends: bool = False

    async def connect(self, url: str, headers: dict[str, str]) -> FakeConnection:
        self.attempts.append(url)
        if self.gate is not None:
            await self.gate.wait()
        if self.failures:
            self.failures -= 1
            raise TransportError(f"connection to {url} refused")
        conn = FakeConnection(url=url, headers=dict(headers), broken=self.broken_sends)
        self.connections.append(conn)
        return conn

    @property
    def last(self) -> FakeConnection:
        return self.connections[-1]


@dataclass
class FakeRacetimeServer:
    """httpx.MockTransport handler with canned responses per (method, path).

    Responses for a route are served in order; the last one repeats.
    """

    routes: dict[tuple[str, str], list[tuple[int, dict[str, Any]]]] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def add(self, method: str, path: str, status: int = 200, **kwargs: Any) -> None:
        self.routes.setdefault((method, path), []).append((status, kwargs))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, text="Not found")
        status, kwargs = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(status, **kwargs)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(self.handler))


def token_payload(token: str = "tok-1", expires_in: float = 3600) -> dict[str, Any]:
    return {"access_token": token, "expires_in": expires_in, "token_type": "Bearer", "scope": "read chat_message race_action"}


def race_payload(
    url: str = "/cat/fancy-race-1234",
    *,
    status: str = "open",
    websocket_bot_url: str = "/ws/o/bot/fancy-race-1234",
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "version": 1,
        "name": url.strip("/"),
        "category": {"name": "Category", "short_name": "CAT", "slug": "cat", "url": "/cat", "data_url": "/cat/data"},
        "status": {"value": status, "verbose_value": status.title(), "help_text": ""},
        "url": url,
        "data_url": f"{url}/data",
        "websocket_url": f"/ws/race/{url.rsplit('/', 1)[-1]}",
        "websocket_bot_url": websocket_bot_url,
        "websocket_oauth_url": f"/ws/o/race/{url.rsplit('/', 1)[-1]}",
        "goal": {"name": "Any%", "custom": False},
        "info": "",
        "entrants_count": 1,
        "entrants": [
            {
                "user": {"id": "u1", "full_name": "Runner#0001", "name": "Runner", "url": "/user/u1"},
                "status": {"value": "not_ready", "verbose_value": "Not ready", "help_text": ""},
            }
        ],
        "opened_at": "2024-05-01T11:55:00+00:00",
        "unlisted": False,
    }
    payload.update(extra)
    return payload


def chat_message_payload(message_id: str = "m1", text: str = "hello", **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": message_id,
        "user": {"id": "u1", "full_name": "Runner#0001", "name": "Runner"},
        "bot": None,
        "posted_at": "2024-05-01T12:00:00+00:00",
        "message": text,
        "message_plain": text,
        "highlight": False,
        "is_dm": False,
        "is_bot": False,
        "is_system": False,
        "is_pinned": False,
    }
    payload.update(extra)
    return payload


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "RACETIME_CLIENT_ID": "bot-id",
        "RACETIME_CLIENT_SECRET": "bot-secret",
        "RACETIME_CATEGORY": "cat",
        "RACETIME_BASE_URL": BASE_URL,
        "RACETIME_WS_URL": WS_URL,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def server() -> FakeRacetimeServer:
    srv = FakeRacetimeServer()
    srv.add("POST", "/o/token", json=token_payload())
    return srv


@pytest.fixture
def client(server: FakeRacetimeServer, connector: FakeConnector, clock: ManualClock) -> RacetimeClient:
    return RacetimeClient(
        config=make_settings(),
        http=server.http(),
        connector=connector,
        clock=clock,
    )
