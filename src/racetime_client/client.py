"""Public entry point: the racetime.gg bot client."""
from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import Any, Callable

import httpx
from pydantic import ValidationError

from racetime_client.application.dto.credential import Credential
from racetime_client.application.dto.race import CreateRaceParams
from racetime_client.application.events import EventEmitter
from racetime_client.application.exceptions import (
    CreateRaceError,
    DecodeError,
    RequestError,
    TransportError,
)
from racetime_client.application.ports.clock import Clock, UtcClock
from racetime_client.application.ports.socket import SocketConnector
from racetime_client.config import Settings, settings as default_settings
from racetime_client.domain.entities.race import CategoryDetail, RaceDetails, RaceSummary
from racetime_client.domain.value_objects.enums import ActionKind
from racetime_client.infrastructure.auth.credentials import CredentialManager
from racetime_client.infrastructure.cache.race_cache import RaceSnapshotCache
from racetime_client.infrastructure.http.api import RacetimeApi
from racetime_client.infrastructure.ws.connector import WebsocketsConnector
from racetime_client.infrastructure.ws.protocol import TYPED_EVENTS, OutboundAction, RaceDataFrame
from racetime_client.infrastructure.ws.registry import SessionRegistry
from racetime_client.infrastructure.ws.session import RaceSocketSession

logger = logging.getLogger(__name__)

# Session events re-emitted by the client as (endpoint, *payload).
ROOM_EVENTS: tuple[str, ...] = ("ready", "close", "socket-error", "raw-message", *TYPED_EVENTS)


class RacetimeClient(EventEmitter):
    """Bot client for one racetime.gg category.

    Owns the credential, the race snapshot cache and the race room
    sessions. Emits ``auth-success`` / ``auth-error`` and re-emits every
    room event with the room's socket endpoint as first argument::

        async with RacetimeClient(client_id, secret, "my-category") as rt:
            rt.on("chat-message", lambda endpoint, frame: print(frame.message.message_plain))
            await rt.send_message("/my-category/fancy-race-1234", "hello")
    """

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        category: str | None = None,
        *,
        config: Settings | None = None,
        http: httpx.AsyncClient | None = None,
        connector: SocketConnector | None = None,
        clock: Clock | None = None,
        sessions: dict[str, RaceSocketSession] | None = None,
    ) -> None:
        super().__init__()
        cfg = config or default_settings
        self.config = cfg
        self.category = category or cfg.RACETIME_CATEGORY
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=cfg.RACETIME_BASE_URL,
            timeout=httpx.Timeout(cfg.HTTP_TIMEOUT_SECONDS),
        )
        clock = clock or UtcClock()

        self.credentials = CredentialManager(
            self._http,
            client_id if client_id is not None else cfg.RACETIME_CLIENT_ID,
            client_secret if client_secret is not None else cfg.RACETIME_CLIENT_SECRET,
            clock,
            token_path=cfg.token_path,
            events=self,
        )
        self.api = RacetimeApi(self._http, self.credentials)
        self.races = RaceSnapshotCache(
            self.api, clock, freshness=timedelta(seconds=cfg.RACE_CACHE_SECONDS),
        )
        self.rooms = SessionRegistry(
            connector or WebsocketsConnector(),
            self.credentials,
            ws_base_url=cfg.RACETIME_WS_URL,
            join_timeout=cfg.JOIN_TIMEOUT_SECONDS,
            queue_limit=cfg.OUTBOUND_QUEUE_LIMIT,
            sessions=sessions,
            on_session=self._attach_session,
        )

    async def __aenter__(self) -> RacetimeClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def authorize(self) -> Credential:
        """Exchange the client credentials now instead of on first use."""
        return await self.credentials.authorize()

    def room(self, endpoint: str) -> RaceSocketSession | None:
        return self.rooms.get(endpoint)

    async def join_room(self, endpoint: str) -> bool:
        return await self.rooms.join(endpoint)

    async def create_race(self, params: CreateRaceParams, join_room: bool = False) -> RaceDetails:
        """Open a new race in the client's category.

        Raises CreateRaceError unless the server answers 201 with a
        ``Location`` header whose race data can then be read.
        """
        resp = await self.api.post_form(self.config.start_race_path(self.category), params.to_form())
        location = resp.headers.get("Location")
        if resp.status_code != 201 or not location:
            raise CreateRaceError(
                f"Unable to create race: {resp.text}", status=resp.status_code, body=resp.text,
            )

        race_url = httpx.URL(location).path
        details = await self.races.get(race_url)
        if details is None:
            raise CreateRaceError(
                f"Race created at {race_url} but its data could not be read",
                status=resp.status_code,
            )
        logger.info("Created race %s", details.url)
        if join_room:
            await self.join_room(details.websocket_bot_url)
        return details

    async def cancel_race(self, race_url: str) -> bool:
        """Cancel a race; True iff the server now reports it cancelled."""
        details = await self.races.get(race_url)
        if details is None:
            logger.warning("Cannot cancel %s: no race data", race_url)
            return False
        await self.join_room(details.websocket_bot_url)
        await self._session(details).send_action(ActionKind.CANCEL)

        # The cached snapshot predates the cancel command.
        confirmed = await self.races.refresh(race_url)
        return confirmed is not None and confirmed.is_cancelled

    async def send_message(self, race_url: str, message: str, pin: bool = False) -> None:
        await self.send_action(
            race_url,
            ActionKind.MESSAGE,
            {"message": message, "pinned": pin, "guid": uuid.uuid4().hex},
        )

    async def send_action(
        self,
        race_url: str,
        kind: ActionKind,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Send any room command to the race at *race_url*."""
        details = await self.races.get(race_url)
        if details is None:
            raise RequestError(f"No race data for {race_url}")
        await self.join_room(details.websocket_bot_url)
        await self._session(details).send(OutboundAction(action=kind, data=data))

    async def fetch_race_details(self, race_url: str) -> RaceDetails | None:
        return await self.races.get(race_url)

    async def list_current_races(self) -> list[RaceSummary]:
        resp = await self.api.get(self.config.category_data_path(self.category))
        if not resp.is_success:
            raise RequestError(
                f"Unable to list races for {self.category}: {resp.text}",
                status=resp.status_code,
                body=resp.text,
            )
        try:
            detail = CategoryDetail.model_validate_json(resp.content)
        except ValidationError as exc:
            raise DecodeError(f"Unrecognised category data for {self.category}: {exc}") from exc
        return detail.current_races

    async def close(self) -> None:
        await self.rooms.close()
        if self._owns_http:
            await self._http.aclose()

    def _session(self, details: RaceDetails) -> RaceSocketSession:
        session = self.rooms.get(details.websocket_bot_url)
        if session is None:
            raise TransportError(f"Race room {details.websocket_bot_url} is not joined")
        return session

    def _attach_session(self, session: RaceSocketSession) -> None:
        endpoint = session.endpoint
        for event in ROOM_EVENTS:
            session.on(event, self._forwarder(event, endpoint))
        session.on("race-data", self._on_race_data)

    def _forwarder(self, event: str, endpoint: str) -> Callable[..., None]:
        def _forward(*args: Any) -> None:
            self.emit(event, endpoint, *args)

        return _forward

    def _on_race_data(self, frame: RaceDataFrame) -> None:
        self.races.put(frame.race)
