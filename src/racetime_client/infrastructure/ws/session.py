"""One socket session per race room."""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any

from racetime_client.application.dto.credential import Credential
from racetime_client.application.events import EventEmitter
from racetime_client.application.exceptions import (
    DecodeError,
    OutboundQueueFull,
    TransportError,
)
from racetime_client.application.ports.socket import SocketConnection, SocketConnector
from racetime_client.domain.value_objects.enums import ActionKind, MessageKind, SessionState
from racetime_client.infrastructure.ws.protocol import InboundFrame, OutboundAction, decode_frame

logger = logging.getLogger(__name__)

NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006
PROTOCOL_ERROR = 1002
INTERNAL_ERROR = 1011


def is_abnormal_closure(code: int) -> bool:
    return code > NORMAL_CLOSURE


class RaceSocketSession(EventEmitter):
    """Duplex connection to a single race room.

    Events: ``ready(url)``, ``socket-error(exc)``, ``close(code, reason)``,
    ``raw-message(raw)`` and one typed event per decoded frame (see
    ``protocol.ROUTES``).

    Actions sent while the session is not ready are queued and flushed in
    order once the connection opens. A closure above 1000 keeps the queue so
    the owner can reconnect; a normal closure, or a frame that cannot be
    decoded, terminates the session and drops whatever is still queued.
    Any other failure in the reader closes the socket with 1011, which
    counts as abnormal.
    """

    def __init__(
        self,
        endpoint: str,
        url: str,
        connector: SocketConnector,
        *,
        queue_limit: int | None = None,
    ) -> None:
        super().__init__()
        self.endpoint = endpoint
        self.url = url
        self.state = SessionState.NOT_READY
        self.protocol_failure: DecodeError | None = None
        self._connector = connector
        self._queue_limit = queue_limit
        self._queue: deque[OutboundAction] = deque()
        self._connection: SocketConnection | None = None
        self._reader: asyncio.Task[None] | None = None
        self._terminated = False
        self._closing = False

    @property
    def ready(self) -> bool:
        return self.state is SessionState.READY

    @property
    def terminated(self) -> bool:
        return self._terminated

    @property
    def pending(self) -> int:
        return len(self._queue)

    async def connect(self, credential: Credential) -> None:
        if self._terminated:
            raise TransportError(f"Session {self.endpoint} is closed")
        self.state = SessionState.NOT_READY
        connection: SocketConnection | None = None
        try:
            connection = await self._connector.connect(
                self.url, {"Authorization": credential.authorization},
            )
            if self._closing:
                raise TransportError(f"Session {self.endpoint} was closed while connecting")
            self._connection = connection
            await self._flush(connection)
        except TransportError as exc:
            self.state = SessionState.CLOSED
            self._connection = None
            if connection is not None:
                await connection.close(NORMAL_CLOSURE, "")
            self.emit("socket-error", exc)
            raise

        self.state = SessionState.READY
        logger.info("Connected to race room %s", self.endpoint)
        self.emit("ready", self.url)
        self._reader = asyncio.create_task(
            self._read_loop(connection), name=f"race-socket:{self.endpoint}",
        )

    async def send(self, action: OutboundAction) -> None:
        if self._terminated:
            raise TransportError(f"Session {self.endpoint} is closed")
        if self.state is SessionState.READY and self._connection is not None:
            logger.debug("Sending %s to %s", action.action, self.endpoint)
            await self._connection.send(action.encode())
            return
        if self._queue_limit is not None and len(self._queue) >= self._queue_limit:
            raise OutboundQueueFull(
                f"{len(self._queue)} actions already queued for {self.endpoint}"
            )
        self._queue.append(action)

    async def send_action(self, kind: ActionKind, data: dict[str, Any] | None = None) -> None:
        await self.send(OutboundAction(action=kind, data=data))

    def handle_frame(self, raw: str | bytes) -> InboundFrame:
        """Decode *raw* and emit its typed event.

        Raises UnknownMessageKind or DecodeError without emitting anything.
        """
        inbound = decode_frame(raw)
        if inbound.event is None:
            logger.debug("Ignoring %s frame on %s", inbound.kind, self.endpoint)
            return inbound
        if inbound.kind is MessageKind.ERROR:
            logger.warning("Race room %s reported errors: %s", self.endpoint, inbound.frame)
        self.emit(inbound.event, inbound.frame)
        return inbound

    async def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        self._closing = True
        connection = self._connection
        if connection is None:
            self._terminate()
            self.state = SessionState.CLOSED
            return
        await connection.close(code, reason)
        reader = self._reader
        if reader is not None and reader is not asyncio.current_task():
            await reader

    async def _flush(self, connection: SocketConnection) -> None:
        # Sends issued during the drain land in the same queue.
        while self._queue:
            action = self._queue.popleft()
            try:
                await connection.send(action.encode())
            except TransportError:
                self._queue.appendleft(action)
                raise
        logger.debug("Flushed queued actions for %s", self.endpoint)

    async def _read_loop(self, connection: SocketConnection) -> None:
        code, reason = ABNORMAL_CLOSURE, ""
        try:
            async for raw in connection.frames():
                self.emit("raw-message", raw)
                self.handle_frame(raw)
            code = connection.close_code or ABNORMAL_CLOSURE
            reason = connection.close_reason
        except DecodeError as exc:
            logger.exception("Closing %s after undecodable frame", self.endpoint)
            self.protocol_failure = exc
            self.emit("socket-error", exc)
            code, reason = PROTOCOL_ERROR, exc.detail
            await connection.close(PROTOCOL_ERROR, "unsupported message")
        except asyncio.CancelledError:
            # no reconnect for a reader torn down with its loop
            self._closing = True
            raise
        except Exception as exc:
            logger.exception("Reader for %s failed", self.endpoint)
            self.emit("socket-error", exc)
            code, reason = INTERNAL_ERROR, str(exc)
            await connection.close(INTERNAL_ERROR, "reader failed")
        finally:
            self._on_closed(code, reason)

    def _on_closed(self, code: int, reason: str) -> None:
        self.state = SessionState.CLOSED
        self._connection = None
        self._reader = None
        if self._closing or not is_abnormal_closure(code) or self.protocol_failure is not None:
            self._terminate()
        logger.info("Socket %s closed with code %d and reason %r", self.endpoint, code, reason)
        self.emit("close", code, reason)

    def _terminate(self) -> None:
        self._terminated = True
        if self._queue:
            logger.info("Dropping %d queued actions for %s", len(self._queue), self.endpoint)
            self._queue.clear()
