"""SocketConnector backed by the ``websockets`` library."""
from __future__ import annotations

import logging
from typing import AsyncIterator

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from racetime_client.application.exceptions import TransportError

logger = logging.getLogger(__name__)


class WebsocketsConnection:
    def __init__(self, ws: ClientConnection) -> None:
        self._ws = ws

    @property
    def close_code(self) -> int | None:
        return self._ws.close_code

    @property
    def close_reason(self) -> str:
        return self._ws.close_reason or ""

    async def send(self, text: str) -> None:
        try:
            await self._ws.send(text)
        except ConnectionClosed as exc:
            raise TransportError(f"Socket closed while sending: {exc}") from exc

    async def frames(self) -> AsyncIterator[str | bytes]:
        # Binary frames are passed through undecoded.
        try:
            async for message in self._ws:
                yield message
        except ConnectionClosed:
            # close_code/close_reason carry the outcome
            pass

    async def close(self, code: int = 1000, reason: str = "") -> None:
        await self._ws.close(code, reason)


class WebsocketsConnector:
    """Opens race room sockets.

    ``open_timeout`` of None waits for the handshake indefinitely.
    """

    def __init__(self, open_timeout: float | None = None) -> None:
        self._open_timeout = open_timeout

    async def connect(self, url: str, headers: dict[str, str]) -> WebsocketsConnection:
        try:
            ws = await connect(url, additional_headers=headers, open_timeout=self._open_timeout)
        except (OSError, TimeoutError, WebSocketException) as exc:
            logger.warning("Socket error %s when connecting to %s", exc, url)
            raise TransportError(f"Unable to connect to {url}: {exc}") from exc
        logger.debug("Socket opened: %s", url)
        return WebsocketsConnection(ws)
