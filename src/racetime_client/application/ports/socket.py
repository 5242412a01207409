from __future__ import annotations

from typing import AsyncIterator, Protocol


class SocketConnection(Protocol):
    """An open duplex socket.

    ``frames()`` yields inbound frames as received, text or binary, and
    returns once the socket is closed, after which ``close_code`` and
    ``close_reason`` describe why.
    A connection that dropped without a close handshake reports 1006.
    """

    close_code: int | None
    close_reason: str

    async def send(self, text: str) -> None: ...

    def frames(self) -> AsyncIterator[str | bytes]: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...


class SocketConnector(Protocol):
    """Opens socket connections; raises TransportError when the handshake fails."""

    async def connect(self, url: str, headers: dict[str, str]) -> SocketConnection: ...
