"""Instance-owned registry of race room sessions."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

from racetime_client.application.exceptions import AuthError, TransportError
from racetime_client.application.ports.socket import SocketConnector
from racetime_client.infrastructure.auth.credentials import CredentialManager
from racetime_client.infrastructure.ws.session import RaceSocketSession, is_abnormal_closure

logger = logging.getLogger(__name__)

OnSessionCallback = Callable[[RaceSocketSession], None]


class SessionRegistry:
    """Maps socket endpoint paths to their sessions.

    The registry is the only place sessions are created or removed. It keeps
    one session per endpoint, reconnects a session once after each abnormal
    closure, and forgets it after a normal closure or a failed (re)connect.
    """

    def __init__(
        self,
        connector: SocketConnector,
        credentials: CredentialManager,
        *,
        ws_base_url: str,
        join_timeout: float | None = None,
        queue_limit: int | None = None,
        sessions: dict[str, RaceSocketSession] | None = None,
        on_session: OnSessionCallback | None = None,
    ) -> None:
        self._connector = connector
        self._credentials = credentials
        self._ws_base_url = ws_base_url.rstrip("/")
        self._join_timeout = join_timeout
        self._queue_limit = queue_limit
        self._sessions = sessions if sessions is not None else {}
        self._on_session = on_session
        self._tasks: set[asyncio.Task[Any]] = set()

    def __contains__(self, endpoint: str) -> bool:
        return endpoint in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, endpoint: str) -> RaceSocketSession | None:
        return self._sessions.get(endpoint)

    async def join(self, endpoint: str) -> bool:
        """Ensure a session exists for *endpoint*.

        Returns True at once if one is already registered. Otherwise the new
        session is registered before anything is awaited, so concurrent joins
        share it, and the call returns once the socket is ready. A failed
        first connection raises TransportError and unregisters the session.
        """
        if endpoint in self._sessions:
            return True

        session = RaceSocketSession(
            endpoint,
            f"{self._ws_base_url}{endpoint}",
            self._connector,
            queue_limit=self._queue_limit,
        )
        self._sessions[endpoint] = session
        session.on("close", lambda code, reason: self._on_close(session, code, reason))
        logger.info("Registered race room session %s", endpoint)
        if self._on_session is not None:
            self._on_session(session)

        try:
            await self._connect(session)
        except (TransportError, AuthError):
            self._forget(session)
            raise
        return True

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        for session in list(self._sessions.values()):
            await session.close()
            self._forget(session)

    async def _connect(self, session: RaceSocketSession) -> None:
        credential = await self._credentials.ensure_valid()
        if self._join_timeout is None:
            await session.connect(credential)
            return
        try:
            await asyncio.wait_for(session.connect(credential), self._join_timeout)
        except asyncio.TimeoutError as exc:
            raise TransportError(
                f"Timed out after {self._join_timeout}s joining {session.endpoint}"
            ) from exc

    def _on_close(self, session: RaceSocketSession, code: int, reason: str) -> None:
        if session.terminated or not is_abnormal_closure(code):
            self._forget(session)
            return
        logger.warning(
            "Abnormal disconnection from %s: %d %s, reconnecting...",
            session.endpoint, code, reason,
        )
        self._spawn(self._reconnect(session), name=f"race-socket-reconnect:{session.endpoint}")

    async def _reconnect(self, session: RaceSocketSession) -> None:
        try:
            await self._connect(session)
        except (TransportError, AuthError):
            logger.warning("Reconnect to %s failed, dropping session", session.endpoint, exc_info=True)
            self._forget(session)

    def _spawn(self, coro: Coroutine[Any, Any, None], *, name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _forget(self, session: RaceSocketSession) -> None:
        if self._sessions.get(session.endpoint) is session:
            del self._sessions[session.endpoint]
            logger.info("Removed race room session %s", session.endpoint)
