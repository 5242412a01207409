"""OAuth2 client-credentials token lifecycle."""
from __future__ import annotations

import asyncio
import logging
from typing import NoReturn

import httpx
from pydantic import BaseModel, ValidationError

from racetime_client.application.dto.credential import Credential
from racetime_client.application.events import EventEmitter
from racetime_client.application.exceptions import AuthError
from racetime_client.application.ports.clock import Clock, expires_after

logger = logging.getLogger(__name__)


class TokenResponse(BaseModel):
    access_token: str
    expires_in: float
    token_type: str = "Bearer"
    scope: str = ""


class CredentialManager:
    """Owns the access token and refreshes it lazily on the calling path.

    Every authenticated call goes through :meth:`ensure_valid`. A refresh is
    single-flight: callers arriving while an exchange is in progress wait for
    it and share its result.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
        clock: Clock,
        *,
        token_path: str = "/o/token",
        events: EventEmitter | None = None,
    ) -> None:
        self._http = http
        self._client_id = client_id
        self._client_secret = client_secret
        self._clock = clock
        self._token_path = token_path
        self._events = events
        self._credential: Credential | None = None
        self._lock = asyncio.Lock()

    @property
    def credential(self) -> Credential | None:
        return self._credential

    async def ensure_valid(self) -> Credential:
        credential = self._credential
        if credential is not None and credential.is_valid_at(self._clock.now()):
            return credential
        async with self._lock:
            credential = self._credential
            if credential is not None and credential.is_valid_at(self._clock.now()):
                return credential
            return await self._exchange()

    async def authorize(self) -> Credential:
        """Force a token exchange regardless of the current expiry."""
        async with self._lock:
            return await self._exchange()

    async def _exchange(self) -> Credential:
        form = {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "grant_type": "client_credentials",
        }
        try:
            resp = await self._http.post(self._token_path, data=form)
        except httpx.HTTPError as exc:
            self._fail(f"Token endpoint unreachable: {exc}")

        if resp.status_code != 200:
            self._fail(f"Token exchange rejected ({resp.status_code}): {resp.text.strip()[:400]}")

        try:
            token = TokenResponse.model_validate_json(resp.content)
        except ValidationError as exc:
            self._fail(f"Malformed token response: {exc}")

        self._credential = Credential(
            access_token=token.access_token,
            token_type=token.token_type,
            scope=token.scope,
            expires_at=expires_after(self._clock, token.expires_in),
        )
        logger.info("Authorized client %s (expires in %.0fs)", self._client_id, token.expires_in)
        if self._events is not None:
            self._events.emit("auth-success")
        return self._credential

    def _fail(self, detail: str) -> NoReturn:
        logger.error("Authorization failed: %s", detail)
        if self._events is not None:
            self._events.emit("auth-error", detail)
        raise AuthError(detail)
