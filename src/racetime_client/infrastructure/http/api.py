from __future__ import annotations

import logging
from typing import Any

import httpx

from racetime_client.application.exceptions import RequestError
from racetime_client.infrastructure.auth.credentials import CredentialManager

logger = logging.getLogger(__name__)


class RacetimeApi:
    """Authenticated REST access: every request re-checks the credential first."""

    def __init__(self, http: httpx.AsyncClient, credentials: CredentialManager) -> None:
        self._http = http
        self._credentials = credentials

    async def request(
        self,
        method: str,
        path: str,
        *,
        data: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        credential = await self._credentials.ensure_valid()
        req_headers = dict(headers or {})
        req_headers["Authorization"] = credential.authorization
        try:
            resp = await self._http.request(method, path, data=data, headers=req_headers)
        except httpx.HTTPError as exc:
            raise RequestError(f"Network error calling {method} {path}: {exc}") from exc
        logger.debug("%s %s -> %d", method, path, resp.status_code)
        return resp

    async def get(self, path: str) -> httpx.Response:
        return await self.request("GET", path)

    async def post_form(self, path: str, form: dict[str, Any]) -> httpx.Response:
        return await self.request("POST", path, data=form)
