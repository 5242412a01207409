"""Read-through cache of race snapshots."""
from __future__ import annotations

import logging
from datetime import timedelta

from pydantic import ValidationError

from racetime_client.application.ports.clock import Clock, age_of
from racetime_client.domain.entities.race import RaceDetails
from racetime_client.infrastructure.http.api import RacetimeApi

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS = timedelta(seconds=30)


class RaceSnapshotCache:
    """Race snapshots keyed by race URL, each fresh for a fixed window.

    A fetch replaces the entry for its key wholesale. Lookups that miss,
    or hit a stale entry, go to ``{race_url}/data``; a non-OK status or an
    unrecognised body yields ``None`` instead of raising.
    """

    def __init__(
        self,
        api: RacetimeApi,
        clock: Clock,
        freshness: timedelta = DEFAULT_FRESHNESS,
    ) -> None:
        self._api = api
        self._clock = clock
        self._freshness = freshness
        self._entries: dict[str, RaceDetails] = {}

    def __contains__(self, race_url: str) -> bool:
        return race_url in self._entries

    def peek(self, race_url: str) -> RaceDetails | None:
        """Return the stored entry without checking freshness or fetching."""
        return self._entries.get(race_url)

    def is_fresh(self, details: RaceDetails) -> bool:
        if details.last_updated is None:
            return False
        return age_of(self._clock, details.last_updated) < self._freshness

    async def get(self, race_url: str) -> RaceDetails | None:
        cached = self._entries.get(race_url)
        if cached is not None and self.is_fresh(cached):
            return cached
        return await self.refresh(race_url)

    async def refresh(self, race_url: str) -> RaceDetails | None:
        """Fetch *race_url* from the server, ignoring any cached entry."""
        resp = await self._api.get(f"{race_url}/data")
        if not resp.is_success:
            logger.info("No race data for %s (HTTP %d)", race_url, resp.status_code)
            return None
        try:
            details = RaceDetails.model_validate_json(resp.content)
        except ValidationError:
            logger.exception("Unrecognised race data for %s", race_url)
            logger.debug("Race data body: %s", resp.text[:2000])
            return None
        return self.put(details, key=race_url)

    def put(self, details: RaceDetails, *, key: str | None = None) -> RaceDetails:
        """Store *details* stamped with the current time and return the stored copy."""
        stamped = details.model_copy(update={"last_updated": self._clock.now()})
        self._entries[key or details.url] = stamped
        return stamped

    def invalidate(self, race_url: str) -> None:
        self._entries.pop(race_url, None)

    def clear(self) -> None:
        self._entries.clear()
