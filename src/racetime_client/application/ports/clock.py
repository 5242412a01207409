"""Time source for token expiry and race snapshot freshness.

Credentials and cached snapshots read the time through a ``Clock`` so tests
can step it by hand.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Timezone-aware current time."""
        ...


class UtcClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def expires_after(clock: Clock, seconds: float) -> datetime:
    return clock.now() + timedelta(seconds=seconds)


def age_of(clock: Clock, stamp: datetime) -> timedelta:
    return clock.now() - stamp
