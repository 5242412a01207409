"""Race state as published by the race data endpoints."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from racetime_client.domain.value_objects.enums import EntrantStatusValue, RaceStatusValue


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class User(_Record):
    id: str
    full_name: str = ""
    name: str = ""
    discriminator: str | None = None
    url: str = ""
    avatar: str | None = None
    pronouns: str | None = None
    flair: str = ""
    twitch_name: str | None = None
    twitch_channel: str | None = None
    can_moderate: bool = False


class Category(_Record):
    name: str
    short_name: str = ""
    slug: str
    url: str = ""
    data_url: str = ""


class RaceGoal(_Record):
    name: str
    custom: bool = False


class RaceStatus(_Record):
    value: RaceStatusValue
    verbose_value: str = ""
    help_text: str = ""


class EntrantStatus(_Record):
    value: EntrantStatusValue
    verbose_value: str = ""
    help_text: str = ""


class Entrant(_Record):
    user: User
    status: EntrantStatus
    finish_time: timedelta | None = None
    finished_at: datetime | None = None
    place: int | None = None
    place_ordinal: str | None = None
    score: int | None = None
    score_change: int | None = None
    comment: str | None = None
    has_comment: bool = False
    stream_live: bool = False
    stream_override: bool = False


class RaceDetails(_Record):
    """Full snapshot of a race.

    ``last_updated`` is not sent by the server; the snapshot cache stamps it
    when the record is stored.
    """

    version: int = 0
    name: str
    category: Category | None = None
    status: RaceStatus
    url: str
    data_url: str = ""
    websocket_url: str = ""
    websocket_bot_url: str = ""
    websocket_oauth_url: str = ""
    goal: RaceGoal | None = None
    info: str = ""
    info_bot: str | None = None
    info_user: str | None = None
    entrants_count: int = 0
    entrants_count_finished: int = 0
    entrants_count_inactive: int = 0
    entrants: list[Entrant] = Field(default_factory=list)
    opened_at: datetime | None = None
    start_delay: timedelta | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    cancelled_at: datetime | None = None
    unlisted: bool = False
    time_limit: timedelta | None = None
    time_limit_auto_complete: bool = False
    streaming_required: bool = False
    auto_start: bool = False
    opened_by: User | None = None
    monitors: list[User] = Field(default_factory=list)
    recordable: bool = False
    recorded: bool = False
    recorded_by: User | None = None
    allow_comments: bool = False
    hide_comments: bool = False
    allow_midrace_chat: bool = False
    allow_non_entrant_chat: bool = False
    chat_message_delay: timedelta | None = None

    last_updated: datetime | None = None

    @property
    def is_cancelled(self) -> bool:
        return self.status.value == RaceStatusValue.CANCELLED


class RaceSummary(_Record):
    """Entry of a category's ``current_races`` listing."""

    name: str
    status: RaceStatus
    url: str
    data_url: str = ""
    goal: RaceGoal | None = None
    info: str = ""
    entrants_count: int = 0
    entrants_count_finished: int = 0
    entrants_count_inactive: int = 0
    opened_at: datetime | None = None
    started_at: datetime | None = None
    time_limit: timedelta | None = None


class CategoryDetail(_Record):
    name: str
    short_name: str = ""
    slug: str
    url: str = ""
    data_url: str = ""
    image: str | None = None
    info: str | None = None
    streaming_required: bool = False
    owners: list[User] = Field(default_factory=list)
    moderators: list[User] = Field(default_factory=list)
    goals: list[str] = Field(default_factory=list)
    current_races: list[RaceSummary] = Field(default_factory=list)
    emotes: dict[str, Any] = Field(default_factory=dict)
