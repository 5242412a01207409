from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict

from racetime_client.domain.entities.race import User
from racetime_client.domain.value_objects.enums import SurveyType


class SurveyField(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    name: str
    label: str = ""
    default: str | None = None
    help: str | None = None
    type: SurveyType
    placeholder: str | None = None
    options: dict[str, Any] | None = None


class ChatAction(BaseModel):
    """Button attached to a bot message."""

    model_config = ConfigDict(frozen=True, extra="allow")

    message: str | None = None
    url: str | None = None
    help: str | None = None
    survey: list[SurveyField] | None = None
    submit: str | None = None


class ChatMessage(BaseModel):
    # Unknown fields are kept so handlers see the payload as sent.
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    user: User | None = None
    bot: str | None = None
    direct_to: User | None = None
    posted_at: datetime | None = None
    message: str = ""
    message_plain: str = ""
    highlight: bool = False
    is_dm: bool = False
    is_bot: bool = False
    is_system: bool = False
    is_pinned: bool = False
    delay: timedelta | None = None
    actions: dict[str, ChatAction] | list[ChatAction] | None = None


class DeletedMessage(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    user: User | None = None
    bot: str | None = None
    is_bot: bool = False
    deleted_by: User | None = None


class PurgedUser(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    user: User
    purged_by: User | None = None
