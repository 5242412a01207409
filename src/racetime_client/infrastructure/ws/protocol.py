"""Race room socket frames."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from racetime_client.application.exceptions import DecodeError, UnknownMessageKind
from racetime_client.domain.entities.chat import ChatMessage, DeletedMessage, PurgedUser
from racetime_client.domain.entities.race import RaceDetails
from racetime_client.domain.value_objects.enums import ActionKind, MessageKind


class OutboundAction(BaseModel):
    """Client → race room."""

    model_config = ConfigDict(frozen=True)

    action: ActionKind
    data: dict[str, Any] | None = None

    def encode(self) -> str:
        return self.model_dump_json(exclude_none=True)


class _Frame(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: MessageKind


class ChatHistoryFrame(_Frame):
    messages: list[ChatMessage] = Field(default_factory=list)


class ChatMessageFrame(_Frame):
    message: ChatMessage


class ChatPinFrame(_Frame):
    """A message was pinned or unpinned.

    The server uses ``chat.pin`` for both and the frame does not say which
    happened, so it is emitted as ``chat-pin`` either way.
    """

    message: ChatMessage


class ChatDeleteFrame(_Frame):
    delete: DeletedMessage


class ChatPurgeFrame(_Frame):
    purge: PurgedUser


class ErrorFrame(_Frame):
    errors: list[str] = Field(default_factory=list)


class RaceDataFrame(_Frame):
    race: RaceDetails


# kind -> (event name, frame model); kinds mapped to None emit nothing.
ROUTES: dict[MessageKind, tuple[str, type[_Frame]] | None] = {
    MessageKind.CHAT_HISTORY: ("chat-history", ChatHistoryFrame),
    MessageKind.CHAT_MESSAGE: ("chat-message", ChatMessageFrame),
    # Bots cannot read DMs.
    MessageKind.CHAT_DM: None,
    MessageKind.CHAT_PIN: ("chat-pin", ChatPinFrame),
    MessageKind.CHAT_DELETE: ("chat-delete", ChatDeleteFrame),
    MessageKind.CHAT_PURGE: ("chat-purge", ChatPurgeFrame),
    MessageKind.ERROR: ("race-error", ErrorFrame),
    MessageKind.PONG: None,
    MessageKind.RACE_DATA: ("race-data", RaceDataFrame),
    MessageKind.RACE_RENDERS: None,
}

# Listeners may subscribe to ``chat-unpin``, but no frame kind maps to it
# until the server sends unpins under their own type.
UNPIN_EVENT = "chat-unpin"

TYPED_EVENTS: tuple[str, ...] = (
    *(route[0] for route in ROUTES.values() if route is not None),
    UNPIN_EVENT,
)


@dataclass(frozen=True, slots=True)
class InboundFrame:
    kind: MessageKind
    event: str | None
    frame: _Frame | None


def decode_frame(raw: str | bytes) -> InboundFrame:
    """Decode one inbound frame.

    Raises UnknownMessageKind for an unrecognised ``type`` and DecodeError
    for anything else that does not match the expected shape.
    """
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise DecodeError(f"Frame is not valid JSON: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise DecodeError("Frame has no message type")

    try:
        kind = MessageKind(data["type"])
    except ValueError:
        raise UnknownMessageKind(data["type"]) from None

    route = ROUTES[kind]
    if route is None:
        return InboundFrame(kind=kind, event=None, frame=None)

    event, model = route
    try:
        frame = model.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"Malformed {kind} frame: {exc}") from exc
    return InboundFrame(kind=kind, event=event, frame=frame)
