from __future__ import annotations

from enum import StrEnum


class RaceStatusValue(StrEnum):
    OPEN = "open"
    INVITATIONAL = "invitational"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class EntrantStatusValue(StrEnum):
    REQUESTED = "requested"
    INVITED = "invited"
    DECLINED = "declined"
    READY = "ready"
    NOT_READY = "not_ready"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    DID_NOT_FINISH = "dnf"
    DISQUALIFIED = "dq"


class SurveyType(StrEnum):
    INPUT = "input"
    BOOL = "bool"
    RADIO = "radio"
    SELECT = "select"


class ActionKind(StrEnum):
    """Commands a bot can send to a race room."""

    GET_RACE = "getrace"
    GET_HISTORY = "gethistory"
    MESSAGE = "message"
    PIN_MESSAGE = "pin_message"
    UNPIN_MESSAGE = "unpin_message"
    PING = "ping"
    SET_INFO = "setinfo"
    MAKE_OPEN = "make_open"
    MAKE_INVITATIONAL = "make_invitational"
    BEGIN = "begin"
    CANCEL = "cancel"
    INVITE = "invite"
    ACCEPT_REQUEST = "accept_request"
    FORCE_UNREADY = "force_unready"
    REMOVE_ENTRANT = "remove_entrant"
    ADD_MONITOR = "add_monitor"
    REMOVE_MONITOR = "remove_monitor"
    OVERRIDE_STREAM = "override_stream"


class MessageKind(StrEnum):
    """Inbound frame discriminators."""

    CHAT_HISTORY = "chat.history"
    CHAT_MESSAGE = "chat.message"
    CHAT_DM = "chat.dm"
    # Sent for both pinning and unpinning a message.
    CHAT_PIN = "chat.pin"
    CHAT_DELETE = "chat.delete"
    CHAT_PURGE = "chat.purge"
    ERROR = "error"
    PONG = "pong"
    RACE_DATA = "race.data"
    RACE_RENDERS = "race.renders"


class SessionState(StrEnum):
    NOT_READY = "not_ready"
    READY = "ready"
    CLOSED = "closed"
