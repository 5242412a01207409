from racetime_client.application.dto.race import CreateRaceParams
from racetime_client.application.exceptions import (
    AppError,
    AuthError,
    CreateRaceError,
    DecodeError,
    OutboundQueueFull,
    RequestError,
    TransportError,
    UnknownMessageKind,
)
from racetime_client.client import RacetimeClient
from racetime_client.domain.entities.race import RaceDetails, RaceSummary
from racetime_client.domain.value_objects.enums import ActionKind, MessageKind, RaceStatusValue

__all__ = [
    "ActionKind",
    "AppError",
    "AuthError",
    "CreateRaceError",
    "CreateRaceParams",
    "DecodeError",
    "MessageKind",
    "OutboundQueueFull",
    "RaceDetails",
    "RaceStatusValue",
    "RaceSummary",
    "RacetimeClient",
    "RequestError",
    "TransportError",
    "UnknownMessageKind",
]
