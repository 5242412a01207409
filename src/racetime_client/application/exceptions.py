from __future__ import annotations


class AppError(Exception):
    """Base error for everything raised by the client."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class AuthError(AppError):
    pass


class RequestError(AppError):
    """A REST call failed; ``body`` holds the response text when there was one."""

    def __init__(self, detail: str = "", *, status: int | None = None, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(detail)


class CreateRaceError(RequestError):
    pass


class TransportError(AppError):
    pass


class DecodeError(AppError):
    pass


class UnknownMessageKind(DecodeError):
    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"Unknown message type: {kind}")


class OutboundQueueFull(AppError):
    pass
