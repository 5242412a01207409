"""Minimal publish/subscribe emitter used for auth and room events."""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class EventEmitter:
    """Dispatch named events to registered handlers.

    Handlers run in registration order. A handler may be a coroutine
    function; its coroutine is scheduled on the running loop. Handler
    failures are logged and never reach the emitter.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}
        self._pending: set[asyncio.Task[Any]] = set()

    def on(self, event: str, handler: Handler) -> Handler:
        self._handlers.setdefault(event, []).append(handler)
        return handler

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def once(self, event: str, handler: Handler) -> Handler:
        def _wrapper(*args: Any) -> Any:
            self.off(event, _wrapper)
            return handler(*args)

        return self.on(event, _wrapper)

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))

    def emit(self, event: str, *args: Any) -> int:
        """Call every handler for *event*; returns how many were called."""
        handlers = list(self._handlers.get(event, ()))
        for handler in handlers:
            try:
                result = handler(*args)
            except Exception:
                logger.exception("Handler for %r failed", event)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._on_task_done)
        return len(handlers)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Async event handler failed", exc_info=task.exception())
