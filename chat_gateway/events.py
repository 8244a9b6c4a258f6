from __future__ import annotations

import logging
from typing import Awaitable, Callable

from .models import (
    TERMINAL_EVENT_TYPES,
    ErrorEvent,
    FinishEvent,
    StartEvent,
    StreamEvent,
    UsageStats,
)


logger = logging.getLogger(__name__)

EventSink = Callable[[StreamEvent], Awaitable[None]]


class EmissionError(RuntimeError):
    pass


class EventEmitter:
    """Deliver one stream's events to a single consumer in order.

    Start goes out exactly once before anything else and exactly one
    terminal event (finish or error) goes out last. A failed delivery of a
    non-terminal event is logged and counted; a failed Start or terminal
    delivery raises EmissionError.
    """

    def __init__(self, sink: EventSink) -> None:
        self._sink = sink
        self._started = False
        self._closed = False
        self.failed_emits = 0

    @property
    def started(self) -> bool:
        return self._started

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        if self._started:
            raise RuntimeError("stream already started")
        try:
            await self._sink(StartEvent())
        except Exception as exc:
            raise EmissionError(f"Failed to emit start: {exc}") from exc
        self._started = True

    async def emit(self, event: StreamEvent) -> None:
        if event.type in TERMINAL_EVENT_TYPES or event.type == "start":
            raise ValueError(f"{event.type} events go through start/finish/error")
        self._check_open()
        try:
            await self._sink(event)
        except Exception as exc:
            self.failed_emits += 1
            logger.warning("failed to emit %s event: %s", event.type, exc)

    async def finish(self, usage: UsageStats | None = None) -> None:
        await self._terminate(FinishEvent(usage=usage))

    async def error(self, message: str) -> None:
        await self._terminate(ErrorEvent(error=message))

    async def _terminate(self, event: FinishEvent | ErrorEvent) -> None:
        self._check_open()
        self._closed = True
        try:
            await self._sink(event)
        except Exception as exc:
            raise EmissionError(f"Failed to emit {event.type}: {exc}") from exc

    def _check_open(self) -> None:
        if not self._started:
            raise RuntimeError("stream not started")
        if self._closed:
            raise RuntimeError("stream already closed")
