from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Iterable, Union

from .models import ToolCallStartEvent, ToolInputCompleteEvent, ToolInputDeltaEvent
from .parsing import ToolCallFragment


logger = logging.getLogger(__name__)

ToolCallEvent = Union[ToolCallStartEvent, ToolInputDeltaEvent]


@dataclass
class PendingToolCall:
    call_id: str
    tool_name: str | None = None
    arguments: str = ""


class ToolCallAccumulator:
    """Buffer streamed tool-call argument fragments per call id.

    Continuation fragments that omit ``id`` are attributed through their
    ``index`` to the id last announced at that index. Completion is decided
    once, when the stream reports a finish reason.
    """

    def __init__(self) -> None:
        self._calls: dict[str, PendingToolCall] = {}
        self._ids_by_index: dict[int, str] = {}
        self._finalized = False
        self.dropped = 0

    @property
    def pending(self) -> dict[str, PendingToolCall]:
        return dict(self._calls)

    def has_calls(self) -> bool:
        return bool(self._calls)

    def _resolve_id(self, fragment: ToolCallFragment) -> str | None:
        if fragment.id is not None:
            if fragment.index is not None:
                self._ids_by_index[fragment.index] = fragment.id
            return fragment.id
        if fragment.index is not None:
            return self._ids_by_index.get(fragment.index)
        return None

    def feed(self, fragments: Iterable[ToolCallFragment]) -> list[ToolCallEvent]:
        events: list[ToolCallEvent] = []
        for fragment in fragments:
            call_id = self._resolve_id(fragment)
            if call_id is None:
                logger.debug("ignoring tool-call fragment with unknown index %s", fragment.index)
                continue

            call = self._calls.get(call_id)
            if call is None:
                call = self._calls[call_id] = PendingToolCall(call_id)

            if fragment.name and call.tool_name is None:
                call.tool_name = fragment.name
                events.append(
                    ToolCallStartEvent(tool_call_id=call_id, tool_name=fragment.name)
                )

            if fragment.arguments:
                call.arguments += fragment.arguments
                events.append(
                    ToolInputDeltaEvent(tool_call_id=call_id, delta=fragment.arguments)
                )
        return events

    def finalize(self) -> list[ToolInputCompleteEvent]:
        """Parse every buffered call; only the first call has any effect."""
        if self._finalized:
            return []
        self._finalized = True

        completed: list[ToolInputCompleteEvent] = []
        for call in self._calls.values():
            if call.tool_name is None:
                self.dropped += 1
                logger.warning("dropping tool call %s: no tool name received", call.call_id)
                continue
            try:
                value = json.loads(call.arguments)
            except json.JSONDecodeError as exc:
                self.dropped += 1
                logger.warning(
                    "dropping tool call %s (%s): arguments are not valid JSON: %s",
                    call.call_id,
                    call.tool_name,
                    exc,
                )
                continue
            completed.append(
                ToolInputCompleteEvent(
                    tool_call_id=call.call_id, tool_name=call.tool_name, input=value
                )
            )
        return completed
