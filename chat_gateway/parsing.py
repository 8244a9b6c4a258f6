from __future__ import annotations

import codecs
from dataclasses import dataclass
import json
import logging
from typing import Any

from pydantic import ValidationError

from .models import UsageStats
from .upstream import UpstreamError


logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "data: [DONE]"
FINISH_REASONS = frozenset({"stop", "tool_calls"})


class StreamOverflowError(UpstreamError):
    pass


@dataclass(frozen=True)
class ToolCallFragment:
    id: str | None
    index: int | None
    name: str | None
    arguments: str | None


@dataclass(frozen=True)
class ChunkDelta:
    text: str | None = None
    tool_calls: tuple[ToolCallFragment, ...] = ()
    finish_reason: str | None = None
    usage: UsageStats | None = None

    @property
    def finished(self) -> bool:
        return self.finish_reason is not None


def _parse_usage(raw: Any) -> UsageStats | None:
    if not isinstance(raw, dict):
        return None
    details = raw.get("prompt_tokens_details")
    cached = details.get("cached_tokens") if isinstance(details, dict) else None
    try:
        return UsageStats(
            input_tokens=raw.get("prompt_tokens"),
            output_tokens=raw.get("completion_tokens"),
            cached_input_tokens=cached,
        )
    except ValidationError:
        return None


def _parse_tool_calls(raw: Any) -> tuple[ToolCallFragment, ...]:
    if not isinstance(raw, list):
        return ()
    fragments: list[ToolCallFragment] = []
    for call in raw:
        if not isinstance(call, dict):
            continue
        raw_id = call.get("id")
        call_id = raw_id if isinstance(raw_id, str) and raw_id else None
        index = call.get("index") if isinstance(call.get("index"), int) else None
        if call_id is None and index is None:
            continue
        function = call.get("function")
        if not isinstance(function, dict):
            function = {}
        name = function.get("name")
        arguments = function.get("arguments")
        fragments.append(
            ToolCallFragment(
                id=call_id,
                index=index,
                name=name if isinstance(name, str) and name else None,
                arguments=arguments if isinstance(arguments, str) else None,
            )
        )
    return tuple(fragments)


def extract_delta(chunk: Any) -> ChunkDelta | None:
    """Pull the first choice's delta out of one parsed chunk.

    Returns None when the chunk carries nothing the gateway acts on.
    """
    if not isinstance(chunk, dict):
        return None

    choices = chunk.get("choices")
    choice = choices[0] if isinstance(choices, list) and choices else None
    if not isinstance(choice, dict):
        choice = {}
    delta = choice.get("delta")
    if not isinstance(delta, dict):
        delta = {}

    content = delta.get("content")
    text = content if isinstance(content, str) and content else None
    tool_calls = _parse_tool_calls(delta.get("tool_calls"))
    finish_reason = choice.get("finish_reason")
    if finish_reason not in FINISH_REASONS:
        finish_reason = None
    usage = _parse_usage(chunk.get("usage"))

    if text is None and not tool_calls and finish_reason is None and usage is None:
        return None
    return ChunkDelta(
        text=text, tool_calls=tool_calls, finish_reason=finish_reason, usage=usage
    )


class SSEDecoder:
    """Incremental decoder from raw SSE body chunks to chunk deltas.

    Chunk boundaries may fall anywhere, including inside a multi-byte
    character or a JSON value. Only newline-terminated lines are parsed.
    """

    def __init__(self, max_buffer_chars: int | None = None) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._carry = ""
        self._max_buffer_chars = max_buffer_chars
        self.malformed_lines = 0
        self.discarded_tail = 0

    @property
    def buffered(self) -> str:
        return self._carry

    def feed(self, chunk: bytes | str) -> list[ChunkDelta]:
        text = self._utf8.decode(chunk) if isinstance(chunk, bytes) else chunk
        if "\n" not in text:
            self._carry += text
            self._check_overflow()
            return []

        *lines, self._carry = (self._carry + text).split("\n")
        self._check_overflow()

        deltas: list[ChunkDelta] = []
        for line in lines:
            delta = self._parse_line(line)
            if delta is not None:
                deltas.append(delta)
        return deltas

    def finalize(self) -> None:
        """End of body: an unterminated trailing line is dropped, not parsed."""
        self._carry += self._utf8.decode(b"", final=True)
        if self._carry.strip():
            self.discarded_tail += len(self._carry)
            logger.debug("discarding %d unterminated chars at end of stream", len(self._carry))
        self._carry = ""

    def _check_overflow(self) -> None:
        limit = self._max_buffer_chars
        if limit is not None and len(self._carry) > limit:
            size = len(self._carry)
            self._carry = ""
            raise StreamOverflowError(
                f"SSE line exceeded {limit} characters without a newline ({size} buffered)"
            )

    def _parse_line(self, line: str) -> ChunkDelta | None:
        line = line.strip()
        if not line or line == DONE_SENTINEL:
            return None
        if not line.startswith(DATA_PREFIX):
            return None
        try:
            chunk = json.loads(line[len(DATA_PREFIX) :])
        except json.JSONDecodeError:
            self.malformed_lines += 1
            logger.debug("skipping malformed SSE data line: %.200s", line)
            return None
        return extract_delta(chunk)
