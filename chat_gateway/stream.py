from __future__ import annotations

from contextlib import aclosing
import logging
from typing import Any, AsyncGenerator, Protocol

from .events import EventEmitter
from .models import TextDeltaEvent, UsageStats
from .parsing import SSEDecoder
from .tool_calls import ToolCallAccumulator
from .upstream import UpstreamError


logger = logging.getLogger(__name__)


class ByteStreamSource(Protocol):
    def stream_bytes(self, payload: dict[str, Any]) -> AsyncGenerator[bytes, None]: ...


async def run_chat_stream(
    upstream: ByteStreamSource,
    payload: dict[str, Any],
    emitter: EventEmitter,
    max_buffer_chars: int | None = None,
) -> None:
    """Drive one chat stream from the upstream body to the emitter.

    Decoder and accumulator state lives only for this call.
    """
    await emitter.start()

    decoder = SSEDecoder(max_buffer_chars=max_buffer_chars)
    tool_calls = ToolCallAccumulator()
    usage: UsageStats | None = None

    try:
        async with aclosing(upstream.stream_bytes(payload)) as chunks:
            async for chunk in chunks:
                for delta in decoder.feed(chunk):
                    if delta.usage is not None:
                        usage = delta.usage
                    if delta.text:
                        await emitter.emit(TextDeltaEvent(delta=delta.text))
                    for event in tool_calls.feed(delta.tool_calls):
                        await emitter.emit(event)
                    if delta.finished:
                        for event in tool_calls.finalize():
                            await emitter.emit(event)
        decoder.finalize()
    except UpstreamError as exc:
        logger.warning("upstream stream failed: %s", exc)
        await emitter.error(str(exc))
        return

    if decoder.malformed_lines or tool_calls.dropped or emitter.failed_emits:
        logger.info(
            "stream finished with %d malformed lines, %d dropped tool calls, %d failed emits",
            decoder.malformed_lines,
            tool_calls.dropped,
            emitter.failed_emits,
        )
    await emitter.finish(usage)
