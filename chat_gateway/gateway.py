from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator, Callable

from fastapi import FastAPI, Header, HTTPException
from fastapi.responses import StreamingResponse

from .access import AccessDeniedError, check_access
from .config import Settings, configure_logging, get_settings
from .events import EmissionError, EventEmitter
from .messages import MessageError, normalize_messages
from .models import ChatRequest, StreamEvent
from .providers import ConfigError, ResolvedConfig, require_credential, resolve_config
from .request_builder import build_chat_payload
from .sse import EVENT_CHANNEL, format_sse
from .stream import ByteStreamSource, run_chat_stream
from .upstream import UpstreamClient


logger = logging.getLogger(__name__)

UpstreamFactory = Callable[[ResolvedConfig, Settings], ByteStreamSource]


def _flag(value: str | None) -> bool:
    return value is not None and value.strip().lower() in {"1", "true", "yes"}


async def _consume_stream(
    upstream: ByteStreamSource,
    payload: dict,
    emitter: EventEmitter,
    settings: Settings,
    queue: asyncio.Queue[StreamEvent | None],
) -> None:
    try:
        await run_chat_stream(
            upstream, payload, emitter, max_buffer_chars=settings.max_buffer_chars
        )
    except EmissionError as exc:
        logger.error("aborting chat stream: %s", exc)
    except Exception as exc:  # pragma: no cover - safety
        logger.exception("chat stream failed")
        if emitter.started and not emitter.closed:
            await emitter.error(str(exc) or exc.__class__.__name__)
    finally:
        await queue.put(None)


def create_app(upstream_factory: UpstreamFactory | None = None) -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    make_upstream = upstream_factory or UpstreamClient.from_settings
    app = FastAPI()

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok", "scope": "gateway"}

    @app.post("/api/chat")
    async def chat(
        req: ChatRequest,
        x_access_code: str | None = Header(default=None),
        x_ai_provider: str | None = Header(default=None),
        x_ai_model: str | None = Header(default=None),
        x_ai_api_key: str | None = Header(default=None),
        x_ai_base_url: str | None = Header(default=None),
        x_minimal_style: str | None = Header(default=None),
    ):
        try:
            check_access(settings.access_codes, req.access_code or x_access_code)
        except AccessDeniedError as exc:
            raise HTTPException(status_code=403, detail=str(exc))

        try:
            config = resolve_config(
                provider=x_ai_provider,
                model=x_ai_model,
                credential=x_ai_api_key,
                base_url=x_ai_base_url,
            )
            require_credential(config)
            messages = normalize_messages(req.messages)
        except (ConfigError, MessageError) as exc:
            raise HTTPException(status_code=400, detail=str(exc))

        payload = build_chat_payload(
            config,
            messages,
            xml=req.xml,
            previous_xml=req.previous_xml,
            minimal_style=_flag(x_minimal_style),
        )
        upstream = make_upstream(config, settings)
        logger.info(
            "chat request session=%s provider=%s model=%s messages=%d",
            req.session_id,
            config.provider.value,
            config.model,
            len(messages),
        )

        async def event_stream() -> AsyncGenerator[str, None]:
            queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue()
            emitter = EventEmitter(queue.put)
            stream_task = asyncio.create_task(
                _consume_stream(upstream, payload, emitter, settings, queue)
            )
            try:
                while True:
                    event = await queue.get()
                    if event is None:
                        break
                    yield format_sse(EVENT_CHANNEL, event.model_dump(mode="json"))
            finally:
                if not stream_task.done():
                    stream_task.cancel()
                try:
                    await stream_task
                except asyncio.CancelledError:
                    logger.info("chat stream cancelled by client disconnect")

        return StreamingResponse(
            event_stream(), media_type="text/event-stream", headers={"Cache-Control": "no-cache"}
        )

    return app
