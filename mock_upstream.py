from __future__ import annotations

import json
import asyncio
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

app = FastAPI()

DIAGRAM_XML = (
    '<mxCell id="2" value="Hello" style="rounded=1;whiteSpace=wrap;html=1;" '
    'vertex="1" parent="1"><mxGeometry x="40" y="40" width="120" height="60" '
    'as="geometry"/></mxCell>'
)


def _chunk(delta: dict[str, Any], finish_reason: str | None = None) -> str:
    data = {"choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}]}
    return f"data: {json.dumps(data)}\n\n"


def _build_stream_parts(last_user_text: str) -> list[str]:
    parts = [
        _chunk({"role": "assistant", "content": ""}),
        _chunk({"content": "I'll draw a single rounded box"}),
        _chunk({"content": f" for: {last_user_text}"}),
    ]
    arguments = json.dumps({"xml": DIAGRAM_XML})
    step = 24
    for i in range(0, len(arguments), step):
        call: dict[str, Any] = {"index": 0, "function": {"arguments": arguments[i : i + step]}}
        if i == 0:
            call["id"] = "call_mock_1"
            call["type"] = "function"
            call["function"]["name"] = "display_diagram"
        parts.append(_chunk({"tool_calls": [call]}))
    parts.append(_chunk({}, finish_reason="tool_calls"))
    usage = {"prompt_tokens": 42, "completion_tokens": 17}
    parts.append(f"data: {json.dumps({'choices': [], 'usage': usage})}\n\n")
    parts.append("data: [DONE]\n\n")
    return parts


async def _event_stream(parts: list[str]) -> AsyncGenerator[str, None]:
    for part in parts:
        yield part
        await asyncio.sleep(0.01)


@app.post("/v1/chat/completions")
async def chat_completions(request: Request):
    body: dict[str, Any] = await request.json()
    if body.get("model") == "unknown-model":
        return JSONResponse(
            status_code=404, content={"error": {"message": "model not found"}}
        )
    messages = body.get("messages", [])
    user_texts = [m.get("content", "") for m in messages if m.get("role") == "user"]
    parts = _build_stream_parts(user_texts[-1] if user_texts else "")
    return StreamingResponse(_event_stream(parts), media_type="text/event-stream")
