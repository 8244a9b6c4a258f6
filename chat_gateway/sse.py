from __future__ import annotations

import json
from typing import Any


EVENT_CHANNEL = "chat-stream"


def format_sse(event: str, data: dict[str, Any]) -> str:
    payload = json.dumps(data, ensure_ascii=False)
    return f"event: {event}\ndata: {payload}\n\n"
