from __future__ import annotations

import copy
from typing import Any

from .prompts import build_diagram_context, get_system_prompt
from .providers import ResolvedConfig


DIAGRAM_TOOLS: tuple[dict[str, Any], ...] = (
    {
        "type": "function",
        "function": {
            "name": "display_diagram",
            "description": (
                "Display a diagram on draw.io. Pass ONLY the mxCell elements - "
                "wrapper tags and root cells are added automatically."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "xml": {
                        "type": "string",
                        "description": "XML string to be displayed on draw.io",
                    }
                },
                "required": ["xml"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "edit_diagram",
            "description": (
                "Edit the current diagram by ID-based operations "
                "(update/add/delete cells)."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "operations": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "type": {
                                    "type": "string",
                                    "enum": ["update", "add", "delete"],
                                },
                                "cell_id": {"type": "string"},
                                "new_xml": {"type": "string"},
                            },
                            "required": ["type", "cell_id"],
                        },
                    }
                },
                "required": ["operations"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "append_diagram",
            "description": (
                "Continue generating diagram XML when previous display_diagram "
                "output was truncated."
            ),
            "parameters": {
                "type": "object",
                "properties": {"xml": {"type": "string"}},
                "required": ["xml"],
            },
        },
    },
)


def build_chat_payload(
    config: ResolvedConfig,
    messages: list[dict[str, str]],
    xml: str | None = None,
    previous_xml: str | None = None,
    minimal_style: bool = False,
) -> dict[str, Any]:
    """Assemble the streaming chat-completions body sent upstream."""
    outbound = [
        {"role": "system", "content": get_system_prompt(config.model, minimal_style)}
    ]
    context = build_diagram_context(xml, previous_xml)
    if context is not None:
        outbound.append({"role": "system", "content": context})
    outbound.extend(messages)

    return {
        "model": config.model,
        "messages": outbound,
        "tools": copy.deepcopy(list(DIAGRAM_TOOLS)),
        "stream": True,
    }
