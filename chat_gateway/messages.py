from __future__ import annotations

from typing import Iterable

from .models import ConversationMessage, TextPart


ALLOWED_ROLES = frozenset({"system", "user", "assistant"})


class MessageError(ValueError):
    pass


def message_text(message: ConversationMessage) -> str:
    """Join the message's text parts with newlines; other parts are skipped."""
    return "\n".join(part.text for part in message.parts if isinstance(part, TextPart))


def normalize_messages(messages: Iterable[ConversationMessage]) -> list[dict[str, str]]:
    normalized: list[dict[str, str]] = []
    for message in messages:
        if message.role not in ALLOWED_ROLES:
            raise MessageError(f"Unknown role: {message.role}")
        normalized.append({"role": message.role, "content": message_text(message)})
    return normalized
