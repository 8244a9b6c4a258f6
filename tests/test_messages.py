import pytest

from chat_gateway.messages import MessageError, normalize_messages
from chat_gateway.models import ConversationMessage


def _message(role, *parts):
    return ConversationMessage.model_validate({"role": role, "parts": list(parts)})


def test_text_parts_joined_with_newline():
    msg = _message(
        "user",
        {"type": "text", "text": "first"},
        {"type": "text", "text": "second"},
    )
    assert normalize_messages([msg]) == [{"role": "user", "content": "first\nsecond"}]


def test_non_text_parts_are_ignored():
    msg = _message(
        "assistant",
        {"type": "text", "text": "before"},
        {"type": "file", "url": "data:image/png;base64,AAAA", "media_type": "image/png"},
        {
            "type": "tool-call",
            "tool_call_id": "c1",
            "tool_name": "display_diagram",
            "input": {"xml": "<root/>"},
        },
        {"type": "tool-result", "tool_call_id": "c1", "tool_name": "display_diagram", "result": "ok"},
        {"type": "text", "text": "after"},
    )
    assert normalize_messages([msg]) == [{"role": "assistant", "content": "before\nafter"}]


def test_order_and_roles_preserved():
    messages = [
        _message("system", {"type": "text", "text": "s"}),
        _message("user", {"type": "text", "text": "u"}),
        _message("assistant"),
    ]
    assert normalize_messages(messages) == [
        {"role": "system", "content": "s"},
        {"role": "user", "content": "u"},
        {"role": "assistant", "content": ""},
    ]


@pytest.mark.parametrize("texts", [["a"], ["a", "b", "c"], ["", "x", ""], ["one two", "  three"]])
def test_text_round_trips_through_newline_join(texts):
    msg = _message("user", *({"type": "text", "text": t} for t in texts))
    content = normalize_messages([msg])[0]["content"]
    assert content.split("\n") == texts


@pytest.mark.parametrize("role", ["tool", "User", "developer", ""])
def test_unknown_role_fails(role):
    msg = _message(role, {"type": "text", "text": "hi"})
    with pytest.raises(MessageError, match="Unknown role"):
        normalize_messages([msg])
