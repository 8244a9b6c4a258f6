from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class FilePart(BaseModel):
    type: Literal["file"] = "file"
    url: str
    media_type: str | None = None


class ToolCallPart(BaseModel):
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    input: Any = None


class ToolResultPart(BaseModel):
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    tool_name: str
    result: Any = None


MessagePart = Annotated[
    Union[TextPart, FilePart, ToolCallPart, ToolResultPart],
    Field(discriminator="type"),
]


class ConversationMessage(BaseModel):
    # Role is validated by the normalizer so an unknown role is a
    # gateway error rather than a schema error.
    role: str
    parts: list[MessagePart] = Field(default_factory=list)


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    messages: list[ConversationMessage]
    xml: str | None = None
    previous_xml: str | None = None
    session_id: str | None = None
    access_code: str | None = None


class UsageStats(BaseModel):
    input_tokens: NonNegativeInt
    output_tokens: NonNegativeInt
    cached_input_tokens: NonNegativeInt | None = None


class StartEvent(BaseModel):
    type: Literal["start"] = "start"


class TextDeltaEvent(BaseModel):
    type: Literal["text_delta"] = "text_delta"
    delta: str


class ToolCallStartEvent(BaseModel):
    type: Literal["tool_call_start"] = "tool_call_start"
    tool_call_id: str
    tool_name: str


class ToolInputDeltaEvent(BaseModel):
    type: Literal["tool_input_delta"] = "tool_input_delta"
    tool_call_id: str
    delta: str


class ToolInputCompleteEvent(BaseModel):
    type: Literal["tool_input_complete"] = "tool_input_complete"
    tool_call_id: str
    tool_name: str
    input: Any


class FinishEvent(BaseModel):
    type: Literal["finish"] = "finish"
    usage: UsageStats | None = None


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: str


StreamEvent = Annotated[
    Union[
        StartEvent,
        TextDeltaEvent,
        ToolCallStartEvent,
        ToolInputDeltaEvent,
        ToolInputCompleteEvent,
        FinishEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

TERMINAL_EVENT_TYPES = frozenset({"finish", "error"})
