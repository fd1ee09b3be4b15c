from typing import Annotated, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from shared.constants import (
    EVENT_CHUNK,
    EVENT_COMPLETE,
    EVENT_ERROR,
    EVENT_STEP,
    EVENT_STEP_COMPLETE,
    EVENT_WEB_SEARCH_COMPLETE,
    EVENT_WEB_SEARCH_START,
)


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class SingleStreamRequest(BaseModel):
    messages: list[ChatMessage]
    temperature: float = 0.7
    model: str
    agent_id: str | None = None


class DualStreamRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_query: str = Field(alias="userQuery")
    messages: list[ChatMessage] = Field(default_factory=list)
    context_files: str = Field(default="", alias="contextFiles")
    agent_context: str = Field(default="", alias="agentContext")
    is_coding_request: bool = Field(default=False, alias="isCodingRequest")
    temperature: float = 0.7
    agent_id: str | None = None

    @classmethod
    def from_conversation(
        cls,
        messages: list[ChatMessage],
        context_files: str = "",
        temperature: float = 0.7,
        agent_id: str | None = None,
    ) -> "DualStreamRequest":
        """Split a full conversation into the dual orchestration payload.

        The last message is the current query, the first system message
        becomes the agent context, and everything else before the query is
        sent as history.
        """
        user_query = messages[-1].content if messages else ""
        agent_context = next((m.content for m in messages if m.role == "system"), "")
        history = [m for m in messages[:-1] if m.role != "system"]
        return cls(
            user_query=user_query,
            messages=history,
            context_files=context_files,
            agent_context=agent_context,
            temperature=temperature,
            agent_id=agent_id,
        )


class _WireEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ChunkEvent(_WireEvent):
    type: Literal["chunk"] = EVENT_CHUNK
    content: str
    step: str | None = None
    is_complete: bool = Field(
        default=False,
        validation_alias=AliasChoices("isComplete", "is_complete"),
        serialization_alias="isComplete",
    )


class StepEvent(_WireEvent):
    type: Literal["step"] = EVENT_STEP
    step: str
    message: str = ""


class StepCompleteEvent(_WireEvent):
    type: Literal["step_complete"] = EVENT_STEP_COMPLETE
    step: str
    duration_ms: float = Field(
        default=0,
        validation_alias=AliasChoices("duration", "durationMs", "duration_ms"),
        serialization_alias="duration",
    )


class CompleteEvent(_WireEvent):
    type: Literal["complete"] = EVENT_COMPLETE
    final_response: str | None = Field(
        default=None,
        validation_alias=AliasChoices("finalResponse", "final_response"),
        serialization_alias="finalResponse",
    )
    response_a: str | None = Field(
        default=None,
        validation_alias=AliasChoices("chatgptResponse", "responseA", "response_a"),
        serialization_alias="chatgptResponse",
    )
    response_b: str | None = Field(
        default=None,
        validation_alias=AliasChoices("claudeResponse", "responseB", "response_b"),
        serialization_alias="claudeResponse",
    )


class ErrorEvent(_WireEvent):
    type: Literal["error"] = EVENT_ERROR
    message: str = Field(
        default="upstream error",
        validation_alias=AliasChoices("error", "message"),
        serialization_alias="error",
    )

    @field_validator("message", mode="before")
    @classmethod
    def _flatten_error_object(cls, value):
        # {"error": {"message": "...", "code": "..."}}
        if isinstance(value, dict):
            return str(value.get("message") or value.get("code") or "upstream error")
        if value is None:
            return "upstream error"
        return value


class WebSearchStartEvent(_WireEvent):
    type: Literal["web_search_start"] = EVENT_WEB_SEARCH_START
    query: str = Field(
        default="",
        validation_alias=AliasChoices("searchQuery", "query"),
        serialization_alias="searchQuery",
    )


class WebSearchCompleteEvent(_WireEvent):
    type: Literal["web_search_complete"] = EVENT_WEB_SEARCH_COMPLETE


class TerminatorEvent(BaseModel):
    """End-of-stream sentinel (``data: [DONE]``); never sent as JSON."""

    type: Literal["terminator"] = "terminator"


WireEvent = Annotated[
    Union[
        ChunkEvent,
        StepEvent,
        StepCompleteEvent,
        CompleteEvent,
        ErrorEvent,
        WebSearchStartEvent,
        WebSearchCompleteEvent,
    ],
    Field(discriminator="type"),
]

StreamEvent = Union[
    ChunkEvent,
    StepEvent,
    StepCompleteEvent,
    CompleteEvent,
    ErrorEvent,
    WebSearchStartEvent,
    WebSearchCompleteEvent,
    TerminatorEvent,
]


class ChatCompletionData(BaseModel):
    content: str = ""
    model: str | None = None
    provider: str | None = None
    tokens: int | None = None
    analytics: dict | None = None


class ChatCompletionResponse(BaseModel):
    success: bool
    data: ChatCompletionData | None = None
    error: str | None = None
