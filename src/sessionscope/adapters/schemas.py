"""Pydantic schemas for raw provider JSONL lines.

Every model ignores unknown keys and tolerates missing optional fields.
Top-level event unions are discriminated by the ``type`` field, so a line
with an unknown or malformed event type fails validation and
:func:`decode_line` returns ``None`` for the caller to skip it.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, TypeVar, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

T = TypeVar("T")


def _to_count(value: Any) -> int:
    """Coerce a token counter to a non-negative int, treating junk as zero."""
    if isinstance(value, bool):
        return 0
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def _to_cost(value: Any) -> float | None:
    """Coerce a reported cost to float, or None when absent or invalid."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


Count = Annotated[int, BeforeValidator(_to_count)]
Cost = Annotated[float | None, BeforeValidator(_to_cost)]


def _dict_items_only(value: Any) -> Any:
    """Drop non-object items from a content block list."""
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    return value


class _Lenient(BaseModel):
    """Base model: ignore unknown keys, allow ``model_*`` field names."""

    model_config = ConfigDict(
        extra="ignore", populate_by_name=True, protected_namespaces=()
    )


# ---------------------------------------------------------------------------
# Format A: Claude
# ---------------------------------------------------------------------------


class ClaudeHistoryEntry(_Lenient):
    """One line of ``~/.claude/history.jsonl``."""

    display: str
    timestamp: float
    project: str
    session_id: str = Field(alias="sessionId")
    pasted_contents: dict[str, Any] | None = Field(
        default=None, alias="pastedContents"
    )


class ClaudeTextBlock(_Lenient):
    type: Literal["text"]
    text: str = ""


class ClaudeThinkingBlock(_Lenient):
    type: Literal["thinking"]
    thinking: str = ""


class ClaudeToolUseBlock(_Lenient):
    type: Literal["tool_use"]
    id: str | None = None
    name: str = ""
    input: dict[str, Any] | None = None


class ClaudeToolResultBlock(_Lenient):
    type: Literal["tool_result"]
    tool_use_id: str | None = None
    content: Any = None
    is_error: bool | None = None


class ClaudeOtherBlock(_Lenient):
    type: str = ""


ClaudeBlock = Annotated[
    Union[
        ClaudeTextBlock,
        ClaudeThinkingBlock,
        ClaudeToolUseBlock,
        ClaudeToolResultBlock,
        ClaudeOtherBlock,
    ],
    Field(union_mode="left_to_right"),
]


class ClaudeUsage(_Lenient):
    input_tokens: Count = 0
    output_tokens: Count = 0
    cache_creation_input_tokens: Count = 0
    cache_read_input_tokens: Count = 0


class ClaudeMessage(_Lenient):
    role: str | None = None
    content: str | list[ClaudeBlock] | None = None
    model: str | None = None
    usage: ClaudeUsage | None = None

    @field_validator("content", mode="before")
    @classmethod
    def _drop_non_dict_blocks(cls, value: Any) -> Any:
        return _dict_items_only(value)


class ClaudeLine(_Lenient):
    """One line of a Claude session file; every line is self-contained."""

    type: str | None = None
    timestamp: Any = None
    session_id: str | None = Field(default=None, alias="sessionId")
    cwd: str | None = None
    git_branch: str | None = Field(default=None, alias="gitBranch")
    is_sidechain: bool = Field(default=False, alias="isSidechain")
    plan_content: str | None = Field(default=None, alias="planContent")
    tool_use_result: Any = Field(default=None, alias="toolUseResult")
    message: ClaudeMessage | None = None

    @field_validator("is_sidechain", mode="before")
    @classmethod
    def _null_sidechain(cls, value: Any) -> Any:
        return False if value is None else value


# ---------------------------------------------------------------------------
# Format B: Codex
# ---------------------------------------------------------------------------


class CodexHistoryEntry(_Lenient):
    """One line of ``~/.codex/history.jsonl``; ``ts`` is unix seconds."""

    session_id: str
    ts: float
    text: str


class CodexGit(_Lenient):
    branch: str | None = None
    commit_hash: str | None = None
    repository_url: str | None = None


class CodexSessionMetaPayload(_Lenient):
    id: str | None = None
    cwd: str | None = None
    git: CodexGit | None = None
    model_provider: str | None = None
    timestamp: Any = None


class CodexTurnContextPayload(_Lenient):
    model: str | None = None
    cwd: str | None = None


class CodexTokenUsage(_Lenient):
    input_tokens: Count = 0
    cached_input_tokens: Count = 0
    output_tokens: Count = 0
    reasoning_output_tokens: Count = 0


class CodexTokenInfo(_Lenient):
    last_token_usage: CodexTokenUsage | None = None


class CodexEventPayload(_Lenient):
    type: str | None = None
    message: str | None = None
    info: CodexTokenInfo | None = None


class CodexResponsePayload(_Lenient):
    type: str | None = None
    role: str | None = None
    content: Any = None
    name: str | None = None
    arguments: Any = None
    input: Any = None
    call_id: str | None = None
    output: Any = None
    summary: Any = None


class CodexSessionMeta(_Lenient):
    type: Literal["session_meta"]
    timestamp: Any = None
    payload: CodexSessionMetaPayload = Field(default_factory=CodexSessionMetaPayload)


class CodexTurnContext(_Lenient):
    type: Literal["turn_context"]
    timestamp: Any = None
    payload: CodexTurnContextPayload = Field(default_factory=CodexTurnContextPayload)


class CodexEventMsg(_Lenient):
    type: Literal["event_msg"]
    timestamp: Any = None
    payload: CodexEventPayload = Field(default_factory=CodexEventPayload)


class CodexResponseItem(_Lenient):
    type: Literal["response_item"]
    timestamp: Any = None
    payload: CodexResponsePayload = Field(default_factory=CodexResponsePayload)


CodexLine = Annotated[
    Union[CodexSessionMeta, CodexTurnContext, CodexEventMsg, CodexResponseItem],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Format C: Pi
# ---------------------------------------------------------------------------


class PiTextBlock(_Lenient):
    type: Literal["text"]
    text: str = ""


class PiThinkingBlock(_Lenient):
    type: Literal["thinking"]
    thinking: str = ""


class PiToolCallBlock(_Lenient):
    type: Literal["toolCall"]
    id: str | None = None
    name: str = ""
    arguments: dict[str, Any] | None = None

    @field_validator("arguments", mode="before")
    @classmethod
    def _object_arguments(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None


class PiOtherBlock(_Lenient):
    type: str = ""


PiBlock = Annotated[
    Union[PiTextBlock, PiThinkingBlock, PiToolCallBlock, PiOtherBlock],
    Field(union_mode="left_to_right"),
]


class PiCost(_Lenient):
    total: Cost = None


class PiUsage(_Lenient):
    input: Count = 0
    output: Count = 0
    cache_read: Count = Field(default=0, alias="cacheRead")
    cache_write: Count = Field(default=0, alias="cacheWrite")
    cost: PiCost | None = None


class PiMessageBody(_Lenient):
    role: str | None = None
    content: str | list[PiBlock] | None = None
    model: str | None = None
    usage: PiUsage | None = None
    tool_call_id: str | None = Field(default=None, alias="toolCallId")
    tool_name: str | None = Field(default=None, alias="toolName")

    @field_validator("content", mode="before")
    @classmethod
    def _drop_non_dict_blocks(cls, value: Any) -> Any:
        return _dict_items_only(value)


class PiSession(_Lenient):
    type: Literal["session"]
    id: str | None = None
    cwd: str | None = None
    timestamp: Any = None


class PiModelChange(_Lenient):
    type: Literal["model_change"]
    timestamp: Any = None
    model_id: str | None = Field(default=None, alias="modelId")
    provider: str | None = None


class PiMessage(_Lenient):
    type: Literal["message"]
    timestamp: Any = None
    message: PiMessageBody | None = None


PiLine = Annotated[
    Union[PiSession, PiModelChange, PiMessage],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

CLAUDE_HISTORY = TypeAdapter(ClaudeHistoryEntry)
CLAUDE_LINE = TypeAdapter(ClaudeLine)
CODEX_HISTORY = TypeAdapter(CodexHistoryEntry)
CODEX_LINE: TypeAdapter[Any] = TypeAdapter(CodexLine)
PI_LINE: TypeAdapter[Any] = TypeAdapter(PiLine)


def decode_line(adapter: TypeAdapter[T], raw: dict[str, Any]) -> T | None:
    """Validate one raw JSON object, returning None when it does not fit."""
    try:
        return adapter.validate_python(raw)
    except ValidationError:
        return None


if __name__ == "__main__":
    line = decode_line(
        CODEX_LINE, {"type": "turn_context", "payload": {"model": "gpt-5-codex"}}
    )
    assert isinstance(line, CodexTurnContext) and line.payload.model == "gpt-5-codex"
    assert decode_line(CODEX_LINE, {"type": "compacted"}) is None
    msg = decode_line(
        CLAUDE_LINE,
        {
            "message": {
                "role": "assistant",
                "content": [{"type": "image"}, {"type": "text", "text": "hi"}],
                "usage": {"input_tokens": "12", "output_tokens": None},
            }
        },
    )
    assert msg is not None and msg.message is not None
    assert msg.message.usage is not None and msg.message.usage.input_tokens == 12
    print("schemas: self-test passed")
