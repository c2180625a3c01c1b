"""Canonical session model shared by every provider adapter and reader tier."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Protocol, TypeAlias

if TYPE_CHECKING:
    from sessionscope.sessions.locator import SessionLocator

ToolCategory = Literal[
    "file_read", "file_write", "shell", "search", "web", "task", "other"
]


@dataclass(frozen=True)
class TimeRange:
    """Inclusive first/last prompt timestamps of a session."""

    start: datetime
    end: datetime


@dataclass
class SessionInfo:
    """Minimal session identity produced by the index tier."""

    session_id: str
    project: str
    project_name: str
    prompts: list[str] = field(default_factory=list)
    prompt_timestamps: list[datetime] = field(default_factory=list)
    time_range: TimeRange | None = None


@dataclass
class SessionMeta(SessionInfo):
    """SessionInfo plus metadata peeked from the session file."""

    total_input_tokens: int = 0
    total_output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0
    message_count: int = 0
    model: str | None = None
    git_branch: str | None = None
    total_cost: float | None = None


@dataclass(frozen=True)
class ToolCallSummary:
    """One distinct tool invocation, keyed by its display name."""

    name: str
    display_name: str
    category: ToolCategory
    target: str | None = None


@dataclass
class SessionDetail(SessionMeta):
    """SessionMeta plus everything the full parse extracts."""

    assistant_summaries: list[str] = field(default_factory=list)
    tool_calls: list[ToolCallSummary] = field(default_factory=list)
    files_referenced: list[str] = field(default_factory=list)
    plan_referenced: bool = False
    thinking_block_count: int = 0
    has_sidechains: bool = False


@dataclass(frozen=True)
class TextBlock:
    """Plain text content."""

    text: str
    type: Literal["text"] = "text"


@dataclass(frozen=True)
class ThinkingBlock:
    """Model reasoning content."""

    thinking: str
    type: Literal["thinking"] = "thinking"


@dataclass(frozen=True)
class ToolUseBlock:
    """A tool invocation emitted by the assistant."""

    name: str
    input: dict[str, Any] | None = None
    id: str | None = None
    type: Literal["tool_use"] = "tool_use"


ContentBlock: TypeAlias = TextBlock | ThinkingBlock | ToolUseBlock


@dataclass(frozen=True)
class TokenUsage:
    """Token counters for one message or one usage event."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0
    cost: float | None = None


@dataclass(frozen=True)
class Message:
    """One normalized conversation message."""

    role: str
    content: str | list[ContentBlock] = ""
    model: str | None = None
    usage: TokenUsage | None = None


@dataclass(frozen=True)
class TranscriptEntry:
    """One normalized conversation event as yielded by the transcript tier."""

    timestamp: datetime | None = None
    message: Message | None = None
    tool_result: Any = None
    tool_use_id: str | None = None
    is_sidechain: bool = False
    git_branch: str | None = None
    plan_content: str | None = None


@dataclass(frozen=True)
class DecodedEvent:
    """Adapter output for one raw line: the canonical intermediate form.

    ``entry`` is what the transcript tier yields; ``usage`` is what the peek
    and detail tiers accumulate. ``turn`` marks user/assistant messages that
    count toward ``message_count``.
    """

    entry: TranscriptEntry | None = None
    usage: TokenUsage | None = None
    model: str | None = None
    git_branch: str | None = None
    cwd: str | None = None
    turn: bool = False


@dataclass(frozen=True)
class ProviderPaths:
    """Standard file locations under one provider home directory."""

    base: Path
    history_file: Path
    projects_dir: Path
    sessions_dir: Path
    tasks_dir: Path
    plans_dir: Path
    todos_dir: Path


class Adapter(Protocol):
    """Provider adapter protocol consumed by the tiered reader."""

    def list_sessions(
        self,
        paths: ProviderPaths,
        date_from: date,
        date_to: date,
        locator: SessionLocator,
        *,
        max_workers: int = 8,
    ) -> list[SessionInfo]:
        """Return index-tier sessions whose prompts fall inside the date range.

        Privacy exclusion and prompt redaction are applied by the caller.
        """

    def locate(
        self, paths: ProviderPaths, session_id: str, project: str, locator: SessionLocator
    ) -> Path | None:
        """Resolve the session file for ``session_id``."""

    def decode(self, path: Path, *, with_content: bool = True) -> list[DecodedEvent]:
        """Decode one session file into canonical events."""


if __name__ == "__main__":
    info = SessionInfo(session_id="demo", project="/tmp/demo", project_name="demo")
    meta = SessionMeta(**vars(info), model="claude-sonnet-4")
    assert meta.total_input_tokens == 0 and meta.model == "claude-sonnet-4"
    entry = TranscriptEntry(
        message=Message(role="assistant", content=[TextBlock(text="ok")])
    )
    assert isinstance(entry.message.content[0], TextBlock)
