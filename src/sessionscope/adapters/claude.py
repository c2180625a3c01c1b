"""Claude adapter: ``history.jsonl`` index plus one JSONL file per session.

Session files live at ``projects/<encoded project>/<session id>.jsonl`` and
every line is self-contained: it carries its own branch, model, usage and
content, so no state crosses lines beyond "first non-empty value wins".
"""

from __future__ import annotations

import glob
from datetime import date
from pathlib import Path
from typing import Any

from sessionscope.adapters.base import (
    ContentBlock,
    DecodedEvent,
    Message,
    ProviderPaths,
    SessionInfo,
    TextBlock,
    ThinkingBlock,
    TokenUsage,
    ToolUseBlock,
    TranscriptEntry,
)
from sessionscope.adapters.common import (
    encode_project_path,
    group_session_prompts,
    in_date_range,
    load_jsonl_dict_lines,
    parse_timestamp,
)
from sessionscope.adapters.schemas import (
    CLAUDE_HISTORY,
    CLAUDE_LINE,
    ClaudeLine,
    ClaudeMessage,
    ClaudeTextBlock,
    ClaudeThinkingBlock,
    ClaudeToolResultBlock,
    ClaudeToolUseBlock,
    decode_line,
)
from sessionscope.sessions.locator import SessionLocator


def list_sessions(
    paths: ProviderPaths,
    date_from: date,
    date_to: date,
    locator: SessionLocator,
    *,
    max_workers: int = 8,
) -> list[SessionInfo]:
    """Group ``history.jsonl`` prompts by session for the date range."""
    rows = []
    for raw in load_jsonl_dict_lines(paths.history_file):
        entry = decode_line(CLAUDE_HISTORY, raw)
        if entry is None:
            continue
        stamp = parse_timestamp(entry.timestamp)
        if stamp is None or not in_date_range(stamp, date_from, date_to):
            continue
        rows.append((entry.session_id, entry.project, entry.display, stamp))
    return group_session_prompts(rows)


def locate(
    paths: ProviderPaths, session_id: str, project: str, locator: SessionLocator
) -> Path | None:
    """Resolve ``projects/<encoded project>/<id>.jsonl``.

    When the project is unknown or its folder does not hold the file, every
    project folder is searched for the session ID.
    """
    if project:
        candidate = paths.projects_dir / encode_project_path(project) / f"{session_id}.jsonl"
        if candidate.is_file():
            return candidate
    if not session_id or not paths.projects_dir.is_dir():
        return None
    for candidate in sorted(paths.projects_dir.glob(f"*/{glob.escape(session_id)}.jsonl")):
        return candidate
    return None


def _usage(message: ClaudeMessage) -> TokenUsage | None:
    if message.usage is None:
        return None
    usage = message.usage
    return TokenUsage(
        input_tokens=usage.input_tokens,
        output_tokens=usage.output_tokens,
        cache_creation_input_tokens=usage.cache_creation_input_tokens,
        cache_read_input_tokens=usage.cache_read_input_tokens,
    )


def _blocks(message: ClaudeMessage) -> str | list[ContentBlock]:
    """Map raw content to canonical blocks, dropping non-canonical block types."""
    if message.content is None:
        return ""
    if isinstance(message.content, str):
        return message.content
    blocks: list[ContentBlock] = []
    for block in message.content:
        if isinstance(block, ClaudeTextBlock):
            blocks.append(TextBlock(text=block.text))
        elif isinstance(block, ClaudeThinkingBlock):
            blocks.append(ThinkingBlock(thinking=block.thinking))
        elif isinstance(block, ClaudeToolUseBlock):
            blocks.append(ToolUseBlock(name=block.name, input=block.input, id=block.id))
    return blocks


def _tool_result(line: ClaudeLine) -> tuple[Any, str | None]:
    """Return ``(payload, tool_use_id)`` for any tool result on the line."""
    results: list[ClaudeToolResultBlock] = []
    if line.message is not None and isinstance(line.message.content, list):
        results = [b for b in line.message.content if isinstance(b, ClaudeToolResultBlock)]
    tool_use_id = results[0].tool_use_id if results else None
    if line.tool_use_result is not None:
        return line.tool_use_result, tool_use_id
    if not results:
        return None, None
    if len(results) == 1:
        return results[0].content, tool_use_id
    return [block.content for block in results], tool_use_id


def _decode(line: ClaudeLine, with_content: bool) -> DecodedEvent:
    message = line.message
    role = message.role if message is not None else None
    branch = line.git_branch if line.git_branch and line.git_branch != "HEAD" else None
    usage = _usage(message) if message is not None else None
    entry = None
    if with_content:
        tool_result, tool_use_id = _tool_result(line)
        canonical = None
        if message is not None and role:
            canonical = Message(
                role=role, content=_blocks(message), model=message.model, usage=usage
            )
        if canonical is not None or tool_result is not None or line.plan_content:
            entry = TranscriptEntry(
                timestamp=parse_timestamp(line.timestamp),
                message=canonical,
                tool_result=tool_result,
                tool_use_id=tool_use_id,
                is_sidechain=line.is_sidechain,
                git_branch=line.git_branch,
                plan_content=line.plan_content,
            )
    return DecodedEvent(
        entry=entry,
        usage=usage,
        model=message.model if message is not None and message.model else None,
        git_branch=branch,
        cwd=line.cwd,
        turn=role in ("user", "assistant"),
    )


def decode(path: Path, *, with_content: bool = True) -> list[DecodedEvent]:
    """Decode one Claude session file; a missing file yields no events."""
    events: list[DecodedEvent] = []
    for raw in load_jsonl_dict_lines(path):
        line = decode_line(CLAUDE_LINE, raw)
        if line is not None:
            events.append(_decode(line, with_content))
    return events
