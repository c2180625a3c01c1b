"""Pi adapter: no index file, sessions are discovered by directory scan.

Filenames look like ``2026-02-05T20-05-58-927Z_<uuid>.jsonl``. Usage carries
a provider-reported cost, assistant content nests ``toolCall`` blocks inline,
and ``model_change`` events set the model for every message that follows.
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone
from pathlib import Path

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
    build_session_info,
    load_jsonl_dict_lines,
    parse_timestamp,
    session_start,
)
from sessionscope.adapters.schemas import (
    PI_LINE,
    PiMessage,
    PiMessageBody,
    PiModelChange,
    PiSession,
    PiTextBlock,
    PiThinkingBlock,
    PiToolCallBlock,
    decode_line,
)
from sessionscope.sessions.locator import FileLayout, SessionLocator, scan_layout

SESSION_LAYOUT = FileLayout(
    name="pi",
    pattern=re.compile(
        r"^(?P<date>\d{4}-\d{2}-\d{2})T[\d-]+Z_(?P<session_id>[0-9a-f-]{36})\.jsonl$"
    ),
    fallback_glob="**/*_{session_id}.jsonl",
)

NO_PROMPT = "(no prompt)"


def _decode_lines(path: Path) -> list[PiSession | PiModelChange | PiMessage]:
    lines = []
    for raw in load_jsonl_dict_lines(path):
        line = decode_line(PI_LINE, raw)
        if line is not None:
            lines.append(line)
    return lines


def _text(body: PiMessageBody) -> str:
    if isinstance(body.content, str):
        return body.content
    if not body.content:
        return ""
    return "\n".join(b.text for b in body.content if isinstance(b, PiTextBlock))


def read_header(path: Path) -> tuple[str | None, datetime | None, str | None]:
    """Return ``(cwd, session timestamp, first user prompt)`` for one file."""
    cwd: str | None = None
    started: datetime | None = None
    prompt: str | None = None
    for line in _decode_lines(path):
        if isinstance(line, PiSession):
            cwd = line.cwd or cwd
            started = parse_timestamp(line.timestamp) or started
        elif (
            isinstance(line, PiMessage)
            and line.message is not None
            and line.message.role == "user"
            and prompt is None
        ):
            prompt = _text(line.message) or None
        if cwd and prompt:
            break
    return cwd, started, prompt


def _session_info(session_id: str, file_date: str, path: Path) -> SessionInfo | None:
    cwd, started, prompt = read_header(path)
    if not cwd:
        return None
    stamp = started or datetime.fromisoformat(file_date).replace(tzinfo=timezone.utc)
    return build_session_info(session_id, cwd, [prompt or NO_PROMPT], [stamp])


def list_sessions(
    paths: ProviderPaths,
    date_from: date,
    date_to: date,
    locator: SessionLocator,
    *,
    max_workers: int = 8,
) -> list[SessionInfo]:
    """Scan session files whose filename date is in range and read their headers."""
    candidates = [
        (session_id, file_date, path)
        for file_date, session_id, path in scan_layout(SESSION_LAYOUT, paths.sessions_dir)
        if date_from.isoformat() <= file_date <= date_to.isoformat()
    ]
    if not candidates:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        infos = list(pool.map(lambda item: _session_info(*item), candidates))
    return sorted((info for info in infos if info is not None), key=session_start)


def locate(
    paths: ProviderPaths, session_id: str, project: str, locator: SessionLocator
) -> Path | None:
    """Resolve a session file through the locator index."""
    return locator.find(SESSION_LAYOUT, paths.sessions_dir, session_id)


def _blocks(body: PiMessageBody) -> list[ContentBlock]:
    if not isinstance(body.content, list):
        return [TextBlock(text=body.content)] if body.content else []
    blocks: list[ContentBlock] = []
    for block in body.content:
        if isinstance(block, PiTextBlock):
            blocks.append(TextBlock(text=block.text))
        elif isinstance(block, PiThinkingBlock):
            blocks.append(ThinkingBlock(thinking=block.thinking))
        elif isinstance(block, PiToolCallBlock) and block.name:
            blocks.append(ToolUseBlock(name=block.name, input=block.arguments, id=block.id))
    return blocks


def _usage(body: PiMessageBody) -> TokenUsage | None:
    if body.usage is None:
        return None
    usage = body.usage
    return TokenUsage(
        input_tokens=usage.input,
        output_tokens=usage.output,
        cache_creation_input_tokens=usage.cache_write,
        cache_read_input_tokens=usage.cache_read,
        cost=usage.cost.total if usage.cost is not None else None,
    )


def decode(path: Path, *, with_content: bool = True) -> list[DecodedEvent]:
    """Decode one Pi session file into canonical events."""
    current_model: str | None = None
    events: list[DecodedEvent] = []
    for line in _decode_lines(path):
        if isinstance(line, PiSession):
            events.append(DecodedEvent(cwd=line.cwd))
            continue
        if isinstance(line, PiModelChange):
            if line.model_id:
                current_model = line.model_id
            events.append(DecodedEvent(model=line.model_id))
            continue
        body = line.message
        if body is None:
            continue
        # Session-level model comes only from model_change; entries may fall back.
        entry_model = current_model or body.model
        usage = _usage(body)
        entry = None
        if with_content:
            timestamp = parse_timestamp(line.timestamp)
            if body.role == "user":
                entry = TranscriptEntry(
                    timestamp=timestamp, message=Message(role="user", content=_text(body))
                )
            elif body.role == "assistant":
                entry = TranscriptEntry(
                    timestamp=timestamp,
                    message=Message(
                        role="assistant", content=_blocks(body), model=entry_model, usage=usage
                    ),
                )
            elif body.role == "toolResult":
                entry = TranscriptEntry(
                    timestamp=timestamp,
                    tool_result=_text(body),
                    tool_use_id=body.tool_call_id,
                )
        events.append(
            DecodedEvent(
                entry=entry,
                usage=usage,
                model=current_model if body.role == "assistant" else None,
                turn=body.role in ("user", "assistant"),
            )
        )
    return events
