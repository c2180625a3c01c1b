"""Codex adapter: ``history.jsonl`` index plus rollout event streams.

Rollout files (``sessions/**/rollout-<timestamp>-<id>.jsonl``) carry typed
events. Model and branch arrive in their own event types, possibly after the
messages they describe, so the decoder pre-scans for the first-seen values
and carries a running current model forward. Tool outputs are paired with
calls by proximity.
"""

from __future__ import annotations

import json
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import Any

from sessionscope.adapters.base import (
    DecodedEvent,
    Message,
    ProviderPaths,
    SessionInfo,
    ThinkingBlock,
    TokenUsage,
    ToolUseBlock,
    TranscriptEntry,
)
from sessionscope.adapters.common import (
    group_session_prompts,
    in_date_range,
    load_jsonl_dict_lines,
    parse_timestamp,
    project_name,
)
from sessionscope.adapters.schemas import (
    CODEX_HISTORY,
    CODEX_LINE,
    CodexEventMsg,
    CodexResponseItem,
    CodexResponsePayload,
    CodexSessionMeta,
    CodexTurnContext,
    decode_line,
)
from sessionscope.sessions.locator import FileLayout, SessionLocator

ROLLOUT_LAYOUT = FileLayout(
    name="codex",
    pattern=re.compile(
        r"^rollout-(?P<date>\d{4}-\d{2}-\d{2})T\d{2}-\d{2}-\d{2}-(?P<session_id>.+)\.jsonl$"
    ),
    fallback_glob="**/*-{session_id}.jsonl",
)

_TEXT_ITEM_TYPES = {"input_text", "output_text", "text"}
_CALL_TYPES = {"function_call", "custom_tool_call"}
_OUTPUT_TYPES = {"function_call_output", "custom_tool_call_output"}


@dataclass(frozen=True)
class CodexHeader:
    """Session-level facts recovered from the top of a rollout file."""

    cwd: str | None = None
    git_branch: str | None = None
    model: str | None = None
    model_provider: str | None = None


def _branch(line: CodexSessionMeta) -> str | None:
    git = line.payload.git
    if git is None or not git.branch or git.branch == "HEAD":
        return None
    return git.branch


def _decode_lines(path: Path) -> list[Any]:
    lines = []
    for raw in load_jsonl_dict_lines(path):
        line = decode_line(CODEX_LINE, raw)
        if line is not None:
            lines.append(line)
    return lines


def read_header(path: Path) -> CodexHeader:
    """Read cwd, branch and model, stopping once cwd and model are known."""
    cwd = branch = model = model_provider = None
    for line in _decode_lines(path):
        if isinstance(line, CodexSessionMeta):
            cwd = cwd or line.payload.cwd
            branch = branch or _branch(line)
            model_provider = model_provider or line.payload.model_provider
        elif isinstance(line, CodexTurnContext):
            model = model or line.payload.model
        if cwd and model:
            break
    return CodexHeader(
        cwd=cwd, git_branch=branch, model=model, model_provider=model_provider
    )


def session_header(
    paths: ProviderPaths, session_id: str, locator: SessionLocator
) -> CodexHeader:
    """Return the memoized header for one session (empty when not found)."""

    def build() -> CodexHeader:
        path = locator.find(ROLLOUT_LAYOUT, paths.sessions_dir, session_id)
        return read_header(path) if path is not None else CodexHeader()

    return locator.memo(("codex-header", str(paths.sessions_dir), session_id), build)


def list_sessions(
    paths: ProviderPaths,
    date_from: date,
    date_to: date,
    locator: SessionLocator,
    *,
    max_workers: int = 8,
) -> list[SessionInfo]:
    """Group history prompts, then recover each session's cwd from its header."""
    rows = []
    for raw in load_jsonl_dict_lines(paths.history_file):
        entry = decode_line(CODEX_HISTORY, raw)
        if entry is None:
            continue
        stamp = parse_timestamp(entry.ts)
        if stamp is None or not in_date_range(stamp, date_from, date_to):
            continue
        rows.append((entry.session_id, "", entry.text, stamp))
    sessions = group_session_prompts(rows)
    if not sessions:
        return []

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        headers = list(
            pool.map(
                lambda info: session_header(paths, info.session_id, locator), sessions
            )
        )

    resolved: list[SessionInfo] = []
    for info, header in zip(sessions, headers):
        project = header.cwd or f"(unknown)/{info.session_id}"
        resolved.append(replace(info, project=project, project_name=project_name(project)))
    return resolved


def locate(
    paths: ProviderPaths, session_id: str, project: str, locator: SessionLocator
) -> Path | None:
    """Resolve a rollout file through the locator index."""
    return locator.find(ROLLOUT_LAYOUT, paths.sessions_dir, session_id)


def message_text(content: Any) -> str:
    """Join the text items of a Codex message content list."""
    if not isinstance(content, list):
        return ""
    parts = [
        item["text"]
        for item in content
        if isinstance(item, dict)
        and item.get("type") in _TEXT_ITEM_TYPES
        and isinstance(item.get("text"), str)
    ]
    return "\n".join(parts)


def tool_arguments(payload: CodexResponsePayload) -> dict[str, Any] | None:
    """Decode call arguments best-effort; invalid JSON yields None."""
    raw = payload.arguments
    if raw is None and isinstance(payload.input, str):
        return {"input": payload.input}
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _reasoning_text(summary: Any) -> str:
    if not isinstance(summary, list):
        return ""
    return "\n".join(
        item["text"]
        for item in summary
        if isinstance(item, dict) and isinstance(item.get("text"), str)
    )


def _pair_output(pending_calls: list[str], call_id: str | None) -> str | None:
    """Claim the pending call an output answers: by call_id, else the oldest."""
    if call_id is not None and call_id in pending_calls:
        pending_calls.remove(call_id)
        return call_id
    return pending_calls.pop(0) if pending_calls else None


def decode(path: Path, *, with_content: bool = True) -> list[DecodedEvent]:
    """Decode one rollout file into canonical events."""
    lines = _decode_lines(path)
    first_model = next(
        (
            line.payload.model
            for line in lines
            if isinstance(line, CodexTurnContext) and line.payload.model
        ),
        None,
    )
    first_branch = next(
        (
            _branch(line)
            for line in lines
            if isinstance(line, CodexSessionMeta) and _branch(line)
        ),
        None,
    )

    current_model = first_model
    pending_calls: list[str] = []
    events: list[DecodedEvent] = []

    def entry(timestamp: Any, **fields: Any) -> TranscriptEntry | None:
        if not with_content:
            return None
        return TranscriptEntry(
            timestamp=parse_timestamp(timestamp), git_branch=first_branch, **fields
        )

    for index, line in enumerate(lines):
        match line:
            case CodexSessionMeta(payload=payload):
                events.append(DecodedEvent(git_branch=_branch(line), cwd=payload.cwd))
            case CodexTurnContext(payload=payload):
                if payload.model:
                    current_model = payload.model
                events.append(DecodedEvent(model=payload.model, cwd=payload.cwd))
            case CodexEventMsg(payload=payload):
                info = payload.info
                if payload.type != "token_count" or info is None:
                    continue
                if info.last_token_usage is None:
                    continue
                last = info.last_token_usage
                events.append(
                    DecodedEvent(
                        usage=TokenUsage(
                            input_tokens=last.input_tokens,
                            output_tokens=last.output_tokens,
                            cache_read_input_tokens=last.cached_input_tokens,
                        )
                    )
                )
            case CodexResponseItem(payload=payload):
                if payload.type == "message" and payload.role in ("user", "assistant"):
                    events.append(
                        DecodedEvent(
                            entry=entry(
                                line.timestamp,
                                message=Message(
                                    role=payload.role,
                                    content=message_text(payload.content),
                                    model=current_model,
                                ),
                            ),
                            model=current_model,
                            turn=True,
                        )
                    )
                elif payload.type in _CALL_TYPES and payload.name:
                    call_id = payload.call_id or f"call-{index}"
                    pending_calls.append(call_id)
                    block = ToolUseBlock(
                        name=payload.name, input=tool_arguments(payload), id=call_id
                    )
                    events.append(
                        DecodedEvent(
                            entry=entry(
                                line.timestamp,
                                message=Message(
                                    role="assistant", content=[block], model=current_model
                                ),
                            ),
                            model=current_model,
                        )
                    )
                elif payload.type in _OUTPUT_TYPES:
                    tool_use_id = _pair_output(pending_calls, payload.call_id)
                    events.append(
                        DecodedEvent(
                            entry=entry(
                                line.timestamp,
                                tool_result=payload.output,
                                tool_use_id=tool_use_id,
                            )
                        )
                    )
                elif payload.type == "reasoning":
                    block = ThinkingBlock(thinking=_reasoning_text(payload.summary))
                    events.append(
                        DecodedEvent(
                            entry=entry(
                                line.timestamp,
                                message=Message(
                                    role="assistant", content=[block], model=current_model
                                ),
                            ),
                            model=current_model,
                        )
                    )
    return events
