"""Shared test utilities for writing provider session trees on disk."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any

from sessionscope.adapters.base import ProviderPaths
from sessionscope.adapters.paths import provider_paths
from sessionscope.config.settings import Config

DAY = date(2026, 2, 9)


def local_time(day: date = DAY, hour: int = 10, minute: int = 0) -> datetime:
    """Timezone-aware datetime on ``day`` in the local timezone."""
    return datetime(day.year, day.month, day.day, hour, minute).astimezone()


def iso(moment: datetime) -> str:
    return moment.isoformat()


def epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def write_jsonl(path: Path, rows: list[Any]) -> Path:
    """Write rows as JSON lines; strings are written verbatim."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        for row in rows:
            fh.write((row if isinstance(row, str) else json.dumps(row)) + "\n")
    return path


def make_config(**overrides: Any) -> Config:
    """Build a deterministic Config object for tests."""
    values: dict[str, Any] = {
        "provider": "claude",
        "provider_dir": None,
        "privacy_profile": "local",
        "exclude_projects": (),
        "redact_patterns": (),
        "max_workers": 4,
        "detail_threshold": 3,
        "gap_cap_minutes": 15,
        "top_n": 20,
        "pricing": {},
    }
    values.update(overrides)
    return Config(**values)


# -- Claude -----------------------------------------------------------------


def claude_paths(base: Path) -> ProviderPaths:
    return provider_paths("claude", base)


def claude_prompt(session_id: str, project: str, text: str, moment: datetime) -> dict:
    """One ``history.jsonl`` row."""
    return {
        "display": text,
        "timestamp": epoch_ms(moment),
        "project": project,
        "sessionId": session_id,
    }


def claude_user(text: str, moment: datetime, **extra: Any) -> dict:
    line = {
        "type": "user",
        "timestamp": iso(moment),
        "message": {"role": "user", "content": text},
    }
    line.update(extra)
    return line


def claude_assistant(
    content: list[dict] | str,
    moment: datetime,
    *,
    model: str = "claude-sonnet-4-5-20250929",
    usage: dict | None = None,
    branch: str | None = "main",
    **extra: Any,
) -> dict:
    line: dict[str, Any] = {
        "type": "assistant",
        "timestamp": iso(moment),
        "message": {
            "role": "assistant",
            "model": model,
            "content": content,
            "usage": usage
            or {
                "input_tokens": 100,
                "output_tokens": 50,
                "cache_creation_input_tokens": 10,
                "cache_read_input_tokens": 5,
            },
        },
    }
    if branch is not None:
        line["gitBranch"] = branch
    line.update(extra)
    return line


def write_claude_session(
    base: Path, project: str, session_id: str, lines: list[Any]
) -> Path:
    encoded = project.replace("/", "-")
    return write_jsonl(base / "projects" / encoded / f"{session_id}.jsonl", lines)


# -- Codex ------------------------------------------------------------------


def codex_paths(base: Path) -> ProviderPaths:
    return provider_paths("codex", base)


def codex_prompt(session_id: str, text: str, moment: datetime) -> dict:
    return {"session_id": session_id, "ts": int(moment.timestamp()), "text": text}


def codex_rollout_path(base: Path, session_id: str, day: date = DAY) -> Path:
    folder = base / "sessions" / f"{day:%Y}" / f"{day:%m}" / f"{day:%d}"
    return folder / f"rollout-{day.isoformat()}T10-00-00-{session_id}.jsonl"


def write_codex_rollout(
    base: Path, session_id: str, lines: list[Any], day: date = DAY
) -> Path:
    return write_jsonl(codex_rollout_path(base, session_id, day), lines)


def codex_meta(cwd: str, branch: str | None = "main") -> dict:
    payload: dict[str, Any] = {"id": "x", "cwd": cwd, "model_provider": "openai"}
    if branch is not None:
        payload["git"] = {"branch": branch}
    return {"type": "session_meta", "payload": payload}


def codex_turn_context(model: str, cwd: str | None = None) -> dict:
    return {"type": "turn_context", "payload": {"model": model, "cwd": cwd}}


def codex_message(role: str, text: str, moment: datetime | None = None) -> dict:
    kind = "input_text" if role == "user" else "output_text"
    return {
        "type": "response_item",
        "timestamp": iso(moment or local_time()),
        "payload": {
            "type": "message",
            "role": role,
            "content": [{"type": kind, "text": text}],
        },
    }


def codex_call(name: str, arguments: dict, call_id: str | None = None) -> dict:
    payload: dict[str, Any] = {
        "type": "function_call",
        "name": name,
        "arguments": json.dumps(arguments),
    }
    if call_id is not None:
        payload["call_id"] = call_id
    return {"type": "response_item", "payload": payload}


def codex_output(output: str, call_id: str | None = None) -> dict:
    payload: dict[str, Any] = {"type": "function_call_output", "output": output}
    if call_id is not None:
        payload["call_id"] = call_id
    return {"type": "response_item", "payload": payload}


def codex_tokens(input_tokens: int, output_tokens: int, cached: int = 0) -> dict:
    return {
        "type": "event_msg",
        "payload": {
            "type": "token_count",
            "info": {
                "last_token_usage": {
                    "input_tokens": input_tokens,
                    "cached_input_tokens": cached,
                    "output_tokens": output_tokens,
                }
            },
        },
    }


# -- Pi ---------------------------------------------------------------------


def pi_paths(base: Path) -> ProviderPaths:
    return provider_paths("pi", base)


def pi_session_path(base: Path, session_id: str, day: date = DAY) -> Path:
    name = f"{day.isoformat()}T10-00-00-000Z_{session_id}.jsonl"
    return base / "sessions" / "--work-app--" / name


def write_pi_session(
    base: Path, session_id: str, lines: list[Any], day: date = DAY
) -> Path:
    return write_jsonl(pi_session_path(base, session_id, day), lines)


def pi_header(session_id: str, cwd: str, moment: datetime) -> dict:
    return {"type": "session", "id": session_id, "cwd": cwd, "timestamp": iso(moment)}


def pi_user(text: str, moment: datetime) -> dict:
    return {
        "type": "message",
        "timestamp": iso(moment),
        "message": {"role": "user", "content": [{"type": "text", "text": text}]},
    }


def pi_assistant(
    content: list[dict], moment: datetime, *, cost: float = 0.01, model: str | None = None
) -> dict:
    message: dict[str, Any] = {
        "role": "assistant",
        "content": content,
        "usage": {
            "input": 200,
            "output": 80,
            "cacheRead": 20,
            "cacheWrite": 0,
            "cost": {"total": cost},
        },
    }
    if model:
        message["model"] = model
    return {"type": "message", "timestamp": iso(moment), "message": message}
