"""Shared adapter helpers for timestamps, JSONL loading, dates, and project names."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Any, Iterable

from sessionscope.adapters.base import SessionInfo, TimeRange
from sessionscope.config.logging import logger


def parse_timestamp(value: Any) -> datetime | None:
    """Parse many timestamp shapes into a timezone-aware UTC datetime."""
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        timestamp = float(value)
        if abs(timestamp) > 1e10:
            timestamp /= 1000.0
        try:
            parsed = datetime.fromtimestamp(timestamp, tz=timezone.utc)
        except (ValueError, OSError, OverflowError):
            return None
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_local_date(value: datetime) -> date:
    """Return the calendar day of ``value`` in the local timezone."""
    return value.astimezone().date()


def in_date_range(value: datetime | None, date_from: date, date_to: date) -> bool:
    """Return whether ``value`` falls on a local day inside ``[date_from, date_to]``."""
    if value is None:
        return False
    return date_from <= to_local_date(value) <= date_to


def read_text_lines(path: Path) -> list[str] | None:
    """Read a whole file as lines, or return None when it does not exist.

    Only a missing file is masked; permission and other I/O errors propagate.
    """
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except (FileNotFoundError, NotADirectoryError):
        return None
    return text.splitlines()


def load_jsonl_dict_lines(path: Path) -> list[dict[str, Any]]:
    """Read a JSONL file and return only dict payload rows.

    Blank lines are ignored; unparseable and non-object lines are skipped.
    A missing file yields an empty list.
    """
    lines = read_text_lines(path)
    if lines is None:
        return []
    entries: list[dict[str, Any]] = []
    skipped = 0
    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            skipped += 1
            continue
        if isinstance(payload, dict):
            entries.append(payload)
        else:
            skipped += 1
    if skipped:
        logger.debug("skipped {} malformed line(s) in {}", skipped, path)
    return entries


def project_name(project_path: str) -> str:
    """Return the last path segment of a project path."""
    tail = project_path.rstrip("/").rsplit("/", 1)[-1]
    return tail or project_path


def encode_project_path(project_path: str) -> str:
    """Encode a project path the way Claude names its project folders."""
    return project_path.replace("/", "-")


def build_session_info(
    session_id: str,
    project: str,
    prompts: list[str],
    timestamps: list[datetime],
) -> SessionInfo:
    """Build a SessionInfo whose time range spans its prompt timestamps."""
    time_range = TimeRange(min(timestamps), max(timestamps)) if timestamps else None
    return SessionInfo(
        session_id=session_id,
        project=project,
        project_name=project_name(project),
        prompts=prompts,
        prompt_timestamps=timestamps,
        time_range=time_range,
    )


def group_session_prompts(
    rows: Iterable[tuple[str, str, str, datetime]],
) -> list[SessionInfo]:
    """Group ``(session_id, project, prompt, timestamp)`` rows into sessions.

    Sessions keep first-appearance order for their prompts and the project of
    their first row; the result is sorted by session start.
    """
    grouped: dict[str, tuple[str, list[str], list[datetime]]] = {}
    for session_id, project, prompt, stamp in rows:
        existing = grouped.get(session_id)
        if existing is None:
            grouped[session_id] = (project, [prompt], [stamp])
        else:
            existing[1].append(prompt)
            existing[2].append(stamp)
    sessions = [
        build_session_info(session_id, project, prompts, stamps)
        for session_id, (project, prompts, stamps) in grouped.items()
    ]
    return sorted(sessions, key=session_start)


def session_start(session: SessionInfo) -> datetime:
    """Sort key: session start, with timeless sessions first."""
    if session.time_range is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    return session.time_range.start


if __name__ == "__main__":
    """Run a real-path smoke test for timestamp parsing and JSONL reading."""
    assert parse_timestamp("2026-02-19T10:00:00+00:00") is not None
    assert parse_timestamp(1_706_000_000) is not None
    assert parse_timestamp(1_706_000_000_000) == parse_timestamp(1_706_000_000)
    assert parse_timestamp("not-a-date") is None

    with TemporaryDirectory() as tmp_dir:
        sample = Path(tmp_dir) / "sample.jsonl"
        sample.write_text('{"a":1}\n{"b":2}\nnot-json\n[1,2,3]\n', encoding="utf-8")
        rows = load_jsonl_dict_lines(sample)
        assert rows == [{"a": 1}, {"b": 2}]
        assert load_jsonl_dict_lines(Path(tmp_dir) / "missing.jsonl") == []

    assert project_name("/Users/dev/work/optic") == "optic"
    assert encode_project_path("/Users/dev/work") == "-Users-dev-work"
