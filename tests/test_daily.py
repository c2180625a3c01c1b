"""Tests for daily summaries and day ranges."""

from __future__ import annotations

import json
import os
from datetime import timedelta

from sessionscope.aggregations.daily import build_daily_range, build_daily_summary
from sessionscope.artifacts import ArtifactStore
from sessionscope.privacy import resolve_privacy_config
from sessionscope.sessions.reader import SessionReader
from tests.conftest import APP_PROJECT
from tests.helpers import DAY, claude_paths, local_time


def _reader(base, locator) -> SessionReader:
    return SessionReader(
        "claude", claude_paths(base), resolve_privacy_config("local"), locator, max_workers=2
    )


def _write_task(base, name, subject, day=DAY):
    path = base / "tasks" / "list" / f"{name}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"subject": subject}), encoding="utf-8")
    stamp = local_time(day, 12).timestamp()
    os.utime(path, (stamp, stamp))


def test_daily_summary_splits_sessions_by_prompt_count(claude_home, locator):
    """Sessions at the threshold are parsed; shorter ones stay listed."""
    summary = build_daily_summary(_reader(claude_home, locator), DAY)
    assert [d.session_id for d in summary.sessions] == ["s-long"]
    assert [s.session_id for s in summary.short_sessions] == ["s-short"]
    assert summary.total_sessions == 2
    assert summary.total_prompts == 4
    assert summary.projects == ["app", "lib"]
    assert not summary.is_empty


def test_threshold_is_configurable(claude_home, locator):
    """A threshold of one parses every session."""
    summary = build_daily_summary(_reader(claude_home, locator), DAY, threshold=1)
    assert len(summary.sessions) == 2
    assert summary.short_sessions == []


def test_daily_summary_collects_artifacts(claude_home, locator):
    """Tasks and project notes for the day are attached to the summary."""
    _write_task(claude_home, "1", "Fix login")
    _write_task(claude_home, "2", "Yesterday", DAY - timedelta(days=1))
    reader = _reader(claude_home, locator)
    summary = build_daily_summary(reader, DAY, ArtifactStore(reader.paths))
    assert [t.subject for t in summary.tasks] == ["Fix login"]
    assert summary.plans == [] and summary.todos == []
    # the fixture's projects do not exist on disk
    assert APP_PROJECT not in summary.project_memory


def test_daily_range_skips_empty_days(claude_home, locator):
    """Days without sessions, tasks or plans are dropped from a range."""
    reader = _reader(claude_home, locator)
    summaries = build_daily_range(reader, DAY - timedelta(days=2), DAY + timedelta(days=1))
    assert [s.date for s in summaries] == [DAY - timedelta(days=1), DAY]
    assert summaries[0].total_sessions == 1
    assert summaries[0].sessions == []


def test_day_with_only_a_task_is_kept(claude_home, locator):
    """A task alone makes a day non-empty."""
    later = DAY + timedelta(days=3)
    _write_task(claude_home, "9", "Plan next week", later)
    summaries = build_daily_range(_reader(claude_home, locator), later, later)
    assert len(summaries) == 1
    assert summaries[0].total_sessions == 0
    assert [t.subject for t in summaries[0].tasks] == ["Plan next week"]
