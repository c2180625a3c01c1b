"""Tests for per-project rollups."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from sessionscope.adapters.base import SessionMeta
from sessionscope.aggregations.projects import build_project_summaries

T0 = datetime(2026, 2, 9, 9, 0, tzinfo=timezone.utc)


def _meta(sid: str, project: str, minutes: list[int], **fields) -> SessionMeta:
    stamps = [T0 + timedelta(minutes=m) for m in minutes]
    return SessionMeta(
        sid,
        project,
        project.rsplit("/", 1)[-1],
        prompts=["p"] * len(stamps),
        prompt_timestamps=stamps,
        **fields,
    )


def test_groups_by_project_and_sorts_by_hours():
    """Projects are summed and the busiest comes first."""
    metas = [
        _meta("a", "/w/small", [0]),
        _meta("b", "/w/big", [0, 10, 20], model="claude-sonnet-4", git_branch="main",
              total_input_tokens=1_000_000),
        _meta("c", "/w/big", [30], model="gpt-5", git_branch="main", total_cost=2.0),
    ]
    summaries = build_project_summaries(metas)
    assert [s.project_name for s in summaries] == ["big", "small"]
    big = summaries[0]
    assert big.session_count == 2
    assert big.prompt_count == 4
    assert big.estimated_hours == pytest.approx(30 / 60)
    assert big.models == ["claude-sonnet-4", "gpt-5"]
    assert big.branches == ["main"]
    assert big.total_input_tokens == 1_000_000
    assert big.estimated_cost == pytest.approx(3.0 + 2.0)
    assert big.first_active == T0
    assert big.last_active == T0 + timedelta(minutes=30)


def test_empty_input_has_no_projects():
    """No sessions, no summaries."""
    assert build_project_summaries([]) == []
