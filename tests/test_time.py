"""Tests for gap-capped elapsed time estimation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from sessionscope.adapters.base import SessionInfo, TimeRange
from sessionscope.aggregations.time import estimate_hours, session_timestamps

T0 = datetime(2026, 2, 9, 10, 0, tzinfo=timezone.utc)


def _session(*minutes: int, sid: str = "s") -> SessionInfo:
    stamps = [T0 + timedelta(minutes=m) for m in minutes]
    return SessionInfo(sid, "/p", "p", prompts=["x"] * len(stamps), prompt_timestamps=stamps)


def test_no_sessions_is_zero():
    """Nothing to measure means zero hours."""
    assert estimate_hours([]) == 0.0
    assert estimate_hours([SessionInfo("s", "/p", "p")]) == 0.0


def test_single_timestamp_counts_five_minutes():
    """A lone prompt is worth five minutes."""
    assert estimate_hours([_session(0)]) == pytest.approx(5 / 60)


def test_gaps_are_capped():
    """Gaps longer than the cap only count for the cap."""
    assert estimate_hours([_session(0, 10, 70)]) == pytest.approx((10 + 15) / 60)
    assert estimate_hours([_session(0, 10, 70)], gap_cap_minutes=60) == pytest.approx(70 / 60)


def test_overlapping_sessions_share_the_timeline():
    """Timestamps from parallel sessions merge instead of adding up."""
    merged = estimate_hours([_session(0, 10, sid="a"), _session(5, 15, sid="b")])
    assert merged == pytest.approx(15 / 60)


def test_sessions_without_prompt_times_use_their_range():
    """A session with only a time range contributes its start and end."""
    ranged = SessionInfo(
        "r", "/p", "p", time_range=TimeRange(T0, T0 + timedelta(minutes=12))
    )
    assert session_timestamps(ranged) == [T0, T0 + timedelta(minutes=12)]
    assert estimate_hours([ranged]) == pytest.approx(12 / 60)
