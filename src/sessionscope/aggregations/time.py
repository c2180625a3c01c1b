"""Elapsed-time estimation over a merged, gap-capped prompt timeline."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from sessionscope.adapters.base import SessionInfo

GAP_CAP_MINUTES = 15
SINGLE_TIMESTAMP_HOURS = 5 / 60


def session_timestamps(session: SessionInfo) -> list[datetime]:
    """Prompt timestamps, or the start/end pair for sessions without any."""
    if session.prompt_timestamps:
        return list(session.prompt_timestamps)
    if session.time_range is None:
        return []
    return [session.time_range.start, session.time_range.end]


def estimate_hours(
    sessions: Iterable[SessionInfo], gap_cap_minutes: int = GAP_CAP_MINUTES
) -> float:
    """Estimate active hours across ``sessions``.

    All timestamps go into one sorted timeline, so overlapping sessions share
    wall-clock time instead of stacking. Each gap between consecutive
    timestamps counts for at most ``gap_cap_minutes``. A lone timestamp
    counts as five minutes.
    """
    timeline = sorted(stamp for s in sessions for stamp in session_timestamps(s))
    if not timeline:
        return 0.0
    if len(timeline) == 1:
        return SINGLE_TIMESTAMP_HOURS
    cap = timedelta(minutes=gap_cap_minutes)
    total = sum(
        (min(later - earlier, cap) for earlier, later in zip(timeline, timeline[1:])),
        timedelta(),
    )
    return total.total_seconds() / 3600
