"""Small argument parsing helpers shared by CLI commands."""

from __future__ import annotations

from datetime import date


def parse_csv(raw: str | None) -> list[str]:
    """Split a comma-delimited string into trimmed non-empty values."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_date(raw: str) -> date:
    """Parse a ``YYYY-MM-DD`` calendar date."""
    value = (raw or "").strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"date must be YYYY-MM-DD, got: {raw!r}") from None


def parse_limit(raw: int | None) -> int | None:
    """Keep positive limits; zero, negative or missing means no limit."""
    if raw is None or raw <= 0:
        return None
    return raw


def resolve_date_range(
    day: str | None,
    date_from: str | None,
    date_to: str | None,
    today: date | None = None,
) -> tuple[date, date]:
    """Resolve ``--date`` / ``--from`` / ``--to`` into an inclusive range.

    ``--date`` wins over the range flags. A missing bound defaults to the
    other bound, and both default to today.
    """
    today = today or date.today()
    if day:
        single = parse_date(day)
        return single, single
    start = parse_date(date_from) if date_from else None
    end = parse_date(date_to) if date_to else None
    start = start or end or today
    end = end or max(start, today)
    if end < start:
        raise ValueError(f"--from {start} is after --to {end}")
    return start, end


if __name__ == "__main__":
    """Run a real-path smoke test for argument parsing helpers."""
    assert parse_csv(" session_id, prompts ,, model ") == ["session_id", "prompts", "model"]
    assert parse_date("2026-02-09") == date(2026, 2, 9)
    assert parse_limit(0) is None and parse_limit(5) == 5
    ref = date(2026, 2, 10)
    assert resolve_date_range("2026-02-09", None, None, ref) == (date(2026, 2, 9),) * 2
    assert resolve_date_range(None, "2026-02-01", None, ref) == (date(2026, 2, 1), ref)
    assert resolve_date_range(None, None, None, ref) == (ref, ref)
