"""Tool usage statistics over fully parsed sessions."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from sessionscope.adapters.base import SessionDetail

TOP_N = 20


@dataclass(frozen=True)
class CountedItem:
    """A value and how many times it was seen."""

    name: str
    count: int


@dataclass
class ToolUsageReport:
    """Tool invocation counts by display name and category, plus top targets."""

    by_name: dict[str, int] = field(default_factory=dict)
    by_category: dict[str, int] = field(default_factory=dict)
    top_files: list[CountedItem] = field(default_factory=list)
    top_commands: list[CountedItem] = field(default_factory=list)
    total: int = 0


def _ranked(counter: Counter[str], top_n: int) -> list[CountedItem]:
    return [CountedItem(name, count) for name, count in counter.most_common(top_n)]


def build_tool_usage_report(
    details: Iterable[SessionDetail], top_n: int = TOP_N
) -> ToolUsageReport:
    """Tally tool calls across sessions.

    Calls are counted after per-session deduplication by display name, so
    each count is the number of sessions that used that tool.
    """
    by_name: Counter[str] = Counter()
    by_category: Counter[str] = Counter()
    files: Counter[str] = Counter()
    commands: Counter[str] = Counter()
    for detail in details:
        for call in detail.tool_calls:
            by_name[call.display_name] += 1
            by_category[call.category] += 1
            if call.category == "shell" and call.target:
                commands[call.target] += 1
        files.update(detail.files_referenced)
    return ToolUsageReport(
        by_name=dict(by_name.most_common()),
        by_category=dict(by_category.most_common()),
        top_files=_ranked(files, top_n),
        top_commands=_ranked(commands, top_n),
        total=sum(by_name.values()),
    )
