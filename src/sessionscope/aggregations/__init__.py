"""Reports built over sessions: daily summaries, tool usage, time, projects."""

from sessionscope.aggregations.daily import (
    DailySummary,
    build_daily_range,
    build_daily_summary,
)
from sessionscope.aggregations.projects import ProjectSummary, build_project_summaries
from sessionscope.aggregations.time import estimate_hours
from sessionscope.aggregations.tools import (
    CountedItem,
    ToolUsageReport,
    build_tool_usage_report,
)

__all__ = [
    "CountedItem",
    "DailySummary",
    "ProjectSummary",
    "ToolUsageReport",
    "build_daily_range",
    "build_daily_summary",
    "build_project_summaries",
    "build_tool_usage_report",
    "estimate_hours",
]
