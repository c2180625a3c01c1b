"""Per-project rollups over peeked sessions."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime

from sessionscope.adapters.base import SessionMeta
from sessionscope.aggregations.time import (
    GAP_CAP_MINUTES,
    estimate_hours,
    session_timestamps,
)
from sessionscope.pricing import ModelPricing, estimate_cost


@dataclass
class ProjectSummary:
    """Activity, token and cost totals for one project."""

    project: str
    project_name: str
    session_count: int = 0
    prompt_count: int = 0
    estimated_hours: float = 0.0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0
    estimated_cost: float = 0.0
    models: list[str] = field(default_factory=list)
    branches: list[str] = field(default_factory=list)
    first_active: datetime | None = None
    last_active: datetime | None = None


def build_project_summaries(
    metas: Iterable[SessionMeta],
    pricing: Mapping[str, ModelPricing] | None = None,
    gap_cap_minutes: int = GAP_CAP_MINUTES,
) -> list[ProjectSummary]:
    """Group sessions by project, most active project first."""
    grouped: dict[str, list[SessionMeta]] = {}
    for meta in metas:
        grouped.setdefault(meta.project, []).append(meta)

    summaries: list[ProjectSummary] = []
    for project, sessions in grouped.items():
        summary = ProjectSummary(project=project, project_name=sessions[0].project_name)
        stamps: list[datetime] = []
        for meta in sessions:
            summary.session_count += 1
            summary.prompt_count += len(meta.prompts)
            summary.total_input_tokens += meta.total_input_tokens
            summary.total_output_tokens += meta.total_output_tokens
            summary.cache_creation_input_tokens += meta.cache_creation_input_tokens
            summary.cache_read_input_tokens += meta.cache_read_input_tokens
            summary.estimated_cost += estimate_cost(meta, pricing)
            if meta.model and meta.model not in summary.models:
                summary.models.append(meta.model)
            if meta.git_branch and meta.git_branch not in summary.branches:
                summary.branches.append(meta.git_branch)
            stamps.extend(session_timestamps(meta))
        summary.estimated_hours = estimate_hours(sessions, gap_cap_minutes)
        if stamps:
            summary.first_active = min(stamps)
            summary.last_active = max(stamps)
        summaries.append(summary)

    summaries.sort(key=lambda s: (-s.estimated_hours, s.project_name))
    return summaries
