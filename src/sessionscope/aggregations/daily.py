"""Daily activity summaries built from the session reader and artifacts."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, timedelta

from sessionscope.adapters.base import SessionDetail, SessionInfo
from sessionscope.artifacts import (
    ArtifactStore,
    PlanInfo,
    ProjectMemory,
    TaskInfo,
    TodoItem,
)
from sessionscope.config.logging import logger
from sessionscope.sessions.reader import DETAIL_PROMPT_THRESHOLD, SessionReader


@dataclass
class DailySummary:
    """Everything that happened on one local day."""

    date: date
    sessions: list[SessionDetail] = field(default_factory=list)
    short_sessions: list[SessionInfo] = field(default_factory=list)
    tasks: list[TaskInfo] = field(default_factory=list)
    plans: list[PlanInfo] = field(default_factory=list)
    todos: list[TodoItem] = field(default_factory=list)
    total_prompts: int = 0
    total_sessions: int = 0
    projects: list[str] = field(default_factory=list)
    project_memory: dict[str, ProjectMemory] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.total_sessions or self.tasks or self.plans)


def build_daily_summary(
    reader: SessionReader,
    day: date,
    artifacts: ArtifactStore | None = None,
    threshold: int = DETAIL_PROMPT_THRESHOLD,
) -> DailySummary:
    """Summarize ``day``.

    Sessions with at least ``threshold`` prompts are parsed fully, the rest
    stay at the index tier. Session parsing and the artifact reads run
    concurrently and are joined before the summary is assembled.
    """
    artifacts = artifacts or ArtifactStore(reader.paths, reader.provider)
    sessions = reader.list_sessions(day)
    project_paths = list(dict.fromkeys(s.project for s in sessions if s.project))

    with ThreadPoolExecutor(max_workers=min(5, reader.max_workers)) as pool:
        parsed = pool.submit(reader.parse_sessions, sessions, threshold)
        tasks = pool.submit(artifacts.tasks, day)
        plans = pool.submit(artifacts.plans, day)
        todos = pool.submit(artifacts.todos, day)
        memory = pool.submit(artifacts.project_memory, project_paths)
        details, short = parsed.result()
        summary = DailySummary(
            date=day,
            sessions=details,
            short_sessions=short,
            tasks=tasks.result(),
            plans=plans.result(),
            todos=todos.result(),
            project_memory=memory.result(),
        )

    summary.total_sessions = len(sessions)
    summary.total_prompts = sum(len(s.prompts) for s in sessions)
    summary.projects = list(dict.fromkeys(s.project_name for s in sessions))
    logger.debug(
        "{}: {} session(s), {} task(s), {} plan(s)",
        day,
        summary.total_sessions,
        len(summary.tasks),
        len(summary.plans),
    )
    return summary


def build_daily_range(
    reader: SessionReader,
    date_from: date,
    date_to: date,
    artifacts: ArtifactStore | None = None,
    threshold: int = DETAIL_PROMPT_THRESHOLD,
) -> list[DailySummary]:
    """Summaries for each day in ``[date_from, date_to]``, skipping empty days."""
    artifacts = artifacts or ArtifactStore(reader.paths, reader.provider)
    summaries: list[DailySummary] = []
    day = date_from
    while day <= date_to:
        summary = build_daily_summary(reader, day, artifacts, threshold)
        if not summary.is_empty:
            summaries.append(summary)
        day += timedelta(days=1)
    return summaries
