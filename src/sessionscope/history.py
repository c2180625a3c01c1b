"""One-stop facade over sessions, artifacts and reports for a single provider.

``create_history()`` wires a ``SessionReader`` and an ``ArtifactStore`` from
the layered config; every argument can be overridden explicitly, which is
how the CLI and the tests use it.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date
from pathlib import Path

from sessionscope.adapters.base import (
    SessionDetail,
    SessionInfo,
    SessionMeta,
    TranscriptEntry,
)
from sessionscope.adapters.paths import provider_paths
from sessionscope.adapters.registry import Provider, canonical_provider
from sessionscope.aggregations.daily import (
    DailySummary,
    build_daily_range,
    build_daily_summary,
)
from sessionscope.aggregations.projects import ProjectSummary, build_project_summaries
from sessionscope.aggregations.time import estimate_hours
from sessionscope.aggregations.tools import ToolUsageReport, build_tool_usage_report
from sessionscope.artifacts import (
    ArtifactStore,
    PlanInfo,
    ProjectInfo,
    ProjectMemory,
    StatsCache,
    TaskInfo,
    TodoItem,
)
from sessionscope.config.settings import Config, get_config
from sessionscope.pricing import ModelPricing, merge_pricing
from sessionscope.privacy.config import PrivacyConfig, resolve_privacy_config
from sessionscope.sessions.locator import DEFAULT_LOCATOR, SessionLocator
from sessionscope.sessions.reader import SessionReader


class History:
    """Query one provider's local session history."""

    def __init__(
        self,
        reader: SessionReader,
        artifacts: ArtifactStore,
        *,
        detail_threshold: int = 3,
        gap_cap_minutes: int = 15,
        top_n: int = 20,
        pricing: dict[str, ModelPricing] | None = None,
    ) -> None:
        self.reader = reader
        self.artifacts = artifacts
        self.detail_threshold = detail_threshold
        self.gap_cap_minutes = gap_cap_minutes
        self.top_n = top_n
        self.pricing = pricing if pricing is not None else merge_pricing()

    @property
    def provider(self) -> Provider:
        return self.reader.provider

    # -- sessions -----------------------------------------------------------

    def list_sessions(
        self, date_from: date, date_to: date | None = None, *, project: str | None = None
    ) -> list[SessionInfo]:
        return self.reader.list_sessions(date_from, date_to, project=project)

    def list_with_meta(
        self, date_from: date, date_to: date | None = None, *, project: str | None = None
    ) -> list[SessionMeta]:
        return self.reader.list_with_meta(date_from, date_to, project=project)

    def count(
        self, date_from: date, date_to: date | None = None, *, project: str | None = None
    ) -> int:
        return self.reader.count_sessions(date_from, date_to, project=project)

    def find(self, session_id: str) -> SessionInfo | None:
        return self.reader.find_session(session_id)

    def peek(self, session: SessionInfo | str) -> SessionMeta:
        return self.reader.peek(session)

    def detail(self, session: SessionInfo | str) -> SessionDetail:
        return self.reader.detail(session)

    def transcript(
        self, session_id: str, project: str | None = None
    ) -> Iterator[TranscriptEntry]:
        """Stream transcript entries; resolves the project from the index when omitted."""
        if project is None:
            found = self.reader.find_session(session_id)
            project = found.project if found and found.project else None
        return self.reader.transcript(session_id, project)

    # -- artifacts ----------------------------------------------------------

    def tasks(self, date_from: date, date_to: date | None = None) -> list[TaskInfo]:
        return self.artifacts.tasks(date_from, date_to)

    def todos(self, date_from: date, date_to: date | None = None) -> list[TodoItem]:
        return self.artifacts.todos(date_from, date_to)

    def plans(self, date_from: date, date_to: date | None = None) -> list[PlanInfo]:
        return self.artifacts.plans(date_from, date_to)

    def project_memory(self, project_paths: list[str]) -> dict[str, ProjectMemory]:
        return self.artifacts.project_memory(project_paths)

    def projects(self) -> list[ProjectInfo]:
        """Project folders with session counts; excluded projects are dropped."""
        return self.artifacts.projects()

    def stats(self) -> StatsCache | None:
        return self.artifacts.stats()

    # -- reports ------------------------------------------------------------

    def daily(self, day: date) -> DailySummary:
        return build_daily_summary(self.reader, day, self.artifacts, self.detail_threshold)

    def daily_range(self, date_from: date, date_to: date) -> list[DailySummary]:
        return build_daily_range(
            self.reader, date_from, date_to, self.artifacts, self.detail_threshold
        )

    def by_project(
        self, date_from: date, date_to: date | None = None, *, project: str | None = None
    ) -> list[ProjectSummary]:
        metas = self.list_with_meta(date_from, date_to, project=project)
        return build_project_summaries(metas, self.pricing, self.gap_cap_minutes)

    def tool_usage(
        self, date_from: date, date_to: date | None = None, *, project: str | None = None
    ) -> ToolUsageReport:
        """Tool usage across every session in the range, short ones included."""
        sessions = self.list_sessions(date_from, date_to, project=project)
        details, _ = self.reader.parse_sessions(sessions, threshold=0)
        return build_tool_usage_report(details, self.top_n)

    def estimate_hours(
        self, date_from: date, date_to: date | None = None, *, project: str | None = None
    ) -> float:
        sessions = self.list_sessions(date_from, date_to, project=project)
        return estimate_hours(sessions, self.gap_cap_minutes)


def create_history(
    provider: str | Provider | None = None,
    provider_dir: str | Path | None = None,
    privacy: str | PrivacyConfig | None = None,
    locator: SessionLocator | None = None,
    config: Config | None = None,
) -> History:
    """Build a ``History`` from config, with explicit arguments taking precedence.

    ``privacy`` is either a profile name or a resolved ``PrivacyConfig``. For a
    profile name, configured project exclusions and extra redaction patterns
    are layered on top of the profile.
    """
    config = config or get_config()
    resolved = canonical_provider(provider or config.provider)
    base_dir = Path(provider_dir).expanduser() if provider_dir else config.provider_dir
    paths = provider_paths(resolved, base_dir)

    if not isinstance(privacy, PrivacyConfig):
        privacy = resolve_privacy_config(
            privacy or config.privacy_profile,
            {
                "exclude_projects": config.exclude_projects,
                "redact_patterns": config.redact_patterns,
            },
        )

    reader = SessionReader(
        resolved,
        paths,
        privacy,
        locator or DEFAULT_LOCATOR,
        max_workers=config.max_workers,
    )
    return History(
        reader,
        ArtifactStore(paths, resolved, privacy),
        detail_threshold=config.detail_threshold,
        gap_cap_minutes=config.gap_cap_minutes,
        top_n=config.top_n,
        pricing=merge_pricing(config.pricing),
    )
