"""Readers for auxiliary provider artifacts: tasks, todos, plans, project notes,
the project folder listing and the provider's precomputed stats cache.

Tasks, todos and plans are filtered by file modification day in local time.
Missing directories yield empty results.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import frontmatter
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sessionscope.adapters.base import ProviderPaths
from sessionscope.adapters.common import load_jsonl_dict_lines, project_name, to_local_date
from sessionscope.adapters.registry import Provider, canonical_provider
from sessionscope.config.logging import logger
from sessionscope.privacy.config import PrivacyConfig
from sessionscope.privacy.redact import is_project_excluded, redact_string

STATS_CACHE_NAME = "stats-cache.json"


@dataclass
class TaskInfo:
    """One task from ``<tasks>/<list id>/<n>.json``."""

    task_id: str
    list_id: str
    subject: str
    status: str = "pending"
    description: str = ""
    active_form: str | None = None
    blocks: list[str] = field(default_factory=list)
    blocked_by: list[str] = field(default_factory=list)
    modified: datetime | None = None


@dataclass
class TodoItem:
    """One item from a todo list file."""

    content: str
    status: str = "pending"
    active_form: str | None = None
    session_id: str | None = None
    modified: datetime | None = None


@dataclass
class PlanInfo:
    """One markdown plan document."""

    name: str
    title: str
    path: str
    content: str = ""
    modified: datetime | None = None


@dataclass
class ProjectMemory:
    """Project instructions file (``CLAUDE.md`` / ``AGENTS.md``)."""

    project: str
    path: str
    content: str


@dataclass
class ProjectInfo:
    """One project folder under ``<provider>/projects``."""

    encoded_name: str
    path: str
    name: str
    session_count: int = 0
    last_active: datetime | None = None


class DailyActivity(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    date: str
    message_count: int = Field(default=0, alias="messageCount")
    session_count: int = Field(default=0, alias="sessionCount")
    tool_call_count: int = Field(default=0, alias="toolCallCount")


class StatsCache(BaseModel):
    """Precomputed totals the provider keeps in ``stats-cache.json``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    version: int = 0
    last_computed_date: str | None = Field(default=None, alias="lastComputedDate")
    daily_activity: list[DailyActivity] = Field(default_factory=list, alias="dailyActivity")
    total_sessions: int = Field(default=0, alias="totalSessions")
    total_messages: int = Field(default=0, alias="totalMessages")
    hour_counts: dict[str, int] = Field(default_factory=dict, alias="hourCounts")
    model_usage: dict[str, Any] | None = Field(default=None, alias="modelUsage")


def _modified(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


def _in_range(path: Path, date_from: date, date_to: date) -> datetime | None:
    """Return the file's mtime when its local day is in range, else None."""
    try:
        modified = _modified(path)
    except FileNotFoundError:
        return None
    if date_from <= to_local_date(modified) <= date_to:
        return modified
    return None


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.debug("skipping unparseable artifact {}", path)
        return None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def read_tasks(tasks_dir: Path, date_from: date, date_to: date) -> list[TaskInfo]:
    """Read task files modified within ``[date_from, date_to]``."""
    if not tasks_dir.is_dir():
        return []
    tasks: list[TaskInfo] = []
    for path in sorted(tasks_dir.glob("*/*.json")):
        modified = _in_range(path, date_from, date_to)
        if modified is None:
            continue
        payload = _load_json(path)
        if not isinstance(payload, dict):
            continue
        subject = payload.get("subject") or payload.get("content")
        if not isinstance(subject, str) or not subject:
            continue
        tasks.append(
            TaskInfo(
                task_id=str(payload.get("id") or path.stem),
                list_id=path.parent.name,
                subject=subject,
                status=str(payload.get("status") or "pending"),
                description=str(payload.get("description") or ""),
                active_form=payload.get("activeForm"),
                blocks=_string_list(payload.get("blocks")),
                blocked_by=_string_list(payload.get("blockedBy")),
                modified=modified,
            )
        )
    return tasks


def read_todos(todos_dir: Path, date_from: date, date_to: date) -> list[TodoItem]:
    """Read todo list files (JSON arrays) modified within the range."""
    if not todos_dir.is_dir():
        return []
    todos: list[TodoItem] = []
    for path in sorted(todos_dir.glob("*.json")):
        modified = _in_range(path, date_from, date_to)
        if modified is None:
            continue
        payload = _load_json(path)
        if not isinstance(payload, list):
            continue
        session_id = path.stem.split("-agent-", 1)[0]
        for item in payload:
            if not isinstance(item, dict) or not isinstance(item.get("content"), str):
                continue
            todos.append(
                TodoItem(
                    content=item["content"],
                    status=str(item.get("status") or "pending"),
                    active_form=item.get("activeForm"),
                    session_id=session_id,
                    modified=modified,
                )
            )
    return todos


def plan_title(metadata: dict[str, Any], body: str, fallback: str) -> str:
    """Title from front matter, else the first ``# `` heading, else ``fallback``."""
    title = metadata.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    for line in body.splitlines():
        if line.startswith("# "):
            return line[2:].strip() or fallback
    return fallback


def read_plans(plans_dir: Path, date_from: date, date_to: date) -> list[PlanInfo]:
    """Read markdown plans modified within the range."""
    if not plans_dir.is_dir():
        return []
    plans: list[PlanInfo] = []
    for path in sorted(plans_dir.glob("*.md")):
        modified = _in_range(path, date_from, date_to)
        if modified is None:
            continue
        try:
            post = frontmatter.load(str(path))
        except FileNotFoundError:
            continue
        except (yaml.YAMLError, UnicodeDecodeError):
            logger.debug("skipping plan with unparseable front matter {}", path)
            continue
        plans.append(
            PlanInfo(
                name=path.stem,
                title=plan_title(dict(post.metadata), post.content, path.stem),
                path=str(path),
                content=post.content,
                modified=modified,
            )
        )
    return plans


def memory_file_names(provider: str | Provider) -> tuple[str, ...]:
    """Candidate project-note files for a provider, in lookup order."""
    match canonical_provider(provider):
        case Provider.CLAUDE:
            return ("CLAUDE.md", ".claude/CLAUDE.md")
        case Provider.CODEX | Provider.PI:
            return ("AGENTS.md",)


def read_project_memory(
    project_paths: list[str], provider: str | Provider = Provider.CLAUDE
) -> dict[str, ProjectMemory]:
    """Return the first project-note file found under each project path."""
    names = memory_file_names(provider)
    memories: dict[str, ProjectMemory] = {}
    for project in dict.fromkeys(project_paths):
        root = Path(project)
        for name in names:
            path = root / name
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
                continue
            memories[project] = ProjectMemory(project=project, path=str(path), content=content)
            break
    return memories


def decode_project_folder(encoded_name: str) -> str:
    """Best-effort inverse of the folder encoding; dashes inside names are lost."""
    return encoded_name.replace("-", "/")


def _recorded_cwd(session_files: list[Path]) -> str | None:
    """Return the first ``cwd`` recorded in the newest session file that has one."""
    for path in reversed(session_files):
        for row in load_jsonl_dict_lines(path):
            cwd = row.get("cwd")
            if isinstance(cwd, str) and cwd:
                return cwd
    return None


def read_projects(
    projects_dir: Path, privacy: PrivacyConfig | None = None
) -> list[ProjectInfo]:
    """List project folders with their session counts, skipping excluded projects.

    The real project path comes from the ``cwd`` recorded in its session files;
    folders without one fall back to decoding the folder name.
    """
    if not projects_dir.is_dir():
        return []
    projects: list[ProjectInfo] = []
    for folder in sorted(p for p in projects_dir.iterdir() if p.is_dir()):
        session_files = sorted(folder.glob("*.jsonl"), key=lambda p: p.stat().st_mtime)
        path = _recorded_cwd(session_files) or decode_project_folder(folder.name)
        if privacy is not None and is_project_excluded(path, privacy):
            continue
        projects.append(
            ProjectInfo(
                encoded_name=folder.name,
                path=redact_string(path, privacy) if privacy is not None else path,
                name=project_name(path),
                session_count=len(session_files),
                last_active=_modified(session_files[-1]) if session_files else None,
            )
        )
    return projects


def read_stats(path: Path) -> StatsCache | None:
    """Load the provider's stats cache; missing or malformed files give None."""
    payload = _load_json(path)
    if not isinstance(payload, dict):
        return None
    try:
        return StatsCache.model_validate(payload)
    except ValidationError as exc:
        logger.debug("ignoring invalid stats cache {}: {}", path, exc.error_count())
        return None


class ArtifactStore:
    """Artifact readers bound to one provider's directories."""

    def __init__(
        self,
        paths: ProviderPaths,
        provider: str | Provider = Provider.CLAUDE,
        privacy: PrivacyConfig | None = None,
    ) -> None:
        self.paths = paths
        self.provider = canonical_provider(provider)
        self.privacy = privacy

    def tasks(self, date_from: date, date_to: date | None = None) -> list[TaskInfo]:
        return read_tasks(self.paths.tasks_dir, date_from, date_to or date_from)

    def todos(self, date_from: date, date_to: date | None = None) -> list[TodoItem]:
        return read_todos(self.paths.todos_dir, date_from, date_to or date_from)

    def plans(self, date_from: date, date_to: date | None = None) -> list[PlanInfo]:
        return read_plans(self.paths.plans_dir, date_from, date_to or date_from)

    def project_memory(self, project_paths: list[str]) -> dict[str, ProjectMemory]:
        return read_project_memory(project_paths, self.provider)

    def projects(self) -> list[ProjectInfo]:
        return read_projects(self.paths.projects_dir, self.privacy)

    def stats(self) -> StatsCache | None:
        return read_stats(self.paths.base / STATS_CACHE_NAME)
