"""Tiered session reader: index listing, metadata peek, full detail, transcript.

Every tier is built on the same adapter output (a list of ``DecodedEvent``)
so token totals from ``peek`` and ``detail`` agree by construction. Missing
files degrade to empty or zero-valued results; other ``OSError``s propagate.
"""

from __future__ import annotations

from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import fields
from datetime import date
from typing import TypeVar

from sessionscope.adapters.base import (
    DecodedEvent,
    ProviderPaths,
    SessionDetail,
    SessionInfo,
    SessionMeta,
    ToolCallSummary,
    TranscriptEntry,
)
from sessionscope.adapters.paths import provider_paths
from sessionscope.adapters.registry import (
    DEFAULT_PROVIDER,
    Provider,
    canonical_provider,
    get_adapter,
)
from sessionscope.config.logging import logger
from sessionscope.privacy.config import PrivacyConfig, resolve_privacy_config
from sessionscope.privacy.redact import (
    filter_sessions,
    filter_transcript_entry,
    is_project_excluded,
)
from sessionscope.sessions.locator import DEFAULT_LOCATOR, SessionLocator
from sessionscope.sessions.tools import (
    count_thinking_blocks,
    extract_file_paths,
    extract_text,
    extract_tool_calls,
)

DETAIL_PROMPT_THRESHOLD = 3
SUMMARY_MIN_CHARS = 20
SUMMARY_MAX_CHARS = 200
MAX_SUMMARIES = 10

_WHOLE_HISTORY = (date.min, date.max)

M = TypeVar("M", bound=SessionMeta)


def _extend(cls: type[M], session: SessionInfo) -> M:
    """Copy SessionInfo fields into a zero-valued richer session type."""
    values = {item.name: getattr(session, item.name) for item in fields(SessionInfo)}
    values["prompts"] = list(session.prompts)
    values["prompt_timestamps"] = list(session.prompt_timestamps)
    return cls(**values)


def _accumulate(meta: SessionMeta, event: DecodedEvent) -> None:
    """Fold one event's metadata into ``meta``; first non-empty value wins."""
    if meta.git_branch is None and event.git_branch:
        meta.git_branch = event.git_branch
    if meta.model is None and event.model:
        meta.model = event.model
    usage = event.usage
    if usage is not None:
        meta.total_input_tokens += usage.input_tokens
        meta.total_output_tokens += usage.output_tokens
        meta.cache_creation_input_tokens += usage.cache_creation_input_tokens
        meta.cache_read_input_tokens += usage.cache_read_input_tokens
        if usage.cost:
            meta.total_cost = (meta.total_cost or 0.0) + usage.cost
    if event.turn:
        meta.message_count += 1


def _finish(meta: SessionMeta) -> None:
    if meta.total_cost is not None and meta.total_cost <= 0:
        meta.total_cost = None


def summarize_text(text: str) -> str | None:
    """Truncate assistant text for summaries; short replies are ignored."""
    if len(text) <= SUMMARY_MIN_CHARS:
        return None
    if len(text) > SUMMARY_MAX_CHARS:
        return text[:SUMMARY_MAX_CHARS] + "..."
    return text


def filter_by_project(
    sessions: list[SessionInfo], project: str | None
) -> list[SessionInfo]:
    """Keep sessions whose project name contains ``project`` (case-insensitive)."""
    if not project:
        return sessions
    needle = project.lower()
    return [s for s in sessions if needle in s.project_name.lower()]


class SessionReader:
    """Read one provider's sessions at increasing depth and cost."""

    def __init__(
        self,
        provider: str | Provider = DEFAULT_PROVIDER,
        paths: ProviderPaths | None = None,
        privacy: PrivacyConfig | None = None,
        locator: SessionLocator | None = None,
        max_workers: int = 8,
    ) -> None:
        self.provider = canonical_provider(provider)
        self.paths = paths or provider_paths(self.provider)
        self.privacy = privacy or resolve_privacy_config()
        self.locator = locator or DEFAULT_LOCATOR
        self.max_workers = max(1, max_workers)
        self.adapter = get_adapter(self.provider)

    # -- index tier ---------------------------------------------------------

    def list_sessions(
        self,
        date_from: date,
        date_to: date | None = None,
        *,
        project: str | None = None,
    ) -> list[SessionInfo]:
        """List sessions with prompts in ``[date_from, date_to]`` from the index."""
        sessions = self.adapter.list_sessions(
            self.paths,
            date_from,
            date_to or date_from,
            self.locator,
            max_workers=self.max_workers,
        )
        sessions = filter_sessions(sessions, self.privacy)
        sessions = filter_by_project(sessions, project)
        logger.debug(
            "{}: {} session(s) between {} and {}",
            self.provider,
            len(sessions),
            date_from,
            date_to or date_from,
        )
        return sessions

    def count_sessions(
        self, date_from: date, date_to: date | None = None, *, project: str | None = None
    ) -> int:
        """Count index-tier sessions in the date range."""
        return len(self.list_sessions(date_from, date_to, project=project))

    def find_session(self, session_id: str) -> SessionInfo | None:
        """Look up one session across the whole history index."""
        for session in self.list_sessions(*_WHOLE_HISTORY):
            if session.session_id == session_id:
                return session
        return None

    # -- shared decoding ----------------------------------------------------

    def _events(
        self, session_id: str, project: str, with_content: bool
    ) -> list[DecodedEvent]:
        path = self.adapter.locate(self.paths, session_id, project, self.locator)
        if path is None:
            logger.debug("{}: no session file for {}", self.provider, session_id)
            return []
        return self.adapter.decode(path, with_content=with_content)

    def _resolve(self, session: SessionInfo | str) -> SessionInfo:
        if isinstance(session, SessionInfo):
            return session
        found = self.find_session(session)
        if found is not None:
            return found
        return SessionInfo(session_id=session, project="", project_name="")

    # -- peek tier ----------------------------------------------------------

    def peek(self, session: SessionInfo | str) -> SessionMeta:
        """Read branch, model, token counters, cost and message count."""
        info = self._resolve(session)
        meta = _extend(SessionMeta, info)
        if is_project_excluded(info.project, self.privacy):
            return meta
        for event in self._events(info.session_id, info.project, with_content=False):
            _accumulate(meta, event)
        _finish(meta)
        return meta

    def list_with_meta(
        self,
        date_from: date,
        date_to: date | None = None,
        *,
        project: str | None = None,
    ) -> list[SessionMeta]:
        """List sessions and peek each one concurrently."""
        sessions = self.list_sessions(date_from, date_to, project=project)
        return self._map(self.peek, sessions)

    # -- detail tier --------------------------------------------------------

    def detail(self, session: SessionInfo | str) -> SessionDetail:
        """Parse one session fully; every entry passes the privacy filter first."""
        info = self._resolve(session)
        detail = _extend(SessionDetail, info)
        if is_project_excluded(info.project, self.privacy):
            return detail

        tool_calls: dict[str, ToolCallSummary] = {}
        files: dict[str, None] = {}
        for event in self._events(info.session_id, info.project, with_content=True):
            _accumulate(detail, event)
            if event.entry is None:
                continue
            entry = filter_transcript_entry(event.entry, self.privacy)
            if entry is None:
                continue
            if entry.is_sidechain:
                detail.has_sidechains = True
            if entry.plan_content:
                detail.plan_referenced = True
            message = entry.message
            if message is None or message.role != "assistant":
                continue
            summary = summarize_text(extract_text(message.content))
            if summary is not None:
                detail.assistant_summaries.append(summary)
            # Keyed by display name: a later call replaces an earlier one.
            for call in extract_tool_calls(message.content):
                tool_calls[call.display_name] = call
            for path in extract_file_paths(message.content):
                files[path] = None
            detail.thinking_block_count += count_thinking_blocks(message.content)

        detail.assistant_summaries = detail.assistant_summaries[:MAX_SUMMARIES]
        detail.tool_calls = list(tool_calls.values())
        detail.files_referenced = list(files)
        _finish(detail)
        return detail

    def parse_sessions(
        self,
        sessions: list[SessionInfo],
        threshold: int = DETAIL_PROMPT_THRESHOLD,
    ) -> tuple[list[SessionDetail], list[SessionInfo]]:
        """Split sessions into fully parsed (>= threshold prompts) and short ones."""
        substantial = [s for s in sessions if len(s.prompts) >= threshold]
        short = [s for s in sessions if len(s.prompts) < threshold]
        return self._map(self.detail, substantial), short

    # -- transcript tier ----------------------------------------------------

    def transcript(
        self, session_id: str, project: str | None = None
    ) -> Iterator[TranscriptEntry]:
        """Yield privacy-filtered entries lazily; callers may stop at any time."""
        events = self._events(session_id, project or "", with_content=True)
        owner = project or next((e.cwd for e in events if e.cwd), None)
        if owner and is_project_excluded(owner, self.privacy):
            return
        for event in events:
            if event.entry is None:
                continue
            filtered = filter_transcript_entry(event.entry, self.privacy)
            if filtered is not None:
                yield filtered

    # -- helpers ------------------------------------------------------------

    def _map(self, func, sessions: list[SessionInfo]) -> list:
        if not sessions:
            return []
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(pool.map(func, sessions))
