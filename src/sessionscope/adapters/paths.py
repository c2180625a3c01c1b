"""Standard file locations under a provider home directory."""

from __future__ import annotations

from pathlib import Path

from sessionscope.adapters.base import ProviderPaths
from sessionscope.adapters.registry import (
    DEFAULT_PROVIDER,
    Provider,
    canonical_provider,
    home_dir_name,
)


def default_provider_dir(provider: str | Provider = DEFAULT_PROVIDER) -> Path:
    """Return ``~/<home dir>`` for a provider."""
    return Path.home() / home_dir_name(canonical_provider(provider))


def provider_paths(
    provider: str | Provider = DEFAULT_PROVIDER,
    provider_dir: str | Path | None = None,
) -> ProviderPaths:
    """Build every standard path relative to the provider directory."""
    if provider_dir:
        base = Path(provider_dir).expanduser()
    else:
        base = default_provider_dir(provider)
    return ProviderPaths(
        base=base,
        history_file=base / "history.jsonl",
        projects_dir=base / "projects",
        sessions_dir=base / "sessions",
        tasks_dir=base / "tasks",
        plans_dir=base / "plans",
        todos_dir=base / "todos",
    )
