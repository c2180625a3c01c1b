"""Central config loading from layered TOML files.

Layers (low to high priority):
1. sessionscope/config/default.toml
2. ~/.sessionscope/config.toml
3. <repo>/.sessionscope/config.toml
4. SESSIONSCOPE_CONFIG env path (optional explicit override)

``SESSIONSCOPE_PROVIDER``, ``SESSIONSCOPE_PROVIDER_DIR`` and
``SESSIONSCOPE_PRIVACY`` override the merged TOML values.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from sessionscope.config.project_scope import project_config_path

PACKAGE_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = PACKAGE_DIR / "default.toml"
USER_CONFIG_PATH = Path.home() / ".sessionscope" / "config.toml"
PROJECT_DIR_NAME = ".sessionscope"

_LAST_CONFIG_SOURCES: list[dict[str, str]] = []


def load_toml_file(path: Path | None) -> dict[str, Any]:
    """Load TOML file into a dict; return empty dict on failures."""
    if not path or not path.exists():
        return {}
    try:
        with path.open("rb") as handle:
            payload = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge dict values with override precedence."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _expand(value: Any) -> Path | None:
    """Expand a user path, returning None for empty values."""
    if value in (None, ""):
        return None
    try:
        return Path(str(value)).expanduser()
    except (TypeError, ValueError):
        return None


def _to_non_empty_string(value: Any) -> str:
    """Convert value to stripped string, defaulting to empty string."""
    if value is None:
        return ""
    return str(value).strip()


def _to_int(value: Any, default: int, minimum: int = 1) -> int:
    """Convert value to bounded integer with fallback default."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = default
    return max(minimum, parsed)


def _to_string_tuple(value: Any) -> tuple[str, ...]:
    """Normalize a TOML list/string into a tuple of non-empty strings."""
    if isinstance(value, list):
        return tuple(str(item).strip() for item in value if str(item).strip())
    if isinstance(value, str):
        parts = [item.strip() for item in value.split(",")]
        return tuple(item for item in parts if item)
    return ()


def _to_pricing(value: Any) -> dict[str, dict[str, float]]:
    """Normalize ``[pricing.models]`` tables into ``{model: {rate: float}}``."""
    if not isinstance(value, dict):
        return {}
    table: dict[str, dict[str, float]] = {}
    for model, rates in value.items():
        if not isinstance(rates, dict):
            continue
        parsed: dict[str, float] = {}
        for key, raw in rates.items():
            try:
                parsed[str(key)] = max(0.0, float(raw))
            except (TypeError, ValueError):
                continue
        if parsed:
            table[str(model)] = parsed
    return table


def _section(payload: dict[str, Any], name: str) -> dict[str, Any]:
    """Return one TOML table, or an empty dict when absent or malformed."""
    value = payload.get(name, {})
    return value if isinstance(value, dict) else {}


def _load_layers() -> tuple[dict[str, Any], list[dict[str, str]]]:
    """Load and merge all configuration layers in precedence order."""
    merged: dict[str, Any] = {}
    sources: list[dict[str, str]] = []

    layers: list[tuple[str, Path]] = [
        ("package_default", DEFAULT_CONFIG_PATH),
        ("user", USER_CONFIG_PATH),
    ]

    project_path = project_config_path(PROJECT_DIR_NAME, Path.cwd())
    if project_path:
        layers.append(("project", project_path))

    explicit = os.getenv("SESSIONSCOPE_CONFIG")
    if explicit:
        layers.append(("explicit", Path(explicit).expanduser()))

    for source_name, path in layers:
        payload = load_toml_file(path)
        if payload:
            merged = _deep_merge(merged, payload)
            sources.append({"source": source_name, "path": str(path)})

    return merged, sources


def get_config_sources() -> list[dict[str, str]]:
    """Return last-computed config source list."""
    return [dict(item) for item in _LAST_CONFIG_SOURCES]


@dataclass(frozen=True)
class Config:
    """Effective runtime configuration from TOML layers and environment."""

    provider: str
    provider_dir: Path | None

    privacy_profile: str
    exclude_projects: tuple[str, ...]
    redact_patterns: tuple[str, ...]

    max_workers: int
    detail_threshold: int
    gap_cap_minutes: int
    top_n: int

    pricing: dict[str, dict[str, float]] = field(default_factory=dict)

    def public_dict(self) -> dict[str, Any]:
        """Return serialized config for CLI visibility."""
        return {
            "provider": self.provider,
            "provider_dir": str(self.provider_dir) if self.provider_dir else None,
            "privacy_profile": self.privacy_profile,
            "exclude_projects": list(self.exclude_projects),
            "redact_patterns": list(self.redact_patterns),
            "max_workers": self.max_workers,
            "detail_threshold": self.detail_threshold,
            "gap_cap_minutes": self.gap_cap_minutes,
            "top_n": self.top_n,
            "pricing": {model: dict(rates) for model, rates in self.pricing.items()},
        }


@lru_cache(maxsize=1)
def load_config() -> Config:
    """Load effective config from TOML layers plus environment overrides."""
    load_dotenv()
    toml_data, sources = _load_layers()

    global _LAST_CONFIG_SOURCES
    _LAST_CONFIG_SOURCES = sources

    provider_section = _section(toml_data, "provider")
    privacy = _section(toml_data, "privacy")
    reader = _section(toml_data, "reader")
    aggregate = _section(toml_data, "aggregate")
    pricing = _section(toml_data, "pricing")

    provider = (
        _to_non_empty_string(os.environ.get("SESSIONSCOPE_PROVIDER"))
        or _to_non_empty_string(provider_section.get("name"))
        or "claude"
    ).lower()
    provider_dir = _expand(os.environ.get("SESSIONSCOPE_PROVIDER_DIR")) or _expand(
        provider_section.get("dir")
    )
    privacy_profile = (
        _to_non_empty_string(os.environ.get("SESSIONSCOPE_PRIVACY"))
        or _to_non_empty_string(privacy.get("profile"))
        or "local"
    ).lower()

    return Config(
        provider=provider,
        provider_dir=provider_dir,
        privacy_profile=privacy_profile,
        exclude_projects=_to_string_tuple(privacy.get("exclude_projects")),
        redact_patterns=_to_string_tuple(privacy.get("redact_patterns")),
        max_workers=_to_int(reader.get("max_workers"), 8, minimum=1),
        detail_threshold=_to_int(aggregate.get("detail_threshold"), 3, minimum=1),
        gap_cap_minutes=_to_int(aggregate.get("gap_cap_minutes"), 15, minimum=1),
        top_n=_to_int(aggregate.get("top_n"), 20, minimum=1),
        pricing=_to_pricing(pricing.get("models")),
    )


def get_config() -> Config:
    """Return cached effective configuration."""
    return load_config()


def reload_config() -> Config:
    """Clear config cache and return reloaded configuration."""
    load_config.cache_clear()
    return load_config()


if __name__ == "__main__":
    """Run a real-path config smoke test."""
    cfg = load_config()
    assert cfg.provider
    assert cfg.privacy_profile in {"local", "shareable", "strict"}
    assert cfg.max_workers >= 1
    assert cfg.detail_threshold >= 1
    payload = cfg.public_dict()
    assert "provider" in payload
    print(
        f"""\
Config loaded: \
provider={cfg.provider}, \
privacy={cfg.privacy_profile}, \
sources={[item["source"] for item in get_config_sources()]}"""
    )
