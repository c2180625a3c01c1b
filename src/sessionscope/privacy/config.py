"""Privacy profiles and their resolution into a concrete redaction policy."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Literal

PrivacyProfile = Literal["local", "shareable", "strict"]

PRIVACY_PROFILES: tuple[str, ...] = ("local", "shareable", "strict")

EMAIL_PATTERN = r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"
IPV4_PATTERN = r"\b(?:\d{1,3}\.){3}\d{1,3}\b"
CREDENTIAL_PATTERNS = (
    r"(?i)\b(?:api[_-]?key|access[_-]?token|auth[_-]?token|token|secret|password|passwd)\s*[:=]\s*[^\s,;]+",
    r"\b(?:sk|pk|rk)-[A-Za-z0-9_-]{16,}",
    r"\bgh[pousr]_[A-Za-z0-9]{20,}",
    r"\bAKIA[0-9A-Z]{16}\b",
)


@dataclass(frozen=True)
class PrivacyConfig:
    """Resolved redaction policy applied to every entry and prompt."""

    strip_tool_results: bool = True
    strip_thinking: bool = True
    redact_absolute_paths: bool = False
    redact_home_dir: bool = False
    redact_prompts: bool = False
    redact_patterns: tuple[str, ...] = ()
    exclude_projects: tuple[str, ...] = ()
    home_dir: str = field(default_factory=lambda: str(Path.home()))


_LOCAL = PrivacyConfig()
_SHAREABLE = replace(_LOCAL, redact_absolute_paths=True, redact_home_dir=True)
_STRICT = replace(
    _SHAREABLE,
    redact_prompts=True,
    redact_patterns=(EMAIL_PATTERN, IPV4_PATTERN, *CREDENTIAL_PATTERNS),
)

PROFILES: dict[str, PrivacyConfig] = {
    "local": _LOCAL,
    "shareable": _SHAREABLE,
    "strict": _STRICT,
}

_TUPLE_FIELDS = {"redact_patterns", "exclude_projects"}


def is_privacy_profile(value: str) -> bool:
    """Return whether ``value`` names a known profile."""
    return value in PROFILES


def resolve_privacy_config(
    profile: str = "local", overrides: Mapping[str, Any] | None = None
) -> PrivacyConfig:
    """Resolve a named profile plus optional field overrides.

    Tuple fields (``redact_patterns``, ``exclude_projects``) extend the
    profile's values; every other override replaces it. Unknown keys are
    ignored. Raises ``ValueError`` for an unknown profile name.
    """
    base = PROFILES.get(profile)
    if base is None:
        raise ValueError(f"unknown privacy profile: {profile}")
    # Rebuild so home_dir reflects the current process environment.
    config = replace(base, home_dir=str(Path.home()))
    if not overrides:
        return config
    known = {item.name for item in fields(PrivacyConfig)}
    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in known or value is None:
            continue
        if key in _TUPLE_FIELDS:
            extra = tuple(value) if not isinstance(value, str) else (value,)
            merged = getattr(config, key) + tuple(v for v in extra if v)
            changes[key] = tuple(dict.fromkeys(merged))
        else:
            changes[key] = value
    return replace(config, **changes)


if __name__ == "__main__":
    strict = resolve_privacy_config("strict", {"exclude_projects": ["secret-*"]})
    assert strict.redact_prompts and strict.exclude_projects == ("secret-*",)
    assert not resolve_privacy_config("local").redact_home_dir
    print(f"privacy profiles: {PRIVACY_PROFILES}")
