"""Provider registry: the closed set of supported providers and their adapters."""

from __future__ import annotations

from enum import StrEnum
from typing import assert_never

from sessionscope.adapters.base import Adapter


class Provider(StrEnum):
    """Supported session log providers."""

    CLAUDE = "claude"
    CODEX = "codex"
    PI = "pi"


PROVIDER_ALIASES: dict[str, Provider] = {"openai": Provider.CODEX}

KNOWN_PROVIDERS: tuple[str, ...] = tuple(p.value for p in Provider) + tuple(
    PROVIDER_ALIASES
)

DEFAULT_PROVIDER = Provider.CLAUDE


def is_provider(value: str) -> bool:
    """Return whether ``value`` names a provider or one of its aliases."""
    return value.strip().lower() in KNOWN_PROVIDERS


def canonical_provider(value: str | Provider) -> Provider:
    """Map a provider name or alias to its canonical ``Provider`` member.

    Raises ``ValueError`` for unknown names; validating user input is the
    caller's job.
    """
    name = str(value).strip().lower()
    if name in PROVIDER_ALIASES:
        return PROVIDER_ALIASES[name]
    return Provider(name)


def home_dir_name(provider: Provider) -> str:
    """Return the provider's home directory name under ``~``."""
    match provider:
        case Provider.CLAUDE:
            return ".claude"
        case Provider.CODEX:
            return ".codex"
        case Provider.PI:
            return ".pi"
        case _:
            assert_never(provider)


def get_adapter(provider: Provider) -> Adapter:
    """Return the adapter module that decodes ``provider`` session files."""
    match provider:
        case Provider.CLAUDE:
            from sessionscope.adapters import claude

            return claude
        case Provider.CODEX:
            from sessionscope.adapters import codex

            return codex
        case Provider.PI:
            from sessionscope.adapters import pi

            return pi
        case _:
            assert_never(provider)


if __name__ == "__main__":
    assert canonical_provider("openai") is Provider.CODEX
    assert canonical_provider("Claude") is Provider.CLAUDE
    assert is_provider("pi") and not is_provider("cursor")
    for member in Provider:
        assert get_adapter(member) is not None
    print(f"registry: providers={KNOWN_PROVIDERS}")
