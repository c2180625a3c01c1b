"""Provider adapters, canonical session types, and the provider registry."""

from sessionscope.adapters.base import (
    ContentBlock,
    DecodedEvent,
    Message,
    ProviderPaths,
    SessionDetail,
    SessionInfo,
    SessionMeta,
    TextBlock,
    ThinkingBlock,
    TimeRange,
    TokenUsage,
    ToolCallSummary,
    ToolUseBlock,
    TranscriptEntry,
)
from sessionscope.adapters.paths import default_provider_dir, provider_paths
from sessionscope.adapters.registry import (
    KNOWN_PROVIDERS,
    Provider,
    canonical_provider,
    get_adapter,
    is_provider,
)

__all__ = [
    "ContentBlock",
    "DecodedEvent",
    "Message",
    "ProviderPaths",
    "SessionDetail",
    "SessionInfo",
    "SessionMeta",
    "TextBlock",
    "ThinkingBlock",
    "TimeRange",
    "TokenUsage",
    "ToolCallSummary",
    "ToolUseBlock",
    "TranscriptEntry",
    "KNOWN_PROVIDERS",
    "Provider",
    "canonical_provider",
    "get_adapter",
    "is_provider",
    "default_provider_dir",
    "provider_paths",
]
