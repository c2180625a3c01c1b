"""Privacy profiles and redaction filters."""

from sessionscope.privacy.config import (
    PRIVACY_PROFILES,
    PROFILES,
    PrivacyConfig,
    PrivacyProfile,
    is_privacy_profile,
    resolve_privacy_config,
)
from sessionscope.privacy.redact import (
    PATH_PLACEHOLDER,
    PATTERN_PLACEHOLDER,
    PROMPT_PLACEHOLDER,
    THINKING_PLACEHOLDER,
    TOOL_RESULT_PLACEHOLDER,
    filter_sessions,
    filter_transcript_entry,
    is_project_excluded,
    redact_prompt,
    redact_string,
)

__all__ = [
    "PRIVACY_PROFILES",
    "PROFILES",
    "PrivacyConfig",
    "PrivacyProfile",
    "is_privacy_profile",
    "resolve_privacy_config",
    "PATH_PLACEHOLDER",
    "PATTERN_PLACEHOLDER",
    "PROMPT_PLACEHOLDER",
    "THINKING_PLACEHOLDER",
    "TOOL_RESULT_PLACEHOLDER",
    "filter_sessions",
    "filter_transcript_entry",
    "is_project_excluded",
    "redact_prompt",
    "redact_string",
]
