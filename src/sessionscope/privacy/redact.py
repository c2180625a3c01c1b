"""Project exclusion and field-level redaction.

Every function here is pure and idempotent: placeholders never match any
redaction rule, so filtering already-filtered data changes nothing.
"""

from __future__ import annotations

import re
from dataclasses import replace
from fnmatch import fnmatchcase
from functools import lru_cache
from typing import Any

from sessionscope.adapters.base import (
    ContentBlock,
    Message,
    SessionInfo,
    TextBlock,
    ThinkingBlock,
    ToolUseBlock,
    TranscriptEntry,
)
from sessionscope.config.logging import logger
from sessionscope.privacy.config import PrivacyConfig

PATTERN_PLACEHOLDER = "[redacted]"
PROMPT_PLACEHOLDER = "[redacted]"
PATH_PLACEHOLDER = "[path]"
TOOL_RESULT_PLACEHOLDER = "[tool result redacted]"
THINKING_PLACEHOLDER = "[thinking redacted]"

# Two or more segments, not part of a URL, a ~/ path or a relative path.
_ABSOLUTE_PATH = re.compile(r"(?<![\w~.:/\]])/(?:[\w.@+-]+/)+[\w.@+-]*")


@lru_cache(maxsize=32)
def _compile(patterns: tuple[str, ...]) -> tuple[re.Pattern[str], ...]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            logger.warning("ignoring invalid redaction pattern {!r}: {}", pattern, exc)
    return tuple(compiled)


@lru_cache(maxsize=8)
def _home_pattern(home_dir: str) -> re.Pattern[str] | None:
    home = home_dir.rstrip("/")
    if not home:
        return None
    return re.compile(re.escape(home) + r"(?![\w.-])")


def is_project_excluded(project: str, config: PrivacyConfig) -> bool:
    """Return whether ``project`` matches an exclusion (substring or glob)."""
    for pattern in config.exclude_projects:
        if not pattern:
            continue
        if pattern in project or fnmatchcase(project, pattern):
            return True
    return False


def redact_string(text: str, config: PrivacyConfig) -> str:
    """Apply configured patterns, then home-dir, then absolute-path redaction."""
    if not text:
        return text
    for pattern in _compile(config.redact_patterns):
        text = pattern.sub(PATTERN_PLACEHOLDER, text)
    if config.redact_home_dir:
        home = _home_pattern(config.home_dir)
        if home is not None:
            text = home.sub("~", text)
    if config.redact_absolute_paths:
        text = _ABSOLUTE_PATH.sub(PATH_PLACEHOLDER, text)
    return text


def redact_value(value: Any, config: PrivacyConfig) -> Any:
    """Recursively redact strings inside JSON-like values."""
    if isinstance(value, str):
        return redact_string(value, config)
    if isinstance(value, dict):
        return {key: redact_value(item, config) for key, item in value.items()}
    if isinstance(value, list):
        return [redact_value(item, config) for item in value]
    return value


def redact_prompt(text: str, config: PrivacyConfig) -> str:
    """Redact one user prompt as shown in index-tier listings."""
    if config.redact_prompts:
        return PROMPT_PLACEHOLDER
    return redact_string(text, config)


def _filter_block(block: ContentBlock, config: PrivacyConfig, is_prompt: bool) -> ContentBlock:
    match block:
        case TextBlock(text=text):
            if is_prompt and config.redact_prompts:
                return replace(block, text=PROMPT_PLACEHOLDER)
            return replace(block, text=redact_string(text, config))
        case ThinkingBlock(thinking=thinking):
            if config.strip_thinking:
                return replace(block, thinking=THINKING_PLACEHOLDER)
            return replace(block, thinking=redact_string(thinking, config))
        case ToolUseBlock(input=tool_input):
            return replace(block, input=redact_value(tool_input, config))
    return block


def _filter_message(message: Message, config: PrivacyConfig) -> Message:
    is_prompt = message.role == "user"
    if isinstance(message.content, str):
        if is_prompt and config.redact_prompts and message.content:
            content: str | list[ContentBlock] = PROMPT_PLACEHOLDER
        else:
            content = redact_string(message.content, config)
    else:
        content = [_filter_block(block, config, is_prompt) for block in message.content]
    return replace(message, content=content)


def filter_transcript_entry(
    entry: TranscriptEntry, config: PrivacyConfig, project: str | None = None
) -> TranscriptEntry | None:
    """Return a redacted copy of ``entry``, or None when its project is excluded."""
    if project is not None and is_project_excluded(project, config):
        return None
    message = _filter_message(entry.message, config) if entry.message else None
    tool_result = entry.tool_result
    if tool_result is not None:
        if config.strip_tool_results:
            tool_result = TOOL_RESULT_PLACEHOLDER
        else:
            tool_result = redact_value(tool_result, config)
    plan_content = entry.plan_content
    if plan_content:
        plan_content = redact_string(plan_content, config)
    return replace(
        entry, message=message, tool_result=tool_result, plan_content=plan_content
    )


def filter_sessions(
    sessions: list[SessionInfo], config: PrivacyConfig
) -> list[SessionInfo]:
    """Drop excluded projects and redact prompts of index-tier sessions."""
    kept: list[SessionInfo] = []
    for session in sessions:
        if is_project_excluded(session.project, config):
            continue
        prompts = [redact_prompt(prompt, config) for prompt in session.prompts]
        kept.append(replace(session, prompts=prompts))
    return kept
