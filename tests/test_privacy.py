"""Tests for privacy profiles, redaction and transcript filtering."""

from __future__ import annotations

import pytest

from sessionscope.adapters.base import (
    Message,
    SessionInfo,
    TextBlock,
    ThinkingBlock,
    ToolUseBlock,
    TranscriptEntry,
)
from sessionscope.privacy import (
    PATH_PLACEHOLDER,
    PROMPT_PLACEHOLDER,
    THINKING_PLACEHOLDER,
    TOOL_RESULT_PLACEHOLDER,
    PrivacyConfig,
    filter_sessions,
    filter_transcript_entry,
    is_project_excluded,
    redact_string,
    resolve_privacy_config,
)

HOME = "/home/dev"


def _profile(name: str, **overrides) -> PrivacyConfig:
    return resolve_privacy_config(name, {"home_dir": HOME, **overrides})


def _entry() -> TranscriptEntry:
    return TranscriptEntry(
        message=Message(
            role="assistant",
            content=[
                TextBlock(text="Edited /home/dev/work/app/main.py, mail me at dev@example.com"),
                ThinkingBlock(thinking="secret plan"),
                ToolUseBlock(name="Read", input={"file_path": "/srv/data/x.csv", "n": 3}),
            ],
        ),
        tool_result={"stdout": "token=abc123"},
        plan_content="Deploy to 10.0.0.12 from /opt/deploy/run.sh",
    )


def test_profiles_are_progressively_stricter():
    """local < shareable < strict in every redaction switch."""
    local, shareable, strict = (_profile(n) for n in ("local", "shareable", "strict"))
    assert local.strip_tool_results and local.strip_thinking
    assert not local.redact_home_dir and not local.redact_absolute_paths
    assert shareable.redact_home_dir and shareable.redact_absolute_paths
    assert not shareable.redact_prompts and shareable.redact_patterns == ()
    assert strict.redact_prompts and len(strict.redact_patterns) >= 3


def test_unknown_profile_raises():
    """Profile names are validated."""
    with pytest.raises(ValueError):
        resolve_privacy_config("public")


def test_overrides_extend_tuple_fields():
    """Extra patterns and exclusions add to a profile instead of replacing it."""
    strict = _profile("strict", redact_patterns=["ACME-\\d+"], exclude_projects=["secret"])
    assert "ACME-\\d+" in strict.redact_patterns
    assert len(strict.redact_patterns) > 1
    assert strict.exclude_projects == ("secret",)


def test_local_keeps_text_but_strips_results_and_thinking():
    """The local profile only removes tool output and reasoning."""
    filtered = filter_transcript_entry(_entry(), _profile("local"))
    text, thinking, tool = filtered.message.content
    assert text.text.startswith("Edited /home/dev/work/app/main.py")
    assert thinking.thinking == THINKING_PLACEHOLDER
    assert tool.input == {"file_path": "/srv/data/x.csv", "n": 3}
    assert filtered.tool_result == TOOL_RESULT_PLACEHOLDER


def test_shareable_replaces_home_and_absolute_paths():
    """Home references become ~ and other absolute paths become [path]."""
    config = _profile("shareable")
    assert redact_string("see /home/dev/work/app/main.py", config) == "see ~/work/app/main.py"
    assert redact_string("open /srv/data/x.csv now", config) == f"open {PATH_PLACEHOLDER} now"
    assert redact_string("https://example.com/a/b", config) == "https://example.com/a/b"
    filtered = filter_transcript_entry(_entry(), config)
    assert filtered.message.content[2].input["file_path"] == PATH_PLACEHOLDER


def test_strict_redacts_email_ip_credentials_and_prompts():
    """Strict scrubs sensitive patterns and replaces user prompts."""
    config = _profile("strict")
    filtered = filter_transcript_entry(_entry(), config)
    text = filtered.message.content[0].text
    assert "dev@example.com" not in text and "[redacted]" in text
    assert "10.0.0.12" not in filtered.plan_content
    assert "token=abc123" not in redact_string("use token=abc123 here", config)
    prompt = TranscriptEntry(message=Message(role="user", content="my api key is sk-123"))
    assert filter_transcript_entry(prompt, config).message.content == PROMPT_PLACEHOLDER


@pytest.mark.parametrize("profile", ["local", "shareable", "strict"])
def test_filter_is_idempotent(profile):
    """Filtering an already filtered entry changes nothing."""
    config = _profile(profile)
    once = filter_transcript_entry(_entry(), config)
    assert filter_transcript_entry(once, config) == once
    text = "from /home/dev/a/b and /etc/x/y with dev@example.com"
    assert redact_string(redact_string(text, config), config) == redact_string(text, config)


def test_excluded_project_yields_none():
    """Entries of excluded projects are dropped entirely."""
    config = _profile("local", exclude_projects=["client-*", "/secret/"])
    assert filter_transcript_entry(_entry(), config, project="/work/secret/app") is None
    assert is_project_excluded("client-acme", config)
    assert not is_project_excluded("/work/app", config)
    assert filter_transcript_entry(_entry(), config, project="/work/app") is not None


def test_filter_sessions_drops_excluded_and_redacts_prompts():
    """Index-tier sessions are excluded by project and prompts are redacted."""
    sessions = [
        SessionInfo("a", "/work/app", "app", prompts=["edit /home/dev/work/app/x.py"]),
        SessionInfo("b", "/work/secret", "secret", prompts=["hidden"]),
    ]
    shareable = _profile("shareable", exclude_projects=["secret"])
    kept = filter_sessions(sessions, shareable)
    assert [s.session_id for s in kept] == ["a"]
    assert kept[0].prompts == ["edit ~/work/app/x.py"]
    strict = filter_sessions(sessions, _profile("strict"))
    assert all(p == PROMPT_PLACEHOLDER for s in strict for p in s.prompts)


def test_invalid_custom_pattern_is_ignored():
    """A broken user regex is skipped instead of failing the filter."""
    config = _profile("local", redact_patterns=["(unclosed", "ACME"])
    assert redact_string("ACME (unclosed", config) == "[redacted] (unclosed"
