"""Shared test fixtures for the sessionscope test suite.

Provides an isolated configuration, a fresh session locator per test, and a
small Claude provider tree with one substantial and one short session.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from sessionscope.config.settings import load_config
from sessionscope.sessions.locator import SessionLocator
from tests.helpers import (
    DAY,
    claude_assistant,
    claude_prompt,
    claude_user,
    local_time,
    write_claude_session,
    write_jsonl,
)

CONFIG_ENV_VARS = (
    "SESSIONSCOPE_CONFIG",
    "SESSIONSCOPE_PROVIDER",
    "SESSIONSCOPE_PROVIDER_DIR",
    "SESSIONSCOPE_PRIVACY",
)

APP_PROJECT = "/work/app"
LIB_PROJECT = "/work/lib"


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Ignore ambient SESSIONSCOPE_* variables and reset the config cache."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture
def locator():
    """A fresh locator so cached indexes never leak between tests."""
    return SessionLocator()


def _t(hour: int, minute: int = 0):
    return local_time(DAY, hour, minute)


@pytest.fixture
def claude_home(tmp_path) -> Path:
    """Claude tree: ``s-long`` (3 prompts, tools) and ``s-short`` (1 prompt)."""
    base = tmp_path / ".claude"
    write_jsonl(
        base / "history.jsonl",
        [
            claude_prompt("s-old", APP_PROJECT, "yesterday's work", _t(9) - timedelta(days=1)),
            claude_prompt("s-long", APP_PROJECT, "fix the login bug", _t(10, 0)),
            claude_prompt("s-long", APP_PROJECT, "add tests for it", _t(10, 5)),
            claude_prompt("s-short", LIB_PROJECT, "what does this do?", _t(11, 0)),
            claude_prompt("s-long", APP_PROJECT, "ship it", _t(10, 10)),
            "not json",
        ],
    )
    write_claude_session(
        base,
        APP_PROJECT,
        "s-long",
        [
            claude_user(
                "fix the login bug", _t(10, 0), cwd=APP_PROJECT, gitBranch="feature/login"
            ),
            claude_assistant(
                [
                    {"type": "thinking", "thinking": "Let me look at the handler"},
                    {
                        "type": "text",
                        "text": "I will inspect the login handler and fix the bug now.",
                    },
                    {
                        "type": "tool_use",
                        "id": "t1",
                        "name": "Read",
                        "input": {"file_path": "/work/app/src/login.py"},
                    },
                ],
                _t(10, 1),
                branch="feature/login",
                usage={
                    "input_tokens": 100,
                    "output_tokens": 50,
                    "cache_creation_input_tokens": 10,
                    "cache_read_input_tokens": 5,
                },
            ),
            {
                "type": "user",
                "timestamp": _t(10, 2).isoformat(),
                "message": {
                    "role": "user",
                    "content": [
                        {"type": "tool_result", "tool_use_id": "t1", "content": "def login(): ..."}
                    ],
                },
                "toolUseResult": {"stdout": "def login(): ..."},
            },
            claude_assistant(
                [
                    {
                        "type": "tool_use",
                        "id": "t2",
                        "name": "Bash",
                        "input": {"command": "pytest -q tests/"},
                    },
                    {
                        "type": "tool_use",
                        "id": "t3",
                        "name": "Edit",
                        "input": {"file_path": "/work/app/src/login.py", "old_string": "a"},
                    },
                ],
                _t(10, 6),
                usage={
                    "input_tokens": 200,
                    "output_tokens": 80,
                    "cache_creation_input_tokens": 0,
                    "cache_read_input_tokens": 20,
                },
            ),
            "not json",
            claude_user("ship it", _t(10, 10), planContent="# Plan\n1. ship"),
            claude_assistant(
                [{"type": "text", "text": "ok"}],
                _t(10, 11),
                usage={"input_tokens": 50, "output_tokens": 10},
            ),
        ],
    )
    write_claude_session(
        base,
        LIB_PROJECT,
        "s-short",
        [
            claude_user("what does this do?", _t(11, 0), cwd=LIB_PROJECT),
            claude_assistant(
                [{"type": "text", "text": "It parses configuration files for the app."}],
                _t(11, 1),
                usage={"input_tokens": 10, "output_tokens": 5},
            ),
        ],
    )
    return base
