"""Tests for task, todo, plan, project-note, project listing and stats readers."""

from __future__ import annotations

import json
import os
from datetime import timedelta

from sessionscope.artifacts import (
    ArtifactStore,
    decode_project_folder,
    memory_file_names,
    plan_title,
    read_project_memory,
    read_stats,
)
from sessionscope.privacy import PATH_PLACEHOLDER, resolve_privacy_config
from tests.helpers import (
    DAY,
    claude_assistant,
    claude_paths,
    claude_user,
    local_time,
    write_claude_session,
)


def _touch(path, day=DAY):
    stamp = local_time(day, 12).timestamp()
    os.utime(path, (stamp, stamp))
    return path


def _write(path, text, day=DAY):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return _touch(path, day)


def test_missing_directories_are_empty(tmp_path):
    """A provider home without artifact folders reads as empty."""
    store = ArtifactStore(claude_paths(tmp_path / ".claude"))
    assert store.tasks(DAY) == []
    assert store.todos(DAY) == []
    assert store.plans(DAY) == []
    assert store.projects() == []
    assert store.stats() is None


def test_tasks_filtered_by_modification_day(tmp_path):
    """Only task files touched within the range are read."""
    base = tmp_path / ".claude"
    _write(
        base / "tasks" / "list-1" / "1.json",
        json.dumps(
            {
                "id": "1",
                "subject": "Fix login",
                "status": "in_progress",
                "activeForm": "Fixing login",
                "blockedBy": ["2"],
            }
        ),
    )
    _write(
        base / "tasks" / "list-1" / "2.json",
        json.dumps({"subject": "Old task"}),
        DAY - timedelta(days=3),
    )
    _write(base / "tasks" / "list-1" / "3.json", "{broken")
    _write(base / "tasks" / "list-1" / "4.json", json.dumps({"status": "done"}))

    tasks = ArtifactStore(claude_paths(base)).tasks(DAY)
    assert len(tasks) == 1
    task = tasks[0]
    assert (task.task_id, task.list_id, task.subject) == ("1", "list-1", "Fix login")
    assert task.status == "in_progress"
    assert task.active_form == "Fixing login"
    assert task.blocked_by == ["2"]

    wide = ArtifactStore(claude_paths(base)).tasks(DAY - timedelta(days=3), DAY)
    assert [t.subject for t in wide] == ["Fix login", "Old task"]
    assert wide[1].task_id == "2"


def test_todos_carry_their_session_id(tmp_path):
    """Todo files are JSON arrays named after the owning session."""
    base = tmp_path / ".claude"
    _write(
        base / "todos" / "s-long-agent-s-long.json",
        json.dumps(
            [
                {"content": "write tests", "status": "completed"},
                {"content": "ship", "activeForm": "Shipping"},
                {"status": "pending"},
            ]
        ),
    )
    todos = ArtifactStore(claude_paths(base)).todos(DAY)
    assert [t.content for t in todos] == ["write tests", "ship"]
    assert todos[0].status == "completed"
    assert todos[1].status == "pending"
    assert {t.session_id for t in todos} == {"s-long"}


def test_plans_take_titles_from_front_matter_or_heading(tmp_path):
    """Plan titles come from front matter, then the first heading, then the file name."""
    base = tmp_path / ".claude"
    _write(base / "plans" / "a.md", "---\ntitle: Release plan\n---\n# Ignored\nsteps")
    _write(base / "plans" / "b.md", "intro\n# Login refactor\n1. split handler")
    _write(base / "plans" / "c.md", "no heading here")
    plans = ArtifactStore(claude_paths(base)).plans(DAY)
    assert [(p.name, p.title) for p in plans] == [
        ("a", "Release plan"),
        ("b", "Login refactor"),
        ("c", "c"),
    ]
    assert plans[0].content.startswith("# Ignored")


def test_plan_title_fallback():
    """Blank titles fall through to the fallback."""
    assert plan_title({"title": "  "}, "", "fallback") == "fallback"
    assert plan_title({}, "#  \n", "fallback") == "fallback"


def test_project_memory_per_provider(tmp_path):
    """Claude reads CLAUDE.md; Codex and Pi read AGENTS.md."""
    project = tmp_path / "proj"
    (project / ".claude").mkdir(parents=True)
    (project / ".claude" / "CLAUDE.md").write_text("nested notes", encoding="utf-8")
    (project / "AGENTS.md").write_text("agent notes", encoding="utf-8")

    claude = read_project_memory([str(project), str(project)], "claude")
    assert list(claude) == [str(project)]
    assert claude[str(project)].content == "nested notes"

    codex = read_project_memory([str(project), str(tmp_path / "missing")], "codex")
    assert codex[str(project)].content == "agent notes"
    assert str(tmp_path / "missing") not in codex

    assert memory_file_names("pi") == ("AGENTS.md",)


def _project_tree(base):
    write_claude_session(
        base,
        "/work/my-app",
        "s1",
        [claude_user("hi", local_time(), cwd="/work/my-app"), claude_assistant("ok", local_time())],
    )
    write_claude_session(base, "/work/my-app", "s2", [claude_user("again", local_time())])
    write_claude_session(base, "/work/lib", "s3", [claude_user("no cwd", local_time())])
    write_claude_session(
        base, "/work/secret", "s4", [claude_user("hidden", local_time(), cwd="/work/secret")]
    )
    (base / "projects" / "-work-empty").mkdir()
    (base / "projects" / "stray.txt").write_text("x", encoding="utf-8")


def test_projects_listing_recovers_paths_and_counts_sessions(tmp_path):
    """Project paths come from recorded cwd, falling back to the folder name."""
    base = tmp_path / ".claude"
    _project_tree(base)
    projects = ArtifactStore(claude_paths(base)).projects()
    by_folder = {p.encoded_name: p for p in projects}
    assert sorted(by_folder) == ["-work-empty", "-work-lib", "-work-my-app", "-work-secret"]
    assert by_folder["-work-my-app"].path == "/work/my-app"
    assert by_folder["-work-my-app"].name == "my-app"
    assert by_folder["-work-my-app"].session_count == 2
    assert by_folder["-work-my-app"].last_active is not None
    assert by_folder["-work-lib"].path == "/work/lib"
    assert by_folder["-work-empty"].session_count == 0
    assert by_folder["-work-empty"].last_active is None


def test_projects_listing_applies_privacy(tmp_path):
    """Excluded projects are dropped and paths follow the profile's redaction."""
    base = tmp_path / ".claude"
    _project_tree(base)
    local = resolve_privacy_config("local", {"exclude_projects": ["secret"]})
    names = [p.name for p in ArtifactStore(claude_paths(base), privacy=local).projects()]
    assert "secret" not in names
    assert "my-app" in names

    strict = resolve_privacy_config("strict")
    projects = ArtifactStore(claude_paths(base), privacy=strict).projects()
    assert {p.path for p in projects} == {PATH_PLACEHOLDER}
    assert "lib" in {p.name for p in projects}


def test_decode_project_folder_is_best_effort():
    """Dashes turn back into slashes, including ones that were in names."""
    assert decode_project_folder("-work-lib") == "/work/lib"
    assert decode_project_folder("-work-my-app") == "/work/my/app"


def test_read_stats_cache(tmp_path):
    """The stats cache maps camelCase keys; broken files read as None."""
    path = tmp_path / "stats-cache.json"
    path.write_text(
        json.dumps(
            {
                "version": 2,
                "lastComputedDate": "2026-02-09",
                "dailyActivity": [
                    {"date": "2026-02-09", "messageCount": 12, "sessionCount": 2, "toolCallCount": 5}
                ],
                "totalSessions": 40,
                "totalMessages": 900,
                "hourCounts": {"10": 7},
                "unknownKey": True,
            }
        ),
        encoding="utf-8",
    )
    stats = read_stats(path)
    assert stats.version == 2
    assert stats.total_sessions == 40
    assert stats.daily_activity[0].tool_call_count == 5
    assert stats.hour_counts == {"10": 7}
    assert stats.model_usage is None

    path.write_text("{broken", encoding="utf-8")
    assert read_stats(path) is None
    path.write_text(json.dumps({"totalSessions": "lots"}), encoding="utf-8")
    assert read_stats(path) is None
    assert read_stats(tmp_path / "missing.json") is None
