"""Tool-call categorization and content-block extraction helpers."""

from __future__ import annotations

from typing import Any

from sessionscope.adapters.base import (
    ContentBlock,
    TextBlock,
    ThinkingBlock,
    ToolCallSummary,
    ToolCategory,
    ToolUseBlock,
)

_CATEGORIES: dict[str, ToolCategory] = {
    # file_read
    "read": "file_read",
    "read_file": "file_read",
    "view": "file_read",
    "view_image": "file_read",
    "notebookread": "file_read",
    # file_write
    "write": "file_write",
    "write_file": "file_write",
    "edit": "file_write",
    "edit_file": "file_write",
    "multiedit": "file_write",
    "notebookedit": "file_write",
    "apply_patch": "file_write",
    "str_replace_editor": "file_write",
    # shell
    "bash": "shell",
    "shell": "shell",
    "exec_command": "shell",
    "local_shell": "shell",
    "run_terminal_cmd": "shell",
    "bashoutput": "shell",
    "killshell": "shell",
    "write_stdin": "shell",
    # search
    "grep": "search",
    "glob": "search",
    "ls": "search",
    "find": "search",
    "search": "search",
    "codebase_search": "search",
    "file_search": "search",
    "list_dir": "search",
    # web
    "webfetch": "web",
    "websearch": "web",
    "web_search": "web",
    "fetch": "web",
    # task
    "task": "task",
    "agent": "task",
    "todowrite": "task",
    "todoread": "task",
    "exitplanmode": "task",
    "enterplanmode": "task",
    "update_plan": "task",
    "skill": "task",
}

FILE_PATH_KEYS = ("file_path", "path", "target_file", "notebook_path")
_COMMAND_KEYS = ("command", "cmd")
_QUERY_KEYS = ("pattern", "query", "url")
_SHELL_WRAPPERS = {"bash", "sh", "zsh"}


def categorize_tool_name(name: str) -> ToolCategory:
    """Map a tool name to its category, case-insensitively."""
    return _CATEGORIES.get(name.lower(), "other")


def tool_display_name(name: str, tool_input: dict[str, Any] | None = None) -> str:
    """Return the name a tool call is shown (and deduplicated) under.

    ``mcp__server__tool`` becomes ``server/tool``; subagent and skill calls
    are qualified by their type or skill name.
    """
    if name.startswith("mcp__"):
        parts = name.split("__", 2)
        if len(parts) == 3 and parts[1] and parts[2]:
            return f"{parts[1]}/{parts[2]}"
        return name
    tool_input = tool_input or {}
    if name in ("Task", "Agent"):
        subagent = tool_input.get("subagent_type")
        if isinstance(subagent, str) and subagent:
            return f"Task({subagent})"
    if name == "Skill":
        skill = tool_input.get("skill") or tool_input.get("name")
        if isinstance(skill, str) and skill:
            return f"Skill({skill})"
    return name


def extract_file_path(tool_input: dict[str, Any] | None) -> str | None:
    """Return the first non-empty file path argument of a tool call."""
    if not tool_input:
        return None
    for key in FILE_PATH_KEYS:
        value = tool_input.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def command_head(command: Any) -> str | None:
    """Return the program name of a shell command string or argv list.

    Argv lists of the form ``["bash", "-lc", "<script>"]`` are unwrapped to
    the head of the script.
    """
    if isinstance(command, list):
        argv = [str(part) for part in command if isinstance(part, (str, int))]
        if (
            len(argv) >= 3
            and argv[0].rsplit("/", 1)[-1] in _SHELL_WRAPPERS
            and argv[1] in ("-lc", "-c")
        ):
            return command_head(argv[2])
        return argv[0] if argv else None
    if isinstance(command, str):
        parts = command.strip().split()
        return parts[0] if parts else None
    return None


def tool_target(name: str, tool_input: dict[str, Any] | None) -> str | None:
    """Return a tool call's target: file path, command head, or query."""
    path = extract_file_path(tool_input)
    if path:
        return path
    if not tool_input:
        return None
    for key in _COMMAND_KEYS:
        head = command_head(tool_input.get(key))
        if head:
            return head
    for key in _QUERY_KEYS:
        value = tool_input.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def summarize_tool_call(block: ToolUseBlock) -> ToolCallSummary:
    """Build the categorized summary of one tool-use block."""
    return ToolCallSummary(
        name=block.name,
        display_name=tool_display_name(block.name, block.input),
        category=categorize_tool_name(block.name),
        target=tool_target(block.name, block.input),
    )


def extract_text(content: str | list[ContentBlock]) -> str:
    """Join the text of a message's text blocks."""
    if isinstance(content, str):
        return content
    return "\n".join(block.text for block in content if isinstance(block, TextBlock))


def extract_tool_calls(content: str | list[ContentBlock]) -> list[ToolCallSummary]:
    if isinstance(content, str):
        return []
    return [summarize_tool_call(b) for b in content if isinstance(b, ToolUseBlock)]


def extract_file_paths(content: str | list[ContentBlock]) -> list[str]:
    if isinstance(content, str):
        return []
    paths = (extract_file_path(b.input) for b in content if isinstance(b, ToolUseBlock))
    return [path for path in paths if path]


def count_thinking_blocks(content: str | list[ContentBlock]) -> int:
    if isinstance(content, str):
        return 0
    return sum(1 for block in content if isinstance(block, ThinkingBlock))
