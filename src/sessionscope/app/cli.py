"""Command-line interface for reading local coding-agent session history.

Every command writes JSON to stdout, wrapped in a versioned envelope unless
``--raw`` is given. Failures write a JSON error payload to stderr and return
a non-zero exit code.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from sessionscope import __version__
from sessionscope.adapters.base import SessionInfo
from sessionscope.adapters.common import project_name
from sessionscope.adapters.registry import KNOWN_PROVIDERS, canonical_provider, is_provider
from sessionscope.app.arg_utils import parse_csv, parse_limit, resolve_date_range
from sessionscope.config.logging import configure_logging, logger
from sessionscope.config.settings import get_config
from sessionscope.history import History, create_history
from sessionscope.privacy.config import PRIVACY_PROFILES, is_privacy_profile

SCHEMA_VERSION = "1.0"
OUTPUT_FORMATS = ("json", "jsonl")
COMMANDS = (
    "sessions",
    "detail",
    "transcript",
    "tool-usage",
    "projects",
    "daily",
    "export",
)


class CliError(Exception):
    """A user-facing failure rendered as a JSON error payload."""

    def __init__(self, code: str, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.exit_code = exit_code


def _emit(message: object = "", *, file: Any | None = None) -> None:
    """Write one CLI output line to stdout or a provided file-like target."""
    target = file if file is not None else sys.stdout
    target.write(f"{message}\n")


def _json_default(value: Any) -> Any:
    """Serialize values json does not handle natively."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"not JSON serializable: {type(value).__name__}")


def _dumps(payload: Any, pretty: bool = False) -> str:
    return json.dumps(
        payload,
        indent=2 if pretty else None,
        ensure_ascii=False,
        default=_json_default,
    )


def to_plain(value: Any) -> Any:
    """Convert dataclasses (and lists/dicts of them) into plain JSON-ready data."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [to_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: to_plain(item) for key, item in value.items()}
    return value


def select_fields(data: Any, fields: list[str]) -> Any:
    """Keep only the named top-level fields; lists are mapped item by item."""
    if not fields:
        return data
    if isinstance(data, list):
        return [select_fields(item, fields) for item in data]
    if not isinstance(data, dict):
        return data
    return {name: data[name] for name in fields if name in data}


def apply_limit(data: Any, limit: int | None) -> Any:
    if limit and isinstance(data, list):
        return data[:limit]
    return data


def _envelope(args: argparse.Namespace, data: Any, generated_at: str) -> Any:
    if args.raw:
        return data
    return {
        "schema_version": SCHEMA_VERSION,
        "command": args.command,
        "provider": args.provider,
        "generated_at": generated_at,
        "data": data,
    }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def write_output(args: argparse.Namespace, data: Any) -> None:
    """Shape ``data`` with --fields/--limit and print it as json or jsonl."""
    shaped = apply_limit(select_fields(to_plain(data), args.field_list), args.limit)
    generated_at = _now()
    if args.format == "json":
        _emit(_dumps(_envelope(args, shaped, generated_at), args.pretty))
        return
    rows = shaped if isinstance(shaped, list) else [shaped]
    for row in rows:
        _emit(_dumps(_envelope(args, row, generated_at)))


def _print_error(error: CliError, pretty: bool = False) -> None:
    payload = {
        "schema_version": SCHEMA_VERSION,
        "error": {"code": error.code, "message": error.message},
    }
    _emit(_dumps(payload, pretty), file=sys.stderr)


def _validate(args: argparse.Namespace) -> None:
    """Check provider, privacy profile and output format up front."""
    if not is_privacy_profile(args.privacy):
        raise CliError(
            "INVALID_PRIVACY_PROFILE",
            f"Invalid privacy profile: {args.privacy}. Use: {', '.join(PRIVACY_PROFILES)}",
        )
    if not is_provider(args.provider):
        raise CliError(
            "INVALID_PROVIDER",
            f"Invalid provider: {args.provider}. Use: {', '.join(KNOWN_PROVIDERS)}",
        )
    if args.format not in OUTPUT_FORMATS:
        raise CliError(
            "INVALID_FORMAT",
            f"Invalid format: {args.format}. Use: {', '.join(OUTPUT_FORMATS)}",
        )
    args.provider = str(canonical_provider(args.provider))
    args.field_list = parse_csv(args.fields)
    args.limit = parse_limit(args.limit)


def _date_range(args: argparse.Namespace) -> tuple[date, date]:
    try:
        return resolve_date_range(args.date, args.date_from, args.date_to)
    except ValueError as exc:
        raise CliError("INVALID_DATE", str(exc)) from None


def _history(args: argparse.Namespace) -> History:
    return create_history(
        provider=args.provider,
        provider_dir=args.provider_dir,
        privacy=args.privacy,
    )


def _require_id(args: argparse.Namespace) -> str:
    if not args.session_id:
        raise CliError(
            "MISSING_ARGUMENT",
            f"Missing session ID. Usage: sessionscope {args.command} <session-id>",
        )
    return args.session_id


# ── commands ─────────────────────────────────────────────────────────


def _cmd_sessions(args: argparse.Namespace) -> int:
    history = _history(args)
    if args.session_id and not (args.date or args.date_from or args.date_to):
        start, end = date.min, date.max
    else:
        start, end = _date_range(args)
    if args.session_id:
        listed = history.list_sessions(start, end, project=args.project)
        sessions = [history.peek(s) for s in listed if s.session_id == args.session_id]
    else:
        sessions = history.list_with_meta(start, end, project=args.project)
    write_output(args, sessions)
    return 0


def _cmd_detail(args: argparse.Namespace) -> int:
    session_id = _require_id(args)
    history = _history(args)
    session = history.find(session_id)
    if session is None:
        if not args.project:
            raise CliError("SESSION_NOT_FOUND", f"Session not found: {session_id}")
        session = SessionInfo(
            session_id=session_id,
            project=args.project,
            project_name=project_name(args.project),
        )
    write_output(args, history.detail(session))
    return 0


def _cmd_transcript(args: argparse.Namespace) -> int:
    session_id = _require_id(args)
    history = _history(args)
    entries = history.transcript(session_id, args.project)
    if args.format == "jsonl":
        generated_at = _now()
        for count, entry in enumerate(entries):
            if args.limit and count >= args.limit:
                break
            row = select_fields(to_plain(entry), args.field_list)
            _emit(_dumps(_envelope(args, row, generated_at)))
        return 0
    collected = []
    for entry in entries:
        collected.append(entry)
        if args.limit and len(collected) >= args.limit:
            break
    write_output(args, collected)
    return 0


def _cmd_tool_usage(args: argparse.Namespace) -> int:
    start, end = _date_range(args)
    write_output(args, _history(args).tool_usage(start, end, project=args.project))
    return 0


def _cmd_projects(args: argparse.Namespace) -> int:
    start, end = _date_range(args)
    write_output(args, _history(args).by_project(start, end, project=args.project))
    return 0


def _cmd_daily(args: argparse.Namespace) -> int:
    day, _ = _date_range(args) if args.date else (date.today(), None)
    write_output(args, _history(args).daily(day))
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    start, end = _date_range(args)
    write_output(args, _history(args).daily_range(start, end))
    return 0


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by every subcommand."""
    config = get_config()
    parser.add_argument("--date", help="Single local day (YYYY-MM-DD). Overrides --from/--to.")
    parser.add_argument("--from", dest="date_from", help="Start of date range (YYYY-MM-DD).")
    parser.add_argument("--to", dest="date_to", help="End of date range (YYYY-MM-DD).")
    parser.add_argument(
        "--project",
        help="Project filter: name substring for listings, project path for detail/transcript.",
    )
    parser.add_argument(
        "--provider",
        default=config.provider,
        help=f"Session provider: {', '.join(KNOWN_PROVIDERS)} (default: {config.provider})",
    )
    parser.add_argument(
        "--provider-dir",
        default=None,
        help="Override the provider data directory (default: ~/.<provider>).",
    )
    parser.add_argument(
        "--privacy",
        default=config.privacy_profile,
        help=f"Privacy profile: {', '.join(PRIVACY_PROFILES)} "
        f"(default: {config.privacy_profile})",
    )
    parser.add_argument(
        "--format", default="json", help="Output mode: json (default) or jsonl."
    )
    parser.add_argument("--fields", help="Comma-separated top-level fields to keep.")
    parser.add_argument("--limit", type=int, default=None, help="Limit list/stream length.")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output.")
    parser.add_argument(
        "--raw", action="store_true", help="Print data only, without the envelope."
    )


def build_parser() -> argparse.ArgumentParser:
    """Construct the sessionscope command-line parser."""
    _F = argparse.RawDescriptionHelpFormatter  # noqa: N806
    parser = argparse.ArgumentParser(
        prog="sessionscope",
        formatter_class=_F,
        description="sessionscope -- read local coding-agent session history.\n"
        "Lists sessions, parses transcripts and builds usage reports from\n"
        "Claude, Codex and Pi session directories, with privacy filtering.\n\n"
        "Provider home directories hold sensitive data (source code, secrets,\n"
        "personal information). Use --privacy shareable or strict before\n"
        "sharing any output.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    sub = parser.add_subparsers(dest="command")

    # ── sessions ─────────────────────────────────────────────────────
    sessions = sub.add_parser(
        "sessions",
        formatter_class=_F,
        help="List sessions with metadata",
        description=(
            "List sessions with peeked metadata (tokens, model, branch, cost).\n"
            "With a session id and no date flags, the whole history is searched.\n\n"
            "Examples:\n"
            "  sessionscope sessions --provider codex --format jsonl\n"
            "  sessionscope sessions --date 2026-02-09 --fields session_id,prompts\n"
            "  sessionscope sessions 019c9aea-484d-7200-87fd-07a545276ac4"
        ),
    )
    sessions.add_argument("session_id", nargs="?", help="Optional session id to select")
    _add_common_options(sessions)
    sessions.set_defaults(func=_cmd_sessions)

    # ── detail ───────────────────────────────────────────────────────
    detail = sub.add_parser(
        "detail",
        formatter_class=_F,
        help="Show full detail for one session",
        description=(
            "Parse one session fully: summaries, tool calls, files, thinking.\n\n"
            "Examples:\n"
            "  sessionscope detail 019c9aea-484d-7200-87fd-07a545276ac4 --provider openai"
        ),
    )
    detail.add_argument("session_id", nargs="?", help="Session id")
    _add_common_options(detail)
    detail.set_defaults(func=_cmd_detail)

    # ── transcript ───────────────────────────────────────────────────
    transcript = sub.add_parser(
        "transcript",
        formatter_class=_F,
        help="Print privacy-filtered transcript entries",
        description=(
            "Stream transcript entries. jsonl prints one envelope per entry.\n\n"
            "Examples:\n"
            "  sessionscope transcript <id> --format jsonl --limit 50\n"
            "  sessionscope transcript <id> --privacy strict --pretty"
        ),
    )
    transcript.add_argument("session_id", nargs="?", help="Session id")
    _add_common_options(transcript)
    transcript.set_defaults(func=_cmd_transcript)

    # ── tool-usage ───────────────────────────────────────────────────
    tool_usage = sub.add_parser(
        "tool-usage",
        formatter_class=_F,
        help="Show aggregated tool usage",
        description=(
            "Count tool calls by name and category, with the most referenced\n"
            "files and most used shell commands.\n\n"
            "Examples:\n"
            "  sessionscope tool-usage --provider codex --from 2026-02-01 --to 2026-02-26"
        ),
    )
    _add_common_options(tool_usage)
    tool_usage.set_defaults(func=_cmd_tool_usage)

    # ── projects ─────────────────────────────────────────────────────
    projects = sub.add_parser(
        "projects",
        formatter_class=_F,
        help="Summarize activity per project",
        description=(
            "Per-project session counts, estimated hours, tokens and cost,\n"
            "most active project first."
        ),
    )
    _add_common_options(projects)
    projects.set_defaults(func=_cmd_projects)

    # ── daily ────────────────────────────────────────────────────────
    daily = sub.add_parser(
        "daily",
        formatter_class=_F,
        help="Show a daily summary",
        description="Summarize one day (--date, default today).",
    )
    _add_common_options(daily)
    daily.set_defaults(func=_cmd_daily)

    # ── export ───────────────────────────────────────────────────────
    export = sub.add_parser(
        "export",
        formatter_class=_F,
        help="Export daily summaries for a date range",
        description=(
            "Daily summaries for every non-empty day in --from/--to.\n\n"
            "Examples:\n"
            "  sessionscope export --from 2026-02-01 --to 2026-02-07 --privacy shareable"
        ),
    )
    _add_common_options(export)
    export.set_defaults(func=_cmd_export)

    return parser


def _first_positional(raw: list[str]) -> str | None:
    return next((item for item in raw if not item.startswith("-")), None)


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for CLI invocation with validation and dispatch."""
    configure_logging()
    raw = list(argv if argv is not None else sys.argv[1:])
    parser = build_parser()

    command = _first_positional(raw)
    if command is not None and command not in COMMANDS:
        _print_error(CliError("UNKNOWN_COMMAND", f"Unknown command: {command}", 2))
        return 2

    args = parser.parse_args(raw)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1

    try:
        _validate(args)
        return int(handler(args))
    except CliError as exc:
        _print_error(exc, args.pretty)
        return exc.exit_code
    except Exception as exc:
        logger.opt(exception=exc).debug("{} failed", args.command)
        _print_error(CliError("INTERNAL_ERROR", str(exc) or type(exc).__name__), args.pretty)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
