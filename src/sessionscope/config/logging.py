"""Central logging configuration using loguru.

Stdout carries command output (JSON/JSONL), so every log line goes to stderr.
The default level is WARNING; ``SESSIONSCOPE_LOG_LEVEL=DEBUG`` (or
``SESSIONSCOPE_DEBUG=1``) shows per-file decode statistics and locator cache
activity. Records from other libraries' stdlib loggers are dropped unless
``SESSIONSCOPE_LOG_ALL=1``.
"""

from __future__ import annotations

import logging
import os
import sys

from loguru import logger

_TRUE_VALUES = {"1", "true", "yes", "on"}

_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level:<8}</level> | "
    "<cyan>{name}</cyan> | <level>{message}</level>\n"
)


def _env_flag(name: str, default: bool) -> bool:
    """Return boolean environment flag with common truthy values."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _resolve_level(level: str | None) -> str:
    if level:
        return level.upper()
    if _env_flag("SESSIONSCOPE_DEBUG", default=False):
        return "DEBUG"
    return os.getenv("SESSIONSCOPE_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"


def _keep_record(record: dict) -> bool:
    """Keep loguru and sessionscope records; other stdlib loggers only on opt-in."""
    source = record["extra"].get("stdlib_logger")
    if source is None or source.split(".", 1)[0] == "sessionscope":
        return True
    return _env_flag("SESSIONSCOPE_LOG_ALL", default=False)


class InterceptHandler(logging.Handler):
    """Route stdlib ``logging`` records into loguru under their logger name."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.bind(stdlib_logger=record.name).opt(exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging(level: str | None = None) -> None:
    """(Re)attach the stderr sink and capture stdlib logging.

    Safe to call repeatedly; the CLI calls it once per invocation so a
    changed environment or a replaced ``sys.stderr`` takes effect.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=_resolve_level(level),
        format=_FORMAT,
        filter=_keep_record,
        colorize=_env_flag("SESSIONSCOPE_LOG_COLOR", default=sys.stderr.isatty()),
        backtrace=False,
        diagnose=False,
    )
    root = logging.getLogger()
    if not any(isinstance(handler, InterceptHandler) for handler in root.handlers):
        root.addHandler(InterceptHandler())
    root.setLevel(logging.NOTSET)


__all__ = ["logger", "configure_logging", "InterceptHandler"]


if __name__ == "__main__":
    configure_logging(level="DEBUG")
    logger.debug("config.logging self-test passed")
    logging.getLogger("sessionscope.selftest").warning("stdlib %s", "forwarded")
