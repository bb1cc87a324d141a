"""Structured logging setup for SiteKeeper."""

import logging
from pathlib import Path
from typing import Optional, TextIO

import structlog

from .config import config

_log_stream: Optional[TextIO] = None


def configure_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure structlog to emit JSON logs or plain console lines.

    Output goes to ``log_file`` (defaults to ``config.log_path``) so that the
    terminal UI and CLI tables are never interleaved with diagnostics.
    """
    global _log_stream

    level_name = (level or config.log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if (fmt or config.log_format) == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    path = Path(log_file or config.log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if _log_stream is not None:
        _log_stream.close()
    _log_stream = open(path, "a", encoding="utf-8")

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.WriteLoggerFactory(file=_log_stream),
        cache_logger_on_first_use=False,
    )
