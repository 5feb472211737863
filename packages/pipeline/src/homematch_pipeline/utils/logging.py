"""
utils/logging.py — structlog setup for pipeline runs.

The renderer follows settings.log_format: "json" for cron/CI runs where
logs are shipped somewhere, "console" for an operator at a terminal.
The CLI calls configure_logging() before anything else logs.

Usage:
    from homematch_pipeline.utils.logging import configure_logging, get_logger

    configure_logging(log_level="DEBUG")
    log = get_logger(__name__, location="Oakland, CA")
    log.info("page_fetched", page=1, items=20)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from homematch_shared.config import settings


def _level_number(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def configure_logging(
    log_level: str | None = None,
    log_format: str | None = None,
) -> None:
    """
    Configure structlog (and stdlib logging underneath it).

    Safe to call more than once; the last call wins.

    Args:
        log_level:  Overrides settings.log_level.
        log_format: Overrides settings.log_format ("json" | "console").
    """
    level = _level_number(log_level or settings.log_level)
    fmt = log_format or settings.log_format

    # httpx and supabase log through stdlib logging
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str, **initial_values: Any) -> Any:
    """Return a structlog logger, pre-bound with any initial context."""
    logger = structlog.get_logger(name)
    return logger.bind(**initial_values) if initial_values else logger
