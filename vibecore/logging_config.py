"""
Structured logging for vibecore.

structlog renders every event through the stdlib root logger, so records
from vibecore and from third-party libraries share one handler and one
format. Output goes to stderr; stdout is reserved for CLI JSON results.

Per-user operations run inside user_context(), which binds user_id to
every event logged in that block, including events from the learning and
analysis modules that never see the user id themselves.

Environment:
    VIBECORE_LOG_LEVEL   DEBUG / INFO / WARNING (default INFO)
    VIBECORE_LOG_FORMAT  "json" for one JSON object per line

Usage:
    from vibecore.logging_config import get_logger, setup_logging, user_context

    setup_logging()
    logger = get_logger(__name__)
    with user_context("alice"):
        logger.info("correction_recorded", corrected="chill")
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog


def _resolve_level(level: str | None) -> int:
    name = level or os.environ.get("VIBECORE_LOG_LEVEL", "INFO")
    return getattr(logging, name.upper(), logging.INFO)


def _select_renderer(json_output: bool | None) -> structlog.types.Processor:
    if json_output is None:
        json_output = os.environ.get("VIBECORE_LOG_FORMAT", "").lower() == "json"
    if json_output:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Route structlog and stdlib logging to a single stderr handler."""
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _select_renderer(json_output),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def user_context(user_id: str) -> Iterator[None]:
    """Bind user_id to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(user_id=user_id):
        yield


__all__ = ["get_logger", "setup_logging", "user_context"]
