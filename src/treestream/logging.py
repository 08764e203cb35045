"""Structured logging for tree-stream.

Every log event goes through structlog into the standard library root
logger, where a single stderr handler renders it. stdout stays free for
streamed output.

Rendering is chosen once, in :func:`configure_logging`:

- ``console`` (default): colored key/value lines for terminals
- ``json``: one JSON object per line (``TREESTREAM_LOG_FORMAT=json``)

Scheduler callbacks run inside :func:`run_context`, so any event logged
while a stream reacts to a timer carries the scheduler name and run token
without the caller passing them.

Usage:
    from treestream.logging import configure_logging, get_logger

    configure_logging(level=logging.DEBUG)
    log = get_logger(__name__).bind(instance_id="stream:u1")
    log.debug("unit_started", unit=2)
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Any

import structlog
from structlog.types import Processor

__all__ = [
    "LogFormat",
    "configure_logging",
    "get_logger",
    "run_context",
]

LOG_FORMAT_ENV_VAR = "TREESTREAM_LOG_FORMAT"
LOG_LEVEL_ENV_VAR = "TREESTREAM_LOG_LEVEL"


class LogFormat(str, Enum):
    """How log events are rendered."""

    CONSOLE = "console"
    JSON = "json"


def _format_from_env() -> LogFormat:
    value = os.environ.get(LOG_FORMAT_ENV_VAR, "").strip().lower()
    return LogFormat.JSON if value == LogFormat.JSON.value else LogFormat.CONSOLE


def _level_from_env() -> int:
    name = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


# Enrichment applied to structlog events and to plain stdlib records alike
_ENRICHERS: tuple[Processor, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
)


def _final_processors(fmt: LogFormat) -> list[Processor]:
    if fmt is LogFormat.JSON:
        return [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    return [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
        structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def configure_logging(
    *,
    force_json: bool = False,
    level: int | None = None,
) -> None:
    """Route structlog and stdlib logging to one stderr handler.

    Safe to call repeatedly; each call replaces the previous handler.

    Args:
        force_json: Render JSON regardless of ``TREESTREAM_LOG_FORMAT``.
        level: Minimum level; defaults to ``TREESTREAM_LOG_LEVEL`` or INFO.
    """
    fmt = LogFormat.JSON if force_json else _format_from_env()
    log_level = level if level is not None else _level_from_env()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_ENRICHERS,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=_final_processors(fmt),
            foreign_pre_chain=list(_ENRICHERS),
        )
    )

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, usually ``get_logger(__name__)``."""
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


@contextmanager
def run_context(**ids: Any) -> Iterator[None]:
    """Attach ``ids`` to every event logged inside the block.

    Example:
        with run_context(scheduler="stream", run_token=3):
            callback()
    """
    with structlog.contextvars.bound_contextvars(**ids):
        yield
