"""Structured JSON logging with run_id support.

Uses structlog for structured logging with JSON output.
Every log entry includes the run_id of the analysis that emitted it so
a single user's report can be traced through the normalizer and the
three analysers.  Logs go to stderr by default: stdout belongs to the
CLI's JSON report.
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, TextIO

import structlog

# Context var for run_id propagation
_run_id: ContextVar[str] = ContextVar("run_id", default="")


def get_run_id() -> str:
    """Get current run ID from context (empty outside an analysis)."""
    return _run_id.get()


def set_run_id(run_id: str) -> None:
    """Set run ID in context."""
    _run_id.set(run_id)


def new_run_id() -> str:
    """Generate and set a new run ID."""
    rid = uuid.uuid4().hex[:12]
    _run_id.set(rid)
    return rid


@contextmanager
def run_context(run_id: str | None = None) -> Iterator[str]:
    """Set a run ID for the duration of a block, then restore the previous one."""
    rid = run_id or uuid.uuid4().hex[:12]
    token = _run_id.set(rid)
    try:
        yield rid
    finally:
        _run_id.reset(token)


def _add_run_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: stamp the current run_id, if any."""
    rid = get_run_id()
    if rid:
        event_dict.setdefault("run_id", rid)
    return event_dict


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    stream: TextIO | None = None,
) -> None:
    """Configure structured logging for analysis runs.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: "json" for machine-readable lines, "console" for humans.
        stream: Destination for log lines; stderr when omitted.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            _add_run_id,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Library modules log through stdlib loggers; route them to the same stream.
    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stderr,
        level=log_level,
    )
    logging.getLogger("journal_analytics").setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)
