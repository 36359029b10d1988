"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging.config
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

_CONFIGURED = False


def get_turn_id() -> Optional[str]:
    """Get the id of the turn being processed from contextvars."""
    try:
        ctx = structlog.contextvars.get_contextvars()
        return ctx.get("turn_id")
    except (TypeError, AttributeError):
        return None


def set_turn_id(turn_id: Optional[str]) -> None:
    """Bind turn_id to every log line emitted from the current context."""
    structlog.contextvars.bind_contextvars(turn_id=turn_id)


def clear_turn_id() -> None:
    """Clear turn_id from context."""
    structlog.contextvars.unbind_contextvars("turn_id")


@contextmanager
def turn_scope(prefix: str = "turn") -> Iterator[str]:
    """
    Bind a fresh turn id for the duration of the block.

    An id already bound by the caller (e.g. a speech front-end correlating its
    own request) is kept and not cleared on exit.
    """
    existing = get_turn_id()
    if existing:
        yield existing
        return
    turn_id = f"{prefix}-{uuid.uuid4().hex[:8]}"
    set_turn_id(turn_id)
    try:
        yield turn_id
    finally:
        clear_turn_id()


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure structlog with JSON output. Idempotent - safe to call multiple times.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    global _CONFIGURED

    if _CONFIGURED:
        return

    level_name = log_level.upper()
    level_num = getattr(logging, level_name)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": structlog.processors.JSONRenderer(),
                    "foreign_pre_chain": [
                        structlog.stdlib.add_log_level,
                        structlog.stdlib.add_logger_name,
                        structlog.processors.TimeStamper(fmt="iso"),
                        structlog.processors.dict_tracebacks,
                    ],
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"level": level_name, "handlers": ["console"]},
            "loggers": {
                # Audit events are routed through the package logger.
                "inventory_voice": {
                    "level": level_name,
                    "propagate": False,
                    "handlers": ["console"],
                },
            },
        }
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.dict_tracebacks,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    _CONFIGURED = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
