"""Logging configuration and utilities."""

import logging
import uuid
from typing import Any

import structlog


def get_context_logger(name: str) -> structlog.BoundLogger:
    """Get a context-aware logger.

    Args:
        name: Logger name

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """Install the structlog processor chain.

    Args:
        level: Minimum log level name (e.g. "DEBUG", "INFO")
        json_logs: Render JSON lines when True, console output otherwise
    """
    level_value = logging.getLevelName(level.upper())
    if not isinstance(level_value, int):
        level_value = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        cache_logger_on_first_use=False,
    )


class AdRequestContext:
    """Context manager binding per-request logging context.

    Every log line emitted while the context is active carries the bound
    values (a generated ``request_id`` unless one is given).
    """

    def __init__(self, **context: Any):
        self.context = {"request_id": uuid.uuid4().hex[:16], **context}

    def __enter__(self):
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        structlog.contextvars.unbind_contextvars(*self.context.keys())


__all__ = [
    "get_context_logger",
    "configure_logging",
    "AdRequestContext",
]
