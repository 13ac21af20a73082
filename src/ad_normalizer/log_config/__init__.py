"""Logging configuration package."""

from .main import (
    AdRequestContext,
    configure_logging,
    get_context_logger,
)


__all__ = [
    "get_context_logger",
    "configure_logging",
    "AdRequestContext",
]
