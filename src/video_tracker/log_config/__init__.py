"""Logging configuration package."""

from .main import (
    ViewLogContext,
    clear_view_context,
    configure_logging,
    get_context_logger,
)


__all__ = [
    "get_context_logger",
    "configure_logging",
    "ViewLogContext",
    "clear_view_context",
]
