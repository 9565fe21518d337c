"""Logging configuration and utilities."""

import logging
from typing import Any

import structlog

from ..settings import get_settings


def get_context_logger(name: str) -> structlog.BoundLogger:
    """Get a context-aware logger.

    Args:
        name: Logger name

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure structlog processors and the minimum log level.

    Arguments left as None are taken from TrackerSettings (log_level,
    json_logs), so VIDEO_TRACKER_LOG_LEVEL and VIDEO_TRACKER_JSON_LOGS
    apply when the application calls configure_logging() at startup.

    Args:
        level: Minimum level name (e.g. "DEBUG", "INFO")
        json_logs: Render JSON lines instead of the console renderer
    """
    if level is None or json_logs is None:
        settings = get_settings()
        level = level if level is not None else settings.log_level
        json_logs = json_logs if json_logs is not None else settings.json_logs

    renderer: Any = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


class ViewLogContext:
    """Context manager binding tracker/view identity to every log line."""

    def __init__(self, **context: Any):
        """Initialize with context variables.

        Args:
            **context: Context key-value pairs
        """
        self.context = {k: v for k, v in context.items() if v is not None}

    def __enter__(self):
        """Enter context."""
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context."""
        structlog.contextvars.unbind_contextvars(*self.context.keys())


def clear_view_context() -> None:
    """Drop everything bound in the logging context."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "get_context_logger",
    "configure_logging",
    "ViewLogContext",
    "clear_view_context",
]
