"""Observability: structured logging for retry loops."""

from .logging import (
    BoundLogger,
    ConsoleRenderer,
    JsonRenderer,
    LogEntry,
    LogRenderer,
    NoOpRenderer,
    configure_from_settings,
    configure_logging,
    get_logger,
    log_context,
)

__all__ = [
    "BoundLogger",
    "ConsoleRenderer",
    "JsonRenderer",
    "LogEntry",
    "LogRenderer",
    "NoOpRenderer",
    "configure_from_settings",
    "configure_logging",
    "get_logger",
    "log_context",
]
