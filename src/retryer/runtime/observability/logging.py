"""Structured logging for retry execution.

Provides context-aware structured logging:
- Bound context (max_attempts, operation name, ...) carried by the logger
- Scoped context via log_context()
- Human-readable console output, JSON lines for production

Quick Start:
    >>> from retryer.runtime.observability import configure_logging, get_logger
    >>>
    >>> configure_logging(format="console")  # or "json" for production
    >>> log = get_logger("my-service")
    >>> log.info("retrying", attempt=2)

    >>> with log_context(job="sync-users"):
    ...     retryer.retry(token, sync)  # retry logs include job=sync-users
"""

from __future__ import annotations

import logging
import sys
import time
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, TextIO, runtime_checkable

import orjson

if TYPE_CHECKING:
    from types import TracebackType

    from retryer.foundation.config import LoggingSettings

JsonDict = dict[str, Any]

# Context var for scoped context (persists across async calls)
_log_context: ContextVar[JsonDict] = ContextVar("log_context", default={})


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class BoundLogger:
    """Structured logger with bound context. Immutable - bind() returns a new logger with merged context.

    Example:
        >>> log = BoundLogger(context={"service": "api"})
        >>> log.info("retry scheduled", delay=0.75)
        # => 10:30:45.120 [info] retry scheduled delay=0.75 service="api"
    """

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int | None = None  # None = follow configure_logging()

    def bind(self, **kw: Any) -> BoundLogger:
        """Create new logger with additional bound context."""
        return BoundLogger(context={**self.context, **kw}, _renderer=self._renderer, _level=self._level)

    def unbind(self, *keys: str) -> BoundLogger:
        """Create new logger without specified keys."""
        return BoundLogger(context={k: v for k, v in self.context.items() if k not in keys},
                           _renderer=self._renderer, _level=self._level)

    def is_enabled_for(self, level: int) -> bool:
        return level >= (_default_level if self._level is None else self._level)

    def _log(self, level: int, event: str, **kw: Any) -> None:
        if not self.is_enabled_for(level):
            return
        merged = {**_log_context.get(), **self.context, **kw}
        (self._renderer or _get_renderer()).render(LogEntry(time.time(), _level_name(level), event, merged))

    def debug(self, event: str, **kw: Any) -> None: self._log(logging.DEBUG, event, **kw)
    def info(self, event: str, **kw: Any) -> None: self._log(logging.INFO, event, **kw)
    def warning(self, event: str, **kw: Any) -> None: self._log(logging.WARNING, event, **kw)
    def error(self, event: str, **kw: Any) -> None: self._log(logging.ERROR, event, **kw)


@dataclass(slots=True)
class LogEntry:
    """Immutable log entry with all context."""

    timestamp: float
    level: str
    event: str
    context: JsonDict

    @property
    def ts_iso(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat()

    @property
    def ts_human(self) -> str:
        """Human-readable timestamp (HH:MM:SS.mmm)."""
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogRenderer(Protocol):
    """Protocol for log output renderers."""

    def render(self, entry: LogEntry) -> None: ...


@dataclass(slots=True)
class ConsoleRenderer:
    """Human-readable colored console output. Format: timestamp [level] event key=value ..."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None = auto-detect
    show_timestamp: bool = True

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = getattr(self.output, "isatty", lambda: False)()

    def render(self, entry: LogEntry) -> None:
        c = _COLORS if self.colors else _NO_COLORS
        parts = ([f"{c['dim']}{entry.ts_human}{c['reset']}"] if self.show_timestamp else [])
        parts += [f"{_LEVEL_COLORS.get(entry.level, c['dim'])}[{entry.level}]{c['reset']}",
                  f"{c['bold']}{entry.event}{c['reset']}"]
        parts += [f"{c['cyan']}{k}{c['reset']}={_format_value(v, c)}" for k, v in sorted(entry.context.items())]
        print(" ".join(parts), file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines output for log aggregation."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        print(orjson.dumps({"timestamp": entry.ts_iso, "level": entry.level, "event": entry.event, **entry.context},
                           option=orjson.OPT_NON_STR_KEYS, default=repr).decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    """Silent renderer for testing."""

    def render(self, entry: LogEntry) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Global Configuration
# ─────────────────────────────────────────────────────────────────────────────

# Process-wide so loops running in worker threads share the configuration
_renderer: LogRenderer | None = None
_default_level: int = logging.INFO


def configure_logging(
    format: str = "console",  # noqa: A002 - shadows builtin but matches stdlib
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Configure global structured logging. Format: "console" (human), "json" (machine), "none"."""
    global _renderer, _default_level
    match format:
        case "console": renderer: LogRenderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
        case "json": renderer = JsonRenderer(output=output or sys.stdout)
        case "none": renderer = NoOpRenderer()
        case _: raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")
    _default_level = getattr(logging, level.upper(), logging.INFO)
    _renderer = renderer
    return renderer


def configure_from_settings(settings: LoggingSettings | None = None, *, output: TextIO | None = None) -> LogRenderer:
    """Configure logging from LoggingSettings (defaults to get_settings().logging)."""
    if settings is None:
        from retryer.foundation.config import get_settings
        settings = get_settings().logging
    return configure_logging(format=settings.format, level=settings.level, output=output)


def get_logger(name: str | None = None, **initial_context: Any) -> BoundLogger:
    """Get a structured logger with optional initial context. Name is added to context as 'logger'."""
    ctx = {**initial_context, **({"logger": name} if name else {})}
    return BoundLogger(context=ctx)


def _get_renderer() -> LogRenderer:
    global _renderer
    if _renderer is None:
        _renderer = ConsoleRenderer()
    return _renderer


class log_context:
    """Context manager for scoped logging context. Adds key-value pairs to all log entries within the scope."""

    __slots__ = ("_ctx", "_token")

    def __init__(self, **kw: Any) -> None:
        self._ctx: JsonDict = dict(kw)
        self._token: object | None = None

    def __enter__(self) -> log_context:
        self._token = _log_context.set({**_log_context.get(), **self._ctx})
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        if self._token is not None:
            _log_context.reset(self._token)  # type: ignore[arg-type]


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


_COLORS = {"reset": "\033[0m", "bold": "\033[1m", "dim": "\033[2m", "red": "\033[31m",
           "green": "\033[32m", "yellow": "\033[33m", "blue": "\033[34m", "cyan": "\033[36m", "white": "\033[37m"}
_NO_COLORS = {k: "" for k in _COLORS}
_LEVEL_COLORS = {"debug": _COLORS["dim"], "info": _COLORS["green"], "warning": _COLORS["yellow"], "error": _COLORS["red"]}


def _level_name(level: int) -> str:
    return logging.getLevelName(level).lower()


def _format_value(v: object, c: dict[str, str]) -> str:
    """Format a value for console output."""
    match v:
        case str(): return f'{c["yellow"]}"{v}"{c["reset"]}'
        case bool(): return f'{c["blue"]}{str(v).lower()}{c["reset"]}'
        case int() | float(): return f'{c["blue"]}{v}{c["reset"]}'
        case _: return f'{c["white"]}{v!r}{c["reset"]}'
