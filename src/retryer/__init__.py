"""Retryer - Retry/backoff execution with cancellation.

Calls a fallible operation until it succeeds, signals a break, runs out of
attempts, or its cancellation token fires. Every call is recorded, so the
caller decides what the final outcome means.

Quick Start:
    >>> from retryer import CancellationToken, ConstantDelayer, Retryer
    >>>
    >>> retryer = Retryer(delayer=ConstantDelayer(0.5), max_attempts=3)
    >>> result = retryer.retry(CancellationToken(), lambda token: fetch("https://example.com"))
    >>> result.final_attempt_error
    None

Stopping Early:
    >>> from retryer import BreakError
    >>>
    >>> def op(token):
    ...     resp = fetch(url)
    ...     if resp.status == 401:
    ...         raise BreakError(PermissionError("bad credentials"))  # never retried
    ...     resp.raise_for_status()

Deadlines and Cancellation:
    >>> with CancellationToken.with_timeout(10.0) as token:
    ...     result = retryer.retry(token, op)
    >>> isinstance(result.final_attempt_error, DeadlineExceeded)

Async:
    >>> result = await retryer.aretry(token, async_op)

Configuration (environment):
    >>> # RETRYER_RETRY_STRATEGY=exponential RETRYER_RETRY_MAX_ATTEMPTS=5
    >>> retryer = Retryer.from_settings()
"""

from __future__ import annotations

__version__ = "0.1.0"

from .foundation.config import LoggingSettings, RetryerSettings, RetrySettings, clear_settings_cache, get_settings
from .foundation.errors import (
    BreakError,
    Cancelled,
    CancellationError,
    DeadlineExceeded,
    ErrorCode,
    RetryerError,
    RetryExhausted,
    break_retry,
    find_break,
)
from .runtime.concurrency import CancellationToken, async_sleep, background, sleep
from .runtime.observability import configure_from_settings, configure_logging, get_logger, log_context
from .runtime.retry import (
    DEFAULT_DELAYER,
    MAX_DELAY,
    Attempt,
    ConstantDelayer,
    Delayer,
    ExponentialDelayer,
    NopDelayer,
    Retryer,
    RetryResult,
    aretry,
    retry,
)

__all__ = [
    "__version__",
    # Engine
    "Retryer", "retry", "aretry",
    "Attempt", "RetryResult",
    # Delay policies
    "Delayer", "NopDelayer", "ConstantDelayer", "ExponentialDelayer", "DEFAULT_DELAYER", "MAX_DELAY",
    # Cancellation
    "CancellationToken", "background", "sleep", "async_sleep",
    # Errors
    "ErrorCode", "RetryerError", "BreakError", "break_retry", "find_break",
    "CancellationError", "Cancelled", "DeadlineExceeded", "RetryExhausted",
    # Config
    "RetryerSettings", "RetrySettings", "LoggingSettings", "get_settings", "clear_settings_cache",
    # Logging
    "configure_logging", "configure_from_settings", "get_logger", "log_context",
]
