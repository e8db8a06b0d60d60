"""Retry loop with pluggable delay policies.

Example:
    >>> from retryer.runtime.retry import ExponentialDelayer, Retryer
    >>> from retryer.runtime.concurrency import CancellationToken
    >>>
    >>> retryer = Retryer(
    ...     delayer=ExponentialDelayer(initial=0.2, multiplier=2, max_delay=10, jitter_percent=20),
    ...     max_attempts=5,
    ... )
    >>> with CancellationToken.with_timeout(60) as token:
    ...     result = retryer.retry(token, lambda token: upload(path))
    >>> result.raise_for_error()
"""

from .backoff import (
    DEFAULT_DELAYER,
    EXP_INITIAL,
    EXP_MULTIPLIER,
    MAX_DELAY,
    ConstantDelayer,
    Delayer,
    ExponentialDelayer,
    NopDelayer,
)
from .policy import AsyncOperation, OnRetry, Operation, Retryer, aretry, retry
from .result import Attempt, RetryResult

__all__ = [
    # Delay policies
    "Delayer",
    "NopDelayer",
    "ConstantDelayer",
    "ExponentialDelayer",
    "DEFAULT_DELAYER",
    "EXP_INITIAL",
    "EXP_MULTIPLIER",
    "MAX_DELAY",
    # Engine
    "Retryer",
    "Operation",
    "AsyncOperation",
    "OnRetry",
    "retry",
    "aretry",
    # Results
    "Attempt",
    "RetryResult",
]
