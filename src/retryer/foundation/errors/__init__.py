"""Error types for retryer.

- ErrorCode: Classification of engine-produced errors
- BreakError/break_retry/find_break: Non-retryable signal wrapping a cause
- CancellationError/Cancelled/DeadlineExceeded: Token firing reasons
- RetryExhausted: Raised on demand when the attempt ceiling was reached
"""

from .errors import (
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

__all__ = [
    "ErrorCode", "RetryerError",
    # Break signal
    "BreakError", "break_retry", "find_break",
    # Cancellation
    "CancellationError", "Cancelled", "DeadlineExceeded",
    # Exhaustion
    "RetryExhausted",
]
