"""Error taxonomy for retry execution.

Operation failures are captured into attempt records rather than raised.
The types here mark the outcomes the engine itself produces: breaks,
cancellations and exhaustion.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Self


class ErrorCode(StrEnum):
    """Machine-readable classification for retryer errors."""
    CANCELLED = "CANCELLED"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    BREAK = "BREAK"
    EXHAUSTED = "EXHAUSTED"
    UNKNOWN = "UNKNOWN"


class RetryerError(Exception):
    """Base exception for retryer errors."""

    code: ErrorCode = ErrorCode.UNKNOWN


class BreakError(RetryerError):
    """Marks an operation error as terminal.

    Raising a BreakError from an operation stops the retry loop on the spot,
    regardless of the remaining attempt budget. The wrapped cause is what
    gets recorded, so callers can still match on the original exception.

    Example:
        >>> def op(token):
        ...     resp = fetch()
        ...     if resp.status == 404:
        ...         raise BreakError(LookupError("gone"))
        ...     resp.raise_for_status()
    """

    __slots__ = ("err",)
    code = ErrorCode.BREAK

    def __init__(self, err: BaseException) -> None:
        self.err = err
        super().__init__(str(err))
        self.__cause__ = err

    def unwrap(self) -> BaseException:
        """Return the wrapped cause."""
        return self.err

    def __repr__(self) -> str:
        return f"BreakError({self.err!r})"


def break_retry(err: BaseException | None) -> BreakError | None:
    """Wrap a non-None error into BreakError. None passes through."""
    return None if err is None else BreakError(err)


def find_break(exc: BaseException) -> BreakError | None:
    """Find a BreakError on the exception's cause chain."""
    seen: set[int] = set()
    cur: BaseException | None = exc
    while cur is not None and id(cur) not in seen:
        if isinstance(cur, BreakError):
            return cur
        seen.add(id(cur))
        cur = cur.__cause__
    return None


class CancellationError(RetryerError):
    """Raised (or returned) when a cancellation token fires."""


class Cancelled(CancellationError):
    """Token was cancelled explicitly."""

    code = ErrorCode.CANCELLED

    def __init__(self, message: str = "operation cancelled") -> None:
        super().__init__(message)


class DeadlineExceeded(CancellationError, TimeoutError):
    """Token's deadline passed."""

    code = ErrorCode.DEADLINE_EXCEEDED

    def __init__(self, message: str = "deadline exceeded") -> None:
        super().__init__(message)


class RetryExhausted(RetryerError):
    """All permitted attempts failed.

    Only produced by RetryResult.raise_for_error(); the retry loop itself
    reports exhaustion structurally through the attempt log.
    """

    __slots__ = ("attempts",)
    code = ErrorCode.EXHAUSTED

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        super().__init__(f"gave up after {attempts} attempts: {last_error}")

    @classmethod
    def create(cls, attempts: int, last_error: BaseException) -> Self:
        """Create exhaustion error chained from the last operation error."""
        exc = cls(attempts, last_error)
        exc.__cause__ = last_error
        return exc
