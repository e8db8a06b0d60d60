"""Attempt log returned by the retry loop.

Every call to the operation, and every wait that ended in cancellation,
leaves one Attempt in the RetryResult. The log is append-only and kept in
chronological order; callers read the outcome from it instead of catching
exceptions.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from retryer.foundation.errors import CancellationError, RetryExhausted

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Attempt:
    """One entry in the attempt log.

    Attributes:
        delay: Seconds waited before this attempt (0.0 for the first)
        cancellation_error: Set when the preceding wait was cut short
        operation_error: Exception raised by the operation, None on success
    """

    delay: float = 0.0
    cancellation_error: CancellationError | None = None
    operation_error: BaseException | None = None

    @property
    def error(self) -> BaseException | None:
        """Effective error; cancellation takes priority over the operation error."""
        if self.cancellation_error is not None:
            return self.cancellation_error
        return self.operation_error

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class RetryResult(Generic[T]):
    """Outcome of one retry loop.

    Attributes:
        max_attempts: Configured attempt ceiling (0 = unbounded)
        attempts: Attempt records, oldest first
        value: Return value of the successful operation call, if any
        broken: Set when the operation stopped the loop with a BreakError
    """

    max_attempts: int = 0
    _attempts: list[Attempt] = field(default_factory=list, repr=False)
    value: T | None = None
    broken: bool = False

    @property
    def attempts(self) -> tuple[Attempt, ...]:
        return tuple(self._attempts)

    @property
    def last(self) -> Attempt | None:
        return self._attempts[-1] if self._attempts else None

    @property
    def final_operation_error(self) -> BaseException | None:
        """Most recent operation error in the log, None if there is none."""
        for attempt in reversed(self._attempts):
            if attempt.operation_error is not None:
                return attempt.operation_error
        return None

    @property
    def final_attempt_error(self) -> BaseException | None:
        """Effective error of the last attempt only."""
        return self._attempts[-1].error if self._attempts else None

    @property
    def succeeded(self) -> bool:
        return bool(self._attempts) and self._attempts[-1].succeeded

    @property
    def exhausted(self) -> bool:
        """Whether the loop stopped because the attempt ceiling was reached."""
        last = self.last
        return (
            not self.broken
            and self.max_attempts > 0
            and len(self._attempts) >= self.max_attempts
            and last is not None
            and last.cancellation_error is None
            and last.operation_error is not None
        )

    def record(self, attempt: Attempt) -> None:
        """Append an attempt. Existing entries are never reordered or replaced."""
        self._attempts.append(attempt)

    def raise_for_error(self) -> T | None:
        """Return the value on success, otherwise raise the final error.

        Raises:
            RetryExhausted: If the attempt ceiling was reached
            CancellationError: If the loop ended on cancellation
            Exception: The final operation error otherwise (e.g. a break)
        """
        if (err := self.final_attempt_error) is None:
            return self.value
        if self.exhausted:
            raise RetryExhausted.create(len(self._attempts), err)
        raise err

    def __len__(self) -> int:
        return len(self._attempts)

    def __iter__(self) -> Iterator[Attempt]:
        return iter(tuple(self._attempts))

    def __repr__(self) -> str:
        return (
            f"RetryResult(attempts={len(self._attempts)}, max_attempts={self.max_attempts}, "
            f"error={self.final_attempt_error!r})"
        )
