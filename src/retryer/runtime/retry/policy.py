"""Retry engine.

Drives one fallible operation through the retry state machine:

    Invoking ──ok──────────────────────────────→ Done (success)
        │ ──BreakError────────────────────────→ Done (break)
        └─error─→ Deciding ──ceiling reached──→ Done (exhausted)
                      └─delay─→ Waiting ──token fired──→ Done (cancelled)
                                    └─elapsed─→ Invoking

Every operation call and every interrupted wait is recorded as an Attempt.
The engine never raises operation or cancellation errors; callers inspect
the returned RetryResult.

Optimizations:
- Frozen for immutability, safe to share across threads and tasks
- Delayer resolved once at validation time
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Awaitable, Callable, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from retryer.foundation.errors import CancellationError, DeadlineExceeded, find_break
from retryer.runtime.concurrency import CancellationToken, async_sleep, sleep
from retryer.runtime.observability import BoundLogger, get_logger

from .backoff import DEFAULT_DELAYER, Delayer
from .result import Attempt, RetryResult

if TYPE_CHECKING:
    from retryer.foundation.config import RetrySettings

T = TypeVar("T")

Operation = Callable[[CancellationToken], T]
AsyncOperation = Callable[[CancellationToken], Awaitable[T]]
OnRetry = Callable[[int, BaseException, float], None]

log = get_logger("retryer.retry")


class Retryer(BaseModel):
    """Retry configuration and loop driver.

    Attributes:
        delayer: Delay policy between attempts (None = DEFAULT_DELAYER)
        max_attempts: Maximum calls to the operation (0 = unbounded)
        respect_deadline: Stop early when the token's deadline would pass
            during the next wait
        on_retry: Optional callback(attempt, error, delay) run before each wait

    Example:
        >>> retryer = Retryer(delayer=ConstantDelayer(0.2), max_attempts=5)
        >>> result = retryer.retry(token, lambda token: client.get("/health"))
        >>> if result.final_attempt_error is not None:
        ...     raise result.final_attempt_error
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,  # For Delayer protocol
        validate_default=True,
        extra="forbid",
        revalidate_instances="never",
    )

    delayer: Delayer = Field(default=DEFAULT_DELAYER)
    max_attempts: Annotated[int, Field(ge=0)] = 0
    respect_deadline: bool = True
    on_retry: OnRetry | None = Field(default=None, exclude=True, repr=False)

    @field_validator("delayer", mode="before")
    @classmethod
    def _default_delayer(cls, v: Delayer | None) -> Delayer:
        return DEFAULT_DELAYER if v is None else v

    @classmethod
    def from_settings(cls, settings: RetrySettings | None = None, **overrides: object) -> Retryer:
        """Build from RetrySettings (defaults to get_settings().retry)."""
        if settings is None:
            from retryer.foundation.config import get_settings
            settings = get_settings().retry
        params: dict[str, object] = {
            "delayer": settings.build_delayer(),
            "max_attempts": settings.max_attempts,
            "respect_deadline": settings.respect_deadline,
        }
        return cls(**{**params, **overrides})

    # ─────────────────────────────────────────────────────────────────────
    # State machine steps shared by retry() and aretry()
    # ─────────────────────────────────────────────────────────────────────

    def _log(self) -> BoundLogger:
        return log.bind(max_attempts=self.max_attempts)

    def _settle(self, result: RetryResult[T], delay: float, exc: Exception) -> bool:
        """Record a failed call. Returns True when the loop must stop."""
        if (berr := find_break(exc)) is not None:
            result.record(Attempt(delay=delay, operation_error=berr.err))
            result.broken = True
            self._log().debug("retry broken", attempt=len(result), error=repr(berr.err))
            return True
        result.record(Attempt(delay=delay, operation_error=exc))
        if self.max_attempts > 0 and len(result) >= self.max_attempts:
            self._log().warning("retry attempts exhausted", attempts=len(result), error=repr(exc))
            return True
        return False

    def _early_deadline(self, token: CancellationToken, delay: float) -> CancellationError | None:
        """DeadlineExceeded if the deadline would pass before `delay` elapses."""
        if not self.respect_deadline or (remaining := token.remaining()) is None:
            return None
        if remaining < delay:
            return DeadlineExceeded(f"deadline in {remaining:.3f}s, next retry in {delay:.3f}s")
        return None

    def _interrupted(self, result: RetryResult[T], delay: float, err: CancellationError) -> RetryResult[T]:
        result.record(Attempt(delay=delay, cancellation_error=err))
        self._log().debug("retry cancelled", attempt=len(result), reason=err.code.value)
        return result

    def _announce(self, attempt: int, delay: float, err: Exception) -> None:
        self._log().info("retry scheduled", attempt=attempt, delay=delay, error=repr(err))
        if self.on_retry:
            self.on_retry(attempt, err, delay)

    # ─────────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────────

    def retry(self, token: CancellationToken | None, operation: Operation[T]) -> RetryResult[T]:
        """Call `operation(token)` until it succeeds, breaks, runs out of attempts or is cancelled.

        The operation runs at least once, even with an already-fired token;
        cancellation is only observed while waiting between attempts.

        Args:
            token: Cancellation token (None = never cancelled)
            operation: Callable taking the token; raise to fail, raise
                BreakError to stop without retrying

        Returns:
            RetryResult with one Attempt per call plus one for an interrupted wait
        """
        if token is None:
            token = CancellationToken()
        result: RetryResult[T] = RetryResult(max_attempts=self.max_attempts)
        delay = 0.0
        while True:
            try:
                value = operation(token)
            except Exception as e:
                if self._settle(result, delay, e):
                    return result
                failure = e
            else:
                result.record(Attempt(delay=delay))
                result.value = value
                return result

            delay = self.delayer.delay(len(result))
            if (err := self._early_deadline(token, delay)) is None:
                self._announce(len(result), delay, failure)
                err = sleep(token, delay)
            if err is not None:
                return self._interrupted(result, delay, err)

    async def aretry(self, token: CancellationToken | None, operation: AsyncOperation[T]) -> RetryResult[T]:
        """Async version of retry(): awaits the operation and waits without blocking the loop."""
        if token is None:
            token = CancellationToken()
        result: RetryResult[T] = RetryResult(max_attempts=self.max_attempts)
        delay = 0.0
        while True:
            try:
                value = await operation(token)
            except Exception as e:
                if self._settle(result, delay, e):
                    return result
                failure = e
            else:
                result.record(Attempt(delay=delay))
                result.value = value
                return result

            delay = self.delayer.delay(len(result))
            if (err := self._early_deadline(token, delay)) is None:
                self._announce(len(result), delay, failure)
                err = await async_sleep(token, delay)
            if err is not None:
                return self._interrupted(result, delay, err)


def retry(
    token: CancellationToken | None,
    operation: Operation[T],
    *,
    delayer: Delayer | None = None,
    max_attempts: int = 0,
) -> RetryResult[T]:
    """Run `operation` under a one-off Retryer. See Retryer.retry()."""
    return Retryer(delayer=delayer, max_attempts=max_attempts).retry(token, operation)


async def aretry(
    token: CancellationToken | None,
    operation: AsyncOperation[T],
    *,
    delayer: Delayer | None = None,
    max_attempts: int = 0,
) -> RetryResult[T]:
    """Run async `operation` under a one-off Retryer. See Retryer.aretry()."""
    return await Retryer(delayer=delayer, max_attempts=max_attempts).aretry(token, operation)
