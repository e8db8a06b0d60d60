"""Cancellation token shared between a caller and the retry loop.

A token fires at most once, either explicitly through cancel() or when its
deadline passes. Firing is thread-safe: cancel() may be called from any
thread while another thread or an event loop is waiting on the token.

Deadlines are observed lazily against the monotonic clock: there is no
background timer thread. Waiters bound their own timeouts by remaining().

Example:
    >>> with CancellationToken.with_timeout(30.0) as token:
    ...     result = retryer.retry(token, fetch)
    >>> # Leaving the block cancels the token and detaches it from any parent

    >>> parent = CancellationToken()
    >>> child = CancellationToken.with_timeout(5.0, parent=parent)
    >>> parent.cancel()
    True
    >>> child.cancelled
    True
"""

from __future__ import annotations

import functools
import itertools
import threading
import time
from typing import TYPE_CHECKING, Callable, Self

from retryer.foundation.errors import Cancelled, CancellationError, DeadlineExceeded

if TYPE_CHECKING:
    from types import TracebackType

Callback = Callable[[CancellationError], None]


def _noop() -> None:
    pass


class CancellationToken:
    """Thread-safe, fire-once cancellation signal with optional deadline.

    Attributes:
        deadline: Monotonic-clock deadline, or None
        error: Cancelled / DeadlineExceeded once fired, else None
        cancelled: Whether the token has fired (non-blocking)
    """

    __slots__ = ("_lock", "_event", "_error", "_deadline", "_callbacks", "_ids", "_detach")

    def __init__(self, *, deadline: float | None = None, parent: CancellationToken | None = None) -> None:
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._error: CancellationError | None = None
        self._callbacks: dict[int, Callback] = {}
        self._ids = itertools.count()
        self._detach: Callable[[], None] | None = None
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline
        if parent is not None:
            detach = parent.add_callback(self._fire)
            with self._lock:
                if self._error is None:
                    self._detach = detach

    @classmethod
    def with_timeout(cls, seconds: float, *, parent: CancellationToken | None = None) -> Self:
        """Token that fires with DeadlineExceeded after `seconds`."""
        return cls(deadline=time.monotonic() + seconds, parent=parent)

    @classmethod
    def with_deadline(cls, deadline: float, *, parent: CancellationToken | None = None) -> Self:
        """Token that fires at a time.monotonic() deadline."""
        return cls(deadline=deadline, parent=parent)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or None without one."""
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    @property
    def cancelled(self) -> bool:
        return self._expire()

    @property
    def error(self) -> CancellationError | None:
        self._expire()
        return self._error

    def cancel(self) -> bool:
        """Fire the token with Cancelled. Returns False if it had already fired."""
        return self._fire(Cancelled())

    def raise_if_cancelled(self) -> None:
        """Raise the token's error if it has fired."""
        if (err := self.error) is not None:
            raise err

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the token fires or `timeout` elapses.

        Returns:
            True if the token fired, False on timeout
        """
        end = None if timeout is None else time.monotonic() + timeout
        while not self._expire():
            now = time.monotonic()
            if end is not None and end <= now:
                return False
            bounds = [t - now for t in (end, self._deadline) if t is not None]
            self._event.wait(min(*bounds, threading.TIMEOUT_MAX) if bounds else None)
        return True

    def add_callback(self, fn: Callback) -> Callable[[], None]:
        """Run `fn(error)` once when the token fires.

        Runs immediately (on the calling thread) if the token already fired.
        Otherwise runs on whichever thread fires the token.

        Returns:
            Function that unregisters the callback; safe to call repeatedly
        """
        self._expire()
        with self._lock:
            if self._error is None:
                key = next(self._ids)
                self._callbacks[key] = fn
                return functools.partial(self._remove_callback, key)
            error = self._error
        fn(error)
        return _noop

    def _remove_callback(self, key: int) -> None:
        with self._lock:
            self._callbacks.pop(key, None)

    def _expire(self) -> bool:
        """Fire with DeadlineExceeded if the deadline passed. Returns fired state."""
        if self._error is None and self._deadline is not None and time.monotonic() >= self._deadline:
            self._fire(DeadlineExceeded())
        return self._error is not None

    def _fire(self, error: CancellationError) -> bool:
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
            detach, self._detach = self._detach, None
        self._event.set()
        if detach is not None:
            detach()
        for cb in callbacks:
            cb(error)
        return True

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.cancel()

    def __repr__(self) -> str:
        state = type(self._error).__name__ if self._error else "active"
        return f"CancellationToken({state}, deadline={self._deadline})"


def background() -> CancellationToken:
    """A fresh token that only fires if cancelled explicitly."""
    return CancellationToken()
