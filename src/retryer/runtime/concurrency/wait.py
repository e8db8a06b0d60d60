"""Cancellable waiting between attempts.

Races a delay against a CancellationToken:
    - sleep: Blocks the calling thread
    - async_sleep: Suspends the current task, leaving the event loop free

Both return None when the full delay elapsed and the token's error when the
token fired first (or had already fired). Neither busy-polls: the sync
variant blocks on the token's event, the async variant awaits a future the
token resolves thread-safely.

Example:
    >>> token = CancellationToken.with_timeout(0.01)
    >>> sleep(token, 5.0)
    DeadlineExceeded('deadline exceeded')
"""

from __future__ import annotations

import asyncio
import math
import threading

from retryer.foundation.errors import CancellationError

from .token import Callback, CancellationToken


def _clamp(delay: float) -> float:
    """Clamp delay to [0, longest wait the host supports]. NaN waits zero."""
    if math.isnan(delay):
        return 0.0
    return min(max(delay, 0.0), threading.TIMEOUT_MAX)


def sleep(token: CancellationToken, delay: float) -> CancellationError | None:
    """Wait `delay` seconds unless the token fires first.

    Args:
        token: Cancellation token to race against
        delay: Seconds to wait; negative values wait zero

    Returns:
        None if the delay elapsed, else the token's error
    """
    if (err := token.error) is not None:
        return err
    if token.wait(_clamp(delay)):
        return token.error
    return None


def _resolver(fut: asyncio.Future[CancellationError]) -> Callback:
    """Token callback that resolves `fut` on its own loop from any thread."""
    loop = fut.get_loop()

    def _set(error: CancellationError) -> None:
        if not fut.done():
            fut.set_result(error)

    def callback(error: CancellationError) -> None:
        if not loop.is_closed():
            loop.call_soon_threadsafe(_set, error)

    return callback


async def async_sleep(token: CancellationToken, delay: float) -> CancellationError | None:
    """Async variant of sleep(). Same contract, awaits instead of blocking.

    The token callback and the pending future are released on every exit
    path, including when the awaiting task itself is cancelled.
    """
    if (err := token.error) is not None:
        return err
    loop = asyncio.get_running_loop()
    end = loop.time() + _clamp(delay)
    fired: asyncio.Future[CancellationError] = loop.create_future()
    remove = token.add_callback(_resolver(fired))
    try:
        while (err := token.error) is None:
            if (left := end - loop.time()) <= 0:
                return None
            if (remaining := token.remaining()) is not None:
                left = min(left, remaining)
            await asyncio.wait({fired}, timeout=left)
        return err
    finally:
        remove()
        if not fired.done():
            fired.cancel()
