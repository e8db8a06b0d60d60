"""Cancellation primitives for the retry loop.

Key Components:
    - CancellationToken: Fire-once signal with explicit cancel and deadlines
    - sleep / async_sleep: Wait for a delay unless the token fires first

Design:
    - Thread-safe: Tokens may be cancelled from any thread or event loop
    - No polling: Waiters block on an event or await a future
    - Scoped: Tokens are context managers; exiting cancels them

Example:
    >>> from retryer.runtime.concurrency import CancellationToken, sleep
    >>>
    >>> token = CancellationToken()
    >>> threading.Timer(0.1, token.cancel).start()
    >>> sleep(token, 10.0)
    Cancelled('operation cancelled')
"""

from __future__ import annotations

from .token import Callback, CancellationToken, background
from .wait import async_sleep, sleep

__all__ = [
    "Callback",
    "CancellationToken",
    "background",
    "sleep",
    "async_sleep",
]
