"""Delay policies for the retry loop.

Provides pluggable delay calculation between attempts:
- NopDelayer: Retry immediately
- ConstantDelayer: Fixed delay
- ExponentialDelayer: Exponential growth with cap and optional jitter

Attempt numbers count attempts made so far, so attempt 1 asks for the delay
before the first retry. The delay before the first attempt (attempt <= 0)
is always zero.
"""

from __future__ import annotations

import math
import random
import threading
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

# Longest wait the host can block on, in seconds
MAX_DELAY: float = threading.TIMEOUT_MAX

# Defaults for ExponentialDelayer
EXP_INITIAL: float = 0.5
EXP_MULTIPLIER: float = 1.5


@runtime_checkable
class Delayer(Protocol):
    """Protocol for delay calculation.

    Implementations must be pure (apart from jitter) and return 0.0 for
    attempt <= 0.
    """

    def delay(self, attempt: int) -> float:
        """Calculate delay in seconds to wait after `attempt` attempts.

        Args:
            attempt: Number of attempts made so far

        Returns:
            Delay in seconds before the next attempt
        """
        ...


@dataclass(frozen=True, slots=True)
class NopDelayer:
    """Zero delay between attempts."""

    def delay(self, attempt: int) -> float:
        return 0.0


@dataclass(frozen=True, slots=True)
class ConstantDelayer:
    """Fixed delay between attempts.

    Simple strategy for rate-limited APIs with known cooldown.
    Negative and NaN durations are treated as zero.

    Attributes:
        duration: Fixed delay in seconds (default: 1.0)
    """

    duration: float = 1.0

    def delay(self, attempt: int) -> float:
        if attempt <= 0 or not self.duration >= 0:
            return 0.0
        return self.duration


@dataclass(frozen=True, slots=True)
class ExponentialDelayer:
    """Exponential backoff with cap and percentage jitter.

    Base = min(initial * multiplier ^ (attempt - 1), max_delay)
    Delay = uniform(base - delta, base + delta), delta = jitter_percent% of base

    The cap applies before jitter, so a jittered delay may exceed max_delay
    by up to jitter_percent percent. This keeps retriers that reached the
    cap from falling into lockstep.

    Out-of-range fields fall back to defaults at use time:
        initial <= 0                      -> EXP_INITIAL
        multiplier < 1, NaN or infinite   -> EXP_MULTIPLIER
        max_delay <= 0                    -> MAX_DELAY
        jitter_percent > 100              -> 100

    Attributes:
        initial: Delay before the first retry in seconds
        multiplier: Exponential growth factor
        max_delay: Delay cap in seconds, applied before jitter
        jitter_percent: Randomization of +/- percent, 0 disables jitter
    """

    initial: float = EXP_INITIAL
    multiplier: float = EXP_MULTIPLIER
    max_delay: float = 0.0
    jitter_percent: int = 0

    @property
    def effective_initial(self) -> float:
        return self.initial if self.initial > 0 else EXP_INITIAL

    @property
    def effective_multiplier(self) -> float:
        m = self.multiplier
        if m < 1 or math.isnan(m) or math.isinf(m):
            return EXP_MULTIPLIER
        return m

    @property
    def effective_max(self) -> float:
        return self.max_delay if self.max_delay > 0 else MAX_DELAY

    @property
    def effective_jitter(self) -> int:
        return min(max(self.jitter_percent, 0), 100)

    def base_delay(self, attempt: int) -> float:
        """Capped delay for attempt >= 1, before jitter."""
        cap = self.effective_max
        try:
            n = self.effective_initial * self.effective_multiplier ** (attempt - 1)
        except OverflowError:
            return cap
        return cap if n > cap else n

    def _jitter(self, base: float) -> float:
        if (per := self.effective_jitter) == 0:
            return base
        delta = per / 100 * base
        d = random.uniform(base - delta, base + delta)
        # Overflowed draws become the longest delay, never a negative one
        if d < 0 or not math.isfinite(d):
            return MAX_DELAY
        return d

    def delay(self, attempt: int) -> float:
        if attempt <= 0:
            return 0.0
        return self._jitter(self.base_delay(attempt))


# Exponential with +/-50% jitter, all other parameters at their defaults
DEFAULT_DELAYER = ExponentialDelayer(jitter_percent=50)
