"""Tests for delay policies.

Validates:
- Zero delay before the first attempt for every policy
- Constant clamping
- Exponential growth, capping and default fallbacks
- Jitter bounds and the overflow clamp
"""

from __future__ import annotations

import math
import random

import pytest

from retryer.runtime.retry import (
    DEFAULT_DELAYER,
    EXP_INITIAL,
    EXP_MULTIPLIER,
    MAX_DELAY,
    ConstantDelayer,
    Delayer,
    ExponentialDelayer,
    NopDelayer,
)


# ═════════════════════════════════════════════════════════════════════════════
# Shared properties
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize("delayer", [
    NopDelayer(),
    ConstantDelayer(1.0),
    ExponentialDelayer(),
    ExponentialDelayer(initial=2.0, multiplier=3.0, jitter_percent=100),
    DEFAULT_DELAYER,
])
@pytest.mark.parametrize("attempt", [0, -1, -7, -(2**62)])
def test_no_delay_before_first_attempt(delayer: Delayer, attempt: int) -> None:
    assert delayer.delay(attempt) == 0.0


def test_delayers_satisfy_protocol() -> None:
    for d in (NopDelayer(), ConstantDelayer(), ExponentialDelayer()):
        assert isinstance(d, Delayer)


def test_nop_delayer_always_zero() -> None:
    assert [NopDelayer().delay(n) for n in range(1, 6)] == [0.0] * 5


# ═════════════════════════════════════════════════════════════════════════════
# Constant
# ═════════════════════════════════════════════════════════════════════════════


class TestConstantDelayer:

    def test_returns_configured_duration(self) -> None:
        delayer = ConstantDelayer(1.0)
        assert [delayer.delay(n) for n in (1, 2, 3)] == [1.0, 1.0, 1.0]

    def test_zero_duration(self) -> None:
        assert ConstantDelayer(0.0).delay(4) == 0.0

    def test_negative_duration_clamps_to_zero(self) -> None:
        assert ConstantDelayer(-3.0).delay(1) == 0.0
        assert ConstantDelayer(-3.0).delay(100) == 0.0

    def test_nan_duration_clamps_to_zero(self) -> None:
        assert ConstantDelayer(float("nan")).delay(1) == 0.0

    def test_immutable(self) -> None:
        delayer = ConstantDelayer(1.0)
        with pytest.raises(AttributeError):
            delayer.duration = 2.0  # type: ignore[misc]


# ═════════════════════════════════════════════════════════════════════════════
# Exponential
# ═════════════════════════════════════════════════════════════════════════════


class TestExponentialDelayer:

    def test_growth_then_cap(self) -> None:
        delayer = ExponentialDelayer(initial=1.0, multiplier=2.0, max_delay=20.0)
        assert [delayer.delay(n) for n in range(1, 11)] == [1.0, 2.0, 4.0, 8.0, 16.0] + [20.0] * 5

    def test_first_retry_uses_initial(self) -> None:
        assert ExponentialDelayer(initial=0.25, multiplier=4.0).delay(1) == 0.25

    @pytest.mark.parametrize("n", range(1, 15))
    def test_matches_closed_form(self, n: int) -> None:
        delayer = ExponentialDelayer(initial=0.3, multiplier=1.7, max_delay=12.0)
        assert delayer.delay(n) == min(0.3 * 1.7 ** (n - 1), 12.0)

    def test_zero_value_uses_defaults(self) -> None:
        delayer = ExponentialDelayer(initial=0, multiplier=0, max_delay=0)
        assert delayer.delay(1) == EXP_INITIAL
        assert delayer.delay(2) == EXP_INITIAL * EXP_MULTIPLIER
        assert delayer.effective_max == MAX_DELAY

    @pytest.mark.parametrize("multiplier", [0.5, -2.0, math.nan, math.inf, -math.inf])
    def test_invalid_multiplier_falls_back(self, multiplier: float) -> None:
        assert ExponentialDelayer(multiplier=multiplier).effective_multiplier == EXP_MULTIPLIER

    def test_negative_initial_falls_back(self) -> None:
        assert ExponentialDelayer(initial=-1.0).delay(1) == EXP_INITIAL

    def test_multiplier_of_one_is_constant(self) -> None:
        delayer = ExponentialDelayer(initial=2.0, multiplier=1.0)
        assert {delayer.delay(n) for n in range(1, 8)} == {2.0}

    def test_overflow_caps_at_max(self) -> None:
        delayer = ExponentialDelayer(initial=1.0, multiplier=2.0, max_delay=60.0)
        assert delayer.delay(10**6) == 60.0

    def test_overflow_without_cap_uses_max_delay(self) -> None:
        delayer = ExponentialDelayer(initial=1e300, multiplier=2.0)
        assert delayer.delay(2**31) == MAX_DELAY

    def test_jitter_clamped_to_hundred(self) -> None:
        assert ExponentialDelayer(jitter_percent=250).effective_jitter == 100
        assert ExponentialDelayer(jitter_percent=-5).effective_jitter == 0


class TestJitter:

    def test_delay_within_percent_of_base(self) -> None:
        delayer = ExponentialDelayer(initial=1.0, multiplier=2.0, max_delay=20.0, jitter_percent=50)
        ranges = [(0.5, 1.5), (1.0, 3.0), (2.0, 6.0), (4.0, 12.0), (8.0, 24.0)] + [(10.0, 30.0)] * 5
        for attempt, (lo, hi) in enumerate(ranges, start=1):
            for _ in range(50):
                assert lo <= delayer.delay(attempt) <= hi

    def test_jitter_can_exceed_max(self) -> None:
        delayer = ExponentialDelayer(initial=10.0, multiplier=2.0, max_delay=10.0, jitter_percent=100)
        draws = [delayer.delay(5) for _ in range(500)]
        assert all(0.0 <= d <= 20.0 for d in draws)
        assert any(d > 10.0 for d in draws)

    def test_jitter_varies(self) -> None:
        delayer = ExponentialDelayer(initial=1.0, jitter_percent=30)
        assert len({delayer.delay(1) for _ in range(20)}) > 1

    def test_zero_jitter_is_deterministic(self) -> None:
        delayer = ExponentialDelayer(initial=1.0, multiplier=2.0)
        assert {delayer.delay(3) for _ in range(20)} == {4.0}

    def test_overflowed_draw_clamps_to_max(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(random, "uniform", lambda a, b: -1.0)
        delayer = ExponentialDelayer(initial=1.0, jitter_percent=10)
        assert delayer.delay(1) == MAX_DELAY

    def test_overflow_with_jitter_stays_positive(self) -> None:
        delayer = ExponentialDelayer(initial=1e300, multiplier=2.0, jitter_percent=1)
        assert delayer.delay(2**31) > 0

    def test_default_delayer(self) -> None:
        assert DEFAULT_DELAYER.jitter_percent == 50
        for _ in range(50):
            assert EXP_INITIAL * 0.5 <= DEFAULT_DELAYER.delay(1) <= EXP_INITIAL * 1.5
