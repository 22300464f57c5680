from __future__ import annotations
import math
import random
from typing import Optional

from .types import DelayStrategy


def _clamp(delay: float, max_delay: float) -> float:
    if delay > max_delay or delay < 0 or not math.isfinite(delay):
        return max_delay
    return delay


def fixed_delay(delay: float) -> DelayStrategy:
    """Always wait ``delay`` seconds."""

    def strategy(n: int, exc: BaseException) -> float:
        return delay

    return strategy


def linear_delay(base: float, max_delay: float) -> DelayStrategy:
    """Wait ``base * (n + 1)`` seconds, capped at ``max_delay``."""

    def strategy(n: int, exc: BaseException) -> float:
        return _clamp(base * (n + 1), max_delay)

    return strategy


def exponential_delay(base: float, max_delay: float) -> DelayStrategy:
    """Wait ``base * 2**n`` seconds, capped at ``max_delay``."""

    def strategy(n: int, exc: BaseException) -> float:
        if base == 0:
            return _clamp(0.0, max_delay)
        try:
            delay = base * (2.0**n)
        except OverflowError:
            return max_delay
        return _clamp(delay, max_delay)

    return strategy


def random_delay(
    min_delay: float, max_delay: float, *, rng: Optional[random.Random] = None
) -> DelayStrategy:
    """
    Wait a uniformly distributed time in ``[min_delay, max_delay]``.

    Bounds are normalized once: ``min_delay`` to at least 0 and ``max_delay``
    to at least ``min_delay``. Pass a seeded ``rng`` for reproducible waits.
    """
    lo = max(0.0, min_delay)
    hi = max(lo, max_delay)
    source = rng or random.Random()

    def strategy(n: int, exc: BaseException) -> float:
        if hi == lo:
            return lo
        return min(hi, max(lo, source.uniform(lo, hi)))

    return strategy


def jittered_exponential_delay(
    base: float,
    max_delay: float,
    jitter: float = 0.2,
    *,
    rng: Optional[random.Random] = None,
) -> DelayStrategy:
    """Exponential delay with a +/- ``jitter`` fraction, kept within ``[0, max_delay]``."""
    exp = exponential_delay(base, max_delay)
    source = rng or random.Random()

    def strategy(n: int, exc: BaseException) -> float:
        d = exp(n, exc)
        j = d * jitter
        return max(0.0, min(max_delay, d + source.uniform(-j, j)))

    return strategy
