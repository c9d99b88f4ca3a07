"""Injectable random source shared by every simulation system."""

from __future__ import annotations

from typing import Optional, Sequence, TypeVar

import numpy as np
from numpy.random import Generator

T = TypeVar("T")


class RandomSource:
    """Thin helper layer over a numpy Generator.

    Every system receives the same instance, so one seed fixes a whole run.
    Tests can subclass and override ``random`` (or any helper) to script
    outcomes.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng: Generator = np.random.default_rng(seed)

    def spawn(self) -> "RandomSource":
        """Independent child stream (used for side-effect-free forecasts)."""
        seed = int(self._rng.integers(0, 2**31 - 1))
        return RandomSource(seed)

    def random(self) -> float:
        return float(self._rng.random())

    def int(self, lo: int, hi: int) -> int:
        """Uniform integer in [lo, hi], both ends inclusive."""
        if hi <= lo:
            return int(lo)
        return int(self._rng.integers(lo, hi + 1))

    def float(self, lo: float, hi: float) -> float:
        return lo + (hi - lo) * self.random()

    def chance(self, probability: float) -> bool:
        return self.random() < probability

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("choice() from an empty sequence")
        return items[int(self._rng.integers(0, len(items)))]

    def choices(self, items: Sequence[T], k: int) -> list[T]:
        """Sample k distinct items (without replacement)."""
        pool = list(items)
        picked: list[T] = []
        for _ in range(min(k, len(pool))):
            idx = int(self._rng.integers(0, len(pool)))
            picked.append(pool.pop(idx))
        return picked

    def weighted_choice(self, weights: dict[T, float]) -> T:
        """Pick a key with probability proportional to its weight."""
        if not weights:
            raise ValueError("weighted_choice() from an empty mapping")
        total = sum(max(0.0, w) for w in weights.values())
        keys = list(weights.keys())
        if total <= 0:
            return keys[0]
        roll = self.random() * total
        for key in keys:
            roll -= max(0.0, weights[key])
            if roll < 0:
                return key
        return keys[-1]

