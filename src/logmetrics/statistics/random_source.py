"""
Seeded pseudo-random source shared by all generators.

Every random draw made while building a cycle goes through one RandomSource,
so a generator constructed with a fixed seed replays the same values for the
same sequence of calls. Not suitable for anything security related.
"""

import random
import time
from collections.abc import Sequence
from typing import TypeVar

from ..errors import InvalidArgument

T = TypeVar("T")


class RandomSource:
    """Bounded integer, float and pick-from-set draws over a private RNG."""

    def __init__(self, seed: int | None = None):
        """Seed once; defaults to a time-derived seed."""
        self.seed = time.time_ns() if seed is None else seed
        self._rng = random.Random(self.seed)

    def random_int(self, max_exclusive: int) -> int:
        """Return an integer in [0, max_exclusive)."""
        if max_exclusive <= 0:
            raise InvalidArgument(f"max_exclusive must be positive, got {max_exclusive}")
        return self._rng.randrange(max_exclusive)

    def random_float(self) -> float:
        """Return a float in [0, 1)."""
        return self._rng.random()

    def pick(self, candidates: Sequence[T]) -> T:
        """Pick one element uniformly."""
        if not candidates:
            raise InvalidArgument("cannot pick from an empty sequence")
        return candidates[self.random_int(len(candidates))]

    def noise(self, amplitude: int) -> int:
        """Return an integer in [-amplitude, amplitude)."""
        return self.random_int(2 * amplitude) - amplitude

    def __repr__(self) -> str:
        return f"RandomSource(seed={self.seed})"
