"""Seeded random generator threaded through generation."""

from __future__ import annotations

import random
from typing import Optional

_SEED_BITS = 53


def fresh_seed() -> int:
    """Draw a new seed that survives a round trip through JSON numbers."""

    return random.SystemRandom().randrange(1 << _SEED_BITS)


class SeededRandom(random.Random):
    """``random.Random`` that remembers the seed it was created with.

    ``seed_value`` is what gets persisted in the payload; replaying the same
    call sequence on ``SeededRandom(seed_value)`` reproduces the puzzle.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        if seed is None:
            seed = fresh_seed()
        if isinstance(seed, bool) or not isinstance(seed, int):
            raise TypeError("seed must be an integer")
        self.seed_value = seed
        super().__init__(seed)

    def fork(self) -> "SeededRandom":
        """Independent copy at the current state; the original is not advanced."""

        clone = SeededRandom(self.seed_value)
        clone.setstate(self.getstate())
        return clone


__all__ = ["SeededRandom", "fresh_seed"]
