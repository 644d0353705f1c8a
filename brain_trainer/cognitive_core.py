from __future__ import annotations

import math
import random
from collections.abc import Sequence
from typing import Protocol, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    """Source of randomness for generators.

    Generators take one of these instead of touching the ``random`` module so
    that a seed fully determines the content they produce.
    """

    def random(self) -> float: ...
    def randrange(self, stop: int) -> int: ...
    def sample(self, population: Sequence[T], k: int) -> list[T]: ...
    def shuffled(self, items: Sequence[T]) -> list[T]: ...


class SeededRng:
    """Simple seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(int(seed))

    def random(self) -> float:
        return self._rng.random()

    def randrange(self, stop: int) -> int:
        return self._rng.randrange(stop)

    def sample(self, population: Sequence[T], k: int) -> list[T]:
        return self._rng.sample(list(population), k)

    def shuffled(self, items: Sequence[T]) -> list[T]:
        """Return a Fisher-Yates shuffled copy; ``items`` is left untouched."""

        out = list(items)
        for i in range(len(out) - 1, 0, -1):
            j = self._rng.randrange(i + 1)
            out[i], out[j] = out[j], out[i]
        return out


def new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def clamp_int(x: int, lo: int, hi: int) -> int:
    return lo if x <= lo else hi if x >= hi else int(x)


def ceil_seconds(x: float) -> int:
    # Countdowns are shown as whole seconds, never as 0 while time remains.
    return max(0, int(math.ceil(x - 1e-9)))
