"""Injectable random source for combat math and AI.

A random source is any zero-argument callable returning a float in [0, 1).
Every stochastic function in the combat core takes one, so replays and tests
can substitute a seeded generator or a scripted sequence.
"""

from typing import Callable, Iterable, Optional

import numpy as np

RandomSource = Callable[[], float]


class NumpyRandomSource:
    """Random source backed by a numpy Generator."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._generator = np.random.default_rng(seed)

    def __call__(self) -> float:
        return float(self._generator.random())

    def reseed(self, seed: Optional[int]) -> None:
        """Restart the stream from a new seed."""
        self.seed = seed
        self._generator = np.random.default_rng(seed)


class ScriptedRandom:
    """Replays a fixed sequence of draws, for deterministic replays.

    Raises IndexError once the script is exhausted unless a fallback value
    is given.
    """

    def __init__(self, values: Iterable[float], fallback: Optional[float] = None):
        self._values = list(values)
        self._position = 0
        self.fallback = fallback

    def __call__(self) -> float:
        if self._position >= len(self._values):
            if self.fallback is None:
                raise IndexError("ScriptedRandom exhausted")
            return self.fallback
        value = self._values[self._position]
        self._position += 1
        return value

    @property
    def draws(self) -> int:
        """Number of values consumed so far."""
        return self._position


_default_source = NumpyRandomSource()


def default_random() -> RandomSource:
    """Shared process-wide source used when none is injected."""
    return _default_source


def resolve_random(rng: Optional[RandomSource]) -> RandomSource:
    return rng if rng is not None else _default_source


def rand_range(rng: RandomSource, low: int, high: int) -> int:
    """Uniform integer in [low, high] inclusive."""
    return low + int(rng() * (high - low + 1))
