"""
mind/randomness.py - Entropy Sources

CryptoRandomSource draws from the OS entropy pool so no run can be replayed.
SequenceRandomSource replays a fixed sequence for deterministic tests.
"""

import secrets
from itertools import cycle
from typing import Iterable, Sequence, TypeVar

from .constants import ENERGY_MAX, ENERGY_RESOLUTION, ENERGY_SCALE, UNIFORM_RESOLUTION

T = TypeVar("T")


class RandomSource:
    """Uniform sampling primitives used by every phase."""

    def uniform(self) -> float:
        raise NotImplementedError

    def energy(self) -> float:
        raise NotImplementedError

    def token(self, nbytes: int = 8) -> str:
        raise NotImplementedError

    def pick(self, bank: Sequence[T]) -> T:
        """Index a fixed bank by uniform(), clamped to the last entry."""
        if not bank:
            raise ValueError("cannot pick from an empty bank")
        index = min(int(self.uniform() * len(bank)), len(bank) - 1)
        return bank[index]


class CryptoRandomSource(RandomSource):
    """Non-blocking, non-seedable draws from secrets."""

    def uniform(self) -> float:
        return secrets.randbelow(UNIFORM_RESOLUTION) / UNIFORM_RESOLUTION

    def energy(self) -> float:
        return secrets.randbelow(ENERGY_RESOLUTION) / ENERGY_SCALE

    def token(self, nbytes: int = 8) -> str:
        return secrets.token_hex(nbytes)


class SequenceRandomSource(RandomSource):
    """
    Deterministic source cycling through a fixed sequence.

    Values must lie in [0, 1). energy() scales the next value to [0, 10).
    """

    def __init__(self, values: Iterable[float]):
        values = list(values)
        if not values:
            raise ValueError("SequenceRandomSource needs at least one value")
        for v in values:
            if not 0.0 <= v < 1.0:
                raise ValueError(f"sequence value {v} outside [0, 1)")
        self._values = values
        self._iter = cycle(values)
        self.draws = 0

    def uniform(self) -> float:
        self.draws += 1
        return next(self._iter)

    def energy(self) -> float:
        return self.uniform() * ENERGY_MAX

    def token(self, nbytes: int = 8) -> str:
        return f"{self.draws:0{nbytes * 2}x}"
