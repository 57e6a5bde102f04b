"""
Rank-weighted random selection.

A RankedSelector draws members of a fixed population with probability
proportional to their rank. Draws are with replacement, so the same member
can come back on consecutive calls.
"""

from typing import Generic, Sequence, TypeVar
import random

import numpy as np


T = TypeVar("T")


class RankedSelector(Generic[T]):
    """
    Weighted sampler over a population.

    Ranks are fixed at construction; they are not recomputed per draw.
    """

    def __init__(self, population: Sequence[T], ranks: Sequence[float], rng: random.Random):
        """
        Args:
            population: Members to draw from, in a fixed order
            ranks: Non-negative weight per member, same order and length
            rng: Random source shared with the rest of the simulation

        Raises:
            ValueError: On an empty population, mismatched lengths,
                negative ranks, or when no rank is positive
        """
        self.population: list[T] = list(population)
        weights = np.asarray(ranks, dtype=float)

        if not self.population:
            raise ValueError("Cannot select from an empty population")
        if weights.shape != (len(self.population),):
            raise ValueError(
                f"Expected {len(self.population)} ranks, got {weights.size}"
            )
        if np.any(weights < 0) or not np.all(np.isfinite(weights)):
            raise ValueError("Ranks must be finite and non-negative")

        self.ranks = weights
        self._cumulative = np.cumsum(weights)
        self._total = float(self._cumulative[-1])
        if self._total <= 0:
            raise ValueError("At least one member must have a positive rank")

        self._last_positive = int(np.flatnonzero(weights > 0)[-1])
        self.rng = rng

    def __call__(self) -> T:
        """Draw one member."""
        target = self.rng.random() * self._total
        index = int(np.searchsorted(self._cumulative, target, side="right"))
        # Guard against float rounding at the top end
        return self.population[min(index, self._last_positive)]

    def probabilities(self) -> np.ndarray:
        """Selection probability of each member, in population order."""
        return self.ranks / self._total

    def __len__(self) -> int:
        return len(self.population)

    def __repr__(self):
        return f"RankedSelector(size={len(self.population)})"


def make_selector(population: Sequence[T], ranks: Sequence[float], rng: random.Random) -> RankedSelector[T]:
    """Build a RankedSelector over `population` weighted by `ranks`."""
    return RankedSelector(population, ranks, rng)
