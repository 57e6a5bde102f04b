"""
Random distributions used to shape ranks and inter-arrival times.

A distribution is a stateless callable: it takes a random source and
returns one float. Anything with that shape can be passed where the
simulator expects a distribution.
"""

from dataclasses import dataclass
from typing import Callable
import math
import random

import numpy as np


Distribution = Callable[[random.Random], float]


@dataclass(frozen=True)
class ConstantDistribution:
    """Always returns `value`."""
    value: float

    def __call__(self, rng: random.Random) -> float:
        return self.value


@dataclass(frozen=True)
class UniformDistribution:
    """Uniform on [low, high)."""
    low: float
    high: float

    def __post_init__(self):
        if self.high < self.low:
            raise ValueError("high must not be below low")

    def __call__(self, rng: random.Random) -> float:
        return rng.uniform(self.low, self.high)


@dataclass(frozen=True)
class ExponentialDistribution:
    """Exponential inter-arrival times with the given mean (Poisson arrivals)."""
    mean: float

    def __post_init__(self):
        if self.mean <= 0:
            raise ValueError("mean must be positive")

    def __call__(self, rng: random.Random) -> float:
        return rng.expovariate(1.0 / self.mean)


@dataclass(frozen=True)
class PowerLawDistribution:
    """
    Pareto-style power law with density proportional to x^-a for x >= xmin.

    Used to give peers Zipf-like ranks, modelling the skew of influence
    among real network participants.
    """
    xmin: float
    a: float

    def __post_init__(self):
        if self.xmin <= 0:
            raise ValueError("xmin must be positive")
        if self.a <= 1:
            raise ValueError("exponent a must be greater than 1")

    def __call__(self, rng: random.Random) -> float:
        # Inverse transform sampling
        return self.xmin * math.pow(1.0 - rng.random(), 1.0 / (1.0 - self.a))


@dataclass(frozen=True)
class Rate:
    """
    A rate expressed as `count` events per `duration` (virtual nanoseconds).

    Attributes:
        count: Number of events
        duration: Virtual duration the events are spread over
    """
    count: int
    duration: int

    def __post_init__(self):
        if self.count <= 0:
            raise ValueError("count must be positive")
        if self.duration <= 0:
            raise ValueError("duration must be positive")
        if self.duration < self.count:
            raise ValueError(
                f"{self.count} events per {self.duration}ns is finer than the clock resolution"
            )

    def inv(self) -> float:
        """Mean inter-arrival duration, in virtual nanoseconds (at least 1)."""
        return self.duration / self.count


def sample(size: int, dist: Distribution, rng: random.Random) -> np.ndarray:
    """
    Draw `size` independent samples from `dist`.

    Args:
        size: Number of samples
        dist: Distribution to draw from
        rng: Random source

    Returns:
        Array of samples in draw order
    """
    return np.fromiter((dist(rng) for _ in range(size)), dtype=float, count=size)
