"""
Unit tests for unlsim/distributions.py
"""

import random

import numpy as np
import pytest

from unlsim.clock import seconds
from unlsim.distributions import (
    ConstantDistribution,
    ExponentialDistribution,
    PowerLawDistribution,
    Rate,
    UniformDistribution,
    sample,
)


class FixedRandom:
    """Random source that always returns the same uniform draw."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class TestDistributions:

    def test_constant(self):
        dist = ConstantDistribution(7.5)
        rng = random.Random(0)
        assert {dist(rng) for _ in range(10)} == {7.5}

    def test_uniform_bounds(self):
        dist = UniformDistribution(2, 5)
        rng = random.Random(1)
        values = [dist(rng) for _ in range(1000)]
        assert min(values) >= 2
        assert max(values) <= 5

    def test_uniform_rejects_inverted_bounds(self):
        with pytest.raises(ValueError):
            UniformDistribution(5, 2)

    def test_exponential_mean(self):
        dist = ExponentialDistribution(10.0)
        values = sample(20000, dist, random.Random(2))
        assert values.mean() == pytest.approx(10.0, rel=0.03)

    def test_exponential_rejects_non_positive_mean(self):
        with pytest.raises(ValueError):
            ExponentialDistribution(0)

    def test_power_law_inverse_transform(self):
        dist = PowerLawDistribution(1, 3)
        # (1 - 0.75) ** (1 / (1 - 3)) == 0.25 ** -0.5 == 2
        assert dist(FixedRandom(0.75)) == pytest.approx(2.0)
        assert dist(FixedRandom(0.0)) == pytest.approx(1.0)

    def test_power_law_support_and_median(self):
        dist = PowerLawDistribution(1, 3)
        values = sample(20000, dist, random.Random(3))
        assert values.min() >= 1.0
        # Median of x^-3 on [1, inf) is 2 ** 0.5
        assert np.median(values) == pytest.approx(2 ** 0.5, rel=0.05)

    @pytest.mark.parametrize("xmin,a", [(0, 3), (-1, 3), (1, 1), (1, 0.5)])
    def test_power_law_rejects_bad_parameters(self, xmin, a):
        with pytest.raises(ValueError):
            PowerLawDistribution(xmin, a)

    def test_distributions_are_stateless(self):
        dist = PowerLawDistribution(1, 3)
        first = sample(50, dist, random.Random(9))
        second = sample(50, dist, random.Random(9))
        assert np.array_equal(first, second)


class TestRate:

    def test_inv(self):
        rate = Rate(100, seconds(1))
        assert rate.inv() == pytest.approx(1e7)

    @pytest.mark.parametrize("count,duration", [(0, seconds(1)), (-1, seconds(1)), (10, 0)])
    def test_rejects_non_positive(self, count, duration):
        with pytest.raises(ValueError):
            Rate(count, duration)

    def test_rejects_rate_finer_than_a_nanosecond(self):
        with pytest.raises(ValueError, match="clock resolution"):
            Rate(1000, 999)
        assert Rate(1000, 1000).inv() == 1.0


class TestSample:

    def test_shape_and_order(self):
        values = sample(4, ConstantDistribution(3), random.Random(0))
        assert isinstance(values, np.ndarray)
        assert values.tolist() == [3.0, 3.0, 3.0, 3.0]

    def test_zero_size(self):
        assert sample(0, ConstantDistribution(1), random.Random(0)).size == 0
