"""
Unit tests for unlsim/selector.py
"""

import random
from collections import Counter

import numpy as np
import pytest

from unlsim.selector import RankedSelector, make_selector


class TestRankedSelector:

    def test_frequencies_follow_ranks(self):
        selector = RankedSelector(["a", "b", "c"], [1, 2, 7], random.Random(5))
        draws = Counter(selector() for _ in range(20000))

        assert draws["a"] / 20000 == pytest.approx(0.1, abs=0.02)
        assert draws["b"] / 20000 == pytest.approx(0.2, abs=0.02)
        assert draws["c"] / 20000 == pytest.approx(0.7, abs=0.02)

    def test_zero_rank_is_never_drawn(self):
        selector = RankedSelector(["a", "b", "c"], [1, 0, 1], random.Random(6))
        draws = {selector() for _ in range(2000)}
        assert draws == {"a", "c"}

    def test_trailing_zero_rank_is_never_drawn(self):
        selector = RankedSelector(["a", "b"], [1, 0], random.Random(7))
        assert {selector() for _ in range(500)} == {"a"}

    def test_single_member(self):
        selector = RankedSelector(["only"], [3.0], random.Random(0))
        assert selector() == "only"

    def test_draws_with_replacement(self):
        selector = RankedSelector([1, 2], [1, 1], random.Random(8))
        draws = [selector() for _ in range(50)]
        assert any(x == y for x, y in zip(draws, draws[1:]))

    def test_same_seed_same_sequence(self):
        a = RankedSelector(list(range(10)), list(range(1, 11)), random.Random(42))
        b = RankedSelector(list(range(10)), list(range(1, 11)), random.Random(42))
        assert [a() for _ in range(100)] == [b() for _ in range(100)]

    def test_probabilities(self):
        selector = make_selector(["x", "y"], [1, 3], random.Random(0))
        assert np.allclose(selector.probabilities(), [0.25, 0.75])
        assert len(selector) == 2

    def test_empty_population_raises(self):
        with pytest.raises(ValueError, match="empty"):
            RankedSelector([], [], random.Random(0))

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            RankedSelector(["a", "b"], [1], random.Random(0))

    def test_negative_rank_raises(self):
        with pytest.raises(ValueError):
            RankedSelector(["a", "b"], [1, -1], random.Random(0))

    def test_all_zero_ranks_raise(self):
        with pytest.raises(ValueError, match="positive"):
            RankedSelector(["a", "b"], [0, 0], random.Random(0))
