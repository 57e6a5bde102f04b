"""
Unit tests for unlsim/clock.py
"""

import pytest

from unlsim.clock import (
    SECOND,
    MILLISECOND,
    SimClock,
    minutes,
    ms,
    seconds,
    to_seconds,
)


class TestDurations:
    """Duration helpers."""

    def test_units(self):
        assert ms(1) == MILLISECOND == 1_000_000
        assert seconds(1) == SECOND == 1_000_000_000
        assert minutes(2) == 120 * SECOND

    def test_helpers_return_int(self):
        assert isinstance(ms(0.5), int)
        assert ms(0.5) == 500_000
        assert seconds(1.5) == 1_500_000_000

    def test_to_seconds(self):
        assert to_seconds(seconds(3)) == 3.0
        assert to_seconds(ms(250)) == 0.25


class TestSimClock:
    """Test suite for the SimClock class."""

    def test_initialization(self):
        """Test that clock initializes with time zero."""
        clock = SimClock()
        assert clock.now() == 0, "Clock should start at time 0"

    def test_advance_to_positive_time(self):
        clock = SimClock()
        clock.advance_to(10)
        assert clock.now() == 10

    def test_advance_to_same_time(self):
        """Advancing to the current time is a no-op."""
        clock = SimClock()
        clock.advance_to(10)
        clock.advance_to(10)
        assert clock.now() == 10

    def test_advance_to_backwards_raises_error(self):
        clock = SimClock()
        clock.advance_to(10)

        with pytest.raises(ValueError) as exc_info:
            clock.advance_to(5)

        assert "Cannot move clock backwards from 10 to 5" in str(exc_info.value)
        assert clock.now() == 10, "Clock time should not change after error"

    def test_reset(self):
        clock = SimClock()
        clock.advance_to(seconds(5))
        clock.reset()
        assert clock.now() == 0
        clock.advance_to(1)
        assert clock.now() == 1
