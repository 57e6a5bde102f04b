"""
Virtual time for the simulator.

Time is an integer count of nanoseconds since the simulation epoch. It has
no relation to wall-clock time and only moves when the scheduler advances it.
"""

NANOSECOND = 1
MICROSECOND = 1_000
MILLISECOND = 1_000_000
SECOND = 1_000_000_000
MINUTE = 60 * SECOND


def ms(value: float) -> int:
    """Duration of `value` milliseconds."""
    return int(value * MILLISECOND)


def seconds(value: float) -> int:
    """Duration of `value` seconds."""
    return int(value * SECOND)


def minutes(value: float) -> int:
    """Duration of `value` minutes."""
    return int(value * MINUTE)


def to_seconds(duration: int) -> float:
    """Convert a virtual duration to (fractional) seconds for display."""
    return duration / SECOND


class SimClock:
    """
    Monotonic simulated clock.

    The clock does not sleep and does not wait. It records the current
    virtual time and refuses to move backwards.
    """

    def __init__(self) -> None:
        self._current_time: int = 0

    def now(self) -> int:
        """Return the current virtual time in nanoseconds."""
        return self._current_time

    def advance_to(self, target_time: int) -> None:
        """
        Advance the clock to `target_time`.

        Moving backwards is a scheduling bug and raises ValueError.
        """
        target = int(target_time)

        if target < self._current_time:
            raise ValueError(
                f"Cannot move clock backwards from {self._current_time} to {target}"
            )

        self._current_time = target

    def reset(self) -> None:
        """Reset the clock to the epoch."""
        self._current_time = 0
