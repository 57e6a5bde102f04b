"""
Error types raised by the simulator.

Configuration and sampling errors abort a single parameter combination;
a sweep catches them and moves on to the next combination.
"""


class UnlSimError(Exception):
    """Base class for simulator errors."""


class ConfigurationError(UnlSimError, ValueError):
    """A topology or study parameter violates a precondition."""


class SamplingExhaustedError(UnlSimError, RuntimeError):
    """Rejection sampling could not find a new trust-set member."""


class SchedulerClosedError(UnlSimError, RuntimeError):
    """The scheduler was used after it had been torn down."""
