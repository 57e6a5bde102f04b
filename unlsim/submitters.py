"""
Transaction traffic generators.

A TrafficGenerator fires repeatedly between a start and a stop time, at
intervals drawn from a distribution. Each firing resolves its targets (one
selected peer, or every peer of a fixed group) and applies its action
(submit, or inject into the peer's pending queue) with a fresh transaction
id. Once a firing sees that the stop time has been reached it simply does
not reschedule.
"""

from typing import Iterable, List, Optional
import random

from .distributions import ConstantDistribution, Distribution
from .events import Scheduler
from .peer import Peer, PeerGroup, Tx
from .selector import RankedSelector


class TargetStrategy:
    """Decides which peers a firing is applied to."""

    def resolve(self) -> List[Peer]:
        raise NotImplementedError("Subclasses must implement resolve()")


class SingleTarget(TargetStrategy):
    """One peer per firing, drawn from a selector."""

    def __init__(self, selector: RankedSelector[Peer]):
        self.selector = selector

    def resolve(self) -> List[Peer]:
        return [self.selector()]


class AllTargets(TargetStrategy):
    """Every peer of a fixed group, on every firing."""

    def __init__(self, group: Iterable[Peer]):
        self.group = PeerGroup(group)

    def resolve(self) -> List[Peer]:
        return list(self.group)


class Action:
    """What a firing does to each target."""

    def apply(self, peer: Peer, tx: Tx):
        raise NotImplementedError("Subclasses must implement apply()")


class SubmitAction(Action):
    """Send the transaction to the peer as if it came from outside."""

    def apply(self, peer: Peer, tx: Tx):
        peer.submit(tx)


class InjectAction(Action):
    """Queue the transaction under the peer's last closed ledger sequence."""

    def apply(self, peer: Peer, tx: Tx):
        peer.inject(tx)


def as_duration(value: float) -> int:
    """
    Convert a distribution draw to a virtual duration.

    Fractional values are truncated, not rounded.
    """
    duration = int(value)
    if duration < 0:
        raise ValueError(f"Inter-arrival draw must be non-negative, got {value}")
    return duration


class TrafficGenerator:
    """
    Self-rescheduling transaction generator.

    Attributes:
        next_id: Id the next transaction will carry; starts at 0 and only grows
    """

    def __init__(
        self,
        distribution: Distribution,
        start: int,
        stop: int,
        targets: TargetStrategy,
        action: Action,
        scheduler: Scheduler,
        rng: random.Random,
        name: str = "traffic"
    ):
        """
        Args:
            distribution: Inter-arrival distribution, in virtual nanoseconds
            start: Virtual time of the first firing
            stop: No firing at or after this time schedules another one
            targets: Target selection strategy
            action: Action applied to each target
            scheduler: Scheduler that drives the generator
            rng: Random source passed to the distribution
            name: Used as the origin of every generated Tx
        """
        self.distribution = distribution
        self.stop = stop
        self.targets = targets
        self.action = action
        self.scheduler = scheduler
        self.rng = rng
        self.name = name
        self.next_id = 0

        # A constant zero interval would refire at the same instant forever
        if isinstance(distribution, ConstantDistribution) and start < stop \
                and 0 <= distribution.value < 1:
            raise ValueError(f"{name}: constant interval {distribution.value} truncates to 0ns")

        self.scheduler.schedule_at(start, self._fire, description=f"{name} start")

    def _fire(self):
        tx = Tx(self.next_id, self.name)
        self.next_id += 1

        for peer in self.targets.resolve():
            self.action.apply(peer, tx)

        if self.scheduler.now() < self.stop:
            self.scheduler.schedule(as_duration(self.distribution(self.rng)), self._fire)


def make_submitter(
    distribution: Distribution,
    start: int,
    stop: int,
    selector: RankedSelector[Peer],
    scheduler: Scheduler,
    rng: random.Random,
    name: Optional[str] = None
) -> TrafficGenerator:
    """Submit each transaction to one selector-drawn peer."""
    return TrafficGenerator(
        distribution, start, stop, SingleTarget(selector), SubmitAction(),
        scheduler, rng, name or "submitter"
    )


def make_sybilian_submitter(
    distribution: Distribution,
    start: int,
    stop: int,
    group: Iterable[Peer],
    scheduler: Scheduler,
    rng: random.Random,
    name: Optional[str] = None
) -> TrafficGenerator:
    """Submit each transaction to every peer of `group` at once."""
    return TrafficGenerator(
        distribution, start, stop, AllTargets(group), SubmitAction(),
        scheduler, rng, name or "sybilian-submitter"
    )


def make_injector(
    distribution: Distribution,
    start: int,
    stop: int,
    selector: RankedSelector[Peer],
    scheduler: Scheduler,
    rng: random.Random,
    name: Optional[str] = None
) -> TrafficGenerator:
    """Inject each transaction into one selector-drawn peer."""
    return TrafficGenerator(
        distribution, start, stop, SingleTarget(selector), InjectAction(),
        scheduler, rng, name or "injector"
    )


def make_sybilian_injector(
    distribution: Distribution,
    start: int,
    stop: int,
    group: Iterable[Peer],
    scheduler: Scheduler,
    rng: random.Random,
    name: Optional[str] = None
) -> TrafficGenerator:
    """Inject each transaction into every peer of `group` at once."""
    return TrafficGenerator(
        distribution, start, stop, AllTargets(group), InjectAction(),
        scheduler, rng, name or "sybilian-injector"
    )
