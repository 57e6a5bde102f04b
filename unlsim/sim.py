"""
Simulation context.

One Sim owns everything a single run shares: the random source, the
scheduler, the peers and the collectors. Components receive the Sim (or the
pieces they need) explicitly; there is no module-level state, so independent
Sim instances can run side by side.
"""

from typing import List, Optional, TextIO
import random
import sys
import time

from .clock import seconds, to_seconds
from .events import Scheduler
from .peer import Peer, PeerConfig, PeerGroup
from .statistics import CollectorSet


class Sim:
    """
    A single simulation run.

    Attributes:
        rng: Random source for every stochastic decision in the run
        scheduler: Virtual-time scheduler
        peers: All peers, in creation (id) order
        collectors: Receives every peer event
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        peer_config: Optional[PeerConfig] = None,
        ledger_interval: int = seconds(2)
    ):
        if ledger_interval <= 0:
            raise ValueError("ledger_interval must be positive")

        self.seed = seed
        self.rng = random.Random(seed)
        self.scheduler = Scheduler()
        self.collectors = CollectorSet()
        self.peer_config = peer_config or PeerConfig()
        self.ledger_interval = ledger_interval
        self.peers: List[Peer] = []
        self._ledger_timer_running = False

    def create_group(self, num_peers: int, byzantine: bool = False) -> PeerGroup:
        """
        Create `num_peers` new peers and return them as a group.

        Peer ids continue from the last created peer.
        """
        if num_peers < 0:
            raise ValueError("num_peers must be non-negative")

        new_peers = []
        for _ in range(num_peers):
            peer = Peer(
                len(self.peers),
                self.scheduler,
                collectors=self.collectors,
                config=self.peer_config,
                byzantine=byzantine
            )
            self.peers.append(peer)
            new_peers.append(peer)
        return PeerGroup(new_peers)

    @property
    def network(self) -> PeerGroup:
        return PeerGroup(self.peers)

    def start_ledger_timer(self):
        """
        Start closing ledgers every `ledger_interval`.

        All peers close together, in id order, at each tick. The timer keeps
        rescheduling itself for as long as the simulation runs.
        """
        if self._ledger_timer_running:
            return
        self._ledger_timer_running = True
        self.scheduler.schedule(self.ledger_interval, self._on_ledger_tick, description="ledger close")

    def _on_ledger_tick(self):
        for peer in self.peers:
            peer.close_ledger()
        self.scheduler.schedule(self.ledger_interval, self._on_ledger_tick, description="ledger close")

    def run_for(self, duration: int) -> int:
        """Run the scheduler for `duration` of virtual time."""
        self.start_ledger_timer()
        return self.scheduler.run_for(duration)

    def run_ledgers(self, count: int) -> int:
        """Run until every peer has closed `count` more ledgers."""
        if count < 0:
            raise ValueError("count must be non-negative")
        return self.run_for(count * self.ledger_interval)

    def branches(self) -> int:
        """Number of distinct last-closed ledgers across all peers."""
        return len({peer.last_closed_ledger.id for peer in self.peers})

    def synchronized(self) -> bool:
        """Whether every peer has the same last-closed ledger."""
        return self.branches() <= 1

    def close(self):
        """Tear the run down; the scheduler rejects any further use."""
        self.scheduler.close()


class HeartbeatTimer:
    """
    Periodically prints simulated and wall-clock time.

    Useful to see progress during long runs.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        interval: int = seconds(60),
        log: Optional[TextIO] = None
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.scheduler = scheduler
        self.interval = interval
        self.log = log or sys.stdout
        self.beats = 0
        self._start_real = 0.0
        self._start_sim = 0

    def start(self):
        self._start_real = time.time()
        self._start_sim = self.scheduler.now()
        self.scheduler.schedule(self.interval, self._beat, description="heartbeat")

    def _beat(self):
        self.beats += 1
        sim_elapsed = to_seconds(self.scheduler.now() - self._start_sim)
        real_elapsed = time.time() - self._start_real
        print(
            f"Heartbeat. Time Elapsed: {sim_elapsed:.0f}s simulated, {real_elapsed:.2f}s real",
            file=self.log
        )
        self.scheduler.schedule(self.interval, self._beat, description="heartbeat")
