"""
Peer model: transactions, ledgers, peers and peer groups.

The peer here is a small stand-in for a full consensus peer. It accepts and
relays transactions, honours a per-sequence injection queue, closes ledgers
when the simulation's ledger timer fires and counts validations from the
peers it trusts. It does not run an agreement protocol.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator
import hashlib
import math

from .clock import ms
from .events import Scheduler


@dataclass(frozen=True, order=True)
class Tx:
    """
    A simulated transaction.

    Attributes:
        id: Sequence number assigned by the generator that created it
        origin: Name of that generator, keeps ids from different generators apart
    """
    id: int
    origin: str = ""


@dataclass(frozen=True)
class Ledger:
    """
    A closed ledger.

    Attributes:
        seq: Ledger sequence number (genesis is 0)
        txs: Transactions included in this ledger
        id: Digest over seq and the sorted transaction set
    """
    seq: int = 0
    txs: frozenset[Tx] = field(default_factory=frozenset)
    id: str = field(init=False, compare=False)

    def __post_init__(self):
        h = hashlib.sha256(str(self.seq).encode())
        for tx in sorted(self.txs):
            h.update(f"|{tx.origin}:{tx.id}".encode())
        object.__setattr__(self, "id", h.hexdigest())

    def __repr__(self):
        return f"Ledger(seq={self.seq}, id={self.id[:8]}, txs={len(self.txs)})"


GENESIS = Ledger()


# Events reported to collectors

@dataclass(frozen=True)
class SubmitTx:
    time: int
    peer: int
    tx: Tx


@dataclass(frozen=True)
class AcceptLedger:
    time: int
    peer: int
    ledger: Ledger
    prior: Ledger


@dataclass(frozen=True)
class FullyValidateLedger:
    time: int
    peer: int
    ledger: Ledger
    prior: Ledger


@dataclass
class PeerConfig:
    """
    Tunables for the peer model.

    Attributes:
        quorum_ratio: Fraction of the UNL whose matching validations fully
            validate a ledger
        settle: How long a relayed transaction must be held before it is
            eligible for the next closed ledger
    """
    quorum_ratio: float = 0.8
    settle: int = ms(600)

    def __post_init__(self):
        if not 0 < self.quorum_ratio <= 1:
            raise ValueError("quorum_ratio must be in (0, 1]")
        if self.settle < 0:
            raise ValueError("settle must be non-negative")


class Peer:
    """
    A peer in the simulated network.

    Trust (the UNL) and connections are set up once during topology
    construction and are not changed while traffic is running.
    """

    def __init__(
        self,
        peer_id: int,
        scheduler: Scheduler,
        collectors: Any = None,
        config: PeerConfig | None = None,
        byzantine: bool = False
    ):
        self.id = peer_id
        self.scheduler = scheduler
        self.collectors = collectors
        self.config = config or PeerConfig()
        self.byzantine = byzantine

        self.trusted: dict[int, Peer] = {}
        self.links: dict[Peer, int] = {}  # peer -> one-way delay
        self._links_by_delay: list[tuple[int, list[Peer]]] | None = None

        self.open_txs: dict[Tx, int] = {}  # tx -> arrival time
        self.seen_txs: set[Tx] = set()
        self.tx_injections: dict[int, list[Tx]] = defaultdict(list)

        self.last_closed_ledger: Ledger = GENESIS
        self.fully_validated_ledger: Ledger = GENESIS
        self._validations: dict[tuple[int, str], set[int]] = {}

    # Topology

    def trust(self, others: Iterable[Peer]):
        """Add every peer in `others` to this peer's UNL."""
        for other in others:
            self.trusted[other.id] = other

    def connect(self, other: Peer, delay: int):
        """Open a bidirectional link with the given one-way delay."""
        if other is self:
            return
        if delay < 0:
            raise ValueError("delay must be non-negative")
        self.links[other] = delay
        other.links[self] = delay
        self._links_by_delay = None
        other._links_by_delay = None

    def trust_and_connect(self, others: Iterable[Peer], delay: int):
        """Trust every peer in `others` and connect to each of them."""
        others = list(others)
        self.trust(others)
        for other in others:
            self.connect(other, delay)

    def trusts(self, other: Peer) -> bool:
        return other.id in self.trusted

    @property
    def unl(self) -> PeerGroup:
        """This peer's trust set as a PeerGroup."""
        return PeerGroup(self.trusted.values())

    @property
    def quorum(self) -> int:
        """Number of matching trusted validations needed to fully validate."""
        return max(1, math.ceil(self.config.quorum_ratio * len(self.trusted) - 1e-9))

    def _grouped_links(self) -> list[tuple[int, list[Peer]]]:
        if self._links_by_delay is None:
            groups: dict[int, list[Peer]] = defaultdict(list)
            for peer, delay in self.links.items():
                groups[delay].append(peer)
            self._links_by_delay = [
                (delay, sorted(peers, key=lambda p: p.id))
                for delay, peers in sorted(groups.items())
            ]
        return self._links_by_delay

    # Transactions

    def _record(self, event: Any):
        if self.collectors is not None:
            self.collectors.record(event)

    def submit(self, tx: Tx):
        """
        Accept a transaction from outside the network.

        The transaction is held for the next ledger and relayed to linked peers.
        """
        self._record(SubmitTx(self.scheduler.now(), self.id, tx))
        self.receive_tx(tx)

    def receive_tx(self, tx: Tx) -> bool:
        """
        Handle a transaction arriving from a link (or from submit()).

        Returns:
            True if the transaction was new to this peer
        """
        if tx in self.seen_txs:
            return False
        self.seen_txs.add(tx)
        self.open_txs[tx] = self.scheduler.now()

        for delay, targets in self._grouped_links():
            self.scheduler.schedule(delay, _deliver_tx, targets, tx, description="relay tx")
        return True

    def inject(self, tx: Tx):
        """
        Queue a transaction for the ledger that follows the current one.

        Injected transactions skip relaying and go straight into this peer's
        next closed ledger.
        """
        self.tx_injections[self.last_closed_ledger.seq].append(tx)

    # Ledgers and validations

    def close_ledger(self) -> Ledger:
        """
        Close the next ledger from settled open transactions and injections.

        Returns:
            The newly closed ledger
        """
        now = self.scheduler.now()
        cutoff = now - self.config.settle
        prior = self.last_closed_ledger

        included = {tx for tx, arrived in self.open_txs.items() if arrived <= cutoff}
        for tx in included:
            del self.open_txs[tx]
        included.update(self.tx_injections.pop(prior.seq, ()))

        ledger = Ledger(seq=prior.seq + 1, txs=frozenset(included))
        self.last_closed_ledger = ledger
        self._record(AcceptLedger(now, self.id, ledger, prior))

        self.receive_validation(self, ledger)
        for delay, targets in self._grouped_links():
            self.scheduler.schedule(
                delay, _deliver_validation, targets, self, ledger, description="validation"
            )
        return ledger

    def receive_validation(self, sender: Peer, ledger: Ledger):
        """Count a validation; only validations from trusted peers matter."""
        if sender.id not in self.trusted:
            return
        if ledger.seq <= self.fully_validated_ledger.seq:
            return

        key = (ledger.seq, ledger.id)
        validators = self._validations.setdefault(key, set())
        validators.add(sender.id)

        if len(validators) >= self.quorum:
            prior = self.fully_validated_ledger
            self.fully_validated_ledger = ledger
            self._validations = {
                k: v for k, v in self._validations.items() if k[0] > ledger.seq
            }
            self._record(FullyValidateLedger(self.scheduler.now(), self.id, ledger, prior))

    def __repr__(self):
        kind = "byzantine" if self.byzantine else "honest"
        return f"Peer({self.id}, {kind}, unl={len(self.trusted)}, links={len(self.links)})"


def _deliver_tx(targets: list[Peer], tx: Tx):
    for peer in targets:
        peer.receive_tx(tx)


def _deliver_validation(targets: list[Peer], sender: Peer, ledger: Ledger):
    for peer in targets:
        peer.receive_validation(sender, ledger)


class PeerGroup:
    """
    An immutable set of peers, iterated in ascending peer id order.

    Supports union with `+` (duplicates collapse), O(1) membership tests and
    bulk trust/connect operations towards another group.
    """

    def __init__(self, peers: Peer | Iterable[Peer] | None = None):
        if isinstance(peers, Peer):
            peers = [peers]
        unique = {peer.id: peer for peer in (peers or ())}
        self._peers: tuple[Peer, ...] = tuple(unique[i] for i in sorted(unique))
        self._ids: frozenset[int] = frozenset(unique)

    def __add__(self, other: PeerGroup | Peer) -> PeerGroup:
        if isinstance(other, Peer):
            other = (other,)
        elif not isinstance(other, PeerGroup):
            return NotImplemented
        return PeerGroup([*self._peers, *other])

    def __contains__(self, peer: object) -> bool:
        return isinstance(peer, Peer) and peer.id in self._ids

    def contains(self, peer: Peer) -> bool:
        return peer in self

    def __iter__(self) -> Iterator[Peer]:
        return iter(self._peers)

    def __len__(self) -> int:
        return len(self._peers)

    def __getitem__(self, index: int) -> Peer:
        return self._peers[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PeerGroup):
            return NotImplemented
        return self._ids == other._ids

    def __hash__(self):
        return hash(self._ids)

    @property
    def ids(self) -> frozenset[int]:
        return self._ids

    def trust(self, other: PeerGroup):
        for peer in self._peers:
            peer.trust(other)

    def connect(self, other: PeerGroup, delay: int):
        for peer in self._peers:
            for target in other:
                peer.connect(target, delay)

    def trust_and_connect(self, other: PeerGroup, delay: int):
        """Every member trusts and connects to every member of `other`."""
        for peer in self._peers:
            peer.trust_and_connect(other, delay)

    def __repr__(self):
        return f"PeerGroup({[p.id for p in self._peers]})"
