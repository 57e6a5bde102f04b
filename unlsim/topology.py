"""
Byzantine trust-topology construction.

Builds each peer's Unique Node List (UNL) from a shared common core plus a
per-peer extension drawn by rank-weighted rejection sampling, mixing honest
and Byzantine peers in proportion to their share of the network.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .clock import ms
from .distributions import Distribution, PowerLawDistribution, sample
from .errors import ConfigurationError, SamplingExhaustedError
from .peer import Peer, PeerGroup
from .selector import RankedSelector, make_selector
from .sim import Sim


DEFAULT_RANK_DISTRIBUTION = PowerLawDistribution(1, 3)
DEFAULT_MAX_REJECTIONS = 10_000


@dataclass(frozen=True)
class TopologyParams:
    """
    Inputs and derived sizes of a Byzantine UNL topology.

    Attributes:
        num_peers: Total peer count P
        num_byzantines: Byzantine peer count B
        overlap: Overlap factor f in (0, 1]
        delay: One-way delay of every trust link
    """
    num_peers: int
    num_byzantines: int
    overlap: float
    delay: int = ms(200)

    @property
    def num_cnls(self) -> int:
        return max(self.num_peers, 1)

    @property
    def max_trust_set_size(self) -> int:
        return max(int(0.5 * self.num_cnls), 1)

    @property
    def min_trust_set_size(self) -> int:
        return max(
            int(self.overlap * self.max_trust_set_size),
            max(int(0.25 * self.num_cnls), 1)
        )

    @property
    def common_unl_size(self) -> int:
        return int(self.overlap * self.max_trust_set_size)

    @property
    def byzantine_fraction(self) -> float:
        return self.num_byzantines / self.num_peers if self.num_peers > 0 else 0.0

    def honest_share(self, count: int) -> int:
        """
        Honest part of `count` trust-set slots.

        count * (P - B) / P rounded half up, in integer arithmetic so the
        split does not depend on float representation. The Byzantine part is
        the remainder.
        """
        p, b = self.num_peers, self.num_byzantines
        return (2 * (p - b) * count + p) // (2 * p)

    def validate(self):
        """
        Check every precondition before anything is built.

        Raises:
            ConfigurationError: Naming the combination and the violated constraint
        """
        label = f"(peers={self.num_peers}, byzantines={self.num_byzantines}, overlap={self.overlap})"

        if self.num_peers < 1:
            raise ConfigurationError(f"{label}: need at least one peer")
        if not 0 <= self.num_byzantines <= self.num_peers:
            raise ConfigurationError(
                f"{label}: byzantine count must be between 0 and {self.num_peers}"
            )
        if not 0 < self.overlap <= 1:
            raise ConfigurationError(f"{label}: overlap factor must be in (0, 1]")
        if self.delay < 0:
            raise ConfigurationError(f"{label}: delay must be non-negative")

        lo, hi, common = self.min_trust_set_size, self.max_trust_set_size, self.common_unl_size
        if not (1 <= lo <= hi <= self.num_peers):
            raise ConfigurationError(
                f"{label}: need 1 <= minTrustSetSize ({lo}) <= maxTrustSetSize ({hi}) <= peers"
            )
        if lo < common:
            raise ConfigurationError(
                f"{label}: minTrustSetSize ({lo}) is below commonUNLSize ({common})"
            )


@dataclass
class ByzantineTopology:
    """Result of a topology build."""
    params: TopologyParams
    honest: PeerGroup
    byzantine: PeerGroup
    network: PeerGroup
    common_unl: PeerGroup
    honest_selector: Optional[RankedSelector[Peer]]
    byzantine_selector: Optional[RankedSelector[Peer]]
    network_selector: RankedSelector[Peer]
    unls: Dict[int, PeerGroup] = field(default_factory=dict)

    def unl(self, peer: Peer) -> PeerGroup:
        return self.unls[peer.id]

    def byzantine_fraction(self, peer: Peer) -> float:
        """Share of Byzantine peers in `peer`'s UNL."""
        unl = self.unls[peer.id]
        if not unl:
            return 0.0
        return sum(1 for p in unl if p in self.byzantine) / len(unl)


class TopologyBuilder:
    """
    Builds the honest/Byzantine trust graph for one simulation.

    Steps:
    1. Create the honest and Byzantine groups.
    2. Rank each group (and the whole network) with a power law and build
       weighted selectors over them.
    3. Draw the common UNL shared by every peer. Repeated draws collapse in
       the union, so the realised core is often smaller than commonUNLSize.
    4. Extend each peer's UNL with new members, drawn by rejection sampling,
       up to a uniformly drawn size in [min, max].
    5. Trust and connect every peer to its UNL.
    """

    def __init__(
        self,
        sim: Sim,
        params: TopologyParams,
        rank_distribution: Distribution = DEFAULT_RANK_DISTRIBUTION,
        max_rejections: int = DEFAULT_MAX_REJECTIONS
    ):
        if max_rejections < 1:
            raise ValueError("max_rejections must be at least 1")
        self.sim = sim
        self.params = params
        self.rank_distribution = rank_distribution
        self.max_rejections = max_rejections

    def _selector(self, group: PeerGroup) -> Optional[RankedSelector[Peer]]:
        if not group:
            return None
        ranks = sample(len(group), self.rank_distribution, self.sim.rng)
        return make_selector(list(group), ranks, self.sim.rng)

    def build(self) -> ByzantineTopology:
        """
        Run the construction.

        Peers are only mutated once every UNL has been drawn; a failure
        leaves no partial trust graph behind.

        Raises:
            ConfigurationError: If the parameters violate a precondition
            SamplingExhaustedError: If a UNL extension runs out of candidates
        """
        params = self.params
        params.validate()

        honest = self.sim.create_group(params.num_peers - params.num_byzantines)
        byzantine = self.sim.create_group(params.num_byzantines, byzantine=True)
        network = honest + byzantine

        honest_selector = self._selector(honest)
        byzantine_selector = self._selector(byzantine)
        network_selector = self._selector(network)

        common_unl = self._draw_common_unl(honest_selector, byzantine_selector)

        topology = ByzantineTopology(
            params=params,
            honest=honest,
            byzantine=byzantine,
            network=network,
            common_unl=common_unl,
            honest_selector=honest_selector,
            byzantine_selector=byzantine_selector,
            network_selector=network_selector,
        )

        for peer in network:
            topology.unls[peer.id] = self._extend_unl(peer, topology)

        for peer in network:
            peer.trust_and_connect(topology.unls[peer.id], params.delay)

        return topology

    def _draw_common_unl(
        self,
        honest_selector: Optional[RankedSelector[Peer]],
        byzantine_selector: Optional[RankedSelector[Peer]]
    ) -> PeerGroup:
        size = self.params.common_unl_size
        honest_draws = self.params.honest_share(size)
        byzantine_draws = size - honest_draws

        common = PeerGroup()
        # No duplicate guard: repeated draws simply collapse in the union
        for _ in range(honest_draws):
            common = common + honest_selector()
        for _ in range(byzantine_draws):
            common = common + byzantine_selector()
        return common

    def _extend_unl(self, peer: Peer, topology: ByzantineTopology) -> PeerGroup:
        params = self.params
        core = len(topology.common_unl)
        extra = self.sim.rng.randint(
            params.min_trust_set_size - core,
            params.max_trust_set_size - core
        )
        honest_extra = params.honest_share(extra)
        byzantine_extra = extra - honest_extra

        unl = topology.common_unl
        unl = self._add_new_members(
            peer, unl, topology.honest, topology.honest_selector, honest_extra, "honest"
        )
        unl = self._add_new_members(
            peer, unl, topology.byzantine, topology.byzantine_selector, byzantine_extra, "byzantine"
        )
        return unl

    def _add_new_members(
        self,
        peer: Peer,
        unl: PeerGroup,
        group: PeerGroup,
        selector: Optional[RankedSelector[Peer]],
        needed: int,
        label: str
    ) -> PeerGroup:
        if needed <= 0:
            return unl

        remaining = sum(1 for p in group if p not in unl)
        if selector is None or remaining < needed:
            raise SamplingExhaustedError(
                f"Peer {peer.id}: needs {needed} new {label} members "
                f"but only {remaining} are outside its trust set"
            )

        added = 0
        rejections = 0
        while added < needed:
            candidate = selector()
            if candidate in unl:
                rejections += 1
                if rejections >= self.max_rejections:
                    raise SamplingExhaustedError(
                        f"Peer {peer.id}: gave up after {rejections} consecutive rejected "
                        f"{label} draws with {added}/{needed} new members added"
                    )
                continue
            unl = unl + candidate
            added += 1
            rejections = 0
        return unl


def build_byzantine_topology(
    sim: Sim,
    num_peers: int,
    num_byzantines: int,
    overlap: float,
    delay: int = ms(200),
    **kwargs
) -> ByzantineTopology:
    """Convenience wrapper: validate parameters and build in one call."""
    params = TopologyParams(num_peers, num_byzantines, overlap, delay)
    return TopologyBuilder(sim, params, **kwargs).build()
