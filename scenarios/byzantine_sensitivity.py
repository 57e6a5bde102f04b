"""
Byzantine sensitivity study.

Measures how a network behaves as the number of Byzantine peers grows and as
the overlap between peers' UNLs shrinks. Each (peers, byzantines, overlap)
combination builds a fresh topology, lets honest clients submit transactions
to honest peers while Byzantine peers inject their own transactions straight
into their next ledgers, then reports forks and validation progress.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional, TextIO
import math
import os
import sys

from tqdm import tqdm

from unlsim import (
    ByzantineTopology,
    ConfigurationError,
    ConstantDistribution,
    HeartbeatTimer,
    LedgerCollector,
    Rate,
    SamplingExhaustedError,
    Sim,
    Statistics,
    TxCollector,
    Visualizer,
    build_byzantine_topology,
    make_injector,
    make_submitter,
    minutes,
    ms,
    seconds,
)


DEFAULT_ARGS = "50 0 18 2 0.1 0.9 0.1"
DEFAULT_PREFIX = "ByzantineSensitivity__varyingUNLoverlapping"


class ByzantineSensitivityScenario:
    """
    One (peers, byzantines, overlap) combination of the study.

    Honest traffic goes through a submitter that picks honest peers by rank;
    Byzantine traffic goes through an injector that picks Byzantine peers by
    rank. Both run at the same rate, leaving a quiet period at each end of
    the simulated window.
    """

    def __init__(self, config: Dict[str, Any], log: Optional[TextIO] = None):
        """
        Initialize the scenario.

        Args:
            config: Configuration dictionary with keys:
                - num_peers: Total number of peers (default: 50)
                - num_byzantines: Number of Byzantine peers (default: 0)
                - overlap: UNL overlap factor in (0, 1] (default: 0.5)
                - delay: One-way link delay (default: 200ms)
                - sim_duration: Length of the traffic window (default: 2 minutes)
                - quiet: Quiet period at each end of the window (default: 10s)
                - rate: Transaction rate of each generator (default: 100/s)
                - seed: Random seed (default: None)
                - ledger_interval: Time between ledger closes (default: 2s)
                - heartbeat: Heartbeat interval, or None to disable (default: 60s)
            log: Text sink for progress and reports (default: stdout)
        """
        self.config = {
            "num_peers": 50,
            "num_byzantines": 0,
            "overlap": 0.5,
            "delay": ms(200),
            "sim_duration": minutes(2),
            "quiet": seconds(10),
            "rate": Rate(100, seconds(1)),
            "seed": None,
            "ledger_interval": seconds(2),
            "heartbeat": seconds(60),
            **config
        }
        self.log = log or sys.stdout

        self.sim: Optional[Sim] = None
        self.topology: Optional[ByzantineTopology] = None
        self.tx_collector = TxCollector()
        self.ledger_collector = LedgerCollector()
        self.generators = []
        self.events_processed = 0

    @property
    def tag(self) -> str:
        """Row tag identifying this combination in the delimited logs."""
        c = self.config
        return f"( {c['num_peers']},{c['num_byzantines']},{c['overlap']:.6f})"

    def setup(self):
        """
        Build the simulation and its trust topology.

        Raises:
            ConfigurationError: If the combination is infeasible
            SamplingExhaustedError: If a UNL could not be completed
        """
        c = self.config
        self.sim = Sim(seed=c["seed"], ledger_interval=c["ledger_interval"])
        self.topology = build_byzantine_topology(
            self.sim,
            c["num_peers"],
            c["num_byzantines"],
            c["overlap"],
            delay=c["delay"]
        )
        self.sim.collectors.add(self.tx_collector, self.ledger_collector)

    def run(self):
        """Settle for one ledger, then run the traffic window."""
        c = self.config
        sim = self.sim

        sim.run_ledgers(1)

        if c["heartbeat"]:
            HeartbeatTimer(sim.scheduler, c["heartbeat"], log=self.log).start()

        now = sim.scheduler.now()
        start = now + c["quiet"]
        stop = now + c["sim_duration"] - c["quiet"]
        interval = ConstantDistribution(c["rate"].inv())

        # Everyone is Byzantine: clients fall back to the whole network
        submit_selector = self.topology.honest_selector or self.topology.network_selector
        self.generators = [
            make_submitter(interval, start, stop, submit_selector, sim.scheduler, sim.rng)
        ]
        if self.topology.byzantine_selector is not None:
            self.generators.append(
                make_injector(
                    interval, start, stop, self.topology.byzantine_selector, sim.scheduler, sim.rng
                )
            )

        self.events_processed = sim.run_for(c["sim_duration"])

    def result(self) -> Dict[str, Any]:
        """Summary row for the sweep table."""
        c = self.config
        ledgers = self.ledger_collector.summary(c["sim_duration"])
        txs = self.tx_collector.summary(c["sim_duration"])
        return {
            "peers": c["num_peers"],
            "byzantines": c["num_byzantines"],
            "overlap": c["overlap"],
            "status": "ok",
            "common_unl": len(self.topology.common_unl),
            "branches": self.sim.branches(),
            "synchronized": self.sim.synchronized(),
            "validated_ledgers": ledgers["validated_ledgers"],
            "forked_ledgers": ledgers["forked_sequences"],
            "tx_submitted": txs["submitted"],
            "tx_validated": txs["validated"],
            "events": self.events_processed,
        }

    def analyze(self, log: Optional[TextIO] = None) -> Dict[str, Any]:
        """Print the combination summary and the collector reports."""
        log = log or self.log
        c = self.config
        row = self.result()

        print(
            f"| Peers: {c['num_peers']:>2} | Byzantines: {c['num_byzantines']:>2}"
            f" | UNL overlapping: {c['overlap']:.2f}",
            file=log
        )
        print(
            f"| Duration: {c['sim_duration'] // ms(1)} ms | Branches: {row['branches']}"
            f" | Synchronized: {'Y' if row['synchronized'] else 'N'} |",
            file=log
        )
        self.tx_collector.report(c["sim_duration"], log, verbose=True)
        self.ledger_collector.report(c["sim_duration"], log, verbose=False)
        return row

    def export_results(self, tx_log: TextIO, ledger_log: TextIO, include_header: bool = False):
        """Append this combination's rows to the transaction and ledger logs."""
        duration = self.config["sim_duration"]
        self.tx_collector.csv(duration, tx_log, self.tag, include_header)
        self.ledger_collector.csv(duration, ledger_log, self.tag, include_header)

    def visualize(self, output_dir: str = "output_byzantine"):
        """Plot the trust topology of this combination."""
        c = self.config
        name = f"topology_P{c['num_peers']}_B{c['num_byzantines']}_f{c['overlap']:.2f}.html"
        return Visualizer().plot_trust_topology(
            self.topology,
            output_file=os.path.join(output_dir, name)
        )

    def close(self):
        if self.sim is not None:
            self.sim.close()


@dataclass
class StudyParameters:
    """Sweep ranges. Both ranges are inclusive."""
    num_peers: int = 50
    min_byzantines: int = 0
    max_byzantines: int = 18
    byzantine_step: int = 2
    min_overlap: float = 0.1
    max_overlap: float = 0.9
    overlap_step: float = 0.1

    @classmethod
    def parse(cls, text: Optional[str] = None) -> "StudyParameters":
        """
        Read up to seven whitespace-separated values, in field order.

        Missing trailing values keep their defaults; extra values are ignored.
        """
        values = (text or DEFAULT_ARGS).split()
        kwargs = {}
        for f, raw in zip(fields(cls), values):
            kwargs[f.name] = int(raw) if f.type in (int, "int") else float(raw)
        return cls(**kwargs)

    def byzantine_counts(self) -> List[int]:
        """Byzantine counts to run; empty when the step is not positive."""
        if self.byzantine_step <= 0:
            return []
        return list(range(self.min_byzantines, self.max_byzantines + 1, self.byzantine_step))

    def overlaps(self) -> List[float]:
        """Overlap values by index, so repeated addition cannot drift past the end."""
        if self.overlap_step <= 0 or self.max_overlap < self.min_overlap:
            return []
        count = int(math.floor((self.max_overlap - self.min_overlap) / self.overlap_step + 1e-9)) + 1
        return [round(self.min_overlap + i * self.overlap_step, 10) for i in range(count)]


def run_sensitivity_study(
    args: Optional[str] = None,
    log: Optional[TextIO] = None,
    output_dir: str = ".",
    prefix: str = DEFAULT_PREFIX,
    progress: bool = True,
    config: Optional[Dict[str, Any]] = None
) -> List[Dict[str, Any]]:
    """
    Run every (byzantines, overlap) combination for a fixed peer count.

    Args:
        args: Whitespace-separated study parameters (default: DEFAULT_ARGS)
        log: Text sink for progress and reports (default: stdout)
        output_dir: Directory of the delimited logs
        prefix: File name prefix of the delimited logs
        progress: Show tqdm progress bars
        config: Extra scenario configuration applied to every combination

    Returns:
        One row per combination, failed ones included
    """
    log = log or sys.stdout
    params = StudyParameters.parse(args)
    config = config or {}

    print(f"ByzantineSensitivitySim: {params.num_peers} Peers", file=log)
    print(
        f"Min Byzantines: {params.min_byzantines} Max Byzantines: {params.max_byzantines}"
        f" sim step: {params.byzantine_step}",
        file=log
    )
    print(
        f"Min UNL overlapping: {params.min_overlap} Max UNL overlapping: {params.max_overlap}"
        f" sim step: {params.overlap_step}",
        file=log
    )

    os.makedirs(output_dir, exist_ok=True)
    tx_path = os.path.join(output_dir, f"{prefix}_tx.csv")
    ledger_path = os.path.join(output_dir, f"{prefix}_ledger.csv")

    stats = Statistics()
    print_headers = True
    overlaps = params.overlaps()
    byzantine_counts = params.byzantine_counts()
    if not overlaps or not byzantine_counts:
        print(
            "No combinations to run: steps must be positive and each minimum must not exceed its maximum",
            file=log
        )

    with open(tx_path, "a", newline="") as tx_log, open(ledger_path, "a", newline="") as ledger_log:
        for byzantines in tqdm(byzantine_counts, desc="Byzantines", disable=not progress):
            for overlap in tqdm(overlaps, desc="Overlap", leave=False, disable=not progress):
                print("Starting...", file=log)
                scenario = ByzantineSensitivityScenario(
                    {
                        **config,
                        "num_peers": params.num_peers,
                        "num_byzantines": byzantines,
                        "overlap": overlap,
                    },
                    log=log
                )
                try:
                    scenario.setup()
                    scenario.run()
                except (ConfigurationError, SamplingExhaustedError) as e:
                    print(f"Skipping {scenario.tag}: {e}", file=log)
                    stats.add({
                        "peers": params.num_peers,
                        "byzantines": byzantines,
                        "overlap": overlap,
                        "status": "failed",
                        "error": str(e),
                    })
                    continue
                finally:
                    scenario.close()

                stats.add(scenario.analyze(log))
                scenario.export_results(tx_log, ledger_log, include_header=print_headers)
                print_headers = False
                print(file=log)

    stats.print_table(log)
    return stats.rows
