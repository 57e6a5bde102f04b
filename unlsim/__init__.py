"""
UNL Sensitivity Simulator Framework

A discrete-event simulation framework for studying how a Byzantine fault
tolerant network degrades as its Byzantine population grows and as the
overlap between peers' Unique Node Lists shrinks.
"""

from .clock import SimClock, ms, seconds, minutes, to_seconds
from .errors import (
    UnlSimError,
    ConfigurationError,
    SamplingExhaustedError,
    SchedulerClosedError,
)
from .events import Scheduler, Event
from .distributions import (
    Distribution,
    ConstantDistribution,
    UniformDistribution,
    ExponentialDistribution,
    PowerLawDistribution,
    Rate,
    sample,
)
from .selector import RankedSelector, make_selector
from .peer import (
    Tx,
    Ledger,
    Peer,
    PeerConfig,
    PeerGroup,
    SubmitTx,
    AcceptLedger,
    FullyValidateLedger,
)
from .statistics import (
    Collector,
    CollectorSet,
    EventLog,
    TxCollector,
    LedgerCollector,
    Statistics,
)
from .sim import Sim, HeartbeatTimer
from .topology import (
    TopologyParams,
    TopologyBuilder,
    ByzantineTopology,
    build_byzantine_topology,
)
from .submitters import (
    TrafficGenerator,
    SingleTarget,
    AllTargets,
    SubmitAction,
    InjectAction,
    make_submitter,
    make_sybilian_submitter,
    make_injector,
    make_sybilian_injector,
)
from .visualization import Visualizer

__version__ = "0.1.0"
__all__ = [
    "SimClock",
    "ms",
    "seconds",
    "minutes",
    "to_seconds",
    "UnlSimError",
    "ConfigurationError",
    "SamplingExhaustedError",
    "SchedulerClosedError",
    "Scheduler",
    "Event",
    "Distribution",
    "ConstantDistribution",
    "UniformDistribution",
    "ExponentialDistribution",
    "PowerLawDistribution",
    "Rate",
    "sample",
    "RankedSelector",
    "make_selector",
    "Tx",
    "Ledger",
    "Peer",
    "PeerConfig",
    "PeerGroup",
    "SubmitTx",
    "AcceptLedger",
    "FullyValidateLedger",
    "Collector",
    "CollectorSet",
    "EventLog",
    "TxCollector",
    "LedgerCollector",
    "Statistics",
    "Sim",
    "HeartbeatTimer",
    "TopologyParams",
    "TopologyBuilder",
    "ByzantineTopology",
    "build_byzantine_topology",
    "TrafficGenerator",
    "SingleTarget",
    "AllTargets",
    "SubmitAction",
    "InjectAction",
    "make_submitter",
    "make_sybilian_submitter",
    "make_injector",
    "make_sybilian_injector",
    "Visualizer",
]
