"""
Statistics collection and reporting.

Collectors receive peer events through `record(event)` while the simulation
runs; after the run they summarise what happened as text tables or as
delimited rows appended to a study log.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TextIO
import csv
import time

import numpy as np
from tabulate import tabulate

from .clock import to_seconds
from .peer import Tx, Ledger, SubmitTx, AcceptLedger, FullyValidateLedger


def _percentiles(values: List[int]) -> Dict[str, float]:
    """Median, p90 and max of a list of virtual durations, in seconds."""
    if not values:
        return {"p50": 0.0, "p90": 0.0, "max": 0.0}
    data = np.asarray(values, dtype=float) / 1e9
    return {
        "p50": float(np.percentile(data, 50)),
        "p90": float(np.percentile(data, 90)),
        "max": float(data.max()),
    }


class Collector:
    """Receives simulation events. Subclasses override `record`."""

    def record(self, event: Any):
        raise NotImplementedError("Subclasses must implement record()")


class CollectorSet(Collector):
    """Fans each event out to every registered collector, in order."""

    def __init__(self, *collectors: Collector):
        self.collectors: List[Collector] = list(collectors)

    def add(self, *collectors: Collector):
        self.collectors.extend(collectors)

    def record(self, event: Any):
        for collector in self.collectors:
            collector.record(event)


class EventLog(Collector):
    """Keeps every event, in the order they were recorded."""

    def __init__(self):
        self.events: List[Any] = []

    def record(self, event: Any):
        self.events.append(event)


@dataclass
class TxRecord:
    """Lifecycle of a submitted transaction."""
    tx: Tx
    submitted: int
    accepted: Optional[int] = None
    validated: Optional[int] = None


class TxCollector(Collector):
    """
    Tracks submitted transactions through acceptance and full validation.

    Only submitted transactions are tracked; injected ones never pass through
    submit() and show up only as ledger content.
    """

    def __init__(self):
        self.txs: Dict[Tx, TxRecord] = {}
        self.submitted = 0
        self.accepted = 0
        self.validated = 0

    def record(self, event: Any):
        if isinstance(event, SubmitTx):
            # Only the first submission of a tx counts
            if event.tx not in self.txs:
                self.txs[event.tx] = TxRecord(event.tx, event.time)
                self.submitted += 1
        elif isinstance(event, AcceptLedger):
            for tx in event.ledger.txs:
                rec = self.txs.get(tx)
                if rec is not None and rec.accepted is None:
                    rec.accepted = event.time
                    self.accepted += 1
        elif isinstance(event, FullyValidateLedger):
            for tx in event.ledger.txs:
                rec = self.txs.get(tx)
                if rec is not None and rec.validated is None:
                    rec.validated = event.time
                    self.validated += 1

    def summary(self, duration: int) -> Dict[str, Any]:
        """Summary numbers for a run of the given virtual duration."""
        accept_latency = [r.accepted - r.submitted for r in self.txs.values() if r.accepted is not None]
        validate_latency = [r.validated - r.submitted for r in self.txs.values() if r.validated is not None]
        secs = to_seconds(duration) or 1.0
        return {
            "submitted": self.submitted,
            "accepted": self.accepted,
            "validated": self.validated,
            "submit_rate": self.submitted / secs,
            "accept_rate": self.accepted / secs,
            "validate_rate": self.validated / secs,
            "accept_latency": _percentiles(accept_latency),
            "validate_latency": _percentiles(validate_latency),
        }

    def report(self, duration: int, sink: TextIO, verbose: bool = False):
        """Write a human-readable summary table to `sink`."""
        s = self.summary(duration)
        rows = [
            ["Submitted", s["submitted"], f"{s['submit_rate']:.2f}/s"],
            ["Accepted", s["accepted"], f"{s['accept_rate']:.2f}/s"],
            ["Validated", s["validated"], f"{s['validate_rate']:.2f}/s"],
        ]
        print(tabulate(rows, headers=["TxStats", "Count", "Rate"], tablefmt="github"), file=sink)

        if verbose:
            latency_rows = [
                [name, f"{lat['p50']:.3f}", f"{lat['p90']:.3f}", f"{lat['max']:.3f}"]
                for name, lat in (
                    ("Submit->Accept", s["accept_latency"]),
                    ("Submit->Validate", s["validate_latency"]),
                )
            ]
            print(
                tabulate(latency_rows, headers=["Latency (s)", "p50", "p90", "max"], tablefmt="github"),
                file=sink
            )
        print(file=sink)

    def csv(self, duration: int, sink: TextIO, tag: str = "", include_header: bool = False):
        """Append one delimited row (and optionally the header) to `sink`."""
        s = self.summary(duration)
        writer = csv.writer(sink)
        if include_header:
            writer.writerow([
                "tag", "duration_s", "tx_submitted", "tx_accepted", "tx_validated",
                "accept_p50_s", "accept_p90_s", "validate_p50_s", "validate_p90_s",
            ])
        writer.writerow([
            tag,
            to_seconds(duration),
            s["submitted"],
            s["accepted"],
            s["validated"],
            f"{s['accept_latency']['p50']:.6f}",
            f"{s['accept_latency']['p90']:.6f}",
            f"{s['validate_latency']['p50']:.6f}",
            f"{s['validate_latency']['p90']:.6f}",
        ])


@dataclass
class LedgerRecord:
    """First accept and first full validation of a ledger, network-wide."""
    ledger: Ledger
    accepted: int
    validated: Optional[int] = None
    accepted_by: int = 0
    validated_by: int = 0


class LedgerCollector(Collector):
    """Tracks closed and fully validated ledgers across all peers."""

    def __init__(self):
        self.ledgers: Dict[str, LedgerRecord] = {}
        self.accepts = 0
        self.full_validations = 0

    def record(self, event: Any):
        if isinstance(event, AcceptLedger):
            self.accepts += 1
            rec = self.ledgers.get(event.ledger.id)
            if rec is None:
                rec = self.ledgers[event.ledger.id] = LedgerRecord(event.ledger, event.time)
            rec.accepted_by += 1
        elif isinstance(event, FullyValidateLedger):
            self.full_validations += 1
            rec = self.ledgers.get(event.ledger.id)
            if rec is None:
                rec = self.ledgers[event.ledger.id] = LedgerRecord(event.ledger, event.time)
            if rec.validated is None:
                rec.validated = event.time
            rec.validated_by += 1

    def summary(self, duration: int) -> Dict[str, Any]:
        distinct_seqs = {rec.ledger.seq for rec in self.ledgers.values()}
        validated = [rec for rec in self.ledgers.values() if rec.validated is not None]
        return {
            "distinct_ledgers": len(self.ledgers),
            "sequences": len(distinct_seqs),
            "validated_ledgers": len(validated),
            "accepts": self.accepts,
            "full_validations": self.full_validations,
            "forked_sequences": len(self.ledgers) - len(distinct_seqs),
            "validate_latency": _percentiles([rec.validated - rec.accepted for rec in validated]),
        }

    def report(self, duration: int, sink: TextIO, verbose: bool = False):
        s = self.summary(duration)
        rows = [
            ["Distinct ledgers", s["distinct_ledgers"]],
            ["Sequences", s["sequences"]],
            ["Forked ledgers", s["forked_sequences"]],
            ["Fully validated ledgers", s["validated_ledgers"]],
            ["Peer accepts", s["accepts"]],
            ["Peer full validations", s["full_validations"]],
        ]
        print(tabulate(rows, headers=["LedgerStats", "Count"], tablefmt="github"), file=sink)

        if verbose:
            lat = s["validate_latency"]
            print(
                f"Accept->Validate latency (s): p50={lat['p50']:.3f} p90={lat['p90']:.3f} max={lat['max']:.3f}",
                file=sink
            )
        print(file=sink)

    def csv(self, duration: int, sink: TextIO, tag: str = "", include_header: bool = False):
        s = self.summary(duration)
        writer = csv.writer(sink)
        if include_header:
            writer.writerow([
                "tag", "duration_s", "distinct_ledgers", "sequences", "forked_ledgers",
                "validated_ledgers", "accepts", "full_validations", "validate_p50_s",
            ])
        writer.writerow([
            tag,
            to_seconds(duration),
            s["distinct_ledgers"],
            s["sequences"],
            s["forked_sequences"],
            s["validated_ledgers"],
            s["accepts"],
            s["full_validations"],
            f"{s['validate_latency']['p50']:.6f}",
        ])


class Statistics:
    """
    Tabulates results across a parameter sweep.

    Each completed (or failed) combination contributes one row.
    """

    def __init__(self):
        self.rows: List[Dict[str, Any]] = []
        self.start_time: float = time.time()

    def add(self, row: Dict[str, Any]):
        self.rows.append(row)

    @property
    def wall_time(self) -> float:
        return time.time() - self.start_time

    def print_table(self, sink: TextIO):
        """Print one line per combination."""
        if not self.rows:
            print("No combinations to display", file=sink)
            return

        headers = ["Peers", "Byzantines", "Overlap", "Status", "Branches", "Validated", "Tx validated"]
        table = [
            [
                r["peers"],
                r["byzantines"],
                f"{r['overlap']:.2f}",
                r["status"],
                r.get("branches", "N/A"),
                r.get("validated_ledgers", "N/A"),
                r.get("tx_validated", "N/A"),
            ]
            for r in self.rows
        ]
        print(tabulate(table, headers=headers, tablefmt="grid"), file=sink)
        print(f"Wall time: {self.wall_time:.2f} seconds", file=sink)
