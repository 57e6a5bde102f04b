"""
Integration tests for the Byzantine sensitivity study.
"""

import csv
import io

import pytest

from scenarios.byzantine_sensitivity import (
    ByzantineSensitivityScenario,
    run_sensitivity_study,
)
from unlsim import EventLog, Rate, SubmitTx, seconds


FAST = {
    "sim_duration": seconds(20),
    "quiet": seconds(2),
    "rate": Rate(10, seconds(1)),
    "seed": 1,
    "heartbeat": None,
}


class TestScenario:

    def test_single_combination(self, tmp_path):
        log = io.StringIO()
        scenario = ByzantineSensitivityScenario(
            {**FAST, "num_peers": 10, "num_byzantines": 2, "overlap": 0.5}, log=log
        )
        scenario.setup()
        scenario.run()
        row = scenario.analyze()

        assert scenario.tag == "( 10,2,0.500000)"
        assert row["status"] == "ok"
        assert row["branches"] >= 1
        assert row["tx_submitted"] > 100
        assert row["validated_ledgers"] > 0
        assert len(scenario.generators) == 2
        assert scenario.generators[1].next_id > 100

        out = log.getvalue()
        assert "| Peers: 10 | Byzantines:  2" in out
        assert "TxStats" in out and "LedgerStats" in out

        fig = scenario.visualize(str(tmp_path))
        assert fig is not None
        assert any(p.name.startswith("topology_P10_B2") for p in tmp_path.iterdir())
        scenario.close()

    def test_without_byzantines_no_injector(self):
        scenario = ByzantineSensitivityScenario(
            {**FAST, "num_peers": 10, "num_byzantines": 0, "overlap": 0.5}, log=io.StringIO()
        )
        scenario.setup()
        scenario.run()
        assert len(scenario.generators) == 1
        scenario.close()

    def test_all_byzantine_falls_back_to_network(self):
        scenario = ByzantineSensitivityScenario(
            {**FAST, "num_peers": 10, "num_byzantines": 10, "overlap": 0.5}, log=io.StringIO()
        )
        scenario.setup()
        scenario.run()
        assert scenario.result()["tx_submitted"] > 0
        scenario.close()

    def test_heartbeat_logs(self):
        log = io.StringIO()
        scenario = ByzantineSensitivityScenario(
            {**FAST, "num_peers": 6, "num_byzantines": 0, "overlap": 0.5, "heartbeat": seconds(5)},
            log=log
        )
        scenario.setup()
        scenario.run()
        assert log.getvalue().count("Heartbeat.") == 4
        scenario.close()

    def test_same_seed_same_event_sequence(self):
        def run_once(seed):
            scenario = ByzantineSensitivityScenario(
                {**FAST, "seed": seed, "num_peers": 10, "num_byzantines": 2, "overlap": 0.5},
                log=io.StringIO()
            )
            scenario.setup()
            events = EventLog()
            scenario.sim.collectors.add(events)
            scenario.run()
            scenario.close()
            return events.events

        first, second = run_once(3), run_once(3)
        assert len(first) > 100
        assert first == second

        submitted = [(e.time, e.peer, e.tx) for e in first if isinstance(e, SubmitTx)]
        assert submitted
        assert submitted == [(e.time, e.peer, e.tx) for e in second if isinstance(e, SubmitTx)]

    def test_invalid_combination_raises_on_setup(self):
        scenario = ByzantineSensitivityScenario(
            {**FAST, "num_peers": 10, "num_byzantines": 11, "overlap": 0.5}, log=io.StringIO()
        )
        with pytest.raises(ValueError):
            scenario.setup()


class TestStudy:

    def test_sweep_writes_logs(self, tmp_path):
        log = io.StringIO()
        rows = run_sensitivity_study(
            "10 0 2 2 0.5 0.9 0.4",
            log=log,
            output_dir=str(tmp_path),
            prefix="study",
            progress=False,
            config=FAST
        )

        assert [(r["byzantines"], r["overlap"]) for r in rows] == [
            (0, 0.5), (0, 0.9), (2, 0.5), (2, 0.9)
        ]
        assert all(r["status"] == "ok" for r in rows)

        for name in ("study_tx.csv", "study_ledger.csv"):
            with open(tmp_path / name, newline="") as f:
                lines = list(csv.reader(f))
            assert lines[0][0] == "tag"
            assert [line[0] for line in lines[1:]] == [
                "( 10,0,0.500000)", "( 10,0,0.900000)",
                "( 10,2,0.500000)", "( 10,2,0.900000)",
            ]

        out = log.getvalue()
        assert out.startswith("ByzantineSensitivitySim: 10 Peers")
        assert out.count("Starting...") == 4
        assert "Wall time" in out

    def test_failed_combination_does_not_stop_sweep(self, tmp_path):
        log = io.StringIO()
        rows = run_sensitivity_study(
            "10 8 12 2 0.5 0.5 0.1",
            log=log,
            output_dir=str(tmp_path),
            prefix="study",
            progress=False,
            config=FAST
        )

        assert [(r["byzantines"], r["status"]) for r in rows] == [
            (8, "ok"), (10, "ok"), (12, "failed")
        ]
        assert "Skipping ( 10,12,0.500000)" in log.getvalue()

        with open(tmp_path / "study_tx.csv", newline="") as f:
            lines = list(csv.reader(f))
        assert len(lines) == 3

    def test_header_written_with_first_successful_combination(self, tmp_path):
        run_sensitivity_study(
            "10 11 12 1 0.5 0.5 0.1",
            log=io.StringIO(),
            output_dir=str(tmp_path),
            prefix="study",
            progress=False,
            config=FAST
        )
        with open(tmp_path / "study_tx.csv", newline="") as f:
            assert f.read() == ""

        run_sensitivity_study(
            "10 2 2 1 0.5 0.5 0.1",
            log=io.StringIO(),
            output_dir=str(tmp_path),
            prefix="study",
            progress=False,
            config=FAST
        )
        with open(tmp_path / "study_tx.csv", newline="") as f:
            lines = list(csv.reader(f))
        assert lines[0][0] == "tag"
        assert len(lines) == 2

    def test_zero_step_reports_instead_of_crashing(self, tmp_path):
        log = io.StringIO()
        rows = run_sensitivity_study(
            "10 0 4 0 0.5 0.9 0",
            log=log,
            output_dir=str(tmp_path),
            prefix="study",
            progress=False,
            config=FAST
        )
        assert rows == []
        out = log.getvalue()
        assert "No combinations to run" in out
        assert "Starting..." not in out
