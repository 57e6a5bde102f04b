"""
Quickstart for the UNL sensitivity simulator.

Runs the Byzantine sensitivity study. Positional arguments are the study
parameters, in order:

    peers  minByzantines  maxByzantines  byzantineStep  minOverlap  maxOverlap  overlapStep

e.g. `python examples/quickstart.py 20 0 4 2 0.3 0.9 0.3`. With no arguments
the full default study ("50 0 18 2 0.1 0.9 0.1") runs.
"""

import sys
sys.path.insert(0, '..')

from scenarios import ByzantineSensitivityScenario, run_sensitivity_study
from unlsim import Visualizer, seconds


def example_single_combination():
    """
    Run one combination and plot its trust topology.

    Handy to look at what the topology builder produces before a full sweep.
    """
    print("=" * 80)
    print("Single combination: 20 peers, 4 Byzantine, overlap 0.5")
    print("=" * 80)

    scenario = ByzantineSensitivityScenario({
        "num_peers": 20,
        "num_byzantines": 4,
        "overlap": 0.5,
        "sim_duration": seconds(30),
        "quiet": seconds(5),
        "seed": 7,
    })
    scenario.setup()
    scenario.run()
    scenario.analyze()
    scenario.visualize("output_byzantine")
    scenario.close()


def main():
    """Run the sensitivity study with the parameters given on the command line."""
    args = " ".join(sys.argv[1:]) or None

    example_single_combination()

    rows = run_sensitivity_study(args, output_dir="output_byzantine")

    visualizer = Visualizer()
    visualizer.plot_sweep_heatmap(
        rows, "validated_ledgers", output_file="output_byzantine/validated_ledgers.html"
    )
    visualizer.plot_sweep_heatmap(
        rows, "branches", output_file="output_byzantine/branches.html"
    )


if __name__ == "__main__":
    main()
