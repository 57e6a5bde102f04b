"""
Simulation scenarios for the UNL sensitivity simulator.

Each scenario runs one experimental setup; the sensitivity study sweeps a
scenario across a parameter grid.
"""

from .byzantine_sensitivity import (
    ByzantineSensitivityScenario,
    StudyParameters,
    run_sensitivity_study,
)

__all__ = [
    "ByzantineSensitivityScenario",
    "StudyParameters",
    "run_sensitivity_study",
]
