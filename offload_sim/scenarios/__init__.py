"""Simulation scenario runners."""

from .baseline import REFERENCE_THRESHOLDS, run_baseline_scenario

__all__ = [
    "REFERENCE_THRESHOLDS",
    "run_baseline_scenario",
]
