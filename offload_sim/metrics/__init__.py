"""Metrics collection and analysis for simulations."""

from .collector import MetricsCollector
from .results import SimulationResults, TurnSnapshot

__all__ = [
    "MetricsCollector",
    "SimulationResults",
    "TurnSnapshot",
]
