from offload_sim.sweep.config import (
    AnomalyThresholds,
    Grid,
    SweepConfig,
    apply_overrides,
)

__all__ = [
    "AnomalyThresholds",
    "Grid",
    "SweepConfig",
    "apply_overrides",
]
