"""Turn-based simulator for dual-path packet offload policies."""

from offload_sim.config import (
    OFFLOAD_DISABLED,
    ConfigurationError,
    ControllerKind,
    RejectionWindow,
    SimulationConfig,
    SketchConfig,
    TrafficShape,
)

__all__ = [
    "OFFLOAD_DISABLED",
    "ConfigurationError",
    "ControllerKind",
    "RejectionWindow",
    "SimulationConfig",
    "SketchConfig",
    "TrafficShape",
]
