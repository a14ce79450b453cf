"""Core simulation engine."""

from offload_sim.core.clock import SimulationClock, run_simulation
from offload_sim.core.context import PacketBatch, SimulationContext, TurnCounters
from offload_sim.core.dispatcher import DualPathDispatcher
from offload_sim.core.flow import Flow, FlowTable, InvariantViolation
from offload_sim.core.generator import SizeDistribution, TrafficGenerator
from offload_sim.core.types import SENTINEL_FLOW_ID, UNFINISHED, FlowId

__all__ = [
    "SENTINEL_FLOW_ID",
    "UNFINISHED",
    "DualPathDispatcher",
    "Flow",
    "FlowId",
    "FlowTable",
    "InvariantViolation",
    "PacketBatch",
    "SimulationClock",
    "SimulationContext",
    "SizeDistribution",
    "TrafficGenerator",
    "TurnCounters",
    "run_simulation",
]
