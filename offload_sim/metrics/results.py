"""Simulation results and snapshot data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class TurnSnapshot:
    """Accounting for a single turn."""

    turn: int
    generated: int
    dropped: int
    fast_path: int
    slow_path: int
    offloads_installed: int
    offloads_rejected: int
    new_flows: int
    finished_flows: int
    threshold: float | None  # Threshold in effect after the turn closed


@dataclass
class SimulationResults:
    """Summary record for one configuration's run."""

    # Packet totals
    total_packets: int
    total_dropped: int
    total_fast_path: int
    total_slow_path: int

    # Offload rules
    total_offloads_installed: int
    total_offloads_rejected: int

    # Derived
    drop_rate: float  # percent of generated packets
    mean_latency_us: float

    # Flow lifecycle
    flows_created: int
    flows_completed: int
    completion_rate: float  # percent of created flows
    mean_completion_time: float  # seconds

    final_threshold: float | None = None

    # Raw data for further analysis
    turn_timeseries: list[TurnSnapshot] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "total_packets": self.total_packets,
            "total_dropped": self.total_dropped,
            "total_fast_path": self.total_fast_path,
            "total_slow_path": self.total_slow_path,
            "total_offloads_installed": self.total_offloads_installed,
            "total_offloads_rejected": self.total_offloads_rejected,
            "drop_rate": self.drop_rate,
            "mean_latency_us": self.mean_latency_us,
            "flows_created": self.flows_created,
            "flows_completed": self.flows_completed,
            "completion_rate": self.completion_rate,
            "mean_completion_time": self.mean_completion_time,
            "final_threshold": self.final_threshold,
        }
