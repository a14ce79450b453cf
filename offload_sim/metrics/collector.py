"""Metrics collection for simulation analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from offload_sim.metrics.results import SimulationResults, TurnSnapshot

if TYPE_CHECKING:
    from offload_sim.config import SimulationConfig
    from offload_sim.core.context import SimulationContext


@dataclass
class MetricsCollector:
    """Records per-turn accounting and reduces a finished run to a summary.

    Latency is a fixed per-packet cost per path; dropped packets are charged
    the slow-path latency.
    """

    config: SimulationConfig
    turn_timeseries: list[TurnSnapshot] = field(default_factory=list)

    def record_turn(self, context: SimulationContext) -> TurnSnapshot:
        counters = context.current
        snapshot = TurnSnapshot(
            turn=context.turn,
            generated=counters.generated,
            dropped=counters.dropped,
            fast_path=counters.fast_path,
            slow_path=counters.slow_path,
            offloads_installed=counters.offloads_installed,
            offloads_rejected=counters.offloads_rejected,
            new_flows=counters.new_flows,
            finished_flows=counters.finished_flows,
            threshold=context.controller.threshold,
        )
        self.turn_timeseries.append(snapshot)
        return snapshot

    def mean_latency(self, fast_path: int, slow_path: int, dropped: int) -> float:
        packets = fast_path + slow_path + dropped
        if packets == 0:
            return 0.0
        weighted = (
            fast_path * self.config.fast_path_latency_us
            + (slow_path + dropped) * self.config.slow_path_latency_us
        )
        return weighted / packets

    def completion_time(self, start_turn: int, finish_turn: int) -> float:
        if finish_turn == start_turn:
            return self.config.min_completion_time
        return float(finish_turn - start_turn)

    def finalize(self, context: SimulationContext) -> SimulationResults:
        totals = context.totals

        completion_times = [
            self.completion_time(flow.start_turn, flow.finish_turn)
            for flow in context.flows
            if flow.is_finished
        ]
        flows_created = len(context.flows)
        flows_completed = len(completion_times)

        return SimulationResults(
            total_packets=totals.generated,
            total_dropped=totals.dropped,
            total_fast_path=totals.fast_path,
            total_slow_path=totals.slow_path,
            total_offloads_installed=totals.offloads_installed,
            total_offloads_rejected=totals.offloads_rejected,
            drop_rate=(
                100 * totals.dropped / totals.generated if totals.generated > 0 else 0.0
            ),
            mean_latency_us=self.mean_latency(totals.fast_path, totals.slow_path, totals.dropped),
            flows_created=flows_created,
            flows_completed=flows_completed,
            completion_rate=(
                100 * flows_completed / flows_created if flows_created > 0 else 0.0
            ),
            mean_completion_time=(
                sum(completion_times) / flows_completed if flows_completed > 0 else 0.0
            ),
            final_threshold=context.controller.threshold,
            turn_timeseries=self.turn_timeseries,
        )
