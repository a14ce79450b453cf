"""Synthetic traffic: flow creation, size distribution and batching."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from random import Random

    from offload_sim.config import SimulationConfig, TrafficShape
    from offload_sim.core.context import SimulationContext
    from offload_sim.core.flow import Flow


class SizeDistribution:
    """Discrete flow-size distribution over percentile positions in [0, 100).

    Rat sizes share ``100 - elephant_proportion`` percent of the mass and
    elephant sizes the rest, each split by its in-group weights. Cycling the
    position through 0..99 reproduces the mass exactly every 100 flows.
    """

    def __init__(self, shape: TrafficShape) -> None:
        self._cutoff = shape.elephant_cutoff
        rat_share = 100 - shape.elephant_proportion
        elephant_share = shape.elephant_proportion

        self._bounds: list[tuple[float, int]] = []
        cumulative = 0.0
        for size, weight in shape.rat_sizes:
            cumulative += weight
            self._bounds.append((round(cumulative * rat_share, 9), size))
        cumulative = 0.0
        for size, weight in shape.elephant_sizes:
            cumulative += weight
            self._bounds.append((round(rat_share + cumulative * elephant_share, 9), size))

    def size_at(self, position: float) -> int:
        for bound, size in self._bounds:
            if position < bound:
                return size
        return self._bounds[-1][1]

    def probability(self, size: int) -> float:
        """Probability mass of ``size`` in percent."""
        mass = 0.0
        lower = 0.0
        for bound, candidate in self._bounds:
            if candidate == size:
                mass += bound - lower
            lower = bound
        return mass

    def is_elephant(self, size: int) -> bool:
        return size >= self._cutoff

    def position_for(self, flow_id: int, rng: Random | None = None) -> float:
        if rng is not None:
            return rng.random() * 100
        return float((flow_id - 1) % 100)


class TrafficGenerator:
    """Fills a turn's packet queue.

    New flows come first, one batch each; older flows with packets left are
    then topped up, oldest first, until the turn's packet budget is used.
    """

    def __init__(self, config: SimulationConfig) -> None:
        self._config = config
        self._shape = config.traffic
        self._distribution = SizeDistribution(config.traffic)

    def stage_multiplier(self, turn: int) -> float:
        stages = self._shape.stage_multipliers
        stage_length = math.ceil(self._config.turns / len(stages))
        return stages[min(turn // stage_length, len(stages) - 1)]

    def admission_target(self, turn: int) -> int:
        target = self._config.new_flows_per_turn * self.stage_multiplier(turn)
        slow_start = self._shape.slow_start_turns
        if turn < slow_start:
            target *= (turn + 1) / slow_start
        return int(target)

    def batch_size(self, context: SimulationContext, flow: Flow, is_new: bool) -> int:
        shape = self._shape
        if not self._distribution.is_elephant(flow.size):
            return shape.rat_batch_size
        if not is_new:
            return shape.elephant_batch_size

        threshold = context.controller.threshold
        if shape.threshold_first_batch and threshold is not None:
            return max(1, int(threshold))
        return shape.elephant_start_batch_size

    def emit(self, context: SimulationContext, flow: Flow, is_new: bool) -> int:
        """Queue one batch for ``flow`` and return the packets placed."""
        placed = flow.take(self.batch_size(context, flow, is_new))
        context.enqueue(flow.id, placed)
        return placed

    def create_flow(self, context: SimulationContext) -> Flow:
        rng = context.rng if self._shape.randomize_sizes else None
        position = self._distribution.position_for(context.flows.next_id, rng)
        flow = context.flows.create(self._distribution.size_at(position), context.turn)
        context.current.new_flows += 1
        return flow

    def generate(self, context: SimulationContext, new_flows: int | None = None) -> None:
        if new_flows is None:
            new_flows = self.admission_target(context.turn)

        first_new = context.flows.next_id
        for _ in range(new_flows):
            self.emit(context, self.create_flow(context), is_new=True)

        budget = self._config.packets_per_turn
        for flow in context.flows.pending(before=first_new):
            if context.current.generated >= budget:
                break
            self.emit(context, flow, is_new=False)
