"""Routes a turn's batches to the fast or slow path."""

from __future__ import annotations

from typing import TYPE_CHECKING

from offload_sim.core.flow import InvariantViolation

if TYPE_CHECKING:
    from offload_sim.config import SimulationConfig
    from offload_sim.core.context import PacketBatch, SimulationContext
    from offload_sim.core.flow import Flow


class DualPathDispatcher:
    """Processes batches in generation order under the slow-path ceiling.

    Offloaded flows go to the fast path unconditionally. Everything else
    competes for ``slow_path_capacity`` packets per turn; the part of a batch
    that does not fit is dropped. Offload status is checked once per batch,
    so a flow that crosses the threshold mid-batch keeps the rest of that
    batch on the slow path.
    """

    def __init__(self, config: SimulationConfig) -> None:
        self._capacity = config.slow_path_capacity
        self._drops_retry = config.drops_retry

    def dispatch(self, context: SimulationContext) -> None:
        for batch in context.queue:
            self.process(context, batch)

    def process(self, context: SimulationContext, batch: PacketBatch) -> None:
        if batch.flow_id <= 0:
            raise InvariantViolation(f"flow id {batch.flow_id} reached the dispatcher")
        if batch.size < 0:
            raise InvariantViolation(f"batch for flow {batch.flow_id} has size {batch.size}")

        flow = context.flows.get(batch.flow_id)
        controller = context.controller
        counters = context.current

        if flow.is_offloaded:
            flow.fast_path_count += batch.size
            counters.fast_path += batch.size
            controller.observe(flow, batch.size)
        else:
            room = max(self._capacity - counters.slow_path, 0)
            processed = min(batch.size, room)
            if processed < batch.size:
                self._drop(context, flow, batch.size - processed)

            if processed > 0:
                flow.slow_path_count += processed
                counters.slow_path += processed
                controller.observe(flow, processed)
                if controller.offload_due(flow):
                    controller.request_offload(context, flow)

        if flow.mark_finished(context.turn):
            counters.finished_flows += 1

    def _drop(self, context: SimulationContext, flow: Flow, count: int) -> None:
        context.current.dropped += count
        if self._drops_retry:
            flow.give_back(count)
