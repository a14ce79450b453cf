"""Tests for the dual-path dispatcher."""

import pytest

from offload_sim.config import SimulationConfig
from offload_sim.core.context import PacketBatch
from offload_sim.core.dispatcher import DualPathDispatcher
from offload_sim.core.flow import InvariantViolation
from offload_sim.core.generator import TrafficGenerator
from offload_sim.core.types import UNFINISHED, FlowId


def _queue_whole(context, size: int, batches: list[int]):
    """Create one flow of ``size`` packets and queue the given batch sizes for it."""
    flow = context.flows.create(size=size, turn=context.turn)
    for batch in batches:
        context.enqueue(flow.id, flow.take(batch))
    return flow


class TestSlowPathCapacity:
    def test_batch_split_at_ceiling(self, make_context, uniform_rats) -> None:
        """Three 4-packet rat batches against a ceiling of 10: two packets drop."""
        config = SimulationConfig(slow_path_capacity=10, traffic=uniform_rats(4))
        context = make_context(config)
        TrafficGenerator(config).generate(context, new_flows=3)

        DualPathDispatcher(config).dispatch(context)

        counters = context.current
        assert counters.slow_path == 10
        assert counters.dropped == 2
        assert counters.fast_path == 0

        first, second, third = context.flows
        assert first.finish_turn == 0
        assert second.finish_turn == 0
        assert third.slow_path_count == 2
        assert third.remaining_packets == 2
        assert third.finish_turn == UNFINISHED

    def test_whole_batch_dropped_when_full(self, make_context, uniform_rats) -> None:
        config = SimulationConfig(slow_path_capacity=8, traffic=uniform_rats(4))
        context = make_context(config)
        TrafficGenerator(config).generate(context, new_flows=3)

        DualPathDispatcher(config).dispatch(context)

        third = context.flows.get(FlowId(3))
        assert context.current.dropped == 4
        assert third.slow_path_count == 0
        assert third.remaining_packets == 4

    def test_discarded_drops_do_not_return(self, make_context, uniform_rats) -> None:
        config = SimulationConfig(
            slow_path_capacity=10, drops_retry=False, traffic=uniform_rats(4)
        )
        context = make_context(config)
        TrafficGenerator(config).generate(context, new_flows=3)

        DualPathDispatcher(config).dispatch(context)

        third = context.flows.get(FlowId(3))
        assert context.current.dropped == 2
        assert third.remaining_packets == 0
        assert third.finish_turn == 0

    def test_offloaded_flow_bypasses_full_slow_path(self, make_context) -> None:
        config = SimulationConfig(slow_path_capacity=4)
        context = make_context(config)
        _queue_whole(context, size=8, batches=[4])
        offloaded = _queue_whole(context, size=64, batches=[64])
        offloaded.is_offloaded = True

        DualPathDispatcher(config).dispatch(context)

        assert context.current.slow_path == 4
        assert context.current.fast_path == 64
        assert context.current.dropped == 0
        assert offloaded.fast_path_count == 64
        assert offloaded.finish_turn == 0


class TestOffloadRequests:
    def test_offload_when_threshold_reached(self, make_context) -> None:
        config = SimulationConfig(offload_threshold=4)
        context = make_context(config)
        flow = _queue_whole(context, size=512, batches=[4])

        DualPathDispatcher(config).dispatch(context)

        assert flow.is_offloaded
        assert flow.slow_path_count == 4
        assert context.current.offloads_installed == 1

    def test_rest_of_crossing_batch_stays_on_slow_path(self, make_context) -> None:
        """Status is evaluated per batch; a later batch in the same turn goes fast."""
        config = SimulationConfig(offload_threshold=4)
        context = make_context(config)
        flow = _queue_whole(context, size=12, batches=[6, 6])

        DualPathDispatcher(config).dispatch(context)

        assert flow.slow_path_count == 6
        assert flow.fast_path_count == 6
        assert flow.finish_turn == 0

    def test_rule_rate_limit_rejects_and_retries(self, make_context) -> None:
        config = SimulationConfig(offload_threshold=2, offload_rule_capacity=1)
        context = make_context(config)
        first = _queue_whole(context, size=64, batches=[4])
        second = _queue_whole(context, size=64, batches=[4, 4])

        DualPathDispatcher(config).dispatch(context)

        assert first.is_offloaded
        assert not second.is_offloaded
        assert context.current.offloads_installed == 1
        assert context.current.offloads_rejected == 2  # one per batch past the threshold
        assert second.slow_path_count == 8

    def test_fully_dropped_batch_makes_no_request(self, make_context) -> None:
        config = SimulationConfig(offload_threshold=5, slow_path_capacity=4)
        context = make_context(config)
        _queue_whole(context, size=8, batches=[4])
        starved = _queue_whole(context, size=8, batches=[4])
        starved.slow_path_count = 10  # already past the threshold

        DualPathDispatcher(config).dispatch(context)

        assert not starved.is_offloaded
        assert context.current.offloads_rejected == 0
        assert context.current.offloads_installed == 0


class TestInvariants:
    def test_sentinel_flow_id_is_fatal(self, make_context) -> None:
        config = SimulationConfig()
        context = make_context(config)
        context.queue.append(PacketBatch(flow_id=FlowId(0), size=1))

        with pytest.raises(InvariantViolation):
            DualPathDispatcher(config).dispatch(context)

    def test_unknown_flow_id_is_fatal(self, make_context) -> None:
        config = SimulationConfig()
        context = make_context(config)
        context.queue.append(PacketBatch(flow_id=FlowId(5), size=1))

        with pytest.raises(InvariantViolation):
            DualPathDispatcher(config).dispatch(context)
