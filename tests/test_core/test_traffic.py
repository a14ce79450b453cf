"""Tests for the traffic generator and flow-size distribution."""

from collections import Counter

import pytest

from offload_sim.config import OFFLOAD_DISABLED, SimulationConfig, TrafficShape
from offload_sim.core.generator import SizeDistribution, TrafficGenerator

REFERENCE_MASS = {2: 32, 4: 24, 8: 16, 16: 8, 32: 6, 64: 5, 128: 4, 256: 3, 512: 2}


class TestSizeDistribution:
    def test_reference_mass(self) -> None:
        """Each size gets its group share times its in-group weight."""
        distribution = SizeDistribution(TrafficShape())

        for size, percent in REFERENCE_MASS.items():
            assert distribution.probability(size) == pytest.approx(percent)

    def test_hundred_positions_reproduce_mass_exactly(self) -> None:
        distribution = SizeDistribution(TrafficShape())
        counts = Counter(distribution.size_at(float(p)) for p in range(100))

        assert counts == REFERENCE_MASS

    def test_elephant_proportion_shifts_group_share(self) -> None:
        distribution = SizeDistribution(TrafficShape(elephant_proportion=50))

        assert distribution.probability(2) == pytest.approx(20)
        assert distribution.probability(32) == pytest.approx(15)
        assert distribution.probability(512) == pytest.approx(5)

    def test_elephant_cutoff(self) -> None:
        distribution = SizeDistribution(TrafficShape())

        assert not distribution.is_elephant(16)
        assert distribution.is_elephant(32)
        assert distribution.is_elephant(512)

    def test_cyclic_position_from_flow_id(self) -> None:
        distribution = SizeDistribution(TrafficShape())

        assert distribution.position_for(1) == 0.0
        assert distribution.position_for(100) == 99.0
        assert distribution.position_for(101) == 0.0


class TestAdmission:
    def test_slow_start_ramps_linearly(self) -> None:
        config = SimulationConfig(
            new_flows_per_turn=100,
            traffic=TrafficShape(slow_start_turns=4),
        )
        generator = TrafficGenerator(config)

        assert [generator.admission_target(t) for t in range(6)] == [25, 50, 75, 100, 100, 100]

    def test_stage_multipliers(self) -> None:
        config = SimulationConfig(
            turns=10,
            new_flows_per_turn=100,
            traffic=TrafficShape(stage_multipliers=(1.0, 2.0), slow_start_turns=0),
        )
        generator = TrafficGenerator(config)

        assert generator.admission_target(4) == 100
        assert generator.admission_target(5) == 200
        assert generator.admission_target(9) == 200


class TestBatching:
    def test_rat_batch(self, make_context) -> None:
        config = SimulationConfig(traffic=TrafficShape(elephant_proportion=0))
        context = make_context(config)
        generator = TrafficGenerator(config)

        flow = context.flows.create(size=16, turn=0)

        assert generator.batch_size(context, flow, is_new=True) == 4
        assert generator.batch_size(context, flow, is_new=False) == 4

    def test_new_elephant_starts_with_threshold_batch(self, make_context) -> None:
        config = SimulationConfig(offload_threshold=8)
        context = make_context(config)
        generator = TrafficGenerator(config)

        flow = context.flows.create(size=128, turn=0)

        assert generator.batch_size(context, flow, is_new=True) == 8
        assert generator.batch_size(context, flow, is_new=False) == 64

    def test_new_elephant_start_batch_without_threshold(self, make_context) -> None:
        for config in (
            SimulationConfig(offload_threshold=OFFLOAD_DISABLED),
            SimulationConfig(traffic=TrafficShape(threshold_first_batch=False)),
        ):
            context = make_context(config)
            flow = context.flows.create(size=128, turn=0)

            assert TrafficGenerator(config).batch_size(context, flow, is_new=True) == 16

    def test_batch_never_exceeds_remaining(self, make_context) -> None:
        config = SimulationConfig()
        context = make_context(config)
        generator = TrafficGenerator(config)

        flow = context.flows.create(size=40, turn=0)
        flow.take(30)

        assert generator.emit(context, flow, is_new=False) == 10
        assert flow.remaining_packets == 0
        assert context.queue[-1].size == 10
        assert context.current.generated == 10


class TestGenerate:
    def test_new_flows_then_oldest_first(self, make_context, uniform_rats) -> None:
        config = SimulationConfig(traffic=uniform_rats(16))
        context = make_context(config)
        generator = TrafficGenerator(config)

        generator.generate(context, new_flows=2)
        assert [(b.flow_id, b.size) for b in context.queue] == [(1, 4), (2, 4)]
        assert context.current.new_flows == 2

        context.turn = 1
        context.begin_turn()
        generator.generate(context, new_flows=2)

        assert [b.flow_id for b in context.queue] == [3, 4, 1, 2]
        assert all(flow.start_turn == 1 for flow in list(context.flows)[2:])

    def test_top_up_stops_at_packet_budget(self, make_context, uniform_rats) -> None:
        config = SimulationConfig(packets_per_turn=12, traffic=uniform_rats(16))
        context = make_context(config)
        generator = TrafficGenerator(config)

        generator.generate(context, new_flows=2)
        context.turn = 1
        context.begin_turn()
        generator.generate(context, new_flows=2)

        assert [b.flow_id for b in context.queue] == [3, 4, 1]
        assert context.current.generated == 12

    def test_new_flows_ignore_budget(self, make_context, uniform_rats) -> None:
        config = SimulationConfig(packets_per_turn=4, traffic=uniform_rats(8))
        context = make_context(config)

        TrafficGenerator(config).generate(context, new_flows=3)

        assert len(context.queue) == 3
        assert context.current.generated == 12

    def test_generate_uses_admission_target(self, make_context) -> None:
        config = SimulationConfig(
            new_flows_per_turn=10,
            traffic=TrafficShape(slow_start_turns=2),
        )
        context = make_context(config)

        TrafficGenerator(config).generate(context)

        assert len(context.flows) == 5

    def test_randomized_sizes_follow_seed(self, make_context) -> None:
        config = SimulationConfig(traffic=TrafficShape(randomize_sizes=True), seed=3)

        sizes = []
        for _ in range(2):
            context = make_context(config)
            TrafficGenerator(config).generate(context, new_flows=50)
            sizes.append([flow.size for flow in context.flows])

        assert sizes[0] == sizes[1]
        assert set(sizes[0]) <= set(REFERENCE_MASS)
