"""Shared pytest fixtures for offload simulator tests."""

from collections.abc import Callable
from random import Random

import pytest

from offload_sim.config import SimulationConfig, SketchConfig, TrafficShape
from offload_sim.controllers import build_controller
from offload_sim.core.context import SimulationContext

type ContextFactory = Callable[[SimulationConfig], SimulationContext]


@pytest.fixture
def make_context() -> ContextFactory:
    """Build a fresh context (with its controller) for a configuration."""

    def factory(config: SimulationConfig) -> SimulationContext:
        config.validate()
        return SimulationContext(
            config=config,
            controller=build_controller(config),
            rng=Random(config.seed),
        )

    return factory


@pytest.fixture
def uniform_rats() -> Callable[[int], TrafficShape]:
    """Traffic where every flow is a rat of the given size, admitted at full rate."""

    def factory(size: int) -> TrafficShape:
        return TrafficShape(elephant_proportion=0, rat_sizes=((size, 1.0),), slow_start_turns=0)

    return factory


@pytest.fixture
def small_config() -> SimulationConfig:
    """A configuration small enough to run many turns quickly."""
    return SimulationConfig(
        turns=15,
        new_flows_per_turn=100,
        packets_per_turn=3_000,
        slow_path_capacity=1_000,
        offload_rule_capacity=20,
        sketch=SketchConfig(top_k=16, slot_count=256),
        seed=7,
    )
