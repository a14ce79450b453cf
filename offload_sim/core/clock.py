"""Turn-based simulation driver."""

from __future__ import annotations

import logging
from random import Random
from typing import TYPE_CHECKING

from offload_sim.core.context import SimulationContext, TurnCounters

if TYPE_CHECKING:
    from offload_sim.config import SimulationConfig
    from offload_sim.controllers.base import OffloadController
    from offload_sim.core.dispatcher import DualPathDispatcher
    from offload_sim.core.generator import TrafficGenerator
    from offload_sim.metrics.collector import MetricsCollector
    from offload_sim.metrics.results import SimulationResults

logger = logging.getLogger(__name__)


class SimulationClock:
    """Single-threaded, deterministic turn loop for one configuration.

    Each turn runs generation, dispatch and the controller update to
    completion before the next turn starts. All randomness comes from the
    context's seeded RNG.
    """

    def __init__(
        self,
        context: SimulationContext,
        generator: TrafficGenerator,
        dispatcher: DualPathDispatcher,
        metrics: MetricsCollector,
    ) -> None:
        self._context = context
        self._generator = generator
        self._dispatcher = dispatcher
        self._metrics = metrics

    @property
    def context(self) -> SimulationContext:
        return self._context

    @property
    def config(self) -> SimulationConfig:
        return self._context.config

    @property
    def controller(self) -> OffloadController:
        return self._context.controller

    @property
    def generator(self) -> TrafficGenerator:
        return self._generator

    @property
    def dispatcher(self) -> DualPathDispatcher:
        return self._dispatcher

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def current_turn(self) -> int:
        return self._context.turn

    def step(self) -> TurnCounters:
        """Run one turn and return its counters."""
        context = self._context
        context.begin_turn()

        self._generator.generate(context)
        self._dispatcher.dispatch(context)
        context.controller.on_turn_end(context)

        context.end_turn()
        self._metrics.record_turn(context)

        counters = context.current
        logger.debug(
            "turn %-4d generated=%-8d slow=%-8d dropped=%-6d fast=%-8d "
            "offloaded=%-6d rejected=%-6d",
            context.turn,
            counters.generated,
            counters.slow_path,
            counters.dropped,
            counters.fast_path,
            counters.offloads_installed,
            counters.offloads_rejected,
        )

        context.turn += 1
        return counters

    def run(self, turns: int | None = None) -> None:
        if turns is None:
            turns = self.config.turns - self._context.turn
        for _ in range(turns):
            self.step()

    def finalize_metrics(self) -> SimulationResults:
        return self._metrics.finalize(self._context)

    @classmethod
    def build(cls, config: SimulationConfig | None = None) -> SimulationClock:
        """Build a clock with a fresh context.

        Raises:
            ConfigurationError: If the configuration is invalid. Nothing has
                run at that point.
        """
        from offload_sim.config import SimulationConfig
        from offload_sim.controllers import build_controller
        from offload_sim.core.dispatcher import DualPathDispatcher
        from offload_sim.core.generator import TrafficGenerator
        from offload_sim.metrics.collector import MetricsCollector

        if config is None:
            config = SimulationConfig()
        config.validate()

        context = SimulationContext(
            config=config,
            controller=build_controller(config),
            rng=Random(config.seed),
        )
        logger.info(
            "built %s run: threshold=%s turns=%d seed=%d",
            config.controller.name,
            context.controller.threshold,
            config.turns,
            config.seed,
        )
        return cls(
            context=context,
            generator=TrafficGenerator(config),
            dispatcher=DualPathDispatcher(config),
            metrics=MetricsCollector(config=config),
        )


def run_simulation(config: SimulationConfig) -> SimulationResults:
    clock = SimulationClock.build(config)
    clock.run()
    results = clock.finalize_metrics()
    logger.info(
        "finished %s run: drop_rate=%.3f%% latency=%.2fus completion=%.1f%%",
        config.controller.name,
        results.drop_rate,
        results.mean_latency_us,
        results.completion_rate,
    )
    return results
