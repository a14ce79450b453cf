"""Closed-loop proportional feedback threshold controller."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from offload_sim.config import RejectionWindow
from offload_sim.controllers.base import OffloadController

if TYPE_CHECKING:
    from offload_sim.core.context import SimulationContext

logger = logging.getLogger(__name__)

# Largest per-turn scaling step, as a power of two
MAX_EXPONENT = 64.0


class ProportionalFeedbackController(OffloadController):
    """Scales the threshold by ``2 ** exponent`` at every turn end.

    exponent = alpha * (installed * (cap + rejected) / cap**2 - omega)
               - dropped / slow_cap

    Spare rule capacity and a quiet slow path pull the threshold down; a
    saturated rule installer pushes it up. The step is clamped to
    ``MAX_EXPONENT`` either way and the result stays between the floor and
    the largest flow size.
    """

    def exponent(self, context: SimulationContext) -> float:
        config = self._config
        counters = context.current
        cap = config.offload_rule_capacity
        if config.rejection_window is RejectionWindow.PREVIOUS:
            rejected = context.previous.offloads_rejected
        else:
            rejected = counters.offloads_rejected

        utilization = counters.offloads_installed * (cap + rejected) / cap**2
        overload = counters.dropped / config.slow_path_capacity
        return config.alpha * (utilization - config.omega) - overload

    def on_turn_end(self, context: SimulationContext) -> None:
        assert self._threshold is not None
        exponent = self.exponent(context)
        step = min(max(exponent, -MAX_EXPONENT), MAX_EXPONENT)
        previous = self._threshold
        self._threshold = self.bounded(previous * 2.0**step)
        logger.debug(
            "turn %d: exponent=%.4f threshold %.3f -> %.3f",
            context.turn,
            exponent,
            previous,
            self._threshold,
        )
