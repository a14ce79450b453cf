"""Reactive threshold controller: doubles on rejections, halves when idle."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from offload_sim.controllers.base import OffloadController

if TYPE_CHECKING:
    from offload_sim.core.context import SimulationContext

logger = logging.getLogger(__name__)


class ReactiveController(OffloadController):
    def on_turn_end(self, context: SimulationContext) -> None:
        assert self._threshold is not None
        counters = context.current
        previous = self._threshold

        if counters.offloads_rejected > 0:
            self._threshold = self.bounded(previous * 2)
        elif counters.offloads_installed == 0:
            self._threshold = self.bounded(previous / 2)

        if self._threshold != previous:
            logger.debug(
                "turn %d: threshold %g -> %g (installed=%d rejected=%d)",
                context.turn,
                previous,
                self._threshold,
                counters.offloads_installed,
                counters.offloads_rejected,
            )
