"""Fixed-threshold offload controller."""

from __future__ import annotations

from typing import TYPE_CHECKING

from offload_sim.config import OFFLOAD_DISABLED
from offload_sim.controllers.base import OffloadController

if TYPE_CHECKING:
    from offload_sim.config import SimulationConfig
    from offload_sim.core.context import SimulationContext


class StaticController(OffloadController):
    def __init__(self, config: SimulationConfig) -> None:
        super().__init__(config)
        if config.offload_threshold == OFFLOAD_DISABLED:
            self._threshold = None

    def on_turn_end(self, context: SimulationContext) -> None:
        pass
