"""Heavy-hitter driven offload controller."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from offload_sim.controllers.base import OffloadController
from offload_sim.sketch.heavy_hitter import HeavyHitterSketch

if TYPE_CHECKING:
    from offload_sim.config import SimulationConfig
    from offload_sim.core.context import SimulationContext
    from offload_sim.core.flow import Flow
    from offload_sim.core.types import FlowId

logger = logging.getLogger(__name__)


class SketchBasedController(OffloadController):
    """Offloads exactly the sketch's current top-K flows.

    Every processed packet feeds the sketch. Every ``replacement_interval``
    turns the offload set is replaced wholesale by the top-K membership and
    the sketch's window slides by one sub-window. Per-flow thresholds and
    rule-rate rejections do not apply.
    """

    def __init__(
        self, config: SimulationConfig, sketch: HeavyHitterSketch | None = None
    ) -> None:
        super().__init__(config)
        self._threshold = None
        self._sketch = sketch if sketch is not None else HeavyHitterSketch.from_config(config.sketch)
        self._offloaded: set[FlowId] = set()

    @property
    def sketch(self) -> HeavyHitterSketch:
        return self._sketch

    @property
    def offloaded(self) -> frozenset[FlowId]:
        return frozenset(self._offloaded)

    def offload_due(self, flow: Flow) -> bool:
        return False

    def observe(self, flow: Flow, packets: int) -> None:
        if packets > 0:
            self._sketch.update(flow.id, packets)

    def is_replacement_turn(self, turn: int) -> bool:
        return (turn + 1) % self._config.sketch.replacement_interval == 0

    def on_turn_end(self, context: SimulationContext) -> None:
        if not self.is_replacement_turn(context.turn):
            return

        self.replace_offload_set(context)
        expired = self._sketch.advance_window()
        if expired:
            logger.debug("turn %d: %d flows left the top-K", context.turn, len(expired))

    def replace_offload_set(self, context: SimulationContext) -> None:
        for flow_id in self._offloaded:
            context.flows.get(flow_id).is_offloaded = False

        members = set(self._sketch.heavy_hitters())
        installed = len(members - self._offloaded)
        for flow_id in members:
            context.flows.get(flow_id).is_offloaded = True

        context.current.offloads_installed += installed
        self._offloaded = members
        logger.debug(
            "turn %d: offload set rebuilt, %d flows (%d new)",
            context.turn,
            len(members),
            installed,
        )
