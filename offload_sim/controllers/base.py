"""Offload controller base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from offload_sim.config import THRESHOLD_FLOOR

if TYPE_CHECKING:
    from offload_sim.config import SimulationConfig
    from offload_sim.core.context import SimulationContext
    from offload_sim.core.flow import Flow


class OffloadController(ABC):
    """Decides which flows move to the fast path.

    The dispatcher asks ``offload_due`` after every slow-path batch and calls
    ``request_offload`` when it returns True. Installing offload rules is
    rate limited per turn; refused requests are counted and the flow simply
    asks again on its next batch.
    """

    def __init__(self, config: SimulationConfig) -> None:
        self._config = config
        self._threshold: float | None = float(config.offload_threshold)

        traffic = config.traffic
        largest = max(
            (size for size, _ in traffic.rat_sizes + traffic.elephant_sizes),
            default=THRESHOLD_FLOOR,
        )
        self._ceiling = float(max(largest, THRESHOLD_FLOOR))

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def threshold(self) -> float | None:
        """Slow-path packet count that triggers an offload request, or None if disabled."""
        return self._threshold

    @property
    def ceiling(self) -> float:
        """Largest threshold an adaptive controller moves to: the largest flow size."""
        return self._ceiling

    def bounded(self, threshold: float) -> float:
        return min(max(threshold, THRESHOLD_FLOOR), self._ceiling)

    def offload_due(self, flow: Flow) -> bool:
        if self._threshold is None or flow.is_offloaded:
            return False
        return flow.slow_path_count >= self._threshold

    def request_offload(self, context: SimulationContext, flow: Flow) -> bool:
        counters = context.current
        if counters.offloads_installed >= self._config.offload_rule_capacity:
            counters.offloads_rejected += 1
            return False

        counters.offloads_installed += 1
        flow.is_offloaded = True
        return True

    def observe(self, flow: Flow, packets: int) -> None:  # noqa: B027
        """Called for every processed batch (either path)."""

    @abstractmethod
    def on_turn_end(self, context: SimulationContext) -> None:
        """Adjust internal state after the turn's batches are dispatched."""
        ...
