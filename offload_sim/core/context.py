"""Per-run simulation state."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from random import Random
from typing import TYPE_CHECKING

from offload_sim.core.flow import FlowTable

if TYPE_CHECKING:
    from offload_sim.config import SimulationConfig
    from offload_sim.controllers.base import OffloadController
    from offload_sim.core.types import FlowId


@dataclass(frozen=True)
class PacketBatch:
    """Packets of one flow generated together in one turn."""

    flow_id: FlowId
    size: int


@dataclass
class TurnCounters:
    """Packet and offload-rule accounting for one turn (or a whole run)."""

    generated: int = 0
    dropped: int = 0
    fast_path: int = 0
    slow_path: int = 0
    offloads_installed: int = 0
    offloads_rejected: int = 0
    new_flows: int = 0
    finished_flows: int = 0

    def add(self, other: TurnCounters) -> None:
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))


@dataclass
class SimulationContext:
    """Everything one configuration's run owns.

    Nothing here is shared between runs, so contexts can be driven from
    separate processes without coordination.
    """

    config: SimulationConfig
    controller: OffloadController
    rng: Random
    flows: FlowTable = field(default_factory=FlowTable)
    turn: int = 0
    queue: list[PacketBatch] = field(default_factory=list)
    current: TurnCounters = field(default_factory=TurnCounters)
    previous: TurnCounters = field(default_factory=TurnCounters)
    totals: TurnCounters = field(default_factory=TurnCounters)

    def begin_turn(self) -> None:
        self.queue.clear()
        self.previous = self.current
        self.current = TurnCounters()

    def end_turn(self) -> None:
        self.totals.add(self.current)

    def enqueue(self, flow_id: FlowId, size: int) -> PacketBatch:
        batch = PacketBatch(flow_id=flow_id, size=size)
        self.queue.append(batch)
        self.current.generated += size
        return batch
