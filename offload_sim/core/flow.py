"""Flow entities and the per-run flow table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from offload_sim.core.types import UNFINISHED, FlowId

if TYPE_CHECKING:
    from collections.abc import Iterator


class InvariantViolation(RuntimeError):
    """Internal accounting broke. Never expected in a correct run."""


@dataclass
class Flow:
    """One simulated connection.

    ``remaining_packets`` counts packets not yet placed into a turn's queue.
    Dropped packets may be handed back (see ``give_back``), so it can grow
    again until the flow finishes.
    """

    id: FlowId
    size: int  # initial packet count
    start_turn: int
    remaining_packets: int
    is_offloaded: bool = False
    fast_path_count: int = 0
    slow_path_count: int = 0
    finish_turn: int = UNFINISHED

    @property
    def is_finished(self) -> bool:
        return self.finish_turn != UNFINISHED

    def take(self, count: int) -> int:
        """Remove up to ``count`` packets for dispatch and return how many were taken."""
        taken = min(count, self.remaining_packets)
        if taken < 0:
            raise InvariantViolation(f"flow {self.id}: cannot take {count} packets")
        self.remaining_packets -= taken
        return taken

    def give_back(self, count: int) -> None:
        if count < 0:
            raise InvariantViolation(f"flow {self.id}: cannot give back {count} packets")
        self.remaining_packets += count

    def mark_finished(self, turn: int) -> bool:
        """Record ``turn`` as the finish turn if the flow just drained."""
        if self.remaining_packets < 0:
            raise InvariantViolation(
                f"flow {self.id}: remaining_packets={self.remaining_packets}"
            )
        if self.remaining_packets == 0 and self.finish_turn == UNFINISHED:
            self.finish_turn = turn
            return True
        return False


class FlowTable:
    """Append-only store of every flow created in a run, indexed by id."""

    def __init__(self) -> None:
        self._flows: list[Flow] = []
        self._oldest_pending = 0  # list index below which every flow is drained

    def __len__(self) -> int:
        return len(self._flows)

    def __iter__(self) -> Iterator[Flow]:
        return iter(self._flows)

    @property
    def next_id(self) -> FlowId:
        return FlowId(len(self._flows) + 1)

    def create(self, size: int, turn: int) -> Flow:
        if size < 0:
            raise InvariantViolation(f"flow size {size} < 0")
        flow = Flow(id=self.next_id, size=size, start_turn=turn, remaining_packets=size)
        self._flows.append(flow)
        return flow

    def get(self, flow_id: FlowId) -> Flow:
        if flow_id <= 0 or flow_id > len(self._flows):
            raise InvariantViolation(f"unknown flow id {flow_id}")
        return self._flows[flow_id - 1]

    def pending(self, before: FlowId) -> Iterator[Flow]:
        """Yield flows with packets left, oldest first, with ids below ``before``.

        Finished flows at the head of the table are skipped permanently.
        """
        while self._oldest_pending < len(self._flows):
            head = self._flows[self._oldest_pending]
            if head.remaining_packets or not head.is_finished:
                break
            self._oldest_pending += 1

        for index in range(self._oldest_pending, min(before - 1, len(self._flows))):
            flow = self._flows[index]
            if flow.remaining_packets > 0:
                yield flow
