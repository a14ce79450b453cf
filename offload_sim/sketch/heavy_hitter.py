"""Windowed count-min sketch feeding a bounded top-K of heavy hitters."""

from __future__ import annotations

from dataclasses import dataclass
from random import Random
from typing import TYPE_CHECKING

from offload_sim.sketch.topk import TopKHeap

if TYPE_CHECKING:
    from collections.abc import Sequence

    from offload_sim.config import SketchConfig
    from offload_sim.core.types import FlowId

# Mersenne prime 2^61 - 1, field for the universal hash family
HASH_PRIME = (1 << 61) - 1


@dataclass(frozen=True)
class HashParams:
    """Universal hash ``((a * x + b) mod P) mod width``."""

    a: int
    b: int

    def slot(self, key: int, width: int) -> int:
        return ((self.a * key + self.b) % HASH_PRIME) % width


def generate_hash_params(count: int, seed: int) -> tuple[HashParams, ...]:
    rng = Random(seed)
    return tuple(
        HashParams(a=rng.randint(1, HASH_PRIME - 1), b=rng.randint(0, HASH_PRIME - 1))
        for _ in range(count)
    )


class HeavyHitterSketch:
    """Estimates recent per-flow packet volume in bounded memory.

    Each of the H rows maps a flow to one of S slots; each slot keeps W
    sub-counters, one per replacement window. A flow's estimate is the
    minimum over rows of the slot's sum across all W sub-counters, so hash
    collisions can only inflate it.
    """

    def __init__(
        self,
        top_k: int,
        slot_count: int,
        sub_windows: int,
        hash_params: Sequence[HashParams],
        heavy_hitter_floor: int = 1,
    ) -> None:
        if not hash_params:
            raise ValueError("at least one hash row is required")
        if slot_count <= 0 or sub_windows <= 0:
            raise ValueError("slot_count and sub_windows must be positive")

        self._slot_count = slot_count
        self._sub_windows = sub_windows
        self._hashes = tuple(hash_params)
        self._floor = heavy_hitter_floor
        self._window = 0
        # rows x slots x sub-windows
        self._counters = [
            [[0] * sub_windows for _ in range(slot_count)] for _ in self._hashes
        ]
        self._heap = TopKHeap(top_k)

    @classmethod
    def from_config(cls, config: SketchConfig) -> HeavyHitterSketch:
        return cls(
            top_k=config.top_k,
            slot_count=config.slot_count,
            sub_windows=config.sub_windows,
            hash_params=generate_hash_params(config.hash_count, config.hash_seed),
            heavy_hitter_floor=config.heavy_hitter_floor,
        )

    @property
    def heap(self) -> TopKHeap:
        return self._heap

    @property
    def window(self) -> int:
        return self._window

    def _slots(self, flow_id: FlowId) -> list[list[int]]:
        return [
            row[params.slot(flow_id, self._slot_count)]
            for params, row in zip(self._hashes, self._counters, strict=True)
        ]

    def estimate(self, flow_id: FlowId) -> int:
        return min(sum(slot) for slot in self._slots(flow_id))

    def update(self, flow_id: FlowId, count: int = 1) -> int:
        """Add ``count`` packets for ``flow_id`` and return its new estimate."""
        estimate = None
        for slot in self._slots(flow_id):
            slot[self._window] += count
            total = sum(slot)
            if estimate is None or total < estimate:
                estimate = total
        assert estimate is not None

        if estimate >= self._floor:
            self._heap.offer(flow_id, estimate)
        return estimate

    def heavy_hitters(self) -> list[FlowId]:
        return self._heap.members()

    def advance_window(self) -> list[FlowId]:
        """Expire the oldest sub-window and refresh tracked estimates.

        Returns flows that fell out of the top-K.
        """
        self._window = (self._window + 1) % self._sub_windows
        for row in self._counters:
            for slot in row:
                slot[self._window] = 0
        return self._heap.reprioritize(self.estimate, self._floor)
