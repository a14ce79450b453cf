"""Bounded min-heap of the K largest flow estimates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from offload_sim.core.types import FlowId


@dataclass
class SketchEntry:
    flow_id: FlowId
    estimated_size: int


class TopKHeap:
    """Min-heap of at most ``capacity`` entries with an id -> heap index map.

    The map is kept consistent on every swap, so an existing entry can be
    re-prioritized in place without a remove and reinsert.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._entries: list[SketchEntry] = []
        self._index: dict[FlowId, int] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, flow_id: object) -> bool:
        return flow_id in self._index

    def __iter__(self) -> Iterator[SketchEntry]:
        return iter(self._entries)

    def is_full(self) -> bool:
        return len(self._entries) >= self._capacity

    def min(self) -> SketchEntry | None:
        return self._entries[0] if self._entries else None

    def get(self, flow_id: FlowId) -> SketchEntry | None:
        index = self._index.get(flow_id)
        return None if index is None else self._entries[index]

    def members(self) -> list[FlowId]:
        """Tracked flow ids, largest estimate first."""
        ranked = sorted(self._entries, key=lambda e: (-e.estimated_size, e.flow_id))
        return [entry.flow_id for entry in ranked]

    def offer(self, flow_id: FlowId, estimate: int) -> FlowId | None:
        """Insert or update ``flow_id``. Returns the evicted flow id, if any."""
        index = self._index.get(flow_id)
        if index is not None:
            self._entries[index].estimated_size = estimate
            self._restore(index)
            return None

        if not self.is_full():
            self._entries.append(SketchEntry(flow_id, estimate))
            self._index[flow_id] = len(self._entries) - 1
            self._sift_up(len(self._entries) - 1)
            return None

        smallest = self._entries[0]
        if estimate <= smallest.estimated_size:
            return None

        evicted = smallest.flow_id
        del self._index[evicted]
        self._entries[0] = SketchEntry(flow_id, estimate)
        self._index[flow_id] = 0
        self._sift_down(0)
        return evicted

    def reprioritize(self, estimate: Callable[[FlowId], int], floor: int = 1) -> list[FlowId]:
        """Re-estimate every entry; drop those below ``floor``. Returns dropped ids."""
        dropped: list[FlowId] = []
        kept: list[SketchEntry] = []
        for entry in self._entries:
            entry.estimated_size = estimate(entry.flow_id)
            if entry.estimated_size < floor:
                dropped.append(entry.flow_id)
            else:
                kept.append(entry)

        self._entries = kept
        self._index = {entry.flow_id: i for i, entry in enumerate(kept)}
        for i in reversed(range(len(kept) // 2)):
            self._sift_down(i)
        return dropped

    def _swap(self, i: int, j: int) -> None:
        entries = self._entries
        entries[i], entries[j] = entries[j], entries[i]
        self._index[entries[i].flow_id] = i
        self._index[entries[j].flow_id] = j

    def _restore(self, index: int) -> None:
        if index > 0 and self._less(index, (index - 1) // 2):
            self._sift_up(index)
        else:
            self._sift_down(index)

    def _less(self, i: int, j: int) -> bool:
        return self._entries[i].estimated_size < self._entries[j].estimated_size

    def _sift_up(self, index: int) -> None:
        while index > 0:
            parent = (index - 1) // 2
            if not self._less(index, parent):
                break
            self._swap(index, parent)
            index = parent

    def _sift_down(self, index: int) -> None:
        size = len(self._entries)
        while True:
            smallest = index
            for child in (2 * index + 1, 2 * index + 2):
                if child < size and self._less(child, smallest):
                    smallest = child
            if smallest == index:
                return
            self._swap(index, smallest)
            index = smallest
