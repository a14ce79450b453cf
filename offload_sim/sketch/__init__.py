"""Bounded-memory heavy-hitter estimation."""

from .heavy_hitter import HASH_PRIME, HashParams, HeavyHitterSketch, generate_hash_params
from .topk import SketchEntry, TopKHeap

__all__ = [
    "HASH_PRIME",
    "HashParams",
    "HeavyHitterSketch",
    "SketchEntry",
    "TopKHeap",
    "generate_hash_params",
]
