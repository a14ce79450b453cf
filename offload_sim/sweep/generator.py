from __future__ import annotations

import itertools
from dataclasses import asdict
from enum import Enum
from typing import TYPE_CHECKING, Any

import coolname.impl

if TYPE_CHECKING:
    from random import Random

    from offload_sim.config import SimulationConfig
    from offload_sim.sweep.config import Grid


def generate_run_id(rng: Random) -> str:
    coolname.impl.replace_random(rng)
    words = coolname.impl.generate(3)
    return "-".join(words)


def expand_grid(grid: Grid) -> list[dict[str, Any]]:
    """Cartesian product of ``grid`` as one overrides dict per point, in key order."""
    if not grid:
        return [{}]

    keys = list(grid)
    return [
        dict(zip(keys, values, strict=True))
        for values in itertools.product(*(grid[k] for k in keys))
    ]


def describe_overrides(overrides: dict[str, Any]) -> str:
    """Label for a grid point that never became a configuration."""
    return " ".join(f"{key}={value}" for key, value in overrides.items()) or "base"


def plain(value: object) -> object:
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, dict):
        return {k: plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain(v) for v in value]
    return value


def config_to_dict(config: SimulationConfig) -> dict[str, object]:
    result = plain(asdict(config))
    assert isinstance(result, dict)
    return result


def describe(config: SimulationConfig) -> str:
    """Short label naming the policy and its main tunables."""
    from offload_sim.config import ControllerKind

    match config.controller:
        case ControllerKind.SKETCH:
            sketch = config.sketch
            return (
                f"SKETCH k={sketch.top_k} h={sketch.hash_count} "
                f"s={sketch.slot_count} w={sketch.sub_windows}"
            )
        case ControllerKind.PROPORTIONAL:
            return (
                f"PROPORTIONAL threshold={config.offload_threshold} "
                f"alpha={config.alpha} omega={config.omega}"
            )
        case _:
            return f"{config.controller.name} threshold={config.offload_threshold}"
