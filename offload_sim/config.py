"""Simulation configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

type SizeWeights = tuple[tuple[int, float], ...]

OFFLOAD_DISABLED = -1  # Static threshold sentinel: never offload
THRESHOLD_FLOOR = 2


class ConfigurationError(ValueError):
    """Configuration rejected before any turn runs."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("Invalid configuration: " + "; ".join(errors))

    def __reduce__(self) -> tuple[type[ConfigurationError], tuple[list[str]]]:
        return (self.__class__, (self.errors,))


class ControllerKind(Enum):
    STATIC = auto()
    REACTIVE = auto()
    PROPORTIONAL = auto()
    SKETCH = auto()

    @classmethod
    def parse(cls, name: str) -> ControllerKind:
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ConfigurationError([f"unknown controller variant {name!r}"]) from None


class RejectionWindow(Enum):
    CURRENT = auto()  # Rejections counted in the turn being closed
    PREVIOUS = auto()  # Rejections counted in the turn before it


@dataclass(frozen=True)
class TrafficShape:
    """Synthetic traffic parameters.

    Size weights are relative within their group; the group shares are set
    by ``elephant_proportion`` (percent of flows that are elephants).
    """

    elephant_proportion: int = 20
    rat_sizes: SizeWeights = ((2, 0.4), (4, 0.3), (8, 0.2), (16, 0.1))
    elephant_sizes: SizeWeights = (
        (32, 0.3),
        (64, 0.25),
        (128, 0.2),
        (256, 0.15),
        (512, 0.1),
    )
    elephant_cutoff: int = 32

    # Packets per batch
    rat_batch_size: int = 4
    elephant_start_batch_size: int = 16
    elephant_batch_size: int = 64
    threshold_first_batch: bool = True  # New elephants start with a threshold-sized batch

    # Admission ramp
    stage_multipliers: tuple[float, ...] = (1.0,)
    slow_start_turns: int = 5

    randomize_sizes: bool = False  # Draw size percentiles from the RNG instead of cycling


@dataclass(frozen=True)
class SketchConfig:
    """Heavy-hitter sketch parameters (sketch-based controller only)."""

    top_k: int = 128
    hash_count: int = 4  # H
    slot_count: int = 4096  # S
    sub_windows: int = 4  # W, identification window = W replacement windows
    replacement_interval: int = 1  # R, turns between offload set rebuilds
    heavy_hitter_floor: int = 32  # Minimum estimate to enter the top-K
    hash_seed: int = 0x5EED


@dataclass(frozen=True)
class SimulationConfig:
    """Configuration for one offload simulation run."""

    # Offload policy
    controller: ControllerKind = ControllerKind.STATIC
    offload_threshold: int = 16
    alpha: float = 1.0
    omega: float = 0.5
    rejection_window: RejectionWindow = RejectionWindow.CURRENT

    # Run length (turns of one simulated second)
    turns: int = 50

    # Per-turn rate caps (reference rates scaled down by 1000)
    new_flows_per_turn: int = 750
    packets_per_turn: int = 25_000
    slow_path_capacity: int = 8_000
    offload_rule_capacity: int = 200

    drops_retry: bool = True  # Dropped packets return to the flow

    # Latency model (microseconds per packet)
    fast_path_latency_us: float = 10.0
    slow_path_latency_us: float = 80.0

    # Completion time credited to flows finishing in their creation turn (seconds)
    min_completion_time: float = 0.5

    traffic: TrafficShape = field(default_factory=TrafficShape)
    sketch: SketchConfig = field(default_factory=SketchConfig)

    seed: int = 42

    def validate(self) -> None:
        errors = validate_config(self)
        if errors:
            raise ConfigurationError(errors)


def _validate_weights(name: str, weights: SizeWeights) -> list[str]:
    errors: list[str] = []
    if not weights:
        return [f"{name} is empty"]
    if any(size <= 0 for size, _ in weights):
        errors.append(f"{name} contains a non-positive size")
    if any(weight < 0 for _, weight in weights):
        errors.append(f"{name} contains a negative weight")
    total = sum(weight for _, weight in weights)
    if abs(total - 1.0) > 1e-9:
        errors.append(f"{name} weights sum to {total}, expected 1.0")
    return errors


def validate_config(config: SimulationConfig) -> list[str]:
    errors: list[str] = []

    if not isinstance(config.controller, ControllerKind):
        errors.append(f"unknown controller variant {config.controller!r}")

    if config.turns <= 0:
        errors.append(f"turns ({config.turns}) must be positive")
    if config.new_flows_per_turn < 0:
        errors.append(f"new_flows_per_turn ({config.new_flows_per_turn}) < 0")
    if config.packets_per_turn <= 0:
        errors.append(f"packets_per_turn ({config.packets_per_turn}) must be positive")
    if config.slow_path_capacity <= 0:
        errors.append(f"slow_path_capacity ({config.slow_path_capacity}) must be positive")
    if config.offload_rule_capacity <= 0:
        errors.append(
            f"offload_rule_capacity ({config.offload_rule_capacity}) must be positive"
        )

    if config.controller is ControllerKind.STATIC:
        if config.offload_threshold != OFFLOAD_DISABLED and config.offload_threshold < 1:
            errors.append(
                f"offload_threshold ({config.offload_threshold}) must be >= 1 "
                f"or {OFFLOAD_DISABLED} to disable offloading"
            )
    elif config.controller in (ControllerKind.REACTIVE, ControllerKind.PROPORTIONAL):
        if config.offload_threshold < THRESHOLD_FLOOR:
            errors.append(
                f"offload_threshold ({config.offload_threshold}) < {THRESHOLD_FLOOR}"
            )

    if config.fast_path_latency_us < 0 or config.slow_path_latency_us < 0:
        errors.append("path latencies must be non-negative")
    if config.min_completion_time < 0:
        errors.append(f"min_completion_time ({config.min_completion_time}) < 0")

    traffic = config.traffic
    if not 0 <= traffic.elephant_proportion <= 100:
        errors.append(f"elephant_proportion ({traffic.elephant_proportion}) not in [0, 100]")
    errors.extend(_validate_weights("rat_sizes", traffic.rat_sizes))
    errors.extend(_validate_weights("elephant_sizes", traffic.elephant_sizes))
    for name in ("rat_batch_size", "elephant_start_batch_size", "elephant_batch_size"):
        if getattr(traffic, name) <= 0:
            errors.append(f"{name} ({getattr(traffic, name)}) must be positive")
    if not traffic.stage_multipliers:
        errors.append("stage_multipliers is empty")
    elif any(m < 0 for m in traffic.stage_multipliers):
        errors.append("stage_multipliers contains a negative multiplier")
    if traffic.slow_start_turns < 0:
        errors.append(f"slow_start_turns ({traffic.slow_start_turns}) < 0")

    if config.controller is ControllerKind.SKETCH:
        sketch = config.sketch
        for name in ("top_k", "hash_count", "slot_count", "sub_windows", "replacement_interval"):
            if getattr(sketch, name) <= 0:
                errors.append(f"sketch.{name} ({getattr(sketch, name)}) must be positive")
        if sketch.heavy_hitter_floor < 1:
            errors.append(f"sketch.heavy_hitter_floor ({sketch.heavy_hitter_floor}) < 1")
        if sketch.top_k > config.offload_rule_capacity:
            errors.append(
                f"sketch.top_k ({sketch.top_k}) > "
                f"offload_rule_capacity ({config.offload_rule_capacity})"
            )

    return errors
