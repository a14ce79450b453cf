"""Baseline static-threshold scenario."""

from __future__ import annotations

from dataclasses import replace

from offload_sim.config import ControllerKind, SimulationConfig
from offload_sim.core.clock import SimulationClock

REFERENCE_THRESHOLDS = (2, 4, 8, 16, 32, 64)


def run_baseline_scenario(
    config: SimulationConfig | None = None,
    turns: int | None = None,
) -> SimulationClock:
    """Build and run one configuration; returns the finished clock."""
    if config is None:
        config = SimulationConfig()

    clock = SimulationClock.build(config)
    clock.run(turns)
    return clock


def main() -> None:
    """Sweep the reference static thresholds and print the summary per threshold."""
    import json
    import time

    base = SimulationConfig(controller=ControllerKind.STATIC)
    print(
        f"new_flows_per_turn: {base.new_flows_per_turn}, "
        f"packets_per_turn: {base.packets_per_turn}, turns: {base.turns}, "
        f"elephant_start_batch_size: {base.traffic.elephant_start_batch_size}, "
        f"elephant_batch_size: {base.traffic.elephant_batch_size}, "
        f"elephant_proportion: {base.traffic.elephant_proportion}, "
        f"offload_rule_capacity: {base.offload_rule_capacity}, "
        f"slow_path_capacity: {base.slow_path_capacity}"
    )

    for threshold in REFERENCE_THRESHOLDS:
        start = time.time()
        clock = run_baseline_scenario(replace(base, offload_threshold=threshold))
        results = clock.finalize_metrics()
        elapsed = time.time() - start
        print(
            f"threshold: {threshold}, drop rate: {results.drop_rate:.3f}%, "
            f"latency: {results.mean_latency_us:.2f}us, "
            f"completion: {results.completion_rate:.1f}% "
            f"({results.mean_completion_time:.2f}s) [{elapsed:.1f}s]"
        )

    print("\n=== Last run as JSON ===")
    print(json.dumps(results.to_dict(), indent=2))


if __name__ == "__main__":
    main()
