from __future__ import annotations

import json
import logging
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import asdict
from datetime import UTC, datetime
from random import Random
from typing import TYPE_CHECKING, Any, NamedTuple

from offload_sim.config import ConfigurationError
from offload_sim.sweep.config import apply_overrides
from offload_sim.sweep.executor import (
    Anomaly,
    detect_anomalies,
    determine_status,
    execute_run,
)
from offload_sim.sweep.generator import (
    config_to_dict,
    describe,
    describe_overrides,
    expand_grid,
    generate_run_id,
    plain,
)

if TYPE_CHECKING:
    from pathlib import Path

    from offload_sim.config import SimulationConfig
    from offload_sim.metrics.results import SimulationResults
    from offload_sim.sweep.config import SweepConfig

logger = logging.getLogger(__name__)


class RunOutcome(NamedTuple):
    results: SimulationResults | None
    error: ConfigurationError | None
    wall_clock: float
    start_time: datetime
    end_time: datetime


def timed_run(config: SimulationConfig) -> RunOutcome:
    start_time = datetime.now(UTC)
    wall_start = time.monotonic()
    results, error = execute_run(config)
    wall_clock = time.monotonic() - wall_start
    return RunOutcome(results, error, wall_clock, start_time, datetime.now(UTC))


def append_summary(path: Path, summary: dict[str, object]) -> None:
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(summary) + "\n")


def write_trace(
    output_dir: Path,
    run_id: str,
    config: dict[str, object],
    results: SimulationResults,
) -> None:
    trace_dir = output_dir / run_id
    trace_dir.mkdir(parents=True, exist_ok=True)

    (trace_dir / "config.json").write_text(json.dumps(config, indent=2), encoding="utf-8")
    (trace_dir / "metrics.json").write_text(
        json.dumps(results.to_dict(), indent=2), encoding="utf-8"
    )
    turns = [asdict(snapshot) for snapshot in results.turn_timeseries]
    (trace_dir / "turns.json").write_text(json.dumps(turns), encoding="utf-8")


def execute_all(configs: list[SimulationConfig], workers: int) -> list[RunOutcome]:
    """Run every configuration; returns once all have finished.

    With more than one worker each configuration runs in its own process.
    """
    if workers <= 1:
        return [timed_run(config) for config in configs]

    with ProcessPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(timed_run, config) for config in configs]
        return [future.result() for future in futures]


def resolve_point(
    base: SimulationConfig, overrides: dict[str, Any]
) -> SimulationConfig | ConfigurationError:
    """Apply one grid point to ``base``; a rejected point is returned as its error."""
    try:
        return apply_overrides(base, overrides)
    except ConfigurationError as error:
        logger.warning("grid point %s rejected: %s", overrides, error)
        return error


def rejected_summary(
    run_id: str,
    index: int,
    base: SimulationConfig,
    overrides: dict[str, Any],
    error: ConfigurationError,
) -> dict[str, object]:
    """Summary for a grid point that failed to resolve and never ran."""
    now = datetime.now(UTC).isoformat()
    controller = plain(overrides.get("controller", base.controller))
    return {
        "run_id": run_id,
        "index": index,
        "label": describe_overrides(overrides),
        "controller": str(controller).upper(),
        "seed": plain(overrides.get("seed", base.seed)),
        "status": determine_status([], error),
        "anomalies": [],
        "metrics": {},
        "config": config_to_dict(base),
        "overrides": plain(overrides),
        "wall_clock_seconds": 0.0,
        "simulated_turns": 0,
        "timestamp_start": now,
        "timestamp_end": now,
        "error": str(error),
    }


def run_sweep(config: SweepConfig, master_seed: int = 0) -> list[dict[str, object]]:
    points = expand_grid(config.grid)
    resolved = [resolve_point(config.base, overrides) for overrides in points]
    runnable = [c for c in resolved if not isinstance(c, ConfigurationError)]
    logger.info(
        "sweep: %d configurations (%d rejected), %d workers",
        len(points),
        len(points) - len(runnable),
        config.workers,
    )

    outcomes = iter(execute_all(runnable, config.workers))

    config.output_dir.mkdir(parents=True, exist_ok=True)
    ndjson_path = config.output_dir / config.overview_file

    summaries: list[dict[str, object]] = []
    for index, (overrides, sim_config) in enumerate(zip(points, resolved, strict=True)):
        run_id = generate_run_id(Random(master_seed + index))

        if isinstance(sim_config, ConfigurationError):
            summary = rejected_summary(run_id, index, config.base, overrides, sim_config)
            append_summary(ndjson_path, summary)
            summaries.append(summary)
            print(f"[{run_id}] {summary['label']} ... error (rejected)")
            continue

        outcome = next(outcomes)
        label = describe(sim_config)

        anomalies: list[Anomaly] = []
        metrics_dict: dict[str, object] = {}
        if outcome.results is not None:
            anomalies = detect_anomalies(outcome.results, config.anomaly_thresholds)
            metrics_dict = outcome.results.to_dict()

        status = determine_status(anomalies, outcome.error)

        summary = {
            "run_id": run_id,
            "index": index,
            "label": label,
            "controller": sim_config.controller.name,
            "seed": sim_config.seed,
            "status": status,
            "anomalies": [msg for _, msg in anomalies],
            "metrics": metrics_dict,
            "config": config_to_dict(sim_config),
            "wall_clock_seconds": round(outcome.wall_clock, 2),
            "simulated_turns": sim_config.turns,
            "timestamp_start": outcome.start_time.isoformat(),
            "timestamp_end": outcome.end_time.isoformat(),
        }

        if outcome.error is not None:
            summary["error"] = str(outcome.error)

        append_summary(ndjson_path, summary)
        summaries.append(summary)

        status_display = "OK" if status == "success" else status
        print(f"[{run_id}] {label} ... {status_display} ({outcome.wall_clock:.1f}s)")

        should_trace = not config.trace_on_anomaly_only or not status.startswith("success")
        if should_trace and outcome.results is not None:
            write_trace(config.output_dir, run_id, config_to_dict(sim_config), outcome.results)

    return summaries


def main() -> None:
    import argparse
    from pathlib import Path

    from offload_sim.config import ControllerKind
    from offload_sim.sweep.config import SweepConfig

    parser = argparse.ArgumentParser(description="Parameter sweep over offload policies")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to TOML sweep configuration",
    )
    parser.add_argument(
        "--controller",
        choices=[kind.name.lower() for kind in ControllerKind],
        help="Offload policy for every run (overrides the config file)",
    )
    parser.add_argument(
        "--thresholds",
        type=int,
        nargs="+",
        help="Offload thresholds to sweep (default: 2 4 8 16 32 64 without --config)",
    )
    parser.add_argument(
        "--turns",
        type=int,
        help="Turns per run",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Parallel worker processes (default: 1)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("sweep_output"),
        help="Output directory (default: sweep_output)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for run ids",
    )
    parser.add_argument(
        "--trace-all",
        action="store_true",
        help="Write traces for all runs, not just anomalies",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the results server after the sweep",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the results server (default: 8000)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )

    args = parser.parse_args()

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    if args.config is not None:
        sweep_config = SweepConfig.from_toml(args.config)
        sweep_config.output_dir = args.output_dir
    else:
        sweep_config = SweepConfig(
            output_dir=args.output_dir,
            grid={"offload_threshold": [2, 4, 8, 16, 32, 64]},
        )

    overrides: dict[str, object] = {}
    if args.controller is not None:
        overrides["controller"] = args.controller
    if args.turns is not None:
        overrides["turns"] = args.turns
    if overrides:
        sweep_config.base = apply_overrides(sweep_config.base, overrides)
    if args.thresholds is not None:
        sweep_config.grid["offload_threshold"] = list(args.thresholds)
    if args.workers is not None:
        sweep_config.workers = args.workers
    if args.trace_all:
        sweep_config.trace_on_anomaly_only = False

    run_sweep(sweep_config, master_seed=args.seed)

    if args.serve:
        from offload_sim.sweep.server import run_server

        run_server(sweep_config.output_dir, port=args.port)


if __name__ == "__main__":
    main()
