from __future__ import annotations

from typing import TYPE_CHECKING

from offload_sim.config import ConfigurationError
from offload_sim.core.clock import run_simulation

if TYPE_CHECKING:
    from offload_sim.config import SimulationConfig
    from offload_sim.metrics.results import SimulationResults
    from offload_sim.sweep.config import AnomalyThresholds


def execute_run(
    config: SimulationConfig,
) -> tuple[SimulationResults | None, ConfigurationError | None]:
    """Run one configuration.

    Only configuration errors are caught; invariant violations propagate
    and abort the sweep.
    """
    try:
        return (run_simulation(config), None)
    except ConfigurationError as e:
        return (None, e)


type Anomaly = tuple[str, str]  # (marker, message)


def detect_anomalies(
    metrics: SimulationResults,
    thresholds: AnomalyThresholds,
) -> list[Anomaly]:
    anomalies: list[Anomaly] = []

    if metrics.drop_rate > thresholds.max_drop_rate:
        anomalies.append((
            "high_drop_rate",
            f"drop_rate={metrics.drop_rate:.3f} > {thresholds.max_drop_rate}",
        ))

    if metrics.completion_rate < thresholds.min_completion_rate:
        anomalies.append((
            "low_completion",
            f"completion_rate={metrics.completion_rate:.3f} "
            f"< {thresholds.min_completion_rate}",
        ))

    if metrics.mean_latency_us > thresholds.max_mean_latency_us:
        anomalies.append((
            "high_latency",
            f"mean_latency_us={metrics.mean_latency_us:.3f} "
            f"> {thresholds.max_mean_latency_us}",
        ))

    return anomalies


def determine_status(anomalies: list[Anomaly], error: Exception | None) -> str:
    if error is not None:
        return "error"
    if anomalies:
        markers = ",".join(marker for marker, _ in anomalies)
        return f"ATTENTION({markers})"
    return "success"
