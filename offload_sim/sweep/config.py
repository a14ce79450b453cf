from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any

from offload_sim.config import (
    ConfigurationError,
    ControllerKind,
    RejectionWindow,
    SimulationConfig,
    SketchConfig,
    TrafficShape,
)

if TYPE_CHECKING:
    from pathlib import Path

type GridValue = int | float | bool | str
type Grid = dict[str, list[GridValue]]

_NESTED: dict[str, type[TrafficShape] | type[SketchConfig]] = {
    "traffic": TrafficShape,
    "sketch": SketchConfig,
}


@dataclass(frozen=True)
class AnomalyThresholds:
    max_drop_rate: float = 20.0  # percent
    min_completion_rate: float = 90.0  # percent
    max_mean_latency_us: float = 70.0


@dataclass
class SweepConfig:
    output_dir: Path
    base: SimulationConfig = field(default_factory=SimulationConfig)
    grid: Grid = field(default_factory=dict)
    workers: int = 1
    anomaly_thresholds: AnomalyThresholds = field(default_factory=AnomalyThresholds)
    overview_file: str = "runs.ndjson"
    trace_on_anomaly_only: bool = True

    @classmethod
    def from_toml(cls, path: Path) -> SweepConfig:
        import tomllib

        with path.open("rb") as f:
            data = tomllib.load(f)

        execution = data.get("execution", {})
        output = data.get("output", {})
        thresholds_data = data.get("thresholds", {})

        base = apply_overrides(SimulationConfig(), data.get("base", {}))

        grid: Grid = {}
        for key, values in data.get("grid", {}).items():
            if not isinstance(values, list):
                values = [values]
            grid[key] = list(values)

        anomaly_thresholds = (
            AnomalyThresholds(**thresholds_data) if thresholds_data else AnomalyThresholds()
        )

        from pathlib import Path as PathClass

        return cls(
            output_dir=PathClass(output.get("dir", "sweep_output")),
            base=base,
            grid=grid,
            workers=execution.get("workers", 1),
            anomaly_thresholds=anomaly_thresholds,
            overview_file=output.get("overview_file", "runs.ndjson"),
            trace_on_anomaly_only=execution.get("trace_on_anomaly_only", True),
        )


def _coerce(name: str, value: Any) -> Any:
    if name == "controller" and isinstance(value, str):
        return ControllerKind.parse(value)
    if name == "rejection_window" and isinstance(value, str):
        try:
            return RejectionWindow[value.strip().upper()]
        except KeyError:
            raise ConfigurationError([f"unknown rejection window {value!r}"]) from None
    if isinstance(value, list):
        return tuple(tuple(v) if isinstance(v, list) else v for v in value)
    return value


def apply_overrides(config: SimulationConfig, overrides: dict[str, Any]) -> SimulationConfig:
    """Return ``config`` with ``overrides`` applied.

    Keys are field names; ``traffic.<field>`` and ``sketch.<field>`` (or a
    nested table under ``traffic``/``sketch``) reach the nested configs.
    """
    top_level = {f.name for f in fields(SimulationConfig)}
    flat: dict[str, Any] = {}
    nested: dict[str, dict[str, Any]] = {name: {} for name in _NESTED}

    for key, value in overrides.items():
        if key in _NESTED and isinstance(value, dict):
            nested[key].update(value)
        elif "." in key:
            section, _, name = key.partition(".")
            if section not in _NESTED:
                raise ConfigurationError([f"unknown configuration section {section!r}"])
            nested[section][name] = value
        elif key in top_level:
            flat[key] = _coerce(key, value)
        else:
            raise ConfigurationError([f"unknown configuration field {key!r}"])

    for section, values in nested.items():
        if not values:
            continue
        known = {f.name for f in fields(_NESTED[section])}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(
                [f"unknown {section} field {name!r}" for name in unknown]
            )
        current = getattr(config, section)
        flat[section] = replace(current, **{k: _coerce(k, v) for k, v in values.items()})

    return replace(config, **flat)
