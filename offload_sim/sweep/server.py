"""FastAPI backend for browsing sweep results."""

from __future__ import annotations

import asyncio
import json
from collections import Counter, defaultdict
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

RECENT_RUNS = 20


class RunSummary(BaseModel):
    run_id: str
    index: int
    label: str
    controller: str
    status: str
    anomalies: list[str]
    wall_clock_seconds: float
    simulated_turns: int
    timestamp: datetime
    metrics: dict[str, Any]

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> RunSummary:
        return cls(
            run_id=record["run_id"],
            index=record.get("index", 0),
            label=record.get("label", ""),
            controller=record.get("controller", "UNKNOWN"),
            status=record["status"],
            anomalies=record.get("anomalies", []),
            wall_clock_seconds=record["wall_clock_seconds"],
            simulated_turns=record["simulated_turns"],
            timestamp=datetime.fromisoformat(record["timestamp_start"]),
            metrics=record.get("metrics", {}),
        )


class ControllerStats(BaseModel):
    """Aggregate over every measured run of one controller."""

    runs: int
    errors: int
    best_run_id: str | None = None
    best_drop_rate: float | None = None
    mean_drop_rate: float | None = None
    mean_latency_us: float | None = None
    mean_completion_rate: float | None = None


class SweepStats(BaseModel):
    total_runs: int
    success_rate: float
    attention_rate: float
    error_rate: float
    anomaly_distribution: dict[str, int]
    per_controller: dict[str, ControllerStats]
    recent_runs: list[RunSummary]


class RunStore:
    """Read-only view of a sweep's NDJSON overview and trace directories."""

    def __init__(self, output_dir: Path, overview_file: str) -> None:
        self.output_dir = output_dir
        self.overview = output_dir / overview_file

    def records(self) -> list[dict[str, Any]]:
        if not self.overview.exists():
            return []
        with self.overview.open(encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]

    def find(self, run_id: str) -> dict[str, Any] | None:
        return next((r for r in self.records() if r["run_id"] == run_id), None)

    def traces(self, run_id: str) -> dict[str, Any]:
        found: dict[str, Any] = {}
        for name in ("config", "metrics", "turns"):
            path = self.output_dir / run_id / f"{name}.json"
            if path.exists():
                found[f"trace_{name}"] = json.loads(path.read_text(encoding="utf-8"))
        return found


def controller_stats(records: list[dict[str, Any]]) -> ControllerStats:
    measured = [r for r in records if r.get("metrics")]
    stats = ControllerStats(
        runs=len(records),
        errors=sum(1 for r in records if r["status"] == "error"),
    )
    if not measured:
        return stats

    def mean(key: str) -> float:
        return sum(r["metrics"][key] for r in measured) / len(measured)

    best = min(measured, key=lambda r: r["metrics"]["drop_rate"])
    stats.best_run_id = best["run_id"]
    stats.best_drop_rate = best["metrics"]["drop_rate"]
    stats.mean_drop_rate = mean("drop_rate")
    stats.mean_latency_us = mean("mean_latency_us")
    stats.mean_completion_rate = mean("completion_rate")
    return stats


def sweep_stats(records: list[dict[str, Any]]) -> SweepStats:
    total = len(records)
    statuses = Counter(
        "attention" if r["status"].startswith("ATTENTION") else r["status"] for r in records
    )
    # anomaly messages look like "drop_rate=35.000 > 20.0"
    anomalies = Counter(a.split("=", 1)[0] for r in records for a in r.get("anomalies", []))

    by_controller: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for record in records:
        by_controller[record.get("controller", "UNKNOWN")].append(record)

    def rate(status: str) -> float:
        return statuses[status] / total if total else 0.0

    return SweepStats(
        total_runs=total,
        success_rate=rate("success"),
        attention_rate=rate("attention"),
        error_rate=rate("error"),
        anomaly_distribution=dict(anomalies),
        per_controller={
            name: controller_stats(group) for name, group in sorted(by_controller.items())
        },
        recent_runs=[RunSummary.from_record(r) for r in records[-RECENT_RUNS:]],
    )


def create_app(output_dir: Path, overview_file: str = "runs.ndjson") -> FastAPI:
    app = FastAPI(title="Offload Sweep Results API")
    store = RunStore(output_dir, overview_file)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/stats")
    async def get_stats() -> SweepStats:
        return sweep_stats(store.records())

    @app.get("/api/runs")
    async def get_runs(
        limit: int = 100,
        offset: int = 0,
        controller: str | None = None,
        status: str | None = None,
    ) -> list[RunSummary]:
        records = store.records()
        if controller is not None:
            records = [r for r in records if r.get("controller") == controller.upper()]
        if status is not None:
            records = [r for r in records if r["status"].startswith(status)]
        return [RunSummary.from_record(r) for r in records[offset : offset + limit]]

    @app.get("/api/controllers")
    async def get_controller_ranking() -> list[dict[str, Any]]:
        """Controllers ordered by their best drop rate, unmeasured ones last."""
        per_controller = sweep_stats(store.records()).per_controller
        ranked = sorted(
            per_controller.items(),
            key=lambda item: (item[1].best_drop_rate is None, item[1].best_drop_rate or 0.0),
        )
        return [{"controller": name, **stats.model_dump()} for name, stats in ranked]

    @app.get("/api/run/{run_id}")
    async def get_run_details(run_id: str) -> dict[str, Any]:
        record = store.find(run_id)
        if record is None:
            raise HTTPException(status_code=404, detail=f"Run {run_id} not found")
        return {**record, **store.traces(run_id)}

    @app.get("/api/stream")
    async def stream_events() -> StreamingResponse:
        async def follow() -> AsyncIterator[str]:
            position = 0
            while True:
                if store.overview.exists():
                    with store.overview.open(encoding="utf-8") as f:
                        f.seek(position)
                        for line in f:
                            if line.strip():
                                yield f"data: {line.strip()}\n\n"
                        position = f.tell()
                await asyncio.sleep(1)

        return StreamingResponse(follow(), media_type="text/event-stream")

    return app


def run_server(output_dir: Path, host: str = "0.0.0.0", port: int = 8000) -> None:
    import uvicorn

    print(f"Serving sweep results from {output_dir} at http://{host}:{port}")
    uvicorn.run(create_app(output_dir), host=host, port=port)
