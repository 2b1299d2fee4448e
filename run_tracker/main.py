"""Replay recorded samples through the tracking pipeline.

Usage:
    python -m run_tracker.main --samples samples.csv [--match] [--export runs.xlsx]

The CSV needs ``latitude``, ``longitude``, ``accuracy`` and ``timestamp_ms``
columns; ``altitude``, ``speed`` and ``heading`` are optional.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import math
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

from .config import MAP_MATCHING_ENABLED, MAPBOX_ACCESS_TOKEN, USAGE_FILE
from .events import RecordingAnnouncer
from .history_export import write_run_history
from .map_matching import MapMatchingClient, MapMatchingOrchestrator
from .models import RawSample, RunSummary
from .session import RunSession
from .splits import format_duration, format_pace, split_statistics
from .store import InMemoryRunStore
from .usage import JsonFileKeyValueStore, UsageGovernor

LOGGER = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("latitude", "longitude", "accuracy", "timestamp_ms")
OPTIONAL_COLUMNS = {"altitude": "altitude", "speed": "speed_mps", "heading": "heading"}


def _optional(value: Any) -> Optional[float]:
    if value is None:
        return None
    number = float(value)
    return None if math.isnan(number) else number


def read_samples(path: str | Path) -> List[RawSample]:
    """Load raw samples from CSV, sorted by timestamp."""

    df = pd.read_csv(path)
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Sample file {path} is missing columns: {missing}")
    df = df.sort_values("timestamp_ms", kind="stable")
    samples: List[RawSample] = []
    for row in df.to_dict(orient="records"):
        extras = {
            field: _optional(row.get(column))
            for column, field in OPTIONAL_COLUMNS.items()
        }
        samples.append(
            RawSample(
                latitude=float(row["latitude"]),
                longitude=float(row["longitude"]),
                accuracy_m=float(row["accuracy"]),
                timestamp_ms=float(row["timestamp_ms"]),
                **extras,
            )
        )
    LOGGER.info("Loaded %d samples from %s", len(samples), path)
    return samples


def replay(
    samples: List[RawSample],
    *,
    match: bool = False,
    usage_file: str | Path = USAGE_FILE,
) -> tuple[RunSummary, RecordingAnnouncer]:
    if not samples:
        raise ValueError("No samples to replay")
    announcer = RecordingAnnouncer()
    session = RunSession(announcer)
    session.start(samples[0].timestamp_ms)
    accepted = 0
    for sample in samples:
        if session.handle_sample(sample) is not None:
            accepted += 1
    summary = session.stop(samples[-1].timestamp_ms)
    LOGGER.info(
        "Replay accepted %d/%d samples (%d trajectory points)",
        accepted,
        len(samples),
        len(summary.coordinates),
    )
    if match:
        governor = UsageGovernor(JsonFileKeyValueStore(usage_file))
        if not governor.within_free_tier():
            LOGGER.warning("Map matching free tier exhausted this month")
        orchestrator = MapMatchingOrchestrator(MapMatchingClient(), governor)
        if asyncio.run(session.apply_map_matching(orchestrator)) is not None:
            summary = session.summary()
        LOGGER.info("Estimated API cost this month: $%.2f", governor.total_cost())
    return summary, announcer


def _report(summary: RunSummary) -> dict[str, Any]:
    report: dict[str, Any] = {
        "date": summary.date,
        "distance_km": round(summary.distance_m / 1000.0, 3),
        "duration": format_duration(summary.duration_s),
        "average_pace": format_pace(summary.duration_s, summary.distance_m),
        "average_speed_kmh": round(summary.average_speed_kmh, 2),
        "max_speed_kmh": round(summary.max_speed_kmh, 2),
        "elevation_gain_m": summary.elevation_gain_m,
        "elevation_loss_m": summary.elevation_loss_m,
        "route_matched": summary.route_matched,
        "splits": [
            {"km": split.km_index, "pace": split.pace_label}
            for split in summary.splits
        ],
    }
    if summary.splits:
        stats = split_statistics(summary.splits)
        report["best_km"] = {"km": stats.best_km, "pace": stats.best_pace}
        report["worst_km"] = {"km": stats.worst_km, "pace": stats.worst_pace}
    return report


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Replay recorded GPS samples and print the run summary"
    )
    parser.add_argument("--samples", required=True, help="CSV file of raw samples")
    parser.add_argument(
        "--match",
        action="store_true",
        help="Snap the finished trajectory with the map-matching service",
    )
    parser.add_argument("--export", help="Write the run to this .xlsx workbook")
    parser.add_argument(
        "--usage-file",
        default=USAGE_FILE,
        help="JSON file holding monthly API usage counters",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=getattr(logging, str(args.log_level).upper(), logging.INFO),
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )
    match = args.match
    if match and (not MAP_MATCHING_ENABLED or not MAPBOX_ACCESS_TOKEN):
        LOGGER.warning("Map matching disabled or no access token set; skipping")
        match = False
    try:
        samples = read_samples(args.samples)
        summary, announcer = replay(samples, match=match, usage_file=args.usage_file)
    except (OSError, ValueError) as exc:
        LOGGER.error("Replay failed: %s", exc)
        return 1

    for event in announcer.events:
        LOGGER.debug("Event: %s", event)
    print(json.dumps(_report(summary), indent=2))

    if args.export:
        store = InMemoryRunStore()
        store.save(summary)
        write_run_history(args.export, store.list_runs())
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
