"""Run store contract, an in-memory reference store and history helpers.

Persistence itself is an external collaborator; the tracker only hands over
finished :class:`RunSummary` values.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import pandas as pd

from .errors import RunRecordError
from .models import RunSummary

LOGGER = logging.getLogger(__name__)


class RunStore(Protocol):
    def save(self, summary: RunSummary) -> int: ...

    def list_runs(self) -> List[RunSummary]: ...

    def get(self, run_id: int) -> Optional[RunSummary]: ...

    def update(self, summary: RunSummary) -> None: ...

    def delete(self, run_id: int) -> None: ...


class InMemoryRunStore:
    """Auto-increment store keeping deep copies so callers never share state."""

    def __init__(self) -> None:
        self._runs: Dict[int, RunSummary] = {}
        self._next_id = 1

    def save(self, summary: RunSummary) -> int:
        run_id = self._next_id
        self._next_id += 1
        record = copy.deepcopy(summary)
        record.id = run_id
        self._runs[run_id] = record
        LOGGER.info("Saved run %d (%.0fm)", run_id, summary.distance_m)
        return run_id

    def list_runs(self) -> List[RunSummary]:
        runs = [copy.deepcopy(run) for run in self._runs.values()]
        runs.sort(key=lambda run: run.start_timestamp_ms, reverse=True)
        return runs

    def get(self, run_id: int) -> Optional[RunSummary]:
        run = self._runs.get(run_id)
        return copy.deepcopy(run) if run is not None else None

    def update(self, summary: RunSummary) -> None:
        if not summary.id:
            raise RunRecordError("Run must have an id to be updated")
        self._runs[summary.id] = copy.deepcopy(summary)

    def delete(self, run_id: int) -> None:
        self._runs.pop(run_id, None)


def total_stats(runs: Sequence[RunSummary]) -> Dict[str, Any]:
    """Lifetime totals across stored runs."""

    if not runs:
        return {
            "total_runs": 0,
            "total_distance_m": 0.0,
            "total_time_s": 0.0,
            "total_elevation_gain_m": 0.0,
            "average_pace_min_per_km": 0.0,
            "longest_run_m": 0.0,
        }
    df = pd.DataFrame(
        {
            "distance": [run.distance_m for run in runs],
            "duration": [run.duration_s for run in runs],
            "gain": [run.elevation_gain_m for run in runs],
        }
    )
    total_distance = float(df["distance"].sum())
    total_time = float(df["duration"].sum())
    average_pace = (
        (total_time / 60.0) / (total_distance / 1000.0) if total_distance > 0 else 0.0
    )
    return {
        "total_runs": len(df),
        "total_distance_m": total_distance,
        "total_time_s": total_time,
        "total_elevation_gain_m": float(df["gain"].sum()),
        "average_pace_min_per_km": average_pace,
        "longest_run_m": float(df["distance"].max()),
    }


def export_runs_json(store: RunStore) -> str:
    return json.dumps([run.to_dict() for run in store.list_runs()], indent=2)


def import_runs_json(store: RunStore, text: str) -> int:
    """Restore runs from a JSON backup; ids are reassigned by the store."""

    payload = json.loads(text)
    if not isinstance(payload, list):
        raise ValueError("Run backup must be a JSON list")
    imported = 0
    for raw in payload:
        try:
            record = dict(raw)
            record.pop("id", None)
            store.save(RunSummary.from_dict(record))
        except (TypeError, ValueError, KeyError) as exc:
            LOGGER.error("Failed to import run: %s", exc)
            continue
        imported += 1
    return imported


__all__ = [
    "InMemoryRunStore",
    "RunStore",
    "export_runs_json",
    "import_runs_json",
    "total_stats",
]
