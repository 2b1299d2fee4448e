"""Per-kilometre splits and pace formatting for a finished trajectory.

Raw per-point timestamps are not kept in the trajectory, so split timing is
reconstructed by spreading the run duration evenly across the recorded
points. Bursty sample arrival skews split durations accordingly.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from .config import (
    PACE_MAX_VALID,
    PACE_MIN_VALID,
    SPLIT_DISTANCE_M,
    SPLIT_MIN_TRAILING_M,
    UNKNOWN_PACE,
)
from .geo import cumulative_distance_m
from .models import LngLat, Split, SplitStats

LOGGER = logging.getLogger(__name__)

# Absorbs float noise so an exact 6:00 pace is not rendered as 5:59.
_PACE_EPSILON_S = 1e-6


def pace_min_per_km(duration_s: float, distance_m: float) -> float:
    """Numeric pace in minutes per kilometre (0 when no distance)."""

    if distance_m <= 0:
        return 0.0
    return (duration_s / 60.0) / (distance_m / 1000.0)


def format_pace(duration_s: float, distance_m: float) -> str:
    """Render pace as ``M:SS`` per km, or UNKNOWN_PACE outside [2, 20] min/km."""

    if distance_m <= 0:
        return UNKNOWN_PACE
    pace = pace_min_per_km(duration_s, distance_m)
    if pace > PACE_MAX_VALID or pace < PACE_MIN_VALID:
        return UNKNOWN_PACE
    total_seconds = int(math.floor(pace * 60.0 + _PACE_EPSILON_S))
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def format_duration(seconds: float) -> str:
    """Format seconds as ``H:MM:SS`` (or ``M:SS`` under an hour)."""

    total = max(int(seconds), 0)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def compute_splits(
    coordinates: Sequence[LngLat], start_ms: float, end_ms: float
) -> List[Split]:
    """Split a finished ``(lng, lat)`` trajectory into kilometre segments."""

    if len(coordinates) < 2:
        return []

    total_duration_s = (end_ms - start_ms) / 1000.0
    time_per_point_s = total_duration_s / (len(coordinates) - 1)
    cumulative = cumulative_distance_m(coordinates)
    timestamps_ms = start_ms + np.arange(len(coordinates)) * time_per_point_s * 1000.0

    splits: List[Split] = []
    current_km = 1
    last_split_distance = 0.0
    last_split_time_ms = float(start_ms)

    for distance, timestamp_ms in zip(cumulative.tolist(), timestamps_ms.tolist()):
        if distance < current_km * SPLIT_DISTANCE_M:
            continue
        split_time_s = (timestamp_ms - last_split_time_ms) / 1000.0
        split_distance = distance - last_split_distance
        splits.append(
            Split(
                km_index=current_km,
                distance_m=split_distance,
                duration_s=split_time_s,
                pace_label=format_pace(split_time_s, split_distance),
            )
        )
        last_split_distance = distance
        last_split_time_ms = timestamp_ms
        current_km += 1

    remaining = float(cumulative[-1]) - last_split_distance
    if remaining > SPLIT_MIN_TRAILING_M:
        split_time_s = (float(timestamps_ms[-1]) - last_split_time_ms) / 1000.0
        splits.append(
            Split(
                km_index=current_km,
                distance_m=remaining,
                duration_s=split_time_s,
                pace_label=format_pace(split_time_s, remaining),
            )
        )

    LOGGER.debug(
        "Computed %d splits over %.0fm / %.0fs",
        len(splits),
        float(cumulative[-1]),
        total_duration_s,
    )
    return splits


def _pace_to_seconds(label: str) -> Optional[int]:
    if label == UNKNOWN_PACE:
        return None
    try:
        minutes, seconds = (int(part) for part in label.split(":"))
    except ValueError:
        return None
    total = minutes * 60 + seconds
    return total if total > 0 else None


def split_statistics(splits: Sequence[Split]) -> SplitStats:
    """Best, worst and mean pace across splits with a valid pace label."""

    valid = []
    for split in splits:
        seconds = _pace_to_seconds(split.pace_label)
        if seconds is not None:
            valid.append((split.km_index, seconds, split.pace_label))
    if not valid:
        return SplitStats(UNKNOWN_PACE, UNKNOWN_PACE, UNKNOWN_PACE, 0, 0)

    best = min(valid, key=lambda item: item[1])
    worst = max(valid, key=lambda item: item[1])
    average_s = sum(item[1] for item in valid) / len(valid)
    avg_min, avg_sec = divmod(int(average_s), 60)
    return SplitStats(
        best_pace=best[2],
        worst_pace=worst[2],
        average_pace=f"{avg_min}:{avg_sec:02d}",
        best_km=best[0],
        worst_km=worst[0],
    )


__all__ = [
    "compute_splits",
    "format_duration",
    "format_pace",
    "pace_min_per_km",
    "split_statistics",
]
