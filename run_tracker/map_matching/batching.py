"""Window planning and seam-aware merging for batched map matching."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import List, Sequence

from ..config import (
    MAP_MATCHING_BATCH_SIZE,
    MAP_MATCHING_MAX_COORDINATES,
    MAP_MATCHING_OVERLAP,
)
from ..models import LngLat


@dataclass(frozen=True, slots=True)
class BatchWindow:
    """Half-open slice ``[start, end)`` of the trajectory sent in one request.

    ``leading_overlap`` points at the front repeat the tail of the previous
    window and are dropped when merging.
    """

    index: int
    start: int
    end: int
    leading_overlap: int

    @property
    def size(self) -> int:
        return self.end - self.start


def plan_windows(
    count: int,
    batch_size: int = MAP_MATCHING_BATCH_SIZE,
    overlap: int = MAP_MATCHING_OVERLAP,
) -> List[BatchWindow]:
    """Partition ``count`` points into ``ceil(count / batch_size)`` windows."""

    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    if overlap < 0 or overlap >= batch_size:
        raise ValueError("overlap must be in [0, batch_size)")
    if batch_size + overlap > MAP_MATCHING_MAX_COORDINATES:
        raise ValueError(
            "batch_size + overlap exceeds the per-request coordinate ceiling"
        )
    windows: List[BatchWindow] = []
    for index in range(math.ceil(count / batch_size) if count > 0 else 0):
        core_start = index * batch_size
        start = max(0, core_start - overlap)
        end = min(count, core_start + batch_size)
        windows.append(
            BatchWindow(
                index=index,
                start=start,
                end=end,
                leading_overlap=core_start - start,
            )
        )
    return windows


def window_coordinates(
    coordinates: Sequence[LngLat], window: BatchWindow
) -> List[LngLat]:
    return list(coordinates[window.start : window.end])


def merge_contribution(
    window: BatchWindow, coordinates: Sequence[LngLat]
) -> List[LngLat]:
    """Coordinates a window adds to the merged route (leading overlap dropped)."""

    if window.index == 0:
        return list(coordinates)
    return list(coordinates[window.leading_overlap :])


__all__ = [
    "BatchWindow",
    "merge_contribution",
    "plan_windows",
    "window_coordinates",
]
