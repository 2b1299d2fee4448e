"""Great-circle distance helpers and the live distance accumulator."""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from .config import EARTH_RADIUS_M
from .models import FilteredPoint, LngLat

MetricArray = NDArray[np.float64]


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance in metres between two lat/lon pairs."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def segment_lengths_m(coordinates: Sequence[LngLat]) -> MetricArray:
    """Vectorised haversine between consecutive ``(lng, lat)`` pairs."""

    array = np.asarray(coordinates, dtype=float)
    if array.ndim != 2 or array.shape[1] != 2:
        raise ValueError("Expected a sequence of (lng, lat) pairs")
    if len(array) < 2:
        return np.zeros(0, dtype=float)
    lng = np.radians(array[:, 0])
    lat = np.radians(array[:, 1])
    d_phi = np.diff(lat)
    d_lambda = np.diff(lng)
    a = (
        np.sin(d_phi / 2) ** 2
        + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(d_lambda / 2) ** 2
    )
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def cumulative_distance_m(coordinates: Sequence[LngLat]) -> MetricArray:
    """Cumulative path length at each coordinate, starting at 0."""

    if len(coordinates) == 0:
        return np.zeros(0, dtype=float)
    lengths = segment_lengths_m(coordinates)
    return np.concatenate(([0.0], np.cumsum(lengths)))


def accumulate(
    prev_point: Optional[FilteredPoint], new_point: FilteredPoint
) -> float:
    """Distance increment between two filtered points (0 for the first one)."""

    if prev_point is None:
        return 0.0
    return haversine_m(
        prev_point.latitude,
        prev_point.longitude,
        new_point.latitude,
        new_point.longitude,
    )


class DistanceAccumulator:
    """Running path length for the active run; drives the live display."""

    def __init__(self) -> None:
        self.total_m = 0.0
        self._last: Optional[FilteredPoint] = None

    def add(self, point: FilteredPoint) -> float:
        increment = accumulate(self._last, point)
        self.total_m += increment
        self._last = point
        return increment

    def override(self, total_m: float) -> None:
        """Replace the running total (after the trajectory was map matched)."""
        self.total_m = float(total_m)

    def reset(self) -> None:
        self.total_m = 0.0
        self._last = None


__all__ = [
    "DistanceAccumulator",
    "accumulate",
    "cumulative_distance_m",
    "haversine_m",
    "segment_lengths_m",
]
