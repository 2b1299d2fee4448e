"""Per-axis recursive position filter for handheld GPS readings."""

from __future__ import annotations

import logging
import time
from typing import Optional, Tuple

from .config import (
    FILTER_MAX_TIME_STEP_S,
    FILTER_MIN_ACCURACY_M,
    FILTER_MIN_TIME_STEP_S,
    FILTER_PROCESS_VARIANCE,
)

LOGGER = logging.getLogger(__name__)


class AdaptivePositionFilter:
    """Kalman-style smoother with a time-varying gain.

    Latitude and longitude are estimated independently. The variance grows
    with elapsed time (drift) and shrinks with every reading in proportion to
    how much the reading is trusted, so noisy readings move the estimate less
    than precise ones.
    """

    def __init__(
        self,
        process_variance: float = FILTER_PROCESS_VARIANCE,
        min_accuracy: float = FILTER_MIN_ACCURACY_M,
    ) -> None:
        self.process_variance = process_variance
        self.min_accuracy = min_accuracy
        self._lat: Optional[float] = None
        self._lng: Optional[float] = None
        self._variance_lat = -1.0
        self._variance_lng = -1.0
        self._last_timestamp_ms = 0.0

    @property
    def initialized(self) -> bool:
        return self._variance_lat >= 0

    def process(
        self,
        lat: float,
        lng: float,
        accuracy: float,
        timestamp_ms: Optional[float] = None,
    ) -> Tuple[float, float]:
        """Fold one reading into the estimate and return the filtered position."""

        accuracy = max(accuracy, self.min_accuracy)
        accuracy_sq = accuracy * accuracy
        now_ms = timestamp_ms if timestamp_ms else time.time() * 1000.0

        if not self.initialized or self._lat is None or self._lng is None:
            self._lat = lat
            self._lng = lng
            self._variance_lat = accuracy_sq
            self._variance_lng = accuracy_sq
            self._last_timestamp_ms = now_ms
            return lat, lng

        elapsed_s = 1.0
        if timestamp_ms and self._last_timestamp_ms:
            elapsed_s = (timestamp_ms - self._last_timestamp_ms) / 1000.0
            elapsed_s = min(
                max(elapsed_s, FILTER_MIN_TIME_STEP_S), FILTER_MAX_TIME_STEP_S
            )
        self._last_timestamp_ms = now_ms

        self._variance_lat += elapsed_s * self.process_variance
        self._variance_lng += elapsed_s * self.process_variance

        gain_lat = self._variance_lat / (self._variance_lat + accuracy_sq)
        gain_lng = self._variance_lng / (self._variance_lng + accuracy_sq)

        self._lat += gain_lat * (lat - self._lat)
        self._lng += gain_lng * (lng - self._lng)

        self._variance_lat *= 1 - gain_lat
        self._variance_lng *= 1 - gain_lng
        return self._lat, self._lng

    def get_variance(self) -> float:
        """Current uncertainty proxy (max of both axis variances)."""
        return max(self._variance_lat, self._variance_lng)

    def reset(self) -> None:
        LOGGER.debug("Resetting position filter")
        self._lat = None
        self._lng = None
        self._variance_lat = -1.0
        self._variance_lng = -1.0
        self._last_timestamp_ms = 0.0


__all__ = ["AdaptivePositionFilter"]
