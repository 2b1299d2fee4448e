"""Altitude gain/loss from the device altitude of accepted samples."""

from __future__ import annotations

from typing import Iterable, Optional

from .models import ElevationStats


class ElevationAggregator:
    """Running gain, loss and extremes. Missing altitude contributes nothing."""

    def __init__(self) -> None:
        self.gain_m = 0.0
        self.loss_m = 0.0
        self.max_m: Optional[float] = None
        self.min_m: Optional[float] = None
        self._last: Optional[float] = None

    def add(self, altitude: Optional[float]) -> None:
        if altitude is None:
            return
        altitude = float(altitude)
        if self._last is not None:
            delta = altitude - self._last
            if delta > 0:
                self.gain_m += delta
            elif delta < 0:
                self.loss_m += -delta
        self._last = altitude
        self.max_m = altitude if self.max_m is None else max(self.max_m, altitude)
        self.min_m = altitude if self.min_m is None else min(self.min_m, altitude)

    def stats(self) -> ElevationStats:
        if self.max_m is None or self.min_m is None:
            return ElevationStats()
        return ElevationStats(
            gain_m=round(self.gain_m),
            loss_m=round(self.loss_m),
            max_m=round(self.max_m),
            min_m=round(self.min_m),
        )

    def reset(self) -> None:
        self.gain_m = 0.0
        self.loss_m = 0.0
        self.max_m = None
        self.min_m = None
        self._last = None


def elevation_stats(readings: Iterable[Optional[float]]) -> ElevationStats:
    aggregator = ElevationAggregator()
    for altitude in readings:
        aggregator.add(altitude)
    return aggregator.stats()


__all__ = ["ElevationAggregator", "elevation_stats"]
