"""Tests for altitude gain/loss aggregation."""

from __future__ import annotations

from run_tracker.elevation import ElevationAggregator, elevation_stats
from run_tracker.models import ElevationStats


def test_gain_loss_and_extremes() -> None:
    stats = elevation_stats([100.0, 105.0, 103.0, 110.4, 99.6])
    assert stats.gain_m == 12  # 5 + 7.4
    assert stats.loss_m == 13  # 2 + 10.8
    assert stats.max_m == 110
    assert stats.min_m == 100


def test_missing_altitude_contributes_nothing() -> None:
    stats = elevation_stats([None, 10.0, None, 15.0, None])
    assert stats.gain_m == 5
    assert stats.loss_m == 0


def test_no_readings_yield_zeros() -> None:
    assert elevation_stats([]) == ElevationStats()
    assert elevation_stats([None, None]) == ElevationStats()


def test_reset_clears_running_totals() -> None:
    agg = ElevationAggregator()
    agg.add(10.0)
    agg.add(20.0)
    agg.reset()
    agg.add(5.0)
    stats = agg.stats()
    assert stats.gain_m == 0
    assert stats.max_m == 5
