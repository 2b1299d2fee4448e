"""Tests for the adaptive position filter."""

from __future__ import annotations

import pytest

from run_tracker.kalman import AdaptivePositionFilter


def test_first_reading_passes_through() -> None:
    flt = AdaptivePositionFilter()
    assert not flt.initialized
    assert flt.get_variance() == -1
    assert flt.process(10.0, 20.0, 8.0, 1000) == (10.0, 20.0)
    assert flt.initialized
    assert flt.get_variance() == pytest.approx(64.0)


def test_accuracy_is_clamped_to_minimum() -> None:
    flt = AdaptivePositionFilter(min_accuracy=5.0)
    flt.process(0.0, 0.0, 1.0, 1000)
    assert flt.get_variance() == pytest.approx(25.0)


def test_variance_non_increasing_for_stationary_readings() -> None:
    flt = AdaptivePositionFilter()
    flt.process(1.0, 1.0, 10.0, 0)
    variances = [flt.get_variance()]
    for i in range(1, 30):
        flt.process(1.0, 1.0, 10.0, i * 1000)
        variances.append(flt.get_variance())
    assert all(b <= a + 1e-9 for a, b in zip(variances, variances[1:]))
    assert variances[-1] < variances[0]


def test_noisy_reading_moves_estimate_partially() -> None:
    flt = AdaptivePositionFilter()
    flt.process(0.0, 0.0, 5.0, 0)
    lat, lng = flt.process(0.001, 0.001, 40.0, 1000)
    assert 0.0 < lat < 0.001
    assert 0.0 < lng < 0.001


def test_precise_reading_trusted_more_than_noisy_one() -> None:
    precise = AdaptivePositionFilter()
    precise.process(0.0, 0.0, 10.0, 0)
    precise_lat, _ = precise.process(0.001, 0.0, 5.0, 1000)

    noisy = AdaptivePositionFilter()
    noisy.process(0.0, 0.0, 10.0, 0)
    noisy_lat, _ = noisy.process(0.001, 0.0, 40.0, 1000)

    assert precise_lat > noisy_lat


def test_elapsed_time_is_clamped() -> None:
    a = AdaptivePositionFilter()
    a.process(0.0, 0.0, 10.0, 1000)
    a.process(0.0, 0.0, 10.0, 1000 + 60_000)

    b = AdaptivePositionFilter()
    b.process(0.0, 0.0, 10.0, 1000)
    b.process(0.0, 0.0, 10.0, 1000 + 5_000)

    assert a.get_variance() == pytest.approx(b.get_variance())


def test_reset_returns_to_uninitialised() -> None:
    flt = AdaptivePositionFilter()
    flt.process(1.0, 2.0, 5.0, 1000)
    flt.reset()
    assert flt.get_variance() == -1
    assert flt.process(3.0, 4.0, 5.0, 2000) == (3.0, 4.0)
