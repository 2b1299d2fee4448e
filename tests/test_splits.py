"""Tests for kilometre splits and pace formatting."""

from __future__ import annotations

import pytest

from conftest import equator_track
from run_tracker.config import UNKNOWN_PACE
from run_tracker.models import Split
from run_tracker.splits import (
    compute_splits,
    format_duration,
    format_pace,
    pace_min_per_km,
    split_statistics,
)


@pytest.mark.parametrize(
    "duration_s,distance_m,expected",
    [
        (360, 1000, "6:00"),
        (300, 1000, "5:00"),
        (330, 1000, "5:30"),
        (100, 1000, UNKNOWN_PACE),  # under 2 min/km
        (1500, 1000, UNKNOWN_PACE),  # over 20 min/km
        (360, 0, UNKNOWN_PACE),
    ],
)
def test_format_pace(duration_s: float, distance_m: float, expected: str) -> None:
    assert format_pace(duration_s, distance_m) == expected


def test_pace_min_per_km_zero_distance() -> None:
    assert pace_min_per_km(600, 0) == 0.0
    assert pace_min_per_km(600, 2000) == pytest.approx(5.0)


def test_format_duration() -> None:
    assert format_duration(59) == "0:59"
    assert format_duration(754) == "12:34"
    assert format_duration(3723) == "1:02:03"


def test_fewer_than_two_points_yield_no_splits() -> None:
    assert compute_splits([], 0, 1000) == []
    assert compute_splits([(0.0, 0.0)], 0, 1000) == []


def test_uniform_track_gives_equal_pace_splits() -> None:
    coords = equator_track(251, spacing_m=10.0)  # 2500 m
    splits = compute_splits(coords, 0, 900_000)  # 15 minutes

    assert [s.km_index for s in splits] == [1, 2, 3]
    assert {s.pace_label for s in splits} == {"6:00"}
    assert splits[0].distance_m == pytest.approx(1000, abs=10.5)
    assert splits[-1].distance_m == pytest.approx(500, abs=10.5)
    assert sum(s.duration_s for s in splits) == pytest.approx(900.0)


def test_short_trailing_remainder_is_dropped() -> None:
    coords = equator_track(106, spacing_m=10.0)  # 1050 m
    splits = compute_splits(coords, 0, 420_000)
    assert len(splits) == 1
    assert splits[0].km_index == 1


def test_split_statistics_ignores_unknown_paces() -> None:
    splits = [
        Split(1, 1000, 300, "5:00"),
        Split(2, 1000, 330, "5:30"),
        Split(3, 1000, 0, UNKNOWN_PACE),
        Split(4, 1000, 290, "4:50"),
    ]
    stats = split_statistics(splits)
    assert stats.best_pace == "4:50"
    assert stats.best_km == 4
    assert stats.worst_pace == "5:30"
    assert stats.worst_km == 2
    assert stats.average_pace == "5:06"


def test_split_statistics_without_valid_paces() -> None:
    stats = split_statistics([Split(1, 1000, 0, UNKNOWN_PACE)])
    assert stats.best_pace == UNKNOWN_PACE
    assert stats.best_km == 0
