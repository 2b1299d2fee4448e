"""Tests for map-matching window planning and merging."""

from __future__ import annotations

import pytest

from run_tracker.config import MAP_MATCHING_MAX_COORDINATES
from run_tracker.map_matching import BatchWindow, merge_contribution, plan_windows


def test_window_count_is_ceiling_of_batches() -> None:
    assert len(plan_windows(1800)) == 20
    assert len(plan_windows(1801)) == 21
    assert len(plan_windows(90)) == 1
    assert plan_windows(0) == []


def test_windows_respect_request_ceiling() -> None:
    for window in plan_windows(1000):
        assert window.size <= MAP_MATCHING_MAX_COORDINATES


def test_windows_overlap_previous_core() -> None:
    windows = plan_windows(250, batch_size=90, overlap=10)
    assert windows[0] == BatchWindow(index=0, start=0, end=90, leading_overlap=0)
    assert windows[1] == BatchWindow(index=1, start=80, end=180, leading_overlap=10)
    assert windows[2] == BatchWindow(index=2, start=170, end=250, leading_overlap=10)


def test_merge_drops_leading_overlap_only_after_first() -> None:
    coords = [(float(i), 0.0) for i in range(250)]
    windows = plan_windows(len(coords))
    merged = []
    for window in windows:
        merged.extend(merge_contribution(window, coords[window.start : window.end]))
    assert merged == coords


@pytest.mark.parametrize(
    "batch_size,overlap",
    [(0, 0), (90, 90), (90, -1), (95, 10)],
)
def test_invalid_plans_rejected(batch_size: int, overlap: int) -> None:
    with pytest.raises(ValueError):
        plan_windows(500, batch_size=batch_size, overlap=overlap)
