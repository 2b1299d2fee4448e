"""Tests for monthly API usage metering."""

from __future__ import annotations

from datetime import datetime
import json
import logging
from typing import Any

import pytest

from run_tracker.config import USAGE_STORAGE_KEY
from run_tracker.usage import JsonFileKeyValueStore, UsageGovernor, month_key


def test_fresh_store_reads_as_zero(kv_store: Any, fixed_clock: Any) -> None:
    stats = UsageGovernor(kv_store, clock=fixed_clock).stats()
    assert stats.month == "2025-03"
    assert all(usage.count == 0 for usage in stats.categories.values())


def test_track_counts_and_costs(kv_store: Any, fixed_clock: Any) -> None:
    governor = UsageGovernor(kv_store, clock=fixed_clock)
    governor.track("map_matching")
    governor.track("map_matching", 3)
    governor.track("elevation", 2)

    stats = governor.stats()
    assert stats.category("map_matching").count == 4
    assert stats.category("map_matching").total_cost == pytest.approx(0.02)
    assert stats.category("map_matching").last_used_ms == pytest.approx(
        fixed_clock().timestamp() * 1000
    )
    assert governor.total_cost() == pytest.approx(0.03)


def test_unknown_category_rejected(kv_store: Any, fixed_clock: Any) -> None:
    with pytest.raises(ValueError):
        UsageGovernor(kv_store, clock=fixed_clock).track("geocoding")


def test_month_rollover_resets_counters(kv_store: Any, fixed_clock: Any) -> None:
    governor = UsageGovernor(kv_store, clock=fixed_clock)
    governor.track("map_matching", 5)

    fixed_clock.moment["now"] = datetime(2025, 4, 1, 0, 0, 1)
    assert governor.stats().category("map_matching").count == 0

    governor.track("map_matching")
    stats = governor.stats()
    assert stats.month == "2025-04"
    assert stats.category("map_matching").count == 1


def test_warning_above_eighty_percent(
    kv_store: Any, fixed_clock: Any, caplog: pytest.LogCaptureFixture
) -> None:
    pricing = {"map_matching": {"per_request": 0.005, "free_tier": 10}}
    governor = UsageGovernor(kv_store, pricing, clock=fixed_clock)
    with caplog.at_level(logging.WARNING, logger="run_tracker.usage"):
        governor.track("map_matching", 8)
    assert "usage warning" not in caplog.text.lower()
    with caplog.at_level(logging.WARNING, logger="run_tracker.usage"):
        governor.track("map_matching", 1)
    assert "usage warning" in caplog.text.lower()


def test_within_free_tier(kv_store: Any, fixed_clock: Any) -> None:
    pricing = {
        "map_matching": {"per_request": 0.005, "free_tier": 3},
        "snap_to_roads": {"per_request": 0.005, "free_tier": 3},
    }
    governor = UsageGovernor(kv_store, pricing, clock=fixed_clock)
    governor.track("map_matching", 2)
    assert governor.within_free_tier()
    governor.track("map_matching")
    assert not governor.within_free_tier()


def test_corrupt_payload_reads_as_zero(kv_store: Any, fixed_clock: Any) -> None:
    kv_store.set(USAGE_STORAGE_KEY, "{not json")
    stats = UsageGovernor(kv_store, clock=fixed_clock).stats()
    assert stats.category("map_matching").count == 0


def test_reset(kv_store: Any, fixed_clock: Any) -> None:
    governor = UsageGovernor(kv_store, clock=fixed_clock)
    governor.track("map_matching", 7)
    governor.reset()
    assert governor.total_cost() == 0


def test_json_file_store_persists(tmp_path: Any, fixed_clock: Any) -> None:
    path = tmp_path / "usage.json"
    UsageGovernor(JsonFileKeyValueStore(path), clock=fixed_clock).track("map_matching", 2)

    reloaded = UsageGovernor(JsonFileKeyValueStore(path), clock=fixed_clock)
    assert reloaded.stats().category("map_matching").count == 2
    assert USAGE_STORAGE_KEY in json.loads(path.read_text(encoding="utf-8"))


def test_json_file_store_replaces_file_atomically(
    tmp_path: Any, fixed_clock: Any
) -> None:
    path = tmp_path / "usage.json"
    governor = UsageGovernor(JsonFileKeyValueStore(path), clock=fixed_clock)
    governor.track("map_matching")
    governor.track("map_matching")

    assert not (tmp_path / "usage.tmp").exists()
    assert json.loads(path.read_text(encoding="utf-8"))[USAGE_STORAGE_KEY]
    assert governor.stats().category("map_matching").count == 2


def test_failed_save_is_logged_not_raised(
    fixed_clock: Any, caplog: pytest.LogCaptureFixture
) -> None:
    class BrokenStore:
        def get(self, key: str) -> None:
            return None

        def set(self, key: str, value: str) -> None:
            raise OSError("disk full")

    with caplog.at_level(logging.ERROR):
        stats = UsageGovernor(BrokenStore(), clock=fixed_clock).track("map_matching")
    assert stats.category("map_matching").count == 1
    assert "disk full" in caplog.text


def test_month_key() -> None:
    assert month_key(datetime(2024, 1, 31)) == "2024-01"
