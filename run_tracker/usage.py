"""Monthly usage and cost metering for paid routing endpoints.

The governor is advisory only: it never blocks a call. Counters live in an
injected key/value store so they survive process restarts without tying the
governor to a particular persistence backend.
"""

from __future__ import annotations

from datetime import datetime
import json
import logging
from pathlib import Path
import threading
from typing import Callable, Dict, Mapping, Optional, Protocol

from .config import (
    API_PRICING,
    FREE_TIER_CATEGORIES,
    USAGE_STORAGE_KEY,
    USAGE_WARNING_RATIO,
)
from .models import UsageStats

LOGGER = logging.getLogger(__name__)

Pricing = Mapping[str, Mapping[str, float]]


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileKeyValueStore:
    """Keys persisted as one JSON object on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()

    def _load(self) -> Dict[str, str]:
        if not self.path.is_file():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Ignoring unreadable usage file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = self.path.with_suffix(".tmp")
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2)
            temp_path.replace(self.path)


def month_key(moment: datetime) -> str:
    return f"{moment.year}-{moment.month:02d}"


class UsageGovernor:
    def __init__(
        self,
        store: KeyValueStore,
        pricing: Pricing = API_PRICING,
        *,
        clock: Callable[[], datetime] = datetime.now,
        storage_key: str = USAGE_STORAGE_KEY,
        warning_ratio: float = USAGE_WARNING_RATIO,
    ) -> None:
        self.store = store
        self.pricing = pricing
        self.clock = clock
        self.storage_key = storage_key
        self.warning_ratio = warning_ratio

    def _empty(self) -> UsageStats:
        stats = UsageStats(month=month_key(self.clock()))
        for category in self.pricing:
            stats.category(category)
        return stats

    def stats(self) -> UsageStats:
        """Current month's counters; a stale month reads back as zero."""

        raw = self.store.get(self.storage_key)
        if not raw:
            return self._empty()
        try:
            stats = UsageStats.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            LOGGER.error("Error loading API usage stats: %s", exc)
            return self._empty()
        if stats.month != month_key(self.clock()):
            LOGGER.info("API usage month rolled over from %s; resetting", stats.month)
            return self._empty()
        return stats

    def _save(self, stats: UsageStats) -> None:
        try:
            self.store.set(self.storage_key, json.dumps(stats.to_dict()))
        except OSError as exc:
            LOGGER.error("Error saving API usage stats: %s", exc)

    def track(self, category: str, count: int = 1) -> UsageStats:
        if category not in self.pricing:
            raise ValueError(f"Unknown API category: {category}")
        # Read right before writing so a month rollover is never overwritten
        # by stale counters.
        stats = self.stats()
        usage = stats.category(category)
        price = float(self.pricing[category].get("per_request", 0.0))
        usage.count += count
        usage.last_used_ms = self.clock().timestamp() * 1000.0
        usage.total_cost += count * price
        self._save(stats)

        free_tier = int(self.pricing[category].get("free_tier", 0))
        if free_tier > 0 and usage.count > free_tier * self.warning_ratio:
            LOGGER.warning(
                "API usage warning: %s at %d/%d (%d%%)",
                category,
                usage.count,
                free_tier,
                round(usage.count / free_tier * 100),
            )
        return stats

    def total_cost(self) -> float:
        return sum(usage.total_cost for usage in self.stats().categories.values())

    def within_free_tier(self) -> bool:
        stats = self.stats()
        for category in FREE_TIER_CATEGORIES:
            if category not in self.pricing:
                continue
            limit = int(self.pricing[category].get("free_tier", 0))
            if stats.category(category).count >= limit:
                return False
        return True

    def reset(self) -> None:
        self._save(self._empty())


__all__ = [
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "UsageGovernor",
    "month_key",
]
