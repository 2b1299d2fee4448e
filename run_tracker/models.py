"""Dataclasses shared by the tracking pipeline, session and store."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

LngLat = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class RawSample:
    """One positioning reading as delivered by the sample source."""

    latitude: float
    longitude: float
    accuracy_m: float
    timestamp_ms: float
    altitude: Optional[float] = None
    heading: Optional[float] = None
    speed_mps: Optional[float] = None


@dataclass(frozen=True, slots=True)
class FilteredPoint:
    """Smoothed position produced by the filter from an accepted sample."""

    latitude: float
    longitude: float
    timestamp_ms: float

    @property
    def lnglat(self) -> LngLat:
        return (self.longitude, self.latitude)


class ActivityState(str, Enum):
    STATIONARY = "stationary"
    WALKING = "walking"
    RUNNING = "running"


@dataclass(slots=True)
class Split:
    km_index: int
    distance_m: float
    duration_s: float
    pace_label: str


@dataclass(slots=True)
class SplitStats:
    best_pace: str
    worst_pace: str
    average_pace: str
    best_km: int
    worst_km: int


@dataclass(slots=True)
class ElevationStats:
    gain_m: float = 0.0
    loss_m: float = 0.0
    max_m: float = 0.0
    min_m: float = 0.0


@dataclass(slots=True)
class MatchedRoute:
    """Route snapped onto real paths by the routing service."""

    coordinates: List[LngLat]
    distance_m: float
    duration_s: float
    confidence: float
    diagnostics: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class RunSummary:
    """Aggregate record assembled when a run stops.

    ``id`` stays ``None`` until a run store assigns one.
    """

    start_timestamp_ms: float
    date: str
    duration_s: float
    distance_m: float
    coordinates: List[LngLat]
    elevation_gain_m: float
    elevation_loss_m: float
    average_pace_min_per_km: float
    average_speed_kmh: float
    max_speed_kmh: float
    splits: List[Split] = field(default_factory=list)
    route_matched: bool = False
    notes: Optional[str] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["coordinates"] = [list(pair) for pair in self.coordinates]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunSummary":
        payload = dict(data)
        payload["coordinates"] = [
            (float(lng), float(lat)) for lng, lat in payload.get("coordinates", [])
        ]
        payload["splits"] = [Split(**split) for split in payload.get("splits", [])]
        return cls(**payload)


@dataclass(slots=True)
class CategoryUsage:
    count: int = 0
    last_used_ms: Optional[float] = None
    total_cost: float = 0.0


@dataclass(slots=True)
class UsageStats:
    """Per-category counters for paid endpoints, keyed by calendar month."""

    month: str
    categories: Dict[str, CategoryUsage] = field(default_factory=dict)

    def category(self, name: str) -> CategoryUsage:
        usage = self.categories.get(name)
        if usage is None:
            usage = CategoryUsage()
            self.categories[name] = usage
        return usage

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "categories": {
                name: asdict(usage) for name, usage in self.categories.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UsageStats":
        categories = {
            str(name): CategoryUsage(
                count=int(raw.get("count", 0)),
                last_used_ms=raw.get("last_used_ms"),
                total_cost=float(raw.get("total_cost", 0.0)),
            )
            for name, raw in (data.get("categories") or {}).items()
        }
        return cls(month=str(data["month"]), categories=categories)


__all__ = [
    "ActivityState",
    "CategoryUsage",
    "ElevationStats",
    "FilteredPoint",
    "LngLat",
    "MatchedRoute",
    "RawSample",
    "RunSummary",
    "Split",
    "SplitStats",
    "UsageStats",
]
