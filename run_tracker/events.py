"""Announcer events emitted by a run session.

Events are plain values; wording, language and speech belong to the
announcer implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import List, Optional, Protocol, Union

from .config import MILESTONE_INTERVAL_KM

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunStarted:
    timestamp_ms: float


@dataclass(frozen=True, slots=True)
class RunPaused:
    timestamp_ms: float
    automatic: bool = False


@dataclass(frozen=True, slots=True)
class RunResumed:
    timestamp_ms: float
    automatic: bool = False


@dataclass(frozen=True, slots=True)
class RunStopped:
    distance_km: float
    elapsed_s: float


@dataclass(frozen=True, slots=True)
class DistanceMilestone:
    distance_km: float
    pace_min_per_km: float
    elapsed_s: float


RunEvent = Union[RunStarted, RunPaused, RunResumed, RunStopped, DistanceMilestone]


class Announcer(Protocol):
    def announce(self, event: RunEvent) -> None: ...


class RecordingAnnouncer:
    """Collects events in memory (tests, CLI replay)."""

    def __init__(self) -> None:
        self.events: List[RunEvent] = []

    def announce(self, event: RunEvent) -> None:
        self.events.append(event)

    def of_type(self, kind: type) -> List[RunEvent]:
        return [event for event in self.events if isinstance(event, kind)]


class MilestoneTracker:
    """Emit a milestone only when the floored distance multiple increases."""

    def __init__(self, interval_km: float = MILESTONE_INTERVAL_KM) -> None:
        if interval_km <= 0:
            raise ValueError("interval_km must be positive")
        self.interval_km = interval_km
        self.last_announced_km = 0.0

    def check(
        self, distance_km: float, elapsed_s: float
    ) -> Optional[DistanceMilestone]:
        milestone = math.floor(distance_km / self.interval_km) * self.interval_km
        if milestone <= 0 or milestone <= self.last_announced_km:
            return None
        self.last_announced_km = milestone
        pace = (elapsed_s / 60.0) / distance_km if distance_km > 0 else 0.0
        LOGGER.info("Distance milestone %.2f km", milestone)
        return DistanceMilestone(
            distance_km=milestone, pace_min_per_km=pace, elapsed_s=elapsed_s
        )

    def reset(self) -> None:
        self.last_announced_km = 0.0


__all__ = [
    "Announcer",
    "DistanceMilestone",
    "MilestoneTracker",
    "RecordingAnnouncer",
    "RunEvent",
    "RunPaused",
    "RunResumed",
    "RunStarted",
    "RunStopped",
]
