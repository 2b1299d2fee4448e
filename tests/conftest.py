"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable trajectory, sample and
fake-transport fixtures shared by the pipeline and map-matching tests.
"""
from __future__ import annotations

import math
import os
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from run_tracker.config import EARTH_RADIUS_M
from run_tracker.models import RawSample
from run_tracker.usage import InMemoryKeyValueStore


# --- Factory helpers -------------------------------------------------
def metres_to_degrees(metres: float) -> float:
    """Longitude degrees covering ``metres`` along the equator."""
    return metres / (EARTH_RADIUS_M * math.pi / 180.0)


def equator_track(count: int, spacing_m: float = 10.0) -> List[tuple[float, float]]:
    step = metres_to_degrees(spacing_m)
    return [(i * step, 0.0) for i in range(count)]


def make_sample(
    lat: float = 0.0,
    lng: float = 0.0,
    *,
    accuracy: float = 5.0,
    t_ms: float = 0.0,
    speed: Optional[float] = 3.0,
    altitude: Optional[float] = None,
) -> RawSample:
    return RawSample(
        latitude=lat,
        longitude=lng,
        accuracy_m=accuracy,
        timestamp_ms=t_ms,
        altitude=altitude,
        speed_mps=speed,
    )


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        text: str = "",
        url: str = "https://example.test",
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.url = url

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    """Records GET calls and replays queued responses."""

    def __init__(self, *responses: FakeResponse) -> None:
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, params: Any = None, timeout: Any = None) -> FakeResponse:
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        return self.responses.pop(0)


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def fixed_clock():
    moment = {"now": datetime(2025, 3, 15, 12, 0, 0)}

    def _clock() -> datetime:
        return moment["now"]

    _clock.moment = moment  # type: ignore[attr-defined]
    return _clock
