"""Batched, rate-limited map matching for trajectories of any length.

Windows are sent strictly one after another with a fixed pause between
requests, which keeps the call rate predictable and below the service cap.
A failed window degrades locally: its original coordinates are slotted into
the merged route and the overall confidence drops accordingly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence

import requests

from ..config import (
    MAP_MATCHING_BATCH_SIZE,
    MAP_MATCHING_MAX_COORDINATES,
    MAP_MATCHING_OVERLAP,
    MAP_MATCHING_RADIUS_M,
    MAP_MATCHING_REQUEST_DELAY_S,
)
from ..errors import MapMatchingError
from ..geo import segment_lengths_m
from ..models import LngLat, MatchedRoute
from .batching import merge_contribution, plan_windows, window_coordinates

LOGGER = logging.getLogger(__name__)

USAGE_CATEGORY = "map_matching"

SleepFunc = Callable[[float], Awaitable[Any]]

# Per-window failures that fall back to the original coordinates.
_RECOVERABLE_ERRORS = (MapMatchingError, requests.RequestException, ValueError)


class MapMatchingOrchestrator:
    """Drive a :class:`MapMatchingClient` over an arbitrarily long trajectory.

    ``governor`` (optional) is told about every successful remote call.
    ``sleep`` is injectable so tests can observe the pacing without waiting.
    """

    def __init__(
        self,
        client: Any,
        governor: Any = None,
        *,
        batch_size: int = MAP_MATCHING_BATCH_SIZE,
        overlap: int = MAP_MATCHING_OVERLAP,
        delay_s: float = MAP_MATCHING_REQUEST_DELAY_S,
        radius_m: float = MAP_MATCHING_RADIUS_M,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.client = client
        self.governor = governor
        self.batch_size = batch_size
        self.overlap = overlap
        self.delay_s = delay_s
        self.radius_m = radius_m
        self._sleep = sleep
        self._cancelled = False
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def cancel(self) -> None:
        """Stop before the next window; an in-flight request still completes."""
        self._cancelled = True

    async def match_route(
        self, coordinates: Sequence[LngLat]
    ) -> Optional[MatchedRoute]:
        """Return the reconciled route, or None when nothing usable came back."""

        if self._running:
            raise RuntimeError("Map matching already in progress for this route")
        if len(coordinates) < 2:
            LOGGER.warning("Map matching requires at least 2 coordinates")
            return None
        self._running = True
        self._cancelled = False
        try:
            if len(coordinates) <= MAP_MATCHING_MAX_COORDINATES:
                LOGGER.info(
                    "Small route (%d coords) - single request", len(coordinates)
                )
                return await self._match_single(coordinates)
            return await self._match_batched(coordinates)
        finally:
            self._running = False

    async def _call(self, coords: List[LngLat]) -> MatchedRoute:
        radiuses = [self.radius_m] * len(coords)
        return await asyncio.to_thread(self.client.match, coords, radiuses)

    def _track_usage(self) -> None:
        if self.governor is None:
            return
        # Metering is advisory and must never fail a match.
        try:
            self.governor.track(USAGE_CATEGORY, 1)
        except (OSError, ValueError) as exc:
            LOGGER.warning("Usage tracking failed: %s", exc)

    async def _match_single(
        self, coordinates: Sequence[LngLat]
    ) -> Optional[MatchedRoute]:
        try:
            result = await self._call(list(coordinates))
        except _RECOVERABLE_ERRORS as exc:
            LOGGER.warning("Map matching failed; keeping original route: %s", exc)
            return None
        self._track_usage()
        if not result.coordinates:
            LOGGER.warning("Map matching returned an empty geometry")
            return None
        return result

    async def _match_batched(
        self, coordinates: Sequence[LngLat]
    ) -> Optional[MatchedRoute]:
        windows = plan_windows(len(coordinates), self.batch_size, self.overlap)
        LOGGER.info(
            "Large route (%d coords) - %d windows with %d point overlap",
            len(coordinates),
            len(windows),
            self.overlap,
        )
        merged: List[LngLat] = []
        total_distance = 0.0
        total_duration = 0.0
        failed: List[int] = []

        for window in windows:
            if self._cancelled:
                LOGGER.info(
                    "Map matching cancelled before window %d/%d",
                    window.index + 1,
                    len(windows),
                )
                return None
            original = window_coordinates(coordinates, window)
            LOGGER.info(
                "Processing window %d/%d: coords %d-%d (%d points)",
                window.index + 1,
                len(windows),
                window.start,
                window.end,
                window.size,
            )
            matched: Optional[MatchedRoute] = None
            try:
                matched = await self._call(original)
            except _RECOVERABLE_ERRORS as exc:
                LOGGER.warning(
                    "Window %d failed (%s) - using original coords",
                    window.index + 1,
                    exc,
                )
            else:
                self._track_usage()

            if matched is not None and matched.coordinates:
                merged.extend(merge_contribution(window, matched.coordinates))
                total_distance += matched.distance_m
                total_duration += matched.duration_s
                LOGGER.info(
                    "Window %d matched: %d coords, %.0fm, confidence %.2f",
                    window.index + 1,
                    len(matched.coordinates),
                    matched.distance_m,
                    matched.confidence,
                )
            else:
                if matched is not None:
                    LOGGER.warning(
                        "Window %d returned no geometry - using original coords",
                        window.index + 1,
                    )
                failed.append(window.index)
                merged.extend(merge_contribution(window, original))
                total_distance += float(segment_lengths_m(original).sum())

            if window.index < len(windows) - 1:
                await self._sleep(self.delay_s)

        confidence = 1.0 - len(failed) / len(windows)
        LOGGER.info(
            "Map matching complete: %d windows, %d failed, %d coords, %.0fm",
            len(windows),
            len(failed),
            len(merged),
            total_distance,
        )
        return MatchedRoute(
            coordinates=merged,
            distance_m=total_distance,
            duration_s=total_duration,
            confidence=confidence,
            diagnostics={
                "windows": len(windows),
                "failed_windows": failed,
            },
        )


__all__ = ["MapMatchingOrchestrator", "USAGE_CATEGORY"]
