"""Run session: the live per-sample pipeline and the end-of-run record.

Each incoming sample is handled synchronously: validate, classify motion,
filter, then append to the trajectory and update the running totals. The
session owns the trajectory exclusively; the map-matching pass replaces it
wholesale once, after the run has stopped.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from enum import Enum
import logging
import time
from typing import Any, Callable, List, Optional

from .activity_state import ActivityClassifier, AutoPauseSignal
from .elevation import ElevationAggregator
from .errors import classify_source_error
from .events import (
    Announcer,
    MilestoneTracker,
    RunEvent,
    RunPaused,
    RunResumed,
    RunStarted,
    RunStopped,
)
from .geo import DistanceAccumulator
from .kalman import AdaptivePositionFilter
from .models import FilteredPoint, LngLat, MatchedRoute, RawSample, RunSummary, Split
from .splits import compute_splits, pace_min_per_km
from .validation import SampleValidator

LOGGER = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.time() * 1000.0


class SessionStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class RunSession:
    def __init__(
        self,
        announcer: Optional[Announcer] = None,
        *,
        validator: Optional[SampleValidator] = None,
        position_filter: Optional[AdaptivePositionFilter] = None,
        classifier: Optional[ActivityClassifier] = None,
        milestones: Optional[MilestoneTracker] = None,
        auto_pause: bool = True,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self.announcer = announcer
        self.validator = validator or SampleValidator()
        self.filter = position_filter or AdaptivePositionFilter()
        self.classifier = classifier or ActivityClassifier()
        self.milestones = milestones or MilestoneTracker()
        self.auto_pause = auto_pause
        self.clock = clock
        self.elevation = ElevationAggregator()
        self.distance = DistanceAccumulator()
        self._generation = 0
        self._orchestrator: Any = None
        self._clear()

    def _clear(self) -> None:
        self.status = SessionStatus.IDLE
        self.trajectory: List[LngLat] = []
        self.splits: List[Split] = []
        self.route_matched = False
        self.start_ms: Optional[float] = None
        self.end_ms: Optional[float] = None
        self.max_speed_mps = 0.0
        self._last_accepted: Optional[RawSample] = None
        self._paused_since_ms: Optional[float] = None
        self._paused_automatically = False
        self._paused_total_ms = 0.0
        self.validator.reset()
        self.filter.reset()
        self.classifier.reset()
        self.milestones.reset()
        self.elevation.reset()
        self.distance.reset()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        return self.status is SessionStatus.RUNNING

    @property
    def is_paused(self) -> bool:
        return self._paused_since_ms is not None

    @property
    def distance_m(self) -> float:
        return self.distance.total_m

    def _emit(self, event: RunEvent) -> None:
        if self.announcer is not None:
            self.announcer.announce(event)

    def start(self, now_ms: Optional[float] = None) -> None:
        self.reset()
        now = self.clock() if now_ms is None else now_ms
        self.status = SessionStatus.RUNNING
        self.start_ms = now
        LOGGER.info("Run started")
        self._emit(RunStarted(timestamp_ms=now))

    def pause(self, now_ms: Optional[float] = None, *, automatic: bool = False) -> None:
        if not self.is_running:
            return
        if self.is_paused:
            if not automatic:
                # A manual pause outranks an automatic one.
                self._paused_automatically = False
            return
        now = self.clock() if now_ms is None else now_ms
        self._paused_since_ms = now
        self._paused_automatically = automatic
        LOGGER.info("Run paused (automatic=%s)", automatic)
        self._emit(RunPaused(timestamp_ms=now, automatic=automatic))

    def resume(
        self, now_ms: Optional[float] = None, *, automatic: bool = False
    ) -> None:
        if not self.is_running or self._paused_since_ms is None:
            return
        if automatic and not self._paused_automatically:
            return
        now = self.clock() if now_ms is None else now_ms
        self._paused_total_ms += max(0.0, now - self._paused_since_ms)
        self._paused_since_ms = None
        self._paused_automatically = False
        LOGGER.info("Run resumed (automatic=%s)", automatic)
        self._emit(RunResumed(timestamp_ms=now, automatic=automatic))

    def elapsed_s(self, now_ms: Optional[float] = None) -> float:
        """Active time in seconds, excluding paused intervals."""

        if self.start_ms is None:
            return 0.0
        if now_ms is None:
            now_ms = self.end_ms if self.end_ms is not None else self.clock()
        paused = self._paused_total_ms
        if self._paused_since_ms is not None:
            paused += max(0.0, now_ms - self._paused_since_ms)
        return max(0.0, (now_ms - self.start_ms - paused) / 1000.0)

    def stop(self, now_ms: Optional[float] = None) -> RunSummary:
        if self.status is not SessionStatus.RUNNING:
            raise RuntimeError("Cannot stop a run that is not in progress")
        now = self.clock() if now_ms is None else now_ms
        if self._paused_since_ms is not None:
            self._paused_total_ms += max(0.0, now - self._paused_since_ms)
            self._paused_since_ms = None
        self.status = SessionStatus.STOPPED
        self.end_ms = now
        self.filter.reset()
        self._recompute_splits()
        elapsed = self.elapsed_s(now)
        LOGGER.info(
            "Run stopped: %.0fm in %.0fs, %d splits, rejections=%s",
            self.distance_m,
            elapsed,
            len(self.splits),
            dict(self.validator.rejections),
        )
        self._emit(RunStopped(distance_km=self.distance_m / 1000.0, elapsed_s=elapsed))
        return self.summary()

    def reset(self) -> None:
        """Discard the run; any pending map-matching result will be ignored."""

        self._generation += 1
        if self._orchestrator is not None:
            self._orchestrator.cancel()
            self._orchestrator = None
        self._clear()

    # ------------------------------------------------------------------
    # Live pipeline
    # ------------------------------------------------------------------
    def handle_sample(self, sample: RawSample) -> Optional[FilteredPoint]:
        """Run one raw sample through the pipeline.

        Returns the filtered point appended to the trajectory, or None when
        the sample was rejected, out of order, or the run is paused/stopped.
        """

        if not self.is_running:
            return None
        last = self._last_accepted
        if last is not None and sample.timestamp_ms < last.timestamp_ms:
            LOGGER.debug(
                "Dropping out-of-order sample %s < %s",
                sample.timestamp_ms,
                last.timestamp_ms,
            )
            return None
        verdict = self.validator.validate(sample, last)
        if not verdict.accepted:
            return None
        self._last_accepted = sample

        if sample.speed_mps is not None and sample.speed_mps > self.max_speed_mps:
            self.max_speed_mps = sample.speed_mps

        signal = self.classifier.update(sample.speed_mps, sample.timestamp_ms)
        if self.auto_pause and signal is AutoPauseSignal.PAUSE:
            self.pause(sample.timestamp_ms, automatic=True)
        elif self.auto_pause and signal is AutoPauseSignal.RESUME:
            self.resume(sample.timestamp_ms, automatic=True)

        lat, lng = self.filter.process(
            sample.latitude, sample.longitude, sample.accuracy_m, sample.timestamp_ms
        )
        if self.is_paused:
            return None

        point = FilteredPoint(lat, lng, sample.timestamp_ms)
        self.trajectory.append(point.lnglat)
        self.distance.add(point)
        self.elevation.add(sample.altitude)

        milestone = self.milestones.check(
            self.distance_m / 1000.0, self.elapsed_s(sample.timestamp_ms)
        )
        if milestone is not None:
            self._emit(milestone)
        return point

    def handle_source_error(self, code: Optional[int], message: Optional[str] = None):
        """Surface a sample-source failure to the caller as a typed error."""

        error = classify_source_error(code, message)
        LOGGER.error("Sample source error (%s): %s", code, error)
        raise error

    # ------------------------------------------------------------------
    # End of run
    # ------------------------------------------------------------------
    def _recompute_splits(self) -> None:
        if self.start_ms is None or self.end_ms is None:
            self.splits = []
            return
        self.splits = compute_splits(self.trajectory, self.start_ms, self.end_ms)

    def summary(self) -> RunSummary:
        if self.start_ms is None:
            raise RuntimeError("No run has been started")
        duration = self.elapsed_s()
        distance = self.distance_m
        elevation = self.elevation.stats()
        return RunSummary(
            start_timestamp_ms=self.start_ms,
            date=datetime.fromtimestamp(self.start_ms / 1000.0).strftime(
                "%Y-%m-%d %H:%M:%S"
            ),
            duration_s=duration,
            distance_m=distance,
            coordinates=list(self.trajectory),
            elevation_gain_m=elevation.gain_m,
            elevation_loss_m=elevation.loss_m,
            average_pace_min_per_km=pace_min_per_km(duration, distance),
            average_speed_kmh=(
                (distance / 1000.0) / (duration / 3600.0) if duration > 0 else 0.0
            ),
            max_speed_kmh=self.max_speed_mps * 3.6,
            splits=[replace(split) for split in self.splits],
            route_matched=self.route_matched,
        )

    async def apply_map_matching(self, orchestrator: Any) -> Optional[MatchedRoute]:
        """Snap the finished trajectory onto real paths.

        The trajectory is replaced only when a usable result arrives while the
        same run is still loaded.
        """

        if self.status is not SessionStatus.STOPPED:
            raise RuntimeError("Map matching runs only after the run has stopped")
        generation = self._generation
        self._orchestrator = orchestrator
        try:
            result = await orchestrator.match_route(list(self.trajectory))
        finally:
            if self._orchestrator is orchestrator:
                self._orchestrator = None
        if generation != self._generation:
            LOGGER.info("Discarding map matching result for a reset run")
            return None
        if result is None or not result.coordinates:
            LOGGER.warning("Map matching produced no route; keeping original")
            return None
        self.trajectory = list(result.coordinates)
        self.distance.override(result.distance_m)
        self.route_matched = True
        self._recompute_splits()
        LOGGER.info(
            "Trajectory replaced by matched route (%d coords, confidence %.2f)",
            len(self.trajectory),
            result.confidence,
        )
        return result


__all__ = ["RunSession", "SessionStatus"]
