"""Debounced motion-state classification used for auto-pause."""

from __future__ import annotations

from enum import Enum
import logging
from typing import Optional

from .config import (
    ACTIVITY_MIN_DURATION_MS,
    ACTIVITY_RUNNING_THRESHOLD_MPS,
    ACTIVITY_STATIONARY_THRESHOLD_MPS,
)
from .models import ActivityState

LOGGER = logging.getLogger(__name__)


class AutoPauseSignal(str, Enum):
    PAUSE = "pause"
    RESUME = "resume"


class ActivityClassifier:
    """Three-state classifier with a debounce window.

    A candidate state that differs from the confirmed one must persist for
    ``min_duration_ms`` before it is confirmed. Any change of candidate in
    the meantime restarts the window, so speed noise around a threshold
    never flips the confirmed state.
    """

    def __init__(
        self,
        stationary_threshold: float = ACTIVITY_STATIONARY_THRESHOLD_MPS,
        running_threshold: float = ACTIVITY_RUNNING_THRESHOLD_MPS,
        min_duration_ms: float = ACTIVITY_MIN_DURATION_MS,
    ) -> None:
        if running_threshold < stationary_threshold:
            raise ValueError("running_threshold must be >= stationary_threshold")
        self.stationary_threshold = stationary_threshold
        self.running_threshold = running_threshold
        self.min_duration_ms = min_duration_ms
        # Starts unconfirmed: a stationary start still has to be debounced.
        self.state = ActivityState.STATIONARY
        self._candidate: Optional[ActivityState] = None
        self._candidate_since_ms = 0.0
        self.confirmed = False

    @property
    def is_paused(self) -> bool:
        return self.confirmed and self.state is ActivityState.STATIONARY

    @property
    def is_moving(self) -> bool:
        return self.state is not ActivityState.STATIONARY

    def classify(self, speed_mps: float) -> ActivityState:
        if speed_mps >= self.running_threshold:
            return ActivityState.RUNNING
        if speed_mps >= self.stationary_threshold:
            return ActivityState.WALKING
        return ActivityState.STATIONARY

    def update(
        self, speed_mps: Optional[float], now_ms: float
    ) -> Optional[AutoPauseSignal]:
        """Feed one speed reading; return a signal on a confirmed transition."""

        if speed_mps is None:
            return None
        candidate = self.classify(speed_mps)

        if candidate is self.state and self.confirmed:
            self._candidate = None
            return None

        if candidate is not self._candidate:
            self._candidate = candidate
            self._candidate_since_ms = now_ms
            return None

        if now_ms - self._candidate_since_ms < self.min_duration_ms:
            return None

        previous = self.state
        self.state = candidate
        self.confirmed = True
        self._candidate = None
        LOGGER.info("Activity state %s -> %s", previous.value, candidate.value)
        if candidate is ActivityState.STATIONARY:
            return AutoPauseSignal.PAUSE
        return AutoPauseSignal.RESUME

    def reset(self) -> None:
        self.state = ActivityState.STATIONARY
        self.confirmed = False
        self._candidate = None
        self._candidate_since_ms = 0.0


__all__ = ["ActivityClassifier", "AutoPauseSignal"]
