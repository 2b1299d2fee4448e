"""Raw sample validation.

Every check runs before the positional filter so that a single bad reading
can never pull the filtered estimate away from the true track. Checks run in
a fixed order and stop at the first failure:

1. coordinate bounds
2. reported speed sanity
3. implied speed against the last accepted sample (teleport detection)
4. accuracy radius
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Optional

from .config import (
    MAX_ACCURACY_M,
    MAX_IMPLIED_SPEED_MPS,
    MAX_REPORTED_SPEED_MPS,
    MIN_JUMP_CHECK_INTERVAL_S,
)
from .geo import haversine_m
from .models import RawSample

LOGGER = logging.getLogger(__name__)


class RejectReason(str, Enum):
    OUT_OF_BOUNDS = "out_of_bounds"
    UNREALISTIC_SPEED = "unrealistic_speed"
    POSITION_JUMP = "position_jump"
    POOR_ACCURACY = "poor_accuracy"


@dataclass(frozen=True, slots=True)
class Verdict:
    accepted: bool
    reason: Optional[RejectReason] = None

    @classmethod
    def accept(cls) -> "Verdict":
        return cls(True)

    @classmethod
    def reject(cls, reason: RejectReason) -> "Verdict":
        return cls(False, reason)


class SampleValidator:
    """Stateless verdicts plus per-reason rejection counters for diagnostics."""

    def __init__(
        self,
        max_speed_mps: float = MAX_REPORTED_SPEED_MPS,
        max_implied_speed_mps: float = MAX_IMPLIED_SPEED_MPS,
        max_accuracy_m: float = MAX_ACCURACY_M,
    ) -> None:
        self.max_speed_mps = max_speed_mps
        self.max_implied_speed_mps = max_implied_speed_mps
        self.max_accuracy_m = max_accuracy_m
        self.rejections: Counter[RejectReason] = Counter()

    def validate(
        self, sample: RawSample, last_accepted: Optional[RawSample]
    ) -> Verdict:
        verdict = self._check(sample, last_accepted)
        if verdict.reason is not None:
            self.rejections[verdict.reason] += 1
        return verdict

    def _check(
        self, sample: RawSample, last_accepted: Optional[RawSample]
    ) -> Verdict:
        lat, lng = sample.latitude, sample.longitude
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
            LOGGER.error("Invalid coordinates lat=%s lng=%s; rejected", lat, lng)
            return Verdict.reject(RejectReason.OUT_OF_BOUNDS)

        speed = sample.speed_mps or 0.0
        if speed > self.max_speed_mps:
            LOGGER.warning(
                "Unrealistic speed %.1f m/s (%.1f km/h); rejected",
                speed,
                speed * 3.6,
            )
            return Verdict.reject(RejectReason.UNREALISTIC_SPEED)

        if last_accepted is not None and sample.timestamp_ms > 0:
            elapsed_s = (sample.timestamp_ms - last_accepted.timestamp_ms) / 1000.0
            if elapsed_s > MIN_JUMP_CHECK_INTERVAL_S:
                distance = haversine_m(
                    last_accepted.latitude, last_accepted.longitude, lat, lng
                )
                implied = distance / elapsed_s
                if implied > self.max_implied_speed_mps:
                    LOGGER.warning(
                        "Position jump %.0fm in %.1fs (%.1f m/s); rejected",
                        distance,
                        elapsed_s,
                        implied,
                    )
                    return Verdict.reject(RejectReason.POSITION_JUMP)

        if sample.accuracy_m > self.max_accuracy_m:
            LOGGER.warning("Poor accuracy %.1fm; rejected", sample.accuracy_m)
            return Verdict.reject(RejectReason.POOR_ACCURACY)

        return Verdict.accept()

    def reset(self) -> None:
        self.rejections.clear()


_DEFAULT_VALIDATOR = SampleValidator()


def validate(sample: RawSample, last_accepted: Optional[RawSample]) -> Verdict:
    """Validate ``sample`` with the default thresholds."""

    return _DEFAULT_VALIDATOR.validate(sample, last_accepted)


__all__ = ["RejectReason", "SampleValidator", "Verdict", "validate"]
