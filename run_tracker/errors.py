"""Central error types used across the application."""

from __future__ import annotations


class RunTrackerError(RuntimeError):
    """Base error for the run tracker core."""


class SampleSourceError(RunTrackerError):
    """Raised when the positioning source reports a failure."""

    code: int | None = None


class SamplePermissionDeniedError(SampleSourceError):
    """Raised when the user denied access to location data."""

    code = 1


class SamplePositionUnavailableError(SampleSourceError):
    """Raised when the device cannot determine a position."""

    code = 2


class SampleTimeoutError(SampleSourceError):
    """Raised when a position request timed out."""

    code = 3


class MapMatchingError(RunTrackerError):
    """Base error for routing-service failures."""


class MapMatchingAuthError(MapMatchingError):
    """Raised when the access token is missing, invalid or lacks scopes."""


class MapMatchingRateLimitError(MapMatchingError):
    """Raised when the service answers HTTP 429."""


class MapMatchingInputError(MapMatchingError):
    """Raised when the request coordinates are rejected."""


class MapMatchingNoMatchError(MapMatchingError):
    """Raised when the service could not match the trace to any path."""


class MapMatchingResponseError(MapMatchingError):
    """Raised on server errors or malformed response bodies."""


class RunRecordError(RunTrackerError):
    """Raised when a run record violates the store contract."""


_SOURCE_ERRORS: dict[int, type[SampleSourceError]] = {
    SamplePermissionDeniedError.code: SamplePermissionDeniedError,
    SamplePositionUnavailableError.code: SamplePositionUnavailableError,
    SampleTimeoutError.code: SampleTimeoutError,
}

_SOURCE_MESSAGES: dict[int, str] = {
    1: "Location permission denied. Enable it in the device settings.",
    2: "Location unavailable. Check the device GPS.",
    3: "Timed out while acquiring location. Try again.",
}


def classify_source_error(
    code: int | None, message: str | None = None
) -> SampleSourceError:
    """Map a positioning-source error code onto the error hierarchy."""

    cls = SampleSourceError
    if code is not None:
        cls = _SOURCE_ERRORS.get(code, SampleSourceError)
    text = message or _SOURCE_MESSAGES.get(code or 0, "Failed to obtain location.")
    error = cls(text)
    if cls is SampleSourceError:
        error.code = code
    return error


__all__ = [
    "RunTrackerError",
    "SampleSourceError",
    "SamplePermissionDeniedError",
    "SamplePositionUnavailableError",
    "SampleTimeoutError",
    "MapMatchingError",
    "MapMatchingAuthError",
    "MapMatchingRateLimitError",
    "MapMatchingInputError",
    "MapMatchingNoMatchError",
    "MapMatchingResponseError",
    "RunRecordError",
    "classify_source_error",
]
