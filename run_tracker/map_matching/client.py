"""Single-request client for the map-matching routing service."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests
from polyline import decode as polyline_decode

from ..config import (
    MAP_MATCHING_MAX_COORDINATES,
    MAP_MATCHING_PROFILE,
    MAP_MATCHING_RADIUS_M,
    MAPBOX_ACCESS_TOKEN,
    MAPBOX_MATCHING_URL,
    REQUEST_TIMEOUT,
)
from ..errors import (
    MapMatchingAuthError,
    MapMatchingInputError,
    MapMatchingNoMatchError,
    MapMatchingResponseError,
)
from ..models import LngLat, MatchedRoute
from .response_handling import classify_response_status, parse_json
from .session import get_default_session

LOGGER = logging.getLogger(__name__)

_CONTEXT = "Map matching"


class MapMatchingClient:
    """Snap at most ``MAP_MATCHING_MAX_COORDINATES`` points in one call.

    Raises a :class:`~run_tracker.errors.MapMatchingError` subclass on any
    failure; transport exceptions from ``requests`` propagate unchanged.
    """

    def __init__(
        self,
        access_token: str = MAPBOX_ACCESS_TOKEN,
        *,
        session: Any = None,
        base_url: str = MAPBOX_MATCHING_URL,
        profile: str = MAP_MATCHING_PROFILE,
        geometries: str = "geojson",
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.access_token = access_token
        self._session = session
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.geometries = geometries
        self.timeout = timeout

    @property
    def session(self) -> Any:
        if self._session is None:
            self._session = get_default_session()
        return self._session

    def build_request(
        self,
        coordinates: Sequence[LngLat],
        radiuses: Optional[Sequence[float]] = None,
        timestamps: Optional[Sequence[int]] = None,
    ) -> tuple[str, Dict[str, str]]:
        """Return ``(url, params)`` for one matching request."""

        coords = ";".join(f"{lng},{lat}" for lng, lat in coordinates)
        if radiuses is None:
            radiuses = [MAP_MATCHING_RADIUS_M] * len(coordinates)
        params = {
            "geometries": self.geometries,
            "radiuses": ";".join(_fmt_number(r) for r in radiuses),
            "steps": "false",
            "overview": "full",
            "access_token": self.access_token,
        }
        if timestamps is not None and len(timestamps) == len(coordinates):
            params["timestamps"] = ";".join(str(int(t)) for t in timestamps)
        return f"{self.base_url}/{self.profile}/{coords}", params

    def match(
        self,
        coordinates: Sequence[LngLat],
        radiuses: Optional[Sequence[float]] = None,
        timestamps: Optional[Sequence[int]] = None,
    ) -> MatchedRoute:
        if len(coordinates) < 2:
            raise MapMatchingInputError("Map matching requires at least 2 coordinates")
        if len(coordinates) > MAP_MATCHING_MAX_COORDINATES:
            raise MapMatchingInputError(
                f"Map matching accepts at most {MAP_MATCHING_MAX_COORDINATES} "
                f"coordinates per request (got {len(coordinates)})"
            )
        if radiuses is not None and len(radiuses) != len(coordinates):
            raise MapMatchingInputError("radiuses must match the coordinate count")
        if not self.access_token:
            raise MapMatchingAuthError("No map matching access token configured")

        url, params = self.build_request(coordinates, radiuses, timestamps)
        LOGGER.debug(
            "GET %s/%s (%d coordinates)", self.base_url, self.profile, len(coordinates)
        )
        response: requests.Response = self.session.get(
            url, params=params, timeout=self.timeout
        )
        error = classify_response_status(response, _CONTEXT)
        if error is not None:
            raise error
        return self._parse(parse_json(response, _CONTEXT))

    def _parse(self, data: Dict[str, Any]) -> MatchedRoute:
        code = data.get("code")
        if code is not None and code != "Ok":
            raise MapMatchingNoMatchError(f"{_CONTEXT} returned code {code}")
        matchings = data.get("matchings")
        if not matchings:
            raise MapMatchingNoMatchError(f"{_CONTEXT} found no matching")
        matching = matchings[0]
        if not isinstance(matching, dict):
            raise MapMatchingResponseError(f"{_CONTEXT} returned a malformed matching")
        coordinates = self._decode_geometry(matching.get("geometry"))
        try:
            distance = float(matching.get("distance") or 0.0)
            duration = float(matching.get("duration") or 0.0)
            confidence = float(matching.get("confidence") or 0.0)
        except (TypeError, ValueError) as exc:
            raise MapMatchingResponseError(
                f"{_CONTEXT} returned non-numeric route metrics"
            ) from exc
        return MatchedRoute(
            coordinates=coordinates,
            distance_m=distance,
            duration_s=duration,
            confidence=confidence,
        )

    def _decode_geometry(self, geometry: Any) -> List[LngLat]:
        if isinstance(geometry, str):
            precision = 6 if self.geometries == "polyline6" else 5
            try:
                decoded = polyline_decode(geometry, precision)
            except (ValueError, TypeError, IndexError) as exc:
                raise MapMatchingResponseError(
                    f"{_CONTEXT} returned an undecodable polyline"
                ) from exc
            return [(float(lng), float(lat)) for lat, lng in decoded]
        if isinstance(geometry, dict):
            raw = geometry.get("coordinates")
            if isinstance(raw, list):
                try:
                    return [(float(pair[0]), float(pair[1])) for pair in raw]
                except (TypeError, ValueError, IndexError) as exc:
                    raise MapMatchingResponseError(
                        f"{_CONTEXT} returned malformed coordinates"
                    ) from exc
        raise MapMatchingResponseError(f"{_CONTEXT} returned no geometry")


def _fmt_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


__all__ = ["MapMatchingClient"]
