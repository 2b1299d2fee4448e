"""Shared HTTP response helpers for routing-service interactions."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type

import requests

from ..errors import (
    MapMatchingAuthError,
    MapMatchingError,
    MapMatchingInputError,
    MapMatchingNoMatchError,
    MapMatchingRateLimitError,
    MapMatchingResponseError,
)

RequestsJSONDecodeError: Type[Exception]
if hasattr(requests.exceptions, "JSONDecodeError"):
    RequestsJSONDecodeError = requests.exceptions.JSONDecodeError
else:  # pragma: no cover - fallback for old requests versions
    RequestsJSONDecodeError = ValueError

LOGGER = logging.getLogger(__name__)

# Matching API codes that mean "request understood, nothing to snap to".
_NO_MATCH_CODES = {"NoMatch", "NoSegment"}

__all__ = [
    "classify_response_status",
    "extract_error",
    "parse_json",
]


def classify_response_status(
    response: requests.Response, context: str
) -> Optional[MapMatchingError]:
    """Return the error matching a non-success status, or None when ok."""

    status = response.status_code
    if status < 400:
        return None
    detail = extract_error(response)

    def with_detail(message: str) -> str:
        return f"{message} | {detail}" if detail else message

    if status in (401, 403):
        message = with_detail(f"{context} rejected the access token ({status})")
        LOGGER.warning(message)
        return MapMatchingAuthError(message)

    if status == 429:
        message = with_detail(f"{context} rate limited (429)")
        LOGGER.warning(message)
        return MapMatchingRateLimitError(message)

    if 500 <= status < 600:
        message = with_detail(f"{context} server error {status}")
        LOGGER.warning(message)
        return MapMatchingResponseError(message)

    message = with_detail(f"{context} request failed (status {status})")
    LOGGER.error(message)
    if _response_code(response) in _NO_MATCH_CODES:
        return MapMatchingNoMatchError(message)
    return MapMatchingInputError(message)


def parse_json(response: requests.Response, context: str) -> Dict[str, Any]:
    """Decode a JSON object body or raise MapMatchingResponseError."""

    data = _safe_json(response)
    if not isinstance(data, dict):
        raise MapMatchingResponseError(f"{context} returned a non-object body")
    return data


def extract_error(resp: Optional[requests.Response]) -> Optional[str]:
    """Return compact string with service error info (code + message) if present."""

    if resp is None:
        return None
    data = _safe_json(resp)
    if data is None:
        return _extract_error_text(resp)
    if not isinstance(data, dict):
        return None
    parts = _collect_error_parts(data)
    return " | ".join(parts) if parts else None


def _response_code(resp: requests.Response) -> Optional[str]:
    data = _safe_json(resp)
    if isinstance(data, dict) and data.get("code"):
        return str(data["code"])
    return None


def _safe_json(resp: requests.Response) -> Optional[Any]:
    """Safely parse JSON; return None if parsing fails."""

    try:
        return resp.json()
    except (
        ValueError,
        RequestsJSONDecodeError,
    ) as exc:
        LOGGER.debug(
            "Failed to decode JSON from %s: %s", getattr(resp, "url", "?"), exc
        )
        return None


def _extract_error_text(resp: requests.Response) -> Optional[str]:
    """Best-effort plain-text extraction when JSON parsing fails."""

    text = getattr(resp, "text", "")
    if not isinstance(text, str):
        return None
    trimmed = text.strip()
    if not trimmed:
        return None
    return (trimmed[:297] + "...") if len(trimmed) > 300 else trimmed


def _collect_error_parts(data: Dict[str, Any]) -> List[str]:
    """Build error snippets from the standard matching error response."""

    parts: List[str] = []
    code = data.get("code")
    if code and code != "Ok":
        parts.append(str(code))
    message = data.get("message")
    if message:
        parts.append(str(message))
    return parts
