"""Tests for the routing-service HTTP session factory."""

from __future__ import annotations

from run_tracker.map_matching import create_default_session, get_default_session
from run_tracker.map_matching.client import MapMatchingClient


def test_session_mounts_retrying_adapter() -> None:
    session = create_default_session(max_retries=2)
    adapter = session.get_adapter("https://api.mapbox.com/")
    assert adapter.max_retries.total == 2
    assert "GET" in adapter.max_retries.allowed_methods
    assert session.headers["Accept"] == "application/json"


def test_negative_retries_clamped() -> None:
    adapter = create_default_session(max_retries=-3).get_adapter("https://x.test/")
    assert adapter.max_retries.total == 0


def test_default_session_is_shared() -> None:
    assert get_default_session() is get_default_session()
    assert MapMatchingClient("tok").session is get_default_session()
