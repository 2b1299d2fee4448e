"""Routing-service map matching (client, window planning, orchestration)."""

from .batching import BatchWindow, merge_contribution, plan_windows  # noqa: F401
from .client import MapMatchingClient  # noqa: F401
from .orchestrator import MapMatchingOrchestrator  # noqa: F401
from .session import create_default_session, get_default_session  # noqa: F401
