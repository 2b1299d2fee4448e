"""Central configuration for the GPS run tracker.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Secrets are read from environment variables (optionally
via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Geodesy
# ---------------------------------------------------------------------------
# Mean Earth radius used by every great-circle computation.
EARTH_RADIUS_M = 6_371_000.0


# ---------------------------------------------------------------------------
# Sample validation
# ---------------------------------------------------------------------------
# Reported speed above this is rejected (faster than an elite sprint).
MAX_REPORTED_SPEED_MPS = _env_float("MAX_REPORTED_SPEED_MPS", 12.0)

# Implied speed between consecutive accepted samples above this is a jump.
# Kept above MAX_REPORTED_SPEED_MPS so brief noise is tolerated.
MAX_IMPLIED_SPEED_MPS = _env_float("MAX_IMPLIED_SPEED_MPS", 15.0)

# Jump detection only runs when at least this much time elapsed (seconds).
MIN_JUMP_CHECK_INTERVAL_S = 0.1

# Samples whose accuracy radius (metres) exceeds this are dropped.
MAX_ACCURACY_M = _env_float("MAX_ACCURACY_M", 50.0)


# ---------------------------------------------------------------------------
# Positional filter
# ---------------------------------------------------------------------------
# Process variance (drift rate assumption, m^2 per second).
FILTER_PROCESS_VARIANCE = _env_float("FILTER_PROCESS_VARIANCE", 5.0)

# Accuracy floor in metres; better reported accuracy is not trusted.
FILTER_MIN_ACCURACY_M = _env_float("FILTER_MIN_ACCURACY_M", 5.0)

# Elapsed time between updates is clamped to this range (seconds).
FILTER_MIN_TIME_STEP_S = 0.1
FILTER_MAX_TIME_STEP_S = 5.0


# ---------------------------------------------------------------------------
# Splits and pace
# ---------------------------------------------------------------------------
SPLIT_DISTANCE_M = 1000.0

# A trailing partial split is only emitted above this distance (metres).
SPLIT_MIN_TRAILING_M = 100.0

# Paces outside this window (min/km) are rendered as UNKNOWN_PACE.
PACE_MIN_VALID = 2.0
PACE_MAX_VALID = 20.0
UNKNOWN_PACE = "--:--"


# ---------------------------------------------------------------------------
# Activity classification
# ---------------------------------------------------------------------------
# Below STATIONARY threshold -> stationary, below RUNNING -> walking.
ACTIVITY_STATIONARY_THRESHOLD_MPS = _env_float(
    "ACTIVITY_STATIONARY_THRESHOLD_MPS", 0.5
)
ACTIVITY_RUNNING_THRESHOLD_MPS = _env_float("ACTIVITY_RUNNING_THRESHOLD_MPS", 2.0)

# A candidate state must persist this long (ms) before it is confirmed.
ACTIVITY_MIN_DURATION_MS = _env_int("ACTIVITY_MIN_DURATION_MS", 3000)


# ---------------------------------------------------------------------------
# Announcements
# ---------------------------------------------------------------------------
# Distance milestone interval in kilometres.
MILESTONE_INTERVAL_KM = _env_float("MILESTONE_INTERVAL_KM", 1.0)


# ---------------------------------------------------------------------------
# Map matching (routing service)
# ---------------------------------------------------------------------------
MAPBOX_MATCHING_URL = os.getenv(
    "MAPBOX_MATCHING_URL", "https://api.mapbox.com/matching/v5/mapbox"
)
MAPBOX_ACCESS_TOKEN = os.getenv("MAPBOX_ACCESS_TOKEN", "")
MAP_MATCHING_PROFILE = os.getenv("MAP_MATCHING_PROFILE", "walking")

# Hard per-request ceiling imposed by the service.
MAP_MATCHING_MAX_COORDINATES = 100

# Window size leaves a margin below the ceiling for the overlap.
MAP_MATCHING_BATCH_SIZE = 90
MAP_MATCHING_OVERLAP = 10

# Per-point search radius in metres.
MAP_MATCHING_RADIUS_M = 25

# Pause between window requests (seconds); ~400 req/min against a 600/min cap.
MAP_MATCHING_REQUEST_DELAY_S = _env_float("MAP_MATCHING_REQUEST_DELAY_S", 0.15)

# HTTP session pool sizes and request timeout in seconds.
HTTP_POOL_CONNECTIONS = 4
HTTP_POOL_MAXSIZE = 4
REQUEST_TIMEOUT = _env_int("MAP_MATCHING_REQUEST_TIMEOUT", 15)

# Transport-level retries. The core itself never retries.
HTTP_MAX_RETRIES = _env_int("MAP_MATCHING_HTTP_RETRIES", 0)

# Disable to skip the correction pass entirely.
MAP_MATCHING_ENABLED = _env_bool("MAP_MATCHING_ENABLED", True)


# ---------------------------------------------------------------------------
# Paid API usage
# ---------------------------------------------------------------------------
# Per-category pricing. free_tier of 0 means there is no free allowance.
API_PRICING = {
    "map_matching": {"per_request": 0.005, "free_tier": 100_000},
    "snap_to_roads": {"per_request": 0.005, "free_tier": 100_000},
    "elevation": {"per_request": 0.005, "free_tier": 0},
}

# Categories that must stay below their free tier for within_free_tier().
FREE_TIER_CATEGORIES = ("map_matching", "snap_to_roads")

# Warn once usage crosses this fraction of the free tier.
USAGE_WARNING_RATIO = 0.8

USAGE_STORAGE_KEY = "run_tracker_api_usage"
USAGE_FILE = os.getenv("RUN_TRACKER_USAGE_FILE", ".run_tracker_usage.json")


# ---------------------------------------------------------------------------
# Workbook export
# ---------------------------------------------------------------------------
EXCEL_AUTOSIZE_COLUMNS = True
EXCEL_AUTOSIZE_MAX_WIDTH = 50  # characters
EXCEL_AUTOSIZE_MIN_WIDTH = 6  # characters
EXCEL_AUTOSIZE_PADDING = 2  # extra characters added to the detected max
EXCEL_AUTOSIZE_MAX_ROWS = (
    5000  # skip autosize for very large sheets (performance guard)
)
