"""GPS run tracker: sample validation, smoothing, splits and map matching."""

from .activity_state import ActivityClassifier, AutoPauseSignal  # noqa: F401
from .elevation import ElevationAggregator, elevation_stats  # noqa: F401
from .geo import DistanceAccumulator, haversine_m  # noqa: F401
from .kalman import AdaptivePositionFilter  # noqa: F401
from .models import (  # noqa: F401
    ActivityState,
    FilteredPoint,
    MatchedRoute,
    RawSample,
    RunSummary,
    Split,
)
from .session import RunSession  # noqa: F401
from .splits import compute_splits, format_pace, split_statistics  # noqa: F401
from .usage import UsageGovernor  # noqa: F401
from .validation import SampleValidator, validate  # noqa: F401
