"""
Shared utilities (NOT business logic).

Usage:
    from lel_tracker.shared import format_elapsed, RiderStatus
    from lel_tracker.shared.cache import TTLCache
"""
from .constants import (
    RiderStatus,
    Leg,
    WEEKDAY_NAMES,
    MINUTES_PER_HOUR,
    MINUTES_PER_DAY,
    START_ALIAS,
    STALL_THRESHOLD_MINUTES,
    DEFAULT_ESTIMATE_GRACE_MINUTES,
    DEFAULT_SPEED_KMH,
    DEFAULT_NEXT_CONTROL_CAP_RATIO,
    DEFAULT_APPROACH_THRESHOLD_KM,
    DEFAULT_RECENT_WINDOW_MINUTES,
    DEFAULT_RECENT_LIMIT,
)
from .formatters import (
    format_elapsed,
    format_time_ago,
    format_speed,
    format_distance_km,
)
from .cache import TTLCache
from .policy import TrackingPolicy

__all__ = [
    # constants
    "RiderStatus",
    "Leg",
    "WEEKDAY_NAMES",
    "MINUTES_PER_HOUR",
    "MINUTES_PER_DAY",
    "START_ALIAS",
    "STALL_THRESHOLD_MINUTES",
    "DEFAULT_ESTIMATE_GRACE_MINUTES",
    "DEFAULT_SPEED_KMH",
    "DEFAULT_NEXT_CONTROL_CAP_RATIO",
    "DEFAULT_APPROACH_THRESHOLD_KM",
    "DEFAULT_RECENT_WINDOW_MINUTES",
    "DEFAULT_RECENT_LIMIT",
    # formatters
    "format_elapsed",
    "format_time_ago",
    "format_speed",
    "format_distance_km",
    # cache
    "TTLCache",
    # policy
    "TrackingPolicy",
]
