"""
Tracking policy: the tunable numbers behind estimates and overrides.

Kept as a plain dataclass with no imports from features so every
calculator can take one without circular dependencies.
"""

from dataclasses import dataclass

from .constants import (
    DEFAULT_APPROACH_THRESHOLD_KM,
    DEFAULT_ESTIMATE_GRACE_MINUTES,
    DEFAULT_NEXT_CONTROL_CAP_RATIO,
    DEFAULT_RECENT_LIMIT,
    DEFAULT_RECENT_WINDOW_MINUTES,
    DEFAULT_SPEED_KMH,
    STALL_THRESHOLD_MINUTES,
)


@dataclass(frozen=True)
class TrackingPolicy:
    """Thresholds and defaults used by the tracking engine."""
    stall_threshold_minutes: int = STALL_THRESHOLD_MINUTES
    estimate_grace_minutes: int = DEFAULT_ESTIMATE_GRACE_MINUTES
    default_speed_kmh: float = DEFAULT_SPEED_KMH
    next_control_cap_ratio: float = DEFAULT_NEXT_CONTROL_CAP_RATIO
    approach_threshold_km: float = DEFAULT_APPROACH_THRESHOLD_KM
    recent_window_minutes: int = DEFAULT_RECENT_WINDOW_MINUTES
    recent_limit: int = DEFAULT_RECENT_LIMIT

    @classmethod
    def from_settings(cls, settings) -> "TrackingPolicy":
        return cls(
            stall_threshold_minutes=settings.stall_threshold_minutes,
            estimate_grace_minutes=settings.estimate_grace_minutes,
            default_speed_kmh=settings.default_speed_kmh,
            next_control_cap_ratio=settings.next_control_cap_ratio,
            approach_threshold_km=settings.approach_threshold_km,
            recent_window_minutes=settings.recent_window_minutes,
            recent_limit=settings.recent_limit,
        )
