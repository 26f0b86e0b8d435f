"""
Event-wide constants and default tracking policy.

This module provides a single source of truth for the numbers the
tracking engine relies on. The same values are the defaults of
`lel_tracker.config.Settings`, which can override them per deployment.
"""

from enum import Enum


class RiderStatus(str, Enum):
    """
    Lifecycle status of a rider.

    Upstream feeds report one of these values; the engine may override
    a live status to DNF when the rider has stalled.
    """
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    DNF = "dnf"


class Leg(str, Enum):
    """Half of the out-and-back route."""
    NORTH = "North"
    SOUTH = "South"


# Full weekday names, Monday first (matches date.weekday()).
WEEKDAY_NAMES: list[str] = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR

# Checkpoint name the feed uses for either physical start location
START_ALIAS = "Start"

# === Tracking policy defaults ===
# A rider with no new checkpoint for this long is treated as DNF
STALL_THRESHOLD_MINUTES = 12 * MINUTES_PER_HOUR

# Riders that just checked in stay pinned to the control for this long
DEFAULT_ESTIMATE_GRACE_MINUTES = 10

# Extrapolation speed when the rider has no usable average yet
DEFAULT_SPEED_KMH = 15.0

# An estimate never covers more than this share of the gap to the next control
DEFAULT_NEXT_CONTROL_CAP_RATIO = 0.9

# Riders within this distance of an unreached control count as approaching it
DEFAULT_APPROACH_THRESHOLD_KM = 50.0

# Recent arrivals feed
DEFAULT_RECENT_WINDOW_MINUTES = MINUTES_PER_DAY
DEFAULT_RECENT_LIMIT = 25
