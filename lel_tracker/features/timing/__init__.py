"""
Timing module: feed timestamps and the event clock.

Usage:
    from lel_tracker.features.timing import EventClock, parse_checkpoint_timestamp
"""

from .parser import (
    format_checkpoint_time,
    parse_checkpoint_history,
    parse_checkpoint_timestamp,
)
from .clock import EventClock, current_instant, minutes_between

__all__ = [
    "parse_checkpoint_timestamp",
    "parse_checkpoint_history",
    "format_checkpoint_time",
    "EventClock",
    "current_instant",
    "minutes_between",
]
