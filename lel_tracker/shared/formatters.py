"""
Formatting utilities for display.

Used by the tracking reports and any presentation layer.
"""

from lel_tracker.shared.constants import MINUTES_PER_DAY, MINUTES_PER_HOUR


def format_elapsed(minutes: float) -> str:
    """
    Format elapsed minutes as '{d}d {h}h {m}m'.

    Leading zero units are dropped; once a unit is shown every smaller
    unit is shown too, and minutes always appear.

    Args:
        minutes: Elapsed time in minutes

    Returns:
        Formatted string (e.g., '0m', '1h 5m', '1d 0h 50m')
    """
    if minutes <= 0:
        return "0m"

    total = int(minutes)
    days, remainder = divmod(total, MINUTES_PER_DAY)
    hours, mins = divmod(remainder, MINUTES_PER_HOUR)

    if days:
        return f"{days}d {hours}h {mins}m"
    if hours:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def format_time_ago(minutes: float) -> str:
    """
    Format minutes since an event as a relative label.

    Args:
        minutes: Minutes elapsed since the event

    Returns:
        '' for future times, otherwise e.g. '5m ago', '2h ago',
        '2h 10m ago', '1 day ago', '1 day 3h ago', '3 days ago'
    """
    if minutes < 0:
        return ""

    total = int(minutes)
    if total < MINUTES_PER_HOUR:
        return f"{total}m ago"

    if total < MINUTES_PER_DAY:
        hours, mins = divmod(total, MINUTES_PER_HOUR)
        return f"{hours}h {mins}m ago" if mins else f"{hours}h ago"

    days, remainder = divmod(total, MINUTES_PER_DAY)
    hours = remainder // MINUTES_PER_HOUR
    if days == 1:
        return f"1 day {hours}h ago" if hours else "1 day ago"
    return f"{days} days ago"


def format_speed(speed_kmh: float | None) -> str:
    """
    Format speed as 'X.X km/h'.

    Args:
        speed_kmh: Speed in km/h

    Returns:
        Formatted string, or '—' when no speed is known
    """
    if not speed_kmh or speed_kmh <= 0:
        return "—"
    return f"{speed_kmh:.1f} km/h"


def format_distance_km(km: float) -> str:
    """
    Format distance.

    Args:
        km: Distance in kilometers

    Returns:
        Formatted string (e.g., '193 km' or '12.5 km')
    """
    if km == int(km):
        return f"{int(km)} km"
    return f"{km:.1f} km"
