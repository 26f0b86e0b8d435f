"""
Event clock.

All engine arithmetic runs on naive datetimes holding event-local
wall-clock time, since that is what the feed reports. Differences are
taken through the event zone, so a DST change between two readings
counts real elapsed minutes.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone as dt_timezone
from typing import Callable, Iterable, List, Optional
from zoneinfo import ZoneInfo

from .parser import parse_checkpoint_history, parse_checkpoint_timestamp


def current_instant(timezone: str, utc_now: Optional[datetime] = None) -> datetime:
    """
    Current time as naive event-local wall-clock time.

    Args:
        timezone: IANA zone name of the event
        utc_now: Instant to convert instead of the system clock;
            naive values are taken as UTC

    Returns:
        Naive datetime, truncated to whole seconds
    """
    if utc_now is None:
        utc_now = datetime.now(dt_timezone.utc)
    elif utc_now.tzinfo is None:
        utc_now = utc_now.replace(tzinfo=dt_timezone.utc)
    local = utc_now.astimezone(ZoneInfo(timezone))
    return local.replace(tzinfo=None, microsecond=0)


def _to_utc(instant: datetime, zone: ZoneInfo) -> datetime:
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=zone)
    return instant.astimezone(dt_timezone.utc)


def minutes_between(a: datetime, b: datetime, timezone: Optional[str] = None) -> int:
    """
    Whole minutes from `a` to `b`, floored. Negative when `b` is earlier.

    With a timezone, naive inputs are localized to it first.
    """
    if timezone:
        zone = ZoneInfo(timezone)
        a, b = _to_utc(a, zone), _to_utc(b, zone)
    return math.floor((b - a).total_seconds() / 60)


class EventClock:
    """
    Time reference for one event: its zone, start date and "now".

    Args:
        timezone: IANA zone all feed times are in
        start_date: Date of the first wave start
        now_fn: Returns the current naive event-local instant;
            defaults to the system clock
    """

    def __init__(
        self,
        timezone: str = "Europe/London",
        start_date: date = date(2025, 8, 3),
        now_fn: Optional[Callable[[], datetime]] = None,
    ):
        ZoneInfo(timezone)  # fail fast on unknown zones
        self.timezone = timezone
        self.start_date = start_date
        self._now_fn = now_fn

    @classmethod
    def from_settings(cls, settings) -> "EventClock":
        return cls(timezone=settings.event_timezone, start_date=settings.event_start_date)

    def now(self) -> datetime:
        if self._now_fn is not None:
            return self._now_fn()
        return current_instant(self.timezone)

    def parse(self, raw: Optional[str], anchor: Optional[datetime] = None) -> Optional[datetime]:
        return parse_checkpoint_timestamp(raw, self.start_date, anchor)

    def parse_history(self, raws: Iterable[Optional[str]]) -> List[Optional[datetime]]:
        """Parse one rider's timestamps in feed order."""
        return parse_checkpoint_history(raws, self.start_date)

    def minutes_between(self, a: datetime, b: datetime) -> int:
        return minutes_between(a, b, self.timezone)

    def at(self, time_of_day: time) -> datetime:
        """Instant of a time of day on the event start date."""
        return datetime.combine(self.start_date, time_of_day)
