"""Checkpoint timestamp parsing.

The feed reports arrival times in two encodings and switched between
them during the event, so both must stay supported:

    "3/8 19:32"     day/month, year implied by the event
    "Sunday 08:46"  weekday name, within the week the event starts

Some records carry only a bare "HH:MM". Those take their date from the
record before them in the same history, so they never depend on when
the history is read.

Results are naive datetimes holding event-local wall-clock time.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Iterable

from lel_tracker.shared.constants import WEEKDAY_NAMES

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})\s+(\d{1,2}):(\d{2})$")
_WEEKDAY_RE = re.compile(r"^([A-Za-z]+)\s+(\d{1,2}):(\d{2})$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

_WEEKDAY_INDEX = {name.lower(): i for i, name in enumerate(WEEKDAY_NAMES)}


def _time_of_day(hour: str, minute: str) -> time | None:
    try:
        return time(int(hour), int(minute))
    except ValueError:
        return None


def parse_checkpoint_timestamp(
    raw: str | None,
    event_start_date: date,
    anchor: datetime | None = None,
) -> datetime | None:
    """
    Convert a feed timestamp to a naive event-local instant.

    Args:
        raw: Timestamp text from the feed
        event_start_date: Date of the first wave start
        anchor: Previous parseable instant of the same history; only
            needed for bare 'HH:MM' values, which resolve to the first
            such time not before the anchor

    Returns:
        Parsed datetime, or None when the text cannot be interpreted.
        Weekday names always land within 6 days after the event start.
    """
    if not raw:
        return None
    text = " ".join(raw.split())
    if not text or text == "-":
        return None

    m = _DATE_RE.match(text)
    if m:
        day, month, hour, minute = (int(g) for g in m.groups())
        try:
            return datetime(event_start_date.year, month, day, hour, minute)
        except ValueError:
            logger.debug(f"Invalid calendar timestamp: {raw!r}")
            return None

    m = _WEEKDAY_RE.match(text)
    if m:
        day_index = _WEEKDAY_INDEX.get(m.group(1).lower())
        clock = _time_of_day(m.group(2), m.group(3))
        if day_index is None or clock is None:
            logger.debug(f"Unparseable weekday timestamp: {raw!r}")
            return None
        offset = (day_index - event_start_date.weekday()) % 7
        return datetime.combine(event_start_date + timedelta(days=offset), clock)

    m = _TIME_RE.match(text)
    if m:
        clock = _time_of_day(m.group(1), m.group(2))
        if clock is None or anchor is None:
            logger.debug(f"Bare time without a usable anchor: {raw!r}")
            return None
        candidate = datetime.combine(anchor.date(), clock)
        # Earlier than the anchor means the ride crossed midnight
        if candidate < anchor:
            candidate += timedelta(days=1)
        return candidate

    logger.debug(f"Unrecognized timestamp format: {raw!r}")
    return None


def parse_checkpoint_history(
    raws: Iterable[str | None],
    event_start_date: date,
) -> list[datetime | None]:
    """
    Parse a rider's timestamps in feed order.

    Each bare 'HH:MM' is anchored to the closest earlier record that
    parsed. One entry per input, None where the text cannot be resolved.
    """
    instants: list[datetime | None] = []
    anchor: datetime | None = None
    for raw in raws:
        instant = parse_checkpoint_timestamp(raw, event_start_date, anchor)
        if instant is not None:
            anchor = instant
        instants.append(instant)
    return instants


def format_checkpoint_time(instant: datetime, style: str = "weekday") -> str:
    """
    Render an instant in one of the feed encodings.

    'weekday' -> 'Sunday 04:40', 'date' -> '3/8 19:32'.
    """
    if style == "date":
        return f"{instant.day}/{instant.month} {instant:%H:%M}"
    if style == "weekday":
        return f"{WEEKDAY_NAMES[instant.weekday()]} {instant:%H:%M}"
    raise ValueError(f"Unknown timestamp style: {style}")
