"""
Shared fixtures: the bundled route table, a frozen event clock and a
rider factory.

The event starts on Sunday 2025-08-03, so weekday timestamps in tests
read naturally: "Sunday 05:00" is the first morning, "Monday 12:00"
the next day.
"""

from datetime import date, datetime

import pytest

from lel_tracker.config import CONTENT_DIR
from lel_tracker.features.riders.schemas import Rider
from lel_tracker.features.route.service import RouteModel
from lel_tracker.features.timing.clock import EventClock
from lel_tracker.features.tracking.service import TrackingService
from lel_tracker.shared.policy import TrackingPolicy

EVENT_START = date(2025, 8, 3)


@pytest.fixture(scope="session")
def route():
    """Route model built from the bundled route.yaml."""
    return RouteModel.from_file(CONTENT_DIR / "route.yaml")


@pytest.fixture
def clock():
    """Event clock whose now() is Monday 12:00."""
    return EventClock(
        timezone="Europe/London",
        start_date=EVENT_START,
        now_fn=lambda: datetime(2025, 8, 4, 12, 0),
    )


@pytest.fixture
def service(route, clock):
    """Tracking service with default policy."""
    return TrackingService(route, clock, TrackingPolicy())


@pytest.fixture
def make_rider():
    """Build a Rider from (name, time) pairs."""

    def _make(rider_no="A1", status="in_progress", checkpoints=(), name="", **kwargs):
        return Rider(
            rider_no=rider_no,
            name=name or f"Rider {rider_no}",
            status=status,
            checkpoints=[{"name": n, "time": t} for n, t in checkpoints],
            **kwargs,
        )

    return _make
