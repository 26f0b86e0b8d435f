"""Aggregation feature module: status summaries, occupancy, arrivals, search."""

from .models import (
    Arrival,
    ControlOccupancy,
    RiderReport,
    StatusSummary,
    WaveSummary,
)
from .service import (
    occupancy_by_control,
    recent_arrivals,
    search_riders,
    sort_by_rider_number,
    sort_reports,
    summarize,
    summarize_waves,
)

__all__ = [
    "Arrival",
    "ControlOccupancy",
    "RiderReport",
    "StatusSummary",
    "WaveSummary",
    "occupancy_by_control",
    "recent_arrivals",
    "search_riders",
    "sort_by_rider_number",
    "sort_reports",
    "summarize",
    "summarize_waves",
]
