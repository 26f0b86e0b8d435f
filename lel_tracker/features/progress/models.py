"""Derived progress models (dataclasses, recomputed on every refresh)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from lel_tracker.features.route.models import Control
from lel_tracker.shared.formatters import format_elapsed


@dataclass
class ResolvedCheckpoint:
    """A feed record matched to the route and placed in time."""

    index: int  # position in the rider's feed history
    name: str  # feed name: "Brampton S"
    raw_time: str  # feed time: "Tuesday 14:05"
    control: Control | None  # None when the name matches nothing
    km: float  # 0 when unmatched
    instant: datetime | None  # None when the time does not parse
    elapsed_minutes: int | None  # since first parseable record

    @property
    def matched(self) -> bool:
        return self.control is not None


@dataclass
class LegSplit:
    """Movement between two consecutive feed records."""

    from_name: str
    to_name: str
    distance_km: float
    minutes: int | None  # None when either time is unknown
    speed_kmh: float

    def to_dict(self) -> dict:
        return {
            "from": self.from_name,
            "to": self.to_name,
            "distance_km": round(self.distance_km, 1),
            "minutes": self.minutes,
            "speed_kmh": round(self.speed_kmh, 1),
        }


@dataclass
class DerivedProgress:
    """Where a rider is and how fast they have been going."""

    distance_km: float  # furthest confirmed control
    estimated_distance_km: float  # with extrapolation since last record
    total_distance_km: float
    elapsed_minutes: int
    average_speed_kmh: float
    progress_percent: float
    last_control: Control | None = None
    next_control: Control | None = None
    last_checkpoint_at: datetime | None = None
    minutes_since_last: int | None = None
    next_control_eta: datetime | None = None
    splits: list[LegSplit] = field(default_factory=list)

    @property
    def elapsed_label(self) -> str:
        return format_elapsed(self.elapsed_minutes)

    @property
    def remaining_km(self) -> float:
        return max(self.total_distance_km - self.distance_km, 0)

    def to_dict(self) -> dict:
        return {
            "distance_km": round(self.distance_km, 1),
            "estimated_distance_km": round(self.estimated_distance_km, 1),
            "total_distance_km": self.total_distance_km,
            "elapsed_minutes": self.elapsed_minutes,
            "elapsed": self.elapsed_label,
            "average_speed_kmh": round(self.average_speed_kmh, 1),
            "progress_percent": round(self.progress_percent, 1),
            "last_control": self.last_control.name if self.last_control else None,
            "next_control": self.next_control.name if self.next_control else None,
            "last_checkpoint_at": (
                self.last_checkpoint_at.isoformat() if self.last_checkpoint_at else None
            ),
            "minutes_since_last": self.minutes_since_last,
            "next_control_eta": (
                self.next_control_eta.isoformat() if self.next_control_eta else None
            ),
            "splits": [s.to_dict() for s in self.splits],
        }
