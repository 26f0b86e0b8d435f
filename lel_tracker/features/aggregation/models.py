"""Data models for per-rider reports and group summaries (dataclasses)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from lel_tracker.features.progress.models import DerivedProgress, ResolvedCheckpoint
from lel_tracker.features.riders.schemas import Rider
from lel_tracker.features.route.models import Control
from lel_tracker.features.status.classifier import StatusResult
from lel_tracker.shared.constants import RiderStatus
from lel_tracker.shared.formatters import format_time_ago


@dataclass
class RiderReport:
    """Everything the engine derived about one rider on one refresh."""

    rider: Rider
    variant: str  # "writtle" / "london"
    wave: str  # "LA"
    wave_start: datetime
    resolved: list[ResolvedCheckpoint]
    progress: DerivedProgress
    status: StatusResult

    @property
    def rider_no(self) -> str:
        return self.rider.rider_no

    @property
    def name(self) -> str:
        return self.rider.name

    @property
    def effective_status(self) -> RiderStatus:
        return self.status.effective

    @property
    def latest(self) -> ResolvedCheckpoint | None:
        """Latest record in feed order, parseable or not."""
        return self.resolved[-1] if self.resolved else None

    def to_dict(self) -> dict:
        return {
            "rider_no": self.rider_no,
            "name": self.name,
            "variant": self.variant,
            "wave": self.wave,
            "wave_start": self.wave_start.isoformat(),
            "status": self.status.to_dict(),
            "progress": self.progress.to_dict(),
            "checkpoints": [
                {
                    "name": r.name,
                    "time": r.raw_time,
                    "km": r.km,
                    "elapsed_minutes": r.elapsed_minutes,
                }
                for r in self.resolved
            ],
        }


@dataclass
class StatusSummary:
    """Counts by effective status plus group averages."""

    total: int = 0
    not_started: int = 0
    in_progress: int = 0
    finished: int = 0
    dnf: int = 0
    stalled: int = 0  # included in dnf
    avg_distance_km: float = 0.0
    avg_speed_kmh: float = 0.0  # over riders with a known speed
    completion_rate: float = 0.0  # percent finished

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "not_started": self.not_started,
            "in_progress": self.in_progress,
            "finished": self.finished,
            "dnf": self.dnf,
            "stalled": self.stalled,
            "avg_distance_km": round(self.avg_distance_km, 1),
            "avg_speed_kmh": round(self.avg_speed_kmh, 1),
            "completion_rate": round(self.completion_rate, 1),
        }


@dataclass
class WaveSummary:
    """One start wave."""

    code: str  # "A", "LB"
    start_time: str  # "05:15"
    route: str  # variant key, or "mixed"
    summary: StatusSummary

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "start_time": self.start_time,
            "route": self.route,
            "summary": self.summary.to_dict(),
        }


@dataclass
class ControlOccupancy:
    """
    Riders at, past and heading for one control of the merged view,
    with statistics over everyone who has reached it.

    `times_to_reach` holds minutes from each rider's first record to
    their first record at this control. `field_size` is the number of
    riders in the group the occupancy was built from.
    """

    control: Control
    current: list[RiderReport] = field(default_factory=list)
    passed: list[RiderReport] = field(default_factory=list)
    approaching: list[RiderReport] = field(default_factory=list)
    times_to_reach: list[int] = field(default_factory=list)
    field_size: int = 0

    @property
    def reached_count(self) -> int:
        return len(self.current) + len(self.passed)

    @property
    def avg_minutes_to_reach(self) -> float:
        if not self.times_to_reach:
            return 0.0
        return sum(self.times_to_reach) / len(self.times_to_reach)

    @property
    def fastest_minutes_to_reach(self) -> int | None:
        return min(self.times_to_reach, default=None)

    @property
    def slowest_minutes_to_reach(self) -> int | None:
        return max(self.times_to_reach, default=None)

    @property
    def reached_percent(self) -> float:
        if not self.field_size:
            return 0.0
        return self.reached_count / self.field_size * 100

    @property
    def avg_speed_kmh(self) -> float:
        """Average over riders who reached the control with a known speed."""
        speeds = [
            r.progress.average_speed_kmh
            for r in self.current + self.passed
            if r.progress.average_speed_kmh > 0
        ]
        return sum(speeds) / len(speeds) if speeds else 0.0

    def to_dict(self) -> dict:
        return {
            "id": self.control.id,
            "name": self.control.name,
            "km": self.control.km,
            "leg": self.control.leg.value,
            "current": [r.rider_no for r in self.current],
            "passed": [r.rider_no for r in self.passed],
            "approaching": [r.rider_no for r in self.approaching],
            "reached_percent": round(self.reached_percent, 1),
            "avg_minutes_to_reach": round(self.avg_minutes_to_reach),
            "fastest_minutes_to_reach": self.fastest_minutes_to_reach,
            "slowest_minutes_to_reach": self.slowest_minutes_to_reach,
            "avg_speed_kmh": round(self.avg_speed_kmh, 1),
        }


@dataclass
class Arrival:
    """A rider's most recent checkpoint, for the latest-updates feed."""

    rider_no: str
    rider_name: str
    checkpoint: str
    time: str  # as reported
    instant: datetime
    minutes_ago: int
    distance_km: float

    @property
    def time_ago(self) -> str:
        return format_time_ago(self.minutes_ago)

    def to_dict(self) -> dict:
        return {
            "rider_no": self.rider_no,
            "rider_name": self.rider_name,
            "checkpoint": self.checkpoint,
            "time": self.time,
            "instant": self.instant.isoformat(),
            "minutes_ago": self.minutes_ago,
            "time_ago": self.time_ago,
            "distance_km": self.distance_km,
        }
