"""TrackingService: one refresh of the feed turned into rider reports and views."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from lel_tracker.features.aggregation.models import (
    Arrival,
    ControlOccupancy,
    RiderReport,
    StatusSummary,
    WaveSummary,
)
from lel_tracker.features.aggregation.service import (
    occupancy_by_control,
    recent_arrivals,
    sort_by_rider_number,
    summarize,
    summarize_waves,
)
from lel_tracker.features.progress.calculator import calculate_progress, resolve_checkpoints
from lel_tracker.features.riders.schemas import Rider, TrackingFeed
from lel_tracker.features.route.service import RouteModel, wave_code
from lel_tracker.features.status.classifier import classify
from lel_tracker.features.timing.clock import EventClock
from lel_tracker.shared.policy import TrackingPolicy

logger = logging.getLogger(__name__)


@dataclass
class TrackingSnapshot:
    """Everything the views need for one refresh."""

    generated_at: datetime
    reports: list[RiderReport]
    summary: StatusSummary
    waves: list[WaveSummary] = field(default_factory=list)
    occupancy: dict[str, ControlOccupancy] = field(default_factory=dict)
    arrivals: list[Arrival] = field(default_factory=list)

    def report_for(self, rider_no: str) -> RiderReport | None:
        key = rider_no.strip().upper()
        return next((r for r in self.reports if r.rider_no == key), None)

    def to_dict(self) -> dict:
        return {
            "generated_at": self.generated_at.isoformat(),
            "summary": self.summary.to_dict(),
            "waves": [w.to_dict() for w in self.waves],
            "occupancy": [o.to_dict() for o in self.occupancy.values()],
            "arrivals": [a.to_dict() for a in self.arrivals],
            "riders": [r.to_dict() for r in self.reports],
        }


class TrackingService:
    """
    Derives per-rider reports and group views from feed riders.

    Stateless apart from its route, clock and policy: every call
    recomputes from the records it is given.
    """

    def __init__(
        self,
        route: RouteModel,
        clock: EventClock,
        policy: TrackingPolicy | None = None,
    ):
        self.route = route
        self.clock = clock
        self.policy = policy or TrackingPolicy()

    @classmethod
    def from_settings(cls, settings=None) -> "TrackingService":
        """Build from application settings (module-level settings if omitted)."""
        if settings is None:
            from lel_tracker.config import settings
        return cls(
            route=RouteModel.from_file(settings.route_file),
            clock=EventClock.from_settings(settings),
            policy=TrackingPolicy.from_settings(settings),
        )

    def evaluate(self, rider: Rider, now: datetime | None = None) -> RiderReport:
        """
        Full report for one rider.

        Status is classified first so progress estimates use the
        effective status, which includes the stall override.
        """
        now = now or self.clock.now()
        resolved = resolve_checkpoints(rider, self.route, self.clock)

        status = classify(
            rider,
            now,
            self.clock,
            self.route,
            threshold_minutes=self.policy.stall_threshold_minutes,
            resolved=resolved,
        )
        progress = calculate_progress(
            rider,
            self.route,
            self.clock,
            now,
            status.effective,
            policy=self.policy,
            resolved=resolved,
        )

        return RiderReport(
            rider=rider,
            variant=self.route.variant_for(rider.rider_no).key,
            wave=wave_code(rider.rider_no),
            wave_start=self.route.wave_start(rider.rider_no, self.clock.start_date),
            resolved=resolved,
            progress=progress,
            status=status,
        )

    def evaluate_all(
        self,
        riders: Iterable[Rider],
        now: datetime | None = None,
    ) -> list[RiderReport]:
        """Reports for every rider, in natural rider-number order."""
        now = now or self.clock.now()
        return sort_by_rider_number([self.evaluate(r, now) for r in riders])

    def snapshot(
        self,
        feed: TrackingFeed | Iterable[Rider],
        now: datetime | None = None,
    ) -> TrackingSnapshot:
        """Reports plus summary, wave, occupancy and arrival views."""
        now = now or self.clock.now()
        riders = feed.riders if isinstance(feed, TrackingFeed) else feed
        reports = self.evaluate_all(riders, now)

        snapshot = TrackingSnapshot(
            generated_at=now,
            reports=reports,
            summary=summarize(reports),
            waves=summarize_waves(reports),
            occupancy=occupancy_by_control(
                reports, self.route, self.policy.approach_threshold_km
            ),
            arrivals=recent_arrivals(
                reports,
                now,
                self.clock,
                window_minutes=self.policy.recent_window_minutes,
                limit=self.policy.recent_limit,
            ),
        )
        logger.info(
            f"Snapshot at {now:%a %H:%M}: {snapshot.summary.total} riders, "
            f"{snapshot.summary.in_progress} riding, {snapshot.summary.dnf} DNF"
        )
        return snapshot
