"""
Status Classifier

One authoritative place that turns the feed status plus the stall check
into the status every view displays.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from lel_tracker.features.progress.calculator import last_parseable, resolve_checkpoints
from lel_tracker.features.progress.models import ResolvedCheckpoint
from lel_tracker.features.riders.schemas import Rider
from lel_tracker.features.route.service import RouteModel
from lel_tracker.features.timing.clock import EventClock
from lel_tracker.shared.constants import STALL_THRESHOLD_MINUTES, RiderStatus

logger = logging.getLogger(__name__)

# Reported statuses the stall check never overrides
_TERMINAL = (RiderStatus.FINISHED, RiderStatus.DNF)


@dataclass
class StatusResult:
    """Reported and effective status of one rider."""
    reported: RiderStatus
    effective: RiderStatus
    stalled: bool
    minutes_since_last: Optional[int]  # None when no record time parses

    def to_dict(self) -> dict:
        return {
            "reported": self.reported.value,
            "effective": self.effective.value,
            "stalled": self.stalled,
            "minutes_since_last": self.minutes_since_last,
        }


def last_parseable_instant(
    rider: Rider,
    clock: EventClock,
) -> Optional[datetime]:
    """
    Time of the latest record that parses.

    Walks back through earlier records when the newest has a garbled time.
    """
    instants = clock.parse_history(record.time for record in rider.checkpoints)
    return next((i for i in reversed(instants) if i is not None), None)


def is_stalled(
    rider: Rider,
    now: datetime,
    clock: EventClock,
    reached_final: bool = False,
    threshold_minutes: int = STALL_THRESHOLD_MINUTES,
    last_instant: Optional[datetime] = None,
) -> bool:
    """
    Whether a live rider has gone quiet long enough to count as DNF.

    Args:
        rider: Feed rider
        now: Current naive event-local instant
        clock: Event clock
        reached_final: Rider has reported the final control
        threshold_minutes: Silence needed to stall
        last_instant: Precomputed last parseable record time

    Returns:
        False whenever staleness cannot be determined
    """
    if rider.status in _TERMINAL or reached_final or not rider.checkpoints:
        return False

    if last_instant is None:
        last_instant = last_parseable_instant(rider, clock)
    if last_instant is None:
        return False

    return clock.minutes_between(last_instant, now) >= threshold_minutes


def effective_status(rider: Rider, stalled: bool) -> RiderStatus:
    """Precedence: dnf > stalled > finished > in_progress > not_started."""
    if rider.status == RiderStatus.DNF or stalled:
        return RiderStatus.DNF
    return rider.status


def classify(
    rider: Rider,
    now: datetime,
    clock: EventClock,
    route: RouteModel,
    threshold_minutes: int = STALL_THRESHOLD_MINUTES,
    resolved: Optional[Sequence[ResolvedCheckpoint]] = None,
) -> StatusResult:
    """Compute reported, effective and stall state for one rider."""
    if resolved is None:
        resolved = resolve_checkpoints(rider, route, clock)

    final = route.variant_for(rider.rider_no).last
    reached_final = any(r.control == final for r in resolved)

    last = last_parseable(resolved)
    last_instant = last.instant if last else None

    stalled = is_stalled(
        rider,
        now,
        clock,
        reached_final=reached_final,
        threshold_minutes=threshold_minutes,
        last_instant=last_instant,
    )
    if stalled:
        logger.info(
            f"Rider {rider.rider_no} silent since {last_instant:%a %H:%M}, marking DNF"
        )

    minutes_since_last = None
    if last_instant is not None:
        minutes_since_last = max(clock.minutes_between(last_instant, now), 0)

    return StatusResult(
        reported=rider.status,
        effective=effective_status(rider, stalled),
        stalled=stalled,
        minutes_since_last=minutes_since_last,
    )
