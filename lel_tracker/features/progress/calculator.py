"""
Progress Calculator

Turns a rider's sparse checkpoint history into distance, elapsed time,
speed and an estimated current position.

Every function here is total: malformed records are skipped for the
calculation they cannot support and never raise.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from lel_tracker.features.riders.schemas import CheckpointRecord, Rider
from lel_tracker.features.route.models import Control
from lel_tracker.features.route.service import RouteModel
from lel_tracker.features.timing.clock import EventClock
from lel_tracker.shared.constants import (
    DEFAULT_ESTIMATE_GRACE_MINUTES,
    DEFAULT_NEXT_CONTROL_CAP_RATIO,
    DEFAULT_SPEED_KMH,
    MINUTES_PER_HOUR,
    RiderStatus,
)
from lel_tracker.shared.policy import TrackingPolicy

from .models import DerivedProgress, LegSplit, ResolvedCheckpoint

logger = logging.getLogger(__name__)


def _non_negative_elapsed(minutes: int) -> int:
    """Out-of-order instants give no usable duration, so negatives become 0."""
    return max(minutes, 0)


# =============================================================================
# Checkpoint resolution
# =============================================================================

def resolve_controls(
    checkpoints: Sequence[CheckpointRecord],
    route: RouteModel,
    participant_id: str,
) -> List[Optional[Control]]:
    """
    Match each record to a control on the rider's route.

    Names that occur on both legs ("Brampton") resolve to the occurrence
    closest to the previously matched control.
    """
    controls: List[Optional[Control]] = []
    near_km: Optional[float] = None
    for record in checkpoints:
        control = route.resolve_control(record.name, participant_id, near_km=near_km)
        if control is not None:
            near_km = control.km
        controls.append(control)
    return controls


def resolve_checkpoints(
    rider: Rider,
    route: RouteModel,
    clock: EventClock,
) -> List[ResolvedCheckpoint]:
    """Match every record to the route and parse its timestamp."""
    controls = resolve_controls(rider.checkpoints, route, rider.rider_no)
    instants = clock.parse_history(record.time for record in rider.checkpoints)

    resolved = []
    first_instant: Optional[datetime] = None
    for i, (record, control, instant) in enumerate(zip(rider.checkpoints, controls, instants)):
        elapsed = None
        if instant is not None:
            if first_instant is None:
                first_instant = instant
            elapsed = _non_negative_elapsed(clock.minutes_between(first_instant, instant))
        else:
            logger.debug(f"Rider {rider.rider_no}: cannot parse time {record.time!r}")

        resolved.append(
            ResolvedCheckpoint(
                index=i,
                name=record.name,
                raw_time=record.time,
                control=control,
                km=control.km if control else 0,
                instant=instant,
                elapsed_minutes=elapsed,
            )
        )
    return resolved


def furthest_distance(
    checkpoints: Sequence[CheckpointRecord],
    route: RouteModel,
    participant_id: str,
) -> float:
    """
    Furthest control reached, in km on the rider's route.

    Uses the maximum over all records rather than the last one, since the
    feed does not always report in distance order.
    """
    return max(
        (c.km for c in resolve_controls(checkpoints, route, participant_id) if c),
        default=0,
    )


def last_parseable(resolved: Sequence[ResolvedCheckpoint]) -> Optional[ResolvedCheckpoint]:
    """Most recent record (by feed order) whose time parsed."""
    return next((r for r in reversed(resolved) if r.instant is not None), None)


# =============================================================================
# Time and speed
# =============================================================================

def elapsed_since_start(
    rider: Rider,
    route: RouteModel,
    clock: EventClock,
    now: datetime,
    resolved: Optional[Sequence[ResolvedCheckpoint]] = None,
) -> int:
    """
    Minutes the rider has been riding.

    With checkpoints this is first to last parseable record. Without any,
    an in-progress rider counts from the scheduled wave start and
    everyone else gets 0.
    """
    if resolved is None:
        resolved = resolve_checkpoints(rider, route, clock)

    instants = [r.instant for r in resolved if r.instant is not None]
    if instants:
        return _non_negative_elapsed(clock.minutes_between(instants[0], instants[-1]))

    if rider.checkpoints or rider.status != RiderStatus.IN_PROGRESS:
        return 0

    wave_start = route.wave_start(rider.rider_no, clock.start_date)
    return max(clock.minutes_between(wave_start, now), 0)


def average_speed(distance_km: float, elapsed_minutes: float) -> float:
    """Average speed in km/h; 0 when either input is not positive."""
    if not distance_km > 0 or not elapsed_minutes > 0:
        return 0.0
    speed = distance_km / (elapsed_minutes / MINUTES_PER_HOUR)
    return speed if math.isfinite(speed) else 0.0


def leg_speed(
    prev_km: float,
    curr_km: float,
    prev_elapsed: float,
    curr_elapsed: float,
) -> float:
    """Speed between two consecutive records."""
    return average_speed(curr_km - prev_km, curr_elapsed - prev_elapsed)


def checkpoint_splits(resolved: Sequence[ResolvedCheckpoint]) -> List[LegSplit]:
    """Splits between consecutive feed records (not consecutive controls)."""
    splits = []
    for prev, curr in zip(resolved, resolved[1:]):
        minutes = None
        speed = 0.0
        if prev.elapsed_minutes is not None and curr.elapsed_minutes is not None:
            minutes = curr.elapsed_minutes - prev.elapsed_minutes
            speed = leg_speed(prev.km, curr.km, prev.elapsed_minutes, curr.elapsed_minutes)
        splits.append(
            LegSplit(
                from_name=prev.name,
                to_name=curr.name,
                distance_km=curr.km - prev.km,
                minutes=minutes,
                speed_kmh=speed,
            )
        )
    return splits


# =============================================================================
# Position estimate
# =============================================================================

def estimated_distance(
    distance_km: float,
    status: RiderStatus,
    minutes_since_last: Optional[int],
    average_speed_kmh: float,
    next_control_km: Optional[float],
    grace_minutes: int = DEFAULT_ESTIMATE_GRACE_MINUTES,
    default_speed_kmh: float = DEFAULT_SPEED_KMH,
    cap_ratio: float = DEFAULT_NEXT_CONTROL_CAP_RATIO,
) -> float:
    """
    Extrapolate a moving rider's position since their last record.

    Only in-progress riders past the grace window move. The estimate never
    covers more than `cap_ratio` of the gap to the next control, so a rider
    is never shown at a control they have not reported. A rider with no
    next control stays where they are.

    Args:
        distance_km: Furthest confirmed distance
        status: Effective rider status
        minutes_since_last: Minutes since the last confirmed record
        average_speed_kmh: Rider's own average, 0 if unknown
        next_control_km: Distance of the next control, None at the finish

    Returns:
        Estimated distance in km, never less than `distance_km`
    """
    if status != RiderStatus.IN_PROGRESS:
        return distance_km
    if minutes_since_last is None or minutes_since_last <= grace_minutes:
        return distance_km
    if next_control_km is None:
        return distance_km

    speed = average_speed_kmh if average_speed_kmh > 0 else default_speed_kmh
    travelled = speed * minutes_since_last / MINUTES_PER_HOUR
    cap = max(next_control_km - distance_km, 0) * cap_ratio
    return distance_km + min(travelled, cap)


def estimated_arrival(
    since: datetime,
    distance_km: float,
    target_km: float,
    speed_kmh: float,
) -> Optional[datetime]:
    """When a rider leaving `distance_km` at `since` reaches `target_km`."""
    if target_km <= distance_km or speed_kmh <= 0:
        return None
    hours = (target_km - distance_km) / speed_kmh
    return since + timedelta(minutes=math.floor(hours * MINUTES_PER_HOUR))


def progress_percent(distance_km: float, total_km: float) -> float:
    """Share of the route covered, clamped to 0..100."""
    if not total_km > 0 or not distance_km > 0:
        return 0.0
    return min(distance_km / total_km * 100, 100.0)


# =============================================================================
# Composition
# =============================================================================

def calculate_progress(
    rider: Rider,
    route: RouteModel,
    clock: EventClock,
    now: datetime,
    status: RiderStatus,
    policy: Optional[TrackingPolicy] = None,
    resolved: Optional[Sequence[ResolvedCheckpoint]] = None,
) -> DerivedProgress:
    """
    Full derived progress for one rider.

    Args:
        rider: Feed rider
        route: Route model
        clock: Event clock
        now: Current naive event-local instant
        status: Effective status (after the stall override)
        policy: Tracking thresholds, defaults if omitted
        resolved: Output of resolve_checkpoints, recomputed if omitted
    """
    policy = policy or TrackingPolicy()
    if resolved is None:
        resolved = resolve_checkpoints(rider, route, clock)

    total_km = route.total_distance_for(rider.rider_no)
    matched = [r for r in resolved if r.matched]
    last_control = max(matched, key=lambda r: r.km).control if matched else None
    distance = last_control.km if last_control else 0

    if distance == 0 and rider.distance_km > 0:
        # No record matched the table; trust the feed's own figure
        distance = min(rider.distance_km, total_km)

    elapsed = elapsed_since_start(rider, route, clock, now, resolved)
    speed = average_speed(distance, elapsed)

    last = last_parseable(resolved)
    anchor: Optional[datetime] = last.instant if last else None
    if anchor is None and not rider.checkpoints and status == RiderStatus.IN_PROGRESS:
        anchor = route.wave_start(rider.rider_no, clock.start_date)
    minutes_since_last = (
        max(clock.minutes_between(anchor, now), 0) if anchor is not None else None
    )

    next_control = route.next_control(rider.rider_no, distance)
    estimate = estimated_distance(
        distance,
        status,
        minutes_since_last,
        speed,
        next_control.km if next_control else None,
        grace_minutes=policy.estimate_grace_minutes,
        default_speed_kmh=policy.default_speed_kmh,
        cap_ratio=policy.next_control_cap_ratio,
    )

    eta = None
    if status == RiderStatus.IN_PROGRESS and next_control and anchor is not None:
        eta = estimated_arrival(
            anchor, distance, next_control.km, speed or policy.default_speed_kmh
        )

    return DerivedProgress(
        distance_km=distance,
        estimated_distance_km=estimate,
        total_distance_km=total_km,
        elapsed_minutes=elapsed,
        average_speed_kmh=speed,
        progress_percent=progress_percent(max(distance, estimate), total_km),
        last_control=last_control,
        next_control=next_control,
        last_checkpoint_at=last.instant if last else None,
        minutes_since_last=minutes_since_last,
        next_control_eta=eta,
        splits=checkpoint_splits(resolved),
    )
