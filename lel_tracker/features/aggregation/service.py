"""Group summaries, control occupancy, arrival feed and rider search."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Sequence

from lel_tracker.features.route.service import RouteModel
from lel_tracker.features.timing.clock import EventClock
from lel_tracker.shared.constants import (
    DEFAULT_APPROACH_THRESHOLD_KM,
    DEFAULT_RECENT_LIMIT,
    DEFAULT_RECENT_WINDOW_MINUTES,
    RiderStatus,
)

from .models import Arrival, ControlOccupancy, RiderReport, StatusSummary, WaveSummary

_RIDER_NO_RE = re.compile(r"^([A-Z]*)(\d*)(.*)$")


def summarize(reports: Sequence[RiderReport]) -> StatusSummary:
    """Count riders by effective status and average their progress."""
    total = len(reports)
    if not total:
        return StatusSummary()

    counts = {status: 0 for status in RiderStatus}
    for r in reports:
        counts[r.effective_status] += 1

    speeds = [r.progress.average_speed_kmh for r in reports if r.progress.average_speed_kmh > 0]
    distance = sum(r.progress.distance_km for r in reports)

    return StatusSummary(
        total=total,
        not_started=counts[RiderStatus.NOT_STARTED],
        in_progress=counts[RiderStatus.IN_PROGRESS],
        finished=counts[RiderStatus.FINISHED],
        dnf=counts[RiderStatus.DNF],
        stalled=sum(1 for r in reports if r.status.stalled),
        avg_distance_km=distance / total,
        avg_speed_kmh=sum(speeds) / len(speeds) if speeds else 0.0,
        completion_rate=counts[RiderStatus.FINISHED] / total * 100,
    )


def summarize_waves(reports: Sequence[RiderReport]) -> list[WaveSummary]:
    """One summary per wave code, sorted by code."""
    by_wave: dict[str, list[RiderReport]] = {}
    for r in reports:
        by_wave.setdefault(r.wave, []).append(r)

    waves = []
    for code in sorted(by_wave):
        members = by_wave[code]
        routes = {r.variant for r in members}
        waves.append(
            WaveSummary(
                code=code,
                start_time=f"{members[0].wave_start:%H:%M}",
                route=routes.pop() if len(routes) == 1 else "mixed",
                summary=summarize(members),
            )
        )
    return waves


def occupancy_by_control(
    reports: Sequence[RiderReport],
    route: RouteModel,
    approach_threshold_km: float = DEFAULT_APPROACH_THRESHOLD_KM,
) -> dict[str, ControlOccupancy]:
    """
    Riders per control of the merged route view, in route order.

    A rider is `current` at the bucket of their furthest control and
    `passed` on every earlier bucket. In-progress riders within
    `approach_threshold_km` of their next control are `approaching` it.
    Each bucket also collects the elapsed minutes at which its riders
    first reported there.
    """
    buckets = route.merged_controls()
    occupancy = {c.id: ControlOccupancy(control=c, field_size=len(reports)) for c in buckets}
    position = {c.id: i for i, c in enumerate(buckets)}

    for report in reports:
        last = report.progress.last_control
        if last is None:
            continue

        bucket = route.merged_control_for(report.rider_no, last)
        occupancy[bucket.id].current.append(report)
        for earlier in buckets[:position[bucket.id]]:
            occupancy[earlier.id].passed.append(report)

        for control_id, minutes in _first_times_to_reach(report, route).items():
            occupancy[control_id].times_to_reach.append(minutes)

        upcoming = report.progress.next_control
        if report.effective_status != RiderStatus.IN_PROGRESS or upcoming is None:
            continue
        gap = upcoming.km - report.progress.distance_km
        upcoming_bucket = route.merged_control_for(report.rider_no, upcoming)
        if upcoming_bucket.id != bucket.id and 0 < gap <= approach_threshold_km:
            occupancy[upcoming_bucket.id].approaching.append(report)

    return occupancy


def _first_times_to_reach(report: RiderReport, route: RouteModel) -> dict[str, int]:
    times: dict[str, int] = {}
    for r in report.resolved:
        if r.control is None or r.elapsed_minutes is None:
            continue
        bucket = route.merged_control_for(report.rider_no, r.control)
        times.setdefault(bucket.id, r.elapsed_minutes)
    return times


def recent_arrivals(
    reports: Sequence[RiderReport],
    now: datetime,
    clock: EventClock,
    window_minutes: int = DEFAULT_RECENT_WINDOW_MINUTES,
    limit: int = DEFAULT_RECENT_LIMIT,
) -> list[Arrival]:
    """
    Latest checkpoint per rider, newest first.

    Only the rider's last record counts. Records whose time does not
    parse, lies in the future or is `window_minutes` old or more are left out.
    """
    arrivals = []
    for report in reports:
        latest = report.latest
        if latest is None or latest.instant is None:
            continue
        minutes_ago = clock.minutes_between(latest.instant, now)
        if not 0 <= minutes_ago < window_minutes:
            continue
        arrivals.append(
            Arrival(
                rider_no=report.rider_no,
                rider_name=report.name,
                checkpoint=latest.name,
                time=latest.raw_time,
                instant=latest.instant,
                minutes_ago=minutes_ago,
                distance_km=latest.km,
            )
        )

    arrivals.sort(key=lambda a: a.rider_no)
    arrivals.sort(key=lambda a: a.instant, reverse=True)
    return arrivals[:limit]


def search_riders(reports: Sequence[RiderReport], query: str) -> list[RiderReport]:
    """Case-insensitive partial match on rider number or name."""
    query_lower = query.strip().lower()
    if not query_lower:
        return list(reports)
    return [
        r for r in reports
        if query_lower in r.rider_no.lower() or query_lower in r.name.lower()
    ]


def _rider_sort_key(rider_no: str) -> tuple:
    prefix, number, rest = _RIDER_NO_RE.match(rider_no).groups()
    return (len(prefix), prefix, int(number) if number else -1, rest)


def sort_by_rider_number(reports: Sequence[RiderReport]) -> list[RiderReport]:
    """Natural order by wave then number: A2, A10, B1, AA1, LA1."""
    return sorted(reports, key=lambda r: _rider_sort_key(r.rider_no))


# Status display order: live riders first, then finishers
STATUS_SORT_ORDER = {
    RiderStatus.IN_PROGRESS: 0,
    RiderStatus.FINISHED: 1,
    RiderStatus.NOT_STARTED: 2,
    RiderStatus.DNF: 3,
}

# sort key -> (key function, descending)
_REPORT_SORTERS = {
    "distance": (lambda r: r.progress.distance_km, True),
    "progress": (lambda r: r.progress.progress_percent, True),
    "speed": (lambda r: r.progress.average_speed_kmh, True),
    "status": (lambda r: STATUS_SORT_ORDER[r.effective_status], False),
}


def sort_reports(reports: Sequence[RiderReport], by: str = "distance") -> list[RiderReport]:
    """
    Order reports for a leaderboard view.

    'distance', 'progress' and 'speed' sort descending; 'status' puts
    in-progress riders first, then finished, not started and dnf.
    Ties keep natural rider-number order.
    """
    try:
        key, descending = _REPORT_SORTERS[by]
    except KeyError:
        raise ValueError(f"Unknown sort order: {by}") from None
    return sorted(sort_by_rider_number(reports), key=key, reverse=descending)
