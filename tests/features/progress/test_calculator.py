"""
Tests for the progress calculator.

Covers checkpoint resolution, elapsed time, speeds, the position
estimate and the composed calculate_progress.
"""

import math
from datetime import datetime

import pytest

from lel_tracker.features.progress.calculator import (
    average_speed,
    calculate_progress,
    checkpoint_splits,
    elapsed_since_start,
    estimated_arrival,
    estimated_distance,
    furthest_distance,
    last_parseable,
    leg_speed,
    progress_percent,
    resolve_checkpoints,
    resolve_controls,
)
from lel_tracker.features.riders.schemas import CheckpointRecord
from lel_tracker.shared.constants import RiderStatus
from lel_tracker.shared.policy import TrackingPolicy


def _records(*pairs):
    return [CheckpointRecord(name=n, time=t) for n, t in pairs]


# =============================================================================
# Test Checkpoint Resolution
# =============================================================================

class TestResolveControls:
    """Matching a rider's history to controls in order."""

    def test_return_leg_duplicate(self, route):
        """A bare 'Brampton' after Eskdalemuir is the southbound control."""
        records = _records(
            ("Dalkeith", ""), ("Innerleithen", ""), ("Eskdalemuir", ""), ("Brampton", ""),
        )
        controls = resolve_controls(records, route, "A1")
        assert [c.km for c in controls] == [807, 846, 896, 953]

    def test_outbound_duplicate(self, route):
        records = _records(("Richmond", ""), ("Brampton", ""))
        assert [c.km for c in resolve_controls(records, route, "A1")] == [467, 581]

    def test_unmatched_keeps_position(self, route):
        records = _records(("Start", ""), ("Somewhere", ""), ("Northstowe", ""))
        controls = resolve_controls(records, route, "LA1")
        assert controls[1] is None
        assert controls[2].km == 110

    def test_finish_writtle(self, route):
        """Writtle after Henham is the finish, not the start."""
        records = _records(("Henham", ""), ("Writtle", ""))
        assert resolve_controls(records, route, "A1")[-1].km == 1537


class TestResolveCheckpoints:
    """Matching plus timestamp parsing."""

    def test_elapsed_from_first_parseable(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[
            ("Start", "garbled"), ("Northstowe", "Sunday 09:00"), ("Boston", "Sunday 14:00"),
        ])
        resolved = resolve_checkpoints(rider, route, clock)
        assert resolved[0].instant is None
        assert resolved[0].elapsed_minutes is None
        assert resolved[1].elapsed_minutes == 0
        assert resolved[2].elapsed_minutes == 300
        assert [r.km for r in resolved] == [0, 90, 193]

    def test_unmatched_is_zero_km(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Atlantis", "Sunday 09:00")])
        resolved = resolve_checkpoints(rider, route, clock)
        assert resolved[0].km == 0
        assert not resolved[0].matched

    def test_last_parseable(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Start", "Sunday 05:00"), ("Boston", "??")])
        resolved = resolve_checkpoints(rider, route, clock)
        assert last_parseable(resolved).name == "Start"
        assert last_parseable([]) is None


class TestFurthestDistance:
    """Distance is the maximum over records, not the last one."""

    def test_out_of_order_feed(self, route):
        records = _records(("Boston", ""), ("Northstowe", ""))
        assert furthest_distance(records, route, "A1") == 193

    def test_london_offset(self, route):
        assert furthest_distance(_records(("Northstowe", "")), route, "LA1") == 110
        assert furthest_distance(_records(("Northstowe", "")), route, "A1") == 90

    def test_nothing_matched(self, route):
        assert furthest_distance(_records(("Atlantis", "")), route, "A1") == 0
        assert furthest_distance([], route, "A1") == 0


# =============================================================================
# Test Elapsed Time
# =============================================================================

class TestElapsedSinceStart:
    """Tests for elapsed_since_start."""

    def test_first_to_last(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Start", "Sunday 04:00"), ("Boston", "Sunday 09:00")])
        assert elapsed_since_start(rider, route, clock, clock.now()) == 300

    def test_last_before_first_is_zero(self, route, clock, make_rider):
        """A last record dated before the first gives no duration, not a wrapped day."""
        rider = make_rider(checkpoints=[("Start", "3/8 05:30"), ("Northstowe", "3/8 05:00")])
        assert elapsed_since_start(rider, route, clock, clock.now()) == 0

    def test_out_of_order_record_elapsed(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Start", "4/8 01:00"), ("Northstowe", "3/8 23:00")])
        assert [r.elapsed_minutes for r in resolve_checkpoints(rider, route, clock)] == [0, 0]

    def test_bare_time_after_midnight(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Start", "Sunday 23:00"), ("Northstowe", "01:00")])
        assert elapsed_since_start(rider, route, clock, clock.now()) == 120

    def test_single_record(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Start", "Sunday 05:00")])
        assert elapsed_since_start(rider, route, clock, clock.now()) == 0

    def test_in_progress_without_records(self, route, clock, make_rider):
        """Counts from the wave start."""
        rider = make_rider(rider_no="A5")
        now = datetime(2025, 8, 3, 7, 0)
        assert elapsed_since_start(rider, route, clock, now) == 120

    def test_not_started_without_records(self, route, clock, make_rider):
        rider = make_rider(rider_no="A5", status="not_started")
        assert elapsed_since_start(rider, route, clock, clock.now()) == 0

    def test_before_wave_start(self, route, clock, make_rider):
        rider = make_rider(rider_no="AG1")
        assert elapsed_since_start(rider, route, clock, datetime(2025, 8, 3, 12, 0)) == 0


# =============================================================================
# Test Speeds
# =============================================================================

class TestSpeeds:
    """Tests for average_speed and leg_speed."""

    def test_average_speed(self):
        assert average_speed(193, 300) == pytest.approx(38.6)

    @pytest.mark.parametrize("distance,minutes", [(0, 100), (100, 0), (-5, 60), (50, -10)])
    def test_non_positive_inputs(self, distance, minutes):
        assert average_speed(distance, minutes) == 0.0

    def test_non_finite_inputs(self):
        assert average_speed(math.nan, 10) == 0.0
        assert average_speed(math.inf, 10) == 0.0
        assert average_speed(100, math.nan) == 0.0

    def test_leg_speed(self):
        assert leg_speed(90, 193, 240, 300) == pytest.approx(103.0)

    def test_leg_speed_no_movement(self):
        assert leg_speed(193, 193, 300, 360) == 0.0

    def test_splits(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[
            ("Start", "Sunday 05:00"), ("Northstowe", "Sunday 09:00"), ("Boston", "Sunday 11:30"),
        ])
        splits = checkpoint_splits(resolve_checkpoints(rider, route, clock))
        assert len(splits) == 2
        assert splits[0].distance_km == 90
        assert splits[0].minutes == 240
        assert splits[0].speed_kmh == pytest.approx(22.5)
        assert splits[1].to_dict() == {
            "from": "Northstowe",
            "to": "Boston",
            "distance_km": 103,
            "minutes": 150,
            "speed_kmh": 41.2,
        }

    def test_split_with_unknown_time(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Start", "Sunday 05:00"), ("Northstowe", "later")])
        split = checkpoint_splits(resolve_checkpoints(rider, route, clock))[0]
        assert split.minutes is None
        assert split.speed_kmh == 0.0


# =============================================================================
# Test Position Estimate
# =============================================================================

class TestEstimatedDistance:
    """Extrapolation since the last record."""

    def test_moves_at_own_speed(self):
        assert estimated_distance(193, RiderStatus.IN_PROGRESS, 60, 38.6, 248) == pytest.approx(231.6)

    def test_capped_before_next_control(self):
        """Never more than 90% of the gap to the next control."""
        assert estimated_distance(193, RiderStatus.IN_PROGRESS, 120, 38.6, 248) == pytest.approx(242.5)

    def test_default_speed(self):
        assert estimated_distance(193, RiderStatus.IN_PROGRESS, 60, 0, 248) == pytest.approx(208.0)

    def test_within_grace_window(self):
        assert estimated_distance(193, RiderStatus.IN_PROGRESS, 10, 38.6, 248) == 193

    @pytest.mark.parametrize(
        "status", [RiderStatus.FINISHED, RiderStatus.DNF, RiderStatus.NOT_STARTED]
    )
    def test_only_moving_riders(self, status):
        assert estimated_distance(193, status, 600, 38.6, 248) == 193

    def test_no_next_control(self):
        assert estimated_distance(1537, RiderStatus.IN_PROGRESS, 600, 25, None) == 1537

    def test_unknown_time_since(self):
        assert estimated_distance(193, RiderStatus.IN_PROGRESS, None, 38.6, 248) == 193

    def test_custom_policy_values(self):
        result = estimated_distance(
            100, RiderStatus.IN_PROGRESS, 30, 0, 200,
            grace_minutes=0, default_speed_kmh=20, cap_ratio=0.5,
        )
        assert result == pytest.approx(110.0)


class TestEstimatedArrival:
    """Tests for estimated_arrival."""

    def test_arrival(self):
        since = datetime(2025, 8, 3, 9, 0)
        assert estimated_arrival(since, 193, 248, 38.6) == datetime(2025, 8, 3, 10, 25)

    def test_already_there(self):
        assert estimated_arrival(datetime(2025, 8, 3, 9, 0), 248, 248, 30) is None

    def test_no_speed(self):
        assert estimated_arrival(datetime(2025, 8, 3, 9, 0), 193, 248, 0) is None


class TestProgressPercent:
    """Tests for progress_percent."""

    def test_share(self):
        assert progress_percent(193, 1537) == pytest.approx(12.557, abs=0.001)

    def test_clamped_high(self):
        assert progress_percent(2000, 1537) == 100.0

    def test_zero_inputs(self):
        assert progress_percent(0, 1537) == 0.0
        assert progress_percent(100, 0) == 0.0


# =============================================================================
# Test Composition
# =============================================================================

class TestCalculateProgress:
    """End-to-end progress for one rider."""

    def test_fresh_arrival(self, route, clock, make_rider):
        """Start 04:00, Boston 09:00, viewed five minutes later."""
        rider = make_rider(checkpoints=[("Start", "Sunday 04:00"), ("Boston", "Sunday 09:00")])
        now = datetime(2025, 8, 3, 9, 5)
        progress = calculate_progress(rider, route, clock, now, RiderStatus.IN_PROGRESS)

        assert progress.distance_km == 193
        assert progress.estimated_distance_km == 193
        assert progress.elapsed_minutes == 300
        assert progress.average_speed_kmh == pytest.approx(38.6)
        assert progress.total_distance_km == 1537
        assert progress.progress_percent == pytest.approx(193 / 1537 * 100)
        assert progress.last_control.name == "Boston"
        assert progress.next_control.name == "Louth"
        assert progress.minutes_since_last == 5
        assert progress.next_control_eta == datetime(2025, 8, 3, 10, 25)
        assert progress.elapsed_label == "5h 0m"
        assert progress.remaining_km == 1344

    def test_extrapolates_after_grace(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Start", "Sunday 05:00"), ("Boston", "Sunday 10:00")])
        now = datetime(2025, 8, 3, 11, 0)
        progress = calculate_progress(rider, route, clock, now, RiderStatus.IN_PROGRESS)
        assert progress.estimated_distance_km == pytest.approx(231.6)
        assert progress.progress_percent == pytest.approx(231.6 / 1537 * 100)

    def test_dnf_does_not_move(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Start", "Sunday 05:00"), ("Boston", "Sunday 10:00")])
        progress = calculate_progress(rider, route, clock, clock.now(), RiderStatus.DNF)
        assert progress.estimated_distance_km == 193
        assert progress.next_control_eta is None

    def test_no_records_in_progress(self, route, clock, make_rider):
        """Without records the wave start anchors the estimate."""
        rider = make_rider(rider_no="A5")
        now = datetime(2025, 8, 3, 7, 0)
        progress = calculate_progress(rider, route, clock, now, RiderStatus.IN_PROGRESS)
        assert progress.distance_km == 0
        assert progress.elapsed_minutes == 120
        assert progress.minutes_since_last == 120
        assert progress.estimated_distance_km == pytest.approx(30.0)
        assert progress.next_control.name == "Northstowe"
        assert progress.next_control_eta == datetime(2025, 8, 3, 11, 0)

    def test_feed_distance_fallback(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Mystery Hall", "Sunday 06:00")], distance_km=42)
        progress = calculate_progress(rider, route, clock, clock.now(), RiderStatus.DNF)
        assert progress.distance_km == 42
        assert progress.last_control is None

    def test_feed_distance_capped(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Mystery Hall", "Sunday 06:00")], distance_km=5000)
        progress = calculate_progress(rider, route, clock, clock.now(), RiderStatus.DNF)
        assert progress.distance_km == 1537

    def test_london_rider(self, route, clock, make_rider):
        rider = make_rider(
            rider_no="LA1",
            checkpoints=[("Start", "Sunday 05:00"), ("Writtle", "Sunday 06:00"), ("Northstowe", "Sunday 10:00")],
        )
        now = datetime(2025, 8, 3, 10, 5)
        progress = calculate_progress(rider, route, clock, now, RiderStatus.IN_PROGRESS)
        assert progress.distance_km == 110
        assert progress.total_distance_km == 1557
        assert progress.average_speed_kmh == pytest.approx(22.0)
        assert progress.next_control.km == 213

    def test_finished_rider(self, route, clock, make_rider):
        rider = make_rider(
            status="finished",
            checkpoints=[("Henham", "Thursday 10:00"), ("Writtle", "Thursday 13:00")],
        )
        progress = calculate_progress(rider, route, clock, clock.now(), RiderStatus.FINISHED)
        assert progress.distance_km == 1537
        assert progress.progress_percent == 100.0
        assert progress.next_control is None

    def test_custom_policy(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Start", "Sunday 05:00"), ("Boston", "Sunday 10:00")])
        policy = TrackingPolicy(estimate_grace_minutes=120)
        now = datetime(2025, 8, 3, 11, 0)
        progress = calculate_progress(rider, route, clock, now, RiderStatus.IN_PROGRESS, policy=policy)
        assert progress.estimated_distance_km == 193

    def test_to_dict(self, route, clock, make_rider):
        rider = make_rider(checkpoints=[("Start", "Sunday 04:00"), ("Boston", "Sunday 09:00")])
        data = calculate_progress(
            rider, route, clock, datetime(2025, 8, 3, 9, 5), RiderStatus.IN_PROGRESS
        ).to_dict()
        assert data["last_control"] == "Boston"
        assert data["average_speed_kmh"] == 38.6
        assert data["next_control_eta"] == "2025-08-03T10:25:00"
