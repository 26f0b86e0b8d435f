"""RouteModel: which route a rider is on and where its controls are."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import date, datetime, time
from functools import lru_cache
from pathlib import Path

from lel_tracker.shared.constants import START_ALIAS

from .catalog import RouteCatalog
from .matching import select_control
from .models import Control, RouteTable, RouteVariant

logger = logging.getLogger(__name__)

_WAVE_RE = re.compile(r"^([A-Z]+)")

FINISH_NAME = "Finish"


def wave_code(participant_id: str) -> str:
    """Leading letters of a rider id: 'LA15' -> 'LA', 'A25' -> 'A'."""
    m = _WAVE_RE.match((participant_id or "").strip().upper())
    return m.group(1) if m else ""


class RouteModel:
    """
    Route lookups for riders.

    Variant selection is memoized per rider id; the table itself never
    changes at runtime.
    """

    def __init__(self, table: RouteTable):
        self.table = table
        self.variant_for = lru_cache(maxsize=4096)(self._variant_for)
        self._merged = self._build_merged_view()

    @classmethod
    def from_file(cls, path: Path) -> "RouteModel":
        return cls(RouteCatalog(path).load())

    # === Variant selection ===

    def _variant_for(self, participant_id: str) -> RouteVariant:
        pid = (participant_id or "").strip().upper()
        for variant in self.table.variants.values():
            if variant.matches(pid):
                return variant
        return self.table.default

    def controls_for(self, participant_id: str) -> list[Control]:
        return list(self.variant_for(participant_id).controls)

    def total_distance_for(self, participant_id: str) -> float:
        return self.variant_for(participant_id).total_km

    # === Control lookup ===

    def resolve_control(
        self,
        name: str,
        participant_id: str,
        near_km: float | None = None,
    ) -> Control | None:
        """Match a feed checkpoint name on the rider's variant."""
        control = select_control(name, self.variant_for(participant_id).controls, near_km)
        if control is None:
            logger.debug(f"No control matches {name!r} for rider {participant_id}")
        return control

    def distance_of_control(
        self,
        name: str,
        participant_id: str,
        near_km: float | None = None,
    ) -> float:
        """Cumulative km of a checkpoint for this rider, 0 if unknown."""
        control = self.resolve_control(name, participant_id, near_km)
        return control.km if control else 0

    def next_control(self, participant_id: str, distance_km: float) -> Control | None:
        return self.variant_for(participant_id).next_after(distance_km)

    # === Waves ===

    def wave_start_time(self, participant_id: str) -> time:
        """Scheduled time of day for the rider's wave."""
        code = wave_code(participant_id)
        start = self.table.wave_starts.get(code)
        if start is None:
            return self.variant_for(participant_id).default_start
        return start

    def wave_start(self, participant_id: str, event_date: date) -> datetime:
        """Naive event-local instant the rider's wave set off."""
        return datetime.combine(event_date, self.wave_start_time(participant_id))

    # === Merged view (occupancy only) ===

    def _build_merged_view(self) -> list[Control]:
        base = self.table.default.controls
        start = replace(base[0], id="start", name=START_ALIAS, km=0)
        finish = replace(base[-1], id="finish", name=FINISH_NAME)
        return [start, *base[1:-1], finish]

    def merged_controls(self) -> list[Control]:
        """
        Both variants as one list, for occupancy views.

        The two physical starts become one synthetic Start and the two
        finishes one synthetic Finish. Distances are the default variant's
        and must not be used for arithmetic on offset riders.
        """
        return list(self._merged)

    def merged_control_for(self, participant_id: str, control: Control) -> Control:
        """Bucket in the merged view that a variant control belongs to."""
        variant = self.variant_for(participant_id)
        if control == variant.last:
            return self._merged[-1]

        merge_km = next(
            (c.km for c in variant.controls if c.name == self.table.merge_control),
            0,
        )
        if control.km < merge_km or control == variant.first:
            return self._merged[0]

        for bucket in self._merged[1:-1]:
            if bucket.name == control.name and bucket.leg == control.leg:
                return bucket
        return self._merged[0]
