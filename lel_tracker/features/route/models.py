"""Data models for the route table (dataclasses, no I/O)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import time

from lel_tracker.shared.constants import Leg


@dataclass(frozen=True)
class Control:
    """A named checkpoint at a fixed cumulative distance."""

    id: str  # "brampton-s", unique within a variant
    name: str  # "Brampton"
    km: float  # 953
    leg: Leg
    description: str | None = None


@dataclass(frozen=True)
class RouteVariant:
    """One of the start routes, with its ordered controls."""

    key: str  # "writtle" / "london"
    name: str  # "Writtle start"
    controls: tuple[Control, ...]
    default_start: time  # wave start when the wave code is unknown
    offset_km: float = 0  # extra distance vs the base variant on shared controls
    start_pattern: re.Pattern | None = None  # rider ids selecting this variant

    @property
    def first(self) -> Control:
        return self.controls[0]

    @property
    def last(self) -> Control:
        return self.controls[-1]

    @property
    def total_km(self) -> float:
        return self.last.km

    def matches(self, participant_id: str) -> bool:
        """Whether a rider id selects this variant by pattern."""
        if self.start_pattern is None:
            return False
        return bool(self.start_pattern.match(participant_id))

    def index_of(self, control: Control) -> int:
        return self.controls.index(control)

    def next_after(self, km: float) -> Control | None:
        """First control strictly further than `km`, None at the finish."""
        return next((c for c in self.controls if c.km > km), None)


@dataclass
class RouteTable:
    """Everything loaded from the route YAML."""

    variants: dict[str, RouteVariant]
    default_variant: str
    merge_control: str  # first control both variants share
    diverge_control: str  # last control both variants share
    wave_starts: dict[str, time] = field(default_factory=dict)

    @property
    def default(self) -> RouteVariant:
        return self.variants[self.default_variant]
