"""Control matching: resolve feed checkpoint names against the route table.

Feed names do not always match the table: they carry directional
suffixes ("Brampton S"), repeat on the return leg, or are spelled
differently. Matching runs through MATCH_STRATEGIES in order and the
first strategy that yields candidates wins, so an exact match always
beats a looser one.
"""

from __future__ import annotations

import re
from typing import Callable, Sequence

from lel_tracker.shared.constants import START_ALIAS

from .models import Control

# Trailing single uppercase letter, e.g. "Brampton S"
_SUFFIX_RE = re.compile(r"\s+([A-Z])$")

# Shortest name allowed to match as a substring of a control name
_MIN_SUBSTRING_LEN = 3

MatchStrategy = Callable[[str, Sequence[Control]], list[Control]]


def split_suffix(raw: str) -> tuple[str, str | None]:
    """Split 'Brampton S' into ('Brampton', 'S'); no suffix gives None."""
    raw = raw.strip()
    m = _SUFFIX_RE.search(raw)
    if not m:
        return raw, None
    return raw[:m.start()], m.group(1)


def match_start_alias(raw: str, controls: Sequence[Control]) -> list[Control]:
    """'Start' is the first control of whichever variant the rider is on."""
    if raw.strip().lower() == START_ALIAS.lower() and controls:
        return [controls[0]]
    return []


def match_exact(raw: str, controls: Sequence[Control]) -> list[Control]:
    return [c for c in controls if c.name == raw]


def match_suffix_stripped(raw: str, controls: Sequence[Control]) -> list[Control]:
    stripped, suffix = split_suffix(raw)
    if suffix is None:
        return []
    return [c for c in controls if c.name == stripped]


def match_substring(raw: str, controls: Sequence[Control]) -> list[Control]:
    """Last resort: either name contains the other (case-insensitive)."""
    stripped, _ = split_suffix(raw)
    raw_lower = raw.lower()
    stripped_lower = stripped.lower()
    found = []
    for c in controls:
        name_lower = c.name.lower()
        if name_lower in raw_lower:
            found.append(c)
        elif len(stripped_lower) >= _MIN_SUBSTRING_LEN and stripped_lower in name_lower:
            found.append(c)
    return found


MATCH_STRATEGIES: tuple[tuple[str, MatchStrategy], ...] = (
    ("start", match_start_alias),
    ("exact", match_exact),
    ("suffix", match_suffix_stripped),
    ("substring", match_substring),
)


def find_candidates(
    raw: str, controls: Sequence[Control]
) -> tuple[str | None, list[Control]]:
    """Run strategies in order. Returns (strategy name, candidates)."""
    if not raw or not raw.strip():
        return None, []
    for name, strategy in MATCH_STRATEGIES:
        candidates = strategy(raw, controls)
        if candidates:
            return name, candidates
    return None, []


def select_control(
    raw: str,
    controls: Sequence[Control],
    near_km: float | None = None,
) -> Control | None:
    """
    Resolve a feed checkpoint name to a single control.

    A suffix naming a leg initial ('N'/'S') narrows candidates to that
    leg. Remaining ties go to the candidate closest to `near_km`, or to
    the first in route order when no position is known.
    """
    _, candidates = find_candidates(raw, controls)
    if not candidates:
        return None

    _, suffix = split_suffix(raw)
    if suffix and len(candidates) > 1:
        on_leg = [c for c in candidates if c.leg.value[0] == suffix]
        if on_leg:
            candidates = on_leg

    if near_km is not None and len(candidates) > 1:
        return min(candidates, key=lambda c: abs(c.km - near_km))
    return candidates[0]
