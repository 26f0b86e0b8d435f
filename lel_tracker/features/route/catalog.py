"""Route catalog loader: reads route.yaml and validates the shared section."""

from __future__ import annotations

import logging
import re
from datetime import datetime, time
from pathlib import Path

import yaml

from lel_tracker.shared.constants import Leg

from .models import Control, RouteTable, RouteVariant

logger = logging.getLogger(__name__)


class RouteConfigError(ValueError):
    """The route table is missing or inconsistent."""


def parse_time_of_day(value: str) -> time:
    """Parse 'HH:MM' into a time, raising RouteConfigError on bad input."""
    try:
        return datetime.strptime(str(value).strip(), "%H:%M").time()
    except ValueError as e:
        raise RouteConfigError(f"Invalid time of day: {value!r}") from e


def control_id(name: str, leg: Leg) -> str:
    """Stable id for a control: slug of its name plus leg initial."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return f"{slug}-{leg.value[0].lower()}"


class RouteCatalog:
    """Loads and provides access to the route table from YAML."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._table: RouteTable | None = None

    def load(self) -> RouteTable:
        """Load and validate the route table."""
        if not self.path.exists():
            raise RouteConfigError(f"Route file not found: {self.path}")

        with open(self.path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        table = build_route_table(data)
        logger.info(
            f"Loaded route table from {self.path.name}: "
            f"{', '.join(f'{v.key} ({v.total_km:g} km)' for v in table.variants.values())}"
        )
        self._table = table
        return table

    @property
    def table(self) -> RouteTable:
        if self._table is None:
            self.load()
        return self._table


def build_route_table(data: dict) -> RouteTable:
    """Build a RouteTable from parsed YAML data."""
    variants: dict[str, RouteVariant] = {}
    for v in data.get("variants", []):
        variant = _build_variant(v)
        if variant.key in variants:
            raise RouteConfigError(f"Duplicate variant: {variant.key}")
        variants[variant.key] = variant

    if not variants:
        raise RouteConfigError("Route table defines no variants")

    default_variant = data.get("default_variant", next(iter(variants)))
    if default_variant not in variants:
        raise RouteConfigError(f"Unknown default variant: {default_variant}")

    table = RouteTable(
        variants=variants,
        default_variant=default_variant,
        merge_control=data.get("merge_control", ""),
        diverge_control=data.get("diverge_control", ""),
        wave_starts={
            str(code): parse_time_of_day(start)
            for code, start in (data.get("waves") or {}).items()
        },
    )
    validate_shared_section(table)
    return table


def _build_variant(v: dict) -> RouteVariant:
    key = v.get("key")
    raw_controls = v.get("controls") or []
    if not key or not raw_controls:
        raise RouteConfigError(f"Variant needs a key and controls: {v!r}")

    controls = []
    for c in raw_controls:
        try:
            leg = Leg(c.get("leg", Leg.NORTH.value))
        except ValueError as e:
            raise RouteConfigError(f"Unknown leg in {key}: {c!r}") from e
        controls.append(
            Control(
                id=control_id(c["name"], leg),
                name=c["name"],
                km=float(c["km"]),
                leg=leg,
                description=c.get("description"),
            )
        )

    ids = [c.id for c in controls]
    if len(set(ids)) != len(ids):
        raise RouteConfigError(f"Duplicate control ids in {key}: {ids}")

    kms = [c.km for c in controls]
    if kms != sorted(kms) or kms[0] != 0:
        raise RouteConfigError(f"Controls of {key} must start at 0 km and ascend")

    pattern = v.get("start_pattern")
    return RouteVariant(
        key=key,
        name=v.get("name", key),
        controls=tuple(controls),
        default_start=parse_time_of_day(v.get("default_start", "06:00")),
        offset_km=float(v.get("offset_km", 0)),
        start_pattern=re.compile(pattern) if pattern else None,
    )


def shared_section(variant: RouteVariant, merge: str, diverge: str) -> list[Control]:
    """Controls from the first `merge` to the last `diverge`, inclusive."""
    names = [c.name for c in variant.controls]
    if merge not in names or diverge not in names:
        raise RouteConfigError(
            f"Variant {variant.key} lacks merge/diverge control {merge}/{diverge}"
        )
    start = names.index(merge)
    end = len(names) - 1 - names[::-1].index(diverge)
    return list(variant.controls[start:end + 1])


def validate_shared_section(table: RouteTable) -> None:
    """
    Check that all variants agree between the merge and diverge controls.

    After subtracting each variant's offset, the shared controls must match
    the default variant control-for-control in name, leg and distance.
    """
    if not table.merge_control or not table.diverge_control:
        if len(table.variants) > 1:
            raise RouteConfigError("merge_control and diverge_control are required")
        return

    def normalized(variant: RouteVariant) -> list[tuple[str, Leg, float]]:
        return [
            (c.name, c.leg, c.km - variant.offset_km)
            for c in shared_section(variant, table.merge_control, table.diverge_control)
        ]

    reference = normalized(table.default)
    for variant in table.variants.values():
        if normalized(variant) != reference:
            raise RouteConfigError(
                f"Variant {variant.key} diverges from {table.default_variant} "
                f"between {table.merge_control} and {table.diverge_control}"
            )
