"""
Rider feed schemas.

Pydantic models for the tracking JSON document fetched by the caller.
"""

import logging
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from lel_tracker.shared.constants import RiderStatus

logger = logging.getLogger(__name__)


class CheckpointRecord(BaseModel):
    """One control arrival as reported by the feed."""
    model_config = ConfigDict(frozen=True)

    name: str = ""
    time: str = ""

    @field_validator('name', 'time', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else str(v)


class Rider(BaseModel):
    """A rider and its checkpoint history, in feed order."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    rider_no: str = Field(validation_alias=AliasChoices("rider_no", "id"))
    name: str = Field(default="", validation_alias=AliasChoices("name", "displayName"))
    status: RiderStatus = RiderStatus.NOT_STARTED
    checkpoints: List[CheckpointRecord] = Field(default_factory=list)
    distance_km: float = Field(
        default=0.0,
        validation_alias=AliasChoices("distance_km", "reportedDistanceKm"),
        description="Distance reported by the feed; fallback only"
    )
    last_checkpoint: Optional[str] = None

    @field_validator('rider_no', mode='before')
    @classmethod
    def normalize_rider_no(cls, v):
        return str(v).strip().upper()

    @field_validator('status', mode='before')
    @classmethod
    def coerce_status(cls, v):
        """Unknown status values fall back to not_started."""
        if isinstance(v, RiderStatus):
            return v
        value = str(v or "").strip().lower()
        try:
            return RiderStatus(value)
        except ValueError:
            logger.warning(f"Unknown rider status {v!r}, treating as not_started")
            return RiderStatus.NOT_STARTED

    @field_validator('distance_km', mode='before')
    @classmethod
    def coerce_distance(cls, v):
        try:
            return max(float(v), 0.0)
        except (TypeError, ValueError):
            return 0.0

    @field_validator('checkpoints', mode='before')
    @classmethod
    def none_to_list(cls, v):
        """Entries that are not records at all are skipped."""
        return [c for c in v or [] if isinstance(c, (dict, CheckpointRecord))]

    @property
    def last_record(self) -> Optional[CheckpointRecord]:
        return self.checkpoints[-1] if self.checkpoints else None


def _raw_rider_no(entry: dict) -> Any:
    for key in ("rider_no", "id"):
        if entry.get(key) is not None:
            return entry[key]
    return None


class TrackingFeed(BaseModel):
    """The whole tracking document: riders plus optional event metadata."""
    model_config = ConfigDict(extra="ignore")

    riders: List[Rider] = Field(default_factory=list)
    event: Optional[dict[str, Any]] = None

    @field_validator('riders', mode='before')
    @classmethod
    def drop_unidentified(cls, v):
        """A rider without a usable id is skipped rather than failing the feed."""
        kept = []
        for entry in v or []:
            if isinstance(entry, Rider):
                kept.append(entry)
                continue
            rider_no = _raw_rider_no(entry) if isinstance(entry, dict) else None
            if rider_no is None or not str(rider_no).strip():
                logger.warning(f"Skipping feed rider without an id: {entry!r}")
                continue
            kept.append(entry)
        return kept

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "TrackingFeed":
        return cls.model_validate_json(data)
