"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lel_tracker.shared.constants import (
    DEFAULT_APPROACH_THRESHOLD_KM,
    DEFAULT_ESTIMATE_GRACE_MINUTES,
    DEFAULT_NEXT_CONTROL_CAP_RATIO,
    DEFAULT_RECENT_LIMIT,
    DEFAULT_RECENT_WINDOW_MINUTES,
    DEFAULT_SPEED_KMH,
    STALL_THRESHOLD_MINUTES,
)

# Package root: lel_tracker/
PACKAGE_ROOT = Path(__file__).parent
# Bundled static data: lel_tracker/content/
CONTENT_DIR = PACKAGE_ROOT / "content"


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    log_level: str = Field(default="INFO", description="Logging level")

    # === Event ===
    event_name: str = Field(default="London-Edinburgh-London")
    event_timezone: str = Field(
        default="Europe/London",
        description="IANA zone all checkpoint times are reported in"
    )
    event_start_date: date = Field(
        default=date(2025, 8, 3),
        description="Calendar date of the first wave start"
    )
    route_file: Path = Field(
        default=CONTENT_DIR / "route.yaml",
        description="Route and wave table"
    )

    # === Tracking policy ===
    stall_threshold_minutes: int = Field(default=STALL_THRESHOLD_MINUTES, gt=0)
    estimate_grace_minutes: int = Field(default=DEFAULT_ESTIMATE_GRACE_MINUTES, ge=0)
    default_speed_kmh: float = Field(default=DEFAULT_SPEED_KMH, gt=0)
    next_control_cap_ratio: float = Field(
        default=DEFAULT_NEXT_CONTROL_CAP_RATIO,
        gt=0,
        le=1,
        description="Share of the gap to the next control an estimate may cover"
    )
    approach_threshold_km: float = Field(default=DEFAULT_APPROACH_THRESHOLD_KM, gt=0)

    # === Feeds ===
    recent_window_minutes: int = Field(default=DEFAULT_RECENT_WINDOW_MINUTES, gt=0)
    recent_limit: int = Field(default=DEFAULT_RECENT_LIMIT, gt=0)
    feed_cache_ttl_seconds: float = Field(default=300.0, ge=0)

    @field_validator('event_timezone')
    @classmethod
    def check_timezone(cls, v: str) -> str:
        """Reject zone names zoneinfo cannot resolve."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    model_config = SettingsConfigDict(
        env_prefix="LEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging the same way for every entry point."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


# Global settings instance
settings = Settings()
