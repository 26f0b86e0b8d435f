"""
Progress module: distance, elapsed time, speed and position estimates.

Usage:
    from lel_tracker.features.progress import calculate_progress, average_speed
"""

from .models import DerivedProgress, LegSplit, ResolvedCheckpoint
from .calculator import (
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

__all__ = [
    # Models
    "DerivedProgress",
    "LegSplit",
    "ResolvedCheckpoint",
    # Calculator
    "average_speed",
    "calculate_progress",
    "checkpoint_splits",
    "elapsed_since_start",
    "estimated_arrival",
    "estimated_distance",
    "furthest_distance",
    "last_parseable",
    "leg_speed",
    "progress_percent",
    "resolve_checkpoints",
    "resolve_controls",
]
