"""Riders feature module: feed schemas and the cached feed store."""

from .schemas import CheckpointRecord, Rider, TrackingFeed
from .store import FeedStore

__all__ = [
    "CheckpointRecord",
    "Rider",
    "TrackingFeed",
    "FeedStore",
]
