"""
Tracking feature module: the engine entry point.

Usage:
    from lel_tracker.features.tracking import TrackingService

    service = TrackingService.from_settings()
    snapshot = service.snapshot(feed)
"""

from .service import TrackingService, TrackingSnapshot

__all__ = [
    "TrackingService",
    "TrackingSnapshot",
]
