"""FeedStore: validated, time-bounded access to fetched tracking documents."""

from __future__ import annotations

import logging
from typing import Callable

from lel_tracker.shared.cache import TTLCache

from .schemas import TrackingFeed

logger = logging.getLogger(__name__)

# Fetches the raw document for a resource name (URL, path, ...)
FeedFetcher = Callable[[str], "str | bytes"]


class FeedStore:
    """
    Caches parsed feeds by resource name.

    Fetching is delegated to the caller-supplied `fetch`; this class only
    validates and remembers the result until its TTL runs out.
    """

    def __init__(self, fetch: FeedFetcher, cache: TTLCache):
        self.fetch = fetch
        self.cache = cache

    def load_feed(self, resource: str, ttl: float | None = None) -> TrackingFeed:
        """Return the cached feed, or fetch and validate it."""
        return self.cache.get_or_load(
            resource,
            lambda: self._fetch_feed(resource),
            ttl=ttl,
        )

    def _fetch_feed(self, resource: str) -> TrackingFeed:
        feed = TrackingFeed.from_json(self.fetch(resource))
        logger.info(f"Loaded {len(feed.riders)} riders from {resource}")
        return feed

    def refresh(self, resource: str) -> TrackingFeed:
        self.cache.invalidate(resource)
        return self.load_feed(resource)
