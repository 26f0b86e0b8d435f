"""
Time-bounded cache keyed by resource name.

Fetching is done by the caller; this only remembers what was loaded
and for how long it stays fresh.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached value and the monotonic time it expires at."""
    value: Any
    expires_at: float


class TTLCache:
    """
    Cache of named resources with a per-entry time to live.

    Args:
        default_ttl: TTL in seconds used when `set` gets none
        clock: Monotonic clock, injectable for tests
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def get_or_load(
        self,
        key: str,
        loader: Callable[[], Any],
        ttl: Optional[float] = None,
    ) -> Any:
        """
        Return a fresh cached value or call `loader` and cache its result.

        Exceptions from `loader` propagate and leave the cache untouched.
        """
        value = self.get(key)
        if value is not None:
            return value

        logger.debug(f"Cache miss for {key}, loading")
        value = loader()
        self.set(key, value, ttl)
        return value

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one entry, or everything when no key is given."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
