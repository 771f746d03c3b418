"""In-memory content status cache with expiry."""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from catalog_content.core.config import settings
from catalog_content.layout.status import ContentStatus

Clock = Callable[[], float]


@dataclass
class _Entry:
    status: ContentStatus
    stored_at: float


class ContentStatusCache:
    """Keeps computed statuses for ``ttl_seconds``.

    An entry expires once its age exceeds the TTL; at exactly the TTL it is
    still returned. The clock is injected so expiry can be driven
    deterministically. Expired entries are evicted when they are read.
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must not be negative")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def _is_fresh(self, entry: _Entry, now: float) -> bool:
        return now - entry.stored_at <= self.ttl_seconds

    def set(self, product_id: str, status: ContentStatus) -> None:
        self._entries[product_id] = _Entry(status=status, stored_at=self._clock())

    def get(self, product_id: str) -> ContentStatus | None:
        entry = self._entries.get(product_id)
        if entry is None:
            return None
        if not self._is_fresh(entry, self._clock()):
            del self._entries[product_id]
            return None
        return entry.status

    def has(self, product_id: str) -> bool:
        return self.get(product_id) is not None

    def invalidate(self, product_id: str) -> None:
        self._entries.pop(product_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> dict[str, int]:
        """Return the number of stored entries and how many are still fresh."""
        now = self._clock()
        fresh = sum(1 for entry in self._entries.values() if self._is_fresh(entry, now))
        return {"total": len(self._entries), "fresh": fresh}


# Global instance
_status_cache: Optional[ContentStatusCache] = None


def get_status_cache() -> ContentStatusCache:
    """Get the process-wide status cache, creating it on first use."""
    global _status_cache
    if _status_cache is None:
        _status_cache = ContentStatusCache(ttl_seconds=settings.STATUS_CACHE_TTL_SECONDS)
    return _status_cache


def reset_status_cache() -> None:
    """Reset status cache singleton. Used for testing."""
    global _status_cache
    _status_cache = None
