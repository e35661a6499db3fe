"""Process-local key/value cache with optional per-entry expiry.

Reads and writes are not locked. Concurrent misses for the same key may both
compute a value; the last write wins.
"""

import logging
import time
from typing import Callable, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheEntry(BaseModel, Generic[T]):
    key: str
    value: T
    created_at: float
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class CacheStats(BaseModel):
    prefix: str
    entries: int
    max_entries: Optional[int] = None
    oldest_key: Optional[str] = None


class TTLCache(Generic[T]):
    """Keyed store where each entry may carry an expiry time.

    `ttl_seconds=None` keeps entries until evicted. When `max_entries` is
    reached, expired entries are swept first and then the oldest entry is
    dropped to make room.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_entries: Optional[int] = None,
        prefix: str = "cache",
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries or None
        self.prefix = prefix
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        full_key = self._key(key)
        entry = self._entries.get(full_key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._entries.pop(full_key, None)
            return None
        return entry

    def get(self, key: str) -> Optional[T]:
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: T) -> CacheEntry:
        now = self._clock()
        full_key = self._key(key)
        if (
            self.max_entries is not None
            and full_key not in self._entries
            and len(self._entries) >= self.max_entries
        ):
            self.sweep()
            while len(self._entries) >= self.max_entries:
                oldest = min(self._entries.values(), key=lambda e: e.created_at)
                logger.debug("Cache %s full, evicting %s", self.prefix, oldest.key)
                self._entries.pop(self._key(oldest.key), None)

        entry = CacheEntry(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + self.ttl_seconds if self.ttl_seconds is not None else None,
        )
        self._entries[full_key] = entry
        return entry

    def delete(self, key: str) -> bool:
        return self._entries.pop(self._key(key), None) is not None

    def sweep(self) -> int:
        """Drop every expired entry under this cache's prefix; returns how many were removed."""
        now = self._clock()
        expired = [k for k, entry in self._entries.items() if entry.is_expired(now)]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.info("Swept %d expired entries from %s", len(expired), self.prefix)
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> CacheStats:
        oldest = min(self._entries.values(), key=lambda e: e.created_at, default=None)
        return CacheStats(
            prefix=self.prefix,
            entries=len(self._entries),
            max_entries=self.max_entries,
            oldest_key=oldest.key if oldest else None,
        )
