"""
POS Core Caching — Thread-Safe TTL Cache
==========================================
Process-wide read cache for immutable build output (compiled rule sets).

Doctrine: Cache is disposable — every value can be rebuilt from its source.
Invalidation is wholesale; staleness up to the TTL is accepted.
Time is injected — no datetime.now() calls.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from core.time.temporal import is_expired


# ══════════════════════════════════════════════════════════════
# CACHE ENTRY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CacheEntry:
    """A single cached value with TTL metadata."""

    key: str
    value: Any
    created_at: datetime
    ttl_seconds: float

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(seconds=self.ttl_seconds)

    def is_expired(self, now: datetime) -> bool:
        return is_expired(self.created_at, self.ttl_seconds, now)


# ══════════════════════════════════════════════════════════════
# CACHE STATISTICS
# ══════════════════════════════════════════════════════════════

@dataclass
class CacheStats:
    """Cache performance statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    invalidations: int = 0
    total_entries: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "invalidations": self.invalidations,
            "total_entries": self.total_entries,
            "hit_rate": round(self.hit_rate, 4),
        }


# ══════════════════════════════════════════════════════════════
# TTL CACHE
# ══════════════════════════════════════════════════════════════

class TTLCache:
    """
    In-memory cache with TTL expiration and a soft size ceiling.

    - Entries older than the TTL are treated as misses and dropped on read.
    - When the entry count grows past max_size, expired entries are purged.
      Live entries are never evicted to make room.
    - clear() drops everything (wholesale invalidation).

    All public methods hold a re-entrant lock, so one instance may be
    shared by concurrent sale sessions.
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl_seconds: float = 300,
    ) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}.")
        if default_ttl_seconds <= 0:
            raise ValueError(
                f"default_ttl_seconds must be positive, got {default_ttl_seconds}."
            )
        self._max_size = max_size
        self._default_ttl = default_ttl_seconds
        self._entries: Dict[str, CacheEntry] = {}
        self._stats = CacheStats()
        self._lock = threading.RLock()

    def get(self, key: str, now: datetime) -> Optional[Any]:
        """
        Get a cached value by key.

        Returns None on miss or expired entry.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None

            if entry.is_expired(now):
                self._evict(key)
                self._stats.misses += 1
                return None

            self._stats.hits += 1
            return entry.value

    def put(
        self,
        key: str,
        value: Any,
        now: datetime,
        ttl_seconds: Optional[float] = None,
    ) -> None:
        """Store a value; trims expired entries once past the size ceiling."""
        with self._lock:
            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                created_at=now,
                ttl_seconds=ttl_seconds or self._default_ttl,
            )
            if len(self._entries) > self._max_size:
                self.purge_expired(now)
            self._stats.total_entries = len(self._entries)

    def get_or_create(
        self,
        key: str,
        now: datetime,
        factory: Callable[[], Any],
    ) -> Any:
        """Return the live value for key, building and storing it on a miss."""
        with self._lock:
            value = self.get(key, now)
            if value is None:
                value = factory()
                self.put(key, value, now)
            return value

    def purge_expired(self, now: datetime) -> int:
        """Drop every expired entry. Returns number removed."""
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                self._evict(key)
            return len(expired)

    def invalidate(self, key: str) -> bool:
        """Invalidate a specific cache entry."""
        with self._lock:
            if key in self._entries:
                self._evict(key)
                self._stats.invalidations += 1
                return True
            return False

    def clear(self) -> int:
        """Clear all cache entries. Returns number invalidated."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._stats.invalidations += count
            self._stats.total_entries = 0
            return count

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def max_size(self) -> int:
        return self._max_size

    def _evict(self, key: str) -> None:
        self._entries.pop(key, None)
        self._stats.evictions += 1
        self._stats.total_entries = len(self._entries)
