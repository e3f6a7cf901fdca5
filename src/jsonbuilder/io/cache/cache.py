"""Fragment caching with TTL support.

Stores serialized JSON fragments under caller-supplied opaque keys. The
builder only talks to caches through the two-method `CacheProvider`
protocol: one batched read per array build and one write per freshly
built element.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from jsonbuilder.foundation.errors import CacheError

DEFAULT_TTL: float = 300.0  # 5 minutes

logger = logging.getLogger("jsonbuilder.cache")


def ttl_seconds(ttl: float) -> int:
    """Round `ttl` up to whole seconds, at least 1, for integer-expiry backends."""
    return max(1, math.ceil(ttl))


@runtime_checkable
class CacheProvider(Protocol):
    """Protocol for fragment caches (enables custom implementations).

    `read_many` returns only the keys that were found; absent keys may be
    omitted or mapped to None.
    """

    def read_many(self, keys: Iterable[str]) -> Mapping[str, str | None]: ...
    def write(self, key: str, value: str) -> None: ...


@dataclass(slots=True)
class CacheEntry:
    """A cached fragment with expiration tracking."""
    value: str
    expires_at: float

    @property
    def expired(self) -> bool:
        return time.time() > self.expires_at


class MemoryCache:
    """Thread-safe in-memory cache with TTL-based expiration.

    Uses RLock for synchronization, safe under concurrent access.
    Automatic eviction when capacity is reached.

    Args:
        default_ttl: Default TTL in seconds for entries
        max_entries: Maximum number of entries before eviction

    Example:
        >>> cache = MemoryCache(default_ttl=60)
        >>> cache.write("post/1", '{"title":"hello"}')
        >>> cache.read_many(["post/1", "post/2"])
        {'post/1': '{"title":"hello"}'}
    """

    __slots__ = ("_cache", "_default_ttl", "_max_entries", "_lock")

    def __init__(self, default_ttl: float = DEFAULT_TTL, max_entries: int = 1000) -> None:
        self._cache: dict[str, CacheEntry] = {}
        self._default_ttl = default_ttl
        self._max_entries = max_entries
        self._lock = threading.RLock()  # RLock allows reentrant calls (e.g. write -> _evict)

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._read_unlocked(key)

    def read_many(self, keys: Iterable[str]) -> dict[str, str]:
        with self._lock:
            found = {}
            for key in keys:
                value = self._read_unlocked(key)
                if value is not None:
                    found[key] = value
            return found

    def write(self, key: str, value: str, ttl: float | None = None) -> None:
        with self._lock:
            if key not in self._cache and len(self._cache) >= self._max_entries:
                self._evict_unlocked()
            self._cache[key] = CacheEntry(value=value, expires_at=time.time() + (ttl or self._default_ttl))

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def _read_unlocked(self, key: str) -> str | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.expired:
            del self._cache[key]
            return None
        return entry.value

    def _evict_unlocked(self) -> None:
        """Remove expired entries, then oldest if still over capacity. Caller must hold lock."""
        expired = [k for k, v in self._cache.items() if v.expired]
        for key in expired:
            del self._cache[key]

        # If still over capacity, remove oldest quarter
        if len(self._cache) >= self._max_entries:
            sorted_keys = sorted(self._cache, key=lambda k: self._cache[k].expires_at)
            for key in sorted_keys[: max(1, self._max_entries // 4)]:
                del self._cache[key]

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._cache)

    def stats(self) -> dict[str, object]:
        """Get cache statistics for monitoring."""
        with self._lock:
            expired = sum(1 for v in self._cache.values() if v.expired)
            return {
                "backend": "memory",
                "total_entries": len(self._cache),
                "expired_entries": expired,
                "active_entries": len(self._cache) - expired,
                "default_ttl": self._default_ttl,
                "max_entries": self._max_entries,
            }


# ═══════════════════════════════════════════════════════════════════════════════
# Guarded access
# ═══════════════════════════════════════════════════════════════════════════════


def safe_read_many(cache: CacheProvider, keys: Iterable[str], *, strict: bool = False) -> dict[str, str]:
    """Batched read that drops misses and empty values.

    A backend failure is logged and reported as all misses unless `strict`,
    in which case it is raised as CacheError.
    """
    keys = list(keys)
    if not keys:
        return {}
    try:
        found = cache.read_many(keys)
    except Exception as e:
        if strict:
            raise CacheError.create("read_many", str(e), keys=len(keys)) from e
        logger.warning("cache read failed, treating %d key(s) as misses: %s", len(keys), e)
        return {}
    return {k: v for k, v in found.items() if v}


def safe_write(cache: CacheProvider, key: str, value: str, *, strict: bool = False) -> bool:
    """Single write; returns False when a non-strict write failed."""
    try:
        cache.write(key, value)
    except Exception as e:
        if strict:
            raise CacheError.create("write", str(e), key=key) from e
        logger.warning("cache write failed key=%s: %s", key, e)
        return False
    return True


def fetch(cache: CacheProvider, key: str, build: Callable[[], str], *, strict: bool = False) -> str:
    """Return the cached fragment for `key`, building and storing it on a miss.

    Args:
        cache: Cache provider to read from and write to
        key: Opaque cache key
        build: Callable producing the serialized JSON on a miss
        strict: Raise CacheError on backend failures instead of logging

    Example:
        >>> json = fetch(cache, "posts/index", lambda: Builder.encode(render_posts))
    """
    if cached := safe_read_many(cache, [key], strict=strict).get(key):
        logger.debug("fetch hit key=%s", key)
        return cached

    value = build()
    safe_write(cache, key, value, strict=strict)
    logger.debug("fetch miss key=%s bytes=%d", key, len(value))
    return value
