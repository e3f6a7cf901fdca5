"""JSON fragment caching with TTL support.

The builder consults a cache only through `CacheProvider` (`read_many` and
`write`). Caches are passed explicitly to builders; there is no global cache.

Backends:
    - MemoryCache: Thread-safe in-memory (default)
    - RedisCache: Sync redis-py backend (requires jsonbuilder[redis])
    - MemcachedCache: Sync pymemcache backend (requires jsonbuilder[memcached])
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .cache import (
    DEFAULT_TTL,
    CacheEntry,
    CacheProvider,
    MemoryCache,
    fetch,
    safe_read_many,
    safe_write,
    ttl_seconds,
)

if TYPE_CHECKING:
    from jsonbuilder.foundation.config import CacheSettings

__all__ = [
    "CacheProvider",
    "CacheEntry",
    "MemoryCache",
    "fetch",
    "safe_read_many",
    "safe_write",
    "ttl_seconds",
    "cache_from_settings",
    "DEFAULT_TTL",
    # Redis (lazy import)
    "RedisCache",
    # Memcached (lazy import)
    "MemcachedCache",
]


def cache_from_settings(settings: CacheSettings) -> CacheProvider | None:
    """Create the backend selected by `settings` (None when caching is disabled)."""
    if not settings.enabled:
        return None
    if settings.backend == "redis":
        from .redis import RedisCache
        assert settings.redis_url is not None
        return RedisCache.from_url(settings.redis_url.get_secret_value(), settings.prefix, settings.ttl)
    if settings.backend == "memcached":
        from .memcached import MemcachedCache, parse_server
        assert settings.memcached_server is not None
        host, port = parse_server(settings.memcached_server)
        return MemcachedCache.from_server(host, port, settings.prefix, settings.ttl)
    return MemoryCache(default_ttl=settings.ttl, max_entries=settings.max_size)


def __getattr__(name: str) -> object:
    """Lazy import Redis/Memcached backends to avoid import-time dependency."""
    if name == "RedisCache":
        from .redis import RedisCache
        return RedisCache
    if name == "MemcachedCache":
        from .memcached import MemcachedCache
        return MemcachedCache
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
