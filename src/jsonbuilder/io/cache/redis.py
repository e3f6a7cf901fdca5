"""Redis cache backend for JSON fragments.

Lightweight adapter for existing Redis deployments. Batched reads use a
single MGET round trip; writes use SETEX so TTL is handled by Redis.

Requires: pip install jsonbuilder[redis]
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from jsonbuilder.foundation.errors import JsonDict

from .cache import DEFAULT_TTL, ttl_seconds


@runtime_checkable
class RedisClient(Protocol):
    """Protocol for sync Redis client (duck typing)."""
    def mget(self, keys: list[str]) -> list[bytes | None]: ...
    def setex(self, name: str, time: int, value: str) -> bool: ...
    def delete(self, *names: str) -> int: ...
    def scan_iter(self, match: str) -> object: ...
    def ping(self) -> bool: ...


def _import_redis() -> object:
    """Lazy import redis with clear error."""
    try:
        import redis
        return redis
    except ImportError as e:
        raise ImportError(
            "Redis cache requires redis package. "
            "Install with: pip install jsonbuilder[redis]"
        ) from e


def _text(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    return value.decode() if isinstance(value, bytes) else value


class RedisCache:
    """Redis-backed fragment cache for distributed deployments.

    Args:
        client: Existing Redis client instance (sync)
        prefix: Key prefix for namespacing (default: "jsonbuilder:")
        default_ttl: Default TTL in seconds (default: 300)

    Example:
        >>> import redis
        >>> cache = RedisCache(redis.from_url("redis://localhost:6379/0"))
        >>> Builder.encode(render, cache=cache)

        # Or from URL directly:
        >>> cache = RedisCache.from_url("redis://localhost:6379/0")
    """

    __slots__ = ("_client", "_prefix", "_default_ttl")

    def __init__(
        self,
        client: RedisClient,
        prefix: str = "jsonbuilder:",
        default_ttl: float = DEFAULT_TTL,
    ) -> None:
        self._client = client
        self._prefix = prefix
        self._default_ttl = default_ttl

    @classmethod
    def from_url(
        cls,
        url: str,
        prefix: str = "jsonbuilder:",
        default_ttl: float = DEFAULT_TTL,
        **redis_kwargs: object,
    ) -> RedisCache:
        """Create cache from Redis URL.

        Args:
            url: Redis connection URL (redis://host:port/db)
            prefix: Key prefix for namespacing
            default_ttl: Default TTL in seconds
            **redis_kwargs: Additional args passed to redis.from_url
        """
        redis = _import_redis()
        client = redis.from_url(url, **redis_kwargs)  # type: ignore[union-attr]
        return cls(client, prefix, default_ttl)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def read_many(self, keys: Iterable[str]) -> dict[str, str]:
        keys = list(keys)
        if not keys:
            return {}
        values = self._client.mget([self._key(k) for k in keys])
        return {k: text for k, v in zip(keys, values) if (text := _text(v)) is not None}

    def write(self, key: str, value: str, ttl: float | None = None) -> None:
        self._client.setex(self._key(key), ttl_seconds(ttl or self._default_ttl), value)

    def delete(self, key: str) -> bool:
        return self._client.delete(self._key(key)) > 0

    def clear(self) -> None:
        """Clear all prefixed keys using SCAN."""
        if keys := list(self._client.scan_iter(match=f"{self._prefix}*")):
            self._client.delete(*keys)

    def ping(self) -> bool:
        """Check Redis connection health."""
        try:
            return bool(self._client.ping())
        except Exception:
            return False

    def stats(self) -> JsonDict:
        return {
            "backend": "redis",
            "prefix": self._prefix,
            "default_ttl": self._default_ttl,
            "connected": self.ping(),
        }
