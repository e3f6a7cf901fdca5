"""Memcached cache backend for JSON fragments.

Lightweight adapter for Memcached deployments using pymemcache.
Batched reads use a single get_many round trip.

Requires: pip install jsonbuilder[memcached]
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from jsonbuilder.foundation.errors import JsonDict

from .cache import DEFAULT_TTL, ttl_seconds


@runtime_checkable
class MemcachedClient(Protocol):
    """Protocol for sync Memcached client (duck typing)."""
    def get_many(self, keys: list[str]) -> dict[str, bytes]: ...
    def set(self, key: str, value: bytes, expire: int = 0) -> bool: ...
    def delete(self, key: str) -> bool: ...
    def flush_all(self) -> bool: ...


def _import_pymemcache() -> object:
    """Lazy import pymemcache with clear error."""
    try:
        from pymemcache import client as pymemcache_client
        return pymemcache_client
    except ImportError as e:
        raise ImportError(
            "Memcached cache requires pymemcache package. "
            "Install with: pip install jsonbuilder[memcached]"
        ) from e


def parse_server(server: str) -> tuple[str, int]:
    """Split "host:port" (port defaults to 11211)."""
    host, _, port = server.rpartition(":")
    if not host:
        return port, 11211
    return host, int(port)


class MemcachedCache:
    """Memcached-backed fragment cache for distributed deployments.

    Memcached keys cannot contain whitespace or control characters, so keys
    are expected to be simple identifiers (e.g. "posts/1-20240101").

    Args:
        client: Existing pymemcache client instance
        prefix: Key prefix for namespacing (default: "jb:")
        default_ttl: Default TTL in seconds (default: 300)

    Example:
        >>> from pymemcache.client import base
        >>> cache = MemcachedCache(base.Client(("localhost", 11211)))

        # Or from server directly:
        >>> cache = MemcachedCache.from_server("localhost", 11211)
    """

    __slots__ = ("_client", "_prefix", "_default_ttl")

    def __init__(
        self,
        client: MemcachedClient,
        prefix: str = "jb:",
        default_ttl: float = DEFAULT_TTL,
    ) -> None:
        self._client = client
        self._prefix = prefix
        self._default_ttl = default_ttl

    @classmethod
    def from_server(
        cls,
        host: str = "localhost",
        port: int = 11211,
        prefix: str = "jb:",
        default_ttl: float = DEFAULT_TTL,
        **mc_kwargs: object,
    ) -> MemcachedCache:
        """Create cache from Memcached server address.

        Args:
            host: Memcached server hostname
            port: Memcached server port
            prefix: Key prefix for namespacing
            default_ttl: Default TTL in seconds
            **mc_kwargs: Additional args passed to pymemcache.Client
        """
        pymemcache = _import_pymemcache()
        client = pymemcache.Client((host, port), **mc_kwargs)  # type: ignore[union-attr]
        return cls(client, prefix, default_ttl)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def read_many(self, keys: Iterable[str]) -> dict[str, str]:
        lookup = {self._key(k): k for k in keys}
        if not lookup:
            return {}
        found = self._client.get_many(list(lookup))
        return {
            lookup[k]: v.decode() if isinstance(v, bytes) else v
            for k, v in found.items()
            if k in lookup and v is not None
        }

    def write(self, key: str, value: str, ttl: float | None = None) -> None:
        self._client.set(self._key(key), value.encode(), expire=ttl_seconds(ttl or self._default_ttl))

    def delete(self, key: str) -> bool:
        return bool(self._client.delete(self._key(key)))

    def clear(self) -> None:
        """Flush all entries (Memcached has no prefix scan)."""
        self._client.flush_all()

    def stats(self) -> JsonDict:
        return {
            "backend": "memcached",
            "prefix": self._prefix,
            "default_ttl": self._default_ttl,
        }
