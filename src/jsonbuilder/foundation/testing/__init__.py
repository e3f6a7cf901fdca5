"""Testing utilities for code that builds JSON through caches."""

from .mock import CacheCall, RecordingCache

__all__ = ["CacheCall", "RecordingCache"]
