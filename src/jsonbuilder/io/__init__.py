"""I/O boundaries: JSON codec and fragment caches."""

from .cache import CacheProvider, MemoryCache, cache_from_settings, fetch
from .codec import Encoder, OrjsonEncoder, decode, encode_str, get_encoder

__all__ = [
    "CacheProvider", "MemoryCache", "cache_from_settings", "fetch",
    "Encoder", "OrjsonEncoder", "decode", "encode_str", "get_encoder",
]
