"""jsonbuilder - Declarative builder for ordered JSON documents.

Build JSON from imperative-looking calls, typically driven by a template
layer. Nested objects and arrays are produced by child builders; arrays of
cacheable elements splice pre-rendered fragments from a cache.

Quick Start:
    >>> from jsonbuilder import Builder
    >>>
    >>> def render(json):
    ...     json.set("name", "David")
    ...     json.set("age", 32)
    ...     json.invoke("comments", comments, block=lambda c, comment: c.set("content", comment.text))
    >>>
    >>> Builder.encode(render)
    '{"name":"David","age":32,"comments":[{"content":"hello"},{"content":"world"}]}'

Caching array elements:
    >>> from jsonbuilder.io.cache import MemoryCache
    >>>
    >>> class Comment:
    ...     @property
    ...     def json_cache_key(self) -> str:
    ...         return f"comments/{self.id}-{self.updated_at:%s}"
    >>>
    >>> Builder.encode(render, cache=MemoryCache())

Configuration from the environment:
    >>> builder = Builder.from_settings()  # JSONBUILDER_CACHE_REDIS_URL, JSONBUILDER_ENCODER_INDENT, ...
"""

from __future__ import annotations

__version__ = "0.1.0"

from .core import (
    Builder,
    Cacheable,
    OutputBuffer,
    RawJson,
    RenderContext,
    TemplateBuilder,
    render_template,
)
from .foundation.config import JsonBuilderSettings, get_settings
from .foundation.errors import (
    BuildError,
    BuilderException,
    CacheError,
    DecodingError,
    EncodingError,
    ErrorCode,
    InvocationError,
    MissingPropertyError,
    StructureConflictError,
)
from .io.cache import CacheProvider, MemoryCache
from .io.codec import OrjsonEncoder, decode, encode_str
from .observability import configure_logging

__all__ = [
    "__version__",
    # Builders
    "Builder", "TemplateBuilder", "render_template", "OutputBuffer", "RenderContext",
    "RawJson", "Cacheable",
    # Errors
    "ErrorCode", "BuildError", "BuilderException", "InvocationError", "StructureConflictError",
    "MissingPropertyError", "EncodingError", "DecodingError", "CacheError",
    # I/O
    "CacheProvider", "MemoryCache", "OrjsonEncoder", "encode_str", "decode",
    # Config & logging
    "JsonBuilderSettings", "get_settings", "configure_logging",
]
