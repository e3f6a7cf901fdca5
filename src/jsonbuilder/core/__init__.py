"""Builder engine: object/array construction, dispatch and cache-aware arrays."""

from .builder import Builder, WriteBudget, is_collection, options_from_settings, read_property
from .raw import CACHE_KEY_ATTR, Cacheable, RawJson, cache_key_of
from .template import OutputBuffer, RenderContext, TemplateBuilder, render_template

__all__ = [
    "Builder", "WriteBudget", "is_collection", "options_from_settings", "read_property",
    "CACHE_KEY_ATTR", "Cacheable", "RawJson", "cache_key_of",
    "OutputBuffer", "RenderContext", "TemplateBuilder", "render_template",
]
