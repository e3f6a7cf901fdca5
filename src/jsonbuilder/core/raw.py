"""Pre-serialized JSON values and the cacheable-element contract."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import orjson

CACHE_KEY_ATTR = "json_cache_key"


class RawJson:
    """JSON text spliced into encoder output verbatim.

    The text is assumed to be valid JSON already; it is never parsed or
    re-escaped. Instances are immutable.

    Example:
        >>> encode_str([RawJson('{"x":1}')])
        '[{"x":1}]'
    """

    __slots__ = ("_json",)

    def __init__(self, json: str) -> None:
        self._json = json

    @property
    def json(self) -> str:
        return self._json

    def as_fragment(self) -> orjson.Fragment:
        """Encoder hook: emit the wrapped text as-is."""
        return orjson.Fragment(self._json)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, RawJson) and other._json == self._json

    def __hash__(self) -> int:
        return hash(self._json)

    def __repr__(self) -> str:
        return f"RawJson({self._json!r})"


@runtime_checkable
class Cacheable(Protocol):
    """Collection element whose built JSON may be cached under `json_cache_key`.

    The key is opaque to the builder; it should change whenever the
    element's rendered JSON would change (e.g. include an updated-at stamp).
    """

    @property
    def json_cache_key(self) -> str: ...


def cache_key_of(element: object) -> str | None:
    """Return the element's cache key, or None when it is not cacheable.

    The accessor may be a plain attribute, a property, or a zero-argument method.
    """
    key = getattr(element, CACHE_KEY_ATTR, None)
    if callable(key):
        key = key()
    return None if key is None else str(key)
