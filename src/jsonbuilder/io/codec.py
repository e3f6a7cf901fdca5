"""JSON codec for builder output.

orjson is a core dependency - no fallback to stdlib json. Pre-serialized
fragments (anything exposing `as_fragment()`, such as `RawJson`) are spliced
into the output verbatim instead of being re-encoded as string literals.

Usage:
    >>> from jsonbuilder.io.codec import encode_str, decode
    >>> encode_str({"key": "value"})
    '{"key":"value"}'
    >>> decode('{"key":"value"}')
    {'key': 'value'}
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import orjson

from jsonbuilder.foundation.errors import DecodingError, EncodingError, JsonValue

_BASE_OPTIONS = orjson.OPT_NON_STR_KEYS | orjson.OPT_SERIALIZE_NUMPY | orjson.OPT_UTC_Z


@runtime_checkable
class Encoder(Protocol):
    """Protocol for value-tree encoders used by builders."""

    def encode(self, data: object) -> str: ...
    def decode(self, data: str | bytes) -> JsonValue: ...


def _default(obj: object) -> object:
    """orjson fallback: raw fragments and pydantic models."""
    as_fragment = getattr(obj, "as_fragment", None)
    if callable(as_fragment):
        return as_fragment()
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")  # type: ignore[union-attr]
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


class OrjsonEncoder:
    """orjson encoder producing `str` output.

    Args:
        indent: Pretty-print with two-space indentation
        sort_keys: Sort object keys (off by default, insertion order is kept)

    Example:
        >>> OrjsonEncoder(indent=True).encode({"a": [1, 2]})
        '{\\n  "a": [\\n    1,\\n    2\\n  ]\\n}'
    """

    __slots__ = ("indent", "sort_keys", "_options")

    def __init__(self, indent: bool = False, sort_keys: bool = False) -> None:
        self.indent = indent
        self.sort_keys = sort_keys
        options = _BASE_OPTIONS
        if indent:
            options |= orjson.OPT_INDENT_2
        if sort_keys:
            options |= orjson.OPT_SORT_KEYS
        self._options = options

    def encode(self, data: object) -> str:
        try:
            return orjson.dumps(data, default=_default, option=self._options).decode()
        except orjson.JSONEncodeError as e:
            raise EncodingError.create("encode", str(e), value_type=type(data).__name__) from e

    def decode(self, data: str | bytes) -> JsonValue:
        try:
            return orjson.loads(data)
        except orjson.JSONDecodeError as e:
            raise DecodingError.create("decode", str(e)) from e

    def __repr__(self) -> str:
        return f"OrjsonEncoder(indent={self.indent}, sort_keys={self.sort_keys})"


_default_encoder = OrjsonEncoder()


def get_encoder() -> OrjsonEncoder:
    """Shared compact encoder (stateless)."""
    return _default_encoder


def encode_str(data: object) -> str:
    """Encode to a compact JSON string."""
    return _default_encoder.encode(data)


def decode(data: str | bytes) -> JsonValue:
    """Decode JSON text into a value tree."""
    return _default_encoder.decode(data)
