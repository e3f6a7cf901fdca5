"""Unified error handling for jsonbuilder.

- ErrorCode: Standard error codes for build failures
- BuildError: Structured, serializable error payload
- BuilderException and subclasses: one exception type per failure kind
- JsonValue/JsonDict: JSON type aliases
"""

from .errors import (
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
from .types import JsonDict, JsonPrimitive, JsonValue

__all__ = [
    # Core errors
    "ErrorCode", "BuildError", "BuilderException",
    # Failure kinds
    "InvocationError", "StructureConflictError", "MissingPropertyError",
    "EncodingError", "DecodingError", "CacheError",
    # JSON types
    "JsonDict", "JsonPrimitive", "JsonValue",
]
