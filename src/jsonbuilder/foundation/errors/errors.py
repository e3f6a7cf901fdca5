"""Structured errors for JSON building.

Provides error codes and a structured error payload wrapped by a small
exception hierarchy. Every exception carries a `BuildError` so callers can
inspect the failing operation and its metadata programmatically.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .types import JsonDict, JsonValue


class ErrorCode(StrEnum):
    """Standard error codes for build failures."""
    UNRESOLVED_INVOCATION = "UNRESOLVED_INVOCATION"
    STRUCTURE_CONFLICT = "STRUCTURE_CONFLICT"
    MISSING_PROPERTY = "MISSING_PROPERTY"
    ENCODING_ERROR = "ENCODING_ERROR"
    DECODING_ERROR = "DECODING_ERROR"
    CACHE_ERROR = "CACHE_ERROR"


class BuildError(BaseModel):
    """Structured description of a failed build operation.

    Attributes:
        operation: Builder operation that failed (e.g. "set", "extract")
        message: Human-readable error message
        code: Machine-readable error code
        metadata: Operation-specific details (field name, argument count, ...)
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        extra="forbid",
        json_schema_extra={
            "title": "Build Error",
            "examples": [{
                "operation": "invoke",
                "message": "cannot resolve 'author' with 3 argument(s)",
                "code": "UNRESOLVED_INVOCATION",
                "metadata": {"field": "author", "arg_count": 3},
            }],
        },
    )

    operation: Annotated[str, Field(min_length=1)]
    message: Annotated[str, Field(min_length=1)]
    code: ErrorCode
    metadata: JsonDict = Field(default_factory=dict, repr=False)

    @computed_field
    @property
    def is_caller_error(self) -> bool:
        """Whether the failure comes from how the builder was driven."""
        return self.code in _CALLER_CODES

    def render(self) -> str:
        meta = f" ({', '.join(f'{k}={v!r}' for k, v in self.metadata.items())})" if self.metadata else ""
        return f"[{self.code}] {self.operation}: {self.message}{meta}"

    __str__ = render


_CALLER_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.UNRESOLVED_INVOCATION,
    ErrorCode.STRUCTURE_CONFLICT,
    ErrorCode.MISSING_PROPERTY,
})


class BuilderException(Exception):
    """Exception wrapping a BuildError for raising."""

    code: ClassVar[ErrorCode] = ErrorCode.ENCODING_ERROR

    def __init__(self, error: BuildError) -> None:
        self.error = error
        super().__init__(error.message)

    @classmethod
    def create(cls, operation: str, message: str, **metadata: JsonValue) -> Self:
        """Build the exception with this class's error code."""
        return cls(BuildError(operation=operation, message=message, code=cls.code, metadata=metadata))

    def __str__(self) -> str:
        return self.error.render()


class InvocationError(BuilderException):
    """Dynamic invocation matched no resolution rule."""

    code = ErrorCode.UNRESOLVED_INVOCATION

    @classmethod
    def unresolved(cls, name: str, arg_count: int, has_block: bool) -> Self:
        return cls.create(
            "invoke",
            f"cannot resolve {name!r} with {arg_count} argument(s)"
            f"{' and a block' if has_block else ''}",
            field=name, arg_count=arg_count, block=has_block,
        )


class StructureConflictError(BuilderException):
    """Object-mode operation on an array container, or the reverse."""

    code = ErrorCode.STRUCTURE_CONFLICT


class MissingPropertyError(BuilderException, AttributeError):
    """Source object has no readable property of the requested name."""

    code = ErrorCode.MISSING_PROPERTY

    @classmethod
    def missing(cls, obj: object, name: str) -> Self:
        kind = type(obj).__name__
        return cls.create("extract", f"{kind} has no property {name!r}", object=kind, property=name)


class EncodingError(BuilderException, TypeError):
    """Value tree could not be serialized to JSON."""

    code = ErrorCode.ENCODING_ERROR


class DecodingError(BuilderException, ValueError):
    """JSON text could not be parsed."""

    code = ErrorCode.DECODING_ERROR


class CacheError(BuilderException):
    """Cache backend failed while strict cache handling is enabled."""

    code = ErrorCode.CACHE_ERROR
