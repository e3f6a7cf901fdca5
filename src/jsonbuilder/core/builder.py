"""Declarative JSON builder.

A `Builder` accumulates fields (object mode) or elements (array mode) into
an ordered container and serializes it with the configured encoder.
Nested objects and array elements are built by fresh child builders that
share the parent's configuration but none of its state.

Example:
    >>> def render(json):
    ...     json.set("title", post.title)
    ...     json.set("author", block=lambda author: author.extract(post.author, "name", "email"))
    ...     json.invoke("comments", post.comments, block=lambda c, comment: c.set("content", comment.body))
    >>> Builder.encode(render)
    '{"title":"...","author":{"name":"...","email":"..."},"comments":[{"content":"..."}]}'
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Self, TypeAlias

from jsonbuilder.foundation.config import DEFAULT_WRITE_BUDGET
from jsonbuilder.foundation.errors import InvocationError, MissingPropertyError, StructureConflictError
from jsonbuilder.io.cache import CacheProvider, cache_from_settings, fetch, safe_read_many, safe_write
from jsonbuilder.io.codec import Encoder, OrjsonEncoder, get_encoder

from .raw import RawJson, cache_key_of

if TYPE_CHECKING:
    from jsonbuilder.foundation.config import JsonBuilderSettings

logger = logging.getLogger("jsonbuilder.builder")

Container: TypeAlias = "dict[Any, Any] | list[Any]"
Block: TypeAlias = "Callable[[Builder], object]"
ItemBlock: TypeAlias = "Callable[[Builder, Any], object]"


def is_collection(value: object) -> bool:
    """True for iterables that build arrays (not strings, mappings or models)."""
    if isinstance(value, (str, bytes, bytearray, Mapping)) or hasattr(value, "model_dump"):
        return False
    return isinstance(value, Iterable)


def read_property(obj: object, name: str) -> Any:
    """Read `name` off `obj`: key lookup for mappings, attribute lookup otherwise.

    Bound methods are called with no arguments so accessor methods read
    like properties. Non-string names never match a property.
    """
    if not isinstance(name, str):
        raise MissingPropertyError.missing(obj, repr(name))
    if isinstance(obj, Mapping):
        try:
            return obj[name]
        except KeyError:
            raise MissingPropertyError.missing(obj, name) from None
    try:
        value = getattr(obj, name)
    except AttributeError as e:
        raise MissingPropertyError.missing(obj, name) from e
    return value() if inspect.ismethod(value) else value


def options_from_settings(settings: JsonBuilderSettings) -> dict[str, Any]:
    """Translate settings into Builder keyword arguments.

    Each call creates a new cache from `settings.cache`. A MemoryCache made
    here lives only as long as the builders holding it; pass `cache=` to
    share one provider across renders.
    """
    return {
        "cache": cache_from_settings(settings.cache),
        "encoder": OrjsonEncoder(indent=settings.encoder.indent, sort_keys=settings.encoder.sort_keys),
        "write_budget": settings.cache.write_budget,
        "strict_cache": settings.cache.strict,
        "max_workers": settings.builder.max_workers,
    }


class WriteBudget:
    """Counts cache writes allowed within one array build. Thread-safe.

    Each key is written at most once per build; repeats neither write nor
    consume the budget.
    """

    __slots__ = ("_remaining", "_lock", "_taken", "used", "skipped")

    def __init__(self, limit: int) -> None:
        self._remaining = limit
        self._lock = threading.Lock()
        self._taken: set[str] = set()
        self.used = 0
        self.skipped = 0

    def take(self, key: str) -> bool:
        with self._lock:
            if key in self._taken:
                return False
            if self._remaining > 0:
                self._taken.add(key)
                self._remaining -= 1
                self.used += 1
                return True
            self.skipped += 1
            return False


class Builder:
    """Builds one JSON object or array.

    The container starts as an empty object. `child`, `child_json` and
    `array` turn it into an array; from then on `set` is a structure
    conflict. Re-setting a field keeps its original position (last write wins).

    Args:
        cache: Fragment cache consulted by `array` for cacheable elements
        encoder: Encoder used by `target` (default: compact orjson)
        write_budget: Max cache writes per `array` call
        strict_cache: Raise CacheError on cache failures instead of logging them
        max_workers: Build array elements on a thread pool when > 1
    """

    __slots__ = ("_attributes", "_cache", "_encoder", "_write_budget", "_strict_cache", "_max_workers")

    def __init__(
        self,
        *,
        cache: CacheProvider | None = None,
        encoder: Encoder | None = None,
        write_budget: int = DEFAULT_WRITE_BUDGET,
        strict_cache: bool = False,
        max_workers: int = 0,
    ) -> None:
        self._attributes: Container = {}
        self._cache = cache
        self._encoder = encoder or get_encoder()
        self._write_budget = write_budget
        self._strict_cache = strict_cache
        self._max_workers = max_workers

    # ─────────────────────────────────────────────────────────────────────────
    # Entry points
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def encode(cls, block: Block, **options: Any) -> str:
        """Yield a fresh builder to `block` and return the encoded result."""
        return cls._render(block, options)

    @classmethod
    def encode_with_cache(cls, cache_key: str, block: Block, *, cache: CacheProvider, **options: Any) -> str:
        """Like `encode`, but the whole document is fetched from / stored in `cache`."""
        return fetch(
            cache, cache_key,
            lambda: cls._render(block, {**options, "cache": cache}),
            strict=options.get("strict_cache", False),
        )

    @classmethod
    def _render(cls, block: Block, options: dict[str, Any]) -> str:
        builder = cls(**options)
        block(builder)
        return builder.target()

    @classmethod
    def from_settings(cls, settings: JsonBuilderSettings | None = None, **overrides: Any) -> Self:
        """Create a builder configured from settings (environment by default).

        `overrides` win over settings. Pass a long-lived `cache=` so repeated
        renders hit the same fragments; otherwise each call gets its own cache.
        """
        if settings is None:
            from jsonbuilder.foundation.config import get_settings
            settings = get_settings()
        return cls(**{**options_from_settings(settings), **overrides})

    # ─────────────────────────────────────────────────────────────────────────
    # Object operations
    # ─────────────────────────────────────────────────────────────────────────

    def set(self, key: str, value: Any = None, *, block: Block | None = None) -> None:
        """Set `key` to `value`, or to the object built by `block`.

        Example:
            >>> json.set("author", block=lambda author: author.set("name", "David"))
            # { "author": { "name": "David" } }
        """
        attributes = self._object_mode("set", key)
        if block is not None:
            value = self._build_child(block)
        attributes[key] = value
        self._changed()

    def extract(self, obj: object, *fields: str) -> None:
        """Copy the named properties of `obj` into fields of the same name.

        Fields are read in order; ones set before a missing property stay set.

        Example:
            >>> json.extract(person, "name", "age")
            # { "name": "David", "age": 32 }
        """
        for field in fields:
            self.set(field, read_property(obj, field))

    # ─────────────────────────────────────────────────────────────────────────
    # Array operations
    # ─────────────────────────────────────────────────────────────────────────

    def child(self, block: Block) -> None:
        """Append the object built by `block` to this array.

        Example:
            >>> json.child(lambda c: c.set("content", "hello"))
            >>> json.child(lambda c: c.set("content", "world"))
            # [ { "content": "hello" }, { "content": "world" } ]
        """
        items = self._array_mode("child")
        items.append(self._build_child(block))
        self._changed()

    def child_json(self, json: str) -> None:
        """Append pre-serialized JSON text verbatim."""
        self._array_mode("child_json").append(RawJson(json))
        self._changed()

    def array(self, collection: Iterable[Any], block: ItemBlock) -> None:
        """Append one element per item of `collection`, built by `block(child, item)`.

        Items exposing `json_cache_key` are looked up in the cache with one
        batched read. Hits are spliced in verbatim; misses are built,
        serialized and written back while the write budget lasts. Output
        order always follows `collection`.

        Example:
            >>> json.array(people, lambda p, person: p.extract(person, "name", "age"))
            # [ { "name": "David", "age": 32 }, { "name": "Jamie", "age": 31 } ]
        """
        if not is_collection(collection):
            raise InvocationError.create(
                "array", f"expected a collection, got {type(collection).__name__}",
                value_type=type(collection).__name__,
            )
        elements = list(collection)
        items = self._array_mode("array")
        if not elements:
            self._changed()
            return

        keys = [cache_key_of(el) if self._cache is not None else None for el in elements]
        cacheable = list(dict.fromkeys(k for k in keys if k is not None))
        cached = safe_read_many(self._cache, cacheable, strict=self._strict_cache) if cacheable else {}
        budget = WriteBudget(self._write_budget)

        def build(pair: tuple[Any, str | None]) -> Any:
            element, key = pair
            if key is None:
                return self._build_child(lambda child: block(child, element))
            json = cached.get(key)
            if json is None:
                json = self._build_fragment(element, block)
                if budget.take(key):
                    safe_write(self._cache, key, json, strict=self._strict_cache)  # type: ignore[arg-type]
            return RawJson(json)

        pairs = list(zip(elements, keys))
        if self._max_workers > 1 and len(pairs) > 1:
            with ThreadPoolExecutor(max_workers=min(self._max_workers, len(pairs))) as pool:
                items.extend(pool.map(build, pairs))
        else:
            items.extend(build(pair) for pair in pairs)

        logger.debug(
            "array built elements=%d cacheable=%d hits=%d writes=%d skipped_writes=%d",
            len(elements), sum(k is not None for k in keys),
            sum(k in cached for k in keys if k is not None), budget.used, budget.skipped,
        )
        self._changed()

    # ─────────────────────────────────────────────────────────────────────────
    # Dynamic dispatch
    # ─────────────────────────────────────────────────────────────────────────

    def invoke(self, name: str, *args: Any, block: Callable[..., object] | None = None) -> None:
        """Resolve `name(*args, block)` by argument shape, first match wins.

        ======================================  =====  ==========================================
        args                                    block  result under `name`
        ======================================  =====  ==========================================
        one collection                          yes    array built by `block(child, item)`
        one value                               no     the value
        none                                    yes    object built by `block(child)`
        collection, field names...              any    array of objects extracted per item
        object, field names...                  any    object extracted from the single source
        ======================================  =====  ==========================================

        Anything else raises InvocationError.
        """
        if len(args) == 1 and block is not None and is_collection(args[0]):
            collection = args[0]
            self.set(name, block=lambda parent: parent.array(collection, block))
        elif len(args) == 1 and block is None:
            self.set(name, args[0])
        elif not args and block is not None:
            self.set(name, block=block)
        elif len(args) >= 2 and all(isinstance(field, str) for field in args[1:]):
            source, fields = args[0], args[1:]
            if is_collection(source):
                self.set(name, block=lambda parent: parent._extract_each(source, fields))
            else:
                self.set(name, block=lambda parent: parent.extract(source, *fields))
        else:
            raise InvocationError.unresolved(name, len(args), block is not None)

    def __call__(self, *args: Any, block: ItemBlock | None = None) -> None:
        """Call form: one collection builds this array, several args extract fields.

        Example:
            >>> json(people, block=lambda p, person: p.set("name", person.name))
            >>> json(person, "name", "age")
        """
        if len(args) == 1 and block is not None:
            self.array(args[0], block)
        elif len(args) >= 2 and all(isinstance(field, str) for field in args[1:]):
            self.extract(*args)
        else:
            raise InvocationError.unresolved("__call__", len(args), block is not None)

    # ─────────────────────────────────────────────────────────────────────────
    # Output
    # ─────────────────────────────────────────────────────────────────────────

    def attributes(self) -> Container:
        """Current container (nested containers resolved, RawJson left intact)."""
        return self._attributes

    def target(self) -> str:
        """Encode the container as JSON."""
        return self._encoder.encode(self._attributes)

    def __repr__(self) -> str:
        kind = "array" if isinstance(self._attributes, list) else "object"
        return f"{type(self).__name__}({kind}, size={len(self._attributes)})"

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _options(self) -> dict[str, Any]:
        """Constructor arguments children are created with. Extend in subclasses."""
        return {
            "cache": self._cache,
            "encoder": self._encoder,
            "write_budget": self._write_budget,
            "strict_cache": self._strict_cache,
            "max_workers": self._max_workers,
        }

    def _spawn(self) -> Self:
        return type(self)(**self._options())

    def _build_child(self, block: Block) -> Container:
        child = self._spawn()
        block(child)
        return child._detach()

    def _build_fragment(self, element: Any, block: ItemBlock) -> str:
        child = self._spawn()
        block(child, element)
        return child.target()

    def _detach(self) -> Container:
        """Hand the container to the parent; later use of this builder starts empty."""
        attributes, self._attributes = self._attributes, {}
        return attributes

    def _extract_each(self, collection: Iterable[Any], fields: tuple[str, ...]) -> None:
        elements = list(collection)
        if not elements:
            self._array_mode("array")
            return
        for element in elements:
            self.child(lambda child, element=element: child.extract(element, *fields))

    def _object_mode(self, operation: str, key: object) -> dict[Any, Any]:
        if isinstance(self._attributes, list):
            raise StructureConflictError.create(
                operation, f"cannot set field {key!r} on an array", field=str(key),
            )
        return self._attributes

    def _array_mode(self, operation: str) -> list[Any]:
        if isinstance(self._attributes, dict):
            if self._attributes:
                raise StructureConflictError.create(
                    operation, "cannot turn an object with fields into an array",
                    fields=list(map(str, self._attributes)),
                )
            self._attributes = []
        return self._attributes

    def _replace(self, value: Any) -> None:
        if not isinstance(value, (dict, list)):
            raise StructureConflictError.create(
                "replace", f"expected an object or array, got {type(value).__name__}",
            )
        self._attributes = value
        self._changed()

    def _changed(self) -> None:
        """Hook run after every mutation."""
