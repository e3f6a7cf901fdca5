"""Tests for the Builder core: fields, nesting, arrays, extraction, dispatch."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from jsonbuilder import (
    Builder,
    ErrorCode,
    InvocationError,
    JsonBuilderSettings,
    MissingPropertyError,
    RawJson,
    StructureConflictError,
)
from jsonbuilder.foundation.config import CacheSettings, EncoderSettings
from jsonbuilder.io.cache import MemoryCache


@dataclass
class Person:
    name: str
    age: int

    def greeting(self) -> str:
        return f"hi {self.name}"


@dataclass
class Comment:
    content: str


COMMENTS = [Comment("hello"), Comment("world")]


# ═════════════════════════════════════════════════════════════════════════════
# Fields
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize("value", ["David", 32, 1.5, True, None, [1, 2], {"k": "v"}])
def test_set_scalar(value: object) -> None:
    """set then attributes yields the value under its field."""
    json = Builder()
    json.set("field", value)
    assert json.attributes() == {"field": value}


def test_field_order_preserved() -> None:
    json = Builder()
    json.set("c", 1)
    json.set("a", 2)
    json.set("b", 3)
    assert json.target() == '{"c":1,"a":2,"b":3}'


def test_overwrite_keeps_position() -> None:
    """Last write wins, original position retained."""
    json = Builder()
    json.set("a", 1)
    json.set("b", 2)
    json.set("a", 3)
    assert json.target() == '{"a":3,"b":2}'


def test_set_with_block_nests_object() -> None:
    json = Builder()
    json.set("author", block=lambda author: (author.set("name", "David"), author.set("age", 32)))
    assert json.target() == '{"author":{"name":"David","age":32}}'


def test_child_builder_is_detached_from_parent() -> None:
    """Mutating a retained child after nesting does not reach the parent."""
    kept: list[Builder] = []
    json = Builder()
    json.set("author", block=lambda author: (author.set("name", "David"), kept.append(author)))

    kept[0].set("name", "Changed")
    kept[0].set("extra", True)
    assert json.attributes() == {"author": {"name": "David"}}


def test_untouched_builder_encodes_empty_object() -> None:
    assert Builder().target() == "{}"


# ═════════════════════════════════════════════════════════════════════════════
# Arrays
# ═════════════════════════════════════════════════════════════════════════════


def test_child_appends_in_call_order() -> None:
    json = Builder()
    for n in range(3):
        json.child(lambda c, n=n: c.set("n", n))
    assert json.attributes() == [{"n": 0}, {"n": 1}, {"n": 2}]


def test_child_converts_to_array_irrevocably() -> None:
    json = Builder()
    json.child(lambda c: c.set("content", "hello"))
    with pytest.raises(StructureConflictError) as exc:
        json.set("name", "David")
    assert exc.value.error.code == ErrorCode.STRUCTURE_CONFLICT
    assert exc.value.error.metadata["field"] == "name"


def test_array_mode_on_object_with_fields_conflicts() -> None:
    json = Builder()
    json.set("name", "David")
    with pytest.raises(StructureConflictError):
        json.child(lambda c: c.set("content", "hello"))
    with pytest.raises(StructureConflictError):
        json.child_json('{"x":1}')
    assert json.attributes() == {"name": "David"}


def test_child_json_is_spliced_verbatim() -> None:
    json = Builder()
    json.child_json('{"x":1}')
    assert json.attributes() == [RawJson('{"x":1}')]
    assert json.target() == '[{"x":1}]'


def test_array_over_empty_collection() -> None:
    json = Builder()
    json.array([], lambda c, item: c.set("never", item))
    assert json.attributes() == []
    assert json.target() == "[]"
    with pytest.raises(StructureConflictError):
        json.set("name", "David")


def test_array_accepts_generators() -> None:
    json = Builder()
    json.array((Comment(t) for t in ("a", "b")), lambda c, comment: c.set("content", comment.content))
    assert json.target() == '[{"content":"a"},{"content":"b"}]'


def test_array_rejects_non_collection() -> None:
    with pytest.raises(InvocationError):
        Builder().array("not a collection", lambda c, item: None)


def test_comments_scenario() -> None:
    """Nested-object iteration reproduces structure and key order."""
    json = Builder()
    json.set("comments", block=lambda comments: (
        comments.child(lambda c: c.set("content", "hello")),
        comments.child(lambda c: c.set("content", "world")),
    ))
    assert json.target() == '{"comments":[{"content":"hello"},{"content":"world"}]}'


# ═════════════════════════════════════════════════════════════════════════════
# Extraction
# ═════════════════════════════════════════════════════════════════════════════


def test_extract_from_object() -> None:
    json = Builder()
    json.extract(Person("David", 32), "name", "age")
    assert json.target() == '{"name":"David","age":32}'


def test_extract_from_mapping() -> None:
    json = Builder()
    json.extract({"age": 32, "name": "David", "secret": "x"}, "name", "age")
    assert json.target() == '{"name":"David","age":32}'


def test_extract_calls_accessor_methods() -> None:
    json = Builder()
    json.extract(Person("David", 32), "greeting")
    assert json.attributes() == {"greeting": "hi David"}


def test_extract_missing_property_keeps_earlier_fields() -> None:
    json = Builder()
    with pytest.raises(MissingPropertyError) as exc:
        json.extract(Person("David", 32), "name", "email", "age")

    assert json.attributes() == {"name": "David"}
    assert exc.value.error.metadata == {"object": "Person", "property": "email"}
    assert isinstance(exc.value, AttributeError)


def test_extract_missing_mapping_key() -> None:
    with pytest.raises(MissingPropertyError, match="email"):
        Builder().extract({"name": "David"}, "email")


@pytest.mark.parametrize("source", [Person("David", 32), {3: "x"}])
def test_extract_non_string_field(source: object) -> None:
    with pytest.raises(MissingPropertyError) as exc:
        Builder().extract(source, 3)  # type: ignore[arg-type]
    assert exc.value.error.metadata["property"] == "3"


# ═════════════════════════════════════════════════════════════════════════════
# Dynamic dispatch
# ═════════════════════════════════════════════════════════════════════════════


def test_invoke_collection_with_block_builds_array() -> None:
    json = Builder()
    json.invoke("comments", COMMENTS, block=lambda c, comment: c.set("content", comment.content))
    assert json.target() == '{"comments":[{"content":"hello"},{"content":"world"}]}'


def test_invoke_single_value_sets_field() -> None:
    json = Builder()
    json.invoke("age", 32)
    json.invoke("tags", ["a", "b"])
    assert json.attributes() == {"age": 32, "tags": ["a", "b"]}


def test_invoke_block_only_nests_object() -> None:
    json = Builder()
    json.invoke("author", block=lambda author: author.set("name", "David"))
    assert json.attributes() == {"author": {"name": "David"}}


def test_invoke_collection_with_fields_extracts_each() -> None:
    json = Builder()
    json.invoke("people", [Person("David", 32), Person("Jamie", 31)], "name", "age")
    assert json.target() == '{"people":[{"name":"David","age":32},{"name":"Jamie","age":31}]}'


def test_invoke_empty_collection_with_fields() -> None:
    json = Builder()
    json.invoke("people", [], "name")
    assert json.attributes() == {"people": []}


def test_invoke_object_with_fields_extracts_inline() -> None:
    json = Builder()
    json.invoke("author", Person("David", 32), "name")
    json.invoke("editor", {"name": "Jamie", "age": 31}, "age", "name")
    assert json.target() == '{"author":{"name":"David"},"editor":{"age":31,"name":"Jamie"}}'


@pytest.mark.parametrize(
    ("args", "block"),
    [
        ((), None),
        ((5,), lambda c, item: None),
        ((Person("David", 32), 3), None),
    ],
)
def test_invoke_unresolved(args: tuple[object, ...], block: object) -> None:
    with pytest.raises(InvocationError) as exc:
        Builder().invoke("author", *args, block=block)
    error = exc.value.error
    assert error.code == ErrorCode.UNRESOLVED_INVOCATION
    assert error.metadata["field"] == "author"
    assert error.metadata["arg_count"] == len(args)


def test_call_form_builds_array() -> None:
    json = Builder()
    json([Person("David", 32), Person("Jamie", 31)], block=lambda p, person: p.set("name", person.name))
    assert json.target() == '[{"name":"David"},{"name":"Jamie"}]'


def test_call_form_extracts() -> None:
    json = Builder()
    json(Person("David", 32), "name", "age")
    assert json.attributes() == {"name": "David", "age": 32}


def test_call_form_unresolved() -> None:
    with pytest.raises(InvocationError):
        Builder()([Person("David", 32)])


def test_call_form_with_non_string_field_is_unresolved() -> None:
    json = Builder()
    with pytest.raises(InvocationError) as exc:
        json(Person("David", 32), "name", 3)
    assert exc.value.error.metadata["arg_count"] == 3
    assert json.attributes() == {}


def test_builder_exposes_no_dynamic_attributes() -> None:
    with pytest.raises(AttributeError):
        Builder().author  # type: ignore[attr-defined]  # noqa: B018


# ═════════════════════════════════════════════════════════════════════════════
# Entry points
# ═════════════════════════════════════════════════════════════════════════════


def test_encode_top_level() -> None:
    assert Builder.encode(lambda json: json.set("name", "David")) == '{"name":"David"}'


def test_from_settings_applies_encoder_and_cache() -> None:
    settings = JsonBuilderSettings(
        encoder=EncoderSettings(indent=True),
        cache=CacheSettings(write_budget=3),
    )
    json = Builder.from_settings(settings)
    json.set("a", 1)
    assert json.target() == '{\n  "a": 1\n}'
    assert isinstance(json._cache, MemoryCache)
    assert json._write_budget == 3


def test_from_settings_shares_given_cache() -> None:
    cache = MemoryCache()
    first = Builder.from_settings(JsonBuilderSettings(), cache=cache)
    second = Builder.from_settings(JsonBuilderSettings(), cache=cache)
    assert first._cache is second._cache is cache
    assert Builder.from_settings(JsonBuilderSettings())._cache is not cache


def test_from_settings_overrides() -> None:
    json = Builder.from_settings(JsonBuilderSettings(), cache=None, write_budget=0)
    assert json._cache is None
    assert json._write_budget == 0
