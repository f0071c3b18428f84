"""Tests for TreeReconstructor, resolve_path and coerce_value."""

from __future__ import annotations

from typing import Any

import pytest

from json_shapeshift.config import MapperConfig, UnmatchedPolicy
from json_shapeshift.reconstruct import MISSING, TreeReconstructor, coerce_value, resolve_path
from json_shapeshift.result import Assignment, Match
from json_shapeshift.schema import FieldSpec, TargetSchema
from json_shapeshift.tree.nodes import FieldPath, JsonValue, ValueKind

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _assignment(pairs: dict[str, str | list[str]]) -> Assignment:
    out: Assignment = {}
    for target, sources in pairs.items():
        if isinstance(sources, str):
            sources = [sources]
        path = FieldPath.parse(target)
        out[path] = tuple(Match(path, FieldPath.parse(s), 0.9) for s in sources)
    return out


def _rebuild(
    source: JsonValue,
    target: JsonValue | TargetSchema,
    pairs: dict[str, str | list[str]],
    **config: Any,
) -> JsonValue:
    schema = target if isinstance(target, TargetSchema) else TargetSchema.from_template(target)
    return TreeReconstructor(source, schema, _assignment(pairs), MapperConfig(**config)).build()


# ---------------------------------------------------------------------------
# resolve_path / coerce_value
# ---------------------------------------------------------------------------


class TestResolvePath:
    DOC = {"items": [{"nm": "x"}, {"nm": "y"}], "loc": {"city": "Paris"}}

    def test_object_members(self) -> None:
        assert resolve_path(self.DOC, FieldPath.parse("loc.city")) == "Paris"

    def test_root_path_returns_document(self) -> None:
        assert resolve_path(self.DOC, FieldPath()) is self.DOC

    def test_unbound_wildcard_reads_first_element(self) -> None:
        assert resolve_path(self.DOC, FieldPath.parse("items[*].nm")) == "x"

    def test_bound_wildcard(self) -> None:
        bindings = {FieldPath.parse("items[*]"): 1}
        assert resolve_path(self.DOC, FieldPath.parse("items[*].nm"), bindings) == "y"

    @pytest.mark.parametrize("path", ["loc.zip", "loc.city.x", "loc[*]", "missing[*].nm"])
    def test_absent_values_are_missing(self, path: str) -> None:
        assert resolve_path(self.DOC, FieldPath.parse(path)) is MISSING

    def test_index_out_of_range(self) -> None:
        bindings = {FieldPath.parse("items[*]"): 5}
        assert resolve_path(self.DOC, FieldPath.parse("items[*].nm"), bindings) is MISSING

    def test_null_is_a_value(self) -> None:
        assert resolve_path({"a": None}, FieldPath.parse("a")) is None


class TestCoerceValue:
    @pytest.mark.parametrize(
        ("value", "kind", "expected"),
        [
            (36, ValueKind.STRING, "36"),
            (1.5, ValueKind.STRING, "1.5"),
            ("7", ValueKind.NUMBER, 7),
            ("3.5", ValueKind.NUMBER, 3.5),
            ("abc", ValueKind.NUMBER, "abc"),
            ("nan", ValueKind.NUMBER, "nan"),
            ("inf", ValueKind.NUMBER, "inf"),
            (True, ValueKind.STRING, True),
            ("x", ValueKind.STRING, "x"),
            (1, None, 1),
            ("1", ValueKind.BOOL, "1"),
        ],
    )
    def test_conversions(self, value: Any, kind: ValueKind | None, expected: Any) -> None:
        result = coerce_value(value, kind)
        assert result == expected
        assert type(result) is type(expected)


# ---------------------------------------------------------------------------
# Objects and leaves
# ---------------------------------------------------------------------------


class TestObjects:
    def test_matched_leaves(self) -> None:
        result = _rebuild(
            {"fullName": "Ada Lovelace", "yrs": 36},
            {"name": "<string>", "age": "<number>"},
            {"name": "fullName", "age": "yrs"},
        )
        assert result == {"name": "Ada Lovelace", "age": 36}

    def test_output_keys_follow_schema_order(self) -> None:
        result = _rebuild({"b": 2, "a": 1}, {"a": 0, "b": 0}, {"b": "b", "a": "a"})
        assert list(result) == ["a", "b"]  # type: ignore[arg-type]

    def test_nested_object_with_null_fallback(self) -> None:
        result = _rebuild(
            {"city": "Paris"},
            {"location": {"city": "<string>", "country": "<string>"}},
            {"location.city": "city"},
        )
        assert result == {"location": {"city": "Paris", "country": None}}

    def test_omit_policy_drops_required_field(self) -> None:
        result = _rebuild(
            {"city": "Paris"},
            {"city": "<string>", "country": "<string>"},
            {"city": "city"},
            unmatched_policy=UnmatchedPolicy.OMIT,
        )
        assert result == {"city": "Paris"}

    def test_optional_field_omitted_under_null_policy(self) -> None:
        result = _rebuild({}, {"nick": "<string?>", "name": "<string>"}, {})
        assert result == {"name": None}

    def test_optional_container_without_matches_omitted(self) -> None:
        schema = TargetSchema.from_fields(
            [
                FieldSpec("name"),
                FieldSpec("extra", ValueKind.OBJECT, required=False),
                FieldSpec("extra.a"),
            ]
        )
        assert _rebuild({"n": "x"}, schema, {"name": "n"}) == {"name": "x"}
        assert _rebuild({"n": "x"}, schema, {"name": "n", "extra.a": "n"}) == {
            "name": "x",
            "extra": {"a": "x"},
        }

    def test_required_container_kept_with_null_members(self) -> None:
        result = _rebuild({}, {"location": {"city": "<string>"}}, {})
        assert result == {"location": {"city": None}}


class TestOpaqueContainers:
    def test_unmatched_opaque_containers_are_empty(self) -> None:
        result = _rebuild({}, {"meta": {}, "list": "<array>"}, {})
        assert result == {"meta": {}, "list": []}

    def test_optional_opaque_container_omitted(self) -> None:
        assert _rebuild({}, {"meta": "<object?>"}, {}) == {}

    def test_matched_opaque_container_copies_value(self) -> None:
        source = {"attrs": {"k": [1, 2]}}
        result = _rebuild(source, {"meta": {}}, {"meta": "attrs"})
        assert result == {"meta": {"k": [1, 2]}}

    def test_unmatched_opaque_ignores_omit_policy(self) -> None:
        result = _rebuild({}, {"meta": {}}, {}, unmatched_policy=UnmatchedPolicy.OMIT)
        assert result == {"meta": {}}


class TestCopySemantics:
    def test_result_never_aliases_source(self) -> None:
        source = {"attrs": {"k": [1, 2]}, "tags": ["a"]}
        result = _rebuild(
            source, {"meta": "<object>", "labels": ["<string>"]}, {"meta": "attrs", "labels": "tags"}
        )
        assert isinstance(result, dict)
        result["meta"]["k"].append(3)
        result["labels"].append("b")
        assert source == {"attrs": {"k": [1, 2]}, "tags": ["a"]}


# ---------------------------------------------------------------------------
# Arrays
# ---------------------------------------------------------------------------


class TestDrivenArrays:
    SOURCE = {"items": [{"nm": "x", "qty": 2}, {"nm": "y", "qty": 3}]}
    TEMPLATE = {"products": [{"title": "<string>", "count": "<number>"}]}

    def test_one_element_per_source_element(self) -> None:
        result = _rebuild(
            self.SOURCE,
            self.TEMPLATE,
            {"products[*].title": "items[*].nm", "products[*].count": "items[*].qty"},
        )
        assert result == {
            "products": [{"title": "x", "count": 2}, {"title": "y", "count": 3}]
        }

    def test_value_missing_in_one_element(self) -> None:
        source = {"items": [{"nm": "x", "qty": 2}, {"nm": "y"}]}
        pairs = {"products[*].title": "items[*].nm", "products[*].count": "items[*].qty"}
        assert _rebuild(source, self.TEMPLATE, pairs)["products"][1] == {  # type: ignore[index]
            "title": "y",
            "count": None,
        }
        omitted = _rebuild(source, self.TEMPLATE, pairs, unmatched_policy=UnmatchedPolicy.OMIT)
        assert omitted["products"][1] == {"title": "y"}  # type: ignore[index]

    def test_no_matches_gives_empty_array(self) -> None:
        assert _rebuild(self.SOURCE, self.TEMPLATE, {}) == {"products": []}

    def test_match_without_source_array_gives_one_element(self) -> None:
        result = _rebuild({"name": "Ada"}, self.TEMPLATE, {"products[*].title": "name"})
        assert result == {"products": [{"title": "Ada", "count": None}]}

    def test_nested_arrays_bind_each_level(self) -> None:
        source = {
            "orders": [
                {"lines": [{"sku": "a"}, {"sku": "b"}]},
                {"lines": [{"sku": "c"}]},
            ]
        }
        result = _rebuild(
            source,
            {"orders": [{"items": [{"code": "<string>"}]}]},
            {"orders[*].items[*].code": "orders[*].lines[*].sku"},
        )
        assert result == {
            "orders": [
                {"items": [{"code": "a"}, {"code": "b"}]},
                {"items": [{"code": "c"}]},
            ]
        }

    def test_root_array(self) -> None:
        result = _rebuild([{"n": 1}, {"n": 2}], [{"id": "<number>"}], {"[*].id": "[*].n"})
        assert result == [{"id": 1}, {"id": 2}]


class TestFanOut:
    def test_fan_out_leaf_collects_and_flattens(self) -> None:
        result = _rebuild(
            {"primary": "x", "others": ["y", "z"]},
            {"tags": ["<string>", "..."]},
            {"tags": ["primary", "others"]},
        )
        assert result == {"tags": ["x", "y", "z"]}

    def test_fan_out_leaf_reads_every_array_element(self) -> None:
        result = _rebuild(
            {"people": [{"name": "a"}, {"name": "b"}]},
            {"names": ["<string>", "..."]},
            {"names": "people[*].name"},
        )
        assert result == {"names": ["a", "b"]}

    def test_fan_out_leaf_reads_nested_wildcards(self) -> None:
        result = _rebuild(
            {
                "teams": [
                    {"members": [{"name": "a"}, {"name": "b"}]},
                    {"members": []},
                    {"members": [{"name": "c"}, {"nick": "d"}]},
                ]
            },
            {"names": ["<string>", "..."]},
            {"names": "teams[*].members[*].name"},
        )
        assert result == {"names": ["a", "b", "c"]}

    def test_fan_out_leaf_over_empty_source_array(self) -> None:
        result = _rebuild(
            {"people": []},
            {"names": ["<string>", "..."]},
            {"names": "people[*].name"},
        )
        assert result == {"names": []}

    def test_fan_out_leaf_without_matches(self) -> None:
        assert _rebuild({}, {"tags": ["<string>", "..."]}, {}) == {"tags": []}

    def test_fan_out_array_of_objects(self) -> None:
        result = _rebuild(
            {"author": "A", "editor": "E"},
            {"people": [{"name": "<string>"}, "..."]},
            {"people[*].name": ["author", "editor"]},
        )
        assert result == {"people": [{"name": "A"}, {"name": "E"}]}

    def test_fan_out_elements_pad_shorter_leaves(self) -> None:
        result = _rebuild(
            {"author": "A", "editor": "E", "author_age": 30},
            {"people": [{"name": "<string>", "age": "<number>"}, "..."]},
            {"people[*].name": ["author", "editor"], "people[*].age": "author_age"},
        )
        assert result == {
            "people": [{"name": "A", "age": 30}, {"name": "E", "age": None}]
        }


class TestCoercion:
    def test_disabled_by_default(self) -> None:
        result = _rebuild({"yrs": "36"}, {"age": "<number>"}, {"age": "yrs"})
        assert result == {"age": "36"}

    def test_number_and_string_conversion(self) -> None:
        result = _rebuild(
            {"yrs": "36", "zip": 75001, "note": "n/a"},
            {"age": "<number>", "postcode": "<string>", "score": "<number>"},
            {"age": "yrs", "postcode": "zip", "score": "note"},
            allow_type_coercion=True,
        )
        assert result == {"age": 36, "postcode": "75001", "score": "n/a"}

    def test_scalar_array_elements_coerced(self) -> None:
        result = _rebuild(
            {"nums": [1, 2]}, {"ids": ["<string>"]}, {"ids": "nums"}, allow_type_coercion=True
        )
        assert result == {"ids": ["1", "2"]}
