"""Tests for PathWalker and enumerate_paths.

Verifies:
- Depth-first, pre-order enumeration in insertion order; root never reported
- Arrays of scalars are single leaves with a common element kind
- Arrays of objects recurse into the first element under a wildcard
- Empty containers are reported as containers with no leaves
- Restartability and the max_depth guard
"""

from __future__ import annotations

from typing import Any

import pytest

from json_shapeshift.errors import DepthLimitExceeded
from json_shapeshift.tree.nodes import FieldPath, PathDescriptor, ValueKind
from json_shapeshift.tree.walker import PathWalker, enumerate_paths


def _paths(value: Any, **kwargs: Any) -> list[tuple[str, PathDescriptor]]:
    return [(str(path), desc) for path, desc in PathWalker(**kwargs).walk(value)]


def _leaf(kind: ValueKind, element_kind: ValueKind | None = None) -> PathDescriptor:
    return PathDescriptor(kind=kind, is_leaf=True, element_kind=element_kind)


def _container(kind: ValueKind, element_kind: ValueKind | None = None) -> PathDescriptor:
    return PathDescriptor(kind=kind, is_leaf=False, element_kind=element_kind)


class TestObjects:
    def test_flat_object_in_insertion_order(self) -> None:
        assert _paths({"name": "Ada", "age": 36, "ok": True, "x": None}) == [
            ("name", _leaf(ValueKind.STRING)),
            ("age", _leaf(ValueKind.NUMBER)),
            ("ok", _leaf(ValueKind.BOOL)),
            ("x", _leaf(ValueKind.NULL)),
        ]

    def test_nested_object_reports_container_then_members(self) -> None:
        assert _paths({"user": {"name": "Ada", "address": {"city": "London"}}}) == [
            ("user", _container(ValueKind.OBJECT)),
            ("user.name", _leaf(ValueKind.STRING)),
            ("user.address", _container(ValueKind.OBJECT)),
            ("user.address.city", _leaf(ValueKind.STRING)),
        ]

    def test_root_is_never_reported(self) -> None:
        assert all(path != "" for path, _ in _paths({"a": 1}))

    def test_empty_object_is_a_container_without_leaves(self) -> None:
        assert _paths({"meta": {}}) == [("meta", _container(ValueKind.OBJECT))]

    def test_empty_root_yields_nothing(self) -> None:
        assert _paths({}) == []


class TestArrays:
    def test_array_of_scalars_is_one_leaf(self) -> None:
        assert _paths({"tags": ["a", "b"]}) == [
            ("tags", _leaf(ValueKind.ARRAY, ValueKind.STRING)),
        ]

    def test_mixed_scalar_array_has_no_element_kind(self) -> None:
        assert _paths({"mix": [1, "a"]}) == [("mix", _leaf(ValueKind.ARRAY, None))]

    def test_nulls_do_not_affect_element_kind(self) -> None:
        assert _paths({"n": [None, 1, 2]}) == [
            ("n", _leaf(ValueKind.ARRAY, ValueKind.NUMBER)),
        ]

    def test_array_of_objects_uses_first_element(self) -> None:
        doc = {"items": [{"nm": "x", "qty": 2}, {"nm": "y", "other": 1}]}
        assert _paths(doc) == [
            ("items", _container(ValueKind.ARRAY, ValueKind.OBJECT)),
            ("items[*].nm", _leaf(ValueKind.STRING)),
            ("items[*].qty", _leaf(ValueKind.NUMBER)),
        ]

    def test_array_of_arrays(self) -> None:
        assert _paths({"m": [[1, 2], [3]]}) == [
            ("m", _container(ValueKind.ARRAY, ValueKind.ARRAY)),
            ("m[*]", _leaf(ValueKind.ARRAY, ValueKind.NUMBER)),
        ]

    def test_empty_array_is_a_container_without_leaves(self) -> None:
        assert _paths({"items": []}) == [("items", _container(ValueKind.ARRAY))]

    def test_root_array_of_objects(self) -> None:
        assert _paths([{"a": 1}, {"a": 2}]) == [("[*].a", _leaf(ValueKind.NUMBER))]

    def test_root_array_of_scalars_yields_nothing(self) -> None:
        assert _paths([1, 2, 3]) == []

    def test_scalar_root_yields_nothing(self) -> None:
        assert _paths("just a string") == []


class TestWalkerBehaviour:
    def test_walk_is_lazy(self) -> None:
        it = PathWalker().walk({"a": 1})
        assert iter(it) is it

    def test_walk_is_restartable(self) -> None:
        doc = {"a": {"b": [1, 2]}, "c": [{"d": None}]}
        walker = PathWalker()
        assert list(walker.walk(doc)) == list(walker.walk(doc))

    def test_enumerate_paths_matches_walker(self) -> None:
        doc = {"a": {"b": 1}}
        assert list(enumerate_paths(doc)) == list(PathWalker().walk(doc))

    def test_yields_field_paths(self) -> None:
        path, _ = next(PathWalker().walk({"a": 1}))
        assert path == FieldPath(("a",))

    def test_depth_limit_exceeded(self) -> None:
        doc = {"a": {"b": {"c": 1}}}
        assert len(_paths(doc, max_depth=3)) == 3
        with pytest.raises(DepthLimitExceeded) as exc_info:
            _paths(doc, max_depth=2)
        assert exc_info.value.max_depth == 2
        assert exc_info.value.path == "a.b.c"

    def test_depth_limit_is_a_value_error(self) -> None:
        deep: dict[str, Any] = {}
        node = deep
        for _ in range(10):
            node["n"] = {}
            node = node["n"]
        with pytest.raises(ValueError):
            list(enumerate_paths(deep, max_depth=5))

    def test_non_json_value_raises_type_error(self) -> None:
        with pytest.raises(TypeError):
            list(PathWalker().walk({"a": object()}))
