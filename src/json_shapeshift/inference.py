"""Schema inference: derive a TargetSchema from sample documents.

``infer_schema`` is a separate pre-pass; the mapper never calls it.  Each
sample is described by the runtime kinds of its values, then the samples
are merged:

- A key present in every sample (and in every element of a sampled array
  of objects) is required; otherwise it is optional.
- Kinds that agree are kept; conflicting kinds widen to "any".  A null
  value carries no kind information.
- Every element of an array is inspected, not only the first.
"""

from __future__ import annotations

from typing import Any

from json_shapeshift.errors import DepthLimitExceeded, InvalidSchema
from json_shapeshift.schema import SchemaNode, TargetSchema
from json_shapeshift.tree.nodes import FieldPath, JsonValue, ValueKind
from json_shapeshift.tree.walker import DEFAULT_MAX_DEPTH

__all__ = ["infer_schema"]


def infer_schema(
    *samples: JsonValue, max_depth: int = DEFAULT_MAX_DEPTH
) -> TargetSchema:
    """Infer a target schema from one or more sample documents.

    Args:
        *samples: Parsed JSON documents sharing a common shape.
        max_depth: Maximum nesting depth accepted in a sample.

    Returns:
        A ``TargetSchema`` whose hints are the observed kinds.

    Raises:
        InvalidSchema: If no sample is given or a sample root is not an
            object or an array.
        DepthLimitExceeded: If a sample nests deeper than ``max_depth``.
    """
    if not samples:
        raise InvalidSchema("infer_schema() needs at least one sample")

    root: SchemaNode | None = None
    for sample in samples:
        if not isinstance(sample, (dict, list)):
            raise InvalidSchema(
                f"Sample roots must be objects or arrays, got {type(sample).__name__}"
            )
        node = _describe(sample, FieldPath(), 0, max_depth)
        root = node if root is None else _merge(root, node)
    assert root is not None
    return TargetSchema(root)


def _describe(value: Any, path: FieldPath, depth: int, max_depth: int) -> SchemaNode:
    if depth > max_depth:
        raise DepthLimitExceeded(max_depth, str(path))
    try:
        kind = ValueKind.of(value)
    except TypeError as exc:
        raise InvalidSchema(f"{exc} at {str(path) or '<root>'}") from exc

    if kind is ValueKind.OBJECT:
        node = SchemaNode(path=path, kind=kind)
        for key, child in value.items():
            node.children[key] = _describe(child, path.child(key), depth + 1, max_depth)
        return node

    if kind is ValueKind.ARRAY:
        node = SchemaNode(path=path, kind=kind)
        containers = [item for item in value if isinstance(item, (dict, list))]
        if containers:
            element: SchemaNode | None = None
            for item in containers:
                described = _describe(item, path.element(), depth + 1, max_depth)
                element = described if element is None else _merge(element, described)
            node.element = element
        else:
            node.element_kind = _common_kind(
                ValueKind.of(item) for item in value if item is not None
            )
        return node

    return SchemaNode(path=path, kind=None if kind is ValueKind.NULL else kind)


def _common_kind(kinds: Any) -> ValueKind | None:
    distinct = set(kinds)
    return distinct.pop() if len(distinct) == 1 else None


def _widen(a: ValueKind | None, b: ValueKind | None) -> ValueKind | None:
    if a is None:
        return b
    if b is None or a is b:
        return a
    return None


def _is_untyped(node: SchemaNode) -> bool:
    """True for a node that only saw nulls or empty arrays."""
    return node.kind is None or (
        node.kind is ValueKind.ARRAY and node.is_opaque
    )


def _merge(a: SchemaNode, b: SchemaNode) -> SchemaNode:
    required = a.required and b.required
    if _is_untyped(b) and b.kind in (None, a.kind):
        return SchemaNode(
            path=a.path, kind=a.kind, required=required,
            element_kind=a.element_kind, children=a.children, element=a.element,
        )
    if _is_untyped(a) and a.kind in (None, b.kind):
        return SchemaNode(
            path=b.path, kind=b.kind, required=required,
            element_kind=b.element_kind, children=b.children, element=b.element,
        )
    if a.kind is not b.kind:
        return SchemaNode(path=a.path, kind=None, required=required)

    merged = SchemaNode(path=a.path, kind=a.kind, required=required)
    if a.kind is ValueKind.OBJECT:
        for key in dict.fromkeys([*a.children, *b.children]):
            left, right = a.children.get(key), b.children.get(key)
            if left is not None and right is not None:
                merged.children[key] = _merge(left, right)
            else:
                only = left if left is not None else right
                assert only is not None
                only.required = False
                merged.children[key] = only
    elif a.kind is ValueKind.ARRAY:
        if a.element is not None and b.element is not None:
            merged.element = _merge(a.element, b.element)
        elif a.element is None and b.element is None:
            merged.element_kind = _widen(a.element_kind, b.element_kind)
        # An array of containers in one sample and of scalars in the other
        # stays untyped
    return merged
