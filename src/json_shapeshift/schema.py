"""TargetSchema: the desired output shape of a mapping call.

A schema is a tree of ``SchemaNode`` objects built once per call, either
from a literal template or from an explicit list of ``FieldSpec`` entries,
and treated as read-only while matching.

Template syntax (``TargetSchema.from_template``):

- Objects and arrays describe structure; an array's first item is the
  representative element shape.
- String leaves ``<string>``, ``<number>``, ``<bool>``/``<boolean>``,
  ``<array>``, ``<object>`` and ``<any>`` are type markers.  A trailing
  ``?`` inside the marker (``<string?>``) makes the field optional.
- Any other leaf value is a sample: its runtime kind becomes the hint
  (``""`` -> string, ``0`` -> number, ``None`` -> any).
- A list whose last item is ``...`` (``Ellipsis`` or the string ``"..."``)
  is a fan-out array: it collects every matching source value.

Example::

    schema = TargetSchema.from_template(
        {"name": "<string>", "tags": ["<string>", "..."]}
    )
    [str(n.path) for n in schema.matchable()]   # ["name", "tags"]
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from json_shapeshift.errors import DepthLimitExceeded, InvalidSchema
from json_shapeshift.tree.nodes import WILDCARD, FieldPath, JsonValue, ValueKind
from json_shapeshift.tree.walker import DEFAULT_MAX_DEPTH

__all__ = ["FieldSpec", "SchemaNode", "TargetSchema"]

_MARKER = re.compile(r"^<(?P<name>[A-Za-z_]\w*)(?P<optional>\?)?>$")

_MARKER_KINDS: dict[str, ValueKind | None] = {
    "string": ValueKind.STRING,
    "number": ValueKind.NUMBER,
    "bool": ValueKind.BOOL,
    "boolean": ValueKind.BOOL,
    "array": ValueKind.ARRAY,
    "object": ValueKind.OBJECT,
    "any": None,
}

_KIND_MARKERS: dict[ValueKind | None, str] = {
    ValueKind.STRING: "string",
    ValueKind.NUMBER: "number",
    ValueKind.BOOL: "bool",
    ValueKind.ARRAY: "array",
    ValueKind.OBJECT: "object",
    None: "any",
}

_FAN_OUT_TEXT = "..."


def _is_fan_out_marker(item: Any) -> bool:
    return item is Ellipsis or (isinstance(item, str) and item == _FAN_OUT_TEXT)


def _where(path: FieldPath) -> str:
    return str(path) or "<root>"


@dataclass(slots=True)
class SchemaNode:
    """One node of a target schema.

    Attributes:
        path:          Location of the node; element nodes end in WILDCARD.
        kind:          Expected kind, or None for "any".
        required:      Whether an unmatched field falls back to the
                       unmatched policy (True) or is simply left out.
        fan_out:       Array that collects every matching source value.
        element_kind:  Element kind for arrays of scalars.
        children:      Object members, in declaration order.
        element:       Representative element for arrays of containers.
        fan_out_scope: Path of the fan-out array governing this node, if any.
    """

    path: FieldPath
    kind: ValueKind | None = None
    required: bool = True
    fan_out: bool = False
    element_kind: ValueKind | None = None
    children: dict[str, SchemaNode] = field(default_factory=dict)
    element: SchemaNode | None = None
    fan_out_scope: FieldPath | None = None

    @property
    def is_structured(self) -> bool:
        """True for objects with members and arrays of containers."""
        return bool(self.children) or self.element is not None

    @property
    def is_matchable(self) -> bool:
        return not self.is_structured

    @property
    def is_opaque(self) -> bool:
        """Container without any described structure (``{}``, ``<array>``)."""
        return (
            self.kind in (ValueKind.OBJECT, ValueKind.ARRAY)
            and not self.is_structured
            and self.element_kind is None
            and not self.fan_out
        )

    def iter_nodes(self) -> Iterator[SchemaNode]:
        """Yield this node and every descendant, depth-first pre-order."""
        yield self
        for child in self.children.values():
            yield from child.iter_nodes()
        if self.element is not None:
            yield from self.element.iter_nodes()


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Explicit description of one target field.

    Attributes:
        path:         Dot/bracket path (``"products[*].title"``) or FieldPath.
        kind:         Expected kind; None accepts any kind.
        required:     Whether the unmatched policy applies to the field.
        fan_out:      Collect every matching source value into this array.
        element_kind: Element kind when the field is an array of scalars.
    """

    path: str | FieldPath
    kind: ValueKind | None = None
    required: bool = True
    fan_out: bool = False
    element_kind: ValueKind | None = None

    @property
    def declares_container(self) -> bool:
        return self.fan_out or self.kind in (ValueKind.OBJECT, ValueKind.ARRAY)


class TargetSchema:
    """Validated, read-only target shape.

    Raises:
        InvalidSchema: From every constructor when the shape is malformed.
    """

    def __init__(self, root: SchemaNode) -> None:
        if root.kind not in (ValueKind.OBJECT, ValueKind.ARRAY):
            raise InvalidSchema("The target root must be an object or an array")
        if root.kind is ValueKind.ARRAY and root.element is None and (
            root.element_kind is not None or root.fan_out
        ):
            raise InvalidSchema("A root array must hold objects or arrays")
        self._root = root
        self._assign_fan_out_scopes(root, None)
        self._index: dict[FieldPath, SchemaNode] = {
            node.path: node for node in root.iter_nodes()
        }

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_template(
        cls, template: JsonValue, *, max_depth: int = DEFAULT_MAX_DEPTH
    ) -> TargetSchema:
        """Build a schema from a literal shape template.

        Raises:
            InvalidSchema: If the template is malformed.
            DepthLimitExceeded: If the template nests deeper than ``max_depth``.
        """
        if not isinstance(template, (dict, list)):
            raise InvalidSchema(
                f"The target template must be an object or an array, "
                f"got {type(template).__name__}"
            )
        return cls(_TemplateBuilder(max_depth).build(template, FieldPath(), 0))

    @classmethod
    def from_fields(cls, fields: Iterable[FieldSpec]) -> TargetSchema:
        """Build a schema from explicit field specifications.

        Intermediate objects and arrays are created implicitly; declaring
        one explicitly (``kind=OBJECT``/``ARRAY`` or ``fan_out=True``) only
        sets its flags.

        Raises:
            InvalidSchema: For unparsable or duplicate paths, or a path used
                both as a leaf and as a container.
        """
        specs: dict[FieldPath, FieldSpec] = {}
        for spec in fields:
            path = _parse_field_path(spec.path)
            if path in specs:
                raise InvalidSchema(f"Duplicate field path {str(path)!r}")
            specs[path] = spec

        first = next(iter(specs), None)
        root_kind = (
            ValueKind.ARRAY
            if first is not None and first.segments[0] is WILDCARD
            else ValueKind.OBJECT
        )
        root = SchemaNode(path=FieldPath(), kind=root_kind)
        for path, spec in specs.items():
            node = root
            for depth, segment in enumerate(path.segments):
                node = _descend(node, segment, path, depth, specs)
            _apply_spec(node, spec)
        return cls(root)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def root(self) -> SchemaNode:
        return self._root

    def node(self, path: FieldPath | str) -> SchemaNode:
        """Return the node at ``path``.

        Raises:
            KeyError: If the schema has no such node.
        """
        key = FieldPath.parse(path) if isinstance(path, str) else path
        return self._index[key]

    def __contains__(self, path: object) -> bool:
        if isinstance(path, str):
            path = FieldPath.parse(path)
        return path in self._index

    def nodes(self) -> list[SchemaNode]:
        """Every node except the root, depth-first pre-order."""
        return [n for n in self._root.iter_nodes() if n is not self._root]

    def matchable(self) -> list[SchemaNode]:
        """Nodes that receive a source path: leaves and opaque containers."""
        return [n for n in self.nodes() if n.is_matchable]

    def to_template(self) -> JsonValue:
        """Render the schema back into template syntax."""
        return _render(self._root)

    def __repr__(self) -> str:
        return f"TargetSchema({self.to_template()!r})"

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @classmethod
    def _assign_fan_out_scopes(
        cls, node: SchemaNode, scope: FieldPath | None
    ) -> None:
        if node.fan_out:
            if node.kind is not ValueKind.ARRAY:
                raise InvalidSchema(
                    f"Fan-out requires an array, {_where(node.path)} is {node.kind}"
                )
            if scope is not None:
                raise InvalidSchema(
                    f"Fan-out array {_where(node.path)} is nested inside "
                    f"fan-out array {_where(scope)}"
                )
            scope = node.path
        node.fan_out_scope = scope
        for child in node.children.values():
            cls._assign_fan_out_scopes(child, scope)
        if node.element is not None:
            cls._assign_fan_out_scopes(node.element, scope)


# ----------------------------------------------------------------------
# Template parsing
# ----------------------------------------------------------------------


class _TemplateBuilder:
    def __init__(self, max_depth: int) -> None:
        self._max_depth = max_depth

    def build(self, value: Any, path: FieldPath, depth: int) -> SchemaNode:
        if depth > self._max_depth:
            raise DepthLimitExceeded(self._max_depth, str(path))

        if isinstance(value, dict):
            node = SchemaNode(path=path, kind=ValueKind.OBJECT)
            for key, child in value.items():
                if not isinstance(key, str):
                    raise InvalidSchema(f"Object keys must be strings at {_where(path)}")
                node.children[key] = self.build(child, path.child(key), depth + 1)
            return node

        if isinstance(value, list):
            return self._build_array(value, path, depth)

        if _is_fan_out_marker(value):
            raise InvalidSchema(f"Fan-out marker outside an array at {_where(path)}")
        return self._leaf(value, path)

    def _build_array(self, items: list[Any], path: FieldPath, depth: int) -> SchemaNode:
        fan_out = bool(items) and _is_fan_out_marker(items[-1])
        if fan_out:
            items = items[:-1]
        if any(_is_fan_out_marker(item) for item in items):
            raise InvalidSchema(
                f"The fan-out marker must be the last array item at {_where(path)}"
            )

        node = SchemaNode(path=path, kind=ValueKind.ARRAY, fan_out=fan_out)
        if not items:
            return node
        first = items[0]
        if isinstance(first, (dict, list)):
            node.element = self.build(first, path.element(), depth + 1)
        else:
            node.element_kind = self._leaf(first, path.element()).kind
        return node

    @staticmethod
    def _leaf(value: Any, path: FieldPath) -> SchemaNode:
        if isinstance(value, str):
            marker = _MARKER.match(value)
            if marker is not None:
                name = marker.group("name").lower()
                if name not in _MARKER_KINDS:
                    raise InvalidSchema(
                        f"Unknown type marker {value!r} at {_where(path)}"
                    )
                return SchemaNode(
                    path=path,
                    kind=_MARKER_KINDS[name],
                    required=marker.group("optional") is None,
                )
        try:
            kind = ValueKind.of(value)
        except TypeError as exc:
            raise InvalidSchema(f"{exc} at {_where(path)}") from exc
        return SchemaNode(path=path, kind=None if kind is ValueKind.NULL else kind)


def _render(node: SchemaNode) -> JsonValue:
    if not node.path.segments and node.is_opaque:
        return {} if node.kind is ValueKind.OBJECT else []
    if node.children:
        return {key: _render(child) for key, child in node.children.items()}
    if node.kind is ValueKind.ARRAY and not node.is_opaque:
        items: list[Any] = []
        if node.element is not None:
            items.append(_render(node.element))
        else:
            items.append(f"<{_KIND_MARKERS[node.element_kind]}>")
        if node.fan_out:
            items.append(_FAN_OUT_TEXT)
        return items
    optional = "" if node.required else "?"
    return f"<{_KIND_MARKERS[node.kind]}{optional}>"


# ----------------------------------------------------------------------
# Field list parsing
# ----------------------------------------------------------------------


def _parse_field_path(raw: str | FieldPath) -> FieldPath:
    if isinstance(raw, FieldPath):
        path = raw
    else:
        try:
            path = FieldPath.parse(raw)
        except ValueError as exc:
            raise InvalidSchema(f"Unparsable field path {raw!r}: {exc}") from exc
    if not path.segments:
        raise InvalidSchema("Field paths must not be empty")
    if path.ends_with_wildcard:
        raise InvalidSchema(f"Field path {str(path)!r} must end with a key")
    return path


def _is_leaf_spec(spec: FieldSpec | None) -> bool:
    return spec is not None and not spec.declares_container


def _descend(
    node: SchemaNode,
    segment: Any,
    path: FieldPath,
    depth: int,
    specs: dict[FieldPath, FieldSpec],
) -> SchemaNode:
    if _is_leaf_spec(specs.get(node.path)):
        raise InvalidSchema(
            f"{_where(node.path)} is declared as a leaf but {str(path)!r} nests under it"
        )
    sub = FieldPath(path.segments[: depth + 1])
    following = path.segments[depth + 1] if depth + 1 < len(path) else None
    implied = (
        None
        if following is None
        else ValueKind.ARRAY if following is WILDCARD else ValueKind.OBJECT
    )

    if segment is WILDCARD:
        if node.kind is not ValueKind.ARRAY:
            raise InvalidSchema(f"{_where(node.path)} is not an array in {str(path)!r}")
        if node.element_kind is not None:
            raise InvalidSchema(f"{_where(node.path)} is an array of scalars")
        if node.element is None:
            node.element = SchemaNode(path=sub, kind=implied)
        return node.element

    if node.kind is not ValueKind.OBJECT:
        raise InvalidSchema(f"{_where(node.path)} is not an object in {str(path)!r}")
    child = node.children.get(segment)
    if child is None:
        child = SchemaNode(path=sub, kind=implied)
        node.children[segment] = child
    elif following is not None and child.kind is None:
        child.kind = implied
    return child


def _apply_spec(node: SchemaNode, spec: FieldSpec) -> None:
    where = _where(node.path)
    if node.is_structured and not spec.declares_container:
        raise InvalidSchema(f"{where} is used both as a leaf and as a container")

    kind = spec.kind
    if spec.fan_out:
        if kind not in (None, ValueKind.ARRAY):
            raise InvalidSchema(f"Fan-out requires an array, {where} is {kind}")
        kind = ValueKind.ARRAY
    if node.is_structured and kind is not None and kind is not node.kind:
        raise InvalidSchema(f"{where} is declared as {kind} but holds {node.kind} members")
    if spec.element_kind is not None:
        if kind is not ValueKind.ARRAY:
            raise InvalidSchema(f"element_kind requires an array at {where}")
        if node.element is not None:
            raise InvalidSchema(f"{where} is used both as a leaf and as a container")

    if kind is not None:
        node.kind = kind
    node.required = spec.required
    node.fan_out = spec.fan_out
    node.element_kind = spec.element_kind
