"""TreeReconstructor: builds the output document from an assignment.

The schema is walked depth-first.  Every matchable target reads its value
from the source through the matched source path; wildcard segments in that
path are bound to concrete array indices by the enclosing target arrays
(an unbound wildcard reads the first element).  Fan-out leaves are the
exception: they read every element of each unbound wildcard.

Array-of-objects targets:
- Regular arrays are driven by one source array, the shallowest unbound
  wildcard prefix shared by most matched leaves below the target element
  (ties go to the first one seen in schema order).  One output element is
  produced per source element.  Without a driver but with some match, a
  single element is produced; with no match at all, ``[]``.
- Fan-out arrays produce one element per selected match: element ``i``
  takes the ``i``-th match of each leaf below it.

Matched values are deep-copied, so the result never aliases the source.
"""

from __future__ import annotations

import copy
import math
from collections import Counter
from collections.abc import Mapping
from typing import Any

from json_shapeshift.config import MapperConfig, UnmatchedPolicy
from json_shapeshift.result import Assignment, Match
from json_shapeshift.schema import SchemaNode, TargetSchema
from json_shapeshift.tree.nodes import WILDCARD, FieldPath, JsonValue, ValueKind

__all__ = ["MISSING", "TreeReconstructor", "coerce_value", "resolve_path"]

Bindings = Mapping[FieldPath, int]


class _Sentinel:
    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name


# Value absent from the source document
MISSING: Any = _Sentinel("MISSING")

# Key left out of the output object
_OMIT: Any = _Sentinel("OMIT")


def resolve_path(document: Any, path: FieldPath, bindings: Bindings | None = None) -> Any:
    """Read the value at ``path``, or ``MISSING`` when it is absent.

    Args:
        document: Parsed JSON document.
        path: Path to read; may contain wildcards.
        bindings: Wildcard prefix -> element index.  Unbound wildcards read
            element 0.
    """
    bindings = bindings or {}
    current = document
    for depth, segment in enumerate(path.segments):
        if segment is WILDCARD:
            if not isinstance(current, list):
                return MISSING
            index = bindings.get(FieldPath(path.segments[: depth + 1]), 0)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            if not isinstance(current, dict) or segment not in current:
                return MISSING
            current = current[segment]
    return current


def _to_number(text: str) -> Any:
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return text
    return number if math.isfinite(number) else text


def coerce_value(value: Any, kind: ValueKind | None) -> Any:
    """Convert between Number and String when ``value`` does not fit ``kind``.

    Strings that do not parse as a finite number are returned unchanged;
    every other combination is returned as is.
    """
    if kind is ValueKind.STRING and isinstance(value, (int, float)) and not isinstance(
        value, bool
    ):
        return str(value)
    if kind is ValueKind.NUMBER and isinstance(value, str):
        return _to_number(value)
    return value


class TreeReconstructor:
    """Builds one output document for a (source, schema, assignment) triple.

    Args:
        source: The source document.
        schema: Target schema.
        assignment: Target path -> committed matches.
        config: Mapping configuration (fallback policy, coercion).
    """

    def __init__(
        self,
        source: JsonValue,
        schema: TargetSchema,
        assignment: Assignment,
        config: MapperConfig,
    ) -> None:
        self._source = source
        self._schema = schema
        self._assignment = assignment
        self._config = config

    def build(self) -> JsonValue:
        """Return the reconstructed document."""
        value = self._build(self._schema.root, {}, None)
        if value is _OMIT:
            return {} if self._schema.root.kind is ValueKind.OBJECT else []
        return value

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def _build(self, node: SchemaNode, bindings: Bindings, fan_index: int | None) -> Any:
        if node.is_matchable:
            return self._build_leaf(node, bindings, fan_index)
        if node.kind is ValueKind.ARRAY:
            return self._build_array(node, bindings, fan_index)

        out: dict[str, Any] = {}
        for key, child in node.children.items():
            value = self._build(child, bindings, fan_index)
            if value is not _OMIT:
                out[key] = value
        if not node.required and not self._has_match(node, fan_index):
            return _OMIT
        return out

    def _build_array(
        self, node: SchemaNode, bindings: Bindings, fan_index: int | None
    ) -> Any:
        element = node.element
        assert element is not None
        if not node.required and not self._has_match(node, fan_index):
            return _OMIT

        if node.fan_out:
            count = max((len(self._matches(n)) for n in element.iter_nodes()), default=0)
            indices: list[tuple[Bindings, int | None]] = [
                (bindings, i) for i in range(count)
            ]
        elif fan_index is not None:
            # Inside a fan-out element: at most one element, from the same match
            indices = [(bindings, fan_index)] if self._has_match(element, fan_index) else []
        else:
            indices = self._driven_bindings(element, bindings)

        items = []
        for element_bindings, index in indices:
            value = self._build(element, element_bindings, index)
            if value is not _OMIT:
                items.append(value)
        return items

    def _driven_bindings(
        self, element: SchemaNode, bindings: Bindings
    ) -> list[tuple[Bindings, int | None]]:
        votes: Counter[FieldPath] = Counter()
        matched = False
        for node in element.iter_nodes():
            for match in self._matches(node):
                matched = True
                unbound = [p for p in match.source.wildcard_prefixes() if p not in bindings]
                if unbound:
                    votes[unbound[0]] += 1
        if not votes:
            return [(bindings, None)] if matched else []

        driver = votes.most_common(1)[0][0]
        array = resolve_path(self._source, FieldPath(driver.segments[:-1]), bindings)
        if not isinstance(array, list):
            return []
        return [({**bindings, driver: i}, None) for i in range(len(array))]

    def _build_leaf(self, node: SchemaNode, bindings: Bindings, fan_index: int | None) -> Any:
        matches = self._matches(node)

        if node.fan_out:
            collected: list[Any] = []
            for match in matches:
                for element_bindings in self._every_binding(match.source, bindings):
                    value = resolve_path(self._source, match.source, element_bindings)
                    if value is MISSING:
                        continue
                    value = copy.deepcopy(value)
                    if isinstance(value, list):
                        collected.extend(self._coerce(v, node.element_kind) for v in value)
                    else:
                        collected.append(self._coerce(value, node.element_kind))
            return collected

        index = fan_index if fan_index is not None else 0
        if index >= len(matches):
            return self._unmatched(node)

        value = resolve_path(self._source, matches[index].source, bindings)
        if value is MISSING:
            return self._missing(node)
        value = copy.deepcopy(value)
        if node.kind is ValueKind.ARRAY and isinstance(value, list):
            return [self._coerce(v, node.element_kind) for v in value]
        return self._coerce(value, node.kind)

    # ------------------------------------------------------------------
    # Fallbacks
    # ------------------------------------------------------------------

    def _unmatched(self, node: SchemaNode) -> Any:
        if node.is_opaque:
            if not node.required:
                return _OMIT
            return {} if node.kind is ValueKind.OBJECT else []
        return self._missing(node)

    def _missing(self, node: SchemaNode) -> Any:
        if not node.required:
            return _OMIT
        if node.is_opaque:
            return {} if node.kind is ValueKind.OBJECT else []
        if self._config.unmatched_policy is UnmatchedPolicy.OMIT:
            return _OMIT
        # ERROR is enforced by the mapper for unmatched fields; a matched
        # path absent from one array element degrades to null
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _matches(self, node: SchemaNode) -> tuple[Match, ...]:
        return self._assignment.get(node.path, ())

    def _every_binding(self, path: FieldPath, bindings: Bindings) -> list[Bindings]:
        """Extend ``bindings`` over every element of each unbound wildcard in ``path``."""
        out: list[Bindings] = [bindings]
        for prefix in path.wildcard_prefixes():
            if prefix in bindings:
                continue
            expanded: list[Bindings] = []
            for current in out:
                array = resolve_path(self._source, FieldPath(prefix.segments[:-1]), current)
                if isinstance(array, list):
                    expanded.extend({**current, prefix: i} for i in range(len(array)))
            out = expanded
        return out

    def _has_match(self, node: SchemaNode, fan_index: int | None) -> bool:
        need = 1 if fan_index is None else fan_index + 1
        return any(len(self._matches(n)) >= need for n in node.iter_nodes())

    def _coerce(self, value: Any, kind: ValueKind | None) -> Any:
        if not self._config.allow_type_coercion:
            return value
        return coerce_value(value, kind)
