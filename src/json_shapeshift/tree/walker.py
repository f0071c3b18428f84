"""PathWalker: lazily enumerates every addressable field path of a JSON tree.

Traversal rules:
- Depth-first, pre-order; object keys in insertion order.
- The root is never reported (it cannot be matched to anything).
- Objects report a container descriptor, then their members.
- Arrays of scalars (first element is a scalar) are a single leaf.
- Arrays of objects/arrays report a container descriptor and recurse into
  the first element only, under a WILDCARD segment.  Element shapes are
  assumed homogeneous; the first element is representative.
- Empty objects and arrays report a container descriptor and no leaves.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from json_shapeshift.errors import DepthLimitExceeded
from json_shapeshift.tree.nodes import FieldPath, PathDescriptor, ValueKind

__all__ = ["DEFAULT_MAX_DEPTH", "PathWalker", "enumerate_paths"]

DEFAULT_MAX_DEPTH = 64

PathEntry = tuple[FieldPath, PathDescriptor]


def _scalar_element_kind(items: list[Any]) -> ValueKind | None:
    """Common kind of a scalar array's non-null elements, or None if mixed."""
    kinds = {ValueKind.of(item) for item in items if item is not None}
    if len(kinds) == 1:
        return kinds.pop()
    return None


@dataclass(frozen=True)
class PathWalker:
    """Enumerates ``(FieldPath, PathDescriptor)`` pairs for a JSON value.

    The walker holds no per-walk state, so ``walk`` is restartable: walking
    an unmodified tree twice yields the same sequence.

    Example::

        walker = PathWalker()
        for path, desc in walker.walk({"user": {"name": "Ada"}}):
            print(path, desc.kind, desc.is_leaf)
        # user   object False
        # user.name   string True
    """

    max_depth: int = DEFAULT_MAX_DEPTH

    def walk(self, value: Any) -> Iterator[PathEntry]:
        """Yield every path under ``value`` (the root itself excluded).

        Raises:
            DepthLimitExceeded: If nesting exceeds ``max_depth``.
            TypeError: If the tree contains a non-JSON value.
        """
        kind = ValueKind.of(value)
        if kind is ValueKind.OBJECT:
            yield from self._walk_members(value, FieldPath(), 0)
        elif kind is ValueKind.ARRAY and value and ValueKind.of(value[0]).is_container:
            yield from self._walk_elements(value, FieldPath(), 0)

    def _walk(self, value: Any, path: FieldPath, depth: int) -> Iterator[PathEntry]:
        if depth > self.max_depth:
            raise DepthLimitExceeded(self.max_depth, str(path))

        kind = ValueKind.of(value)

        if kind is ValueKind.OBJECT:
            yield path, PathDescriptor(kind=kind, is_leaf=False)
            yield from self._walk_members(value, path, depth)
            return

        if kind is ValueKind.ARRAY:
            if value and not ValueKind.of(value[0]).is_container:
                yield path, PathDescriptor(
                    kind=kind, is_leaf=True, element_kind=_scalar_element_kind(value)
                )
                return
            element_kind = ValueKind.of(value[0]) if value else None
            yield path, PathDescriptor(kind=kind, is_leaf=False, element_kind=element_kind)
            yield from self._walk_elements(value, path, depth)
            return

        yield path, PathDescriptor(kind=kind, is_leaf=True)

    def _walk_members(
        self, obj: dict[str, Any], path: FieldPath, depth: int
    ) -> Iterator[PathEntry]:
        for key, child in obj.items():
            yield from self._walk(child, path.child(key), depth + 1)

    def _walk_elements(
        self, arr: list[Any], path: FieldPath, depth: int
    ) -> Iterator[PathEntry]:
        if not arr:
            return
        first = arr[0]
        element_path = path.element()
        if isinstance(first, dict):
            # The element object itself is not addressable, only its members
            if depth + 1 > self.max_depth:
                raise DepthLimitExceeded(self.max_depth, str(element_path))
            yield from self._walk_members(first, element_path, depth + 1)
        else:
            yield from self._walk(first, element_path, depth + 1)


def enumerate_paths(value: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> Iterator[PathEntry]:
    """Convenience wrapper around ``PathWalker(max_depth).walk(value)``."""
    return PathWalker(max_depth=max_depth).walk(value)
