"""Value model primitives: ValueKind, FieldPath and PathDescriptor.

Documents are plain parsed JSON values (dict, list, str, int, float, bool,
None).  These types describe *locations* and *shapes* inside such documents
so that source and target trees can be enumerated and compared.

Path notation:
- Object members are joined with ``.``  -> ``location.city``
- Array elements use a wildcard marker  -> ``items[*].name``
- The root path renders as ``""``
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, StrEnum, auto
from typing import Any

# Type alias for valid JSON values
JsonValue = dict[str, Any] | list[Any] | str | int | float | bool | None


class ValueKind(StrEnum):
    """The six JSON value variants.

    StrEnum values are the lowercased member names:
    - NULL   -> "null"
    - BOOL   -> "bool"
    - NUMBER -> "number"  (int and float)
    - STRING -> "string"
    - ARRAY  -> "array"
    - OBJECT -> "object"
    """

    NULL = auto()
    BOOL = auto()
    NUMBER = auto()
    STRING = auto()
    ARRAY = auto()
    OBJECT = auto()

    @classmethod
    def of(cls, value: Any) -> ValueKind:
        """Return the kind of a JSON value.

        Raises:
            TypeError: If value is not a valid JSON type.
        """
        # bool MUST be checked before int: bool subclasses int in Python
        if isinstance(value, bool):
            return cls.BOOL
        if value is None:
            return cls.NULL
        if isinstance(value, (int, float)):
            return cls.NUMBER
        if isinstance(value, str):
            return cls.STRING
        if isinstance(value, list):
            return cls.ARRAY
        if isinstance(value, dict):
            return cls.OBJECT
        raise TypeError(f"Unsupported JSON value type: {type(value)!r}")

    @property
    def is_container(self) -> bool:
        return self in (ValueKind.ARRAY, ValueKind.OBJECT)


class Wildcard(Enum):
    """Position-agnostic array element segment."""

    ANY = "*"

    def __repr__(self) -> str:
        return "WILDCARD"


WILDCARD = Wildcard.ANY

PathSegment = str | Wildcard

# A plain key, optionally followed by any number of "[*]" markers.
_SEGMENT = re.compile(r"^(?P<key>[^\[\]]*)(?P<wild>(?:\[\*\])*)$")


@dataclass(frozen=True, slots=True)
class FieldPath:
    """Ordered address of a location within a JSON tree.

    Two paths are equal iff their segment tuples are equal.  Paths are
    hashable and can be used as dict keys.

    Example::

        path = FieldPath.parse("items[*].name")
        path.segments          # ("items", WILDCARD, "name")
        str(path)              # "items[*].name"
        path.keys              # ("items", "name")
    """

    segments: tuple[PathSegment, ...] = ()

    @classmethod
    def parse(cls, text: str) -> FieldPath:
        """Parse dot/bracket notation (``a.b[*].c``) into a FieldPath.

        Raises:
            ValueError: If a segment is empty or brackets are malformed.
        """
        if text == "":
            return cls()
        segments: list[PathSegment] = []
        for index, part in enumerate(text.split(".")):
            match = _SEGMENT.match(part)
            if match is None:
                raise ValueError(f"Malformed path segment {part!r} in {text!r}")
            key = match.group("key")
            wildcards = len(match.group("wild")) // 3
            if key:
                segments.append(key)
            elif index > 0 or not wildcards:
                # Only a leading "[*]" (root array) may omit the key
                raise ValueError(f"Empty path segment in {text!r}")
            segments.extend([WILDCARD] * wildcards)
        return cls(tuple(segments))

    def child(self, key: str) -> FieldPath:
        return FieldPath((*self.segments, key))

    def element(self) -> FieldPath:
        return FieldPath((*self.segments, WILDCARD))

    @property
    def parent(self) -> FieldPath:
        return FieldPath(self.segments[:-1])

    @property
    def keys(self) -> tuple[str, ...]:
        """Key segments only, wildcards dropped."""
        return tuple(s for s in self.segments if isinstance(s, str))

    @property
    def leaf_key(self) -> str:
        """Last key segment, or ``""`` for paths without keys."""
        keys = self.keys
        return keys[-1] if keys else ""

    @property
    def ends_with_wildcard(self) -> bool:
        return bool(self.segments) and self.segments[-1] is WILDCARD

    def wildcard_prefixes(self) -> list[FieldPath]:
        """Every prefix of this path that ends in a wildcard, shallowest first."""
        return [
            FieldPath(self.segments[: i + 1])
            for i, seg in enumerate(self.segments)
            if seg is WILDCARD
        ]

    def is_prefix_of(self, other: FieldPath) -> bool:
        n = len(self.segments)
        return other.segments[:n] == self.segments

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        out = ""
        for seg in self.segments:
            if seg is WILDCARD:
                out += "[*]"
            else:
                out = f"{out}.{seg}" if out else str(seg)
        return out


@dataclass(frozen=True, slots=True)
class PathDescriptor:
    """Shape information reported for each enumerated path.

    Attributes:
        kind:         ValueKind found at the path.
        is_leaf:      True for scalars and arrays of scalars; False for
                      containers (objects, arrays of objects/arrays, and
                      empty containers).
        element_kind: For arrays of scalars, the common element kind;
                      None when the array is empty or holds mixed kinds.
                      For arrays of containers, the kind of the first
                      element.
    """

    kind: ValueKind
    is_leaf: bool
    element_kind: ValueKind | None = None
