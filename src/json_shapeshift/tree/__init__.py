"""Tree subpackage: value model and path enumeration primitives.

Re-exports the public API for the tree module:
- ValueKind: StrEnum of the six JSON value variants
- FieldPath / WILDCARD: addresses of locations within a document
- PathDescriptor: leaf-or-container shape reported for each path
- PathWalker / enumerate_paths: lazy depth-first path enumeration
- KeyNormalizer: splits camelCase, PascalCase, snake_case, kebab-case keys
"""

from json_shapeshift.tree.nodes import (
    WILDCARD,
    FieldPath,
    JsonValue,
    PathDescriptor,
    ValueKind,
)
from json_shapeshift.tree.normalizer import KeyNormalizer
from json_shapeshift.tree.walker import PathWalker, enumerate_paths

__all__ = [
    "WILDCARD",
    "FieldPath",
    "JsonValue",
    "KeyNormalizer",
    "PathDescriptor",
    "PathWalker",
    "ValueKind",
    "enumerate_paths",
]
