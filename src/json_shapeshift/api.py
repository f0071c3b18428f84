"""Public API functions for json-shapeshift.

This module provides the user-facing ``map_document`` function.  Each call
creates a fresh ``SchemaMapper`` so that no state is shared between calls.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from json_shapeshift.config import MapperConfig
from json_shapeshift.mapper import SchemaMapper, TargetLike
from json_shapeshift.result import MappingResult
from json_shapeshift.tree.nodes import JsonValue

if TYPE_CHECKING:
    from json_shapeshift.cancellation import CancellationToken
    from json_shapeshift.protocols import EmbeddingBackend

__all__ = ["map_document"]


def map_document(
    source: JsonValue,
    target: TargetLike,
    config: MapperConfig | None = None,
    backend: EmbeddingBackend | None = None,
    cancel_token: CancellationToken | None = None,
) -> MappingResult:
    """Map a source document onto a target shape.

    Args:
        source:       Parsed JSON document (dict, list, str, int, float, bool, None).
        target:       ``TargetSchema``, literal template, or list of ``FieldSpec``.
        config:       Mapping parameters.  Defaults to ``MapperConfig()`` when None.
        backend:      Embedding provider.  Defaults to ``StaticBackend()`` when None.
        cancel_token: Optional cooperative cancellation token.

    Returns:
        ``MappingResult(result, report)``; unpack it as a pair.
    """
    mapper = SchemaMapper(backend=backend, config=config)
    return mapper.map(source, target, cancel_token=cancel_token)
