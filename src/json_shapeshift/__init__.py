"""json-shapeshift - map JSON documents onto a target shape by field-name similarity."""

from __future__ import annotations

import logging

from json_shapeshift.api import map_document
from json_shapeshift.cache import EmbeddingCache
from json_shapeshift.cancellation import CancellationToken
from json_shapeshift.config import (
    AssignmentStrategy,
    MapperConfig,
    PathTextMode,
    UnmatchedPolicy,
)
from json_shapeshift.errors import (
    DepthLimitExceeded,
    DimensionMismatch,
    EmbeddingFailure,
    InvalidSchema,
    MappingCancelled,
    MappingError,
    UnresolvedRequiredField,
)
from json_shapeshift.inference import infer_schema
from json_shapeshift.mapper import SchemaMapper
from json_shapeshift.protocols import EmbeddingBackend, TimeoutAwareBackend
from json_shapeshift.result import MappingResult, Match, MatchReport
from json_shapeshift.schema import FieldSpec, TargetSchema
from json_shapeshift.tree.nodes import WILDCARD, FieldPath, ValueKind

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__: str = "0.1.0"
__all__: list[str] = [
    "WILDCARD",
    "AssignmentStrategy",
    "CancellationToken",
    "DepthLimitExceeded",
    "DimensionMismatch",
    "EmbeddingBackend",
    "EmbeddingCache",
    "EmbeddingFailure",
    "FieldPath",
    "FieldSpec",
    "InvalidSchema",
    "MapperConfig",
    "MappingCancelled",
    "MappingError",
    "MappingResult",
    "Match",
    "MatchReport",
    "PathTextMode",
    "SchemaMapper",
    "TargetSchema",
    "TimeoutAwareBackend",
    "UnmatchedPolicy",
    "UnresolvedRequiredField",
    "ValueKind",
    "infer_schema",
    "map_document",
]
