"""Exception hierarchy for json-shapeshift.

Fatal conditions (dimension mismatch, invalid schema, cancellation,
unresolved required fields under the ERROR policy) propagate to the caller.
``EmbeddingFailure`` is the one recoverable kind: the embedding adapter
raises it per batch, catches it, and records the affected paths in the
MatchReport instead of aborting the mapping.
"""

from __future__ import annotations

from collections.abc import Sequence

__all__ = [
    "DepthLimitExceeded",
    "DimensionMismatch",
    "EmbeddingFailure",
    "InvalidSchema",
    "MappingCancelled",
    "MappingError",
    "UnresolvedRequiredField",
]


class MappingError(Exception):
    """Base class for every error raised by the mapping engine."""


class EmbeddingFailure(MappingError):
    """The embedding provider could not produce vectors for some texts."""

    def __init__(self, message: str, texts: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.texts: tuple[str, ...] = tuple(texts)


class DimensionMismatch(MappingError):
    """Two vectors that must be compared have different lengths."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Embedding dimensions differ within one mapping run: {expected} != {actual}"
        )
        self.expected = expected
        self.actual = actual


class UnresolvedRequiredField(MappingError):
    """Required target fields had no match and the policy is ERROR."""

    def __init__(self, paths: Sequence[str]) -> None:
        joined = ", ".join(paths)
        super().__init__(f"Unresolved required target fields: {joined}")
        self.paths: tuple[str, ...] = tuple(paths)


class MappingCancelled(MappingError):
    """The mapping call was cancelled; no partial result is returned."""


class InvalidSchema(MappingError, ValueError):
    """The target schema is malformed."""


class DepthLimitExceeded(MappingError, ValueError):
    """A document nests deeper than the configured ``max_depth``."""

    def __init__(self, max_depth: int, path: str) -> None:
        super().__init__(f"Nesting deeper than max_depth={max_depth} at {path!r}")
        self.max_depth = max_depth
        self.path = path
