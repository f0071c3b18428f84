"""Result types returned by a mapping call.

This module provides the per-pair ``Match``, the ``Assignment`` alias, the
diagnostic ``MatchReport`` and the ``MappingResult`` pair returned by
``SchemaMapper.map()`` / ``map_document()``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, NamedTuple

from json_shapeshift.tree.nodes import FieldPath, JsonValue

__all__ = [
    "Assignment",
    "EmbeddingError",
    "MappingResult",
    "Match",
    "MatchReport",
    "UnmatchedTarget",
]


@dataclass(frozen=True, slots=True)
class Match:
    """One committed (target, source) correspondence.

    Attributes:
        target: Target field path.
        source: Source field path whose value fills the target.
        score:  Path score of the pair in [0, 1].
    """

    target: FieldPath
    source: FieldPath
    score: float


# Target path -> its matches.  One element unless the target accepts fan-out.
Assignment = dict[FieldPath, tuple[Match, ...]]


@dataclass(frozen=True, slots=True)
class UnmatchedTarget:
    """A matchable target field that received no source.

    Attributes:
        path: Target path in dot/bracket notation.
        required: Whether the field is required by the schema.
        best_score: Highest path score seen for this target, 0.0 if none.
        best_candidate: Source path that produced ``best_score``, or None.
    """

    path: str
    required: bool
    best_score: float
    best_candidate: str | None


@dataclass(frozen=True, slots=True)
class EmbeddingError:
    """A path that could not be embedded and was left out of matching.

    Attributes:
        side: ``"source"`` or ``"target"``.
        path: Field path in dot/bracket notation.
        text: The text that was sent to the embedding provider.
        message: Failure description.
    """

    side: str
    path: str
    text: str
    message: str


@dataclass(frozen=True, slots=True)
class MatchReport:
    """Diagnostics of one mapping call.

    The report is built after reconstruction and never influences matching.

    Attributes:
        matched_pairs: ``(target_path, source_path, score)`` for every
            committed match, in target order.
        unmatched_source: Source leaf paths whose value was not used.
        unmatched_target: Matchable target fields left without a match.
        embedding_errors: Paths whose text could not be embedded.
        unresolved_required: Required target paths that fell back to the
            unmatched policy.
        source_paths: Every enumerated source path.
        target_paths: Every matchable target path.
        computation_time_ms: Wall-clock duration of the call in milliseconds.
        source_vectors: Source path -> embedding of its text.  Paths whose
            text failed to embed are absent.
        target_vectors: Target path -> embedding of its text, same rule.
    """

    matched_pairs: list[tuple[str, str, float]]
    unmatched_source: list[str]
    unmatched_target: list[UnmatchedTarget]
    embedding_errors: list[EmbeddingError]
    unresolved_required: list[str]
    source_paths: list[str]
    target_paths: list[str]
    computation_time_ms: float
    source_vectors: dict[str, tuple[float, ...]] = field(default_factory=dict)
    target_vectors: dict[str, tuple[float, ...]] = field(default_factory=dict)

    @property
    def key_mappings(self) -> dict[str, str]:
        """Source path -> target path for every matched pair.

        A source shared with fan-out targets maps to the first target that
        uses it, in target order.
        """
        out: dict[str, str] = {}
        for target, source, _ in self.matched_pairs:
            out.setdefault(source, target)
        return out

    def to_dict(self, include_embeddings: bool = False) -> dict[str, Any]:
        """Return a JSON-serializable view of the report.

        Args:
            include_embeddings: Also emit an ``"embeddings"`` entry holding
                the source and target path vectors as lists of floats.
        """
        out: dict[str, Any] = {
            "matched_pairs": [
                {"target": t, "source": s, "score": score}
                for t, s, score in self.matched_pairs
            ],
            "unmatched_source": list(self.unmatched_source),
            "unmatched_target": [asdict(u) for u in self.unmatched_target],
            "embedding_errors": [asdict(e) for e in self.embedding_errors],
            "unresolved_required": list(self.unresolved_required),
            "source_paths": list(self.source_paths),
            "target_paths": list(self.target_paths),
            "computation_time_ms": self.computation_time_ms,
        }
        if include_embeddings:
            out["embeddings"] = {
                "source": {path: list(vec) for path, vec in self.source_vectors.items()},
                "target": {path: list(vec) for path, vec in self.target_vectors.items()},
            }
        return out


class MappingResult(NamedTuple):
    """Output of a mapping call; unpacks as ``result, report``."""

    result: JsonValue
    report: MatchReport
