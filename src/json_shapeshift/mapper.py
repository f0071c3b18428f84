"""SchemaMapper: orchestrator that wires the mapping pipeline together.

Stages, run in order for every ``map()`` call:

1. Build and validate the target schema.
2. Enumerate the source paths (PathWalker) and the matchable target nodes.
3. Embed every distinct path text (EmbeddingAdapter).
4. Score every (target, source) pair (name similarity x type multiplier).
5. Solve the assignment (greedy or optimal, plus fan-out).
6. Rebuild the output document (TreeReconstructor) and the MatchReport.

The cancellation token is checked at every stage boundary.  Each call owns
its trees, embeddings and assignment; concurrent calls on one mapper share
only the immutable config and the backend.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

import numpy as np

from json_shapeshift.algorithm.assignment import solve_assignment
from json_shapeshift.algorithm.similarity import TargetHint, score_paths
from json_shapeshift.backends import StaticBackend
from json_shapeshift.cancellation import CancellationToken
from json_shapeshift.config import MapperConfig, UnmatchedPolicy
from json_shapeshift.embedding import EmbeddingAdapter, EmbeddingOutcome, path_text
from json_shapeshift.errors import UnresolvedRequiredField
from json_shapeshift.reconstruct import TreeReconstructor
from json_shapeshift.result import (
    Assignment,
    EmbeddingError,
    MappingResult,
    Match,
    MatchReport,
    UnmatchedTarget,
)
from json_shapeshift.schema import FieldSpec, SchemaNode, TargetSchema
from json_shapeshift.tree.nodes import FieldPath, JsonValue, PathDescriptor
from json_shapeshift.tree.walker import PathWalker

if TYPE_CHECKING:
    from json_shapeshift.protocols import EmbeddingBackend

__all__ = ["SchemaMapper", "TargetLike"]

logger = logging.getLogger(__name__)

# A schema, a literal template, or an explicit field list
TargetLike = TargetSchema | JsonValue | list[FieldSpec]


class SchemaMapper:
    """Maps source documents onto a target shape by field-name similarity.

    Example::

        from json_shapeshift import SchemaMapper

        mapper = SchemaMapper()
        result, report = mapper.map(
            {"fullName": "Ada Lovelace", "yrs": 36},
            {"name": "<string>", "age": "<number>"},
        )
    """

    def __init__(
        self,
        backend: EmbeddingBackend | None = None,
        config: MapperConfig | None = None,
    ) -> None:
        """Initialise the mapper.

        Args:
            backend: An EmbeddingBackend-conformant object.  Defaults to
                ``StaticBackend()`` when None.  Wrap it in an
                ``EmbeddingCache`` to reuse embeddings across calls.
            config:  Mapping parameters.  Defaults to ``MapperConfig()``.
        """
        self._config: MapperConfig = config if config is not None else MapperConfig()
        self._backend: Any = backend if backend is not None else StaticBackend()

    @property
    def config(self) -> MapperConfig:
        return self._config

    @property
    def backend(self) -> EmbeddingBackend:
        return self._backend  # type: ignore[no-any-return]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def map(
        self,
        source: JsonValue,
        target: TargetLike,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> MappingResult:
        """Map ``source`` onto ``target``.

        Args:
            source: Parsed JSON document to read values from.
            target: ``TargetSchema``, literal template, or list of ``FieldSpec``.
            cancel_token: Optional token; cancelling it aborts the call.

        Returns:
            ``MappingResult(result, report)``.

        Raises:
            InvalidSchema: If the target is malformed.
            DepthLimitExceeded: If either document nests too deeply.
            DimensionMismatch: If the provider returns vectors of different
                lengths within the call.
            UnresolvedRequiredField: If required targets stay unmatched and
                the policy is ``UnmatchedPolicy.ERROR``.
            MappingCancelled: If ``cancel_token`` fires; no partial result.
        """
        t0 = time.perf_counter()
        token = cancel_token if cancel_token is not None else CancellationToken()
        config = self._config

        schema = self._resolve_schema(target)
        token.raise_if_cancelled("schema validation")

        source_entries = list(PathWalker(max_depth=config.max_depth).walk(source))
        targets = schema.matchable()
        logger.debug(
            "Enumerated %d source path(s) and %d target field(s)",
            len(source_entries),
            len(targets),
        )
        token.raise_if_cancelled("path enumeration")

        source_texts = [
            path_text(path, config.path_text, config.normalize_keys)
            for path, _ in source_entries
        ]
        target_texts = [
            path_text(node.path, config.path_text, config.normalize_keys)
            for node in targets
        ]
        adapter = EmbeddingAdapter(
            self._backend,
            batch_size=config.batch_size,
            max_concurrency=config.max_concurrency,
            timeout=config.embed_timeout,
            cancel_token=token,
        )
        outcome = adapter.embed_texts([*target_texts, *source_texts])
        token.raise_if_cancelled("embedding")

        descriptors = [desc for _, desc in source_entries]
        hints: list[TargetHint] = [
            (node.kind, node.element_kind, node.fan_out) for node in targets
        ]
        scores = score_paths(
            self._stack(target_texts, outcome),
            self._stack(source_texts, outcome),
            hints,
            descriptors,
            config,
        )
        token.raise_if_cancelled("scoring")

        fan_out_rows = [i for i, node in enumerate(targets) if node.fan_out_scope is not None]
        rows = solve_assignment(
            scores,
            min_confidence=config.min_confidence,
            strategy=config.assignment_strategy,
            fan_out_rows=fan_out_rows,
        )
        assignment: Assignment = {
            targets[t].path: tuple(
                Match(targets[t].path, source_entries[s][0], score) for s, score in pairs
            )
            for t, pairs in rows.items()
        }
        logger.debug("Committed %d match(es)", sum(len(m) for m in assignment.values()))

        unresolved = [
            str(node.path)
            for node in targets
            if node.path not in assignment
            and node.required
            and not node.is_opaque
            and not node.fan_out
        ]
        if unresolved and config.unmatched_policy is UnmatchedPolicy.ERROR:
            raise UnresolvedRequiredField(unresolved)
        token.raise_if_cancelled("assignment")

        result = TreeReconstructor(source, schema, assignment, config).build()
        token.raise_if_cancelled("reconstruction")

        report = MatchReport(
            matched_pairs=[
                (str(m.target), str(m.source), m.score)
                for matches in assignment.values()
                for m in matches
            ],
            unmatched_source=self._unmatched_source(source_entries, assignment),
            unmatched_target=self._unmatched_targets(
                targets, assignment, scores, source_entries
            ),
            embedding_errors=self._embedding_errors(
                targets, target_texts, source_entries, source_texts, outcome
            ),
            unresolved_required=unresolved,
            source_paths=[str(path) for path, _ in source_entries],
            target_paths=[str(node.path) for node in targets],
            computation_time_ms=(time.perf_counter() - t0) * 1000.0,
            source_vectors=self._path_vectors(
                [path for path, _ in source_entries], source_texts, outcome
            ),
            target_vectors=self._path_vectors(
                [node.path for node in targets], target_texts, outcome
            ),
        )
        return MappingResult(result, report)

    # ------------------------------------------------------------------
    # Stage helpers
    # ------------------------------------------------------------------

    def _resolve_schema(self, target: TargetLike) -> TargetSchema:
        if isinstance(target, TargetSchema):
            return target
        if (
            isinstance(target, list)
            and target
            and all(isinstance(item, FieldSpec) for item in target)
        ):
            return TargetSchema.from_fields(target)
        return TargetSchema.from_template(target, max_depth=self._config.max_depth)

    @staticmethod
    def _stack(texts: list[str], outcome: EmbeddingOutcome) -> np.ndarray:
        """Stack vectors in ``texts`` order; failed texts get a zero row."""
        dim = outcome.dimension or 1
        matrix = np.zeros((len(texts), dim), dtype=np.float64)
        for i, text in enumerate(texts):
            vec = outcome.vectors.get(text)
            if vec is not None:
                matrix[i] = vec
        return matrix

    # ------------------------------------------------------------------
    # Report helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _path_vectors(
        paths: list[FieldPath], texts: list[str], outcome: EmbeddingOutcome
    ) -> dict[str, tuple[float, ...]]:
        out: dict[str, tuple[float, ...]] = {}
        for path, text in zip(paths, texts, strict=True):
            vec = outcome.vectors.get(text)
            if vec is not None:
                out[str(path)] = tuple(float(x) for x in vec)
        return out

    @staticmethod
    def _unmatched_source(
        source_entries: list[tuple[FieldPath, PathDescriptor]],
        assignment: Assignment,
    ) -> list[str]:
        used = {m.source for matches in assignment.values() for m in matches}
        return [
            str(path)
            for path, desc in source_entries
            if desc.is_leaf and not any(u.is_prefix_of(path) for u in used)
        ]

    @staticmethod
    def _unmatched_targets(
        targets: list[SchemaNode],
        assignment: Assignment,
        scores: np.ndarray,
        source_entries: list[tuple[FieldPath, PathDescriptor]],
    ) -> list[UnmatchedTarget]:
        out: list[UnmatchedTarget] = []
        for t, node in enumerate(targets):
            if node.path in assignment:
                continue
            best_score, best_candidate = 0.0, None
            if scores.shape[1] > 0:
                s = int(np.argmax(scores[t]))
                best_score = float(scores[t, s])
                if best_score > 0.0:
                    best_candidate = str(source_entries[s][0])
            out.append(
                UnmatchedTarget(
                    path=str(node.path),
                    required=node.required,
                    best_score=best_score,
                    best_candidate=best_candidate,
                )
            )
        return out

    @staticmethod
    def _embedding_errors(
        targets: list[SchemaNode],
        target_texts: list[str],
        source_entries: list[tuple[FieldPath, PathDescriptor]],
        source_texts: list[str],
        outcome: EmbeddingOutcome,
    ) -> list[EmbeddingError]:
        errors: list[EmbeddingError] = []
        sides = (
            ("target", [node.path for node in targets], target_texts),
            ("source", [path for path, _ in source_entries], source_texts),
        )
        for side, paths, texts in sides:
            for path, text in zip(paths, texts, strict=True):
                message = outcome.errors.get(text)
                if message is not None:
                    errors.append(EmbeddingError(side, str(path), text, message))
        return errors
