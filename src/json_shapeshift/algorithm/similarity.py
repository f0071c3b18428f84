"""Similarity scoring between field paths.

- ``cosine_similarity`` / ``similarity_matrix``: cosine of embedding
  vectors, clamped to [0, 1].  Negative cosine is treated as 0.0 (semantic
  opposition is not a useful match signal) and a zero vector scores 0.0.
- ``type_multiplier``: compatibility factor between a target type hint and
  the kind found at a source path.
- ``score_paths``: the full ``[targets x sources]`` path-score matrix,
  name similarity times type multiplier.

All functions are pure: fixed inputs always give the same scores.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from json_shapeshift.config import MapperConfig
from json_shapeshift.errors import DimensionMismatch
from json_shapeshift.tree.nodes import PathDescriptor, ValueKind

__all__ = [
    "TargetHint",
    "cosine_similarity",
    "score_paths",
    "similarity_matrix",
    "type_multiplier",
]

# Kind pairs that can be converted by textual conversion
_COERCIBLE = frozenset({ValueKind.NUMBER, ValueKind.STRING})

# (kind, element_kind, fan_out) for a matchable target
TargetHint = tuple[ValueKind | None, ValueKind | None, bool]


def cosine_similarity(vec_a: np.ndarray, vec_b: np.ndarray) -> float:
    """Cosine similarity of two vectors, clamped to [0, 1].

    Raises:
        DimensionMismatch: If the vectors have different lengths.
    """
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    if a.shape != b.shape:
        raise DimensionMismatch(a.shape[-1], b.shape[-1])
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.clip(np.dot(a, b) / (norm_a * norm_b), 0.0, 1.0))


def similarity_matrix(targets: np.ndarray, sources: np.ndarray) -> np.ndarray:
    """All-pairs clamped cosine similarity.

    Args:
        targets: ``(T, D)`` matrix of target vectors.
        sources: ``(S, D)`` matrix of source vectors.

    Returns:
        ``(T, S)`` float64 matrix with values in [0, 1].

    Raises:
        DimensionMismatch: If the two matrices differ in ``D``.
    """
    t = np.asarray(targets, dtype=np.float64)
    s = np.asarray(sources, dtype=np.float64)
    if t.size == 0 or s.size == 0:
        return np.zeros((t.shape[0], s.shape[0]), dtype=np.float64)
    if t.shape[1] != s.shape[1]:
        raise DimensionMismatch(t.shape[1], s.shape[1])

    t_norms = np.linalg.norm(t, axis=1)
    s_norms = np.linalg.norm(s, axis=1)
    # Zero rows stay zero after the division guard and score 0.0
    t_unit = t / np.where(t_norms == 0.0, 1.0, t_norms)[:, None]
    s_unit = s / np.where(s_norms == 0.0, 1.0, s_norms)[:, None]
    return np.clip(t_unit @ s_unit.T, 0.0, 1.0)


def _kinds_multiplier(
    expected: ValueKind | None, actual: ValueKind | None, config: MapperConfig
) -> float:
    if expected is None or actual is None or actual is ValueKind.NULL:
        return 1.0
    if expected is actual:
        return 1.0
    if config.allow_type_coercion and {expected, actual} == _COERCIBLE:
        return 1.0
    return config.type_mismatch_penalty


def type_multiplier(
    target: TargetHint, source: PathDescriptor, config: MapperConfig
) -> float:
    """Compatibility multiplier in [0, 1] for a (target, source) pair.

    1.0 when either kind is unknown, the source is null, or the kinds agree
    (Number<->String also counts when type coercion is enabled); otherwise
    ``config.type_mismatch_penalty``.  Arrays of scalars compare their
    element kinds, so an array whose elements are containers gets the
    penalty (an empty one does not).  A fan-out array of scalars collects
    individual scalars, so its element kind is compared against scalar
    sources.
    """
    kind, element_kind, fan_out = target

    if kind is ValueKind.ARRAY and source.kind is ValueKind.ARRAY:
        if element_kind is None:
            return 1.0
        if not source.is_leaf and source.element_kind is not None:
            return config.type_mismatch_penalty
        return _kinds_multiplier(element_kind, source.element_kind, config)

    if kind is ValueKind.ARRAY and fan_out and source.is_leaf:
        return _kinds_multiplier(element_kind, source.kind, config)

    return _kinds_multiplier(kind, source.kind, config)


def score_paths(
    target_vectors: np.ndarray,
    source_vectors: np.ndarray,
    target_hints: Sequence[TargetHint],
    source_descriptors: Sequence[PathDescriptor],
    config: MapperConfig,
) -> np.ndarray:
    """Compute the ``(T, S)`` path-score matrix.

    ``score[t, s] = cosine(target_t, source_s) * type_multiplier(t, s)``
    """
    scores = similarity_matrix(target_vectors, source_vectors)
    for t, hint in enumerate(target_hints):
        for s, desc in enumerate(source_descriptors):
            if scores[t, s] > 0.0:
                scores[t, s] *= type_multiplier(hint, desc, config)
    return scores
