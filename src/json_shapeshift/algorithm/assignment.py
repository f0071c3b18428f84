"""Assignment solver: turns a path-score matrix into a correspondence.

Input is the ``[targets x sources]`` score matrix.  A cell is admissible
when its score is at least ``min_confidence`` and strictly positive (a
zero score, e.g. a hard type rejection, is never matched even with a zero
threshold).

One-to-one rows are solved first:

- GREEDY: sort every admissible cell by (score desc, target asc, source
  asc) and commit a pair whenever both its target and its source are still
  free.  O(n^2 log n).  Not guaranteed optimal; ties rarely matter for field
  names, and the result is monotone in the threshold (raising it only
  removes matches).
- OPTIMAL: Hungarian assignment maximizing the total score of the
  admissible cells (see ``max_weight_match``).

Fan-out rows take no part in the one-to-one phase.  Each of them collects
every admissible source column, whether or not a one-to-one row or another
fan-out row also uses it, listed by score desc, then column.  A fan-out
row's set only depends on its own scores, so the whole result stays monotone
in the threshold under GREEDY.
"""

from __future__ import annotations

from collections.abc import Collection

import numpy as np

from json_shapeshift.algorithm.matcher import max_weight_match
from json_shapeshift.config import AssignmentStrategy

__all__ = ["RowMatches", "greedy_match", "optimal_match", "solve_assignment"]

# target row -> [(source column, score), ...]
RowMatches = dict[int, list[tuple[int, float]]]


def _admissible(scores: np.ndarray, min_confidence: float) -> np.ndarray:
    return (scores >= min_confidence) & (scores > 0.0)


def greedy_match(
    scores: np.ndarray,
    min_confidence: float,
    rows: Collection[int],
) -> RowMatches:
    """Greedy maximum-weight one-to-one matching restricted to ``rows``."""
    admissible = _admissible(scores, min_confidence)
    candidates = [
        (float(scores[t, s]), t, s)
        for t in sorted(rows)
        for s in np.flatnonzero(admissible[t]).tolist()
    ]
    candidates.sort(key=lambda c: (-c[0], c[1], c[2]))

    matches: RowMatches = {}
    used_sources: set[int] = set()
    for score, t, s in candidates:
        if t in matches or s in used_sources:
            continue
        matches[t] = [(s, score)]
        used_sources.add(s)
    return matches


def optimal_match(
    scores: np.ndarray,
    min_confidence: float,
    rows: Collection[int],
) -> RowMatches:
    """Hungarian one-to-one matching restricted to ``rows``."""
    row_list = sorted(rows)
    if not row_list or scores.shape[1] == 0:
        return {}
    sub = scores[row_list, :]
    pairs = max_weight_match(sub, _admissible(sub, min_confidence))
    return {row_list[r]: [(c, float(sub[r, c]))] for r, c in pairs}


def solve_assignment(
    scores: np.ndarray,
    min_confidence: float = 0.6,
    strategy: AssignmentStrategy = AssignmentStrategy.GREEDY,
    fan_out_rows: Collection[int] = (),
) -> RowMatches:
    """Solve the full assignment for a ``(T, S)`` score matrix.

    Args:
        scores: Path-score matrix, rows are targets, columns sources.
        min_confidence: Threshold below which cells are never matched.
        strategy: Solver used for the one-to-one rows.
        fan_out_rows: Rows that may collect several sources.

    Returns:
        Mapping of target row to its matches.  One-to-one rows map to a
        single ``(column, score)``; fan-out rows to a list sorted by score
        desc, then column.  Rows without a match are absent.
    """
    n_targets = scores.shape[0]
    fan_out = {r for r in fan_out_rows if 0 <= r < n_targets}
    one_to_one = [r for r in range(n_targets) if r not in fan_out]

    if strategy is AssignmentStrategy.OPTIMAL:
        matches = optimal_match(scores, min_confidence, one_to_one)
    else:
        matches = greedy_match(scores, min_confidence, one_to_one)

    admissible = _admissible(scores, min_confidence)
    for t in sorted(fan_out):
        row = [(s, float(scores[t, s])) for s in np.flatnonzero(admissible[t]).tolist()]
        if row:
            matches[t] = sorted(row, key=lambda p: (-p[1], p[0]))

    return dict(sorted(matches.items()))
