"""Maximum-weight bipartite matching over admissible cells.

Thin layer over scipy's ``linear_sum_assignment`` in maximize mode.
Inadmissible cells are given weight 0.0 before solving, so the solver may
still pair them; such pairs are dropped from the result.  Since every
admissible weight is strictly positive, the surviving pairs are a
maximum-total-weight matching of the admissible cells.
"""

from __future__ import annotations

import numpy as np
from scipy.optimize import linear_sum_assignment  # type: ignore[import-untyped]

__all__ = ["max_weight_match"]


def max_weight_match(
    weights: np.ndarray,
    admissible: np.ndarray | None = None,
) -> list[tuple[int, int]]:
    """Return the ``(row, col)`` pairs of a maximum-weight matching.

    Args:
        weights: ``(m, n)`` matrix of pair weights.
        admissible: Boolean mask of the same shape; ``None`` admits every
            cell with a positive weight.

    Returns:
        Pairs sorted by row.  Each row and each column appears at most once,
        and only admissible cells with a positive weight are returned.

    Raises:
        ValueError: If ``admissible`` does not match the shape of ``weights``.
    """
    w = np.asarray(weights, dtype=np.float64)
    if w.size == 0:
        return []
    allowed = w > 0.0
    if admissible is not None:
        mask = np.asarray(admissible, dtype=bool)
        if mask.shape != w.shape:
            msg = f"admissible mask shape {mask.shape} != weights shape {w.shape}"
            raise ValueError(msg)
        allowed &= mask
    if not allowed.any():
        return []

    rows, cols = linear_sum_assignment(np.where(allowed, w, 0.0), maximize=True)
    return [
        (r, c)
        for r, c in zip(rows.tolist(), cols.tolist(), strict=True)
        if allowed[r, c]
    ]
