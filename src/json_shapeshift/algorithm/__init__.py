"""algorithm subpackage: scoring and assignment.

Provides the similarity scorer and the assignment solvers.  Import from
this module (not from sub-modules directly) to stay on the stable public
interface.

Example::

    import numpy as np
    from json_shapeshift.algorithm import solve_assignment

    scores = np.array([[0.92, 0.10], [0.05, 0.88]])
    solve_assignment(scores, min_confidence=0.6)
    # {0: [(0, 0.92)], 1: [(1, 0.88)]}
"""

from __future__ import annotations

from json_shapeshift.algorithm.assignment import RowMatches, solve_assignment
from json_shapeshift.algorithm.matcher import max_weight_match
from json_shapeshift.algorithm.similarity import (
    cosine_similarity,
    score_paths,
    similarity_matrix,
    type_multiplier,
)

__all__ = [
    "RowMatches",
    "cosine_similarity",
    "max_weight_match",
    "score_paths",
    "similarity_matrix",
    "solve_assignment",
    "type_multiplier",
]
