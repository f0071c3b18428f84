"""MapperConfig and the policy enums that tune a mapping run.

MapperConfig is a frozen (immutable) dataclass holding the algorithm
parameters.  The embedding backend is an infrastructure parameter and is
passed to ``SchemaMapper`` separately, not stored here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto

from json_shapeshift.tree.walker import DEFAULT_MAX_DEPTH

__all__ = ["AssignmentStrategy", "MapperConfig", "PathTextMode", "UnmatchedPolicy"]


class UnmatchedPolicy(StrEnum):
    """What to emit for a required target field with no match.

    - NULL:  the key is present with value ``None``.
    - OMIT:  the key is left out of the result.
    - ERROR: the mapping raises ``UnresolvedRequiredField``.
    """

    NULL = auto()
    OMIT = auto()
    ERROR = auto()


class AssignmentStrategy(StrEnum):
    """How the target/source correspondence is solved.

    - GREEDY:  repeatedly commit the best remaining pair above threshold.
    - OPTIMAL: Hungarian assignment over the admissible pairs.
    """

    GREEDY = auto()
    OPTIMAL = auto()


class PathTextMode(StrEnum):
    """Which text is embedded for a field path.

    - FULL_PATH: every key segment joined with ``.`` (``location.city``).
    - LEAF_KEY:  only the last key segment (``city``).
    """

    FULL_PATH = auto()
    LEAF_KEY = auto()


@dataclass(frozen=True, slots=True)
class MapperConfig:
    """Immutable configuration for a mapping run.

    Attributes:
        min_confidence: Minimum path score in [0, 1] for a pair to be matched.
        allow_type_coercion: When True, Number<->String mismatches are not
            penalized and matched values are converted to the hinted kind.
        unmatched_policy: Fallback for required target fields with no match.
        type_mismatch_penalty: Multiplier in [0, 1] applied to the score of
            a pair whose kinds are incompatible.  0.0 rejects such pairs.
        assignment_strategy: Greedy (default) or optimal assignment.
        path_text: Which part of a path is embedded.
        normalize_keys: Split keys into lowercase words before embedding.
        max_depth: Maximum nesting depth accepted in either document.
        max_concurrency: Maximum number of embedding requests in flight.
        batch_size: Maximum number of texts per embedding request.
        embed_timeout: Seconds allowed per embedding request; None disables
            the limit.  A timed-out request fails its texts, not the run.
            Backends implementing ``TimeoutAwareBackend`` also receive it
            with every request.
    """

    min_confidence: float = 0.6
    allow_type_coercion: bool = False
    unmatched_policy: UnmatchedPolicy = UnmatchedPolicy.NULL
    type_mismatch_penalty: float = 0.0
    assignment_strategy: AssignmentStrategy = AssignmentStrategy.GREEDY
    path_text: PathTextMode = PathTextMode.FULL_PATH
    normalize_keys: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH
    max_concurrency: int = 4
    batch_size: int = 32
    embed_timeout: float | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.min_confidence <= 1.0:
            msg = f"min_confidence must be in [0, 1], got {self.min_confidence}"
            raise ValueError(msg)
        if not 0.0 <= self.type_mismatch_penalty <= 1.0:
            msg = (
                "type_mismatch_penalty must be in [0, 1], "
                f"got {self.type_mismatch_penalty}"
            )
            raise ValueError(msg)
        if self.max_depth < 1:
            msg = f"max_depth must be >= 1, got {self.max_depth}"
            raise ValueError(msg)
        if self.max_concurrency < 1:
            msg = f"max_concurrency must be >= 1, got {self.max_concurrency}"
            raise ValueError(msg)
        if self.batch_size < 1:
            msg = f"batch_size must be >= 1, got {self.batch_size}"
            raise ValueError(msg)
        if self.embed_timeout is not None and self.embed_timeout <= 0.0:
            msg = f"embed_timeout must be > 0 or None, got {self.embed_timeout}"
            raise ValueError(msg)
