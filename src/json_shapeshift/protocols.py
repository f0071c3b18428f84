"""EmbeddingBackend Protocol: the one capability the mapping core consumes.

Any object with a conformant ``embed`` method can be plugged in (local
model, remote API, deterministic stub for tests) without inheriting from a
base class.

Example::

    import numpy as np
    from json_shapeshift.protocols import EmbeddingBackend

    class MyBackend:
        def embed(self, strings: list[str]) -> np.ndarray:
            return np.zeros((len(strings), 768))

    assert isinstance(MyBackend(), EmbeddingBackend)  # structural conformance
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import numpy as np


@runtime_checkable
class EmbeddingBackend(Protocol):
    """Structural protocol for embedding providers.

    The ``embed`` method must:
    - Accept a list of strings (one request may carry one or many texts).
    - Return one vector per input string, in input order, as a 2-D array of
      shape ``(len(strings), D)`` (a list of equal-length vectors is accepted).
    - Use the same dimension ``D`` for every call within a mapping run.
    - Raise on failure; the mapper records the failure per path.
    """

    def embed(self, strings: list[str]) -> np.ndarray: ...


@runtime_checkable
class TimeoutAwareBackend(Protocol):
    """Optional extension for providers that can bound a single request.

    When the mapper is configured with ``embed_timeout``, backends that also
    provide ``embed_with_timeout`` receive the limit with each request and
    are expected to abandon the provider call once it expires.
    """

    def embed_with_timeout(self, strings: list[str], timeout: float) -> np.ndarray: ...
