"""EmbeddingCache: LRU-backed caching proxy for any EmbeddingBackend.

Within one mapping call the embedding adapter already deduplicates texts.
``EmbeddingCache`` is an opt-in layer on top of that for callers that map
many documents with overlapping field names: wrap the backend once and pass
the cache to ``SchemaMapper`` so repeated texts skip the provider across
calls.  Cached strings bypass the backend; LRU eviction is silent.

The cache is guarded by a lock because the adapter may call ``embed`` from
several worker threads at once.

Example::

    from json_shapeshift import SchemaMapper
    from json_shapeshift.backends import StaticBackend
    from json_shapeshift.cache import EmbeddingCache

    mapper = SchemaMapper(backend=EmbeddingCache(StaticBackend(), max_size=4096))
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import numpy as np
from cachetools import LRUCache

from json_shapeshift.protocols import TimeoutAwareBackend

if TYPE_CHECKING:
    from json_shapeshift.protocols import EmbeddingBackend

__all__ = ["EmbeddingCache"]


class EmbeddingCache:
    """Thread-safe LRU cache around an EmbeddingBackend.

    Satisfies the ``EmbeddingBackend`` Protocol structurally.  Each instance
    owns its own ``LRUCache``; two instances never share entries.

    Args:
        backend: Any object satisfying the ``EmbeddingBackend`` Protocol.
        max_size: Maximum number of string embeddings held in memory.
            Defaults to 512.
    """

    def __init__(self, backend: EmbeddingBackend, max_size: int = 512) -> None:
        self._backend: Any = backend
        self._cache: LRUCache[str, np.ndarray] = LRUCache(maxsize=max_size)
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int:
        """The maximum number of entries this cache can hold."""
        return int(self._cache.maxsize)

    @property
    def curr_size(self) -> int:
        """The current number of entries stored in the cache."""
        with self._lock:
            return int(self._cache.currsize)

    def embed(self, strings: list[str]) -> np.ndarray:
        """Return embeddings for ``strings``; only uncached strings hit the backend.

        Row ``i`` of the result corresponds to ``strings[i]``.  Provider
        errors propagate unchanged and nothing is cached for that request.
        """
        return self._lookup(strings, self._backend.embed)

    def embed_with_timeout(self, strings: list[str], timeout: float) -> np.ndarray:
        """Like ``embed``, forwarding ``timeout`` to a timeout-aware backend."""
        if not isinstance(self._backend, TimeoutAwareBackend):
            return self.embed(strings)
        backend = self._backend
        return self._lookup(strings, lambda batch: backend.embed_with_timeout(batch, timeout))

    def _lookup(
        self, strings: list[str], fetch: Callable[[list[str]], Any]
    ) -> np.ndarray:
        results: dict[str, np.ndarray] = {}
        with self._lock:
            for s in strings:
                if s in self._cache:
                    results[s] = self._cache[s]
        uncached = list(dict.fromkeys(s for s in strings if s not in results))

        if uncached:
            # Provider call happens outside the lock so other threads proceed
            embeddings = np.asarray(fetch(uncached), dtype=np.float64)
            with self._lock:
                for s, vec in zip(uncached, embeddings, strict=True):
                    # Store row vectors (shape (D,)), not the full matrix
                    self._cache[s] = vec
                    results[s] = vec

        if not strings:
            return np.empty((0, 0), dtype=np.float64)
        return np.stack([results[s] for s in strings])
