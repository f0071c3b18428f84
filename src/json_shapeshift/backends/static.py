"""StaticBackend: hashed word and character n-gram embeddings.

A zero-ML default backend requiring only numpy.  Each text is split into
lowercase words with ``KeyNormalizer`` (so ``userName`` and ``user_name``
embed identically), then whole words and padded character trigrams are
hashed into a fixed number of buckets.  The resulting vector is
L2-normalized, so cosine similarity reflects lexical overlap between path
names.  Synonyms with no shared characters (``yrs`` / ``age``) are out of its
reach; use an ML backend for those.

Hashing uses ``zlib.crc32``, which is stable across processes (unlike the
built-in ``hash`` with its per-process salt), so embeddings are
reproducible.
"""

from __future__ import annotations

import zlib

import numpy as np

from json_shapeshift.tree.normalizer import KeyNormalizer

_normalizer = KeyNormalizer()

DEFAULT_DIMENSION = 256

# Whole-word features count more than any single trigram
_WORD_WEIGHT = 2.0


def _bucket(feature: str, dimension: int) -> int:
    return zlib.crc32(feature.encode("utf-8")) % dimension


class StaticBackend:
    """Deterministic hashed n-gram embedding backend.

    Satisfies the ``EmbeddingBackend`` Protocol structurally.

    Args:
        dimension: Number of hash buckets (vector length).  Defaults to 256.

    Example::

        from json_shapeshift.backends import StaticBackend

        backend = StaticBackend()
        vecs = backend.embed(["user_name", "userName", "address"])
        vecs.shape          # (3, 256)
        vecs[0] @ vecs[1]   # 1.0 (identical after normalization)
    """

    def __init__(self, dimension: int = DEFAULT_DIMENSION) -> None:
        if dimension < 1:
            msg = f"dimension must be >= 1, got {dimension}"
            raise ValueError(msg)
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    def __repr__(self) -> str:
        return f"StaticBackend(dimension={self._dimension})"

    def embed(self, strings: list[str]) -> np.ndarray:
        """Return an ``(N, dimension)`` float64 array of unit-length vectors.

        Texts with no word characters produce an all-zero row.
        """
        out = np.zeros((len(strings), self._dimension), dtype=np.float64)
        for row, text in enumerate(strings):
            for word in _normalizer.words(text):
                out[row, _bucket(f"w:{word}", self._dimension)] += _WORD_WEIGHT
                padded = f"<{word}>"
                for i in range(len(padded) - 2):
                    out[row, _bucket(f"c:{padded[i:i + 3]}", self._dimension)] += 1.0
            norm = float(np.linalg.norm(out[row]))
            if norm > 0.0:
                out[row] /= norm
        return out
