"""FastEmbedBackend: local ONNX embedding backend via the fastembed library.

``fastembed`` is imported lazily inside ``__init__`` so that the base
install never triggers an ``ImportError`` at module level.  The package is
only required when ``FastEmbedBackend`` is *instantiated*.

Install the optional dependency with::

    pip install json-shapeshift[fastembed]

Example::

    from json_shapeshift.backends.fastembed import FastEmbedBackend

    backend = FastEmbedBackend()
    vecs = backend.embed(["full name", "years old"])
    print(vecs.shape)   # (2, 384)
"""

from __future__ import annotations

from typing import Any

import numpy as np

# all-MiniLM-L6-v2 output size; used for empty requests before the first call
_DEFAULT_DIMENSION = 384


class FastEmbedBackend:
    """ONNX embedding backend wrapping ``fastembed.TextEmbedding``.

    Args:
        model_name: Model identifier supported by fastembed.  Defaults to
            ``"sentence-transformers/all-MiniLM-L6-v2"`` (384-dim).
        intra_op_num_threads: ONNX Runtime intra-op threads.  Pass ``1`` when
            the mapper runs several embedding requests concurrently, to avoid
            thread oversubscription.  ``None`` lets fastembed choose.
        batch_size: Texts per ONNX forward pass inside one request.

    Raises:
        ImportError: If ``fastembed`` is not installed.  The message includes
            the install command.
    """

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        intra_op_num_threads: int | None = None,
        batch_size: int = 256,
    ) -> None:
        try:
            from fastembed import TextEmbedding
        except ImportError as exc:
            raise ImportError(
                "fastembed is required for FastEmbedBackend. "
                "Install it with: pip install json-shapeshift[fastembed]"
            ) from exc

        # fastembed ships no type stubs
        self._model: Any = TextEmbedding(
            model_name=model_name,
            threads=intra_op_num_threads,
        )
        self._model_name = model_name
        self._batch_size = batch_size
        self._dimension = _DEFAULT_DIMENSION

    def __repr__(self) -> str:
        return f"FastEmbedBackend(model={self._model_name!r})"

    def embed(self, strings: list[str]) -> np.ndarray:
        """Return embeddings for ``strings`` as an ``(N, D)`` float32 array."""
        if not strings:
            return np.empty((0, self._dimension), dtype=np.float32)

        # embed() returns a generator of (D,) arrays; it must be materialised
        rows = list(self._model.embed(strings, batch_size=self._batch_size))
        vectors = np.stack(rows).astype(np.float32)
        self._dimension = int(vectors.shape[1])
        return vectors
