"""OpenAIBackend: remote embedding backend via the OpenAI embeddings API.

``openai`` and ``tenacity`` are imported lazily inside ``__init__`` so the
base install never triggers an ``ImportError`` at module level.

The API key is read exclusively from the ``OPENAI_API_KEY`` environment
variable.  It is never accepted as a constructor parameter and never appears
in ``repr()``, ``str()``, or log output.

Rate-limited requests (HTTP 429) are retried with jittered exponential
backoff via ``tenacity``; this is transport-level behaviour of the backend.
Any other failure propagates to the mapper, which records it against the
affected paths and carries on.  The underlying client is created with
``max_retries=0`` so tenacity is the only retry layer.

The backend implements ``TimeoutAwareBackend``: when the mapper runs with
``embed_timeout`` every HTTP attempt is bounded by that limit.

Install the optional dependency with::

    pip install json-shapeshift[openai]
"""

from __future__ import annotations

from typing import Any

import numpy as np

# text-embedding-3-small output size
_DIMENSION = 1536


class OpenAIBackend:
    """OpenAI embedding backend, ``text-embedding-3-small`` by default.

    Args:
        model_name: OpenAI embedding model identifier.
        max_attempts: Attempts per request when rate-limited (>= 1).
        timeout: Seconds allowed per HTTP request, or None for the client
            default.  ``embed_with_timeout`` overrides it per call.

    Raises:
        ImportError: If ``openai`` or ``tenacity`` is not installed.
    """

    def __init__(
        self,
        model_name: str = "text-embedding-3-small",
        max_attempts: int = 6,
        timeout: float | None = None,
    ) -> None:
        try:
            from openai import OpenAI, RateLimitError
            from tenacity import (
                retry,
                retry_if_exception_type,
                stop_after_attempt,
                wait_random_exponential,
            )
        except ImportError as exc:
            raise ImportError(
                "openai and tenacity are required for OpenAIBackend. "
                "Install with: pip install json-shapeshift[openai]"
            ) from exc

        self._model_name = model_name
        self._timeout = timeout
        # max_retries=0: tenacity is the sole retry controller
        self._client: Any = OpenAI(max_retries=0)

        # RateLimitError is only in scope once openai has been imported
        _retry = retry(
            retry=retry_if_exception_type(RateLimitError),
            wait=wait_random_exponential(min=1, max=60),
            stop=stop_after_attempt(max_attempts),
            reraise=True,
        )
        self._call_api = _retry(self._raw_call)

    def __repr__(self) -> str:
        """Return a safe repr that never exposes the API key."""
        return f"OpenAIBackend(model={self._model_name!r})"

    def embed(self, strings: list[str]) -> np.ndarray:
        """Return embeddings for ``strings`` as an ``(N, 1536)`` float32 array.

        An empty input returns an empty array without any API call.
        """
        if not strings:
            return np.empty((0, _DIMENSION), dtype=np.float32)
        return self._call_api(strings, self._timeout)  # type: ignore[no-any-return]

    def embed_with_timeout(self, strings: list[str], timeout: float) -> np.ndarray:
        """Like ``embed``, with every HTTP attempt bounded by ``timeout`` seconds."""
        if not strings:
            return np.empty((0, _DIMENSION), dtype=np.float32)
        return self._call_api(strings, timeout)  # type: ignore[no-any-return]

    def _raw_call(self, strings: list[str], timeout: float | None = None) -> np.ndarray:
        options: dict[str, Any] = {}
        if timeout is not None:
            options["timeout"] = timeout
        response = self._client.embeddings.create(
            model=self._model_name,
            input=strings,
            **options,
        )
        # The API returns input order, but each item carries its index
        ordered = sorted(response.data, key=lambda item: item.index)
        return np.array([item.embedding for item in ordered], dtype=np.float32)
