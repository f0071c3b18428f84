"""EmbeddingAdapter: turns field paths into vectors through a backend.

Responsibilities:
- Derive the text that is embedded for each FieldPath (``path_text``).
- Deduplicate texts within one mapping call: each distinct text is
  embedded exactly once, however many paths share it.
- Split the distinct texts into batches and issue them concurrently on a
  thread pool bounded by ``max_concurrency``.  Results are joined into a
  dict keyed by text, so completion order never affects scoring.
- Fail soft: a batch whose provider call raises, times out, or returns a
  malformed array marks its texts as failed; the run carries on without
  them.  Only a dimension mismatch between successful vectors is fatal.
- Poll the cancellation token while waiting and abandon outstanding
  requests when it fires.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from json_shapeshift.cancellation import CancellationToken
from json_shapeshift.config import PathTextMode
from json_shapeshift.errors import DimensionMismatch, EmbeddingFailure
from json_shapeshift.protocols import TimeoutAwareBackend
from json_shapeshift.tree.nodes import FieldPath
from json_shapeshift.tree.normalizer import KeyNormalizer

if TYPE_CHECKING:
    from json_shapeshift.protocols import EmbeddingBackend

__all__ = ["EmbeddingAdapter", "EmbeddingOutcome", "path_text"]

logger = logging.getLogger(__name__)

_normalizer = KeyNormalizer()

# Seconds between cancellation/timeout checks while requests are in flight
_POLL_INTERVAL = 0.05

# Appended once per trailing wildcard of a path
_ELEMENT_MARKER = "[*]"


def path_text(
    path: FieldPath,
    mode: PathTextMode = PathTextMode.FULL_PATH,
    normalize_keys: bool = False,
) -> str:
    """Return the text embedded for ``path``.

    Inner wildcard segments never appear in the text: ``items[*].nm`` embeds
    as ``items.nm`` (FULL_PATH) or ``nm`` (LEAF_KEY).  Trailing wildcards
    name array elements and are kept, one ``[*]`` each (``matrix[*]`` embeds
    as ``matrix[*]``), so an element path never shares its text with the
    enclosing array.
    """
    keys = path.keys if mode is PathTextMode.FULL_PATH else path.keys[-1:]
    if normalize_keys:
        keys = tuple(_normalizer.normalize(k) for k in keys)
    if not keys:
        return ""
    trailing = len(path.segments) - 1 - max(
        i for i, seg in enumerate(path.segments) if isinstance(seg, str)
    )
    return ".".join(keys) + _ELEMENT_MARKER * trailing


@dataclass(frozen=True, slots=True)
class EmbeddingOutcome:
    """Vectors and per-text failures of one adapter run.

    Attributes:
        vectors:   Distinct text -> 1-D float64 vector.
        errors:    Distinct text -> failure message, for texts that could
                   not be embedded.
        dimension: Common vector length, or None when nothing was embedded.
    """

    vectors: dict[str, np.ndarray]
    errors: dict[str, str]
    dimension: int | None


class EmbeddingAdapter:
    """Per-call embedding front-end around an ``EmbeddingBackend``.

    A new adapter is created for every mapping call, so its results never
    leak into another call.

    Args:
        backend: Any ``EmbeddingBackend``-conformant object.
        batch_size: Maximum number of texts per provider request.
        max_concurrency: Maximum number of provider requests in flight.
        timeout: Seconds allowed per request once it has started; None
            waits indefinitely.  Backends implementing
            ``TimeoutAwareBackend`` also receive it with every request.
        cancel_token: Token polled while requests are outstanding.
    """

    def __init__(
        self,
        backend: EmbeddingBackend,
        *,
        batch_size: int = 32,
        max_concurrency: int = 4,
        timeout: float | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        self._backend: Any = backend
        self._batch_size = batch_size
        self._max_concurrency = max_concurrency
        self._timeout = timeout
        self._token = cancel_token if cancel_token is not None else CancellationToken()

    def embed_texts(self, texts: Iterable[str]) -> EmbeddingOutcome:
        """Embed every distinct text in ``texts``.

        Raises:
            DimensionMismatch: If successful vectors differ in length.
            MappingCancelled: If the token fires before all requests finish.
        """
        vectors: dict[str, np.ndarray] = {}
        errors: dict[str, str] = {}

        distinct: list[str] = []
        for text in dict.fromkeys(texts):
            if text.strip():
                distinct.append(text)
            else:
                errors[text] = "path has no key segments to embed"

        batches = [
            distinct[i : i + self._batch_size]
            for i in range(0, len(distinct), self._batch_size)
        ]
        if batches:
            logger.debug(
                "Embedding %d distinct text(s) in %d request(s)",
                len(distinct),
                len(batches),
            )
            self._run_batches(batches, vectors, errors)

        # Re-key in input order so the outcome does not depend on completion order
        ordered = {text: vectors[text] for text in distinct if text in vectors}
        return EmbeddingOutcome(
            vectors=ordered,
            errors=errors,
            dimension=self._common_dimension(ordered),
        )

    # ------------------------------------------------------------------
    # Request execution
    # ------------------------------------------------------------------

    def _run_batches(
        self,
        batches: list[list[str]],
        vectors: dict[str, np.ndarray],
        errors: dict[str, str],
    ) -> None:
        self._token.raise_if_cancelled("embedding")

        started: dict[int, float] = {}
        executor = ThreadPoolExecutor(
            max_workers=min(self._max_concurrency, len(batches)),
            thread_name_prefix="shapeshift-embed",
        )
        try:
            pending: dict[Future[np.ndarray], tuple[int, list[str]]] = {
                executor.submit(self._request, index, batch, started): (index, batch)
                for index, batch in enumerate(batches)
            }
            while pending:
                done, _ = wait(
                    pending, timeout=_POLL_INTERVAL, return_when=FIRST_COMPLETED
                )
                if self._token.cancelled:
                    for future in pending:
                        future.cancel()
                    self._token.raise_if_cancelled("embedding")

                for future in done:
                    _, batch = pending.pop(future)
                    self._collect(future, batch, vectors, errors)

                if self._timeout is not None:
                    self._expire(pending, started, errors)
        finally:
            # Never block on a hung provider call; its thread is abandoned
            executor.shutdown(wait=False, cancel_futures=True)

    def _request(
        self, index: int, batch: list[str], started: dict[int, float]
    ) -> np.ndarray:
        started[index] = time.monotonic()
        try:
            if self._timeout is not None and isinstance(self._backend, TimeoutAwareBackend):
                raw = self._backend.embed_with_timeout(list(batch), self._timeout)
            else:
                raw = self._backend.embed(list(batch))
        except Exception as exc:
            raise EmbeddingFailure(f"{type(exc).__name__}: {exc}", batch) from exc
        return self._as_matrix(raw, batch)

    def _as_matrix(self, raw: Any, batch: list[str]) -> np.ndarray:
        try:
            matrix = np.asarray(raw, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise EmbeddingFailure(f"provider returned ragged vectors: {exc}", batch) from exc
        if matrix.ndim == 1 and len(batch) == 1:
            matrix = matrix.reshape(1, -1)
        if matrix.ndim != 2 or matrix.shape[0] != len(batch) or matrix.shape[1] == 0:
            raise EmbeddingFailure(
                f"provider returned shape {matrix.shape} for {len(batch)} text(s)",
                batch,
            )
        return matrix

    def _collect(
        self,
        future: Future[np.ndarray],
        batch: list[str],
        vectors: dict[str, np.ndarray],
        errors: dict[str, str],
    ) -> None:
        try:
            matrix = future.result()
        except EmbeddingFailure as exc:
            logger.warning("Embedding request for %d text(s) failed: %s", len(batch), exc)
            for text in batch:
                errors[text] = str(exc)
            return

        for text, row in zip(batch, matrix, strict=True):
            if np.all(np.isfinite(row)):
                vectors[text] = row
            else:
                errors[text] = "embedding contains non-finite values"

    def _expire(
        self,
        pending: dict[Future[np.ndarray], tuple[int, list[str]]],
        started: dict[int, float],
        errors: dict[str, str],
    ) -> None:
        assert self._timeout is not None
        now = time.monotonic()
        for future, (index, batch) in list(pending.items()):
            began = started.get(index)
            if began is None or now - began <= self._timeout:
                continue
            future.cancel()
            del pending[future]
            logger.warning(
                "Embedding request for %d text(s) timed out after %ss",
                len(batch),
                self._timeout,
            )
            for text in batch:
                errors[text] = f"embedding request timed out after {self._timeout}s"

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _common_dimension(vectors: dict[str, np.ndarray]) -> int | None:
        dimension: int | None = None
        for vec in vectors.values():
            if dimension is None:
                dimension = int(vec.shape[0])
            elif vec.shape[0] != dimension:
                raise DimensionMismatch(dimension, int(vec.shape[0]))
        return dimension
