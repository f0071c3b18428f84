"""Tests for EmbeddingBackend Protocol conformance.

Verifies that:
- User-defined classes with a conformant ``embed`` method satisfy the Protocol.
- Classes without ``embed`` (or with wrong method names) do not satisfy it.
- The shipped backends and the cache satisfy it without inheritance.
"""

from __future__ import annotations

import numpy as np

from json_shapeshift.backends import StaticBackend
from json_shapeshift.cache import EmbeddingCache
from json_shapeshift.protocols import EmbeddingBackend


class _UserBackend:
    """Minimal user-defined backend conforming to EmbeddingBackend."""

    def embed(self, strings: list[str]) -> np.ndarray:
        return np.zeros((len(strings), 4), dtype=np.float64)


class _NoEmbedBackend:
    """Class with no embed method; should NOT satisfy the Protocol."""

    def predict(self, strings: list[str]) -> list[float]:
        return [0.0] * len(strings)


class _WrongNameBackend:
    """Class with a wrong method name; should NOT satisfy the Protocol."""

    def embed_texts(self, strings: list[str]) -> np.ndarray:
        return np.zeros((len(strings), 4), dtype=np.float64)


def test_user_defined_backend_passes_isinstance() -> None:
    assert isinstance(_UserBackend(), EmbeddingBackend) is True


def test_backend_without_embed_fails_isinstance() -> None:
    assert isinstance(_NoEmbedBackend(), EmbeddingBackend) is False


def test_wrong_method_name_fails_isinstance() -> None:
    assert isinstance(_WrongNameBackend(), EmbeddingBackend) is False


def test_static_backend_conforms() -> None:
    assert isinstance(StaticBackend(), EmbeddingBackend)


def test_cache_conforms() -> None:
    assert isinstance(EmbeddingCache(StaticBackend()), EmbeddingBackend)


def test_static_backend_does_not_inherit_protocol() -> None:
    assert EmbeddingBackend not in StaticBackend.__mro__
