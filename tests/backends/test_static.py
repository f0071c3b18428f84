"""Tests for StaticBackend hashed n-gram embeddings."""

from __future__ import annotations

import numpy as np
import pytest

from json_shapeshift.algorithm.similarity import cosine_similarity
from json_shapeshift.backends import StaticBackend
from json_shapeshift.protocols import EmbeddingBackend


@pytest.fixture
def backend() -> StaticBackend:
    return StaticBackend()


class TestShape:
    def test_shape_and_dtype(self, backend: StaticBackend) -> None:
        vecs = backend.embed(["user_name", "address", "created_at"])
        assert vecs.shape == (3, 256)
        assert vecs.dtype == np.float64

    def test_custom_dimension(self) -> None:
        assert StaticBackend(dimension=32).embed(["a"]).shape == (1, 32)
        assert StaticBackend(dimension=32).dimension == 32

    def test_empty_input(self, backend: StaticBackend) -> None:
        assert backend.embed([]).shape == (0, 256)

    def test_invalid_dimension(self) -> None:
        with pytest.raises(ValueError, match="dimension"):
            StaticBackend(dimension=0)

    def test_protocol_conformance(self, backend: StaticBackend) -> None:
        assert isinstance(backend, EmbeddingBackend)

    def test_repr(self, backend: StaticBackend) -> None:
        assert repr(backend) == "StaticBackend(dimension=256)"


class TestVectors:
    def test_rows_are_unit_length(self, backend: StaticBackend) -> None:
        norms = np.linalg.norm(backend.embed(["location.city", "age"]), axis=1)
        np.testing.assert_allclose(norms, 1.0)

    def test_text_without_words_is_zero(self, backend: StaticBackend) -> None:
        assert not backend.embed(["__"]).any()

    def test_naming_conventions_embed_identically(self, backend: StaticBackend) -> None:
        vecs = backend.embed(["userName", "user_name", "UserName", "user-name"])
        for row in vecs[1:]:
            np.testing.assert_allclose(row, vecs[0])

    def test_deterministic_across_instances(self) -> None:
        a = StaticBackend().embed(["full_name", "years_old"])
        b = StaticBackend().embed(["full_name", "years_old"])
        np.testing.assert_array_equal(a, b)

    def test_lexical_overlap_scores_higher(self, backend: StaticBackend) -> None:
        city, location_city, age = backend.embed(["city", "location.city", "age"])
        assert cosine_similarity(city, location_city) > cosine_similarity(city, age)
