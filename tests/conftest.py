"""Shared deterministic embedding backends for the test suite.

- ``StubBackend``: similarities are declared by the test with ``link()``.
  Every linked pair gets its own orthogonal axes, so the cosine between two
  linked texts is exactly the declared score and every other pair scores
  0.0.  Unknown texts embed as zero vectors (score 0.0 against anything).
- ``AxisBackend``: every distinct text gets its own one-hot axis, so
  identical texts score 1.0 and different texts 0.0.
"""

from __future__ import annotations

import math
import threading

import numpy as np
import pytest


class StubBackend:
    """Backend whose pairwise similarities are chosen by the test."""

    def __init__(self, dimension: int = 64) -> None:
        self.dimension = dimension
        self.calls: list[list[str]] = []
        self.fail_on: set[str] = set()
        self._vectors: dict[str, np.ndarray] = {}
        self._next_axis = 0
        self._lock = threading.Lock()

    def _axis(self) -> np.ndarray:
        if self._next_axis >= self.dimension:
            raise RuntimeError("StubBackend ran out of axes; raise its dimension")
        vec = np.zeros(self.dimension, dtype=np.float64)
        vec[self._next_axis] = 1.0
        self._next_axis += 1
        return vec

    def link(self, anchor: str, other: str, score: float) -> StubBackend:
        """Make ``cosine(anchor, other) == score``; returns self for chaining."""
        if anchor not in self._vectors:
            self._vectors[anchor] = self._axis()
        base = self._vectors[anchor]
        self._vectors[other] = score * base + math.sqrt(1.0 - score**2) * self._axis()
        return self

    def embed(self, strings: list[str]) -> np.ndarray:
        with self._lock:
            self.calls.append(list(strings))
        failing = [s for s in strings if s in self.fail_on]
        if failing:
            raise RuntimeError(f"provider rejected {failing}")
        zero = np.zeros(self.dimension, dtype=np.float64)
        return np.stack([self._vectors.get(s, zero) for s in strings])

    @property
    def embedded_texts(self) -> list[str]:
        return [s for call in self.calls for s in call]


class AxisBackend:
    """One-hot embedding per distinct text; identical texts score 1.0."""

    def __init__(self, dimension: int = 256) -> None:
        self.dimension = dimension
        self._axes: dict[str, int] = {}
        self._lock = threading.Lock()

    def embed(self, strings: list[str]) -> np.ndarray:
        out = np.zeros((len(strings), self.dimension), dtype=np.float64)
        with self._lock:
            for row, text in enumerate(strings):
                axis = self._axes.setdefault(text, len(self._axes))
                out[row, axis % self.dimension] = 1.0
        return out


@pytest.fixture
def stub_backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
def axis_backend() -> AxisBackend:
    return AxisBackend()
