from __future__ import annotations

import numpy as np

from ..trace.errors import GeometricDegeneracyError


class VectorField:
    """
    Piecewise-constant vector field: one (unnormalised) vector per element.
    The vectors are copied and frozen at construction.
    """

    def __init__(self, vectors):
        vectors = np.array(vectors, dtype=np.float64)
        if vectors.ndim != 2 or vectors.shape[1] != 3:
            raise ValueError(f"vectors must be (m, 3), got {vectors.shape}")
        if not np.isfinite(vectors).all():
            raise ValueError("vectors must be finite")
        vectors.setflags(write=False)
        self._vectors = vectors

    @classmethod
    def constant(cls, num_elements: int, vec) -> VectorField:
        vec = np.asarray(vec, dtype=np.float64).reshape(1, 3)
        return cls(np.repeat(vec, int(num_elements), axis=0))

    @property
    def vectors(self) -> np.ndarray:
        return self._vectors

    def __len__(self) -> int:
        return int(self._vectors.shape[0])

    def vec_at(self, eid: int) -> np.ndarray:
        return self._vectors[eid].copy()

    def direction(self, eid: int) -> np.ndarray:
        """Unit field direction in element ``eid``."""
        v = self.vec_at(eid)
        n = np.linalg.norm(v)
        if n <= 0.0:
            raise GeometricDegeneracyError(
                f"vanishing field direction in element {eid}", element_id=eid
            )
        return v / n
