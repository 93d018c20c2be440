from __future__ import annotations

import logging

import numpy as np

from .base import BOUNDARY, Boundary, ElementMesh
from .preprocess import triangle_normals_and_areas

LOG = logging.getLogger(__name__)

# local edge -> local vertices; edge i starts at vertex i
TRI_EDGES = ((0, 1), (1, 2), (2, 0))


class TriangleMesh(ElementMesh):
    """Triangulated surface with per-triangle outward normals."""

    ELEMENT_DIM = 2
    GATES = TRI_EDGES

    def __init__(self, vertices, triangles, scalars=None, *, area_eps: float = 1e-14):
        super().__init__(vertices, triangles, scalars)
        normals, areas = triangle_normals_and_areas(self._vertices, self._elements)
        normals.setflags(write=False)
        areas.setflags(write=False)
        self._normals = normals
        self._areas = areas

        degenerate = np.flatnonzero(areas <= area_eps)
        if degenerate.size:
            LOG.warning(
                "%d degenerate triangle(s) (area <= %.1e), first: %d",
                degenerate.size, area_eps, int(degenerate[0]),
            )

    @property
    def triangles(self) -> np.ndarray:
        return self._elements

    @property
    def areas(self) -> np.ndarray:
        return self._areas

    def triangle_normal(self, eid: int) -> np.ndarray:
        return self._normals[eid]

    def adjacent_along(self, eid: int, vid_a: int, vid_b: int) -> int | Boundary:
        """Triangle sharing edge (vid_a, vid_b) with ``eid``."""
        key = (vid_a, vid_b) if vid_a < vid_b else (vid_b, vid_a)
        for other in self._gate_map.get(key, ()):
            if other != eid:
                return other
        return BOUNDARY

    def faces(self) -> np.ndarray:
        return self._elements
