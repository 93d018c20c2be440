from __future__ import annotations

import logging

import numpy as np

from .base import Boundary, ElementMesh
from .preprocess import tet_volumes

LOG = logging.getLogger(__name__)

# local facet -> local vertices; facet i is opposite vertex 3 - i
TET_FACES = ((0, 2, 1), (0, 1, 3), (0, 3, 2), (1, 2, 3))


class TetrahedralMesh(ElementMesh):
    """Tetrahedral volume mesh."""

    ELEMENT_DIM = 3
    GATES = TET_FACES

    def __init__(self, vertices, tets, scalars=None, *, volume_eps: float = 1e-16):
        super().__init__(vertices, tets, scalars)
        volumes = tet_volumes(self._vertices, self._elements)
        volumes.setflags(write=False)
        self._volumes = volumes

        degenerate = np.flatnonzero(volumes <= volume_eps)
        if degenerate.size:
            LOG.warning(
                "%d degenerate tetrahedra (volume <= %.1e), first: %d",
                degenerate.size, volume_eps, int(degenerate[0]),
            )

    @property
    def tets(self) -> np.ndarray:
        return self._elements

    @property
    def volumes(self) -> np.ndarray:
        return self._volumes

    def adjacent_through_facet(self, eid: int, facet: int) -> int | Boundary:
        return self.adjacent_through_gate(eid, facet)

    def facet_vertex_ids(self, eid: int, facet: int) -> tuple[int, int, int]:
        elem = self._elements[eid]
        return tuple(int(elem[i]) for i in TET_FACES[facet])

    def boundary_facets(self) -> np.ndarray:
        """(b, 3) vertex ids of the facets with no element on the other side."""
        eids, facets = np.nonzero(self._adjacency < 0)
        out = np.empty((eids.shape[0], 3), dtype=np.int64)
        for row, (eid, facet) in enumerate(zip(eids, facets)):
            out[row] = self.facet_vertex_ids(int(eid), int(facet))
        return out

    def faces(self) -> np.ndarray:
        return self.boundary_facets()
