from __future__ import annotations

import logging
from enum import Enum

import numpy as np

from .preprocess import (
    build_adjacency,
    build_gate_map,
    build_incidence,
    build_vertex_graph,
    find_local_maxima,
)

LOG = logging.getLogger(__name__)


class Boundary(Enum):
    """Sentinel for 'no element across this gate'."""

    BOUNDARY = "boundary"

    def __repr__(self) -> str:
        return "BOUNDARY"


BOUNDARY = Boundary.BOUNDARY


class ElementMesh:
    """
    Read-only simplicial mesh: vertex positions, element connectivity in a
    fixed local order, and optional per-vertex scalars.

    Topology (gate adjacency, vertex incidence, one-ring graph) is built once
    at construction. Subclasses fix the element shape through ``GATES``.
    """

    ELEMENT_DIM: int = 0
    GATES: tuple[tuple[int, ...], ...] = ()

    def __init__(self, vertices, elements, scalars=None):
        vertices = np.array(vertices, dtype=np.float64)
        elements = np.array(elements, dtype=np.int64)
        n_local = len(self.GATES[0]) + 1

        if vertices.ndim != 2 or vertices.shape[1] != 3:
            raise ValueError(f"vertices must be (n, 3), got {vertices.shape}")
        if not np.isfinite(vertices).all():
            raise ValueError("vertices must be finite")
        if elements.ndim != 2 or elements.shape[1] != n_local:
            raise ValueError(f"elements must be (m, {n_local}), got {elements.shape}")
        if elements.size and (elements.min() < 0 or elements.max() >= vertices.shape[0]):
            raise ValueError("element vertex index out of range")

        if scalars is not None:
            scalars = np.array(scalars, dtype=np.float64)
            if scalars.shape != (vertices.shape[0],):
                raise ValueError(
                    f"scalars must be ({vertices.shape[0]},), got {scalars.shape}"
                )
            scalars.setflags(write=False)

        vertices.setflags(write=False)
        elements.setflags(write=False)
        self._vertices = vertices
        self._elements = elements
        self._scalars = scalars

        self._gate_map = build_gate_map(elements, self.GATES)
        self._adjacency = build_adjacency(elements, self.GATES, self._gate_map)
        self._incidence = build_incidence(vertices.shape[0], elements)
        self._graph = build_vertex_graph(vertices.shape[0], elements)

        if scalars is None:
            self._local_max = np.zeros(vertices.shape[0], dtype=bool)
        else:
            self._local_max = find_local_maxima(self._graph, scalars)

        LOG.debug(
            "%s: %d vertices, %d elements, %d border gates.",
            type(self).__name__,
            vertices.shape[0],
            elements.shape[0],
            int(np.count_nonzero(self._adjacency < 0)),
        )

    # ---------------- geometry ----------------
    @property
    def vertices(self) -> np.ndarray:
        return self._vertices

    @property
    def elements(self) -> np.ndarray:
        return self._elements

    @property
    def scalars(self) -> np.ndarray | None:
        return self._scalars

    @property
    def num_vertices(self) -> int:
        return int(self._vertices.shape[0])

    @property
    def num_elements(self) -> int:
        return int(self._elements.shape[0])

    def vertex(self, vid: int) -> np.ndarray:
        return self._vertices[vid]

    def element_vertex_ids(self, eid: int) -> tuple[int, ...]:
        return tuple(int(v) for v in self._elements[eid])

    def element_vertex(self, eid: int, i: int) -> np.ndarray:
        return self._vertices[self._elements[eid, i]]

    def element_vertices(self, eid: int) -> np.ndarray:
        """(k, 3) copy of the element's vertex positions in local order."""
        return self._vertices[self._elements[eid]]

    def bbox_diagonal(self) -> float:
        return float(np.linalg.norm(self._vertices.max(axis=0) - self._vertices.min(axis=0)))

    # ---------------- topology ----------------
    def adjacent_through_gate(self, eid: int, gate: int) -> int | Boundary:
        other = int(self._adjacency[eid, gate])
        return BOUNDARY if other < 0 else other

    def vertex_elements(self, vid: int) -> tuple[int, ...]:
        """Elements incident to ``vid``, ascending."""
        inc = self._incidence
        return tuple(int(e) for e in inc.indices[inc.indptr[vid]:inc.indptr[vid + 1]])

    def vertex_neighbors(self, vid: int) -> tuple[int, ...]:
        G = self._graph
        return tuple(int(v) for v in G.indices[G.indptr[vid]:G.indptr[vid + 1]])

    def element_contains_vertex(self, eid: int, vid: int) -> bool:
        return bool(np.any(self._elements[eid] == vid))

    # ---------------- scalar field ----------------
    def element_min_scalar(self, eid: int) -> float:
        if self._scalars is None:
            raise ValueError("mesh carries no scalar field")
        return float(np.min(self._scalars[self._elements[eid]]))

    def vertex_is_local_maximum(self, vid: int) -> bool:
        return bool(self._local_max[vid])

    def local_maxima(self) -> np.ndarray:
        return np.flatnonzero(self._local_max)
