from __future__ import annotations

import logging
from itertools import combinations

import numpy as np
from scipy.sparse import coo_matrix, csr_matrix

LOG = logging.getLogger(__name__)


def triangle_normals_and_areas(vertices: np.ndarray, triangles: np.ndarray):
    """
    Unit normals (from the winding order) and areas of every triangle.

    Returns
    -------
    normals : (m, 3) float64
    areas   : (m,)   float64
    """
    v0 = vertices[triangles[:, 0]]
    v1 = vertices[triangles[:, 1]]
    v2 = vertices[triangles[:, 2]]
    cross_prod = np.cross(v1 - v0, v2 - v0)
    dbl_area = np.linalg.norm(cross_prod, axis=1)
    normals = cross_prod / np.maximum(dbl_area, 1e-16)[:, None]
    return normals, 0.5 * dbl_area


def tet_volumes(vertices: np.ndarray, tets: np.ndarray) -> np.ndarray:
    p0 = vertices[tets[:, 0]]
    e1 = vertices[tets[:, 1]] - p0
    e2 = vertices[tets[:, 2]] - p0
    e3 = vertices[tets[:, 3]] - p0
    return np.abs(np.einsum("ij,ij->i", np.cross(e1, e2), e3)) / 6.0


def build_gate_map(elements: np.ndarray, gates) -> dict[tuple[int, ...], list[int]]:
    """
    Map every gate (edge or facet, as a sorted vertex tuple) to the elements
    that own it, in ascending element order.
    """
    gate_map: dict[tuple[int, ...], list[int]] = {}
    for eid, elem in enumerate(elements):
        for local in gates:
            key = tuple(sorted(int(elem[i]) for i in local))
            gate_map.setdefault(key, []).append(eid)

    n_bad = sum(1 for owners in gate_map.values() if len(owners) > 2)
    if n_bad:
        LOG.warning("%d non-manifold gate(s) shared by more than two elements.", n_bad)
    return gate_map


def build_adjacency(elements: np.ndarray, gates, gate_map) -> np.ndarray:
    """
    (m, n_gates) int array: element across each local gate, -1 on the border.
    """
    adjacency = np.full((elements.shape[0], len(gates)), -1, dtype=np.int64)
    for eid, elem in enumerate(elements):
        for g, local in enumerate(gates):
            key = tuple(sorted(int(elem[i]) for i in local))
            for other in gate_map[key]:
                if other != eid:
                    adjacency[eid, g] = other
                    break
    return adjacency


def build_incidence(n_vertices: int, elements: np.ndarray) -> csr_matrix:
    """Vertex -> element incidence as a (n_vertices, m) sparse matrix."""
    m, k = elements.shape
    rows = elements.ravel()
    cols = np.repeat(np.arange(m), k)
    data = np.ones(rows.shape[0], dtype=np.int8)
    inc = coo_matrix((data, (rows, cols)), shape=(n_vertices, m)).tocsr()
    inc.sort_indices()
    return inc


def build_vertex_graph(n_vertices: int, elements: np.ndarray) -> csr_matrix:
    """One-ring vertex graph. Every vertex pair of a triangle or tet is an edge."""
    rows, cols = [], []
    for local_i, local_j in combinations(range(elements.shape[1]), 2):
        i = elements[:, local_i]
        j = elements[:, local_j]
        rows += [i, j]
        cols += [j, i]
    rows = np.concatenate(rows)
    cols = np.concatenate(cols)
    data = np.ones(rows.shape[0], dtype=np.int8)
    G = coo_matrix((data, (rows, cols)), shape=(n_vertices, n_vertices)).tocsr()
    G.sort_indices()
    return G


def find_local_maxima(graph: csr_matrix, scalars: np.ndarray) -> np.ndarray:
    """
    Flag vertices with no strictly larger one-ring neighbour.
    Isolated vertices are flagged as well.
    """
    n = scalars.shape[0]
    flags = np.ones(n, dtype=bool)
    for vid in range(n):
        nbrs = graph.indices[graph.indptr[vid]:graph.indptr[vid + 1]]
        if nbrs.size and np.max(scalars[nbrs]) > scalars[vid]:
            flags[vid] = False
    return flags
