from __future__ import annotations

import logging

import numpy as np

from .vector_field import VectorField

LOG = logging.getLogger(__name__)


def triangle_gradients(vertices: np.ndarray, triangles: np.ndarray, u: np.ndarray) -> np.ndarray:
    """
    Per-face gradient of the piecewise-linear interpolant of ``u``.

    ∇φ_i = (n̂ × e_opposite) / (2A) for each hat function, summed with the
    vertex values. Returns (m, 3).
    """
    vi = vertices[triangles[:, 0]]
    vj = vertices[triangles[:, 1]]
    vk = vertices[triangles[:, 2]]

    n = np.cross(vj - vi, vk - vi)
    dbl_a = np.linalg.norm(n, axis=1)
    if np.any(dbl_a <= 1e-16):
        raise ValueError(f"degenerate triangle(s): {np.flatnonzero(dbl_a <= 1e-16)[:10]}")
    nhat = n / dbl_a[:, None]

    g0 = np.cross(nhat, vk - vj)
    g1 = np.cross(nhat, vi - vk)
    g2 = np.cross(nhat, vj - vi)

    ui = u[triangles[:, 0]][:, None]
    uj = u[triangles[:, 1]][:, None]
    uk = u[triangles[:, 2]][:, None]
    return (ui * g0 + uj * g1 + uk * g2) / dbl_a[:, None]


def tet_gradients(vertices: np.ndarray, tets: np.ndarray, u: np.ndarray) -> np.ndarray:
    """
    Per-tet gradient: solves E g = Δu with the edge matrix E rows p_k - p_0.
    Returns (m, 3).
    """
    p0 = vertices[tets[:, 0]]
    E = np.stack([vertices[tets[:, k]] - p0 for k in (1, 2, 3)], axis=1)  # (m, 3, 3)
    du = np.stack([u[tets[:, k]] - u[tets[:, 0]] for k in (1, 2, 3)], axis=1)  # (m, 3)

    det = np.linalg.det(E)
    if np.any(np.abs(det) <= 1e-18):
        raise ValueError(f"degenerate tetrahedra: {np.flatnonzero(np.abs(det) <= 1e-18)[:10]}")
    return np.linalg.solve(E, du[..., None])[..., 0]


def gradient_field(mesh, scalars=None) -> VectorField:
    """
    Vector field of per-element scalar gradients (steepest ascent directions).
    Defaults to the mesh's own scalars.
    """
    u = mesh.scalars if scalars is None else np.asarray(scalars, dtype=np.float64)
    if u is None:
        raise ValueError("no scalar field given and the mesh carries none")
    if u.shape != (mesh.num_vertices,):
        raise ValueError(f"scalars must be ({mesh.num_vertices},), got {u.shape}")

    if mesh.ELEMENT_DIM == 2:
        grads = triangle_gradients(mesh.vertices, mesh.triangles, u)
    elif mesh.ELEMENT_DIM == 3:
        grads = tet_gradients(mesh.vertices, mesh.tets, u)
    else:
        raise ValueError(f"unsupported element dimension {mesh.ELEMENT_DIM}")

    n_flat = int(np.count_nonzero(np.linalg.norm(grads, axis=1) < 1e-14))
    if n_flat:
        LOG.warning("%d element(s) with vanishing gradient; curves stop with an error there.", n_flat)
    return VectorField(grads)
