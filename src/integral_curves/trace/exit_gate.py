from __future__ import annotations

import numpy as np

from ..mesh.volume import TET_FACES
from .errors import GeometricDegeneracyError
from .intersections import angle_rad, ray_triangle_intersection


def surface_exit_edge(mesh, element_id: int, position: np.ndarray, target_dir: np.ndarray) -> int:
    """
    Local edge through which the ray position + t*target_dir leaves a triangle.

    Split the triangle into three sub triangles meeting at ``position`` and
    take the vertex whose direction is closest to ``target_dir`` (lowest local
    index on ties). The exit edge is either on its left or on its right; the
    sign of (target_dir x to_vertex) . normal tells which.
    """
    uvw = mesh.element_vertices(element_id) - position
    angles = np.array([angle_rad(target_dir, uvw[i]) for i in range(3)])
    vert = int(np.argmin(angles))

    tn = np.array(mesh.triangle_normal(element_id))
    cross = np.cross(target_dir, uvw[vert])
    if np.dot(cross, tn) >= 0:
        return (vert + 2) % 3  # TRI_EDGES[(v+2)%3] ends at v
    return vert


def volume_exit_facet(mesh, element_id: int, position: np.ndarray, target_dir: np.ndarray, config):
    """
    Facet a ray leaves a tetrahedron through, and the exit point.

    The ray starts on the entry facet (or at a vertex), so every facet through
    the origin reports a zero-length hit: the farthest hit is the exit.
    """
    verts = mesh.element_vertices(element_id)
    exit_pos = np.array(position, dtype=np.float64)
    exit_facet = -1
    best = 0.0

    for facet, (i, j, k) in enumerate(TET_FACES):
        hit, inters, _ = ray_triangle_intersection(
            position, target_dir, verts[i], verts[j], verts[k],
            config.ray_eps, config.parallel_eps,
        )
        if hit:
            dist = float(np.linalg.norm(inters - position))
            if dist >= best:
                best = dist
                exit_pos = inters
                exit_facet = facet

    if exit_facet == -1:
        raise GeometricDegeneracyError(
            f"no exit facet found from tet {element_id}", element_id=element_id
        )
    return exit_facet, exit_pos
