"""
"Skins into" detection and rerouting.

A step skins into the boundary it just crossed when the candidate element,
traced with its own field direction, would leave straight back into the
element the curve came from. The curve is then moved to a vertex of the
shared boundary and continues in another element incident to that vertex.
"""
from __future__ import annotations

import logging

import numpy as np

from ..mesh.base import BOUNDARY
from ..mesh.surface import TRI_EDGES
from ..mesh.volume import TET_FACES
from .errors import GeometricDegeneracyError
from .exit_gate import surface_exit_edge, volume_exit_facet
from .intersections import angle_rad, normalize
from .samples import CurveSample

LOG = logging.getLogger(__name__)


def surface_skins_into(mesh, field, curr_element: int, next_element: int, next_position: np.ndarray) -> bool:
    next_dir = field.direction(next_element)
    edge = surface_exit_edge(mesh, next_element, next_position, next_dir)
    ids = mesh.element_vertex_ids(next_element)
    vid_a = ids[TRI_EDGES[edge][0]]
    vid_b = ids[TRI_EDGES[edge][1]]
    return mesh.adjacent_along(next_element, vid_a, vid_b) == curr_element


def surface_reroute(
    mesh,
    curr_element: int,
    next_element: int,
    vid_a: int,
    vid_b: int,
    target_dir: np.ndarray,
) -> CurveSample:
    """
    Follow the exit edge to the endpoint best aligned with the field, then
    continue in an element around it other than the two just involved.
    """
    A = mesh.vertex(vid_a)
    B = mesh.vertex(vid_b)
    vid = vid_b if np.dot(B - A, target_dir) > 0 else vid_a

    chosen = None
    for eid in mesh.vertex_elements(vid):
        if eid != next_element and eid != curr_element:
            chosen = eid  # last candidate in incidence order

    if chosen is None:
        raise GeometricDegeneracyError(
            f"no element around vertex {vid} to continue from triangle {curr_element}",
            element_id=curr_element,
        )
    LOG.debug("skins into: tri %d -> vertex %d -> tri %d", curr_element, vid, chosen)
    return CurveSample(mesh.vertex(vid), chosen, vertex_id=vid)


def volume_skins_into(mesh, field, curr_element: int, next_element, next_position: np.ndarray, config) -> bool:
    if next_element is BOUNDARY:
        return False
    next_dir = field.direction(next_element)
    facet, _ = volume_exit_facet(mesh, next_element, next_position, next_dir, config)
    return mesh.adjacent_through_facet(next_element, facet) == curr_element


def volume_reroute(
    mesh,
    field,
    curr_element: int,
    next_element: int,
    gate: int,
    exit_pos: np.ndarray,
    config,
) -> CurveSample:
    """
    Move to the vertex of the shared facet best aligned with the averaged
    field of both elements, then pick an incident tet the field actually
    crosses from that vertex (exit gate at a non-zero distance).
    """
    avg_dir = normalize(field.vec_at(curr_element) + field.vec_at(next_element))

    local = TET_FACES[gate]
    ids = mesh.element_vertex_ids(curr_element)
    tri = mesh.element_vertices(curr_element)[list(local)]
    angles = np.array([angle_rad(avg_dir, tri[i] - exit_pos) for i in range(3)])
    best = int(np.argmin(angles))
    vid = ids[local[best]]
    pos = tri[best].copy()

    chosen = None
    for eid in mesh.vertex_elements(vid):
        if eid == next_element or eid == curr_element:
            continue
        try:
            _, cand_exit = volume_exit_facet(mesh, eid, pos, field.direction(eid), config)
        except GeometricDegeneracyError:
            LOG.debug("tet %d rejected: no exit gate from vertex %d", eid, vid)
            continue
        # a zero-length hit means the ray leaves the tet at the vertex itself
        if np.linalg.norm(cand_exit - pos) <= config.ray_eps:
            LOG.debug("tet %d rejected: field points out of it at vertex %d", eid, vid)
            continue
        chosen = eid

    if chosen is None:
        raise GeometricDegeneracyError(
            f"no tet around vertex {vid} to continue from tet {curr_element}",
            element_id=curr_element,
        )
    LOG.debug("skins into: tet %d -> vertex %d -> tet %d", curr_element, vid, chosen)
    return CurveSample(pos, chosen, vertex_id=vid)
