from __future__ import annotations

import logging
import math
from typing import Callable

import numpy as np

from ..mesh.base import BOUNDARY
from ..mesh.surface import TRI_EDGES
from .degeneracy import surface_reroute, surface_skins_into, volume_reroute, volume_skins_into
from .errors import GeometricDegeneracyError, InvalidConfigurationError
from .exit_gate import surface_exit_edge, volume_exit_facet
from .intersections import angle_rad, normalize, triangle_law_of_sines
from .samples import CurveSample, TraceEvent

LOG = logging.getLogger(__name__)


class _Traverser:
    def __init__(self, mesh, field, config, on_event: Callable[[TraceEvent], None] | None = None):
        self.mesh = mesh
        self.field = field
        self.config = config
        self._on_event = on_event

    def _emit(self, kind: str, element_id, **detail) -> None:
        if self._on_event is not None:
            self._on_event(TraceEvent(kind, element_id, detail))

    def traverse(self, sample: CurveSample) -> CurveSample:
        raise NotImplementedError


class SurfaceTraverser(_Traverser):
    """One step across a triangle."""

    def exit_gate(self, sample: CurveSample, target_dir: np.ndarray) -> int:
        return surface_exit_edge(self.mesh, sample.element_id, sample.position.copy(), target_dir)

    def traverse(self, sample: CurveSample) -> CurveSample:
        mesh = self.mesh
        eid = sample.element_id
        target_dir = self.field.direction(eid)
        pos = sample.position.copy()

        exit_edge = surface_exit_edge(mesh, eid, pos, target_dir)
        ids = mesh.element_vertex_ids(eid)
        vid_a = ids[TRI_EDGES[exit_edge][0]]
        vid_b = ids[TRI_EDGES[exit_edge][1]]
        A = np.array(mesh.vertex(vid_a))
        B = np.array(mesh.vertex(vid_b))

        # Triangle (V0 = pos, V1 = A, V2 = exit point): walk from A along the
        # edge by the side opposite V0, obtained from the law of sines.
        e0_dir = normalize(B - A)
        e1_dir = -target_dir
        e2_len = float(np.linalg.norm(A - pos))
        e2_dir = normalize(A - pos)

        if e2_len > 0.0:
            V0_ang = angle_rad(e2_dir, target_dir)
            V2_ang = angle_rad(e1_dir, -e0_dir)
            if abs(math.sin(V2_ang)) < self.config.sine_eps:
                raise GeometricDegeneracyError(
                    f"field runs parallel to exit edge {exit_edge} of triangle {eid}",
                    element_id=eid,
                )
            e0_len = triangle_law_of_sines(V2_ang, V0_ang, e2_len)
        else:
            e0_len = 0.0

        next_pos = A + e0_len * e0_dir
        if not np.isfinite(next_pos).all():
            raise GeometricDegeneracyError(f"non-finite exit point in triangle {eid}", element_id=eid)

        next_tid = mesh.adjacent_along(eid, vid_a, vid_b)
        self._emit("step", eid, gate=exit_edge, position=next_pos.copy(), next_element=next_tid)

        if next_tid is BOUNDARY:
            self._emit("boundary", eid, gate=exit_edge)
            return CurveSample(next_pos, BOUNDARY, gate_id=exit_edge)

        if surface_skins_into(mesh, self.field, eid, next_tid, next_pos):
            rerouted = surface_reroute(mesh, eid, next_tid, vid_a, vid_b, target_dir)
            self._emit(
                "skins_into", eid,
                candidate=next_tid, vertex=rerouted.vertex_id, next_element=rerouted.element_id,
            )
            return rerouted

        return CurveSample(next_pos, next_tid, gate_id=exit_edge)


class VolumeTraverser(_Traverser):
    """One step across a tetrahedron."""

    def exit_gate(self, sample: CurveSample, target_dir: np.ndarray):
        return volume_exit_facet(self.mesh, sample.element_id, sample.position.copy(), target_dir, self.config)

    def traverse(self, sample: CurveSample) -> CurveSample:
        mesh = self.mesh
        eid = sample.element_id
        target_dir = self.field.direction(eid)
        pos = sample.position.copy()

        gate, exit_pos = volume_exit_facet(mesh, eid, pos, target_dir, self.config)
        if np.linalg.norm(exit_pos - pos) <= self.config.ray_eps:
            raise GeometricDegeneracyError(
                f"no progress through tet {eid}: the field points out of it at {pos}",
                element_id=eid,
            )
        next_tid = mesh.adjacent_through_facet(eid, gate)
        self._emit("step", eid, gate=gate, position=exit_pos.copy(), next_element=next_tid)

        if next_tid is BOUNDARY:
            self._emit("boundary", eid, gate=gate)
            return CurveSample(exit_pos, BOUNDARY, gate_id=gate)

        if volume_skins_into(mesh, self.field, eid, next_tid, exit_pos, self.config):
            rerouted = volume_reroute(mesh, self.field, eid, next_tid, gate, exit_pos, self.config)
            self._emit(
                "skins_into", eid,
                candidate=next_tid, vertex=rerouted.vertex_id, next_element=rerouted.element_id,
            )
            return rerouted

        return CurveSample(exit_pos, next_tid, gate_id=gate)


def make_traverser(mesh, field, config, on_event=None) -> _Traverser:
    """Pick the per-shape stepping strategy for ``mesh``."""
    if len(field) != mesh.num_elements:
        raise InvalidConfigurationError(
            f"field has {len(field)} vectors for {mesh.num_elements} elements"
        )
    dim = getattr(mesh, "ELEMENT_DIM", None)
    if dim == 2:
        return SurfaceTraverser(mesh, field, config, on_event)
    if dim == 3:
        return VolumeTraverser(mesh, field, config, on_event)
    raise InvalidConfigurationError(f"unsupported mesh type {type(mesh).__name__}")
