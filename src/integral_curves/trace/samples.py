from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from ..mesh.base import BOUNDARY, Boundary


@dataclass(frozen=True, slots=True, eq=False)
class CurveSample:
    """
    One point of an integral curve.

    element_id is the element the curve continues in (BOUNDARY on the last
    sample of a curve that left the mesh). vertex_id is set when the position
    coincides with a mesh vertex; gate_id is the local edge/facet crossed to
    reach this sample.
    """

    position: np.ndarray
    element_id: int | Boundary
    vertex_id: int | None = None
    gate_id: int | None = None

    def __post_init__(self):
        pos = np.array(self.position, dtype=np.float64).reshape(3)
        pos.setflags(write=False)
        object.__setattr__(self, "position", pos)

    @property
    def is_boundary(self) -> bool:
        return self.element_id is BOUNDARY

    def as_tuple(self):
        return (tuple(self.position.tolist()), self.element_id, self.vertex_id, self.gate_id)


@dataclass(frozen=True, slots=True)
class TraceEvent:
    kind: str
    element_id: int | Boundary
    detail: dict[str, Any] = field(default_factory=dict)
