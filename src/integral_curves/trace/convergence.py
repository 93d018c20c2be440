from __future__ import annotations

from enum import Enum

from .errors import InvalidConfigurationError


class ConvergenceCriterion(Enum):
    LOCAL_MAX = "local_max"
    GIVEN_VALUE = "given_value"
    GIVEN_VERTEX = "given_vertex"


def is_converged(
    mesh,
    element_id: int,
    criterion: ConvergenceCriterion,
    *,
    threshold_value: float | None = None,
    target_vertex: int | None = None,
) -> bool:
    """
    Stopping predicate over the vertices of one element.

    LOCAL_MAX    : some vertex is a local maximum of the scalar field
    GIVEN_VALUE  : the element's minimum scalar exceeds ``threshold_value``
    GIVEN_VERTEX : the element contains ``target_vertex``
    """
    if criterion is ConvergenceCriterion.LOCAL_MAX:
        return any(mesh.vertex_is_local_maximum(v) for v in mesh.element_vertex_ids(element_id))

    if criterion is ConvergenceCriterion.GIVEN_VALUE:
        return mesh.element_min_scalar(element_id) > threshold_value

    if criterion is ConvergenceCriterion.GIVEN_VERTEX:
        return mesh.element_contains_vertex(element_id, target_vertex)

    raise InvalidConfigurationError(f"unknown convergence criterion {criterion!r}")
