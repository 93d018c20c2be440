from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator

import numpy as np

from .config import TraceConfig, TraceOptions
from .convergence import ConvergenceCriterion, is_converged
from .errors import InvalidConfigurationError, MaxStepsExceededError
from .samples import CurveSample, TraceEvent
from .stats import curve_length
from .traverse import make_traverser

LOG = logging.getLogger(__name__)


class Termination(Enum):
    BOUNDARY = "boundary"
    LOCAL_MAX = "local_max"
    TARGET = "target"


@dataclass(frozen=True)
class Curve:
    """Finished integral curve: ordered samples plus how tracing stopped."""

    samples: tuple[CurveSample, ...]
    termination: Termination

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[CurveSample]:
        return iter(self.samples)

    def __getitem__(self, idx):
        return self.samples[idx]

    @property
    def last(self) -> CurveSample:
        return self.samples[-1]

    def positions(self) -> np.ndarray:
        return np.array([s.position for s in self.samples], dtype=np.float64)

    def length(self) -> float:
        return curve_length(self.positions())


class IntegralCurve:
    """
    Integral curve of a piecewise-constant vector field, traced element by
    element from a source vertex until it leaves the mesh, reaches a local
    maximum of the scalar field, or meets the stopping target.

    With neither ``stop_value`` nor ``stop_vertex`` the curve stops at a local
    maximum; ``stop_value`` stops in the first element whose minimum scalar
    exceeds it; ``stop_vertex`` stops in the first element containing it.
    The curve is built on construction and never changes afterwards.
    """

    def __init__(
        self,
        mesh,
        field,
        source_element: int,
        source_vertex: int,
        *,
        stop_value: float | None = None,
        stop_vertex: int | None = None,
        source_position=None,
        config: TraceConfig | None = None,
        on_event: Callable[[TraceEvent], None] | None = None,
    ):
        if stop_value is not None and stop_vertex is not None:
            raise InvalidConfigurationError("give at most one of stop_value / stop_vertex")

        if stop_value is not None:
            criterion = ConvergenceCriterion.GIVEN_VALUE
        elif stop_vertex is not None:
            criterion = ConvergenceCriterion.GIVEN_VERTEX
        else:
            criterion = ConvergenceCriterion.LOCAL_MAX

        source_element = int(source_element)
        source_vertex = int(source_vertex)
        if not 0 <= source_element < mesh.num_elements:
            raise InvalidConfigurationError(f"source element {source_element} out of range")
        if not mesh.element_contains_vertex(source_element, source_vertex):
            raise InvalidConfigurationError(
                f"source vertex {source_vertex} is not a vertex of element {source_element}"
            )
        if criterion is ConvergenceCriterion.GIVEN_VALUE and mesh.scalars is None:
            raise InvalidConfigurationError("stop_value needs a mesh with a scalar field")

        if source_position is None:
            source_position = mesh.vertex(source_vertex)

        self.mesh = mesh
        self.field = field
        self.config = config if config is not None else TraceConfig()
        self.options = TraceOptions(
            source_element=source_element,
            source_vertex=source_vertex,
            source_position=source_position,
            convergence_criterion=criterion,
            threshold_value=None if stop_value is None else float(stop_value),
            target_vertex=None if stop_vertex is None else int(stop_vertex),
        )
        self._on_event = on_event
        self._traverser = make_traverser(mesh, field, self.config, on_event)
        self.curve = self._make_curve()

    @property
    def samples(self) -> tuple[CurveSample, ...]:
        return self.curve.samples

    @property
    def termination(self) -> Termination:
        return self.curve.termination

    def _converged(self, eid: int, criterion: ConvergenceCriterion) -> bool:
        return is_converged(
            self.mesh,
            eid,
            criterion,
            threshold_value=self.options.threshold_value,
            target_vertex=self.options.target_vertex,
        )

    def _make_curve(self) -> Curve:
        opt = self.options
        mesh = self.mesh
        samples = [CurveSample(opt.source_position, opt.source_element, vertex_id=opt.source_vertex)]
        max_steps = self.config.resolve_max_steps(mesh.num_elements)

        border_reached = locmax_reached = target_reached = False
        for step in range(1, max_steps + 1):
            samples.append(self._traverser.traverse(samples[-1]))
            last = samples[-1]
            LOG.debug("[%03d] elem=%s vert=%s pos=%s", step, last.element_id, last.vertex_id, last.position)

            border_reached = last.is_boundary
            locmax_reached = not border_reached and self._converged(
                last.element_id, ConvergenceCriterion.LOCAL_MAX
            )
            target_reached = not border_reached and self._converged(
                last.element_id, opt.convergence_criterion
            )
            if border_reached or locmax_reached or target_reached:
                break
        else:
            raise MaxStepsExceededError(max_steps, samples)

        if locmax_reached:
            # closing segment(s) to every local maximum of the final element
            eid = samples[-1].element_id
            for vid in mesh.element_vertex_ids(eid):
                if mesh.vertex_is_local_maximum(vid):
                    samples.append(CurveSample(mesh.vertex(vid), eid, vertex_id=vid))

        if border_reached:
            termination = Termination.BOUNDARY
        elif locmax_reached:
            termination = Termination.LOCAL_MAX
        else:
            termination = Termination.TARGET

        if self._on_event is not None:
            self._on_event(TraceEvent("converged", samples[-1].element_id, {"termination": termination}))
        LOG.info(
            "Integral curve from vertex %d: %d samples, stopped at %s.",
            opt.source_vertex, len(samples), termination.value,
        )
        return Curve(tuple(samples), termination)


def trace_integral_curve(mesh, field, source_element: int, source_vertex: int, **kwargs) -> Curve:
    """Build an :class:`IntegralCurve` and return its finished :class:`Curve`."""
    return IntegralCurve(mesh, field, source_element, source_vertex, **kwargs).curve
