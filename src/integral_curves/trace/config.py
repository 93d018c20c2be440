from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .convergence import ConvergenceCriterion
from .errors import InvalidConfigurationError

MIN_STEPS = 8


@dataclass(slots=True)
class TraceConfig:
    ray_eps: float = 1e-9       # inclusive slack of the ray/facet test
    parallel_eps: float = 1e-14
    sine_eps: float = 1e-12
    max_steps: int | None = None

    def resolve_max_steps(self, num_elements: int) -> int:
        if self.max_steps is not None:
            if self.max_steps < 1:
                raise InvalidConfigurationError(f"max_steps must be >= 1, got {self.max_steps}")
            return int(self.max_steps)
        return max(2 * int(num_elements), MIN_STEPS)


@dataclass(frozen=True, slots=True)
class TraceOptions:
    source_element: int
    source_vertex: int
    source_position: np.ndarray
    convergence_criterion: ConvergenceCriterion = ConvergenceCriterion.LOCAL_MAX
    threshold_value: float | None = None
    target_vertex: int | None = None

    def __post_init__(self):
        crit = self.convergence_criterion
        if not isinstance(crit, ConvergenceCriterion):
            try:
                crit = ConvergenceCriterion(crit)
            except ValueError:
                raise InvalidConfigurationError(
                    f"unknown convergence criterion {crit!r}"
                ) from None
            object.__setattr__(self, "convergence_criterion", crit)

        if crit is ConvergenceCriterion.GIVEN_VALUE and self.threshold_value is None:
            raise InvalidConfigurationError("GIVEN_VALUE requires a threshold value")
        if crit is ConvergenceCriterion.GIVEN_VERTEX and self.target_vertex is None:
            raise InvalidConfigurationError("GIVEN_VERTEX requires a target vertex")

        pos = np.array(self.source_position, dtype=np.float64).reshape(3)
        pos.setflags(write=False)
        object.__setattr__(self, "source_position", pos)
