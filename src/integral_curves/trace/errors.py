from __future__ import annotations


class IntegralCurveError(Exception):
    """Base class for tracing failures."""


class GeometricDegeneracyError(IntegralCurveError):
    """No exit gate, or no element to continue from after a correction."""

    def __init__(self, message: str, *, element_id: int | None = None):
        super().__init__(message)
        self.element_id = element_id


class InvalidConfigurationError(IntegralCurveError, ValueError):
    pass


class MaxStepsExceededError(IntegralCurveError):
    """The step bound was hit before any stopping condition."""

    def __init__(self, max_steps: int, samples):
        super().__init__(f"integral curve exceeded {max_steps} steps")
        self.max_steps = max_steps
        self.samples = tuple(samples)
