"""
Error taxonomy for the scheduling core.

- InsufficientData: not enough responses to estimate ability (recoverable)
- NumericNonConvergence: the IRT solver failed (recoverable via fallback)
- InvariantViolation: a mutation would break a model invariant (bug signal)
- StructuralAnomaly: prerequisite data contains a cycle (reported, not raised)
"""

from __future__ import annotations

from typing import Any


class LogosCoreError(Exception):
    """Base class for all scheduling core errors."""

    pass


class InsufficientData(LogosCoreError):
    """Raised when too few responses exist to estimate ability."""

    def __init__(self, available: int, required: int):
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient data: {available} responses, at least {required} required"
        )


class NumericNonConvergence(LogosCoreError):
    """Raised when the ability solver fails to converge."""

    def __init__(self, message: str, iterations: int = 0, last_theta: float | None = None):
        self.iterations = iterations
        self.last_theta = last_theta
        super().__init__(message)


class InvariantViolation(LogosCoreError):
    """
    Raised when a value would break a model invariant.

    The operation that raised it must not have written anything; callers
    keep the prior state.
    """

    def __init__(self, message: str, **values: Any):
        self.values = values
        super().__init__(message)


class StructuralAnomaly(LogosCoreError):
    """
    Prerequisite graph is not a DAG.

    The sequencer never raises this; it builds one to describe the
    degraded ordering and logs it.
    """

    def __init__(self, construct_ids: list[str]):
        self.construct_ids = list(construct_ids)
        super().__init__(
            f"Prerequisite cycle or dangling dependency among {len(self.construct_ids)} "
            f"constructs: {', '.join(self.construct_ids[:10])}"
        )
