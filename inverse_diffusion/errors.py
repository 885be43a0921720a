"""
Exception hierarchy for the inverse-design pipeline.

NonConvergence is deliberately absent: hitting the iteration cap is reported
through OptimizationResult.stop_reason, not raised.
"""

from typing import Optional


class InverseDesignError(Exception):
    """Base class for all errors raised by this package."""


class InvalidConfig(InverseDesignError, ValueError):
    """Bad grid, simulation or optimizer parameters."""


class OptimizationError(InverseDesignError):
    """
    Failure during an optimizer run.

    Carries enough context to tell divergence from misconfiguration.
    """

    def __init__(
        self,
        message: str,
        iteration: Optional[int] = None,
        last_cost: Optional[float] = None,
        last_gradient_norm: Optional[float] = None,
    ):
        self.iteration = iteration
        self.last_cost = last_cost
        self.last_gradient_norm = last_gradient_norm
        if iteration is not None:
            message = (
                f"{message} (iteration={iteration}, cost={last_cost}, "
                f"max|grad|={last_gradient_norm})"
            )
        super().__init__(message)


class DifferentiationError(OptimizationError):
    """The derivative oracle could not evaluate at a point."""


class LinearSolveError(OptimizationError):
    """The Newton system H @ step = g is singular or ill-conditioned."""
