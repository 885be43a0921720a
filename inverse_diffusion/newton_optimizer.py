"""
Newton's method on the initial condition, using AD derivatives.

Each iteration evaluates cost, gradient and Hessian at the current candidate,
solves H @ step = g and moves by a fixed fraction of that step. There is no
line search or trust region: an indefinite Hessian or an overshooting step is
taken as is.
"""

import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

import numpy as np
from scipy.linalg import LinAlgError, LinAlgWarning, solve as linalg_solve

from .derivatives import DerivativeBundle, DerivativeOracle
from .errors import DifferentiationError, InvalidConfig, LinearSolveError

DEFAULT_TOL = 1e-5
DEFAULT_MAX_ITER = 500


class StopReason(Enum):
    """Why the Newton loop ended."""
    COST_TOLERANCE = 'cost_tolerance'
    GRADIENT_TOLERANCE = 'gradient_tolerance'
    ITERATION_CAP = 'iteration_cap'


@dataclass
class OptimizationState:
    """Mutable loop state, owned by a single optimize() call."""
    candidate: np.ndarray
    iteration: int = 0
    converged: bool = False
    stop_reason: Optional[StopReason] = None
    last_cost: float = float('inf')
    last_gradient_norm: float = float('inf')


@dataclass
class OptimizationResult:
    """
    Outcome of a Newton run.

    last_cost and last_gradient_norm are measured at the candidate *before*
    the final update, as used by the convergence test.
    """
    candidate: np.ndarray
    iterations: int
    stop_reason: StopReason
    last_cost: float
    last_gradient_norm: float
    history: List[Dict] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        """True if a tolerance was met, False if the iteration cap stopped the run."""
        return self.stop_reason is not StopReason.ITERATION_CAP

    @property
    def non_convergence(self) -> bool:
        return self.stop_reason is StopReason.ITERATION_CAP


class NewtonOptimizer:
    """
    Full-step Newton iteration driven by a DerivativeOracle.

    Stops when cost < tol, max|grad| < tol, or after max_iter iterations,
    whichever comes first.
    """

    def __init__(
        self,
        oracle: DerivativeOracle,
        tol: float = DEFAULT_TOL,
        max_iter: int = DEFAULT_MAX_ITER,
        step_size: float = 1.0,
        verbose: bool = True,
        callback: Optional[Callable[[int, float, float], None]] = None,
    ):
        """
        Args:
            oracle: Source of value, gradient and Hessian
            tol: Tolerance on both cost and max|grad|
            max_iter: Hard iteration cap
            step_size: Fixed step length alpha (no line search)
            verbose: Print one progress line per iteration
            callback: Called as callback(iteration, cost, grad_norm) each iteration
        """
        if not tol > 0:
            raise InvalidConfig(f"tol must be > 0, got {tol}")
        if max_iter < 1:
            raise InvalidConfig(f"max_iter must be >= 1, got {max_iter}")
        if not step_size > 0:
            raise InvalidConfig(f"step_size must be > 0, got {step_size}")

        self.oracle = oracle
        self.tol = tol
        self.max_iter = int(max_iter)
        self.step_size = step_size
        self.verbose = verbose
        self.callback = callback

        # Track optimization history for visualization
        self.history: List[Dict] = []

    def newton_step(self, bundle: DerivativeBundle, state: OptimizationState) -> np.ndarray:
        """
        Solve hessian @ step = gradient.

        Raises:
            LinearSolveError: singular or ill-conditioned Hessian, or non-finite step
        """
        try:
            with warnings.catch_warnings():
                warnings.simplefilter('error', LinAlgWarning)
                step = linalg_solve(bundle.hessian, bundle.gradient)
        except (LinAlgError, LinAlgWarning, ValueError) as e:
            raise LinearSolveError(
                f"Hessian solve failed: {e}",
                iteration=state.iteration,
                last_cost=bundle.value,
                last_gradient_norm=bundle.gradient_norm,
            ) from e

        if not np.all(np.isfinite(step)):
            raise LinearSolveError(
                "Hessian solve produced a non-finite step",
                iteration=state.iteration,
                last_cost=bundle.value,
                last_gradient_norm=bundle.gradient_norm,
            )
        return step

    def check_convergence(self, cost: float, grad_norm: float, iteration: int) -> Optional[StopReason]:
        """Return the stop reason, or None to keep going."""
        if cost < self.tol:
            return StopReason.COST_TOLERANCE
        if grad_norm < self.tol:
            return StopReason.GRADIENT_TOLERANCE
        if iteration >= self.max_iter:
            return StopReason.ITERATION_CAP
        return None

    def optimize(self, initial_guess) -> OptimizationResult:
        """
        Run Newton's method from initial_guess.

        Returns:
            OptimizationResult with the optimized initial condition

        Raises:
            DifferentiationError: the oracle failed at the current candidate
            LinearSolveError: the Newton system could not be solved
        """
        state = OptimizationState(candidate=np.array(initial_guess, dtype=np.float64))
        self.history = []

        if self.verbose:
            print("\nSolving optimization problem with Newton's method and AD")

        while not state.converged:
            try:
                bundle = self.oracle.evaluate(state.candidate)
            except DifferentiationError as e:
                raise DifferentiationError(
                    f"Derivative oracle failed: {e}",
                    iteration=state.iteration,
                    last_cost=state.last_cost,
                    last_gradient_norm=state.last_gradient_norm,
                ) from e

            step = self.newton_step(bundle, state)

            state.candidate = state.candidate - self.step_size * step
            state.iteration += 1
            state.last_cost = bundle.value
            state.last_gradient_norm = bundle.gradient_norm

            state.stop_reason = self.check_convergence(
                state.last_cost, state.last_gradient_norm, state.iteration
            )
            state.converged = state.stop_reason is not None

            self.history.append({
                'iteration': state.iteration,
                'cost': state.last_cost,
                'grad_norm': state.last_gradient_norm,
            })
            if self.verbose:
                print(f" {state.iteration:5d}, Cost Function = {state.last_cost:15.6g}, "
                      f"max(grad) = {state.last_gradient_norm:15.6g}")
            if self.callback is not None:
                self.callback(state.iteration, state.last_cost, state.last_gradient_norm)

        if self.verbose:
            print(f"Newton's method stopped after {state.iteration} iterations "
                  f"({state.stop_reason.value})")

        return OptimizationResult(
            candidate=state.candidate,
            iterations=state.iteration,
            stop_reason=state.stop_reason,
            last_cost=state.last_cost,
            last_gradient_norm=state.last_gradient_norm,
            history=list(self.history),
        )


def newton_optimize(
    cost_fn: Callable,
    initial_guess,
    tol: float = DEFAULT_TOL,
    max_iter: int = DEFAULT_MAX_ITER,
    step_size: float = 1.0,
    strategy: str = 'auto',
    verbose: bool = True,
    callback: Optional[Callable[[int, float, float], None]] = None,
) -> OptimizationResult:
    """Build an oracle for cost_fn and run NewtonOptimizer from initial_guess."""
    oracle = DerivativeOracle(cost_fn, strategy=strategy, verbose=verbose)
    optimizer = NewtonOptimizer(
        oracle,
        tol=tol,
        max_iter=max_iter,
        step_size=step_size,
        verbose=verbose,
        callback=callback,
    )
    return optimizer.optimize(initial_guess)
