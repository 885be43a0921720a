"""
Reference optimizer: scipy.optimize.minimize with JAX derivatives.

Used to cross-check the hand-written Newton iteration. Only adapts
signatures; all the numerics live in scipy.
"""

from dataclasses import dataclass
from typing import Callable

import jax
import jax.numpy as jnp
from jax import jit
import numpy as np
from scipy.optimize import minimize

from .errors import InvalidConfig
from .newton_optimizer import DEFAULT_TOL

# scipy methods that accept an explicit Hessian
HESSIAN_METHODS = ('Newton-CG', 'trust-exact', 'trust-ncg', 'trust-krylov', 'dogleg')

DEFAULT_METHOD = 'trust-exact'
DEFAULT_MAX_ITER = 1000


@dataclass
class ReferenceResult:
    """Subset of scipy's OptimizeResult."""
    candidate: np.ndarray
    cost: float
    iterations: int
    success: bool
    message: str


def optimize_reference(
    cost_fn: Callable,
    initial_guess,
    tol: float = DEFAULT_TOL,
    max_iter: int = DEFAULT_MAX_ITER,
    method: str = DEFAULT_METHOD,
    verbose: bool = False,
) -> ReferenceResult:
    """
    Minimize cost_fn with a Newton-type scipy method.

    Args:
        cost_fn: JAX-traceable scalar function of the initial condition
        initial_guess: Starting point
        tol: Gradient tolerance (xtol for Newton-CG, which has no gtol)
        max_iter: Maximum iterations
        method: One of HESSIAN_METHODS
        verbose: Ask scipy to print a convergence summary

    Returns:
        ReferenceResult
    """
    if method not in HESSIAN_METHODS:
        raise InvalidConfig(f"Method {method!r} does not use a Hessian, expected one of {HESSIAN_METHODS}")

    if verbose:
        print(f"\nSolving optimization problem with scipy ({method}) and AD")

    def f(x):
        return cost_fn(x)

    value_fn = jit(f)
    grad_fn = jit(jax.grad(f))
    hess_fn = jit(jax.hessian(f))

    options = {'maxiter': max_iter, 'disp': verbose}
    if method == 'Newton-CG':
        options['xtol'] = tol
    else:
        options['gtol'] = tol

    result = minimize(
        lambda x: float(value_fn(jnp.asarray(x))),
        x0=np.array(initial_guess, dtype=np.float64),
        method=method,
        jac=lambda x: np.array(grad_fn(jnp.asarray(x))),
        hess=lambda x: np.array(hess_fn(jnp.asarray(x))),
        options=options,
    )

    return ReferenceResult(
        candidate=np.array(result.x),
        cost=float(result.fun),
        iterations=int(result.nit),
        success=bool(result.success),
        message=str(result.message),
    )
