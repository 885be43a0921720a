"""
Derivative oracle: value, gradient and Hessian of a scalar JAX function.

Two ways to get there:
1. joint    - one compiled call, Hessian via jacfwd over value_and_grad
2. separate - three independent compiled calls (value, grad, hessian)

'auto' tries the joint path first and silently retries with the separate
path if it fails, so callers always see one evaluate() contract.
"""

from dataclasses import dataclass
from typing import Callable

import jax
import jax.numpy as jnp
from jax import jit
import numpy as np

from .errors import DifferentiationError, InvalidConfig

STRATEGIES = ('auto', 'joint', 'separate')


@dataclass(frozen=True)
class DerivativeBundle:
    """Oracle output at one evaluation point."""
    value: float
    gradient: np.ndarray
    hessian: np.ndarray

    @property
    def gradient_norm(self) -> float:
        """max |gradient|"""
        return float(np.max(np.abs(self.gradient)))


def _value_grad_hessian(func: Callable) -> Callable:
    """Build f -> (f(x), grad f(x), hess f(x)) as a single traced function."""

    def grad_with_aux(x):
        value, grad = jax.value_and_grad(func)(x)
        return grad, (value, grad)

    def value_grad_hessian(x):
        hess, (value, grad) = jax.jacfwd(grad_with_aux, has_aux=True)(x)
        return value, grad, hess

    return value_grad_hessian


class DerivativeOracle:
    """
    Evaluate (value, gradient, hessian) of func at a point.

    func must map a 1D float array to a scalar using jax.numpy operations.
    """

    def __init__(self, func: Callable, strategy: str = 'auto', verbose: bool = False):
        if strategy not in STRATEGIES:
            raise InvalidConfig(f"Unknown derivative strategy {strategy!r}, expected one of {STRATEGIES}")

        def f(x):
            return func(x)

        self.func = func
        self.strategy = strategy
        self.verbose = verbose

        # Number of times 'auto' had to fall back to the separate path
        self.fallback_count = 0

        self._joint = jit(_value_grad_hessian(f))
        self._value = jit(f)
        self._grad = jit(jax.grad(f))
        self._hessian = jit(jax.hessian(f))

    def evaluate(self, point) -> DerivativeBundle:
        """
        Compute a fresh DerivativeBundle at point.

        Raises:
            DifferentiationError: if JAX fails or any output is non-finite
        """
        x = jnp.asarray(point, dtype=jnp.float64)

        if self.strategy != 'separate':
            try:
                outputs = self._joint(x)
            except Exception as e:
                if self.strategy == 'joint':
                    raise DifferentiationError(f"Joint derivative evaluation failed: {e}") from e
                self.fallback_count += 1
                if self.verbose:
                    print(f"Joint derivative evaluation failed ({e}), using separate calls")
            else:
                # Non-finite output is not a joint-path failure
                return self._checked(outputs, x)

        try:
            outputs = (self._value(x), self._grad(x), self._hessian(x))
        except Exception as e:
            raise DifferentiationError(f"Derivative evaluation failed: {e}") from e
        return self._checked(outputs, x)

    def _checked(self, outputs, x) -> DerivativeBundle:
        value, grad, hess = outputs
        n = x.shape[0]
        bundle = DerivativeBundle(
            value=float(value),
            gradient=np.array(grad, dtype=np.float64).reshape(n),
            hessian=np.array(hess, dtype=np.float64).reshape(n, n),
        )
        if not (
            np.isfinite(bundle.value)
            and np.all(np.isfinite(bundle.gradient))
            and np.all(np.isfinite(bundle.hessian))
        ):
            raise DifferentiationError(
                f"Non-finite derivatives at point {np.array2string(np.asarray(x), precision=4)}"
            )
        return bundle

    def __call__(self, point) -> DerivativeBundle:
        return self.evaluate(point)


def finite_difference_gradient(func: Callable, point, h: float = 1e-6) -> np.ndarray:
    """Compute gradient using central finite differences"""
    x = np.array(point, dtype=np.float64)
    grad = np.zeros_like(x)
    for i in range(len(x)):
        x_plus = x.copy()
        x_minus = x.copy()
        x_plus[i] += h
        x_minus[i] -= h
        grad[i] = (float(func(x_plus)) - float(func(x_minus))) / (2 * h)
    return grad
