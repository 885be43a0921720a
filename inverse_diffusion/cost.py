"""
Least-squares misfit between the simulated final field and the target, plus
a small penalty on the spread of the initial condition.
"""

import jax.numpy as jnp
import numpy as np

from .errors import InvalidConfig
from .grid import Grid
from .jax_simulator import SimulationConfig, solve

DEFAULT_REGULARIZATION = 1e-6


class CostFunction:
    """
    cost(c) = sum((target - solve(c))^2) + lam * sum((c - mean(c))^2)

    Callable and JAX-traceable, so it can be handed to jax.grad/jax.hessian
    directly. Holds its target, grid and config; no module-level state.
    """

    def __init__(
        self,
        target,
        grid: Grid,
        config: SimulationConfig,
        regularization: float = DEFAULT_REGULARIZATION,
    ):
        target = np.array(target, dtype=np.float64)
        if target.shape != (grid.n_cells,):
            raise InvalidConfig(
                f"target shape {target.shape} does not match grid ({grid.n_cells},)"
            )
        if not regularization >= 0:
            raise InvalidConfig(f"regularization must be >= 0, got {regularization}")

        target.setflags(write=False)
        self.target = target
        self.grid = grid
        self.config = config
        self.regularization = float(regularization)

    def fit_term(self, candidate):
        C = solve(candidate, self.config, self.grid)
        return jnp.sum((self.target - C) ** 2)

    def regularization_term(self, candidate):
        C0 = jnp.asarray(candidate, dtype=jnp.float64)
        return self.regularization * jnp.sum((C0 - jnp.mean(C0)) ** 2)

    def __call__(self, candidate):
        return self.fit_term(candidate) + self.regularization_term(candidate)
