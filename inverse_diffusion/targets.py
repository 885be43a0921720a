"""
Initial profiles and target-field generation.

These run once, offline, before any optimization. They use plain NumPy and
may be non-differentiable (the Heaviside step is).
"""

import numpy as np

from .errors import InvalidConfig
from .grid import Grid
from .jax_simulator import SimulationConfig, solve


def heaviside(x) -> np.ndarray:
    """Unit step: 1 where x >= 0, else 0."""
    return np.where(np.asarray(x) >= 0.0, 1.0, 0.0)


def rectangular_pulse(grid: Grid, left: float = 0.51, right: float = 1.49) -> np.ndarray:
    """Unit pulse covering the cells whose centres lie in [left, right)."""
    if not right > left:
        raise InvalidConfig(f"pulse needs right > left, got left={left}, right={right}")
    xm = grid.cell_centers
    return heaviside(xm - left) - heaviside(xm - right)


def gaussian_bump(grid: Grid, sigma: float = 0.1, offset: float = 1.0) -> np.ndarray:
    """exp(-(x - L/2)^2 / sigma) + offset"""
    if not sigma > 0:
        raise InvalidConfig(f"sigma must be > 0, got {sigma}")
    xm = grid.cell_centers
    return np.exp(-(xm - grid.length / 2.0) ** 2 / sigma) + offset


PROFILES = {
    'pulse': rectangular_pulse,
    'gaussian': gaussian_bump,
}


def initial_profile(name: str, grid: Grid, **kwargs) -> np.ndarray:
    """Build a named initial profile ('pulse' or 'gaussian')."""
    try:
        builder = PROFILES[name]
    except KeyError:
        raise InvalidConfig(
            f"Unknown profile {name!r}, expected one of {sorted(PROFILES)}"
        ) from None
    return builder(grid, **kwargs)


def make_target(initial: np.ndarray, config: SimulationConfig, grid: Grid) -> np.ndarray:
    """Run the forward solver once to get a realistic goal field."""
    return np.array(solve(initial, config, grid))
