import os

os.environ.setdefault('JAX_PLATFORMS', 'cpu')
os.environ.setdefault('XLA_PYTHON_CLIENT_PREALLOCATE', 'false')

import numpy as np
import pytest

from inverse_diffusion import (
    CostFunction,
    SimulationConfig,
    build_grid,
    make_target,
    rectangular_pulse,
)


@pytest.fixture
def grid():
    return build_grid(2.0, 20)


@pytest.fixture
def sim_config():
    return SimulationConfig(t_final=2.0, diffusivity=0.1, cfl=0.2)


@pytest.fixture
def pulse(grid):
    return rectangular_pulse(grid)


@pytest.fixture
def target(pulse, sim_config, grid):
    return make_target(pulse, sim_config, grid)


@pytest.fixture
def cost(target, grid, sim_config):
    return CostFunction(target, grid, sim_config)


@pytest.fixture
def flat_guess(grid):
    return np.ones(grid.n_cells)
