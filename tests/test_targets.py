import numpy as np
import pytest

from inverse_diffusion import (
    InvalidConfig,
    gaussian_bump,
    heaviside,
    initial_profile,
    make_target,
    rectangular_pulse,
)


def test_heaviside():
    out = heaviside(np.array([-1.0, -1e-12, 0.0, 2.0]))
    assert np.array_equal(out, [0.0, 0.0, 1.0, 1.0])


def test_rectangular_pulse(grid):
    C0 = rectangular_pulse(grid)
    # Centres 0.55 .. 1.45 fall inside [0.51, 1.49)
    assert C0.sum() == 10
    assert set(np.unique(C0)) == {0.0, 1.0}
    inside = (grid.cell_centers >= 0.51) & (grid.cell_centers < 1.49)
    assert np.array_equal(C0 == 1.0, inside)


def test_rectangular_pulse_rejects_empty_interval(grid):
    with pytest.raises(InvalidConfig):
        rectangular_pulse(grid, left=1.0, right=0.5)


def test_gaussian_bump(grid):
    C0 = gaussian_bump(grid, sigma=0.1, offset=1.0)
    assert np.all(C0 > 1.0)
    # Symmetric about the domain centre
    assert np.allclose(C0, C0[::-1])
    assert np.isclose(C0.max(), np.exp(-0.05**2 / 0.1) + 1.0)


def test_initial_profile_dispatch(grid):
    assert np.array_equal(initial_profile('pulse', grid), rectangular_pulse(grid))
    assert np.array_equal(initial_profile('gaussian', grid, sigma=0.2), gaussian_bump(grid, sigma=0.2))
    with pytest.raises(InvalidConfig):
        initial_profile('triangle', grid)


def test_make_target_diffuses_and_conserves_mass(grid, sim_config, pulse):
    target = make_target(pulse, sim_config, grid)
    assert isinstance(target, np.ndarray)
    assert np.isclose(target.sum(), pulse.sum())
    assert target.max() < 1.0
    assert target.min() > 0.0
