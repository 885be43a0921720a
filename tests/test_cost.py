import jax
import jax.numpy as jnp
import numpy as np
import pytest

from inverse_diffusion import CostFunction, InvalidConfig


def test_cost_at_generating_field_is_regularization_only(cost, pulse):
    assert float(cost.fit_term(pulse)) == 0.0

    expected = 1e-6 * np.sum((pulse - pulse.mean()) ** 2)
    assert np.isclose(float(cost(pulse)), expected, rtol=1e-12)
    # Ten ones out of twenty cells: 20 * 0.5^2 = 5
    assert np.isclose(float(cost(pulse)), 5e-6)


def test_cost_is_non_negative(cost, grid):
    rng = np.random.default_rng(1)
    for _ in range(5):
        candidate = rng.normal(0.0, 2.0, grid.n_cells)
        assert float(cost(candidate)) >= 0.0


def test_regularization_ignores_constant_shift(cost, pulse):
    assert np.isclose(float(cost.regularization_term(pulse + 3.0)), float(cost.regularization_term(pulse)))


def test_flat_guess_cost(cost, flat_guess, target):
    # A flat field does not diffuse, so the fit term is the plain misfit
    assert float(cost.regularization_term(flat_guess)) == 0.0
    assert np.isclose(float(cost(flat_guess)), np.sum((target - 1.0) ** 2))


def test_cost_is_differentiable(cost, flat_guess):
    grad = jax.grad(cost)(jnp.asarray(flat_guess))
    assert grad.shape == flat_guess.shape
    assert np.all(np.isfinite(np.asarray(grad)))


def test_regularization_weight_is_configurable(target, grid, sim_config, pulse):
    no_reg = CostFunction(target, grid, sim_config, regularization=0.0)
    assert float(no_reg(pulse)) == 0.0


def test_invalid_cost_arguments(target, grid, sim_config):
    with pytest.raises(InvalidConfig):
        CostFunction(target[:-1], grid, sim_config)
    with pytest.raises(InvalidConfig):
        CostFunction(target, grid, sim_config, regularization=-1.0)


def test_target_is_captured_by_value(grid, sim_config, pulse):
    target = np.zeros(grid.n_cells)
    cost = CostFunction(target, grid, sim_config)
    before = float(cost(pulse))
    target[:] = 5.0
    assert float(cost(pulse)) == before
