import jax.numpy as jnp
import numpy as np
import pytest

from inverse_diffusion import (
    InvalidConfig,
    ReferenceResult,
    newton_optimize,
    optimize_reference,
    solve,
)
from inverse_diffusion.scoring import compute_fit_metrics

TOL = 1e-5
FIELD_BOUND = 1e-2


def test_reference_matches_target(cost, flat_guess, target, grid, sim_config):
    result = optimize_reference(cost, flat_guess, tol=TOL, max_iter=1000)

    assert isinstance(result, ReferenceResult)
    assert result.iterations <= 1000
    final = np.asarray(solve(result.candidate, sim_config, grid))
    assert compute_fit_metrics(final, target)['max_abs_error'] < FIELD_BOUND


def test_newton_and_reference_agree(cost, flat_guess, target, grid, sim_config):
    newton = newton_optimize(cost, flat_guess, tol=TOL, verbose=False)
    reference = optimize_reference(cost, flat_guess, tol=TOL)

    final_newton = np.asarray(solve(newton.candidate, sim_config, grid))
    final_reference = np.asarray(solve(reference.candidate, sim_config, grid))

    assert np.max(np.abs(final_newton - target)) < FIELD_BOUND
    assert np.max(np.abs(final_reference - target)) < FIELD_BOUND
    assert np.max(np.abs(final_newton - final_reference)) < FIELD_BOUND


@pytest.mark.parametrize("method", ["Newton-CG", "trust-ncg"])
def test_other_hessian_methods(method):
    result = optimize_reference(lambda x: jnp.sum((x - 2.0) ** 2), np.zeros(3), method=method)
    assert np.allclose(result.candidate, 2.0, atol=1e-4)


def test_method_without_hessian_is_rejected(cost, flat_guess):
    with pytest.raises(InvalidConfig):
        optimize_reference(cost, flat_guess, method="BFGS")
