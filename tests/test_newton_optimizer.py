import jax.numpy as jnp
import numpy as np
import pytest

from inverse_diffusion import (
    DerivativeOracle,
    DifferentiationError,
    InvalidConfig,
    LinearSolveError,
    NewtonOptimizer,
    StopReason,
    newton_optimize,
    solve,
)

TOL = 1e-5


def test_recovers_pulse_from_flat_guess(cost, flat_guess, target, grid, sim_config):
    result = newton_optimize(cost, flat_guess, tol=TOL, max_iter=500, verbose=False)

    assert result.iterations <= 500
    if result.non_convergence:
        assert result.stop_reason is StopReason.ITERATION_CAP
    else:
        assert result.stop_reason is StopReason.COST_TOLERANCE
        assert result.last_cost < TOL
        assert float(cost(result.candidate)) < TOL

    final = np.asarray(solve(result.candidate, sim_config, grid))
    assert np.max(np.abs(final - target)) < 1e-2


def test_quadratic_cost_converges_in_two_iterations(cost, flat_guess):
    # The cost is quadratic in the initial condition: one Newton step lands on
    # the minimizer, the second evaluation confirms it
    result = newton_optimize(cost, flat_guess, tol=TOL, verbose=False)
    assert result.converged
    assert result.iterations == 2
    assert len(result.history) == 2
    assert result.history[0]['cost'] > result.history[1]['cost']


def test_iteration_cap_is_reported(cost, flat_guess):
    result = newton_optimize(cost, flat_guess, tol=TOL, max_iter=3, step_size=0.5, verbose=False)

    assert result.stop_reason is StopReason.ITERATION_CAP
    assert result.non_convergence
    assert not result.converged
    assert result.iterations == 3
    assert result.last_cost >= TOL


def test_gradient_tolerance_stop():
    # Minimum value is 10, so only the gradient test can fire
    oracle = DerivativeOracle(lambda x: jnp.sum((x - 1.0) ** 2) + 10.0)
    result = NewtonOptimizer(oracle, tol=TOL, verbose=False).optimize(np.zeros(4))

    assert result.stop_reason is StopReason.GRADIENT_TOLERANCE
    assert result.iterations == 2
    assert np.allclose(result.candidate, 1.0)


def test_convergence_uses_pre_update_values():
    oracle = DerivativeOracle(lambda x: jnp.sum((x - 3.0) ** 2))
    optimizer = NewtonOptimizer(oracle, tol=TOL, verbose=False)
    result = optimizer.optimize(np.zeros(3))

    # Iteration 1 sees the cost at the start point, not at the updated candidate
    assert np.isclose(result.history[0]['cost'], 27.0)
    assert np.isclose(result.history[0]['grad_norm'], 6.0)
    assert result.stop_reason is StopReason.COST_TOLERANCE


def test_progress_is_printed_each_iteration(cost, flat_guess, capsys):
    newton_optimize(cost, flat_guess, tol=TOL, verbose=True)
    out = capsys.readouterr().out
    assert out.count("Cost Function =") == 2
    assert "max(grad)" in out


def test_callback_receives_each_iteration(cost, flat_guess):
    calls = []
    result = newton_optimize(
        cost, flat_guess, tol=TOL, verbose=False,
        callback=lambda it, f, g: calls.append((it, f, g)),
    )
    assert [c[0] for c in calls] == list(range(1, result.iterations + 1))
    assert calls[-1][1] == result.last_cost


def test_singular_hessian_raises_with_context():
    # Linear cost: zero Hessian
    oracle = DerivativeOracle(lambda x: jnp.sum(x))
    optimizer = NewtonOptimizer(oracle, tol=TOL, verbose=False)

    with pytest.raises(LinearSolveError) as excinfo:
        optimizer.optimize(np.ones(5))

    err = excinfo.value
    assert err.iteration == 0
    assert np.isclose(err.last_cost, 5.0)
    assert np.isclose(err.last_gradient_norm, 1.0)


def test_rank_deficient_hessian_raises():
    M = jnp.array([[1.0, 1.0], [1.0, 1.0]])
    oracle = DerivativeOracle(lambda x: 0.5 * x @ M @ x + x[0])
    with pytest.raises(LinearSolveError):
        NewtonOptimizer(oracle, tol=TOL, verbose=False).optimize(np.array([1.0, 0.0]))


def test_differentiation_error_aborts_run():
    oracle = DerivativeOracle(lambda x: jnp.sum(jnp.log(x)))
    optimizer = NewtonOptimizer(oracle, tol=TOL, verbose=False)

    with pytest.raises(DifferentiationError) as excinfo:
        optimizer.optimize(np.array([-1.0, 1.0]))
    assert excinfo.value.iteration == 0


def test_initial_guess_is_not_mutated(cost, flat_guess):
    guess = flat_guess.copy()
    newton_optimize(cost, guess, tol=TOL, verbose=False)
    assert np.array_equal(guess, flat_guess)


@pytest.mark.parametrize("kwargs", [
    {"tol": 0.0},
    {"max_iter": 0},
    {"step_size": -1.0},
])
def test_invalid_optimizer_settings(kwargs):
    oracle = DerivativeOracle(lambda x: jnp.sum(x ** 2))
    with pytest.raises(InvalidConfig):
        NewtonOptimizer(oracle, **kwargs)
