import numpy as np

from inverse_diffusion.visualize import (
    plot_convergence_history,
    plot_final_fields,
    plot_initial_conditions,
)


def test_initial_conditions_figure(grid, pulse, flat_guess):
    fig = plot_initial_conditions(grid.cell_centers, specified=pulse, own=pulse, reference=pulse, guess=flat_guess)
    assert len(fig.data) == 4
    assert fig.layout.title.text == 'Optimized Initial Condition'

    partial = plot_initial_conditions(grid.cell_centers, own=pulse)
    assert len(partial.data) == 1


def test_final_fields_figure(grid, target):
    finals = {'Newton': target + 1e-3, 'scipy': target - 1e-3}
    fig = plot_final_fields(grid.cell_centers, target, finals)
    # Target + one field trace and one residual trace per optimizer
    assert len(fig.data) == 5
    assert np.allclose(fig.data[2].y, 1e-3)


def test_convergence_figure():
    history = [
        {'iteration': 1, 'cost': 3.2, 'grad_norm': 1.5},
        {'iteration': 2, 'cost': 4e-6, 'grad_norm': 2e-9},
    ]
    fig = plot_convergence_history(history)
    assert len(fig.data) == 2
    assert list(fig.data[0].x) == [1, 2]
    assert fig.layout.yaxis.type == 'log'
