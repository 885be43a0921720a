#!/usr/bin/env python
"""
Compare AD gradients of the cost against central finite differences.

Usage:
    python scripts/check_gradients.py
    python scripts/check_gradients.py --index 7 --profile gaussian
"""

import argparse
import sys
from pathlib import Path

import jax
import jax.numpy as jnp
import numpy as np

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from inverse_diffusion import CostFunction, initial_profile, make_target
from inverse_diffusion.config import load_problem_config

H_VALUES = [1e-2, 1e-3, 1e-4, 1e-5, 1e-6, 1e-7, 1e-8]


def main():
    parser = argparse.ArgumentParser(description="AD vs FD gradient comparison")
    parser.add_argument("--config", "-c", default=str(project_root / "configs" / "default.yaml"))
    parser.add_argument("--index", "-i", type=int, default=0, help="Component of the gradient to check")
    parser.add_argument("--profile", choices=["pulse", "gaussian"], default=None)
    args = parser.parse_args()

    overrides = {"target": {"profile": args.profile}} if args.profile else None
    config = load_problem_config(args.config, overrides)
    grid = config.build_grid()
    sim_config = config.simulation_config()

    if not 0 <= args.index < grid.n_cells:
        parser.error(f"--index must be in [0, {grid.n_cells})")

    target = make_target(initial_profile(config.profile, grid, **config.profile_params), sim_config, grid)
    cost = CostFunction(target, grid, sim_config, regularization=config.regularization)
    x0 = np.full(grid.n_cells, config.initial_guess)

    print(f"\n{'='*60}")
    print(f"Gradient Comparison for component {args.index}")
    print(f"{'='*60}")

    ad_value = float(jax.grad(cost)(jnp.asarray(x0))[args.index])
    print(f"AD gradient[{args.index}] = {ad_value:.15e}")

    fd_values = []
    for h in H_VALUES:
        x_plus = x0.copy()
        x_minus = x0.copy()
        x_plus[args.index] += h
        x_minus[args.index] -= h
        fd_values.append((float(cost(x_plus)) - float(cost(x_minus))) / (2 * h))

    # Converged FD value: where successive differences are smallest
    diffs = [abs(fd_values[i] - fd_values[i - 1]) for i in range(1, len(fd_values))]
    best = int(np.argmin(diffs)) + 1
    converged_fd = fd_values[best]

    print(f"\n{'h':<12} {'FD Gradient':<25} {'Error vs AD':<20}")
    print(f"{'-'*60}")
    for h, fd in zip(H_VALUES, fd_values):
        print(f"{h:<12.0e} {fd:<25.15e} {abs(fd - ad_value):<20.6e}")

    print(f"\nConverged FD gradient (h={H_VALUES[best]:.0e}): {converged_fd:.15e}")
    if abs(converged_fd) > 1e-15:
        rel_error = abs(ad_value - converged_fd) / abs(converged_fd)
        print(f"Relative error: {rel_error:.6e}")
        print(f"Matching significant digits: ~{-np.log10(rel_error + 1e-16):.1f}")


if __name__ == "__main__":
    main()
