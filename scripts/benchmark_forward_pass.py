#!/usr/bin/env python
"""
Benchmark a single forward pass and each derivative strategy.

This will help us understand:
1. How long one full-horizon forward solve takes
2. How much the joint value/gradient/Hessian call saves over three separate calls
3. Which backend JAX is running on
"""

import argparse
import sys
import time
from pathlib import Path

import numpy as np

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from inverse_diffusion import (
    CostFunction,
    DerivativeOracle,
    SimulationConfig,
    build_grid,
    make_target,
    rectangular_pulse,
    solve,
)
from inverse_diffusion.jax_simulator import check_backend


def time_call(fn, n_runs: int) -> dict:
    """Warm up once (JIT compile), then time n_runs calls."""
    start = time.time()
    fn()
    compile_time = time.time() - start

    run_times = []
    for _ in range(n_runs):
        start = time.time()
        fn()
        run_times.append(time.time() - start)

    return {
        'compile': compile_time,
        'mean': float(np.mean(run_times)),
        'std': float(np.std(run_times)),
        'min': min(run_times),
        'max': max(run_times),
    }


def main():
    parser = argparse.ArgumentParser(description="Benchmark forward solve and derivative oracle")
    parser.add_argument("--n-cells", type=int, default=20)
    parser.add_argument("--t-final", type=float, default=2.0)
    parser.add_argument("--n-runs", type=int, default=10)
    args = parser.parse_args()

    info = check_backend()
    print(f"JAX backend: {info['default_backend']}")
    print(f"Devices: {info['devices']}")
    print(f"float64 enabled: {info['x64_enabled']}")

    grid = build_grid(2.0, args.n_cells)
    config = SimulationConfig(t_final=args.t_final, diffusivity=0.1, cfl=0.2)
    dt, n_steps = config.time_step(grid)
    print(f"\nNx={grid.n_cells}, dt={dt:.6g}, n_steps={n_steps}")

    C0 = rectangular_pulse(grid)
    target = make_target(C0, config, grid)
    cost = CostFunction(target, grid, config)
    guess = np.ones(grid.n_cells)

    results = {
        'forward solve': time_call(lambda: solve(C0, config, grid).block_until_ready(), args.n_runs),
    }
    for strategy in ('joint', 'separate'):
        oracle = DerivativeOracle(cost, strategy=strategy)
        results[f'oracle ({strategy})'] = time_call(lambda: oracle.evaluate(guess), args.n_runs)

    print(f"\n{'Operation':<20} {'Compile (s)':>12} {'Mean (ms)':>12} {'Std (ms)':>10}")
    print("-" * 58)
    for name, r in results.items():
        print(f"{name:<20} {r['compile']:>12.3f} {r['mean'] * 1e3:>12.3f} {r['std'] * 1e3:>10.3f}")

    speedup = results['oracle (separate)']['mean'] / results['oracle (joint)']['mean']
    print(f"\nJoint oracle speedup over separate calls: {speedup:.2f}x")


if __name__ == "__main__":
    main()
