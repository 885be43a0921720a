#!/usr/bin/env python
"""
Recover the initial condition of a 1D diffusion problem from its final state.

Usage:
    python scripts/run_inverse.py
    python scripts/run_inverse.py --config configs/default.yaml --profile gaussian
    python scripts/run_inverse.py --n-cells 40 --no-reference --plot-dir plots
    python scripts/run_inverse.py --track --run-name pulse_newton

This script:
1. Builds the grid and a target field by solving forward from a known profile
2. Runs the Newton optimizer (and optionally the scipy reference) from a flat guess
3. Recomputes final fields from the optimized initial conditions and reports the fit
"""

import argparse
import sys
from pathlib import Path

import numpy as np

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from inverse_diffusion import (
    CostFunction,
    InverseDesignError,
    initial_profile,
    make_target,
    newton_optimize,
    optimize_reference,
    solve,
)
from inverse_diffusion.config import load_config, merge_configs, ProblemConfig
from inverse_diffusion.scoring import compare_candidates, format_summary_table, summarize_run
from inverse_diffusion import visualize


def parse_args():
    parser = argparse.ArgumentParser(description="Newton inverse design of a diffusion initial condition")
    parser.add_argument("--config", "-c", default=str(project_root / "configs" / "default.yaml"), help="Config file path")
    parser.add_argument("--n-cells", type=int, default=None, help="Override number of cells")
    parser.add_argument("--t-final", type=float, default=None, help="Override simulation horizon")
    parser.add_argument("--profile", choices=["pulse", "gaussian"], default=None, help="Initial profile used to build the target")
    parser.add_argument("--strategy", choices=["auto", "joint", "separate"], default=None, help="Derivative strategy")
    parser.add_argument("--no-reference", action="store_true", help="Skip the scipy reference optimizer")
    parser.add_argument("--plot-dir", default=None, help="Write HTML figures here")
    parser.add_argument("--track", action="store_true", help="Log the run to MLflow")
    parser.add_argument("--run-name", "-r", default=None, help="Custom MLflow run name")
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress per-iteration output")
    return parser.parse_args()


def build_overrides(args) -> dict:
    overrides = {}
    if args.n_cells is not None:
        overrides.setdefault("problem", {})["n_cells"] = args.n_cells
    if args.t_final is not None:
        overrides.setdefault("problem", {})["t_final"] = args.t_final
    if args.profile is not None:
        overrides.setdefault("target", {})["profile"] = args.profile
    if args.strategy is not None:
        overrides.setdefault("optimizer", {})["derivative_strategy"] = args.strategy
    if args.no_reference:
        overrides.setdefault("reference", {})["enabled"] = False
    if args.plot_dir is not None:
        overrides.setdefault("output", {})["plot_dir"] = args.plot_dir
    return overrides


def run(config: ProblemConfig, tracker=None, verbose: bool = True) -> dict:
    """Run both optimizers on one target and return summaries and fields."""
    grid = config.build_grid()
    sim_config = config.simulation_config()
    dt, n_steps = sim_config.time_step(grid)

    if verbose:
        print(f"Grid: Nx={grid.n_cells}, L={grid.length}, dx={grid.dx:.6g}")
        print(f"Time stepping: dt={dt:.6g}, n_steps={n_steps}, "
              f"diffusion number={sim_config.diffusion_number(grid):.3f}")

    # Target from a known initial profile (offline, not differentiated)
    specified_ic = initial_profile(config.profile, grid, **config.profile_params)
    target = make_target(specified_ic, sim_config, grid)

    cost = CostFunction(target, grid, sim_config, regularization=config.regularization)
    guess = np.full(grid.n_cells, config.initial_guess)

    callback = tracker.log_newton_iteration if tracker is not None else None
    newton = newton_optimize(
        cost, guess,
        tol=config.tol,
        max_iter=config.max_iter,
        step_size=config.step_size,
        strategy=config.derivative_strategy,
        verbose=verbose,
        callback=callback,
    )
    if newton.non_convergence and verbose:
        print(f"WARNING: Newton optimizer hit the iteration cap ({config.max_iter}) without converging")

    finals = {"Newton": np.array(solve(newton.candidate, sim_config, grid))}
    summaries = [summarize_run("newton", finals["Newton"], target, newton.iterations, newton.stop_reason.value)]
    results = {
        "grid": grid,
        "target": target,
        "specified_ic": specified_ic,
        "newton": newton,
        "finals": finals,
    }

    if config.reference_enabled:
        reference = optimize_reference(
            cost, guess,
            tol=config.tol,
            max_iter=config.reference_max_iter,
            method=config.reference_method,
            verbose=verbose,
        )
        finals["scipy"] = np.array(solve(reference.candidate, sim_config, grid))
        summaries.append(summarize_run("scipy", finals["scipy"], target, reference.iterations,
                                       "success" if reference.success else reference.message))
        results["reference"] = reference
        results["candidate_difference"] = compare_candidates(newton.candidate, reference.candidate)

    results["summaries"] = summaries

    if verbose:
        print()
        print(format_summary_table(summaries))
        if "candidate_difference" in results:
            print(f"\nmax |Newton IC - scipy IC| = {results['candidate_difference']:.6e}")

    if tracker is not None:
        for s in summaries:
            tracker.log_run_summary(s, prefix=s["optimizer"])
        if "candidate_difference" in results:
            tracker.log_metric("candidate_difference", results["candidate_difference"])

    return results


def save_figures(results: dict, plot_dir: str, tracker=None):
    out = Path(plot_dir)
    out.mkdir(parents=True, exist_ok=True)
    grid = results["grid"]
    reference = results.get("reference")

    figures = {
        "initial_conditions.html": visualize.plot_initial_conditions(
            grid.cell_centers,
            specified=results["specified_ic"],
            own=results["newton"].candidate,
            reference=reference.candidate if reference is not None else None,
        ),
        "final_fields.html": visualize.plot_final_fields(grid.cell_centers, results["target"], results["finals"]),
        "convergence.html": visualize.plot_convergence_history(results["newton"].history),
    }
    for filename, fig in figures.items():
        fig.write_html(str(out / filename))
        if tracker is not None:
            tracker.log_figure(fig, filename)
    print(f"Figures written to {out}")


def main():
    args = parse_args()

    merged = merge_configs(load_config(args.config), build_overrides(args))
    verbose = not args.quiet

    try:
        config = ProblemConfig.from_dict(merged)
        if args.track:
            from tracking import ExperimentTracker

            with ExperimentTracker(
                run_type=f"inverse_{config.profile}",
                run_name=args.run_name,
                tracking_uri=config.tracking_uri,
                experiment_name=config.experiment_name,
            ) as tracker:
                tracker.log_params(merged)
                results = run(config, tracker=tracker, verbose=verbose)
                if config.plot_dir:
                    save_figures(results, config.plot_dir, tracker=tracker)
                print(f"\nRun completed! Run ID: {tracker.run_id}")
        else:
            results = run(config, verbose=verbose)
            if config.plot_dir:
                save_figures(results, config.plot_dir)
    except InverseDesignError as e:
        print(f"ERROR: {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
