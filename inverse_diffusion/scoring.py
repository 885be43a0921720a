"""
Verification metrics for optimized initial conditions.

The optimized candidate is pushed through the forward solver again and the
resulting final field is compared with the target:

RMSE      = sqrt(mean((C_final - C_goal)^2))
max error = max(|C_final - C_goal|)
SSE       = sum((C_final - C_goal)^2)   (the fit term of the cost)
"""

import numpy as np
from typing import Dict, List, Optional


def compute_fit_metrics(final: np.ndarray, target: np.ndarray) -> Dict[str, float]:
    """
    Compare a recomputed final field with the target.

    Args:
        final: Final field from the optimized initial condition
        target: Goal field

    Returns:
        Dict with rmse, max_abs_error and sum_sq_error
    """
    residual = np.asarray(final, dtype=np.float64) - np.asarray(target, dtype=np.float64)
    if residual.size == 0:
        return {'rmse': 0.0, 'max_abs_error': 0.0, 'sum_sq_error': 0.0}

    return {
        'rmse': float(np.sqrt(np.mean(residual ** 2))),
        'max_abs_error': float(np.max(np.abs(residual))),
        'sum_sq_error': float(np.sum(residual ** 2)),
    }


def compute_mass_error(initial: np.ndarray, final: np.ndarray, dx: float = 1.0) -> float:
    """Absolute change in total mass between two fields."""
    return float(abs(np.sum(final) - np.sum(initial)) * dx)


def compare_candidates(a: np.ndarray, b: np.ndarray) -> float:
    """Max-abs difference between two candidate fields."""
    return float(np.max(np.abs(np.asarray(a) - np.asarray(b))))


def summarize_run(
    name: str,
    final: np.ndarray,
    target: np.ndarray,
    iterations: int,
    stop_reason: Optional[str] = None,
) -> Dict:
    """Flat summary dict for printing or metric logging."""
    summary = {'optimizer': name, 'iterations': int(iterations)}
    if stop_reason is not None:
        summary['stop_reason'] = stop_reason
    summary.update(compute_fit_metrics(final, target))
    return summary


def format_summary_table(summaries: List[Dict]) -> str:
    """Fixed-width comparison table of run summaries."""
    lines = [
        f"{'Optimizer':<12} {'Iters':>6} {'RMSE':>14} {'Max error':>14} {'Stop reason':<20}",
        '-' * 70,
    ]
    for s in summaries:
        lines.append(
            f"{s['optimizer']:<12} {s['iterations']:>6d} {s['rmse']:>14.6e} "
            f"{s['max_abs_error']:>14.6e} {s.get('stop_reason', '-'):<20}"
        )
    return '\n'.join(lines)
