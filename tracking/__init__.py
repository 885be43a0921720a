"""
MLflow tracking utilities for inverse-diffusion runs.

Usage:
    from tracking import ExperimentTracker

    with ExperimentTracker("newton_vs_scipy") as tracker:
        tracker.log_params({"optimizer": {"tol": 1e-5, "max_iter": 500}})
        result = newton_optimize(cost, guess, callback=tracker.log_newton_iteration)
        tracker.log_run_summary(summary, prefix="newton")
"""

from datetime import datetime
from typing import Any, Dict, Optional

import mlflow

DEFAULT_TRACKING_URI = 'mlruns'
DEFAULT_EXPERIMENT = 'inverse-diffusion'

def flatten_dict(d: Dict, prefix: str = "") -> Dict[str, Any]:
    """Flatten nested dictionary with dot notation."""
    items = {}
    for k, v in d.items():
        key = f"{prefix}.{k}" if prefix else k
        if isinstance(v, dict):
            items.update(flatten_dict(v, key))
        else:
            items[key] = v
    return items

class ExperimentTracker:
    """
    Context manager for MLflow experiment tracking.

    Example:
        with ExperimentTracker("pulse_target") as tracker:
            tracker.log_params(config)
            # ... run optimizers ...
            tracker.log_metric("newton_rmse", rmse)
    """

    def __init__(
        self,
        run_type: str,
        run_name: Optional[str] = None,
        tracking_uri: str = DEFAULT_TRACKING_URI,
        experiment_name: str = DEFAULT_EXPERIMENT,
        tags: Optional[Dict[str, str]] = None,
    ):
        self.run_type = run_type
        self.run_name = run_name or f"{run_type}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        self.experiment_name = experiment_name
        self.tags = tags or {}
        self.run = None

        mlflow.set_tracking_uri(tracking_uri)

    def __enter__(self):
        """Start MLflow run."""
        mlflow.set_experiment(self.experiment_name)
        self.run = mlflow.start_run(run_name=self.run_name)

        mlflow.set_tags({
            "run_type": self.run_type,
            **self.tags
        })

        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """End MLflow run, tagging failures with the exception type and message."""
        if exc_type is not None:
            mlflow.set_tag("status", "failed")
            mlflow.set_tag("error_type", exc_type.__name__)
            mlflow.set_tag("error", str(exc_val))
            # Optimizer failures carry their iteration context
            for attr in ("iteration", "last_cost", "last_gradient_norm"):
                value = getattr(exc_val, attr, None)
                if value is not None:
                    mlflow.set_tag(f"error_{attr}", value)
        else:
            mlflow.set_tag("status", "completed")
        mlflow.end_run()
        return False

    def log_params(self, params: Dict[str, Any], prefix: str = ""):
        """Log parameters (flattens nested dicts)."""
        mlflow.log_params(flatten_dict(params, prefix))

    def log_metric(self, key: str, value: float, step: Optional[int] = None):
        """Log a single metric."""
        mlflow.log_metric(key, value, step=step)

    def log_figure(self, figure, filename: str):
        """Log a matplotlib or plotly figure."""
        mlflow.log_figure(figure, filename)

    def log_newton_iteration(self, iteration: int, cost: float, grad_norm: float):
        """NewtonOptimizer callback: one metric point per iteration."""
        mlflow.log_metrics({"newton_cost": cost, "newton_grad_norm": grad_norm}, step=iteration)

    def log_run_summary(self, summary: Dict[str, Any], prefix: str):
        """Log numeric entries of a scoring summary as metrics, the rest as tags."""
        for key, value in summary.items():
            name = f"{prefix}_{key}"
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                mlflow.log_metric(name, value)
            else:
                mlflow.set_tag(name, str(value))

    @property
    def run_id(self) -> str:
        """Get current run ID."""
        return self.run.info.run_id if self.run else None

