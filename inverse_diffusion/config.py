"""
YAML configuration for inverse-design runs.

Usage:
    config = load_problem_config("configs/default.yaml", overrides={"problem": {"n_cells": 40}})
    grid = config.build_grid()
    sim_config = config.simulation_config()
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from .errors import InvalidConfig
from .grid import Grid, build_grid
from .jax_simulator import SimulationConfig

DEFAULT_CONFIG_PATH = "configs/default.yaml"


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def merge_configs(base: Dict, override: Dict) -> Dict:
    """Recursively merge override config into base config."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


@dataclass
class ProblemConfig:
    """Typed view of the YAML sections."""
    length: float = 2.0
    n_cells: int = 20
    diffusivity: float = 0.1
    t_final: float = 2.0
    cfl: float = 0.2

    profile: str = 'pulse'
    profile_params: Dict[str, float] = field(default_factory=dict)

    tol: float = 1e-5
    max_iter: int = 500
    step_size: float = 1.0
    regularization: float = 1e-6
    initial_guess: float = 1.0
    derivative_strategy: str = 'auto'

    reference_enabled: bool = True
    reference_method: str = 'trust-exact'
    reference_max_iter: int = 1000

    tracking_uri: str = 'mlruns'
    experiment_name: str = 'inverse-diffusion'

    plot_dir: Optional[str] = None

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'ProblemConfig':
        """
        Build from a nested dict with problem/target/optimizer/reference/mlflow/output sections.

        The target section names a profile and may hold one parameter block
        per profile; only the block matching the chosen profile is used.

        Raises:
            InvalidConfig: values of the wrong type
        """
        problem = config.get('problem', {}) or {}
        target = config.get('target', {}) or {}
        profile = str(target.get('profile', 'pulse'))
        profile_params = target.get(profile, {}) or {}
        optimizer = config.get('optimizer', {}) or {}
        reference = config.get('reference', {}) or {}
        mlflow_cfg = config.get('mlflow', {}) or {}
        output = config.get('output', {}) or {}

        try:
            return cls(
                length=float(problem.get('length', 2.0)),
                n_cells=int(problem.get('n_cells', 20)),
                diffusivity=float(problem.get('diffusivity', 0.1)),
                t_final=float(problem.get('t_final', 2.0)),
                cfl=float(problem.get('cfl', 0.2)),
                profile=profile,
                profile_params={k: float(v) for k, v in profile_params.items()},
                tol=float(optimizer.get('tol', 1e-5)),
                max_iter=int(optimizer.get('max_iter', 500)),
                step_size=float(optimizer.get('step_size', 1.0)),
                regularization=float(optimizer.get('regularization', 1e-6)),
                initial_guess=float(optimizer.get('initial_guess', 1.0)),
                derivative_strategy=str(optimizer.get('derivative_strategy', 'auto')),
                reference_enabled=bool(reference.get('enabled', True)),
                reference_method=str(reference.get('method', 'trust-exact')),
                reference_max_iter=int(reference.get('max_iter', 1000)),
                tracking_uri=str(mlflow_cfg.get('tracking_uri', 'mlruns')),
                experiment_name=str(mlflow_cfg.get('experiment_name', 'inverse-diffusion')),
                plot_dir=output.get('plot_dir'),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise InvalidConfig(f"Invalid configuration value: {e}") from e

    def build_grid(self) -> Grid:
        return build_grid(self.length, self.n_cells)

    def simulation_config(self) -> SimulationConfig:
        return SimulationConfig(t_final=self.t_final, diffusivity=self.diffusivity, cfl=self.cfl)


def load_problem_config(
    config_path: str = DEFAULT_CONFIG_PATH,
    overrides: Optional[Dict[str, Any]] = None,
) -> ProblemConfig:
    """Load YAML, apply overrides and return a ProblemConfig."""
    config = load_config(config_path)
    if overrides:
        config = merge_configs(config, overrides)
    return ProblemConfig.from_dict(config)
