# Inverse design of 1D diffusion initial conditions
from .errors import (
    InverseDesignError,
    InvalidConfig,
    OptimizationError,
    DifferentiationError,
    LinearSolveError,
)
from .grid import Grid, build_grid
from .jax_simulator import (
    SimulationConfig,
    JAXDiffusionSimulator,
    solve,
    solve_pde,
    simulate_history,
)
from .targets import heaviside, rectangular_pulse, gaussian_bump, initial_profile, make_target
from .cost import CostFunction
from .derivatives import DerivativeBundle, DerivativeOracle, finite_difference_gradient
from .newton_optimizer import (
    NewtonOptimizer,
    OptimizationResult,
    OptimizationState,
    StopReason,
    newton_optimize,
)
from .reference_optimizer import ReferenceResult, optimize_reference
from .config import ProblemConfig, load_config, load_problem_config, merge_configs
