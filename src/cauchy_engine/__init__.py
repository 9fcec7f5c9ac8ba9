"""cauchy_engine scalar initial-value problem integrators."""

from __future__ import annotations

from .config import IntegratorSettings, integrator_from_mapping
from .equation import (
    DEFAULT_EQUATION,
    ScalarEquation,
    ScalarRHS,
    analytical_solution,
    default_rhs,
)
from .errors import (
    CauchyEngineError,
    ConfigurationError,
    ConvergenceFailure,
    NotYetRunError,
    ReportClosedError,
)
from .integrators import (
    AdaptiveStepIntegrator,
    AdaptiveStepRecord,
    FixedStepIntegrator,
    KuttaMersonStep,
    MidpointStep,
    build_integrator,
    kutta_merson_step,
    midpoint_step,
    normalize_method,
)
from .run_report import RunReport
from .solution_core import ProblemConfig, SolutionCore, fill_grid, find_step

__all__ = [
    "DEFAULT_EQUATION",
    "AdaptiveStepIntegrator",
    "AdaptiveStepRecord",
    "CauchyEngineError",
    "ConfigurationError",
    "ConvergenceFailure",
    "FixedStepIntegrator",
    "IntegratorSettings",
    "KuttaMersonStep",
    "MidpointStep",
    "NotYetRunError",
    "ProblemConfig",
    "ReportClosedError",
    "RunReport",
    "ScalarEquation",
    "ScalarRHS",
    "SolutionCore",
    "analytical_solution",
    "build_integrator",
    "default_rhs",
    "fill_grid",
    "find_step",
    "integrator_from_mapping",
    "kutta_merson_step",
    "midpoint_step",
    "normalize_method",
]

__version__ = "0.1.0"
