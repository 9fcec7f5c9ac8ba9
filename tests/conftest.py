"""Global pytest configuration and shared fixtures for cauchy_engine."""

from __future__ import annotations

import numpy as np
import pytest

from cauchy_engine.equation import ScalarEquation
from cauchy_engine.solution_core import ProblemConfig

# -----------------------------------------------------------------------------
# Equations with known closed forms
# -----------------------------------------------------------------------------


def _linear_rhs(x: float, y: float) -> float:
    return x - y


def _linear_exact(x: np.ndarray) -> np.ndarray:
    x_arr = np.asarray(x, dtype=float)
    return x_arr - 1.0 + 2.0 * np.exp(-x_arr)


@pytest.fixture
def linear_equation() -> ScalarEquation:
    """y' = x - y with y(0) = 1, exact solution x - 1 + 2 exp(-x)."""
    return ScalarEquation(rhs=_linear_rhs, analytical=_linear_exact, name="y' = x - y")


# -----------------------------------------------------------------------------
# Configurations
# -----------------------------------------------------------------------------


@pytest.fixture
def default_config() -> ProblemConfig:
    """Reference problem: [0, 5], 33 control points, (x0, y0) = (0, 1)."""
    return ProblemConfig()


@pytest.fixture
def tight_config() -> ProblemConfig:
    """Default problem with a tolerance that forces step halving."""
    return ProblemConfig(tolerance=1e-9)
