# src/cauchy_engine/equation.py
"""Right-hand sides and closed-form solutions for scalar Cauchy problems.

The default problem is

    y' = y - 2x / y,    y(0) = 1,

whose exact solution is y(x) = sqrt(2x + 1). Both functions evaluate with
NumPy floating semantics: a zero denominator or a negative radicand yields
inf/nan (NumPy emits its usual RuntimeWarning) instead of raising, so domain
faults surface in the solution arrays rather than aborting a run.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

_NO_ANALYTICAL_ERROR_MSG = "Equation {name!r} has no analytical solution attached"

ScalarRHS = Callable[[float, float], float]
AnalyticalSolution = Callable[[npt.ArrayLike], npt.ArrayLike]


def default_rhs(x: float, y: float) -> float:
    """Evaluate f(x, y) = y - 2x / y for the default equation.

    Args:
        x: Independent variable.
        y: Dependent variable. Must be nonzero for a finite result.

    Returns:
        Value of the right-hand side.
    """
    y_val = np.float64(y)
    return y_val - 2.0 * np.float64(x) / y_val


def analytical_solution(x: npt.ArrayLike) -> np.floating | npt.NDArray[np.floating]:
    """Exact solution sqrt(2x + 1) of the default equation.

    Vectorized over array input, so a whole grid can be evaluated at once for
    plotting. Returns nan where 2x + 1 < 0.

    Args:
        x: Scalar or array of x-values.

    Returns:
        Scalar or array of y-values.
    """
    return np.sqrt(2.0 * np.asarray(x, dtype=np.float64) + 1.0)


@dataclass(slots=True, frozen=True)
class ScalarEquation:
    """A scalar first-order ODE y' = f(x, y) with an optional exact solution.

    Attributes:
        rhs: Right-hand side f(x, y).
        analytical: Optional closed-form solution y(x), used only for
            comparison; the integrators never call it.
        name: Human-readable label used in reports.
    """

    rhs: ScalarRHS
    analytical: AnalyticalSolution | None = None
    name: str = ""

    def __call__(self, x: float, y: float) -> float:
        """Evaluate the right-hand side."""
        return self.rhs(x, y)

    @property
    def has_analytical(self) -> bool:
        """Whether a closed-form solution is attached."""
        return self.analytical is not None

    def exact(self, x: npt.ArrayLike) -> np.floating | npt.NDArray[np.floating]:
        """Evaluate the attached closed-form solution.

        Args:
            x: Scalar or array of x-values.

        Raises:
            ValueError: If no analytical solution is attached.

        Returns:
            Scalar or array of exact y-values.
        """
        if self.analytical is None:
            raise ValueError(_NO_ANALYTICAL_ERROR_MSG.format(name=self.name))
        return self.analytical(x)


DEFAULT_EQUATION = ScalarEquation(
    rhs=default_rhs,
    analytical=analytical_solution,
    name="y' = y - 2x/y",
)
