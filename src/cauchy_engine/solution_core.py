# src/cauchy_engine/solution_core.py
"""Problem configuration and solution storage for scalar Cauchy problems.

This module provides the grid/solution container the integrators write into.
It is designed to support:

- An explicit, validated configuration object replacing process-wide constants.
- A uniform nominal grid built by repeated addition of the step (not linspace),
  so x[i] == x[i-1] + h holds exactly.
- Fresh arrays per run: views handed out after one run are never mutated by
  the next.
- A fail-fast policy for reading results before a run has completed.

The container intentionally does not evaluate right-hand sides; it only
manages the grid, the solution values and run state.
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass
from typing import Any, Literal

import numpy as np
import numpy.typing as npt

from .errors import ConfigurationError, NotYetRunError

# Error / message constants -------------------------------------------------

_BOUNDS_FINITE_ERROR = "Domain bounds must be finite, got [{lower}, {upper}]"
_BOUNDS_ORDER_ERROR = "upper ({upper}) must be greater than lower ({lower})"
_START_FINITE_ERROR = "Starting point must be finite, got ({x0}, {y0})"
_N_POINTS_ERROR = "n_points must be a positive integer, got {n_points}"
_TOLERANCE_ERROR = "tolerance must be a positive finite number, got {tolerance}"
_MAX_HALVINGS_ERROR = "max_halvings must be a non-negative integer, got {value}"
_X_GRID_ERROR = "x_grid must be 'nominal' or 'actual', got {value!r}"

_START_OFF_GRID_WARNING = (
    "x0 ({x0}) differs from lower ({lower}); the grid starts at x0 and keeps "
    "the step (upper - lower) / n_points."
)
_NON_FINITE_WARNING = (
    "Solution contains {count} non-finite value(s); the right-hand side was "
    "evaluated outside its domain."
)

_NOT_YET_RUN_ERROR = "No completed run; call run() before reading results."
_FINAL_POINT_ERROR = "Solution has already reached its final control point"
_INCOMPLETE_RUN_ERROR = "Run ended at index {idx} of {last}; solution is incomplete"
_INDEX_OOB_ERROR = "Control point index out of bounds: {idx}"

# Typing helpers ------------------------------------------------------------

FloatArray = npt.NDArray[np.floating[Any]]
XGridMode = Literal["nominal", "actual"]

# Reference defaults ----------------------------------------------------------

DEFAULT_LOWER = 0.0
DEFAULT_UPPER = 5.0
DEFAULT_CONTROL_POINTS = 33
DEFAULT_X0 = 0.0
DEFAULT_Y0 = 1.0
DEFAULT_TOLERANCE = 1e-5
DEFAULT_MAX_HALVINGS = 60


@dataclass(slots=True, frozen=True)
class ProblemConfig:
    """Configuration for one Cauchy problem run.

    Attributes:
        lower: Lower bound of the domain.
        upper: Upper bound of the domain.
        n_points: Number of control points N. The nominal step is
            (upper - lower) / N, so the last point is x0 + (N - 1) h.
        x0: Starting abscissa.
        y0: Initial value y(x0).
        tolerance: Local error threshold E (adaptive integrator only).
        max_halvings: Maximum consecutive step halvings allowed while
            advancing from one control point (adaptive integrator only).
        x_grid: "nominal" keeps X on the precomputed grid even after step
            halving; "actual" records the true position reached by each
            accepted step (adaptive integrator only).
    """

    lower: float = DEFAULT_LOWER
    upper: float = DEFAULT_UPPER
    n_points: int = DEFAULT_CONTROL_POINTS
    x0: float = DEFAULT_X0
    y0: float = DEFAULT_Y0
    tolerance: float = DEFAULT_TOLERANCE
    max_halvings: int = DEFAULT_MAX_HALVINGS
    x_grid: XGridMode = "nominal"

    def __post_init__(self) -> None:
        """Validate field values.

        Raises:
            ConfigurationError: If any field is out of range.
        """
        if not (math.isfinite(self.lower) and math.isfinite(self.upper)):
            raise ConfigurationError(
                _BOUNDS_FINITE_ERROR.format(lower=self.lower, upper=self.upper)
            )
        if self.upper <= self.lower:
            raise ConfigurationError(
                _BOUNDS_ORDER_ERROR.format(lower=self.lower, upper=self.upper)
            )
        if not (math.isfinite(self.x0) and math.isfinite(self.y0)):
            raise ConfigurationError(_START_FINITE_ERROR.format(x0=self.x0, y0=self.y0))
        if isinstance(self.n_points, bool) or int(self.n_points) != self.n_points:
            raise ConfigurationError(_N_POINTS_ERROR.format(n_points=self.n_points))
        if self.n_points < 1:
            raise ConfigurationError(_N_POINTS_ERROR.format(n_points=self.n_points))
        if not (math.isfinite(self.tolerance) and self.tolerance > 0.0):
            raise ConfigurationError(_TOLERANCE_ERROR.format(tolerance=self.tolerance))
        if int(self.max_halvings) != self.max_halvings or self.max_halvings < 0:
            raise ConfigurationError(_MAX_HALVINGS_ERROR.format(value=self.max_halvings))
        if self.x_grid not in ("nominal", "actual"):
            raise ConfigurationError(_X_GRID_ERROR.format(value=self.x_grid))

    @property
    def step(self) -> float:
        """Nominal step h = (upper - lower) / n_points."""
        return find_step(self.lower, self.upper, self.n_points)


def find_step(lower: float, upper: float, n_points: int) -> float:
    """
    Compute the nominal integration step.

    Args:
        lower: Lower domain bound.
        upper: Upper domain bound.
        n_points: Number of control points.

    Returns:
        (upper - lower) / n_points.
    """
    return (float(upper) - float(lower)) / int(n_points)


def fill_grid(x0: float, h: float, n_points: int) -> FloatArray:
    """
    Build a grid of n_points abscissae by repeated addition of h.

    Accumulating keeps x[i] == x[i-1] + h exact in floating point, which
    np.linspace does not guarantee.

    Args:
        x0: First abscissa.
        h: Step.
        n_points: Number of points.

    Returns:
        1D float64 array of length n_points.
    """
    grid = np.empty(int(n_points), dtype=np.float64)
    grid[0] = x0
    for i in range(1, grid.size):
        grid[i] = grid[i - 1] + h
    return grid


def _read_only(arr: FloatArray) -> FloatArray:
    view = arr.view()
    view.flags.writeable = False
    return view


class SolutionCore:
    """Grid and solution manager for one integrator instance."""

    def __init__(self, config: ProblemConfig | None = None) -> None:
        """
        Initialize SolutionCore.

        Args:
            config: Problem configuration; defaults reproduce the reference
                problem on [0, 5] with 33 control points.
        """
        self.config = config or ProblemConfig()
        self.n_points = int(self.config.n_points)
        self.h = self.config.step

        if self.config.x0 != self.config.lower:
            warnings.warn(
                _START_OFF_GRID_WARNING.format(
                    x0=self.config.x0,
                    lower=self.config.lower,
                ),
                RuntimeWarning,
                stacklevel=3,
            )

        self.x: FloatArray = np.zeros(self.n_points, dtype=np.float64)
        self.y: FloatArray = np.zeros(self.n_points, dtype=np.float64)
        self.current_step = 0
        self.completed = False

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def begin(self) -> None:
        """Start a new run on freshly allocated arrays.

        X is filled with the nominal grid, Y[0] with y0 and the rest of Y with
        zeros.
        """
        self.x = fill_grid(self.config.x0, self.h, self.n_points)
        self.y = np.zeros(self.n_points, dtype=np.float64)
        self.y[0] = self.config.y0
        self.current_step = 0
        self.completed = False

    def advance(self, y_next: float, *, x_next: float | None = None) -> None:
        """
        Store the value at the next control point and move onto it.

        Args:
            y_next: Solution value at index current_step + 1.
            x_next: Optional abscissa overriding the precomputed grid value.

        Raises:
            RuntimeError: If the final control point was already reached.
        """
        if self.current_step >= self.n_points - 1:
            raise RuntimeError(_FINAL_POINT_ERROR)

        self.current_step += 1
        self.y[self.current_step] = y_next
        if x_next is not None:
            self.x[self.current_step] = x_next

    def complete(self) -> None:
        """
        Mark the run as completed.

        Raises:
            RuntimeError: If not every control point has been filled.
        """
        if self.current_step != self.n_points - 1:
            raise RuntimeError(
                _INCOMPLETE_RUN_ERROR.format(
                    idx=self.current_step,
                    last=self.n_points - 1,
                )
            )
        self.completed = True

        n_bad = int(np.count_nonzero(~np.isfinite(self.y)))
        if n_bad:
            warnings.warn(
                _NON_FINITE_WARNING.format(count=n_bad),
                RuntimeWarning,
                stacklevel=3,
            )

    def discard(self) -> None:
        """Drop a partially computed run, returning to the not-run state."""
        self.x = np.zeros(self.n_points, dtype=np.float64)
        self.y = np.zeros(self.n_points, dtype=np.float64)
        self.current_step = 0
        self.completed = False

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def current_x(self) -> np.float64:
        """Abscissa of the current control point."""
        return np.float64(self.x[self.current_step])

    @property
    def current_y(self) -> np.float64:
        """Solution value at the current control point."""
        return np.float64(self.y[self.current_step])

    def _require_completed(self) -> None:
        if not self.completed:
            raise NotYetRunError(_NOT_YET_RUN_ERROR)

    def get_x(self) -> FloatArray:
        """
        Return a read-only view of the X values of the last completed run.

        Raises:
            NotYetRunError: If no run has completed.

        Returns:
            1D array of length n_points.
        """
        self._require_completed()
        return _read_only(self.x)

    def get_y(self) -> FloatArray:
        """
        Return a read-only view of the Y values of the last completed run.

        Raises:
            NotYetRunError: If no run has completed.

        Returns:
            1D array of length n_points.
        """
        self._require_completed()
        return _read_only(self.y)

    def get_point(self, idx: int) -> tuple[float, float]:
        """
        Return the (x, y) pair at a control point of the last completed run.

        Args:
            idx: Control point index in [0, n_points).

        Raises:
            IndexError: If idx is out of bounds.

        Returns:
            Tuple (x, y).
        """
        self._require_completed()
        if not (0 <= idx < self.n_points):
            raise IndexError(_INDEX_OOB_ERROR.format(idx=idx))
        return float(self.x[idx]), float(self.y[idx])
