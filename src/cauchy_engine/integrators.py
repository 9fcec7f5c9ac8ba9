# src/cauchy_engine/integrators.py
"""Explicit one-step integrators for scalar Cauchy problems.

Each integrator owns a :class:`cauchy_engine.solution_core.SolutionCore` and
fills it over a grid of N control points starting at (x0, y0) with nominal
step h = (upper - lower) / N.

Supported methods (keyword `method=` of :func:`build_integrator`):
    - "midpoint":     Explicit midpoint (order 2), one predictor and one
                      corrector evaluation per step, fixed step.
    - "kutta-merson": Kutta-Merson (5 stages, order 4) with an embedded
                      local error estimate. A step whose estimate exceeds the
                      tolerance is halved and retried from the same point.

Kutta-Merson step control:
    The running step only ever shrinks: after an accepted step it is not grown
    back toward the nominal h. Consecutive halvings while advancing from one
    control point are capped by ``ProblemConfig.max_halvings``; exceeding the
    cap raises :class:`cauchy_engine.errors.ConvergenceFailure`.

Grid semantics under halving (``ProblemConfig.x_grid``):
    - "nominal": X is precomputed with the nominal h and never adjusted, so
      once halving has occurred X[i] labels the i-th accepted step rather than
      its true abscissa.
    - "actual":  X[i + 1] = X[i] + h of the accepted attempt, so X records the
      true position reached.

Arithmetic stays in NumPy float64, so a right-hand side evaluated outside its
domain produces inf/nan that propagates into Y instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import numpy as np

from .equation import DEFAULT_EQUATION, ScalarEquation
from .errors import ConvergenceFailure
from .run_report import SEPARATOR, RunReport
from .solution_core import FloatArray, ProblemConfig, SolutionCore

if TYPE_CHECKING:
    from .equation import ScalarRHS


# =============================================================================
# Errors / messages
# =============================================================================

_UNKNOWN_METHOD_ERROR_MSG = "Unknown method: {method}"
_EQUATION_TYPE_ERROR_MSG = (
    "equation must be a ScalarEquation or a callable f(x, y), got {kind}"
)

_MIDPOINT_HEADER = "Solving Cauchy problem using middle point method"
_MERSON_HEADER = "Solving Cauchy problem using Kutta-Merson method"


# =============================================================================
# Type aliases
# =============================================================================

MethodName = Literal["midpoint", "kutta-merson"]

_METHOD_ALIASES: dict[str, MethodName] = {
    "midpoint": "midpoint",
    "middle-point": "midpoint",
    "middlepoint": "midpoint",
    "kutta-merson": "kutta-merson",
    "kuttamerson": "kutta-merson",
    "merson": "kutta-merson",
}


# =============================================================================
# Per-step records
# =============================================================================


@dataclass(slots=True, frozen=True)
class MidpointStep:
    """Stage values and result of one explicit midpoint step.

    Attributes:
        k1: Slope at the start of the step.
        k2: Slope at the predicted midpoint.
        y_next: Value at the end of the step.
    """

    k1: float
    k2: float
    y_next: float


@dataclass(slots=True, frozen=True)
class KuttaMersonStep:
    """Stage values and error estimate of one Kutta-Merson attempt.

    Attributes:
        stages: Slopes (k1, k2, k3, k4, k5).
        y_next: Fourth-order candidate value.
        y_aux: Embedded lower-order value.
        local_error: 0.2 * |y_next - y_aux|.
    """

    stages: tuple[float, float, float, float, float]
    y_next: float
    y_aux: float
    local_error: float


@dataclass(slots=True, frozen=True)
class AdaptiveStepRecord:
    """Outcome of one Kutta-Merson attempt.

    Attributes:
        index: Control point the attempt advanced from.
        h: Step size used.
        local_error: Local error estimate R.
        accepted: Whether R <= tolerance.
    """

    index: int
    h: float
    local_error: float
    accepted: bool


# =============================================================================
# One-step kernels
# =============================================================================


def midpoint_step(rhs: ScalarRHS, x: float, y: float, h: float) -> MidpointStep:
    """Advance y by one explicit midpoint step.

    Args:
        rhs: Right-hand side f(x, y).
        x: Current abscissa.
        y: Current value.
        h: Step size.

    Returns:
        MidpointStep with both slopes and the new value.
    """
    k1 = rhs(x, y)
    xp = x + h / 2
    yp = y + k1 * h / 2
    k2 = rhs(xp, yp)
    return MidpointStep(k1=k1, k2=k2, y_next=y + h * k2)


def kutta_merson_step(rhs: ScalarRHS, x: float, y: float, h: float) -> KuttaMersonStep:
    """Attempt one Kutta-Merson step and estimate its local error.

    Args:
        rhs: Right-hand side f(x, y).
        x: Current abscissa.
        y: Current value.
        h: Step size.

    Returns:
        KuttaMersonStep with the five slopes, candidate, auxiliary value and
        local error estimate.
    """
    k1 = rhs(x, y)
    k2 = rhs(x + h / 3, y + h * k1 / 3)
    k3 = rhs(x + h / 3, y + h * k1 / 6 + h * k2 / 6)
    k4 = rhs(x + h / 2, y + h * k1 / 8 + h * 3 * k3 / 8)
    k5 = rhs(x + h, y + h * k1 / 2 - h * 3 * k3 / 2 + h * 2 * k4)

    y_next = y + h / 6 * (k1 + 4 * k4 + k5)
    y_aux = y + h / 2 * (k1 - 3 * k3 + 4 * k4)
    local_error = 0.2 * np.abs(y_next - y_aux)

    return KuttaMersonStep(
        stages=(k1, k2, k3, k4, k5),
        y_next=y_next,
        y_aux=y_aux,
        local_error=local_error,
    )


# =============================================================================
# Integrators
# =============================================================================


def _resolve_equation(equation: ScalarEquation | ScalarRHS | None) -> ScalarEquation:
    if equation is None:
        return DEFAULT_EQUATION
    if isinstance(equation, ScalarEquation):
        return equation
    if callable(equation):
        return ScalarEquation(rhs=equation, name=getattr(equation, "__name__", ""))
    raise TypeError(_EQUATION_TYPE_ERROR_MSG.format(kind=type(equation).__name__))


class _Integrator:
    """Shared run lifecycle and result accessors."""

    method: MethodName

    def __init__(
        self,
        config: ProblemConfig | None = None,
        equation: ScalarEquation | ScalarRHS | None = None,
    ) -> None:
        """Initialize the integrator.

        Args:
            config: Problem configuration. Defaults to the reference problem.
            equation: Equation (or bare right-hand side) to integrate.
                Defaults to y' = y - 2x/y.
        """
        self.core = SolutionCore(config)
        self.config = self.core.config
        self.equation = _resolve_equation(equation)
        self._report_text: str | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, generate_report: bool = False) -> None:  # noqa: FBT001, FBT002
        """Integrate over the whole grid.

        Any previous solution and report are replaced. If the run fails, the
        integrator is left in the not-run state.

        Args:
            generate_report: Whether to build a textual trace of the run,
                available afterwards through :meth:`get_report`.
        """
        self._report_text = None
        report = RunReport() if generate_report else None

        self.core.begin()
        try:
            self._integrate(report)
            self.core.complete()
        except Exception:
            self.core.discard()
            raise

        if report is not None:
            self._report_text = report.finalize()

    def get_array_x(self) -> FloatArray:
        """Return X of the last completed run (read-only)."""
        return self.core.get_x()

    def get_array_y(self) -> FloatArray:
        """Return Y of the last completed run (read-only)."""
        return self.core.get_y()

    def get_report(self) -> str | None:
        """Return the report of the last run, or None if none was requested."""
        return self._report_text

    @property
    def x(self) -> FloatArray:
        """Alias for :meth:`get_array_x`."""
        return self.get_array_x()

    @property
    def y(self) -> FloatArray:
        """Alias for :meth:`get_array_y`."""
        return self.get_array_y()

    @property
    def h(self) -> float:
        """Nominal step."""
        return self.core.h

    @property
    def n_points(self) -> int:
        """Number of control points."""
        return self.core.n_points

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _integrate(self, report: RunReport | None) -> None:
        raise NotImplementedError

    def _report_results(self, report: RunReport) -> None:
        report.append("Results:")
        for i in range(self.core.n_points):
            report.append(
                f"x[{i}] = {float(self.core.x[i]):10.5f}\t"
                f"y[{i}] = {float(self.core.y[i]):10.5f}"
            )
        report.append(SEPARATOR)


class FixedStepIntegrator(_Integrator):
    """Explicit midpoint method on a uniform grid."""

    method: MethodName = "midpoint"

    def _integrate(self, report: RunReport | None) -> None:
        core = self.core
        h = np.float64(core.h)

        if report is not None:
            report.append(_MIDPOINT_HEADER)
            report.append(f"Step h = {float(h)}")

        for i in range(core.n_points - 1):
            step = midpoint_step(self.equation.rhs, core.x[i], core.y[i], h)
            core.advance(step.y_next)

            if report is not None:
                report.append(f"x({i + 1}): {float(core.x[i + 1])}")
                report.append(f"y({i + 1}): {float(core.y[i + 1])}")
                report.append(SEPARATOR)

        if report is not None:
            report.append("Iteration process ended")
            self._report_results(report)


class AdaptiveStepIntegrator(_Integrator):
    """Kutta-Merson method with step halving on local error."""

    method: MethodName = "kutta-merson"

    def __init__(
        self,
        config: ProblemConfig | None = None,
        equation: ScalarEquation | ScalarRHS | None = None,
    ) -> None:
        """Initialize AdaptiveStepIntegrator.

        Args:
            config: Problem configuration. Defaults to the reference problem.
            equation: Equation (or bare right-hand side) to integrate.
        """
        super().__init__(config, equation)
        self._records: list[AdaptiveStepRecord] = []
        self.final_step: float | None = None

    @property
    def records(self) -> tuple[AdaptiveStepRecord, ...]:
        """Every attempt of the most recent run, in order, including rejects."""
        return tuple(self._records)

    @property
    def accepted_records(self) -> tuple[AdaptiveStepRecord, ...]:
        """Accepted attempts of the most recent run, one per transition."""
        return tuple(r for r in self._records if r.accepted)

    @property
    def n_halvings(self) -> int:
        """Number of rejected attempts in the most recent run."""
        return sum(1 for r in self._records if not r.accepted)

    def _integrate(self, report: RunReport | None) -> None:
        core = self.core
        tol = float(self.config.tolerance)
        max_halvings = int(self.config.max_halvings)
        track_x = self.config.x_grid == "actual"

        self._records = []
        self.final_step = None
        h = np.float64(core.h)

        if report is not None:
            report.append(_MERSON_HEADER)
            report.append(f"Step h = {float(h)}")
            report.append(f"Accuracy E = {tol}")

        rejects = 0
        while core.current_step < core.n_points - 1:
            i = core.current_step
            x_i = core.current_x
            attempt = kutta_merson_step(self.equation.rhs, x_i, core.current_y, h)
            r = attempt.local_error

            # NaN compares false and is accepted, letting domain faults reach Y.
            accepted = not (r > tol)
            self._records.append(
                AdaptiveStepRecord(
                    index=i,
                    h=float(h),
                    local_error=float(r),
                    accepted=accepted,
                )
            )

            if report is not None:
                report.append("Function values:")
                report.extend(
                    f"k{n} = {float(k)}" for n, k in enumerate(attempt.stages, start=1)
                )
                report.append(f"y({i + 1}): {float(attempt.y_next)}")

            if not accepted:
                rejects += 1
                if rejects > max_halvings:
                    raise ConvergenceFailure(i, float(h), float(r))
                h = h / 2
                if report is not None:
                    report.append(f"R > E! ({float(r)} > {tol})")
                    report.append("Dividing the integration step by 2")
                    report.append(f"h = {float(h)}")
                continue

            rejects = 0
            core.advance(attempt.y_next, x_next=x_i + h if track_x else None)
            if report is not None:
                report.append(f"R <= E ({float(r)} <= {tol})")
                report.append(
                    f"Obtained approximate value for y[{i + 1}] = "
                    f"{float(attempt.y_next)}"
                )
                report.append("Continue iteration process")
                report.append(SEPARATOR)

        self.final_step = float(h)
        if report is not None:
            report.append("Iteration process ended")
            self._report_results(report)


# =============================================================================
# Factory
# =============================================================================


def normalize_method(method: str) -> MethodName:
    """Map a method name or alias to its canonical name.

    Args:
        method: Method name, case-insensitive; underscores and spaces are
            treated as hyphens.

    Raises:
        ValueError: If the method is unknown.

    Returns:
        Canonical method name.
    """
    key = str(method).strip().lower().replace("_", "-").replace(" ", "-")
    try:
        return _METHOD_ALIASES[key]
    except KeyError as exc:
        raise ValueError(_UNKNOWN_METHOD_ERROR_MSG.format(method=method)) from exc


def build_integrator(
    method: str,
    config: ProblemConfig | None = None,
    equation: ScalarEquation | ScalarRHS | None = None,
) -> FixedStepIntegrator | AdaptiveStepIntegrator:
    """Construct an integrator by method name.

    Args:
        method: "midpoint" or "kutta-merson" (or an alias).
        config: Problem configuration.
        equation: Equation or bare right-hand side.

    Returns:
        A ready-to-run integrator.
    """
    if normalize_method(method) == "midpoint":
        return FixedStepIntegrator(config, equation)
    return AdaptiveStepIntegrator(config, equation)
