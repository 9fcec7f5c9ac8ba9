# tests/test_adaptive_step.py
"""Plumbing and contract tests for AdaptiveStepIntegrator (Kutta-Merson).

These tests are written against the documented step control:

- each attempt computes five stages and the estimate R = 0.2 |y_next - y_aux|;
- R > tolerance halves the running step and retries from the same point;
- the running step never grows back after an accepted step;
- X either stays on the nominal grid or tracks accepted steps (x_grid);
- too many consecutive halvings raise ConvergenceFailure.
"""

from __future__ import annotations

import numpy as np
import pytest

from cauchy_engine.equation import analytical_solution
from cauchy_engine.errors import ConvergenceFailure, NotYetRunError
from cauchy_engine.integrators import (
    AdaptiveStepIntegrator,
    FixedStepIntegrator,
    build_integrator,
    kutta_merson_step,
    normalize_method,
)
from cauchy_engine.solution_core import ProblemConfig, fill_grid

# -----------------------------------------------------------------------------
# A) One-step kernel
# -----------------------------------------------------------------------------


def test_kutta_merson_step_constant_slope_has_zero_error() -> None:
    """For y' = 1 both estimates agree exactly."""
    step = kutta_merson_step(lambda _x, _y: 1.0, 0.0, 2.0, 0.25)
    assert step.stages == (1.0, 1.0, 1.0, 1.0, 1.0)
    assert np.isclose(step.y_next, 2.25, rtol=0.0, atol=1e-15)
    assert step.y_aux == 2.25
    assert step.local_error < 1e-15


def test_kutta_merson_step_exponential_is_fourth_order() -> None:
    """For y' = y one step of h = 0.1 matches exp(0.1) closely."""
    step = kutta_merson_step(lambda _x, y: y, 0.0, 1.0, 0.1)
    assert abs(step.y_next - np.exp(0.1)) < 1e-6
    assert step.local_error > 0.0
    assert np.isclose(step.local_error, 0.2 * abs(step.y_next - step.y_aux))


# -----------------------------------------------------------------------------
# B) Reference problem
# -----------------------------------------------------------------------------


def test_adaptive_default_shape_and_start(default_config: ProblemConfig) -> None:
    """Exactly N points, Y[0] == y0, X on the nominal grid."""
    solver = AdaptiveStepIntegrator(default_config)
    solver.run()

    x = solver.get_array_x()
    y = solver.get_array_y()
    assert len(x) == len(y) == 33
    assert y[0] == 1.0
    assert np.array_equal(x, fill_grid(0.0, 5 / 33, 33))


def test_adaptive_accepted_steps_satisfy_tolerance(
    default_config: ProblemConfig,
) -> None:
    """Every accepted transition has R <= E, one per control point."""
    solver = AdaptiveStepIntegrator(default_config)
    solver.run()

    accepted = solver.accepted_records
    assert len(accepted) == solver.n_points - 1
    assert [r.index for r in accepted] == list(range(solver.n_points - 1))
    assert all(r.local_error <= default_config.tolerance for r in accepted)
    rejected = [r for r in solver.records if not r.accepted]
    assert all(r.local_error > default_config.tolerance for r in rejected)


def test_adaptive_step_only_shrinks(tight_config: ProblemConfig) -> None:
    """Rejections halve h exactly and h never grows afterwards."""
    solver = AdaptiveStepIntegrator(tight_config)
    solver.run()

    records = solver.records
    assert solver.n_halvings > 0

    steps = np.array([r.h for r in records])
    assert steps[0] == solver.h
    assert np.all(np.diff(steps) <= 0.0)

    for prev, curr in zip(records[:-1], records[1:], strict=True):
        if prev.accepted:
            assert curr.h == prev.h
            assert curr.index == prev.index + 1
        else:
            assert curr.h == prev.h / 2
            assert curr.index == prev.index
    assert solver.final_step == records[-1].h


def test_adaptive_nominal_grid_ignores_halving(tight_config: ProblemConfig) -> None:
    """With x_grid='nominal' X stays at x0 + i h even after halving."""
    solver = AdaptiveStepIntegrator(tight_config)
    solver.run()
    assert solver.n_halvings > 0
    assert np.array_equal(solver.x, fill_grid(0.0, solver.h, solver.n_points))


def test_adaptive_actual_grid_tracks_accepted_steps() -> None:
    """With x_grid='actual' X advances by the accepted step sizes."""
    cfg = ProblemConfig(tolerance=1e-9, x_grid="actual")
    solver = AdaptiveStepIntegrator(cfg)
    solver.run()

    x = solver.get_array_x()
    y = solver.get_array_y()
    accepted_h = np.array([r.h for r in solver.accepted_records])

    assert x[0] == 0.0
    assert np.allclose(np.diff(x), accepted_h, rtol=1e-12, atol=0.0)
    assert x[-1] < cfg.upper
    assert np.max(np.abs(y - analytical_solution(x))) < 1e-5


def test_adaptive_close_to_analytical_on_actual_grid() -> None:
    """Default tolerance keeps early points close to sqrt(2x + 1)."""
    solver = AdaptiveStepIntegrator(ProblemConfig(x_grid="actual"))
    solver.run()
    x = solver.get_array_x()[:12]
    y = solver.get_array_y()[:12]
    assert np.max(np.abs(y - analytical_solution(x))) < 5e-3


def test_adaptive_beats_midpoint_on_first_step() -> None:
    """The fourth-order step is more accurate than the midpoint step."""
    km = AdaptiveStepIntegrator(ProblemConfig(x_grid="actual"))
    mid = FixedStepIntegrator()
    km.run()
    mid.run()

    km_err = abs(km.y[1] - analytical_solution(km.x[1]))
    mid_err = abs(mid.y[1] - analytical_solution(mid.x[1]))
    assert km_err < mid_err


# -----------------------------------------------------------------------------
# C) Reports
# -----------------------------------------------------------------------------


def test_adaptive_report_absent_without_request() -> None:
    """run(False) yields no report."""
    solver = AdaptiveStepIntegrator()
    solver.run(False)  # noqa: FBT003
    assert solver.get_report() is None


def test_adaptive_report_traces_every_attempt(tight_config: ProblemConfig) -> None:
    """The report has one stage block per attempt and one entry per acceptance."""
    solver = AdaptiveStepIntegrator(tight_config)
    solver.run(True)  # noqa: FBT003
    report = solver.get_report()

    assert report
    n = solver.n_points
    assert report.count("Function values:") == len(solver.records)
    assert report.count("\nk5 = ") == len(solver.records)
    assert report.count("Obtained approximate value for y[") == n - 1
    assert report.count("Dividing the integration step by 2") == solver.n_halvings
    assert report.count("R > E!") == solver.n_halvings
    assert "Iteration process ended" in report
    assert f"y[{n - 1}] = {float(solver.y[-1]):10.5f}" in report


# -----------------------------------------------------------------------------
# D) Idempotence, failure and edge cases
# -----------------------------------------------------------------------------


def test_adaptive_runs_are_bit_identical() -> None:
    """Repeated runs reproduce X and Y exactly."""
    first = AdaptiveStepIntegrator()
    second = AdaptiveStepIntegrator()
    first.run(False)  # noqa: FBT003
    second.run(False)  # noqa: FBT003
    assert np.array_equal(first.x, second.x, equal_nan=True)
    assert np.array_equal(first.y, second.y, equal_nan=True)

    second.run(True)  # noqa: FBT003
    assert np.array_equal(first.y, second.y, equal_nan=True)


def test_adaptive_convergence_failure_is_raised_and_state_cleared() -> None:
    """Exceeding max_halvings raises and leaves no partial results."""
    cfg = ProblemConfig(tolerance=1e-14, max_halvings=2)
    solver = AdaptiveStepIntegrator(cfg)

    with pytest.raises(ConvergenceFailure, match="did not converge") as exc_info:
        solver.run(True)  # noqa: FBT003

    exc = exc_info.value
    assert isinstance(exc, RuntimeError)
    assert exc.index == 0
    assert exc.step == solver.h / 4
    assert exc.local_error > cfg.tolerance
    assert len(solver.records) == 3
    assert not any(r.accepted for r in solver.records)

    assert solver.get_report() is None
    with pytest.raises(NotYetRunError):
        solver.get_array_y()


def test_adaptive_zero_max_halvings_fails_on_first_reject() -> None:
    """max_halvings=0 turns any rejection into a failure."""
    solver = AdaptiveStepIntegrator(ProblemConfig(tolerance=1e-12, max_halvings=0))
    with pytest.raises(ConvergenceFailure):
        solver.run()
    assert len(solver.records) == 1


def test_adaptive_nan_estimate_is_accepted_and_propagates() -> None:
    """A NaN right-hand side is not intercepted; NaN reaches Y."""
    solver = AdaptiveStepIntegrator(
        ProblemConfig(n_points=4),
        equation=lambda _x, _y: np.nan,
    )
    with pytest.warns(RuntimeWarning, match="non-finite"):
        solver.run()
    y = solver.get_array_y()
    assert y[0] == 1.0
    assert np.all(np.isnan(y[1:]))
    assert solver.n_halvings == 0


def test_adaptive_single_point_is_trivial() -> None:
    """N = 1 yields the starting point only."""
    solver = AdaptiveStepIntegrator(ProblemConfig(n_points=1))
    solver.run()
    assert solver.x.tolist() == [0.0]
    assert solver.y.tolist() == [1.0]
    assert solver.records == ()


def test_adaptive_pluggable_equation(linear_equation) -> None:
    """Another equation integrates to its own closed form."""
    solver = AdaptiveStepIntegrator(
        ProblemConfig(x_grid="actual"),
        equation=linear_equation,
    )
    solver.run()
    assert np.max(np.abs(solver.y - linear_equation.exact(solver.x))) < 1e-4


# -----------------------------------------------------------------------------
# E) Factory
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("midpoint", FixedStepIntegrator),
        ("Middle_Point", FixedStepIntegrator),
        ("kutta-merson", AdaptiveStepIntegrator),
        ("Kutta Merson", AdaptiveStepIntegrator),
        ("merson", AdaptiveStepIntegrator),
    ],
)
def test_build_integrator_by_name(name: str, expected: type) -> None:
    """Method names and aliases select the integrator class."""
    solver = build_integrator(name, ProblemConfig(n_points=3))
    assert type(solver) is expected
    assert solver.n_points == 3
    assert solver.method == normalize_method(name)


def test_build_integrator_unknown_method() -> None:
    """Unknown names raise ValueError."""
    with pytest.raises(ValueError, match="Unknown method"):
        build_integrator("rk4")
