# cauchy_engine/examples/default_equation.py
"""Reference problem y' = y - 2x/y, y(0) = 1 solved by both integrators.

This example demonstrates the core API:

- FixedStepIntegrator.run(...) takes one midpoint step per control point.
- AdaptiveStepIntegrator.run(...) halves its step until the Kutta-Merson local
  error estimate meets the tolerance. With x_grid="actual" X records where the
  accepted steps really landed; with the default "nominal" grid X is only a
  label once halving has happened.

Each numerical curve is plotted against sqrt(2x + 1). Reports are written next
to the plots. This script saves files to disk (no interactive windows).
"""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from cauchy_engine.equation import analytical_solution
from cauchy_engine.integrators import AdaptiveStepIntegrator, FixedStepIntegrator
from cauchy_engine.solution_core import ProblemConfig

_OUTPUT_DIR = Path(__file__).resolve().parent / "output" / "default_equation"


def save_comparison_plot(
    x: np.ndarray,
    y: np.ndarray,
    *,
    title: str,
    out_path: Path,
) -> None:
    """Save a numerical solution together with the analytical curve.

    Args:
        x: Control point abscissae.
        y: Numerical solution at x.
        title: Plot title.
        out_path: Output path for the saved figure.
    """
    x_fine = np.linspace(float(x[0]), float(x[-1]), 400)
    err = float(np.max(np.abs(y - analytical_solution(x))))

    plt.figure(figsize=(8, 5))
    plt.plot(x_fine, analytical_solution(x_fine), label="Analytical solution")
    plt.plot(x, y, "o", markersize=3, label="Numerical solution")
    plt.grid(visible=True)
    plt.legend()
    plt.title(f"{title}\nmax |y - sqrt(2x+1)| = {err:.3e}")
    plt.xlabel("x")
    plt.ylabel("y")
    plt.tight_layout()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(out_path, dpi=150)
    plt.close()


def _save_report(text: str | None, out_path: Path) -> None:
    if text is None:
        return
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text, encoding="utf-8")


def main() -> None:
    """Run both integrators on the reference problem and save results.

    Files are written to: examples/output/default_equation/
    """
    # ---------------------------------------------------------------------
    # (1) Explicit midpoint, 33 control points on [0, 5]
    # ---------------------------------------------------------------------
    midpoint = FixedStepIntegrator()
    midpoint.run(generate_report=True)

    save_comparison_plot(
        midpoint.get_array_x(),
        midpoint.get_array_y(),
        title="Middle point method (fixed step)",
        out_path=_OUTPUT_DIR / "midpoint.png",
    )
    _save_report(midpoint.get_report(), _OUTPUT_DIR / "midpoint_report.txt")

    # ---------------------------------------------------------------------
    # (2) Kutta-Merson with X tracking the accepted steps
    # ---------------------------------------------------------------------
    merson = AdaptiveStepIntegrator(ProblemConfig(x_grid="actual"))
    merson.run(generate_report=True)

    save_comparison_plot(
        merson.get_array_x(),
        merson.get_array_y(),
        title=(
            "Kutta-Merson method "
            f"({merson.n_halvings} halvings, final h = {merson.final_step:.4g})"
        ),
        out_path=_OUTPUT_DIR / "kutta_merson.png",
    )
    _save_report(merson.get_report(), _OUTPUT_DIR / "kutta_merson_report.txt")


if __name__ == "__main__":
    main()
