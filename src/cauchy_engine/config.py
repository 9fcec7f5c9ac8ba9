# src/cauchy_engine/config.py
"""Configuration model for building integrators from plain mappings.

This module defines a pydantic-facing settings object (suitable for YAML or
JSON documents) and translates it into the native
:class:`cauchy_engine.solution_core.ProblemConfig`.

Notes:
    - Unknown fields are allowed and ignored (`extra="allow"`), so a settings
      block may carry keys meant for other consumers such as plotting.
    - Method aliases are normalized at validation time, so an unknown method
      fails when the document is parsed rather than when a run starts.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .equation import ScalarEquation, ScalarRHS
from .integrators import (
    AdaptiveStepIntegrator,
    FixedStepIntegrator,
    build_integrator,
    normalize_method,
)
from .solution_core import (
    DEFAULT_CONTROL_POINTS,
    DEFAULT_LOWER,
    DEFAULT_MAX_HALVINGS,
    DEFAULT_TOLERANCE,
    DEFAULT_UPPER,
    DEFAULT_X0,
    DEFAULT_Y0,
    ProblemConfig,
)

_BOUNDS_ORDER_ERROR = "upper ({upper}) must be greater than lower ({lower})"


class IntegratorSettings(BaseModel):
    """Settings schema for one integrator run.

    Mirrors ProblemConfig plus the method name, with defaults reproducing the
    reference problem: y' = y - 2x/y on [0, 5], 33 control points, y(0) = 1,
    tolerance 1e-5.
    """

    model_config = ConfigDict(extra="allow")

    method: str = Field(
        default="kutta-merson",
        description="Integration method ('midpoint' or 'kutta-merson')",
    )

    # Domain and starting point
    lower: float = Field(default=DEFAULT_LOWER, allow_inf_nan=False)
    upper: float = Field(default=DEFAULT_UPPER, allow_inf_nan=False)
    n_points: int = Field(default=DEFAULT_CONTROL_POINTS, ge=1)
    x0: float = Field(default=DEFAULT_X0, allow_inf_nan=False)
    y0: float = Field(default=DEFAULT_Y0, allow_inf_nan=False)

    # Kutta-Merson step control
    tolerance: float = Field(default=DEFAULT_TOLERANCE, gt=0.0, allow_inf_nan=False)
    max_halvings: int = Field(default=DEFAULT_MAX_HALVINGS, ge=0)
    x_grid: Literal["nominal", "actual"] = Field(
        default="nominal",
        description="Whether X follows the nominal grid or the accepted steps",
    )

    @model_validator(mode="after")
    def check_method_and_bounds(self) -> IntegratorSettings:
        self.method = normalize_method(self.method)
        if self.upper <= self.lower:
            raise ValueError(
                _BOUNDS_ORDER_ERROR.format(lower=self.lower, upper=self.upper)
            )
        return self

    def to_problem_config(self) -> ProblemConfig:
        """Convert these settings to a native ProblemConfig.

        Returns:
            Fully constructed ProblemConfig instance.
        """
        return ProblemConfig(
            lower=self.lower,
            upper=self.upper,
            n_points=self.n_points,
            x0=self.x0,
            y0=self.y0,
            tolerance=self.tolerance,
            max_halvings=self.max_halvings,
            x_grid=self.x_grid,
        )

    def build(
        self,
        equation: ScalarEquation | ScalarRHS | None = None,
    ) -> FixedStepIntegrator | AdaptiveStepIntegrator:
        """Construct the configured integrator.

        Args:
            equation: Equation or bare right-hand side; defaults to the
                reference equation.

        Returns:
            A ready-to-run integrator.
        """
        return build_integrator(self.method, self.to_problem_config(), equation)


def integrator_from_mapping(
    settings: Mapping[str, Any],
    equation: ScalarEquation | ScalarRHS | None = None,
) -> FixedStepIntegrator | AdaptiveStepIntegrator:
    """Validate a settings mapping and build the integrator it describes.

    Args:
        settings: Mapping of IntegratorSettings fields.
        equation: Equation or bare right-hand side.

    Returns:
        A ready-to-run integrator.
    """
    return IntegratorSettings.model_validate(dict(settings)).build(equation)
