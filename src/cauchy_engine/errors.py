# src/cauchy_engine/errors.py
"""Error types for cauchy_engine.

This module centralizes the explicit error classes raised by the integrators
and their configuration layer. Each class also derives from the builtin
exception a caller would naturally catch (ValueError, RuntimeError), so
existing ``except ValueError`` handlers keep working.

Numeric domain faults (for example a zero denominator in the right-hand side)
are deliberately absent: they propagate as NaN/inf into the solution arrays.
"""

from __future__ import annotations


class CauchyEngineError(Exception):
    """Base exception for cauchy_engine errors."""


class ConfigurationError(CauchyEngineError, ValueError):
    """Raised when a problem configuration is invalid."""


class NotYetRunError(CauchyEngineError, RuntimeError):
    """Raised when results are requested before a completed run."""


class ReportClosedError(CauchyEngineError, RuntimeError):
    """Raised when appending to a run report that was already finalized."""


class ConvergenceFailure(CauchyEngineError, RuntimeError):  # noqa: N818
    """Raised when adaptive step halving cannot satisfy the tolerance.

    Attributes:
        index: Grid index the integrator was trying to advance from.
        step: Step size of the last rejected attempt.
        local_error: Local error estimate of the last rejected attempt.
    """

    def __init__(self, index: int, step: float, local_error: float) -> None:
        """Initialize ConvergenceFailure.

        Args:
            index: Grid index the integrator was trying to advance from.
            step: Step size of the last rejected attempt.
            local_error: Local error estimate of the last rejected attempt.
        """
        self.index = int(index)
        self.step = float(step)
        self.local_error = float(local_error)
        msg = (
            f"Step halving did not converge while advancing from index {index}: "
            f"last attempt h={step!r} gave local error {local_error!r}."
        )
        super().__init__(msg)
