"""
Solver tolerances and tunable constants.

Single place for every number that controls when the optimiser stops and
how it treats bad regions of parameter space. `fit()` accepts overrides for
the user-facing ones (max_iter, ftol, xtol) and builds a new
SolverTolerances with dataclasses.replace.
"""

from dataclasses import dataclass

import numpy as np

# Residual substituted for a row whose prediction is NaN/Inf. Empirical:
# large enough that any finite region beats it, small enough that its
# square stays finite in float64.
NONFINITE_RESIDUAL = 1.0e10

# Relative step for central-difference Jacobians, ~eps^(1/3).
FD_RELATIVE_STEP = float(np.cbrt(np.finfo(np.float64).eps))

# Last-resort starting value when no probe gives a finite first-row value.
FALLBACK_START_VALUE = 0.1


@dataclass(frozen=True)
class SolverTolerances:
    """
    Stopping and damping controls for the Levenberg-Marquardt loop.

    Attributes:
        ftol: Stop when an accepted step reduces the sum of squares by a
            relative amount <= ftol
        xtol: Stop when ||step|| <= xtol * (||params|| + xtol)
        max_iter: Iteration cap; reaching it is a ConvergenceError
        initial_damping: Starting Marquardt lambda
        damping_increase: Factor applied to lambda after a rejected step
        damping_decrease: Divisor applied to lambda after an accepted step
        min_damping: Floor for lambda
        max_damping: Ceiling for lambda; reaching it means no downhill
            step exists at working precision
        nonfinite_residual: Sentinel residual for non-finite predictions
        fd_step: Relative central-difference step
        rank_rtol: Relative tolerance for declaring the Jacobian
            rank-deficient at the optimum
    """
    ftol: float = 1e-10
    xtol: float = 1e-10
    max_iter: int = 200
    initial_damping: float = 1e-3
    damping_increase: float = 10.0
    damping_decrease: float = 10.0
    min_damping: float = 1e-12
    max_damping: float = 1e16
    nonfinite_residual: float = NONFINITE_RESIDUAL
    fd_step: float = FD_RELATIVE_STEP
    rank_rtol: float = 1e-8


DEFAULT_TOLERANCES = SolverTolerances()
