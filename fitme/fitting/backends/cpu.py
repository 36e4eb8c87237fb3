"""
CPU reference backend for nonlinear least squares.

Damped Gauss-Newton with Marquardt scaling (Levenberg-Marquardt). Each
iteration solves the damped normal equations

    (J'J + lambda * diag(J'J)) delta = -J'r

with r = y - f(p) and J = dr/dp from central differences. A step that
lowers the sum of squares is accepted and lambda shrinks; otherwise lambda
grows and the step is retried from the same point.

Termination:
    - accepted step with relative reduction in SSR <= ftol
    - ||delta|| <= xtol * (||p|| + xtol)
    - SSR exactly zero
    - no downhill step even at max_damping (a local minimum at working
      precision)
    - max_iter reached -> ConvergenceError
"""

from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import LinAlgError, solve

from fitme.core.compute.linalg import covariance_diagonal
from fitme.core.compute.timing import Timer
from fitme.core.compute.tolerances import DEFAULT_TOLERANCES, SolverTolerances
from fitme.core.exceptions import ConvergenceError
from fitme.core.result import Result
from fitme.fitting._kernels import jacobian, residuals, sum_of_squares
from fitme.fitting.design import FitDesign
from fitme.fitting.solution import FitParams

# Floor for Marquardt scaling entries, so a parameter with a zero gradient
# column still gets a positive damping term.
_MIN_SCALE = 1e-12


class CPULevenbergMarquardtBackend:
    """
    CPU backend using Levenberg-Marquardt with finite-difference Jacobians.

    Implements the Backend protocol for FitDesign -> FitParams.
    """

    def __init__(self, tolerances: SolverTolerances = DEFAULT_TOLERANCES):
        self._tolerances = tolerances

    @property
    def name(self) -> str:
        return 'cpu_lm'

    @property
    def tolerances(self) -> SolverTolerances:
        return self._tolerances

    def solve(self, design: FitDesign, start: NDArray) -> Result[FitParams]:
        """
        Minimise the sum of squared residuals from `start`.

        Args:
            design: Validated fitting design
            start: Initial parameter vector (k,)

        Returns:
            Result containing FitParams

        Raises:
            ConvergenceError: If max_iter is reached without meeting a
                stopping criterion
            SingularMatrixError: If the Jacobian at the optimum is
                rank-deficient
            EvaluationError: If the model cannot be evaluated
        """
        tol = self._tolerances
        timer = Timer()
        timer.start()

        warnings_list: list[str] = []
        initial = np.array(start, dtype=np.float64)
        p = initial.copy()

        with timer.section('residuals'):
            r = residuals(design, p, tol)
        ssr = sum_of_squares(r)

        lam = tol.initial_damping
        converged = False
        reason = None
        final_change: float | None = None
        iteration = 0

        # ------------------------------------------------------------------
        # Damped Gauss-Newton loop
        # ------------------------------------------------------------------
        while iteration < tol.max_iter:
            if ssr == 0.0:
                converged, reason = True, 'zero_residual'
                break

            iteration += 1
            with timer.section('jacobian'):
                J = jacobian(design, p, tol)
                A = J.T @ J
                g = J.T @ r
                scale = np.maximum(np.diag(A), _MIN_SCALE)

            accepted = False
            with timer.section('step'):
                while lam <= tol.max_damping:
                    try:
                        delta = solve(A + lam * np.diag(scale), -g, assume_a='pos')
                    except LinAlgError:
                        lam *= tol.damping_increase
                        continue

                    p_new = p + delta
                    r_new = residuals(design, p_new, tol)
                    ssr_new = sum_of_squares(r_new)
                    if ssr_new < ssr:
                        accepted = True
                        lam = max(lam / tol.damping_decrease, tol.min_damping)
                        break
                    lam *= tol.damping_increase

            if not accepted:
                converged, reason = True, 'no_descent'
                break

            final_change = (ssr - ssr_new) / ssr
            small_step = np.linalg.norm(delta) <= tol.xtol * (np.linalg.norm(p) + tol.xtol)
            p, r, ssr = p_new, r_new, ssr_new

            if final_change <= tol.ftol:
                converged, reason = True, 'ftol'
                break
            if small_step:
                converged, reason = True, 'xtol'
                break
            if ssr == 0.0:
                converged, reason = True, 'zero_residual'
                break

        if not converged:
            raise ConvergenceError(
                f"fit did not converge in {tol.max_iter} iterations "
                f"(last relative change in sum of squares: {final_change})",
                iterations=iteration,
                final_change=final_change,
                reason='max_iterations',
                threshold=tol.ftol,
            )

        # ------------------------------------------------------------------
        # Covariance at the optimum
        # ------------------------------------------------------------------
        with timer.section('covariance'):
            J = jacobian(design, p, tol)
            cov = covariance_diagonal(J, rtol=tol.rank_rtol)

        with np.errstate(all='ignore'):
            n_sentinel = int(np.sum(~np.isfinite(design.predict(p))))
        if n_sentinel:
            warnings_list.append(
                f"{n_sentinel} of {design.n} rows are not finite at the fitted "
                f"parameters; their residuals were replaced by "
                f"{tol.nonfinite_residual:g}"
            )

        timer.stop()

        params = FitParams(
            parameter_values=p,
            covariance_diagonal=cov,
            ssr=ssr,
            n_iter=iteration,
            converged=converged,
            initial_values=initial,
        )

        info: dict[str, Any] = {
            'method': 'levenberg_marquardt',
            'iterations': iteration,
            'termination': reason,
            'final_damping': lam,
            'final_change': final_change,
            'jacobian_evaluations': timer.counts().get('jacobian', 0),
        }

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )
