"""
MINPACK backend for nonlinear least squares.

Delegates the iteration to scipy.optimize.least_squares(method='lm'), which
wraps MINPACK's lmdif. Starting point, sentinel residuals and covariance
follow the same contracts as the reference backend, so the two backends
are interchangeable.
"""

from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import least_squares

from fitme.core.compute.linalg import covariance_diagonal
from fitme.core.compute.timing import Timer
from fitme.core.compute.tolerances import DEFAULT_TOLERANCES, SolverTolerances
from fitme.core.exceptions import ConvergenceError
from fitme.core.result import Result
from fitme.fitting._kernels import jacobian, residuals, sum_of_squares
from fitme.fitting.design import FitDesign
from fitme.fitting.solution import FitParams

# least_squares status codes
_STATUS_MAX_NFEV = 0
_TERMINATION = {
    1: 'gtol',
    2: 'ftol',
    3: 'xtol',
    4: 'ftol_xtol',
}


class CPUMinpackBackend:
    """
    CPU backend using MINPACK Levenberg-Marquardt via SciPy.

    Implements the Backend protocol for FitDesign -> FitParams.
    """

    def __init__(self, tolerances: SolverTolerances = DEFAULT_TOLERANCES):
        self._tolerances = tolerances

    @property
    def name(self) -> str:
        return 'cpu_minpack'

    @property
    def tolerances(self) -> SolverTolerances:
        return self._tolerances

    def solve(self, design: FitDesign, start: NDArray) -> Result[FitParams]:
        """
        Minimise the sum of squared residuals from `start` with MINPACK.

        max_iter is translated to a function-evaluation budget of
        max_iter * (k + 1), one forward-difference Jacobian plus one trial
        point per iteration.

        Raises:
            ConvergenceError: If the evaluation budget is exhausted
            SingularMatrixError: If the Jacobian at the optimum is
                rank-deficient
            EvaluationError: If the model cannot be evaluated
        """
        tol = self._tolerances
        timer = Timer()
        timer.start()

        initial = np.array(start, dtype=np.float64)
        max_nfev = tol.max_iter * (design.k + 1)

        with timer.section('least_squares'):
            res = least_squares(
                lambda p: residuals(design, p, tol),
                initial,
                method='lm',
                ftol=tol.ftol,
                xtol=tol.xtol,
                max_nfev=max_nfev,
            )

        if res.status == _STATUS_MAX_NFEV:
            raise ConvergenceError(
                f"fit did not converge within {max_nfev} function evaluations "
                f"({res.message})",
                iterations=int(res.nfev),
                reason='max_iterations',
                threshold=tol.ftol,
            )

        p = np.asarray(res.x, dtype=np.float64)
        with timer.section('covariance'):
            J = jacobian(design, p, tol)
            cov = covariance_diagonal(J, rtol=tol.rank_rtol)

        warnings_list: list[str] = []
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
            ssr=sum_of_squares(residuals(design, p, tol)),
            n_iter=int(res.nfev),
            converged=bool(res.success),
            initial_values=initial,
        )

        info: dict[str, Any] = {
            'method': 'minpack_lm',
            'iterations': int(res.nfev),
            'termination': _TERMINATION.get(res.status, str(res.status)),
            'message': res.message,
        }

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )
