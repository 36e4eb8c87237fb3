"""
Residual and Jacobian kernels shared by the backends.
"""

import numpy as np
from numpy.typing import NDArray

from fitme.core.compute.tolerances import SolverTolerances
from fitme.fitting.design import FitDesign


def residuals(
    design: FitDesign, params: NDArray[np.float64], tolerances: SolverTolerances
) -> NDArray[np.float64]:
    """Sentinel-substituted residual vector y - f(params)."""
    return design.residuals(params, tolerances.nonfinite_residual)


def sum_of_squares(r: NDArray[np.float64]) -> float:
    return float(r @ r)


def jacobian(
    design: FitDesign, params: NDArray[np.float64], tolerances: SolverTolerances
) -> NDArray[np.float64]:
    """
    Central-difference Jacobian of the residual vector (n x k).

    Step for parameter j is fd_step * max(|p_j|, 1). Residuals are
    sentinel-substituted, so a probe that leaves the formula's domain
    produces a huge but finite slope rather than NaN.
    """
    n, k = design.n, design.k
    J = np.empty((n, k), dtype=np.float64)
    for j in range(k):
        h = tolerances.fd_step * max(abs(params[j]), 1.0)
        forward = params.copy()
        backward = params.copy()
        forward[j] += h
        backward[j] -= h
        r_forward = residuals(design, forward, tolerances)
        r_backward = residuals(design, backward, tolerances)
        J[:, j] = (r_forward - r_backward) / (forward[j] - backward[j])
    return J
