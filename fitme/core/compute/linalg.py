"""
Linear algebra kernels for fitme.

QR-based rank detection and parameter covariance for a least-squares
Jacobian. CPU only, via NumPy/SciPy (LAPACK under the hood).
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import solve_triangular

from fitme.core.exceptions import SingularMatrixError


@dataclass(frozen=True)
class QRResult:
    """
    Result of QR decomposition.

    Attributes:
        Q: Orthogonal matrix (n x k where k = min(n, p))
        R: Upper triangular matrix (k x p)
        rank: Numerical rank determined from R diagonal
    """
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    rank: int


def qr_cpu(X: NDArray[np.floating[Any]], rtol: float | None = None) -> QRResult:
    """
    Reduced QR decomposition using LAPACK (via NumPy).

    The numerical rank counts diagonal entries of R above
    max(n, p) * rtol * max|R_ii|, with rtol defaulting to machine epsilon.
    Pass a larger rtol when X carries noise of its own (finite-difference
    Jacobians are only accurate to ~eps^(2/3)).
    """
    Q, R = np.linalg.qr(X, mode='reduced')

    if rtol is None:
        rtol = float(np.finfo(X.dtype).eps)

    diag_R = np.abs(np.diag(R))
    if len(diag_R) > 0 and np.max(diag_R) > 0:
        tol = max(X.shape) * rtol * np.max(diag_R)
        rank = int(np.sum(diag_R > tol))
    else:
        rank = 0

    return QRResult(Q=Q, R=R, rank=rank)


def covariance_diagonal(
    J: NDArray[np.floating[Any]], rtol: float | None = None
) -> NDArray[np.floating[Any]]:
    """
    Diagonal of (J'J)^-1 for an n x k Jacobian.

    rtol is the relative rank tolerance handed to qr_cpu.

    With J = QR, (J'J)^-1 = R^-1 R^-T, so the diagonal is the row-wise sum
    of squares of R^-1. This never forms J'J, which would square the
    condition number.

    Raises:
        SingularMatrixError: If J is rank-deficient (rank < k)
    """
    n, k = J.shape
    if n < k:
        raise SingularMatrixError(
            f"Jacobian has fewer rows than parameters: n={n}, k={k}",
            matrix_name='J',
            rank=n,
            expected_rank=k,
        )

    qr_result = qr_cpu(J, rtol=rtol)
    if qr_result.rank < k:
        raise SingularMatrixError(
            f"Jacobian is rank-deficient at the optimum: rank={qr_result.rank}, "
            f"expected={k}. Some parameters are not identifiable from the data.",
            matrix_name='J',
            rank=qr_result.rank,
            expected_rank=k,
        )

    R = qr_result.R[:k, :k]
    R_inv = solve_triangular(R, np.eye(k), lower=False)
    return np.sum(R_inv ** 2, axis=1)
