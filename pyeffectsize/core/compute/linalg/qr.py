"""
QR decomposition helpers.

Least squares via QR, shared by the OLS fitter, the IRLS inner solve and
the mixed-model fitter.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray
from scipy.linalg import solve_triangular

from pyeffectsize.core.exceptions import SingularMatrixError


@dataclass(frozen=True)
class QRResult:
    """
    Result of a reduced QR decomposition.

    Attributes:
        Q: Orthonormal columns (n x p)
        R: Upper triangular factor (p x p)
        rank: Numerical rank determined from the R diagonal
    """
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    rank: int


def qr_cpu(X: NDArray[np.floating[Any]]) -> QRResult:
    """
    Reduced QR decomposition using LAPACK (via NumPy).

    The numerical rank uses the same relative threshold as R's dqrdc2:
    diagonal entries below max(n, p) * eps * |R[0, 0]| count as zero.
    """
    Q, R = np.linalg.qr(X, mode='reduced')

    diag_R = np.abs(np.diag(R))
    if len(diag_R) > 0 and diag_R[0] > 0:
        tol = max(X.shape) * np.finfo(X.dtype).eps * diag_R.max()
        rank = int(np.sum(diag_R > tol))
    else:
        rank = 0

    return QRResult(Q=Q, R=R, rank=rank)


def qr_solve(
    X: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
    matrix_name: str = 'X',
) -> tuple[NDArray[np.floating[Any]], QRResult]:
    """
    Solve min_β ||y - Xβ||² via QR decomposition.

        X = QR
        β = R⁻¹ Q'y

    Args:
        X: Design matrix (n x p), must have n >= p
        y: Response vector (n,)
        matrix_name: Name used in the error message

    Returns:
        (β, QRResult)

    Raises:
        SingularMatrixError: If X is rank-deficient
    """
    n, p = X.shape
    if n < p:
        raise SingularMatrixError(
            f"{matrix_name} has more columns ({p}) than rows ({n})",
            matrix_name=matrix_name,
            rank=n,
            expected_rank=p,
        )

    qr_result = qr_cpu(X)
    if qr_result.rank < p:
        raise SingularMatrixError(
            f"{matrix_name} is rank-deficient: rank={qr_result.rank}, expected={p}. "
            f"This indicates perfect multicollinearity or a constant column.",
            matrix_name=matrix_name,
            rank=qr_result.rank,
            expected_rank=p,
        )

    Qty = qr_result.Q.T @ y
    beta = solve_triangular(qr_result.R, Qty, lower=False)
    return beta, qr_result


def unscaled_covariance(R: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    """(X'X)⁻¹ from the R factor: R⁻¹ R⁻ᵀ."""
    p = R.shape[0]
    R_inv = solve_triangular(R, np.eye(p), lower=False)
    return R_inv @ R_inv.T
