"""
Penalized least squares and profiled deviance for random-intercept LMMs.

For fixed θ (one relative standard deviation σ_b/σ per grouping factor)
the penalized least squares problem

    minimize ‖y - Xβ - ZΛu‖² + ‖u‖²

gives the profiled fixed effects and the spherical random effects
u = Λ⁻¹b. σ² is profiled out in closed form, leaving a deviance in θ only
that the outer optimizer minimizes.

Only random intercepts are supported, so Λ_θ is diagonal: θ_k repeated
once per level of grouping factor k.

References:
    Bates, D., Maechler, M., Bolker, B., & Walker, S. (2015).
    Fitting Linear Mixed-Effects Models Using lme4.
    Journal of Statistical Software, 67(1), 1-48. Sections 2-3.
"""

from __future__ import annotations

from dataclasses import dataclass
import numpy as np
from numpy.typing import NDArray
import scipy.linalg as sla


@dataclass(frozen=True)
class InterceptBlock:
    """
    Indicator block of Z for one grouping factor.

    Attributes:
        name: Grouping column name.
        levels: Sorted level labels.
        inverse: Level index of every row.
    """
    name: str
    levels: NDArray
    inverse: NDArray

    @property
    def n_levels(self) -> int:
        return int(self.levels.size)


@dataclass(frozen=True)
class PLSResult:
    """Result from a penalized least squares solve.

    Attributes:
        beta: Fixed effects (p,).
        u: Spherical random effects (q,).
        b: Conditional modes b = Λu (q,).
        sigma_sq: Profiled residual variance.
        pwrss: ‖y - Xβ - Zb‖² + ‖u‖².
        L: Cholesky factor of (Λ'Z'ZΛ + I), shape (q, q).
        RX: Cholesky factor of the Schur complement, shape (p, p).
        fitted: Xβ + Zb (n,).
        residuals: y - fitted (n,).
    """
    beta: NDArray
    u: NDArray
    b: NDArray
    sigma_sq: float
    pwrss: float
    L: NDArray
    RX: NDArray
    fitted: NDArray
    residuals: NDArray


def intercept_blocks(groups: dict[str, NDArray]) -> list[InterceptBlock]:
    blocks = []
    for name, labels in groups.items():
        levels, inverse = np.unique(labels, return_inverse=True)
        blocks.append(InterceptBlock(name=name, levels=levels, inverse=inverse))
    return blocks


def build_z(blocks: list[InterceptBlock], n: int) -> NDArray:
    """Random-intercept design: one indicator column per group level."""
    parts = []
    for block in blocks:
        Z_k = np.zeros((n, block.n_levels), dtype=np.float64)
        Z_k[np.arange(n), block.inverse] = 1.0
        parts.append(Z_k)
    return np.hstack(parts)


def build_lambda(theta: NDArray, blocks: list[InterceptBlock]) -> NDArray:
    """Diagonal Λ_θ: θ_k repeated over the levels of factor k."""
    diag = np.concatenate([
        np.full(block.n_levels, theta[k]) for k, block in enumerate(blocks)
    ])
    return np.diag(diag)


def solve_pls(
    X: NDArray,
    Z: NDArray,
    y: NDArray,
    Lambda: NDArray,
    reml: bool = True,
) -> PLSResult:
    """Solve the penalized least squares problem for fixed Λ.

    The normal equations of the penalized system are

        [Λ'Z'ZΛ + I   Λ'Z'X ] [u]   [Λ'Z'y]
        [X'ZΛ         X'X   ] [β] = [X'y  ]

    and u is eliminated through L = chol(Λ'Z'ZΛ + I).
    """
    n, p = X.shape
    q = Z.shape[1]

    ZLam = Z @ Lambda
    L = np.linalg.cholesky(ZLam.T @ ZLam + np.eye(q))

    ZLam_t_y = ZLam.T @ y
    ZLam_t_X = ZLam.T @ X

    cu = sla.solve_triangular(L, ZLam_t_y, lower=True)
    CX = sla.solve_triangular(L, ZLam_t_X, lower=True)

    # Schur complement X'X - CX'CX
    RtR = X.T @ X - CX.T @ CX
    rhs_beta = X.T @ y - CX.T @ cu

    RX = np.linalg.cholesky(RtR)
    tmp = sla.solve_triangular(RX, rhs_beta, lower=True)
    beta = sla.solve_triangular(RX.T, tmp, lower=False)

    cu_final = sla.solve_triangular(L, ZLam_t_y - ZLam_t_X @ beta, lower=True)
    u = sla.solve_triangular(L.T, cu_final, lower=False)
    b = Lambda @ u

    fitted = X @ beta + Z @ b
    residuals = y - fitted
    pwrss = float(np.sum(residuals ** 2)) + float(u @ u)
    sigma_sq = pwrss / (n - p) if reml else pwrss / n

    return PLSResult(
        beta=beta,
        u=u,
        b=b,
        sigma_sq=sigma_sq,
        pwrss=pwrss,
        L=L,
        RX=RX,
        fitted=fitted,
        residuals=residuals,
    )


def profiled_deviance(
    theta: NDArray,
    X: NDArray,
    Z: NDArray,
    y: NDArray,
    blocks: list[InterceptBlock],
    reml: bool = True,
) -> float:
    """Profiled REML (or ML) deviance at θ.

    ML:   d(θ) = log|L_θ|² + n × [1 + log(2π × pwrss/n)]

    REML: d(θ) = log|L_θ|² + log|RX|² + (n-p) × [1 + log(2π × pwrss/(n-p))]
    """
    n, p = X.shape
    pls = solve_pls(X, Z, y, build_lambda(theta, blocks), reml=reml)
    return deviance_from_pls(pls, n, p, reml)


def deviance_from_pls(pls: PLSResult, n: int, p: int, reml: bool) -> float:
    log_det_L = 2.0 * np.sum(np.log(np.maximum(np.diag(pls.L), 1e-20)))
    if reml:
        log_det_RX = 2.0 * np.sum(np.log(np.maximum(np.abs(np.diag(pls.RX)), 1e-20)))
        df = n - p
        return float(log_det_L + log_det_RX
                     + df * (1.0 + np.log(2.0 * np.pi * pls.pwrss / df)))
    return float(log_det_L + n * (1.0 + np.log(2.0 * np.pi * pls.pwrss / n)))


def fixed_effects_vcov(
    pls: PLSResult, X: NDArray, Z: NDArray, Lambda: NDArray,
) -> NDArray:
    """Var(β̂) = σ² (X'V*⁻¹X)⁻¹ with V* = ZΛΛ'Z' + I."""
    n = X.shape[0]
    V_star = Z @ Lambda @ Lambda.T @ Z.T + np.eye(n)
    C = np.linalg.inv(X.T @ np.linalg.solve(V_star, X))
    return pls.sigma_sq * C
