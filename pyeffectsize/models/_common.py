"""
Common data types for fitted models.

Contains the frozen parameter payloads that go inside Result[P] envelopes.
Each payload is a pure data container: no methods, no computation.

References:
    Bates, D., Maechler, M., Bolker, B., & Walker, S. (2015).
    Fitting Linear Mixed-Effects Models Using lme4.
    Journal of Statistical Software, 67(1), 1-48.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class LinearParams:
    """
    Parameter payload for ordinary least squares.
    """
    coefficients: NDArray[np.floating[Any]]
    coefficient_names: tuple[str, ...]
    vcov: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    rss: float
    tss: float
    rank: int
    df_residual: int
    sigma: float                       # residual standard error


@dataclass(frozen=True)
class GLMParams:
    """
    Parameter payload for a generalized linear model fitted by IRLS.
    """
    coefficients: NDArray[np.floating[Any]]
    coefficient_names: tuple[str, ...]
    vcov: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]   # μ̂, response scale
    linear_predictor: NDArray[np.floating[Any]]  # η̂ = Xβ̂
    deviance: float
    null_deviance: float
    dispersion: float                  # 1 for binomial/poisson, Pearson χ²/df for gaussian
    df_residual: int
    family_name: str
    link_name: str
    converged: bool
    n_iter: int


@dataclass(frozen=True)
class LMMParams:
    """
    Parameter payload for a random-intercept linear mixed model.
    """
    # Fixed effects
    coefficients: NDArray[np.floating[Any]]
    coefficient_names: tuple[str, ...]
    vcov: NDArray[np.floating[Any]]

    # Variance components
    residual_variance: float                  # σ²
    group_variances: dict[str, float]         # grouping factor -> σ²_b
    theta: NDArray[np.floating[Any]]          # σ_b / σ per grouping factor

    # Model fit
    log_likelihood: float
    reml: bool
    n_obs: int
    n_groups: dict[str, int]
    df_residual: int

    # Convergence
    converged: bool
    n_iter: int

    # Conditional modes and predictions
    random_effects: dict[str, NDArray[np.floating[Any]]]  # group -> (n_levels,)
    fitted_values: NDArray[np.floating[Any]]              # Xβ̂ + Zb̂
    residuals: NDArray[np.floating[Any]]
