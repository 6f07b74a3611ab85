"""
Model fitting.

Public API:
    lm(formula, data)                       -> LinearSolution
    glm(formula, data, family, link)        -> GLMSolution
    lmm(formula, data, reml)                -> LMMSolution

Every function has the Fitter signature ``fit(formula, data, **options)``
and records its options on the result so that ``solution.refit(new_data)``
reproduces the same fit on other data.
"""

from __future__ import annotations

import warnings
from typing import Any
import numpy as np
from scipy.optimize import minimize

from pyeffectsize.core.result import Result
from pyeffectsize.core.compute.timing import Timer
from pyeffectsize.core.compute.linalg.qr import qr_solve, unscaled_covariance
from pyeffectsize.core.exceptions import ConvergenceError, ValidationError
from pyeffectsize.models.formula import Formula
from pyeffectsize.models.design import ModelDesign
from pyeffectsize.models.families import Family, Link, resolve_family
from pyeffectsize.models._common import LinearParams, GLMParams, LMMParams
from pyeffectsize.models._irls import irls, null_deviance
from pyeffectsize.models._pls import (
    intercept_blocks, build_z, build_lambda, solve_pls,
    profiled_deviance, deviance_from_pls, fixed_effects_vcov,
)
from pyeffectsize.models.solution import LinearSolution, GLMSolution, LMMSolution


def lm(formula: str | Formula, data: Any) -> LinearSolution:
    """
    Ordinary least squares via QR.

    Args:
        formula: e.g. "mpg ~ wt + am"; random-effect terms are rejected
        data: DataSource, DataFrame or mapping of columns

    Returns:
        LinearSolution

    Raises:
        ValidationError: Bad formula or data
        SingularMatrixError: Rank-deficient model matrix

    Examples:
        >>> fit = lm("mpg ~ wt + am", ds)
        >>> fit.term_names
        ('(Intercept)', 'wt', 'am1')
    """
    timer = Timer()
    timer.start()

    design = ModelDesign.build(formula, data)
    if design.formula.is_mixed:
        raise ValidationError(
            f"lm: formula has random effects {design.formula.groups}; use lmm()"
        )

    with timer.section('qr_solve'):
        X, y = design.X, design.y
        beta, qr_result = qr_solve(X, y)

    with timer.section('residuals'):
        fitted = X @ beta
        residuals = y - fitted
        rss = float(residuals @ residuals)
        if design.matrix.has_intercept:
            tss = float(np.sum((y - y.mean()) ** 2))
        else:
            tss = float(y @ y)
        df_residual = design.n - qr_result.rank
        sigma_sq = rss / df_residual
        vcov = sigma_sq * unscaled_covariance(qr_result.R)

    timer.stop()

    params = LinearParams(
        coefficients=beta,
        coefficient_names=design.matrix.column_names,
        vcov=vcov,
        residuals=residuals,
        fitted_values=fitted,
        rss=rss,
        tss=tss,
        rank=qr_result.rank,
        df_residual=df_residual,
        sigma=float(np.sqrt(sigma_sq)),
    )
    result = Result(
        params=params,
        info={'method': 'qr', 'fit_options': {}},
        timing=timer.result(),
        backend_name='cpu_qr',
    )
    return LinearSolution(_result=result, _design=design)


def glm(
    formula: str | Formula,
    data: Any,
    family: str | Family = 'gaussian',
    link: str | Link | None = None,
    *,
    tol: float = 1e-8,
    max_iter: int = 25,
) -> GLMSolution:
    """
    Generalized linear model via IRLS.

    Args:
        formula: Model formula (no random effects)
        data: DataSource, DataFrame or mapping of columns
        family: 'gaussian', 'binomial', 'poisson' or a Family instance
        link: Link name or instance; default is the family's canonical link
        tol: Relative deviance change for convergence
        max_iter: Maximum IRLS iterations

    Returns:
        GLMSolution. Non-convergence is reported through ``converged`` and
        a RuntimeWarning, not raised.
    """
    timer = Timer()
    timer.start()

    family_obj = resolve_family(family, link)
    design = ModelDesign.build(formula, data)
    if design.formula.is_mixed:
        raise ValidationError(
            f"glm: formula has random effects {design.formula.groups}; "
            f"only Gaussian mixed models are supported (lmm)"
        )
    y = design.y
    if family_obj.name == 'binomial' and (np.any(y < 0) or np.any(y > 1)):
        raise ValidationError("binomial response must lie in [0, 1]")
    if family_obj.name == 'poisson' and np.any(y < 0):
        raise ValidationError("poisson response must be non-negative")

    with timer.section('irls'):
        fit = irls(design.X, y, family_obj, tol=tol, max_iter=max_iter)

    with timer.section('null_deviance'):
        null_dev = null_deviance(y, family_obj, design.matrix.has_intercept)

    df_residual = design.n - design.p
    if family_obj.dispersion_is_fixed:
        dispersion = 1.0
    else:
        dispersion = fit.deviance / df_residual

    warn_list = []
    if not fit.converged:
        msg = f"IRLS did not converge in {max_iter} iterations (deviance={fit.deviance:.6f})"
        warnings.warn(msg, RuntimeWarning, stacklevel=2)
        warn_list.append(msg)

    timer.stop()

    params = GLMParams(
        coefficients=fit.beta,
        coefficient_names=design.matrix.column_names,
        vcov=dispersion * fit.unscaled_vcov,
        fitted_values=fit.mu,
        linear_predictor=fit.eta,
        deviance=fit.deviance,
        null_deviance=null_dev,
        dispersion=dispersion,
        df_residual=df_residual,
        family_name=family_obj.name,
        link_name=family_obj.link.name,
        converged=fit.converged,
        n_iter=fit.n_iter,
    )
    result = Result(
        params=params,
        info={
            'method': 'irls_qr',
            'converged': fit.converged,
            'fit_options': {
                'family': family_obj.name,
                'link': family_obj.link.name,
                'tol': tol,
                'max_iter': max_iter,
            },
        },
        timing=timer.result(),
        backend_name='cpu_irls',
        warnings=tuple(warn_list),
    )
    return GLMSolution(_result=result, _design=design)


def lmm(
    formula: str | Formula,
    data: Any,
    reml: bool = True,
    *,
    tol: float = 1e-8,
    max_iter: int = 200,
    rng: np.random.Generator | None = None,
    n_starts: int = 3,
) -> LMMSolution:
    """
    Linear mixed model with random intercepts, by profiled REML or ML.

    Args:
        formula: e.g. "y ~ x + (1 | subject)"; at least one random intercept
        data: DataSource, DataFrame or mapping of columns
        reml: REML (default) or ML estimation
        tol: Optimizer tolerance
        max_iter: Maximum optimizer iterations
        rng: If given, ``n_starts`` extra random starting values for θ are
            drawn from it and the best optimum is kept
        n_starts: Number of extra random starts when ``rng`` is given

    Returns:
        LMMSolution. Fixed-effect df are n - p.

    Raises:
        ValidationError: No random-effect term in the formula
        ConvergenceError: No starting value produced a finite deviance
    """
    timer = Timer()
    timer.start()

    design = ModelDesign.build(formula, data)
    if not design.formula.is_mixed:
        raise ValidationError("lmm: formula has no '(1 | group)' term; use lm()")

    X, y = design.X, design.y
    n, p = design.n, design.p

    with timer.section('setup'):
        blocks = intercept_blocks(design.groups)
        Z = build_z(blocks, n)
        starts = [np.ones(len(blocks))]
        if rng is not None:
            starts.extend(rng.uniform(0.1, 2.0, size=len(blocks)) for _ in range(n_starts))
        bounds = [(0.0, None)] * len(blocks)

    with timer.section('optimization'):
        best = None
        for start in starts:
            res = minimize(
                profiled_deviance,
                start,
                args=(X, Z, y, blocks, reml),
                method='L-BFGS-B',
                bounds=bounds,
                options={'maxiter': max_iter, 'ftol': tol, 'gtol': tol * 10},
            )
            if np.isfinite(res.fun) and (best is None or res.fun < best.fun):
                best = res

    if best is None:
        raise ConvergenceError(
            "LMM optimizer found no finite deviance", iterations=max_iter, reason='non_finite'
        )

    converged = bool(best.success)
    theta_hat = np.asarray(best.x, dtype=np.float64)
    warn_list = []
    if not converged:
        msg = f"LMM optimizer did not converge after {best.nit} iterations: {best.message}"
        warnings.warn(msg, RuntimeWarning, stacklevel=2)
        warn_list.append(msg)

    with timer.section('final_solve'):
        Lambda = build_lambda(theta_hat, blocks)
        pls = solve_pls(X, Z, y, Lambda, reml=reml)
        vcov = fixed_effects_vcov(pls, X, Z, Lambda)
        log_lik = -0.5 * deviance_from_pls(pls, n, p, reml)

    random_effects = {}
    offset = 0
    for block in blocks:
        random_effects[block.name] = pls.b[offset:offset + block.n_levels]
        offset += block.n_levels

    timer.stop()

    params = LMMParams(
        coefficients=pls.beta,
        coefficient_names=design.matrix.column_names,
        vcov=vcov,
        residual_variance=pls.sigma_sq,
        group_variances={
            block.name: float(theta_hat[k] ** 2 * pls.sigma_sq)
            for k, block in enumerate(blocks)
        },
        theta=theta_hat,
        log_likelihood=float(log_lik),
        reml=reml,
        n_obs=n,
        n_groups={block.name: block.n_levels for block in blocks},
        df_residual=n - p,
        converged=converged,
        n_iter=int(best.nit),
        random_effects=random_effects,
        fitted_values=pls.fitted,
        residuals=pls.residuals,
    )
    result = Result(
        params=params,
        info={
            'method': 'REML' if reml else 'ML',
            'optimizer': 'L-BFGS-B',
            'converged': converged,
            'deviance': float(best.fun),
            'fit_options': {'reml': reml, 'tol': tol, 'max_iter': max_iter, 'n_starts': n_starts},
        },
        timing=timer.result(),
        backend_name='cpu_lmm',
        warnings=tuple(warn_list),
    )
    return LMMSolution(_result=result, _design=design)
