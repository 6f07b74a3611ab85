"""
Parameter standardization.

Public API:
    standardize_parameters(model, method, ...)  -> StandardizedSolution
    standardize_info(model, robust, two_sd)     -> tuple[TermDeviations, ...]
"""

from __future__ import annotations

import warnings
from typing import Any
import numpy as np
from scipy import stats

from pyeffectsize.core.result import Result
from pyeffectsize.core.compute.timing import Timer
from pyeffectsize.core.capabilities import CAPABILITY_DESIGN_MATRIX
from pyeffectsize.core.exceptions import EffectSizeError
from pyeffectsize.dispersion import dispersion
from pyeffectsize.introspect import ModelView, introspect
from pyeffectsize.models._contrasts import ROLE_INTERCEPT
from pyeffectsize.standardize._common import (
    DEFAULT_CI,
    StandardizationRequest,
    StandardizedCoefficient,
    StandardizedParams,
    TermDeviations,
)
from pyeffectsize.standardize._methods import (
    POSTHOC_METHODS,
    TermEstimate,
    TermOutcome,
    response_pair,
    predictor_scale,
    reference_rows,
)
from pyeffectsize.standardize._refit import refit
from pyeffectsize.standardize.solution import StandardizedSolution


def standardize_parameters(
    model: Any,
    method: str = 'refit',
    *,
    robust: bool = False,
    two_sd: bool = False,
    exponentiate: bool = False,
    ci: float = DEFAULT_CI,
    strict: bool = False,
    seed: int | None = None,
) -> StandardizedSolution:
    """
    Standardized coefficients of a fitted model.

    Args:
        model: Fitted model: a package solution, any FittedModel, a
            ModelView, or a type with a registered adapter
        method: 'refit' (default), 'posthoc' ('classic'), 'smart',
            'basic' or 'pseudo'
        robust: Median/MAD instead of mean/SD
        two_sd: Scale predictors by two spreads
        exponentiate: Exponentiate estimates and CI (log/logit links)
        ci: Confidence level
        strict: Raise the first per-term error instead of collecting it
        seed: Seed for the generator passed to the fitter by 'refit'

    Returns:
        StandardizedSolution with one row per model term

    Raises:
        ValidationError: Bad options, or the model lacks what the method needs
        MissingGroupingError: 'pseudo' on a model without grouping
        DegenerateColumnError: Constant response (all methods) or constant
            predictor under 'refit'
        RefitError: 'refit' could not re-estimate the model

    Examples:
        >>> fit = lm("mpg ~ wt + am", mtcars)
        >>> std = standardize_parameters(fit, method='posthoc')
        >>> std['wt'].estimate
        -0.7577...
    """
    timer = Timer()
    timer.start()

    request = StandardizationRequest.build(
        method,
        robust=robust,
        two_sd=two_sd,
        exponentiate=exponentiate,
        ci=ci,
        strict=strict,
        seed=seed,
    )

    with timer.section('introspect'):
        view = introspect(model)

    notes: list[str] = []

    with timer.section(request.method):
        if request.method == 'refit':
            refit_view = refit(view, request)
            outcomes: dict[str, TermOutcome] = {
                name: TermEstimate(
                    estimate=float(refit_view.coefficients[j]),
                    se=float(refit_view.standard_errors[j]),
                )
                for j, name in enumerate(refit_view.names)
            }
            inference_view = refit_view
        else:
            view.require(CAPABILITY_DESIGN_MATRIX, request.method)
            outcomes = POSTHOC_METHODS[request.method](view, request, notes)
            inference_view = view

    exponentiate_now = request.exponentiate
    if exponentiate_now and not view.family.link.multiplicative:
        notes.append(
            f"exponentiate ignored: {view.family.link.name} link does not give "
            f"multiplicative effects"
        )
        exponentiate_now = False

    with timer.section('inference'):
        q = _critical_value(inference_view, request.ci)
        rows = []
        errors: dict[str, EffectSizeError] = {}
        for name, outcome in outcomes.items():
            if isinstance(outcome, EffectSizeError):
                if request.strict:
                    raise outcome
                errors[name] = outcome
                continue
            rows.append(_row(name, outcome, q, exponentiate_now))

    for note in notes:
        warnings.warn(note, RuntimeWarning, stacklevel=2)

    timer.stop()

    response_spread = (
        response_pair(view, request.robust).spread
        if view.response is not None else float('nan')
    )
    params = StandardizedParams(
        term_names=view.names,
        coefficients=tuple(rows),
        errors=errors,
        response_spread=float(response_spread),
    )
    result = Result(
        params=params,
        info={
            'method': request.method,
            'robust': request.robust,
            'two_sd': request.two_sd,
            'exponentiate': exponentiate_now,
            'ci': request.ci,
            'family': view.family.name,
            'link': view.family.link.name,
            'model_type': view.model_type,
            'n_obs': view.n_obs,
            'seed': request.seed,
        },
        timing=timer.result(),
        backend_name=f"cpu_{request.method}",
        warnings=tuple(notes),
    )
    return StandardizedSolution(_result=result)


def standardize_info(
    model: Any,
    *,
    robust: bool = False,
    two_sd: bool = False,
) -> tuple[TermDeviations, ...]:
    """
    The dispersions each method would divide and multiply by, per term.

    Nothing is divided here, so nothing raises: a constant column shows a
    basic spread of 0.0, and a posthoc spread that cannot be computed
    (constant or unresolvable variable) shows as NaN.
    """
    request = StandardizationRequest.build('posthoc', robust=robust, two_sd=two_sd)
    view = introspect(model)
    view.require(CAPABILITY_DESIGN_MATRIX, 'standardize_info')

    y_pair = response_pair(view, robust)
    out = []
    for j, col in enumerate(view.columns):
        if col.role == ROLE_INTERCEPT:
            continue
        basic_pair = dispersion(view.matrix.X[:, j], robust, name=col.name)

        try:
            dev_posthoc, center_posthoc, _ = predictor_scale(view, col, request, 'posthoc')
        except EffectSizeError:
            dev_posthoc, center_posthoc = float('nan'), None

        dev_response_smart = y_pair.spread
        if view.family.standardize_response:
            try:
                rows = reference_rows(view, col, 'smart')
            except EffectSizeError:
                dev_response_smart = float('nan')
            else:
                if rows is not None:
                    dev_response_smart = dispersion(view.response, robust, rows).spread

        out.append(TermDeviations(
            term=col.name,
            role=col.role,
            deviation_basic=basic_pair.spread * request.predictor_multiplier,
            deviation_posthoc=float(dev_posthoc),
            deviation_response_basic=y_pair.spread,
            deviation_response_smart=float(dev_response_smart),
            center_basic=basic_pair.center,
            center_posthoc=0.0 if center_posthoc is None else float(center_posthoc),
        ))
    return tuple(out)


def _critical_value(view: ModelView, ci: float) -> float:
    """Student t with residual df for estimated dispersion, normal otherwise."""
    p = 0.5 + ci / 2.0
    if view.dispersion_estimated and np.isfinite(view.df_residual) and view.df_residual > 0:
        return float(stats.t.ppf(p, view.df_residual))
    return float(stats.norm.ppf(p))


def _row(name: str, outcome: TermEstimate, q: float, exponentiate: bool) -> StandardizedCoefficient:
    estimate, se = outcome.estimate, outcome.se
    low, high = estimate - q * se, estimate + q * se
    if exponentiate:
        # delta method: d/dβ exp(β) = exp(β)
        se = se * np.exp(estimate)
        estimate, low, high = np.exp(estimate), np.exp(low), np.exp(high)
    return StandardizedCoefficient(
        term=name,
        estimate=float(estimate),
        se=float(se),
        ci_low=float(low),
        ci_high=float(high),
        approximate=outcome.approximate,
    )
