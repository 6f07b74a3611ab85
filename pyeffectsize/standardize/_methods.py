"""
Post-hoc standardization methods.

Each method turns the raw coefficients of a ModelView into standardized
ones by arithmetic alone; none of them refits. They differ only in which
dispersion each coefficient is multiplied and divided by:

    posthoc  numeric slope × SD(x) / SD(y); factor and binary
             contrasts / SD(y); interactions × Π SD(numeric parts) / SD(y),
             flagged approximate
    smart    as posthoc, but contrasts are divided by the SD of y over the
             rows at the reference level (Glass's delta convention)
    basic    every model-matrix column treated as numeric:
             b × SD(column) / SD(y)
    pseudo   mixed models: level-1 columns by within-group SDs of x and y,
             level-2 columns by SDs of group means

Every method returns term -> TermEstimate, or term -> the error that
prevented that term's standardization; one failing term never aborts the
others.

References:
    Gelman, A. (2008). Scaling regression inputs by dividing by two
    standard deviations. Statistics in Medicine, 27(15), 2865-2873.
    Hoffman, L. (2015). Longitudinal Analysis: Modeling Within-Person
    Fluctuation and Change. Routledge.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable
import numpy as np
from numpy.typing import NDArray

from pyeffectsize.core.exceptions import EffectSizeError, UnsupportedTermError
from pyeffectsize.dispersion import (
    DispersionPair, dispersion, dispersion_within, dispersion_between,
)
from pyeffectsize.introspect import ModelView, classify_levels, grouping_labels, LEVEL_2
from pyeffectsize.models._contrasts import (
    Column,
    INTERCEPT_NAME,
    ROLE_INTERCEPT,
    ROLE_NUMERIC,
    ROLE_BINARY,
    ROLE_FACTOR,
    ROLE_INTERACTION,
    is_binary,
)
from pyeffectsize.standardize._common import StandardizationRequest


@dataclass(frozen=True)
class TermEstimate:
    """Standardized estimate and SE of one term, before CI and exponentiation."""
    estimate: float
    se: float
    approximate: bool = False


@dataclass(frozen=True)
class _Scale:
    """b_std = b × factor; SE scales the same way."""
    factor: float
    approximate: bool = False


TermOutcome = TermEstimate | EffectSizeError

_KIND_NUMERIC = 'numeric'
_KIND_BINARY = 'binary'
_KIND_FACTOR = 'factor'


# =====================================================================
# Shared helpers
# =====================================================================

def response_name(view: ModelView) -> str:
    return view.formula.response if view.formula is not None else 'response'


def response_pair(view: ModelView, robust: bool, rows=None) -> DispersionPair:
    """
    Dispersion of the response, or (0, 1) when the response stays on its
    link scale (non-Gaussian families).
    """
    if not view.family.standardize_response:
        return DispersionPair(center=0.0, spread=1.0, robust=robust, n=view.n_obs)
    return dispersion(view.response, robust, rows, name=response_name(view))


def resolve_variable(view: ModelView, var: str, term: str, method: str) -> tuple[NDArray | None, str]:
    """
    Find the raw values of one source variable.

    Looks in the model's dataset first, then for a model-matrix column of
    the same name.

    Returns:
        (values, kind); values is None for factors.

    Raises:
        UnsupportedTermError: If the variable cannot be found
    """
    data = view.data
    if data is not None and var in data:
        if data.is_factor(var):
            return None, _KIND_FACTOR
        x = data[var]
        return x, _KIND_BINARY if is_binary(x) else _KIND_NUMERIC

    if view.matrix is not None and var in view.matrix.column_names:
        col = view.column(var)
        if col.role == ROLE_FACTOR:
            return None, _KIND_FACTOR
        x = view.matrix.X[:, view.matrix.index(var)]
        if col.role == ROLE_BINARY or is_binary(x):
            return x, _KIND_BINARY
        return x, _KIND_NUMERIC

    raise UnsupportedTermError(
        f"term '{term}': component '{var}' cannot be resolved to a data column",
        term=term,
        method=method,
    )


def _components(view: ModelView, col: Column, method: str) -> list[tuple[str, NDArray | None, str]]:
    out = []
    for var in col.variables:
        if var in col.levels:
            out.append((var, None, _KIND_FACTOR))
        else:
            values, kind = resolve_variable(view, var, col.name, method)
            out.append((var, values, kind))
    return out


def predictor_scale(
    view: ModelView, col: Column, request: StandardizationRequest, method: str,
) -> tuple[float, float | None, bool]:
    """
    Predictor spread used by posthoc and smart.

    Returns:
        (spread, center or None when the column is not re-centered, approximate)
    """
    mult = request.predictor_multiplier

    if col.role in (ROLE_FACTOR, ROLE_BINARY):
        return 1.0, None, False

    if col.role == ROLE_NUMERIC:
        var = col.variables[0] if col.variables else col.name
        values, kind = resolve_variable(view, var, col.name, method)
        if kind != _KIND_NUMERIC:
            return 1.0, None, False
        pair = dispersion(values, request.robust, name=var)
        return pair.require_spread(column=var, term=col.name) * mult, pair.center, False

    # Interaction: product of the numeric components' spreads
    spread = 1.0
    for var, values, kind in _components(view, col, method):
        if kind == _KIND_NUMERIC:
            pair = dispersion(values, request.robust, name=var)
            spread *= pair.require_spread(column=var, term=col.name) * mult
    return spread, None, True


def reference_rows(view: ModelView, col: Column, method: str) -> NDArray | None:
    """
    Rows where every factor (or binary) part of the column sits at its
    reference level; None for purely numeric columns.

    Raises:
        UnsupportedTermError: If a reference level cannot be located or
            fewer than two rows remain
    """
    n = view.n_obs
    mask = np.ones(n, dtype=bool)
    involved = False

    for var, values, kind in _components(view, col, method) if col.variables else []:
        if kind == _KIND_BINARY:
            mask &= values == 0.0
            involved = True
        elif kind == _KIND_FACTOR:
            mask &= _factor_reference_mask(view, col, var, method)
            involved = True

    if not involved:
        return None
    if int(mask.sum()) < 2:
        raise UnsupportedTermError(
            f"term '{col.name}': {int(mask.sum())} row(s) at the reference level; "
            f"need at least 2",
            term=col.name,
            method=method,
        )
    return mask


def _factor_reference_mask(view: ModelView, col: Column, var: str, method: str) -> NDArray:
    data = view.data
    reference = col.reference.get(var)
    if data is not None and var in data and reference is not None:
        return data[var] == reference

    # No dataset: the reference level is where all indicator columns of the factor are 0
    indicators = [
        j for j, c in enumerate(view.columns)
        if c.role == ROLE_FACTOR and var in c.levels
    ]
    if not indicators:
        raise UnsupportedTermError(
            f"term '{col.name}': reference level of factor '{var}' cannot be located",
            term=col.name,
            method=method,
        )
    return np.all(view.matrix.X[:, indicators] == 0.0, axis=1)


def _assemble(
    view: ModelView,
    scales: dict[str, _Scale | EffectSizeError],
    centers: dict[str, float],
    y_pair: DispersionPair,
) -> dict[str, TermOutcome]:
    """Apply the scales and re-express the intercept; model order preserved."""
    b = view.coefficients
    se = view.standard_errors
    out: dict[str, TermOutcome] = {}

    for j, name in enumerate(view.names):
        if name == INTERCEPT_NAME:
            try:
                out[name] = _intercept(view, centers, y_pair)
            except EffectSizeError as err:
                out[name] = err
            continue
        scale = scales[name]
        if isinstance(scale, EffectSizeError):
            out[name] = scale
        else:
            out[name] = TermEstimate(
                estimate=float(b[j] * scale.factor),
                se=float(se[j] * scale.factor),
                approximate=scale.approximate,
            )
    return out


def _intercept(view: ModelView, centers: dict[str, float], y_pair: DispersionPair) -> TermEstimate:
    """
    Intercept at the centers of the re-centered predictors:

        (b0 + Σ b_j·center_j − center_y) / spread_y
    """
    y_spread = y_pair.require_spread(column=response_name(view), term=INTERCEPT_NAME)
    names = view.names
    a = np.zeros(len(names))
    a[names.index(INTERCEPT_NAME)] = 1.0
    for name, center in centers.items():
        a[names.index(name)] = center

    estimate = (float(a @ view.coefficients) - y_pair.center) / y_spread

    if view.vcov is not None:
        se = float(np.sqrt(max(a @ view.vcov @ a, 0.0))) / y_spread
    elif not any(centers.values()):
        se = float(view.standard_errors[names.index(INTERCEPT_NAME)]) / y_spread
    else:
        se = float('nan')
    return TermEstimate(estimate=estimate, se=se)


# =====================================================================
# Methods
# =====================================================================

def posthoc(view: ModelView, request: StandardizationRequest, notes: list[str]) -> dict[str, TermOutcome]:
    y_pair = response_pair(view, request.robust)
    y_spread = y_pair.require_spread(column=response_name(view))

    scales: dict[str, _Scale | EffectSizeError] = {}
    centers: dict[str, float] = {}
    for col in view.columns:
        if col.role == ROLE_INTERCEPT:
            continue
        try:
            spread, center, approximate = predictor_scale(view, col, request, 'posthoc')
        except EffectSizeError as err:
            scales[col.name] = err
            continue
        scales[col.name] = _Scale(spread / y_spread, approximate)
        if center is not None:
            centers[col.name] = center

    _note_interactions(view, 'posthoc', notes)
    return _assemble(view, scales, centers, y_pair)


def smart(view: ModelView, request: StandardizationRequest, notes: list[str]) -> dict[str, TermOutcome]:
    y_pair = response_pair(view, request.robust)
    y_spread = y_pair.require_spread(column=response_name(view))
    y_name = response_name(view)

    scales: dict[str, _Scale | EffectSizeError] = {}
    centers: dict[str, float] = {}
    ambiguous: list[str] = []
    for col in view.columns:
        if col.role == ROLE_INTERCEPT:
            continue
        try:
            spread, center, approximate = predictor_scale(view, col, request, 'smart')
            denominator = y_spread
            if view.family.standardize_response:
                rows = reference_rows(view, col, 'smart')
                if rows is not None:
                    ref_pair = dispersion(view.response, request.robust, rows, name=y_name)
                    denominator = ref_pair.require_spread(column=y_name, term=col.name)
                    if col.role == ROLE_INTERACTION:
                        ambiguous.append(col.name)
        except EffectSizeError as err:
            scales[col.name] = err
            continue
        scales[col.name] = _Scale(spread / denominator, approximate)
        if center is not None:
            centers[col.name] = center

    _note_interactions(view, 'smart', notes)
    if ambiguous:
        notes.append(
            f"smart: reference-level response dispersion for interaction term(s) "
            f"{', '.join(ambiguous)} is experimental"
        )
    return _assemble(view, scales, centers, y_pair)


def basic(view: ModelView, request: StandardizationRequest, notes: list[str]) -> dict[str, TermOutcome]:
    y_pair = response_pair(view, request.robust)
    y_spread = y_pair.require_spread(column=response_name(view))
    mult = request.predictor_multiplier

    scales: dict[str, _Scale | EffectSizeError] = {}
    centers: dict[str, float] = {}
    for j, col in enumerate(view.columns):
        if col.role == ROLE_INTERCEPT:
            continue
        try:
            pair = dispersion(view.matrix.X[:, j], request.robust, name=col.name)
            spread = pair.require_spread(column=col.name, term=col.name) * mult
        except EffectSizeError as err:
            scales[col.name] = err
            continue
        scales[col.name] = _Scale(spread / y_spread)
        centers[col.name] = pair.center

    return _assemble(view, scales, centers, y_pair)


def pseudo(view: ModelView, request: StandardizationRequest, notes: list[str]) -> dict[str, TermOutcome]:
    labels = grouping_labels(view)
    mult = request.predictor_multiplier
    group = next(iter(view.groups))
    if len(view.groups) > 1:
        notes.append(
            f"pseudo: model has {len(view.groups)} grouping factors; using '{group}'"
        )

    levels = classify_levels(view, group)
    y_name = response_name(view)
    if view.family.standardize_response:
        y_within = dispersion_within(view.response, labels, request.robust, name=y_name)
        y_between = dispersion_between(view.response, labels, request.robust, name=y_name)
    else:
        y_within = y_between = response_pair(view, request.robust)

    scales: dict[str, _Scale | EffectSizeError] = {}
    centers: dict[str, float] = {}
    for j, col in enumerate(view.columns):
        if col.role == ROLE_INTERCEPT:
            continue
        x = view.matrix.X[:, j]
        try:
            if levels[col.name] == LEVEL_2:
                pair = dispersion_between(x, labels, request.robust, name=col.name)
                y_spread = y_between.require_spread(column=y_name, term=col.name)
            else:
                pair = dispersion_within(x, labels, request.robust, name=col.name)
                y_spread = y_within.require_spread(column=y_name, term=col.name)
            spread = pair.require_spread(column=col.name, term=col.name) * mult
        except EffectSizeError as err:
            scales[col.name] = err
            continue
        scales[col.name] = _Scale(spread / y_spread)
        centers[col.name] = pair.center

    return _assemble(view, scales, centers, y_within)


def _note_interactions(view: ModelView, method: str, notes: list[str]) -> None:
    names = [c.name for c in view.columns if c.role == ROLE_INTERACTION]
    if names:
        notes.append(
            f"{method}: interaction term(s) {', '.join(names)} are approximate; "
            f"use method='refit' for exact values"
        )


POSTHOC_METHODS: dict[str, Callable[[ModelView, StandardizationRequest, list[str]], dict[str, TermOutcome]]] = {
    'posthoc': posthoc,
    'smart': smart,
    'basic': basic,
    'pseudo': pseudo,
}
