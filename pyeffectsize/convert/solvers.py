"""
Effect-size conversions.

Public API:
    t_to_r(t, df_error)                 -> CorrelationR
    t_to_d(t, df_error)                 -> CohensD
    r_to_d(r)                           -> CohensD
    d_to_r(d)                           -> CorrelationR
    cohens_d(a, b)                      -> CohensD
    hedges_g(a, b)                      -> HedgesG
    glass_delta(a, b, reference)        -> GlassDelta
    cohens_f_squared(reduced, full)     -> CohensF2
    f2_from_r2(r2_full, r2_reduced)     -> CohensF2
    oddsratio_to_d(odds_ratio)          -> CohensD
    d_to_oddsratio(d)                   -> OddsRatio

All are pure functions of the sufficient statistics they name.

References:
    Cohen, J. (1988). Statistical Power Analysis for the Behavioral
    Sciences (2nd ed.). Erlbaum.
    Borenstein, M., Hedges, L. V., Higgins, J. P., & Rothstein, H. R.
    (2009). Introduction to Meta-Analysis. Wiley. Chapter 7.
"""

from __future__ import annotations

from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyeffectsize.core.exceptions import (
    DegenerateColumnError,
    IncompatibleModelsError,
    NumericalError,
    ValidationError,
)
from pyeffectsize.core.validation import check_array, check_1d, check_finite, check_min_samples
from pyeffectsize.convert._common import (
    CohensD, HedgesG, GlassDelta, CorrelationR, CohensF2, OddsRatio,
)
from pyeffectsize.introspect import introspect


# =====================================================================
# Test statistics and correlations
# =====================================================================

def t_to_r(t: float, df_error: float) -> CorrelationR:
    """
    Partial correlation from a t statistic: r = t / sqrt(t² + df).

    The sign of t is kept.
    """
    t = _scalar(t, 't')
    df_error = _positive(df_error, 'df_error')
    r = t / np.sqrt(t ** 2 + df_error)
    return CorrelationR(
        value=float(r),
        statistics={'t': t, 'df_error': df_error},
        method='t-to-r',
    )


def t_to_d(t: float, df_error: float) -> CohensD:
    """
    d = 2t / sqrt(df), the equal-group-size approximation.
    """
    t = _scalar(t, 't')
    df_error = _positive(df_error, 'df_error')
    return CohensD(
        value=float(2.0 * t / np.sqrt(df_error)),
        statistics={'t': t, 'df_error': df_error},
        method='t-to-d',
    )


def r_to_d(r: float) -> CohensD:
    """d = 2r / sqrt(1 - r²), for |r| < 1."""
    r = _correlation(r)
    return CohensD(
        value=float(2.0 * r / np.sqrt(1.0 - r ** 2)),
        statistics={'r': r},
        method='r-to-d',
    )


def d_to_r(d: float) -> CorrelationR:
    """r = d / sqrt(d² + 4), the inverse of r_to_d."""
    d = _scalar(d, 'd')
    return CorrelationR(
        value=float(d / np.sqrt(d ** 2 + 4.0)),
        statistics={'d': d},
        method='d-to-r',
    )


def oddsratio_to_d(odds_ratio: float) -> CohensD:
    """d = ln(OR) · √3 / π (logistic distribution approximation)."""
    odds_ratio = _positive(odds_ratio, 'odds_ratio')
    return CohensD(
        value=float(np.log(odds_ratio) * np.sqrt(3.0) / np.pi),
        statistics={'odds_ratio': odds_ratio},
        method='oddsratio-to-d',
    )


def d_to_oddsratio(d: float) -> OddsRatio:
    """OR = exp(d · π / √3), the inverse of oddsratio_to_d."""
    d = _scalar(d, 'd')
    return OddsRatio(
        value=float(np.exp(d * np.pi / np.sqrt(3.0))),
        statistics={'d': d},
        method='d-to-oddsratio',
    )


# =====================================================================
# Two-group standardized mean differences
# =====================================================================

def cohens_d(
    a: ArrayLike,
    b: ArrayLike | None = None,
    *,
    groups: ArrayLike | None = None,
) -> CohensD:
    """
    Cohen's d = (mean_a - mean_b) / pooled SD.

    pooled SD = sqrt(((n_a - 1)·s_a² + (n_b - 1)·s_b²) / (n_a + n_b - 2))

    Args:
        a: First group, or all values when ``groups`` is given
        b: Second group
        groups: Two-level labels for ``a``; the first sorted level is
            group a, the second group b. Numeric labels sort by value.

    Raises:
        ValidationError: Fewer than 2 values in a group, or bad grouping
        DegenerateColumnError: Pooled SD is 0

    Examples:
        >>> cohens_d([1.0, 2.0, 3.0], [2.0, 3.0, 4.0]).value
        -1.0
    """
    x_a, x_b, labels = _two_groups(a, b, groups)
    stats = _group_stats(x_a, x_b)
    n_a, n_b = stats['n_a'], stats['n_b']
    pooled = np.sqrt(
        ((n_a - 1) * stats['sd_a'] ** 2 + (n_b - 1) * stats['sd_b'] ** 2) / (n_a + n_b - 2)
    )
    pooled = _require_spread(pooled, 'pooled SD')
    stats['sd_pooled'] = pooled
    if labels is not None:
        stats['levels'] = labels
    return CohensD(
        value=(stats['mean_a'] - stats['mean_b']) / pooled,
        statistics=stats,
        method='pooled SD',
    )


def hedges_g(
    a: ArrayLike,
    b: ArrayLike | None = None,
    *,
    groups: ArrayLike | None = None,
) -> HedgesG:
    """
    Hedges' g = J · d with J = 1 - 3 / (4·(n_a + n_b - 2) - 1).
    """
    d = cohens_d(a, b, groups=groups)
    df = d.statistics['n_a'] + d.statistics['n_b'] - 2
    j = 1.0 - 3.0 / (4.0 * df - 1.0)
    return HedgesG(
        value=float(d.value * j),
        statistics={**d.statistics, 'd': d.value, 'correction': j},
        method='pooled SD, small-sample corrected',
    )


def glass_delta(
    a: ArrayLike,
    b: ArrayLike | None = None,
    *,
    groups: ArrayLike | None = None,
    reference: str = 'b',
) -> GlassDelta:
    """
    Glass's delta = (mean_a - mean_b) / SD(reference group).

    Args:
        reference: 'b' (default, the control group) or 'a'
    """
    if reference not in ('a', 'b'):
        raise ValidationError(f"reference: expected 'a' or 'b', got {reference!r}")
    x_a, x_b, labels = _two_groups(a, b, groups)
    stats = _group_stats(x_a, x_b)
    sd_ref = _require_spread(stats[f'sd_{reference}'], f'SD of group {reference}')
    stats['reference'] = reference
    if labels is not None:
        stats['levels'] = labels
    return GlassDelta(
        value=(stats['mean_a'] - stats['mean_b']) / sd_ref,
        statistics=stats,
        method=f'SD of group {reference}',
    )


# =====================================================================
# Variance explained
# =====================================================================

def f2_from_r2(r2_full: float, r2_reduced: float = 0.0) -> CohensF2:
    """
    f² = (R²_full - R²_reduced) / (1 - R²_full).

    With the default r2_reduced = 0 this is the global f² = R² / (1 - R²).

    Raises:
        ValidationError: R² outside [0, 1]
        NumericalError: R²_full = 1 (perfect fit)
    """
    r2_full = _unit(r2_full, 'r2_full')
    r2_reduced = _unit(r2_reduced, 'r2_reduced')
    if r2_full >= 1.0:
        raise NumericalError("f²: R² of the full model is 1, f² is unbounded")
    return CohensF2(
        value=(r2_full - r2_reduced) / (1.0 - r2_full),
        statistics={'r2_full': r2_full, 'r2_reduced': r2_reduced},
        method='R² change',
    )


def cohens_f_squared(reduced: Any, full: Any) -> CohensF2:
    """
    Local f² of the terms the full model adds to the reduced one.

    Both models must be fitted to the same observations (identical
    response vectors), the reduced model's terms must be a subset of the
    full model's, and both must report R².

    Raises:
        IncompatibleModelsError: Different observations, not nested, or no R²
    """
    view_r = introspect(reduced)
    view_f = introspect(full)

    if view_r.response is None or view_f.response is None:
        raise IncompatibleModelsError(
            "f²: both models must expose their response", reason='response'
        )
    if view_r.response.shape != view_f.response.shape:
        raise IncompatibleModelsError(
            f"f²: models use different observations "
            f"(n = {view_r.response.shape[0]} vs {view_f.response.shape[0]})",
            reason='n_obs',
        )
    if not np.array_equal(view_r.response, view_f.response):
        raise IncompatibleModelsError(
            "f²: models were fitted to different response vectors", reason='response'
        )

    extra = set(view_r.names) - set(view_f.names)
    if extra:
        raise IncompatibleModelsError(
            f"f²: models are not nested; reduced-only terms {sorted(extra)}",
            reason='not_nested',
        )
    if view_r.r_squared is None or view_f.r_squared is None:
        raise IncompatibleModelsError(
            f"f²: R² unavailable for {view_r.model_type}/{view_f.model_type} "
            f"({view_f.family.name}, link = {view_f.family.link.name})",
            reason='r_squared',
        )

    f2 = f2_from_r2(view_f.r_squared, view_r.r_squared)
    return CohensF2(
        value=f2.value,
        statistics={
            **f2.statistics,
            'n_obs': view_f.n_obs,
            'added_terms': tuple(n for n in view_f.names if n not in view_r.names),
        },
        method='R² change between nested models',
    )


# =====================================================================
# Helpers
# =====================================================================

def _scalar(value: float, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise ValidationError(f"{name}: expected a number, got {value!r}")
    value = float(value)
    if not np.isfinite(value):
        raise ValidationError(f"{name}: must be finite, got {value}")
    return value


def _positive(value: float, name: str) -> float:
    value = _scalar(value, name)
    if value <= 0:
        raise ValidationError(f"{name}: must be > 0, got {value}")
    return value


def _unit(value: float, name: str) -> float:
    value = _scalar(value, name)
    if not 0.0 <= value <= 1.0:
        raise ValidationError(f"{name}: must be in [0, 1], got {value}")
    return value


def _correlation(r: float) -> float:
    r = _scalar(r, 'r')
    if not -1.0 < r < 1.0:
        raise ValidationError(f"r: must be in (-1, 1), got {r}")
    return r


def _sample(values: ArrayLike, name: str) -> NDArray:
    x = check_array(values, name)
    check_1d(x, name)
    check_finite(x, name)
    check_min_samples(x, 2, name)
    return x


def _two_groups(
    a: ArrayLike, b: ArrayLike | None, groups: ArrayLike | None,
) -> tuple[NDArray, NDArray, tuple[str, str] | None]:
    if groups is None:
        if b is None:
            raise ValidationError("give either two samples (a, b) or values with groups=")
        return _sample(a, 'a'), _sample(b, 'b'), None

    if b is not None:
        raise ValidationError("give either b or groups=, not both")
    values = check_array(a, 'a')
    check_1d(values, 'a')
    raw = np.asarray(groups)
    if raw.shape != values.shape:
        raise ValidationError(
            f"groups: shape {raw.shape} doesn't match values {values.shape}"
        )
    # sort on the labels' own type so that 9 comes before 10
    ordered = np.unique(raw)
    if ordered.size != 2:
        raise ValidationError(
            f"groups: expected exactly 2 levels, got {[str(v) for v in ordered]}"
        )
    levels = [str(v) for v in ordered]
    return (
        _sample(values[raw == ordered[0]], f'a[{levels[0]}]'),
        _sample(values[raw == ordered[1]], f'a[{levels[1]}]'),
        (levels[0], levels[1]),
    )


def _group_stats(x_a: NDArray, x_b: NDArray) -> dict[str, Any]:
    return {
        'mean_a': float(np.mean(x_a)),
        'mean_b': float(np.mean(x_b)),
        'sd_a': float(np.std(x_a, ddof=1)),
        'sd_b': float(np.std(x_b, ddof=1)),
        'n_a': int(x_a.size),
        'n_b': int(x_b.size),
    }


def _require_spread(spread: float, label: str) -> float:
    if not np.isfinite(spread) or spread <= 0.0:
        raise DegenerateColumnError(
            f"{label} is {spread!r}; cannot divide by it",
            column=label,
            spread=float(spread),
        )
    return float(spread)
