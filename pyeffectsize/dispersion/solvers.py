"""
Dispersion estimation.

Public API:
    dispersion(values, robust, rows)            -> DispersionPair
    dispersion_within(values, groups, robust)   -> DispersionPair
    dispersion_between(values, groups, robust)  -> DispersionPair

The within/between variants serve pseudo-standardization of multilevel
models: within removes each group's center before measuring spread
(level-1), between measures the spread of the group centers themselves
(level-2, one value per group).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyeffectsize.core.exceptions import ValidationError
from pyeffectsize.core.validation import (
    check_array,
    check_1d,
    check_finite,
    check_consistent_length,
    check_row_indices,
)
from pyeffectsize.dispersion._common import DispersionPair, MAD_CONSTANT


def dispersion(
    values: ArrayLike,
    robust: bool = False,
    rows: ArrayLike | None = None,
    *,
    name: str = 'values',
) -> DispersionPair:
    """
    Center and spread of a numeric vector.

    Args:
        values: 1D numeric data.
        robust: If False, (mean, sample SD with n-1 denominator).
            If True, (median, MAD × 1.4826).
        rows: Optional row subset (boolean mask, integer positions or a set
            of positions); the pair is computed over those rows only.
        name: Parameter name used in error messages.

    Returns:
        DispersionPair. A constant vector gives spread 0.0; this is not an
        error until the spread is used as a divisor (see
        DispersionPair.require_spread).

    Raises:
        ValidationError: If fewer than 2 values remain after subsetting.

    Examples:
        >>> dispersion([1.0, 2.0, 3.0, 4.0]).spread
        1.2909944487358056
        >>> dispersion([1.0, 2.0, 3.0, 100.0], robust=True).center
        2.5
    """
    x = _prepare(values, name)
    if rows is not None:
        x = x[check_row_indices(rows, x.shape[0], 'rows')]
    return _pair(x, robust, name)


def dispersion_within(
    values: ArrayLike,
    groups: ArrayLike,
    robust: bool = False,
    *,
    name: str = 'values',
) -> DispersionPair:
    """
    Dispersion after removing each group's center (level-1 variation).

    Each value has its group mean (median if robust) subtracted; the
    spread is then computed over all rows. The returned center is the
    center of the original values so that the pair can still be used to
    re-center data.
    """
    x = _prepare(values, name)
    labels = _prepare_groups(groups, x, name)

    _, inverse = np.unique(labels, return_inverse=True)
    centers = _group_centers(x, inverse, robust)
    deviations = x - centers[inverse]

    spread = _pair(deviations, robust, name).spread
    center = _pair(x, robust, name).center
    return DispersionPair(center=center, spread=spread, robust=robust, n=int(x.size))


def dispersion_between(
    values: ArrayLike,
    groups: ArrayLike,
    robust: bool = False,
    *,
    name: str = 'values',
) -> DispersionPair:
    """
    Dispersion of the group centers (level-2 variation).

    One center (mean, or median if robust) per group, then the pair of
    those centers; n is the number of groups.
    """
    x = _prepare(values, name)
    labels = _prepare_groups(groups, x, name)

    _, inverse = np.unique(labels, return_inverse=True)
    centers = _group_centers(x, inverse, robust)
    if centers.size < 2:
        raise ValidationError(
            f"{name}: between-group dispersion needs at least 2 groups, got {centers.size}"
        )
    return _pair(centers, robust, f"{name} group centers")


# =====================================================================
# Helpers
# =====================================================================

def _prepare(values: ArrayLike, name: str) -> NDArray:
    x = check_array(values, name)
    if x.ndim == 2 and x.shape[1] == 1:
        x = x.ravel()
    check_1d(x, name)
    check_finite(x, name)
    return x


def _prepare_groups(groups: ArrayLike, x: NDArray, name: str) -> NDArray:
    labels = np.asarray(groups)
    if labels.ndim != 1:
        raise ValidationError(f"groups: expected 1D labels, got shape {labels.shape}")
    check_consistent_length(x, labels, names=(name, 'groups'))
    return labels


def _pair(x: NDArray, robust: bool, name: str) -> DispersionPair:
    n = int(x.size)
    if n < 2:
        raise ValidationError(f"{name}: dispersion requires at least 2 values, got {n}")

    if robust:
        center = float(np.median(x))
        spread = MAD_CONSTANT * float(np.median(np.abs(x - center)))
    else:
        center = float(np.mean(x))
        spread = float(np.std(x, ddof=1))

    return DispersionPair(center=center, spread=spread, robust=robust, n=n)


def _group_centers(x: NDArray, inverse: NDArray, robust: bool) -> NDArray:
    n_groups = int(inverse.max()) + 1
    if robust:
        return np.array([np.median(x[inverse == g]) for g in range(n_groups)])
    sums = np.bincount(inverse, weights=x, minlength=n_groups)
    counts = np.bincount(inverse, minlength=n_groups)
    return sums / counts
