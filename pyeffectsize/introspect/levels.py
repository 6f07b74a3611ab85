"""
Level-1 / level-2 classification of model terms for multilevel models.

A predictor is level-2 when it is constant within every group of the
grouping factor (it only varies between groups, e.g. a school-level
covariate); otherwise it is level-1.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pyeffectsize.core.exceptions import MissingGroupingError
from pyeffectsize.introspect._common import ModelView
from pyeffectsize.models._contrasts import ROLE_INTERCEPT


LEVEL_1 = 1
LEVEL_2 = 2


def classify_levels(view: ModelView, group: str | None = None) -> dict[str, int]:
    """
    Classify every non-intercept model-matrix column as level 1 or 2.

    Args:
        view: Introspected mixed model
        group: Grouping factor; defaults to the first one

    Returns:
        column name -> LEVEL_1 or LEVEL_2

    Raises:
        MissingGroupingError: If the model has no grouping structure
    """
    labels = grouping_labels(view, group)
    _, inverse = np.unique(labels, return_inverse=True)

    out: dict[str, int] = {}
    for j, col in enumerate(view.columns):
        if col.role == ROLE_INTERCEPT:
            continue
        x = view.matrix.X[:, j]
        out[col.name] = LEVEL_2 if is_constant_within(x, inverse) else LEVEL_1
    return out


def grouping_labels(view: ModelView, group: str | None = None) -> NDArray:
    if not view.groups:
        raise MissingGroupingError(
            f"{view.model_type} has no grouping variable; pseudo-standardization "
            f"needs a mixed model"
        )
    if group is None:
        group = next(iter(view.groups))
    if group not in view.groups:
        raise MissingGroupingError(
            f"grouping factor '{group}' not in model; available: {sorted(view.groups)}"
        )
    return view.groups[group]


def is_constant_within(x: NDArray, inverse: NDArray) -> bool:
    """True if x takes a single value inside every group."""
    n_groups = int(inverse.max()) + 1
    lo = np.full(n_groups, np.inf)
    hi = np.full(n_groups, -np.inf)
    np.minimum.at(lo, inverse, x)
    np.maximum.at(hi, inverse, x)
    return bool(np.allclose(lo, hi, rtol=0.0, atol=1e-12))
