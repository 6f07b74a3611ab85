"""
Refit strategy.

Standardizes the model's dataset and re-estimates the same formula on it;
the coefficients of the refit model are the standardized coefficients.
This is the only place in the package that triggers re-estimation, and
the only method that is exact for interactions.
"""

from __future__ import annotations

from typing import Any, Iterable
import numpy as np

from pyeffectsize.core.datasource import DataSource
from pyeffectsize.core.capabilities import CAPABILITY_REFIT
from pyeffectsize.core.exceptions import RefitError, ValidationError
from pyeffectsize.dispersion import dispersion
from pyeffectsize.introspect import ModelView, introspect
from pyeffectsize.models.design import as_datasource
from pyeffectsize.models._contrasts import is_binary
from pyeffectsize.standardize._common import StandardizationRequest


def standardize_data(
    data: Any,
    columns: Iterable[str] | None = None,
    *,
    robust: bool = False,
    two_sd: bool = False,
    exclude: Iterable[str] = (),
) -> DataSource:
    """
    Center and scale numeric columns of a dataset.

    Each selected column becomes (x - center) / spread, with (mean, SD) or
    (median, MAD) and the spread doubled when ``two_sd``. Factor and
    binary {0, 1} columns are left untouched, as are columns in ``exclude``.

    Args:
        data: DataSource, DataFrame or mapping of columns
        columns: Columns to standardize; default every numeric column

    Returns:
        A new DataSource; the input is not modified.

    Raises:
        ValidationError: If a named column does not exist
        DegenerateColumnError: If a selected column is constant
    """
    ds = as_datasource(data)
    if columns is None:
        selected = [c for c in ds.columns if not ds.is_factor(c)]
    else:
        selected = list(columns)
        missing = [c for c in selected if c not in ds]
        if missing:
            raise ValidationError(
                f"columns: {missing} not found in data. Available: {sorted(ds.keys())}"
            )

    skip = set(exclude)
    multiplier = 2.0 if two_sd else 1.0
    updates = {}
    for name in selected:
        if name in skip or ds.is_factor(name):
            continue
        x = ds[name]
        if is_binary(x):
            continue
        pair = dispersion(x, robust, name=name)
        spread = pair.require_spread(column=name) * multiplier
        updates[name] = (x - pair.center) / spread

    return ds.with_columns(**updates) if updates else ds


def standardized_model_data(view: ModelView, request: StandardizationRequest) -> DataSource:
    """
    Dataset the refit runs on: response by one spread (Gaussian/identity
    models only), numeric predictors by one or two spreads, grouping
    columns untouched.
    """
    formula = view.formula
    data = as_datasource(view.data)
    groups = set(formula.groups)

    if view.family.standardize_response:
        # a 0/1 response is still scaled; the binary skip is for predictors
        y = data[formula.response]
        pair = dispersion(y, request.robust, name=formula.response)
        spread = pair.require_spread(column=formula.response)
        data = data.with_columns(**{formula.response: (y - pair.center) / spread})

    predictors = [v for v in formula.variables if v not in groups]
    return standardize_data(
        data, predictors, robust=request.robust, two_sd=request.two_sd, exclude=groups,
    )


def refit(
    model: Any,
    request: StandardizationRequest | None = None,
    *,
    seed: int | None = None,
) -> ModelView:
    """
    Re-estimate a model on its standardized dataset.

    Args:
        model: Fitted model (anything ``introspect`` accepts) able to refit
        request: Options; default StandardizationRequest()
        seed: Seed for a fresh ``np.random.default_rng`` passed to the
            fitter as ``rng``; overrides ``request.seed``

    Returns:
        ModelView of the refit model, coefficients in the original order.

    Raises:
        ValidationError: The model cannot be refit (no data or formula)
        DegenerateColumnError: A standardized column is constant
        RefitError: The fitter raised, did not converge, or returned
            different terms
    """
    view = introspect(model)
    request = request or StandardizationRequest()
    view.require(CAPABILITY_REFIT, 'refit')
    if view.formula is None:
        raise ValidationError(f"refit: {view.model_type} exposes no formula")

    new_data = standardized_model_data(view, request)

    seed = seed if seed is not None else request.seed
    kwargs: dict[str, Any] = {}
    if seed is not None:
        kwargs['rng'] = np.random.default_rng(seed)

    try:
        refitted = view.refit_fn(new_data, **kwargs)
    except Exception as exc:
        raise RefitError(
            f"refit of {view.model_type} on standardized data failed: {exc}",
            model_type=view.model_type,
        ) from exc

    converged = getattr(refitted, 'converged', True)
    if converged is False:
        raise RefitError(
            f"refit of {view.model_type} on standardized data did not converge",
            model_type=view.model_type,
            converged=False,
        )

    new_view = introspect(refitted)
    if new_view.names != view.names:
        raise RefitError(
            f"refit of {view.model_type} produced terms {new_view.names}, "
            f"expected {view.names}",
            model_type=view.model_type,
            converged=new_view.converged,
        )
    return new_view
