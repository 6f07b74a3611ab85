"""
Adapter registry: from any fitted-model type to a ModelView.

Dispatch order in ``introspect``:
    1. A ModelView is returned as is.
    2. An adapter registered for the model's class (or a base class).
    3. Any object satisfying the FittedModel protocol.
    4. Otherwise ValidationError.

Custom model types plug in without touching the standardization engine:

    >>> def my_adapter(model) -> ModelView:
    ...     return ModelView.from_arrays(model.X, model.y, model.beta, model.se,
    ...                                  model.names, df_residual=model.df)
    >>> register_adapter(MyModel, my_adapter)
"""

from __future__ import annotations

from typing import Any, Callable
import numpy as np

from pyeffectsize.core.exceptions import ValidationError
from pyeffectsize.core.protocols import FittedModel
from pyeffectsize.introspect._common import ModelView
from pyeffectsize.models.families import Family, Gaussian


Adapter = Callable[[Any], ModelView]

_ADAPTERS: dict[type, Adapter] = {}


def register_adapter(model_type: type, adapter: Adapter) -> None:
    """
    Register ``adapter(model) -> ModelView`` for instances of ``model_type``.

    Re-registering a type replaces its adapter.
    """
    if not isinstance(model_type, type):
        raise TypeError(f"model_type must be a class, got {type(model_type).__name__}")
    if not callable(adapter):
        raise TypeError("adapter must be callable")
    _ADAPTERS[model_type] = adapter


def unregister_adapter(model_type: type) -> None:
    _ADAPTERS.pop(model_type, None)


def introspect(model: Any) -> ModelView:
    """
    Extract a read-only ModelView from a fitted model.

    Raises:
        ValidationError: If no adapter applies and the object does not
            satisfy the FittedModel protocol
    """
    if isinstance(model, ModelView):
        return model

    for klass in type(model).__mro__:
        adapter = _ADAPTERS.get(klass)
        if adapter is not None:
            view = adapter(model)
            if not isinstance(view, ModelView):
                raise TypeError(
                    f"adapter for {klass.__name__} returned {type(view).__name__}, "
                    f"expected ModelView"
                )
            return view

    if isinstance(model, FittedModel):
        return _from_protocol(model)

    raise ValidationError(
        f"cannot introspect {type(model).__name__}: register an adapter with "
        f"register_adapter() or implement the FittedModel protocol"
    )


def _from_protocol(model: FittedModel) -> ModelView:
    """Read every protocol attribute once; optional ones via getattr."""
    family = getattr(model, 'family', None)
    if not isinstance(family, Family):
        family = Gaussian()

    vcov = getattr(model, 'vcov', None)
    r_squared = getattr(model, 'r_squared', None)

    return ModelView(
        names=tuple(model.term_names),
        coefficients=np.asarray(model.coefficients, dtype=np.float64),
        standard_errors=np.asarray(model.standard_errors, dtype=np.float64),
        df_residual=float(model.df_residual),
        family=family,
        matrix=model.model_matrix,
        response=None if model.response is None else np.asarray(model.response, dtype=np.float64),
        vcov=None if vcov is None else np.asarray(vcov, dtype=np.float64),
        groups=dict(model.groups or {}),
        data=model.data,
        formula=model.formula,
        refit_fn=model.refit,
        r_squared=None if r_squared is None else float(r_squared),
        converged=bool(getattr(model, 'converged', True)),
        model_type=type(model).__name__,
    )
