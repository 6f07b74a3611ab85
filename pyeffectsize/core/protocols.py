"""
Core protocols for PyEffectSize.

These define structural interfaces that fitted models and fitting
collaborators must satisfy. We use Protocol (structural typing) rather than
ABC (nominal typing) so that model types written elsewhere can be consumed
without inheriting from anything in this package.

Design Principles:
    - Minimal contracts: prescribe only what standardization needs
    - Capability-driven: optional features are probed, not assumed
    - Read-only: nothing in this package mutates a fitted model
"""

from __future__ import annotations

from typing import Protocol, Any, runtime_checkable, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from pyeffectsize.core.datasource import DataSource
    from pyeffectsize.models.formula import Formula
    from pyeffectsize.models._contrasts import ModelMatrix


@runtime_checkable
class FittedModel(Protocol):
    """
    Read-only view of an estimated model.

    Anything exposing these attributes can be introspected without an
    adapter. Mixed models additionally expose a non-empty ``groups``
    mapping (grouping factor name -> label per row).

    ``refit`` re-estimates the same formula on a new dataset and returns a
    new FittedModel; it must be deterministic given identical inputs.
    """

    @property
    def term_names(self) -> tuple[str, ...]:
        """Ordered coefficient names, one per model-matrix column."""
        ...

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        ...

    @property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        ...

    @property
    def df_residual(self) -> float:
        ...

    @property
    def model_matrix(self) -> 'ModelMatrix':
        ...

    @property
    def response(self) -> NDArray[np.floating[Any]]:
        ...

    @property
    def groups(self) -> dict[str, NDArray]:
        ...

    @property
    def formula(self) -> 'Formula':
        ...

    @property
    def data(self) -> 'DataSource':
        ...

    def refit(self, data: 'DataSource', **kwargs: Any) -> 'FittedModel':
        ...


@runtime_checkable
class Fitter(Protocol):
    """
    Protocol for the external model-fitting collaborator.

    ``fit(formula, data) -> FittedModel``. Stochastic fitters must accept
    an ``rng`` keyword (a numpy Generator) so that refits are reproducible
    without process-wide random state.
    """

    def __call__(self, formula: 'str | Formula', data: 'DataSource', **kwargs: Any) -> FittedModel:
        ...
