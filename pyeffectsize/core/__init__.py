"""
Core infrastructure for PyEffectSize.

Shared abstractions used by every component (dispersion, models,
introspection, standardization, conversion).

Key components:
    protocols: FittedModel, Fitter protocols
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    datasource: Named-column dataset container
    compute: Timing, tolerances, QR least squares
"""

from pyeffectsize.core.protocols import FittedModel, Fitter
from pyeffectsize.core.result import Result
from pyeffectsize.core.datasource import DataSource
from pyeffectsize.core.exceptions import (
    EffectSizeError,
    ValidationError,
    DimensionError,
    NumericalError,
    SingularMatrixError,
    DegenerateColumnError,
    ConvergenceError,
    MissingGroupingError,
    IncompatibleModelsError,
    RefitError,
    UnsupportedTermError,
)

__all__ = [
    # Protocols
    "FittedModel",
    "Fitter",
    # Containers
    "Result",
    "DataSource",
    # Exceptions
    "EffectSizeError",
    "ValidationError",
    "DimensionError",
    "NumericalError",
    "SingularMatrixError",
    "DegenerateColumnError",
    "ConvergenceError",
    "MissingGroupingError",
    "IncompatibleModelsError",
    "RefitError",
    "UnsupportedTermError",
]
