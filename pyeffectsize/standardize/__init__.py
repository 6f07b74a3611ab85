"""
Parameter standardization.

Expresses the coefficients of a fitted model in standard-deviation units,
by refitting on standardized data ('refit') or by post-hoc arithmetic
('posthoc', 'smart', 'basic', 'pseudo').
"""

from pyeffectsize.standardize._common import (
    METHODS,
    METHOD_ALIASES,
    StandardizationRequest,
    StandardizedCoefficient,
    StandardizedParams,
    TermDeviations,
)
from pyeffectsize.standardize._refit import refit, standardize_data
from pyeffectsize.standardize.solvers import standardize_parameters, standardize_info
from pyeffectsize.standardize.solution import StandardizedSolution

__all__ = [
    "METHODS",
    "METHOD_ALIASES",
    "StandardizationRequest",
    "StandardizedCoefficient",
    "StandardizedParams",
    "TermDeviations",
    "refit",
    "standardize_data",
    "standardize_parameters",
    "standardize_info",
    "StandardizedSolution",
]
