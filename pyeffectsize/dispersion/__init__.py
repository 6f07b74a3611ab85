"""
Dispersion estimation: (center, spread) pairs for standardization.

Public API:
    dispersion(values, robust=False, rows=None) -> DispersionPair
    dispersion_within(values, groups, robust=False) -> DispersionPair
    dispersion_between(values, groups, robust=False) -> DispersionPair
"""

from pyeffectsize.dispersion._common import DispersionPair, MAD_CONSTANT
from pyeffectsize.dispersion.solvers import (
    dispersion,
    dispersion_within,
    dispersion_between,
)

__all__ = [
    "dispersion",
    "dispersion_within",
    "dispersion_between",
    "DispersionPair",
    "MAD_CONSTANT",
]
