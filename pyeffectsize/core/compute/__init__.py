"""Compute utilities: timing, tolerances, linear algebra."""

from pyeffectsize.core.compute.timing import Timer
from pyeffectsize.core.compute.tolerances import (
    ToleranceTier,
    CPU_FP64,
    STANDARDIZATION,
    ITERATIVE,
    select_tolerance,
)

__all__ = [
    "Timer",
    "ToleranceTier",
    "CPU_FP64",
    "STANDARDIZATION",
    "ITERATIVE",
    "select_tolerance",
]
