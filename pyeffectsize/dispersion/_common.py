"""
Common data types for dispersion estimation.

Contains the frozen (center, spread) pair every standardization method
divides by.
"""

from dataclasses import dataclass, replace

import numpy as np

from pyeffectsize.core.exceptions import DegenerateColumnError


# Consistency constant making MAD estimate the SD under normality (R's mad()).
MAD_CONSTANT = 1.4826


@dataclass(frozen=True)
class DispersionPair:
    """
    Central tendency and dispersion of one numeric vector.

    Attributes:
        center: Mean (robust=False) or median (robust=True).
        spread: Sample SD with n-1 denominator, or MAD × 1.4826. Always >= 0;
            0 marks a constant column.
        robust: Which estimator produced the pair.
        n: Number of values the pair was computed from.
    """
    center: float
    spread: float
    robust: bool = False
    n: int = 0

    @property
    def is_degenerate(self) -> bool:
        """True if the spread cannot be used as a divisor."""
        return not np.isfinite(self.spread) or self.spread <= 0.0

    def scaled(self, factor: float) -> 'DispersionPair':
        """Same center, spread multiplied by ``factor`` (two_sd uses 2)."""
        return replace(self, spread=self.spread * factor)

    def require_spread(self, column: str | None = None, term: str | None = None) -> float:
        """
        Return the spread for use as a divisor.

        Raises:
            DegenerateColumnError: If the spread is zero or not finite
        """
        if self.is_degenerate:
            label = column if column is not None else 'column'
            where = f" (needed by term '{term}')" if term is not None else ""
            raise DegenerateColumnError(
                f"{label}: spread is {self.spread!r}, cannot standardize by a "
                f"constant column{where}",
                column=column,
                term=term,
                spread=float(self.spread),
            )
        return float(self.spread)
