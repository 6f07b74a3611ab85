"""
Effect-size value types.

Every converter returns one of these frozen objects: the value plus the
sufficient statistics it was derived from, so a reported number can be
audited without recomputation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass(frozen=True)
class EffectSize:
    """
    Base effect-size value.

    Attributes:
        value: The effect size.
        statistics: Inputs it was computed from (means, SDs, n, t, df...).
        method: How it was obtained, e.g. 'pooled SD', 't-to-r'.
    """
    value: float
    statistics: dict[str, Any] = field(default_factory=dict)
    method: str = ''

    kind: ClassVar[str] = 'effect size'

    def __float__(self) -> float:
        return float(self.value)

    def __repr__(self) -> str:
        how = f", method='{self.method}'" if self.method else ""
        return f"{self.__class__.__name__}({self.value:.6g}{how})"


@dataclass(frozen=True, repr=False)
class CohensD(EffectSize):
    """Standardized mean difference in units of the pooled SD."""
    kind: ClassVar[str] = "Cohen's d"


@dataclass(frozen=True, repr=False)
class HedgesG(EffectSize):
    """Cohen's d with the small-sample bias correction J."""
    kind: ClassVar[str] = "Hedges' g"


@dataclass(frozen=True, repr=False)
class GlassDelta(EffectSize):
    """Mean difference in units of the reference group's SD."""
    kind: ClassVar[str] = "Glass's delta"


@dataclass(frozen=True, repr=False)
class CorrelationR(EffectSize):
    """(Partial) correlation coefficient."""
    kind: ClassVar[str] = "r"


@dataclass(frozen=True, repr=False)
class CohensF2(EffectSize):
    """Proportion of variance explained relative to unexplained."""
    kind: ClassVar[str] = "Cohen's f²"


@dataclass(frozen=True, repr=False)
class OddsRatio(EffectSize):
    """Odds ratio, e.g. converted from d under the logistic approximation."""
    kind: ClassVar[str] = "odds ratio"
