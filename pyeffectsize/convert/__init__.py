"""
Effect-size converters.

Stateless conversions between standardized mean differences, correlations,
odds ratios and Cohen's f², each returning a frozen value object that
carries the statistics it was derived from.
"""

from pyeffectsize.convert._common import (
    EffectSize,
    CohensD,
    HedgesG,
    GlassDelta,
    CorrelationR,
    CohensF2,
    OddsRatio,
)
from pyeffectsize.convert.solvers import (
    t_to_r,
    t_to_d,
    r_to_d,
    d_to_r,
    oddsratio_to_d,
    d_to_oddsratio,
    cohens_d,
    hedges_g,
    glass_delta,
    f2_from_r2,
    cohens_f_squared,
)

__all__ = [
    "EffectSize",
    "CohensD",
    "HedgesG",
    "GlassDelta",
    "CorrelationR",
    "CohensF2",
    "OddsRatio",
    "t_to_r",
    "t_to_d",
    "r_to_d",
    "d_to_r",
    "oddsratio_to_d",
    "d_to_oddsratio",
    "cohens_d",
    "hedges_g",
    "glass_delta",
    "f2_from_r2",
    "cohens_f_squared",
]
