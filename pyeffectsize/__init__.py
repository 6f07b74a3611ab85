"""
PyEffectSize: standardized regression coefficients and effect sizes.

Expresses fitted-model coefficients in standard-deviation (or robust
dispersion) units, under several distinct conventions, and converts between
Cohen's d, Glass's delta, r, odds ratios and Cohen's f².

Submodules:
    dispersion: (center, spread) pairs, optionally within/between groups
    models: Formula-driven lm / glm / lmm fitters
    introspect: Read-only ModelView of any fitted model
    standardize: refit, posthoc, smart, basic and pseudo standardization
    convert: Effect-size conversions
"""

__version__ = "0.1.0"

from pyeffectsize import dispersion
from pyeffectsize import models
from pyeffectsize import introspect
from pyeffectsize import standardize
from pyeffectsize import convert

from pyeffectsize.core.datasource import DataSource
from pyeffectsize.models import lm, glm, lmm
from pyeffectsize.standardize import standardize_parameters, standardize_info, standardize_data
from pyeffectsize.convert import cohens_d, glass_delta, hedges_g, t_to_r, t_to_d, cohens_f_squared

__all__ = [
    "__version__",
    "dispersion",
    "models",
    "introspect",
    "standardize",
    "convert",
    "DataSource",
    "lm",
    "glm",
    "lmm",
    "standardize_parameters",
    "standardize_info",
    "standardize_data",
    "cohens_d",
    "glass_delta",
    "hedges_g",
    "t_to_r",
    "t_to_d",
    "cohens_f_squared",
]
