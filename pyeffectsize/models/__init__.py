"""
Model fitting.

Formula-driven fitters whose results satisfy the FittedModel protocol:

    lm(formula, data)                  ordinary least squares
    glm(formula, data, family, link)   generalized linear models (IRLS)
    lmm(formula, data, reml)           random-intercept mixed models

Each result records which model-matrix column came from which formula
term (``model_matrix.columns``), which is what standardization relies on.
"""

from pyeffectsize.models.formula import Formula, parse_formula
from pyeffectsize.models.families import (
    Family, Gaussian, Binomial, Poisson,
    Link, IdentityLink, LogitLink, LogLink, ProbitLink,
    resolve_family,
)
from pyeffectsize.models._contrasts import (
    Column,
    ModelMatrix,
    build_model_matrix,
    INTERCEPT_NAME,
    ROLE_INTERCEPT,
    ROLE_NUMERIC,
    ROLE_BINARY,
    ROLE_FACTOR,
    ROLE_INTERACTION,
)
from pyeffectsize.models.design import ModelDesign, as_datasource
from pyeffectsize.models.solvers import lm, glm, lmm
from pyeffectsize.models.solution import LinearSolution, GLMSolution, LMMSolution

__all__ = [
    "Formula",
    "parse_formula",
    "Family",
    "Gaussian",
    "Binomial",
    "Poisson",
    "Link",
    "IdentityLink",
    "LogitLink",
    "LogLink",
    "ProbitLink",
    "resolve_family",
    "Column",
    "ModelMatrix",
    "build_model_matrix",
    "INTERCEPT_NAME",
    "ROLE_INTERCEPT",
    "ROLE_NUMERIC",
    "ROLE_BINARY",
    "ROLE_FACTOR",
    "ROLE_INTERACTION",
    "ModelDesign",
    "as_datasource",
    "lm",
    "glm",
    "lmm",
    "LinearSolution",
    "GLMSolution",
    "LMMSolution",
]
