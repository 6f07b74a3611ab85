"""
Fitted model solution types.

User-facing wrappers around Result[LinearParams | GLMParams | LMMParams].
Each one satisfies the FittedModel protocol, so it can be standardized
directly, and can re-estimate itself on a new dataset with ``refit``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, TYPE_CHECKING
import numpy as np
from numpy.typing import NDArray
from scipy import stats

from pyeffectsize.core.result import Result
from pyeffectsize.core.capabilities import (
    CAPABILITY_DESIGN_MATRIX,
    CAPABILITY_GROUPING,
    CAPABILITY_REFIT,
    CAPABILITY_VCOV,
)
from pyeffectsize.models._common import LinearParams, GLMParams, LMMParams
from pyeffectsize.models.families import Family, Gaussian, resolve_family

if TYPE_CHECKING:
    from pyeffectsize.core.datasource import DataSource
    from pyeffectsize.models.design import ModelDesign
    from pyeffectsize.models.formula import Formula
    from pyeffectsize.models._contrasts import ModelMatrix


P = TypeVar('P', LinearParams, GLMParams, LMMParams)


@dataclass
class _ModelSolution(Generic[P]):
    """
    Accessors shared by every fitted model.
    """
    _result: Result[P]
    _design: 'ModelDesign'

    _CAPABILITIES = frozenset({CAPABILITY_DESIGN_MATRIX, CAPABILITY_REFIT, CAPABILITY_VCOV})
    _title = "Model"

    # === FittedModel protocol ===

    @property
    def term_names(self) -> tuple[str, ...]:
        return self._result.params.coefficient_names

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients

    @property
    def vcov(self) -> NDArray[np.floating[Any]]:
        return self._result.params.vcov

    @property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        """SE(β) = sqrt(diag(Var(β̂)))."""
        return np.sqrt(np.maximum(np.diag(self.vcov), 0.0))

    @property
    def t_statistics(self) -> NDArray[np.floating[Any]]:
        with np.errstate(divide='ignore', invalid='ignore'):
            t = self.coefficients / self.standard_errors
        return np.where(np.isfinite(t), t, np.nan)

    @property
    def df_residual(self) -> float:
        return float(self._result.params.df_residual)

    @property
    def model_matrix(self) -> 'ModelMatrix':
        return self._design.matrix

    @property
    def response(self) -> NDArray[np.floating[Any]]:
        return self._design.y

    @property
    def groups(self) -> dict[str, NDArray]:
        return dict(self._design.groups)

    @property
    def formula(self) -> 'Formula':
        return self._design.formula

    @property
    def data(self) -> 'DataSource':
        return self._design.data

    @property
    def family(self) -> Family:
        return Gaussian()

    @property
    def converged(self) -> bool:
        return True

    @property
    def r_squared(self) -> float | None:
        return None

    @property
    def n_obs(self) -> int:
        return self._design.n

    def supports(self, capability: str) -> bool:
        return capability in self._CAPABILITIES

    def refit(self, data: Any, **kwargs: Any) -> '_ModelSolution':
        """
        Re-estimate the same formula, with the same options, on new data.

        Keyword arguments override the stored fitting options. ``rng`` is
        dropped for fitters that are deterministic.
        """
        options = {**self._result.info.get('fit_options', {}), **kwargs}
        if not self._uses_rng:
            options.pop('rng', None)
        return self._fitter()(self.formula, data, **options)

    _uses_rng = False

    def _fitter(self):
        raise NotImplementedError

    # === Result envelope ===

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # === Display ===

    def _fit_lines(self) -> list[str]:
        return []

    def _p_values(self) -> NDArray[np.floating[Any]]:
        return 2.0 * stats.t.sf(np.abs(self.t_statistics), self.df_residual)

    def summary(self) -> str:
        """Generate R-style summary output."""
        lines = [
            f"{self._title} Results",
            "=" * 70,
            f"Formula: {self.formula}",
            f"Observations: {self.n_obs}",
            *self._fit_lines(),
            "",
            "Coefficients:",
            "-" * 70,
            f"{'':<20} {'Estimate':>12} {'Std.Error':>12} {'t value':>10} {'Pr(>|t|)':>10}",
            "-" * 70,
        ]
        for name, coef, se, t, p in zip(
            self.term_names, self.coefficients, self.standard_errors,
            self.t_statistics, self._p_values(),
        ):
            lines.append(f"{name:<20} {coef:12.6f} {se:12.6f} {t:10.3f} {p:10.4g}")
        lines.append("-" * 70)
        lines.append(f"Backend: {self.backend_name}")
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")
        return "\n".join(lines)


@dataclass
class LinearSolution(_ModelSolution[LinearParams]):
    """
    Ordinary least squares fit.
    """
    _title = "Linear Regression"

    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values

    @property
    def rss(self) -> float:
        return self._result.params.rss

    @property
    def tss(self) -> float:
        return self._result.params.tss

    @property
    def r_squared(self) -> float:
        if self.tss == 0:
            return 1.0 if self.rss == 0 else 0.0
        return 1.0 - (self.rss / self.tss)

    @property
    def adjusted_r_squared(self) -> float:
        n = self.n_obs
        p = self._result.params.rank
        if n - p <= 0 or self.tss == 0:
            return self.r_squared
        dfi = n - 1 if self._design.matrix.has_intercept else n
        return 1.0 - (1.0 - self.r_squared) * dfi / (n - p)

    @property
    def residual_std_error(self) -> float:
        return self._result.params.sigma

    def _fitter(self):
        from pyeffectsize.models.solvers import lm
        return lm

    def _fit_lines(self) -> list[str]:
        return [
            f"R-squared: {self.r_squared:.6f}",
            f"Adj. R-squared: {self.adjusted_r_squared:.6f}",
            f"Residual Std. Error: {self.residual_std_error:.6f} on {int(self.df_residual)} DF",
        ]

    def __repr__(self) -> str:
        return (
            f"LinearSolution(formula='{self.formula}', n={self.n_obs}, "
            f"r_squared={self.r_squared:.4f})"
        )


@dataclass
class GLMSolution(_ModelSolution[GLMParams]):
    """
    Generalized linear model fit.

    Coefficients are on the link scale.
    """
    _title = "Generalized Linear Model"

    @property
    def family(self) -> Family:
        p = self._result.params
        return resolve_family(p.family_name, p.link_name)

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def deviance(self) -> float:
        return self._result.params.deviance

    @property
    def null_deviance(self) -> float:
        return self._result.params.null_deviance

    @property
    def dispersion(self) -> float:
        return self._result.params.dispersion

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values

    @property
    def linear_predictor(self) -> NDArray[np.floating[Any]]:
        return self._result.params.linear_predictor

    @property
    def r_squared(self) -> float | None:
        """Only defined for Gaussian/identity fits, where it equals OLS R²."""
        if not self.family.standardize_response or self.null_deviance == 0:
            return None
        return 1.0 - self.deviance / self.null_deviance

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    def _p_values(self) -> NDArray[np.floating[Any]]:
        if self.family.dispersion_is_fixed:
            return 2.0 * stats.norm.sf(np.abs(self.t_statistics))
        return super()._p_values()

    def _fitter(self):
        from pyeffectsize.models.solvers import glm
        return glm

    def _fit_lines(self) -> list[str]:
        p = self._result.params
        return [
            f"Family: {p.family_name} (link = {p.link_name})",
            f"Null deviance: {p.null_deviance:.4f}  Residual deviance: {p.deviance:.4f} "
            f"on {p.df_residual} DF",
            f"Dispersion: {p.dispersion:.6f}",
            f"IRLS iterations: {p.n_iter}" + ("" if p.converged else " (not converged)"),
        ]

    def __repr__(self) -> str:
        p = self._result.params
        return (
            f"GLMSolution(formula='{self.formula}', family='{p.family_name}', "
            f"link='{p.link_name}', converged={p.converged})"
        )


@dataclass
class LMMSolution(_ModelSolution[LMMParams]):
    """
    Random-intercept linear mixed model fit.
    """
    _CAPABILITIES = frozenset({
        CAPABILITY_DESIGN_MATRIX, CAPABILITY_REFIT, CAPABILITY_VCOV, CAPABILITY_GROUPING,
    })
    _title = "Linear Mixed Model"
    _uses_rng = True

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def residual_variance(self) -> float:
        return self._result.params.residual_variance

    @property
    def group_variances(self) -> dict[str, float]:
        return dict(self._result.params.group_variances)

    @property
    def random_effects(self) -> dict[str, NDArray[np.floating[Any]]]:
        return self._result.params.random_effects

    @property
    def log_likelihood(self) -> float:
        return self._result.params.log_likelihood

    @property
    def reml(self) -> bool:
        return self._result.params.reml

    @property
    def icc(self) -> dict[str, float]:
        """Intraclass correlation per grouping factor."""
        total = self.residual_variance + sum(self.group_variances.values())
        if total == 0:
            return {g: float('nan') for g in self.group_variances}
        return {g: v / total for g, v in self.group_variances.items()}

    def _fitter(self):
        from pyeffectsize.models.solvers import lmm
        return lmm

    def _fit_lines(self) -> list[str]:
        p = self._result.params
        lines = [
            f"Method: {'REML' if p.reml else 'ML'}  log-likelihood: {p.log_likelihood:.4f}",
            "Random intercepts:",
        ]
        for g, var in p.group_variances.items():
            lines.append(
                f"  {g:<18} variance {var:10.6f}  std.dev {np.sqrt(var):10.6f}  "
                f"groups {p.n_groups[g]}"
            )
        lines.append(
            f"  {'Residual':<18} variance {p.residual_variance:10.6f}  "
            f"std.dev {np.sqrt(p.residual_variance):10.6f}"
        )
        return lines

    def __repr__(self) -> str:
        p = self._result.params
        return (
            f"LMMSolution(formula='{self.formula}', n={p.n_obs}, "
            f"groups={p.n_groups}, reml={p.reml})"
        )
