"""
ModelView: the read-only snapshot of a fitted model the standardization
methods work from.

Whatever the source model type, everything downstream sees the same
frozen fields. Optional pieces (design matrix, vcov, grouping, refit) are
probed through ``supports()`` rather than assumed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyeffectsize.core.capabilities import (
    CAPABILITY_DESIGN_MATRIX,
    CAPABILITY_GROUPING,
    CAPABILITY_REFIT,
    CAPABILITY_VCOV,
)
from pyeffectsize.core.exceptions import ValidationError
from pyeffectsize.core.validation import (
    check_array, check_1d, check_2d, check_finite, check_consistent_length,
)
from pyeffectsize.models._contrasts import (
    Column,
    ModelMatrix,
    ALL_ROLES,
    INTERCEPT_NAME,
    ROLE_INTERCEPT,
    ROLE_NUMERIC,
    ROLE_BINARY,
    ROLE_FACTOR,
    ROLE_INTERACTION,
    is_binary,
)
from pyeffectsize.models.families import Family, resolve_family

if TYPE_CHECKING:
    from pyeffectsize.core.datasource import DataSource
    from pyeffectsize.models.formula import Formula


@dataclass(frozen=True)
class ModelView:
    """
    Immutable view into a fitted model.

    Attributes:
        names: Ordered coefficient names.
        coefficients: Raw coefficients (p,).
        standard_errors: Raw standard errors (p,).
        df_residual: Residual degrees of freedom.
        family: Response family and link.
        matrix: Model matrix with column provenance, or None.
        response: Raw response vector, or None.
        vcov: Coefficient covariance (p, p), or None.
        groups: Grouping factor name -> label per row (empty if not mixed).
        data: Dataset the model was fitted on, or None.
        formula: Model formula, or None.
        refit_fn: ``fn(data, **kwargs) -> fitted model``, or None.
        r_squared: Coefficient of determination, if the model defines one.
        converged: Convergence flag reported by the model.
        model_type: Class name of the source model.
    """
    names: tuple[str, ...]
    coefficients: NDArray[np.floating[Any]]
    standard_errors: NDArray[np.floating[Any]]
    df_residual: float
    family: Family
    matrix: ModelMatrix | None = None
    response: NDArray[np.floating[Any]] | None = None
    vcov: NDArray[np.floating[Any]] | None = None
    groups: dict[str, NDArray] = field(default_factory=dict)
    data: 'DataSource | None' = None
    formula: 'Formula | None' = None
    refit_fn: Callable[..., Any] | None = None
    r_squared: float | None = None
    converged: bool = True
    model_type: str = 'ModelView'

    def __post_init__(self):
        p = len(self.names)
        if self.coefficients.shape != (p,) or self.standard_errors.shape != (p,):
            raise ValidationError(
                f"{self.model_type}: {p} term names but coefficients "
                f"{self.coefficients.shape} and standard errors "
                f"{self.standard_errors.shape}"
            )
        if self.matrix is not None and self.matrix.column_names != self.names:
            raise ValidationError(
                f"{self.model_type}: model matrix columns {self.matrix.column_names} "
                f"don't match term names {self.names}"
            )

    # === Capabilities ===

    def supports(self, capability: str) -> bool:
        """Unknown capabilities return False, never raise."""
        if capability == CAPABILITY_DESIGN_MATRIX:
            return self.matrix is not None and self.response is not None
        if capability == CAPABILITY_GROUPING:
            return bool(self.groups)
        if capability == CAPABILITY_REFIT:
            return self.refit_fn is not None and self.data is not None
        if capability == CAPABILITY_VCOV:
            return self.vcov is not None
        return False

    def require(self, capability: str, method: str) -> None:
        """
        Raises:
            ValidationError: If the capability is missing
        """
        if not self.supports(capability):
            raise ValidationError(
                f"method '{method}' needs capability '{capability}', which "
                f"{self.model_type} does not provide"
            )

    # === Structure ===

    @property
    def n_obs(self) -> int:
        if self.response is not None:
            return int(self.response.shape[0])
        if self.matrix is not None:
            return self.matrix.n
        return 0

    @property
    def has_intercept(self) -> bool:
        return INTERCEPT_NAME in self.names

    @property
    def columns(self) -> tuple[Column, ...]:
        if self.matrix is None:
            return ()
        return self.matrix.columns

    @property
    def dispersion_estimated(self) -> bool:
        """True when inference uses t rather than normal quantiles."""
        return not self.family.dispersion_is_fixed

    def column(self, name: str) -> Column:
        if self.matrix is None:
            raise KeyError(f"{self.model_type} has no model matrix")
        return self.matrix.columns[self.matrix.index(name)]

    def roles(self) -> dict[str, str]:
        return self.matrix.roles() if self.matrix is not None else {}

    # === Construction ===

    @classmethod
    def from_arrays(
        cls,
        X: ArrayLike,
        y: ArrayLike,
        coefficients: ArrayLike,
        standard_errors: ArrayLike,
        names: tuple[str, ...] | list[str],
        *,
        df_residual: float | None = None,
        roles: Mapping[str, str] | None = None,
        vcov: ArrayLike | None = None,
        groups: Mapping[str, ArrayLike] | None = None,
        family: str | Family = 'gaussian',
        r_squared: float | None = None,
    ) -> ModelView:
        """
        Build a view from raw pieces of a model fitted elsewhere.

        Roles default to: '(Intercept)' -> intercept, names containing ':'
        -> interaction, {0, 1} columns -> binary, anything else numeric.
        A column given role 'factor' is treated as a 0/1 indicator whose
        reference rows are its zeros.

        Examples:
            >>> view = ModelView.from_arrays(X, y, beta, se, ['(Intercept)', 'x'],
            ...                              df_residual=98)
        """
        X_arr = check_array(X, 'X')
        if X_arr.ndim == 1:
            X_arr = X_arr.reshape(-1, 1)
        y_arr = check_array(y, 'y')
        check_2d(X_arr, 'X')
        check_1d(y_arr, 'y')
        check_finite(X_arr, 'X')
        check_finite(y_arr, 'y')
        check_consistent_length(X_arr, y_arr, names=('X', 'y'))

        names = tuple(names)
        if X_arr.shape[1] != len(names):
            raise ValidationError(
                f"X has {X_arr.shape[1]} columns but {len(names)} names were given"
            )
        beta = check_array(coefficients, 'coefficients')
        se = check_array(standard_errors, 'standard_errors')

        roles = dict(roles or {})
        unknown = set(roles.values()) - ALL_ROLES
        if unknown:
            raise ValidationError(
                f"roles: unknown role(s) {sorted(unknown)}; valid: {sorted(ALL_ROLES)}"
            )

        columns = []
        for j, name in enumerate(names):
            role = roles.get(name) or _infer_role(name, X_arr[:, j])
            columns.append(_column_for(name, role))

        matrix = ModelMatrix(
            X=X_arr,
            columns=tuple(columns),
            n=X_arr.shape[0],
            p=X_arr.shape[1],
            has_intercept=INTERCEPT_NAME in names,
            factor_levels={},
        )

        if df_residual is None:
            df_residual = float(X_arr.shape[0] - X_arr.shape[1])

        group_arrays = {}
        for g, labels in (groups or {}).items():
            arr = np.asarray(labels).astype(str)
            check_consistent_length(y_arr, arr, names=('y', g))
            group_arrays[g] = arr

        return cls(
            names=names,
            coefficients=beta,
            standard_errors=se,
            df_residual=float(df_residual),
            family=resolve_family(family),
            matrix=matrix,
            response=y_arr,
            vcov=None if vcov is None else check_array(vcov, 'vcov'),
            groups=group_arrays,
            r_squared=r_squared,
            model_type='arrays',
        )


def _infer_role(name: str, values: NDArray) -> str:
    if name == INTERCEPT_NAME:
        return ROLE_INTERCEPT
    if ':' in name:
        return ROLE_INTERACTION
    if is_binary(values):
        return ROLE_BINARY
    return ROLE_NUMERIC


def _column_for(name: str, role: str) -> Column:
    if role == ROLE_INTERCEPT:
        return Column(name=name, role=role, term=name)
    if role == ROLE_FACTOR:
        return Column(
            name=name, role=role, term=name, variables=(name,),
            levels={name: '1'}, reference={name: '0'},
        )
    if role == ROLE_INTERACTION:
        return Column(name=name, role=role, term=name, variables=tuple(name.split(':')))
    return Column(name=name, role=role, term=name, variables=(name,))
