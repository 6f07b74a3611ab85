"""
Contrast coding and model matrix construction.

Handles the translation from a formula plus a dataset into the numeric
matrix a fitter consumes, and records for every column where it came from.
That provenance (role, term, source variables, factor levels) is what the
standardization methods need to tell a numeric slope from a factor
contrast or an interaction product.

Key concepts:
    - Treatment coding: k-1 indicator columns (baseline = first sorted level)
    - Without an intercept the first factor keeps all k levels, as in R
    - Interaction: element-wise products of the component columns
    - Binary: a numeric column whose values are exactly {0, 1}
"""

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pyeffectsize.core.datasource import DataSource
from pyeffectsize.core.exceptions import ValidationError
from pyeffectsize.models.formula import Formula


ROLE_INTERCEPT = 'intercept'
ROLE_NUMERIC = 'numeric'
ROLE_BINARY = 'binary'
ROLE_FACTOR = 'factor'
ROLE_INTERACTION = 'interaction'

ALL_ROLES = frozenset({
    ROLE_INTERCEPT, ROLE_NUMERIC, ROLE_BINARY, ROLE_FACTOR, ROLE_INTERACTION,
})

INTERCEPT_NAME = '(Intercept)'


@dataclass(frozen=True)
class Column:
    """
    Provenance of one model-matrix column.

    Attributes:
        name: Coefficient name ('wt', 'am1', 'wt:am1', '(Intercept)').
        role: One of ROLE_*.
        term: Formula term label the column belongs to ('am', 'wt:am').
        variables: Source data columns, in term order (empty for intercept).
        levels: Factor variable -> level this column indicates.
        reference: Factor variable -> reference (baseline) level.
    """
    name: str
    role: str
    term: str
    variables: tuple[str, ...] = ()
    levels: dict[str, str] = field(default_factory=dict)
    reference: dict[str, str] = field(default_factory=dict)

    @property
    def factor_variables(self) -> tuple[str, ...]:
        return tuple(v for v in self.variables if v in self.levels)

    @property
    def numeric_variables(self) -> tuple[str, ...]:
        return tuple(v for v in self.variables if v not in self.levels)


@dataclass(frozen=True)
class ModelMatrix:
    """
    Encoded design matrix with per-column metadata.

    Attributes:
        X: (n, p) float64 design matrix
        columns: one Column per matrix column
        n: number of observations
        p: number of columns
        has_intercept: whether column 0 is an intercept
        factor_levels: factor name -> sorted level labels
    """
    X: NDArray[np.floating[Any]]
    columns: tuple[Column, ...]
    n: int
    p: int
    has_intercept: bool
    factor_levels: dict[str, list[str]]

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    def index(self, name: str) -> int:
        """Column position by coefficient name."""
        for j, col in enumerate(self.columns):
            if col.name == name:
                return j
        raise KeyError(f"Model matrix has no column '{name}'")

    def roles(self) -> dict[str, str]:
        return {c.name: c.role for c in self.columns}


def encode_treatment(
    factor: NDArray,
    *,
    full_rank_dummies: bool = False,
) -> tuple[NDArray, list[str], str]:
    """
    Treatment (dummy) coding for a single factor.

    Drops the first sorted level (baseline) and creates k-1 indicator
    columns, or k columns when ``full_rank_dummies`` (no intercept).

    Args:
        factor: 1D array of level labels

    Returns:
        (X_coded, level_names, baseline) where:
            X_coded: (n, k-1) or (n, k) float64 indicator matrix
            level_names: level represented by each column
            baseline: the reference level
    """
    factor_str = np.asarray(factor).astype(str)
    levels = sorted(set(factor_str.tolist()))
    baseline = levels[0]
    coded = levels if full_rank_dummies else levels[1:]

    X = np.zeros((factor_str.shape[0], len(coded)), dtype=np.float64)
    for j, level in enumerate(coded):
        X[:, j] = (factor_str == level).astype(np.float64)

    return X, coded, baseline


def interaction_columns(
    X_a: NDArray, X_b: NDArray,
) -> NDArray:
    """
    Element-wise products of every column pair of X_a and X_b.

    Column order: X_a varies fastest, matching R's model.matrix.

    Returns:
        (n, p_a * p_b) interaction columns
    """
    n = X_a.shape[0]
    p_a = X_a.shape[1]
    p_b = X_b.shape[1]
    X_int = np.empty((n, p_a * p_b), dtype=np.float64)

    col = 0
    for j in range(p_b):
        for i in range(p_a):
            X_int[:, col] = X_a[:, i] * X_b[:, j]
            col += 1

    return X_int


def is_binary(values: NDArray) -> bool:
    """True if the values are exactly the set {0, 1}."""
    unique = np.unique(values)
    return unique.shape[0] == 2 and unique[0] == 0.0 and unique[1] == 1.0


def build_model_matrix(formula: Formula, data: DataSource) -> ModelMatrix:
    """
    Build the fixed-effects model matrix for a formula over a dataset.

    Args:
        formula: Parsed formula (random-effect groups are ignored here)
        data: Dataset holding every variable the formula names

    Returns:
        ModelMatrix with the design matrix and column provenance

    Raises:
        ValidationError: On missing columns or single-level factors
    """
    for var in formula.variables:
        if var not in data:
            raise ValidationError(
                f"formula variable '{var}' not found in data. "
                f"Available: {sorted(data.keys())}"
            )

    n = data.n_observations
    blocks: list[NDArray] = []
    columns: list[Column] = []
    factor_levels: dict[str, list[str]] = {}
    coded: dict[str, tuple[NDArray, list[str], str]] = {}

    if formula.intercept:
        blocks.append(np.ones((n, 1), dtype=np.float64))
        columns.append(Column(name=INTERCEPT_NAME, role=ROLE_INTERCEPT, term=INTERCEPT_NAME))

    first_factor_pending = not formula.intercept

    for var in formula.variables:
        if data.is_factor(var):
            levels = sorted(set(data[var].tolist()))
            if len(levels) < 2:
                raise ValidationError(
                    f"{var}: factor needs at least 2 levels, got {len(levels)}"
                )
            factor_levels[var] = levels

    for term in formula.terms:
        label = ':'.join(term)

        if len(term) == 1:
            var = term[0]
            if var in factor_levels:
                full = first_factor_pending
                first_factor_pending = False
                X_f, coded_levels, baseline = encode_treatment(
                    data[var], full_rank_dummies=full
                )
                coded[var] = encode_treatment(data[var])
                blocks.append(X_f)
                for level in coded_levels:
                    columns.append(Column(
                        name=f"{var}{level}",
                        role=ROLE_FACTOR,
                        term=label,
                        variables=(var,),
                        levels={var: level},
                        reference={var: baseline},
                    ))
            else:
                x = data[var].reshape(-1, 1)
                blocks.append(x)
                role = ROLE_BINARY if is_binary(x[:, 0]) else ROLE_NUMERIC
                columns.append(Column(name=var, role=role, term=label, variables=(var,)))
            continue

        # Interaction: fold component blocks left to right
        block: NDArray | None = None
        parts: list[tuple[str, dict[str, str]]] = [('', {})]
        reference: dict[str, str] = {}
        for var in term:
            if var in factor_levels:
                if var not in coded:
                    coded[var] = encode_treatment(data[var])
                X_v, var_levels, baseline = coded[var]
                names = [(f"{var}{lvl}", {var: lvl}) for lvl in var_levels]
                reference[var] = baseline
            else:
                X_v = data[var].reshape(-1, 1)
                names = [(var, {})]

            if block is None:
                block = X_v
                parts = names
            else:
                block = interaction_columns(block, X_v)
                parts = [
                    (f"{a_name}:{b_name}", {**a_lv, **b_lv})
                    for b_name, b_lv in names
                    for a_name, a_lv in parts
                ]

        blocks.append(block)
        for name, lv in parts:
            columns.append(Column(
                name=name,
                role=ROLE_INTERACTION,
                term=label,
                variables=term,
                levels=lv,
                reference={v: reference[v] for v in lv},
            ))

    X = np.hstack(blocks) if blocks else np.empty((n, 0), dtype=np.float64)

    return ModelMatrix(
        X=X,
        columns=tuple(columns),
        n=n,
        p=X.shape[1],
        has_intercept=formula.intercept,
        factor_levels=factor_levels,
    )
