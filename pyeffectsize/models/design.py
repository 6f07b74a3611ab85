"""
Model design.

ModelDesign wraps a DataSource and a formula and extracts what a fitter
needs: the encoded model matrix X, the response y, and the grouping labels
of any random intercepts. It knows a model is being fitted; DataSource
doesn't.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
import numpy as np
from numpy.typing import NDArray

from pyeffectsize.core.datasource import DataSource
from pyeffectsize.core.exceptions import ValidationError
from pyeffectsize.core.validation import check_finite, check_min_samples
from pyeffectsize.models.formula import Formula, parse_formula
from pyeffectsize.models._contrasts import ModelMatrix, build_model_matrix


@dataclass(frozen=True)
class ModelDesign:
    """
    Fixed and random structure of one model over one dataset.

    Construction:
        ModelDesign.build("mpg ~ wt + am", ds)
        ModelDesign.build(parse_formula("y ~ x + (1 | g)"), {'y': y, 'x': x, 'g': g})
    """
    formula: Formula
    data: DataSource
    matrix: ModelMatrix
    y: NDArray[np.floating[Any]]
    groups: dict[str, NDArray]

    @classmethod
    def build(cls, formula: str | Formula, data: Any) -> ModelDesign:
        """
        Parse the formula, encode the model matrix and validate.

        Raises:
            ValidationError: Unknown columns, a factor response, missing or
                non-finite values, or fewer observations than columns.
        """
        f = parse_formula(formula)
        ds = as_datasource(data)

        if f.response not in ds:
            raise ValidationError(
                f"response '{f.response}' not found in data. "
                f"Available: {sorted(ds.keys())}"
            )
        if ds.is_factor(f.response):
            raise ValidationError(
                f"response '{f.response}' is a factor; code it numerically"
            )

        y = ds[f.response]
        check_finite(y, f.response)

        matrix = build_model_matrix(f, ds)
        check_finite(matrix.X, 'model matrix')
        check_min_samples(matrix.X, matrix.p + 1, 'model matrix')

        groups: dict[str, NDArray] = {}
        for g in f.groups:
            if g not in ds:
                raise ValidationError(
                    f"grouping column '{g}' not found in data. "
                    f"Available: {sorted(ds.keys())}"
                )
            labels = ds[g].astype(str)
            n_levels = np.unique(labels).size
            if n_levels < 2:
                raise ValidationError(
                    f"grouping column '{g}' has {n_levels} level; need at least 2"
                )
            groups[g] = labels

        return cls(formula=f, data=ds, matrix=matrix, y=y, groups=groups)

    @property
    def X(self) -> NDArray[np.floating[Any]]:
        return self.matrix.X

    @property
    def n(self) -> int:
        return self.matrix.n

    @property
    def p(self) -> int:
        return self.matrix.p

    def supports(self, capability: str) -> bool:
        return self.data.supports(capability)


def as_datasource(data: Any) -> DataSource:
    """
    Accept a DataSource, a pandas DataFrame or a mapping of columns.
    """
    if isinstance(data, DataSource):
        return data
    if hasattr(data, 'columns') and hasattr(data, 'to_numpy'):
        return DataSource.from_dataframe(data)
    if isinstance(data, Mapping):
        return DataSource.from_arrays(**{str(k): v for k, v in data.items()})
    raise ValidationError(
        f"data: expected DataSource, DataFrame or mapping, got {type(data).__name__}"
    )
