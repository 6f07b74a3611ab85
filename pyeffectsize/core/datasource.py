"""
Universal DataSource for PyEffectSize.

DataSource is the "I have data" abstraction: a set of equally long named
columns. Numeric columns are stored as float64; factor (categorical)
columns are stored as string arrays. It doesn't know what model will be
fitted to it.

Usage:
    from pyeffectsize import DataSource

    ds = DataSource.from_arrays(mpg=mpg, am=am, factors=('am',))
    ds = DataSource.from_dataframe(df)
    ds = DataSource.from_file("mtcars.csv", factors=('cyl',))

    ds.keys()          # frozenset({'mpg', 'am'})
    ds.is_factor('am') # True
    ds2 = ds.with_columns(mpg=z_mpg)   # new source, ds unchanged
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyeffectsize.core.exceptions import ValidationError, DimensionError
from pyeffectsize.core.capabilities import (
    CAPABILITY_MATERIALIZED,
    CAPABILITY_REPEATABLE,
)
from pyeffectsize.core.validation import check_row_indices

if TYPE_CHECKING:
    import pandas as pd


_IN_MEMORY = frozenset({CAPABILITY_MATERIALIZED, CAPABILITY_REPEATABLE})


@dataclass(frozen=True)
class DataSource:
    """
    Named-column data container. Domain-agnostic.

    Construct via factory classmethods, not directly. Transformations
    return new instances; a DataSource is never modified in place.
    """
    _data: dict[str, NDArray]
    _factors: frozenset[str]
    _order: tuple[str, ...]
    _capabilities: frozenset[str] = _IN_MEMORY
    _metadata: dict[str, Any] = field(default_factory=dict)

    # === Column Access ===

    def keys(self) -> frozenset[str]:
        """Return the names of all available columns."""
        return frozenset(self._order)

    @property
    def columns(self) -> tuple[str, ...]:
        """Column names in insertion order."""
        return self._order

    @property
    def factors(self) -> frozenset[str]:
        """Names of the categorical columns."""
        return self._factors

    def __getitem__(self, key: str) -> NDArray:
        if key not in self._data:
            raise KeyError(
                f"DataSource has no column '{key}'. Available: {sorted(self._order)}"
            )
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return self.n_observations

    def is_factor(self, name: str) -> bool:
        """True if the column is categorical."""
        if name not in self._data:
            raise KeyError(f"DataSource has no column '{name}'")
        return name in self._factors

    # === Properties ===

    @property
    def n_observations(self) -> int:
        """Number of rows."""
        return self._metadata.get('n_observations', 0)

    @property
    def metadata(self) -> dict[str, Any]:
        return self._metadata.copy()

    def supports(self, capability: str) -> bool:
        """
        Check if this DataSource supports a capability.

        Unknown capabilities return False, never raise.
        """
        return capability in self._capabilities

    # === Derived sources ===

    def with_columns(self, **updates: ArrayLike) -> DataSource:
        """
        Return a new DataSource with some columns replaced or added.

        A replaced factor column stays a factor; new columns are numeric.
        """
        data = dict(self._data)
        order = list(self._order)
        for name, values in updates.items():
            arr = _coerce(values, name, is_factor=name in self._factors)
            if arr.shape[0] != self.n_observations:
                raise DimensionError(
                    f"{name}: length {arr.shape[0]} doesn't match "
                    f"{self.n_observations} rows"
                )
            if name not in data:
                order.append(name)
            data[name] = arr
        return DataSource(
            _data=data,
            _factors=self._factors,
            _order=tuple(order),
            _capabilities=self._capabilities,
            _metadata={**self._metadata, 'source': 'derived'},
        )

    def subset(self, rows: ArrayLike) -> DataSource:
        """Return the rows selected by a boolean mask or integer positions."""
        idx = check_row_indices(rows, self.n_observations, 'rows')
        data = {name: arr[idx] for name, arr in self._data.items()}
        return DataSource(
            _data=data,
            _factors=self._factors,
            _order=self._order,
            _capabilities=self._capabilities,
            _metadata={**self._metadata, 'n_observations': int(idx.size), 'source': 'subset'},
        )

    def to_dict(self) -> dict[str, NDArray]:
        """Shallow copy of the columns as a plain dict."""
        return {name: self._data[name] for name in self._order}

    # === Factory Methods ===

    @classmethod
    def from_arrays(
        cls,
        *,
        factors: tuple[str, ...] | list[str] = (),
        **columns: ArrayLike,
    ) -> DataSource:
        """
        Construct from 1D array-likes.

        Columns listed in ``factors`` are stored as strings; so is any column
        whose values are not numeric.
        """
        if not columns:
            raise ValidationError("DataSource.from_arrays: no columns given")

        unknown = set(factors) - set(columns)
        if unknown:
            raise ValidationError(
                f"factors: {sorted(unknown)} are not among the columns {sorted(columns)}"
            )

        storage: dict[str, NDArray] = {}
        factor_names: set[str] = set()
        n_obs: int | None = None

        for name, values in columns.items():
            raw = np.asarray(values)
            is_factor = name in factors or not _is_numeric(raw)
            arr = _coerce(raw, name, is_factor=is_factor)
            if n_obs is None:
                n_obs = arr.shape[0]
            elif arr.shape[0] != n_obs:
                raise DimensionError(
                    f"{name}: length {arr.shape[0]} doesn't match {n_obs} rows"
                )
            storage[name] = arr
            if is_factor:
                factor_names.add(name)

        return cls(
            _data=storage,
            _factors=frozenset(factor_names),
            _order=tuple(columns),
            _metadata={'n_observations': n_obs, 'source': 'arrays'},
        )

    @classmethod
    def from_dataframe(
        cls,
        df: 'pd.DataFrame',
        *,
        factors: tuple[str, ...] | list[str] = (),
        source_path: str | None = None,
    ) -> DataSource:
        """
        Construct from a pandas DataFrame.

        Categorical, object, string and boolean-free non-numeric columns
        become factors, plus any listed in ``factors``.
        """
        import pandas as pd

        columns: dict[str, Any] = {}
        inferred: list[str] = list(factors)
        for col in df.columns:
            series = df[col]
            if isinstance(series.dtype, pd.CategoricalDtype):
                inferred.append(str(col))
                columns[str(col)] = series.astype(str).to_numpy()
            else:
                columns[str(col)] = series.to_numpy()

        ds = cls.from_arrays(factors=tuple(dict.fromkeys(inferred)), **columns)
        metadata = {**ds._metadata, 'source': 'dataframe'}
        if source_path:
            metadata['source_path'] = source_path
        return cls(
            _data=ds._data,
            _factors=ds._factors,
            _order=ds._order,
            _metadata=metadata,
        )

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        *,
        factors: tuple[str, ...] | list[str] = (),
    ) -> DataSource:
        """Construct from a CSV/TSV file (via pandas)."""
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix not in ('.csv', '.tsv'):
            raise ValidationError(f"Unknown file format: {suffix}")

        import pandas as pd
        sep = '\t' if suffix == '.tsv' else ','
        df = pd.read_csv(path, sep=sep)
        return cls.from_dataframe(df, factors=factors, source_path=str(path))


def _is_numeric(arr: NDArray) -> bool:
    return arr.dtype != object and (
        np.issubdtype(arr.dtype, np.number) or arr.dtype == bool
    )


def _coerce(values: ArrayLike, name: str, *, is_factor: bool) -> NDArray:
    """Convert one column to its storage dtype."""
    arr = np.asarray(values)
    if arr.ndim != 1:
        raise DimensionError(f"{name}: expected 1D column, got shape {arr.shape}")
    if is_factor:
        return np.array([_level_label(v) for v in arr], dtype=str)
    if not _is_numeric(arr):
        raise ValidationError(f"{name}: non-numeric values in a numeric column")
    return arr.astype(np.float64)


def _level_label(value: Any) -> str:
    """Label a factor level; 1.0 and 1 both become '1'."""
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value)
