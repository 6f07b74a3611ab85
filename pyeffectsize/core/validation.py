"""
Input validation utilities for PyEffectSize.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

from collections.abc import Iterable
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyeffectsize.core.exceptions import ValidationError, DimensionError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a float64 numpy array.

    Rejects inputs that result in object dtype (mixed types) or any other
    non-numeric dtype. Boolean and integer input is promoted to float64.

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with floating dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if result.dtype == bool:
        result = result.astype(np.float64)

    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if not np.issubdtype(result.dtype, np.floating):
        result = result.astype(np.float64)

    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_consistent_length(
    *arrays: NDArray,
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_min_samples(array: NDArray, min_samples: int, name: str) -> None:
    """
    Verify array has at least the minimum number of samples.

    Raises:
        ValidationError: If array has fewer than min_samples
    """
    n = array.shape[0]
    if n < min_samples:
        raise ValidationError(
            f"{name}: requires at least {min_samples} samples, got {n}"
        )


def check_probability(value: float, name: str) -> None:
    """
    Verify a scalar lies strictly between 0 and 1 (e.g. a CI level).

    Raises:
        ValidationError: If value is not in (0, 1)
    """
    if not isinstance(value, (int, float, np.floating)) or not 0.0 < float(value) < 1.0:
        raise ValidationError(f"{name}: must be in (0, 1), got {value!r}")


def check_choice(value: str, choices: Iterable[str], name: str) -> None:
    """
    Verify a string option is one of the allowed choices.

    Raises:
        ValidationError: If value is not among choices
    """
    choices = tuple(choices)
    if value not in choices:
        valid = ", ".join(repr(c) for c in choices)
        raise ValidationError(f"{name}: unknown value {value!r}. Valid: {valid}")


def check_row_indices(
    rows: ArrayLike,
    n: int,
    name: str,
) -> NDArray[np.intp]:
    """
    Validate a row subset and return it as sorted unique integer indices.

    Accepts either a boolean mask of length n or an iterable of integer
    positions (a set is fine).

    Raises:
        ValidationError: If the subset is empty, out of range, or a mask of
            the wrong length
    """
    if isinstance(rows, (set, frozenset)):
        rows = sorted(rows)
    arr = np.asarray(rows)

    if arr.dtype == bool:
        if arr.shape != (n,):
            raise DimensionError(
                f"{name}: boolean mask has shape {arr.shape}, expected ({n},)"
            )
        idx = np.flatnonzero(arr)
    else:
        if arr.size and not np.issubdtype(arr.dtype, np.integer):
            raise ValidationError(
                f"{name}: expected integer row positions or a boolean mask, got dtype {arr.dtype}"
            )
        idx = np.unique(arr.astype(np.intp).ravel())
        if idx.size and (idx[0] < 0 or idx[-1] >= n):
            raise ValidationError(
                f"{name}: row positions must be in [0, {n}), got range "
                f"[{int(idx[0])}, {int(idx[-1])}]"
            )

    if idx.size == 0:
        raise ValidationError(f"{name}: row subset is empty")
    return idx
