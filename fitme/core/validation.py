"""
Input validation utilities for fitme.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No default handling of edge cases
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Names included in all error messages
"""

from typing import Any, Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

from fitme.core.exceptions import ValidationError, DimensionError


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Args:
        array: Array to check
        name: Name for error messages

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        first = int(np.flatnonzero(~np.isfinite(array.ravel()))[0])
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf), "
            f"first at flat index {first}"
        )


def check_row_lengths(rows: Iterable[Sequence[Any]], expected: int) -> None:
    """
    Verify every row has exactly `expected` cells.

    Args:
        rows: Rows to check
        expected: Required length (the header count)

    Raises:
        DimensionError: Naming the 0-based index of the first bad row
    """
    for i, row in enumerate(rows):
        if len(row) != expected:
            raise DimensionError(
                f"row index {i} does not have the same length as the headers "
                f"(expected {expected}, got {len(row)})",
                row=i,
            )


def check_positive_int(value: Any, name: str) -> int:
    """
    Verify value is a positive integer and return it.

    Raises:
        ValidationError: If value is not an integer >= 1
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ValidationError(f"{name}: expected a positive integer, got {value!r}")
    if value < 1:
        raise ValidationError(f"{name}: must be >= 1, got {value}")
    return int(value)


def check_positive_float(value: Any, name: str) -> float:
    """
    Verify value is a finite, strictly positive number and return it.

    Raises:
        ValidationError: If value is not a finite number > 0
    """
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name}: expected a number, got {value!r}") from e
    if not np.isfinite(result) or result <= 0:
        raise ValidationError(f"{name}: must be finite and > 0, got {value}")
    return result
