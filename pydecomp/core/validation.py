"""
Input validation utilities for pydecomp.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent. Backends call them before
touching any entry, which is what guarantees that a failing mutation
leaves the matrix unchanged.

Design principles:
    - No silent clamping of indices or shapes
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import math
from typing import Any

from pydecomp.core.exceptions import (
    ValidationError,
    DimensionError,
    IndexOutOfBoundsError,
)


def check_index(row: Any, col: Any, shape: tuple[int, int]) -> None:
    """
    Verify (row, col) addresses an entry of a matrix with the given shape.
    
    Negative indices are rejected: the contract has no wrap-around.
    
    Raises:
        IndexOutOfBoundsError: If either index is outside the matrix
    """
    n_rows, n_cols = shape
    if not (0 <= row < n_rows) or not (0 <= col < n_cols):
        raise IndexOutOfBoundsError(
            f"index ({row}, {col}) out of bounds for matrix of shape {shape}",
            index=(row, col),
            shape=shape,
        )


def check_row(row: Any, shape: tuple[int, int]) -> None:
    """
    Verify row is a valid row index.
    
    Raises:
        IndexOutOfBoundsError: If row is outside [0, n_rows)
    """
    if not (0 <= row < shape[0]):
        raise IndexOutOfBoundsError(
            f"row {row} out of bounds for matrix of shape {shape}",
            index=row,
            shape=shape,
        )


def check_col(col: Any, shape: tuple[int, int]) -> None:
    """
    Verify col is a valid column index.
    
    Raises:
        IndexOutOfBoundsError: If col is outside [0, n_cols)
    """
    if not (0 <= col < shape[1]):
        raise IndexOutOfBoundsError(
            f"column {col} out of bounds for matrix of shape {shape}",
            index=col,
            shape=shape,
        )


def check_dims(n_rows: Any, n_cols: Any) -> None:
    """
    Verify requested dimensions are non-negative integers.
    
    Raises:
        ValidationError: If either dimension is negative or not an int
    """
    for name, value in (('n_rows', n_rows), ('n_cols', n_cols)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{name}: expected int, got {type(value).__name__}")
        if value < 0:
            raise ValidationError(f"{name}: must be non-negative, got {value}")


def check_same_shape(
    a: tuple[int, int],
    b: tuple[int, int],
    operation: str
) -> None:
    """
    Verify two shapes are identical (elementwise operations).
    
    Raises:
        DimensionError: If the shapes differ
    """
    if a != b:
        raise DimensionError(
            f"{operation}: shapes must match, got {a} and {b}"
        )


def check_conformable(a: tuple[int, int], b: tuple[int, int]) -> None:
    """
    Verify a @ b is defined.
    
    Raises:
        DimensionError: If a has a different number of columns than b has rows
    """
    if a[1] != b[0]:
        raise DimensionError(
            f"dot: cannot multiply {a} by {b}, "
            f"left columns ({a[1]}) must equal right rows ({b[0]})"
        )


def check_square(shape: tuple[int, int], name: str) -> None:
    """
    Verify a matrix is square.
    
    Raises:
        DimensionError: If n_rows != n_cols
    """
    if shape[0] != shape[1]:
        raise DimensionError(f"{name}: expected a square matrix, got shape {shape}")


def check_range(r: Any, limit: int, name: str) -> None:
    """
    Verify a half-open range lies inside [0, limit].
    
    Raises:
        ValidationError: If r is not a step-1 range
        IndexOutOfBoundsError: If r runs past the matrix edge
    """
    if not isinstance(r, range) or r.step != 1:
        raise ValidationError(f"{name}: expected a step-1 range, got {r!r}")
    if r.start < 0 or r.stop > limit or r.start > r.stop:
        raise IndexOutOfBoundsError(
            f"{name}: range({r.start}, {r.stop}) exceeds bounds [0, {limit}]",
            index=(r.start, r.stop),
        )


def check_norm_order(p: Any) -> None:
    """
    Verify p is a valid norm order: finite p > 0, or math.inf for max-norm.
    
    Raises:
        ValidationError: If p <= 0, p is NaN or -inf
    """
    if math.isnan(p) or p <= 0:
        raise ValidationError(
            f"p: norm order must be > 0 or math.inf, got {p}"
        )


def check_finite_entries(values: list[float], name: str) -> None:
    """
    Verify a matrix contains no NaN or Inf values.
    
    Args:
        values: Entries in any order (typically to_raw_vector())
        name: Parameter name for error messages
        
    Raises:
        ValidationError: If any entry is non-finite
    """
    n_nan = sum(1 for v in values if math.isnan(v))
    n_inf = sum(1 for v in values if math.isinf(v))
    if n_nan or n_inf:
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )
