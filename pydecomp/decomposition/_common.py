"""
Shared helpers for the decomposition engines.

Block copies and column permutations, all through MatrixContract so the
engines never need to know the backend.
"""

from __future__ import annotations

from typing import TypeVar

from pydecomp.core.exceptions import DimensionError, ValidationError
from pydecomp.core.protocols import MatrixContract
from pydecomp.core.validation import check_finite_entries

M = TypeVar('M', bound=MatrixContract)


def check_decomposable(matrix: MatrixContract, name: str) -> None:
    """
    Validate a matrix handed to a decomposition entry point.

    Raises:
        ValidationError: If matrix does not satisfy MatrixContract
            or has NaN/Inf entries
        DimensionError: If matrix has no rows or no columns
    """
    if not isinstance(matrix, MatrixContract):
        raise ValidationError(
            f"{name}: expected a MatrixContract implementation, "
            f"got {type(matrix).__name__}"
        )
    n_rows, n_cols = matrix.shape()
    if n_rows == 0 or n_cols == 0:
        raise DimensionError(f"{name}: matrix is empty, shape ({n_rows}, {n_cols})")
    check_finite_entries(matrix.to_raw_vector(), name)


def set_block(a: MatrixContract, row0: int, col0: int, block: MatrixContract) -> None:
    """a[row0:row0 + p, col0:col0 + q] <- block"""
    p, q = block.shape()
    for i in range(p):
        for j in range(q):
            a.set(row0 + i, col0 + j, block.get(i, j))


def permute_columns(a: M, order: list[int]) -> M:
    """New matrix whose column k is a's column order[k]."""
    n_rows, n_cols = a.shape()
    if sorted(order) != list(range(n_cols)):
        raise ValidationError(f"order: not a permutation of range({n_cols})")
    out = type(a).zeros(n_rows, n_cols)
    for k, src in enumerate(order):
        for i in range(n_rows):
            out.set(i, k, a.get(i, src))
    return out


def negate_column(a: MatrixContract, col: int) -> None:
    for i in range(a.shape()[0]):
        a.set(i, col, -a.get(i, col))


def back_substitute(r: M, b: M) -> M:
    """
    Solve R X = B for upper-triangular, non-singular R (n x n), B (n x p).

    Callers check the rank first; a zero pivot here is a programming error.
    """
    n = r.shape()[0]
    p = b.shape()[1]
    x = type(b).zeros(n, p)
    for col in range(p):
        for i in range(n - 1, -1, -1):
            s = b.get(i, col)
            for k in range(i + 1, n):
                s -= r.get(i, k) * x.get(k, col)
            x.set(i, col, s / r.get(i, i))
    return x
