"""
Lazy row iteration over any MatrixContract.

    for row in row_iter(a):
        ...

Each step materialises one row with get_row_as_vec(). The iterator keeps a
reference to the source matrix, not a copy, so the source must not be
mutated while iterating: no ordering or consistency guarantee is made if it
is. To restart, call row_iter() again.
"""

from __future__ import annotations

from collections.abc import Iterator

from pydecomp.core.protocols import MatrixContract


class RowIterator(Iterator[list[float]]):
    """Finite iterator yielding the n_rows rows of a matrix in order."""

    def __init__(self, matrix: MatrixContract):
        self._matrix = matrix
        self._pos = 0
        self._max_pos = matrix.shape()[0]

    def __iter__(self) -> RowIterator:
        return self

    def __next__(self) -> list[float]:
        if self._pos >= self._max_pos:
            raise StopIteration
        row = self._matrix.get_row_as_vec(self._pos)
        self._pos += 1
        return row

    def __len__(self) -> int:
        """Rows not yet yielded."""
        return self._max_pos - self._pos


def row_iter(matrix: MatrixContract) -> RowIterator:
    """Iterate over the rows of matrix as lists of floats."""
    return RowIterator(matrix)
