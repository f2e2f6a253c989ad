"""
NumpyMatrix: MatrixContract adapter over numpy.ndarray.

Wraps a 2-D float64 array. Bulk operations delegate to NumPy; the policies
of the contract that NumPy does not share (no negative indexing, explicit
DivisionByZeroError instead of IEEE inf/nan, per-row argmax) are enforced
here before the array is touched.

The row-vector type of this backend is a 1-D ``numpy.ndarray``.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pydecomp.core.exceptions import DimensionError, DivisionByZeroError
from pydecomp.core.validation import (
    check_col,
    check_conformable,
    check_dims,
    check_index,
    check_norm_order,
    check_range,
    check_row,
    check_same_shape,
)
from pydecomp.matrix.base import BaseMatrix


class NumpyMatrix(BaseMatrix):
    """
    Dense matrix backed by a 2-D float64 ndarray.

    Construction:
        NumpyMatrix.from_array(np.array([[1.0, 2.0], [3.0, 4.0]]))
        NumpyMatrix.eye(3)

    The wrapped array is private; from_array() and to_array() copy so that
    no caller can alias the storage.
    """

    def __init__(self, data: NDArray[np.float64]):
        # Internal constructor: takes ownership of data without copying
        self._data = data

    # === Construction ===

    @classmethod
    def from_array(cls, array: ArrayLike) -> NumpyMatrix:
        """
        Build from any 2-D array-like (copied, converted to float64).

        Raises:
            DimensionError: If the input is not 2-D
        """
        data = np.array(array, dtype=np.float64)
        if data.ndim != 2:
            raise DimensionError(
                f"array: expected 2D array, got {data.ndim}D with shape {data.shape}"
            )
        return cls(data)

    @classmethod
    def from_row_vector(cls, vec: ArrayLike) -> NumpyMatrix:
        data = np.array(vec, dtype=np.float64)
        if data.ndim != 1:
            raise DimensionError(
                f"vec: expected 1D array, got {data.ndim}D with shape {data.shape}"
            )
        return cls(data.reshape(1, -1))

    @classmethod
    def zeros(cls, n_rows: int, n_cols: int) -> NumpyMatrix:
        check_dims(n_rows, n_cols)
        return cls(np.zeros((n_rows, n_cols)))

    @classmethod
    def ones(cls, n_rows: int, n_cols: int) -> NumpyMatrix:
        check_dims(n_rows, n_cols)
        return cls(np.ones((n_rows, n_cols)))

    @classmethod
    def fill(cls, n_rows: int, n_cols: int, value: float) -> NumpyMatrix:
        check_dims(n_rows, n_cols)
        return cls(np.full((n_rows, n_cols), float(value)))

    @classmethod
    def eye(cls, size: int) -> NumpyMatrix:
        check_dims(size, size)
        return cls(np.eye(size))

    @classmethod
    def rand(
        cls,
        n_rows: int,
        n_cols: int,
        rng: np.random.Generator | None = None
    ) -> NumpyMatrix:
        check_dims(n_rows, n_cols)
        if rng is None:
            rng = np.random.default_rng()
        return cls(rng.random((n_rows, n_cols)))

    # === Access ===

    def to_array(self) -> NDArray[np.float64]:
        """Copy of the underlying 2-D array."""
        return self._data.copy()

    def to_row_vector(self) -> NDArray[np.float64]:
        if self._data.shape[0] != 1:
            raise DimensionError(
                f"to_row_vector: requires exactly one row, got shape {self.shape()}"
            )
        return self._data[0].copy()

    def get(self, row: int, col: int) -> float:
        check_index(row, col, self._data.shape)
        return float(self._data[row, col])

    def set(self, row: int, col: int, x: float) -> None:
        check_index(row, col, self._data.shape)
        self._data[row, col] = x

    def get_row_as_vec(self, row: int) -> list[float]:
        check_row(row, self._data.shape)
        return self._data[row].tolist()

    def get_col_as_vec(self, col: int) -> list[float]:
        check_col(col, self._data.shape)
        return self._data[:, col].tolist()

    def to_raw_vector(self) -> list[float]:
        return self._data.ravel().tolist()

    def shape(self) -> tuple[int, int]:
        n_rows, n_cols = self._data.shape
        return (n_rows, n_cols)

    def copy(self) -> NumpyMatrix:
        return NumpyMatrix(self._data.copy())

    def copy_from(self, other: NumpyMatrix) -> NumpyMatrix:
        check_same_shape(self.shape(), other.shape(), 'copy_from')
        self._data[...] = _as_array(other)
        return self

    # === Structure ===

    def v_stack(self, other: NumpyMatrix) -> NumpyMatrix:
        if self.shape()[1] != other.shape()[1]:
            raise DimensionError(
                f"v_stack: column counts differ, {self.shape()[1]} vs {other.shape()[1]}"
            )
        return NumpyMatrix(np.vstack([self._data, _as_array(other)]))

    def h_stack(self, other: NumpyMatrix) -> NumpyMatrix:
        if self.shape()[0] != other.shape()[0]:
            raise DimensionError(
                f"h_stack: row counts differ, {self.shape()[0]} vs {other.shape()[0]}"
            )
        return NumpyMatrix(np.hstack([self._data, _as_array(other)]))

    def slice(self, rows: range, cols: range) -> NumpyMatrix:
        check_range(rows, self.shape()[0], 'rows')
        check_range(cols, self.shape()[1], 'cols')
        return NumpyMatrix(
            self._data[rows.start:rows.stop, cols.start:cols.stop].copy()
        )

    def transpose(self) -> NumpyMatrix:
        return NumpyMatrix(self._data.T.copy())

    def reshape(self, n_rows: int, n_cols: int) -> NumpyMatrix:
        check_dims(n_rows, n_cols)
        if n_rows * n_cols != self._data.size:
            raise DimensionError(
                f"reshape: cannot reshape {self.shape()} into ({n_rows}, {n_cols})"
            )
        return NumpyMatrix(self._data.reshape(n_rows, n_cols).copy())

    # === Products ===

    def dot(self, other: NumpyMatrix) -> NumpyMatrix:
        check_conformable(self.shape(), other.shape())
        return NumpyMatrix(self._data @ _as_array(other))

    def vector_dot(self, other: NumpyMatrix) -> float:
        for name, shape in (('self', self.shape()), ('other', other.shape())):
            if 1 not in shape:
                raise DimensionError(
                    f"vector_dot: {name} must have one row or one column, got {shape}"
                )
        a = self._data.ravel()
        b = _as_array(other).ravel()
        if a.size != b.size:
            raise DimensionError(
                f"vector_dot: lengths differ, {a.size} vs {b.size}"
            )
        return float(a @ b)

    # === In-place arithmetic ===

    def add_mut(self, other: NumpyMatrix) -> NumpyMatrix:
        check_same_shape(self.shape(), other.shape(), 'add_mut')
        self._data += _as_array(other)
        return self

    def sub_mut(self, other: NumpyMatrix) -> NumpyMatrix:
        check_same_shape(self.shape(), other.shape(), 'sub_mut')
        self._data -= _as_array(other)
        return self

    def mul_mut(self, other: NumpyMatrix) -> NumpyMatrix:
        check_same_shape(self.shape(), other.shape(), 'mul_mut')
        self._data *= _as_array(other)
        return self

    def div_mut(self, other: NumpyMatrix) -> NumpyMatrix:
        check_same_shape(self.shape(), other.shape(), 'div_mut')
        divisors = _as_array(other)
        zero = np.argwhere(divisors == 0.0)
        if zero.size:
            index = (int(zero[0, 0]), int(zero[0, 1]))
            raise DivisionByZeroError(
                f"div_mut: zero divisor at {index}", index=index
            )
        self._data /= divisors
        return self

    def add_scalar_mut(self, scalar: float) -> NumpyMatrix:
        self._data += scalar
        return self

    def sub_scalar_mut(self, scalar: float) -> NumpyMatrix:
        self._data -= scalar
        return self

    def mul_scalar_mut(self, scalar: float) -> NumpyMatrix:
        self._data *= scalar
        return self

    def div_scalar_mut(self, scalar: float) -> NumpyMatrix:
        if scalar == 0.0:
            raise DivisionByZeroError("div_scalar_mut: scalar divisor is zero")
        self._data /= scalar
        return self

    def add_element_mut(self, row: int, col: int, x: float) -> None:
        check_index(row, col, self._data.shape)
        self._data[row, col] += x

    def sub_element_mut(self, row: int, col: int, x: float) -> None:
        check_index(row, col, self._data.shape)
        self._data[row, col] -= x

    def mul_element_mut(self, row: int, col: int, x: float) -> None:
        check_index(row, col, self._data.shape)
        self._data[row, col] *= x

    def div_element_mut(self, row: int, col: int, x: float) -> None:
        check_index(row, col, self._data.shape)
        if x == 0.0:
            raise DivisionByZeroError(
                f"div_element_mut: zero divisor at {(row, col)}", index=(row, col)
            )
        self._data[row, col] /= x

    def negative_mut(self) -> NumpyMatrix:
        np.negative(self._data, out=self._data)
        return self

    def abs_mut(self) -> NumpyMatrix:
        np.abs(self._data, out=self._data)
        return self

    def pow_mut(self, p: float) -> NumpyMatrix:
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            np.power(self._data, p, out=self._data)
        return self

    def softmax_mut(self) -> NumpyMatrix:
        # Whole-matrix softmax; subtracting the max keeps exp() finite
        if self._data.size == 0:
            return self
        self._data -= self._data.max()
        np.exp(self._data, out=self._data)
        self._data /= self._data.sum()
        return self

    # === Reductions ===

    def norm2(self) -> float:
        return self.norm(2.0)

    def norm(self, p: float) -> float:
        check_norm_order(p)
        if self._data.size == 0:
            return 0.0
        magnitudes = np.abs(self._data)
        top = float(magnitudes.max())
        if math.isinf(p) or top == 0.0 or math.isinf(top):
            return top
        # Ratios are <= 1, so only the final rescale can overflow
        with np.errstate(over='ignore', under='ignore'):
            total = np.sum((magnitudes / top) ** p)
            return float(top * np.power(total, 1.0 / p))

    def sum(self) -> float:
        return float(self._data.sum())

    def column_mean(self) -> list[float]:
        if self._data.shape[0] == 0:
            raise DimensionError("column_mean: matrix has no rows")
        return self._data.mean(axis=0).tolist()

    def max_diff(self, other: NumpyMatrix) -> float:
        check_same_shape(self.shape(), other.shape(), 'max_diff')
        if self._data.size == 0:
            return 0.0
        return float(np.max(np.abs(self._data - _as_array(other))))

    def approximate_eq(self, other: NumpyMatrix, error: float) -> bool:
        if self.shape() != other.shape():
            return False
        return bool(np.all(np.abs(self._data - _as_array(other)) <= error))

    def argmax(self) -> list[int]:
        if self._data.shape[1] == 0:
            raise DimensionError("argmax: matrix has no columns")
        # np.argmax returns the first occurrence of the maximum
        return np.argmax(self._data, axis=1).tolist()

    def unique(self) -> list[float]:
        return np.unique(self._data).tolist()

    # === Interop ===

    def __repr__(self) -> str:
        return f"NumpyMatrix({self._data.tolist()!r})"

    def __array__(self, dtype: Any = None, copy: Any = None) -> NDArray:
        return np.array(self._data, dtype=dtype or np.float64)


def _as_array(m: Any) -> NDArray[np.float64]:
    """View of another contract matrix as an ndarray (no copy for NumpyMatrix)."""
    if isinstance(m, NumpyMatrix):
        return m._data
    n_rows, n_cols = m.shape()
    return np.array(m.to_raw_vector(), dtype=np.float64).reshape(n_rows, n_cols)
