"""
DenseMatrix: pure-Python reference backend.

Entries live in a single row-major ``list[float]``. Nothing here is fast;
the point is a backend whose every operation can be read off directly,
which the test suite uses to check that the decomposition engines only rely
on the MatrixContract primitives.

The row-vector type of this backend is ``list[float]``.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import numpy as np

from pydecomp.core.exceptions import (
    DimensionError,
    DivisionByZeroError,
)
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


class DenseMatrix(BaseMatrix):
    """
    Row-major dense matrix of float64 entries.

    Construction:
        DenseMatrix.from_rows([[1, 2], [3, 4]])
        DenseMatrix.zeros(3, 2)
        DenseMatrix.from_row_vector([1.0, 2.0, 3.0])
    """

    def __init__(self, n_rows: int, n_cols: int, values: Sequence[float]):
        """
        Args:
            n_rows, n_cols: Shape
            values: n_rows * n_cols entries in row-major order (copied)
        """
        check_dims(n_rows, n_cols)
        values = [float(v) for v in values]
        if len(values) != n_rows * n_cols:
            raise DimensionError(
                f"values: expected {n_rows * n_cols} entries for shape "
                f"({n_rows}, {n_cols}), got {len(values)}"
            )
        self._n_rows = n_rows
        self._n_cols = n_cols
        self._values = values

    # === Construction ===

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]]) -> DenseMatrix:
        """
        Build from a nested sequence (list of lists, 2-D ndarray, ...).

        Raises:
            DimensionError: If the rows are ragged
        """
        rows = [list(r) for r in rows]
        n_rows = len(rows)
        n_cols = len(rows[0]) if n_rows > 0 else 0
        for i, r in enumerate(rows):
            if len(r) != n_cols:
                raise DimensionError(
                    f"rows: row {i} has {len(r)} entries, expected {n_cols}"
                )
        return cls(n_rows, n_cols, [v for r in rows for v in r])

    @classmethod
    def from_row_vector(cls, vec: Sequence[float]) -> DenseMatrix:
        vec = list(vec)
        return cls(1, len(vec), vec)

    @classmethod
    def zeros(cls, n_rows: int, n_cols: int) -> DenseMatrix:
        return cls.fill(n_rows, n_cols, 0.0)

    @classmethod
    def ones(cls, n_rows: int, n_cols: int) -> DenseMatrix:
        return cls.fill(n_rows, n_cols, 1.0)

    @classmethod
    def fill(cls, n_rows: int, n_cols: int, value: float) -> DenseMatrix:
        check_dims(n_rows, n_cols)
        return cls(n_rows, n_cols, [float(value)] * (n_rows * n_cols))

    @classmethod
    def eye(cls, size: int) -> DenseMatrix:
        m = cls.zeros(size, size)
        for i in range(size):
            m._values[i * size + i] = 1.0
        return m

    @classmethod
    def rand(
        cls,
        n_rows: int,
        n_cols: int,
        rng: np.random.Generator | None = None
    ) -> DenseMatrix:
        check_dims(n_rows, n_cols)
        if rng is None:
            rng = np.random.default_rng()
        return cls(n_rows, n_cols, rng.random(n_rows * n_cols).tolist())

    # === Access ===

    def to_row_vector(self) -> list[float]:
        if self._n_rows != 1:
            raise DimensionError(
                f"to_row_vector: requires exactly one row, got shape {self.shape()}"
            )
        return list(self._values)

    def get(self, row: int, col: int) -> float:
        check_index(row, col, (self._n_rows, self._n_cols))
        return self._values[row * self._n_cols + col]

    def set(self, row: int, col: int, x: float) -> None:
        check_index(row, col, (self._n_rows, self._n_cols))
        self._values[row * self._n_cols + col] = float(x)

    def get_row_as_vec(self, row: int) -> list[float]:
        check_row(row, self.shape())
        start = row * self._n_cols
        return self._values[start:start + self._n_cols]

    def get_col_as_vec(self, col: int) -> list[float]:
        check_col(col, self.shape())
        return self._values[col::self._n_cols] if self._n_cols else []

    def to_raw_vector(self) -> list[float]:
        return list(self._values)

    def shape(self) -> tuple[int, int]:
        return (self._n_rows, self._n_cols)

    def copy(self) -> DenseMatrix:
        return DenseMatrix(self._n_rows, self._n_cols, self._values)

    def copy_from(self, other: DenseMatrix) -> DenseMatrix:
        check_same_shape(self.shape(), other.shape(), 'copy_from')
        self._values = other.to_raw_vector()
        return self

    # === Structure ===

    def v_stack(self, other: DenseMatrix) -> DenseMatrix:
        if self._n_cols != other.shape()[1]:
            raise DimensionError(
                f"v_stack: column counts differ, {self._n_cols} vs {other.shape()[1]}"
            )
        return DenseMatrix(
            self._n_rows + other.shape()[0],
            self._n_cols,
            self._values + other.to_raw_vector(),
        )

    def h_stack(self, other: DenseMatrix) -> DenseMatrix:
        if self._n_rows != other.shape()[0]:
            raise DimensionError(
                f"h_stack: row counts differ, {self._n_rows} vs {other.shape()[0]}"
            )
        values: list[float] = []
        for i in range(self._n_rows):
            values.extend(self.get_row_as_vec(i))
            values.extend(other.get_row_as_vec(i))
        return DenseMatrix(self._n_rows, self._n_cols + other.shape()[1], values)

    def slice(self, rows: range, cols: range) -> DenseMatrix:
        check_range(rows, self._n_rows, 'rows')
        check_range(cols, self._n_cols, 'cols')
        values = [
            self._values[i * self._n_cols + j]
            for i in rows
            for j in cols
        ]
        return DenseMatrix(len(rows), len(cols), values)

    def transpose(self) -> DenseMatrix:
        values = [
            self._values[i * self._n_cols + j]
            for j in range(self._n_cols)
            for i in range(self._n_rows)
        ]
        return DenseMatrix(self._n_cols, self._n_rows, values)

    def reshape(self, n_rows: int, n_cols: int) -> DenseMatrix:
        check_dims(n_rows, n_cols)
        if n_rows * n_cols != len(self._values):
            raise DimensionError(
                f"reshape: cannot reshape {self.shape()} into ({n_rows}, {n_cols})"
            )
        return DenseMatrix(n_rows, n_cols, self._values)

    # === Products ===

    def dot(self, other: DenseMatrix) -> DenseMatrix:
        check_conformable(self.shape(), other.shape())
        n, k = self.shape()
        p = other.shape()[1]
        b = other.to_raw_vector()
        values = [0.0] * (n * p)
        for i in range(n):
            row = self._values[i * k:(i + 1) * k]
            out = i * p
            for t, a_it in enumerate(row):
                base = t * p
                for j in range(p):
                    values[out + j] += a_it * b[base + j]
        return DenseMatrix(n, p, values)

    def vector_dot(self, other: DenseMatrix) -> float:
        for name, shape in (('self', self.shape()), ('other', other.shape())):
            if 1 not in shape:
                raise DimensionError(
                    f"vector_dot: {name} must have one row or one column, got {shape}"
                )
        a = self._values
        b = other.to_raw_vector()
        if len(a) != len(b):
            raise DimensionError(
                f"vector_dot: lengths differ, {len(a)} vs {len(b)}"
            )
        return math.fsum(x * y for x, y in zip(a, b))

    # === In-place arithmetic ===

    def add_mut(self, other: DenseMatrix) -> DenseMatrix:
        check_same_shape(self.shape(), other.shape(), 'add_mut')
        self._values = [x + y for x, y in zip(self._values, other.to_raw_vector())]
        return self

    def sub_mut(self, other: DenseMatrix) -> DenseMatrix:
        check_same_shape(self.shape(), other.shape(), 'sub_mut')
        self._values = [x - y for x, y in zip(self._values, other.to_raw_vector())]
        return self

    def mul_mut(self, other: DenseMatrix) -> DenseMatrix:
        check_same_shape(self.shape(), other.shape(), 'mul_mut')
        self._values = [x * y for x, y in zip(self._values, other.to_raw_vector())]
        return self

    def div_mut(self, other: DenseMatrix) -> DenseMatrix:
        check_same_shape(self.shape(), other.shape(), 'div_mut')
        divisors = other.to_raw_vector()
        for k, d in enumerate(divisors):
            if d == 0.0:
                index = divmod(k, self._n_cols)
                raise DivisionByZeroError(
                    f"div_mut: zero divisor at {index}", index=index
                )
        self._values = [x / y for x, y in zip(self._values, divisors)]
        return self

    def add_scalar_mut(self, scalar: float) -> DenseMatrix:
        self._values = [x + scalar for x in self._values]
        return self

    def sub_scalar_mut(self, scalar: float) -> DenseMatrix:
        self._values = [x - scalar for x in self._values]
        return self

    def mul_scalar_mut(self, scalar: float) -> DenseMatrix:
        self._values = [x * scalar for x in self._values]
        return self

    def div_scalar_mut(self, scalar: float) -> DenseMatrix:
        if scalar == 0.0:
            raise DivisionByZeroError("div_scalar_mut: scalar divisor is zero")
        self._values = [x / scalar for x in self._values]
        return self

    def add_element_mut(self, row: int, col: int, x: float) -> None:
        self.set(row, col, self.get(row, col) + x)

    def sub_element_mut(self, row: int, col: int, x: float) -> None:
        self.set(row, col, self.get(row, col) - x)

    def mul_element_mut(self, row: int, col: int, x: float) -> None:
        self.set(row, col, self.get(row, col) * x)

    def div_element_mut(self, row: int, col: int, x: float) -> None:
        check_index(row, col, self.shape())
        if x == 0.0:
            raise DivisionByZeroError(
                f"div_element_mut: zero divisor at {(row, col)}", index=(row, col)
            )
        self.set(row, col, self.get(row, col) / x)

    def negative_mut(self) -> DenseMatrix:
        self._values = [-x for x in self._values]
        return self

    def abs_mut(self) -> DenseMatrix:
        self._values = [abs(x) for x in self._values]
        return self

    def pow_mut(self, p: float) -> DenseMatrix:
        self._values = [_ieee_pow(x, p) for x in self._values]
        return self

    def softmax_mut(self) -> DenseMatrix:
        # Whole-matrix softmax; subtracting the max keeps exp() finite
        if not self._values:
            return self
        top = max(self._values)
        exps = [math.exp(x - top) for x in self._values]
        total = math.fsum(exps)
        self._values = [e / total for e in exps]
        return self

    # === Reductions ===

    def norm2(self) -> float:
        return self.norm(2.0)

    def norm(self, p: float) -> float:
        check_norm_order(p)
        if not self._values:
            return 0.0
        top = max(abs(x) for x in self._values)
        if math.isinf(p) or top == 0.0 or math.isinf(top):
            return top
        # Ratios are <= 1, so only the final rescale can overflow
        total = math.fsum((abs(x) / top) ** p for x in self._values)
        return top * _ieee_pow(total, 1.0 / p)

    def sum(self) -> float:
        return math.fsum(self._values)

    def column_mean(self) -> list[float]:
        if self._n_rows == 0:
            raise DimensionError("column_mean: matrix has no rows")
        return [
            math.fsum(self.get_col_as_vec(j)) / self._n_rows
            for j in range(self._n_cols)
        ]

    def max_diff(self, other: DenseMatrix) -> float:
        check_same_shape(self.shape(), other.shape(), 'max_diff')
        return max(
            (abs(x - y) for x, y in zip(self._values, other.to_raw_vector())),
            default=0.0,
        )

    def approximate_eq(self, other: DenseMatrix, error: float) -> bool:
        if self.shape() != other.shape():
            return False
        return all(
            abs(x - y) <= error
            for x, y in zip(self._values, other.to_raw_vector())
        )

    def argmax(self) -> list[int]:
        if self._n_cols == 0:
            raise DimensionError("argmax: matrix has no columns")
        result = []
        for i in range(self._n_rows):
            row = self.get_row_as_vec(i)
            # max() keeps the first of equal keys
            result.append(max(range(self._n_cols), key=row.__getitem__))
        return result

    def unique(self) -> list[float]:
        return sorted(set(self._values))

    # === Interop ===

    def to_list(self) -> list[list[float]]:
        """Nested list of rows."""
        return [self.get_row_as_vec(i) for i in range(self._n_rows)]

    def __repr__(self) -> str:
        return f"DenseMatrix({self.to_list()!r})"

    def __array__(self, dtype: Any = None, copy: Any = None) -> np.ndarray:
        return np.array(self.to_list(), dtype=dtype or np.float64).reshape(self.shape())


def _ieee_pow(x: float, p: float) -> float:
    # Match numpy: 0 ** -p -> inf, negative ** fractional -> nan,
    # overflow -> inf; an odd integer power keeps the sign of x
    try:
        r = x ** p
    except (ZeroDivisionError, OverflowError):
        odd = float(p).is_integer() and int(p) % 2 == 1
        if odd and math.copysign(1.0, x) < 0.0:
            return -math.inf
        if x < 0.0 and not float(p).is_integer():
            return math.nan
        return math.inf
    if isinstance(r, complex):
        return math.nan
    return r
