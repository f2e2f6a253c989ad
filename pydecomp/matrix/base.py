"""
Derived matrix operations.

BaseMatrix is a mixin for backends: a backend implements the primitives of
MatrixContract (construction, get/set, the *_mut family, reductions) and
inherits everything below for free. Every method here is expressed purely
in terms of those primitives, e.g. ``add = copy + add_mut``.

Derived operations never mutate the receiver.
"""

from __future__ import annotations

from numbers import Real
from typing import TypeVar

M = TypeVar('M', bound='BaseMatrix')


class BaseMatrix:
    """Mixin supplying the non-mutating operations of MatrixContract."""

    # === Elementwise ===

    def add(self: M, other: M) -> M:
        return self.copy().add_mut(other)

    def sub(self: M, other: M) -> M:
        return self.copy().sub_mut(other)

    def mul(self: M, other: M) -> M:
        return self.copy().mul_mut(other)

    def div(self: M, other: M) -> M:
        return self.copy().div_mut(other)

    # === Scalar ===

    def add_scalar(self: M, scalar: float) -> M:
        return self.copy().add_scalar_mut(scalar)

    def sub_scalar(self: M, scalar: float) -> M:
        return self.copy().sub_scalar_mut(scalar)

    def mul_scalar(self: M, scalar: float) -> M:
        return self.copy().mul_scalar_mut(scalar)

    def div_scalar(self: M, scalar: float) -> M:
        return self.copy().div_scalar_mut(scalar)

    # === Unary ===

    def negative(self: M) -> M:
        return self.copy().negative_mut()

    def abs(self: M) -> M:
        return self.copy().abs_mut()

    def pow(self: M, p: float) -> M:
        return self.copy().pow_mut(p)

    def softmax(self: M) -> M:
        return self.copy().softmax_mut()

    # === Shape helpers ===

    @property
    def n_rows(self) -> int:
        return self.shape()[0]

    @property
    def n_cols(self) -> int:
        return self.shape()[1]

    def is_square(self) -> bool:
        n_rows, n_cols = self.shape()
        return n_rows == n_cols

    def is_symmetric(self, error: float = 0.0) -> bool:
        """True if square and |a[i, j] - a[j, i]| <= error everywhere."""
        n_rows, n_cols = self.shape()
        if n_rows != n_cols:
            return False
        for i in range(n_rows):
            for j in range(i + 1, n_cols):
                if abs(self.get(i, j) - self.get(j, i)) > error:
                    return False
        return True

    # === Operators ===
    # a @ b is the matrix product; * and / are elementwise for matrices
    # and uniform for scalars.

    def __matmul__(self: M, other: M) -> M:
        return self.dot(other)

    def __add__(self: M, other):
        if isinstance(other, Real):
            return self.add_scalar(float(other))
        return self.add(other)

    def __sub__(self: M, other):
        if isinstance(other, Real):
            return self.sub_scalar(float(other))
        return self.sub(other)

    def __mul__(self: M, other):
        if isinstance(other, Real):
            return self.mul_scalar(float(other))
        return self.mul(other)

    def __rmul__(self: M, other):
        if isinstance(other, Real):
            return self.mul_scalar(float(other))
        return NotImplemented

    def __truediv__(self: M, other):
        if isinstance(other, Real):
            return self.div_scalar(float(other))
        return self.div(other)

    def __neg__(self: M) -> M:
        return self.negative()

    def __eq__(self, other) -> bool:
        # Exact comparison; use approximate_eq for numerical results
        if not isinstance(other, BaseMatrix):
            return NotImplemented
        return (
            self.shape() == other.shape()
            and self.to_raw_vector() == other.to_raw_vector()
        )

    __hash__ = None  # mutable
