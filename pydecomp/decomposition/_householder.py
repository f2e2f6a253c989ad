"""
Householder reflections on MatrixContract matrices.

A reflector H = I - beta v v^T maps a vector x onto alpha e1 with
|alpha| = ||x||. It is applied in place through get/set only, so every
engine works unchanged on any backend.

Sign convention: alpha = -sign(x0) ||x||, hence v0 = x0 + sign(x0) ||x||
never suffers cancellation. A vector whose entries below the pivot are
already zero yields no reflector at all (pass-through), which keeps
degenerate columns from being flipped or divided by zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from pydecomp.core.protocols import MatrixContract


@dataclass(frozen=True)
class Reflector:
    """
    H = I - beta v v^T acting on indices offset .. offset + len(v) - 1.

    Attributes:
        v: Reflection vector (v[0] is the pivot component)
        beta: 2 / (v^T v)
        alpha: Value the pivot entry takes after reflection
        offset: First row (left application) or column (right application)
    """
    v: tuple[float, ...]
    beta: float
    alpha: float
    offset: int

    def apply_left(self, a: MatrixContract, cols: range) -> None:
        """a[offset:, cols] <- H a[offset:, cols]"""
        v, beta, offset = self.v, self.beta, self.offset
        for j in cols:
            s = 0.0
            for i, vi in enumerate(v):
                s += vi * a.get(offset + i, j)
            if s == 0.0:
                continue
            s *= beta
            for i, vi in enumerate(v):
                a.sub_element_mut(offset + i, j, s * vi)

    def apply_right(self, a: MatrixContract, rows: range) -> None:
        """a[rows, offset:] <- a[rows, offset:] H"""
        v, beta, offset = self.v, self.beta, self.offset
        for i in rows:
            s = 0.0
            for k, vk in enumerate(v):
                s += a.get(i, offset + k) * vk
            if s == 0.0:
                continue
            s *= beta
            for k, vk in enumerate(v):
                a.sub_element_mut(i, offset + k, s * vk)


def make_reflector(x: list[float], offset: int) -> Reflector | None:
    """
    Build the reflector annihilating x[1:].

    The squares are summed after dividing by max|x|, so neither huge nor
    tiny columns overflow or underflow; v is stored in that scaled form
    (H does not depend on the length of v).

    Args:
        x: Vector to reflect (copied)
        offset: Index of x[0] in the matrix being reduced

    Returns:
        Reflector, or None if x[1:] is already zero
    """
    if all(t == 0.0 for t in x[1:]):
        return None
    top = max(abs(t) for t in x)
    v = [t / top for t in x]
    tail = math.fsum(t * t for t in v[1:])
    scaled_norm = math.sqrt(v[0] * v[0] + tail)
    v[0] += math.copysign(scaled_norm, x[0])
    vtv = v[0] * v[0] + tail
    return Reflector(
        v=tuple(v),
        beta=2.0 / vtv,
        alpha=-math.copysign(top * scaled_norm, x[0]),
        offset=offset,
    )


def reduce_column(
    a: MatrixContract,
    col: int,
    start: int,
    cols: range
) -> Reflector | None:
    """
    Zero a[start + 1:, col] with a reflector applied to rows start.. of cols.

    The annihilated entries are written as exact zeros and a[start, col]
    as alpha, rather than left at round-off level.

    Returns:
        The reflector used, or None for a pass-through column
    """
    n_rows = a.shape()[0]
    x = [a.get(i, col) for i in range(start, n_rows)]
    h = make_reflector(x, start)
    if h is None:
        return None
    h.apply_left(a, cols)
    a.set(start, col, h.alpha)
    for i in range(start + 1, n_rows):
        a.set(i, col, 0.0)
    return h


def reduce_row(
    a: MatrixContract,
    row: int,
    start: int,
    rows: range
) -> Reflector | None:
    """
    Zero a[row, start + 1:] with a reflector applied from the right to rows.

    Returns:
        The reflector used, or None for a pass-through row
    """
    n_cols = a.shape()[1]
    x = [a.get(row, j) for j in range(start, n_cols)]
    h = make_reflector(x, start)
    if h is None:
        return None
    h.apply_right(a, rows)
    a.set(row, start, h.alpha)
    for j in range(start + 1, n_cols):
        a.set(row, j, 0.0)
    return h
