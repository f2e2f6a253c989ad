"""
Plane rotations and 2x2 block standardisation.

Conventions (G = [[c, -s], [s, c]] acting on the index pair (i, j)):
    rotate_columns(a, i, j, c, s):  a <- a G   (columns i and j)
    rotate_rows(a, i, j, c, s):     a <- G^T a (rows i and j)
so applying both to the same pair is the similarity G^T a G.
"""

from __future__ import annotations

import math

from pydecomp.core.protocols import MatrixContract


def givens(y: float, z: float) -> tuple[float, float, float]:
    """
    Rotation taking (y, z) to (r, 0).

    Returns:
        (c, s, r) with c = y / r, s = z / r, r = hypot(y, z);
        the identity (1, 0, 0) when y = z = 0
    """
    r = math.hypot(y, z)
    if r == 0.0:
        return 1.0, 0.0, 0.0
    return y / r, z / r, r


def rotate_columns(
    a: MatrixContract,
    i: int,
    j: int,
    c: float,
    s: float,
    rows: range | None = None
) -> None:
    """col_i, col_j <- c col_i + s col_j, -s col_i + c col_j"""
    if rows is None:
        rows = range(a.shape()[0])
    for k in rows:
        x = a.get(k, i)
        y = a.get(k, j)
        a.set(k, i, c * x + s * y)
        a.set(k, j, -s * x + c * y)


def rotate_rows(
    a: MatrixContract,
    i: int,
    j: int,
    c: float,
    s: float,
    cols: range | None = None
) -> None:
    """row_i, row_j <- c row_i + s row_j, -s row_i + c row_j"""
    if cols is None:
        cols = range(a.shape()[1])
    for k in cols:
        x = a.get(i, k)
        y = a.get(j, k)
        a.set(i, k, c * x + s * y)
        a.set(j, k, -s * x + c * y)


def block_rotation(
    a: float,
    b: float,
    c: float,
    d: float
) -> tuple[float, float, bool]:
    """
    Rotation standardising the real 2x2 block B = [[a, b], [c, d]], c != 0.

    Real eigenvalues: G's first column is an eigenvector of B, so G^T B G
    is upper triangular. Complex pair: G equalises the diagonal, giving
    G^T B G = [[alpha, beta], [gamma, alpha]] with beta * gamma < 0 and
    eigenvalues alpha +/- i sqrt(-beta * gamma).

    Returns:
        (cs, sn, is_complex)
    """
    half = 0.5 * (a - d)
    disc = half * half + b * c
    if disc >= 0.0:
        # Larger-magnitude root first keeps (lam - d) away from cancellation
        lam = 0.5 * (a + d) + math.copysign(math.sqrt(disc), half)
        x, y = lam - d, c
        norm = math.hypot(x, y)
        return x / norm, y / norm, False
    theta = 0.5 * math.atan2(-(a - d), b + c)
    return math.cos(theta), math.sin(theta), True
