"""
Singular value decomposition engine (Golub-Kahan).

Algorithm:
    0. Divide A by a power of two near max|a| (undone on the singular
       values), so the squares in the shift computation stay in range.
    1. Householder bidiagonalization B = U^T A V, alternating a column
       reflector (zeroing below the diagonal) and a row reflector
       (zeroing right of the super-diagonal).
    2. Implicit-shift QR sweeps on the unreduced block of B, chasing the
       bulge down with Givens rotations, until every super-diagonal entry
       is negligible. A negligible diagonal entry is handled first by
       rotating its super-diagonal neighbour away, which splits the block.
    3. Signs are folded into V so the singular values are non-negative,
       then everything is sorted descending.

Wide matrices (m < n) are decomposed through their transpose, swapping
U and V at the end.

References:
    Golub, G. H. & Kahan, W. (1965). Calculating the singular values and
    pseudo-inverse of a matrix. SIAM J. Numer. Anal., 2(2), 205-224.
    Golub, G. H. & Van Loan, C. F. (2013). Matrix Computations, 4th ed.
    Section 8.6.
"""

from __future__ import annotations

import math
from typing import TypeVar

from pydecomp.core.compute.precision import (
    is_negligible,
    numerical_rank,
    power_of_two_scale,
)
from pydecomp.core.compute.timing import Timer
from pydecomp.core.compute.tolerances import (
    DEFAULT_CRITERIA,
    EXCEPTIONAL_SHIFT_PERIOD,
    ConvergenceCriteria,
)
from pydecomp.core.exceptions import ConvergenceError
from pydecomp.core.protocols import MatrixContract
from pydecomp.core.result import Result
from pydecomp.decomposition._common import negate_column, permute_columns
from pydecomp.decomposition._householder import reduce_column, reduce_row
from pydecomp.decomposition._rotations import givens, rotate_columns
from pydecomp.decomposition.solution import SVDParams

M = TypeVar('M', bound=MatrixContract)


class SVDEngine:
    """
    Thin SVD A = U S V^T of an arbitrary m x n matrix.

    Implements the Engine protocol for MatrixContract -> SVDParams.
    """

    def __init__(self, criteria: ConvergenceCriteria = DEFAULT_CRITERIA):
        self._criteria = criteria

    @property
    def name(self) -> str:
        return 'golub_kahan_svd'

    def solve(self, matrix: M) -> Result[SVDParams[M]]:
        """
        Decompose matrix.

        Returns:
            Result containing SVDParams (U m x k, s, V n x k, k = min(m, n))

        Raises:
            ConvergenceError: If a singular value does not separate within
                max_iter sweeps (reason='max_iterations') or the active
                block becomes NaN or Inf (reason='non_finite')
        """
        timer = Timer()
        timer.start()

        m, n = matrix.shape()
        transposed = m < n
        # Work on A / scale; singular values are multiplied back below
        scale = power_of_two_scale(matrix.norm(math.inf))
        a = matrix.transpose() if transposed else matrix.copy()
        a.div_scalar_mut(scale)

        with timer.section('bidiagonalization'):
            u, d, e, v = bidiagonalize(a)

        with timer.section('diagonalization'):
            iterations = self._diagonalize(d, e, u, v)

        for i, di in enumerate(d):
            if di < 0.0:
                d[i] = -di
                negate_column(v, i)
        order = sorted(range(len(d)), key=lambda i: -d[i])
        s = tuple(scale * d[i] for i in order)
        u = permute_columns(u, order)
        v = permute_columns(v, order)
        if transposed:
            u, v = v, u

        timer.stop()

        rank = numerical_rank(list(s), (m, n))
        warnings: list[str] = []
        if rank < len(s):
            warnings.append(
                f"rank-deficient: numerical rank {rank} < {len(s)}"
            )

        return Result(
            params=SVDParams(U=u, s=s, V=v, rank=rank),
            info={
                'method': 'golub_kahan',
                'converged': True,
                'iterations': iterations,
                'rank': rank,
                'transposed': transposed,
                'scale': scale,
                'tol': self._criteria.tol,
                'max_iter': self._criteria.max_iter,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings),
        )

    def _diagonalize(
        self,
        d: list[float],
        e: list[float],
        u: MatrixContract,
        v: MatrixContract
    ) -> int:
        """Drive e to zero in place, accumulating rotations into U and V."""
        tol = self._criteria.tol
        max_iter = self._criteria.max_iter
        n = len(d)
        anorm = max(
            (abs(d[i]) + (abs(e[i]) if i < n - 1 else 0.0) for i in range(n)),
            default=0.0,
        )

        hi = n - 1
        iterations = 0
        since_deflation = 0
        window = None

        while hi > 0:
            for i in range(hi):
                if e[i] != 0.0 and is_negligible(e[i], d[i], d[i + 1], tol, anorm):
                    e[i] = 0.0
            if e[hi - 1] == 0.0:
                hi -= 1
                since_deflation = 0
                continue

            lo = hi - 1
            while lo > 0 and e[lo - 1] != 0.0:
                lo -= 1
            if not _finite_window(d, e, lo, hi):
                raise ConvergenceError(
                    f"SVD sweep produced non-finite entries in block "
                    f"[{lo}, {hi}] after {iterations} sweeps",
                    iterations=iterations,
                    final_change=math.nan,
                    reason='non_finite',
                    threshold=tol,
                )
            if window != (lo, hi):
                window = (lo, hi)
                since_deflation = 0

            zero = next(
                (i for i in range(lo, hi + 1) if abs(d[i]) <= tol * anorm), None
            )
            if zero is not None:
                d[zero] = 0.0
                if zero < hi:
                    _chase_row(d, e, u, zero, hi)
                else:
                    _chase_column(d, e, v, lo, hi)
                continue

            if since_deflation >= max_iter:
                raise ConvergenceError(
                    f"SVD did not converge: block [{lo}, {hi}] still has "
                    f"super-diagonal {abs(e[hi - 1]):.3e} after "
                    f"{since_deflation} sweeps (tol={tol:.3e})",
                    iterations=iterations,
                    final_change=abs(e[hi - 1]),
                    reason='max_iterations',
                    threshold=tol,
                )

            if since_deflation > 0 and since_deflation % EXCEPTIONAL_SHIFT_PERIOD == 0:
                mu = 0.0
            else:
                mu = _wilkinson_shift(d, e, lo, hi)
            _golub_kahan_step(d, e, u, v, lo, hi, mu)
            iterations += 1
            since_deflation += 1

        return iterations


def bidiagonalize(a: M) -> tuple[M, list[float], list[float], M]:
    """
    Reduce a (m x n, m >= n, overwritten) to upper bidiagonal form.

    Returns:
        (U, d, e, V): U is m x n with orthonormal columns, V is n x n
        orthogonal, d the diagonal and e the super-diagonal of
        B = U^T A V
    """
    m, n = a.shape()
    cls = type(a)
    u_full = cls.eye(m)
    v = cls.eye(n)

    for k in range(n):
        h = reduce_column(a, k, k, range(k, n))
        if h is not None:
            h.apply_right(u_full, range(m))
        if k < n - 2:
            g = reduce_row(a, k, k + 1, range(k, m))
            if g is not None:
                g.apply_right(v, range(n))

    d = [a.get(i, i) for i in range(n)]
    e = [a.get(i, i + 1) for i in range(n - 1)]
    return u_full.slice(range(m), range(n)), d, e, v


def _finite_window(d: list[float], e: list[float], lo: int, hi: int) -> bool:
    return all(math.isfinite(x) for x in d[lo:hi + 1] + e[lo:hi])


def _wilkinson_shift(d: list[float], e: list[float], lo: int, hi: int) -> float:
    """Eigenvalue of the trailing 2x2 of B^T B closest to its last entry."""
    t11 = d[hi - 1] ** 2 + (e[hi - 2] ** 2 if hi - 2 >= lo else 0.0)
    t12 = d[hi - 1] * e[hi - 1]
    t22 = d[hi] ** 2 + e[hi - 1] ** 2
    half = 0.5 * (t11 - t22)
    denom = half + math.copysign(math.hypot(half, t12), half)
    if denom == 0.0:
        return t22
    return t22 - t12 * t12 / denom


def _golub_kahan_step(
    d: list[float],
    e: list[float],
    u: MatrixContract,
    v: MatrixContract,
    lo: int,
    hi: int,
    mu: float
) -> None:
    """One implicit-shift QR sweep on B[lo:hi+1, lo:hi+1]."""
    y = d[lo] * d[lo] - mu
    z = d[lo] * e[lo]
    for k in range(lo, hi):
        # Right rotation on columns k, k+1
        c, s, r = givens(y, z)
        if k > lo:
            e[k - 1] = r
        y = c * d[k] + s * e[k]
        e[k] = -s * d[k] + c * e[k]
        z = s * d[k + 1]
        d[k + 1] = c * d[k + 1]
        rotate_columns(v, k, k + 1, c, s)

        # Left rotation on rows k, k+1
        c, s, r = givens(y, z)
        d[k] = r
        y = c * e[k] + s * d[k + 1]
        d[k + 1] = -s * e[k] + c * d[k + 1]
        if k < hi - 1:
            z = s * e[k + 1]
            e[k + 1] = c * e[k + 1]
        rotate_columns(u, k, k + 1, c, s)
    e[hi - 1] = y


def _chase_row(
    d: list[float],
    e: list[float],
    u: MatrixContract,
    i: int,
    hi: int
) -> None:
    """d[i] == 0: rotate row i against rows i+1..hi until e[i] is gone."""
    f = e[i]
    e[i] = 0.0
    for j in range(i + 1, hi + 1):
        c, s, r = givens(d[j], f)
        d[j] = r
        rotate_columns(u, j, i, c, s)
        if j < hi:
            f = -s * e[j]
            e[j] = c * e[j]


def _chase_column(
    d: list[float],
    e: list[float],
    v: MatrixContract,
    lo: int,
    hi: int
) -> None:
    """d[hi] == 0: rotate column hi against columns hi-1..lo until e[hi-1] is gone."""
    f = e[hi - 1]
    e[hi - 1] = 0.0
    for j in range(hi - 1, lo - 1, -1):
        c, s, r = givens(d[j], f)
        d[j] = r
        rotate_columns(v, j, hi, c, s)
        if j > lo:
            f = -s * e[j - 1]
            e[j - 1] = c * e[j - 1]
