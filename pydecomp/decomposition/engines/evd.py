"""
Eigenvalue decomposition engine (shifted QR algorithm).

Algorithm:
    0. Divide A by a power of two near max|a| (undone on the eigenvalues),
       so squared entries and shifted products stay in range.
    1. Reduce A to upper Hessenberg form H = V^T A V with Householder
       similarity transforms (tridiagonal when A is symmetric).
    2. Repeat on the trailing unreduced block H[lo:hi, lo:hi]:
           H - mu I = QR   (householder_qr)
           H <- RQ + mu I
       or its double-shift analogue, accumulating V <- V Q, until a
       sub-diagonal entry becomes negligible and the trailing 1x1 or 2x2
       block deflates.
    3. A deflated 2x2 block is rotated to standard form: upper triangular
       when its eigenvalues are real, equal diagonal when they form a
       complex-conjugate pair. The result is a real Schur form T.
    4. Symmetric input: T is diagonal and V holds the eigenvectors.
       General input: eigenvectors come from back substitution on T,
       solving T Y = Y Lambda block by block, then X = V Y.

Shifts:
    - Wilkinson shift (eigenvalue of the trailing 2x2 closest to the last
      diagonal entry) when that 2x2 has real eigenvalues
    - a double shift by the complex pair mu, conj(mu) when they are
      complex: QR = (H - mu I)(H - conj(mu) I) is factored instead, which
      keeps the arithmetic real
    - an exceptional shift every EXCEPTIONAL_SHIFT_PERIOD sweeps without
      a deflation, to break cycles

References:
    Golub, G. H. & Van Loan, C. F. (2013). Matrix Computations, 4th ed.
    Sections 7.4-7.5 and 8.3.
"""

from __future__ import annotations

import math
import sys
from typing import TypeVar

from pydecomp.core.compute.precision import (
    EPSILON_64,
    is_negligible,
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
from pydecomp.decomposition._common import permute_columns, set_block
from pydecomp.decomposition._householder import make_reflector
from pydecomp.decomposition._rotations import (
    block_rotation,
    rotate_columns,
    rotate_rows,
)
from pydecomp.decomposition.engines.qr import householder_qr
from pydecomp.decomposition.solution import (
    ComplexPairBlock,
    EVDParams,
    Eigenvalue,
    RealEigenvalue,
)

M = TypeVar('M', bound=MatrixContract)


class EVDEngine:
    """
    Eigen-decomposition of a square matrix.

    Implements the Engine protocol for MatrixContract -> EVDParams.

    With symmetric=True the caller guarantees a symmetric matrix; the
    tridiagonal structure is then preserved explicitly, all eigenvalues are
    real and V is orthogonal.
    """

    def __init__(
        self,
        symmetric: bool = False,
        criteria: ConvergenceCriteria = DEFAULT_CRITERIA,
    ):
        self._symmetric = symmetric
        self._criteria = criteria

    @property
    def name(self) -> str:
        return 'qr_algorithm_symmetric' if self._symmetric else 'qr_algorithm_general'

    def solve(self, matrix: M) -> Result[EVDParams[M]]:
        """
        Decompose a square matrix (shape checked by the caller).

        Returns:
            Result containing EVDParams with blocks sorted by real part,
            descending

        Raises:
            ConvergenceError: If a block does not deflate within max_iter
                sweeps (reason='max_iterations') or an entry of the active
                block becomes NaN or Inf (reason='non_finite')
        """
        timer = Timer()
        timer.start()

        n = matrix.shape()[0]
        # Work on A / scale; eigenvalues are multiplied back at the end
        scale = power_of_two_scale(matrix.norm(math.inf))
        h = matrix.copy().div_scalar_mut(scale)
        if self._symmetric:
            # Discard the round-off asymmetry the caller was allowed
            h.add_mut(h.transpose()).mul_scalar_mut(0.5)
        v = type(matrix).eye(n)
        hnorm = h.norm2()

        with timer.section('reduction'):
            hessenberg_reduce(h, v, self._symmetric)

        with timer.section('iteration'):
            iterations = self._iterate(h, v, hnorm)

        with timer.section('eigenvectors'):
            blocks = _read_blocks(h)
            if self._symmetric:
                x = v
            else:
                smin = max(EPSILON_64 * hnorm, sys.float_info.min)
                x = _schur_eigenvectors(h, v, blocks, smin)
            eigenvalues, x = _sort_blocks(h, x, blocks, scale)

        timer.stop()

        n_pairs = sum(1 for ev in eigenvalues if isinstance(ev, ComplexPairBlock))
        warnings: list[str] = []
        if n_pairs:
            warnings.append(
                f"complex eigenvalues: {n_pairs} conjugate pair(s) "
                f"returned as 2x2 blocks"
            )

        return Result(
            params=EVDParams(
                eigenvalues=tuple(eigenvalues),
                V=x,
                symmetric=self._symmetric,
            ),
            info={
                'method': 'shifted_qr',
                'symmetric': self._symmetric,
                'converged': True,
                'iterations': iterations,
                'tol': self._criteria.tol,
                'max_iter': self._criteria.max_iter,
                'scale': scale,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings),
        )

    def _iterate(self, h: M, v: M, hnorm: float) -> int:
        """Run the shifted QR iteration until H is fully deflated."""
        tol = self._criteria.tol
        max_iter = self._criteria.max_iter
        symmetric = self._symmetric

        hi = h.shape()[0] - 1
        iterations = 0
        since_deflation = 0

        while hi > 0:
            lo = _active_start(h, hi, tol, hnorm, symmetric)
            if not _finite_window(h, lo, hi):
                raise ConvergenceError(
                    f"QR iteration produced non-finite entries in block "
                    f"[{lo}, {hi}] after {iterations} sweeps",
                    iterations=iterations,
                    final_change=math.nan,
                    reason='non_finite',
                    threshold=tol,
                )
            if lo == hi:
                hi -= 1
                since_deflation = 0
                continue
            if lo == hi - 1:
                _standardize_block(h, v, lo, symmetric)
                hi -= 2
                since_deflation = 0
                continue

            if since_deflation >= max_iter:
                residual = abs(h.get(hi, hi - 1))
                raise ConvergenceError(
                    f"QR iteration did not converge: block [{lo}, {hi}] still "
                    f"has sub-diagonal {residual:.3e} after {since_deflation} "
                    f"sweeps (tol={tol:.3e})",
                    iterations=iterations,
                    final_change=residual,
                    reason='max_iterations',
                    threshold=tol,
                )

            if since_deflation > 0 and since_deflation % EXCEPTIONAL_SHIFT_PERIOD == 0:
                _qr_sweep(h, v, lo, hi, _exceptional_shift(h, lo, hi), symmetric)
            else:
                mu = _wilkinson_shift(h, hi)
                if mu is None:
                    _double_shift_sweep(h, v, lo, hi)
                else:
                    _qr_sweep(h, v, lo, hi, mu, symmetric)
            iterations += 1
            since_deflation += 1

        return iterations


def hessenberg_reduce(
    h: MatrixContract,
    v: MatrixContract,
    symmetric: bool,
    lo: int = 0,
    hi: int | None = None
) -> int:
    """
    In place: h <- P^T h P upper Hessenberg on rows/cols lo..hi, v <- v P.

    With the default window this is the initial reduction of the whole
    matrix. For symmetric h the result is tridiagonal and the entries
    outside the band are written as exact zeros.

    Returns:
        Number of non-trivial reflectors applied
    """
    n = h.shape()[0]
    if hi is None:
        hi = n - 1
    applied = 0
    for k in range(lo, hi - 1):
        x = [h.get(i, k) for i in range(k + 1, hi + 1)]
        r = make_reflector(x, k + 1)
        if r is None:
            continue
        r.apply_left(h, range(k, n))
        r.apply_right(h, range(0, hi + 1))
        h.set(k + 1, k, r.alpha)
        for i in range(k + 2, hi + 1):
            h.set(i, k, 0.0)
        if symmetric:
            h.set(k, k + 1, r.alpha)
            for j in range(k + 2, hi + 1):
                h.set(k, j, 0.0)
        r.apply_right(v, range(n))
        applied += 1
    return applied


def _active_start(
    h: MatrixContract,
    hi: int,
    tol: float,
    hnorm: float,
    symmetric: bool
) -> int:
    """
    First row of the unreduced block ending at hi.

    The negligible sub-diagonal entry that bounds the block is set to zero.
    """
    lo = hi
    while lo > 0:
        if is_negligible(
            h.get(lo, lo - 1), h.get(lo - 1, lo - 1), h.get(lo, lo), tol, hnorm
        ):
            h.set(lo, lo - 1, 0.0)
            if symmetric:
                h.set(lo - 1, lo, 0.0)
            break
        lo -= 1
    return lo


def _finite_window(h: MatrixContract, lo: int, hi: int) -> bool:
    return all(
        math.isfinite(h.get(i, j))
        for i in range(lo, hi + 1)
        for j in range(max(lo, i - 1), hi + 1)
    )


def _wilkinson_shift(h: MatrixContract, hi: int) -> float | None:
    """
    Eigenvalue of the trailing 2x2 closest to h[hi, hi].

    Returns:
        The shift, or None when the trailing 2x2 has a complex pair
    """
    a = h.get(hi - 1, hi - 1)
    b = h.get(hi - 1, hi)
    c = h.get(hi, hi - 1)
    d = h.get(hi, hi)
    mid = 0.5 * (a + d)
    half = 0.5 * (a - d)
    disc = half * half + b * c
    if disc < 0.0:
        return None
    root = math.sqrt(disc)
    r1, r2 = mid + root, mid - root
    return r1 if abs(r1 - d) <= abs(r2 - d) else r2


def _exceptional_shift(h: MatrixContract, lo: int, hi: int) -> float:
    extra = abs(h.get(hi - 1, hi - 2)) if hi - 2 >= lo else 0.0
    return h.get(hi, hi) + abs(h.get(hi, hi - 1)) + extra


def _qr_sweep(
    h: M,
    v: M,
    lo: int,
    hi: int,
    mu: float,
    symmetric: bool
) -> None:
    """One explicit shifted QR step on h[lo:hi+1, lo:hi+1]: H <- RQ + mu I."""
    window = range(lo, hi + 1)
    shift = type(h).eye(hi - lo + 1).mul_scalar_mut(mu)
    block = h.slice(window, window).sub_mut(shift)
    q, r, _ = householder_qr(block)
    _apply_similarity(h, v, lo, hi, q, r.dot(q).add_mut(shift), symmetric)
    _restore_structure(h, lo, hi, symmetric)


def _double_shift_sweep(h: M, v: M, lo: int, hi: int) -> None:
    """
    One explicit double-shift step for a trailing complex pair mu, conj(mu).

    QR = (H - mu I)(H - conj(mu) I) = H^2 - s H + t I is real, with s and t
    the trace and determinant of the trailing 2x2, and H <- Q^T H Q. The
    window is then re-reduced to Hessenberg form, which keeps the update
    an exact similarity when the product is close to singular.
    """
    window = range(lo, hi + 1)
    size = hi - lo + 1
    a = h.get(hi - 1, hi - 1)
    b = h.get(hi - 1, hi)
    c = h.get(hi, hi - 1)
    d = h.get(hi, hi)
    s = a + d
    t = a * d - b * c

    block = h.slice(window, window)
    m = block.dot(block)
    m.sub_mut(block.copy().mul_scalar_mut(s))
    m.add_mut(type(h).eye(size).mul_scalar_mut(t))
    q, _, _ = householder_qr(m)
    _apply_similarity(h, v, lo, hi, q, q.transpose().dot(block).dot(q), False)
    hessenberg_reduce(h, v, False, lo, hi)


def _apply_similarity(
    h: M,
    v: M,
    lo: int,
    hi: int,
    q: M,
    new_block: M,
    symmetric: bool
) -> None:
    """
    Complete H <- Q^T H Q for a window transform Q, given its new diagonal block.

    Also accumulates V <- V Q. For symmetric input the off-window parts of
    H are already zero and are skipped.
    """
    n = h.shape()[0]
    window = range(lo, hi + 1)
    set_block(h, lo, lo, new_block)
    if not symmetric:
        if lo > 0:
            set_block(h, 0, lo, h.slice(range(0, lo), window).dot(q))
        if hi < n - 1:
            set_block(
                h, lo, hi + 1,
                q.transpose().dot(h.slice(window, range(hi + 1, n))),
            )
    set_block(v, 0, lo, v.slice(range(n), window).dot(q))


def _restore_structure(h: MatrixContract, lo: int, hi: int, symmetric: bool) -> None:
    # Round-off below the sub-diagonal (and above the super-diagonal when
    # symmetric) is discarded
    for i in range(lo, hi + 1):
        for j in range(lo, hi + 1):
            if i > j + 1 or (symmetric and j > i + 1):
                h.set(i, j, 0.0)
    if symmetric:
        for i in range(lo, hi):
            off = 0.5 * (h.get(i + 1, i) + h.get(i, i + 1))
            h.set(i + 1, i, off)
            h.set(i, i + 1, off)


def _standardize_block(h: MatrixContract, v: MatrixContract, lo: int, symmetric: bool) -> None:
    """Rotate the deflated 2x2 block at (lo, lo) into real Schur standard form."""
    n = h.shape()[0]
    cs, sn, is_complex = block_rotation(
        h.get(lo, lo), h.get(lo, lo + 1), h.get(lo + 1, lo), h.get(lo + 1, lo + 1)
    )
    rotate_rows(h, lo, lo + 1, cs, sn, cols=range(lo, n))
    rotate_columns(h, lo, lo + 1, cs, sn, rows=range(0, lo + 2))
    rotate_columns(v, lo, lo + 1, cs, sn)
    if not is_complex:
        h.set(lo + 1, lo, 0.0)
        if symmetric:
            h.set(lo, lo + 1, 0.0)


def _read_blocks(t: MatrixContract) -> list[tuple[int, int]]:
    """(start, size) of each diagonal block of a real Schur form."""
    n = t.shape()[0]
    blocks = []
    i = 0
    while i < n:
        if i + 1 < n and t.get(i + 1, i) != 0.0:
            blocks.append((i, 2))
            i += 2
        else:
            blocks.append((i, 1))
            i += 1
    return blocks


def _schur_eigenvectors(
    t: M,
    v: M,
    blocks: list[tuple[int, int]],
    smin: float
) -> M:
    """
    Eigenvectors of A = V T V^T from its real Schur form T.

    Y is block upper triangular with identity diagonal blocks and solves
    T Y = Y Lambda, Lambda the block diagonal of T. Each off-diagonal block
    satisfies the small Sylvester equation
        T_ii Y_ij - Y_ij Lambda_j = -sum_{k > i} T_ik Y_kj
    solved bottom-up. Columns of X = V Y are normalised per block (a
    complex pair is scaled jointly, which keeps A X_j = X_j Lambda_j).
    """
    n = t.shape()[0]
    y = type(t).eye(n)

    for jb, (j0, q) in enumerate(blocks):
        lam = [[t.get(j0 + a, j0 + b) for b in range(q)] for a in range(q)]
        for ib in range(jb - 1, -1, -1):
            i0, p = blocks[ib]
            tii = [[t.get(i0 + a, i0 + c) for c in range(p)] for a in range(p)]
            rhs = [
                [
                    -math.fsum(
                        t.get(i0 + a, k) * y.get(k, j0 + b)
                        for k in range(i0 + p, j0 + q)
                    )
                    for b in range(q)
                ]
                for a in range(p)
            ]
            sol = _solve_sylvester(tii, lam, rhs, smin)
            for a in range(p):
                for b in range(q):
                    y.set(i0 + a, j0 + b, sol[a][b])

    x = v.dot(y)
    for j0, q in blocks:
        cols = range(j0, j0 + q)
        norm = math.sqrt(math.fsum(x.get(i, j) ** 2 for j in cols for i in range(n)))
        if norm > 0.0:
            for j in cols:
                for i in range(n):
                    x.set(i, j, x.get(i, j) / norm)
    return x


def _solve_sylvester(
    tii: list[list[float]],
    lam: list[list[float]],
    rhs: list[list[float]],
    smin: float
) -> list[list[float]]:
    """
    Solve tii Y - Y lam = rhs for Y (p x q, p and q in {1, 2}).

    The Kronecker form (I (x) tii - lam^T (x) I) vec(Y) = vec(rhs) is at
    most 4 x 4 and is solved by Gaussian elimination with partial
    pivoting. Pivots below smin are replaced by smin: near-equal
    eigenvalues then give a large but finite solution instead of a
    division by zero.
    """
    p, q = len(tii), len(lam)
    size = p * q

    def idx(a: int, b: int) -> int:
        return b * p + a

    k = [[0.0] * size for _ in range(size)]
    f = [0.0] * size
    for a in range(p):
        for b in range(q):
            row = idx(a, b)
            f[row] = rhs[a][b]
            for c in range(p):
                k[row][idx(c, b)] += tii[a][c]
            for d in range(q):
                k[row][idx(a, d)] -= lam[d][b]

    for col in range(size):
        piv = max(range(col, size), key=lambda r: abs(k[r][col]))
        if piv != col:
            k[col], k[piv] = k[piv], k[col]
            f[col], f[piv] = f[piv], f[col]
        if abs(k[col][col]) < smin:
            k[col][col] = smin
        for r in range(col + 1, size):
            factor = k[r][col] / k[col][col]
            if factor == 0.0:
                continue
            for c in range(col, size):
                k[r][c] -= factor * k[col][c]
            f[r] -= factor * f[col]

    sol = [0.0] * size
    for r in range(size - 1, -1, -1):
        s = f[r] - math.fsum(k[r][c] * sol[c] for c in range(r + 1, size))
        sol[r] = s / k[r][r]

    return [[sol[idx(a, b)] for b in range(q)] for a in range(p)]


def _sort_blocks(
    t: M,
    x: M,
    blocks: list[tuple[int, int]],
    scale: float = 1.0
) -> tuple[list[Eigenvalue], M]:
    """
    Order blocks by real part, descending (stable), permuting X to match.

    t is the Schur form of A / scale; the returned eigenvalues are of A.
    """
    # Standardised blocks have equal diagonals, so t[j0, j0] is the real part
    ranked = sorted(blocks, key=lambda blk: -t.get(blk[0], blk[0]))

    eigenvalues: list[Eigenvalue] = []
    order: list[int] = []
    for j0, q in ranked:
        if q == 1:
            eigenvalues.append(RealEigenvalue(scale * t.get(j0, j0)))
        else:
            eigenvalues.append(ComplexPairBlock((
                (scale * t.get(j0, j0), scale * t.get(j0, j0 + 1)),
                (scale * t.get(j0 + 1, j0), scale * t.get(j0 + 1, j0 + 1)),
            )))
        order.extend(range(j0, j0 + q))

    return eigenvalues, permute_columns(x, order)
