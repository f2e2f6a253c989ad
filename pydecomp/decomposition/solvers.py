"""
Public entry points for the decompositions.

Each function validates its input, builds the engine, runs it and wraps
the Result envelope in the user-facing solution type. Engines never see
unvalidated input.
"""

from __future__ import annotations

import math
from typing import TypeVar

from pydecomp.core.compute.tolerances import SYMMETRY_RTOL, resolve_criteria
from pydecomp.core.exceptions import DimensionError, ValidationError
from pydecomp.core.protocols import MatrixContract
from pydecomp.core.validation import check_square
from pydecomp.decomposition._common import check_decomposable
from pydecomp.decomposition.engines.evd import EVDEngine
from pydecomp.decomposition.engines.qr import QREngine, QRMode
from pydecomp.decomposition.engines.svd import SVDEngine
from pydecomp.decomposition.solution import EVDResult, QRResult, SVDResult

M = TypeVar('M', bound=MatrixContract)


def qr_decompose(matrix: M, *, mode: QRMode = 'reduced') -> QRResult[M]:
    """
    QR decomposition A = QR by Householder reflections.

    Args:
        matrix: m x n matrix with m >= n (not modified)
        mode: 'reduced' (Q m x n, R n x n) or 'complete' (Q m x m, R m x n)

    Returns:
        QRResult with Q, R, rank, solve() and reconstruct()

    Raises:
        ValidationError: If matrix is not a MatrixContract, has NaN/Inf
            entries or mode is unknown
        DimensionError: If matrix is empty or has fewer rows than columns

    Example:
        >>> from pydecomp import DenseMatrix, qr_decompose
        >>> a = DenseMatrix.from_rows([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])
        >>> qr = qr_decompose(a)
        >>> qr.reconstruct().approximate_eq(a, 1e-12)
        True
    """
    check_decomposable(matrix, 'matrix')
    m, n = matrix.shape()
    if m < n:
        raise DimensionError(
            f"matrix: QR requires n_rows >= n_cols, got shape ({m}, {n})"
        )

    engine = QREngine(mode=mode)
    return QRResult(_result=engine.solve(matrix))


def evd_decompose(
    matrix: M,
    symmetric: bool = False,
    *,
    tol: float | None = None,
    max_iter: int | None = None,
) -> EVDResult[M]:
    """
    Eigen-decomposition A V = V Lambda by the shifted QR algorithm.

    Real eigenvalues appear as RealEigenvalue; complex-conjugate pairs
    stay real as ComplexPairBlock 2x2 blocks occupying two columns of V.

    Args:
        matrix: Square n x n matrix (not modified)
        symmetric: Caller asserts A == A^T; enables the symmetric path
            (orthogonal V, real eigenvalues)
        tol: Relative deflation tolerance (default DEFAULT_TOL)
        max_iter: Sweep cap per deflated eigenvalue (default 200)

    Returns:
        EVDResult with blocks ordered by real part, descending

    Raises:
        ValidationError: Invalid input, bad tol/max_iter, or an asymmetric
            matrix with symmetric=True
        DimensionError: If matrix is empty or not square
        ConvergenceError: If the iteration cap is exceeded
    """
    check_decomposable(matrix, 'matrix')
    check_square(matrix.shape(), 'matrix')
    criteria = resolve_criteria(tol, max_iter)
    if symmetric:
        _check_symmetric(matrix)

    engine = EVDEngine(symmetric=symmetric, criteria=criteria)
    return EVDResult(_result=engine.solve(matrix))


def svd_decompose(
    matrix: M,
    *,
    tol: float | None = None,
    max_iter: int | None = None,
) -> SVDResult[M]:
    """
    Thin singular value decomposition A = U S V^T.

    Args:
        matrix: Any m x n matrix (not modified)
        tol: Relative deflation tolerance (default DEFAULT_TOL)
        max_iter: Sweep cap per deflated singular value (default 200)

    Returns:
        SVDResult with U (m x k), s (descending, >= 0), V (n x k),
        k = min(m, n)

    Raises:
        ValidationError: Invalid input or bad tol/max_iter
        DimensionError: If matrix is empty
        ConvergenceError: If the iteration cap is exceeded
    """
    check_decomposable(matrix, 'matrix')
    criteria = resolve_criteria(tol, max_iter)

    engine = SVDEngine(criteria=criteria)
    return SVDResult(_result=engine.solve(matrix))


def _check_symmetric(matrix: MatrixContract) -> None:
    n = matrix.shape()[0]
    scale = matrix.norm(math.inf)
    worst = 0.0
    for i in range(n):
        for j in range(i + 1, n):
            worst = max(worst, abs(matrix.get(i, j) - matrix.get(j, i)))
    if worst > SYMMETRY_RTOL * scale:
        raise ValidationError(
            f"matrix: symmetric=True but max |a[i, j] - a[j, i]| = {worst:.3e} "
            f"exceeds {SYMMETRY_RTOL:.0e} * max|a| = {SYMMETRY_RTOL * scale:.3e}"
        )
