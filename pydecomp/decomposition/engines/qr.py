"""
Householder QR engine.

Computes A = QR where Q is orthogonal and R is upper triangular by
reflecting each column onto its diagonal in turn. Q is accumulated
explicitly as H_0 H_1 ... H_{k-1}.

Used directly by qr_decompose() and, through householder_qr(), by the
shifted QR iteration of the EVD engine.
"""

from __future__ import annotations

from typing import Literal, TypeVar

from pydecomp.core.compute.precision import numerical_rank
from pydecomp.core.compute.timing import Timer
from pydecomp.core.exceptions import ValidationError
from pydecomp.core.protocols import MatrixContract
from pydecomp.core.result import Result
from pydecomp.decomposition._householder import reduce_column
from pydecomp.decomposition.solution import QRParams

M = TypeVar('M', bound=MatrixContract)

QRMode = Literal['reduced', 'complete']


def householder_qr(a: M) -> tuple[M, M, int]:
    """
    Full QR factorization of an m x n matrix.

    Columns that are already zero below the diagonal are passed through
    untouched, so rank-deficient input produces a valid (singular) R
    instead of an error.

    Args:
        a: Matrix to factor, not modified

    Returns:
        (Q, R, reflections): Q is m x m, R is m x n, reflections counts
        the non-trivial reflectors applied
    """
    m, n = a.shape()
    r = a.copy()
    q = type(a).eye(m)
    applied = 0
    for k in range(min(m - 1, n)):
        h = reduce_column(r, k, k, range(k, n))
        if h is None:
            continue
        h.apply_right(q, range(m))
        applied += 1
    return q, r, applied


class QREngine:
    """
    QR decomposition via Householder reflections.

    Implements the Engine protocol for MatrixContract -> QRParams.

    Modes:
        'reduced':  Q is m x n, R is n x n (economy form)
        'complete': Q is m x m, R is m x n
    """

    def __init__(self, mode: QRMode = 'reduced'):
        if mode not in ('reduced', 'complete'):
            raise ValidationError(
                f"mode: expected 'reduced' or 'complete', got {mode!r}"
            )
        self._mode = mode

    @property
    def name(self) -> str:
        return 'householder_qr'

    def solve(self, matrix: M) -> Result[QRParams[M]]:
        """
        Factor matrix (m >= n, checked by the caller).

        Returns:
            Result containing QRParams; info['rank'] is the numerical rank
            read off |diag(R)|
        """
        timer = Timer()
        timer.start()

        m, n = matrix.shape()

        with timer.section('factorization'):
            q, r, applied = householder_qr(matrix)

        if self._mode == 'reduced':
            q = q.slice(range(m), range(n))
            r = r.slice(range(n), range(n))

        diag_r = [r.get(i, i) for i in range(min(m, n))]
        rank = numerical_rank(diag_r, (m, n))

        timer.stop()

        warnings: list[str] = []
        if rank < n:
            warnings.append(
                f"rank-deficient: numerical rank {rank} < {n} columns"
            )

        return Result(
            params=QRParams(Q=q, R=r, rank=rank, mode=self._mode),
            info={
                'method': 'householder',
                'mode': self._mode,
                'rank': rank,
                'reflections': applied,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings),
        )
