"""
Matrix decompositions over any MatrixContract backend.

Public API:
    qr_decompose(matrix, mode='reduced') -> QRResult
    evd_decompose(matrix, symmetric=False, tol=None, max_iter=None) -> EVDResult
    svd_decompose(matrix, tol=None, max_iter=None) -> SVDResult

Example:
    >>> from pydecomp import NumpyMatrix, svd_decompose
    >>> a = NumpyMatrix.from_array([[3.0, 0.0], [4.0, 5.0]])
    >>> svd = svd_decompose(a)
    >>> [round(x, 6) for x in svd.s]
    [6.708204, 2.236068]
"""

from pydecomp.decomposition.solution import (
    QRParams,
    QRResult,
    EVDParams,
    EVDResult,
    SVDParams,
    SVDResult,
    RealEigenvalue,
    ComplexPairBlock,
    Eigenvalue,
)
from pydecomp.decomposition.solvers import (
    qr_decompose,
    evd_decompose,
    svd_decompose,
)

__all__ = [
    "qr_decompose",
    "evd_decompose",
    "svd_decompose",
    "QRParams",
    "QRResult",
    "EVDParams",
    "EVDResult",
    "SVDParams",
    "SVDResult",
    "RealEigenvalue",
    "ComplexPairBlock",
    "Eigenvalue",
]
