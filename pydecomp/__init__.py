"""
pydecomp: dense matrix abstraction and QR, eigen and singular value
decompositions written against it.

Any type satisfying the MatrixContract protocol can be decomposed; two
backends ship with the package (pure-Python DenseMatrix and the
numpy-backed NumpyMatrix).

Submodules:
    core: protocols, result envelope, exceptions, validation
    matrix: backends and row iteration
    decomposition: qr_decompose, evd_decompose, svd_decompose
"""

__version__ = "0.1.0"

from pydecomp.core.protocols import MatrixContract
from pydecomp.core.exceptions import (
    PyDecompError,
    ValidationError,
    DimensionError,
    IndexOutOfBoundsError,
    NumericalError,
    DivisionByZeroError,
    SingularMatrixError,
    ConvergenceError,
)
from pydecomp.matrix import DenseMatrix, NumpyMatrix, RowIterator, row_iter
from pydecomp.decomposition import (
    qr_decompose,
    evd_decompose,
    svd_decompose,
    QRResult,
    EVDResult,
    SVDResult,
    RealEigenvalue,
    ComplexPairBlock,
)

__all__ = [
    "__version__",
    "MatrixContract",
    "DenseMatrix",
    "NumpyMatrix",
    "RowIterator",
    "row_iter",
    "qr_decompose",
    "evd_decompose",
    "svd_decompose",
    "QRResult",
    "EVDResult",
    "SVDResult",
    "RealEigenvalue",
    "ComplexPairBlock",
    "PyDecompError",
    "ValidationError",
    "DimensionError",
    "IndexOutOfBoundsError",
    "NumericalError",
    "DivisionByZeroError",
    "SingularMatrixError",
    "ConvergenceError",
]
