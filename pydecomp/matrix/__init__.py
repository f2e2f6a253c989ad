"""
Matrix contract implementations.

Public API:
    DenseMatrix: pure-Python row-major backend
    NumpyMatrix: adapter over numpy.ndarray
    BaseMatrix: mixin deriving add/sub/... from the *_mut primitives
    row_iter(matrix) -> RowIterator
"""

from pydecomp.matrix.base import BaseMatrix
from pydecomp.matrix.dense import DenseMatrix
from pydecomp.matrix.ndarray import NumpyMatrix
from pydecomp.matrix.iteration import RowIterator, row_iter

__all__ = [
    "BaseMatrix",
    "DenseMatrix",
    "NumpyMatrix",
    "RowIterator",
    "row_iter",
]
