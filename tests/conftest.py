"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pydecomp.matrix import DenseMatrix, NumpyMatrix


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture(params=[DenseMatrix, NumpyMatrix], ids=['dense', 'numpy'])
def backend(request):
    """Each shipped MatrixContract backend in turn."""
    return request.param


@pytest.fixture
def make(backend):
    """Build a matrix of the current backend from nested lists or an ndarray."""
    def _make(rows):
        arr = np.asarray(rows, dtype=np.float64)
        if backend is NumpyMatrix:
            return NumpyMatrix.from_array(arr)
        return DenseMatrix.from_rows(arr.tolist())
    return _make

