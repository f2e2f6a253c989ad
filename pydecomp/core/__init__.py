"""
Core infrastructure for pydecomp.

This module provides shared abstractions, utilities, and compute infrastructure
used by the matrix backends and the decomposition engines.

Key components:
    protocols: MatrixContract, Engine protocols
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing, precision constants, convergence settings
"""

from pydecomp.core.protocols import MatrixContract, Engine
from pydecomp.core.result import Result
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

__all__ = [
    # Protocols
    "MatrixContract",
    "Engine",
    # Result
    "Result",
    # Exceptions
    "PyDecompError",
    "ValidationError",
    "DimensionError",
    "IndexOutOfBoundsError",
    "NumericalError",
    "DivisionByZeroError",
    "SingularMatrixError",
    "ConvergenceError",
]
