"""
Exception hierarchy for pydecomp.

All exceptions inherit from PyDecompError to allow catching any
library-specific error. The four failure kinds of the matrix contract map
onto this hierarchy as follows:

    IndexOutOfBounds   -> IndexOutOfBoundsError
    DimensionMismatch  -> DimensionError
    DivisionByZero     -> DivisionByZeroError
    NonConvergence     -> ConvergenceError

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyDecompError(Exception):
    """Base exception for all pydecomp errors."""
    pass


class ValidationError(PyDecompError):
    """
    Input validation failed.
    
    Raised when user-provided arguments fail validation checks
    (invalid norm order, asymmetric input to a symmetric solver, ...).
    """
    pass


class DimensionError(ValidationError):
    """
    Matrix dimensions are incorrect or inconsistent.
    
    Raised when shapes don't match what an operation requires: product of
    non-conforming matrices, stacking along a mismatched edge, QR of a
    wide matrix, EVD of a non-square matrix.
    """
    pass


class IndexOutOfBoundsError(ValidationError, IndexError):
    """
    Row or column index outside the matrix.
    
    Also an IndexError, so generic Python code handling bad indices
    keeps working.
    
    Attributes:
        index: The offending (row, col) pair, or a single index
        shape: Shape of the matrix that was accessed
    """
    
    def __init__(
        self,
        message: str,
        index: tuple[int, ...] | int | None = None,
        shape: tuple[int, int] | None = None
    ):
        super().__init__(message)
        self.index = index
        self.shape = shape


class NumericalError(PyDecompError):
    """
    Numerical computation failed.
    
    Base class for errors arising from numerical issues during computation.
    """
    pass


class DivisionByZeroError(NumericalError, ZeroDivisionError):
    """
    An elementwise or scalar division met a zero divisor.
    
    The division methods check every divisor before writing, so the
    matrix is left untouched when this is raised.
    
    Attributes:
        index: Position (row, col) of the first zero divisor, None for scalar
    """
    
    def __init__(self, message: str, index: tuple[int, int] | None = None):
        super().__init__(message)
        self.index = index


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.
    
    Raised when a solve requires a full-rank factor but the factor is
    numerically rank-deficient.
    
    Attributes:
        matrix_name: Name/description of the problematic matrix
        rank: Numerical rank, if computed
        expected_rank: Expected rank (typically min(m, n))
    """
    
    def __init__(
        self, 
        message: str,
        matrix_name: str | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.rank = rank
        self.expected_rank = expected_rank


class ConvergenceError(PyDecompError):
    """
    Iterative algorithm failed to converge.
    
    Raised when the shifted QR iteration (EVD) or the implicit-shift
    bidiagonal sweep (SVD) exceeds its iteration cap. Callers should
    loosen the tolerance, raise the cap, or treat the input as pathological.
    
    Attributes:
        iterations: Number of iterations completed
        final_change: Size of the off-diagonal entry that failed to vanish
        reason: Why convergence failed (e.g., 'max_iterations')
        threshold: The convergence threshold that was not met
    """
    
    def __init__(
        self, 
        message: str, 
        iterations: int, 
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold
