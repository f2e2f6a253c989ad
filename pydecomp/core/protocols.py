"""
Core protocols for pydecomp.

These define structural interfaces that concrete implementations must satisfy.
We use Protocol (structural typing) rather than ABC (nominal typing) so that
an adapter over any array library can satisfy the contract without
inheriting from anything in this package.

Design Principles:
    - Minimal contracts: prescribe only the primitives a backend must supply
    - Derived operations (add = copy + add_mut, ...) live in BaseMatrix
    - Type-safe: use generics to preserve the backend type through engines
"""

from __future__ import annotations

from typing import Protocol, TypeVar, Any, runtime_checkable

import numpy as np

# Type variables for generic payloads
P = TypeVar('P')  # Parameter payload type
M = TypeVar('M', bound='MatrixContract')  # Concrete matrix type


@runtime_checkable
class MatrixContract(Protocol):
    """
    Capability interface every dense-matrix backend must implement.
    
    Entries are float64, indices are zero-based. Methods ending in ``_mut``
    modify the matrix in place and return it; everything else returns a new
    matrix and leaves the receiver untouched. Constructors are classmethods
    so that engines can allocate intermediates of the caller's backend type
    with ``type(a).zeros(...)``.
    
    Policies shared by all backends:
        - get/set and the *_element_mut family raise IndexOutOfBoundsError
          for any index outside ``[0, n_rows) x [0, n_cols)``
        - elementwise operations require identical shapes (DimensionError)
        - division by a zero entry or scalar raises DivisionByZeroError
          before anything is written
        - softmax_mut is a whole-matrix softmax
        - argmax is per row, ties resolve to the lowest column
        - unique returns distinct values in ascending order
    """
    
    # --- construction -----------------------------------------------------
    
    @classmethod
    def from_row_vector(cls: type[M], vec: Any) -> M:
        """Build a 1 x n matrix from the backend's row-vector type."""
        ...
    
    @classmethod
    def zeros(cls: type[M], n_rows: int, n_cols: int) -> M:
        ...
    
    @classmethod
    def ones(cls: type[M], n_rows: int, n_cols: int) -> M:
        ...
    
    @classmethod
    def fill(cls: type[M], n_rows: int, n_cols: int, value: float) -> M:
        ...
    
    @classmethod
    def eye(cls: type[M], size: int) -> M:
        ...
    
    @classmethod
    def rand(
        cls: type[M],
        n_rows: int,
        n_cols: int,
        rng: np.random.Generator | None = None
    ) -> M:
        """Uniform [0, 1) entries. Never used by the decomposition engines."""
        ...
    
    # --- access -----------------------------------------------------------
    
    def to_row_vector(self) -> Any:
        """Flatten a single-row matrix into the backend's row-vector type."""
        ...
    
    def get(self, row: int, col: int) -> float:
        ...
    
    def set(self, row: int, col: int, x: float) -> None:
        ...
    
    def get_row_as_vec(self, row: int) -> list[float]:
        ...
    
    def get_col_as_vec(self, col: int) -> list[float]:
        ...
    
    def to_raw_vector(self) -> list[float]:
        """All entries in row-major order."""
        ...
    
    def shape(self) -> tuple[int, int]:
        ...
    
    def copy(self: M) -> M:
        ...
    
    def copy_from(self: M, other: M) -> M:
        ...
    
    # --- structure --------------------------------------------------------
    
    def v_stack(self: M, other: M) -> M:
        ...
    
    def h_stack(self: M, other: M) -> M:
        ...
    
    def slice(self: M, rows: range, cols: range) -> M:
        ...
    
    def transpose(self: M) -> M:
        ...
    
    def reshape(self: M, n_rows: int, n_cols: int) -> M:
        ...
    
    # --- products ---------------------------------------------------------
    
    def dot(self: M, other: M) -> M:
        ...
    
    def vector_dot(self: M, other: M) -> float:
        ...
    
    # --- in-place arithmetic ----------------------------------------------
    
    def add_mut(self: M, other: M) -> M:
        ...
    
    def sub_mut(self: M, other: M) -> M:
        ...
    
    def mul_mut(self: M, other: M) -> M:
        ...
    
    def div_mut(self: M, other: M) -> M:
        ...
    
    def add_scalar_mut(self: M, scalar: float) -> M:
        ...
    
    def sub_scalar_mut(self: M, scalar: float) -> M:
        ...
    
    def mul_scalar_mut(self: M, scalar: float) -> M:
        ...
    
    def div_scalar_mut(self: M, scalar: float) -> M:
        ...
    
    def add_element_mut(self, row: int, col: int, x: float) -> None:
        ...
    
    def sub_element_mut(self, row: int, col: int, x: float) -> None:
        ...
    
    def mul_element_mut(self, row: int, col: int, x: float) -> None:
        ...
    
    def div_element_mut(self, row: int, col: int, x: float) -> None:
        ...
    
    def negative_mut(self: M) -> M:
        ...
    
    def abs_mut(self: M) -> M:
        ...
    
    def pow_mut(self: M, p: float) -> M:
        ...
    
    def softmax_mut(self: M) -> M:
        ...
    
    # --- reductions -------------------------------------------------------
    
    def norm2(self) -> float:
        ...
    
    def norm(self, p: float) -> float:
        ...
    
    def sum(self) -> float:
        ...
    
    def column_mean(self) -> list[float]:
        ...
    
    def max_diff(self: M, other: M) -> float:
        ...
    
    def approximate_eq(self: M, other: M, error: float) -> bool:
        ...
    
    def argmax(self) -> list[int]:
        ...
    
    def unique(self) -> list[float]:
        ...


@runtime_checkable
class Engine(Protocol[M, P]):
    """
    Protocol for decomposition engines.
    
    Each engine takes a matrix satisfying MatrixContract and produces a
    parameter payload (the factors) wrapped in a Result envelope. Engines
    hold only their convergence settings; they never keep a reference to
    the input matrix after solve() returns.
    
    Type Parameters:
        M: The matrix type the engine accepts and allocates
        P: The parameter payload type this engine produces
    """
    
    @property
    def name(self) -> str:
        """
        Engine identifier.
        
        Convention: '{algorithm}_{variant}'
        Examples: 'householder_qr', 'qr_algorithm_symmetric', 'golub_kahan_svd'
        """
        ...
    
    def solve(self, matrix: M) -> 'Result[P]':
        """
        Execute the decomposition.
        
        Args:
            matrix: Input matrix, never modified
            
        Returns:
            Result envelope containing the factor payload and metadata
            
        Raises:
            ConvergenceError: If the iterative method exceeds its cap
            DimensionError: If the matrix shape is invalid for this engine
        """
        ...

