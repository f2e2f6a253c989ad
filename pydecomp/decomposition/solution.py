"""
Decomposition solution types.

Contains the factor payloads computed by the engines and the user-facing
solution wrappers returned by qr_decompose(), evd_decompose() and
svd_decompose().
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from pydecomp.core.compute.precision import rank_threshold
from pydecomp.core.exceptions import DimensionError, SingularMatrixError
from pydecomp.core.protocols import MatrixContract
from pydecomp.core.result import Result
from pydecomp.decomposition._common import back_substitute

M = TypeVar('M', bound=MatrixContract)


# === Eigenvalue variants ===

@dataclass(frozen=True)
class RealEigenvalue:
    """A single real eigenvalue (a 1x1 diagonal block of Lambda)."""
    value: float

    @property
    def real(self) -> float:
        return self.value

    @property
    def imag(self) -> float:
        return 0.0

    @property
    def size(self) -> int:
        return 1


@dataclass(frozen=True)
class ComplexPairBlock:
    """
    A complex-conjugate eigenvalue pair kept as a real 2x2 block.

    The block is in standard form: equal diagonal entries alpha and
    off-diagonals of opposite sign, so the pair is alpha +/- i*beta with
    beta = sqrt(-b * c).
    """
    block: tuple[tuple[float, float], tuple[float, float]]

    @property
    def real(self) -> float:
        (a, _), (_, d) = self.block
        return 0.5 * (a + d)

    @property
    def imag(self) -> float:
        """Positive imaginary part of the pair."""
        (a, b), (c, d) = self.block
        half = 0.5 * (a - d)
        top = max(abs(half), abs(b), abs(c))
        if top == 0.0:
            return 0.0
        half, b, c = half / top, b / top, c / top
        return top * math.sqrt(max(0.0, -(half * half + b * c)))

    @property
    def size(self) -> int:
        return 2

    def values(self) -> tuple[complex, complex]:
        return (complex(self.real, self.imag), complex(self.real, -self.imag))


Eigenvalue = Union[RealEigenvalue, ComplexPairBlock]


# === QR ===

@dataclass(frozen=True)
class QRParams(Generic[M]):
    """Factor payload for QR."""
    Q: M
    R: M
    rank: int
    mode: str


@dataclass
class QRResult(Generic[M]):
    """
    User-facing QR results.

    Wraps the engine Result and adds least-squares solving and
    reconstruction on top of the factors.
    """
    _result: Result[QRParams[M]]

    @property
    def Q(self) -> M:
        return self._result.params.Q

    @property
    def R(self) -> M:
        return self._result.params.R

    @property
    def rank(self) -> int:
        return self._result.params.rank

    @property
    def mode(self) -> str:
        return self._result.params.mode

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def reconstruct(self) -> M:
        """Q R, equal to the input up to round-off."""
        return self.Q.dot(self.R)

    def solve(self, b: M) -> M:
        """
        Least-squares solution of A x = b.

        Solves R x = Q^T b by back substitution.

        Args:
            b: Right-hand side, m x p

        Returns:
            x, n x p

        Raises:
            DimensionError: If b does not have m rows
            SingularMatrixError: If R is numerically rank-deficient
        """
        m = self.Q.shape()[0]
        n = self.R.shape()[1]
        if b.shape()[0] != m:
            raise DimensionError(
                f"b: expected {m} rows, got shape {b.shape()}"
            )
        if self.rank < n:
            raise SingularMatrixError(
                f"R has numerical rank {self.rank} < {n}; "
                f"least-squares solution is not unique",
                matrix_name='R',
                rank=self.rank,
                expected_rank=n,
            )
        qtb = self.Q.transpose().dot(b)
        p = b.shape()[1]
        return back_substitute(
            self.R.slice(range(n), range(n)),
            qtb.slice(range(n), range(p)),
        )

    def summary(self) -> str:
        m, n = self.Q.shape()[0], self.R.shape()[1]
        lines = [
            "QR Decomposition",
            "=" * 40,
            f"Shape: {m} x {n} ({self.mode})",
            f"Rank: {self.rank}",
            f"Reflections: {self.info.get('reflections')}",
        ]
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)


# === EVD ===

@dataclass(frozen=True)
class EVDParams(Generic[M]):
    """Factor payload for the eigen-decomposition."""
    eigenvalues: tuple[Eigenvalue, ...]
    V: M
    symmetric: bool


@dataclass
class EVDResult(Generic[M]):
    """
    User-facing eigen-decomposition results.

    eigenvalues is a sequence of blocks ordered by real part, descending.
    A ComplexPairBlock occupies two consecutive columns of V, so that
    A V = V Lambda holds with Lambda = eigenvalue_matrix().
    """
    _result: Result[EVDParams[M]]

    @property
    def eigenvalues(self) -> tuple[Eigenvalue, ...]:
        return self._result.params.eigenvalues

    @property
    def V(self) -> M:
        return self._result.params.V

    @property
    def symmetric(self) -> bool:
        return self._result.params.symmetric

    @property
    def real_parts(self) -> list[float]:
        """Real part of each eigenvalue, one entry per column of V."""
        parts: list[float] = []
        for ev in self.eigenvalues:
            parts.extend([ev.real] * ev.size)
        return parts

    @property
    def imag_parts(self) -> list[float]:
        """Imaginary part of each eigenvalue; a pair contributes +b then -b."""
        parts: list[float] = []
        for ev in self.eigenvalues:
            if ev.size == 1:
                parts.append(0.0)
            else:
                parts.extend([ev.imag, -ev.imag])
        return parts

    @property
    def has_complex(self) -> bool:
        return any(ev.size == 2 for ev in self.eigenvalues)

    @property
    def iterations(self) -> int:
        return self._result.info['iterations']

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def eigenvalue_matrix(self) -> M:
        """Block-diagonal Lambda in the column order of V."""
        n = self.V.shape()[1]
        lam = type(self.V).zeros(n, n)
        pos = 0
        for ev in self.eigenvalues:
            if isinstance(ev, RealEigenvalue):
                lam.set(pos, pos, ev.value)
            else:
                for i in range(2):
                    for j in range(2):
                        lam.set(pos + i, pos + j, ev.block[i][j])
            pos += ev.size
        return lam

    def residual(self, matrix: M) -> float:
        """max |A V - V Lambda|"""
        return matrix.dot(self.V).max_diff(self.V.dot(self.eigenvalue_matrix()))

    def summary(self) -> str:
        lines = [
            "Eigen-decomposition",
            "=" * 40,
            f"Order: {self.V.shape()[0]}",
            f"Symmetric: {self.symmetric}",
            f"Iterations: {self.iterations}",
            "",
            "Eigenvalues:",
        ]
        for ev in self.eigenvalues:
            if ev.size == 1:
                lines.append(f"  {ev.real: .6g}")
            else:
                lines.append(f"  {ev.real: .6g} +/- {ev.imag:.6g}i")
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)


# === SVD ===

@dataclass(frozen=True)
class SVDParams(Generic[M]):
    """Factor payload for the SVD (thin form)."""
    U: M
    s: tuple[float, ...]
    V: M
    rank: int


@dataclass
class SVDResult(Generic[M]):
    """
    User-facing SVD results.

    A = U S V^T with U m x k, V n x k, k = min(m, n) and singular values s
    non-negative and sorted descending.
    """
    _result: Result[SVDParams[M]]

    @property
    def U(self) -> M:
        return self._result.params.U

    @property
    def s(self) -> tuple[float, ...]:
        return self._result.params.s

    @property
    def V(self) -> M:
        return self._result.params.V

    @property
    def iterations(self) -> int:
        return self._result.info['iterations']

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def _shape(self) -> tuple[int, int]:
        return (self.U.shape()[0], self.V.shape()[0])

    def S(self) -> M:
        """Singular values as a k x k diagonal matrix."""
        k = len(self.s)
        out = type(self.U).zeros(k, k)
        for i, sigma in enumerate(self.s):
            out.set(i, i, sigma)
        return out

    def rank(self, tol: float | None = None) -> int:
        """
        Number of singular values above tol.

        With tol=None the threshold is max(m, n) * eps * s[0].
        """
        if tol is None:
            tol = rank_threshold(list(self.s), self._shape())
        return sum(1 for sigma in self.s if sigma > tol)

    def reconstruct(self) -> M:
        """U S V^T"""
        return self.U.dot(self.S()).dot(self.V.transpose())

    def solve(self, b: M) -> M:
        """
        Minimum-norm least-squares solution x = V S^+ U^T b.

        Singular values at or below the rank threshold are treated as zero.

        Args:
            b: Right-hand side, m x p

        Returns:
            x, n x p

        Raises:
            DimensionError: If b does not have m rows
        """
        m, _ = self._shape()
        if b.shape()[0] != m:
            raise DimensionError(
                f"b: expected {m} rows, got shape {b.shape()}"
            )
        rank = self.rank()
        coeffs = self.U.transpose().dot(b)
        for i, sigma in enumerate(self.s):
            for j in range(coeffs.shape()[1]):
                if i < rank:
                    coeffs.set(i, j, coeffs.get(i, j) / sigma)
                else:
                    coeffs.set(i, j, 0.0)
        return self.V.dot(coeffs)

    def summary(self) -> str:
        m, n = self._shape()
        lines = [
            "Singular Value Decomposition",
            "=" * 40,
            f"Shape: {m} x {n}",
            f"Rank: {self.rank()}",
            f"Iterations: {self.iterations}",
            "",
            "Singular values:",
        ]
        lines.extend(f"  {sigma:.6g}" for sigma in self.s)
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)
