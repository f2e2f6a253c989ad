"""
Convergence settings for the iterative engines.

The tolerance and the iteration cap are the only configuration surface of
the library. Both are keyword arguments of evd_decompose() and
svd_decompose(); this module turns them into a validated, immutable
ConvergenceCriteria.

Defaults:
    tol:       DEFAULT_TOL, a small multiple of float64 epsilon, applied
               relative to the neighbouring diagonal entries
    max_iter:  DEFAULT_MAX_ITER QR sweeps per deflated eigenvalue or
               singular value
"""

from dataclasses import dataclass

from pydecomp.core.exceptions import ValidationError
from pydecomp.core.compute.precision import DEFAULT_TOL


DEFAULT_MAX_ITER: int = 200

# Sweeps without progress before an exceptional shift is tried
EXCEPTIONAL_SHIFT_PERIOD: int = 10

# Largest |a[i, j] - a[j, i]| accepted as symmetric, relative to max|a|
SYMMETRY_RTOL: float = 1e-12


@dataclass(frozen=True)
class ConvergenceCriteria:
    """Validated convergence settings."""
    tol: float = DEFAULT_TOL
    max_iter: int = DEFAULT_MAX_ITER

    def __post_init__(self) -> None:
        if not (self.tol > 0.0) or self.tol >= 1.0:
            raise ValidationError(f"tol: must be in (0, 1), got {self.tol}")
        if isinstance(self.max_iter, bool) or not isinstance(self.max_iter, int):
            raise ValidationError(
                f"max_iter: expected int, got {type(self.max_iter).__name__}"
            )
        if self.max_iter < 1:
            raise ValidationError(f"max_iter: must be >= 1, got {self.max_iter}")


def resolve_criteria(
    tol: float | None = None,
    max_iter: int | None = None,
) -> ConvergenceCriteria:
    """Build ConvergenceCriteria, substituting defaults for None."""
    return ConvergenceCriteria(
        tol=DEFAULT_TOL if tol is None else float(tol),
        max_iter=DEFAULT_MAX_ITER if max_iter is None else max_iter,
    )


DEFAULT_CRITERIA = ConvergenceCriteria()
