"""
Numerical precision constants and utilities.

Provides machine epsilon, the power-of-two scaling applied to engine input,
and the scaled comparisons the iterative engines use to decide when an
off-diagonal entry has become negligible.
"""

import math

import numpy as np


# Machine epsilon for float64
EPSILON_64: float = float(np.finfo(np.float64).eps)  # ~2.22e-16

# Default relative tolerance for deflation tests
DEFAULT_TOL: float = 8 * EPSILON_64


def power_of_two_scale(largest: float) -> float:
    """
    Power of two s with largest / s in [1, 2).

    Dividing a matrix by s moves its biggest entry to order one without
    rounding any normal-range entry, so squares and products formed
    during the iteration neither overflow nor underflow; multiplying the
    computed eigenvalues or singular values by s undoes it exactly.

    Returns:
        s, or 1.0 when largest is zero or not finite
    """
    if largest == 0.0 or not math.isfinite(largest):
        return 1.0
    _, exponent = math.frexp(largest)
    return math.ldexp(1.0, exponent - 1)


def is_negligible(
    value: float,
    left: float,
    right: float,
    tol: float,
    fallback_scale: float
) -> bool:
    """
    Decide whether an off-diagonal entry can be set to zero.
    
    The entry is compared against its two diagonal neighbours:
        |value| <= tol * (|left| + |right|)
    When both neighbours vanish the comparison falls back to
    tol * fallback_scale (typically a norm of the active block), so a
    zero block still deflates.
    
    Args:
        value: Off-diagonal entry
        left, right: Adjacent diagonal entries
        tol: Relative tolerance
        fallback_scale: Scale used when both neighbours are zero
        
    Returns:
        True if value is negligible
    """
    scale = abs(left) + abs(right)
    if scale == 0.0:
        scale = fallback_scale
    return abs(value) <= tol * scale


def rank_threshold(diagonal: list[float], shape: tuple[int, int]) -> float:
    """
    Tolerance below which a diagonal magnitude counts as zero.
    
    Same rule used for R (QR) and the singular values (SVD):
        max(m, n) * eps * max|d|
    
    Returns:
        The threshold (0.0 for an empty or all-zero diagonal)
    """
    if not diagonal:
        return 0.0
    largest = max(abs(d) for d in diagonal)
    return max(shape) * EPSILON_64 * largest


def numerical_rank(diagonal: list[float], shape: tuple[int, int]) -> int:
    """Count diagonal magnitudes strictly above rank_threshold()."""
    tol = rank_threshold(diagonal, shape)
    if tol == 0.0:
        return sum(1 for d in diagonal if d != 0.0)
    return sum(1 for d in diagonal if abs(d) > tol)
