"""
Shared compute infrastructure for pydecomp.

This module provides timing utilities, precision constants and the
convergence settings shared by all decomposition engines.

Submodules:
    timing: Execution timing utilities
    precision: Machine epsilon and negligibility tests
    tolerances: Convergence criteria (tol, max_iter)
"""

from pydecomp.core.compute.timing import Timer, timed
from pydecomp.core.compute.precision import EPSILON_64, DEFAULT_TOL
from pydecomp.core.compute.tolerances import (
    ConvergenceCriteria,
    DEFAULT_MAX_ITER,
    resolve_criteria,
)

__all__ = [
    # Timing
    "Timer",
    "timed",
    # Precision
    "EPSILON_64",
    "DEFAULT_TOL",
    # Convergence
    "ConvergenceCriteria",
    "DEFAULT_MAX_ITER",
    "resolve_criteria",
]
