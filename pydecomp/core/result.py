"""
Result envelope shared by the QR, EVD and SVD engines.

Each engine returns Result[P], where P is its factor payload (QRParams,
EVDParams, SVDParams). The solution wrappers in
pydecomp.decomposition.solution read factors from `params` and
diagnostics from the other fields:

    info      method, convergence flag, sweep count, rank, tol, max_iter
    timing    Timer.result() of the run, or None when not measured
    warnings  non-fatal conditions such as rank deficiency or complex
              eigenvalue pairs

The envelope is frozen. The factor matrices inside it are ordinary mutable
matrices owned by the caller.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

P = TypeVar('P')


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    What an engine produced and how.

    Attributes:
        params: Factor payload
        info: Engine metadata
        timing: Phase timings in seconds, or None
        backend_name: Engine.name of the producer
        warnings: Non-fatal conditions, one message each

    Example:
        >>> Result(
        ...     params=QRParams(Q=q, R=r, rank=2, mode='reduced'),
        ...     info={'method': 'householder', 'rank': 2, 'reflections': 2},
        ...     timing=None,
        ...     backend_name='householder_qr',
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """True if some warning message contains substring."""
        return any(substring in w for w in self.warnings)
