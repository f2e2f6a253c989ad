"""
Decomposition engines.

Each engine implements the Engine protocol: a name and solve(matrix)
returning a Result envelope. Input validation happens in solvers.py.
"""

from pydecomp.decomposition.engines.qr import QREngine, householder_qr
from pydecomp.decomposition.engines.evd import EVDEngine
from pydecomp.decomposition.engines.svd import SVDEngine

__all__ = [
    "QREngine",
    "EVDEngine",
    "SVDEngine",
    "householder_qr",
]
