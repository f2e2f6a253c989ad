"""
Wall-clock timing for the decomposition engines.

Every engine wraps its phases (reduction, iteration, back substitution) in
named sections so a Result can report where the time went. Only
time.perf_counter() is used; all engines run synchronously on the
calling thread.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Overall stopwatch plus named, accumulating phase timers.

    Usage:
        timer = Timer()
        timer.start()
        with timer.section('reduction'):
            hessenberg_reduce(h, v, symmetric)
        with timer.section('iteration'):
            ...
        timer.stop()
        timer.result()
        # {'total_seconds': 0.04, 'reduction': 0.01, 'iteration': 0.03}

    A section entered more than once reports the sum of its runs. Sections
    are not required to be disjoint, and nothing checks that they add up
    to the total.
    """

    def __init__(self):
        self._phases: dict[str, float] = {}
        self._t0: float | None = None
        self._total: float | None = None

    def start(self) -> None:
        self._t0 = time.perf_counter()

    def stop(self) -> None:
        if self._t0 is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = time.perf_counter() - self._t0

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Add the time spent inside the block to phase `name`."""
        t0 = time.perf_counter()
        try:
            yield
        finally:
            spent = time.perf_counter() - t0
            self._phases[name] = self._phases.get(name, 0.0) + spent

    def result(self) -> dict[str, float]:
        """
        Timing dict for Result.timing.

        Returns:
            {'total_seconds': ..., <phase>: ...} with phases in the order
            they were first entered

        Raises:
            RuntimeError: If the timer has not been stopped
        """
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {'total_seconds': self._total, **self._phases}


@contextmanager
def timed() -> Iterator[Timer]:
    """
    Time a block of caller code with a fresh Timer.

    Usage:
        with timed() as timer:
            svd = svd_decompose(a)
        timer.result()['total_seconds']
    """
    timer = Timer()
    timer.start()
    try:
        yield timer
    finally:
        timer.stop()
