"""
Phase timing for fitting backends.

A backend wraps each phase of a fit (Jacobian, damped solves, covariance)
in a named section. Sections entered once per iteration accumulate both
their elapsed time and how often they ran, so the Result envelope can say
where a fit spent its time and how many Jacobians it needed.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Wall-clock timer with named, accumulating sections.

    Usage:
        timer = Timer()
        timer.start()
        for _ in range(n_iter):
            with timer.section('jacobian'):
                J = jacobian(design, p, tolerances)
        timer.stop()

        timer.result()   # {'total_seconds': 0.05, 'jacobian': 0.03}
        timer.counts()   # {'jacobian': n_iter}
    """

    def __init__(self) -> None:
        self._elapsed: dict[str, float] = {}
        self._calls: dict[str, int] = {}
        self._started_at: float | None = None
        self._total: float | None = None

    def start(self) -> None:
        self._started_at = time.perf_counter()

    def stop(self) -> None:
        if self._started_at is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = time.perf_counter() - self._started_at

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Time one pass through a named phase; repeated passes add up."""
        began = time.perf_counter()
        try:
            yield
        finally:
            self._elapsed[name] = self._elapsed.get(name, 0.0) + (
                time.perf_counter() - began
            )
            self._calls[name] = self._calls.get(name, 0) + 1

    def counts(self) -> dict[str, int]:
        """Number of passes through each section."""
        return dict(self._calls)

    def result(self) -> dict[str, float]:
        """
        Elapsed seconds: 'total_seconds' plus one entry per section.

        Raises:
            RuntimeError: If called before stop()
        """
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {'total_seconds': self._total, **self._elapsed}
