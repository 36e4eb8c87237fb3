"""
Deterministic starting-point probes.

A formula may be undefined at an arbitrary guess (division by zero, log of
a non-positive number), so candidates are tried in a fixed order and the
first one that evaluates finitely is used. The same sequence doubles as
the parse-time check that a model can be evaluated at all.
"""

import numpy as np
from numpy.typing import NDArray

from fitme.core.compute.tolerances import FALLBACK_START_VALUE


def starting_candidates(k: int) -> list[tuple[str, NDArray[np.float64]]]:
    """
    Probe vectors of length k, in the order they are tried.

    Returns:
        (label, vector) pairs: zeros, ones, halves, index sequence
    """
    return [
        ('zeros', np.zeros(k, dtype=np.float64)),
        ('ones', np.ones(k, dtype=np.float64)),
        ('halves', np.full(k, 0.5, dtype=np.float64)),
        ('index', np.arange(k, dtype=np.float64)),
    ]


def fallback_start(k: int) -> NDArray[np.float64]:
    """Last-resort start used when no probe is finite on the first row."""
    return np.full(k, FALLBACK_START_VALUE, dtype=np.float64)
