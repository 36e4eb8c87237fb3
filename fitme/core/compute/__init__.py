"""
Shared numeric infrastructure for fitme.

IMPORTANT: This is NOT where solver backends live. Those go in
fitme/fitting/backends/. This module contains shared NUMERIC infrastructure.

Submodules:
    timing: Execution timing utilities
    tolerances: Solver stopping/damping constants
    linalg: QR rank detection and covariance kernels
    probes: Deterministic starting-point candidates
"""

from fitme.core.compute.timing import Timer
from fitme.core.compute.tolerances import SolverTolerances, DEFAULT_TOLERANCES
from fitme.core.compute.linalg import QRResult, qr_cpu, covariance_diagonal
from fitme.core.compute.probes import starting_candidates, fallback_start

__all__ = [
    # Timing
    "Timer",
    # Tolerances
    "SolverTolerances",
    "DEFAULT_TOLERANCES",
    # Linear algebra
    "QRResult",
    "qr_cpu",
    "covariance_diagonal",
    # Starting points
    "starting_candidates",
    "fallback_start",
]
