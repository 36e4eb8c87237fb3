"""
Generic result container for fitme computations.

The Result class is the envelope that every backend returns. Timing,
diagnostics and warnings travel with the payload so the public entry point
can report them without knowing which backend ran.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (converged, iterations, start probe)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field, replace
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for a fit.

    Type Parameters:
        P: The backend's parameter payload type

    Attributes:
        params: Backend payload (fitted values, covariance diagonal, ...)
        info: Structured metadata (method, convergence, diagnostics)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=FitParams(...),
        ...     info={'method': 'levenberg_marquardt', 'iterations': 7},
        ...     timing={'total_seconds': 0.01, 'jacobian': 0.004},
        ...     backend_name='cpu_lm'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)

    def annotated(
        self, info: dict[str, Any], leading_warnings: tuple[str, ...] = ()
    ) -> 'Result[P]':
        """
        Copy with extra info keys and warnings raised before the backend ran.

        Used by fit() to record which starting probe was used; the backend's
        own warnings keep their order after leading_warnings.
        """
        return replace(
            self,
            info={**self.info, **info},
            warnings=tuple(leading_warnings) + self.warnings,
        )
