"""
Core protocols for fitme.

These define structural interfaces that solver backends must satisfy.
We use Protocol (structural typing) rather than ABC (nominal typing) so a
backend only has to look right, not inherit from anything.
"""

from typing import Protocol, TypeVar, TYPE_CHECKING, runtime_checkable

from numpy.typing import NDArray

if TYPE_CHECKING:
    from fitme.core.result import Result

D = TypeVar('D', contravariant=True)  # Design type
P = TypeVar('P', covariant=True)  # Parameter payload type


@runtime_checkable
class Backend(Protocol[D, P]):
    """
    Protocol for solver backends.

    A backend takes a validated design and produces a parameter payload
    wrapped in a Result envelope. Backends are stateless; tolerances are
    passed at construction time.

    Type Parameters:
        D: The design type this backend accepts
        P: The parameter payload type this backend produces
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Convention: '{device}_{algorithm}'
        Examples: 'cpu_lm', 'cpu_minpack'
        """
        ...

    def solve(self, design: D, start: NDArray) -> 'Result[P]':
        """
        Run the optimisation.

        Args:
            design: Validated design (model, data, target)
            start: Initial parameter vector

        Returns:
            Result envelope containing the parameter payload and metadata

        Raises:
            ConvergenceError: If the iteration cap is reached
            SingularMatrixError: If the covariance cannot be computed
            EvaluationError: If the model cannot be evaluated
        """
        ...
