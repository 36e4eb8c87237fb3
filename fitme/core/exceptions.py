"""
Exception hierarchy for fitme.

All exceptions inherit from FitmeError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Context is added by chaining (raise ... from ...), never by
      re-raising with less information
"""


class FitmeError(Exception):
    """Base exception for all fitme errors."""
    pass


class ParseError(FitmeError):
    """
    Formula could not be parsed or is not evaluable.

    Attributes:
        formula: The original formula text, always present
        position: 0-based character offset of the offending token, if known
    """

    def __init__(self, message: str, formula: str, position: int | None = None):
        super().__init__(message)
        self.formula = formula
        self.position = position


class ValidationError(FitmeError):
    """
    Input validation failed.

    Raised when user-provided inputs (data, targets, formulas) fail
    validation checks before any optimisation work begins.
    """
    pass


class DimensionError(ValidationError):
    """
    Row lengths are inconsistent with the headers.

    Attributes:
        row: 0-based index of the offending row, if known
    """

    def __init__(self, message: str, row: int | None = None):
        super().__init__(message)
        self.row = row


class ColumnNotFoundError(ValidationError):
    """
    A requested column has no matching header.

    Attributes:
        column: The name that was looked up
        help: Fuzzy-match suggestion text
    """

    def __init__(self, message: str, column: str, help: str):
        super().__init__(message)
        self.column = column
        self.help = help


class NonNumericCellError(ValidationError):
    """
    A cell in a column required by the fit is not a number.

    Attributes:
        row: 0-based row index
        column: 0-based column index
        value: The offending cell text
    """

    def __init__(self, message: str, row: int, column: int, value: str):
        super().__init__(message)
        self.row = row
        self.column = column
        self.value = value


class ZeroParametersError(ValidationError):
    """
    The formula has no free parameters to fit.

    Attributes:
        formula: The original formula text
    """

    def __init__(self, message: str, formula: str):
        super().__init__(message)
        self.formula = formula


class SolveError(FitmeError):
    """
    The optimiser failed.

    Base class for singular Jacobians, non-convergence and hard
    evaluation faults.
    """
    pass


class SingularMatrixError(SolveError):
    """
    Matrix is singular or nearly singular.

    Raised when the residual Jacobian at the optimum is rank-deficient,
    so the parameter covariance cannot be computed.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank (the number of parameters)
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank


class ConvergenceError(SolveError):
    """
    Iterative algorithm failed to converge.

    Attributes:
        iterations: Number of iterations completed
        final_change: Final relative change in the sum of squares
        reason: Why convergence failed (e.g., 'max_iterations')
        threshold: The convergence threshold that was not met
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold


class EvaluationError(SolveError):
    """The model could not be evaluated at all (not merely non-finite)."""
    pass


class SummaryError(FitmeError):
    """
    Post-fit statistics could not be computed.

    Attributes:
        row: 0-based row index where prediction failed, if applicable
    """

    def __init__(self, message: str, row: int | None = None):
        super().__init__(message)
        self.row = row


class DegenerateStatisticsError(SummaryError):
    """
    Not enough degrees of freedom for standard errors.

    Attributes:
        n: Number of observations
        k: Number of parameters
    """

    def __init__(self, message: str, n: int, k: int):
        super().__init__(message)
        self.n = n
        self.k = k
