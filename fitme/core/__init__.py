"""
Core infrastructure for fitme.

This module provides shared abstractions used by the expression and
fitting subpackages.

Key components:
    exceptions: Exception hierarchy
    result: Generic Result[P] envelope
    protocols: Backend protocol
    validation: Input validators
    headers: HeaderIndex column lookup
    datasource: Dataset (rows of number/text cells)
    compute: Timing, tolerances, linear algebra
"""

from fitme.core.protocols import Backend
from fitme.core.result import Result
from fitme.core.headers import HeaderIndex
from fitme.core.datasource import Dataset, Cell, parse_cell
from fitme.core.exceptions import (
    FitmeError,
    ParseError,
    ValidationError,
    DimensionError,
    ColumnNotFoundError,
    NonNumericCellError,
    ZeroParametersError,
    SolveError,
    SingularMatrixError,
    ConvergenceError,
    EvaluationError,
    SummaryError,
    DegenerateStatisticsError,
)

__all__ = [
    # Protocols
    "Backend",
    # Result
    "Result",
    # Data
    "HeaderIndex",
    "Dataset",
    "Cell",
    "parse_cell",
    # Exceptions
    "FitmeError",
    "ParseError",
    "ValidationError",
    "DimensionError",
    "ColumnNotFoundError",
    "NonNumericCellError",
    "ZeroParametersError",
    "SolveError",
    "SingularMatrixError",
    "ConvergenceError",
    "EvaluationError",
    "SummaryError",
    "DegenerateStatisticsError",
]
