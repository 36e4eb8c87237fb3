"""
Solver dispatch for fitting.

This module provides the fit() function (public API) and backend selection.
"""

from __future__ import annotations

import dataclasses
import warnings
from typing import Literal, TYPE_CHECKING

from fitme.core.compute.tolerances import DEFAULT_TOLERANCES, SolverTolerances
from fitme.core.datasource import Dataset
from fitme.core.validation import check_positive_float, check_positive_int
from fitme.expression.model import ExpressionModel
from fitme.fitting._start import find_start
from fitme.fitting.backends.cpu import CPULevenbergMarquardtBackend
from fitme.fitting.backends.cpu_minpack import CPUMinpackBackend
from fitme.fitting.design import FitDesign
from fitme.fitting.solution import FitSolution
from fitme.fitting.statistics import check_degrees_of_freedom, summarize

if TYPE_CHECKING:
    import pandas as pd


# Type alias for backend selection
BackendChoice = Literal['auto', 'cpu', 'cpu_lm', 'cpu_minpack']


def fit(
    model: ExpressionModel | str,
    data: Dataset | 'pd.DataFrame',
    target: int | str,
    *,
    backend: BackendChoice = 'auto',
    max_iter: int | None = None,
    ftol: float | None = None,
    xtol: float | None = None,
) -> FitSolution:
    """
    Fit a formula to data by nonlinear least squares.

    Minimises sum_i (y_i - f(p; row_i))^2 over the free parameters p of
    the formula, then computes standard errors, t-values, the RMS residual
    and adjusted R^2.

    This is the primary public API. All input validation, backend
    selection, and result wrapping happens here.

    Args:
        model: Parsed ExpressionModel, or formula text to parse against
            the data's headers
        data: Dataset or pandas DataFrame
        target: Target column name (case/whitespace-insensitive) or index
        backend: Computational backend to use:
            - 'auto' / 'cpu' / 'cpu_lm': Levenberg-Marquardt reference
            - 'cpu_minpack': MINPACK via scipy.optimize.least_squares
        max_iter: Iteration cap (default 200)
        ftol: Relative sum-of-squares reduction tolerance (default 1e-10)
        xtol: Relative step size tolerance (default 1e-10)

    Returns:
        FitSolution with fitted values, statistics and summary()

    Raises:
        ParseError: If model is formula text that fails to parse
        ZeroParametersError: If the formula has no free parameters
        ColumnNotFoundError: If the target column does not exist
        NonNumericCellError: If a referenced cell is not a number
        DegenerateStatisticsError: If n - k - 1 <= 0
        ConvergenceError: If the iteration cap is reached
        SingularMatrixError: If parameters are not identifiable
        ValueError: If backend is unknown

    Example:
        >>> from fitme import Dataset, fit
        >>> data = Dataset.from_file("data.csv")
        >>> solution = fit("m * x + c", data, "y")
        >>> print(solution.summary())
    """
    # === Input Validation ===
    # This is the boundary - validate here, trust everywhere else
    if not isinstance(data, Dataset):
        data = Dataset.from_dataframe(data)
    if isinstance(model, str):
        model = ExpressionModel.parse(model, data.headers)

    tolerances = _tolerances(max_iter=max_iter, ftol=ftol, xtol=xtol)

    # === Construct Design ===
    design = FitDesign.build(model, data, target)
    check_degrees_of_freedom(design.n, design.k)

    # === Select Backend ===
    backend_impl = _get_backend(backend, tolerances)

    # === Solve ===
    start, start_label, start_warning = find_start(model, data.row(0))
    if start_warning:
        # before solving, which may raise
        warnings.warn(start_warning, RuntimeWarning, stacklevel=2)

    result = backend_impl.solve(design, start)
    for message in result.warnings:
        warnings.warn(message, RuntimeWarning, stacklevel=2)

    result = result.annotated(
        {'start': start_label},
        (start_warning,) if start_warning else (),
    )

    # === Statistics ===
    fit_result = summarize(
        data,
        model,
        design.target_index,
        result.params.parameter_values,
        result.params.covariance_diagonal,
    )

    # === Wrap and Return ===
    return FitSolution(_result=result, _design=design, _fit_result=fit_result)


def _tolerances(
    *, max_iter: int | None, ftol: float | None, xtol: float | None
) -> SolverTolerances:
    overrides = {}
    if max_iter is not None:
        overrides['max_iter'] = check_positive_int(max_iter, 'max_iter')
    if ftol is not None:
        overrides['ftol'] = check_positive_float(ftol, 'ftol')
    if xtol is not None:
        overrides['xtol'] = check_positive_float(xtol, 'xtol')
    if not overrides:
        return DEFAULT_TOLERANCES
    return dataclasses.replace(DEFAULT_TOLERANCES, **overrides)


def _get_backend(choice: BackendChoice, tolerances: SolverTolerances):
    """
    Select and instantiate the appropriate backend.

    Raises:
        ValueError: If unknown backend specified
    """
    if choice in ('auto', 'cpu', 'cpu_lm'):
        return CPULevenbergMarquardtBackend(tolerances)

    elif choice == 'cpu_minpack':
        return CPUMinpackBackend(tolerances)

    else:
        raise ValueError(f"Unknown backend: {choice!r}")
