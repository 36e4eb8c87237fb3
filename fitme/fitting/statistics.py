"""
Goodness-of-fit statistics for a fitted model.

Given the data, the model, the fitted parameter vector and the covariance
diagonal diag((J'J)^-1) from the solver, computes:

    dfr   = n - k - 1
    ssr   = sum (y - yhat)^2          (residual sum of squares)
    sse   = sum (yhat - ybar)^2       (explained sum of squares)
    rmsr  = sqrt(ssr / dfr)
    R^2   = 1 - ssr / (ssr + sse)
    adjR2 = 1 - (1 - R^2)(n - 1) / dfr
    se_i  = sqrt(cov_i) * rmsr
    t_i   = p_i / se_i

The degrees of freedom reserve one for an implicit intercept whether or
not the formula has one; this matches the usual reporting convention and
is kept as is.
"""

import numpy as np
from numpy.typing import ArrayLike

from fitme.core.datasource import Dataset
from fitme.core.exceptions import DegenerateStatisticsError, SummaryError
from fitme.expression.model import ExpressionModel
from fitme.fitting.solution import FitResult


def degrees_of_freedom(n: int, k: int) -> int:
    """Residual degrees of freedom n - k - 1."""
    return n - k - 1


def check_degrees_of_freedom(n: int, k: int) -> None:
    """
    Raises:
        DegenerateStatisticsError: If n - k - 1 <= 0
    """
    dfr = degrees_of_freedom(n, k)
    if dfr <= 0:
        raise DegenerateStatisticsError(
            f"not enough observations for fit statistics: {n} observations and "
            f"{k} parameters leave {dfr} residual degrees of freedom "
            f"(need at least {k + 2} observations)",
            n=n,
            k=k,
        )


def summarize(
    data: Dataset,
    model: ExpressionModel,
    target_column: int | str,
    fitted_params: ArrayLike,
    covariance_diagonal: ArrayLike,
) -> FitResult:
    """
    Compute FitResult for a fitted parameter vector.

    Args:
        data: Observations
        model: The fitted model
        target_column: Target column index or header name
        fitted_params: Parameter values, in model.params order
        covariance_diagonal: diag((J'J)^-1) at the optimum

    Returns:
        FitResult

    Raises:
        SummaryError: If a row cannot be predicted or yields a non-finite value
        DegenerateStatisticsError: If n - k - 1 <= 0
    """
    params = np.asarray(fitted_params, dtype=np.float64)
    cov = np.asarray(covariance_diagonal, dtype=np.float64)
    if isinstance(target_column, str):
        target_column = data.headers.resolve(target_column)

    n = len(data)
    k = model.params_len()

    # === Target and predictions ===
    y = np.empty(n, dtype=np.float64)
    yhat = np.empty(n, dtype=np.float64)
    for i, row in enumerate(data.rows):
        cell = row[target_column]
        if isinstance(cell, str):
            raise SummaryError(
                f"target value '{cell}' is not a number (row index {i})", row=i
            )
        y[i] = cell

        prediction = model.solve(params, row)
        if prediction is None:
            raise SummaryError(
                f"failed to predict row index {i}: a referenced cell is not a number",
                row=i,
            )
        if not np.isfinite(prediction):
            raise SummaryError(
                f"prediction for row index {i} is not finite ({prediction})", row=i
            )
        yhat[i] = prediction

    y_mean = float(np.mean(y)) if n else float('nan')

    # === Degrees of freedom ===
    check_degrees_of_freedom(n, k)
    dfr = degrees_of_freedom(n, k)

    # === Sums of squares ===
    ssr = float(np.sum((y - yhat) ** 2))
    sse = float(np.sum((yhat - y_mean) ** 2))
    rmsr = float(np.sqrt(ssr / dfr))

    total = ssr + sse
    if total == 0:
        r_squared = 1.0 if ssr == 0 else 0.0
    else:
        r_squared = 1.0 - ssr / total
    adjusted_r_squared = 1.0 - (1.0 - r_squared) * (n - 1) / dfr

    # === Parameter statistics ===
    with np.errstate(divide='ignore', invalid='ignore'):
        se = np.sqrt(cov) * rmsr
        t = params / se
        t = np.where(np.isfinite(t), t, np.nan)

    return FitResult(
        parameter_names=model.params,
        parameter_values=tuple(float(v) for v in params),
        n=n,
        standard_errors=tuple(float(v) for v in se),
        t_values=tuple(float(v) for v in t),
        rmsr=rmsr,
        adjusted_r_squared=float(adjusted_r_squared),
    )
