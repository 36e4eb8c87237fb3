"""
Fitting design.

FitDesign binds an ExpressionModel to a Dataset and a target column and
extracts the numeric arrays the backends iterate on. Every precondition of
a fit is checked here, once, before any iteration starts; backends trust
the design they are handed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from fitme.core.datasource import Dataset
from fitme.core.exceptions import (
    ColumnNotFoundError,
    NonNumericCellError,
    ValidationError,
    ZeroParametersError,
)
from fitme.core.validation import check_finite
from fitme.expression.model import ExpressionModel


@dataclass(frozen=True)
class FitDesign:
    """
    Validated (model, data, target) triple.

    Construct with FitDesign.build(). Immutable after construction.
    """
    _model: ExpressionModel
    _data: Dataset
    _target_index: int
    _y: NDArray[np.float64]
    _columns: NDArray[np.float64]

    @classmethod
    def build(
        cls, model: ExpressionModel, data: Dataset, target: int | str
    ) -> FitDesign:
        """
        Validate inputs and extract the target vector and variable columns.

        Checks, in order:
            1. The model has at least one free parameter
            2. The target resolves to a column
            3. There is at least one row
            4. Every referenced cell is numeric (row by row, target first)
            5. Every referenced value is finite

        Raises:
            ZeroParametersError: If the model has no free parameters
            ColumnNotFoundError: If the target does not match a header
            ValidationError: If there are no rows or values are not finite
            NonNumericCellError: At the first text cell in a referenced column
        """
        if model.params_len() == 0:
            raise ZeroParametersError(
                f"supplied expr '{model.expr}' has no free parameters; at least "
                f"one identifier must not match a column header",
                formula=model.expr,
            )

        target_index = _resolve_target(data, target)

        if data.is_empty():
            raise ValidationError("data has no rows to fit")

        referenced = (target_index,) + model.columns
        for i, row in enumerate(data.rows):
            for col in referenced:
                cell = row[col]
                if isinstance(cell, str):
                    raise NonNumericCellError(
                        f"failed to parse '{cell}' as number "
                        f"(row index {i}, column index {col})",
                        row=i,
                        column=col,
                        value=cell,
                    )

        y = np.array([row[target_index] for row in data.rows], dtype=np.float64)
        if model.columns:
            columns = np.array(
                [[row[c] for c in model.columns] for row in data.rows],
                dtype=np.float64,
            )
        else:
            columns = np.empty((len(data), 0), dtype=np.float64)

        check_finite(y, f"target column '{data.headers[target_index]}'")
        for j, (name, col) in enumerate(model.bindings):
            check_finite(columns[:, j], f"column '{data.headers[col]}' (bound to {name})")

        return cls(
            _model=model,
            _data=data,
            _target_index=target_index,
            _y=y,
            _columns=columns,
        )

    # === Properties ===

    @property
    def model(self) -> ExpressionModel:
        return self._model

    @property
    def data(self) -> Dataset:
        return self._data

    @property
    def target_index(self) -> int:
        return self._target_index

    @property
    def target_name(self) -> str:
        return self._data.headers[self._target_index]

    @property
    def y(self) -> NDArray[np.float64]:
        """Target vector (n,)."""
        return self._y

    @property
    def columns(self) -> NDArray[np.float64]:
        """Bound variable values (n x n_vars), in model.vars order."""
        return self._columns

    @property
    def n(self) -> int:
        """Number of observations."""
        return len(self._y)

    @property
    def k(self) -> int:
        """Number of free parameters."""
        return self._model.params_len()

    # === Evaluation ===

    def predict(self, params: ArrayLike) -> NDArray[np.float64]:
        """Model values for every row (may contain NaN/Inf)."""
        return self._model.solve_many(params, self._columns)

    def residuals(self, params: ArrayLike, sentinel: float) -> NDArray[np.float64]:
        """
        y - f(params), with `sentinel` in place of any non-finite residual.

        The sentinel keeps the sum of squares finite, so regions where the
        formula leaves its domain are strongly penalised instead of
        poisoning the step.
        """
        with np.errstate(invalid='ignore', over='ignore'):
            r = self._y - self.predict(params)
        return np.where(np.isfinite(r), r, sentinel)


def _resolve_target(data: Dataset, target: Any) -> int:
    headers = data.headers
    if isinstance(target, (int, np.integer)) and not isinstance(target, bool):
        if not 0 <= target < len(headers):
            raise ColumnNotFoundError(
                f"target column index {target} out of range for "
                f"{len(headers)} headers",
                column=str(target),
                help=headers.match_help(str(target)),
            )
        return int(target)
    if isinstance(target, str):
        return headers.resolve(target)
    raise TypeError(f"target must be a column name or index, got {type(target).__name__}")
