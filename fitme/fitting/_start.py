"""
Starting-point selection.

Tries the deterministic probe vectors on the first observation and keeps
the first one at which the formula is finite.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from fitme.core.compute.probes import fallback_start, starting_candidates
from fitme.core.compute.tolerances import FALLBACK_START_VALUE
from fitme.core.datasource import Cell
from fitme.core.exceptions import EvaluationError
from fitme.expression.model import ExpressionModel

FALLBACK_LABEL = 'fallback'


def find_start(
    model: ExpressionModel, first_row: tuple[Cell, ...]
) -> tuple[NDArray[np.float64], str, str | None]:
    """
    Pick the initial parameter vector.

    Args:
        model: Parsed model
        first_row: First observation row (full row, indexed by column)

    Returns:
        (start vector, probe label, warning or None). The warning is set
        only when every probe failed and the fallback vector was used.
    """
    k = model.params_len()
    for label, candidate in starting_candidates(k):
        try:
            value = model.solve(candidate, first_row)
        except EvaluationError:
            continue
        if value is not None and np.isfinite(value):
            return candidate, label, None

    warning = (
        f"no probe start gave a finite value for '{model.expr}' on the first row; "
        f"starting from all parameters = {FALLBACK_START_VALUE}"
    )
    return fallback_start(k), FALLBACK_LABEL, warning
