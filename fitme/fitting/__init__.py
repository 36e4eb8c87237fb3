"""
Nonlinear least-squares fitting.

Public API:
    fit(model, data, target, ...) -> FitSolution

The fit() function is the only entry point. It handles:
    - Design construction and validation
    - Starting-point selection
    - Backend selection
    - Statistics and result wrapping

Example:
    >>> from fitme.fitting import fit
    >>> solution = fit("m * x + c", data, "y")
    >>> print(solution.parameter_values)
    >>> print(solution.summary())
"""

from fitme.fitting._start import find_start
from fitme.fitting.design import FitDesign
from fitme.fitting.solution import FitParams, FitResult, FitSolution
from fitme.fitting.solvers import fit
from fitme.fitting.statistics import summarize

__all__ = [
    "fit",
    "find_start",
    "summarize",
    "FitDesign",
    "FitParams",
    "FitResult",
    "FitSolution",
]
