"""
fitme: nonlinear least-squares curve fitting for tabular data.

Parameterise a formula from a CSV dataset: identifiers that match a column
header are variables, every other identifier is a free parameter, and the
parameters are estimated by Levenberg-Marquardt with standard errors,
t-values, RMS residual and adjusted R^2.

Submodules:
    core: Exceptions, result envelope, headers, datasets, numeric kernels
    expression: Formula parsing and evaluation
    fitting: Design, backends, statistics and the fit() entry point
    render: Output formats
    cli: Command line interface
"""

__version__ = "0.1.0"

from fitme.core.datasource import Dataset
from fitme.core.headers import HeaderIndex
from fitme.expression.model import ExpressionModel
from fitme.fitting.solution import FitResult, FitSolution
from fitme.fitting.solvers import fit

__all__ = [
    "__version__",
    "fit",
    "Dataset",
    "HeaderIndex",
    "ExpressionModel",
    "FitResult",
    "FitSolution",
]
