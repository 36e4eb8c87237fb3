"""
Fitting backends.

    cpu_lm       Levenberg-Marquardt reference implementation
    cpu_minpack  MINPACK Levenberg-Marquardt via scipy.optimize.least_squares
"""

from fitme.fitting.backends.cpu import CPULevenbergMarquardtBackend
from fitme.fitting.backends.cpu_minpack import CPUMinpackBackend

__all__ = [
    "CPULevenbergMarquardtBackend",
    "CPUMinpackBackend",
]
