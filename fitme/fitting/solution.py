"""
Fitting solution types.

Contains the backend parameter payload, the plain result record handed to
renderers, and the user-facing solution wrapper.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from fitme.core.result import Result

if TYPE_CHECKING:
    from fitme.fitting.design import FitDesign


@dataclass(frozen=True)
class FitParams:
    """
    Parameter payload produced by a fitting backend.

    This is the immutable data computed by backends.
    """
    parameter_values: NDArray[np.float64]
    covariance_diagonal: NDArray[np.float64]
    ssr: float
    n_iter: int
    converged: bool
    initial_values: NDArray[np.float64]


@dataclass(frozen=True)
class FitResult:
    """
    Fitted parameters and their statistics.

    Field order is part of the output contract (JSON, CSV); do not reorder.
    """
    parameter_names: tuple[str, ...]
    parameter_values: tuple[float, ...]
    n: int
    standard_errors: tuple[float, ...]
    t_values: tuple[float, ...]
    rmsr: float
    adjusted_r_squared: float

    def to_dict(self) -> dict[str, Any]:
        """Plain dict in field order, with lists in place of tuples."""
        return {
            'parameter_names': list(self.parameter_names),
            'parameter_values': list(self.parameter_values),
            'n': self.n,
            'standard_errors': list(self.standard_errors),
            't_values': list(self.t_values),
            'rmsr': self.rmsr,
            'adjusted_r_squared': self.adjusted_r_squared,
        }

    def rows(self) -> list[tuple[str, float, float, float]]:
        """(name, value, standard error, t-value) per parameter."""
        return list(zip(
            self.parameter_names,
            self.parameter_values,
            self.standard_errors,
            self.t_values,
        ))


@dataclass(frozen=True)
class FitSolution:
    """
    User-facing fit results.

    Wraps the backend Result and the computed statistics and provides
    convenient accessors for both.
    """
    _result: Result[FitParams]
    _design: 'FitDesign'
    _fit_result: FitResult

    @property
    def result(self) -> FitResult:
        return self._fit_result

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return self._fit_result.parameter_names

    @property
    def parameter_values(self) -> NDArray[np.float64]:
        return self._result.params.parameter_values

    @property
    def standard_errors(self) -> NDArray[np.float64]:
        return np.array(self._fit_result.standard_errors, dtype=np.float64)

    @property
    def t_values(self) -> NDArray[np.float64]:
        return np.array(self._fit_result.t_values, dtype=np.float64)

    @property
    def covariance_diagonal(self) -> NDArray[np.float64]:
        return self._result.params.covariance_diagonal

    @property
    def rmsr(self) -> float:
        return self._fit_result.rmsr

    @property
    def adjusted_r_squared(self) -> float:
        return self._fit_result.adjusted_r_squared

    @property
    def ssr(self) -> float:
        return self._result.params.ssr

    @property
    def n(self) -> int:
        return self._fit_result.n

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def initial_values(self) -> NDArray[np.float64]:
        return self._result.params.initial_values

    @property
    def design(self) -> 'FitDesign':
        return self._design

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def as_dict(self) -> dict[str, float]:
        """Parameter name -> fitted value."""
        return dict(zip(self.parameter_names, self._fit_result.parameter_values))

    def summary(self) -> str:
        """Generate a regression-style summary."""
        lines = [
            "Nonlinear Least Squares Fit",
            "=" * 60,
            f"Formula: {self._design.target_name} = {self._design.model.expr}",
            f"Observations: {self.n}",
            f"Parameters: {len(self.parameter_names)}",
            f"Backend: {self.backend_name} ({self.n_iter} iterations, "
            f"start '{self.info.get('start', '?')}')",
            f"Root Mean Squared Residual: {self.rmsr:.6f}",
            f"Adj. R-squared: {self.adjusted_r_squared:.6f}",
            "",
            "Parameters:",
            f"{'':>12} {'Estimate':>12} {'Std.Error':>12} {'t value':>10}",
        ]
        for name, value, se, t in self._fit_result.rows():
            lines.append(f"{name:>12} {value:>12.6f} {se:>12.6f} {t:>10.3f}")

        if self.warnings:
            lines.append("")
            lines.append("Warnings:")
            for w in self.warnings:
                lines.append(f"  {w}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"FitSolution(n={self.n}, params={self.as_dict()!r}, "
            f"adjusted_r_squared={self.adjusted_r_squared:.6f})"
        )
