"""
Tests for shared numeric infrastructure: linear algebra kernels, start
probes, tolerances and timing.
"""

import dataclasses

import numpy as np
import pytest

from fitme.core.compute import (
    DEFAULT_TOLERANCES,
    SolverTolerances,
    Timer,
    covariance_diagonal,
    fallback_start,
    qr_cpu,
    starting_candidates,
)
from fitme.core.compute.tolerances import FD_RELATIVE_STEP, NONFINITE_RESIDUAL
from fitme.core.exceptions import SingularMatrixError


# ═══════════════════════════════════════════════════════════════════════
# QR and covariance
# ═══════════════════════════════════════════════════════════════════════


class TestQR:

    def test_full_rank(self, rng):
        X = rng.standard_normal((20, 3))
        result = qr_cpu(X)
        assert result.rank == 3
        np.testing.assert_allclose(result.Q @ result.R, X, atol=1e-12)

    def test_rank_deficient(self, rng):
        x = rng.standard_normal(20)
        X = np.column_stack([x, 2 * x])
        assert qr_cpu(X).rank == 1

    def test_zero_matrix(self):
        assert qr_cpu(np.zeros((5, 2))).rank == 0

    def test_rtol_catches_noisy_collinearity(self, rng):
        x = rng.standard_normal(20)
        X = np.column_stack([x, x + 1e-11 * rng.standard_normal(20)])
        assert qr_cpu(X).rank == 2
        assert qr_cpu(X, rtol=1e-8).rank == 1


class TestCovarianceDiagonal:

    def test_matches_explicit_inverse(self, rng):
        J = rng.standard_normal((30, 3))
        expected = np.diag(np.linalg.inv(J.T @ J))
        np.testing.assert_allclose(covariance_diagonal(J), expected, rtol=1e-10)

    def test_straight_line(self):
        x = np.arange(5, dtype=np.float64)
        J = -np.column_stack([x, np.ones(5)])
        # Var(slope) = 1 / Sxx, Sxx = 10
        assert covariance_diagonal(J)[0] == pytest.approx(0.1)

    def test_rank_deficient_raises(self):
        J = np.column_stack([np.ones(6), np.ones(6)])
        with pytest.raises(SingularMatrixError) as exc_info:
            covariance_diagonal(J)
        assert exc_info.value.rank == 1
        assert exc_info.value.expected_rank == 2
        assert exc_info.value.matrix_name == 'J'

    def test_fewer_rows_than_parameters(self):
        with pytest.raises(SingularMatrixError) as exc_info:
            covariance_diagonal(np.ones((1, 2)))
        assert exc_info.value.expected_rank == 2


# ═══════════════════════════════════════════════════════════════════════
# Start probes
# ═══════════════════════════════════════════════════════════════════════


class TestStartingCandidates:

    def test_order_and_values(self):
        candidates = starting_candidates(3)
        assert [label for label, _ in candidates] == ['zeros', 'ones', 'halves', 'index']
        np.testing.assert_array_equal(candidates[0][1], [0.0, 0.0, 0.0])
        np.testing.assert_array_equal(candidates[1][1], [1.0, 1.0, 1.0])
        np.testing.assert_array_equal(candidates[2][1], [0.5, 0.5, 0.5])
        np.testing.assert_array_equal(candidates[3][1], [0.0, 1.0, 2.0])

    def test_fallback(self):
        np.testing.assert_array_equal(fallback_start(2), [0.1, 0.1])

    def test_zero_length(self):
        assert all(v.shape == (0,) for _, v in starting_candidates(0))


# ═══════════════════════════════════════════════════════════════════════
# Tolerances
# ═══════════════════════════════════════════════════════════════════════


class TestTolerances:

    def test_defaults(self):
        tol = DEFAULT_TOLERANCES
        assert tol.ftol == 1e-10
        assert tol.xtol == 1e-10
        assert tol.max_iter == 200
        assert tol.nonfinite_residual == NONFINITE_RESIDUAL == 1e10
        assert tol.fd_step == FD_RELATIVE_STEP

    def test_fd_step_is_cube_root_eps(self):
        assert FD_RELATIVE_STEP == pytest.approx(np.finfo(float).eps ** (1 / 3))

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_TOLERANCES.max_iter = 5

    def test_replace(self):
        tol = dataclasses.replace(DEFAULT_TOLERANCES, max_iter=5)
        assert tol.max_iter == 5
        assert tol == SolverTolerances(max_iter=5)


# ═══════════════════════════════════════════════════════════════════════
# Timing
# ═══════════════════════════════════════════════════════════════════════


class TestTimer:

    def test_sections_accumulate(self):
        timer = Timer()
        timer.start()
        for _ in range(3):
            with timer.section('jacobian'):
                pass
        timer.stop()
        result = timer.result()
        assert set(result) == {'total_seconds', 'jacobian'}
        assert result['jacobian'] >= 0.0

    def test_result_before_stop(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError):
            timer.result()

    def test_stop_before_start(self):
        with pytest.raises(RuntimeError):
            Timer().stop()

    def test_counts_passes(self):
        timer = Timer()
        timer.start()
        for _ in range(3):
            with timer.section('jacobian'):
                pass
        with timer.section('covariance'):
            pass
        timer.stop()
        assert timer.counts() == {'jacobian': 3, 'covariance': 1}

    def test_section_counted_when_it_raises(self):
        timer = Timer()
        with pytest.raises(ValueError):
            with timer.section('step'):
                raise ValueError("boom")
        assert timer.counts() == {'step': 1}
