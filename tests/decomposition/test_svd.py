"""
Tests for svd_decompose / SVDEngine.

Validates:
    - A = U S V^T with orthonormal U, V and descending, non-negative s
    - Agreement with scipy.linalg.svdvals for tall, wide and square input
    - Edge cases: 1x1, identity, zero matrix, vectors, zero diagonal
      entries in the bidiagonal form
    - Rank, pseudo-inverse solve and rank-deficient warning
    - Inputs near 1e+-200 scaled without overflow or underflow
    - Convergence cap and input validation
"""

import numpy as np
import pytest
import scipy.linalg

from pydecomp import NumpyMatrix, svd_decompose
from pydecomp.core.exceptions import (
    ConvergenceError,
    DimensionError,
    ValidationError,
)
from pydecomp.decomposition.engines.svd import SVDEngine, bidiagonalize


TOL = 1e-10


def _check_factorization(svd, a):
    u = np.asarray(svd.U)
    v = np.asarray(svd.V)
    k = min(a.shape)
    assert u.shape == (a.shape[0], k)
    assert v.shape == (a.shape[1], k)
    np.testing.assert_allclose(u.T @ u, np.eye(k), atol=TOL)
    np.testing.assert_allclose(v.T @ v, np.eye(k), atol=TOL)
    np.testing.assert_allclose(np.asarray(svd.reconstruct()), a, atol=TOL)
    assert list(svd.s) == sorted(svd.s, reverse=True)
    assert all(sigma >= 0.0 for sigma in svd.s)


# ═══════════════════════════════════════════════════════════════════════
# Factor properties
# ═══════════════════════════════════════════════════════════════════════


class TestFactors:

    @pytest.mark.parametrize("shape", [(5, 3), (3, 5), (4, 4), (6, 1), (1, 6)])
    def test_factorization(self, make, rng, shape):
        a = rng.standard_normal(shape)
        svd = svd_decompose(make(a))
        _check_factorization(svd, a)

    @pytest.mark.parametrize("shape", [(6, 4), (4, 6), (5, 5)])
    def test_matches_scipy(self, make, rng, shape):
        a = rng.standard_normal(shape)
        svd = svd_decompose(make(a))
        np.testing.assert_allclose(svd.s, scipy.linalg.svdvals(a), atol=TOL)

    def test_wide_input_is_transposed(self, make, rng):
        svd = svd_decompose(make(rng.standard_normal((2, 4))))
        assert svd.info['transposed'] is True

    def test_identity(self, backend):
        svd = svd_decompose(backend.eye(3))
        assert svd.s == (1.0, 1.0, 1.0)
        np.testing.assert_array_equal(np.asarray(svd.U), np.eye(3))
        np.testing.assert_array_equal(np.asarray(svd.V), np.eye(3))

    def test_one_by_one_negative(self, make):
        svd = svd_decompose(make([[-4.0]]))
        assert svd.s == (4.0,)
        assert np.asarray(svd.reconstruct())[0, 0] == -4.0

    def test_zero_matrix(self, backend):
        svd = svd_decompose(backend.zeros(3, 2))
        assert svd.s == (0.0, 0.0)
        assert svd.rank() == 0
        u = np.asarray(svd.U)
        np.testing.assert_allclose(u.T @ u, np.eye(2))
        assert any("rank-deficient" in w for w in svd.warnings)

    def test_shift_matrix_zero_diagonal(self, make):
        """Bidiagonal input with zero diagonal entries takes the chase path."""
        a = np.array([[0.0, 1.0, 0.0], [0.0, 0.0, 1.0], [0.0, 0.0, 0.0]])
        svd = svd_decompose(make(a))
        np.testing.assert_allclose(svd.s, [1.0, 1.0, 0.0], atol=1e-14)
        _check_factorization(svd, a)

    def test_trailing_zero_diagonal(self, make):
        a = np.array([[1.0, 1.0], [0.0, 0.0]])
        svd = svd_decompose(make(a))
        np.testing.assert_allclose(svd.s, [np.sqrt(2.0), 0.0], atol=1e-14)
        _check_factorization(svd, a)

    def test_repeated_singular_values(self, make, rng):
        q1, _ = np.linalg.qr(rng.standard_normal((4, 4)))
        q2, _ = np.linalg.qr(rng.standard_normal((4, 4)))
        a = q1 @ np.diag([2.0, 2.0, 1.0, 1.0]) @ q2.T
        svd = svd_decompose(make(a))
        np.testing.assert_allclose(svd.s, [2.0, 2.0, 1.0, 1.0], atol=TOL)
        _check_factorization(svd, a)

    @pytest.mark.parametrize("scale", [1e100, 1e-100, 1e200, 1e-200])
    @pytest.mark.parametrize("shape", [(5, 3), (3, 5)])
    def test_extreme_magnitudes(self, make, rng, scale, shape):
        a0 = rng.standard_normal(shape)
        svd = svd_decompose(make(a0 * scale))
        np.testing.assert_allclose(np.array(svd.s) / scale, scipy.linalg.svdvals(a0), atol=TOL)
        u = np.asarray(svd.U)
        v = np.asarray(svd.V)
        np.testing.assert_allclose(u.T @ u, np.eye(3), atol=TOL)
        np.testing.assert_allclose(v.T @ v, np.eye(3), atol=TOL)
        np.testing.assert_allclose(np.asarray(svd.reconstruct()) / scale, a0, atol=TOL)
        assert svd.rank() == 3

    def test_S_is_diagonal(self, make, rng):
        svd = svd_decompose(make(rng.standard_normal((4, 3))))
        np.testing.assert_array_equal(np.asarray(svd.S()), np.diag(svd.s))


# ═══════════════════════════════════════════════════════════════════════
# Rank and solve
# ═══════════════════════════════════════════════════════════════════════


class TestRankAndSolve:

    def test_rank_deficient(self, make, rng):
        x = rng.standard_normal((5, 2))
        a = np.column_stack([x, x[:, 0] + x[:, 1]])
        svd = svd_decompose(make(a))
        assert svd.rank() == 2
        assert svd.info['rank'] == 2
        assert any("rank-deficient" in w for w in svd.warnings)

    def test_rank_with_explicit_tol(self, make):
        svd = svd_decompose(make(np.diag([3.0, 1e-3, 1e-9])))
        assert svd.rank() == 3
        assert svd.rank(tol=1e-6) == 2
        assert svd.rank(tol=10.0) == 0

    def test_solve_full_rank(self, make, rng):
        a = rng.standard_normal((6, 3))
        b = rng.standard_normal((6, 2))
        x = svd_decompose(make(a)).solve(make(b))
        x_ref, *_ = np.linalg.lstsq(a, b, rcond=None)
        np.testing.assert_allclose(np.asarray(x), x_ref, atol=1e-10)

    def test_solve_minimum_norm(self, make, rng):
        x = rng.standard_normal((5, 2))
        a = np.column_stack([x, x[:, 0] - x[:, 1]])
        b = rng.standard_normal((5, 1))
        sol = svd_decompose(make(a)).solve(make(b))
        np.testing.assert_allclose(np.asarray(sol), np.linalg.pinv(a) @ b, atol=1e-8)

    def test_solve_wide(self, make, rng):
        a = rng.standard_normal((2, 4))
        b = rng.standard_normal((2, 1))
        sol = svd_decompose(make(a)).solve(make(b))
        np.testing.assert_allclose(np.asarray(sol), np.linalg.pinv(a) @ b, atol=1e-10)

    def test_solve_wrong_rows(self, make, rng):
        svd = svd_decompose(make(rng.standard_normal((3, 2))))
        with pytest.raises(DimensionError, match="expected 3 rows"):
            svd.solve(make([[1.0]]))


# ═══════════════════════════════════════════════════════════════════════
# Convergence, validation, metadata
# ═══════════════════════════════════════════════════════════════════════


class TestConvergence:

    def test_iteration_cap(self, rng):
        a = NumpyMatrix.from_array(rng.standard_normal((6, 6)))
        with pytest.raises(ConvergenceError) as exc_info:
            svd_decompose(a, max_iter=1)
        assert exc_info.value.reason == 'max_iterations'
        assert exc_info.value.final_change > 0.0

    def test_non_finite_stops_early(self):
        a = NumpyMatrix.from_array([[1.0, 2.0], [np.nan, 4.0], [5.0, 6.0]])
        with pytest.raises(ConvergenceError) as exc_info:
            SVDEngine().solve(a)
        assert exc_info.value.reason == 'non_finite'
        assert exc_info.value.iterations == 0

    def test_iterations_reported(self, make, rng):
        svd = svd_decompose(make(rng.standard_normal((4, 4))))
        assert svd.iterations > 0
        assert svd.info['converged'] is True

    def test_bad_tol(self, make):
        with pytest.raises(ValidationError, match="tol"):
            svd_decompose(make([[1.0]]), tol=2.0)


class TestValidation:

    def test_empty(self, backend):
        with pytest.raises(DimensionError):
            svd_decompose(backend.zeros(2, 0))

    def test_nan(self, make):
        with pytest.raises(ValidationError, match="non-finite"):
            svd_decompose(make([[np.nan, 1.0]]))

    def test_input_not_mutated(self, make, rng):
        a = make(rng.standard_normal((3, 4)))
        before = a.to_raw_vector()
        svd_decompose(a)
        assert a.to_raw_vector() == before

    def test_metadata(self, make, rng):
        svd = svd_decompose(make(rng.standard_normal((3, 3))))
        assert svd.backend_name == 'golub_kahan_svd'
        assert 'bidiagonalization' in svd.timing
        assert 'diagonalization' in svd.timing
        assert "Singular values:" in svd.summary()

    def test_engine_protocol(self):
        engine = SVDEngine()
        assert engine.name == 'golub_kahan_svd'


class TestBidiagonalize:

    def test_structure_and_similarity(self, rng):
        a_arr = rng.standard_normal((5, 4))
        u, d, e, v = bidiagonalize(NumpyMatrix.from_array(a_arr))
        b = np.diag(d) + np.diag(e, 1)
        np.testing.assert_allclose(np.asarray(u) @ b @ np.asarray(v).T, a_arr, atol=TOL)
        assert len(d) == 4
        assert len(e) == 3
