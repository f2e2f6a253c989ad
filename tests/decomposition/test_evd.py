"""
Tests for evd_decompose / EVDEngine.

Validates:
    - Symmetric path: real eigenvalues matching scipy.linalg.eigh,
      orthogonal V, descending order
    - General path: complex pairs as 2x2 blocks, A V = V Lambda,
      eigenvalues matching scipy.linalg.eigvals
    - Edge cases: 1x1, identity, pure rotation, triangular input
    - Inputs near 1e+-200 scaled without overflow or underflow
    - Convergence cap and input validation
"""

import numpy as np
import pytest
import scipy.linalg

from pydecomp import (
    ComplexPairBlock,
    NumpyMatrix,
    RealEigenvalue,
    evd_decompose,
)
from pydecomp.core.exceptions import (
    ConvergenceError,
    DimensionError,
    ValidationError,
)
from pydecomp.decomposition.engines.evd import EVDEngine


TOL = 1e-9


def _random_orthogonal(rng, n):
    q, _ = np.linalg.qr(rng.standard_normal((n, n)))
    return q


def _as_complex(eigenvalues):
    values = []
    for ev in eigenvalues:
        if isinstance(ev, RealEigenvalue):
            values.append(complex(ev.value, 0.0))
        else:
            values.extend(ev.values())
    return np.sort_complex(np.array(values))


# ═══════════════════════════════════════════════════════════════════════
# Symmetric matrices
# ═══════════════════════════════════════════════════════════════════════


class TestSymmetric:

    def test_matches_eigh(self, make, rng):
        x = rng.standard_normal((5, 5))
        a = x + x.T
        evd = evd_decompose(make(a), symmetric=True)
        expected = scipy.linalg.eigh(a, eigvals_only=True)[::-1]
        np.testing.assert_allclose(evd.real_parts, expected, atol=TOL)
        assert all(isinstance(ev, RealEigenvalue) for ev in evd.eigenvalues)

    def test_v_orthogonal(self, make, rng):
        x = rng.standard_normal((5, 5))
        evd = evd_decompose(make(x + x.T), symmetric=True)
        v = np.asarray(evd.V)
        np.testing.assert_allclose(v.T @ v, np.eye(5), atol=TOL)

    def test_residual(self, make, rng):
        x = rng.standard_normal((6, 6))
        a = make(x @ x.T)
        evd = evd_decompose(a, symmetric=True)
        assert evd.residual(a) < TOL * 10

    def test_descending_order(self, make, rng):
        x = rng.standard_normal((6, 6))
        evd = evd_decompose(make(x + x.T), symmetric=True)
        parts = evd.real_parts
        assert parts == sorted(parts, reverse=True)
        assert evd.imag_parts == [0.0] * 6

    def test_identity(self, backend):
        evd = evd_decompose(backend.eye(3), symmetric=True)
        assert evd.real_parts == [1.0, 1.0, 1.0]
        np.testing.assert_array_equal(np.asarray(evd.V), np.eye(3))
        assert evd.iterations == 0

    def test_diagonal_sorted(self, make):
        evd = evd_decompose(make(np.diag([1.0, 5.0, 3.0])), symmetric=True)
        assert evd.real_parts == [5.0, 3.0, 1.0]
        v = np.abs(np.asarray(evd.V))
        np.testing.assert_array_equal(v, np.eye(3)[:, [1, 2, 0]])

    def test_known_two_by_two(self, make):
        evd = evd_decompose(make([[2.0, 1.0], [1.0, 2.0]]), symmetric=True)
        np.testing.assert_allclose(evd.real_parts, [3.0, 1.0], atol=1e-14)

    @pytest.mark.parametrize("scale", [1e100, 1e-100, 1e200, 1e-200])
    def test_extreme_magnitudes(self, make, rng, scale):
        x = rng.standard_normal((5, 5))
        a0 = x + x.T
        a = make(a0 * scale)
        evd = evd_decompose(a, symmetric=True)
        expected = scipy.linalg.eigh(a0, eigvals_only=True)[::-1]
        np.testing.assert_allclose(np.array(evd.real_parts) / scale, expected, atol=TOL)
        v = np.asarray(evd.V)
        np.testing.assert_allclose(v.T @ v, np.eye(5), atol=TOL)
        assert evd.residual(a) / scale < TOL * 10

    def test_asymmetric_rejected(self, make):
        with pytest.raises(ValidationError, match="symmetric=True"):
            evd_decompose(make([[1.0, 2.0], [3.0, 4.0]]), symmetric=True)

    def test_roundoff_asymmetry_accepted(self, make):
        a = np.array([[2.0, 1.0], [1.0 + 1e-15, 2.0]])
        evd = evd_decompose(make(a), symmetric=True)
        np.testing.assert_allclose(evd.real_parts, [3.0, 1.0], atol=1e-12)


# ═══════════════════════════════════════════════════════════════════════
# General matrices
# ═══════════════════════════════════════════════════════════════════════


class TestGeneral:

    def test_rotation_is_one_complex_block(self, make):
        a = make([[0.0, 1.0], [-1.0, 0.0]])
        evd = evd_decompose(a)
        assert len(evd.eigenvalues) == 1
        block = evd.eigenvalues[0]
        assert isinstance(block, ComplexPairBlock)
        assert block.real == pytest.approx(0.0)
        assert block.imag == pytest.approx(1.0)
        assert evd.real_parts == pytest.approx([0.0, 0.0])
        assert evd.imag_parts == pytest.approx([1.0, -1.0])
        assert evd.has_complex
        assert any("complex eigenvalues" in w for w in evd.warnings)
        assert evd.residual(a) < 1e-14

    def test_known_spectrum(self, make, rng):
        q = _random_orthogonal(rng, 3)
        b = np.array([[3.0, 0.0, 0.0], [0.0, 1.0, 2.0], [0.0, -2.0, 1.0]])
        a = make(q @ b @ q.T)
        evd = evd_decompose(a)

        assert len(evd.eigenvalues) == 2
        first, second = evd.eigenvalues
        assert isinstance(first, RealEigenvalue)
        assert first.value == pytest.approx(3.0, abs=TOL)
        assert isinstance(second, ComplexPairBlock)
        assert second.real == pytest.approx(1.0, abs=TOL)
        assert second.imag == pytest.approx(2.0, abs=TOL)
        assert evd.residual(a) < TOL

    def test_matches_scipy_eigvals(self, make, rng):
        a = rng.standard_normal((6, 6))
        evd = evd_decompose(make(a))
        expected = np.sort_complex(scipy.linalg.eigvals(a))
        np.testing.assert_allclose(_as_complex(evd.eigenvalues), expected, atol=1e-8)

    def test_residual_random(self, make, rng):
        a = make(rng.standard_normal((5, 5)))
        evd = evd_decompose(a)
        assert evd.residual(a) < 1e-8

    def test_eigenvector_columns_normalised(self, make, rng):
        evd = evd_decompose(make(rng.standard_normal((5, 5))))
        v = np.asarray(evd.V)
        col = 0
        for ev in evd.eigenvalues:
            block = v[:, col:col + ev.size]
            assert np.linalg.norm(block) == pytest.approx(1.0)
            col += ev.size

    @pytest.mark.parametrize("scale", [1e100, 1e-100, 1e200, 1e-200])
    def test_extreme_magnitudes(self, make, rng, scale):
        a0 = rng.standard_normal((6, 6))
        a = make(a0 * scale)
        evd = evd_decompose(a)
        expected = np.sort_complex(scipy.linalg.eigvals(a0))
        np.testing.assert_allclose(_as_complex(evd.eigenvalues) / scale, expected, atol=1e-8)
        assert evd.residual(a) / scale < 1e-8

    def test_huge_complex_pair(self, make):
        a = make([[0.0, 1e200], [-1e200, 0.0]])
        evd = evd_decompose(a)
        (pair,) = evd.eigenvalues
        assert pair.real == pytest.approx(0.0, abs=1e186)
        assert pair.imag == pytest.approx(1e200, rel=1e-14)

    def test_upper_triangular(self, make):
        a = make([[1.0, 2.0, 3.0], [0.0, 4.0, 5.0], [0.0, 0.0, 6.0]])
        evd = evd_decompose(a)
        assert evd.real_parts == pytest.approx([6.0, 4.0, 1.0])
        assert evd.residual(a) < 1e-12
        assert evd.warnings == ()

    def test_one_by_one(self, make):
        evd = evd_decompose(make([[-7.5]]))
        assert evd.eigenvalues == (RealEigenvalue(-7.5),)
        assert evd.V.to_raw_vector() == [1.0]

    def test_zero_matrix(self, backend):
        evd = evd_decompose(backend.zeros(3, 3))
        assert evd.real_parts == [0.0, 0.0, 0.0]
        assert evd.iterations == 0

    def test_eigenvalue_matrix_layout(self, make):
        a = make([[0.0, 1.0, 0.0], [-1.0, 0.0, 0.0], [0.0, 0.0, 5.0]])
        evd = evd_decompose(a)
        lam = np.asarray(evd.eigenvalue_matrix())
        assert lam[0, 0] == 5.0
        assert lam[0, 1] == 0.0 and lam[1, 0] == 0.0
        np.testing.assert_allclose(lam[1:, 1:], [[0.0, 1.0], [-1.0, 0.0]], atol=1e-14)
        assert evd.residual(a) < 1e-12


# ═══════════════════════════════════════════════════════════════════════
# Convergence, validation, metadata
# ═══════════════════════════════════════════════════════════════════════


class TestConvergence:

    def test_iteration_cap(self, rng):
        x = rng.standard_normal((6, 6))
        with pytest.raises(ConvergenceError) as exc_info:
            evd_decompose(NumpyMatrix.from_array(x + x.T), symmetric=True, max_iter=1)
        err = exc_info.value
        assert err.reason == 'max_iterations'
        assert err.iterations >= 1
        assert err.final_change > 0.0

    def test_non_finite_stops_early(self):
        a = NumpyMatrix.from_array([[1.0, 2.0, 3.0], [4.0, np.nan, 6.0], [7.0, 8.0, 9.0]])
        with pytest.raises(ConvergenceError) as exc_info:
            EVDEngine().solve(a)
        err = exc_info.value
        assert err.reason == 'non_finite'
        assert err.iterations == 0

    def test_custom_tol_recorded(self, make, rng):
        x = rng.standard_normal((4, 4))
        evd = evd_decompose(make(x + x.T), symmetric=True, tol=1e-12, max_iter=50)
        assert evd.info['tol'] == 1e-12
        assert evd.info['max_iter'] == 50
        assert evd.info['converged'] is True

    @pytest.mark.parametrize("kwargs", [{'tol': 0.0}, {'tol': -1.0}, {'max_iter': 0}])
    def test_bad_criteria(self, make, kwargs):
        with pytest.raises(ValidationError):
            evd_decompose(make([[1.0]]), **kwargs)


class TestValidation:

    def test_not_square(self, make):
        with pytest.raises(DimensionError, match="square"):
            evd_decompose(make([[1.0, 2.0]]))

    def test_empty(self, backend):
        with pytest.raises(DimensionError):
            evd_decompose(backend.zeros(0, 0))

    def test_inf_rejected(self, make):
        with pytest.raises(ValidationError, match="non-finite"):
            evd_decompose(make([[1.0, np.inf], [0.0, 1.0]]))

    def test_input_not_mutated(self, make, rng):
        a = make(rng.standard_normal((4, 4)))
        before = a.to_raw_vector()
        evd_decompose(a)
        assert a.to_raw_vector() == before

    def test_metadata(self, make, rng):
        evd = evd_decompose(make(rng.standard_normal((4, 4))))
        assert evd.backend_name == 'qr_algorithm_general'
        for section in ('reduction', 'iteration', 'eigenvectors', 'total_seconds'):
            assert section in evd.timing
        assert "Eigenvalues:" in evd.summary()

    def test_engine_name(self):
        assert EVDEngine(symmetric=True).name == 'qr_algorithm_symmetric'
