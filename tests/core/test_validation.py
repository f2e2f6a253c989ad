"""
Tests for input validation utilities.

Validates every function in core/validation.py:
    - check_index / check_row / check_col: bounds, no negative wrap-around
    - check_dims: non-negative ints only
    - check_same_shape / check_conformable / check_square
    - check_range: step-1 ranges inside the matrix
    - check_norm_order: p > 0 or inf
    - check_finite_entries: NaN/Inf detection
"""

import math

import pytest

from pydecomp.core.exceptions import (
    DimensionError,
    IndexOutOfBoundsError,
    ValidationError,
)
from pydecomp.core.validation import (
    check_col,
    check_conformable,
    check_dims,
    check_finite_entries,
    check_index,
    check_norm_order,
    check_range,
    check_row,
    check_same_shape,
    check_square,
)


# ═══════════════════════════════════════════════════════════════════════
# Indices
# ═══════════════════════════════════════════════════════════════════════


class TestCheckIndex:

    def test_valid_corners(self):
        check_index(0, 0, (2, 3))
        check_index(1, 2, (2, 3))

    @pytest.mark.parametrize("row,col", [(2, 0), (0, 3), (5, 5)])
    def test_past_the_end(self, row, col):
        with pytest.raises(IndexOutOfBoundsError) as exc_info:
            check_index(row, col, (2, 3))
        assert exc_info.value.index == (row, col)
        assert exc_info.value.shape == (2, 3)

    def test_negative_rejected(self):
        """No Python-style wrap-around."""
        with pytest.raises(IndexOutOfBoundsError):
            check_index(-1, 0, (2, 3))

    def test_empty_matrix_has_no_entries(self):
        with pytest.raises(IndexOutOfBoundsError):
            check_index(0, 0, (0, 0))


class TestCheckRowCol:

    def test_row(self):
        check_row(1, (2, 3))
        with pytest.raises(IndexOutOfBoundsError, match="row 2"):
            check_row(2, (2, 3))

    def test_col(self):
        check_col(2, (2, 3))
        with pytest.raises(IndexOutOfBoundsError, match="column 3"):
            check_col(3, (2, 3))

    def test_negative_col(self):
        with pytest.raises(IndexOutOfBoundsError):
            check_col(-1, (2, 3))


# ═══════════════════════════════════════════════════════════════════════
# Shapes
# ═══════════════════════════════════════════════════════════════════════


class TestCheckDims:

    def test_zero_allowed(self):
        check_dims(0, 0)

    def test_negative(self):
        with pytest.raises(ValidationError, match="n_cols"):
            check_dims(2, -1)

    def test_float_rejected(self):
        with pytest.raises(ValidationError, match="expected int"):
            check_dims(2.0, 2)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError):
            check_dims(True, 2)


class TestShapeChecks:

    def test_same_shape(self):
        check_same_shape((2, 3), (2, 3), 'add_mut')
        with pytest.raises(DimensionError, match="add_mut"):
            check_same_shape((2, 3), (3, 2), 'add_mut')

    def test_conformable(self):
        check_conformable((2, 3), (3, 4))
        with pytest.raises(DimensionError, match="left columns"):
            check_conformable((2, 3), (2, 3))

    def test_square(self):
        check_square((3, 3), 'A')
        with pytest.raises(DimensionError, match="square"):
            check_square((3, 2), 'A')


class TestCheckRange:

    def test_full_and_empty(self):
        check_range(range(0, 3), 3, 'rows')
        check_range(range(2, 2), 3, 'rows')
        check_range(range(3, 3), 3, 'rows')

    def test_past_edge(self):
        with pytest.raises(IndexOutOfBoundsError, match="rows"):
            check_range(range(1, 4), 3, 'rows')

    def test_negative_start(self):
        with pytest.raises(IndexOutOfBoundsError):
            check_range(range(-1, 2), 3, 'cols')

    def test_step_rejected(self):
        with pytest.raises(ValidationError, match="step-1"):
            check_range(range(0, 3, 2), 3, 'rows')

    def test_non_range_rejected(self):
        with pytest.raises(ValidationError):
            check_range((0, 2), 3, 'rows')


# ═══════════════════════════════════════════════════════════════════════
# Values
# ═══════════════════════════════════════════════════════════════════════


class TestCheckNormOrder:

    @pytest.mark.parametrize("p", [0.5, 1, 2, 3.5, math.inf])
    def test_valid(self, p):
        check_norm_order(p)

    @pytest.mark.parametrize("p", [0, -1, -math.inf, math.nan])
    def test_invalid(self, p):
        with pytest.raises(ValidationError, match="norm order"):
            check_norm_order(p)


class TestCheckFiniteEntries:

    def test_finite(self):
        check_finite_entries([1.0, -2.0, 0.0], 'A')

    def test_counts_reported(self):
        with pytest.raises(ValidationError, match=r"1 NaN, 2 Inf"):
            check_finite_entries([math.nan, math.inf, -math.inf, 1.0], 'A')
