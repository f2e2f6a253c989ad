"""
Tests for RowIterator / row_iter.
"""

import pytest

from pydecomp.matrix import RowIterator, row_iter


class TestRowIter:

    def test_yields_rows_in_order(self, make):
        m = make([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])
        rows = [list(r) for r in row_iter(m)]
        assert rows == [[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]]

    def test_is_its_own_iterator(self, make):
        it = row_iter(make([[1.0]]))
        assert isinstance(it, RowIterator)
        assert iter(it) is it

    def test_len_counts_remaining(self, make):
        it = row_iter(make([[1.0], [2.0], [3.0]]))
        assert len(it) == 3
        next(it)
        assert len(it) == 2

    def test_exhaustion(self, make):
        it = row_iter(make([[1.0, 2.0]]))
        assert list(next(it)) == [1.0, 2.0]
        with pytest.raises(StopIteration):
            next(it)
        # Stays exhausted
        with pytest.raises(StopIteration):
            next(it)
        assert len(it) == 0

    def test_no_rows(self, backend):
        assert list(row_iter(backend.zeros(0, 3))) == []

    def test_restart_with_new_iterator(self, make):
        m = make([[1.0], [2.0]])
        first = [r[0] for r in row_iter(m)]
        second = [r[0] for r in row_iter(m)]
        assert first == second == [1.0, 2.0]

    def test_rows_are_copies(self, make):
        m = make([[1.0, 2.0]])
        row = next(row_iter(m))
        row[0] = 99.0
        assert m.get(0, 0) == 1.0
