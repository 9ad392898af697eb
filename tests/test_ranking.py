"""Tests for process ranking."""

import pytest

from serverstats.models import ProcessRow
from serverstats.ranking import SortKey, top_by

ROWS = [
    ProcessRow(pid=10, name="a", cpu_percent=5.0, memory_percent=1.0),
    ProcessRow(pid=11, name="b", cpu_percent=50.0, memory_percent=0.5),
    ProcessRow(pid=12, name="c", cpu_percent=5.0, memory_percent=9.0),
    ProcessRow(pid=13, name="d", cpu_percent=20.0, memory_percent=9.0),
    ProcessRow(pid=14, name="e", cpu_percent=0.0, memory_percent=3.0),
]


class TestSortKey:
    """Tests for SortKey enum."""

    def test_sort_key_values(self):
        """Test SortKey enum has expected values."""
        assert SortKey.CPU.value == "cpu"
        assert SortKey.MEM.value == "mem"
        assert len(list(SortKey)) == 2


class TestTopBy:
    """Tests for top_by."""

    def test_sorted_descending_by_cpu(self):
        """Test rows come back highest CPU first."""
        result = top_by(ROWS, SortKey.CPU, 3)
        assert [row.pid for row in result] == [11, 13, 10]

    def test_sorted_descending_by_memory(self):
        """Test rows come back highest memory first."""
        result = top_by(ROWS, SortKey.MEM, 2)
        assert [row.memory_percent for row in result] == [9.0, 9.0]

    def test_ties_keep_source_order(self):
        """Test equal values keep the order they had in the input."""
        by_cpu = top_by(ROWS, SortKey.CPU, 4)
        assert [row.pid for row in by_cpu][2:] == [10, 12]

        by_mem = top_by(ROWS, SortKey.MEM, 2)
        assert [row.pid for row in by_mem] == [12, 13]

    @pytest.mark.parametrize("n", [1, 3, 5, 10])
    def test_length_and_membership(self, n):
        """Test length is min(n, rows) and every row comes from the input."""
        result = top_by(ROWS, SortKey.CPU, n)
        assert len(result) == min(n, len(ROWS))
        assert all(row in ROWS for row in result)
        values = [row.cpu_percent for row in result]
        assert values == sorted(values, reverse=True)

    def test_empty_table(self):
        """Test an empty process table gives an empty list."""
        assert top_by([], SortKey.MEM, 5) == []

    def test_input_not_modified(self):
        """Test ranking does not reorder the caller's list."""
        rows = list(ROWS)
        top_by(rows, SortKey.CPU, 2)
        assert rows == ROWS

    @pytest.mark.parametrize("n", [0, -1])
    def test_non_positive_n(self, n):
        """Test n <= 0 is rejected."""
        with pytest.raises(ValueError):
            top_by(ROWS, SortKey.CPU, n)
