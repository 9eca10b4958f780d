"""Tests for the batch chunker."""

import pytest

from db_restore.backup.batch import chunk
from db_restore.constants import BATCH_SIZE


class TestChunk:
    def test_batch_boundary_1001_rows(self):
        rows = list(range(1001))
        batches = chunk(rows, 500)
        assert [len(b) for b in batches] == [500, 500, 1]
        assert [x for b in batches for x in b] == rows

    def test_default_size_is_batch_size(self):
        assert [len(b) for b in chunk(list(range(BATCH_SIZE + 1)))] == [BATCH_SIZE, 1]

    def test_exact_multiple_has_no_empty_tail(self):
        assert chunk([1, 2, 3, 4], 2) == [[1, 2], [3, 4]]

    def test_empty_input(self):
        assert chunk([], 10) == []

    def test_size_larger_than_input(self):
        assert chunk(["a"], 10) == [["a"]]

    @pytest.mark.parametrize("size", [0, -1])
    def test_invalid_size_rejected(self, size):
        with pytest.raises(ValueError, match="at least 1"):
            chunk([1], size)
