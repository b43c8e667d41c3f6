"""Tests for the read-collection context."""

import wcomp
from wcomp import Cell, collecting, untracked


class TestCollecting:
    def test_records_reads_in_order(self):
        price, qty = Cell(3), Cell(2)
        with collecting() as reads:
            price.value * qty.value
        assert list(reads.cells) == [price, qty]

    def test_records_each_cell_once(self):
        c = Cell(1)
        with collecting() as reads:
            c.value + c.value
        assert list(reads.cells) == [c]

    def test_peek_is_not_recorded(self):
        c = Cell(1)
        with collecting() as reads:
            c.peek()
        assert not reads.cells

    def test_no_context_no_record(self):
        c = Cell(1)
        c.value
        with collecting() as reads:
            pass
        assert not reads.cells

    def test_nested_contexts_are_separate(self):
        a, b = Cell(1), Cell(2)
        with collecting() as outer:
            a.value
            with collecting() as inner:
                b.value
            a.value
        assert list(outer.cells) == [a]
        assert list(inner.cells) == [b]

    def test_untracked(self):
        a, b = Cell(1), Cell(2)
        with collecting() as reads:
            a.value
            with untracked():
                b.value
        assert list(reads.cells) == [a]

    def test_callback_subscribes(self):
        a = Cell(1)
        log = []
        with collecting(lambda: log.append(a.peek())):
            a.value
        a.value = 2
        wcomp.flush()
        assert log == [2]
        assert a.subscriber_count == 1
