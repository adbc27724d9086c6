"""
Test Suite for SelectionCycler
"""

import pytest

from statstree.engine.cycler import SelectionCycler


@pytest.fixture
def items():
    return ["a", "b", "c", "d", "e"]


class TestSingleStep:
    """Paging one item at a time (alternatives)."""

    def test_walk_forward_and_back(self, items):
        cycler = SelectionCycler(items)
        assert cycler.window() == ["a"]
        assert not cycler.has_prev
        while cycler.next():
            pass
        assert cycler.index == 4
        assert cycler.window() == ["e"]
        assert not cycler.has_next
        assert cycler.prev()
        assert cycler.window() == ["d"]

    def test_bounds_are_no_ops(self, items):
        cycler = SelectionCycler(items)
        assert cycler.prev() is False
        assert cycler.index == 0

    def test_empty_list(self):
        cycler = SelectionCycler([])
        assert cycler.window() == []
        assert not cycler.has_next and not cycler.has_prev
        assert cycler.next() is False


class TestPairs:
    """Paging two at a time (companions)."""

    def test_windows(self, items):
        cycler = SelectionCycler(items, step_size=2)
        windows = [cycler.window()]
        while cycler.next():
            windows.append(cycler.window())
        assert windows == [["a", "b"], ["c", "d"], ["e"]]

    def test_has_next_uses_step_size(self):
        cycler = SelectionCycler(["a", "b"], step_size=2)
        assert not cycler.has_next

    def test_starting_at_aligns_down(self, items):
        cycler = SelectionCycler.starting_at(items, "d", step_size=2)
        assert cycler.index == 2
        assert cycler.window() == ["c", "d"]

    def test_starting_at_unknown_id(self, items):
        assert SelectionCycler.starting_at(items, "zzz").index == 0


class TestConstruction:
    """Test argument handling."""

    def test_invalid_step_size(self):
        with pytest.raises(ValueError):
            SelectionCycler(["a"], step_size=0)

    @pytest.mark.parametrize("index,expected", [(-3, 0), (2, 2), (99, 4)])
    def test_index_is_clamped(self, items, index, expected):
        assert SelectionCycler(items, index=index).index == expected

    def test_items_are_copied(self, items):
        cycler = SelectionCycler(items)
        items.append("f")
        assert len(cycler.items) == 5
