"""Tests for CellStore, IndexMap and ActiveSet"""

import pytest
from nexparse.core.cells import Cell, CellKind, CellStore
from nexparse.core.indexing import ActiveSet, IndexMap


class TestCellTransitions:
    """How adding states changes a cell"""

    def test_new_store_is_missing(self):
        store = CellStore(2, 3)
        assert all(store.is_missing(i, j) for i in range(2) for j in range(3))

    def test_add_state_to_missing_gives_single(self):
        store = CellStore(1, 1)
        store.add_state(0, 0, 2)
        assert store.cell(0, 0) == Cell.single(2)

    def test_add_state_to_gap_gives_single(self):
        store = CellStore(1, 1)
        store.set_gap(0, 0)
        store.add_state(0, 0, 1)
        assert store.cell(0, 0).kind is CellKind.SINGLE

    def test_second_state_gives_uncertain_multi(self):
        store = CellStore(1, 1)
        store.add_state(0, 0, 0)
        store.add_state(0, 0, 3)
        cell = store.cell(0, 0)
        assert cell.kind is CellKind.MULTI
        assert cell.states == (0, 3)
        assert not cell.polymorphic

    def test_polymorphic_flag_survives_more_states(self):
        store = CellStore(1, 1)
        store.add_state(0, 0, 0)
        store.add_state(0, 0, 1)
        store.set_polymorphic(0, 0)
        store.add_state(0, 0, 2)
        assert store.is_polymorphic(0, 0)
        assert store.num_states(0, 0) == 3
        assert store.state(0, 0, 2) == 2

    def test_set_polymorphic_ignores_single(self):
        store = CellStore(1, 1)
        store.set_state(0, 0, 1)
        store.set_polymorphic(0, 0)
        assert store.cell(0, 0) == Cell.single(1)

    def test_repeated_state_not_added_twice(self):
        store = CellStore(1, 1)
        store.add_state(0, 0, 1)
        store.add_state(0, 0, 1)
        assert store.cell(0, 0) == Cell.single(1)

    def test_multi_needs_two_states(self):
        with pytest.raises(ValueError):
            Cell.multi([1])

    def test_missing_and_gap_have_no_states(self):
        store = CellStore(1, 2)
        store.set_gap(0, 1)
        assert store.num_states(0, 0) == 0
        assert store.num_states(0, 1) == 0
        with pytest.raises(IndexError):
            store.state(0, 0)


class TestCellStoreShape:
    """Row growth, duplication and bounds checks"""

    def test_out_of_range_index(self):
        store = CellStore(2, 2)
        with pytest.raises(IndexError):
            store.cell(2, 0)
        with pytest.raises(IndexError):
            store.set_state(0, -1, 0)

    def test_copy_cell(self):
        store = CellStore(2, 1)
        store.add_state(0, 0, 0)
        store.add_state(0, 0, 1)
        store.copy_cell(1, 0)
        assert store.cell(1, 0) == store.cell(0, 0)

    def test_add_rows(self):
        store = CellStore(1, 3)
        store.add_rows(2)
        assert store.nrows == 3
        assert store.is_missing(2, 2)

    def test_duplicate_row_grows_store(self):
        store = CellStore(1, 3)
        for j in range(3):
            store.set_state(0, j, j)
        added = store.duplicate_row(0, 3)
        assert added == 2
        assert store.nrows == 3
        assert [store.state(2, j) for j in range(3)] == [0, 1, 2]

    def test_duplicate_row_column_span(self):
        """Only the inclusive column span is copied, and no rows are added when there is room"""
        store = CellStore(3, 3)
        store.set_state(1, 0, 1)
        store.set_state(1, 1, 1)
        store.set_state(1, 2, 1)
        added = store.duplicate_row(1, 2, col_start=1, col_end=1)
        assert added == 0
        assert store.is_missing(2, 0)
        assert store.state(2, 1) == 1
        assert store.is_missing(2, 2)

    def test_observed_states(self):
        store = CellStore(3, 1)
        store.set_state(0, 0, 0)
        store.add_state(1, 0, 0)
        store.add_state(1, 0, 2)
        assert store.observed_states(0) == 2

    def test_reset(self):
        store = CellStore(1, 1)
        store.set_state(0, 0, 0)
        store.reset(2, 2)
        assert store.nrows == 2 and store.ncols == 2
        assert store.is_missing(0, 0)


class TestIndexMap:
    """Original to current translation"""

    def test_from_removed(self):
        index_map = IndexMap.from_removed(5, {1, 3})
        assert list(index_map) == [0, IndexMap.REMOVED, 1, IndexMap.REMOVED, 2]
        assert index_map.count == 3
        assert index_map.total == 5
        assert index_map.original(2) == 4
        assert index_map.is_removed(3)
        assert index_map.removed() == [1, 3]

    def test_order_is_preserved(self):
        """Kept originals map to strictly increasing current positions"""
        index_map = IndexMap.from_removed(8, {0, 4, 5})
        kept = [index_map.current(o) for o in range(8) if not index_map.is_removed(o)]
        assert kept == sorted(kept)
        assert len(set(kept)) == len(kept)
        for current in range(index_map.count):
            assert index_map.current(index_map.original(current)) == current

    def test_identity(self):
        index_map = IndexMap.identity(3)
        assert [index_map.original(c) for c in range(3)] == [0, 1, 2]

    def test_invalid_positions(self):
        with pytest.raises(ValueError):
            IndexMap([1, 0])
        with pytest.raises(ValueError):
            IndexMap([0, 2])

    def test_out_of_range(self):
        with pytest.raises(IndexError):
            IndexMap.identity(2).current(2)


class TestActiveSet:
    """Switching entries on and off"""

    def test_deactivate_is_idempotent(self):
        flags = ActiveSet(4)
        assert flags.deactivate([1, 2]) == 2
        assert flags.deactivate([1, 2]) == 0
        assert flags.active_count == 2
        assert flags.inactive() == [1, 2]

    def test_activate_counts_changes(self):
        flags = ActiveSet(4)
        flags.deactivate([3])
        assert flags.activate([0, 3]) == 1
        assert flags.activate([3]) == 0
