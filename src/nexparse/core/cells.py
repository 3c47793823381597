"""
Matrix cell storage

A Cell holds what is known about one row/column entry of a discrete matrix:
nothing (missing), an inapplicable gap, a single state, or several states
that are either polymorphic (all present) or uncertain (one of them).
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple


class CellKind(Enum):
    MISSING = "missing"
    GAP = "gap"
    SINGLE = "single"
    MULTI = "multi"


@dataclass(frozen=True)
class Cell:
    """One matrix entry"""
    kind: CellKind
    states: Tuple[int, ...] = ()
    polymorphic: bool = False  # only meaningful for MULTI

    @classmethod
    def missing(cls) -> "Cell":
        return _MISSING

    @classmethod
    def gap(cls) -> "Cell":
        return _GAP

    @classmethod
    def single(cls, state: int) -> "Cell":
        if state < 0:
            raise ValueError(f"State index must not be negative, got {state}")
        return cls(CellKind.SINGLE, (state,))

    @classmethod
    def multi(cls, states: Sequence[int], polymorphic: bool = False) -> "Cell":
        if len(states) < 2:
            raise ValueError("A multi-state cell needs at least two states")
        return cls(CellKind.MULTI, tuple(states), polymorphic)

    @property
    def is_missing(self) -> bool:
        return self.kind is CellKind.MISSING

    @property
    def is_gap(self) -> bool:
        return self.kind is CellKind.GAP

    def with_state(self, state: int) -> "Cell":
        """Return this cell with state added, keeping the existing ones"""
        if self.kind in (CellKind.MISSING, CellKind.GAP):
            return Cell.single(state)
        if state in self.states:
            return self
        if self.kind is CellKind.SINGLE:
            return Cell.multi(self.states + (state,))
        return Cell.multi(self.states + (state,), self.polymorphic)


_MISSING = Cell(CellKind.MISSING)
_GAP = Cell(CellKind.GAP)


class CellStore:
    """Dense rows x columns table of cells, all missing when allocated"""

    def __init__(self, nrows: int = 0, ncols: int = 0):
        self._rows: List[List[Cell]] = []
        self._ncols = 0
        self.reset(nrows, ncols)

    def reset(self, nrows: int, ncols: int) -> None:
        """Discard all data and allocate a fresh missing-filled table"""
        if nrows < 0 or ncols < 0:
            raise ValueError("Matrix dimensions must not be negative")
        self._ncols = ncols
        self._rows = [[Cell.missing()] * ncols for _ in range(nrows)]

    @property
    def nrows(self) -> int:
        return len(self._rows)

    @property
    def ncols(self) -> int:
        return self._ncols

    def _check(self, i: int, j: int) -> None:
        if not 0 <= i < len(self._rows):
            raise IndexError(f"Row index {i} out of range 0..{len(self._rows) - 1}")
        if not 0 <= j < self._ncols:
            raise IndexError(f"Column index {j} out of range 0..{self._ncols - 1}")

    def cell(self, i: int, j: int) -> Cell:
        self._check(i, j)
        return self._rows[i][j]

    def set_cell(self, i: int, j: int, cell: Cell) -> None:
        self._check(i, j)
        self._rows[i][j] = cell

    def set_state(self, i: int, j: int, state: int) -> None:
        """Replace whatever is stored with a single state"""
        self.set_cell(i, j, Cell.single(state))

    def add_state(self, i: int, j: int, state: int) -> None:
        """Add a state; a second distinct state makes the cell uncertain"""
        self._check(i, j)
        self._rows[i][j] = self._rows[i][j].with_state(state)

    def set_missing(self, i: int, j: int) -> None:
        self.set_cell(i, j, Cell.missing())

    def set_gap(self, i: int, j: int) -> None:
        self.set_cell(i, j, Cell.gap())

    def set_polymorphic(self, i: int, j: int, value: bool = True) -> None:
        """Mark a multi-state cell polymorphic (or uncertain). Other kinds are left alone."""
        current = self.cell(i, j)
        if current.kind is CellKind.MULTI:
            self._rows[i][j] = Cell.multi(current.states, value)

    def copy_cell(self, i: int, j: int, from_row: int = 0) -> None:
        """Copy the cell in column j of from_row into row i"""
        self.set_cell(i, j, self.cell(from_row, j))

    def add_rows(self, count: int) -> None:
        """Append count missing-filled rows"""
        if count < 0:
            raise ValueError("Cannot add a negative number of rows")
        self._rows.extend([Cell.missing()] * self._ncols for _ in range(count))

    def duplicate_row(self, row: int, count: int, col_start: int = 0, col_end: Optional[int] = None) -> int:
        """Copy part of a row into the rows that follow it.

        The cells of row between col_start and col_end (inclusive) are copied
        into the count - 1 rows following it. Rows are appended as needed.

        Args:
            row: Row to copy from
            count: Total number of rows that should carry the data, row included
            col_start: First column to copy
            col_end: Last column to copy, None for the last column

        Returns:
            Number of rows appended to the store
        """
        if col_end is None:
            col_end = self._ncols - 1
        self._check(row, col_start)
        self._check(row, col_end)
        if col_start > col_end:
            raise ValueError("col_start must not be greater than col_end")
        if count < 1:
            raise ValueError("count must be at least 1")

        needed = row + count - len(self._rows)
        added = max(0, needed)
        self.add_rows(added)

        span = self._rows[row][col_start:col_end + 1]
        for target in range(row + 1, row + count):
            self._rows[target][col_start:col_end + 1] = span
        return added

    def num_states(self, i: int, j: int) -> int:
        """Number of states stored; 0 for missing and gap cells"""
        return len(self.cell(i, j).states)

    def state(self, i: int, j: int, k: int = 0) -> int:
        """The k-th state index of a cell"""
        states = self.cell(i, j).states
        if not 0 <= k < len(states):
            raise IndexError(f"Cell ({i}, {j}) has no state number {k}")
        return states[k]

    def is_missing(self, i: int, j: int) -> bool:
        return self.cell(i, j).is_missing

    def is_gap(self, i: int, j: int) -> bool:
        return self.cell(i, j).is_gap

    def is_polymorphic(self, i: int, j: int) -> bool:
        current = self.cell(i, j)
        return current.kind is CellKind.MULTI and current.polymorphic

    def observed_states(self, j: int) -> int:
        """Number of distinct states seen anywhere in column j"""
        if not 0 <= j < self._ncols:
            raise IndexError(f"Column index {j} out of range 0..{self._ncols - 1}")
        seen = set()
        for row in self._rows:
            seen.update(row[j].states)
        return len(seen)
