"""
Index translation between original and current numbering.

Columns removed by ELIMINATE (and rows absent from a matrix) keep their
original numbers in the file but have no storage. IndexMap translates in both
directions; ActiveSet records which stored entries are switched on.
"""

from typing import Iterable, List, Sequence


class IndexMap:
    """Maps original 0-based indices to current storage positions"""

    REMOVED = -1

    def __init__(self, positions: Sequence[int]):
        expected = 0
        for original, current in enumerate(positions):
            if current == self.REMOVED:
                continue
            if current != expected:
                raise ValueError(
                    f"Current positions must run 0, 1, 2, ... in original order (index {original})"
                )
            expected += 1
        self._positions: List[int] = list(positions)
        self._originals: List[int] = [
            original for original, current in enumerate(self._positions) if current != self.REMOVED
        ]

    @classmethod
    def identity(cls, total: int) -> "IndexMap":
        return cls(range(total))

    @classmethod
    def from_removed(cls, total: int, removed: Iterable[int]) -> "IndexMap":
        """Build a map over total entries with the given originals removed"""
        removed = set(removed)
        positions = []
        current = 0
        for original in range(total):
            if original in removed:
                positions.append(cls.REMOVED)
            else:
                positions.append(current)
                current += 1
        return cls(positions)

    @property
    def total(self) -> int:
        """Number of original indices"""
        return len(self._positions)

    @property
    def count(self) -> int:
        """Number of stored (non-removed) indices"""
        return len(self._originals)

    def current(self, original: int) -> int:
        """Current position of original, or REMOVED"""
        if not 0 <= original < len(self._positions):
            raise IndexError(f"Original index {original} out of range 0..{len(self._positions) - 1}")
        return self._positions[original]

    def original(self, current: int) -> int:
        """Original index of the entry stored at current"""
        if not 0 <= current < len(self._originals):
            raise IndexError(f"Current index {current} out of range 0..{len(self._originals) - 1}")
        return self._originals[current]

    def is_removed(self, original: int) -> bool:
        return self.current(original) == self.REMOVED

    def removed(self) -> List[int]:
        return [o for o, c in enumerate(self._positions) if c == self.REMOVED]

    def __len__(self) -> int:
        return len(self._positions)

    def __iter__(self):
        return iter(self._positions)


class ActiveSet:
    """One on/off flag per current index"""

    def __init__(self, size: int):
        self._flags: List[bool] = [True] * size

    def __len__(self) -> int:
        return len(self._flags)

    def _check(self, index: int) -> None:
        if not 0 <= index < len(self._flags):
            raise IndexError(f"Index {index} out of range 0..{len(self._flags) - 1}")

    def is_active(self, index: int) -> bool:
        self._check(index)
        return self._flags[index]

    def set(self, index: int, value: bool) -> bool:
        """Set one flag; returns True if it changed"""
        self._check(index)
        if self._flags[index] == value:
            return False
        self._flags[index] = value
        return True

    def deactivate(self, indices: Iterable[int]) -> int:
        """Switch off indices; returns how many were on"""
        return sum(1 for index in sorted(set(indices)) if self.set(index, False))

    def activate(self, indices: Iterable[int]) -> int:
        """Switch on indices; returns how many were off"""
        return sum(1 for index in sorted(set(indices)) if self.set(index, True))

    @property
    def active_count(self) -> int:
        return sum(self._flags)

    def inactive(self) -> List[int]:
        return [index for index, flag in enumerate(self._flags) if not flag]
