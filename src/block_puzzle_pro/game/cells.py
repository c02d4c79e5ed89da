from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class BlockColor(IntEnum):
    """Opaque color tag stored in occupied cells.

    Values double as the integers written into the board matrix, so 0 is
    reserved for empty cells.
    """

    RED = 1
    BLUE = 2
    GREEN = 3
    YELLOW = 4
    PURPLE = 5
    ORANGE = 6
    CYAN = 7
    PINK = 8


class CellState(IntEnum):
    EMPTY = 0
    OCCUPIED = 1
    PREVIEW = 2


@dataclass(frozen=True)
class GridPosition:
    """A (row, column) coordinate.

    The plain constructor does not check bounds; use `validated` when the
    coordinate comes from outside the engine.
    """

    row: int
    column: int

    @classmethod
    def validated(cls, row: int, column: int, grid_size: int) -> Optional["GridPosition"]:
        if 0 <= row < grid_size and 0 <= column < grid_size:
            return cls(int(row), int(column))
        return None

    def is_valid(self, grid_size: int) -> bool:
        return 0 <= self.row < grid_size and 0 <= self.column < grid_size

    def offset(self, d_row: int, d_column: int) -> "GridPosition":
        return GridPosition(self.row + d_row, self.column + d_column)

    def __str__(self) -> str:
        return f"({self.row}, {self.column})"


@dataclass(frozen=True)
class Cell:
    state: CellState = CellState.EMPTY
    color: Optional[BlockColor] = None

    @classmethod
    def empty(cls) -> "Cell":
        return EMPTY_CELL

    @classmethod
    def occupied(cls, color: BlockColor) -> "Cell":
        return cls(CellState.OCCUPIED, BlockColor(color))

    @classmethod
    def preview(cls, color: BlockColor) -> "Cell":
        return cls(CellState.PREVIEW, BlockColor(color))

    @classmethod
    def from_value(cls, value: int) -> "Cell":
        """Decode a board matrix value (0 empty, +tag occupied, -tag preview)."""
        if value == 0:
            return EMPTY_CELL
        if value > 0:
            return cls.occupied(BlockColor(value))
        return cls.preview(BlockColor(-value))

    def to_value(self) -> int:
        if self.state == CellState.OCCUPIED:
            return int(self.color)
        if self.state == CellState.PREVIEW:
            return -int(self.color)
        return 0

    @property
    def is_empty(self) -> bool:
        return self.state == CellState.EMPTY

    @property
    def is_occupied(self) -> bool:
        return self.state == CellState.OCCUPIED

    @property
    def is_preview(self) -> bool:
        return self.state == CellState.PREVIEW


EMPTY_CELL = Cell()
