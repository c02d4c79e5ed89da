from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .cells import BlockColor, Cell, GridPosition

logger = logging.getLogger(__name__)


class GridBoard:
    """Square grid of cells with placement validation.

    The matrix uses 0 for empty cells, a positive color tag for occupied
    cells and a negative color tag for preview cells. Row and column
    occupancy bitmasks are kept in sync with every mutation: bit `c` of
    `row_masks[r]` and bit `r` of `column_masks[c]` are set iff cell
    (r, c) is occupied.
    """

    def __init__(self, size: int = 10) -> None:
        size = int(size)
        if size < 1:
            raise ValueError(f"grid size must be positive, got {size}")
        self.size = size
        self.full_mask = (1 << size) - 1
        self.grid = np.zeros((size, size), dtype=np.int8)
        self._row_masks: List[int] = [0] * size
        self._column_masks: List[int] = [0] * size
        logger.debug("GridBoard initialized with %dx%d grid", size, size)

    # ---------- Reads ----------
    def is_inside(self, row: int, column: int) -> bool:
        return 0 <= row < self.size and 0 <= column < self.size

    def cell(self, position: GridPosition) -> Optional[Cell]:
        if not self.is_inside(position.row, position.column):
            return None
        return Cell.from_value(int(self.grid[position.row, position.column]))

    def can_place_at(self, position: GridPosition) -> bool:
        if not self.is_inside(position.row, position.column):
            return False
        # Preview cells are overwritten by a real placement
        return bool(self.grid[position.row, position.column] <= 0)

    def is_board_completely_empty(self) -> bool:
        return not any(self._row_masks)

    def is_row_complete(self, row: int) -> bool:
        return 0 <= row < self.size and self._row_masks[row] == self.full_mask

    def is_column_complete(self, column: int) -> bool:
        return 0 <= column < self.size and self._column_masks[column] == self.full_mask

    @property
    def row_masks(self) -> List[int]:
        return list(self._row_masks)

    @property
    def column_masks(self) -> List[int]:
        return list(self._column_masks)

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.grid > 0))

    def filled_ratio(self) -> float:
        return float(self.occupied_count()) / float(self.size * self.size)

    def empty_positions(self) -> List[GridPosition]:
        rows, columns = np.nonzero(self.grid <= 0)
        return [GridPosition(int(r), int(c)) for r, c in zip(rows, columns)]

    def occupancy(self) -> np.ndarray:
        """0/1 matrix of occupied cells; previews read as empty."""
        return (self.grid > 0).astype(np.int8)

    def clone_state(self) -> np.ndarray:
        return self.grid.copy()

    def copy(self) -> "GridBoard":
        new_board = GridBoard(self.size)
        new_board.grid = self.grid.copy()
        new_board._row_masks = list(self._row_masks)
        new_board._column_masks = list(self._column_masks)
        return new_board

    # ---------- Mutation ----------
    def place_blocks(self, positions: Sequence[GridPosition], color: BlockColor) -> bool:
        """Occupy every position with `color`, or nothing at all.

        Returns False without touching the board if any position is out of
        range, already occupied or listed twice.
        """
        positions = list(positions)
        if not positions:
            return False
        if len(set(positions)) != len(positions):
            logger.debug("Rejected placement with duplicate positions: %s", positions)
            return False
        for position in positions:
            if not self.can_place_at(position):
                logger.debug("Cannot place block at position %s", position)
                return False
        value = int(BlockColor(color))
        for position in positions:
            self._write(position.row, position.column, value)
        logger.debug("Placed %d blocks with color %s", len(positions), BlockColor(color).name)
        return True

    def set_cell(self, position: GridPosition, cell: Cell) -> None:
        """Overwrite a cell without placement validation.

        Test and fixture seam only; gameplay goes through `place_blocks`.
        """
        if not self.is_inside(position.row, position.column):
            logger.warning("Attempted to set cell at invalid position: %s", position)
            return
        self._write(position.row, position.column, cell.to_value())

    def set_preview(self, positions: Iterable[GridPosition], color: BlockColor) -> None:
        value = -int(BlockColor(color))
        for position in positions:
            if self.is_inside(position.row, position.column) and self.grid[position.row, position.column] == 0:
                self.grid[position.row, position.column] = value

    def clear_previews(self) -> None:
        self.grid[self.grid < 0] = 0

    def clear_lines(self, rows: Iterable[int], columns: Iterable[int]) -> None:
        """Reset every cell of the given rows and columns to empty in one pass."""
        rows = [r for r in rows if 0 <= r < self.size]
        columns = [c for c in columns if 0 <= c < self.size]
        if not rows and not columns:
            return
        if rows:
            self.grid[rows, :] = 0
        if columns:
            self.grid[:, columns] = 0
        self._rebuild_masks()

    def clear_cells(self, positions: Iterable[GridPosition]) -> int:
        """Empty the given cells; out-of-range positions are skipped. Returns cells freed."""
        freed = 0
        for position in positions:
            if not self.is_inside(position.row, position.column):
                continue
            if self.grid[position.row, position.column] > 0:
                freed += 1
            self._write(position.row, position.column, 0)
        return freed

    def load_state(self, grid: np.ndarray) -> None:
        """Replace the whole matrix (undo snapshots) and rebuild the masks."""
        grid = np.asarray(grid, dtype=np.int8)
        if grid.shape != (self.size, self.size):
            raise ValueError(f"expected a {self.size}x{self.size} grid, got {grid.shape}")
        self.grid = grid.copy()
        self._rebuild_masks()

    def start_new_game(self) -> None:
        self.grid.fill(0)
        self._row_masks = [0] * self.size
        self._column_masks = [0] * self.size

    # ---------- Internals ----------
    def _write(self, row: int, column: int, value: int) -> None:
        self.grid[row, column] = value
        if value > 0:
            self._row_masks[row] |= 1 << column
            self._column_masks[column] |= 1 << row
        else:
            self._row_masks[row] &= ~(1 << column)
            self._column_masks[column] &= ~(1 << row)

    def _rebuild_masks(self) -> None:
        occupied = (self.grid > 0).tolist()
        self._row_masks = [
            sum(1 << c for c, filled in enumerate(row) if filled) for row in occupied
        ]
        self._column_masks = [
            sum(1 << r for r in range(self.size) if occupied[r][c]) for c in range(self.size)
        ]
