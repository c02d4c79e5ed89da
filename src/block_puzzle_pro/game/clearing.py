from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Sequence, Tuple

from .cells import BlockColor, GridPosition
from .grid import GridBoard

logger = logging.getLogger(__name__)


class LineKind(Enum):
    ROW = "row"
    COLUMN = "column"


@dataclass(frozen=True)
class LineFragment:
    position: GridPosition
    color: BlockColor


@dataclass(frozen=True)
class LineClear:
    """One cleared row or column, kept for the animation collaborator."""

    kind: LineKind
    index: int
    positions: Tuple[GridPosition, ...]
    fragments: Tuple[LineFragment, ...] = ()

    @property
    def id(self) -> str:
        prefix = "row" if self.kind == LineKind.ROW else "col"
        return f"{prefix}-{self.index}"


@dataclass(frozen=True)
class ClearResult:
    rows: FrozenSet[int] = field(default_factory=frozenset)
    columns: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def total_cleared_lines(self) -> int:
        # An intersection cell counts toward both its row and its column
        return len(self.rows) + len(self.columns)

    @property
    def is_empty(self) -> bool:
        return not self.rows and not self.columns


EMPTY_CLEAR = ClearResult()


def completed_lines(row_masks: Sequence[int], column_masks: Sequence[int],
                    size: int) -> Tuple[List[int], List[int]]:
    """Indices of rows and columns whose occupancy mask is full."""
    full = (1 << size) - 1
    rows = [r for r, mask in enumerate(row_masks) if mask == full]
    columns = [c for c, mask in enumerate(column_masks) if mask == full]
    return rows, columns


class ClearEngine:
    """Detects and clears complete rows and columns.

    `active_line_clears` holds the lines removed by the most recent call
    until the caller resets it with `clear_active_line_clears`.
    """

    def __init__(self) -> None:
        self.active_line_clears: List[LineClear] = []

    def process_completed_lines(self, board: GridBoard) -> ClearResult:
        rows, columns = completed_lines(board.row_masks, board.column_masks, board.size)
        if not rows and not columns:
            self.active_line_clears = []
            return EMPTY_CLEAR

        line_clears: List[LineClear] = []
        for row in rows:
            positions = tuple(GridPosition(row, c) for c in range(board.size))
            line_clears.append(LineClear(LineKind.ROW, row, positions, self._fragments(board, positions)))
        for column in columns:
            positions = tuple(GridPosition(r, column) for r in range(board.size))
            line_clears.append(LineClear(LineKind.COLUMN, column, positions, self._fragments(board, positions)))

        board.clear_lines(rows, columns)
        self.active_line_clears = line_clears
        logger.info("Cleared %d rows and %d columns", len(rows), len(columns))
        return ClearResult(rows=frozenset(rows), columns=frozenset(columns))

    def clear_active_line_clears(self) -> None:
        self.active_line_clears = []

    @staticmethod
    def _fragments(board: GridBoard, positions: Sequence[GridPosition]) -> Tuple[LineFragment, ...]:
        fragments: List[LineFragment] = []
        for position in positions:
            cell = board.cell(position)
            if cell is not None and cell.is_occupied:
                fragments.append(LineFragment(position, cell.color))
        return tuple(fragments)
