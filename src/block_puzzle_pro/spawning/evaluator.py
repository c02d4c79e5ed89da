from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from block_puzzle_pro.game.grid import GridBoard
from block_puzzle_pro.game.pieces import BlockShape
from .config import SpawningConfig


@dataclass(frozen=True)
class OccupancyMask:
    """Read-only bitmask snapshot of a board's occupied cells."""

    size: int
    rows: Tuple[int, ...]
    columns: Tuple[int, ...]

    @classmethod
    def from_board(cls, board: GridBoard) -> "OccupancyMask":
        return cls(board.size, tuple(board.row_masks), tuple(board.column_masks))

    @property
    def full(self) -> int:
        return (1 << self.size) - 1

    @property
    def is_empty(self) -> bool:
        return not any(self.rows)

    def occupied_count(self) -> int:
        return sum(bin(mask).count("1") for mask in self.rows)

    def fullness(self) -> float:
        return self.occupied_count() / float(self.size * self.size)

    def fits(self, variant: BlockShape, row: int, column: int) -> bool:
        for dy, bits in enumerate(variant.row_bits):
            if self.rows[row + dy] & (bits << column):
                return False
        return True

    def lines_completed_by(self, variant: BlockShape, row: int, column: int) -> int:
        """Rows plus columns that would be full after placing `variant` there.

        Only lines the variant touches can change, so only those are checked.
        """
        full = self.full
        count = 0
        for dy, bits in enumerate(variant.row_bits):
            if self.rows[row + dy] | (bits << column) == full:
                count += 1
        for dx, bits in enumerate(variant.column_bits):
            if self.columns[column + dx] | (bits << row) == full:
                count += 1
        return count


@dataclass(frozen=True)
class PieceEvaluation:
    shape: BlockShape
    fits: bool
    max_clearing_potential: int
    best_variant: Optional[BlockShape] = None
    best_origin: Optional[Tuple[int, int]] = None

    @property
    def can_clear(self) -> bool:
        return self.max_clearing_potential >= 1


class SpawningEvaluator:
    """Brute-force placement search over every variant and origin.

    The search stops as soon as a placement clears `early_exit_clears`
    lines or more, so reported potentials above that value are lower
    bounds. When built with a `SpawningConfig` the threshold is read from
    it on every search.
    """

    def __init__(self, early_exit_clears: int = 2, config: Optional[SpawningConfig] = None) -> None:
        self._early_exit_clears = int(early_exit_clears)
        self.config = config

    @property
    def early_exit_clears(self) -> int:
        if self.config is not None:
            return self.config.early_exit_clears
        return self._early_exit_clears

    @staticmethod
    def placements(shape: BlockShape, mask: OccupancyMask) -> Iterator[Tuple[BlockShape, int, int]]:
        for variant in shape.variants:
            for row in range(mask.size - variant.height + 1):
                for column in range(mask.size - variant.width + 1):
                    if mask.fits(variant, row, column):
                        yield variant, row, column

    def evaluate_mask(self, shape: BlockShape, mask: OccupancyMask) -> PieceEvaluation:
        fits = False
        best = 0
        best_variant: Optional[BlockShape] = None
        best_origin: Optional[Tuple[int, int]] = None
        for variant, row, column in self.placements(shape, mask):
            if not fits:
                fits = True
                best_variant, best_origin = variant, (row, column)
            lines = mask.lines_completed_by(variant, row, column)
            if lines > best:
                best = lines
                best_variant, best_origin = variant, (row, column)
                if best >= self.early_exit_clears:
                    break
        return PieceEvaluation(shape, fits, best, best_variant, best_origin)

    def evaluate(self, shape: BlockShape, board: GridBoard) -> PieceEvaluation:
        return self.evaluate_mask(shape, OccupancyMask.from_board(board))

    def max_clearing_potential(self, shape: BlockShape, board: GridBoard) -> int:
        return self.evaluate(shape, board).max_clearing_potential

    def can_fit_somewhere(self, shape: BlockShape, board: GridBoard) -> bool:
        mask = OccupancyMask.from_board(board)
        return next(self.placements(shape, mask), None) is not None

    def evaluate_all(self, shapes: List[Optional[BlockShape]], board: GridBoard) -> List[Optional[PieceEvaluation]]:
        mask = OccupancyMask.from_board(board)
        return [self.evaluate_mask(shape, mask) if shape is not None else None for shape in shapes]
