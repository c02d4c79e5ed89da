from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from functools import cached_property
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .cells import BlockColor, GridPosition


Offset = Tuple[int, int]  # (dx, dy): column offset, row offset
Shape = np.ndarray


class PieceCategory(IntEnum):
    MONOMINO = 1
    DOMINO = 2
    TROMINO = 3
    TETROMINO = 4
    PENTOMINO = 5
    HEXOMINO = 6
    LARGE_REWARD = 7  # 7-9 cells

    @classmethod
    def for_cell_count(cls, count: int) -> "PieceCategory":
        if count < 1:
            raise ValueError(f"a shape needs at least one cell, got {count}")
        if count >= 7:
            return cls.LARGE_REWARD
        return cls(count)


def _rot90(shape: Shape, k: int) -> Shape:
    k = k % 4
    if k == 0:
        return shape
    return np.rot90(shape, k, axes=(1, 0))  # rotate clockwise when k>0


def _normalize(cells: Iterable[Offset]) -> Tuple[Offset, ...]:
    cells = {(int(dx), int(dy)) for dx, dy in cells}
    if not cells:
        return ()
    min_x = min(dx for dx, _ in cells)
    min_y = min(dy for _, dy in cells)
    return tuple(sorted(((dx - min_x, dy - min_y) for dx, dy in cells), key=lambda c: (c[1], c[0])))


def _cells_from_pattern(pattern: Shape) -> Tuple[Offset, ...]:
    ys, xs = np.nonzero(pattern)
    return _normalize(zip(xs.tolist(), ys.tolist()))


@dataclass(frozen=True)
class BlockShape:
    """Immutable polyomino described by its occupied (dx, dy) offsets.

    Offsets are normalized so the bounding box starts at (0, 0). Variants
    (rotations and the horizontal mirror) keep the name, complexity and
    color of the shape they came from.
    """

    name: str
    cells: Tuple[Offset, ...]
    complexity: int = 1
    color: BlockColor = BlockColor.BLUE

    def __post_init__(self) -> None:
        cells = _normalize(self.cells)
        if not cells:
            raise ValueError(f"shape {self.name!r} has no cells")
        if not 1 <= self.complexity <= 10:
            raise ValueError(f"complexity must be within 1..10, got {self.complexity}")
        object.__setattr__(self, "cells", cells)
        object.__setattr__(self, "color", BlockColor(self.color))

    @classmethod
    def from_rows(cls, name: str, rows: Sequence[str], complexity: int = 1,
                  color: BlockColor = BlockColor.BLUE) -> "BlockShape":
        """Build a shape from rows of text where 'X' marks an occupied cell."""
        cells = [(dx, dy) for dy, row in enumerate(rows) for dx, ch in enumerate(row) if ch == "X"]
        return cls(name, tuple(cells), complexity, color)

    # ---------- Geometry ----------
    @property
    def width(self) -> int:
        return max(dx for dx, _ in self.cells) + 1

    @property
    def height(self) -> int:
        return max(dy for _, dy in self.cells) + 1

    @property
    def cell_count(self) -> int:
        return len(self.cells)

    @property
    def category(self) -> PieceCategory:
        return PieceCategory.for_cell_count(self.cell_count)

    def pattern(self) -> Shape:
        shape = np.zeros((self.height, self.width), dtype=np.int8)
        for dx, dy in self.cells:
            shape[dy, dx] = 1
        return shape

    def _with_cells(self, cells: Tuple[Offset, ...]) -> "BlockShape":
        return BlockShape(self.name, cells, self.complexity, self.color)

    def rotated(self, k: int = 1) -> "BlockShape":
        return self._with_cells(_cells_from_pattern(_rot90(self.pattern(), k)))

    def mirrored(self) -> "BlockShape":
        return self._with_cells(_cells_from_pattern(np.fliplr(self.pattern())))

    @cached_property
    def variants(self) -> Tuple["BlockShape", ...]:
        """Distinct orientations reachable by rotation and mirroring, self first."""
        seen: Dict[Tuple[Offset, ...], BlockShape] = {self.cells: self}
        for base in (self, self.mirrored()):
            for k in range(4):
                candidate = base.rotated(k)
                seen.setdefault(candidate.cells, candidate)
        return tuple(seen.values())

    @cached_property
    def row_bits(self) -> Tuple[int, ...]:
        """Bit pattern of each shape row, bit dx set for an occupied cell."""
        bits = [0] * self.height
        for dx, dy in self.cells:
            bits[dy] |= 1 << dx
        return tuple(bits)

    @cached_property
    def column_bits(self) -> Tuple[int, ...]:
        bits = [0] * self.width
        for dx, dy in self.cells:
            bits[dx] |= 1 << dy
        return tuple(bits)

    # ---------- Placement ----------
    def fits_within(self, origin: GridPosition, grid_size: int) -> bool:
        return (
            origin.row >= 0
            and origin.column >= 0
            and origin.row + self.height <= grid_size
            and origin.column + self.width <= grid_size
        )

    def positions_at(self, origin: GridPosition, grid_size: int) -> Optional[List[GridPosition]]:
        """Board positions covered when the top-left corner sits on `origin`."""
        if not self.fits_within(origin, grid_size):
            return None
        return [GridPosition(origin.row + dy, origin.column + dx) for dx, dy in self.cells]

    def __str__(self) -> str:
        return f"{self.name}[{self.width}x{self.height}]"


SHAPE_LIBRARY: Tuple[BlockShape, ...] = (
    BlockShape.from_rows("single", ["X"], 1, BlockColor.BLUE),
    BlockShape.from_rows("domino", ["XX"], 1, BlockColor.GREEN),
    BlockShape.from_rows("tromino_line", ["XXX"], 2, BlockColor.CYAN),
    BlockShape.from_rows("tromino_corner", ["X.", "XX"], 3, BlockColor.ORANGE),
    BlockShape.from_rows("square_2x2", ["XX", "XX"], 2, BlockColor.YELLOW),
    BlockShape.from_rows("tetromino_line", ["XXXX"], 3, BlockColor.CYAN),
    BlockShape.from_rows("tetromino_t", ["XXX", ".X."], 5, BlockColor.PURPLE),
    BlockShape.from_rows("tetromino_l", ["X..", "XXX"], 5, BlockColor.ORANGE),
    BlockShape.from_rows("tetromino_s", [".XX", "XX."], 6, BlockColor.RED),
    BlockShape.from_rows("pentomino_line", ["XXXXX"], 4, BlockColor.BLUE),
    BlockShape.from_rows("pentomino_p", ["XX", "XX", "X."], 5, BlockColor.PINK),
    BlockShape.from_rows("corner_3x3", ["X..", "X..", "XXX"], 6, BlockColor.GREEN),
    BlockShape.from_rows("pentomino_u", ["X.X", "XXX"], 7, BlockColor.PURPLE),
    BlockShape.from_rows("pentomino_plus", [".X.", "XXX", ".X."], 8, BlockColor.RED),
    BlockShape.from_rows("pentomino_w", ["X..", "XX.", ".XX"], 9, BlockColor.PINK),
    BlockShape.from_rows("rect_2x3", ["XXX", "XXX"], 4, BlockColor.YELLOW),
    BlockShape.from_rows("square_3x3", ["XXX", "XXX", "XXX"], 5, BlockColor.ORANGE),
)

_BY_NAME: Dict[str, BlockShape] = {shape.name: shape for shape in SHAPE_LIBRARY}
_INDEX_BY_NAME: Dict[str, int] = {shape.name: i for i, shape in enumerate(SHAPE_LIBRARY)}


def shape_by_name(name: str) -> Optional[BlockShape]:
    return _BY_NAME.get(name)


def library_index(shape: BlockShape) -> int:
    """Index of the shape's family in SHAPE_LIBRARY, -1 for custom shapes."""
    return _INDEX_BY_NAME.get(shape.name, -1)
