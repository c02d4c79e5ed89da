from __future__ import annotations

from typing import List

from .grid import GridBoard
from .pieces import BlockShape


def render_grid(board: GridBoard) -> List[str]:
    """One string per row: '█' occupied, '?' preview, '·' empty."""
    rows: List[str] = []
    for row in board.grid:
        rows.append("".join("█" if v > 0 else "?" if v < 0 else "·" for v in row))
    return rows


def print_grid(board: GridBoard) -> None:
    for line in render_grid(board):
        print(line)


def print_shape(shape: BlockShape) -> None:
    for row in shape.pattern():
        print("".join(["█" if cell else "·" for cell in row]))
