import sys, os

# Ensure src is on path for test imports
ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)

import pytest

from block_puzzle_pro.game import BlockColor, Cell, GridBoard, GridPosition


def board_from_rows(rows, color=BlockColor.RED):
    """Build a board from strings: 'X' occupied, '?' preview, anything else empty.

    Cells are written through the fixture seam, so full lines stay on the board.
    """
    board = GridBoard(len(rows))
    for r, row in enumerate(rows):
        for c, ch in enumerate(row):
            if ch == "X":
                board.set_cell(GridPosition(r, c), Cell.occupied(color))
            elif ch == "?":
                board.set_cell(GridPosition(r, c), Cell.preview(color))
    return board


@pytest.fixture
def empty_board():
    return GridBoard(10)


@pytest.fixture
def make_board():
    return board_from_rows
