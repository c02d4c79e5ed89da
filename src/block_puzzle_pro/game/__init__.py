"""Game module for Block Puzzle Pro.

Exports the core game engine and supporting classes:
- GridBoard: Grid representation with atomic placement
- BlockShape: Polyomino shape with rotation/mirror variants
- ClearEngine: Row and column clearing
- ScoreLedger: Score and high score with triangular line bonuses
- PowerUpInventory: Power-ups earned from cleared lines
- BlockPuzzleGame: Game session tying board, scoring and spawning together, with undo
"""

from .cells import BlockColor, Cell, CellState, GridPosition
from .grid import GridBoard
from .pieces import SHAPE_LIBRARY, BlockShape, PieceCategory, library_index, shape_by_name
from .clearing import ClearEngine, ClearResult, LineClear, LineKind, completed_lines
from .rules import ScoreEvent, ScoreLedger, ScoringRules
from .powerups import EARN_FREQUENCY, PowerUpInventory, PowerUpType
from .core import BlockPuzzleGame, GameConfig, GameSnapshot, HoldSlot, PlacementOutcome

__all__ = [
    "BlockColor",
    "Cell",
    "CellState",
    "GridPosition",
    "GridBoard",
    "SHAPE_LIBRARY",
    "BlockShape",
    "PieceCategory",
    "library_index",
    "shape_by_name",
    "ClearEngine",
    "ClearResult",
    "LineClear",
    "LineKind",
    "completed_lines",
    "ScoreEvent",
    "ScoreLedger",
    "ScoringRules",
    "BlockPuzzleGame",
    "GameConfig",
    "PlacementOutcome",
    "GameSnapshot",
    "HoldSlot",
    "EARN_FREQUENCY",
    "PowerUpInventory",
    "PowerUpType",
]
