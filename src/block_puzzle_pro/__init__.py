"""Block Puzzle Pro: grid engine and fair piece spawning."""

from .game import (
    BlockColor,
    BlockPuzzleGame,
    BlockShape,
    Cell,
    ClearEngine,
    ClearResult,
    GameConfig,
    GridBoard,
    GridPosition,
    ScoreEvent,
    ScoreLedger,
    SHAPE_LIBRARY,
)
from .spawning import Hand, PieceSpawner, SpawningConfig, SpawningEvaluator

__all__ = [
    "BlockColor",
    "BlockPuzzleGame",
    "BlockShape",
    "Cell",
    "ClearEngine",
    "ClearResult",
    "GameConfig",
    "GridBoard",
    "GridPosition",
    "ScoreEvent",
    "ScoreLedger",
    "SHAPE_LIBRARY",
    "Hand",
    "PieceSpawner",
    "SpawningConfig",
    "SpawningEvaluator",
]
