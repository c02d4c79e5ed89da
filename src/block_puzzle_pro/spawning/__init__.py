"""Fair hand generation for Block Puzzle Pro.

The spawner draws candidates from a rolling bag, simulates each one
against the live board and redraws until the hand is fair.
"""

from .config import DEFAULT_HAND_SIZE, DifficultyStage, SpawningConfig
from .bag import RollingBag
from .evaluator import OccupancyMask, PieceEvaluation, SpawningEvaluator
from .telemetry import SpawningTelemetry
from .spawner import Hand, PieceSpawner, score_hand

__all__ = [
    "DEFAULT_HAND_SIZE",
    "DifficultyStage",
    "SpawningConfig",
    "RollingBag",
    "OccupancyMask",
    "PieceEvaluation",
    "SpawningEvaluator",
    "SpawningTelemetry",
    "Hand",
    "PieceSpawner",
    "score_hand",
]
