from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


DEFAULT_HAND_SIZE = 3


class DifficultyStage(Enum):
    EARLY = "early"
    MID = "mid"
    LATE = "late"


@dataclass
class SpawningConfig:
    """Tunables for hand generation."""

    hand_size: int = DEFAULT_HAND_SIZE
    guarantee_one_fits_piece: bool = True
    guarantee_one_clearing_piece: bool = True
    min_clear_potential_per_set: int = 1
    max_clear_potential_per_set: int = 6
    grid_fullness_threshold: float = 0.7
    # Stage boundaries in placements made this game
    mid_stage_placements: int = 6
    late_stage_placements: int = 18
    early_target_complexity: float = 3.0
    mid_target_complexity: float = 5.0
    late_target_complexity: float = 7.0
    max_retries: int = 12
    early_exit_clears: int = 2
    debug_logging: bool = False
    telemetry_enabled: bool = True
    random_seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.hand_size < 1:
            raise ValueError(f"hand_size must be at least 1, got {self.hand_size}")
        if not 0.0 <= self.grid_fullness_threshold <= 1.0:
            raise ValueError("grid_fullness_threshold must be within [0, 1]")
        if self.min_clear_potential_per_set > self.max_clear_potential_per_set:
            raise ValueError("min_clear_potential_per_set exceeds max_clear_potential_per_set")
        if not 0 < self.mid_stage_placements <= self.late_stage_placements:
            raise ValueError("stage thresholds must satisfy 0 < mid <= late")
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")

    def stage_for(self, placements: int) -> DifficultyStage:
        if placements >= self.late_stage_placements:
            return DifficultyStage.LATE
        if placements >= self.mid_stage_placements:
            return DifficultyStage.MID
        return DifficultyStage.EARLY

    def target_complexity(self, stage: DifficultyStage) -> float:
        if stage == DifficultyStage.LATE:
            return self.late_target_complexity
        if stage == DifficultyStage.MID:
            return self.mid_target_complexity
        return self.early_target_complexity
