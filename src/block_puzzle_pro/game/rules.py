from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .clearing import ClearResult

logger = logging.getLogger(__name__)


@dataclass
class ScoringRules:
    placement_points_per_cell: int = 1
    line_clear_base: int = 100

    def __post_init__(self) -> None:
        if self.placement_points_per_cell < 0 or self.line_clear_base < 0:
            raise ValueError("scoring constants must be non-negative")

    def score_for_lines(self, lines: int) -> int:
        """Triangular bonus: 1 line -> 100, 2 -> 300, 3 -> 600, 4 -> 1000."""
        if lines <= 0:
            return 0
        return self.line_clear_base * lines * (lines + 1) // 2

    def score_for_cells(self, cells: int) -> int:
        return max(0, cells) * self.placement_points_per_cell


@dataclass(frozen=True)
class ScoreEvent:
    placement_points: int
    line_clear_bonus: int
    total_delta: int
    new_total: int
    is_new_high_score: bool
    placed_cells: int = 0
    lines_cleared: int = 0
    high_score: int = 0


class ScoreLedger:
    """Running score plus a high score that survives `reset`."""

    def __init__(self, rules: Optional[ScoringRules] = None) -> None:
        self.rules = rules or ScoringRules()
        self.score = 0
        self.high_score = 0
        self.last_score_event: Optional[ScoreEvent] = None

    def apply_score(self, placed_cells: int, line_clear_result: ClearResult) -> ScoreEvent:
        lines = line_clear_result.total_cleared_lines
        placement_points = self.rules.score_for_cells(placed_cells)
        bonus = self.rules.score_for_lines(lines)
        delta = placement_points + bonus
        self.score += delta

        is_new_high = self.score > self.high_score
        if is_new_high:
            self.high_score = self.score

        event = ScoreEvent(
            placement_points=placement_points,
            line_clear_bonus=bonus,
            total_delta=delta,
            new_total=self.score,
            is_new_high_score=is_new_high,
            placed_cells=max(0, placed_cells),
            lines_cleared=lines,
            high_score=self.high_score,
        )
        self.last_score_event = event
        logger.debug(
            "Score updated by %d points (placement: %d, bonus: %d) -> total %d",
            delta, placement_points, bonus, self.score,
        )
        return event

    def reset(self) -> None:
        self.score = 0
        self.last_score_event = None

    def restore(self, score: int, high_score: int) -> None:
        """Load a saved score pair; the high score never drops below the score."""
        self.score = max(0, int(score))
        self.high_score = max(self.score, int(high_score), self.high_score)
        self.last_score_event = None
