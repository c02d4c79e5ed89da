from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List

logger = logging.getLogger(__name__)


class PowerUpType(Enum):
    ROTATE_TOKEN = "rotate_token"
    BOMB = "bomb"
    SINGLE_BLOCK = "single_block"
    CLEAR_ROW = "clear_row"
    CLEAR_COLUMN = "clear_column"


# One power-up is earned each time the running line count crosses a multiple
EARN_FREQUENCY: Dict[PowerUpType, int] = {
    PowerUpType.ROTATE_TOKEN: 3,
    PowerUpType.BOMB: 5,
    PowerUpType.SINGLE_BLOCK: 4,
    PowerUpType.CLEAR_ROW: 7,
    PowerUpType.CLEAR_COLUMN: 7,
}


class PowerUpInventory:
    """Power-up counts earned from cleared lines."""

    def __init__(self) -> None:
        self.counts: Dict[PowerUpType, int] = {kind: 0 for kind in PowerUpType}
        self.lines_cleared = 0

    def count(self, kind: PowerUpType) -> int:
        return self.counts[kind]

    def add(self, kind: PowerUpType, count: int = 1) -> None:
        self.counts[kind] += max(0, count)

    def use(self, kind: PowerUpType) -> bool:
        if self.counts[kind] <= 0:
            return False
        self.counts[kind] -= 1
        return True

    def on_line_clear(self, lines: int) -> List[PowerUpType]:
        """Feed cleared lines; returns the power-ups earned by them."""
        if lines <= 0:
            return []
        before = self.lines_cleared
        self.lines_cleared += lines
        earned: List[PowerUpType] = []
        for kind, every in EARN_FREQUENCY.items():
            for _ in range(self.lines_cleared // every - before // every):
                self.add(kind)
                earned.append(kind)
        if earned:
            logger.info("Earned power-ups: %s", ", ".join(kind.value for kind in earned))
        return earned

    def snapshot(self) -> Dict[str, int]:
        return {kind.value: count for kind, count in self.counts.items()}

    def restore(self, counts: Dict[str, int], lines_cleared: int) -> None:
        self.counts = {kind: int(counts.get(kind.value, 0)) for kind in PowerUpType}
        self.lines_cleared = int(lines_cleared)

    def reset(self) -> None:
        self.counts = {kind: 0 for kind in PowerUpType}
        self.lines_cleared = 0
