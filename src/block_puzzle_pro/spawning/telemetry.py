from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SpawningTelemetry:
    """Counters describing how the spawner has been treating the player."""

    hands_generated: int = 0
    must_fit_checks: int = 0
    must_fit_successes: int = 0
    dead_deals: int = 0
    clearing_shortfalls: int = 0
    retries: int = 0
    rescues: int = 0
    turns: int = 0
    lines_cleared: int = 0

    def record_hand(self, fits: bool, clears: bool, board_empty: bool, retries: int, rescued: bool) -> None:
        self.hands_generated += 1
        self.must_fit_checks += 1
        if fits:
            self.must_fit_successes += 1
        else:
            self.dead_deals += 1
        if not board_empty and not clears:
            self.clearing_shortfalls += 1
        self.retries += retries
        if rescued:
            self.rescues += 1

    def record_turn(self, lines_cleared: int) -> None:
        self.turns += 1
        self.lines_cleared += max(0, lines_cleared)

    @property
    def must_fit_success_rate(self) -> float:
        return self.must_fit_successes / self.must_fit_checks if self.must_fit_checks else 1.0

    @property
    def dead_deal_rate(self) -> float:
        return self.dead_deals / self.hands_generated if self.hands_generated else 0.0

    @property
    def clears_per_10_turns(self) -> float:
        return 10.0 * self.lines_cleared / self.turns if self.turns else 0.0

    def reset(self) -> None:
        for name in self.__dataclass_fields__:
            setattr(self, name, 0)

    def summary(self) -> dict:
        return {
            "hands_generated": self.hands_generated,
            "must_fit_success_rate": self.must_fit_success_rate,
            "dead_deal_rate": self.dead_deal_rate,
            "clears_per_10_turns": self.clears_per_10_turns,
            "clearing_shortfalls": self.clearing_shortfalls,
            "retries": self.retries,
            "rescues": self.rescues,
        }
