from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Set, Tuple

import numpy as np

from block_puzzle_pro.game.grid import GridBoard
from block_puzzle_pro.game.pieces import SHAPE_LIBRARY, BlockShape
from .bag import RollingBag
from .config import DifficultyStage, SpawningConfig
from .evaluator import OccupancyMask, PieceEvaluation, SpawningEvaluator
from .telemetry import SpawningTelemetry

logger = logging.getLogger(__name__)


@dataclass
class Hand:
    """The pieces currently offered to the player; None marks a used slot."""

    slots: List[Optional[BlockShape]]
    evaluations: List[Optional[PieceEvaluation]] = field(default_factory=list)
    score: float = 0.0
    stage: DifficultyStage = DifficultyStage.EARLY
    grid_fullness: float = 0.0

    @classmethod
    def empty(cls, size: int) -> "Hand":
        return cls([None] * size, [None] * size)

    def __len__(self) -> int:
        return len(self.slots)

    def __getitem__(self, index: int) -> Optional[BlockShape]:
        return self.slots[index]

    def __iter__(self) -> Iterator[Optional[BlockShape]]:
        return iter(self.slots)

    def pieces(self) -> List[BlockShape]:
        return [shape for shape in self.slots if shape is not None]

    @property
    def is_exhausted(self) -> bool:
        return all(shape is None for shape in self.slots)

    @property
    def any_fits(self) -> bool:
        return any(e is not None and e.fits for e in self.evaluations)

    @property
    def any_clears(self) -> bool:
        return any(e is not None and e.can_clear for e in self.evaluations)

    @property
    def total_clearing_potential(self) -> int:
        return sum(e.max_clearing_potential for e in self.evaluations if e is not None)


def score_hand(evaluations: Sequence[Optional[PieceEvaluation]], board_empty: bool,
               target_complexity: float) -> float:
    """Desirability of a hand; higher is better."""
    live = [e for e in evaluations if e is not None]
    if not live:
        return 0.0
    score = 0.0
    if any(e.fits for e in live):
        score += 100.0
    score += 15.0 * sum(e.max_clearing_potential for e in live)
    clearers = sum(1 for e in live if e.can_clear)
    if not board_empty and clearers == 0:
        score -= 50.0
    if clearers == len(live):
        score -= 30.0  # too easy
    sizes = np.array([e.shape.cell_count for e in live], dtype=float)
    score += 5.0 * float(np.var(sizes))
    average_complexity = float(np.mean([e.shape.complexity for e in live]))
    score -= 8.0 * abs(average_complexity - target_complexity)
    return score


class PieceSpawner:
    """Generates fair hands by simulating every candidate against the board.

    The board is only read. Fairness is enforced with a bounded number of
    redraws followed by a deterministic scan of the library; if neither
    satisfies the guarantees the best hand seen is dealt anyway and the
    shortfall is counted in `telemetry`.
    """

    def __init__(self, config: Optional[SpawningConfig] = None,
                 shapes: Sequence[BlockShape] = SHAPE_LIBRARY,
                 evaluator: Optional[SpawningEvaluator] = None,
                 rng: Optional[random.Random] = None) -> None:
        self.config = config or SpawningConfig()
        self.shapes: Tuple[BlockShape, ...] = tuple(shapes)
        self.rng = rng or random.Random(self.config.random_seed)
        self.bag = RollingBag(self.shapes, self.rng)
        self.evaluator = evaluator or SpawningEvaluator(config=self.config)
        self.telemetry = SpawningTelemetry()
        self.placements_this_game = 0
        self._hand = Hand.empty(self.config.hand_size)
        self._previous_names: Set[str] = set()

    # ---------- Public API ----------
    @property
    def stage(self) -> DifficultyStage:
        return self.config.stage_for(self.placements_this_game)

    def reset(self) -> None:
        self.placements_this_game = 0
        self._hand = Hand.empty(self.config.hand_size)
        self._previous_names = set()
        self.bag.reset()

    def get_hand(self) -> Hand:
        return self._hand

    def get_tray_slots(self) -> List[Optional[BlockShape]]:
        return list(self._hand.slots)

    def generate_hand(self, board: GridBoard) -> Hand:
        size = self.config.hand_size
        hand = self._build(board, [None] * size, list(range(size)))
        self._previous_names = {shape.name for shape in hand.pieces()}
        return hand

    def consume_piece(self, index: int) -> Optional[BlockShape]:
        if not 0 <= index < len(self._hand.slots):
            return None
        shape = self._hand.slots[index]
        if shape is None:
            return None
        self._hand.slots[index] = None
        self._hand.evaluations[index] = None
        self.placements_this_game += 1
        # Keep the used shape out of the next deal
        self._previous_names.add(shape.name)
        return shape

    def regenerate_piece(self, index: int, board: GridBoard) -> Optional[BlockShape]:
        """Deal a new piece into one slot, judging fairness on the whole hand."""
        if not 0 <= index < len(self._hand.slots):
            return None
        hand = self._build(board, list(self._hand.slots), [index])
        self._previous_names = {shape.name for shape in hand.pieces()}
        return hand.slots[index]

    def refill_if_exhausted(self, board: GridBoard) -> bool:
        if self._hand.is_exhausted:
            self.generate_hand(board)
            return True
        return False

    def replace_slot(self, index: int, shape: BlockShape, board: GridBoard) -> Optional[BlockShape]:
        """Put `shape` into a slot and return what was there (hold swaps)."""
        if not 0 <= index < len(self._hand.slots):
            return None
        previous = self._hand.slots[index]
        self._hand.slots[index] = shape
        self._hand.evaluations[index] = self.evaluator.evaluate(shape, board)
        return previous

    def restore_hand(self, slots: Sequence[Optional[BlockShape]], board: GridBoard, placements: int) -> Hand:
        """Reinstate a saved tray (undo) without drawing from the bag."""
        if len(slots) != self.config.hand_size:
            raise ValueError(f"expected {self.config.hand_size} slots, got {len(slots)}")
        mask = OccupancyMask.from_board(board)
        evaluations = [self.evaluator.evaluate_mask(s, mask) if s is not None else None for s in slots]
        self.placements_this_game = placements
        stage = self.stage
        self._hand = Hand(
            slots=list(slots),
            evaluations=evaluations,
            score=score_hand(evaluations, mask.is_empty, self.config.target_complexity(stage)),
            stage=stage,
            grid_fullness=mask.fullness(),
        )
        self._previous_names = {shape.name for shape in self._hand.pieces()}
        return self._hand

    # ---------- Generation ----------
    def _build(self, board: GridBoard, slots: List[Optional[BlockShape]], open_slots: List[int]) -> Hand:
        mask = OccupancyMask.from_board(board)
        board_empty = mask.is_empty
        fullness = mask.fullness()
        stage = self.stage
        target = self.config.target_complexity(stage)
        prefer_small = fullness > self.config.grid_fullness_threshold

        for index in open_slots:
            avoid = self._previous_names | {s.name for s in slots if s is not None}
            slots[index] = self.bag.draw(avoid, prefer_small)
        evaluations = [self.evaluator.evaluate_mask(s, mask) if s is not None else None for s in slots]

        best = (list(slots), list(evaluations))
        best_key = self._hand_key(evaluations, board_empty, target)
        retries = 0
        while retries < self.config.max_retries:
            deficient = self._deficient_slot(evaluations, open_slots, board_empty)
            if deficient is None:
                break
            index, want_small = deficient
            avoid = self._previous_names | {s.name for s in slots if s is not None}
            slots[index] = self.bag.draw(avoid, prefer_small or want_small)
            evaluations[index] = self.evaluator.evaluate_mask(slots[index], mask)
            retries += 1
            key = self._hand_key(evaluations, board_empty, target)
            if key > best_key:
                best, best_key = (list(slots), list(evaluations)), key

        slots, evaluations = best
        rescued = self._rescue(slots, evaluations, open_slots, mask, board_empty)

        hand = Hand(
            slots=slots,
            evaluations=evaluations,
            score=score_hand(evaluations, board_empty, target),
            stage=stage,
            grid_fullness=fullness,
        )
        self._hand = hand
        if self.config.telemetry_enabled:
            self.telemetry.record_hand(hand.any_fits, hand.any_clears, board_empty, retries, rescued)
        if self.config.debug_logging:
            self.log_spawning_decision(hand)
        return hand

    def _clearing_satisfied(self, evaluations: Sequence[Optional[PieceEvaluation]]) -> bool:
        live = [e for e in evaluations if e is not None]
        total = sum(e.max_clearing_potential for e in live)
        return any(e.can_clear for e in live) and total >= self.config.min_clear_potential_per_set

    def _hand_key(self, evaluations: Sequence[Optional[PieceEvaluation]], board_empty: bool,
                  target: float) -> Tuple[int, bool, float]:
        """Ranks hands: guarantees met, then clearing budget respected, then score."""
        live = [e for e in evaluations if e is not None]
        met = 0
        if any(e.fits for e in live):
            met += 1
        if board_empty or self._clearing_satisfied(evaluations):
            met += 1
        return met, self._within_budget(live, board_empty), score_hand(evaluations, board_empty, target)

    def _within_budget(self, live: Sequence[PieceEvaluation], board_empty: bool) -> bool:
        if board_empty:
            return True
        total = sum(e.max_clearing_potential for e in live)
        clearers = sum(1 for e in live if e.can_clear)
        # A lone clearing slot is never redrawn, whatever its potential
        return total <= self.config.max_clear_potential_per_set or clearers <= 1

    def _deficient_slot(self, evaluations: Sequence[Optional[PieceEvaluation]], open_slots: Sequence[int],
                        board_empty: bool) -> Optional[Tuple[int, bool]]:
        """Slot to redraw next and whether small shapes should be favored."""
        live = [e for e in evaluations if e is not None]
        candidates = [(i, evaluations[i]) for i in open_slots if evaluations[i] is not None]
        if not candidates:
            return None

        if self.config.guarantee_one_fits_piece and not any(e.fits for e in live):
            index, _ = max(candidates, key=lambda p: (p[1].shape.cell_count, p[1].shape.complexity))
            return index, True

        if (self.config.guarantee_one_clearing_piece and not board_empty
                and not self._clearing_satisfied(evaluations)):
            index, _ = min(candidates, key=lambda p: (p[1].max_clearing_potential, p[1].fits,
                                                      -p[1].shape.cell_count))
            return index, False

        if not self._within_budget(live, board_empty):
            clearing = [p for p in candidates if p[1].can_clear]
            if clearing:
                index, _ = max(clearing, key=lambda p: p[1].max_clearing_potential)
                return index, False
        return None

    def _rescue(self, slots: List[Optional[BlockShape]], evaluations: List[Optional[PieceEvaluation]],
                open_slots: Sequence[int], mask: OccupancyMask, board_empty: bool) -> bool:
        """Scan the library once for a fitting, then a clearing, replacement."""
        candidates = [i for i in open_slots if evaluations[i] is not None]
        if not candidates:
            return False
        rescued = False

        if self.config.guarantee_one_fits_piece and not any(e is not None and e.fits for e in evaluations):
            index = max(candidates, key=lambda i: evaluations[i].shape.cell_count)
            for shape in sorted(self.shapes, key=lambda s: s.cell_count):
                evaluation = self.evaluator.evaluate_mask(shape, mask)
                if evaluation.fits:
                    slots[index], evaluations[index] = shape, evaluation
                    rescued = True
                    break

        if (self.config.guarantee_one_clearing_piece and not board_empty
                and not any(e is not None and e.can_clear for e in evaluations)):
            index = min(candidates, key=lambda i: (evaluations[i].fits, -evaluations[i].shape.cell_count))
            found: Optional[PieceEvaluation] = None
            for shape in self.shapes:
                evaluation = self.evaluator.evaluate_mask(shape, mask)
                if found is None or evaluation.max_clearing_potential > found.max_clearing_potential:
                    found = evaluation
                if found.max_clearing_potential >= self.evaluator.early_exit_clears:
                    break
            if found is not None and found.can_clear:
                slots[index], evaluations[index] = found.shape, found
                rescued = True

        if rescued:
            logger.debug("Spawner rescue pass replaced a slot after %d retries", self.config.max_retries)
        return rescued

    # ---------- Debug surface ----------
    def log_spawning_decision(self, hand: Hand) -> None:
        logger.info(
            "Spawned hand: stage=%s fullness=%.2f score=%.1f",
            hand.stage.value, hand.grid_fullness, hand.score,
        )
        for index, evaluation in enumerate(hand.evaluations):
            if evaluation is None:
                logger.info("  slot %d: empty", index)
                continue
            logger.info(
                "  slot %d: %s complexity=%d fits=%s clearing_potential=%d",
                index, evaluation.shape.name, evaluation.shape.complexity,
                evaluation.fits, evaluation.max_clearing_potential,
            )

    def print_telemetry(self) -> None:
        t = self.telemetry
        print("=== Spawning Telemetry ===")
        print(f"Hands generated:       {t.hands_generated}")
        print(f"Must-fit success rate: {t.must_fit_success_rate:.1%}")
        print(f"Dead-deal rate:        {t.dead_deal_rate:.1%}")
        print(f"Clears per 10 turns:   {t.clears_per_10_turns:.2f}")
        print(f"Retries / rescues:     {t.retries} / {t.rescues}")
