from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Deque, Dict, List, Optional, Tuple

import numpy as np

from block_puzzle_pro.spawning import DEFAULT_HAND_SIZE, PieceSpawner, SpawningConfig
from .cells import BlockColor, GridPosition
from .clearing import ClearEngine, ClearResult
from .grid import GridBoard
from .pieces import BlockShape, library_index
from .powerups import PowerUpInventory, PowerUpType
from .rules import ScoreEvent, ScoreLedger, ScoringRules

logger = logging.getLogger(__name__)


@dataclass
class GameConfig:
    grid_size: int = 10
    # None takes the hand size of `spawning`
    hand_size: Optional[int] = None
    random_seed: Optional[int] = None
    # Deal a replacement as soon as a slot is used instead of when the hand runs out
    regenerate_each_slot: bool = False
    # Moves kept for undo; 0 disables it
    undo_limit: int = 100
    spawning: SpawningConfig = field(default_factory=SpawningConfig)
    scoring: ScoringRules = field(default_factory=ScoringRules)

    def __post_init__(self) -> None:
        if self.grid_size < 1:
            raise ValueError(f"grid_size must be positive, got {self.grid_size}")
        if self.hand_size is None:
            self.hand_size = self.spawning.hand_size
        elif self.spawning.hand_size not in (self.hand_size, DEFAULT_HAND_SIZE):
            raise ValueError(
                f"hand_size {self.hand_size} conflicts with spawning.hand_size {self.spawning.hand_size}"
            )
        if self.hand_size < 1:
            raise ValueError(f"hand_size must be at least 1, got {self.hand_size}")
        if self.undo_limit < 0:
            raise ValueError(f"undo_limit must be non-negative, got {self.undo_limit}")
        seed = self.spawning.random_seed if self.spawning.random_seed is not None else self.random_seed
        # Copy so a SpawningConfig shared between games is never mutated
        self.spawning = replace(self.spawning, hand_size=self.hand_size, random_seed=seed)


@dataclass(frozen=True)
class PlacementOutcome:
    positions: Tuple[GridPosition, ...]
    clear_result: ClearResult
    score_event: ScoreEvent
    game_over: bool
    power_ups_earned: Tuple[PowerUpType, ...] = ()


@dataclass(frozen=True)
class GameSnapshot:
    """Everything a move can change, captured before the move."""

    grid: np.ndarray
    score: int
    slots: Tuple[Optional[BlockShape], ...]
    placements: int
    held: Optional[BlockShape]
    can_swap: bool
    total_lines_cleared: int
    total_pieces_placed: int
    power_ups: Dict[str, int]
    power_up_lines: int


class HoldSlot:
    """Stores one piece aside; one swap allowed per placement."""

    def __init__(self) -> None:
        self.held: Optional[BlockShape] = None
        self.can_swap = True

    def reset(self) -> None:
        self.held = None
        self.can_swap = True


Action = Tuple[int, int, int, int]  # (slot, row, column, variant)


class BlockPuzzleGame:
    """Game session owning the board, clear engine, score ledger and spawner."""

    def __init__(self, config: Optional[GameConfig] = None) -> None:
        self.config = config or GameConfig()
        self.board = GridBoard(self.config.grid_size)
        self.clear_engine = ClearEngine()
        self.ledger = ScoreLedger(self.config.scoring)
        self.spawner = PieceSpawner(self.config.spawning)
        self.hold = HoldSlot()
        self.power_ups = PowerUpInventory()
        self._history: Deque[GameSnapshot] = deque(maxlen=self.config.undo_limit)
        self.is_game_active = False
        self.game_over = False
        self.total_lines_cleared = 0
        self.total_pieces_placed = 0
        self.start_new_game()

    # ---------- Lifecycle ----------
    def start_new_game(self) -> None:
        self.board.start_new_game()
        self.clear_engine.clear_active_line_clears()
        self.ledger.reset()
        self.spawner.reset()
        self.hold.reset()
        self.power_ups.reset()
        self._history.clear()
        self.total_lines_cleared = 0
        self.total_pieces_placed = 0
        self.game_over = False
        self.is_game_active = True
        self.spawner.generate_hand(self.board)
        logger.info("New game started on %dx%d grid", self.board.size, self.board.size)

    def end_game(self) -> None:
        if not self.is_game_active:
            return
        self.is_game_active = False
        logger.info("Game ended with score %d", self.ledger.score)

    @property
    def score(self) -> int:
        return self.ledger.score

    @property
    def high_score(self) -> int:
        return self.ledger.high_score

    def current_pieces(self) -> List[Optional[BlockShape]]:
        return self.spawner.get_tray_slots()

    # ---------- Placement ----------
    def piece_positions(self, slot: int, origin: GridPosition, variant: int = 0) -> Optional[List[GridPosition]]:
        pieces = self.spawner.get_tray_slots()
        if not 0 <= slot < len(pieces) or pieces[slot] is None:
            return None
        variants = pieces[slot].variants
        if not 0 <= variant < len(variants):
            return None
        return variants[variant].positions_at(origin, self.board.size)

    def can_place_piece(self, slot: int, origin: GridPosition, variant: int = 0) -> bool:
        positions = self.piece_positions(slot, origin, variant)
        return positions is not None and all(self.board.can_place_at(p) for p in positions)

    def place_piece(self, slot: int, origin: GridPosition, variant: int = 0) -> Optional[PlacementOutcome]:
        """Place a tray piece, clear lines, score and deal. None if rejected."""
        if not self.is_game_active:
            return None
        positions = self.piece_positions(slot, origin, variant)
        if positions is None:
            return None
        snapshot = self._snapshot()
        shape = self.spawner.get_tray_slots()[slot]
        if not self.board.place_blocks(positions, shape.color):
            return None

        self._history.append(snapshot)
        self.board.clear_previews()
        clear_result, event, earned = self._resolve_lines(len(positions))
        self.spawner.consume_piece(slot)
        self.spawner.telemetry.record_turn(clear_result.total_cleared_lines)
        self.total_pieces_placed += 1
        self.hold.can_swap = True

        if self.config.regenerate_each_slot:
            self.spawner.regenerate_piece(slot, self.board)
        else:
            self.spawner.refill_if_exhausted(self.board)

        self._check_game_over()
        return PlacementOutcome(tuple(positions), clear_result, event, self.game_over, tuple(earned))

    def hold_piece(self, slot: int) -> bool:
        """Swap a tray piece with the held piece, or stash it and deal a new one."""
        if not self.is_game_active or not self.hold.can_swap:
            return False
        pieces = self.spawner.get_tray_slots()
        if not 0 <= slot < len(pieces) or pieces[slot] is None:
            return False
        self._history.append(self._snapshot())
        previous_held = self.hold.held
        self.hold.held = pieces[slot]
        if previous_held is not None:
            self.spawner.replace_slot(slot, previous_held, self.board)
        else:
            self.spawner.regenerate_piece(slot, self.board)
        self.hold.can_swap = False
        self._check_game_over()
        return True

    # ---------- Power-ups ----------
    def use_bomb(self, center: GridPosition) -> bool:
        """Empty the 3x3 area around `center`."""
        if not self._power_up_ready(PowerUpType.BOMB) or not self.board.is_inside(center.row, center.column):
            return False
        self._history.append(self._snapshot())
        self.power_ups.use(PowerUpType.BOMB)
        area = [GridPosition(center.row + dr, center.column + dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1)]
        freed = self.board.clear_cells(area)
        logger.info("Bomb at %s freed %d cells", center, freed)
        return True

    def use_clear_row(self, row: int) -> bool:
        if not self._power_up_ready(PowerUpType.CLEAR_ROW) or not 0 <= row < self.board.size:
            return False
        self._history.append(self._snapshot())
        self.power_ups.use(PowerUpType.CLEAR_ROW)
        self.board.clear_lines([row], [])
        logger.info("Cleared row %d with a power-up", row)
        return True

    def use_clear_column(self, column: int) -> bool:
        if not self._power_up_ready(PowerUpType.CLEAR_COLUMN) or not 0 <= column < self.board.size:
            return False
        self._history.append(self._snapshot())
        self.power_ups.use(PowerUpType.CLEAR_COLUMN)
        self.board.clear_lines([], [column])
        logger.info("Cleared column %d with a power-up", column)
        return True

    def use_single_block(self, position: GridPosition, color: BlockColor = BlockColor.YELLOW) -> bool:
        """Drop one block anywhere free; it scores and clears like a placement."""
        if not self._power_up_ready(PowerUpType.SINGLE_BLOCK) or not self.board.can_place_at(position):
            return False
        snapshot = self._snapshot()
        if not self.board.place_blocks([position], color):
            return False
        self._history.append(snapshot)
        self.power_ups.use(PowerUpType.SINGLE_BLOCK)
        self.board.clear_previews()
        self._resolve_lines(1)
        self._check_game_over()
        return True

    def use_rotate_token(self, slot: int) -> bool:
        """Turn a tray piece a quarter turn so variant 0 is the new orientation."""
        if not self._power_up_ready(PowerUpType.ROTATE_TOKEN):
            return False
        pieces = self.spawner.get_tray_slots()
        if not 0 <= slot < len(pieces) or pieces[slot] is None:
            return False
        self._history.append(self._snapshot())
        self.power_ups.use(PowerUpType.ROTATE_TOKEN)
        self.spawner.replace_slot(slot, pieces[slot].rotated(1), self.board)
        return True

    # ---------- Undo ----------
    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def undo(self) -> bool:
        """Roll back the last placement, hold or power-up. The high score is kept."""
        if not self._history:
            return False
        snapshot = self._history.pop()
        self.board.load_state(snapshot.grid)
        self.clear_engine.clear_active_line_clears()
        self.ledger.restore(snapshot.score, self.ledger.high_score)
        self.spawner.restore_hand(snapshot.slots, self.board, snapshot.placements)
        self.hold.held = snapshot.held
        self.hold.can_swap = snapshot.can_swap
        self.power_ups.restore(snapshot.power_ups, snapshot.power_up_lines)
        self.total_lines_cleared = snapshot.total_lines_cleared
        self.total_pieces_placed = snapshot.total_pieces_placed
        self.game_over = False
        self.is_game_active = True
        logger.info("Undo: score back to %d, %d moves left in history", snapshot.score, len(self._history))
        return True

    # ---------- Queries ----------
    def has_any_valid_move(self) -> bool:
        """True if a tray piece fits, or the held piece fits and a swap is allowed."""
        pieces = [piece for piece in self.spawner.get_tray_slots() if piece is not None]
        if self.hold.can_swap and self.hold.held is not None:
            pieces.append(self.hold.held)
        return any(self.spawner.evaluator.can_fit_somewhere(piece, self.board) for piece in pieces)

    def get_valid_actions(self) -> List[Action]:
        """List of (slot, row, column, variant) placements that would succeed."""
        actions: List[Action] = []
        size = self.board.size
        for slot, piece in enumerate(self.spawner.get_tray_slots()):
            if piece is None:
                continue
            for v, variant in enumerate(piece.variants):
                for row in range(size - variant.height + 1):
                    for column in range(size - variant.width + 1):
                        positions = variant.positions_at(GridPosition(row, column), size)
                        if all(self.board.can_place_at(p) for p in positions):
                            actions.append((slot, row, column, v))
        return actions

    def get_state(self) -> dict:
        return {
            "grid": self.board.occupancy(),
            "current_pieces": [library_index(p) if p is not None else -1 for p in self.current_pieces()],
            "pieces_remaining": len(self.spawner.get_hand().pieces()),
            "held_piece": self.hold.held.name if self.hold.held is not None else None,
            "score": self.ledger.score,
            "high_score": self.ledger.high_score,
            "total_lines_cleared": self.total_lines_cleared,
            "total_pieces_placed": self.total_pieces_placed,
            "power_ups": self.power_ups.snapshot(),
            "can_undo": self.can_undo,
            "stage": self.spawner.stage.value,
            "game_over": self.game_over,
            "filled_ratio": self.board.filled_ratio(),
        }

    def get_game_stats(self) -> dict:
        return {
            "final_score": self.ledger.score,
            "high_score": self.ledger.high_score,
            "pieces_placed": self.total_pieces_placed,
            "lines_cleared": self.total_lines_cleared,
            "final_fill_ratio": self.board.filled_ratio(),
            "avg_score_per_piece": self.ledger.score / max(1, self.total_pieces_placed),
            "avg_lines_per_piece": self.total_lines_cleared / max(1, self.total_pieces_placed),
        }

    # ---------- Internals ----------
    def _snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            grid=self.board.clone_state(),
            score=self.ledger.score,
            slots=tuple(self.spawner.get_tray_slots()),
            placements=self.spawner.placements_this_game,
            held=self.hold.held,
            can_swap=self.hold.can_swap,
            total_lines_cleared=self.total_lines_cleared,
            total_pieces_placed=self.total_pieces_placed,
            power_ups=self.power_ups.snapshot(),
            power_up_lines=self.power_ups.lines_cleared,
        )

    def _resolve_lines(self, placed_cells: int) -> Tuple[ClearResult, ScoreEvent, List[PowerUpType]]:
        clear_result = self.clear_engine.process_completed_lines(self.board)
        event = self.ledger.apply_score(placed_cells, clear_result)
        self.total_lines_cleared += clear_result.total_cleared_lines
        earned = self.power_ups.on_line_clear(clear_result.total_cleared_lines)
        return clear_result, event, earned

    def _power_up_ready(self, kind: PowerUpType) -> bool:
        return self.is_game_active and self.power_ups.count(kind) > 0

    def _check_game_over(self) -> None:
        if not self.has_any_valid_move():
            self.game_over = True
            self.end_game()
