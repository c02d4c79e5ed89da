from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from block_puzzle_pro.game import BlockPuzzleGame, GameConfig, GridPosition, SHAPE_LIBRARY
from block_puzzle_pro.game.pieces import library_index

MAX_VARIANTS = 8
CELL_PIXELS = 12

# Row 0 is the empty-cell color; row n is the color tag n
PALETTE = np.array(
    [
        (30, 30, 36),
        (220, 60, 60),
        (60, 110, 220),
        (70, 200, 120),
        (235, 210, 70),
        (160, 90, 210),
        (240, 150, 50),
        (70, 210, 220),
        (240, 130, 190),
    ],
    dtype=np.uint8,
)


def _compute_action_mask(game: BlockPuzzleGame, actions=None) -> np.ndarray:
    """Boolean (slot, row, column, variant) mask of placements the engine accepts."""
    size = game.board.size
    mask = np.zeros((game.config.hand_size, size, size, MAX_VARIANTS), dtype=np.bool_)
    for action in game.get_valid_actions() if actions is None else actions:
        mask[action] = True
    return mask


class BlockPuzzleEnv(gym.Env):
    """Headless environment over a game session.

    Action: (slot, row, column, variant). Reward is the engine score delta
    times `score_scale`, or `invalid_action_penalty` for a rejected move.
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 score_scale: float = 0.01,
                 invalid_action_penalty: float = -0.1,
                 terminal_penalty: float = 0.0) -> None:
        super().__init__()
        if render_mode is not None and render_mode not in self.metadata["render_modes"]:
            raise ValueError(f"Unsupported render_mode {render_mode!r}")
        self.game = BlockPuzzleGame(config)
        self.render_mode = render_mode
        self.score_scale = float(score_scale)
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.terminal_penalty = float(terminal_penalty)

        size = self.game.board.size
        slots = self.game.config.hand_size
        # Pieces are library indices; -1 marks a used slot
        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=0, high=1, shape=(size, size), dtype=np.int8),
                "pieces": spaces.Box(low=-1, high=len(SHAPE_LIBRARY) - 1, shape=(slots,), dtype=np.int8),
                "pieces_remaining": spaces.Discrete(slots + 1),
            }
        )
        self.action_space = spaces.MultiDiscrete((slots, size, size, MAX_VARIANTS))

    def _get_obs(self) -> Dict[str, Any]:
        tray = self.game.current_pieces()
        return {
            "grid": self.game.board.occupancy(),
            "pieces": np.array([library_index(p) if p is not None else -1 for p in tray], dtype=np.int8),
            "pieces_remaining": sum(p is not None for p in tray),
        }

    def _get_info(self) -> Dict[str, Any]:
        valid = self.game.get_valid_actions()
        return {
            "action_mask": _compute_action_mask(self.game, valid),
            "valid_actions": valid,
            "score": self.game.score,
            "high_score": self.game.high_score,
            "stage": self.game.spawner.stage.value,
            "filled_ratio": self.game.board.filled_ratio(),
        }

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        if seed is not None:
            # Spawner and bag share this rng, so one reseed covers both
            self.game.spawner.rng.seed(seed)
        self.game.start_new_game()
        return self._get_obs(), self._get_info()

    def step(self, action):
        slot, row, column, variant = (int(a) for a in action)
        outcome = self.game.place_piece(slot, GridPosition(row, column), variant)

        if outcome is None:
            reward_components = {"invalid": self.invalid_action_penalty}
            lines = 0
        else:
            event = outcome.score_event
            reward_components = {
                "placement": self.score_scale * event.placement_points,
                "line_clear": self.score_scale * event.line_clear_bonus,
            }
            lines = outcome.clear_result.total_cleared_lines

        terminated = self.game.game_over
        if terminated:
            reward_components["terminal"] = self.terminal_penalty

        info = self._get_info()
        info["reward_components"] = reward_components
        info["lines_cleared"] = lines
        return self._get_obs(), float(sum(reward_components.values())), terminated, False, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        # Previews are stored as negative color tags; show them like their piece
        colors = PALETTE[np.abs(self.game.board.grid)]
        return np.kron(colors, np.ones((CELL_PIXELS, CELL_PIXELS, 1), dtype=np.uint8))

    def close(self) -> None:
        self.game.end_game()
