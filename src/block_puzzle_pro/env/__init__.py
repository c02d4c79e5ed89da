"""Gymnasium environments for Block Puzzle Pro."""

from __future__ import annotations

from gymnasium.envs.registration import register

register(
    id="BlockPuzzlePro-10x10-v0",
    entry_point="block_puzzle_pro.env.block_puzzle_env:BlockPuzzleEnv",
)

__all__ = ["BlockPuzzlePro-10x10-v0"]
