from __future__ import annotations

import argparse
import logging
import random
import sys
from typing import List, Optional

import gymnasium as gym

import block_puzzle_pro.env  # noqa: F401  ensure registration
from block_puzzle_pro.game import GameConfig
from block_puzzle_pro.game.display import print_grid
from block_puzzle_pro.spawning import SpawningConfig


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _print_progress(ep_idx: int, total: int, last_score: int, last_steps: int) -> None:
    width = 30
    filled = int(width * (ep_idx + 1) / max(1, total))
    bar = "=" * filled + "." * (width - filled)
    msg = f"\r[{bar}] {ep_idx + 1}/{total}  score={last_score}  placements={last_steps}"
    print(msg, end="", file=sys.stdout, flush=True)


def run_random(episodes: int = 20, max_steps: int = 500, grid_size: int = 10, seed: int = 0,
               debug_spawning: bool = False, progress: bool = True, show_board: bool = False) -> List[int]:
    """Play episodes with uniformly random valid placements; return final scores."""
    rng = random.Random(seed)
    config = GameConfig(
        grid_size=grid_size,
        random_seed=seed,
        spawning=SpawningConfig(debug_logging=debug_spawning),
    )
    env = gym.make("BlockPuzzlePro-10x10-v0", config=config)
    game = env.unwrapped.game
    scores: List[int] = []
    try:
        for ep in range(episodes):
            obs, info = env.reset(seed=seed + ep)
            steps = 0
            while steps < max_steps:
                valid = info.get("valid_actions", [])
                if not valid:
                    break
                obs, reward, terminated, truncated, info = env.step(rng.choice(valid))
                steps += 1
                if terminated or truncated:
                    break
            scores.append(game.score)
            if progress:
                _print_progress(ep, episodes, game.score, steps)
        if progress:
            print()
        if show_board:
            print_grid(game.board)
    finally:
        env.close()

    print(f"Episodes: {len(scores)}  mean score: {sum(scores) / max(1, len(scores)):.1f}  "
          f"best: {max(scores, default=0)}  high score: {game.high_score}")
    game.spawner.print_telemetry()
    return scores


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play random games and report spawner telemetry")
    p.add_argument("--episodes", type=int, default=20)
    p.add_argument("--max-steps", type=int, default=500)
    p.add_argument("--grid-size", type=int, default=10)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--debug-spawning", action="store_true", help="log every spawning decision")
    p.add_argument("--show-board", action="store_true", help="print the last board")
    p.add_argument("--no-progress", action="store_true")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose or args.debug_spawning)
    run_random(
        episodes=args.episodes,
        max_steps=args.max_steps,
        grid_size=args.grid_size,
        seed=args.seed,
        debug_spawning=args.debug_spawning,
        progress=not args.no_progress,
        show_board=args.show_board,
    )


if __name__ == "__main__":  # pragma: no cover
    main()
