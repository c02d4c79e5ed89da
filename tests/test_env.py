import gymnasium as gym
import numpy as np

import block_puzzle_pro.env  # noqa: F401  registers the environment
from block_puzzle_pro.env.block_puzzle_env import MAX_VARIANTS, BlockPuzzleEnv
from block_puzzle_pro.game import GameConfig


def test_reset_observation_shape():
    env = BlockPuzzleEnv(GameConfig(random_seed=0))
    obs, info = env.reset(seed=0)
    assert set(obs) == {"grid", "pieces", "pieces_remaining"}
    assert obs["grid"].shape == (10, 10)
    assert obs["pieces"].shape == (3,)
    assert obs["pieces_remaining"] == 3
    assert info["action_mask"].shape == (3, 10, 10, MAX_VARIANTS)
    assert info["action_mask"].sum() == len(info["valid_actions"])
    assert env.observation_space.contains(obs)


def test_valid_step_rewards_score_delta():
    env = BlockPuzzleEnv(GameConfig(random_seed=1))
    _, info = env.reset(seed=1)
    action = info["valid_actions"][0]
    cells = env.game.current_pieces()[action[0]].cell_count
    obs, reward, terminated, truncated, info = env.step(action)
    assert reward == 0.01 * cells
    assert obs["grid"].sum() == cells
    assert not terminated and not truncated
    assert info["lines_cleared"] == 0


def test_invalid_step_is_penalised_without_change():
    env = BlockPuzzleEnv(GameConfig(random_seed=2))
    obs, info = env.reset(seed=2)
    invalid = tuple(int(x) for x in np.argwhere(~info["action_mask"])[0])
    before = obs["grid"].copy()
    obs, reward, terminated, _, info = env.step(invalid)
    assert reward == -0.1
    assert info["reward_components"] == {"invalid": -0.1}
    assert np.array_equal(obs["grid"], before)
    assert not terminated


def test_registered_env_runs_random_valid_actions():
    env = gym.make("BlockPuzzlePro-10x10-v0", config=GameConfig(random_seed=3))
    obs, info = env.reset(seed=3)
    rng = np.random.default_rng(3)
    for _ in range(15):
        actions = info["valid_actions"]
        if not actions:
            break
        obs, reward, terminated, truncated, info = env.step(actions[rng.integers(len(actions))])
        assert reward > 0
        if terminated:
            break
    env.close()


def test_rgb_render():
    env = BlockPuzzleEnv(GameConfig(random_seed=4), render_mode="rgb_array")
    env.reset(seed=4)
    frame = env.render()
    assert frame.shape == (120, 120, 3)
    assert frame.dtype == np.uint8
