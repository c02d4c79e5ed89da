import numpy as np
import pytest

from block_puzzle_pro.game import (
    BlockColor,
    BlockPuzzleGame,
    Cell,
    GameConfig,
    GridPosition,
    shape_by_name,
)
from block_puzzle_pro.spawning import SpawningConfig


def first_action(game, slot=None):
    for action in game.get_valid_actions():
        if slot is None or action[0] == slot:
            return action
    raise AssertionError("no valid action")


def place(game, action):
    slot, row, column, variant = action
    return game.place_piece(slot, GridPosition(row, column), variant)


def test_new_game_state():
    game = BlockPuzzleGame(GameConfig(random_seed=0))
    state = game.get_state()
    assert game.is_game_active and not game.game_over
    assert state["score"] == 0
    assert state["pieces_remaining"] == 3
    assert state["grid"].sum() == 0
    assert state["stage"] == "early"
    assert all(index >= 0 for index in state["current_pieces"])


def test_same_seed_deals_same_pieces():
    a = BlockPuzzleGame(GameConfig(random_seed=11))
    b = BlockPuzzleGame(GameConfig(random_seed=11))
    assert [p.name for p in a.current_pieces()] == [p.name for p in b.current_pieces()]


def test_placement_scores_cells_and_consumes_slot():
    game = BlockPuzzleGame(GameConfig(random_seed=1))
    action = first_action(game, slot=0)
    shape = game.current_pieces()[0]
    outcome = place(game, action)
    assert outcome is not None
    assert outcome.score_event.total_delta == shape.cell_count
    assert game.score == shape.cell_count
    assert game.board.occupied_count() == shape.cell_count
    assert game.current_pieces()[0] is None
    assert game.total_pieces_placed == 1


def test_rejected_placement_leaves_board_untouched():
    game = BlockPuzzleGame(GameConfig(random_seed=2))
    before = game.board.clone_state()
    assert game.place_piece(0, GridPosition(-1, 0)) is None
    assert game.place_piece(0, GridPosition(0, 0), variant=99) is None
    assert game.place_piece(5, GridPosition(0, 0)) is None
    assert (game.board.clone_state() == before).all()
    assert game.score == 0


def test_placing_on_occupied_cells_is_rejected():
    game = BlockPuzzleGame(GameConfig(random_seed=3))
    target = game.piece_positions(0, GridPosition(0, 0))[0]
    assert game.can_place_piece(0, GridPosition(0, 0))
    game.board.set_cell(target, Cell.occupied(BlockColor.RED))
    assert not game.can_place_piece(0, GridPosition(0, 0))
    assert game.place_piece(0, GridPosition(0, 0)) is None


def test_hand_refills_after_all_slots_used():
    game = BlockPuzzleGame(GameConfig(random_seed=4))
    for slot in range(3):
        assert place(game, first_action(game, slot=slot)) is not None
    assert game.total_pieces_placed == 3
    assert all(piece is not None for piece in game.current_pieces())
    assert game.spawner.placements_this_game == 3


def test_regenerate_each_slot_refills_immediately():
    game = BlockPuzzleGame(GameConfig(random_seed=5, regenerate_each_slot=True))
    place(game, first_action(game, slot=0))
    assert game.current_pieces()[0] is not None


def test_high_score_survives_new_game():
    game = BlockPuzzleGame(GameConfig(random_seed=6))
    place(game, first_action(game))
    earned = game.score
    assert earned > 0
    game.start_new_game()
    assert game.score == 0
    assert game.high_score == earned
    assert game.board.is_board_completely_empty()


def test_hold_swaps_once_per_placement():
    game = BlockPuzzleGame(GameConfig(random_seed=7))
    original = game.current_pieces()[0]
    assert game.hold_piece(0)
    assert game.hold.held is original
    assert game.current_pieces()[0] is not None
    assert game.current_pieces()[0].name != original.name
    assert not game.hold_piece(1)

    place(game, first_action(game, slot=1))
    replacement = game.current_pieces()[0]
    assert game.hold_piece(0)
    assert game.current_pieces()[0] is original
    assert game.hold.held is replacement
    assert game.get_state()["held_piece"] == replacement.name


def test_full_board_has_no_moves():
    game = BlockPuzzleGame(GameConfig(random_seed=8))
    for r in range(10):
        for c in range(10):
            game.board.set_cell(GridPosition(r, c), Cell.occupied(BlockColor.GREEN))
    assert not game.has_any_valid_move()
    assert game.get_valid_actions() == []
    game.end_game()
    assert not game.is_game_active
    assert game.place_piece(0, GridPosition(0, 0)) is None


def test_valid_actions_all_succeed_on_copy():
    game = BlockPuzzleGame(GameConfig(random_seed=9))
    actions = game.get_valid_actions()
    assert actions
    for slot, row, column, variant in actions[:20]:
        assert game.can_place_piece(slot, GridPosition(row, column), variant)


def test_game_stats():
    game = BlockPuzzleGame(GameConfig(random_seed=10))
    place(game, first_action(game))
    stats = game.get_game_stats()
    assert stats["pieces_placed"] == 1
    assert stats["final_score"] == game.score
    assert stats["avg_score_per_piece"] == game.score


@pytest.mark.parametrize("kwargs", [{"grid_size": 0}, {"hand_size": 0}, {"undo_limit": -1}])
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ValueError):
        GameConfig(**kwargs)


def test_hand_size_follows_spawning_config():
    config = GameConfig(spawning=SpawningConfig(hand_size=5))
    assert config.hand_size == 5
    assert len(BlockPuzzleGame(config).current_pieces()) == 5


def test_shared_spawning_config_is_not_mutated():
    shared = SpawningConfig()
    config = GameConfig(hand_size=4, random_seed=7, spawning=shared)
    assert config.spawning is not shared
    assert (config.spawning.hand_size, config.spawning.random_seed) == (4, 7)
    assert shared.hand_size == 3
    assert shared.random_seed is None


def test_conflicting_hand_sizes_rejected():
    with pytest.raises(ValueError):
        GameConfig(hand_size=4, spawning=SpawningConfig(hand_size=5))


def test_held_piece_counts_as_a_move_while_swappable():
    game = BlockPuzzleGame(GameConfig(random_seed=12))
    for r in range(10):
        for c in range(10):
            if (r, c) != (5, 5):
                game.board.set_cell(GridPosition(r, c), Cell.occupied(BlockColor.GREEN))
    square = shape_by_name("square_3x3")
    for slot in range(3):
        game.spawner.replace_slot(slot, square, game.board)
    game.hold.held = shape_by_name("single")
    assert game.has_any_valid_move()
    game.hold.can_swap = False
    assert not game.has_any_valid_move()


def test_undo_restores_placement():
    game = BlockPuzzleGame(GameConfig(random_seed=1))
    before = game.board.clone_state()
    names = [p.name for p in game.current_pieces()]
    place(game, first_action(game, slot=0))
    earned = game.score
    assert game.can_undo

    assert game.undo()
    assert np.array_equal(game.board.clone_state(), before)
    assert game.score == 0
    assert game.high_score == earned
    assert [p.name for p in game.current_pieces()] == names
    assert game.total_pieces_placed == 0
    assert game.spawner.placements_this_game == 0
    assert not game.can_undo
    assert not game.undo()
    assert game.get_state()["can_undo"] is False


def test_undo_after_refill_brings_back_last_piece():
    game = BlockPuzzleGame(GameConfig(random_seed=4))
    place(game, first_action(game, slot=0))
    place(game, first_action(game, slot=1))
    last = game.current_pieces()[2]
    place(game, first_action(game, slot=2))
    assert game.undo()
    assert game.current_pieces() == [None, None, last]
    assert game.total_pieces_placed == 2
    assert place(game, first_action(game, slot=2)) is not None


def test_undo_after_hold_restores_tray():
    game = BlockPuzzleGame(GameConfig(random_seed=7))
    original = game.current_pieces()[0]
    assert game.hold_piece(0)
    assert game.undo()
    assert game.hold.held is None
    assert game.hold.can_swap
    assert game.current_pieces()[0] is original


def test_undo_history_is_bounded():
    game = BlockPuzzleGame(GameConfig(random_seed=2, undo_limit=1))
    place(game, first_action(game, slot=0))
    place(game, first_action(game, slot=1))
    assert game.undo()
    assert not game.undo()
    assert game.total_pieces_placed == 1


def test_undo_can_be_disabled():
    game = BlockPuzzleGame(GameConfig(random_seed=2, undo_limit=0))
    place(game, first_action(game, slot=0))
    assert not game.can_undo
    assert not game.undo()


def test_undo_revives_ended_game():
    game = BlockPuzzleGame(GameConfig(random_seed=8))
    place(game, first_action(game, slot=0))
    game.end_game()
    assert game.undo()
    assert game.is_game_active and not game.game_over
    assert game.board.is_board_completely_empty()
