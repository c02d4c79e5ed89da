from block_puzzle_pro.game import (
    BlockColor,
    ClearEngine,
    ClearResult,
    GridBoard,
    GridPosition,
    LineKind,
    ScoreLedger,
)


def fill(board, cells, color=BlockColor.RED):
    assert board.place_blocks([GridPosition(r, c) for r, c in cells], color)


def test_no_lines_no_clear(empty_board):
    engine = ClearEngine()
    fill(empty_board, [(0, c) for c in range(9)])
    result = engine.process_completed_lines(empty_board)
    assert result.is_empty
    assert result.total_cleared_lines == 0
    assert empty_board.occupied_count() == 9
    assert engine.active_line_clears == []


def test_clears_completed_row_and_frees_cells(empty_board):
    engine = ClearEngine()
    fill(empty_board, [(2, c) for c in range(10)])
    fill(empty_board, [(3, 0)])
    result = engine.process_completed_lines(empty_board)
    assert result.rows == frozenset({2})
    assert result.columns == frozenset()
    assert result.total_cleared_lines == 1
    for c in range(10):
        assert empty_board.can_place_at(GridPosition(2, c))
    assert empty_board.cell(GridPosition(3, 0)).is_occupied
    assert empty_board.row_masks[2] == 0


def test_clears_completed_column(empty_board):
    engine = ClearEngine()
    fill(empty_board, [(r, 3) for r in range(10)])
    result = engine.process_completed_lines(empty_board)
    assert result.columns == frozenset({3})
    assert empty_board.is_board_completely_empty()


def test_intersection_counted_in_both_sets(empty_board):
    engine = ClearEngine()
    fill(empty_board, [(4, c) for c in range(10)])
    fill(empty_board, [(r, 5) for r in range(10) if r != 4], BlockColor.YELLOW)
    result = engine.process_completed_lines(empty_board)
    assert result.total_cleared_lines == 2
    assert 4 in result.rows and 5 in result.columns
    assert empty_board.is_board_completely_empty()
    kinds = {(clear.kind, clear.index) for clear in engine.active_line_clears}
    assert kinds == {(LineKind.ROW, 4), (LineKind.COLUMN, 5)}
    assert all(len(clear.fragments) == 10 for clear in engine.active_line_clears)


def test_two_rows_and_a_column_in_one_placement(empty_board):
    engine = ClearEngine()
    ledger = ScoreLedger()
    setup = [
        (r, c)
        for r in range(10)
        for c in range(10)
        if (r in (0, 1) or c == 0) and not (c == 0 and r in (0, 1))
    ]
    fill(empty_board, setup)
    assert engine.process_completed_lines(empty_board).is_empty

    fill(empty_board, [(0, 0), (1, 0)], BlockColor.BLUE)
    result = engine.process_completed_lines(empty_board)
    assert result.rows == frozenset({0, 1})
    assert result.columns == frozenset({0})
    assert result.total_cleared_lines == 3
    event = ledger.apply_score(2, result)
    assert event.line_clear_bonus == 600
    assert event.total_delta == 602
    assert empty_board.is_board_completely_empty()


def test_almost_full_row_with_preview_never_clears(make_board):
    board = make_board(["XXXXXXXXX?"] + ["." * 10] * 9)
    result = ClearEngine().process_completed_lines(board)
    assert result.is_empty
    assert board.occupied_count() == 9


def test_active_line_clears_persist_until_cleared(empty_board):
    engine = ClearEngine()
    fill(empty_board, [(7, c) for c in range(10)])
    engine.process_completed_lines(empty_board)
    assert [clear.id for clear in engine.active_line_clears] == ["row-7"]
    engine.clear_active_line_clears()
    assert engine.active_line_clears == []


def test_every_full_line_is_cleared_on_small_board(make_board):
    board = make_board(["XXX", "XXX", "XX."])
    board.place_blocks([GridPosition(2, 2)], BlockColor.GREEN)
    result = ClearEngine().process_completed_lines(board)
    assert result == ClearResult(rows=frozenset({0, 1, 2}), columns=frozenset({0, 1, 2}))
    assert board.is_board_completely_empty()
    assert isinstance(board, GridBoard)
