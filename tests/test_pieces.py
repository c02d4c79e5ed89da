import pytest

from block_puzzle_pro.game import SHAPE_LIBRARY, BlockShape, GridPosition, PieceCategory, shape_by_name


@pytest.mark.parametrize("shape", SHAPE_LIBRARY, ids=lambda s: s.name)
def test_four_quarter_turns_return_to_original(shape):
    assert shape.rotated(1).rotated(1).rotated(1).rotated(1) == shape
    assert shape.rotated(4) == shape


@pytest.mark.parametrize(
    "name,count",
    [
        ("single", 1),
        ("domino", 2),
        ("square_2x2", 1),
        ("tromino_corner", 4),
        ("tetromino_t", 4),
        ("tetromino_s", 4),
        ("tetromino_l", 8),
        ("pentomino_plus", 1),
        ("pentomino_p", 8),
        ("rect_2x3", 2),
    ],
)
def test_variants_are_deduplicated(name, count):
    shape = shape_by_name(name)
    assert len(shape.variants) == count
    assert len({v.cells for v in shape.variants}) == count
    assert shape.variants[0] is shape


def test_domino_rotates_to_vertical():
    vertical = shape_by_name("domino").rotated(1)
    assert (vertical.width, vertical.height) == (1, 2)
    assert vertical.cells == ((0, 0), (0, 1))


def test_variants_keep_identity_fields():
    shape = shape_by_name("tetromino_l")
    for variant in shape.variants:
        assert variant.name == shape.name
        assert variant.complexity == shape.complexity
        assert variant.color == shape.color
        assert variant.cell_count == shape.cell_count


def test_categories_follow_cell_count():
    assert shape_by_name("single").category == PieceCategory.MONOMINO
    assert shape_by_name("tetromino_t").category == PieceCategory.TETROMINO
    assert shape_by_name("rect_2x3").category == PieceCategory.HEXOMINO
    assert shape_by_name("square_3x3").category == PieceCategory.LARGE_REWARD
    with pytest.raises(ValueError):
        PieceCategory.for_cell_count(0)


def test_library_values_are_in_range():
    names = [s.name for s in SHAPE_LIBRARY]
    assert len(names) == len(set(names))
    for shape in SHAPE_LIBRARY:
        assert 1 <= shape.complexity <= 10
        assert 1 <= shape.cell_count <= 9


def test_offsets_are_normalized():
    shape = BlockShape("offset", ((3, 5), (4, 5)))
    assert shape.cells == ((0, 0), (1, 0))


def test_invalid_shapes_rejected():
    with pytest.raises(ValueError):
        BlockShape("empty", ())
    with pytest.raises(ValueError):
        BlockShape.from_rows("hard", ["X"], complexity=11)


def test_bit_patterns():
    corner = shape_by_name("tromino_corner")
    assert corner.row_bits == (0b01, 0b11)
    assert corner.column_bits == (0b11, 0b10)


def test_positions_at():
    corner = shape_by_name("tromino_corner")
    assert corner.positions_at(GridPosition(2, 3), 10) == [
        GridPosition(2, 3),
        GridPosition(3, 3),
        GridPosition(3, 4),
    ]
    assert corner.positions_at(GridPosition(9, 0), 10) is None
    assert corner.positions_at(GridPosition(0, 9), 10) is None
    assert corner.positions_at(GridPosition(-1, 0), 10) is None
