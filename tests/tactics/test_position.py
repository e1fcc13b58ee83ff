"""Unit tests for src/tactics/position.py"""

import pytest

from src.core.shared_types import BoardSizeKey
from src.tactics.position import (
    BOARD_SIZES,
    BoardSize,
    Position,
    is_position_in_list,
    straight_path,
)


def test_offset_and_distances() -> None:
    pos = Position(4, 4)
    assert pos.offset(-1, 2) == Position(3, 6)
    assert pos.manhattan(Position(6, 1)) == 5
    assert pos.chebyshev(Position(6, 1)) == 3


def test_positions_are_hashable_and_ordered() -> None:
    """Row-major ordering, usable as dict keys"""
    positions = [Position(2, 0), Position(0, 5), Position(0, 1)]
    assert sorted(positions) == [Position(0, 1), Position(0, 5), Position(2, 0)]
    assert {Position(1, 1): "x"}[Position(1, 1)] == "x"


@pytest.mark.parametrize(
    "pos, expected",
    [
        (Position(0, 0), True),
        (Position(11, 11), True),
        (Position(12, 0), False),
        (Position(0, 12), False),
        (Position(-1, 3), False),
    ],
)
def test_board_size_contains(pos: Position, expected: bool) -> None:
    assert BOARD_SIZES[BoardSizeKey.SMALL].contains(pos) is expected


@pytest.mark.parametrize(
    "key, cols",
    [(BoardSizeKey.SMALL, 12), (BoardSizeKey.MEDIUM, 16), (BoardSizeKey.LARGE, 20)],
)
def test_board_sizes_always_have_twelve_rows(key: BoardSizeKey, cols: int) -> None:
    size = BOARD_SIZES[key]
    assert size.rows == 12
    assert size.cols == cols
    assert size.key == key


def test_unknown_size_falls_back_to_small_key() -> None:
    assert BoardSize(5, 5).key == BoardSizeKey.SMALL


def test_is_position_in_list() -> None:
    assert is_position_in_list(Position(1, 2), [Position(0, 0), Position(1, 2)])
    assert not is_position_in_list(Position(2, 1), (Position(1, 2),))


@pytest.mark.parametrize(
    "from_pos, to_pos, expected",
    [
        (Position(5, 5), Position(5, 8), [Position(5, 6), Position(5, 7), Position(5, 8)]),
        (Position(5, 5), Position(3, 3), [Position(4, 4), Position(3, 3)]),
        (Position(5, 5), Position(7, 6), [Position(7, 6)]),  # leap: only the target
        (Position(5, 5), Position(5, 5), [Position(5, 5)]),
    ],
)
def test_straight_path(from_pos: Position, to_pos: Position, expected: list[Position]) -> None:
    assert straight_path(from_pos, to_pos) == expected
