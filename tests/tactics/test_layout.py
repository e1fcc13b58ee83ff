"""Unit tests for src/tactics/layout.py"""

import random

import pytest

from src.core.exceptions import InvalidLayoutError
from src.core.shared_types import BoardSizeKey, Color, ObstacleType, PieceType
from src.tactics.board import create_initial_board
from src.tactics.layout import (
    board_from_layout,
    board_to_layout,
    cell_to_char,
    is_valid_layout,
    render,
)
from src.tactics.pieces import Obstacle, Piece
from src.tactics.position import BOARD_SIZES, Position


def test_parse_pieces_and_obstacles() -> None:
    board = board_from_layout(["m.?", "@~H"])
    assert board.size.rows == 2 and board.size.cols == 3

    monarch = board.piece(Position(0, 0))
    assert monarch.type == PieceType.MONARCH
    assert monarch.color == Color.BLACK
    assert monarch.id == "black-0-0"

    hoplite = board.piece(Position(1, 2))
    assert hoplite.color == Color.WHITE
    assert board.obstacle(Position(0, 2)).type == ObstacleType.MYSTERY_BOX
    assert board.obstacle(Position(1, 0)).type == ObstacleType.CAVE
    assert board.obstacle(Position(1, 1)).type == ObstacleType.RIVER
    assert board.cell(Position(0, 1)) is None


def test_parse_multiline_string() -> None:
    board = board_from_layout(
        """
        r..
        ...
        ..R
        """
    )
    assert board_to_layout(board) == ["r..", "...", "..R"]


@pytest.mark.parametrize(
    "rows",
    [
        [],
        [""],
        ["...", ".."],  # ragged
        ["..x"],  # unknown character
    ],
)
def test_invalid_layouts(rows: list[str]) -> None:
    assert not is_valid_layout(rows)
    with pytest.raises(InvalidLayoutError):
        board_from_layout(rows)


def test_cell_to_char() -> None:
    assert cell_to_char(None) == "."
    assert cell_to_char(Obstacle(ObstacleType.LAKE)) == "="
    assert cell_to_char(Piece("x", PieceType.DUCHESS, Color.WHITE)) == "D"
    assert cell_to_char(Piece("y", PieceType.DUCHESS, Color.BLACK)) == "d"


def test_initial_board_diagram() -> None:
    board = create_initial_board(BOARD_SIZES[BoardSizeKey.SMALL], random.Random(0))
    rows = board_to_layout(board)
    assert rows[0] == "rcpbnmdwbpcr"
    assert rows[1] == "h" * 12
    assert rows[10] == "H" * 12
    assert rows[11] == "RCPBNMDWBPCR"
    assert render(board).splitlines() == rows
