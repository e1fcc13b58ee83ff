"""Unit tests for src/tactics/pieces.py"""

import pytest

from src.core.shared_types import Color, ObstacleType, PieceType
from src.tactics.pieces import (
    BACK_ROW_PIECES,
    PIECE_RULES,
    Movement,
    Obstacle,
    Piece,
    back_row_for_board_size,
    is_obstacle,
    is_piece,
)


def test_every_piece_type_has_a_rule() -> None:
    assert set(PIECE_RULES) == set(PieceType)


def test_only_bomber_can_choose_attack_mode() -> None:
    choosers = [t for t, rule in PIECE_RULES.items() if rule.can_choose_attack_mode]
    assert choosers == [PieceType.BOMBER]


def test_ranged_pieces() -> None:
    assert PIECE_RULES[PieceType.NECROMANCER].attack_range == 4
    assert PIECE_RULES[PieceType.BOMBER].attack_range == 2
    assert PIECE_RULES[PieceType.PALADIN].movement == Movement.LEAP


@pytest.mark.parametrize(
    "cols, pad_left, pad_right",
    [(12, 0, 0), (16, 2, 2), (20, 4, 4)],
)
def test_back_row_is_padded_with_hoplites(cols: int, pad_left: int, pad_right: int) -> None:
    row = back_row_for_board_size(cols)
    assert len(row) == cols
    assert row[:pad_left] == [PieceType.HOPLITE] * pad_left
    assert row[pad_left : pad_left + len(BACK_ROW_PIECES)] == list(BACK_ROW_PIECES)
    assert row[cols - pad_right :] == [PieceType.HOPLITE] * pad_right


def test_back_row_has_one_monarch() -> None:
    assert BACK_ROW_PIECES.count(PieceType.MONARCH) == 1


def test_piece_with_changes_returns_new_instance() -> None:
    piece = Piece("white-11-4", PieceType.NECROMANCER, Color.WHITE)
    revived = piece.with_changes(revive_count=1)
    assert piece.revive_count == 0
    assert revived.revive_count == 1
    assert revived.id == piece.id


def test_zombies_are_worth_half() -> None:
    ram = Piece("black-0-0", PieceType.RAM_TOWER, Color.BLACK)
    assert ram.points == 5
    assert ram.with_changes(is_zombie=True).points == 2


def test_cell_variants() -> None:
    box = Obstacle(ObstacleType.MYSTERY_BOX)
    cave = Obstacle(ObstacleType.CAVE)
    assert box.is_mystery_box and not box.is_cave
    assert cave.is_cave and not cave.is_mystery_box
    assert Obstacle().type == ObstacleType.ROCK
    assert is_obstacle(box) and not is_piece(box)
    assert is_piece(Piece("x", PieceType.HOPLITE, Color.WHITE))
    assert not is_piece(None) and not is_obstacle(None)
