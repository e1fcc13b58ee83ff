"""Unit tests for src/tactics/narcs.py"""

from src.core.shared_types import Color, PieceType
from src.tactics.layout import board_from_layout
from src.tactics.narcs import (
    Narc,
    NarcTrigger,
    can_be_caught,
    check_narc_net_trigger,
    check_narc_trigger,
    create_narcs_for_bomber,
    find_narc_at_position,
    find_narc_trigger_on_path,
    get_all_narc_net_positions,
    get_narc_net_positions,
    get_narc_positions,
    remove_narcs_for_bomber,
)
from src.tactics.pieces import Piece
from src.tactics.position import Position

BOMBER = Piece("black-2-2", PieceType.BOMBER, Color.BLACK)
WHITE_RAM = Piece("white-9-0", PieceType.RAM_TOWER, Color.WHITE)
BLACK_RAM = Piece("black-0-0", PieceType.RAM_TOWER, Color.BLACK)
WHITE_BOMBER = Piece("white-9-3", PieceType.BOMBER, Color.WHITE)


def black_narcs() -> list[Narc]:
    board = board_from_layout([".....", ".....", "..b..", ".....", "....."])
    return create_narcs_for_bomber(board, Position(2, 2), BOMBER)


def test_narcs_on_the_diagonals() -> None:
    narcs = black_narcs()
    assert [n.position for n in narcs] == [Position(1, 1), Position(1, 3), Position(3, 1), Position(3, 3)]
    assert all(n.owner_color == Color.BLACK and n.bomber_id == BOMBER.id for n in narcs)


def test_narcs_skip_the_edge_and_obstacles() -> None:
    board = board_from_layout(["b..", ".*.", "..."])
    assert get_narc_positions(board, Position(0, 0)) == []
    board = board_from_layout(["...", ".b.", "*.."])
    assert get_narc_positions(board, Position(1, 1)) == [Position(0, 0), Position(0, 2), Position(2, 2)]


def test_net_between_narcs() -> None:
    """The four orthogonal neighbours of the Bomber"""
    net = get_narc_net_positions(black_narcs(), BOMBER.id)
    assert set(net) == {Position(1, 2), Position(3, 2), Position(2, 1), Position(2, 3)}
    assert set(get_all_narc_net_positions(black_narcs())) == set(net)


def test_remove_and_find() -> None:
    narcs = black_narcs()
    assert find_narc_at_position(narcs, Position(1, 1)) == narcs[0]
    assert find_narc_at_position(narcs, Position(2, 2)) is None
    assert remove_narcs_for_bomber(narcs, BOMBER.id) == []
    assert remove_narcs_for_bomber(narcs, "someone-else") == narcs


def test_only_enemies_are_caught() -> None:
    narcs = black_narcs()
    assert check_narc_trigger(narcs, Position(1, 1), WHITE_RAM) == narcs[0]
    assert check_narc_trigger(narcs, Position(1, 1), BLACK_RAM) is None
    assert check_narc_net_trigger(narcs, Position(2, 1), WHITE_RAM) is not None
    assert check_narc_net_trigger(narcs, Position(2, 1), BLACK_RAM) is None


def test_bombers_are_never_caught() -> None:
    assert not can_be_caught(WHITE_BOMBER)
    assert can_be_caught(WHITE_RAM)
    assert find_narc_trigger_on_path(black_narcs(), [Position(1, 1)], WHITE_BOMBER) is None


def test_first_trigger_on_path_wins() -> None:
    path = [Position(4, 1), Position(3, 1), Position(2, 1), Position(1, 1)]
    trigger = find_narc_trigger_on_path(black_narcs(), path, WHITE_RAM)
    assert trigger == NarcTrigger(Position(3, 1), BOMBER.id)
    assert find_narc_trigger_on_path([], path, WHITE_RAM) is None
