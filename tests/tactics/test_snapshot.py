"""Unit tests for src/tactics/snapshot.py"""

import json
import random

import pytest

from src.core.exceptions import GameStateError
from src.core.shared_types import AttackMode, BoardSizeKey, Color, Difficulty, ObstacleType, PieceType
from src.tactics.controller import SelectSquare, Session, reduce
from src.tactics.layout import board_from_layout, board_to_layout
from src.tactics.mystery_box import MysteryBoxOption, MysteryBoxPhase, MysteryBoxState
from src.tactics.narcs import Narc
from src.tactics.pieces import Obstacle
from src.tactics.position import Position
from src.tactics.snapshot import (
    board_from_dict,
    board_to_dict,
    cell_from_dict,
    cell_to_dict,
    piece_from_dict,
    session_from_dict,
    session_to_dict,
)
from src.tactics.state import GameState


@pytest.fixture
def played_session() -> Session:
    """A new 12x12 game after White's first Hoplite move, Black's Hoplite selected"""
    rng = random.Random(3)
    session = Session.new(BoardSizeKey.SMALL, rng, bot_difficulty=Difficulty.HARD)
    for pos in (Position(10, 3), Position(9, 3), Position(1, 3)):
        session = reduce(session, SelectSquare(pos), rng)
    return session.with_changes(attack_mode=AttackMode.CAPTURE, message="hello")


def test_snapshot_is_plain_json(played_session: Session) -> None:
    data = session_to_dict(played_session)
    assert json.loads(json.dumps(data)) == data


def test_session_survives_a_snapshot(played_session: Session) -> None:
    restored = session_from_dict(json.loads(json.dumps(session_to_dict(played_session))))
    assert restored == played_session
    assert restored.game.selected_position == Position(1, 3)
    assert restored.game.move_history[0].piece.type == PieceType.HOPLITE
    assert restored.bot_difficulty == Difficulty.HARD
    assert restored.attack_mode == AttackMode.CAPTURE
    assert len(restored.history) == 1


def test_undo_history_only_stores_move_counts(played_session: Session) -> None:
    rng = random.Random(0)
    session = reduce(played_session, SelectSquare(Position(2, 3)), rng)
    data = session_to_dict(session)
    assert [entry["move_count"] for entry in data["history"]] == [0, 1]
    assert all("move_history" not in entry for entry in data["history"])

    restored = session_from_dict(json.loads(json.dumps(data)))
    assert restored == session
    assert restored.history[-1].move_history == session.game.move_history[:1]

    data["history"][-1]["move_count"] = 5
    with pytest.raises(GameStateError):
        session_from_dict(data)


def test_piece_flags_are_kept() -> None:
    """Unlike text diagrams, snapshots keep zombies, revivals and frozen pieces"""
    board = board_from_layout(["m.N", "...", "B.M"])
    necromancer = board.piece(Position(0, 2)).with_changes(revive_count=2, has_moved=True)
    zombie = board.piece(Position(2, 0)).with_changes(is_zombie=True, frozen=True)
    board.set_cell(Position(0, 2), necromancer)
    board.set_cell(Position(2, 0), zombie)

    restored = board_from_dict(board_to_dict(board))
    assert restored.piece(Position(0, 2)) == necromancer
    assert restored.piece(Position(2, 0)) == zombie
    assert board_to_layout(restored) == ["m.N", "...", "B.M"]


def test_cells() -> None:
    assert cell_to_dict(None) is None
    assert cell_from_dict(None) is None
    assert cell_from_dict(cell_to_dict(Obstacle(ObstacleType.CAVE))) == Obstacle(ObstacleType.CAVE)
    with pytest.raises(GameStateError):
        cell_from_dict({"kind": "dragon"})


def test_missing_piece_flags_default() -> None:
    piece = piece_from_dict({"id": "white-1-1", "type": "bomber", "color": "white"})
    assert piece.type == PieceType.BOMBER
    assert not piece.has_moved and not piece.is_zombie and not piece.frozen
    assert piece.revive_count == 0


def test_active_mystery_box_and_narcs() -> None:
    board = board_from_layout(["m...", ".B..", "...M"])
    box = MysteryBoxState(
        is_active=True,
        option=MysteryBoxOption.OBSTACLE_SWAP,
        phase=MysteryBoxPhase.WAITING_EMPTY_TILE_SELECTION,
        trigger_position=Position(2, 2),
        dice_roll=2,
        selected_obstacles=(Position(0, 3), Position(1, 3)),
    )
    narcs = [Narc(Position(0, 1), Color.WHITE, "white-1-1")]
    session = Session(
        game=GameState(board=board, board_size=board.size, narcs=narcs),
        mystery_box=box,
    )
    restored = session_from_dict(session_to_dict(session))
    assert restored.mystery_box == box
    assert restored.game.narcs == narcs


def test_board_must_match_its_dimensions() -> None:
    data = board_to_dict(board_from_layout(["m..", "..M"]))
    data["rows"] = 3
    with pytest.raises(GameStateError):
        board_from_dict(data)


def test_snapshot_without_a_game() -> None:
    with pytest.raises(GameStateError):
        session_from_dict({"board_size_key": "12x12"})
