"""Unit tests for src/tactics/controller.py"""

import random

import pytest

from src.core.exceptions import ActionInProgressError
from src.core.shared_types import AttackMode, BoardSizeKey, Color, Difficulty, PieceType
from src.tactics.board import Board, create_piece, place_formation
from src.tactics.controller import (
    BOT_TO_MOVE,
    GAME_OVER,
    MYSTERY_BOX_PENDING,
    NO_MYSTERY_BOX,
    BotTurn,
    CancelMysteryBox,
    ConfirmObstacleSelection,
    GameController,
    MysteryBoxSelect,
    RequestHint,
    Reset,
    ReviveZombie,
    SelectRevivePiece,
    SelectSquare,
    Session,
    SetAttackMode,
    SetDifficulty,
    ToggleBot,
    Undo,
    reduce,
)
from src.tactics.layout import board_from_layout, board_to_layout
from src.tactics.mystery_box import MysteryBoxOption, MysteryBoxState, get_phase_for_option
from src.tactics.position import BOARD_SIZES, Position
from src.tactics.state import GameState

SMALL = BOARD_SIZES[BoardSizeKey.SMALL]


def session_from(rows: list[str], **changes) -> Session:
    board = board_from_layout(rows)
    game_changes = {k: changes.pop(k) for k in ("current_player", "captured_pieces") if k in changes}
    return Session(game=GameState(board=board, board_size=board.size, **game_changes), **changes)


def play(session: Session, *actions, seed: int = 0) -> Session:
    rng = random.Random(seed)
    for action in actions:
        session = reduce(session, action, rng)
    return session


def box_state(option: MysteryBoxOption, **changes) -> MysteryBoxState:
    return MysteryBoxState(is_active=True, option=option, phase=get_phase_for_option(option), **changes)


@pytest.fixture
def new_session() -> Session:
    return Session.new(BoardSizeKey.SMALL, random.Random(0))


# --- SELECTION AND MOVES ---
def test_hoplite_opening_move(new_session: Session) -> None:
    """On a 12x12 board the front row Hoplite has one move: straight ahead"""
    selected = play(new_session, SelectSquare(Position(10, 3)))
    assert selected.game.selected_position == Position(10, 3)
    assert selected.game.valid_moves == [Position(9, 3)]
    assert selected.game.valid_attacks == []

    moved = play(selected, SelectSquare(Position(9, 3)))
    assert moved.game.current_player == Color.BLACK
    assert len(moved.game.move_history) == 1
    assert moved.game.board.piece(Position(9, 3)).type == PieceType.HOPLITE
    assert moved.game.selected_position is None
    assert len(moved.history) == 1


def test_selecting_an_opponent_piece_clears_the_selection(new_session: Session) -> None:
    session = play(new_session, SelectSquare(Position(10, 3)), SelectSquare(Position(1, 3)))
    assert session.game.selected_position is None
    assert session.game.current_player == Color.WHITE


def test_reselecting_another_own_piece(new_session: Session) -> None:
    session = play(new_session, SelectSquare(Position(10, 3)), SelectSquare(Position(11, 2)))
    assert session.game.selected_position == Position(11, 2)


def test_clicking_outside_the_board_is_ignored(new_session: Session) -> None:
    session = play(new_session, SelectSquare(Position(10, 3)), SelectSquare(Position(40, 40)))
    assert session.game.selected_position is None
    assert session.game.board is new_session.game.board


def test_undo_restores_the_previous_state(new_session: Session) -> None:
    moved = play(new_session, SelectSquare(Position(10, 3)), SelectSquare(Position(9, 3)))
    assert moved.can_undo
    undone = play(moved, Undo())
    assert undone.game.current_player == Color.WHITE
    assert board_to_layout(undone.game.board) == board_to_layout(new_session.game.board)
    assert undone.history == []
    assert play(undone, Undo()).message == "Nothing to undo."


def test_capturing_the_monarch_ends_the_game() -> None:
    session = session_from(["m...", "....", "....", "R..M"])
    over = play(session, SelectSquare(Position(3, 0)), SelectSquare(Position(0, 0)))
    assert over.game.game_over
    assert over.game.winner == Color.WHITE

    after = play(over, SelectSquare(Position(3, 3)), SelectSquare(Position(2, 3)))
    assert after.message == GAME_OVER
    assert after.game == over.game


def test_attack_mode_decides_how_a_bomber_attacks() -> None:
    rows = ["m...h", ".....", "....B", "M...."]
    ranged = play(session_from(rows), SelectSquare(Position(2, 4)), SelectSquare(Position(0, 4)))
    assert ranged.game.board.piece(Position(0, 4)) is None
    assert ranged.game.board.piece(Position(2, 4)).type == PieceType.BOMBER
    assert ranged.game.last_move.is_attack

    capture = play(
        session_from(rows),
        SetAttackMode(AttackMode.CAPTURE),
        SelectSquare(Position(2, 4)),
        SelectSquare(Position(0, 4)),
    )
    assert capture.game.board.piece(Position(0, 4)).type == PieceType.BOMBER
    assert capture.game.board.piece(Position(2, 4)) is None
    assert not capture.game.last_move.is_attack


# --- SWAPS AND REVIVALS ---
def test_warlock_swap_through_selection() -> None:
    session = session_from(["m.......", "........", "..W.M..."])
    selected = play(session, SelectSquare(Position(2, 2)))
    assert [s.position for s in selected.game.valid_swaps] == [Position(2, 4)]

    swapped = play(selected, SelectSquare(Position(2, 4)))
    assert swapped.game.board.piece(Position(2, 2)).type == PieceType.MONARCH
    assert swapped.game.board.piece(Position(2, 4)).type == PieceType.WARLOCK
    assert swapped.game.current_player == Color.BLACK
    assert len(swapped.history) == 1


def test_zombie_revival_takes_the_turn() -> None:
    board = Board.empty(SMALL)
    place_formation(board)
    ram = board.remove(Position(11, 0))
    session = Session(
        game=GameState(board=board, board_size=SMALL, captured_pieces={Color.WHITE: [ram], Color.BLACK: []})
    )

    revived = play(session, ReviveZombie(ram.id))
    assert revived.game.board.piece(Position(11, 0)).is_zombie
    assert revived.game.board.piece(Position(11, 4)).revive_count == 1
    assert revived.game.captured_pieces[Color.WHITE] == []
    assert revived.game.current_player == Color.BLACK

    rejected = play(session, ReviveZombie("unknown"))
    assert rejected.message == "This piece cannot be revived as a Zombie."
    assert rejected.game == session.game


def test_a_swap_turn_thaws_the_frozen_monarch() -> None:
    session = session_from(["m.......", "........", "h.......", "..W.M..."])
    monarch = session.game.board.piece(Position(3, 4))
    session.game.board.set_cell(Position(3, 4), monarch.with_changes(frozen=True))

    swapped = play(session, SelectSquare(Position(3, 2)), SelectSquare(Position(3, 4)))
    assert swapped.game.board.piece(Position(3, 2)).type == PieceType.MONARCH
    assert not swapped.game.board.piece(Position(3, 2)).frozen

    answered = play(swapped, SelectSquare(Position(2, 0)), SelectSquare(Position(3, 0)))
    assert answered.game.current_player == Color.WHITE
    assert not answered.game.board.piece(Position(3, 2)).frozen


def test_a_revival_turn_thaws_the_frozen_monarch() -> None:
    board = Board.empty(SMALL)
    place_formation(board)
    ram = board.remove(Position(11, 0))
    monarch_pos, monarch = next(
        (pos, piece) for pos, piece in board.pieces(Color.WHITE) if piece.type == PieceType.MONARCH
    )
    board.set_cell(monarch_pos, monarch.with_changes(frozen=True))
    session = Session(
        game=GameState(board=board, board_size=SMALL, captured_pieces={Color.WHITE: [ram], Color.BLACK: []})
    )

    revived = play(session, ReviveZombie(ram.id))
    assert revived.game.current_player == Color.BLACK
    assert not revived.game.board.piece(monarch_pos).frozen


# --- MYSTERY BOX ---
def test_moving_onto_a_mystery_box_opens_it() -> None:
    session = session_from(["m.....", "......", "..*...", "...?..", "...H..", "M....."])
    opened = play(session, SelectSquare(Position(4, 3)), SelectSquare(Position(3, 3)))
    assert opened.mystery_box.is_active
    assert opened.mystery_box.trigger_position == Position(3, 3)
    # the move is committed, the turn is not over yet
    assert opened.game.board.piece(Position(3, 3)).type == PieceType.HOPLITE
    assert opened.game.current_player == Color.WHITE
    assert not opened.can_undo
    assert play(opened, SelectSquare(Position(5, 0))).message == MYSTERY_BOX_PENDING
    assert play(opened, Undo()).message == MYSTERY_BOX_PENDING

    cancelled = play(opened, CancelMysteryBox())
    assert not cancelled.mystery_box.is_active
    assert cancelled.game.current_player == Color.BLACK
    assert cancelled.game.board.piece(Position(3, 3)).type == PieceType.HOPLITE


def test_empty_mystery_box_just_ends_the_turn() -> None:
    """A single white piece, no captures and no terrain: nothing to offer"""
    session = session_from(["m....", ".....", "..?..", "..M.."])
    spent = play(session, SelectSquare(Position(3, 2)), SelectSquare(Position(2, 2)))
    assert not spent.mystery_box.is_active
    assert spent.game.current_player == Color.BLACK
    assert spent.message == "The mystery box was empty."


def test_figure_swap_through_the_controller() -> None:
    session = session_from(["m.....", "......", "H....M"]).with_changes(
        mystery_box=box_state(MysteryBoxOption.FIGURE_SWAP)
    )
    rejected = play(session, MysteryBoxSelect(Position(0, 0)))
    assert rejected.message is not None and rejected.mystery_box == session.mystery_box

    done = play(session, MysteryBoxSelect(Position(2, 0)), MysteryBoxSelect(Position(2, 5)))
    assert done.game.board.piece(Position(2, 0)).type == PieceType.MONARCH
    assert done.game.board.piece(Position(2, 5)).type == PieceType.HOPLITE
    assert not done.mystery_box.is_active
    assert done.game.current_player == Color.BLACK


def test_hoplite_sacrifice_through_the_controller() -> None:
    ram = create_piece(PieceType.RAM_TOWER, Color.BLACK, Position(0, 5))
    session = session_from(
        ["m.....", "......", "H....M"],
        captured_pieces={Color.WHITE: [], Color.BLACK: [ram]},
    ).with_changes(mystery_box=box_state(MysteryBoxOption.HOPLITE_SACRIFICE_REVIVE, revivable_pieces=(ram,)))

    sacrificed = play(session, MysteryBoxSelect(Position(2, 0)))
    assert sacrificed.game.board.cell(Position(2, 0)) is None
    assert sacrificed.game.current_player == Color.WHITE

    done = play(sacrificed, SelectRevivePiece(ram.id), MysteryBoxSelect(Position(1, 1)))
    revived = done.game.board.piece(Position(1, 1))
    assert revived.type == PieceType.RAM_TOWER and revived.color == Color.WHITE
    assert not revived.is_zombie
    assert done.game.captured_pieces[Color.BLACK] == []
    assert done.game.current_player == Color.BLACK


def test_obstacle_swap_through_the_controller() -> None:
    session = session_from(["m.....", "..*...", "....~.", "M....."]).with_changes(
        mystery_box=box_state(MysteryBoxOption.OBSTACLE_SWAP, dice_roll=1)
    )
    done = play(session, MysteryBoxSelect(Position(1, 2)), MysteryBoxSelect(Position(3, 5)))
    assert done.game.board.cell(Position(1, 2)) is None
    assert done.game.board.obstacle(Position(3, 5)) is not None
    assert len(done.game.board.obstacle_positions()) == 2
    assert done.game.current_player == Color.BLACK


def test_confirming_fewer_obstacles_than_rolled() -> None:
    session = session_from(["m.....", "..*...", "....~.", "M....."]).with_changes(
        mystery_box=box_state(MysteryBoxOption.OBSTACLE_SWAP, dice_roll=2)
    )
    one_selected = play(session, MysteryBoxSelect(Position(2, 4)))
    assert one_selected.mystery_box.selected_obstacles == (Position(2, 4),)

    done = play(one_selected, ConfirmObstacleSelection(), MysteryBoxSelect(Position(0, 5)))
    assert done.game.board.obstacle(Position(0, 5)) is not None
    assert done.game.board.cell(Position(2, 4)) is None
    assert done.game.board.obstacle(Position(1, 2)) is not None
    assert not done.mystery_box.is_active


def test_mystery_box_actions_need_an_active_box() -> None:
    session = session_from(["m..", "...", "..M"])
    assert play(session, MysteryBoxSelect(Position(0, 1))).message == NO_MYSTERY_BOX
    assert play(session, CancelMysteryBox()).message == NO_MYSTERY_BOX


# --- BOT, HINTS AND SETTINGS ---
def test_bot_answers_and_undo_goes_back_to_whites_turn() -> None:
    session = Session.new(BoardSizeKey.SMALL, random.Random(1), bot_enabled=True, bot_difficulty=Difficulty.EASY)
    controller = GameController(session, random.Random(1))
    controller.dispatch(SelectSquare(Position(10, 3)))
    controller.dispatch(SelectSquare(Position(9, 3)))
    assert controller.session.is_bot_turn
    assert not controller.session.can_undo
    assert reduce(controller.session, SelectSquare(Position(1, 0)), random.Random(0)).message == BOT_TO_MOVE

    controller.play_bot_turn()
    assert controller.session.game.current_player == Color.WHITE
    assert len(controller.session.game.move_history) == 2
    assert controller.session.can_undo

    controller.dispatch(Undo())
    assert board_to_layout(controller.session.game.board) == board_to_layout(session.game.board)


def test_bot_turn_is_a_no_op_when_it_is_not_its_turn(new_session: Session) -> None:
    assert play(new_session, BotTurn()) is new_session


def test_hint_on_whites_turn() -> None:
    session = session_from(["m.....", "......", "..R..d", "......", "M....."])
    hinted = play(session, RequestHint())
    assert hinted.hint.from_pos == Position(2, 2)
    assert hinted.hint.to_pos == Position(2, 5)
    # any board click clears the hint
    assert play(hinted, SelectSquare(Position(2, 2))).hint is None

    black = session_from(["m..", "...", "..M"], current_player=Color.BLACK)
    assert play(black, RequestHint()).message == "Hints are only available on White's turn."


def test_necromancer_next_to_the_monarch_freezes_it_for_player_and_bot() -> None:
    rows = ["n....m", "M.....", "......", "......", "......", ".....H"]
    clicked = play(
        session_from(rows, current_player=Color.BLACK), SelectSquare(Position(0, 0)), SelectSquare(Position(1, 0))
    )
    assert clicked.game.last_move.froze is not None
    assert clicked.game.last_move.captured is None
    assert clicked.game.board.piece(Position(1, 0)).frozen
    assert not clicked.game.game_over

    bot = session_from(rows, current_player=Color.BLACK, bot_enabled=True, bot_difficulty=Difficulty.HARD)
    answered = play(bot, BotTurn())
    assert not answered.game.game_over
    assert answered.game.board.piece(Position(1, 0)).type == PieceType.MONARCH
    assert answered.game.board.piece(Position(1, 0)).color == Color.WHITE


def test_settings(new_session: Session) -> None:
    session = play(new_session, ToggleBot(), SetDifficulty(Difficulty.HARD), SetAttackMode(AttackMode.CAPTURE))
    assert session.bot_enabled
    assert session.bot_difficulty == Difficulty.HARD
    assert session.attack_mode == AttackMode.CAPTURE
    assert not play(session, ToggleBot()).bot_enabled


def test_reset_keeps_settings(new_session: Session) -> None:
    moved = play(new_session, ToggleBot(), SelectSquare(Position(10, 3)), SelectSquare(Position(9, 3)))
    fresh = play(moved, Reset(BoardSizeKey.MEDIUM))
    assert fresh.bot_enabled
    assert fresh.board_size_key == BoardSizeKey.MEDIUM
    assert fresh.game.board.size.cols == 16
    assert fresh.history == []
    assert fresh.game.current_player == Color.WHITE


def test_controller_refuses_concurrent_actions(new_session: Session) -> None:
    controller = GameController(new_session, random.Random(0))
    controller._lock.acquire()
    try:
        with pytest.raises(ActionInProgressError):
            controller.dispatch(SelectSquare(Position(10, 3)))
    finally:
        controller._lock.release()
    assert controller.session is new_session
