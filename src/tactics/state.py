"""
The state of a game in progress, and the bookkeeping every committed action goes through.

A GameState is never modified: every committed action produces a new one, so earlier states can be kept around for undo.
"""

import random
from dataclasses import dataclass, field, replace
from typing import Optional, Self

from src.core.shared_types import Color
from src.tactics.board import Board, create_initial_board
from src.tactics.moves import Move, MoveResult, has_legal_moves, is_monarch_captured, thaw_pieces
from src.tactics.narcs import Narc, remove_narcs_for_bomber
from src.tactics.pieces import Piece
from src.tactics.position import BoardSize, Position
from src.tactics.swap import SwapTarget


def empty_captured() -> dict[Color, list[Piece]]:
    return {Color.WHITE: [], Color.BLACK: []}


@dataclass(frozen=True)
class GameState:
    board: Board
    board_size: BoardSize
    current_player: Color = Color.WHITE
    # selection scratch fields
    selected_position: Optional[Position] = None
    valid_moves: list[Position] = field(default_factory=list)
    valid_attacks: list[Position] = field(default_factory=list)
    valid_swaps: list[SwapTarget] = field(default_factory=list)
    # committed history
    move_history: list[Move] = field(default_factory=list)
    captured_pieces: dict[Color, list[Piece]] = field(default_factory=empty_captured)  # keyed by the color of the victim
    last_move: Optional[Move] = None
    game_over: bool = False
    winner: Optional[Color] = None
    narcs: list[Narc] = field(default_factory=list)

    @classmethod
    def new(cls, size: BoardSize, rng: Optional[random.Random] = None) -> Self:
        return cls(board=create_initial_board(size, rng), board_size=size)

    def with_changes(self, **changes) -> Self:
        return replace(self, **changes)

    def clear_selection(self) -> Self:
        return self.with_changes(
            selected_position=None, valid_moves=[], valid_attacks=[], valid_swaps=[]
        )


def check_game_over(board: Board, next_player: Color, size: BoardSize) -> tuple[bool, Optional[Color]]:
    """The player about to move loses when their Monarch is gone or when they cannot do anything."""
    if is_monarch_captured(board, next_player) or not has_legal_moves(board, next_player, size):
        return True, next_player.opponent
    return False, None


def record_capture(
    captured_pieces: dict[Color, list[Piece]], piece: Optional[Piece]
) -> dict[Color, list[Piece]]:
    if piece is None:
        return captured_pieces
    updated = {color: list(pieces) for color, pieces in captured_pieces.items()}
    updated.setdefault(piece.color, []).append(piece)
    return updated


def remove_captured(
    captured_pieces: dict[Color, list[Piece]], color: Color, piece_id: str
) -> dict[Color, list[Piece]]:
    """Take a piece back out of a captured list, by identity"""
    updated = {c: list(pieces) for c, pieces in captured_pieces.items()}
    updated[color] = [piece for piece in updated.get(color, []) if piece.id != piece_id]
    return updated


def thaw_for_owner(board: Board, color: Color) -> Board:
    """
    The owner's turn is over, whatever action it was spent on: its frozen pieces act again.
    The board is only copied when something actually thaws.
    """
    if not any(piece.frozen for _, piece in board.pieces(color)):
        return board
    thawed = board.clone()
    thaw_pieces(thawed, color)
    return thawed


def end_turn(state: GameState, board: Optional[Board] = None) -> GameState:
    """Hand the turn to the opponent (after any committed action) and check whether that player can still play."""
    board = board if board is not None else state.board
    board = thaw_for_owner(board, state.current_player)
    next_player = state.current_player.opponent
    game_over, winner = check_game_over(board, next_player, state.board_size)
    return state.clear_selection().with_changes(
        board=board,
        current_player=next_player,
        game_over=game_over,
        winner=winner,
        narcs=[narc for narc in state.narcs if board.find_piece_by_id(narc.bomber_id) is not None],
    )


def commit_move(state: GameState, result: MoveResult, pass_turn: bool = True) -> GameState:
    """Record a move (history, captures, narcs) and, unless a sub-game follows, pass the turn."""
    narcs = result.new_narcs
    captured = result.move.captured
    if captured is not None:
        narcs = remove_narcs_for_bomber(narcs, captured.id)

    committed = state.clear_selection().with_changes(
        board=result.new_board,
        move_history=[*state.move_history, result.move],
        captured_pieces=record_capture(state.captured_pieces, captured),
        last_move=result.move,
        narcs=narcs,
    )
    if not pass_turn:
        return committed
    return end_turn(committed)
