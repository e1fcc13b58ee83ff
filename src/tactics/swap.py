"""
Warlock swaps.
----

A Warlock can, instead of moving:
* swap places with its own Monarch ("warlock-monarch")
* pick one of its own Hoplites, which then swaps places with the Monarch ("hoplite-monarch"; the Warlock stays put)

A frozen Monarch can still be swapped: it travels with its flag and thaws when its owner's turn ends, like anywhere else.

Rejections are returned as values (SwapResult with an error message), this module never raises.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

from src.core.shared_types import Color, PieceType
from src.tactics.board import Board
from src.tactics.pieces import Piece
from src.tactics.position import Position
from src.tactics.results import ActionResult


class SwapType(StrEnum):
    WARLOCK_MONARCH = "warlock-monarch"
    HOPLITE_MONARCH = "hoplite-monarch"


@dataclass(frozen=True)
class SwapTarget:
    position: Position
    piece: Piece
    swap_type: SwapType


@dataclass(frozen=True)
class SwapValidation:
    valid: bool
    swap_type: Optional[SwapType] = None
    error: Optional[str] = None


# A swap is just another special action: same result shape
SwapResult = ActionResult


def can_initiate_swap(board: Board, pos: Position) -> bool:
    piece = board.piece(pos)
    return piece is not None and piece.type == PieceType.WARLOCK


def _find_pieces(board: Board, piece_type: PieceType, color: Color) -> list[tuple[Position, Piece]]:
    return [(pos, piece) for pos, piece in board.pieces(color) if piece.type == piece_type]


def get_valid_swap_targets(board: Board, warlock_pos: Position) -> list[SwapTarget]:
    warlock = board.piece(warlock_pos)
    if warlock is None or warlock.type != PieceType.WARLOCK:
        return []

    targets = [
        SwapTarget(pos, piece, SwapType.WARLOCK_MONARCH)
        for pos, piece in _find_pieces(board, PieceType.MONARCH, warlock.color)
    ]
    targets.extend(
        SwapTarget(pos, piece, SwapType.HOPLITE_MONARCH)
        for pos, piece in _find_pieces(board, PieceType.HOPLITE, warlock.color)
    )
    return targets


def is_valid_swap(board: Board, initiator_pos: Position, target_pos: Position) -> SwapValidation:
    initiator = board.piece(initiator_pos)
    target = board.piece(target_pos)

    if initiator is None:
        return SwapValidation(False, error="No piece at initiator position")
    if target is None:
        return SwapValidation(False, error="No piece at target position")
    if initiator.type != PieceType.WARLOCK:
        return SwapValidation(False, error="Only Warlock can initiate swaps")
    if initiator.color != target.color:
        return SwapValidation(False, error="Cannot swap with enemy pieces")
    if target.type == PieceType.MONARCH:
        return SwapValidation(True, swap_type=SwapType.WARLOCK_MONARCH)
    if target.type == PieceType.HOPLITE:
        return SwapValidation(True, swap_type=SwapType.HOPLITE_MONARCH)
    return SwapValidation(
        False,
        error="Invalid swap target. Warlock can only swap with Monarch or select Hoplite for Monarch swap",
    )


def execute_swap(board: Board, initiator_pos: Position, target_pos: Position) -> SwapResult:
    validation = is_valid_swap(board, initiator_pos, target_pos)
    if not validation.valid:
        return SwapResult.rejected(board, validation.error)

    new_board = board.clone()
    initiator = new_board.piece(initiator_pos)
    target = new_board.piece(target_pos)

    if validation.swap_type == SwapType.WARLOCK_MONARCH:
        new_board.set_cell(initiator_pos, target)
        new_board.set_cell(target_pos, initiator)
        return SwapResult.accepted(new_board, initiator_pos)

    # three-party swap: the selected Hoplite and the Monarch exchange squares
    monarchs = _find_pieces(new_board, PieceType.MONARCH, initiator.color)
    if not monarchs:
        return SwapResult.rejected(board, "Monarch not found on board")
    monarch_pos, monarch = monarchs[0]
    new_board.set_cell(target_pos, monarch)
    new_board.set_cell(monarch_pos, target)
    return SwapResult.accepted(new_board, target_pos)
