"""
Zombie revival by the Necromancer.
----

A player can bring back one of their own captured pieces (RamTower, Chariot, Bomber or Paladin) as a zombie, as long as:
* a friendly Necromancer is on the board
* the guard formation is intact: Warlock, Monarch and Duchess on their starting squares, never moved
* there is an empty square to put the zombie on

Each revival costs the Necromancer 2 squares of attack range. Zombies themselves are limited to a range of 1
(a zombie Bomber blasts at distance 1 instead of 2).
"""

import logging
from typing import Optional

from src.core.shared_types import Color, PieceType
from src.tactics.board import Board
from src.tactics.pieces import Piece, back_row_for_board_size
from src.tactics.position import BoardSize, Position
from src.tactics.results import ActionResult

logger = logging.getLogger("fantasy_tactics.zombies")

ZOMBIE_ELIGIBLE_TYPES: tuple[PieceType, ...] = (
    PieceType.RAM_TOWER,
    PieceType.CHARIOT,
    PieceType.BOMBER,
    PieceType.PALADIN,
)
REVIVAL_GUARD_TYPES: tuple[PieceType, ...] = (
    PieceType.WARLOCK,
    PieceType.MONARCH,
    PieceType.DUCHESS,
)
RANGE_LOST_PER_REVIVAL = 2

# reasons a revival cannot happen (shown to the player as is)
NO_NECROMANCER = "Your Necromancer must be on the board."
GUARDS_NOT_IN_PLACE = "Warlock, Monarch, and Duchess must be in their starting positions and must not have moved."
NO_REVIVABLE_PIECES = "No eligible captured pieces available."
NO_EMPTY_TILE = "No empty tiles available to place the Zombie."
NOT_REVIVABLE = "This piece cannot be revived as a Zombie."


def is_zombie_eligible_type(piece_type: PieceType) -> bool:
    return piece_type in ZOMBIE_ELIGIBLE_TYPES


def get_adjusted_attack_range(piece: Piece, base_range: int) -> int:
    """
    Effective range of a piece. Used for ranged attacks and to cap slides.

    * Necromancer: loses 2 per revival performed (never below 0)
    * zombie Bomber: always 1
    * any other zombie: at most 1
    """
    adjusted = base_range
    if piece.type == PieceType.NECROMANCER:
        adjusted = max(0, adjusted - RANGE_LOST_PER_REVIVAL * piece.revive_count)

    if piece.is_zombie and piece.type == PieceType.BOMBER:
        return 1
    if piece.is_zombie:
        adjusted = min(adjusted, 1)
    return adjusted


def get_starting_position_for_piece_type(
    size: BoardSize, piece_type: PieceType, color: Color
) -> Optional[Position]:
    """
    Back row square a piece type starts on.
    For types that appear twice in the formation, the first one (lowest column) counts.
    """
    back_row = back_row_for_board_size(size.cols)
    if piece_type not in back_row:
        return None
    row = size.rows - 1 if color == Color.WHITE else 0
    return Position(row, back_row.index(piece_type))


def are_revival_guards_in_place(board: Board, size: BoardSize, color: Color) -> bool:
    for guard_type in REVIVAL_GUARD_TYPES:
        pos = get_starting_position_for_piece_type(size, guard_type, color)
        if pos is None:
            return False
        piece = board.piece(pos)
        if piece is None or piece.type != guard_type or piece.color != color:
            return False
        if piece.has_moved:
            return False
    return True


def find_necromancer(board: Board, color: Color) -> Optional[Position]:
    positions = board.find_piece_positions(PieceType.NECROMANCER, color)
    return positions[0] if positions else None


def get_zombie_revive_pieces(
    captured_pieces: dict[Color, list[Piece]], current_player: Color
) -> list[Piece]:
    """The current player's own captured pieces that qualify"""
    return [
        piece
        for piece in captured_pieces.get(current_player, [])
        if is_zombie_eligible_type(piece.type)
    ]


def get_zombie_revive_placement_target(
    board: Board, size: BoardSize, piece_type: PieceType, color: Color
) -> Optional[Position]:
    """Original formation square if empty, else the nearest empty square (Manhattan distance; ties: lowest row, then lowest column)."""
    origin = get_starting_position_for_piece_type(size, piece_type, color)
    if origin is None:
        return None
    if board.is_empty(origin):
        return origin

    # empty_positions() is row-major, so min() keeps the lowest row/column among equally distant squares
    candidates = board.empty_positions()
    if not candidates:
        return None
    return min(candidates, key=lambda pos: pos.manhattan(origin))


def get_zombie_revive_status_message(
    board: Board,
    size: BoardSize,
    captured_pieces: dict[Color, list[Piece]],
    color: Color,
    selected: Optional[Piece] = None,
) -> Optional[str]:
    """Reason why the player cannot revive right now, or None if nothing stands in the way."""
    if find_necromancer(board, color) is None:
        return NO_NECROMANCER
    if not are_revival_guards_in_place(board, size, color):
        return GUARDS_NOT_IN_PLACE
    if not get_zombie_revive_pieces(captured_pieces, color):
        return NO_REVIVABLE_PIECES
    if selected is not None and get_zombie_revive_placement_target(board, size, selected.type, color) is None:
        return NO_EMPTY_TILE
    return None


def revive_zombie_piece(
    board: Board,
    size: BoardSize,
    captured_pieces: dict[Color, list[Piece]],
    color: Color,
    piece_id: str,
) -> ActionResult:
    """
    Revive the captured piece with the given id as a zombie for `color`.

    On success the result carries the new board and the square the zombie was placed on.
    Removing the piece from the captured list is up to the caller (by id).
    """
    selected = next(
        (piece for piece in captured_pieces.get(color, []) if piece.id == piece_id), None
    )
    if selected is None or not is_zombie_eligible_type(selected.type):
        return ActionResult.rejected(board, NOT_REVIVABLE)

    error = get_zombie_revive_status_message(board, size, captured_pieces, color, selected)
    if error is not None:
        return ActionResult.rejected(board, error)

    necromancer_pos = find_necromancer(board, color)
    if necromancer_pos is None:
        return ActionResult.rejected(board, NO_NECROMANCER)
    target = get_zombie_revive_placement_target(board, size, selected.type, color)
    if target is None:
        return ActionResult.rejected(board, NO_EMPTY_TILE)

    new_board = board.clone()
    necromancer = new_board.piece(necromancer_pos)
    new_board.set_cell(
        necromancer_pos, necromancer.with_changes(revive_count=necromancer.revive_count + 1)
    )
    new_board.set_cell(
        target,
        selected.with_changes(color=color, is_zombie=True, has_moved=False, frozen=False),
    )
    logger.debug(f"{color} revived {selected.type} ({selected.id}) as a zombie on {target}")
    return ActionResult.accepted(new_board, target)
