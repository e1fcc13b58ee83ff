"""
Narcs: trap markers planted by Bombers.
----

After a Bomber completes a (non attack) move, its old narcs disappear and new ones are planted on the diagonal neighbours
of its new square (in bounds, no obstacle). Between two narcs of the same Bomber on a row or column a "net" is spanned:
every square strictly between them.

An enemy piece (other than a Bomber) that moves over a narc or into the net is stopped on that square.
This ends the move early (Move.terminated_by_narc) and removes every narc of the Bomber that caught it.
"""

from dataclasses import dataclass
from typing import Optional

from src.core.shared_types import Color, PieceType
from src.tactics.board import Board
from src.tactics.pieces import Piece
from src.tactics.position import DIAGONAL, Position


@dataclass(frozen=True)
class Narc:
    position: Position
    owner_color: Color
    bomber_id: str


@dataclass(frozen=True)
class NarcTrigger:
    """Which square stopped the move, and whose narcs were responsible"""

    position: Position
    bomber_id: str


def get_narc_positions(board: Board, bomber_pos: Position) -> list[Position]:
    return [
        target
        for dr, dc in DIAGONAL
        if board.is_in_bounds(target := bomber_pos.offset(dr, dc))
        and not board.is_blocked_by_obstacle(target)
    ]


def create_narcs_for_bomber(board: Board, bomber_pos: Position, bomber: Piece) -> list[Narc]:
    return [
        Narc(position=pos, owner_color=bomber.color, bomber_id=bomber.id)
        for pos in get_narc_positions(board, bomber_pos)
    ]


def remove_narcs_for_bomber(narcs: list[Narc], bomber_id: str) -> list[Narc]:
    return [narc for narc in narcs if narc.bomber_id != bomber_id]


def find_narc_at_position(narcs: list[Narc], pos: Position) -> Optional[Narc]:
    return next((narc for narc in narcs if narc.position == pos), None)


def get_narc_net_positions(narcs: list[Narc], bomber_id: str) -> list[Position]:
    """Squares strictly between two narcs of the same Bomber that share a row or a column"""
    own = [narc.position for narc in narcs if narc.bomber_id == bomber_id]
    net: list[Position] = []
    for i, first in enumerate(own):
        for second in own[i + 1 :]:
            if first.row == second.row:
                low, high = sorted((first.col, second.col))
                net.extend(Position(first.row, col) for col in range(low + 1, high))
            elif first.col == second.col:
                low, high = sorted((first.row, second.row))
                net.extend(Position(row, first.col) for row in range(low + 1, high))
    # keep the order stable but drop duplicates
    return list(dict.fromkeys(net))


def get_all_narc_net_positions(narcs: list[Narc]) -> dict[Position, Narc]:
    """Every net square on the board, mapped to one of the narcs spanning it (to know the owner)"""
    nets: dict[Position, Narc] = {}
    bomber_ids = list(dict.fromkeys(narc.bomber_id for narc in narcs))
    for bomber_id in bomber_ids:
        owner = next(narc for narc in narcs if narc.bomber_id == bomber_id)
        for pos in get_narc_net_positions(narcs, bomber_id):
            nets.setdefault(pos, owner)
    return nets


def check_narc_trigger(narcs: list[Narc], pos: Position, mover: Piece) -> Optional[Narc]:
    """An enemy narc on this square, if the mover is the kind of piece narcs catch"""
    if not can_be_caught(mover):
        return None
    narc = find_narc_at_position(narcs, pos)
    if narc is None or narc.owner_color == mover.color:
        return None
    return narc


def check_narc_net_trigger(narcs: list[Narc], pos: Position, mover: Piece) -> Optional[Narc]:
    if not can_be_caught(mover):
        return None
    owner = get_all_narc_net_positions(narcs).get(pos)
    if owner is None or owner.owner_color == mover.color:
        return None
    return owner


def find_narc_trigger_on_path(
    narcs: list[Narc], path: list[Position], mover: Piece
) -> Optional[NarcTrigger]:
    """First square along the path that catches the mover (narcs take precedence over nets on the same square)"""
    if not narcs:
        return None
    for pos in path:
        narc = check_narc_trigger(narcs, pos, mover) or check_narc_net_trigger(narcs, pos, mover)
        if narc is not None:
            return NarcTrigger(position=pos, bomber_id=narc.bomber_id)
    return None


def can_be_caught(piece: Piece) -> bool:
    """Bombers walk through each other's traps"""
    return piece.type != PieceType.BOMBER
