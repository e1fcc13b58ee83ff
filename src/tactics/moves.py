"""
Geometry/Base movement and attacking rules

Key idea: Use strategy pattern to define the move sets for each piece type.

There is no "check" in this game: a move is legal when its geometry allows it. Losing the Monarch simply ends the game.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from src.core.exceptions import BoardContractError
from src.core.shared_types import AttackMode, Color, PieceType
from src.tactics.board import Board
from src.tactics.narcs import (
    Narc,
    create_narcs_for_bomber,
    find_narc_trigger_on_path,
    remove_narcs_for_bomber,
)
from src.tactics.pieces import Movement, Piece
from src.tactics.position import (
    ALL_DIRECTIONS,
    DIAGONAL,
    ORTHOGONAL,
    BoardSize,
    Position,
    Vector,
    straight_path,
)
from src.tactics.zombies import get_adjusted_attack_range

logger = logging.getLogger("fantasy_tactics.moves")

KNIGHT_OFFSETS: list[Vector] = [
    (-2, -1),
    (-2, 1),
    (-1, -2),
    (-1, 2),
    (1, -2),
    (1, 2),
    (2, -1),
    (2, 1),
]


@dataclass(frozen=True)
class Move:
    """
    Record of a committed move / attack. Never changed after creation.

    `to_pos` is where the mover actually ended (a narc can stop it short of its target),
    or the attacked square for a ranged attack (the attacker stays on `from_pos`).
    """

    from_pos: Position
    to_pos: Position
    piece: Piece
    captured: Optional[Piece] = None
    is_attack: bool = False
    terminated_by_narc: bool = False
    froze: Optional[Piece] = None


@dataclass(frozen=True)
class MoveResult:
    new_board: Board
    move: Move
    new_narcs: list[Narc] = field(default_factory=list)
    landed_on_mystery_box: bool = False


# --- LANDING RULES ---
def find_cave_exits(board: Board, entry: Position) -> list[Position]:
    """Tunnels: entering a cave lets the piece come out on an empty square next to (orthogonally) any other cave."""
    exits: list[Position] = []
    for cave in board.find_all_caves():
        if cave == entry:
            continue
        for dr, dc in ORTHOGONAL:
            target = cave.offset(dr, dc)
            if board.is_empty(target) and target not in exits:
                exits.append(target)
    return exits


def landing_squares(board: Board, target: Position) -> list[Position]:
    """
    Where a piece ends up when its geometry reaches `target`.

    * empty square, any piece, or a mystery box: the square itself (friendly pieces are filtered out later)
    * a cave: the exits of the tunnel network
    * any other obstacle: nowhere
    """
    obstacle = board.obstacle(target)
    if obstacle is None:
        return [target]
    if obstacle.is_mystery_box:
        return [target]
    if obstacle.is_cave:
        return find_cave_exits(board, target)
    return []


# --- MOVEMENT RULES ---
def raycasting_move(
    board: Board, pos: Position, directions: list[Vector], max_range: Optional[int]
) -> list[Position]:
    """
    Raycasting algorithm
    -----

    Walk along every direction until the edge of the board, the range limit, or the first occupied square.
    The first occupied square itself is included (if something can land there), then the ray stops.
    Mystery boxes stop a ray like a piece would.
    """
    limit = max_range if max_range is not None else max(board.size.rows, board.size.cols)
    targets: list[Position] = []
    for dr, dc in directions:
        current = pos
        for _ in range(limit):
            current = current.offset(dr, dc)
            if not board.is_in_bounds(current):
                break
            if board.cell(current) is None:
                targets.append(current)
                continue
            targets.extend(landing_squares(board, current))
            break
    return targets


def sliding_range(piece: Piece) -> Optional[int]:
    base = piece.rule.move_range
    if base is None:
        # unlimited, unless the piece is a zombie
        return 1 if piece.is_zombie else None
    return get_adjusted_attack_range(piece, base) if piece.is_zombie else base


def make_raycasting_rule(directions: list[Vector]) -> Callable[[Board, Position], list[Position]]:
    def _candidates(board: Board, pos: Position) -> list[Position]:
        piece = board.piece(pos)
        return raycasting_move(board, pos, directions, sliding_range(piece))

    return _candidates


def candidate_paladin_moves(board: Board, pos: Position) -> list[Position]:
    """Knight-like leaps over anything in between. A zombie Paladin lost its leap and just steps in any direction."""
    piece = board.piece(pos)
    if piece.is_zombie:
        return raycasting_move(board, pos, ALL_DIRECTIONS, 1)

    targets: list[Position] = []
    for dr, dc in KNIGHT_OFFSETS:
        target = pos.offset(dr, dc)
        if board.is_in_bounds(target):
            targets.extend(landing_squares(board, target))
    return targets


def forward_direction(color: Color) -> int:
    """White starts at the bottom (last row) and moves up"""
    return -1 if color == Color.WHITE else 1


def candidate_hoplite_moves(board: Board, pos: Position) -> list[Position]:
    """
    A hoplite:
    - steps a single square forward, but never captures that way
    - captures a single square diagonally forward
    """
    piece = board.piece(pos)
    forward = forward_direction(piece.color)

    targets: list[Position] = []
    ahead = pos.offset(forward, 0)
    if board.is_in_bounds(ahead) and board.piece(ahead) is None:
        targets.extend(landing_squares(board, ahead))

    for dc in (-1, 1):
        diagonal = pos.offset(forward, dc)
        target_piece = board.piece(diagonal)
        if target_piece is not None and target_piece.color != piece.color:
            targets.append(diagonal)
    return targets


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Board, Position], list[Position]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.MONARCH: make_raycasting_rule(ALL_DIRECTIONS),
    PieceType.DUCHESS: make_raycasting_rule(ALL_DIRECTIONS),
    PieceType.RAM_TOWER: make_raycasting_rule(ORTHOGONAL),
    PieceType.CHARIOT: make_raycasting_rule(DIAGONAL),
    PieceType.PALADIN: candidate_paladin_moves,
    PieceType.NECROMANCER: make_raycasting_rule(ALL_DIRECTIONS),
    PieceType.WARLOCK: make_raycasting_rule(ALL_DIRECTIONS),
    PieceType.BOMBER: make_raycasting_rule(ORTHOGONAL),
    PieceType.HOPLITE: candidate_hoplite_moves,
}


# --- ATTACK RULES ---
def get_necromancer_targets(board: Board, pos: Position) -> list[Position]:
    """First enemy piece along each of the 8 lines, within the (revival-reduced) range. Obstacles block the line of sight."""
    piece = board.piece(pos)
    if piece is None:
        return []
    attack_range = get_adjusted_attack_range(piece, piece.rule.attack_range)

    targets: list[Position] = []
    for dr, dc in ALL_DIRECTIONS:
        current = pos
        for _ in range(attack_range):
            current = current.offset(dr, dc)
            if not board.is_in_bounds(current):
                break
            cell = board.cell(current)
            if cell is None:
                continue
            target_piece = board.piece(current)
            if target_piece is not None and target_piece.color != piece.color:
                targets.append(current)
            break
    return targets


def get_necromancer_kill_targets(board: Board, pos: Position) -> list[Position]:
    return [
        target
        for target in get_necromancer_targets(board, pos)
        if board.piece(target).type != PieceType.MONARCH
    ]


def get_necromancer_freeze_targets(board: Board, pos: Position) -> list[Position]:
    """A Necromancer cannot kill a Monarch. It freezes it instead."""
    return [
        target
        for target in get_necromancer_targets(board, pos)
        if board.piece(target).type == PieceType.MONARCH
    ]


def get_bomber_targets(board: Board, pos: Position) -> list[Position]:
    """Enemy pieces at exactly the blast distance along the 8 lines. The blast jumps over whatever is in between."""
    piece = board.piece(pos)
    if piece is None:
        return []
    distance = get_adjusted_attack_range(piece, piece.rule.attack_range)

    targets: list[Position] = []
    for dr, dc in ALL_DIRECTIONS:
        target = pos.offset(dr * distance, dc * distance)
        target_piece = board.piece(target)
        if target_piece is not None and target_piece.color != piece.color:
            targets.append(target)
    return targets


AttackTargetsFn = Callable[[Board, Position], list[Position]]
ATTACK_RULES: dict[PieceType, AttackTargetsFn] = {
    PieceType.NECROMANCER: get_necromancer_targets,
    PieceType.BOMBER: get_bomber_targets,
}


# --- PUBLIC QUERIES ---
def get_piece_moves(board: Board, pos: Position, board_size: Optional[BoardSize] = None) -> list[Position]:
    """Unfiltered geometry of the piece on `pos` (may contain friendly pieces or duplicates)."""
    piece = board.piece(pos)
    if piece is None:
        return []
    return MOVEMENT_RULES[piece.type](board, pos)


def get_valid_moves(board: Board, pos: Position, board_size: Optional[BoardSize] = None) -> list[Position]:
    """Squares the piece can move to. Frozen pieces cannot move at all."""
    piece = board.piece(pos)
    if piece is None or piece.frozen:
        return []

    valid: list[Position] = []
    for target in get_piece_moves(board, pos, board_size):
        if target in valid or not board.is_in_bounds(target):
            continue
        target_piece = board.piece(target)
        if target_piece is not None and target_piece.color == piece.color:
            continue
        obstacle = board.obstacle(target)
        if obstacle is not None and not obstacle.is_mystery_box:
            continue
        valid.append(target)
    return valid


def get_valid_attacks(board: Board, pos: Position, board_size: Optional[BoardSize] = None) -> list[Position]:
    """Targets of a ranged attack (the attacker does not move). Empty for pieces without a ranged attack."""
    piece = board.piece(pos)
    if piece is None or piece.frozen:
        return []
    attack_rule = ATTACK_RULES.get(piece.type)
    if attack_rule is None:
        return []
    return list(dict.fromkeys(attack_rule(board, pos)))


def can_choose_attack_mode(piece: Optional[Piece]) -> bool:
    """Some pieces may resolve their attack either as a ranged kill or by moving onto the target."""
    return piece is not None and piece.rule.can_choose_attack_mode


def resolves_as_attack(
    piece: Optional[Piece],
    target: Position,
    valid_moves: list[Position],
    valid_attacks: list[Position],
    attack_mode: AttackMode = AttackMode.RANGED,
) -> bool:
    """
    Whether moving `piece` onto `target` is played as a ranged attack.

    An attack target always resolves as an attack (a Necromancer next to the enemy Monarch freezes it, it never
    steps onto it). Pieces that choose their attack mode only do so for targets they could not move to anyway.
    """
    if target not in valid_attacks:
        return False
    if can_choose_attack_mode(piece) and target not in valid_moves:
        return attack_mode == AttackMode.RANGED
    return True


def is_valid_move(
    board: Board,
    from_pos: Position,
    to_pos: Position,
    board_size: Optional[BoardSize] = None,
    is_attack: bool = False,
) -> bool:
    if is_attack:
        return can_attack(board, from_pos, to_pos, board_size)
    if to_pos in get_valid_moves(board, from_pos, board_size):
        return True
    # capture-and-move on an attack target
    return can_choose_attack_mode(board.piece(from_pos)) and can_attack(
        board, from_pos, to_pos, board_size
    )


def can_attack(
    board: Board, from_pos: Position, to_pos: Position, board_size: Optional[BoardSize] = None
) -> bool:
    return to_pos in get_valid_attacks(board, from_pos, board_size)


def find_monarch(board: Board, color: Color) -> Optional[Position]:
    positions = board.find_piece_positions(PieceType.MONARCH, color)
    return positions[0] if positions else None


def is_monarch_captured(board: Board, color: Color) -> bool:
    return find_monarch(board, color) is None


def has_legal_moves(board: Board, color: Color, board_size: Optional[BoardSize] = None) -> bool:
    return any(
        get_valid_moves(board, pos, board_size) or get_valid_attacks(board, pos, board_size)
        for pos, _ in board.pieces(color)
    )


def is_monarch_threatened(board: Board, color: Color, board_size: Optional[BoardSize] = None) -> bool:
    """Could the opponent reach `color`'s Monarch with its next move or attack?"""
    monarch_pos = find_monarch(board, color)
    if monarch_pos is None:
        return False
    for pos, _ in board.pieces(color.opponent):
        if monarch_pos in get_valid_moves(board, pos, board_size):
            return True
        if monarch_pos in get_valid_attacks(board, pos, board_size):
            return True
    return False


# --- MAKING MOVES ---
def traversed_squares(board: Board, from_pos: Position, to_pos: Position, piece: Piece) -> list[Position]:
    """
    Squares a narc may catch the mover on.
    Sliding along a clear line passes every square on it. Steps, leaps and tunnels only touch the destination.
    """
    path = straight_path(from_pos, to_pos)
    is_slide = piece.rule.movement == Movement.SLIDE and not piece.is_zombie
    if not is_slide:
        return [to_pos]
    # a tunnel exit may happen to lie on a straight line: the squares in between are then not free
    if any(board.cell(square) is not None for square in path[:-1]):
        return [to_pos]
    return path


def thaw_pieces(board: Board, color: Color) -> None:
    """A frozen piece sits out one turn of its owner. In place: call on a cloned board only."""
    for pos, piece in board.pieces(color):
        if piece.frozen:
            board.set_cell(pos, piece.with_changes(frozen=False))


def make_move(
    board: Board,
    from_pos: Position,
    to_pos: Position,
    board_size: Optional[BoardSize] = None,
    is_attack: bool = False,
    narcs: Optional[list[Narc]] = None,
) -> MoveResult:
    """
    Apply a move (or ranged attack) on a copy of the board.

    NOTE: No legality check happens here: callers pick `to_pos` from get_valid_moves / get_valid_attacks.
    The only thing that is checked is the contract that there is a piece to move.
    """
    piece = board.piece(from_pos)
    if piece is None:
        raise BoardContractError(f"No piece on {from_pos} to move")

    new_narcs = list(narcs or [])
    new_board = board.clone()

    if is_attack:
        move, new_narcs = _apply_attack(new_board, from_pos, to_pos, piece, new_narcs)
        thaw_pieces(new_board, piece.color)
        return MoveResult(new_board, move, new_narcs)

    trigger = find_narc_trigger_on_path(
        new_narcs, traversed_squares(board, from_pos, to_pos, piece), piece
    )
    final_pos = trigger.position if trigger is not None else to_pos

    captured: Optional[Piece] = None
    target_piece = new_board.piece(final_pos)
    if final_pos == to_pos and target_piece is not None and target_piece.color != piece.color:
        captured = target_piece

    landed_on_mystery_box = (
        new_board.obstacle(final_pos) is not None and new_board.obstacle(final_pos).is_mystery_box
    )

    moved_piece = piece.with_changes(has_moved=True)
    new_board.remove(from_pos)
    new_board.set_cell(final_pos, moved_piece)

    if captured is not None and captured.type == PieceType.BOMBER:
        new_narcs = remove_narcs_for_bomber(new_narcs, captured.id)
    if trigger is not None:
        logger.debug(f"{piece.type} ({piece.id}) caught by the narcs of {trigger.bomber_id} on {final_pos}")
        new_narcs = remove_narcs_for_bomber(new_narcs, trigger.bomber_id)
    if piece.type == PieceType.BOMBER:
        new_narcs = remove_narcs_for_bomber(new_narcs, piece.id)
        new_narcs.extend(create_narcs_for_bomber(new_board, final_pos, moved_piece))

    thaw_pieces(new_board, piece.color)
    move = Move(
        from_pos=from_pos,
        to_pos=final_pos,
        piece=piece,
        captured=captured,
        is_attack=False,
        terminated_by_narc=trigger is not None,
    )
    return MoveResult(new_board, move, new_narcs, landed_on_mystery_box)


def _apply_attack(
    board: Board, from_pos: Position, to_pos: Position, piece: Piece, narcs: list[Narc]
) -> tuple[Move, list[Narc]]:
    """Ranged attack: kill the target (or freeze a Monarch, for the Necromancer). The attacker stays."""
    target = board.piece(to_pos)
    if target is None:
        raise BoardContractError(f"No piece on {to_pos} to attack")

    if piece.type == PieceType.NECROMANCER and target.type == PieceType.MONARCH:
        board.set_cell(to_pos, target.with_changes(frozen=True))
        return Move(from_pos, to_pos, piece, is_attack=True, froze=target), narcs

    board.remove(to_pos)
    if target.type == PieceType.BOMBER:
        narcs = remove_narcs_for_bomber(narcs, target.id)
    return Move(from_pos, to_pos, piece, captured=target, is_attack=True), narcs
