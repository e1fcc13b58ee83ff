"""
Encode a Session as plain JSON-compatible data (dicts, lists, strings, numbers, booleans, None) and back.

This is what the service layer stores. The format is internal to this application: it is not a notation meant for humans.
"""

from typing import Any, Optional

from src.core.exceptions import GameStateError
from src.core.shared_types import AttackMode, BoardSizeKey, Color, Difficulty, ObstacleType, PieceType
from src.tactics.board import Board
from src.tactics.bot import CandidateMove
from src.tactics.controller import Session
from src.tactics.moves import Move
from src.tactics.mystery_box import MysteryBoxOption, MysteryBoxPhase, MysteryBoxState
from src.tactics.narcs import Narc
from src.tactics.pieces import CellContent, Obstacle, Piece
from src.tactics.position import BoardSize, Position
from src.tactics.state import GameState
from src.tactics.swap import SwapTarget, SwapType

JSON = dict[str, Any]


# --- VALUES ---
def position_to_dict(pos: Optional[Position]) -> Optional[JSON]:
    return None if pos is None else {"row": pos.row, "col": pos.col}


def position_from_dict(data: Optional[JSON]) -> Optional[Position]:
    return None if data is None else Position(int(data["row"]), int(data["col"]))


def piece_to_dict(piece: Optional[Piece]) -> Optional[JSON]:
    if piece is None:
        return None
    return {
        "id": piece.id,
        "type": str(piece.type),
        "color": str(piece.color),
        "has_moved": piece.has_moved,
        "is_zombie": piece.is_zombie,
        "revive_count": piece.revive_count,
        "frozen": piece.frozen,
    }


def piece_from_dict(data: Optional[JSON]) -> Optional[Piece]:
    if data is None:
        return None
    return Piece(
        id=data["id"],
        type=PieceType(data["type"]),
        color=Color(data["color"]),
        has_moved=data.get("has_moved", False),
        is_zombie=data.get("is_zombie", False),
        revive_count=data.get("revive_count", 0),
        frozen=data.get("frozen", False),
    )


def cell_to_dict(cell: CellContent) -> Optional[JSON]:
    if isinstance(cell, Piece):
        return {"kind": "piece", **piece_to_dict(cell)}
    if isinstance(cell, Obstacle):
        return {"kind": "obstacle", "type": str(cell.type)}
    return None


def cell_from_dict(data: Optional[JSON]) -> CellContent:
    if data is None:
        return None
    if data["kind"] == "obstacle":
        return Obstacle(ObstacleType(data["type"]))
    if data["kind"] == "piece":
        return piece_from_dict(data)
    raise GameStateError(f"Unknown cell kind in snapshot: {data['kind']!r}")


def board_to_dict(board: Board) -> JSON:
    return {
        "rows": board.size.rows,
        "cols": board.size.cols,
        "grid": [[cell_to_dict(cell) for cell in row] for row in board.grid],
    }


def board_from_dict(data: JSON) -> Board:
    size = BoardSize(int(data["rows"]), int(data["cols"]))
    grid = [[cell_from_dict(cell) for cell in row] for row in data["grid"]]
    if len(grid) != size.rows or any(len(row) != size.cols for row in grid):
        raise GameStateError("Board in snapshot does not match its dimensions")
    return Board(grid, size)


def move_to_dict(move: Optional[Move]) -> Optional[JSON]:
    if move is None:
        return None
    return {
        "from": position_to_dict(move.from_pos),
        "to": position_to_dict(move.to_pos),
        "piece": piece_to_dict(move.piece),
        "captured": piece_to_dict(move.captured),
        "is_attack": move.is_attack,
        "terminated_by_narc": move.terminated_by_narc,
        "froze": piece_to_dict(move.froze),
    }


def move_from_dict(data: Optional[JSON]) -> Optional[Move]:
    if data is None:
        return None
    return Move(
        from_pos=position_from_dict(data["from"]),
        to_pos=position_from_dict(data["to"]),
        piece=piece_from_dict(data["piece"]),
        captured=piece_from_dict(data.get("captured")),
        is_attack=data.get("is_attack", False),
        terminated_by_narc=data.get("terminated_by_narc", False),
        froze=piece_from_dict(data.get("froze")),
    )


def narc_to_dict(narc: Narc) -> JSON:
    return {
        "position": position_to_dict(narc.position),
        "owner_color": str(narc.owner_color),
        "bomber_id": narc.bomber_id,
    }


def narc_from_dict(data: JSON) -> Narc:
    return Narc(position_from_dict(data["position"]), Color(data["owner_color"]), data["bomber_id"])


def swap_target_to_dict(target: SwapTarget) -> JSON:
    return {
        "position": position_to_dict(target.position),
        "piece": piece_to_dict(target.piece),
        "swap_type": str(target.swap_type),
    }


def swap_target_from_dict(data: JSON) -> SwapTarget:
    return SwapTarget(
        position_from_dict(data["position"]), piece_from_dict(data["piece"]), SwapType(data["swap_type"])
    )


def candidate_to_dict(candidate: Optional[CandidateMove]) -> Optional[JSON]:
    if candidate is None:
        return None
    return {
        "from": position_to_dict(candidate.from_pos),
        "to": position_to_dict(candidate.to_pos),
        "is_attack": candidate.is_attack,
    }


def candidate_from_dict(data: Optional[JSON]) -> Optional[CandidateMove]:
    if data is None:
        return None
    return CandidateMove(position_from_dict(data["from"]), position_from_dict(data["to"]), data["is_attack"])


# --- AGGREGATES ---
def game_state_to_dict(state: GameState) -> JSON:
    return {
        "board": board_to_dict(state.board),
        "current_player": str(state.current_player),
        "selected_position": position_to_dict(state.selected_position),
        "valid_moves": [position_to_dict(p) for p in state.valid_moves],
        "valid_attacks": [position_to_dict(p) for p in state.valid_attacks],
        "valid_swaps": [swap_target_to_dict(s) for s in state.valid_swaps],
        "move_history": [move_to_dict(m) for m in state.move_history],
        "captured_pieces": {
            str(color): [piece_to_dict(p) for p in pieces]
            for color, pieces in state.captured_pieces.items()
        },
        "last_move": move_to_dict(state.last_move),
        "game_over": state.game_over,
        "winner": str(state.winner) if state.winner else None,
        "narcs": [narc_to_dict(n) for n in state.narcs],
    }


def game_state_from_dict(data: JSON) -> GameState:
    board = board_from_dict(data["board"])
    return GameState(
        board=board,
        board_size=board.size,
        current_player=Color(data["current_player"]),
        selected_position=position_from_dict(data.get("selected_position")),
        valid_moves=[position_from_dict(p) for p in data.get("valid_moves", [])],
        valid_attacks=[position_from_dict(p) for p in data.get("valid_attacks", [])],
        valid_swaps=[swap_target_from_dict(s) for s in data.get("valid_swaps", [])],
        move_history=[move_from_dict(m) for m in data.get("move_history", [])],
        captured_pieces={
            color: [piece_from_dict(p) for p in data.get("captured_pieces", {}).get(str(color), [])]
            for color in Color
        },
        last_move=move_from_dict(data.get("last_move")),
        game_over=data.get("game_over", False),
        winner=Color(data["winner"]) if data.get("winner") else None,
        narcs=[narc_from_dict(n) for n in data.get("narcs", [])],
    )


def history_entry_to_dict(state: GameState) -> JSON:
    """
    An undo entry is an earlier state of the same game, so its move history is a prefix of the current one.
    Only the length of that prefix is stored.
    """
    data = game_state_to_dict(state)
    del data["move_history"]
    data["move_count"] = len(state.move_history)
    return data


def history_entry_from_dict(data: JSON, game: GameState) -> GameState:
    entry = game_state_from_dict(data)
    if "move_count" not in data:
        return entry
    move_count = int(data["move_count"])
    if move_count > len(game.move_history):
        raise GameStateError("Undo history in snapshot is ahead of the game")
    return entry.with_changes(move_history=game.move_history[:move_count])


def mystery_box_to_dict(state: MysteryBoxState) -> JSON:
    return {
        "is_active": state.is_active,
        "option": str(state.option) if state.option else None,
        "phase": str(state.phase) if state.phase else None,
        "trigger_position": position_to_dict(state.trigger_position),
        "dice_roll": state.dice_roll,
        "first_figure_position": position_to_dict(state.first_figure_position),
        "selected_obstacles": [position_to_dict(p) for p in state.selected_obstacles],
        "selected_empty_tiles": [position_to_dict(p) for p in state.selected_empty_tiles],
        "revivable_pieces": [piece_to_dict(p) for p in state.revivable_pieces],
        "selected_revive_piece": piece_to_dict(state.selected_revive_piece),
    }


def mystery_box_from_dict(data: JSON) -> MysteryBoxState:
    return MysteryBoxState(
        is_active=data.get("is_active", False),
        option=MysteryBoxOption(data["option"]) if data.get("option") else None,
        phase=MysteryBoxPhase(data["phase"]) if data.get("phase") else None,
        trigger_position=position_from_dict(data.get("trigger_position")),
        dice_roll=data.get("dice_roll"),
        first_figure_position=position_from_dict(data.get("first_figure_position")),
        selected_obstacles=tuple(position_from_dict(p) for p in data.get("selected_obstacles", [])),
        selected_empty_tiles=tuple(position_from_dict(p) for p in data.get("selected_empty_tiles", [])),
        revivable_pieces=tuple(piece_from_dict(p) for p in data.get("revivable_pieces", [])),
        selected_revive_piece=piece_from_dict(data.get("selected_revive_piece")),
    )


def session_to_dict(session: Session) -> JSON:
    return {
        "game": game_state_to_dict(session.game),
        "board_size_key": str(session.board_size_key),
        "history": [history_entry_to_dict(state) for state in session.history],
        "mystery_box": mystery_box_to_dict(session.mystery_box),
        "bot_enabled": session.bot_enabled,
        "bot_difficulty": str(session.bot_difficulty),
        "attack_mode": str(session.attack_mode),
        "hint": candidate_to_dict(session.hint),
        "message": session.message,
    }


def session_from_dict(data: JSON) -> Session:
    if "game" not in data:
        raise GameStateError("Snapshot does not contain a game")
    game = game_state_from_dict(data["game"])
    return Session(
        game=game,
        board_size_key=BoardSizeKey(data.get("board_size_key", BoardSizeKey.SMALL)),
        history=[history_entry_from_dict(state, game) for state in data.get("history", [])],
        mystery_box=mystery_box_from_dict(data.get("mystery_box", {})),
        bot_enabled=data.get("bot_enabled", False),
        bot_difficulty=Difficulty(data.get("bot_difficulty", Difficulty.MEDIUM)),
        attack_mode=AttackMode(data.get("attack_mode", AttackMode.RANGED)),
        hint=candidate_from_dict(data.get("hint")),
        message=data.get("message"),
    )
