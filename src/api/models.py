"""Requests and Response models"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.core.config import settings
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import AttackMode, BoardSizeKey, Color, Difficulty

PieceColor = str
PlayerName = str


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    player_name: str
    color: Color = Color.WHITE
    board_size: BoardSizeKey = settings.default_board_size
    vs_bot: bool = False
    difficulty: Difficulty = settings.bot_difficulty

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise InvalidRequestError("Player name cannot be empty.")
        return value


class JoinGameRequest(BaseModel):
    game_id: UUID
    player_name: str


class PositionModel(BaseModel):
    row: int
    col: int

    @field_validator("row", "col")
    @classmethod
    def validate_coordinate(cls, value: int) -> int:
        # upper bounds depend on the board size, the engine treats anything outside as a no-op
        if value < 0:
            raise InvalidRequestError(f"Board coordinates cannot be negative: {value}")
        return value


class PlayerActionRequest(BaseModel):
    """Actions that only need to know who is acting (undo, hint, confirm / cancel mystery box)"""

    game_id: UUID
    player_name: str


class SquareRequest(PlayerActionRequest):
    """A click on a board square: for the regular turn or for the mystery box sub-game"""

    position: PositionModel
    attack_mode: Optional[AttackMode] = None


class RevivePieceRequest(PlayerActionRequest):
    piece_id: str

    @field_validator("piece_id")
    @classmethod
    def validate_piece_id(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("A piece id is required.")
        return value.strip()


class GetGameRequest(BaseModel):
    game_id: UUID


class DeleteGameRequest(BaseModel):
    game_id: UUID


# --- RESPONSE MODELS ---
class PieceResponse(BaseModel):
    id: str
    type: str
    color: Color
    is_zombie: bool = False
    revive_count: int = 0
    frozen: bool = False


class PlacedPieceResponse(PieceResponse):
    position: PositionModel


class MoveResponse(BaseModel):
    from_position: PositionModel
    to_position: PositionModel
    piece: PieceResponse
    captured: Optional[PieceResponse] = None
    is_attack: bool = False
    terminated_by_narc: bool = False


class MysteryBoxResponse(BaseModel):
    is_active: bool
    option: Optional[str] = None
    phase: Optional[str] = None
    dice_roll: Optional[int] = None
    selected_obstacles: list[PositionModel] = []
    selected_empty_tiles: list[PositionModel] = []
    revivable_pieces: list[PieceResponse] = []


class HintResponse(BaseModel):
    from_position: PositionModel
    to_position: PositionModel
    is_attack: bool = False


class GameResponse(BaseModel):
    game_id: UUID
    players: dict[PieceColor, PlayerName]
    status: str
    board_size: BoardSizeKey
    board: list[str]  # one text row per board row, see src/tactics/layout.py
    pieces: list[PlacedPieceResponse] = []  # the flags the text rows cannot show
    current_player: Color
    selected_position: Optional[PositionModel] = None
    valid_moves: list[PositionModel] = []
    valid_attacks: list[PositionModel] = []
    valid_swaps: list[PositionModel] = []
    move_history: list[MoveResponse] = []
    captured_pieces: dict[PieceColor, list[PieceResponse]] = {}
    narcs: list[PositionModel] = []
    game_over: bool = False
    winner: Optional[Color] = None
    mystery_box: MysteryBoxResponse
    hint: Optional[HintResponse] = None
    can_undo: bool = False
    message: Optional[str] = None


class GameListResponse(BaseModel):
    game_ids: list[UUID]
