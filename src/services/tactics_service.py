"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
import random
import threading
from typing import Optional
from uuid import UUID

from src.api.models import (
    CreateGameRequest,
    DeleteGameRequest,
    GameListResponse,
    GameResponse,
    GetGameRequest,
    HintResponse,
    JoinGameRequest,
    MoveResponse,
    MysteryBoxResponse,
    PieceResponse,
    PlacedPieceResponse,
    PlayerActionRequest,
    PositionModel,
    RevivePieceRequest,
    SquareRequest,
)
from src.core.exceptions import ActionInProgressError, RepositoryError
from src.core.models import GameModel
from src.db.repository import GameRepository
from src.tactics.controller import (
    Action,
    CancelMysteryBox,
    ConfirmObstacleSelection,
    MysteryBoxSelect,
    RequestHint,
    ReviveZombie,
    SelectRevivePiece,
    SelectSquare,
    SetAttackMode,
    Undo,
)
from src.tactics.game import Game
from src.tactics.layout import board_to_layout
from src.tactics.moves import Move
from src.tactics.pieces import Piece
from src.tactics.position import Position

logger = logging.getLogger("fantasy_tactics.service")


class TacticsService:
    """Orchestration of layers for a Fantasy Tactics game."""

    def __init__(
        self,
        repository: GameRepository,
        rng: Optional[random.Random] = None,
        locks: Optional["GameLocks"] = None,
    ) -> None:
        self.repo = repository
        self.rng = rng or random.Random()
        self.locks = locks or GameLocks()

    # -- API routes logic ---
    def create_new_game(self, request: CreateGameRequest) -> GameResponse:
        """First player requested to create a new game (against another player or against the bot)."""
        new_game = Game.new_game(
            player=request.player_name,
            color=request.color,
            board_size_key=request.board_size,
            vs_bot=request.vs_bot,
            difficulty=request.difficulty,
            rng=self.rng,
        )
        stored_game, game_id = self.repo.create_game(new_game.to_model())
        logger.info(
            f"Game {game_id} created by {request.player_name} ({request.board_size}, vs bot: {request.vs_bot})"
        )
        return self._create_game_response(game_id, stored_game)

    def join_game(self, request: JoinGameRequest) -> GameResponse:
        """Second player requested to join a game."""
        with self.locks.for_game(request.game_id):
            game = Game.from_model(self._fetch_game(request.game_id))
            game.register_player(request.player_name)
            with_player_registered = game.to_model()
            self.repo.update_game(request.game_id, with_player_registered)
        logger.info(f"{request.player_name} joined game {request.game_id}")
        return self._create_game_response(request.game_id, with_player_registered)

    def get_game_state(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by frontend to check when it is the player's turn for instance.
        """
        game_model = self._fetch_game(request.game_id)
        return self._create_game_response(request.game_id, game_model)

    def select_square(self, request: SquareRequest) -> GameResponse:
        """Click on a square: select a piece, or move / attack / swap with the selected one."""
        actions: list[Action] = []
        if request.attack_mode is not None:
            actions.append(SetAttackMode(request.attack_mode))
        actions.append(SelectSquare(self._position(request.position)))
        return self._play(request.game_id, request.player_name, *actions)

    def mystery_box_select(self, request: SquareRequest) -> GameResponse:
        return self._play(
            request.game_id, request.player_name, MysteryBoxSelect(self._position(request.position))
        )

    def select_revive_piece(self, request: RevivePieceRequest) -> GameResponse:
        return self._play(request.game_id, request.player_name, SelectRevivePiece(request.piece_id))

    def confirm_obstacle_selection(self, request: PlayerActionRequest) -> GameResponse:
        return self._play(request.game_id, request.player_name, ConfirmObstacleSelection())

    def cancel_mystery_box(self, request: PlayerActionRequest) -> GameResponse:
        return self._play(request.game_id, request.player_name, CancelMysteryBox())

    def revive_zombie(self, request: RevivePieceRequest) -> GameResponse:
        return self._play(request.game_id, request.player_name, ReviveZombie(request.piece_id))

    def undo(self, request: PlayerActionRequest) -> GameResponse:
        return self._play(request.game_id, request.player_name, Undo())

    def hint(self, request: PlayerActionRequest) -> GameResponse:
        return self._play(request.game_id, request.player_name, RequestHint())

    def list_games(self) -> GameListResponse:
        """Show all recorded games."""
        return GameListResponse(game_ids=self.repo.list_game_ids())

    def delete_game(self, request: DeleteGameRequest) -> None:
        """Handle a request to delete a Game record."""
        with self.locks.for_game(request.game_id):
            deleted = self.repo.delete_game(request.game_id)
        if deleted is None:
            raise RepositoryError(f"Game with game_id={request.game_id} not found.")
        self.locks.forget(request.game_id)
        logger.info(f"Game {request.game_id} deleted")

    # -- Internal helpers --
    def _play(self, game_id: UUID, player: str, *actions: Action) -> GameResponse:
        """Fetch -> rebuild the Game -> act -> store. One action at a time per game."""
        with self.locks.for_game(game_id):
            game = Game.from_model(self._fetch_game(game_id))
            for action in actions:
                game.act(player, action, self.rng)
            after_action = game.to_model()
            self.repo.update_game(game_id, after_action)
        return self._create_game_response(game_id, after_action)

    @staticmethod
    def _position(position: PositionModel) -> Position:
        return Position(position.row, position.col)

    def _create_game_response(self, game_id: UUID, model: GameModel) -> GameResponse:
        """Convert info in GameModel to a GameResponse (for game with given ID.)"""
        game = Game.from_model(model)
        session = game.session
        state = session.game
        box = session.mystery_box
        return GameResponse(
            game_id=game_id,
            players=model.registered_players,
            status=model.status,
            board_size=session.board_size_key,
            board=board_to_layout(state.board),
            pieces=[_placed_piece_response(pos, piece) for pos, piece in state.board.pieces()],
            current_player=state.current_player,
            selected_position=_position_model(state.selected_position),
            valid_moves=[_position_model(p) for p in state.valid_moves],
            valid_attacks=[_position_model(p) for p in state.valid_attacks],
            valid_swaps=[_position_model(s.position) for s in state.valid_swaps],
            move_history=[_move_response(m) for m in state.move_history],
            captured_pieces={
                str(color): [_piece_response(p) for p in pieces]
                for color, pieces in state.captured_pieces.items()
            },
            narcs=[_position_model(n.position) for n in state.narcs],
            game_over=state.game_over,
            winner=state.winner,
            mystery_box=MysteryBoxResponse(
                is_active=box.is_active,
                option=box.option,
                phase=box.phase,
                dice_roll=box.dice_roll,
                selected_obstacles=[_position_model(p) for p in box.selected_obstacles],
                selected_empty_tiles=[_position_model(p) for p in box.selected_empty_tiles],
                revivable_pieces=[_piece_response(p) for p in box.revivable_pieces],
            ),
            hint=(
                HintResponse(
                    from_position=_position_model(session.hint.from_pos),
                    to_position=_position_model(session.hint.to_pos),
                    is_attack=session.hint.is_attack,
                )
                if session.hint
                else None
            ),
            can_undo=session.can_undo,
            message=session.message,
        )

    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return game_model


class GameLocks:
    """One lock per game id, shared by every service instance handling requests for that game"""

    def __init__(self) -> None:
        self._locks: dict[UUID, threading.Lock] = {}
        self._guard = threading.Lock()

    def for_game(self, game_id: UUID) -> "_NonBlockingLock":
        with self._guard:
            lock = self._locks.setdefault(game_id, threading.Lock())
        return _NonBlockingLock(lock, game_id)

    def forget(self, game_id: UUID) -> None:
        with self._guard:
            self._locks.pop(game_id, None)


class _NonBlockingLock:
    """Context manager that refuses (instead of waiting) when the game is busy with another request"""

    def __init__(self, lock: threading.Lock, game_id: UUID) -> None:
        self.lock = lock
        self.game_id = game_id

    def __enter__(self) -> None:
        if not self.lock.acquire(blocking=False):
            raise ActionInProgressError(f"Game {self.game_id} is busy with another action.")

    def __exit__(self, *exc_info) -> None:
        self.lock.release()


def _position_model(pos: Optional[Position]) -> Optional[PositionModel]:
    return None if pos is None else PositionModel(row=pos.row, col=pos.col)


def _piece_response(piece: Piece) -> PieceResponse:
    return PieceResponse(
        id=piece.id,
        type=piece.type,
        color=piece.color,
        is_zombie=piece.is_zombie,
        revive_count=piece.revive_count,
        frozen=piece.frozen,
    )


def _placed_piece_response(pos: Position, piece: Piece) -> PlacedPieceResponse:
    return PlacedPieceResponse(position=_position_model(pos), **_piece_response(piece).model_dump())


def _move_response(move: Move) -> MoveResponse:
    return MoveResponse(
        from_position=_position_model(move.from_pos),
        to_position=_position_model(move.to_pos),
        piece=_piece_response(move.piece),
        captured=_piece_response(move.captured) if move.captured else None,
        is_attack=move.is_attack,
        terminated_by_narc=move.terminated_by_narc,
    )
