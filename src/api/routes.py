"""HTTP endpoints. Each route hands its request model to the TacticsService and maps domain errors onto status codes."""

import logging
from uuid import UUID

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from src.api.models import (
    CreateGameRequest,
    DeleteGameRequest,
    GameListResponse,
    GameResponse,
    GetGameRequest,
    JoinGameRequest,
    PlayerActionRequest,
    RevivePieceRequest,
    SquareRequest,
)
from src.core.config import configure_logging, settings
from src.core.exceptions import (
    ActionInProgressError,
    GameError,
    GameStateError,
    InvalidLayoutError,
    InvalidRequestError,
    NotYourTurnError,
    RepositoryError,
)
from src.db.database import get_db
from src.db.sql_repository import SQLGameRepository
from src.services.tactics_service import GameLocks, TacticsService

logger = logging.getLogger("fantasy_tactics.api")

configure_logging(settings.log_level)

app = FastAPI(
    title="Fantasy Tactics API",
    description="Turn-based tactics on a grid with obstacles, mystery boxes and a minimax bot",
    version="0.1.0",
)

# the locks outlive a request, the repository is request scoped
game_locks = GameLocks()


def get_service(db: Session = Depends(get_db)) -> TacticsService:
    return TacticsService(repository=SQLGameRepository(db), locks=game_locks)


# --- ERROR MAPPING ---
ERROR_STATUS_CODES: dict[type[GameError], int] = {
    RepositoryError: 404,
    NotYourTurnError: 409,
    GameStateError: 409,
    ActionInProgressError: 409,
    InvalidRequestError: 422,
    InvalidLayoutError: 422,
}


@app.exception_handler(GameError)
def handle_game_error(request: Request, exc: GameError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in ERROR_STATUS_CODES.items() if isinstance(exc, error_type)),
        500,
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    else:
        logger.info(f"{request.method} {request.url.path} refused ({status_code}): {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# --- ENDPOINTS ---
@app.get("/games", response_model=GameListResponse)
def list_games(service: TacticsService = Depends(get_service)):
    return service.list_games()


@app.post("/games", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
def create_game(body: CreateGameRequest, service: TacticsService = Depends(get_service)):
    """Open a new game (or start one right away against the bot)."""
    return service.create_new_game(body)


@app.get("/games/{game_id}", response_model=GameResponse)
def get_game(game_id: UUID, service: TacticsService = Depends(get_service)):
    """Polled by the frontend to find out whether it is the player's turn."""
    return service.get_game_state(GetGameRequest(game_id=game_id))


@app.delete("/games/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_game(game_id: UUID, service: TacticsService = Depends(get_service)):
    service.delete_game(DeleteGameRequest(game_id=game_id))


@app.post("/games/join", response_model=GameResponse)
def join_game(body: JoinGameRequest, service: TacticsService = Depends(get_service)):
    return service.join_game(body)


@app.post("/games/square", response_model=GameResponse)
def select_square(body: SquareRequest, service: TacticsService = Depends(get_service)):
    """Select a piece, or move / attack / swap with the piece selected before."""
    return service.select_square(body)


@app.post("/games/mystery-box/select", response_model=GameResponse)
def mystery_box_select(body: SquareRequest, service: TacticsService = Depends(get_service)):
    return service.mystery_box_select(body)


@app.post("/games/mystery-box/revive", response_model=GameResponse)
def select_revive_piece(body: RevivePieceRequest, service: TacticsService = Depends(get_service)):
    return service.select_revive_piece(body)


@app.post("/games/mystery-box/confirm", response_model=GameResponse)
def confirm_obstacle_selection(body: PlayerActionRequest, service: TacticsService = Depends(get_service)):
    return service.confirm_obstacle_selection(body)


@app.post("/games/mystery-box/cancel", response_model=GameResponse)
def cancel_mystery_box(body: PlayerActionRequest, service: TacticsService = Depends(get_service)):
    return service.cancel_mystery_box(body)


@app.post("/games/zombie", response_model=GameResponse)
def revive_zombie(body: RevivePieceRequest, service: TacticsService = Depends(get_service)):
    """Bring back one of your own captured pieces as a zombie (costs the turn)."""
    return service.revive_zombie(body)


@app.post("/games/undo", response_model=GameResponse)
def undo(body: PlayerActionRequest, service: TacticsService = Depends(get_service)):
    return service.undo(body)


@app.post("/games/hint", response_model=GameResponse)
def hint(body: PlayerActionRequest, service: TacticsService = Depends(get_service)):
    return service.hint(body)
