"""Protocol repository: the service only depends on this, the SQLAlchemy implementation lives in sql_repository.py"""

from typing import Protocol
from uuid import UUID

from src.core.models import GameModel


class GameRepository(Protocol):
    """Persistence of game sessions, keyed by a UUID per game"""

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get the session by ID, if the record exists."""
        ...

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store a new session and return the stored data + newly created game ID."""
        ...

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Replace the stored session with the new one."""
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove a session's record."""
        ...

    def list_game_ids(self) -> list[UUID]:
        """IDs of all stored sessions, oldest first."""
        ...
