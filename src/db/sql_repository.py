"""SQLAlchemy implementation of the GameRepository protocol"""

import logging
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import GameModel
from src.db.schema import DBGame

logger = logging.getLogger("fantasy_tactics.db")


class SQLGameRepository:
    """Sessions stored as JSON documents in a SQL table"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_game(self, game_id: UUID) -> GameModel | None:
        record = self.db.get(DBGame, game_id)
        return None if record is None else self._to_model(record)

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Insert a new row. The id is generated here, not by the caller."""
        record = DBGame(id=uuid4())
        self._write(record, game)
        self.db.add(record)
        self._save(record)
        logger.debug(f"Stored new game {record.id}")
        return self._to_model(record), record.id

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Overwrite every column of an existing row. Unknown ids are left alone."""
        record = self.db.get(DBGame, game_id)
        if record is None:
            return None
        self._write(record, game)
        self._save(record)
        return self._to_model(record)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        record = self.db.get(DBGame, game_id)
        if record is None:
            return None
        deleted = self._to_model(record)
        self.db.delete(record)
        self.db.commit()
        logger.debug(f"Deleted game {game_id}")
        return deleted

    def list_game_ids(self) -> list[UUID]:
        return list(self.db.scalars(select(DBGame.id).order_by(DBGame.created_at)))

    # -- Internal helpers --
    def _save(self, record: DBGame) -> None:
        self.db.commit()
        self.db.refresh(record)

    @staticmethod
    def _write(record: DBGame, game: GameModel) -> None:
        record.board_size_key = game.board_size_key
        record.registered_players = game.registered_players
        record.status = game.status
        record.vs_bot = game.vs_bot
        record.session = game.session
        # denormalized copy of the winning color: finished games can be queried without decoding the session
        record.winner = game.session.get("game", {}).get("winner")

    @staticmethod
    def _to_model(record: DBGame) -> GameModel:
        return GameModel(
            board_size_key=record.board_size_key,
            registered_players=record.registered_players,
            status=record.status,
            vs_bot=record.vs_bot,
            session=record.session,
        )
