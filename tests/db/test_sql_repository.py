"""Unit tests for src/db/sql_repository.py"""

from dataclasses import replace
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import GameModel
from src.core.shared_types import Status
from src.db.schema import DBGame
from src.db.sql_repository import SQLGameRepository


def test_create_game(db_session_repo: Session, open_game_model: GameModel) -> None:
    """Conversion from a GameModel to DBGame for a new entry to the database."""
    repo = SQLGameRepository(db_session_repo)
    record_in_db, game_id = repo.create_game(open_game_model)
    assert isinstance(record_in_db, GameModel)
    assert record_in_db == open_game_model

    row = db_session_repo.scalar(select(DBGame).where(DBGame.id == game_id))
    assert row.status == Status.WAITING_FOR_PLAYERS
    assert row.winner is None
    assert row.created_at is not None


def test_get_game_by_id(db_session_repo: Session, open_game_model: GameModel) -> None:
    repo = SQLGameRepository(db_session_repo)
    expected_game, game_id = repo.create_game(open_game_model)
    assert repo.get_game(game_id) == expected_game


def test_get_unknown_game(db_session_repo: Session, open_game_model: GameModel) -> None:
    """
    Should return None if ID does not match anything in database.

    NOTE with an empty database, any id is a valid test case.
    """
    repo = SQLGameRepository(db_session_repo)
    assert repo.get_game(uuid4()) is None

    repo.create_game(open_game_model)
    assert repo.get_game(uuid4()) is None


def test_update_game(db_session_repo: Session, open_game_model: GameModel) -> None:
    repo = SQLGameRepository(db_session_repo)
    _, game_id = repo.create_game(open_game_model)

    joined = replace(
        open_game_model,
        registered_players={"white": "alice", "black": "bob"},
        status=str(Status.IN_PROGRESS),
    )
    assert repo.update_game(game_id, joined) == joined
    assert repo.get_game(game_id) == joined

    assert repo.update_game(uuid4(), joined) is None


def test_winner_is_copied_out_of_the_session(db_session_repo: Session, open_game_model: GameModel) -> None:
    """Finished games can be found without decoding the session"""
    repo = SQLGameRepository(db_session_repo)
    _, game_id = repo.create_game(open_game_model)

    session = {**open_game_model.session, "game": {**open_game_model.session["game"], "winner": "black"}}
    repo.update_game(game_id, replace(open_game_model, status=str(Status.FINISHED), session=session))

    row = db_session_repo.scalar(select(DBGame).where(DBGame.id == game_id))
    assert row.winner == "black"
    assert row.status == Status.FINISHED


def test_delete_game(db_session_repo: Session, open_game_model: GameModel) -> None:
    repo = SQLGameRepository(db_session_repo)
    _, game_id = repo.create_game(open_game_model)

    assert repo.delete_game(game_id) == open_game_model
    assert repo.get_game(game_id) is None
    assert repo.delete_game(game_id) is None


def test_list_game_ids(db_session_repo: Session, open_game_model: GameModel) -> None:
    repo = SQLGameRepository(db_session_repo)
    assert repo.list_game_ids() == []

    ids = [repo.create_game(open_game_model)[1] for _ in range(3)]
    assert set(repo.list_game_ids()) == set(ids)
