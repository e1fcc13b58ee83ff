"""
Pytest auto-discovers this file.
Fixtures shared by the tests of several layers: an in-memory database and a stored-game model.
"""

import random
from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.models import GameModel
from src.db.schema import Base
from src.tactics.game import Game

# One in-memory SQLite database, shared by every connection of the test run
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Fresh tables for every test. Dropped at teardown, so repository tests do not see each other's games."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def rng() -> random.Random:
    """Seeded, so obstacle placement and bot choices repeat between runs"""
    return random.Random(1234)


@pytest.fixture
def open_game_model(rng: random.Random) -> GameModel:
    """A 12x12 game created by 'alice' (White), waiting for an opponent"""
    return Game.new_game("alice", rng=rng).to_model()
