"""Generate database session"""

import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.core.config import settings
from src.db.schema import Base

logger = logging.getLogger("fantasy_tactics.db")

DATABASE_URL = settings.database_url

# An in-memory SQLite database only lives as long as its connection: share a single one across threads.
_engine_kwargs = (
    {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    if DATABASE_URL.startswith("sqlite")
    else {}
)
engine = create_engine(DATABASE_URL, echo=settings.sql_echo, **_engine_kwargs)
SessionLocal = sessionmaker(bind=engine)

# Ensure all tables are created
Base.metadata.create_all(bind=engine)
logger.info(f"Database ready ({engine.url.get_backend_name()})")


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
