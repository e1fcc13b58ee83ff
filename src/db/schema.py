"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGame(Base):
    """One row per game session. The full session (board, undo stack, mystery box...) lives in a single JSON document."""

    __tablename__ = "tactics_games"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    board_size_key: Mapped[str]
    registered_players: Mapped[dict[str, str]] = mapped_column(JSON)
    status: Mapped[str]
    vs_bot: Mapped[bool] = mapped_column(default=False)
    session: Mapped[dict[str, Any]] = mapped_column(JSON)
    winner: Mapped[Optional[str]] = mapped_column(default=None)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
