"""
The record the service layer passes around.

The service reads a GameModel from the repository, turns it into a Game (domain layer), and hands a GameModel back
to the repository once the action is applied. Neither the API schemas nor the SQL tables leak across that boundary.
"""

from dataclasses import dataclass
from typing import Any

PieceColor = str
PlayerName = str


@dataclass
class GameModel:
    """One stored game: who plays, where it stands, and the full session snapshot."""

    board_size_key: str
    registered_players: dict[PieceColor, PlayerName]
    status: str
    vs_bot: bool
    session: dict[str, Any]  # JSON-compatible snapshot, see src/tactics/snapshot.py
