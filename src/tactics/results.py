"""Result records for special actions. A rejected action is a value (success=False + error), not an exception."""

from dataclasses import dataclass
from typing import Optional, Self

from src.tactics.board import Board
from src.tactics.position import Position


@dataclass(frozen=True)
class ActionResult:
    success: bool
    board: Board  # the new board on success, the untouched input board otherwise
    error: Optional[str] = None
    position: Optional[Position] = None  # where the affected piece ended up (if relevant)

    @classmethod
    def rejected(cls, board: Board, error: str) -> Self:
        return cls(success=False, board=board, error=error)

    @classmethod
    def accepted(cls, board: Board, position: Optional[Position] = None) -> Self:
        return cls(success=True, board=board, position=position)
