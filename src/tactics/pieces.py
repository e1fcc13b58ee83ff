"""Defines the pieces, the obstacles, and the fixed rule table of each piece type"""

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Optional, Self

from src.core.shared_types import Color, ObstacleType, PieceType


class Movement(Enum):
    STEP = auto()  # a fixed number of squares along the given directions
    SLIDE = auto()  # along the directions until blocked (or range exhausted)
    LEAP = auto()  # knight offsets, jumps over anything in between
    HOPLITE = auto()  # forward step, diagonal-forward capture


@dataclass(frozen=True)
class PieceRule:
    points: int
    movement: Movement
    move_range: Optional[int]  # None: unlimited (bounded by the board)
    attack_range: int = 0  # 0: no ranged attack
    can_choose_attack_mode: bool = False

    @property
    def zombie_points(self) -> int:
        return self.points // 2


PIECE_RULES: dict[PieceType, PieceRule] = {
    PieceType.MONARCH: PieceRule(points=0, movement=Movement.STEP, move_range=1),
    PieceType.DUCHESS: PieceRule(points=9, movement=Movement.SLIDE, move_range=None),
    PieceType.RAM_TOWER: PieceRule(points=5, movement=Movement.SLIDE, move_range=None),
    PieceType.CHARIOT: PieceRule(points=3, movement=Movement.SLIDE, move_range=None),
    PieceType.PALADIN: PieceRule(points=3, movement=Movement.LEAP, move_range=None),
    PieceType.NECROMANCER: PieceRule(
        points=4, movement=Movement.STEP, move_range=1, attack_range=4
    ),
    PieceType.WARLOCK: PieceRule(points=3, movement=Movement.SLIDE, move_range=2),
    PieceType.BOMBER: PieceRule(
        points=3,
        movement=Movement.STEP,
        move_range=1,
        attack_range=2,
        can_choose_attack_mode=True,
    ),
    PieceType.HOPLITE: PieceRule(points=1, movement=Movement.HOPLITE, move_range=1),
}


# 12 column formation. Wider boards pad it with Hoplites on both sides.
BACK_ROW_PIECES: tuple[PieceType, ...] = (
    PieceType.RAM_TOWER,
    PieceType.CHARIOT,
    PieceType.PALADIN,
    PieceType.BOMBER,
    PieceType.NECROMANCER,
    PieceType.MONARCH,
    PieceType.DUCHESS,
    PieceType.WARLOCK,
    PieceType.BOMBER,
    PieceType.PALADIN,
    PieceType.CHARIOT,
    PieceType.RAM_TOWER,
)


def back_row_for_board_size(cols: int) -> list[PieceType]:
    """Back row formation for a board with the given number of columns."""
    extra_cols = max(0, cols - len(BACK_ROW_PIECES))
    left_pad = extra_cols // 2
    right_pad = extra_cols - left_pad
    return (
        [PieceType.HOPLITE] * left_pad
        + list(BACK_ROW_PIECES)
        + [PieceType.HOPLITE] * right_pad
    )


@dataclass(frozen=True)
class Piece:
    """
    Pieces are immutable values: every state change creates a new instance (see `with_changes`).
    This lets cloned boards share pieces safely, which keeps board copies cheap for the search.
    """

    id: str
    type: PieceType
    color: Color
    has_moved: bool = False
    is_zombie: bool = False
    revive_count: int = 0  # only meaningful for the Necromancer
    frozen: bool = False

    @property
    def rule(self) -> PieceRule:
        return PIECE_RULES[self.type]

    @property
    def points(self) -> int:
        return self.rule.zombie_points if self.is_zombie else self.rule.points

    def with_changes(self, **changes) -> Self:
        return replace(self, **changes)


@dataclass(frozen=True)
class Obstacle:
    type: ObstacleType = field(default=ObstacleType.ROCK)

    @property
    def is_mystery_box(self) -> bool:
        return self.type == ObstacleType.MYSTERY_BOX

    @property
    def is_cave(self) -> bool:
        return self.type == ObstacleType.CAVE


# The content of a single cell: exactly one of the three variants.
CellContent = Piece | Obstacle | None


def is_piece(cell: CellContent) -> bool:
    return isinstance(cell, Piece)


def is_obstacle(cell: CellContent) -> bool:
    return isinstance(cell, Obstacle)
