"""
A position (cell coordinate) on the board + the board dimensions.

(placed in its own module as most other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.shared_types import BoardSizeKey

Vector = tuple[int, int]

ORTHOGONAL: list[Vector] = [(-1, 0), (1, 0), (0, -1), (0, 1)]
DIAGONAL: list[Vector] = [(-1, -1), (-1, 1), (1, -1), (1, 1)]
ALL_DIRECTIONS: list[Vector] = ORTHOGONAL + DIAGONAL


@dataclass(frozen=True, order=True)
class Position:
    """row 0 is Black's back line, so White moves 'up' the board (towards row 0)."""

    row: int
    col: int

    def offset(self, dr: int, dc: int) -> Position:
        return Position(self.row + dr, self.col + dc)

    def manhattan(self, other: Position) -> int:
        return abs(self.row - other.row) + abs(self.col - other.col)

    def chebyshev(self, other: Position) -> int:
        return max(abs(self.row - other.row), abs(self.col - other.col))


@dataclass(frozen=True)
class BoardSize:
    rows: int
    cols: int

    def contains(self, pos: Position) -> bool:
        return 0 <= pos.row < self.rows and 0 <= pos.col < self.cols

    @property
    def key(self) -> BoardSizeKey:
        """Inverse lookup of BOARD_SIZES. Unknown sizes fall back to the small board (their obstacle counts are used)."""
        for key, size in BOARD_SIZES.items():
            if size == self:
                return key
        return BoardSizeKey.SMALL


# Boards always have 12 rows. Wider boards add columns, padded with Hoplites on the back row.
BOARD_SIZES: dict[BoardSizeKey, BoardSize] = {
    BoardSizeKey.SMALL: BoardSize(rows=12, cols=12),
    BoardSizeKey.MEDIUM: BoardSize(rows=12, cols=16),
    BoardSizeKey.LARGE: BoardSize(rows=12, cols=20),
}

DEFAULT_BOARD_SIZE = BOARD_SIZES[BoardSizeKey.SMALL]


def is_position_in_list(pos: Position, positions: list[Position] | tuple[Position, ...]) -> bool:
    return pos in positions


def straight_path(from_pos: Position, to_pos: Position) -> list[Position]:
    """
    Squares traversed when moving in a straight (orthogonal / diagonal) line, excluding the start and including the target.

    For anything that is not a straight line (leaps, tunnels) only the target itself is traversed.
    """
    dr = to_pos.row - from_pos.row
    dc = to_pos.col - from_pos.col
    is_straight = dr == 0 or dc == 0 or abs(dr) == abs(dc)
    if not is_straight or (dr == 0 and dc == 0):
        return [to_pos]

    steps = max(abs(dr), abs(dc))
    step_r = (dr > 0) - (dr < 0)
    step_c = (dc > 0) - (dc < 0)
    return [from_pos.offset(step_r * i, step_c * i) for i in range(1, steps + 1)]
