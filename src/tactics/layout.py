"""
Text diagrams of a board.
----

One string per row, one character per cell:
* pieces by letter, uppercase for White and lowercase for Black:
    M(onarch) D(uchess) R(am tower) C(hariot) P(aladin) N(ecromancer) W(arlock) B(omber) H(oplite)
* obstacles: @ cave, ^ tree, * rock, ~ river, = lake, % canyon, ? mystery box
* "." for an empty cell

ex) the back lines of the 12x12 board:
    rcpbnmdwbpcr   (row 0, Black)
    RCPBNMDWBPCR   (row 11, White)

NOTE: A diagram only describes what stands where. Piece flags (has_moved, zombies, frozen) are not part of it,
so it is meant for tests, logs and debugging rather than for saving games (see snapshot.py for that).
"""

from src.core.exceptions import InvalidLayoutError
from src.core.shared_types import Color, ObstacleType, PieceType
from src.tactics.board import Board, create_piece
from src.tactics.pieces import CellContent, Obstacle, Piece
from src.tactics.position import BoardSize, Position

EMPTY_CHAR = "."

PIECE_TO_CHAR: dict[PieceType, str] = {
    PieceType.MONARCH: "m",
    PieceType.DUCHESS: "d",
    PieceType.RAM_TOWER: "r",
    PieceType.CHARIOT: "c",
    PieceType.PALADIN: "p",
    PieceType.NECROMANCER: "n",
    PieceType.WARLOCK: "w",
    PieceType.BOMBER: "b",
    PieceType.HOPLITE: "h",
}
CHAR_TO_PIECE: dict[str, PieceType] = {char: piece for piece, char in PIECE_TO_CHAR.items()}

OBSTACLE_TO_CHAR: dict[ObstacleType, str] = {
    ObstacleType.CAVE: "@",
    ObstacleType.TREE: "^",
    ObstacleType.ROCK: "*",
    ObstacleType.RIVER: "~",
    ObstacleType.LAKE: "=",
    ObstacleType.CANYON: "%",
    ObstacleType.MYSTERY_BOX: "?",
}
CHAR_TO_OBSTACLE: dict[str, ObstacleType] = {char: obstacle for obstacle, char in OBSTACLE_TO_CHAR.items()}


def cell_to_char(cell: CellContent) -> str:
    if isinstance(cell, Piece):
        char = PIECE_TO_CHAR[cell.type]
        return char.upper() if cell.color == Color.WHITE else char
    if isinstance(cell, Obstacle):
        return OBSTACLE_TO_CHAR[cell.type]
    return EMPTY_CHAR


def is_valid_layout(rows: list[str]) -> bool:
    """Rectangular, non-empty, and every character known."""
    if not rows or not rows[0]:
        return False
    width = len(rows[0])
    for row in rows:
        if len(row) != width:
            return False
        for char in row:
            if char == EMPTY_CHAR or char in CHAR_TO_OBSTACLE:
                continue
            if char.lower() not in CHAR_TO_PIECE:
                return False
    return True


def board_from_layout(rows: list[str] | str) -> Board:
    """
    Build a board from a diagram. Accepts a list of rows or a single multi-line string (blank lines and surrounding spaces are ignored).

    Piece ids follow the same "<color>-<row>-<col>" scheme as the starting formation.
    """
    if isinstance(rows, str):
        rows = [line.strip() for line in rows.splitlines() if line.strip()]

    if not is_valid_layout(rows):
        raise InvalidLayoutError(f"Cannot interpret supplied rows as a board layout: {rows}")

    board = Board.empty(BoardSize(rows=len(rows), cols=len(rows[0])))
    for row_idx, row in enumerate(rows):
        for col_idx, char in enumerate(row):
            pos = Position(row_idx, col_idx)
            if char == EMPTY_CHAR:
                continue
            if char in CHAR_TO_OBSTACLE:
                board.set_cell(pos, Obstacle(CHAR_TO_OBSTACLE[char]))
                continue
            color = Color.WHITE if char.isupper() else Color.BLACK
            board.set_cell(pos, create_piece(CHAR_TO_PIECE[char.lower()], color, pos))
    return board


def board_to_layout(board: Board) -> list[str]:
    """reverse operation: write the diagram of a board"""
    return [
        "".join(cell_to_char(cell) for cell in row)
        for row in board.grid
    ]


def render(board: Board) -> str:
    """Multi-line variant, handy for log messages"""
    return "\n".join(board_to_layout(board))
