"""The Game board: a rectangular grid of cells. Each cell is empty, holds a piece, or holds an obstacle."""

import random
from dataclasses import dataclass
from typing import Iterator, Optional, Self

from src.core.shared_types import Color, ObstacleType, PieceType
from src.tactics.obstacles import PlacementReport, place_obstacles
from src.tactics.pieces import CellContent, Obstacle, Piece, back_row_for_board_size
from src.tactics.position import BoardSize, Position

Grid = list[list[CellContent]]


@dataclass
class Board:
    grid: Grid
    size: BoardSize

    @classmethod
    def empty(cls, size: BoardSize) -> Self:
        return cls([[None] * size.cols for _ in range(size.rows)], size)

    # --- QUERIES ---
    def is_in_bounds(self, pos: Position) -> bool:
        return self.size.contains(pos)

    def cell(self, pos: Position) -> CellContent:
        """Total function: anything off the board reads as an empty cell."""
        if not self.is_in_bounds(pos):
            return None
        return self.grid[pos.row][pos.col]

    def piece(self, pos: Position) -> Optional[Piece]:
        cell = self.cell(pos)
        return cell if isinstance(cell, Piece) else None

    def obstacle(self, pos: Position) -> Optional[Obstacle]:
        cell = self.cell(pos)
        return cell if isinstance(cell, Obstacle) else None

    def is_empty(self, pos: Position) -> bool:
        return self.is_in_bounds(pos) and self.cell(pos) is None

    def is_blocked_by_obstacle(self, pos: Position) -> bool:
        return self.obstacle(pos) is not None

    def positions(self) -> Iterator[Position]:
        """Row-major order. The search relies on this ordering being stable."""
        for row in range(self.size.rows):
            for col in range(self.size.cols):
                yield Position(row, col)

    def pieces(self, color: Optional[Color] = None) -> list[tuple[Position, Piece]]:
        found: list[tuple[Position, Piece]] = []
        for pos in self.positions():
            piece = self.piece(pos)
            if piece is not None and (color is None or piece.color == color):
                found.append((pos, piece))
        return found

    def locate_color(self, color: Color) -> list[Position]:
        return [pos for pos, _ in self.pieces(color)]

    def find_piece_positions(
        self, piece_type: PieceType, color: Optional[Color] = None
    ) -> list[Position]:
        return [pos for pos, piece in self.pieces(color) if piece.type == piece_type]

    def find_piece_by_id(self, piece_id: str) -> Optional[Position]:
        return next((pos for pos, piece in self.pieces() if piece.id == piece_id), None)

    def obstacle_positions(self, obstacle_type: Optional[ObstacleType] = None) -> list[Position]:
        found: list[Position] = []
        for pos in self.positions():
            obstacle = self.obstacle(pos)
            if obstacle is not None and (obstacle_type is None or obstacle.type == obstacle_type):
                found.append(pos)
        return found

    def find_all_caves(self) -> list[Position]:
        return self.obstacle_positions(ObstacleType.CAVE)

    def empty_positions(self) -> list[Position]:
        return [pos for pos in self.positions() if self.cell(pos) is None]

    # --- UPDATES ---
    # NOTE: These mutate in place. Callers working on a committed board must `clone()` first.
    def set_cell(self, pos: Position, content: CellContent) -> None:
        self.grid[pos.row][pos.col] = content

    def remove(self, pos: Position) -> CellContent:
        content = self.cell(pos)
        self.set_cell(pos, None)
        return content

    def clone(self) -> Self:
        """Rows are copied; the cell values themselves are immutable and can be shared."""
        return type(self)([list(row) for row in self.grid], self.size)

    def count_material(self) -> dict[Color, int]:
        """Tally the points of material each player has on the board"""
        return {
            color: sum(piece.points for _, piece in self.pieces(color)) for color in Color
        }


# --- MODULE LEVEL API (used by the controller and by the API layer) ---
def create_piece(piece_type: PieceType, color: Color, pos: Position) -> Piece:
    """The id encodes the starting square, which keeps ids stable and unique per game."""
    return Piece(id=f"{color}-{pos.row}-{pos.col}", type=piece_type, color=color)


def place_formation(board: Board) -> None:
    rows, cols = board.size.rows, board.size.cols
    back_row = back_row_for_board_size(cols)
    for col in range(cols):
        for row, piece_type, color in (
            (0, back_row[col], Color.BLACK),
            (1, PieceType.HOPLITE, Color.BLACK),
            (rows - 2, PieceType.HOPLITE, Color.WHITE),
            (rows - 1, back_row[col], Color.WHITE),
        ):
            pos = Position(row, col)
            board.set_cell(pos, create_piece(piece_type, color, pos))


def create_initial_board(
    size: BoardSize, rng: Optional[random.Random] = None
) -> Board:
    """Formation first, then obstacles (which never touch the three rows in front of either back line)."""
    board, _ = create_initial_board_with_report(size, rng)
    return board


def create_initial_board_with_report(
    size: BoardSize, rng: Optional[random.Random] = None
) -> tuple[Board, PlacementReport]:
    board = Board.empty(size)
    place_formation(board)
    report = place_obstacles(board.grid, size, rng or random.Random())
    return board, report


def clone_board(board: Board) -> Board:
    return board.clone()


def is_in_bounds(pos: Position, size: BoardSize) -> bool:
    return size.contains(pos)


def get_cell_content(board: Board, pos: Position) -> CellContent:
    return board.cell(pos)


def is_square_blocked_by_obstacle(board: Board, pos: Position) -> bool:
    return board.is_blocked_by_obstacle(pos)
