"""
Terrain generation.
----

Every obstacle type has its own placement policy. All policies draw random cells and retry with a bounded number of attempts.
When the constraints cannot be satisfied within that budget, the policy simply places fewer cells:
game creation never fails because of terrain. Shortfalls are reported (and logged) for diagnostics.

NOTE: works on the raw grid (list of rows) so that the Board class can depend on this module and not the other way around.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Callable

from src.core.shared_types import BoardSizeKey, ObstacleType
from src.tactics.pieces import CellContent, Obstacle
from src.tactics.position import BoardSize, Position

logger = logging.getLogger("fantasy_tactics.obstacles")

Grid = list[list[CellContent]]

# rows within this distance of either back line never hold an obstacle
PROTECTED_ROWS = 3
# caves keep this Manhattan distance from each other (and roughly this many rows from the back lines)
CAVE_MIN_DISTANCE = 4

# attempt budgets
CAVE_ATTEMPTS_PER_CAVE = 200
SHAPE_ATTEMPTS = 150  # lakes, rivers, canyons
CLUSTER_ATTEMPTS_PER_CELL = 200
MYSTERY_BOX_ATTEMPTS_PER_BOX = 100
SCATTER_ATTEMPTS_PER_CELL = 50

OBSTACLE_COUNTS: dict[BoardSizeKey, dict[ObstacleType, int]] = {
    BoardSizeKey.SMALL: {
        ObstacleType.CAVE: 2,
        ObstacleType.TREE: 3,
        ObstacleType.ROCK: 3,
        ObstacleType.RIVER: 3,
        ObstacleType.LAKE: 4,
        ObstacleType.CANYON: 3,
        ObstacleType.MYSTERY_BOX: 2,
    },
    BoardSizeKey.MEDIUM: {
        ObstacleType.CAVE: 3,
        ObstacleType.TREE: 4,
        ObstacleType.ROCK: 4,
        ObstacleType.RIVER: 4,
        ObstacleType.LAKE: 4,
        ObstacleType.CANYON: 4,
        ObstacleType.MYSTERY_BOX: 4,
    },
    BoardSizeKey.LARGE: {
        ObstacleType.CAVE: 4,
        ObstacleType.TREE: 5,
        ObstacleType.ROCK: 5,
        ObstacleType.RIVER: 5,
        ObstacleType.LAKE: 5,
        ObstacleType.CANYON: 5,
        ObstacleType.MYSTERY_BOX: 4,
    },
}

# offsets relative to an anchor cell. The key is the number of cells of the lake.
LAKE_SHAPES: dict[int, list[tuple[int, int]]] = {
    4: [(0, 0), (0, 1), (1, 0), (1, 1)],
    5: [(0, 0), (-1, 0), (1, 0), (0, -1), (0, 1)],
}

LINEAR_SHAPES = ("horizontal", "vertical", "gamma")
CLUSTERED_OBSTACLES = (ObstacleType.TREE, ObstacleType.ROCK)
LINEAR_OBSTACLES = (ObstacleType.RIVER, ObstacleType.CANYON)


@dataclass
class PlacementReport:
    requested: dict[ObstacleType, int] = field(default_factory=dict)
    placed: dict[ObstacleType, int] = field(default_factory=dict)

    def shortfall(self) -> dict[ObstacleType, int]:
        return {
            obstacle_type: self.requested[obstacle_type] - self.placed.get(obstacle_type, 0)
            for obstacle_type in self.requested
            if self.placed.get(obstacle_type, 0) < self.requested[obstacle_type]
        }


# --- CONSTRAINT HELPERS ---
def is_protected_zone(row: int, rows: int) -> bool:
    return row < PROTECTED_ROWS or row >= rows - PROTECTED_ROWS


def is_far_from_figure_lines(row: int, rows: int, min_blocks: int = CAVE_MIN_DISTANCE) -> bool:
    return min_blocks + 1 <= row <= rows - 2 - min_blocks


def _in_bounds(pos: Position, size: BoardSize) -> bool:
    return size.contains(pos)


def _can_place_all(grid: Grid, size: BoardSize, cells: list[Position]) -> bool:
    """In bounds, out of the protected zone and empty. For multi-cell shapes all cells must pass."""
    return all(
        _in_bounds(c, size)
        and not is_protected_zone(c.row, size.rows)
        and grid[c.row][c.col] is None
        for c in cells
    )


def _fill(grid: Grid, cells: list[Position], obstacle_type: ObstacleType) -> None:
    for c in cells:
        grid[c.row][c.col] = Obstacle(obstacle_type)


def _random_cell(rng: random.Random, size: BoardSize) -> Position:
    return Position(rng.randrange(size.rows), rng.randrange(size.cols))


def _adjacent(pos: Position) -> list[Position]:
    return [pos.offset(0, 1), pos.offset(1, 0), pos.offset(0, -1), pos.offset(-1, 0)]


# --- PLACEMENT POLICIES ---
# All policies share the signature (grid, size, count, rng) -> number of cells placed
def place_caves(grid: Grid, size: BoardSize, count: int, rng: random.Random) -> int:
    """Caves are scattered singly and spread out over the middle of the board."""
    placed: list[Position] = []
    attempts = 0
    while len(placed) < count and attempts < count * CAVE_ATTEMPTS_PER_CAVE:
        attempts += 1
        pos = _random_cell(rng, size)
        if not is_far_from_figure_lines(pos.row, size.rows):
            continue
        if grid[pos.row][pos.col] is not None:
            continue
        if any(pos.manhattan(other) < CAVE_MIN_DISTANCE for other in placed):
            continue
        _fill(grid, [pos], ObstacleType.CAVE)
        placed.append(pos)
    return len(placed)


def place_lake(grid: Grid, size: BoardSize, count: int, rng: random.Random) -> int:
    """One lake, shaped as a polyomino of `count` cells. All or nothing."""
    shape = LAKE_SHAPES.get(count, LAKE_SHAPES[4])
    min_dr = min(dr for dr, _ in shape)
    max_dr = max(dr for dr, _ in shape)
    min_dc = min(dc for _, dc in shape)
    max_dc = max(dc for _, dc in shape)
    row_range = size.rows - 2 * PROTECTED_ROWS - (max_dr - min_dr)
    col_range = size.cols - (max_dc - min_dc + 1)

    for _ in range(SHAPE_ATTEMPTS):
        base_row = PROTECTED_ROWS - min_dr + rng.randrange(max(1, row_range))
        base_col = -min_dc + rng.randrange(max(1, col_range + 1))
        cells = [Position(base_row + dr, base_col + dc) for dr, dc in shape]
        if _can_place_all(grid, size, cells):
            _fill(grid, cells, ObstacleType.LAKE)
            return len(cells)
    return 0


def _linear_cells(shape: str, size: BoardSize, length: int, rng: random.Random) -> list[Position]:
    rows, cols = size.rows, size.cols
    inner_rows = rows - 2 * PROTECTED_ROWS
    if shape == "horizontal":
        row = PROTECTED_ROWS + rng.randrange(max(1, inner_rows))
        start_col = rng.randrange(max(1, cols - length + 1))
        return [Position(row, start_col + i) for i in range(length)]

    if shape == "vertical":
        col = rng.randrange(cols)
        start_row = PROTECTED_ROWS + rng.randrange(max(1, inner_rows - length + 1))
        return [Position(start_row + i, col) for i in range(length)]

    # gamma: two legs sharing a corner cell
    leg1 = (length + 1) // 2
    leg2 = length - leg1 + 1
    direction = rng.choice((1, -1))
    if rng.random() < 0.5:
        # vertical leg first, then horizontal
        row = PROTECTED_ROWS + rng.randrange(max(1, inner_rows - leg1 + 1))
        col_range = max(1, cols - leg2 + 1)
        col = rng.randrange(col_range) if direction == 1 else (leg2 - 1) + rng.randrange(col_range)
        cells = [Position(row + i, col) for i in range(leg1)]
        cells += [Position(row + leg1 - 1, col + i * direction) for i in range(1, leg2)]
        return cells

    row_range = max(1, inner_rows - leg2 + 1)
    row = PROTECTED_ROWS + rng.randrange(row_range)
    if direction == -1:
        row += leg2 - 1
    col = rng.randrange(max(1, cols - leg1 + 1))
    cells = [Position(row, col + i) for i in range(leg1)]
    cells += [Position(row + i * direction, col + leg1 - 1) for i in range(1, leg2)]
    return cells


def make_linear_policy(obstacle_type: ObstacleType) -> Callable[[Grid, BoardSize, int, random.Random], int]:
    """Rivers and canyons: one line of `count` cells, shape picked once per obstacle."""

    def _place(grid: Grid, size: BoardSize, count: int, rng: random.Random) -> int:
        shape = rng.choice(LINEAR_SHAPES)
        for _ in range(SHAPE_ATTEMPTS):
            cells = _linear_cells(shape, size, count, rng)
            if _can_place_all(grid, size, cells):
                _fill(grid, cells, obstacle_type)
                return len(cells)
        return 0

    return _place


def make_cluster_policy(obstacle_type: ObstacleType) -> Callable[[Grid, BoardSize, int, random.Random], int]:
    """Trees and rocks grow as a cluster: each new cell is adjacent to one already placed (when possible)."""

    def _place(grid: Grid, size: BoardSize, count: int, rng: random.Random) -> int:
        placed: list[Position] = []
        attempts = 0
        while len(placed) < count and attempts < count * CLUSTER_ATTEMPTS_PER_CELL:
            attempts += 1
            if not placed:
                pos = _random_cell(rng, size)
            else:
                anchor = rng.choice(placed)
                options = [c for c in _adjacent(anchor) if _can_place_all(grid, size, [c])]
                if not options:
                    continue
                pos = rng.choice(options)

            if not _can_place_all(grid, size, [pos]):
                continue
            _fill(grid, [pos], obstacle_type)
            placed.append(pos)
        return len(placed)

    return _place


def place_mystery_boxes(grid: Grid, size: BoardSize, count: int, rng: random.Random) -> int:
    """
    Balanced over both halves of the board so neither side gets an advantage.
    The center column belongs to neither half. An odd box goes to the right half.
    """
    center_col = size.cols // 2
    left_half_end = center_col - 1
    right_half_start = center_col + 1
    per_half = count // 2
    right_target = per_half + count % 2

    placed_left = placed_right = attempts = 0
    while (placed_left < per_half or placed_right < right_target) and attempts < count * MYSTERY_BOX_ATTEMPTS_PER_BOX:
        attempts += 1
        needs_left = placed_left < per_half
        needs_right = placed_right < right_target
        if needs_left and (not needs_right or rng.random() < 0.5):
            col = rng.randrange(left_half_end + 1)
        else:
            col = right_half_start + rng.randrange(max(1, size.cols - right_half_start))

        pos = Position(rng.randrange(size.rows), col)
        if not _can_place_all(grid, size, [pos]):
            continue
        _fill(grid, [pos], ObstacleType.MYSTERY_BOX)
        if col <= left_half_end:
            placed_left += 1
        else:
            placed_right += 1
    return placed_left + placed_right


def make_scatter_policy(obstacle_type: ObstacleType) -> Callable[[Grid, BoardSize, int, random.Random], int]:
    """Fallback: uniform random cells outside the protected zone."""

    def _place(grid: Grid, size: BoardSize, count: int, rng: random.Random) -> int:
        placed = attempts = 0
        while placed < count and attempts < count * SCATTER_ATTEMPTS_PER_CELL:
            attempts += 1
            pos = _random_cell(rng, size)
            if not _can_place_all(grid, size, [pos]):
                continue
            _fill(grid, [pos], obstacle_type)
            placed += 1
        return placed

    return _place


# -- STRATEGY PATTERN: PLACEMENT POLICIES ---
PlacementFn = Callable[[Grid, BoardSize, int, random.Random], int]
PLACEMENT_POLICIES: dict[ObstacleType, PlacementFn] = {
    ObstacleType.CAVE: place_caves,
    ObstacleType.LAKE: place_lake,
    ObstacleType.MYSTERY_BOX: place_mystery_boxes,
    **{t: make_linear_policy(t) for t in LINEAR_OBSTACLES},
    **{t: make_cluster_policy(t) for t in CLUSTERED_OBSTACLES},
}


def obstacle_counts(size: BoardSize) -> dict[ObstacleType, int]:
    return OBSTACLE_COUNTS.get(size.key, OBSTACLE_COUNTS[BoardSizeKey.SMALL])


def place_obstacles(grid: Grid, size: BoardSize, rng: random.Random) -> PlacementReport:
    """Run every policy once, in the order of OBSTACLE_COUNTS. Returns what was requested vs. placed."""
    report = PlacementReport()
    for obstacle_type, count in obstacle_counts(size).items():
        policy = PLACEMENT_POLICIES.get(obstacle_type, make_scatter_policy(obstacle_type))
        report.requested[obstacle_type] = count
        report.placed[obstacle_type] = policy(grid, size, count, rng)

    shortfall = report.shortfall()
    if shortfall:
        logger.warning(
            f"Obstacle generation fell short on {size.rows}x{size.cols}: "
            + ", ".join(f"{t}={missing}" for t, missing in shortfall.items())
        )
    return report
