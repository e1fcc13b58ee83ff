"""
Mystery boxes.
----

A move (not an attack) that lands on a mystery box opens it. One of three options is drawn at random:

* Figure swap: pick two of your own pieces, they swap squares.
* Hoplite sacrifice: remove one of your Hoplites, then bring back a piece you captured from the opponent as your own,
    on an empty square of your choice.
* Obstacle swap: roll a die, select that many obstacles (not mystery boxes) and as many empty squares.
    Each obstacle moves to the empty square selected at the same index.

Every phase of this sub-game has its own transition function. A transition never touches the board:
it returns the new MysteryBoxState plus the board effects the controller has to apply.
Invalid selections come back as an error and leave the state unchanged.
"""

import logging
import random
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Callable, Optional, Self

from src.core.shared_types import Color, PieceType
from src.tactics.board import Board
from src.tactics.pieces import Piece
from src.tactics.position import Position, is_position_in_list
from src.tactics.results import ActionResult

logger = logging.getLogger("fantasy_tactics.mystery_box")

DICE_SIDES = 6


class MysteryBoxOption(StrEnum):
    FIGURE_SWAP = "figureSwap"
    HOPLITE_SACRIFICE_REVIVE = "hopliteSacrificeRevive"
    OBSTACLE_SWAP = "obstacleSwap"


class MysteryBoxPhase(StrEnum):
    WAITING_FIRST_FIGURE = "waitingFirstFigure"
    WAITING_SECOND_FIGURE = "waitingSecondFigure"
    WAITING_HOPLITE_SACRIFICE = "waitingHopliteSacrifice"
    WAITING_REVIVE_FIGURE = "waitingReviveFigure"
    WAITING_REVIVE_PLACEMENT = "waitingRevivePlacement"
    WAITING_OBSTACLE_SELECTION = "waitingObstacleSelection"
    WAITING_EMPTY_TILE_SELECTION = "waitingEmptyTileSelection"


FIRST_PHASE: dict[MysteryBoxOption, MysteryBoxPhase] = {
    MysteryBoxOption.FIGURE_SWAP: MysteryBoxPhase.WAITING_FIRST_FIGURE,
    MysteryBoxOption.HOPLITE_SACRIFICE_REVIVE: MysteryBoxPhase.WAITING_HOPLITE_SACRIFICE,
    MysteryBoxOption.OBSTACLE_SWAP: MysteryBoxPhase.WAITING_OBSTACLE_SELECTION,
}

OPTION_DESCRIPTIONS: dict[MysteryBoxOption, str] = {
    MysteryBoxOption.FIGURE_SWAP: "Swap positions of any two of your pieces!",
    MysteryBoxOption.HOPLITE_SACRIFICE_REVIVE: "Sacrifice a Hoplite to revive an opponent piece as your own!",
    MysteryBoxOption.OBSTACLE_SWAP: "Roll: {dice_roll}! Swap {dice_roll} obstacle(s) with empty tiles!",
}


@dataclass(frozen=True)
class MysteryBoxState:
    is_active: bool = False
    option: Optional[MysteryBoxOption] = None
    phase: Optional[MysteryBoxPhase] = None
    trigger_position: Optional[Position] = None
    dice_roll: Optional[int] = None
    first_figure_position: Optional[Position] = None
    selected_obstacles: tuple[Position, ...] = ()
    selected_empty_tiles: tuple[Position, ...] = ()
    revivable_pieces: tuple[Piece, ...] = ()
    selected_revive_piece: Optional[Piece] = None

    def with_changes(self, **changes) -> Self:
        return replace(self, **changes)

    def describe(self) -> str:
        if self.option is None:
            return ""
        return OPTION_DESCRIPTIONS[self.option].format(dice_roll=self.dice_roll)


# --- EFFECTS (applied to the game by the controller) ---
@dataclass(frozen=True)
class SwapFigures:
    first: Position
    second: Position


@dataclass(frozen=True)
class SacrificeHoplite:
    position: Position


@dataclass(frozen=True)
class RevivePiece:
    piece: Piece
    position: Position


@dataclass(frozen=True)
class SwapObstacles:
    obstacles: tuple[Position, ...]
    empty_tiles: tuple[Position, ...]


@dataclass(frozen=True)
class EndTurn:
    pass


Effect = SwapFigures | SacrificeHoplite | RevivePiece | SwapObstacles | EndTurn


@dataclass(frozen=True)
class MysteryBoxTransition:
    state: MysteryBoxState
    effects: tuple[Effect, ...] = ()
    error: Optional[str] = None

    @property
    def completed(self) -> bool:
        return any(isinstance(effect, EndTurn) for effect in self.effects)


def get_initial_mystery_box_state() -> MysteryBoxState:
    return MysteryBoxState()


def get_phase_for_option(option: MysteryBoxOption) -> MysteryBoxPhase:
    return FIRST_PHASE[option]


# --- HELPERS ---
def roll_dice(rng: random.Random, sides: int = DICE_SIDES) -> int:
    return rng.randint(1, sides)


def is_selectable_obstacle(board: Board, pos: Position) -> bool:
    obstacle = board.obstacle(pos)
    return obstacle is not None and not obstacle.is_mystery_box


def selectable_obstacle_positions(board: Board) -> list[Position]:
    return [pos for pos in board.obstacle_positions() if is_selectable_obstacle(board, pos)]


def get_revivable_pieces(current_player: Color, captured_pieces: dict[Color, list[Piece]]) -> list[Piece]:
    """Opponent pieces captured so far (captured lists are keyed by the color of the victim). Monarchs never come back."""
    return [
        piece
        for piece in captured_pieces.get(current_player.opponent, [])
        if piece.type != PieceType.MONARCH
    ]


def get_available_options(
    current_player: Color, captured_pieces: dict[Color, list[Piece]], board: Board
) -> list[MysteryBoxOption]:
    """Options whose preconditions hold right now, in declaration order."""
    available: list[MysteryBoxOption] = []
    if len(board.pieces(current_player)) >= 2:
        available.append(MysteryBoxOption.FIGURE_SWAP)

    has_hoplite = bool(board.find_piece_positions(PieceType.HOPLITE, current_player))
    if has_hoplite and get_revivable_pieces(current_player, captured_pieces):
        available.append(MysteryBoxOption.HOPLITE_SACRIFICE_REVIVE)

    if selectable_obstacle_positions(board) and board.empty_positions():
        available.append(MysteryBoxOption.OBSTACLE_SWAP)
    return available


def get_random_mystery_box_option(
    rng: random.Random,
    current_player: Color,
    captured_pieces: dict[Color, list[Piece]],
    board: Board,
) -> Optional[MysteryBoxOption]:
    """Uniform over the options available. None if none is (the box is then simply spent)."""
    available = get_available_options(current_player, captured_pieces, board)
    if not available:
        return None
    return rng.choice(available)


def remove_mystery_box_from_board(board: Board, pos: Position) -> Board:
    new_board = board.clone()
    obstacle = new_board.obstacle(pos)
    if obstacle is not None and obstacle.is_mystery_box:
        new_board.remove(pos)
    return new_board


def open_mystery_box(
    rng: random.Random,
    board: Board,
    current_player: Color,
    captured_pieces: dict[Color, list[Piece]],
    trigger_position: Position,
) -> MysteryBoxState:
    """
    Draw the option (and, for the obstacle swap, the die) for a box that was just opened.

    `board` is the board after the triggering move. The die roll is capped at the number of obstacles that can be moved
    (and the number of empty squares to move them to), so the option can always be completed.
    """
    option = get_random_mystery_box_option(rng, current_player, captured_pieces, board)
    if option is None:
        logger.debug(f"Mystery box on {trigger_position} opened by {current_player}: nothing available")
        return get_initial_mystery_box_state()

    dice_roll: Optional[int] = None
    if option == MysteryBoxOption.OBSTACLE_SWAP:
        dice_roll = min(
            roll_dice(rng),
            len(selectable_obstacle_positions(board)),
            len(board.empty_positions()),
        )

    revivable: tuple[Piece, ...] = ()
    if option == MysteryBoxOption.HOPLITE_SACRIFICE_REVIVE:
        revivable = tuple(get_revivable_pieces(current_player, captured_pieces))

    logger.debug(f"Mystery box on {trigger_position} opened by {current_player}: {option} (dice: {dice_roll})")
    return MysteryBoxState(
        is_active=True,
        option=option,
        phase=get_phase_for_option(option),
        trigger_position=trigger_position,
        dice_roll=dice_roll,
        revivable_pieces=revivable,
    )


# --- BOARD OPERATIONS ---
def execute_figure_swap(board: Board, first: Position, second: Position) -> ActionResult:
    """Pieces keep their flags: a frozen Monarch stays frozen on its new square until its owner's turn ends."""
    first_piece = board.piece(first)
    second_piece = board.piece(second)
    if first_piece is None or second_piece is None:
        return ActionResult.rejected(board, "Both squares must hold a piece")
    if first == second:
        return ActionResult.rejected(board, "Cannot swap a piece with itself")

    new_board = board.clone()
    new_board.set_cell(first, second_piece)
    new_board.set_cell(second, first_piece)
    return ActionResult.accepted(new_board, second)


def execute_hoplite_sacrifice(board: Board, pos: Position) -> ActionResult:
    piece = board.piece(pos)
    if piece is None or piece.type != PieceType.HOPLITE:
        return ActionResult.rejected(board, "Only a Hoplite can be sacrificed")
    new_board = board.clone()
    new_board.remove(pos)
    return ActionResult.accepted(new_board, pos)


def execute_revive_piece(board: Board, piece: Piece, pos: Position, color: Color) -> ActionResult:
    """The revived piece switches sides. It is a regular piece, not a zombie."""
    if not board.is_empty(pos):
        return ActionResult.rejected(board, "The revived piece must be placed on an empty tile")
    new_board = board.clone()
    new_board.set_cell(
        pos, piece.with_changes(color=color, has_moved=False, is_zombie=False, frozen=False)
    )
    return ActionResult.accepted(new_board, pos)


def execute_obstacle_swap(
    board: Board, obstacles: tuple[Position, ...] | list[Position], empty_tiles: tuple[Position, ...] | list[Position]
) -> ActionResult:
    if len(obstacles) != len(empty_tiles) or not obstacles:
        return ActionResult.rejected(board, "Select as many empty tiles as obstacles")
    if not all(is_selectable_obstacle(board, pos) for pos in obstacles):
        return ActionResult.rejected(board, "Only obstacles other than mystery boxes can be moved")
    if not all(board.is_empty(pos) for pos in empty_tiles):
        return ActionResult.rejected(board, "Obstacles can only be moved onto empty tiles")

    new_board = board.clone()
    for source, destination in zip(obstacles, empty_tiles):
        obstacle = new_board.remove(source)
        new_board.set_cell(destination, obstacle)
    return ActionResult.accepted(new_board)


# --- PHASE TRANSITIONS ---
def _reject(state: MysteryBoxState, error: str) -> MysteryBoxTransition:
    return MysteryBoxTransition(state=state, error=error)


def _complete(*effects: Effect) -> MysteryBoxTransition:
    return MysteryBoxTransition(
        state=get_initial_mystery_box_state(), effects=(*effects, EndTurn())
    )


def _is_own_piece(board: Board, pos: Position, player: Color) -> bool:
    piece = board.piece(pos)
    return piece is not None and piece.color == player


def on_first_figure(
    state: MysteryBoxState, board: Board, pos: Position, player: Color
) -> MysteryBoxTransition:
    if not _is_own_piece(board, pos, player):
        return _reject(state, "Invalid Selection - Please click on one of YOUR pieces to begin the swap.")
    return MysteryBoxTransition(
        state.with_changes(phase=MysteryBoxPhase.WAITING_SECOND_FIGURE, first_figure_position=pos)
    )


def on_second_figure(
    state: MysteryBoxState, board: Board, pos: Position, player: Color
) -> MysteryBoxTransition:
    if not _is_own_piece(board, pos, player):
        return _reject(state, "Invalid Selection - Select a DIFFERENT piece of yours to complete the swap.")
    if pos == state.first_figure_position:
        return _reject(state, "Cannot swap a piece with itself! Select a DIFFERENT piece.")
    return _complete(SwapFigures(state.first_figure_position, pos))


def on_hoplite_sacrifice(
    state: MysteryBoxState, board: Board, pos: Position, player: Color
) -> MysteryBoxTransition:
    piece = board.piece(pos)
    if piece is None or piece.type != PieceType.HOPLITE or piece.color != player:
        return _reject(state, "Invalid Selection - You must select one of YOUR HOPLITES to sacrifice!")
    return MysteryBoxTransition(
        state.with_changes(phase=MysteryBoxPhase.WAITING_REVIVE_FIGURE, first_figure_position=pos),
        effects=(SacrificeHoplite(pos),),
    )


def on_revive_figure(state: MysteryBoxState, piece_id: str) -> MysteryBoxTransition:
    """Not a board click: the player picks one of the revivable pieces (by id)"""
    if state.phase != MysteryBoxPhase.WAITING_REVIVE_FIGURE:
        return _reject(state, "No piece can be chosen right now.")
    piece = next((p for p in state.revivable_pieces if p.id == piece_id), None)
    if piece is None:
        return _reject(state, "This piece cannot be revived.")
    return MysteryBoxTransition(
        state.with_changes(phase=MysteryBoxPhase.WAITING_REVIVE_PLACEMENT, selected_revive_piece=piece)
    )


def on_revive_placement(
    state: MysteryBoxState, board: Board, pos: Position, player: Color
) -> MysteryBoxTransition:
    if not board.is_empty(pos):
        return _reject(state, "Invalid Placement - You must select an EMPTY tile to place the revived piece!")
    return _complete(RevivePiece(state.selected_revive_piece, pos))


def on_obstacle_selection(
    state: MysteryBoxState, board: Board, pos: Position, player: Color
) -> MysteryBoxTransition:
    if not is_selectable_obstacle(board, pos):
        return _reject(state, "Invalid Selection - You can select any OBSTACLE except Mystery Boxes!")

    if is_position_in_list(pos, state.selected_obstacles):
        remaining = tuple(p for p in state.selected_obstacles if p != pos)
        return MysteryBoxTransition(state.with_changes(selected_obstacles=remaining))

    if len(state.selected_obstacles) >= state.dice_roll:
        return _reject(state, f"Maximum {state.dice_roll} obstacles already selected! Deselect one first.")

    selected = (*state.selected_obstacles, pos)
    if len(selected) == state.dice_roll:
        return MysteryBoxTransition(
            state.with_changes(
                selected_obstacles=selected, phase=MysteryBoxPhase.WAITING_EMPTY_TILE_SELECTION
            )
        )
    return MysteryBoxTransition(state.with_changes(selected_obstacles=selected))


def on_empty_tile_selection(
    state: MysteryBoxState, board: Board, pos: Position, player: Color
) -> MysteryBoxTransition:
    if is_position_in_list(pos, state.selected_empty_tiles):
        remaining = tuple(p for p in state.selected_empty_tiles if p != pos)
        return MysteryBoxTransition(state.with_changes(selected_empty_tiles=remaining))

    if not board.is_empty(pos):
        return _reject(state, "Invalid Selection - You must select EMPTY tiles (no pieces or obstacles)!")

    required = len(state.selected_obstacles)
    if len(state.selected_empty_tiles) >= required:
        return _reject(state, f"Maximum {required} empty tiles already selected! Deselect one first.")

    selected = (*state.selected_empty_tiles, pos)
    if len(selected) == required:
        return _complete(SwapObstacles(state.selected_obstacles, selected))
    return MysteryBoxTransition(state.with_changes(selected_empty_tiles=selected))


def on_confirm_obstacles(state: MysteryBoxState) -> MysteryBoxTransition:
    """Proceed to the empty tiles with fewer obstacles than rolled (at least one)"""
    if state.phase != MysteryBoxPhase.WAITING_OBSTACLE_SELECTION:
        return _reject(state, "There is no obstacle selection to confirm.")
    if not state.selected_obstacles:
        return _reject(state, "Select at least one obstacle first.")
    return MysteryBoxTransition(state.with_changes(phase=MysteryBoxPhase.WAITING_EMPTY_TILE_SELECTION))


# -- STRATEGY PATTERN: one handler per phase that reacts to a board click ---
SelectionFn = Callable[[MysteryBoxState, Board, Position, Color], MysteryBoxTransition]
SELECTION_HANDLERS: dict[MysteryBoxPhase, SelectionFn] = {
    MysteryBoxPhase.WAITING_FIRST_FIGURE: on_first_figure,
    MysteryBoxPhase.WAITING_SECOND_FIGURE: on_second_figure,
    MysteryBoxPhase.WAITING_HOPLITE_SACRIFICE: on_hoplite_sacrifice,
    MysteryBoxPhase.WAITING_REVIVE_PLACEMENT: on_revive_placement,
    MysteryBoxPhase.WAITING_OBSTACLE_SELECTION: on_obstacle_selection,
    MysteryBoxPhase.WAITING_EMPTY_TILE_SELECTION: on_empty_tile_selection,
}


def handle_selection(
    state: MysteryBoxState, board: Board, pos: Position, player: Color
) -> MysteryBoxTransition:
    if not state.is_active:
        return _reject(state, "No mystery box is active.")
    handler = SELECTION_HANDLERS.get(state.phase)
    if handler is None:
        return _reject(state, "Choose a piece to revive first.")
    return handler(state, board, pos, player)
