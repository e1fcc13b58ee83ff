"""
Session controller.
----

Every interaction with a game is an Action. `reduce(session, action, rng)` computes the next Session without side effects:
the previous Session stays valid, which is what makes undo a matter of keeping old GameStates around.

GameController is the thin stateful wrapper around it: it holds the current Session and refuses a second action
while one is still being processed.

Turn sequence:
    select a piece -> (move | attack | swap | revive | mystery box sub-game) -> next player
"""

import logging
import random
import threading
from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Self

from src.core.exceptions import ActionInProgressError
from src.core.shared_types import AttackMode, BoardSizeKey, Color, Difficulty
from src.tactics.board import Board
from src.tactics.bot import CandidateMove, get_bot_move, get_hint_move
from src.tactics.moves import (
    get_valid_attacks,
    get_valid_moves,
    make_move,
    resolves_as_attack,
)
from src.tactics.mystery_box import (
    EndTurn,
    MysteryBoxState,
    MysteryBoxTransition,
    RevivePiece,
    SacrificeHoplite,
    SwapFigures,
    SwapObstacles,
    execute_figure_swap,
    execute_hoplite_sacrifice,
    execute_obstacle_swap,
    execute_revive_piece,
    get_initial_mystery_box_state,
    handle_selection,
    on_confirm_obstacles,
    on_revive_figure,
    open_mystery_box,
)
from src.tactics.position import BOARD_SIZES, Position
from src.tactics.state import GameState, commit_move, end_turn, remove_captured
from src.tactics.swap import execute_swap, get_valid_swap_targets
from src.tactics.zombies import revive_zombie_piece

logger = logging.getLogger("fantasy_tactics.controller")

GAME_OVER = "The game is over."
BOT_TO_MOVE = "Wait for the bot to move."
MYSTERY_BOX_PENDING = "Finish the mystery box first."
NO_MYSTERY_BOX = "No mystery box is active."


@dataclass(frozen=True)
class Session:
    game: GameState
    board_size_key: BoardSizeKey = BoardSizeKey.SMALL
    history: list[GameState] = field(default_factory=list)  # undo stack
    mystery_box: MysteryBoxState = field(default_factory=get_initial_mystery_box_state)
    bot_enabled: bool = False
    bot_difficulty: Difficulty = Difficulty.MEDIUM
    attack_mode: AttackMode = AttackMode.RANGED
    hint: Optional[CandidateMove] = None
    message: Optional[str] = None  # last rejection / notification for the player

    @classmethod
    def new(
        cls,
        board_size_key: BoardSizeKey = BoardSizeKey.SMALL,
        rng: Optional[random.Random] = None,
        bot_enabled: bool = False,
        bot_difficulty: Difficulty = Difficulty.MEDIUM,
    ) -> Self:
        game = GameState.new(BOARD_SIZES[board_size_key], rng)
        return cls(
            game=game,
            board_size_key=board_size_key,
            bot_enabled=bot_enabled,
            bot_difficulty=bot_difficulty,
        )

    def with_changes(self, **changes) -> Self:
        return replace(self, **changes)

    def reject(self, message: str) -> Self:
        return self.with_changes(message=message)

    @property
    def can_undo(self) -> bool:
        if not self.history or self.mystery_box.is_active:
            return False
        # against the bot, undo is offered on White's turn (or once the game is over)
        return not self.bot_enabled or self.game.current_player == Color.WHITE or self.game.game_over

    @property
    def is_bot_turn(self) -> bool:
        return (
            self.bot_enabled
            and self.game.current_player == Color.BLACK
            and not self.game.game_over
            and not self.mystery_box.is_active
        )


# --- ACTIONS ---
@dataclass(frozen=True)
class SelectSquare:
    position: Position


@dataclass(frozen=True)
class MysteryBoxSelect:
    position: Position


@dataclass(frozen=True)
class SelectRevivePiece:
    piece_id: str


@dataclass(frozen=True)
class ConfirmObstacleSelection:
    pass


@dataclass(frozen=True)
class CancelMysteryBox:
    pass


@dataclass(frozen=True)
class ReviveZombie:
    piece_id: str


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class RequestHint:
    pass


@dataclass(frozen=True)
class BotTurn:
    pass


@dataclass(frozen=True)
class Reset:
    board_size_key: Optional[BoardSizeKey] = None


@dataclass(frozen=True)
class ToggleBot:
    pass


@dataclass(frozen=True)
class SetDifficulty:
    difficulty: Difficulty


@dataclass(frozen=True)
class SetAttackMode:
    mode: AttackMode


Action = (
    SelectSquare
    | MysteryBoxSelect
    | SelectRevivePiece
    | ConfirmObstacleSelection
    | CancelMysteryBox
    | ReviveZombie
    | Undo
    | RequestHint
    | BotTurn
    | Reset
    | ToggleBot
    | SetDifficulty
    | SetAttackMode
)

# actions that take a player's turn (a registered player can only send these when it is their turn)
TURN_ACTIONS: tuple[type, ...] = (
    SelectSquare,
    MysteryBoxSelect,
    SelectRevivePiece,
    ConfirmObstacleSelection,
    CancelMysteryBox,
    ReviveZombie,
)


# --- SELECTION FLOW ---
def _select_piece(session: Session, pos: Position) -> Session:
    game = session.game
    board = game.board
    piece = board.piece(pos)
    swaps = get_valid_swap_targets(board, pos) if piece is not None else []
    return session.with_changes(
        game=game.with_changes(
            selected_position=pos,
            valid_moves=get_valid_moves(board, pos, game.board_size),
            valid_attacks=get_valid_attacks(board, pos, game.board_size),
            valid_swaps=swaps,
        ),
        message=None,
    )


def _push_history(session: Session) -> list[GameState]:
    return [*session.history, session.game.clear_selection()]


def _commit_swap(session: Session, target: Position) -> Session:
    game = session.game
    result = execute_swap(game.board, game.selected_position, target)
    if not result.success:
        return session.reject(result.error)
    logger.debug(f"{game.current_player} swapped {game.selected_position} with {target}")
    return session.with_changes(
        game=end_turn(game.with_changes(last_move=None), result.board),
        history=_push_history(session),
        message=None,
    )


def _commit_move(session: Session, target: Position, rng: random.Random) -> Session:
    game = session.game
    from_pos = game.selected_position
    piece = game.board.piece(from_pos)

    is_attack = resolves_as_attack(piece, target, game.valid_moves, game.valid_attacks, session.attack_mode)

    result = make_move(game.board, from_pos, target, game.board_size, is_attack, game.narcs)
    history = _push_history(session)

    if not result.landed_on_mystery_box:
        return session.with_changes(game=commit_move(game, result), history=history, message=None)

    # the move stays committed, the turn only passes once the box is resolved (or cancelled)
    moved = commit_move(game, result, pass_turn=False)
    box = open_mystery_box(rng, moved.board, moved.current_player, moved.captured_pieces, result.move.to_pos)
    if not box.is_active:
        return session.with_changes(game=end_turn(moved), history=history, message="The mystery box was empty.")
    logger.info(f"{moved.current_player} opened a mystery box on {result.move.to_pos}: {box.option}")
    return session.with_changes(game=moved, history=history, mystery_box=box, message=box.describe())


def select_square(session: Session, action: SelectSquare, rng: random.Random) -> Session:
    game = session.game
    pos = action.position
    if game.game_over:
        return session.reject(GAME_OVER)
    if session.bot_enabled and game.current_player == Color.BLACK:
        return session.reject(BOT_TO_MOVE)
    if session.mystery_box.is_active:
        return session.reject(MYSTERY_BOX_PENDING)
    if not game.board.is_in_bounds(pos):
        return session.with_changes(game=game.clear_selection(), hint=None)

    session = session.with_changes(hint=None)
    piece = game.board.piece(pos)

    if game.selected_position is not None:
        if any(swap.position == pos for swap in game.valid_swaps):
            return _commit_swap(session, pos)
        if pos in game.valid_moves or pos in game.valid_attacks:
            return _commit_move(session, pos, rng)

    if piece is not None and piece.color == game.current_player:
        return _select_piece(session, pos)
    return session.with_changes(game=game.clear_selection(), message=None)


# --- MYSTERY BOX FLOW ---
def _apply_effects(session: Session, transition: MysteryBoxTransition) -> Session:
    """Apply the board effects of a transition. Any failing effect rejects the whole transition."""
    game = session.game
    board: Board = game.board
    captured = game.captured_pieces
    player = game.current_player

    for effect in transition.effects:
        match effect:
            case SwapFigures(first, second):
                result = execute_figure_swap(board, first, second)
            case SacrificeHoplite(position):
                result = execute_hoplite_sacrifice(board, position)
            case RevivePiece(piece, position):
                result = execute_revive_piece(board, piece, position, player)
                if result.success:
                    captured = remove_captured(captured, player.opponent, piece.id)
            case SwapObstacles(obstacles, empty_tiles):
                result = execute_obstacle_swap(board, obstacles, empty_tiles)
            case EndTurn():
                continue
        if not result.success:
            return session.reject(result.error)
        board = result.board

    game = game.with_changes(board=board, captured_pieces=captured)
    if transition.completed:
        game = end_turn(game)
        logger.info(f"{player} resolved the mystery box")
    return session.with_changes(game=game, mystery_box=transition.state, message=None)


def _resolve(session: Session, transition: MysteryBoxTransition) -> Session:
    if transition.error is not None:
        return session.reject(transition.error)
    return _apply_effects(session, transition)


def mystery_box_select(session: Session, action: MysteryBoxSelect, rng: random.Random) -> Session:
    if not session.mystery_box.is_active:
        return session.reject(NO_MYSTERY_BOX)
    game = session.game
    transition = handle_selection(session.mystery_box, game.board, action.position, game.current_player)
    return _resolve(session, transition)


def select_revive_piece(session: Session, action: SelectRevivePiece, rng: random.Random) -> Session:
    if not session.mystery_box.is_active:
        return session.reject(NO_MYSTERY_BOX)
    return _resolve(session, on_revive_figure(session.mystery_box, action.piece_id))


def confirm_obstacle_selection(
    session: Session, action: ConfirmObstacleSelection, rng: random.Random
) -> Session:
    if not session.mystery_box.is_active:
        return session.reject(NO_MYSTERY_BOX)
    return _resolve(session, on_confirm_obstacles(session.mystery_box))


def cancel_mystery_box(session: Session, action: CancelMysteryBox, rng: random.Random) -> Session:
    """The triggering move stays on the board. The turn passes as if the box had been resolved."""
    if not session.mystery_box.is_active:
        return session.reject(NO_MYSTERY_BOX)
    logger.info(f"{session.game.current_player} cancelled the mystery box")
    return session.with_changes(
        game=end_turn(session.game),
        mystery_box=get_initial_mystery_box_state(),
        message="Mystery Box action cancelled.",
    )


# --- OTHER PLAYER ACTIONS ---
def revive_zombie(session: Session, action: ReviveZombie, rng: random.Random) -> Session:
    game = session.game
    if game.game_over:
        return session.reject(GAME_OVER)
    if session.mystery_box.is_active:
        return session.reject(MYSTERY_BOX_PENDING)
    if session.bot_enabled and game.current_player == Color.BLACK:
        return session.reject(BOT_TO_MOVE)

    result = revive_zombie_piece(
        game.board, game.board_size, game.captured_pieces, game.current_player, action.piece_id
    )
    if not result.success:
        return session.reject(result.error)

    captured = remove_captured(game.captured_pieces, game.current_player, action.piece_id)
    logger.info(f"{game.current_player} revived {action.piece_id} as a zombie on {result.position}")
    return session.with_changes(
        game=end_turn(game.with_changes(captured_pieces=captured), result.board),
        history=_push_history(session),
        hint=None,
        message=None,
    )


def undo(session: Session, action: Undo, rng: random.Random) -> Session:
    if session.mystery_box.is_active:
        return session.reject(MYSTERY_BOX_PENDING)
    if not session.history:
        return session.reject("Nothing to undo.")
    if not session.can_undo:
        return session.reject(BOT_TO_MOVE)
    *remaining, previous = session.history
    return session.with_changes(game=previous.clear_selection(), history=remaining, hint=None, message=None)


def request_hint(session: Session, action: RequestHint, rng: random.Random) -> Session:
    game = session.game
    if game.game_over:
        return session.reject(GAME_OVER)
    if game.current_player != Color.WHITE or session.mystery_box.is_active:
        return session.reject("Hints are only available on White's turn.")
    hint = get_hint_move(game.board, game.board_size, game.narcs)
    return session.with_changes(hint=hint, message=None if hint else "No move available.")


def bot_turn(session: Session, action: BotTurn, rng: random.Random) -> Session:
    """The bot plays Black. Landing on a mystery box spends it without opening it."""
    if not session.is_bot_turn:
        return session
    game = session.game
    choice = get_bot_move(game.board, session.bot_difficulty, game.board_size, rng, game.narcs)
    if choice is None:
        return session.reject("The bot has no move.")
    result = make_move(game.board, choice.from_pos, choice.to_pos, game.board_size, choice.is_attack, game.narcs)
    logger.info(f"Bot ({session.bot_difficulty}) played {choice.from_pos} -> {result.move.to_pos}")
    return session.with_changes(game=commit_move(game, result), message=None)


# --- SETTINGS ---
def reset(session: Session, action: Reset, rng: random.Random) -> Session:
    key = action.board_size_key or session.board_size_key
    fresh = Session.new(key, rng, session.bot_enabled, session.bot_difficulty)
    return fresh.with_changes(attack_mode=session.attack_mode)


def toggle_bot(session: Session, action: ToggleBot, rng: random.Random) -> Session:
    return session.with_changes(bot_enabled=not session.bot_enabled)


def set_difficulty(session: Session, action: SetDifficulty, rng: random.Random) -> Session:
    return session.with_changes(bot_difficulty=action.difficulty)


def set_attack_mode(session: Session, action: SetAttackMode, rng: random.Random) -> Session:
    return session.with_changes(attack_mode=action.mode)


# -- STRATEGY PATTERN: ONE HANDLER PER ACTION ---
ActionHandler = Callable[[Session, Action, random.Random], Session]
ACTION_HANDLERS: dict[type, ActionHandler] = {
    SelectSquare: select_square,
    MysteryBoxSelect: mystery_box_select,
    SelectRevivePiece: select_revive_piece,
    ConfirmObstacleSelection: confirm_obstacle_selection,
    CancelMysteryBox: cancel_mystery_box,
    ReviveZombie: revive_zombie,
    Undo: undo,
    RequestHint: request_hint,
    BotTurn: bot_turn,
    Reset: reset,
    ToggleBot: toggle_bot,
    SetDifficulty: set_difficulty,
    SetAttackMode: set_attack_mode,
}


def reduce(session: Session, action: Action, rng: random.Random) -> Session:
    """Compute the next session. Unknown action types are a programming error."""
    handler = ACTION_HANDLERS[type(action)]
    return handler(session, action, rng)


class GameController:
    """Holds the current session of a single game and serializes the actions sent to it."""

    def __init__(self, session: Session, rng: Optional[random.Random] = None) -> None:
        self.session = session
        self.rng = rng or random.Random()
        self._lock = threading.Lock()

    def dispatch(self, action: Action) -> Session:
        if not self._lock.acquire(blocking=False):
            raise ActionInProgressError("Another action is still being processed for this game")
        try:
            self.session = reduce(self.session, action, self.rng)
        finally:
            self._lock.release()
        return self.session

    def play_bot_turn(self) -> Session:
        """Let the bot move if it is its turn. Does nothing otherwise."""
        if not self.session.is_bot_turn:
            return self.session
        return self.dispatch(BotTurn())
