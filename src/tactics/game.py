"""
The Game class is the entrypoint into the domain layer for the service layer.
It knows who plays which color and whether the game is open, running or finished, and checks that a player only acts
on their own turn. Everything about the rules is delegated to the session controller.
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional, Self

from src.core.exceptions import GameStateError, InvalidRequestError, NotYourTurnError
from src.core.models import GameModel
from src.core.shared_types import BoardSizeKey, Color, Difficulty, Status
from src.tactics.controller import (
    TURN_ACTIONS,
    Action,
    GameController,
    RequestHint,
    Session,
    Undo,
)
from src.tactics.snapshot import session_from_dict, session_to_dict

logger = logging.getLogger("fantasy_tactics.game")

BOT_PLAYER_NAME = "bot"


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    session: Session
    players: dict[Color, str]
    status: Status
    vs_bot: bool = False

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """Define how to construct a Game from the information the Service layer actually has"""
        if model.status not in Status._value2member_map_:
            raise GameStateError(
                f"Invalid status code: {model.status!r}. \nPick one from {','.join(status.value for status in Status)}"
            )
        players = {
            color: model.registered_players[str(color)]
            for color in Color
            if str(color) in model.registered_players
        }
        return cls(
            session=session_from_dict(model.session),
            players=players,
            status=Status(model.status),
            vs_bot=model.vs_bot,
        )

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""
        return GameModel(
            board_size_key=str(self.session.board_size_key),
            registered_players={str(color): name for color, name in self.players.items()},
            status=str(self.status),
            vs_bot=self.vs_bot,
            session=session_to_dict(self.session),
        )

    @classmethod
    def new_game(
        cls,
        player: str,
        color: str = "white",
        board_size_key: BoardSizeKey = BoardSizeKey.SMALL,
        vs_bot: bool = False,
        difficulty: Difficulty = Difficulty.MEDIUM,
        rng: Optional[random.Random] = None,
    ) -> Self:
        """
        To start a new game with the player using the pieces with the indicated color.
        Against the bot, the player always plays White and the game starts right away.
        """
        if color not in Color._value2member_map_:
            raise GameStateError(
                f"Cannot create new game. Color {color} not in {','.join(c.value for c in Color)}."
            )
        player_color = Color(color)
        session = Session.new(board_size_key, rng, bot_enabled=vs_bot, bot_difficulty=difficulty)

        if vs_bot:
            if player_color != Color.WHITE:
                raise GameStateError("Against the bot you play White.")
            players = {Color.WHITE: player, Color.BLACK: BOT_PLAYER_NAME}
            return cls(session, players, Status.IN_PROGRESS, vs_bot=True)
        return cls(session, {player_color: player}, Status.WAITING_FOR_PLAYERS)

    @property
    def winner(self) -> Optional[str]:
        winner_color = self.session.game.winner
        if not self.session.game.game_over or winner_color is None:
            return None
        return self.players.get(winner_color)

    def register_player(self, player: str) -> None:
        """Registering the 2nd player to an open game"""
        if self.status != Status.WAITING_FOR_PLAYERS:
            raise GameStateError(
                f"Cannot join this game. Game is not accepting new players. status: {self.status}"
            )
        opponent_color = list(self.players.keys())[0]
        self.players[opponent_color.opponent] = player
        self.status = Status.IN_PROGRESS

    def player_color(self, player: str) -> Color:
        for color, name in self.players.items():
            if name == player:
                return color
        raise InvalidRequestError(f"{player} is not playing this game")

    def act(self, player: str, action: Action, rng: Optional[random.Random] = None) -> Session:
        """
        Apply an action on behalf of a player.
        ----

        1. the game must be running (Undo is also allowed once it finished)
        2. turn-taking actions require the player's turn, a hint is only given to the player with the white pieces
        3. let the controller compute the next session
        4. against the bot, let it answer right away
        5. update the status
        """
        if self.status == Status.WAITING_FOR_PLAYERS:
            raise GameStateError(f"Game is not in progress. status: {self.status}")
        if self.status == Status.FINISHED and not isinstance(action, Undo):
            raise GameStateError(f"Game is not in progress. status: {self.status}")

        color = self.player_color(player)
        if isinstance(action, TURN_ACTIONS) and color != self.session.game.current_player:
            raise NotYourTurnError(f"It is not your turn, {player}. {self.session.game.current_player} is to move.")
        if isinstance(action, RequestHint) and color != Color.WHITE:
            raise NotYourTurnError("Hints are only available for White.")

        controller = GameController(self.session, rng)
        controller.dispatch(action)
        if self.vs_bot:
            controller.play_bot_turn()
        self.session = controller.session
        self._update_status()
        return self.session

    def _update_status(self) -> None:
        previous = self.status
        self.status = Status.FINISHED if self.session.game.game_over else Status.IN_PROGRESS
        if previous != self.status:
            logger.info(f"Game status changed: {previous} -> {self.status} (winner: {self.winner})")
