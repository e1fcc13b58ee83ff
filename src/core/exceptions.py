"""
Custom exceptions.

Everything raised on purpose inherits from GameError, so the API layer can catch a single type and map the subclasses onto status codes.
"""


class GameError(Exception):
    """Top level exception for anything going wrong while playing / managing a game."""


class GameStateError(GameError):
    """The game is not in a state that allows the requested operation (not started, already finished, etc.)"""


class NotYourTurnError(GameError):
    """A registered player attempted to act while the opponent is to move."""


class InvalidRequestError(GameError):
    """Request could be parsed, but the values make no sense for this game."""


class RepositoryError(GameError):
    """Persistence layer could not find / store the requested record."""


class ActionInProgressError(GameError):
    """A second action arrived for a session while the previous one was still being processed."""


class BoardContractError(GameError):
    """
    The engine was called with a board that violates its contract (ex. no piece on the square a move starts from).

    NOTE: A correct caller never triggers this one. It signals a programming error, not a recoverable condition.
    """


class InvalidLayoutError(GameError):
    """Text diagram of a board could not be parsed."""
