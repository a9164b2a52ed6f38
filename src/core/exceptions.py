"""
Custom exceptions.

Rule violations during play (moving out of turn, into check, ...) are NOT exceptions: the engine
reports those as outcome tags. Exceptions are reserved for requests that do not make sense in the
current state of the session, malformed input, and persistence problems.
"""


class GameError(Exception):
    """Top-level exception for anything going wrong in this application."""


class GameStateError(GameError):
    """The action is not allowed given the current status of the game (game over, promotion pending, ...)."""


class NotYourTurnError(GameError):
    """A player tried to act while it is the opponent's turn."""


class IllegalMoveError(GameError):
    """A move read during playback was rejected by the rules."""


class NotationError(GameError):
    """Text that cannot be interpreted as move notation."""


class InvalidRequestError(GameError):
    """Request data failed validation before reaching the engine."""


class RepositoryError(GameError):
    """Could not find / store a game record."""


class LogFileError(GameError):
    """A game log could not be read or written."""
