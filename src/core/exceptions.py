"""
Custom exceptions used across layers.

Everything deriving from GameError is a caller-facing rejection: the state of the game is left untouched.
DrawbackFaultError is NOT a GameError. It signals a programming defect inside a drawback's hooks.
"""


class GameError(Exception):
    """Root of all expected (recoverable) errors."""


class InvalidFENError(GameError):
    """String cannot be interpreted as FEN, or describes an unplayable starting position."""


class InvalidRequestError(GameError):
    """Request data could not be validated. Raised from pydantic validators (propagates as is, not wrapped in a ValidationError)."""


class IllegalMoveShapeError(GameError):
    """The move is geometrically impossible for the piece standing on its origin square."""


class IllegalMoveError(GameError):
    """The move is not part of the legal moves of the side to move."""


class GameStateError(GameError):
    """The requested action does not fit the current state of the game."""


class GameAlreadyOverError(GameStateError):
    """The game has ended. No more moves, resignations or draw agreements."""


class RevealNotAllowedError(GameStateError):
    """Drawbacks stay hidden while the game is running (unless both players agree)."""


class NotYourTurnError(GameError):
    """A player requested something only the player to move can do."""


class UnknownDrawbackError(GameError):
    """No drawback registered under the requested identifier, name or index."""


class SessionNotFoundError(GameError):
    """No game session stored under the requested id."""


class DrawbackFaultError(RuntimeError):
    """A drawback hook crashed or broke its contract. Internal defect, never a player error."""
