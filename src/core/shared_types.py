"""
Type definitions used across layers
"""

from enum import StrEnum

# --- NOTE: the domain layer (src/chess) has its own Color enum. These string enums are the transport-safe versions.


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


class OutcomeStatus(StrEnum):
    IN_PROGRESS = "in progress"
    WHITE_WINS = "white wins"
    BLACK_WINS = "black wins"
    DRAW = "draw"


class OutcomeReason(StrEnum):
    CHECKMATE = "checkmate"
    DRAWBACK_LOSS_CONDITION = "drawback loss condition"
    STALEMATE = "stalemate"
    AGREEMENT = "agreement"
    RESIGNATION = "resignation"
    THREEFOLD_REPETITION = "threefold repetition"
    FIFTY_MOVE_RULE = "fifty move rule"
