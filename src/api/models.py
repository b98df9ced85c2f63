"""Requests and Response models"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.chess.fen import has_one_king_per_color, is_valid_fen, is_valid_square
from src.core.config import GameSettings
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, OutcomeReason, OutcomeStatus, PieceType

PieceColor = str


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    """Drawbacks by identifier. Leave them out to get plain chess, or pass full settings (which then decide everything)."""

    white_drawback: str = "none"
    black_drawback: str = "none"
    starting_fen: Optional[str] = None
    settings: Optional[GameSettings] = None

    @field_validator("starting_fen")
    @classmethod
    def validate_starting_fen(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value

        value = value.strip()
        parts = value.split(" ")
        if len(parts) != 6:
            raise InvalidRequestError(
                "FEN string must contain 6 space-separated parts."
            )
        if not is_valid_fen(value):
            raise InvalidRequestError(f"Cannot interpret starting_fen: {value!r} as FEN.")
        if not has_one_king_per_color(parts[0]):
            raise InvalidRequestError(
                f"Starting position needs exactly one king per color: {value!r}"
            )
        return value


class PlayerRequest(BaseModel):
    """Anything a single player asks about (or does to) one game."""

    game_id: UUID
    color: Color


class MoveRequest(BaseModel):
    game_id: UUID
    color: Color
    from_square: str
    to_square: str
    promote_to: Optional[PieceType] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        value = value.strip().lower()
        if not is_valid_square(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value

    @field_validator("promote_to")
    @classmethod
    def validate_promotion(cls, value: Optional[PieceType]) -> Optional[PieceType]:
        if value in (PieceType.PAWN, PieceType.KING):
            raise InvalidRequestError(f"Cannot promote to a {value}.")
        return value


class GameRequest(BaseModel):
    game_id: UUID


# --- RESPONSE MODELS ---
class DrawbackInfo(BaseModel):
    identifier: str
    name: str
    description: str


class GameView(BaseModel):
    """
    A game as one player (or, with `perspective` None, an outside observer) may see it.
    Hidden drawbacks are None.
    """

    game_id: UUID
    perspective: Optional[Color]
    starting_fen: str
    fen_state: str
    move_history: list[str]
    color_to_move: Color
    in_check: bool
    status: OutcomeStatus
    reason: Optional[OutcomeReason]
    drawbacks: dict[PieceColor, Optional[DrawbackInfo]]
    drawbacks_revealed: bool
    draw_offered_by: Optional[Color] = None


class LegalMovesResponse(BaseModel):
    game_id: UUID
    color: Color
    legal_moves: list[str]


class RevealResponse(BaseModel):
    game_id: UUID
    drawbacks: dict[PieceColor, DrawbackInfo]
