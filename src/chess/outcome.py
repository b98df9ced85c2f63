"""How a game stands: still running, won by one side, or drawn (and why)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.chess.pieces import Color
from src.core.shared_types import OutcomeReason, OutcomeStatus

WIN_STATUS: dict[Color, OutcomeStatus] = {
    Color.WHITE: OutcomeStatus.WHITE_WINS,
    Color.BLACK: OutcomeStatus.BLACK_WINS,
}


@dataclass(frozen=True)
class GameOutcome:
    status: OutcomeStatus
    reason: Optional[OutcomeReason] = None

    def __post_init__(self) -> None:
        if (self.status == OutcomeStatus.IN_PROGRESS) != (self.reason is None):
            raise ValueError(
                f"A finished game needs a reason, a running game has none. Got {self.status} / {self.reason}."
            )

    @classmethod
    def in_progress(cls) -> GameOutcome:
        return cls(OutcomeStatus.IN_PROGRESS)

    @classmethod
    def win(cls, winner: Color, reason: OutcomeReason) -> GameOutcome:
        return cls(WIN_STATUS[winner], reason)

    @classmethod
    def loss(cls, loser: Color, reason: OutcomeReason) -> GameOutcome:
        return cls.win(loser.opponent, reason)

    @classmethod
    def draw(cls, reason: OutcomeReason) -> GameOutcome:
        return cls(OutcomeStatus.DRAW, reason)

    @property
    def is_terminal(self) -> bool:
        return self.status != OutcomeStatus.IN_PROGRESS

    @property
    def winner(self) -> Optional[Color]:
        return next(
            (color for color, status in WIN_STATUS.items() if status == self.status),
            None,
        )

    def __str__(self) -> str:
        if not self.is_terminal:
            return str(self.status)
        return f"{self.status} ({self.reason})"
