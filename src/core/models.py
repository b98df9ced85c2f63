"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
(Decouples the data model specific to the API layer or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from typing import Optional

# Type aliases to make GameModel easier to read
PieceColor = str
DrawbackId = str


@dataclass
class GameModel:
    """
    Transport-safe snapshot of a game session.

    The game itself is recovered by replaying `moves_uci` from `starting_fen`. `turn_rolls` holds the per-turn roll
    (None where no drawback needed one) for every turn played so far plus the current one, so replays see the same dice.
    """

    starting_fen: str
    current_fen: str
    moves_uci: list[str]
    drawbacks: dict[PieceColor, DrawbackId]
    status: str
    reason: Optional[str] = None
    turn_rolls: list[Optional[int]] = field(default_factory=list)
    reveal_agreed: list[PieceColor] = field(default_factory=list)
    draw_offered_by: Optional[PieceColor] = None
    rng_seed: Optional[int] = None
    threefold_repetition: bool = True
    fifty_move_rule: bool = True
