"""
Drawbacks: a secret rule attached to one player
----

A Drawback is a bundle of optional hooks (strategy pattern, the same way the movement rules in src/chess/moves.py are).
Any hook left out falls back to 'no restriction'. Hooks are pure: they read the board and history, never change them.

* filter_moves: take away (some of) the owner's moves
* can_capture_king: asked on the ATTACKER's drawback. May this piece of the owner's capture the enemy king on that square?
    Returning False is what lets a king stand on a square that is attacked, but not really threatened (relaxed check).
* check_loss_condition: evaluated after every move. An outcome other than None ends the game on the spot.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from src.chess.board import Board
from src.chess.moves import AcceptedMove, Move
from src.chess.outcome import GameOutcome
from src.chess.pieces import Color
from src.chess.square import Square

MoveHistory = tuple[AcceptedMove, ...]


@dataclass(frozen=True)
class TurnContext:
    """What the engine knows about the current turn, beyond the board itself."""

    history: MoveHistory = ()
    # 'check' as the legality engine defines it: attackers neutralised by their own drawback do not count
    in_check: bool = False
    # outcome of the per-turn roll, for drawbacks that need one (None otherwise)
    turn_roll: Optional[int] = None


FilterMovesFn = Callable[[Board, set[Move], Color, TurnContext], set[Move]]
CanCaptureKingFn = Callable[[Board, Square, Square, Color], bool]
LossConditionFn = Callable[[Board, MoveHistory, Color], Optional[GameOutcome]]


@dataclass(frozen=True)
class Drawback:
    identifier: str
    name: str
    description: str = ""
    # number of distinct outcomes rolled at the start of each of the owner's turns (0: no roll needed)
    turn_roll_outcomes: int = 0
    filter_moves_fn: Optional[FilterMovesFn] = field(default=None, repr=False)
    can_capture_king_fn: Optional[CanCaptureKingFn] = field(default=None, repr=False)
    loss_condition_fn: Optional[LossConditionFn] = field(default=None, repr=False)

    @property
    def needs_turn_roll(self) -> bool:
        return self.turn_roll_outcomes > 0

    def filter_moves(
        self,
        board: Board,
        candidate_moves: set[Move],
        owner_color: Color,
        context: Optional[TurnContext] = None,
    ) -> set[Move]:
        if self.filter_moves_fn is None:
            return set(candidate_moves)
        return self.filter_moves_fn(
            board, set(candidate_moves), owner_color, context or TurnContext()
        )

    def can_capture_king(
        self,
        board: Board,
        attacker_square: Square,
        target_square: Square,
        attacker_color: Color,
    ) -> bool:
        if self.can_capture_king_fn is None:
            return True
        return self.can_capture_king_fn(board, attacker_square, target_square, attacker_color)

    def check_loss_condition(
        self, board: Board, move_history: MoveHistory, owner_color: Color
    ) -> Optional[GameOutcome]:
        if self.loss_condition_fn is None:
            return None
        return self.loss_condition_fn(board, move_history, owner_color)
