"""
Drawback-aware legality
----

Combines standard chess legality with the drawback of each player:

1. standard legal moves, where 'may the opponent capture my king there?' is answered by the opponent's drawback
    (a king may stand on, or move to, a square attacked only by pieces that are not allowed to capture it)
2. the mover's own drawback then takes away moves (`filter_moves`)
3. check: the king is attacked by at least one piece that IS allowed to capture it
4. checkmate: no legal moves + in check. stalemate: no legal moves + not in check
5. after every move: loss conditions, mover's drawback first, then the opponent's

Drawback hooks are trusted to be total and pure. If one crashes (or hands back moves it was never offered),
that is a defect in the drawback, reported as DrawbackFaultError.
"""

import logging
from typing import Any, Callable, Iterable, Mapping, Optional

from src.chess.board import Board
from src.chess.moves import AcceptedMove, Move
from src.chess.outcome import GameOutcome
from src.chess.pieces import Color
from src.chess.square import Square
from src.chess.standard import CapturePredicate, is_king_exposed, standard_legal_moves
from src.core.exceptions import DrawbackFaultError
from src.core.shared_types import OutcomeReason
from src.drawbacks.base import Drawback, TurnContext

_LOGGER = logging.getLogger(__name__)


class LegalityEngine:
    """Knows both drawbacks at all times. Hiding them from the players is a presentation concern (see GameSession.visible_drawbacks)."""

    def __init__(self, drawbacks: Mapping[Color, Drawback]) -> None:
        missing = [color.name.lower() for color in Color if color not in drawbacks]
        if missing:
            raise ValueError(f"Every player needs a drawback. Missing: {', '.join(missing)}")
        self._drawbacks: dict[Color, Drawback] = dict(drawbacks)

    def drawback_of(self, color: Color) -> Drawback:
        return self._drawbacks[color]

    # --- KING SAFETY ---
    def capture_predicate(self, attacker_color: Color) -> CapturePredicate:
        """The attacker's `can_capture_king` hook, in the shape the standard move generator expects."""
        drawback = self.drawback_of(attacker_color)

        def _can_capture(board: Board, attacker_square: Square, target_square: Square) -> bool:
            allowed = self._run_hook(
                drawback,
                "can_capture_king",
                drawback.can_capture_king,
                board,
                attacker_square,
                target_square,
                attacker_color,
            )
            if not isinstance(allowed, bool):
                raise self._fault(drawback, "can_capture_king", f"returned {allowed!r}, expected a bool")
            return allowed

        return _can_capture

    def is_check(self, board: Board, color: Optional[Color] = None) -> bool:
        """Geometric attacks by pieces that the attacker's drawback forbids to take the king do not count."""
        color = color or board.color_to_move
        return is_king_exposed(board, color, self.capture_predicate(color.opponent))

    # --- MOVES ---
    def standard_moves(self, board: Board) -> set[Move]:
        """Legal moves before the mover's own drawback gets a say."""
        opponent = board.color_to_move.opponent
        return standard_legal_moves(board, self.capture_predicate(opponent))

    def legal_moves(
        self,
        board: Board,
        history: Iterable[AcceptedMove] = (),
        turn_roll: Optional[int] = None,
    ) -> set[Move]:
        mover = board.color_to_move
        candidates = self.standard_moves(board)
        context = TurnContext(
            history=tuple(history),
            in_check=self.is_check(board),
            turn_roll=turn_roll,
        )

        drawback = self.drawback_of(mover)
        filtered = self._run_hook(
            drawback, "filter_moves", drawback.filter_moves, board, candidates, mover, context
        )
        if not isinstance(filtered, (set, frozenset)) or not filtered <= candidates:
            raise self._fault(drawback, "filter_moves", "returned moves it was not offered")
        return set(filtered)

    # --- OUTCOMES ---
    def position_outcome(self, board: Board, legal_moves: set[Move]) -> GameOutcome:
        """Checkmate and stalemate are exactly the two ways of having no legal moves."""
        if legal_moves:
            return GameOutcome.in_progress()
        if self.is_check(board):
            return GameOutcome.loss(board.color_to_move, OutcomeReason.CHECKMATE)
        return GameOutcome.draw(OutcomeReason.STALEMATE)

    def loss_condition_outcome(
        self, board: Board, history: Iterable[AcceptedMove], mover: Color
    ) -> Optional[GameOutcome]:
        """Mover's drawback first, then the opponent's. The first one that fires decides the game."""
        history = tuple(history)
        for owner in (mover, mover.opponent):
            drawback = self.drawback_of(owner)
            outcome = self._run_hook(
                drawback,
                "check_loss_condition",
                drawback.check_loss_condition,
                board,
                history,
                owner,
            )
            if outcome is None:
                continue
            if not isinstance(outcome, GameOutcome):
                raise self._fault(drawback, "check_loss_condition", f"returned {outcome!r}")
            if outcome.is_terminal:
                _LOGGER.debug(
                    "Drawback %s of %s ended the game: %s",
                    drawback.identifier,
                    owner.name.lower(),
                    outcome,
                )
                return outcome
        return None

    # --- HOOK GUARD ---
    def _run_hook(
        self, drawback: Drawback, hook_name: str, hook: Callable[..., Any], *args: Any
    ) -> Any:
        try:
            return hook(*args)
        except Exception as exc:
            raise self._fault(drawback, hook_name, f"raised {type(exc).__name__}: {exc}") from exc

    @staticmethod
    def _fault(drawback: Drawback, hook_name: str, detail: str) -> DrawbackFaultError:
        _LOGGER.error("Drawback %s broke in %s: %s", drawback.identifier, hook_name, detail)
        return DrawbackFaultError(f"Drawback {drawback.identifier!r} {hook_name} {detail}")
