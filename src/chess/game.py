"""
The GameSession class will be the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the business logic required to play a turn of drawback chess -->
passes this information to the service layer, which can then pass it onwards to the API layer.

A session is mutated only through apply_move, resign, the draw methods and agree_to_reveal.
Every one of them either succeeds completely, or raises and leaves the session exactly as it was.
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional, Self, Sequence

from src.chess.board import Board, PositionKey
from src.chess.fen import has_one_king_per_color
from src.chess.legality import LegalityEngine
from src.chess.moves import AcceptedMove, Move
from src.chess.outcome import GameOutcome
from src.chess.pieces import AVAILABLE_COLOR_NAMES, Color
from src.core.config import GameSettings
from src.core.exceptions import (
    GameAlreadyOverError,
    GameStateError,
    IllegalMoveError,
    InvalidFENError,
    RevealNotAllowedError,
)
from src.core.models import GameModel
from src.core.shared_types import OutcomeReason, OutcomeStatus
from src.drawbacks.base import Drawback
from src.drawbacks.registry import DEFAULT_REGISTRY, DrawbackRegistry

_LOGGER = logging.getLogger(__name__)

# FIDE: fifty moves by each player, so a hundred half moves without a capture or pawn move
FIFTY_MOVE_HALF_MOVES = 100
REPETITIONS_FOR_DRAW = 3
# only these can end a game without being visible in the move list
OUT_OF_BAND_REASONS = (OutcomeReason.RESIGNATION, OutcomeReason.AGREEMENT)


@dataclass(frozen=True)
class Player:
    color: Color
    drawback: Drawback


@dataclass(frozen=True)
class _Transition:
    """Everything a move changes, computed in full before any of it is committed."""

    board: Board
    record: AcceptedMove
    next_turn_roll: Optional[int]
    legal_moves: set[Move]
    positions: list[PositionKey]
    outcome: GameOutcome


class GameSession:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    def __init__(
        self,
        white_drawback: Drawback,
        black_drawback: Drawback,
        settings: Optional[GameSettings] = None,
        starting_board: Optional[Board] = None,
        turn_rolls: Sequence[Optional[int]] = (),
        replaying: bool = False,
    ) -> None:
        self.settings = settings or GameSettings()
        # a game rebuilt from storage already announced how it ended
        self._replaying = replaying
        if starting_board is None:
            starting_board = (
                Board.from_fen(self.settings.starting_fen)
                if self.settings.starting_fen
                else Board.starting_position()
            )
        if not has_one_king_per_color(starting_board.placement_fen()):
            raise InvalidFENError(
                f"Starting position needs exactly one king per color: {starting_board.to_fen()!r}"
            )

        self.players: dict[Color, Player] = {
            Color.WHITE: Player(Color.WHITE, white_drawback),
            Color.BLACK: Player(Color.BLACK, black_drawback),
        }
        self.engine = LegalityEngine({color: player.drawback for color, player in self.players.items()})
        self.starting_board = starting_board

        self._board = starting_board
        self._history: list[AcceptedMove] = []
        self._positions: list[PositionKey] = [starting_board.position_key()]
        self._rng = random.Random(self.settings.rng_seed)
        # rolls replayed from a stored game take precedence over fresh ones
        self._scripted_rolls: tuple[Optional[int], ...] = tuple(turn_rolls)
        self._turn_rolls: list[Optional[int]] = []
        self._reveal_agreed: set[Color] = set()
        self._draw_offered_by: Optional[Color] = None

        self._turn_roll = self._roll(starting_board.color_to_move, ply=0)
        self._legal_moves = self.engine.legal_moves(starting_board, (), self._turn_roll)
        # a position handed in from outside can already be over
        self._outcome = self.engine.position_outcome(starting_board, self._legal_moves)
        if self._outcome.is_terminal:
            self._legal_moves = set()
            self._log_outcome("Game starts in a finished position: %s", self._outcome)

    @classmethod
    def new(
        cls,
        white_drawback: Drawback | str = "none",
        black_drawback: Drawback | str = "none",
        settings: Optional[GameSettings] = None,
        starting_fen: Optional[str] = None,
        registry: DrawbackRegistry = DEFAULT_REGISTRY,
    ) -> Self:
        """Drawbacks can be given as Drawback objects or by identifier."""
        white = white_drawback if isinstance(white_drawback, Drawback) else registry.get(white_drawback)
        black = black_drawback if isinstance(black_drawback, Drawback) else registry.get(black_drawback)
        starting_board = Board.from_fen(starting_fen) if starting_fen else None
        session = cls(white, black, settings=settings, starting_board=starting_board)
        _LOGGER.debug("New game: white=%s, black=%s", white.identifier, black.identifier)
        return session

    @classmethod
    def from_settings(cls, settings: GameSettings, registry: DrawbackRegistry = DEFAULT_REGISTRY) -> Self:
        white = registry.resolve(settings.white.drawback.name, settings.white.drawback.index)
        black = registry.resolve(settings.black.drawback.name, settings.black.drawback.index)
        return cls.new(white, black, settings=settings, registry=registry)

    # --- QUERIES ---
    @property
    def board(self) -> Board:
        return self._board

    @property
    def color_to_move(self) -> Color:
        return self._board.color_to_move

    @property
    def outcome(self) -> GameOutcome:
        return self._outcome

    @property
    def is_over(self) -> bool:
        return self._outcome.is_terminal

    @property
    def history(self) -> tuple[AcceptedMove, ...]:
        return tuple(self._history)

    @property
    def moves(self) -> tuple[Move, ...]:
        return tuple(record.move for record in self._history)

    @property
    def turn_roll(self) -> Optional[int]:
        """This turn's roll (None when the side to move has no drawback that rolls)."""
        return self._turn_roll

    def legal_moves(self) -> set[Move]:
        """Legal moves of the side to move. A finished game has none."""
        return set(self._legal_moves)

    def is_check(self) -> bool:
        return self.engine.is_check(self._board)

    def replay_board(self) -> Board:
        """Rebuild the current board from the starting position and the recorded moves."""
        board = self.starting_board
        for record in self._history:
            board = board.apply(record.move)
        return board

    # --- PLAYING ---
    def apply_move(self, move: Move | str) -> AcceptedMove:
        """
        Play a move for the side to move
        ----

        1. the game must still be running
        2. the move must be one of this turn's legal moves (matched on UCI, so 'e1g1' finds the castling move)
        3. apply it, and record whether it gives check
        4. loss conditions: mover's drawback first, then the opponent's
        5. otherwise: checkmate or stalemate for the side now to move
        6. otherwise: threefold repetition and the fifty move rule (if enabled)
        """
        if self.is_over:
            raise GameAlreadyOverError(f"The game is over: {self._outcome}")

        chosen = self._match_legal_move(move)
        rng_state = self._rng.getstate()
        try:
            transition = self._transition(chosen)
        except Exception:
            self._rng.setstate(rng_state)
            raise

        self._commit(transition)
        _LOGGER.debug("Accepted %s for %s", chosen.uci, transition.record.mover.name.lower())
        if transition.outcome.is_terminal:
            self._log_outcome("Game over after %s: %s", chosen.uci, transition.outcome)
        return transition.record

    def resign(self, color: Color) -> GameOutcome:
        if self.is_over:
            raise GameAlreadyOverError(f"The game is over: {self._outcome}")
        self._finish(GameOutcome.loss(color, OutcomeReason.RESIGNATION))
        return self._outcome

    def agree_draw(self) -> GameOutcome:
        if self.is_over:
            raise GameAlreadyOverError(f"The game is over: {self._outcome}")
        self._finish(GameOutcome.draw(OutcomeReason.AGREEMENT))
        return self._outcome

    @property
    def draw_offered_by(self) -> Optional[Color]:
        return self._draw_offered_by

    def offer_draw(self, color: Color) -> None:
        """The offer stands until the opponent accepts it, or until the next move is played."""
        if self.is_over:
            raise GameAlreadyOverError(f"The game is over: {self._outcome}")
        self._draw_offered_by = color

    def accept_draw(self, color: Color) -> GameOutcome:
        if self.is_over:
            raise GameAlreadyOverError(f"The game is over: {self._outcome}")
        if self._draw_offered_by != color.opponent:
            raise GameStateError(f"There is no draw offer for {color.name.lower()} to accept.")
        return self.agree_draw()

    # --- SECRECY ---
    def agree_to_reveal(self, color: Color) -> None:
        if self.is_over:
            raise GameAlreadyOverError("The game is over: the drawbacks are revealed already.")
        self._reveal_agreed.add(color)

    @property
    def reveal_agreed(self) -> frozenset[Color]:
        return frozenset(self._reveal_agreed)

    @property
    def drawbacks_revealed(self) -> bool:
        """At the end of the game, or once both players agreed to."""
        return self.is_over or self._reveal_agreed == set(Color)

    def reveal_drawbacks(self, mutual_agreement: bool = False) -> dict[Color, Drawback]:
        if mutual_agreement:
            self._reveal_agreed.update(Color)
        if not self.drawbacks_revealed:
            raise RevealNotAllowedError(
                "Drawbacks stay secret until the game is over, or both players agree to reveal them."
            )
        return {color: player.drawback for color, player in self.players.items()}

    def visible_drawbacks(self, perspective: Color) -> dict[Color, Optional[Drawback]]:
        """What one player may know: their own drawback always, the opponent's only once revealed."""
        return {
            color: (
                player.drawback
                if color == perspective or self.drawbacks_revealed
                else None
            )
            for color, player in self.players.items()
        }

    # --- BOUNDARY ---
    def to_model(self) -> GameModel:
        """Encode into a format the Service layer uses"""
        return GameModel(
            starting_fen=self.starting_board.to_fen(),
            current_fen=self._board.to_fen(),
            moves_uci=[record.move.uci for record in self._history],
            drawbacks={
                color.name.lower(): player.drawback.identifier
                for color, player in self.players.items()
            },
            status=str(self._outcome.status),
            reason=str(self._outcome.reason) if self._outcome.reason is not None else None,
            turn_rolls=[*self._turn_rolls, self._turn_roll],
            reveal_agreed=sorted(color.name.lower() for color in self._reveal_agreed),
            draw_offered_by=self._draw_offered_by.name.lower() if self._draw_offered_by else None,
            rng_seed=self.settings.rng_seed,
            threefold_repetition=self.settings.threefold_repetition,
            fifty_move_rule=self.settings.fifty_move_rule,
        )

    @classmethod
    def from_model(cls, model: GameModel, registry: DrawbackRegistry = DEFAULT_REGISTRY) -> Self:
        """Define how to construct a GameSession from the information the Service layer actually has: replay every move."""

        # Validation
        try:
            status = OutcomeStatus(model.status)
            reason = OutcomeReason(model.reason) if model.reason is not None else None
        except ValueError:
            raise GameStateError(
                f"Invalid outcome: {model.status!r} ({model.reason!r}). \nPick one from {','.join(OutcomeStatus)}"
            ) from None
        missing = [name for name in (c.lower() for c in AVAILABLE_COLOR_NAMES) if name not in model.drawbacks]
        if missing:
            raise GameStateError(f"Stored game lacks a drawback for {', '.join(missing)}")

        # create the GameSession
        settings = GameSettings(
            rng_seed=model.rng_seed,
            threefold_repetition=model.threefold_repetition,
            fifty_move_rule=model.fifty_move_rule,
        )
        session = cls(
            registry.get(model.drawbacks["white"]),
            registry.get(model.drawbacks["black"]),
            settings=settings,
            starting_board=Board.from_fen(model.starting_fen),
            turn_rolls=model.turn_rolls,
            replaying=True,
        )
        for uci in model.moves_uci:
            try:
                session.apply_move(uci)
            except (IllegalMoveError, GameAlreadyOverError) as exc:
                raise GameStateError(f"Stored move {uci!r} cannot be replayed: {exc}") from exc

        try:
            stored_outcome = GameOutcome(status, reason)
        except ValueError as exc:
            raise GameStateError(str(exc)) from exc
        if stored_outcome != session.outcome:
            if session.is_over or stored_outcome.reason not in OUT_OF_BAND_REASONS:
                raise GameStateError(
                    f"Stored outcome {stored_outcome} does not match the replayed game ({session.outcome})"
                )
            session._finish(stored_outcome)

        if session.board.to_fen() != model.current_fen:
            raise GameStateError(
                f"Stored position {model.current_fen!r} does not match the replayed game ({session.board.to_fen()!r})"
            )
        session._reveal_agreed = {_color_from_name(name) for name in model.reveal_agreed}
        if model.draw_offered_by is not None:
            session._draw_offered_by = _color_from_name(model.draw_offered_by)
        session._replaying = False
        return session

    # --- INTERNALS ---
    def _match_legal_move(self, move: Move | str) -> Move:
        uci = move if isinstance(move, str) else move.uci
        uci = uci.strip().lower()
        for legal_move in self._legal_moves:
            if legal_move.uci == uci:
                return legal_move
        _LOGGER.debug("Rejected %s for %s", uci, self.color_to_move.name.lower())
        raise IllegalMoveError(f"{uci!r} is not a legal move for {self.color_to_move.name.lower()}.")

    def _transition(self, move: Move) -> _Transition:
        board = self._board
        record = AcceptedMove.from_move_and_board(move, board)
        new_board = board.apply(move)
        record = record.with_check(self.engine.is_check(new_board))
        history = (*self._history, record)
        positions = [*self._positions, new_board.position_key()]

        next_turn_roll: Optional[int] = None
        legal_moves: set[Move] = set()
        outcome = self.engine.loss_condition_outcome(new_board, history, record.mover)
        if outcome is None:
            next_turn_roll = self._roll(new_board.color_to_move, ply=len(history))
            legal_moves = self.engine.legal_moves(new_board, history, next_turn_roll)
            outcome = self.engine.position_outcome(new_board, legal_moves)
        if not outcome.is_terminal:
            outcome = self._draw_rule_outcome(new_board, positions)
        if outcome.is_terminal:
            legal_moves = set()

        return _Transition(new_board, record, next_turn_roll, legal_moves, positions, outcome)

    def _commit(self, transition: _Transition) -> None:
        self._turn_rolls.append(self._turn_roll)
        self._board = transition.board
        self._history.append(transition.record)
        self._positions = transition.positions
        self._turn_roll = transition.next_turn_roll
        self._legal_moves = transition.legal_moves
        self._outcome = transition.outcome
        self._draw_offered_by = None

    def _finish(self, outcome: GameOutcome) -> None:
        self._outcome = outcome
        self._legal_moves = set()
        self._log_outcome("Game over: %s", outcome)

    def _log_outcome(self, message: str, *args: object) -> None:
        _LOGGER.log(logging.DEBUG if self._replaying else logging.INFO, message, *args)

    def _roll(self, color: Color, ply: int) -> Optional[int]:
        drawback = self.players[color].drawback
        # drawn even while replaying, so a reloaded seeded game carries on with the same stream
        rolled = self._rng.randrange(drawback.turn_roll_outcomes) if drawback.needs_turn_roll else None
        if ply < len(self._scripted_rolls):
            return self._scripted_rolls[ply]
        return rolled

    def _draw_rule_outcome(self, board: Board, positions: list[PositionKey]) -> GameOutcome:
        if self.settings.threefold_repetition and positions.count(board.position_key()) >= REPETITIONS_FOR_DRAW:
            return GameOutcome.draw(OutcomeReason.THREEFOLD_REPETITION)
        if self.settings.fifty_move_rule and board.half_move_clock >= FIFTY_MOVE_HALF_MOVES:
            return GameOutcome.draw(OutcomeReason.FIFTY_MOVE_RULE)
        return GameOutcome.in_progress()


def _color_from_name(name: str) -> Color:
    if name.upper() not in AVAILABLE_COLOR_NAMES:
        raise GameStateError(
            f"Invalid color: {name!r}. Pick one from {','.join(c.lower() for c in AVAILABLE_COLOR_NAMES)}"
        )
    return Color[name.upper()]
