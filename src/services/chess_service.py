"""Orchestration of communication from API layer to business logic and storage layers (and the reverse direction)."""

import logging
from typing import Callable, Optional
from uuid import UUID

from src.api.models import (
    CreateGameRequest,
    DrawbackInfo,
    GameRequest,
    GameView,
    LegalMovesResponse,
    MoveRequest,
    PlayerRequest,
    RevealResponse,
)
from src.chess.game import GameSession
from src.chess.moves import Move
from src.chess.pieces import Color as ChessColor
from src.chess.pieces import PieceType as ChessPieceType
from src.chess.square import Square
from src.core.exceptions import NotYourTurnError, SessionNotFoundError
from src.core.models import GameModel
from src.core.shared_types import Color
from src.drawbacks.base import Drawback
from src.drawbacks.registry import DEFAULT_REGISTRY, DrawbackRegistry
from src.services.session_store import SessionStore

_LOGGER = logging.getLogger(__name__)


class ChessService:
    """Orchestration of layers for drawback chess."""

    def __init__(self, store: SessionStore, registry: DrawbackRegistry = DEFAULT_REGISTRY) -> None:
        self.store = store
        self.registry = registry

    # -- API logic ---
    def create_game(self, request: CreateGameRequest) -> tuple[UUID, GameView]:
        """Start a new game. The returned view is the one of an outside observer: both drawbacks hidden."""

        # Use info in CreateGameRequest to create a new GameSession, and convert into GameModel
        if request.settings is not None:
            session = GameSession.from_settings(request.settings, registry=self.registry)
        else:
            session = GameSession.new(
                request.white_drawback,
                request.black_drawback,
                starting_fen=request.starting_fen,
                registry=self.registry,
            )
        created_game_data = session.to_model()

        # Store the GameModel
        _, game_id = self.store.create_game(created_game_data)
        _LOGGER.info("Created game %s", game_id)

        return game_id, self._create_game_view(game_id, session, perspective=None)

    def get_game(self, request: PlayerRequest) -> GameView:
        """
        Retrieve current game state, as the requesting player may see it.
        ----
        Used in "polling" loop by frontend to check when it is the player's turn for instance.
        """
        session = self._load_session(request.game_id)
        return self._create_game_view(request.game_id, session, perspective=request.color)

    def legal_moves(self, request: PlayerRequest) -> LegalMovesResponse:
        """Retrieve the legal moves (UCI). Only the player to move has any."""

        session = self._load_session(request.game_id)
        self._assert_your_turn(session, request.color)
        return LegalMovesResponse(
            game_id=request.game_id,
            color=request.color,
            legal_moves=sorted(move.uci for move in session.legal_moves()),
        )

    def make_move(self, request: MoveRequest) -> GameView:
        """Make a move attempt."""

        # Parse data in MoveRequest to a Move
        move = Move(
            Square.from_algebraic(request.from_square),
            Square.from_algebraic(request.to_square),
            promote_to=ChessPieceType[request.promote_to.name] if request.promote_to else None,
        )

        def _play(session: GameSession) -> None:
            self._assert_your_turn(session, request.color)
            session.apply_move(move)

        session = self._update(request.game_id, _play)
        return self._create_game_view(request.game_id, session, perspective=request.color)

    def resign(self, request: PlayerRequest) -> GameView:
        session = self._update(request.game_id, lambda s: s.resign(_to_chess_color(request.color)))
        return self._create_game_view(request.game_id, session, perspective=request.color)

    def offer_draw(self, request: PlayerRequest) -> GameView:
        session = self._update(request.game_id, lambda s: s.offer_draw(_to_chess_color(request.color)))
        return self._create_game_view(request.game_id, session, perspective=request.color)

    def accept_draw(self, request: PlayerRequest) -> GameView:
        session = self._update(request.game_id, lambda s: s.accept_draw(_to_chess_color(request.color)))
        return self._create_game_view(request.game_id, session, perspective=request.color)

    def agree_to_reveal(self, request: PlayerRequest) -> GameView:
        session = self._update(request.game_id, lambda s: s.agree_to_reveal(_to_chess_color(request.color)))
        return self._create_game_view(request.game_id, session, perspective=request.color)

    def reveal_drawbacks(self, request: GameRequest, mutual_agreement: bool = False) -> RevealResponse:
        """Both drawbacks, once the game is over or both players agreed to see them."""
        session = self._update(request.game_id, lambda s: s.reveal_drawbacks(mutual_agreement))
        return RevealResponse(
            game_id=request.game_id,
            drawbacks={
                color.name.lower(): _drawback_info(drawback)
                for color, drawback in session.reveal_drawbacks().items()
            },
        )

    def list_drawbacks(self) -> list[DrawbackInfo]:
        """Everything a game can be configured with, in index order."""
        return [_drawback_info(drawback) for drawback in self.registry]

    def delete_game(self, request: GameRequest) -> None:
        """Handle a request to delete a game record."""
        with self.store.lock(request.game_id):
            if self.store.delete_game(request.game_id) is None:
                raise SessionNotFoundError(f"Game with game_id={request.game_id} not found.")
        _LOGGER.info("Deleted game %s", request.game_id)

    # -- Internal helpers --
    def _update(self, game_id: UUID, action: Callable[[GameSession], object]) -> GameSession:
        """
        Apply an action to a game under that game's lock
        ----

        1. Retrieve the stored GameModel and create a GameSession from it
        2. Perform the action (raising leaves the stored game untouched)
        3. Capture the updated state in a GameModel and store it (the game must still be there)
        """
        with self.store.lock(game_id):
            session = self._load_session(game_id)
            action(session)
            if self.store.update_game(game_id, session.to_model()) is None:
                raise SessionNotFoundError(f"Game with {game_id=} was deleted while being updated.")
        return session

    def _load_session(self, game_id: UUID) -> GameSession:
        return GameSession.from_model(self._fetch_game(game_id), registry=self.registry)

    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the store and raise error if it fails."""
        game_model = self.store.get_game(game_id)
        if game_model is None:
            raise SessionNotFoundError(f"Game with {game_id=} not found.")
        return game_model

    @staticmethod
    def _assert_your_turn(session: GameSession, color: Color) -> None:
        """You must wait for your turn before calculating legal moves / making a move."""
        if _to_chess_color(color) != session.color_to_move:
            raise NotYourTurnError(
                f"It is {session.color_to_move.name.lower()}'s turn, not {color}'s."
            )

    def _create_game_view(
        self, game_id: UUID, session: GameSession, perspective: Optional[Color]
    ) -> GameView:
        """Convert a GameSession into what the given player (None: nobody in particular) may see."""
        if perspective is None:
            visible = {
                color: (player.drawback if session.drawbacks_revealed else None)
                for color, player in session.players.items()
            }
        else:
            visible = session.visible_drawbacks(_to_chess_color(perspective))

        outcome = session.outcome
        return GameView(
            game_id=game_id,
            perspective=perspective,
            starting_fen=session.starting_board.to_fen(),
            fen_state=session.board.to_fen(),
            move_history=[move.uci for move in session.moves],
            color_to_move=_to_transport_color(session.color_to_move),
            in_check=session.is_check(),
            status=outcome.status,
            reason=outcome.reason,
            drawbacks={
                color.name.lower(): (_drawback_info(drawback) if drawback is not None else None)
                for color, drawback in visible.items()
            },
            drawbacks_revealed=session.drawbacks_revealed,
            draw_offered_by=(
                _to_transport_color(session.draw_offered_by) if session.draw_offered_by else None
            ),
        )


def _to_chess_color(color: Color) -> ChessColor:
    return ChessColor[color.name]


def _to_transport_color(color: ChessColor) -> Color:
    return Color[color.name]


def _drawback_info(drawback: Drawback) -> DrawbackInfo:
    return DrawbackInfo(
        identifier=drawback.identifier,
        name=drawback.name,
        description=drawback.description,
    )
