from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from src.api.models import CreateGameRequest, GameView, MoveRequest, PlayerRequest
from src.core.config import GameSettings
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, OutcomeStatus, PieceType


@pytest.fixture
def mock_id() -> UUID:
    return uuid4()


# -- Validation - CreateGameRequest --
def test_valid_fen() -> None:
    """Test that CreateGameRequest accepts a valid FEN string."""

    valid_fen = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
    request = CreateGameRequest(starting_fen=valid_fen)
    assert request.starting_fen == valid_fen


def test_fen_gets_stripped() -> None:
    request = CreateGameRequest(starting_fen="  4k3/8/8/8/8/8/8/4K3 w - - 0 1 ")
    assert request.starting_fen == "4k3/8/8/8/8/8/8/4K3 w - - 0 1"


def test_defaults() -> None:
    """Should be able to not supply anything: plain chess from the canonical position."""
    request = CreateGameRequest()
    assert request.starting_fen is None
    assert request.white_drawback == "none"
    assert request.black_drawback == "none"
    assert request.settings is None


def test_full_settings() -> None:
    request = CreateGameRequest.model_validate(
        {"settings": {"white": {"drawback": {"name": "Skittish"}}, "rng_seed": 3}}
    )
    assert isinstance(request.settings, GameSettings)
    assert request.settings.white.drawback.name == "Skittish"
    assert request.settings.rng_seed == 3


@pytest.mark.parametrize(
    "invalid_fen",
    [
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0",  # only 5 space-separated values
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1 extra",  # too many space-separated values
        " ".join(["mock"] * 6),  # right shape, wrong content
        "8/8/8/8/8/8/8/4K3 w - - 0 1",  # no black king
        "4k3/8/8/8/8/8/8/3KK3 w - - 0 1",  # two white kings
    ],
)
def test_invalid_fen(invalid_fen: str) -> None:
    """Anything that cannot serve as a starting position."""

    with pytest.raises(InvalidRequestError):
        _ = CreateGameRequest(starting_fen=invalid_fen)


# -- Validation - PlayerRequest --
def test_color_from_transport_value(mock_id: UUID) -> None:
    request = PlayerRequest.model_validate({"game_id": str(mock_id), "color": "black"})
    assert request.game_id == mock_id
    assert request.color == Color.BLACK


def test_unknown_color(mock_id: UUID) -> None:
    with pytest.raises(ValidationError):
        _ = PlayerRequest.model_validate({"game_id": str(mock_id), "color": "rainbow"})


# -- Validation - MoveRequest --
def test_valid_square_names(mock_id: UUID) -> None:
    """Test that MoveRequest accepts correctly written squares in algebraic notation."""
    e2 = "e2"
    e4 = "E4"
    request = MoveRequest(game_id=mock_id, color=Color.WHITE, from_square=e2, to_square=e4)
    assert request.from_square == "e2"
    assert request.to_square == "e4"
    assert request.promote_to is None


@pytest.mark.parametrize(
    "square",
    [
        "nonsense",  # anything more than two characters.
        "11",  # First character is not a letter
        "aa",  # second character is not a number
        "i1",  # off the board
        "a9",
    ],
)
def test_invalid_from_square(mock_id: UUID, square: str) -> None:
    """Test that an exception is raised when using invalid square name."""
    e2 = "e2"

    with pytest.raises(InvalidRequestError):
        _ = MoveRequest(game_id=mock_id, color=Color.WHITE, from_square=square, to_square=e2)


@pytest.mark.parametrize(
    "square",
    [
        "nonsense",  # anything more than two characters.
        "11",  # First character is not a letter
        "aa",  # second character is not a number
    ],
)
def test_invalid_to_square(mock_id: UUID, square: str) -> None:
    """Test that an exception is raised when using invalid square name."""
    e2 = "e2"
    with pytest.raises(InvalidRequestError):
        _ = MoveRequest(game_id=mock_id, color=Color.WHITE, from_square=e2, to_square=square)


@pytest.mark.parametrize("piece_type", [PieceType.QUEEN, PieceType.ROOK, PieceType.BISHOP, PieceType.KNIGHT])
def test_valid_promotion(mock_id: UUID, piece_type: PieceType) -> None:
    request = MoveRequest(
        game_id=mock_id, color=Color.WHITE, from_square="e7", to_square="e8", promote_to=piece_type
    )
    assert request.promote_to == piece_type


@pytest.mark.parametrize("piece_type", [PieceType.PAWN, PieceType.KING])
def test_invalid_promotion(mock_id: UUID, piece_type: PieceType) -> None:
    with pytest.raises(InvalidRequestError):
        _ = MoveRequest(
            game_id=mock_id, color=Color.WHITE, from_square="e7", to_square="e8", promote_to=piece_type
        )


# -- Responses --
def test_game_view_serializes_transport_values(mock_id: UUID) -> None:
    view = GameView(
        game_id=mock_id,
        perspective=Color.WHITE,
        starting_fen="4k3/8/8/8/8/8/8/4K3 w - - 0 1",
        fen_state="4k3/8/8/8/8/8/8/4K3 w - - 0 1",
        move_history=[],
        color_to_move=Color.WHITE,
        in_check=False,
        status=OutcomeStatus.IN_PROGRESS,
        reason=None,
        drawbacks={"white": None, "black": None},
        drawbacks_revealed=False,
    )
    dumped = view.model_dump(mode="json")
    assert dumped["status"] == "in progress"
    assert dumped["color_to_move"] == "white"
    assert dumped["draw_offered_by"] is None
