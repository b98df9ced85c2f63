"""Unit tests for /src/chess/board.py"""

from typing import Callable

import pytest

from src.chess.board import Board, apply
from src.chess.castling import CastlingDirection
from src.chess.moves import Move
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import Square
from src.core.exceptions import IllegalMoveShapeError

BoardFactory = Callable[..., Board]
STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


def _sq(name: str) -> Square:
    return Square.from_algebraic(name)


# --- CREATION ---
def test_creating_board_in_starting_position() -> None:
    board = Board.starting_position()
    assert board.to_fen() == STARTING_FEN
    assert board.piece_at(_sq("e1")) == Piece(PieceType.KING, Color.WHITE)
    assert board.piece_at(_sq("d8")) == Piece(PieceType.QUEEN, Color.BLACK)
    assert all(board.is_empty(Square(file, rank)) for file in range(8) for rank in range(2, 6))
    assert board.color_to_move == Color.WHITE
    assert board.castling_rights == frozenset(CastlingDirection)
    assert board.en_passant_square is None


def test_creating_empty_board() -> None:
    board = Board.empty()
    assert board.occupied() == {}
    assert board.to_fen() == "8/8/8/8/8/8/8/8 w - - 0 1"


def test_board_needs_64_squares() -> None:
    with pytest.raises(ValueError):
        Board(squares=(None,) * 63)


@pytest.mark.parametrize(
    "fen",
    [
        STARTING_FEN,
        "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1",
        "r3k2r/pppq1ppp/2npbn2/4p3/2B1P3/2NP1N2/PPP2PPP/R1BQ1RK1 b kq - 3 9",
        "8/8/8/8/8/8/8/8 w - - 0 1",
    ],
)
def test_fen_roundtrip(fen: str) -> None:
    board = Board.from_fen(fen)
    assert board.to_fen() == fen
    assert Board.from_fen(board.to_fen()) == board


# --- QUERIES ---
def test_starting_material() -> None:
    """8 pawns + 2 knights + 2 bishops + 2 rooks + queen = 39 points"""
    assert Board.starting_position().count_material() == {Color.WHITE: 39, Color.BLACK: 39}


def test_no_material_left(kings_only_board: Board) -> None:
    assert kings_only_board.count_material() == {Color.WHITE: 0, Color.BLACK: 0}


def test_locating_pieces() -> None:
    board = Board.starting_position()
    white_pawns = board.locate(PieceType.PAWN, Color.WHITE)
    assert white_pawns == [Square(file, 1) for file in range(8)]
    assert len(board.locate(PieceType.KNIGHT)) == 4
    assert len(board.squares_of(Color.BLACK)) == 16


@pytest.mark.parametrize("color, king_square", [(Color.WHITE, "e1"), (Color.BLACK, "e8")])
def test_finding_the_king(color: Color, king_square: str) -> None:
    assert Board.starting_position().king_square(color) == _sq(king_square)


def test_no_king(empty_board: Board) -> None:
    assert empty_board.king_square(Color.WHITE) is None


def test_out_of_bounds_is_empty(empty_board: Board) -> None:
    assert empty_board.piece_at(Square(8, 8)) is None


def test_editing_returns_new_board(empty_board: Board) -> None:
    knight = Piece(PieceType.KNIGHT, Color.BLACK)
    with_knight = empty_board.place_piece(knight, _sq("c6"))
    assert with_knight.piece_at(_sq("c6")) == knight
    assert empty_board.is_empty(_sq("c6"))
    assert with_knight.remove_piece(_sq("c6")) == empty_board


def test_position_key_ignores_counters() -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/8/4K3 w - - 0 1")
    later = Board.from_fen("4k3/8/8/8/8/8/8/4K3 w - - 12 40")
    assert board.position_key() == later.position_key()
    assert board.position_key() != Board.from_fen("4k3/8/8/8/8/8/8/4K3 b - - 0 1").position_key()


@pytest.mark.parametrize(
    "fen, counts_en_passant",
    [
        ("rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1", False),  # nobody next to e4
        ("rnbqkbnr/ppp1pppp/8/8/3pP3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 3", True),  # d4 can take
        ("rnbqkbnr/ppp1pppp/8/8/2p1P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 3", False),  # c4 is too far away
        ("4k3/8/8/3pP3/8/8/8/4K3 w - d6 0 1", True),
    ],
)
def test_position_key_only_keeps_en_passant_if_it_can_be_taken(fen: str, counts_en_passant: bool) -> None:
    placement, color, castling, _, *counters = fen.split(" ")
    without = Board.from_fen(" ".join([placement, color, castling, "-", *counters]))
    assert (Board.from_fen(fen).position_key() != without.position_key()) == counts_en_passant


# --- MAKING MOVES ---
def test_apply_is_pure() -> None:
    board = Board.starting_position()
    after = apply(board, Move.from_uci("e2e4"))
    assert board.to_fen() == STARTING_FEN
    assert after.to_fen() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"


def test_making_a_series_of_moves() -> None:
    """Ruy Lopez: 1. e4 e5 2. Nf3 Nc6 3. Bb5"""
    board = Board.starting_position()
    for uci in ["e2e4", "e7e5", "g1f3", "b8c6", "f1b5"]:
        board = board.apply(Move.from_uci(uci))
    assert board.to_fen() == "r1bqkbnr/pppp1ppp/2n5/1B2p3/4P3/5N2/PPPP1PPP/RNBQK2R b KQkq - 3 3"


def test_en_passant_square_only_after_double_push() -> None:
    board = Board.starting_position().apply(Move.from_uci("g1f3"))
    assert board.en_passant_square is None
    board = board.apply(Move.from_uci("d7d5"))
    assert board.en_passant_square == _sq("d6")
    board = board.apply(Move.from_uci("b1c3"))
    assert board.en_passant_square is None


def test_en_passant_removes_passed_pawn(board_from_position: BoardFactory) -> None:
    board = board_from_position("4k3/8/8/3pP3/8/8/8/4K3", en_passant="d6")
    after = board.apply(Move.from_uci("e5d6"))
    assert after.piece_at(_sq("d6")) == Piece(PieceType.PAWN, Color.WHITE)
    assert after.is_empty(_sq("d5"))
    assert after.is_empty(_sq("e5"))
    assert after.half_move_clock == 0


@pytest.mark.parametrize(
    "uci, king_to, rook_from, rook_to",
    [
        ("e1g1", "g1", "h1", "f1"),
        ("e1c1", "c1", "a1", "d1"),
    ],
)
def test_castling_moves_rook(
    board_from_position: BoardFactory, uci: str, king_to: str, rook_from: str, rook_to: str
) -> None:
    board = board_from_position("r3k2r/8/8/8/8/8/8/R3K2R", castling="KQkq")
    after = board.apply(Move.from_uci(uci))
    assert after.piece_at(_sq(king_to)) == Piece(PieceType.KING, Color.WHITE)
    assert after.piece_at(_sq(rook_to)) == Piece(PieceType.ROOK, Color.WHITE)
    assert after.is_empty(_sq(rook_from))
    assert after.is_empty(_sq("e1"))
    assert after.castling_rights == frozenset(
        {CastlingDirection.BLACK_KING_SIDE, CastlingDirection.BLACK_QUEEN_SIDE}
    )


@pytest.mark.parametrize(
    "uci, remaining",
    [
        ("h1h5", "Qkq"),  # rook leaves its corner
        ("a1a8", "Kk"),  # rook takes the rook in the opposite corner
        ("e1e2", "kq"),  # king moves
    ],
)
def test_revoking_castling_rights(board_from_position: BoardFactory, uci: str, remaining: str) -> None:
    board = board_from_position("r3k2r/8/8/8/8/8/8/R3K2R", castling="KQkq")
    after = board.apply(Move.from_uci(uci))
    assert after.to_fen().split(" ")[2] == remaining


def test_promotion(board_from_position: BoardFactory) -> None:
    board = board_from_position("4k3/P7/8/8/8/8/8/4K3")
    after = board.apply(Move.from_uci("a7a8n"))
    assert after.piece_at(_sq("a8")) == Piece(PieceType.KNIGHT, Color.WHITE)


def test_counters() -> None:
    """Half move clock resets on pawn moves and captures. Full move number goes up after black moved."""
    board = Board.starting_position()
    board = board.apply(Move.from_uci("g1f3"))
    assert (board.half_move_clock, board.full_move_number) == (1, 1)
    board = board.apply(Move.from_uci("g8f6"))
    assert (board.half_move_clock, board.full_move_number) == (2, 2)
    board = board.apply(Move.from_uci("e2e4"))
    assert (board.half_move_clock, board.full_move_number) == (0, 2)


def test_annotate_fills_in_flags(board_from_position: BoardFactory) -> None:
    board = board_from_position("4k3/8/8/3pP3/8/8/4P3/R3K3", castling="Q", en_passant="d6")
    assert board.annotate(Move.from_uci("e1c1")).castling_direction == CastlingDirection.WHITE_QUEEN_SIDE
    assert board.annotate(Move.from_uci("e5d6")).is_en_passant
    assert board.annotate(Move.from_uci("e2e4")).is_double_push
    assert board.annotate(Move.from_uci("e1d1")) == Move.from_uci("e1d1")


# --- DEFENSIVE SHAPE CHECKS ---
@pytest.mark.parametrize(
    "uci",
    [
        "e3e4",  # empty origin
        "e7e5",  # not your piece
        "d1d2",  # own piece on the destination
        "g1g3",  # knights do not move like that
        "f1c4",  # bishop path blocked
        "e2e5",  # pawns do not move three squares
        "e2d3",  # pawns only go diagonally when taking
        "e1g1",  # castling without the path being clear
        "g1f3q",  # only pawns promote
    ],
)
def test_impossible_shapes(uci: str) -> None:
    with pytest.raises(IllegalMoveShapeError):
        Board.starting_position().apply(Move.from_uci(uci))


def test_pawn_must_promote_on_last_rank(board_from_position: BoardFactory) -> None:
    board = board_from_position("4k3/P7/8/8/8/8/8/4K3")
    with pytest.raises(IllegalMoveShapeError):
        board.apply(Move.from_uci("a7a8"))
    with pytest.raises(IllegalMoveShapeError):
        board.apply(Move.from_uci("a7a8k"))


def test_pawn_cannot_promote_early(board_from_position: BoardFactory) -> None:
    board = board_from_position("4k3/8/P7/8/8/8/8/4K3")
    with pytest.raises(IllegalMoveShapeError):
        board.apply(Move.from_uci("a6a7q"))


def test_kings_cannot_be_taken(board_from_position: BoardFactory) -> None:
    board = board_from_position("4k3/8/8/8/8/8/8/4RK2")
    with pytest.raises(IllegalMoveShapeError):
        board.apply(Move.from_uci("e1e8"))


def test_castling_without_rights(board_from_position: BoardFactory) -> None:
    board = board_from_position("4k3/8/8/8/8/8/8/4K2R", castling="-")
    with pytest.raises(IllegalMoveShapeError):
        board.apply(Move.from_uci("e1g1"))


@pytest.mark.parametrize("position", ["4k3/8/8/8/8/8/8/4K2N", "4k3/8/8/8/8/8/8/4K2r", "4k3/8/8/8/8/8/8/4K3"])
def test_castling_needs_own_rook_at_home(board_from_position: BoardFactory, position: str) -> None:
    """The castling field can claim a right the position cannot back up: a knight, a black rook, nothing."""
    board = board_from_position(position, castling="K")
    with pytest.raises(IllegalMoveShapeError):
        board.apply(Move.from_uci("e1g1"))
