"""Unit tests for /src/chess/standard.py"""

from typing import Callable

import pytest

from src.chess.board import Board
from src.chess.pieces import Color, PieceType
from src.chess.square import Square
from src.chess.standard import (
    CapturePredicate,
    attackers,
    capturing_attackers,
    is_attacked,
    is_in_check,
    is_king_exposed,
    pseudo_legal_moves,
    standard_legal_moves,
    unrestricted,
)

BoardFactory = Callable[..., Board]


def _sq(name: str) -> Square:
    return Square.from_algebraic(name)


def _ucis(board: Board, can_capture: CapturePredicate = unrestricted) -> set[str]:
    return {move.uci for move in standard_legal_moves(board, can_capture)}


def _no_queen_captures(board: Board, attacker_square: Square, target_square: Square) -> bool:
    piece = board.piece_at(attacker_square)
    return piece is None or piece.type != PieceType.QUEEN


def test_twenty_opening_moves() -> None:
    """16 pawn moves + 4 knight moves"""
    moves = standard_legal_moves(Board.starting_position())
    assert len(moves) == 20


def test_opening_moves_for_black() -> None:
    board = Board.from_fen("rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1")
    assert len(standard_legal_moves(board)) == 20


def test_attackers(board_from_position: BoardFactory) -> None:
    board = board_from_position("4k3/8/8/8/1b6/8/8/R3K3")
    assert set(attackers(board, _sq("e1"), Color.BLACK)) == {_sq("b4")}
    assert is_attacked(board, _sq("b1"), Color.WHITE)
    assert not is_attacked(board, _sq("h8"), Color.WHITE)


def test_capture_predicate_filters_attackers(board_from_position: BoardFactory) -> None:
    board = board_from_position("4k3/8/8/8/4q3/8/8/4K3")
    assert capturing_attackers(board, _sq("e1"), Color.BLACK) == [_sq("e4")]
    assert capturing_attackers(board, _sq("e1"), Color.BLACK, _no_queen_captures) == []


def test_check_detection(board_from_position: BoardFactory) -> None:
    board = board_from_position("4k3/8/8/8/4r3/8/8/4K3")
    assert is_in_check(board)
    assert is_in_check(board, Color.WHITE)
    assert not is_in_check(board, Color.BLACK)


def test_no_king_is_never_exposed(empty_board: Board) -> None:
    assert not is_king_exposed(empty_board, Color.WHITE, unrestricted)


def test_pinned_piece_cannot_move(board_from_position: BoardFactory) -> None:
    """The knight on e2 shields the king from the rook on e8"""
    board = board_from_position("4r1k1/8/8/8/8/8/4N3/4K3")
    assert not any(move.from_square == _sq("e2") for move in standard_legal_moves(board))


def test_must_answer_check(board_from_position: BoardFactory) -> None:
    """Rook gives check along the e-file: step aside or block with the bishop"""
    board = board_from_position("4r1k1/8/8/8/8/8/8/2B1K3")
    assert _ucis(board) == {"e1d1", "e1d2", "e1f1", "e1f2", "c1e3"}


def test_pseudo_legal_moves_include_self_checks(board_from_position: BoardFactory) -> None:
    board = board_from_position("4r1k1/8/8/8/8/8/4N3/4K3")
    pseudo = {move.uci for move in pseudo_legal_moves(board)}
    assert "e2c3" in pseudo
    assert "e2c3" not in _ucis(board)


def test_king_cannot_step_into_attack(board_from_position: BoardFactory) -> None:
    board = board_from_position("3rk3/8/8/8/8/8/8/4K3")
    assert _ucis(board) == {"e1e2", "e1f1", "e1f2"}


def test_relaxed_check_allows_standing_in_attack(board_from_position: BoardFactory) -> None:
    """If the black queen may not take kings, the white king can ignore her."""
    board = board_from_position("4k3/8/8/8/4q3/8/8/4K3")
    assert not is_in_check(board, can_capture=_no_queen_captures)
    legal = _ucis(board, can_capture=_no_queen_captures)
    assert {"e1e2", "e1d1", "e1f1", "e1d2", "e1f2"} == legal


@pytest.mark.parametrize("castling, expected", [("KQ", {"e1g1", "e1c1"}), ("K", {"e1g1"}), ("-", set())])
def test_castling_rights(board_from_position: BoardFactory, castling: str, expected: set[str]) -> None:
    board = board_from_position("4k3/8/8/8/8/8/8/R3K2R", castling=castling)
    castles = {move.uci for move in standard_legal_moves(board) if move.is_castling}
    assert castles == expected


def test_castling_blocked(board_from_position: BoardFactory) -> None:
    """The knight on g1 blocks king side castling"""
    board = board_from_position("4k3/8/8/8/8/8/8/R3K1nR", castling="KQ")
    castles = {move.uci for move in standard_legal_moves(board) if move.is_castling}
    assert castles == {"e1c1"}


@pytest.mark.parametrize("position", ["4k3/8/8/8/8/8/8/4K2N", "4k3/8/8/8/8/8/8/4K2r", "4k3/8/8/8/8/8/8/4K3"])
def test_no_castling_without_own_rook(board_from_position: BoardFactory, position: str) -> None:
    """Rights in the FEN alone are not enough: the mover's own rook must stand in the corner"""
    board = board_from_position(position, castling="K")
    castles = {move.uci for move in standard_legal_moves(board) if move.is_castling}
    assert castles == set()


@pytest.mark.parametrize(
    "position, expected",
    [
        ("4k3/8/8/8/8/8/8/R3K2R", {"e1g1", "e1c1"}),
        ("4k3/8/8/8/8/8/5r2/R3K2R", {"e1c1"}),  # f1 attacked: king side passes it
        ("4k3/8/8/8/8/8/3r4/R3K2R", {"e1g1"}),  # d-file attacked: queen side passes d1
        ("4k3/8/8/8/8/8/1r6/R3K2R", {"e1g1", "e1c1"}),  # b1 attacked: king does not cross it
        ("4k3/8/8/8/8/8/4r3/R3K2R", set()),  # in check: no castling at all
    ],
)
def test_castling_through_attacked_squares(
    board_from_position: BoardFactory, position: str, expected: set[str]
) -> None:
    board = board_from_position(position, castling="KQ")
    castles = {move.uci for move in standard_legal_moves(board) if move.is_castling}
    assert castles == expected


def test_relaxed_check_allows_castling_past_harmless_attackers(board_from_position: BoardFactory) -> None:
    board = board_from_position("4k3/8/8/8/8/8/3q4/R3K2R", castling="KQ")
    castles = {move.uci for move in standard_legal_moves(board, _no_queen_captures) if move.is_castling}
    assert castles == {"e1g1", "e1c1"}


def test_en_passant_is_legal(board_from_position: BoardFactory) -> None:
    board = board_from_position("4k3/8/8/3pP3/8/8/8/4K3", en_passant="d6")
    assert "e5d6" in _ucis(board)


def test_en_passant_cannot_expose_king(board_from_position: BoardFactory) -> None:
    """Both pawns leave the fifth rank: the rook on h5 would see the king on a5"""
    board = board_from_position("4k3/8/8/K2pP2r/8/8/8/8", en_passant="d6")
    assert "e5d6" not in _ucis(board)


def test_promotion_moves(board_from_position: BoardFactory) -> None:
    board = board_from_position("7k/P7/8/8/8/8/8/K7")
    promotions = {uci for uci in _ucis(board) if uci.startswith("a7")}
    assert promotions == {"a7a8n", "a7a8b", "a7a8r", "a7a8q"}


def test_checkmate_has_no_moves() -> None:
    """Fool's mate"""
    board = Board.from_fen("rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3")
    assert standard_legal_moves(board) == set()
    assert is_in_check(board)


def test_stalemate_has_no_moves(board_from_position: BoardFactory) -> None:
    board = board_from_position("k7/2Q5/1K6/8/8/8/8/8", color="b")
    assert standard_legal_moves(board) == set()
    assert not is_in_check(board)
