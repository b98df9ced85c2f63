"""
Standard chess move generation
----

Produces pseudo-legal moves (piece geometry only) and filters them down to legal ones
(the mover never leaves their own king capturable).

Whether an attacker may actually capture a king is a question asked through a CapturePredicate.
With the default predicate (`unrestricted`) everything here is plain chess.
The legality engine hands in a predicate backed by the attacker's drawback: that is the only difference between standard and relaxed check.
"""

from typing import Callable

from src.chess.board import Board
from src.chess.castling import CASTLING_RULES, castling_options
from src.chess.moves import ATTACK_RULES, MOVEMENT_RULES, Move
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import Square

# (board, attacker square, king square) -> may this attacker capture a king standing on that square?
CapturePredicate = Callable[[Board, Square, Square], bool]


def unrestricted(board: Board, attacker_square: Square, target_square: Square) -> bool:
    """Normal chess: any attacker can capture the king."""
    return True


def attackers(board: Board, square: Square, by_color: Color) -> list[Square]:
    """All squares holding a piece of `by_color` that attacks `square`."""
    found: list[Square] = []
    for attack_rule in ATTACK_RULES.values():
        found.extend(attack_rule(square, by_color, board))
    return found


def is_attacked(board: Board, square: Square, by_color: Color) -> bool:
    """Is the square in the line of sight of any piece of `by_color`? (used for check detection and castling)"""
    return any(attack_rule(square, by_color, board) for attack_rule in ATTACK_RULES.values())


def capturing_attackers(
    board: Board,
    square: Square,
    by_color: Color,
    can_capture: CapturePredicate = unrestricted,
) -> list[Square]:
    """Attackers that would actually be permitted to capture a king standing on `square`."""
    return [
        attacker_square
        for attacker_square in attackers(board, square, by_color)
        if can_capture(board, attacker_square, square)
    ]


def is_square_safe_for_king(
    board: Board,
    square: Square,
    color: Color,
    can_capture: CapturePredicate = unrestricted,
) -> bool:
    return not capturing_attackers(board, square, color.opponent, can_capture)


def is_king_exposed(
    board: Board, color: Color, can_capture: CapturePredicate = unrestricted
) -> bool:
    """True if the king of `color` can be captured by the opponent. A board without that king is never 'exposed'."""
    king_square = board.king_square(color)
    if king_square is None:
        return False
    return not is_square_safe_for_king(board, king_square, color, can_capture)


def is_in_check(
    board: Board,
    color: Color | None = None,
    can_capture: CapturePredicate = unrestricted,
) -> bool:
    """Check for the side to move unless a color is given."""
    return is_king_exposed(board, color or board.color_to_move, can_capture)


def pseudo_legal_moves(board: Board) -> set[Move]:
    """
    All moves the side to move could make, ignoring whether they leave their own king capturable
    ----

    1. generate candidate moves, using the basic movement rules for all pieces (promotions and en passant included)
    2. add castling moves for which the rights are intact and the squares between king and rook are empty
    """
    color = board.color_to_move
    moves: set[Move] = set()
    for starting_square in board.squares_of(color):
        piece = board.piece_at(starting_square)
        assert piece is not None
        movement_rule = MOVEMENT_RULES[piece.type]
        moves.update(movement_rule(starting_square, board))

    moves.update(castling_candidates(board))
    return moves


def castling_candidates(board: Board) -> list[Move]:
    color = board.color_to_move
    candidates: list[Move] = []
    for direction in castling_options(color):
        if direction not in board.castling_rights:
            continue
        rule = CASTLING_RULES[direction]
        # rights intact should mean king and rook are home. A FEN can lie, so make sure.
        if board.king_square(color) != rule.king_from:
            continue
        if board.piece_at(rule.rook_from) != Piece(PieceType.ROOK, color):
            continue
        if not all(board.is_empty(square) for square in rule.empty_path):
            continue
        candidates.append(Move(rule.king_from, rule.king_to, castling_direction=direction))
    return candidates


def standard_legal_moves(
    board: Board, can_capture: CapturePredicate = unrestricted
) -> set[Move]:
    """
    Keep the pseudo-legal moves that do not leave you exposed
    ----

    * a move may not leave your own king capturable (per `can_capture`)
    * castling additionally requires the king to be safe on its starting square and on every square it passes through
    """
    color = board.color_to_move
    legal_moves: set[Move] = set()
    for move in pseudo_legal_moves(board):
        if move.is_castling and not _is_castling_path_safe(board, move, can_capture):
            continue
        if is_king_exposed(board.apply(move), color, can_capture):
            continue
        legal_moves.add(move)
    return legal_moves


def _is_castling_path_safe(
    board: Board, move: Move, can_capture: CapturePredicate
) -> bool:
    """You cannot castle out of, through, or into check."""
    assert move.castling_direction is not None
    color = board.color_to_move
    return all(
        is_square_safe_for_king(board, square, color, can_capture)
        for square in CASTLING_RULES[move.castling_direction].king_path
    )
