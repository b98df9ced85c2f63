"""
A representative catalog of drawbacks.

Every entry is data: an identifier, a display name, a description and the hooks it needs.
The registry (src/drawbacks/registry.py) makes them available by identifier, name, or index.
"""

from typing import Optional

from src.chess.board import Board
from src.chess.moves import Move
from src.chess.outcome import GameOutcome
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.shared_types import OutcomeReason
from src.drawbacks.base import Drawback, MoveHistory, TurnContext

CHECKS_ALLOWED = 3


# --- HELPERS ---
def is_capture(board: Board, move: Move) -> bool:
    return move.is_en_passant or board.piece_at(move.to_square) is not None


def moving_piece_type(board: Board, move: Move) -> Optional[PieceType]:
    piece = board.piece_at(move.from_square)
    return piece.type if piece is not None else None


def attacker_type(board: Board, attacker_square: Square) -> Optional[PieceType]:
    piece = board.piece_at(attacker_square)
    return piece.type if piece is not None else None


# --- FILTERS ---
def _no_queen_captures(
    board: Board, moves: set[Move], owner: Color, context: TurnContext
) -> set[Move]:
    enemy_queen = Piece(PieceType.QUEEN, owner.opponent)
    return {move for move in moves if board.piece_at(move.to_square) != enemy_queen}


def _king_moves_when_in_check(
    board: Board, moves: set[Move], owner: Color, context: TurnContext
) -> set[Move]:
    if not context.in_check:
        return moves
    return {move for move in moves if moving_piece_type(board, move) == PieceType.KING}


def _no_castling(
    board: Board, moves: set[Move], owner: Color, context: TurnContext
) -> set[Move]:
    return {move for move in moves if not move.is_castling}


def _no_double_pushes(
    board: Board, moves: set[Move], owner: Color, context: TurnContext
) -> set[Move]:
    return {move for move in moves if not move.is_double_push}


def _blocked_file(
    board: Board, moves: set[Move], owner: Color, context: TurnContext
) -> set[Move]:
    """The rolled file (0 = a-file, ..., 7 = h-file) cannot be moved to. No roll: no restriction."""
    if context.turn_roll is None:
        return moves
    return {move for move in moves if move.to_square.file != context.turn_roll}


def _no_pawn_captures(
    board: Board, moves: set[Move], owner: Color, context: TurnContext
) -> set[Move]:
    return {
        move
        for move in moves
        if not (moving_piece_type(board, move) == PieceType.PAWN and is_capture(board, move))
    }


def _no_queen_capturing(
    board: Board, moves: set[Move], owner: Color, context: TurnContext
) -> set[Move]:
    return {
        move
        for move in moves
        if not (moving_piece_type(board, move) == PieceType.QUEEN and is_capture(board, move))
    }


def _no_captures_on_edge(
    board: Board, moves: set[Move], owner: Color, context: TurnContext
) -> set[Move]:
    return {
        move
        for move in moves
        if not (is_capture(board, move) and move.to_square.is_on_edge())
    }


def _captures_are_compulsory(
    board: Board, moves: set[Move], owner: Color, context: TurnContext
) -> set[Move]:
    captures = {move for move in moves if is_capture(board, move)}
    return captures or moves


# --- KING CAPTURE RESTRICTIONS (must agree with the filters above) ---
def _pawns_cannot_take_king(
    board: Board, attacker_square: Square, target_square: Square, attacker_color: Color
) -> bool:
    return attacker_type(board, attacker_square) != PieceType.PAWN


def _queen_cannot_take_king(
    board: Board, attacker_square: Square, target_square: Square, attacker_color: Color
) -> bool:
    return attacker_type(board, attacker_square) != PieceType.QUEEN


def _king_on_edge_cannot_be_taken(
    board: Board, attacker_square: Square, target_square: Square, attacker_color: Color
) -> bool:
    return not target_square.is_on_edge()


# --- LOSS CONDITIONS ---
def _lose_on_knight_capture(
    board: Board, history: MoveHistory, owner: Color
) -> Optional[GameOutcome]:
    if not history:
        return None
    if history[-1].captured_piece == Piece(PieceType.KNIGHT, owner):
        return GameOutcome.loss(owner, OutcomeReason.DRAWBACK_LOSS_CONDITION)
    return None


def _lose_on_third_check(
    board: Board, history: MoveHistory, owner: Color
) -> Optional[GameOutcome]:
    checks_received = sum(
        1 for record in history if record.mover == owner.opponent and record.gives_check
    )
    if checks_received >= CHECKS_ALLOWED:
        return GameOutcome.loss(owner, OutcomeReason.DRAWBACK_LOSS_CONDITION)
    return None


# --- THE CATALOG ---
NO_DRAWBACK = Drawback(
    identifier="none",
    name="No Drawback",
    description="Plain chess.",
)

TRUE_GENTLEMAN = Drawback(
    identifier="true_gentleman",
    name="True Gentleman",
    description="You cannot capture your opponent's queen.",
    filter_moves_fn=_no_queen_captures,
)

SKITTISH = Drawback(
    identifier="skittish",
    name="Skittish",
    description="When you are in check, you must move your king.",
    filter_moves_fn=_king_moves_when_in_check,
)

MY_KINGDOM_FOR_A_HORSE = Drawback(
    identifier="my_kingdom_for_a_horse",
    name="My Kingdom for a Horse",
    description="You lose if one of your knights gets captured.",
    loss_condition_fn=_lose_on_knight_capture,
)

THREE_CHECK = Drawback(
    identifier="three_check",
    name="Three Check",
    description=f"You lose when you have been put in check {CHECKS_ALLOWED} times.",
    loss_condition_fn=_lose_on_third_check,
)

NO_CASTLING = Drawback(
    identifier="no_castling",
    name="No Castling",
    description="Castling (king side or queen side) is not allowed.",
    filter_moves_fn=_no_castling,
)

PAWNS_ADVANCE_ONE = Drawback(
    identifier="pawns_advance_one",
    name="Pawns Advance One",
    description="Pawns may not advance two squares on their first move.",
    filter_moves_fn=_no_double_pushes,
)

RANDOM_FILE_BLOCKED = Drawback(
    identifier="random_file_blocked",
    name="Random File Blocked",
    description="At the start of your turn, a random file (a-h) is chosen. You cannot move any piece TO that file this turn.",
    turn_roll_outcomes=BOARD_DIMENSIONS[0],
    filter_moves_fn=_blocked_file,
)

PAWNS_CANT_CAPTURE = Drawback(
    identifier="pawns_cant_capture",
    name="Pacifist Pawns",
    description="Your pawns cannot capture (not even the king).",
    filter_moves_fn=_no_pawn_captures,
    can_capture_king_fn=_pawns_cannot_take_king,
)

TIMID_QUEEN = Drawback(
    identifier="timid_queen",
    name="Timid Queen",
    description="Your queen cannot capture (not even the king).",
    filter_moves_fn=_no_queen_capturing,
    can_capture_king_fn=_queen_cannot_take_king,
)

EDGE_SHY = Drawback(
    identifier="edge_shy",
    name="Edge Shy",
    description="You cannot capture on the edge of the board (not even the king).",
    filter_moves_fn=_no_captures_on_edge,
    can_capture_king_fn=_king_on_edge_cannot_be_taken,
)

COMPULSIVE_CAPTURER = Drawback(
    identifier="compulsive_capturer",
    name="Compulsive Capturer",
    description="If you can capture, you must.",
    filter_moves_fn=_captures_are_compulsory,
)

# NOTE: the order is part of the contract (drawbacks can be selected by index)
CATALOG: tuple[Drawback, ...] = (
    NO_DRAWBACK,
    NO_CASTLING,
    PAWNS_ADVANCE_ONE,
    RANDOM_FILE_BLOCKED,
    TRUE_GENTLEMAN,
    SKITTISH,
    MY_KINGDOM_FOR_A_HORSE,
    THREE_CHECK,
    PAWNS_CANT_CAPTURE,
    TIMID_QUEEN,
    EDGE_SHY,
    COMPULSIVE_CAPTURER,
)
