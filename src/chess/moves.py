"""
Geometry/Base movement and capturing/attacking rules

Key idea: Use strategy pattern to define candidate move sets (and attack detection) for each piece type.


Legality is checked later by the standard move generator and the legality engine.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Optional, Protocol, Self

from src.chess.castling import CastlingDirection, castling_direction_for
from src.chess.pieces import FEN_TO_PIECE, PIECE_TO_FEN, Color, Piece, PieceType
from src.chess.square import Square


class Board(Protocol):
    """Just the parts the movement strategies need"""

    @property
    def en_passant_square(self) -> Optional[Square]: ...

    def piece_at(self, square: Square) -> Optional[Piece]: ...


Vector = tuple[int, int]

STRAIGHTS: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]
DIAGONALS: list[Vector] = [(1, 1), (-1, 1), (1, -1), (-1, -1)]
KNIGHT_DELTAS: list[Vector] = [
    (2, 1),
    (2, -1),
    (-2, 1),
    (-2, -1),
    (1, 2),
    (1, -2),
    (-1, 2),
    (-1, -2),
]
KING_DELTAS: list[Vector] = STRAIGHTS + DIAGONALS


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    from_square: Square
    to_square: Square
    promote_to: Optional[PieceType] = None
    castling_direction: Optional[CastlingDirection] = None
    is_en_passant: bool = False
    is_double_push: bool = False

    @classmethod
    def from_uci(cls, uci: str) -> Self:
        """
        Universal Chess Interface:
        ---
        One of the standard chess notations for moves

        examples:
        * "e2e4": move the piece that was on e2 to e4
        * "e7e8q" : (pawn) moves from e7 to e8 and promotes to a queen (the q)
        * "e1g1": the king castles king side

        NOTE: Castling / En Passant / double push flags are filled in by the Board (see `Board.annotate()`)
        """
        from_sq = Square.from_algebraic(uci[:2])
        to_sq = Square.from_algebraic(uci[2:4])
        promote_to = FEN_TO_PIECE[uci[4].lower()] if len(uci) == 5 else None
        return cls(from_sq, to_sq, promote_to=promote_to)

    def to_uci(self) -> str:
        """Convert into UCI notation"""
        piece_char = PIECE_TO_FEN[self.promote_to] if self.promote_to else ""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}{piece_char}"

    @property
    def uci(self) -> str:
        """Flags do not appear in UCI. Two moves with the same UCI describe the same action on a given board."""
        return self.to_uci()

    @property
    def is_castling(self) -> bool:
        return self.castling_direction is not None

    def __str__(self) -> str:
        return self.to_uci()


@dataclass(frozen=True)
class AcceptedMove:
    """Snapshot of a move that has been played: who moved what, and what got taken. Drawbacks read these."""

    move: Move
    mover: Color
    moving_piece: Piece
    captured_piece: Optional[Piece] = None
    gives_check: bool = False

    @classmethod
    def from_move_and_board(cls, move: Move, board: Board) -> Self:
        """Record the pieces involved BEFORE the move gets applied to the board."""
        moving_piece = board.piece_at(move.from_square)
        if moving_piece is None:
            raise ValueError(f"No piece on {move.from_square} to record a move for.")

        if move.is_en_passant:
            captured_square = Square(move.to_square.file, move.from_square.rank)
        else:
            captured_square = move.to_square
        captured_piece = board.piece_at(captured_square)
        return cls(move, moving_piece.color, moving_piece, captured_piece)

    def with_check(self, gives_check: bool) -> Self:
        return replace(self, gives_check=gives_check)

    @property
    def is_capture(self) -> bool:
        return self.captured_piece is not None


def _is_capturable(piece: Optional[Piece], player_color: Color) -> bool:
    """Kings are never captured: the game ends before that happens."""
    return (
        piece is not None
        and piece.color != player_color
        and piece.type != PieceType.KING
    )


# --- MOVEMENT RULES ---
def raycasting_move(
    square: Square, board: Board, directions: list[Vector]
) -> list[Move]:
    """
    Raycasting algorithm
    -----

    ---
    The main trick we use to check the 'line of sight of a piece'.
    We define move directions and move along them until we hit another piece or
    the edge of the board.
    """
    player_piece = board.piece_at(square)
    assert player_piece is not None
    player_color = player_piece.color

    moves: list[Move] = []
    for df, dr in directions:
        target_square = square.offset(df, dr)
        while target_square.is_within_bounds():
            piece_found = board.piece_at(target_square)
            if piece_found is not None:
                # only need to add the first occupied square found if it is the opponent's: then it can be captured.
                if _is_capturable(piece_found, player_color):
                    moves.append(Move(from_square=square, to_square=target_square))
                break

            moves.append(Move(from_square=square, to_square=target_square))
            target_square = target_square.offset(df, dr)
    return moves


def single_step_move(square: Square, board: Board, deltas: list[Vector]) -> list[Move]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that just can move a single step along a direction"""
    player_piece = board.piece_at(square)
    assert player_piece is not None

    moves: list[Move] = []
    for df, dr in deltas:
        target_square = square.offset(df, dr)
        if not target_square.is_within_bounds():
            continue

        piece_found = board.piece_at(target_square)
        if piece_found is None or _is_capturable(piece_found, player_piece.color):
            moves.append(Move(from_square=square, to_square=target_square))

    return moves


def candidate_pawn_moves(square: Square, board: Board) -> list[Move]:
    """
    A pawn:
    - moves by a single square forward.
    - It can move by two in their first move (so when on their starting rank)
    - takes diagonally, also en passant when the square behind a pawn that just double pushed is available.
    - promotes when reaching the final rank
    """
    pawn = board.piece_at(square)
    assert pawn is not None
    color = pawn.color
    forward = color.pawn_direction

    moves: list[Move] = []
    # Pawn pushes
    one_step = square.offset(0, forward)
    if one_step.is_within_bounds() and board.piece_at(one_step) is None:
        moves.append(Move(from_square=square, to_square=one_step))
        two_steps = square.offset(0, 2 * forward)
        if square.rank == color.pawn_start_rank and board.piece_at(two_steps) is None:
            moves.append(
                Move(from_square=square, to_square=two_steps, is_double_push=True)
            )

    # pawns take diagonally:
    for df in (-1, 1):
        target_square = square.offset(df, forward)
        if not target_square.is_within_bounds():
            continue
        if _is_capturable(board.piece_at(target_square), color):
            moves.append(Move(from_square=square, to_square=target_square))
        elif target_square == board.en_passant_square and _can_take_en_passant(
            square, target_square, color, board
        ):
            moves.append(
                Move(from_square=square, to_square=target_square, is_en_passant=True)
            )

    # promotion rule: expand pushes/captures that reach the final rank
    expanded: list[Move] = []
    for move in moves:
        if move.to_square.rank == color.promotion_rank:
            expanded.extend(pawn_moves_w_promotion(move))
        else:
            expanded.append(move)
    return expanded


def _can_take_en_passant(
    from_square: Square, en_passant_square: Square, color: Color, board: Board
) -> bool:
    """The en passant square must be empty and the opponent's pawn must still be standing right next to us."""
    passed_pawn_square = Square(en_passant_square.file, from_square.rank)
    return board.piece_at(en_passant_square) is None and board.piece_at(
        passed_pawn_square
    ) == Piece(PieceType.PAWN, color.opponent)


def candidate_knight_moves(square: Square, board: Board) -> list[Move]:
    """Knights always move such that |delta_rank| + |delta_file| = 3"""
    return single_step_move(square, board, KNIGHT_DELTAS)


def candidate_bishop_moves(square: Square, board: Board) -> list[Move]:
    """Bishops move diagonally: |delta_rank| = |delta_file|"""
    return raycasting_move(square, board, DIAGONALS)


def candidate_rook_moves(square: Square, board: Board) -> list[Move]:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(square, board, STRAIGHTS)


def candidate_queen_moves(square: Square, board: Board) -> list[Move]:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return candidate_bishop_moves(square, board) + candidate_rook_moves(square, board)


def candidate_king_moves(square: Square, board: Board) -> list[Move]:
    """
    The king can move by a single square at the time.

    Castling is modelled as a special king move (handled separately).
    """
    return single_step_move(square, board, KING_DELTAS)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Square, Board], list[Move]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.PAWN: candidate_pawn_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.KING: candidate_king_moves,
}


# --- CAPTURING RULES / ATTACKING RULES ---
def raycasting_attackers(
    square: Square,
    by_color: Color,
    by_piece_type: PieceType,
    board: Board,
    directions: list[Vector],
) -> list[Square]:
    """
    Raycasting algorithm for attacks.
    ---

    Where `raycasting_move()` determines
    _"What is the line-of-sight of the piece standing on the specified square?"_

    This function determines:
    _"Which pieces of the specified color and type, moving along the given directions, have the specified square in their line-of-sight?"_

    ---
    Returns the squares of those pieces (empty list if there are none).
    """
    attackers: list[Square] = []
    for df, dr in directions:
        target_square = square.offset(df, dr)
        while target_square.is_within_bounds():
            piece_found = board.piece_at(target_square)
            if piece_found is not None:
                # only the first occupied square found along the ray matters
                if piece_found == Piece(by_piece_type, by_color):
                    attackers.append(target_square)
                break
            target_square = target_square.offset(df, dr)
    return attackers


def single_step_attackers(
    square: Square,
    by_color: Color,
    by_piece_type: PieceType,
    board: Board,
    deltas: list[Vector],
) -> list[Square]:
    """
    Raycasting is for sliding pieces. This is the equivalent for pawns, kings, and knights that just can move a single step along a direction.
    """
    attackers: list[Square] = []
    for df, dr in deltas:
        target_square = square.offset(df, dr)
        if not target_square.is_within_bounds():
            continue
        if board.piece_at(target_square) == Piece(by_piece_type, by_color):
            attackers.append(target_square)
    return attackers


def pawn_attackers(square: Square, by_color: Color, board: Board) -> list[Square]:
    """
    Pawns take diagonally
    ----

    NOTE: Pawn moves are not symmetric, so to check IF a white pawn could take on your square -->
    Must look one rank DOWN the board. Hence, vectors are exactly opposite to the ones used in `candidate_pawn_moves()`
    """
    backward = -by_color.pawn_direction
    inverse_pawn_take_deltas: list[Vector] = [(1, backward), (-1, backward)]
    return single_step_attackers(
        square, by_color, PieceType.PAWN, board, inverse_pawn_take_deltas
    )


def knight_attackers(square: Square, by_color: Color, board: Board) -> list[Square]:
    return single_step_attackers(square, by_color, PieceType.KNIGHT, board, KNIGHT_DELTAS)


def bishop_attackers(square: Square, by_color: Color, board: Board) -> list[Square]:
    return raycasting_attackers(square, by_color, PieceType.BISHOP, board, DIAGONALS)


def rook_attackers(square: Square, by_color: Color, board: Board) -> list[Square]:
    return raycasting_attackers(square, by_color, PieceType.ROOK, board, STRAIGHTS)


def queen_attackers(square: Square, by_color: Color, board: Board) -> list[Square]:
    return raycasting_attackers(
        square, by_color, PieceType.QUEEN, board, STRAIGHTS + DIAGONALS
    )


def king_attackers(square: Square, by_color: Color, board: Board) -> list[Square]:
    return single_step_attackers(square, by_color, PieceType.KING, board, KING_DELTAS)


# --- STRATEGY PATTERN: ATTACKING RULES ---
AttackersFn = Callable[[Square, Color, Board], list[Square]]
ATTACK_RULES: dict[PieceType, AttackersFn] = {
    PieceType.PAWN: pawn_attackers,
    PieceType.KNIGHT: knight_attackers,
    PieceType.BISHOP: bishop_attackers,
    PieceType.ROOK: rook_attackers,
    PieceType.QUEEN: queen_attackers,
    PieceType.KING: king_attackers,
}


# -- PAWN PROMOTION MOVES --
PROMOTION_OPTIONS: list[PieceType] = [
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.ROOK,
    PieceType.QUEEN,
]


def pawn_moves_w_promotion(pawn_move: Move) -> list[Move]:
    """Return multiple copies of the pawn move with the piece type to promote into filled in."""
    return [replace(pawn_move, promote_to=piece_type) for piece_type in PROMOTION_OPTIONS]


# -- GEOMETRY --
def is_possible_shape(piece: Piece, move: Move) -> bool:
    """
    Could this kind of piece ever travel from the move's origin to its destination? (Ignores what stands in between.)
    Castling counts as a two-file king step along its own back rank.
    """
    df = move.to_square.file - move.from_square.file
    dr = move.to_square.rank - move.from_square.rank
    if (df, dr) == (0, 0):
        return False

    if piece.type == PieceType.KNIGHT:
        return {abs(df), abs(dr)} == {1, 2}
    if piece.type == PieceType.BISHOP:
        return abs(df) == abs(dr)
    if piece.type == PieceType.ROOK:
        return df == 0 or dr == 0
    if piece.type == PieceType.QUEEN:
        return df == 0 or dr == 0 or abs(df) == abs(dr)
    if piece.type == PieceType.KING:
        if max(abs(df), abs(dr)) == 1:
            return True
        direction = castling_direction_for(move.from_square, move.to_square)
        return direction is not None and direction.color == piece.color

    # pawns: one step forward (straight or diagonal), or two straight steps from the starting rank
    forward = piece.color.pawn_direction
    if dr == forward and abs(df) <= 1:
        return True
    return (
        df == 0
        and dr == 2 * forward
        and move.from_square.rank == piece.color.pawn_start_rank
    )
