"""
The Game board implements all rules that effect the `position`:
the configuration of pieces on the board, plus the rest of what a FEN string encodes (side to move, castling rights, etc.)

A Board never changes. Applying a move hands back a new Board.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Self

from src.chess.castling import (
    CASTLING_RULES,
    CastlingDirection,
    castling_direction_for,
    castling_options,
)
from src.chess.fen import STARTING_FEN, FENState
from src.chess.moves import PROMOTION_OPTIONS, Move, is_possible_shape
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import ALL_SQUARES, BOARD_DIMENSIONS, Square
from src.core.exceptions import IllegalMoveShapeError

NUM_SQUARES = BOARD_DIMENSIONS[0] * BOARD_DIMENSIONS[1]
SLIDING_PIECES = (PieceType.BISHOP, PieceType.ROOK, PieceType.QUEEN)

# Everything that identifies a position for repetition purposes (move counters excluded)
PositionKey = tuple[
    tuple[Optional[Piece], ...], Color, frozenset[CastlingDirection], Optional[Square]
]


@dataclass(frozen=True)
class Board:
    squares: tuple[Optional[Piece], ...]
    color_to_move: Color = Color.WHITE
    castling_rights: frozenset[CastlingDirection] = frozenset()
    en_passant_square: Optional[Square] = None
    half_move_clock: int = 0
    full_move_number: int = 1

    def __post_init__(self) -> None:
        if len(self.squares) != NUM_SQUARES:
            raise ValueError(
                f"A board holds exactly {NUM_SQUARES} squares, got {len(self.squares)}."
            )

    # --- CREATION ---
    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Construct a board using a given (full) FEN string.

        The first part of the FEN string denotes the board position
        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on the 8th rank, starting with rook on a8, knight on b8, etc.
        * pawns cover 7th rank entirely
        * ranks 6 through 3 have 8 consecutive empty squares
        * rank 2 are the white pawns (capital letters)
        * 1st rank are the white pieces. Again, left-to-right reads a1-h1.

        The remaining parts are parsed by FENState.
        """
        state = FENState.from_fen(fen)
        return cls.from_fen_state(state)

    @classmethod
    def from_fen_state(cls, state: FENState) -> Self:
        return cls(
            squares=cls._placement_from_fen(state.position),
            color_to_move=state.color_to_move,
            castling_rights=state.castling_rights,
            en_passant_square=state.en_passant_square,
            half_move_clock=state.half_move_clock,
            full_move_number=state.full_move_number,
        )

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)

    @classmethod
    def empty(cls, color_to_move: Color = Color.WHITE) -> Self:
        return cls(squares=(None,) * NUM_SQUARES, color_to_move=color_to_move)

    @staticmethod
    def _placement_from_fen(position: str) -> tuple[Optional[Piece], ...]:
        squares: list[Optional[Piece]] = [None] * NUM_SQUARES
        for rank_idx, fen_one_rank in enumerate(position.split("/")):
            # FEN string is read from top rank (8th) to bottom rank (1st)
            rank = BOARD_DIMENSIONS[1] - 1 - rank_idx
            # ... but the first character is the a-file, so reads in normal direction
            file = 0
            for character in fen_one_rank:
                if character.isalpha():
                    squares[Square(file, rank).index] = Piece.from_fen(character)
                    file += 1
                else:
                    # A number denotes the amount of empty squares after each other
                    file += int(character)
        return tuple(squares)

    # --- SERIALIZATION ---
    def to_fen(self) -> str:
        return self.to_fen_state().to_fen()

    def to_fen_state(self) -> FENState:
        return FENState(
            position=self.placement_fen(),
            color_to_move=self.color_to_move,
            castling_rights=self.castling_rights,
            en_passant_square=self.en_passant_square,
            half_move_clock=self.half_move_clock,
            full_move_number=self.full_move_number,
        )

    def placement_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(
            self._rank_to_fen(rank) for rank in range(BOARD_DIMENSIONS[1] - 1, -1, -1)
        )

    def _rank_to_fen(self, rank: int) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for file in range(BOARD_DIMENSIONS[0]):
            piece = self.piece_at(Square(file, rank))

            if piece is not None:
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_fen())
            else:
                empty_count += 1

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def position_key(self) -> PositionKey:
        """The en passant square only counts when a pawn of the side to move can actually take there."""
        return (
            self.squares,
            self.color_to_move,
            self.castling_rights,
            self.en_passant_square if self._can_be_taken_en_passant() else None,
        )

    def _can_be_taken_en_passant(self) -> bool:
        target = self.en_passant_square
        if target is None:
            return False
        color = self.color_to_move
        # the takers stand next to the pawn that just passed the target square
        passed_pawn_square = target.offset(0, -color.pawn_direction)
        if self.piece_at(passed_pawn_square) != Piece(PieceType.PAWN, color.opponent):
            return False
        return any(
            self.piece_at(passed_pawn_square.offset(df, 0)) == Piece(PieceType.PAWN, color)
            for df in (-1, 1)
        )

    # --- QUERIES ---
    def piece_at(self, square: Square) -> Optional[Piece]:
        if not square.is_within_bounds():
            return None
        return self.squares[square.index]

    def is_empty(self, square: Square) -> bool:
        return self.piece_at(square) is None

    def occupied(self) -> dict[Square, Piece]:
        return {
            square: piece
            for square, piece in zip(ALL_SQUARES, self.squares)
            if piece is not None
        }

    def squares_of(self, color: Color) -> list[Square]:
        return [square for square, piece in self.occupied().items() if piece.color == color]

    def locate(self, piece_type: PieceType, color: Optional[Color] = None) -> list[Square]:
        return [
            square
            for square, piece in self.occupied().items()
            if piece.type == piece_type and (color is None or piece.color == color)
        ]

    def king_square(self, color: Color) -> Optional[Square]:
        kings = self.locate(PieceType.KING, color)
        return kings[0] if kings else None

    def count_material(self) -> dict[Color, int]:
        """Tally the points of material each player has on the board"""
        totals = {color: 0 for color in Color}
        for piece in self.occupied().values():
            totals[piece.color] += piece.points
        return totals

    # --- EDITING (always returns a new board) ---
    def place_piece(self, piece: Piece, square: Square) -> Board:
        squares = list(self.squares)
        squares[square.index] = piece
        return replace(self, squares=tuple(squares))

    def remove_piece(self, square: Square) -> Board:
        squares = list(self.squares)
        squares[square.index] = None
        return replace(self, squares=tuple(squares))

    # --- MAKING MOVES ---
    def annotate(self, move: Move) -> Move:
        """
        Fill in the flags a move written in UCI cannot carry (castling, en passant, double push).
        Moves produced by the move generator already carry them.
        """
        piece = self.piece_at(move.from_square)
        if piece is None:
            return move

        if piece.type == PieceType.KING and move.castling_direction is None:
            direction = castling_direction_for(move.from_square, move.to_square)
            if direction is not None and direction.color == piece.color:
                move = replace(move, castling_direction=direction)

        if piece.type == PieceType.PAWN:
            ranks_moved = abs(move.to_square.rank - move.from_square.rank)
            files_moved = abs(move.to_square.file - move.from_square.file)
            if ranks_moved == 2 and not move.is_double_push:
                move = replace(move, is_double_push=True)
            if (
                files_moved == 1
                and self.is_empty(move.to_square)
                and move.to_square == self.en_passant_square
                and not move.is_en_passant
            ):
                move = replace(move, is_en_passant=True)
        return move

    def apply(self, move: Move) -> Board:
        """
        Produce the board after the move
        ----

        Assumes the move is pseudo-legal (legality is the legality engine's job).
        Only fails with IllegalMoveShapeError if the move cannot physically be made by the piece standing on its origin.

        1. move the piece (promote it if needed)
        2. if castling, also move the rook
        3. if en passant, remove the pawn that got taken
        4. revoke castling rights if needed
        5. set the en passant square (only after a double pawn push)
        6. update the move counters and hand the turn to the opponent
        """
        move = self.annotate(move)
        self._assert_possible_shape(move)

        moving_piece = self.piece_at(move.from_square)
        assert moving_piece is not None
        captured_piece = self.piece_at(move.to_square)

        # 1. move the piece
        squares = list(self.squares)
        squares[move.from_square.index] = None
        squares[move.to_square.index] = (
            moving_piece.promoted_to(move.promote_to)
            if move.promote_to is not None
            else moving_piece
        )

        # 2. castling: the rook jumps over the king
        if move.castling_direction is not None:
            rule = CASTLING_RULES[move.castling_direction]
            squares[rule.rook_to.index] = squares[rule.rook_from.index]
            squares[rule.rook_from.index] = None

        # 3. en passant: the pawn taken stands on the file of the en passant square, on the rank the moving pawn started from
        if move.is_en_passant:
            take_square = Square(move.to_square.file, move.from_square.rank)
            captured_piece = squares[take_square.index]
            squares[take_square.index] = None

        # 4. castling rights
        castling_rights = self._revoke_castling_rights(move, moving_piece)

        # 5. en passant square
        en_passant_square = (
            move.from_square.offset(0, moving_piece.color.pawn_direction)
            if move.is_double_push
            else None
        )

        # 6. counters
        resets_clock = moving_piece.type == PieceType.PAWN or captured_piece is not None
        half_move_clock = 0 if resets_clock else self.half_move_clock + 1
        full_move_number = (
            self.full_move_number + 1
            if moving_piece.color == Color.BLACK
            else self.full_move_number
        )

        return Board(
            squares=tuple(squares),
            color_to_move=moving_piece.color.opponent,
            castling_rights=castling_rights,
            en_passant_square=en_passant_square,
            half_move_clock=half_move_clock,
            full_move_number=full_move_number,
        )

    def _revoke_castling_rights(
        self, move: Move, moving_piece: Piece
    ) -> frozenset[CastlingDirection]:
        """
        Checks which rights should get revoked
        ----

        1. If you are moving your king (castling included) --> revoke both of yours
        2. If a piece leaves a rook's starting square (so: the rook moves) --> revoke that direction
        3. If a piece lands on a rook's starting square (so: the rook gets taken) --> revoke that direction
        """
        rights = set(self.castling_rights)
        if moving_piece.type == PieceType.KING:
            rights.difference_update(castling_options(moving_piece.color))

        for direction in list(rights):
            rook_starting_square = CASTLING_RULES[direction].rook_from
            if rook_starting_square in (move.from_square, move.to_square):
                rights.discard(direction)
        return frozenset(rights)

    # --- DEFENSIVE SHAPE CHECKS ---
    def _assert_possible_shape(self, move: Move) -> None:
        """Raise IllegalMoveShapeError if the move cannot physically be made on this board."""
        piece = self.piece_at(move.from_square)
        if piece is None:
            raise IllegalMoveShapeError(f"No piece to move on {move.from_square}.")

        if piece.color != self.color_to_move:
            raise IllegalMoveShapeError(
                f"Piece on {move.from_square} does not belong to the side to move ({self.color_to_move.name.lower()})."
            )

        if not move.to_square.is_within_bounds():
            raise IllegalMoveShapeError(f"Move {move} leaves the board.")

        target = self.piece_at(move.to_square)
        if target is not None and (target.color == piece.color or target.type == PieceType.KING):
            raise IllegalMoveShapeError(
                f"Move {move} cannot land on the {target.color.name.lower()} {target.type.name.lower()}."
            )

        if not is_possible_shape(piece, move):
            raise IllegalMoveShapeError(
                f"A {piece.type.name.lower()} cannot move from {move.from_square} to {move.to_square}."
            )

        if piece.type in SLIDING_PIECES and not self._is_path_clear(
            move.from_square, move.to_square
        ):
            raise IllegalMoveShapeError(f"Path of {move} is blocked.")

        if piece.type == PieceType.PAWN:
            self._assert_possible_pawn_move(move, piece, target)
        elif move.promote_to is not None:
            raise IllegalMoveShapeError(f"Only pawns promote. Got {move}.")

        if move.castling_direction is not None:
            self._assert_possible_castling(move.castling_direction)

    def _assert_possible_pawn_move(
        self, move: Move, pawn: Piece, target: Optional[Piece]
    ) -> None:
        is_straight = move.from_square.file == move.to_square.file
        if is_straight and not self._is_path_clear(
            move.from_square, move.to_square, include_destination=True
        ):
            raise IllegalMoveShapeError(f"Pawn push {move} is blocked.")
        if not is_straight and target is None and not move.is_en_passant:
            raise IllegalMoveShapeError(f"Pawn only moves diagonally when taking. Got {move}.")

        reaches_final_rank = move.to_square.rank == pawn.color.promotion_rank
        if reaches_final_rank and move.promote_to not in PROMOTION_OPTIONS:
            raise IllegalMoveShapeError(
                f"Pawn reaching the final rank must promote to a knight, bishop, rook or queen. Got {move}."
            )
        if not reaches_final_rank and move.promote_to is not None:
            raise IllegalMoveShapeError(f"Pawn can only promote on the final rank. Got {move}.")

    def _assert_possible_castling(self, direction: CastlingDirection) -> None:
        if direction not in self.castling_rights:
            raise IllegalMoveShapeError(f"Castling rights for {direction.name} are revoked.")
        rule = CASTLING_RULES[direction]
        # the rights come from a FEN, which may claim a rook that is not there
        if self.piece_at(rule.rook_from) != Piece(PieceType.ROOK, direction.color):
            raise IllegalMoveShapeError(f"Cannot castle {direction.name}: no rook on {rule.rook_from}.")
        if not all(self.is_empty(square) for square in rule.empty_path):
            raise IllegalMoveShapeError(f"Cannot castle {direction.name}: path is occupied.")

    def _is_path_clear(
        self, from_square: Square, to_square: Square, include_destination: bool = False
    ) -> bool:
        """Check the squares strictly between two squares on a line (rank, file or diagonal)"""
        df = (to_square.file > from_square.file) - (to_square.file < from_square.file)
        dr = (to_square.rank > from_square.rank) - (to_square.rank < from_square.rank)
        square = from_square.offset(df, dr)
        while square != to_square:
            if not self.is_empty(square):
                return False
            square = square.offset(df, dr)
        return self.is_empty(to_square) if include_destination else True


def apply(board: Board, move: Move) -> Board:
    """Pure function: the board after the move. The input board is left untouched."""
    return board.apply(move)
