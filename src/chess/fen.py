"""
FEN (Forsyth-Edwards Notation): one position as six space-separated fields
----

<piece placement> <active color> <castling rights> <en passant target> <half move clock> <full move number>

ex) rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1

Validation is done field by field, so that a rejected FEN can say which part is broken.
Whether the position is also playable (one king each) is a separate question: see `has_one_king_per_color`.
"""

from dataclasses import dataclass
from string import ascii_lowercase
from typing import Callable, Optional, Self

from src.chess.castling import CASTLING_ORDER, CastlingDirection, castling_from_fen, castling_to_fen
from src.chess.pieces import FEN_TO_PIECE, Color
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidFENError

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
FEN_FIELDS = (
    "piece placement",
    "active color",
    "castling rights",
    "en passant target",
    "half move clock",
    "full move number",
)
COLOR_CODES: dict[str, Color] = {"w": Color.WHITE, "b": Color.BLACK}
# a pawn that just double pushed is passed over on the third (white) or sixth (black) rank
EN_PASSANT_RANKS = ("3", "6")


# --- FIELD VALIDATORS ---
def is_valid_position(position: str) -> bool:
    """Every rank accounts for exactly as many squares as there are files, with known piece letters only."""
    num_files, num_ranks = BOARD_DIMENSIONS
    rank_fens = position.split("/")
    if len(rank_fens) != num_ranks:
        return False
    return all(_rank_width(rank_fen) == num_files for rank_fen in rank_fens)


def _rank_width(rank_fen: str) -> Optional[int]:
    """Number of squares one rank describes. None if it holds anything but digits and piece letters."""
    width = 0
    for character in rank_fen:
        if character.isdigit():
            width += int(character)
        elif character.lower() in FEN_TO_PIECE:
            width += 1
        else:
            return None
    return width


def has_one_king_per_color(position: str) -> bool:
    """A playable position has exactly one white king and exactly one black king."""
    return position.count("K") == 1 and position.count("k") == 1


def is_valid_color_code(color: str) -> bool:
    return color in COLOR_CODES


def is_valid_castling_rights(castling: str) -> bool:
    """'-' when no rights are left. Otherwise a subsequence of KQkq: no repeats, always in that order."""
    if castling == "-":
        return True
    remaining = iter("".join(direction.value for direction in CASTLING_ORDER))
    # one shared iterator: enforces the order, and rules out repeats
    return bool(castling) and all(character in remaining for character in castling)


def is_valid_square(square: str) -> bool:
    """Valid square should be a letter for the file + a number for the rank"""
    num_files, num_ranks = BOARD_DIMENSIONS
    if len(square) < 2:
        return False

    file_char, rank_char = square[0], square[1:]
    if file_char not in ascii_lowercase[:num_files]:
        return False
    return rank_char.isdigit() and 1 <= int(rank_char) <= num_ranks


def is_valid_en_passant(en_passant: str) -> bool:
    """'-', or the square a double-pushed pawn just skipped."""
    if en_passant == "-":
        return True
    return is_valid_square(en_passant) and en_passant[1:] in EN_PASSANT_RANKS


def is_valid_move_counter(counter: str) -> bool:
    return counter.isdigit()


def _is_valid_full_move_number(counter: str) -> bool:
    return is_valid_move_counter(counter) and int(counter) >= 1


FIELD_VALIDATORS: tuple[Callable[[str], bool], ...] = (
    is_valid_position,
    is_valid_color_code,
    is_valid_castling_rights,
    is_valid_en_passant,
    is_valid_move_counter,
    _is_valid_full_move_number,
)


# --- WHOLE STRING ---
def fen_problems(fen: str) -> list[str]:
    """Everything wrong with the given string as FEN. Empty if it is valid."""
    parts = fen.split(" ")
    if len(parts) != len(FEN_FIELDS):
        return [f"expected {len(FEN_FIELDS)} space-separated fields, got {len(parts)}"]
    return [
        f"invalid {field_name}: {part!r}"
        for field_name, part, validator in zip(FEN_FIELDS, parts, FIELD_VALIDATORS)
        if not validator(part)
    ]


def is_valid_fen(fen: str) -> bool:
    return not fen_problems(fen)


@dataclass(frozen=True)
class FENState:
    """
    The six FEN fields, parsed. The piece placement stays a string: turning it into squares is the Board's job.

    * castling rights: the set of castling moves still allowed by the history of the game (not by the current position)
    * en passant square: the square skipped by a pawn that just moved two squares, None otherwise
    * half move clock: half moves since the last capture or pawn move (the fifty move rule looks at this)
    * full move number: starts at 1, and goes up after every move of black
    """

    position: str
    color_to_move: Color
    castling_rights: frozenset[CastlingDirection]
    en_passant_square: Optional[Square]
    half_move_clock: int
    full_move_number: int

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        problems = fen_problems(fen)
        if problems:
            raise InvalidFENError(f"Cannot interpret {fen!r} as FEN: {'; '.join(problems)}")

        position, active_color, castling, en_passant, half_move_clock, full_move_number = fen.split(" ")
        return cls(
            position,
            COLOR_CODES[active_color],
            castling_from_fen(castling),
            Square.from_algebraic(en_passant) if en_passant != "-" else None,
            int(half_move_clock),
            int(full_move_number),
        )

    def to_fen(self) -> str:
        active_color = next(code for code, color in COLOR_CODES.items() if color == self.color_to_move)
        en_passant = self.en_passant_square.to_algebraic() if self.en_passant_square is not None else "-"
        return " ".join(
            [
                self.position,
                active_color,
                castling_to_fen(self.castling_rights),
                en_passant,
                str(self.half_move_clock),
                str(self.full_move_number),
            ]
        )

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)
