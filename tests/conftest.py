"""
Pytest will auto-discover / import this file called 'conftest.py'. ]
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Callable

import pytest

from src.chess.board import Board

EMPTY_POSITION = "/".join(["8"] * 8)
# the bare minimum for a playable game
KINGS_ONLY_POSITION = "4k3/8/8/8/8/8/8/4K3"


@pytest.fixture
def board_from_position() -> Callable[..., Board]:
    """Call the inner function with only the piece placement part of a FEN string. The rest gets sensible defaults."""

    def _create_board(position: str, color: str = "w", castling: str = "-", en_passant: str = "-") -> Board:
        return Board.from_fen(f"{position} {color} {castling} {en_passant} 0 1")

    return _create_board


@pytest.fixture
def empty_board() -> Board:
    return Board.empty()


@pytest.fixture
def kings_only_board() -> Board:
    """
    Create a board with only kings on their canonical starting squares.
    Because making a move involves inferring if a king is under attack, games cannot be played on a board without both kings.
    """
    return Board.from_fen(f"{KINGS_ONLY_POSITION} w - - 0 1")
