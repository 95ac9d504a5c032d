"""Shared test fixtures.

Usage:
    pytest tests/

Fixtures:
    rng                - Seeded random.Random for reproducible layouts.
    knight_board       - Kingless board with the four knights on their homes.
    enable_validation  - Sets CHESS_TUTOR_VALIDATE=1 for schema validation.
"""

from __future__ import annotations

import os
import random

import chess
import pytest

from chess_tutor.adapter import ChessPosition


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(20240611)


@pytest.fixture()
def knight_board() -> ChessPosition:
    position = ChessPosition(None)
    for name, color in (
        ("b1", chess.WHITE), ("g1", chess.WHITE),
        ("b8", chess.BLACK), ("g8", chess.BLACK),
    ):
        position.put(chess.Piece(chess.KNIGHT, color), name)
    return position


@pytest.fixture(autouse=True)
def enable_validation():
    """Set CHESS_TUTOR_VALIDATE=1 for the test.

    Restores the original env var value after the test.
    """
    original = os.environ.get("CHESS_TUTOR_VALIDATE")
    os.environ["CHESS_TUTOR_VALIDATE"] = "1"
    yield
    if original is None:
        os.environ.pop("CHESS_TUTOR_VALIDATE", None)
    else:
        os.environ["CHESS_TUTOR_VALIDATE"] = original
