"""Board layouts for the Play and Learn sections.

Every builder starts from an empty board with white to move. Shuffled
builders draw a uniform permutation with ``Random.shuffle`` and walk it
from the front, skipping squares already taken. With at most 32 pieces
on 64 squares the walk is bounded by the length of the permutation.
"""

from __future__ import annotations

import random

import chess

from chess_tutor.adapter import ChessPosition
from chess_tutor.models import LearningRole, Mode

_ALL_SQUARES = list(chess.SQUARES)
_PAWN_SQUARES = [sq for sq in chess.SQUARES if 0 < chess.square_rank(sq) < 7]

# Home squares used when a role is practiced without shuffling.
ROLE_HOMES: dict[LearningRole, list[str]] = {
    LearningRole.PAWN: [f"{f}2" for f in "abcdefgh"] + [f"{f}7" for f in "abcdefgh"],
    LearningRole.KNIGHT: ["b1", "g1", "b8", "g8"],
    LearningRole.BISHOP: ["c1", "f1", "c8", "f8"],
    LearningRole.ROOK: ["a1", "h1", "a8", "h8"],
    LearningRole.QUEEN: ["d1", "d8"],
    LearningRole.KING: ["e1", "e8"],
}

# Pieces per color in a full army.
ARMY_COUNTS: dict[chess.PieceType, int] = {
    chess.PAWN: 8,
    chess.ROOK: 2,
    chess.KNIGHT: 2,
    chess.BISHOP: 2,
    chess.QUEEN: 1,
    chess.KING: 1,
}


def role_inventory(role: LearningRole) -> list[chess.Piece]:
    """White pieces first, then black, one per home square."""
    per_color = len(ROLE_HOMES[role]) // 2
    return [
        chess.Piece(role.piece_type, color)
        for color in (chess.WHITE, chess.BLACK)
        for _ in range(per_color)
    ]


def army_inventory() -> list[chess.Piece]:
    """The standard 32 pieces, pawns first."""
    return [
        chess.Piece(piece_type, color)
        for piece_type, count in ARMY_COUNTS.items()
        for color in (chess.WHITE, chess.BLACK)
        for _ in range(count)
    ]


def _place(
    position: ChessPosition,
    pieces: list[chess.Piece],
    squares: list[chess.Square],
    taken: set[chess.Square],
) -> None:
    order = iter(squares)
    for piece in pieces:
        square = next(sq for sq in order if sq not in taken)
        taken.add(square)
        position.put(piece, square)


def standard_layout() -> ChessPosition:
    return ChessPosition(chess.STARTING_FEN)


def role_layout(
    role: LearningRole,
    shuffled: bool = False,
    rng: random.Random | None = None,
) -> ChessPosition:
    """Only the pieces of one role.

    Args:
        role: Role to isolate.
        shuffled: Scatter the role's inventory over all 64 squares
            instead of using the home squares.
        rng: Random source for shuffling; defaults to the ``random`` module.

    Returns:
        A new position, white to move.
    """
    position = ChessPosition(None)
    if not shuffled:
        for name in ROLE_HOMES[role]:
            color = chess.WHITE if name[1] in "12" else chess.BLACK
            position.put(chess.Piece(role.piece_type, color), name)
        return position

    squares = list(_ALL_SQUARES)
    (rng or random).shuffle(squares)
    _place(position, role_inventory(role), squares, set())
    return position


def shuffled_army_layout(rng: random.Random | None = None) -> ChessPosition:
    """Full 32-piece army on random squares, pawns kept off the back ranks."""
    rng = rng or random
    pawn_squares = list(_PAWN_SQUARES)
    other_squares = list(_ALL_SQUARES)
    rng.shuffle(pawn_squares)
    rng.shuffle(other_squares)

    inventory = army_inventory()
    pawns = [p for p in inventory if p.piece_type == chess.PAWN]
    others = [p for p in inventory if p.piece_type != chess.PAWN]

    position = ChessPosition(None)
    taken: set[chess.Square] = set()
    _place(position, pawns, pawn_squares, taken)
    _place(position, others, other_squares, taken)
    return position


def build_layout(
    mode: Mode,
    role: LearningRole | None = None,
    rng: random.Random | None = None,
) -> ChessPosition:
    """Layout for a (mode, role) pair. A role overrides the mode's layout."""
    if role is not None:
        return role_layout(role, shuffled=mode is Mode.EXPERT, rng=rng)
    if mode is Mode.EXPERT:
        return shuffled_army_layout(rng)
    return standard_layout()
