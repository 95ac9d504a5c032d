"""Pseudo-legal destinations for any piece, whoever is to move."""

from __future__ import annotations

import logging

import chess

from chess_tutor.adapter import ChessPosition, Square, to_square
from chess_tutor.safe_ops import safe_change_turn, safe_clone

logger = logging.getLogger(__name__)


def pseudo_legal_moves(position: ChessPosition, square: Square) -> frozenset[str]:
    """Squares the piece on ``square`` could reach by its movement rules.

    Works on a clone: the side to move is forced to the piece's color and
    every other king is swapped for a pawn of the same color, so neither
    the actual turn nor check anywhere on the board restricts the result.

    Args:
        position: Position to inspect. Not modified.
        square: Square name or index.

    Returns:
        Destination square names; empty for an empty square or when move
        generation fails.
    """
    origin = to_square(square)
    piece = position.get(origin)
    if piece is None:
        return frozenset()

    board = safe_clone(position)
    if board.turn() != piece.color:
        safe_change_turn(board, piece.color)

    for name, other in board.occupied().items():
        if other.piece_type == chess.KING and chess.parse_square(name) != origin:
            board.put(chess.Piece(chess.PAWN, other.color), name)

    try:
        moves = board.legal_moves(origin)
    except (ValueError, IndexError) as exc:
        logger.warning("move generation failed for %s: %s",
                       chess.square_name(origin), exc)
        return frozenset()

    logger.debug("pseudo_legal_moves for %s returns %d moves",
                 chess.square_name(origin), len(moves))
    return frozenset(chess.square_name(m.to_square) for m in moves)
