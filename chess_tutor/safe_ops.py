"""Copy and turn-forcing operations that survive engine rejection.

Teaching layouts are routinely irregular (no kings, pawns on the back
rank, the side not to move in check). The strict adapter refuses to load
such positions, so both operations here have a primary path through FEN
and an explicit manual fallback. Neither raises.
"""

from __future__ import annotations

import logging
from enum import Enum

import chess

from chess_tutor.adapter import ChessPosition, IllegalMove, ParseError
from chess_tutor.models import color_name

logger = logging.getLogger(__name__)

# Transit squares for the dummy pawn push, per side to move.
_DUMMY_PUSH = {
    chess.WHITE: (chess.A2, chess.A3),
    chess.BLACK: (chess.A7, chess.A6),
}


class TurnChange(str, Enum):
    """Which path ``safe_change_turn`` took."""

    UNCHANGED = "unchanged"
    METADATA = "metadata"
    DUMMY_MOVE = "dummy_move"
    FAILED = "failed"


def safe_clone(position: ChessPosition) -> ChessPosition:
    """Copy a position, even one the engine refuses to load.

    Args:
        position: Source position. Not modified.

    Returns:
        A new position with the same placement and side to move. On the
        fallback path castling rights, en passant and clocks are dropped.
    """
    clone = ChessPosition(None)
    try:
        clone.load_fen(position.fen())
    except ParseError:
        clone.clear()
        for square, piece in position.occupied().items():
            clone.put(piece, square)
        change = safe_change_turn(clone, position.turn())
        logger.debug(
            "safe_clone fallback: target turn %s, result turn %s (%s)",
            color_name(position.turn()), color_name(clone.turn()), change.value,
        )
    clone.set_move_list(position.move_list)
    return clone


def safe_change_turn(position: ChessPosition, color: chess.Color) -> TurnChange:
    """Force the side to move to ``color`` in place.

    First rewrites the side-to-move and en passant fields of the FEN and
    reloads. If the engine rejects that, removes all kings, pushes a
    synthetic one-square pawn move for the current side, then takes the
    pawn back off and restores the transit squares and the kings.

    Args:
        position: Position to modify.
        color: Side that should be to move.

    Returns:
        The path taken. ``FAILED`` means the position is returned as is.
    """
    if position.turn() == color:
        return TurnChange.UNCHANGED

    fields = position.fen().split(" ")
    fields[1] = "w" if color == chess.WHITE else "b"
    fields[3] = "-"
    moves = position.move_list
    try:
        position.load_fen(" ".join(fields))
    except ParseError:
        pass
    else:
        position.set_move_list(moves)
        return TurnChange.METADATA

    return _dummy_move(position, color)


def _dummy_move(position: ChessPosition, color: chess.Color) -> TurnChange:
    mover = position.turn()
    kings = {
        square: piece
        for square, piece in position.occupied().items()
        if piece.piece_type == chess.KING
    }
    for square in kings:
        position.remove(square)

    start, end = _DUMMY_PUSH[mover]
    orig_start = position.get(start)
    orig_end = position.get(end)
    moves = position.move_list

    position.put(chess.Piece(chess.PAWN, mover), start)
    position.remove(end)
    try:
        position.push(chess.Move(start, end))
    except IllegalMove:
        logger.warning("safe_change_turn: dummy move %s rejected",
                       chess.Move(start, end).uci())
    position.forget_history()

    position.remove(end)
    if orig_start is not None:
        position.put(orig_start, start)
    else:
        position.remove(start)
    if orig_end is not None:
        position.put(orig_end, end)
    for square, piece in kings.items():
        position.put(piece, square)

    # The synthetic push never counts as a played move.
    position.set_move_list(moves)

    if position.turn() != color:
        return TurnChange.FAILED
    logger.debug("safe_change_turn fallback finished, %s to move",
                 color_name(position.turn()))
    return TurnChange.DUMMY_MOVE
