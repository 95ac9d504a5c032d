"""Strict rules-engine adapter over python-chess.

python-chess happily loads kingless boards and pushes unchecked moves.
The tutor needs an engine that refuses irregular states so the safe
operations can detect and work around them, so ChessPosition rejects
any FEN whose resulting position fails ``Board.is_valid()`` and any move
that fails ``Board.is_legal()``.

Besides the engine board, a position carries the human-readable move
list (SAN for engine moves, ``from-to`` for bypass moves) that is fed to
the movetext of tutor requests.
"""

from __future__ import annotations

from typing import Union

import chess

Square = Union[str, int]


class ParseError(ValueError):
    """FEN is malformed or describes a position the engine rejects."""


class IllegalMove(ValueError):
    """Move rejected by strict legality."""


def to_square(square: Square) -> chess.Square:
    """Normalize a square name or index to a python-chess square.

    Raises:
        ValueError: If the name or index is not a board square.
    """
    if isinstance(square, int):
        if square not in chess.SQUARES:
            raise ValueError(f"invalid square index: {square!r}")
        return square
    if not isinstance(square, str):
        raise ValueError(f"invalid square: {square!r}")
    return chess.parse_square(square.strip().lower())


def format_movetext(labels: list[str]) -> str:
    """Numbered movetext, e.g. ``['e4', 'e5', 'Nf3'] -> '1.e4 e5 2.Nf3'``."""
    parts = []
    for i, label in enumerate(labels):
        if i % 2 == 0:
            parts.append(f"{i // 2 + 1}.{label}")
        else:
            parts.append(label)
    return " ".join(parts)


class ChessPosition:
    """A mutable board position backed by one ``chess.Board``."""

    def __init__(self, fen: str | None = chess.STARTING_FEN) -> None:
        """Create a position.

        Args:
            fen: Starting FEN, loaded strictly. ``None`` yields an empty
                board with white to move.

        Raises:
            ParseError: If ``fen`` is rejected.
        """
        self._board = chess.Board(None)
        self._moves: list[str] = []
        if fen is not None:
            self.load_fen(fen)

    # ------------------------------------------------------------------
    # Board primitives
    # ------------------------------------------------------------------

    def get(self, square: Square) -> chess.Piece | None:
        return self._board.piece_at(to_square(square))

    def put(self, piece: chess.Piece, square: Square) -> None:
        self._board.set_piece_at(to_square(square), piece)

    def remove(self, square: Square) -> chess.Piece | None:
        return self._board.remove_piece_at(to_square(square))

    def clear(self) -> None:
        """Empty the board: white to move, no castling, no history."""
        self._board.clear()
        self._moves = []

    def occupied(self) -> dict[str, chess.Piece]:
        """Map of square name to piece for every occupied square."""
        return {
            chess.square_name(sq): piece
            for sq, piece in self._board.piece_map().items()
        }

    # ------------------------------------------------------------------
    # FEN
    # ------------------------------------------------------------------

    def load_fen(self, fen: str) -> None:
        """Replace the position with ``fen``.

        The current position is left untouched when loading fails.

        Raises:
            ParseError: If the FEN is malformed or the position is invalid.
        """
        try:
            board = chess.Board(fen)
        except ValueError as exc:
            raise ParseError(f"Invalid FEN: {exc}") from exc
        if not board.is_valid():
            raise ParseError(f"Invalid FEN position: {fen} ({board.status()!r})")
        self._board = board
        self._moves = []

    def fen(self) -> str:
        return self._board.fen()

    def board_fen(self) -> str:
        """Piece placement field only."""
        return self._board.board_fen()

    # ------------------------------------------------------------------
    # Turn and history
    # ------------------------------------------------------------------

    def turn(self) -> chess.Color:
        return self._board.turn

    def history(self) -> list[chess.Move]:
        """Engine move history, oldest first.

        Only strict moves appear here. Bypass moves and FEN clones leave no
        engine history, which is why TutorController keeps its own undo
        stack of positions.
        """
        return list(self._board.move_stack)

    def forget_history(self) -> None:
        """Drop engine move history without touching the placement."""
        self._board.clear_stack()

    @property
    def move_list(self) -> list[str]:
        return list(self._moves)

    def record(self, label: str) -> None:
        """Append a move label (SAN or ``from-to``) to the move list."""
        self._moves.append(label)

    def set_move_list(self, labels: list[str]) -> None:
        self._moves = list(labels)

    def movetext(self) -> str:
        """Move list as numbered movetext, e.g. ``1.e4 e5 2.Nf3``."""
        return format_movetext(self._moves)

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def legal_moves(self, square: Square | None = None) -> list[chess.Move]:
        """Legal moves for the side to move, optionally from one square."""
        if square is None:
            return list(self._board.legal_moves)
        mask = chess.BB_SQUARES[to_square(square)]
        return list(self._board.generate_legal_moves(from_mask=mask))

    def legal_moves_san(self) -> list[str]:
        """SAN legal moves, empty when the engine considers the board invalid."""
        if not self._board.is_valid():
            return []
        return [self._board.san(m) for m in self._board.legal_moves]

    def move(
        self,
        source: Square,
        target: Square,
        promotion: chess.PieceType = chess.QUEEN,
    ) -> chess.Move:
        """Play a strictly legal move and record it.

        Args:
            source: From square.
            target: To square.
            promotion: Piece a pawn reaching the back rank becomes.

        Returns:
            The move pushed onto engine history.

        Raises:
            IllegalMove: If the move is not legal here.
        """
        from_sq = to_square(source)
        to_sq = to_square(target)
        candidate = chess.Move(from_sq, to_sq)
        piece = self._board.piece_at(from_sq)
        if (
            piece is not None
            and piece.piece_type == chess.PAWN
            and chess.square_rank(to_sq) in (0, 7)
        ):
            candidate.promotion = promotion
        return self.push(candidate)

    def push(self, move: chess.Move) -> chess.Move:
        """Push an already-built move after a strict legality check.

        Raises:
            IllegalMove: If the move is not legal here.
        """
        if not self._board.is_legal(move):
            raise IllegalMove(f"Illegal move: {move.uci()}")
        label = self._board.san(move)
        self._board.push(move)
        self._moves.append(label)
        return move

    def parse_move(self, text: str) -> chess.Move:
        """Parse a SAN or UCI move for the side to move.

        Raises:
            IllegalMove: If the text is not a legal move here.
        """
        text = text.strip()
        try:
            move = self._board.parse_san(text)
        except ValueError:
            try:
                move = chess.Move.from_uci(text)
            except ValueError as exc:
                raise IllegalMove(f"Unparseable move: {text}") from exc
        if not self._board.is_legal(move):
            raise IllegalMove(f"Illegal move: {text}")
        return move

    def undo(self) -> chess.Move | None:
        """Pop the most recent engine move, or ``None`` if there is none.

        Undoes strict moves only. Tutor-level undo, which also reverts
        bypass moves, is TutorController.undo.
        """
        if not self._board.move_stack:
            return None
        move = self._board.pop()
        if self._moves:
            self._moves.pop()
        return move

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def is_valid(self) -> bool:
        return self._board.is_valid()

    def is_check(self) -> bool:
        return self._board.is_check()

    def is_checkmate(self) -> bool:
        return self._board.is_valid() and self._board.is_checkmate()

    def is_stalemate(self) -> bool:
        return self._board.is_valid() and self._board.is_stalemate()

    def is_game_over(self) -> bool:
        return self._board.is_valid() and self._board.is_game_over()

    def result(self) -> str | None:
        if not self.is_game_over():
            return None
        return self._board.result()

    def __str__(self) -> str:
        return str(self._board)

    def __repr__(self) -> str:
        return f"ChessPosition({self.fen()!r})"
