"""Tutor state machine: mode, learning role, position and selection.

The controller exclusively owns the mutable position. Everything it
hands out (``position``, ``snapshot()``) is a copy, and every accepted
change replaces the owned position with a freshly built one.
"""

from __future__ import annotations

import logging
import random

import chess

from chess_tutor.adapter import ChessPosition, IllegalMove, Square, to_square
from chess_tutor.layouts import build_layout
from chess_tutor.models import (
    BoardSnapshot,
    LearningRole,
    Mode,
    Selection,
    SelectionOutcome,
    TutorMove,
    TutorRequest,
    color_name,
)
from chess_tutor.resolver import pseudo_legal_moves
from chess_tutor.safe_ops import safe_change_turn, safe_clone

logger = logging.getLogger(__name__)

TUTOR_COLOR = chess.BLACK

INVALID_MOVE_MESSAGE = "Invalid move! Remember the rules for this piece."

_GREETING = (
    "Hello! I'm your chess tutor. You can Play a full game or check the "
    "Learn section to practice specific pieces like the Pawn."
)


class TutorController:
    """Owns one tutoring board and applies UI events to it."""

    def __init__(
        self,
        mode: Mode | str = Mode.BEGINNER,
        learning_role: LearningRole | str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Build the initial position for ``mode`` and ``learning_role``.

        Raises:
            ValueError: If mode or role is not a known value.
        """
        self._mode = Mode(mode)
        self._role = LearningRole(learning_role) if learning_role is not None else None
        self._rng = rng
        self._position = build_layout(self._mode, self._role, rng)
        self._history: list[tuple[ChessPosition, str | None]] = []
        self._last_move: str | None = None
        self._selection = Selection()
        self._warning: str | None = None
        self._notice: str | None = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def learning_role(self) -> LearningRole | None:
        return self._role

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def position(self) -> ChessPosition:
        """A copy of the current position."""
        return safe_clone(self._position)

    @property
    def is_permissive(self) -> bool:
        return self._mode.is_permissive or self._role is not None

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def fen(self) -> str:
        return self._position.fen()

    def hints(self, square: Square) -> frozenset[str]:
        """Pseudo-legal destinations of the piece on ``square``.

        Raises:
            ValueError: If ``square`` is not a board square.
        """
        return pseudo_legal_moves(self._position, square)

    def tutor_message(self) -> str:
        if self._warning:
            return f"Warning: {self._warning}"
        if self._notice:
            return self._notice
        if self._role is not None:
            return (
                f"You are now learning how the {self._role.value} moves! "
                f"Click on any {self._role.value.lower()} to see its valid moves."
            )
        return _GREETING

    def snapshot(self) -> BoardSnapshot:
        pos = self._position
        show_hints = self._mode.show_hints
        return BoardSnapshot(
            fen=pos.fen(),
            turn=color_name(pos.turn()),
            mode=self._mode.value,
            learning_role=self._role.value if self._role is not None else None,
            selected_square=self._selection.square,
            hints=sorted(self._selection.destinations) if show_hints else [],
            show_hints=show_hints,
            move_list=pos.move_list,
            last_move=self._last_move,
            legal_moves=pos.legal_moves_san(),
            is_check=pos.is_check(),
            is_checkmate=pos.is_checkmate(),
            is_stalemate=pos.is_stalemate(),
            is_game_over=pos.is_game_over(),
            result=pos.result(),
            piece_count=len(pos.occupied()),
            tutor_message=self.tutor_message(),
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def set_mode(self, mode: Mode | str) -> None:
        """Switch mode. Leaves the Learn section and rebuilds the board.

        Raises:
            ValueError: If ``mode`` is not a known mode.
        """
        self._mode = Mode(mode)
        self._role = None
        logger.info("mode set to %s", self._mode.value)
        self._rebuild()

    def set_learning_role(self, role: LearningRole | str | None) -> None:
        """Practice one role, or return to the mode's layout with ``None``.

        Raises:
            ValueError: If ``role`` is not a known role.
        """
        self._role = LearningRole(role) if role is not None else None
        logger.info("learning role set to %s",
                    self._role.value if self._role is not None else None)
        self._rebuild()

    def reset(self) -> None:
        self._rebuild()

    def _rebuild(self) -> None:
        self._position = build_layout(self._mode, self._role, self._rng)
        self._history.clear()
        self._last_move = None
        self._selection = Selection()
        self._warning = None
        self._notice = None

    def _commit(self, position: ChessPosition, last_move: str) -> None:
        self._history.append((self._position, self._last_move))
        self._position = position
        self._last_move = last_move
        self._selection = Selection()
        self._warning = None
        self._notice = None

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def make_move(self, source: Square, target: Square) -> bool:
        """Move the piece on ``source`` to ``target``.

        The piece must belong to the side to move. In strict play only
        legal moves are accepted. In expert mode or while a role is being
        practiced, a move the engine rejects is applied anyway by moving
        the piece directly and handing the turn to the other side.

        Returns:
            True if the position changed.
        """
        try:
            from_sq = to_square(source)
            to_sq = to_square(target)
        except ValueError:
            return False
        if from_sq == to_sq:
            return False

        board = safe_clone(self._position)
        piece = board.get(from_sq)
        if piece is None or piece.color != board.turn():
            return False

        uci = chess.Move(from_sq, to_sq).uci()
        try:
            move = board.move(from_sq, to_sq)
        except IllegalMove:
            if not self.is_permissive:
                return False
            board.remove(from_sq)
            board.put(piece, to_sq)
            board.record(f"{chess.square_name(from_sq)}-{chess.square_name(to_sq)}")
            change = safe_change_turn(board, not piece.color)
            logger.debug("bypass move %s, turn change via %s", uci, change.value)
        else:
            uci = move.uci()

        self._commit(board, uci)
        return True

    def undo(self) -> bool:
        """Restore the position before the last accepted move.

        Returns:
            False if there is nothing to undo.
        """
        if not self._history:
            return False
        self._position, self._last_move = self._history.pop()
        self._selection = Selection()
        self._warning = None
        self._notice = None
        return True

    def select_square(self, square: Square) -> SelectionOutcome:
        """Handle a click on ``square``.

        Clicking the selected square deselects it. With a selection,
        clicking one of its destinations plays the move, clicking another
        piece selects that piece, and clicking anywhere else is an invalid
        move. Without a selection, clicking a piece selects it.
        """
        self._warning = None
        try:
            sq = to_square(square)
        except ValueError:
            return SelectionOutcome("invalid", False, f"Unknown square: {square}")
        name = chess.square_name(sq)
        piece = self._position.get(sq)

        if self._selection.square == name:
            self._selection = Selection()
            return SelectionOutcome("deselected", True)

        if self._selection.square is not None:
            if name in self._selection.destinations:
                if self.make_move(self._selection.square, name):
                    return SelectionOutcome("moved", True)
                self._warning = INVALID_MOVE_MESSAGE
                return SelectionOutcome("rejected", False, INVALID_MOVE_MESSAGE)
            if piece is None:
                self._selection = Selection()
                self._warning = INVALID_MOVE_MESSAGE
                return SelectionOutcome("invalid", False, INVALID_MOVE_MESSAGE)

        if piece is None:
            return SelectionOutcome("deselected", False)

        self._selection = Selection(name, pseudo_legal_moves(self._position, sq))
        return SelectionOutcome("selected", True)

    # ------------------------------------------------------------------
    # External move proposer
    # ------------------------------------------------------------------

    def tutor_request(self) -> TutorRequest:
        """Board strings an external move proposer needs."""
        return TutorRequest(
            fen=self._position.fen(),
            pgn=self._position.movetext(),
            difficulty=self._mode.label,
            valid_moves=self._position.legal_moves_san(),
        )

    def apply_proposed_move(
        self,
        move: str,
        rng: random.Random | None = None,
    ) -> TutorMove | None:
        """Play a SAN or UCI move suggested from outside for the tutor side.

        The tutor only ever plays black. A proposal that is not legal is
        replaced by a random legal move and the tutor message says so.

        Returns:
            The move actually played, or None when it is not black's turn
            or there are no legal moves to play.
        """
        board = safe_clone(self._position)
        if board.turn() != TUTOR_COLOR:
            return None
        legal = board.legal_moves_san()
        if not legal:
            return None
        fallback = False
        try:
            chosen = board.parse_move(move)
        except IllegalMove:
            fallback = True
            san = (rng or self._rng or random).choice(legal)
            logger.warning("proposed move %r rejected, playing %s instead",
                           move, san)
            chosen = board.parse_move(san)
        board.push(chosen)
        self._commit(board, chosen.uci())
        played = TutorMove(board.move_list[-1], move, fallback)
        if fallback:
            self._notice = (
                f"I considered {move}, but decided on {played.san} instead."
            )
        return played
