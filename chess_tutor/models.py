"""Shared data models for the chess tutor.

Mode, LearningRole and the snapshot dataclasses are the shared contract
between the controller, the MCP server and the terminal viewer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import chess


class Mode(str, Enum):
    """Difficulty mode selected in the Play sidebar."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"

    @property
    def is_permissive(self) -> bool:
        return self is Mode.EXPERT

    @property
    def show_hints(self) -> bool:
        return self is Mode.BEGINNER

    @property
    def label(self) -> str:
        return self.value.capitalize()


class LearningRole(str, Enum):
    """Piece role practiced in the Learn sidebar."""

    PAWN = "Pawn"
    KNIGHT = "Knight"
    BISHOP = "Bishop"
    ROOK = "Rook"
    QUEEN = "Queen"
    KING = "King"

    @property
    def piece_type(self) -> chess.PieceType:
        return _ROLE_PIECE_TYPES[self]


_ROLE_PIECE_TYPES: dict[LearningRole, chess.PieceType] = {
    LearningRole.PAWN: chess.PAWN,
    LearningRole.KNIGHT: chess.KNIGHT,
    LearningRole.BISHOP: chess.BISHOP,
    LearningRole.ROOK: chess.ROOK,
    LearningRole.QUEEN: chess.QUEEN,
    LearningRole.KING: chess.KING,
}


def color_name(color: chess.Color) -> str:
    return "white" if color == chess.WHITE else "black"


@dataclass(frozen=True)
class Selection:
    """Currently selected square and its resolved destinations."""

    square: str | None = None
    destinations: frozenset[str] = frozenset()


@dataclass
class SelectionOutcome:
    """Result of a square click.

    action is one of: selected, deselected, moved, rejected, invalid.
    """

    action: str
    success: bool
    message: str | None = None


@dataclass
class BoardSnapshot:
    """Read-only view of the tutor state for rendering and sync."""

    fen: str
    turn: str
    mode: str
    learning_role: str | None = None
    selected_square: str | None = None
    hints: list[str] = field(default_factory=list)
    show_hints: bool = True
    move_list: list[str] = field(default_factory=list)
    last_move: str | None = None
    legal_moves: list[str] = field(default_factory=list)
    is_check: bool = False
    is_checkmate: bool = False
    is_stalemate: bool = False
    is_game_over: bool = False
    result: str | None = None
    piece_count: int = 0
    tutor_message: str = ""


@dataclass
class TutorRequest:
    """Strings handed to an external move proposer."""

    fen: str
    pgn: str
    difficulty: str
    valid_moves: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TutorMove:
    """Move the tutor actually played for an external proposal."""

    san: str
    proposed: str
    fallback: bool = False
