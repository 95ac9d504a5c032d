"""MCP server for the chess tutor.

Exposes the tutor controller's UI events as FastMCP tools. Sessions are
stored in memory keyed by UUID. The full board snapshot is synced to
data/current_board.json after every state change for the terminal viewer.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import uuid
from dataclasses import asdict
from pathlib import Path

# Add project root and mcp-server dir to path for imports
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_MCP_SERVER_DIR = Path(__file__).resolve().parent
sys.path.insert(0, str(_PROJECT_ROOT))
sys.path.insert(0, str(_MCP_SERVER_DIR))

from mcp.server.fastmcp import FastMCP

from chess_tutor.controller import TUTOR_COLOR, TutorController
from chess_tutor.models import LearningRole, Mode

from response_schemas import minify_snapshot  # noqa: E402

logger = logging.getLogger(__name__)

mcp = FastMCP("chess-tutor")

# In-memory session store: session_id -> controller
_sessions: dict[str, TutorController] = {}

_DATA_DIR = Path(os.environ.get("CHESS_TUTOR_DATA_DIR", _PROJECT_ROOT / "data"))

_MODES = ", ".join(m.value for m in Mode)
_ROLES = ", ".join(r.value for r in LearningRole)


def _get_session(session_id: str) -> TutorController | None:
    return _sessions.get(session_id)


def _not_found(session_id: str) -> dict:
    return {"error": f"Session not found: {session_id}"}


def _parse_role(role: str | None) -> LearningRole | None:
    """Map a role name (any case) to LearningRole; empty means no role.

    Raises:
        ValueError: If the name is not a role.
    """
    if role is None or not role.strip():
        return None
    return LearningRole(role.strip().capitalize())


def _sync_board_json(snapshot: dict) -> None:
    """Write the full snapshot to data/current_board.json atomically.

    Uses temp file + os.replace() for atomic write.
    """
    _DATA_DIR.mkdir(parents=True, exist_ok=True)
    target = _DATA_DIR / "current_board.json"
    tmp = _DATA_DIR / "current_board.tmp"
    tmp.write_text(
        json.dumps(snapshot, indent=2, default=str, ensure_ascii=False),
        encoding="utf-8",
    )
    os.replace(tmp, target)


def _state(session_id: str, controller: TutorController, sync: bool = True) -> dict:
    """Minified snapshot for a response, syncing the full one to disk."""
    snapshot = asdict(controller.snapshot())
    if sync:
        _sync_board_json(snapshot)
    return {"session_id": session_id, **minify_snapshot(snapshot)}


# ---------------------------------------------------------------------------
# Session tools
# ---------------------------------------------------------------------------


@mcp.tool()
def new_session(mode: str = "beginner", learning_role: str | None = None) -> dict:
    """Start a new tutoring board.

    Args:
        mode: 'beginner', 'intermediate' or 'expert'. Default 'beginner'.
        learning_role: Optional piece role to practice
            (Pawn, Knight, Bishop, Rook, Queen, King).

    Returns:
        Board snapshot with the new session_id.
    """
    try:
        controller = TutorController(Mode(mode.lower()), _parse_role(learning_role))
    except ValueError:
        return {"error": f"Invalid mode or role: {mode!r}, {learning_role!r}. "
                         f"Modes: {_MODES}. Roles: {_ROLES}"}

    session_id = str(uuid.uuid4())
    _sessions[session_id] = controller
    logger.info("new session %s (%s, %s)", session_id, mode, learning_role)
    return _state(session_id, controller)


@mcp.tool()
def get_board(session_id: str) -> dict:
    """Get the current board snapshot for a session.

    Args:
        session_id: UUID of the session.

    Returns:
        Board snapshot.
    """
    controller = _get_session(session_id)
    if controller is None:
        return _not_found(session_id)
    return _state(session_id, controller, sync=False)


@mcp.tool()
def set_mode(session_id: str, mode: str) -> dict:
    """Switch difficulty mode. Clears the learning role and rebuilds the board.

    Args:
        session_id: UUID of the session.
        mode: 'beginner', 'intermediate' or 'expert'.

    Returns:
        Board snapshot after the switch.
    """
    controller = _get_session(session_id)
    if controller is None:
        return _not_found(session_id)
    try:
        controller.set_mode(mode.lower())
    except ValueError:
        return {"error": f"Invalid mode: {mode}. Modes: {_MODES}"}
    return _state(session_id, controller)


@mcp.tool()
def set_learning_role(session_id: str, role: str | None = None) -> dict:
    """Practice one piece role, or pass no role to go back to the mode's board.

    Args:
        session_id: UUID of the session.
        role: Pawn, Knight, Bishop, Rook, Queen, King, or None.

    Returns:
        Board snapshot after the switch.
    """
    controller = _get_session(session_id)
    if controller is None:
        return _not_found(session_id)
    try:
        controller.set_learning_role(_parse_role(role))
    except ValueError:
        return {"error": f"Invalid role: {role}. Roles: {_ROLES}"}
    return _state(session_id, controller)


@mcp.tool()
def reset_board(session_id: str) -> dict:
    """Rebuild the board for the current mode and role.

    Args:
        session_id: UUID of the session.

    Returns:
        Board snapshot after the reset.
    """
    controller = _get_session(session_id)
    if controller is None:
        return _not_found(session_id)
    controller.reset()
    return _state(session_id, controller)


# ---------------------------------------------------------------------------
# Board interaction tools
# ---------------------------------------------------------------------------


@mcp.tool()
def select_square(session_id: str, square: str) -> dict:
    """Click a square: select a piece, play a hinted move, or deselect.

    Args:
        session_id: UUID of the session.
        square: Square name (e.g., 'e2').

    Returns:
        Board snapshot with action ('selected', 'deselected', 'moved',
        'rejected', 'invalid'), success flag and advisory message.
    """
    controller = _get_session(session_id)
    if controller is None:
        return _not_found(session_id)
    outcome = controller.select_square(square)
    return {
        **_state(session_id, controller),
        "action": outcome.action,
        "success": outcome.success,
        "message": outcome.message,
    }


@mcp.tool()
def make_move(session_id: str, source: str, target: str) -> dict:
    """Move a piece from one square to another.

    Turns always alternate. In expert mode or while practicing a role,
    moves the rules forbid are still applied.

    Args:
        session_id: UUID of the session.
        source: From square (e.g., 'e2').
        target: To square (e.g., 'e4').

    Returns:
        Board snapshot with a success flag.
    """
    controller = _get_session(session_id)
    if controller is None:
        return _not_found(session_id)
    success = controller.make_move(source, target)
    return {**_state(session_id, controller), "success": success}


@mcp.tool()
def get_hints(session_id: str, square: str) -> dict:
    """List the squares the piece on a square can reach, whoever is to move.

    Args:
        session_id: UUID of the session.
        square: Square name (e.g., 'b8').

    Returns:
        Dict with the sorted destination squares.
    """
    controller = _get_session(session_id)
    if controller is None:
        return _not_found(session_id)
    try:
        hints = controller.hints(square)
    except ValueError:
        return {"error": f"Invalid square: {square}"}
    return {"session_id": session_id, "square": square, "hints": sorted(hints)}


@mcp.tool()
def undo_move(session_id: str) -> dict:
    """Undo the last accepted move, including moves applied in practice.

    Args:
        session_id: UUID of the session.

    Returns:
        Board snapshot after undo.
    """
    controller = _get_session(session_id)
    if controller is None:
        return _not_found(session_id)
    if not controller.undo():
        return {"error": "No moves to undo"}
    return {**_state(session_id, controller), "success": True}


# ---------------------------------------------------------------------------
# Tutor opponent tools
# ---------------------------------------------------------------------------


@mcp.tool()
def get_tutor_request(session_id: str) -> dict:
    """Board FEN, movetext, difficulty and legal moves for choosing a reply.

    Args:
        session_id: UUID of the session.

    Returns:
        Dict with fen, pgn, difficulty and valid_moves (SAN).
    """
    controller = _get_session(session_id)
    if controller is None:
        return _not_found(session_id)
    return {"session_id": session_id, **asdict(controller.tutor_request())}


@mcp.tool()
def apply_tutor_move(session_id: str, move: str, commentary: str = "") -> dict:
    """Play the tutor's chosen move for black. Falls back to a random legal move.

    Args:
        session_id: UUID of the session.
        move: Move in SAN or UCI notation.
        commentary: Free-text commentary to echo back.

    Returns:
        Board snapshot with the move actually played and whether the
        proposal was replaced by a random legal move.
    """
    controller = _get_session(session_id)
    if controller is None:
        return _not_found(session_id)
    if controller.snapshot().is_game_over:
        return {"error": "Game is already over"}
    if controller.position.turn() != TUTOR_COLOR:
        return {"error": "Not the tutor's turn"}
    played = controller.apply_proposed_move(move)
    if played is None:
        return {"error": "No legal moves available"}
    return {
        **_state(session_id, controller),
        "played": played.san,
        "fallback": played.fallback,
        "commentary": commentary,
    }


if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("CHESS_TUTOR_LOG_LEVEL", "WARNING").upper(),
        stream=sys.stderr,
    )
    mcp.run()
