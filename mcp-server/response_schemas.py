"""Response schemas and minification for MCP tool responses.

Minifies board snapshots returned by MCP tools to reduce LLM context
token waste. data/current_board.json (viewer sync) is NOT affected;
it always receives the full snapshot.

The move list is rendered as a PGN-style string (1.e4 e5 2.Nf3 ...),
which is natural for an LLM agent to read.
"""

from __future__ import annotations

import os

from chess_tutor.adapter import format_movetext


# ---------------------------------------------------------------------------
# Minification
# ---------------------------------------------------------------------------


def minify_snapshot(snapshot: dict) -> dict:
    """Minify a BoardSnapshot dict for MCP response.

    Compacts move_list to a PGN string, replaces legal_moves with a count
    and drops fields the agent can derive (show_hints, piece_count,
    is_checkmate, is_stalemate).

    Args:
        snapshot: Full BoardSnapshot dict (from dataclasses.asdict).

    Returns:
        Minified dict.
    """
    result = {}

    for key in (
        "fen", "turn", "mode", "learning_role", "selected_square",
        "hints", "last_move", "is_check", "is_game_over", "result",
        "tutor_message",
    ):
        if key in snapshot:
            result[key] = snapshot[key]

    move_list = snapshot.get("move_list", [])
    if isinstance(move_list, list):
        result["move_list"] = format_movetext(move_list)
    else:
        result["move_list"] = move_list

    legal_moves = snapshot.get("legal_moves", [])
    if isinstance(legal_moves, list):
        result["legal_moves_count"] = len(legal_moves)
    else:
        result["legal_moves_count"] = 0

    return result


# ---------------------------------------------------------------------------
# Validation schemas (dict-based)
# ---------------------------------------------------------------------------

SNAPSHOT_SCHEMA = {
    "session_id": str,
    "fen": str,
    "turn": str,
    "mode": str,
    "learning_role": (str, type(None)),
    "selected_square": (str, type(None)),
    "hints": list,
    "last_move": (str, type(None)),
    "is_check": bool,
    "is_game_over": bool,
    "result": (str, type(None)),
    "tutor_message": str,
    "move_list": str,
    "legal_moves_count": int,
}

MOVE_RESULT_SCHEMA = {
    **SNAPSHOT_SCHEMA,
    "success": bool,
}

SELECTION_SCHEMA = {
    **SNAPSHOT_SCHEMA,
    "action": str,
    "success": bool,
    "message": (str, type(None)),
}

HINTS_SCHEMA = {
    "session_id": str,
    "square": str,
    "hints": list,
}

TUTOR_REQUEST_SCHEMA = {
    "session_id": str,
    "fen": str,
    "pgn": str,
    "difficulty": str,
    "valid_moves": list,
}

ERROR_SCHEMA = {
    "error": str,
}


def validate_response(response: dict, schema: dict) -> list[str]:
    """Validate a response dict against a schema.

    Only runs when CHESS_TUTOR_VALIDATE=1 env var is set.

    Args:
        response: Response dict to validate.
        schema: Dict mapping key names to expected types (or tuple of types).

    Returns:
        List of validation error strings (empty = valid).
    """
    if os.environ.get("CHESS_TUTOR_VALIDATE") != "1":
        return []

    errors = []

    if not isinstance(response, dict):
        errors.append(f"Response is not a dict: {type(response).__name__}")
        return errors

    for key, expected_types in schema.items():
        if key not in response:
            errors.append(f"Missing key: {key}")
            continue

        value = response[key]
        if isinstance(expected_types, tuple):
            if not isinstance(value, expected_types):
                type_names = ", ".join(t.__name__ for t in expected_types)
                errors.append(
                    f"Key '{key}': expected ({type_names}), "
                    f"got {type(value).__name__}"
                )
        else:
            if not isinstance(value, expected_types):
                errors.append(
                    f"Key '{key}': expected {expected_types.__name__}, "
                    f"got {type(value).__name__}"
                )

    return errors
