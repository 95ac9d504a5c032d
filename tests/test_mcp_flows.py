"""Multi-tool functional flow tests for the tutor MCP server.

Exercises realistic multi-tool sequences: a Play game against the
tutor opponent, a Learn session with click-driven practice moves, an
expert board, and response size regression.

Run:
    pytest tests/test_mcp_flows.py -v
"""

from __future__ import annotations

import importlib.util
import json
import sys
from pathlib import Path

import pytest

# Add project root so imports resolve
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_PROJECT_ROOT))

# Import server module from hyphenated directory via importlib
_server_path = _PROJECT_ROOT / "mcp-server" / "server.py"
_spec = importlib.util.spec_from_file_location("mcp_server_flows_test", _server_path)
_server = importlib.util.module_from_spec(_spec)
_spec.loader.exec_module(_server)

_sessions = _server._sessions

new_session = _server.new_session
select_square = _server.select_square
make_move = _server.make_move
get_hints = _server.get_hints
undo_move = _server.undo_move
set_learning_role = _server.set_learning_role
get_tutor_request = _server.get_tutor_request
apply_tutor_move = _server.apply_tutor_move


@pytest.fixture(autouse=True)
def _data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(_server, "_DATA_DIR", tmp_path)
    yield tmp_path
    _sessions.clear()


def _read_board_json(data_dir: Path) -> dict:
    return json.loads((data_dir / "current_board.json").read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# TestPlayFlow
# ---------------------------------------------------------------------------


class TestPlayFlow:
    """Player moves, tutor answers through request/apply."""

    def test_scholars_mate(self, _data_dir):
        sid = new_session()["session_id"]
        replies = iter(["e5", "Nc6", "Nf6"])
        for src, dst in (("e2", "e4"), ("f1", "c4"), ("d1", "h5")):
            assert make_move(sid, src, dst)["success"]
            request = get_tutor_request(sid)
            reply = next(replies)
            assert reply in request["valid_moves"]
            assert apply_tutor_move(sid, reply)["played"] == reply

        state = make_move(sid, "h5", "f7")
        assert state["success"]
        assert state["is_game_over"] is True
        assert state["result"] == "1-0"
        assert state["move_list"] == "1.e4 e5 2.Bc4 Nc6 3.Qh5 Nf6 4.Qxf7#"

        synced = _read_board_json(_data_dir)
        assert synced["is_checkmate"] is True
        assert synced["legal_moves"] == []

    def test_undo_tutor_reply_then_player_move(self):
        sid = new_session()["session_id"]
        make_move(sid, "d2", "d4")
        apply_tutor_move(sid, "d5")
        undo_move(sid)
        state = undo_move(sid)
        assert state["move_list"] == ""
        assert undo_move(sid) == {"error": "No moves to undo"}


# ---------------------------------------------------------------------------
# TestLearnFlow
# ---------------------------------------------------------------------------


class TestLearnFlow:
    """Pick a role, click through hinted moves for both colors."""

    def test_knight_practice_by_clicks(self, _data_dir):
        sid = new_session(learning_role="Knight")["session_id"]
        assert get_hints(sid, "b1")["hints"] == ["a3", "c3", "d2"]

        assert select_square(sid, "b1")["action"] == "selected"
        state = select_square(sid, "c3")
        assert state["action"] == "moved"
        assert state["turn"] == "black"

        state = select_square(sid, "g8")
        assert state["hints"] == ["e7", "f6", "h6"]
        state = select_square(sid, "f6")
        assert state["action"] == "moved"
        assert state["turn"] == "white"
        assert state["move_list"] == "1.Nc3 Nf6"

        assert _read_board_json(_data_dir)["piece_count"] == 4

    def test_switch_roles_mid_practice(self):
        sid = new_session(learning_role="Rook")["session_id"]
        make_move(sid, "a1", "a5")
        state = set_learning_role(sid, "King")
        assert state["move_list"] == ""
        assert state["fen"].startswith("4k3/8/8/8/8/8/8/4K3")
        assert get_hints(sid, "e1")["hints"] == ["d1", "d2", "e2", "f1", "f2"]


# ---------------------------------------------------------------------------
# TestExpertFlow
# ---------------------------------------------------------------------------


class TestExpertFlow:

    def test_expert_hint_click_always_moves(self):
        sid = new_session("expert")["session_id"]
        state = None
        for _ in range(6):
            occupied = _sessions[sid].position.occupied()
            turn = _sessions[sid].position.turn()
            square, target = next(
                (sq, dest)
                for sq, piece in occupied.items()
                if piece.color == turn
                for dest in sorted(get_hints(sid, sq)["hints"])
            )
            select_square(sid, square)
            state = select_square(sid, target)
            assert state["action"] == "moved", (square, target)
        assert state is not None
        assert len(state["move_list"].split()) == 6


# ---------------------------------------------------------------------------
# TestResponseSizeRegression
# ---------------------------------------------------------------------------


class TestResponseSizeRegression:

    def test_snapshot_response_size(self):
        state = new_session()
        size = len(json.dumps(state))
        assert size < 1000, f"Snapshot response too large: {size} bytes"

    def test_hints_response_size(self):
        sid = new_session()["session_id"]
        size = len(json.dumps(get_hints(sid, "e2")))
        assert size < 200, f"Hints response too large: {size} bytes"
