"""Terminal board viewer for the chess tutor.

Renders a Rich-based board that auto-updates by watching
data/current_board.json via watchdog at ~4Hz. The selected square and
its hint squares are highlighted. Supports --sample to render one
position and exit.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
from dataclasses import asdict
from pathlib import Path

import chess
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from chess_tutor.controller import TutorController
from chess_tutor.models import LearningRole, Mode

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_BOARD_FILE = "current_board.json"

# Unicode piece symbols
_PIECE_SYMBOLS = {
    "K": "♔", "Q": "♕", "R": "♖", "B": "♗",
    "N": "♘", "P": "♙",
    "k": "♚", "q": "♛", "r": "♜", "b": "♝",
    "n": "♞", "p": "♟",
}

_LIGHT_SQ = "grey85"
_DARK_SQ = "grey50"
_SELECTED = "purple"
_HINT = "green"
_LAST_MOVE = "yellow"


def data_dir() -> Path:
    return Path(os.environ.get("CHESS_TUTOR_DATA_DIR", _PROJECT_ROOT / "data"))


def load_snapshot(path: Path) -> dict | None:
    """Load a board snapshot dict, or None if missing or corrupt."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.debug("could not read %s: %s", path, exc)
        return None
    return data if isinstance(data, dict) else None


def square_style(state: dict, square: chess.Square) -> str:
    """Background color of a square for the given snapshot."""
    name = chess.square_name(square)
    if name == state.get("selected_square"):
        return _SELECTED
    if name in state.get("hints", []):
        return _HINT
    last_move = state.get("last_move")
    if last_move and len(last_move) >= 4 and name in (last_move[:2], last_move[2:4]):
        return _LAST_MOVE
    is_light = (chess.square_rank(square) + chess.square_file(square)) % 2 == 1
    return _LIGHT_SQ if is_light else _DARK_SQ


def render_board(state: dict) -> Layout:
    """Board and sidebar layout for a snapshot dict."""
    layout = Layout()
    layout.split_row(
        Layout(name="board", ratio=2),
        Layout(name="sidebar", ratio=1),
    )
    layout["board"].update(_render_board_panel(state))
    layout["sidebar"].update(_render_sidebar(state))
    return layout


def _render_board_panel(state: dict) -> Panel:
    board = chess.Board(None)
    board.set_board_fen(state.get("fen", chess.STARTING_FEN).split(" ")[0])

    table = Table(show_header=False, show_edge=False, pad_edge=False,
                  box=None, padding=(0, 1))
    table.add_column(width=2, justify="right")
    for _ in range(8):
        table.add_column(width=3, justify="center")

    for rank in range(7, -1, -1):
        row: list[Text] = [Text(str(rank + 1), style="bold")]
        for file in range(8):
            sq = chess.square(file, rank)
            piece = board.piece_at(sq)
            bg = square_style(state, sq)
            if piece is not None:
                symbol = _PIECE_SYMBOLS.get(piece.symbol(), "?")
                row.append(Text(f" {symbol} ", style=f"on {bg}"))
            elif bg == _HINT:
                row.append(Text(" · ", style=f"bold on {bg}"))
            else:
                row.append(Text("   ", style=f"on {bg}"))
        table.add_row(*row)

    file_labels = [Text("  ")]
    for f in range(8):
        file_labels.append(Text(f" {chr(ord('a') + f)} ", style="bold"))
    table.add_row(*file_labels)

    title = "Chess Tutor"
    if state.get("is_game_over"):
        title = f"Game Over: {state.get('result', '?')}"
    elif state.get("is_check"):
        title = "Check!"
    return Panel(table, title=title, border_style="blue")


def _render_sidebar(state: dict) -> Panel:
    parts: list[str] = []

    parts.append(f"[bold]Mode:[/bold] {state.get('mode', 'beginner')}")
    role = state.get("learning_role")
    if role:
        parts.append(f"[bold]Learning:[/bold] {role}")
    parts.append(f"[bold]To move:[/bold] {state.get('turn', 'white')}")
    parts.append("")

    move_list = state.get("move_list", [])
    if move_list:
        parts.append("[bold]Moves:[/bold]")
        for i in range(0, len(move_list), 2):
            black_move = move_list[i + 1] if i + 1 < len(move_list) else ""
            parts.append(f"  {i // 2 + 1}. {move_list[i]} {black_move}")
        parts.append("")

    message = state.get("tutor_message")
    if message:
        style = "red" if message.startswith("Warning") else "italic"
        parts.append(f"[{style}]{message}[/{style}]")

    return Panel("\n".join(parts), title="Tutor", border_style="green")


def _render_waiting() -> Panel:
    return Panel(
        Text("Waiting for a board...\n\nStart a session via the MCP server.",
             justify="center"),
        title="Chess Tutor",
        border_style="dim",
    )


def _watch_loop(console: Console, directory: Path) -> None:
    """Watch the snapshot file and auto-update display at ~4Hz."""
    from watchdog.events import FileSystemEventHandler
    from watchdog.observers import Observer

    board_path = directory / _BOARD_FILE
    last_state: dict | None = None
    state_changed = True

    class _Handler(FileSystemEventHandler):
        def on_any_event(self, event):
            nonlocal state_changed
            if str(getattr(event, "dest_path", "") or event.src_path).endswith(_BOARD_FILE):
                state_changed = True

    observer = Observer()
    directory.mkdir(parents=True, exist_ok=True)
    observer.schedule(_Handler(), str(directory), recursive=False)
    observer.start()

    try:
        with Live(console=console, refresh_per_second=4) as live:
            while True:
                if state_changed:
                    state = load_snapshot(board_path)
                    if state is not None:
                        last_state = state
                        live.update(render_board(state))
                    elif last_state is None:
                        live.update(_render_waiting())
                    state_changed = False
                time.sleep(0.25)
    except KeyboardInterrupt:
        pass
    finally:
        observer.stop()
        observer.join()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the viewer."""
    parser = argparse.ArgumentParser(description="Chess Tutor Terminal UI")
    parser.add_argument(
        "--sample", action="store_true",
        help="Render a freshly built board and exit (no watch loop)",
    )
    parser.add_argument(
        "--mode", choices=[m.value for m in Mode], default=Mode.BEGINNER.value,
        help="Mode used for --sample",
    )
    parser.add_argument(
        "--role", choices=[r.value for r in LearningRole], default=None,
        help="Learning role used for --sample",
    )
    parser.add_argument(
        "--select", metavar="SQUARE", default=None,
        help="Square to select for --sample, showing its hints",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=os.environ.get("CHESS_TUTOR_LOG_LEVEL", "WARNING").upper(),
        stream=sys.stderr,
    )
    console = Console()

    if args.sample:
        controller = TutorController(args.mode, args.role)
        if args.select:
            controller.select_square(args.select)
        console.print(render_board(asdict(controller.snapshot())))
        return

    _watch_loop(console, data_dir())


if __name__ == "__main__":
    main()
