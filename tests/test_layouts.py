"""Pytest tests for board layout builders.

Covers: the standard layout, fixed and shuffled role isolation, the
shuffled full army, and mode/role precedence in build_layout.
"""

from __future__ import annotations

import random
from collections import Counter

import chess
import pytest

from chess_tutor.layouts import (
    ARMY_COUNTS,
    ROLE_HOMES,
    army_inventory,
    build_layout,
    role_inventory,
    role_layout,
    shuffled_army_layout,
    standard_layout,
)
from chess_tutor.models import LearningRole, Mode

_SEEDS = range(30)


def _counts(position) -> Counter:
    return Counter((p.piece_type, p.color) for p in position.occupied().values())


# ---------------------------------------------------------------------------
# Inventories
# ---------------------------------------------------------------------------


class TestInventories:

    def test_army_has_32_pieces(self):
        inventory = army_inventory()
        assert len(inventory) == 32
        assert all(p.piece_type == chess.PAWN for p in inventory[:16])

    @pytest.mark.parametrize("role", list(LearningRole))
    def test_role_inventory_matches_homes(self, role):
        inventory = role_inventory(role)
        assert len(inventory) == len(ROLE_HOMES[role])
        assert {p.piece_type for p in inventory} == {role.piece_type}
        colors = Counter(p.color for p in inventory)
        assert colors[chess.WHITE] == colors[chess.BLACK]


# ---------------------------------------------------------------------------
# Fixed layouts
# ---------------------------------------------------------------------------


class TestFixedLayouts:

    def test_standard(self):
        assert standard_layout().fen() == chess.STARTING_FEN

    def test_knight_homes(self):
        pos = role_layout(LearningRole.KNIGHT)
        assert pos.occupied() == {
            "b1": chess.Piece(chess.KNIGHT, chess.WHITE),
            "g1": chess.Piece(chess.KNIGHT, chess.WHITE),
            "b8": chess.Piece(chess.KNIGHT, chess.BLACK),
            "g8": chess.Piece(chess.KNIGHT, chess.BLACK),
        }

    def test_pawn_homes(self):
        occupied = role_layout(LearningRole.PAWN).occupied()
        assert len(occupied) == 16
        for name, piece in occupied.items():
            assert piece.piece_type == chess.PAWN
            expected = chess.WHITE if name[1] == "2" else chess.BLACK
            assert piece.color == expected
            assert name[1] in "27"

    @pytest.mark.parametrize("role", list(LearningRole))
    def test_role_homes_only(self, role):
        pos = role_layout(role)
        assert set(pos.occupied()) == set(ROLE_HOMES[role])
        assert pos.turn() == chess.WHITE


# ---------------------------------------------------------------------------
# Shuffled layouts
# ---------------------------------------------------------------------------


class TestShuffledLayouts:

    @pytest.mark.parametrize("role", list(LearningRole))
    def test_shuffled_role_places_full_inventory(self, role):
        for seed in _SEEDS:
            pos = role_layout(role, shuffled=True, rng=random.Random(seed))
            assert _counts(pos) == Counter(
                (p.piece_type, p.color) for p in role_inventory(role)
            )

    def test_shuffled_army_counts(self):
        expected = Counter()
        for piece_type, count in ARMY_COUNTS.items():
            expected[(piece_type, chess.WHITE)] = count
            expected[(piece_type, chess.BLACK)] = count
        for seed in _SEEDS:
            pos = shuffled_army_layout(random.Random(seed))
            assert len(pos.occupied()) == 32
            assert _counts(pos) == expected

    def test_shuffled_army_keeps_pawns_off_back_ranks(self):
        for seed in _SEEDS:
            pos = shuffled_army_layout(random.Random(seed))
            for name, piece in pos.occupied().items():
                if piece.piece_type == chess.PAWN:
                    assert name[1] not in "18"

    def test_same_seed_same_board(self):
        a = shuffled_army_layout(random.Random(7))
        b = shuffled_army_layout(random.Random(7))
        assert a.board_fen() == b.board_fen()

    def test_default_random_source(self):
        assert len(shuffled_army_layout().occupied()) == 32


# ---------------------------------------------------------------------------
# build_layout precedence
# ---------------------------------------------------------------------------


class TestBuildLayout:

    @pytest.mark.parametrize("mode", [Mode.BEGINNER, Mode.INTERMEDIATE])
    def test_standard_modes(self, mode):
        assert build_layout(mode).fen() == chess.STARTING_FEN

    def test_expert_is_shuffled_army(self, rng):
        assert len(build_layout(Mode.EXPERT, rng=rng).occupied()) == 32

    def test_role_overrides_mode(self):
        pos = build_layout(Mode.INTERMEDIATE, LearningRole.ROOK)
        assert set(pos.occupied()) == {"a1", "h1", "a8", "h8"}

    def test_expert_role_is_shuffled(self, rng):
        pos = build_layout(Mode.EXPERT, LearningRole.QUEEN, rng=rng)
        assert _counts(pos) == Counter({
            (chess.QUEEN, chess.WHITE): 1,
            (chess.QUEEN, chess.BLACK): 1,
        })
