from __future__ import annotations

import dataclasses

import pytest

from gambit.engine.board import Board
from gambit.engine.piece import BLACK, WHITE
from gambit.eval import (
    BISHOP_PAIR_BONUS,
    PSQT,
    _mirror_sq,
    evaluate,
    material,
)


def test_startpos_is_balanced() -> None:
    assert evaluate(Board.startpos()) == 0


def test_startpos_material() -> None:
    b = Board.startpos()
    assert material(b, WHITE) == 8 * 100 + 2 * 320 + 2 * 330 + 2 * 500 + 900
    assert material(b, WHITE) == material(b, BLACK)


def test_score_is_relative_to_side_to_move() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/8/3QK3 w - - 0 1")
    flipped = dataclasses.replace(b, side_to_move=BLACK)
    assert evaluate(b) > 500
    assert evaluate(flipped) == -evaluate(b)


@pytest.mark.parametrize(
    "white_fen,black_fen",
    [
        ("4k3/8/8/8/4P3/8/8/4K3 w - - 0 1", "4k3/8/8/4p3/8/8/8/4K3 b - - 0 1"),
        ("4k3/8/8/8/8/2N5/8/4K3 w - - 0 1", "4k3/8/2n5/8/8/8/8/4K3 b - - 0 1"),
        (
            "r3k2r/pppppppp/8/8/8/8/PPPPPPPP/R3K2R w KQ - 0 1",
            "r3k2r/pppppppp/8/8/8/8/PPPPPPPP/R3K2R b kq - 0 1",
        ),
    ],
)
def test_color_mirror_symmetry(white_fen: str, black_fen: str) -> None:
    assert evaluate(Board.from_fen(white_fen)) == evaluate(Board.from_fen(black_fen))


def test_material_dominates_position() -> None:
    # Extra knight in the corner beats a centralised pawn setup
    up_knight = Board.from_fen("4k3/pppppppp/8/8/8/8/PPPPPPPP/N3K3 w - - 0 1")
    assert evaluate(up_knight) > 200


@pytest.mark.parametrize(
    "with_queen, without_queen, owner",
    [
        ("4k3/pppppppp/8/8/8/8/PPPPPPPP/3QK3", "4k3/pppppppp/8/8/8/8/PPPPPPPP/4K3", WHITE),
        ("3qk3/pppppppp/8/8/8/8/PPPPPPPP/4K3", "4k3/pppppppp/8/8/8/8/PPPPPPPP/4K3", BLACK),
    ],
)
@pytest.mark.parametrize("stm", [WHITE, BLACK])
def test_extra_queen_favours_its_owner(
    with_queen: str, without_queen: str, owner: str, stm: str
) -> None:
    up = evaluate(Board.from_fen(f"{with_queen} {stm} - - 0 1"))
    even = evaluate(Board.from_fen(f"{without_queen} {stm} - - 0 1"))
    if stm == owner:
        assert up > even
    else:
        assert up < even


def test_center_pawn_beats_rim_pawn() -> None:
    center = Board.from_fen("4k3/8/8/8/4P3/8/8/4K3 w - - 0 1")
    rim = Board.from_fen("4k3/8/8/8/P7/8/8/4K3 w - - 0 1")
    assert evaluate(center) > evaluate(rim)


def test_bishop_pair_bonus_applies() -> None:
    pair = Board.from_fen("4k3/8/8/8/8/8/8/2B1KB2 w - - 0 1")
    single = Board.from_fen("4k3/8/8/8/8/8/8/2N1KB2 w - - 0 1")
    # Same squares and tables aside from the piece kind on c1
    assert evaluate(pair) - evaluate(single) >= BISHOP_PAIR_BONUS


def test_psqt_mirror_helper() -> None:
    assert _mirror_sq(0) == 56
    assert _mirror_sq(12) == 52
    assert _mirror_sq(_mirror_sq(37)) == 37
    assert all(len(t) == 64 for t in PSQT.values())


def test_evaluate_is_pure() -> None:
    b = Board.startpos()
    fen = b.to_fen()
    assert evaluate(b) == evaluate(b)
    assert b.to_fen() == fen
