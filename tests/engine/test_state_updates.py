from __future__ import annotations

from gambit.engine.board import Board
from gambit.engine.move import parse_uci
from gambit.engine.movegen import make_move


def test_clocks_after_knight_moves() -> None:
    b = make_move(Board.startpos(), parse_uci("g1f3"))
    assert b.halfmove_clock == 1
    assert b.fullmove_number == 1
    assert b.side_to_move == "b"
    b = make_move(b, parse_uci("g8f6"))
    assert b.halfmove_clock == 2
    assert b.fullmove_number == 2
    assert b.side_to_move == "w"


def test_pawn_move_resets_halfmove_clock() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/4P3/4K3 w - - 12 30")
    b = make_move(b, parse_uci("e2e3"))
    assert b.halfmove_clock == 0
    assert b.fullmove_number == 30


def test_capture_resets_halfmove_clock() -> None:
    b = Board.from_fen("4k3/8/8/3r4/8/8/8/3RK3 w - - 9 40")
    b = make_move(b, parse_uci("d1d5"))
    assert b.halfmove_clock == 0
    assert b.to_fen() == "4k3/8/8/3R4/8/8/8/4K3 b - - 0 40"


def test_king_move_clears_both_rights() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
    assert make_move(b, parse_uci("e8d8")).castling == "KQ"
