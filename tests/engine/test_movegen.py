from __future__ import annotations

from gambit.engine.board import Board
from gambit.engine.move import Move, parse_uci, str_to_square
from gambit.engine.movegen import has_legal_moves, legal_moves, make_move, pseudo_legal_moves


def moves_set(b: Board) -> set[str]:
    return {m.to_uci() for m in legal_moves(b)}


def test_startpos_has_twenty_moves_in_stable_order() -> None:
    moves = legal_moves(Board.startpos())
    assert len(moves) == 20
    assert moves == sorted(moves, key=Move.sort_key)
    assert moves[0].to_uci() == "b1a3"
    assert moves[-1].to_uci() == "h2h4"


def test_generation_is_deterministic() -> None:
    b = Board.from_fen("r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1")
    assert legal_moves(b) == legal_moves(b)


def test_sliders_stop_at_blockers() -> None:
    # Rook on d4 with own pawn on d6 and enemy pawn on g4
    b = Board.from_fen("4k3/8/3P4/8/3R2p1/8/8/4K3 w - - 0 1")
    rook_moves = {m.to_uci() for m in legal_moves(b) if m.from_sq == str_to_square("d4")}
    assert "d4d5" in rook_moves
    assert "d4d6" not in rook_moves
    assert "d4g4" in rook_moves
    assert "d4h4" not in rook_moves
    assert "d4d1" in rook_moves


def test_pinned_piece_cannot_leave_pin_line() -> None:
    # Knight on e2 pinned against the king by the rook on e8
    b = Board.from_fen("4r1k1/8/8/8/8/8/4N3/4K3 w - - 0 1")
    assert not any(m.from_sq == str_to_square("e2") for m in legal_moves(b))
    assert any(m.from_sq == str_to_square("e2") for m in pseudo_legal_moves(b))


def test_check_must_be_answered() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/4r3/R3K3 w - - 0 1")
    for m in legal_moves(b):
        assert not make_move(b, m).in_check(b.side_to_move)


def test_king_cannot_step_next_to_king() -> None:
    b = Board.from_fen("8/8/8/3k4/8/3K4/8/8 w - - 0 1")
    ms = moves_set(b)
    assert "d3d4" not in ms
    assert "d3c4" not in ms
    assert "d3e4" not in ms


def test_make_move_leaves_input_untouched() -> None:
    b = Board.startpos()
    before = b.to_fen()
    child = make_move(b, parse_uci("e2e4"))
    assert b.to_fen() == before
    assert child.to_fen() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"


def test_has_legal_moves_matches_legal_moves() -> None:
    mated = Board.from_fen("rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3")
    assert not has_legal_moves(mated)
    assert legal_moves(mated) == []
    assert has_legal_moves(Board.startpos())
