from __future__ import annotations

import pytest

from gambit.engine.board import Board
from gambit.engine.errors import IllegalMoveError, NoHistoryError
from gambit.engine.game import Game, GameStatus
from gambit.engine.move import Move, parse_uci


def _play(g: Game, *ucis: str) -> Game:
    for u in ucis:
        g.apply_move(parse_uci(u))
    return g


def test_apply_then_undo_restores_board() -> None:
    g = Game.new()
    start = g.board
    g.apply_move(parse_uci("e2e4"))
    assert g.move_history_uci() == ["e2e4"]
    g.undo_move()
    assert g.board == start
    assert g.to_fen() == Board.startpos().to_fen()
    assert g.move_history_uci() == []


def test_undo_round_trip_over_special_moves() -> None:
    g = Game.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    fens = [g.to_fen()]
    for u in ("e1g1", "e8c8", "f1f7", "d8d1"):
        g.apply_move(parse_uci(u))
        fens.append(g.to_fen())
    while g.move_stack:
        fens.pop()
        g.undo_move()
        assert g.to_fen() == fens[-1]


def test_undo_without_history_raises() -> None:
    with pytest.raises(NoHistoryError):
        Game.new().undo_move()


def test_illegal_move_leaves_game_unchanged() -> None:
    g = Game.new()
    before = g.to_fen()
    with pytest.raises(IllegalMoveError):
        g.apply_move(parse_uci("e2e5"))
    with pytest.raises(IllegalMoveError):
        g.apply_move(Move(0, 63))
    assert g.to_fen() == before
    assert g.move_stack == []


def test_fools_mate_is_checkmate() -> None:
    g = _play(Game.new(), "f2f3", "e7e5", "g2g4", "d8h4")
    assert g.checkmate()
    assert not g.stalemate()
    assert g.status() is GameStatus.CHECKMATE
    assert g.is_game_over()
    assert g.legal_moves() == []


def test_stalemate() -> None:
    g = Game.from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    assert not g.in_check()
    assert g.legal_moves() == []
    assert g.stalemate()
    assert not g.checkmate()
    assert g.is_draw()
    assert g.status() is GameStatus.STALEMATE


def test_check_status() -> None:
    g = Game.from_fen("4k3/8/8/8/8/8/4r3/4K3 w - - 0 1")
    assert g.in_check()
    assert g.status() is GameStatus.CHECK


def test_threefold_repetition() -> None:
    g = Game.new()
    shuffle = ("g1f3", "g8f6", "f3g1", "f6g8")
    _play(g, *shuffle)
    assert not g.is_threefold_repetition()
    _play(g, *shuffle)
    assert g.is_threefold_repetition()
    assert g.status() is GameStatus.DRAW
    g.undo_move()
    assert not g.is_threefold_repetition()


def test_fifty_move_rule() -> None:
    g = Game.from_fen("4k3/8/8/8/8/8/8/R3K3 w - - 100 80")
    assert g.is_fifty_moves()
    assert g.status() is GameStatus.DRAW


@pytest.mark.parametrize(
    "fen,expected",
    [
        ("4k3/8/8/8/8/8/8/4K3 w - - 0 1", True),
        ("4k3/8/8/8/8/8/8/4KB2 w - - 0 1", True),
        ("4k3/8/8/8/8/8/8/4KN2 w - - 0 1", True),
        ("4k3/8/8/8/8/8/8/4KR2 w - - 0 1", False),
        ("4k3/8/8/8/8/8/4P3/4K3 w - - 0 1", False),
    ],
)
def test_insufficient_material(fen: str, expected: bool) -> None:
    assert Game.from_fen(fen).is_insufficient_material() is expected


def test_copy_is_independent() -> None:
    g = Game.new()
    c = g.copy()
    c.apply_move(parse_uci("d2d4"))
    assert g.move_stack == []
    assert g.board == Board.startpos()
    assert c.last_move == parse_uci("d2d4")
