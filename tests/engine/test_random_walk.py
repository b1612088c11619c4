from __future__ import annotations

import random
from typing import Iterator

import pytest

from gambit.engine.board import Board
from gambit.engine.game import Game
from gambit.engine.movegen import legal_moves, make_move
from gambit.engine.piece import opposite


GAMES = 4
MAX_PLIES = 30


def _walk(seed: int) -> Iterator[Game]:
    """Yield the game at every position of a seeded random playout."""
    rng = random.Random(seed)
    g = Game.new()
    yield g
    for _ in range(MAX_PLIES):
        moves = g.legal_moves()
        if not moves:
            return
        g.apply_move(rng.choice(moves))
        yield g


@pytest.mark.parametrize("seed", range(GAMES))
def test_fen_round_trip_along_random_games(seed: int) -> None:
    for g in _walk(seed):
        b = g.board
        assert Board.from_fen(b.to_fen()) == b


def test_random_walks_visit_enough_positions() -> None:
    total = sum(1 for seed in range(GAMES) for _ in _walk(seed))
    assert total >= 20


@pytest.mark.parametrize("seed", range(GAMES))
def test_apply_then_undo_restores_board(seed: int) -> None:
    for g in _walk(seed):
        before = g.board
        plies = len(g.move_stack)
        repetition = dict(g.repetition)
        for m in g.legal_moves():
            g.apply_move(m)
            g.undo_move()
            assert g.board == before
            assert len(g.move_stack) == plies
            assert g.repetition == repetition


@pytest.mark.parametrize("seed", range(GAMES))
def test_legal_moves_never_leave_own_king_attacked(seed: int) -> None:
    for g in _walk(seed):
        b = g.board
        mover = b.side_to_move
        for m in legal_moves(b):
            child = make_move(b, m)
            assert not child.is_square_attacked(child.king_square(mover), opposite(mover))
