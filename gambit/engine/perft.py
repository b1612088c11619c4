from __future__ import annotations

from typing import Dict

from .board import Board
from .movegen import legal_moves, make_move


def perft(board: Board, depth: int) -> int:
    """Compute perft node count for ``board`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    moves = legal_moves(board)
    if depth == 1:
        return len(moves)
    nodes = 0
    for m in moves:
        nodes += perft(make_move(board, m), depth - 1)
    return nodes


def divide(board: Board, depth: int) -> Dict[str, int]:
    """Return per-root-move perft counts, keyed by UCI move."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    return {m.to_uci(): perft(make_move(board, m), depth - 1) for m in legal_moves(board)}
