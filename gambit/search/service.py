from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from gambit.engine.board import Board
from gambit.engine.errors import NoLegalMovesError
from gambit.engine.game import Game
from gambit.engine.move import Move
from gambit.engine.movegen import has_legal_moves, legal_moves, make_move
from gambit.engine.piece import PAWN, QUEEN
from gambit.eval import PIECE_VALUES, evaluate


logger = logging.getLogger(__name__)

INF = 10_000_000
MATE_SCORE = 1_000_000  # mate scores are within +/- (MATE_SCORE + depth)


@dataclass
class SearchResult:
    """Outcome of a best-move search.

    Attributes:
        best_move (Move): Move judged best for the side to move.
        score (int): Centipawns from the root side-to-move's perspective.
        depth (int): Requested search depth in plies.
        nodes (int): Positions visited.
        pv (List[Move]): Principal variation starting with ``best_move``.
        time_ms (int): Wall time spent.
        completed (bool): False when the search was cancelled early.
    """

    best_move: Move
    score: int
    depth: int
    nodes: int
    pv: List[Move] = field(default_factory=list)
    time_ms: int = 0
    completed: bool = True

    @property
    def mate_in(self) -> Optional[int]:
        """Moves to mate (negative when the side to move gets mated), if any."""
        if abs(self.score) < MATE_SCORE:
            return None
        # Score is +/-(MATE_SCORE + remaining depth); recover plies from root
        plies = self.depth - (abs(self.score) - MATE_SCORE)
        moves = (plies + 1) // 2
        return moves if self.score > 0 else -moves


class _Cancelled(Exception):
    pass


class SearchService:
    """Fixed-depth negamax search with alpha-beta pruning.

    The search works on the game's current board snapshot and never mutates
    the game. Depth is always supplied by the caller.
    """

    def best_move(
        self,
        game: Game,
        depth: int,
        *,
        stop_event: Optional[threading.Event] = None,
        max_nodes: Optional[int] = None,
    ) -> SearchResult:
        """Return the best move for the side to move in ``game``.

        Args:
            game (Game): Game whose current position is searched.
            depth (int): Search depth in plies, at least 1.
            stop_event (Optional[threading.Event]): Cooperative cancellation
                signal, checked at every node.
            max_nodes (Optional[int]): Node budget; the search stops once it
                is exhausted.

        Returns:
            SearchResult: Best move and score. When cancelled, the best fully
            searched root move is returned with ``completed=False``.

        Raises:
            ValueError: If ``depth`` is below 1.
            NoLegalMovesError: If the position has no legal moves.
        """
        if depth < 1:
            raise ValueError("depth must be >= 1")
        board = game.board
        root_moves = legal_moves(board)
        if not root_moves:
            raise NoLegalMovesError("no legal moves in position")

        start = time.perf_counter()
        nodes = 0
        # Repetition tracking: seed counts from the game so threefold inside search is detected
        rep_counts: Dict[str, int] = dict(game.repetition)

        def check_stop() -> None:
            if stop_event is not None and stop_event.is_set():
                raise _Cancelled()
            if max_nodes is not None and nodes >= max_nodes:
                raise _Cancelled()

        def negamax(b: Board, d: int, alpha: int, beta: int) -> Tuple[int, List[Move]]:
            nonlocal nodes
            check_stop()
            nodes += 1

            # 50-move rule and repetition are draws inside the tree, unless mated
            if b.halfmove_clock >= 100 or rep_counts.get(b.position_key(), 0) >= 3:
                if not has_legal_moves(b) and b.in_check():
                    return -(MATE_SCORE + d), []
                return 0, []

            if d == 0:
                # Terminal leaves are scored as terminals, not by material
                if not has_legal_moves(b):
                    return (-(MATE_SCORE + d), []) if b.in_check() else (0, [])
                return evaluate(b), []

            moves = legal_moves(b)
            if not moves:
                if b.in_check():
                    # Checkmated: more remaining depth means a faster mate
                    return -(MATE_SCORE + d), []
                return 0, []

            moves.sort(key=lambda m: _capture_order(b, m), reverse=True)

            best_score = -INF
            best_line: List[Move] = []
            for m in moves:
                child = make_move(b, m)
                key = child.position_key()
                rep_counts[key] = rep_counts.get(key, 0) + 1
                try:
                    child_score, child_pv = negamax(child, d - 1, -beta, -alpha)
                finally:
                    _release(rep_counts, key)
                score = -child_score
                if score > best_score:
                    best_score = score
                    best_line = [m] + child_pv
                if score > alpha:
                    alpha = score
                if alpha >= beta:
                    break
            return best_score, best_line

        best: Optional[Move] = None
        best_score = -INF
        best_line: List[Move] = []
        completed = True
        alpha = -INF
        try:
            check_stop()
            nodes += 1
            # Root moves in generation order; strict improvement keeps the first of equals
            for m in root_moves:
                child = make_move(board, m)
                key = child.position_key()
                rep_counts[key] = rep_counts.get(key, 0) + 1
                try:
                    child_score, child_pv = negamax(child, depth - 1, -INF, -alpha)
                finally:
                    _release(rep_counts, key)
                score = -child_score
                if score > best_score:
                    best, best_score, best_line = m, score, [m] + child_pv
                    alpha = score
        except _Cancelled:
            completed = False

        if best is None:
            best, best_score, best_line = root_moves[0], evaluate(board), [root_moves[0]]

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.debug(
            "search done",
            extra={
                "depth": depth,
                "nodes": nodes,
                "score": best_score,
                "best": best.to_uci(),
                "completed": completed,
                "time_ms": elapsed_ms,
            },
        )
        return SearchResult(
            best_move=best,
            score=best_score,
            depth=depth,
            nodes=nodes,
            pv=best_line,
            time_ms=elapsed_ms,
            completed=completed,
        )


def _capture_order(board: Board, move: Move) -> int:
    # MVV-LVA key; quiet moves get 0 and keep generation order (stable sort)
    victim = board.squares[move.to_sq]
    if victim is None:
        if move.is_en_passant:
            return PIECE_VALUES[PAWN] * 10
        return 1000 if move.promotion == QUEEN else 0
    attacker = board.squares[move.from_sq]
    a = PIECE_VALUES[attacker.kind] if attacker is not None else 0
    return PIECE_VALUES[victim.kind] * 10 - a + 10_000


def _release(rep_counts: Dict[str, int], key: str) -> None:
    cnt = rep_counts.get(key, 0)
    if cnt <= 1:
        rep_counts.pop(key, None)
    else:
        rep_counts[key] = cnt - 1
