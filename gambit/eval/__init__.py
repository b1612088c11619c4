"""Evaluation heuristics.

Pure, deterministic, and side-effect free. Scores are centipawns from the
point of view of the side to move.
"""

from __future__ import annotations

from typing import Dict, Final, List, Tuple

from gambit.engine.board import Board
from gambit.engine.piece import BISHOP, BLACK, KING, KNIGHT, PAWN, QUEEN, ROOK, WHITE


# Material values in centipawns
P_VAL: Final = 100
N_VAL: Final = 320
B_VAL: Final = 330
R_VAL: Final = 500
Q_VAL: Final = 900
# Kings are never captured; material sums ignore them
K_VAL: Final = 0

PIECE_VALUES: Final[Dict[str, int]] = {
    PAWN: P_VAL,
    KNIGHT: N_VAL,
    BISHOP: B_VAL,
    ROOK: R_VAL,
    QUEEN: Q_VAL,
    KING: K_VAL,
}

# Heuristic weights (centipawns)
CENTER_CONTROL_BONUS: Final = 10
DEVELOPED_PIECE_BONUS: Final = 15
BISHOP_PAIR_BONUS: Final = 30
KING_SHIELD_BONUS: Final = 6  # per pawn in king shield ring
LOST_CASTLING_PENALTY: Final = 12  # per right lost while the king is still at home

CENTER_SQUARES: Final = frozenset((27, 28, 35, 36))  # d4 e4 d5 e5

# Piece-square tables, white perspective, index a1=0 .. h8=63
PSQT_P: Final = [
    0, 0, 0, 0, 0, 0, 0, 0,
    5, 10, 10, -20, -20, 10, 10, 5,
    5, -5, -10, 0, 0, -10, -5, 5,
    0, 0, 0, 20, 20, 0, 0, 0,
    5, 5, 10, 25, 25, 10, 5, 5,
    10, 10, 20, 30, 30, 20, 10, 10,
    50, 50, 50, 50, 50, 50, 50, 50,
    0, 0, 0, 0, 0, 0, 0, 0,
]  # fmt: skip

PSQT_N: Final = [
    -50, -40, -30, -30, -30, -30, -40, -50,
    -40, -20, 0, 5, 5, 0, -20, -40,
    -30, 5, 10, 15, 15, 10, 5, -30,
    -30, 0, 15, 20, 20, 15, 0, -30,
    -30, 5, 15, 20, 20, 15, 5, -30,
    -30, 0, 10, 15, 15, 10, 0, -30,
    -40, -20, 0, 0, 0, 0, -20, -40,
    -50, -40, -30, -30, -30, -30, -40, -50,
]  # fmt: skip

PSQT_B: Final = [
    -20, -10, -10, -10, -10, -10, -10, -20,
    -10, 5, 0, 0, 0, 0, 5, -10,
    -10, 10, 10, 10, 10, 10, 10, -10,
    -10, 0, 10, 10, 10, 10, 0, -10,
    -10, 5, 5, 10, 10, 5, 5, -10,
    -10, 0, 5, 10, 10, 5, 0, -10,
    -10, 0, 0, 0, 0, 0, 0, -10,
    -20, -10, -10, -10, -10, -10, -10, -20,
]  # fmt: skip

PSQT_R: Final = [
    0, 0, 5, 10, 10, 5, 0, 0,
    -5, 0, 0, 0, 0, 0, 0, -5,
    -5, 0, 0, 0, 0, 0, 0, -5,
    -5, 0, 0, 0, 0, 0, 0, -5,
    -5, 0, 0, 0, 0, 0, 0, -5,
    -5, 0, 0, 0, 0, 0, 0, -5,
    5, 10, 10, 10, 10, 10, 10, 5,
    0, 0, 0, 0, 0, 0, 0, 0,
]  # fmt: skip

PSQT_Q: Final = [
    -20, -10, -10, -5, -5, -10, -10, -20,
    -10, 0, 0, 0, 0, 0, 0, -10,
    -10, 0, 5, 5, 5, 5, 0, -10,
    -5, 0, 5, 5, 5, 5, 0, -5,
    -5, 0, 5, 5, 5, 5, 0, -5,
    -10, 0, 5, 5, 5, 5, 0, -10,
    -10, 0, 0, 0, 0, 0, 0, -10,
    -20, -10, -10, -5, -5, -10, -10, -20,
]  # fmt: skip

PSQT_K: Final = [
    20, 30, 10, 0, 0, 10, 30, 20,
    20, 20, 0, 0, 0, 0, 20, 20,
    -10, -20, -20, -20, -20, -20, -20, -10,
    -20, -30, -30, -40, -40, -30, -30, -20,
    -30, -40, -40, -50, -50, -40, -40, -30,
    -30, -40, -40, -50, -50, -40, -40, -30,
    -30, -40, -40, -50, -50, -40, -40, -30,
    -30, -40, -40, -50, -50, -40, -40, -30,
]  # fmt: skip

PSQT_K_EG: Final = [
    -50, -30, -30, -30, -30, -30, -30, -50,
    -30, -10, 0, 0, 0, 0, -10, -30,
    -30, 0, 10, 15, 15, 10, 0, -30,
    -30, 0, 15, 20, 20, 15, 0, -30,
    -30, 0, 15, 20, 20, 15, 0, -30,
    -30, 0, 10, 15, 15, 10, 0, -30,
    -30, -10, 0, 0, 0, 0, -10, -30,
    -50, -30, -30, -30, -30, -30, -30, -50,
]  # fmt: skip

PSQT: Final[Dict[str, List[int]]] = {
    PAWN: PSQT_P,
    KNIGHT: PSQT_N,
    BISHOP: PSQT_B,
    ROOK: PSQT_R,
    QUEEN: PSQT_Q,
}

PHASE_TOTAL: Final = 24
_PHASE_UNITS: Final = {KNIGHT: 1, BISHOP: 1, ROOK: 2, QUEEN: 4}

# Home square and the castling letters belonging to each side
_KING_HOME: Final[Dict[str, Tuple[int, str]]] = {WHITE: (4, "KQ"), BLACK: (60, "kq")}


def _mirror_sq(sq: int) -> int:
    # Flip vertically (rank mirror)
    return (7 - sq // 8) * 8 + sq % 8


def _king_shield_pawns(board: Board, king_sq: int, color: str) -> int:
    # Count friendly pawns in two-rank ring in front of king on files f-1..f+1
    kf = king_sq % 8
    kr = king_sq // 8
    total = 0
    for df in (-1, 0, 1):
        ff = kf + df
        if not (0 <= ff < 8):
            continue
        for dr in (1, 2):
            rr = kr + (dr if color == WHITE else -dr)
            if 0 <= rr < 8:
                p = board.squares[rr * 8 + ff]
                if p is not None and p.kind == PAWN and p.color == color:
                    total += 1
    return total


def material(board: Board, color: str) -> int:
    """Sum of material values of ``color``'s pieces."""
    return sum(PIECE_VALUES[p.kind] for _, p in board.pieces(color))


def evaluate(board: Board) -> int:
    """Return a material + positional evaluation in centipawns.

    Positive means advantage for the side to move. Material dominates: the
    positional terms together stay far below the value of a minor piece in
    any realistic position.
    """
    phase_units = 0
    for _, p in board.pieces():
        phase_units += _PHASE_UNITS.get(p.kind, 0)
    mg_scaled = max(0, min(128, (phase_units * 128) // PHASE_TOTAL))
    eg_scaled = 128 - mg_scaled

    white = _side_score(board, WHITE, mg_scaled, eg_scaled)
    black = _side_score(board, BLACK, mg_scaled, eg_scaled)
    score = white - black
    return score if board.side_to_move == WHITE else -score


def _side_score(board: Board, color: str, mg_scaled: int, eg_scaled: int) -> int:
    score = 0
    bishops = 0
    king_sq = -1
    back_rank = 0 if color == WHITE else 7
    for sq, p in board.pieces(color):
        idx = sq if color == WHITE else _mirror_sq(sq)
        score += PIECE_VALUES[p.kind]
        if p.kind == KING:
            king_sq = sq
            score += (mg_scaled * PSQT_K[idx] + eg_scaled * PSQT_K_EG[idx]) // 128
            continue
        score += PSQT[p.kind][idx]
        if sq in CENTER_SQUARES:
            score += CENTER_CONTROL_BONUS
        if p.kind in (KNIGHT, BISHOP) and sq // 8 != back_rank:
            score += DEVELOPED_PIECE_BONUS
        if p.kind == BISHOP:
            bishops += 1

    if bishops >= 2:
        score += BISHOP_PAIR_BONUS

    if king_sq >= 0:
        # Shield matters while there is material left to attack the king
        score += (_king_shield_pawns(board, king_sq, color) * KING_SHIELD_BONUS * mg_scaled) // 128
        home, rights = _KING_HOME[color]
        if king_sq == home:
            lost = sum(1 for r in rights if r not in board.castling)
            score -= lost * LOST_CASTLING_PENALTY
    return score
