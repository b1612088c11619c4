"""Move generation and move application over immutable boards.

Pure functions: nothing here mutates a Board, so callers may run them from
independent threads on shared positions.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Tuple

from .board import (
    DIAGONAL_RAYS,
    KING_TARGETS,
    KNIGHT_TARGETS,
    ORTHOGONAL_RAYS,
    Board,
)
from .move import PROMOTION_PIECES, Move
from .piece import BISHOP, KING, KNIGHT, PAWN, QUEEN, ROOK, WHITE, Piece, opposite


# Castling geometry: king destination -> (rook from, rook to, must be empty, king path)
_CASTLES: Dict[int, Tuple[str, int, int, Tuple[int, ...], Tuple[int, ...]]] = {
    6: ("K", 7, 5, (5, 6), (4, 5, 6)),
    2: ("Q", 0, 3, (1, 2, 3), (4, 3, 2)),
    62: ("k", 63, 61, (61, 62), (60, 61, 62)),
    58: ("q", 56, 59, (57, 58, 59), (60, 59, 58)),
}
_KING_HOME = {"w": 4, "b": 60}

# Castling rights lost when a move touches (leaves or lands on) these squares
_RIGHTS_CLEARED_BY_SQUARE = {4: "KQ", 0: "Q", 7: "K", 60: "kq", 56: "q", 63: "k"}


def pseudo_legal_moves(board: Board) -> List[Move]:
    """Return moves obeying piece geometry, not yet checked for self-check.

    Castling is the exception: its "not in check / not through check"
    conditions are part of the move's definition and are applied here.
    """
    return sorted(_iter_pseudo_legal(board), key=Move.sort_key)


def legal_moves(board: Board) -> List[Move]:
    """Return all legal moves for the side to move in stable order.

    Each pseudo-legal move is applied to a scratch board and rejected if it
    leaves the mover's own king attacked.
    """
    return [m for m in pseudo_legal_moves(board) if _is_legal(board, m)]


def has_legal_moves(board: Board) -> bool:
    """Return True as soon as one legal move is found."""
    return any(_is_legal(board, m) for m in _iter_pseudo_legal(board))


def make_move(board: Board, move: Move) -> Board:
    """Return the board reached by playing ``move``; ``board`` is unchanged.

    Handles captures (including the en-passant victim, which stands behind
    the target square), promotion, rook relocation on castling, castling
    rights, en-passant target, clocks, and side to move. Legality is not
    checked here; see ``legal_moves``.

    Raises:
        ValueError: If ``from_sq`` holds no piece of the side to move.
    """
    from_sq, to_sq = move.from_sq, move.to_sq
    stm = board.side_to_move
    squares = list(board.squares)
    piece = squares[from_sq]
    if piece is None or piece.color != stm:
        raise ValueError("no piece to move from from_sq")

    captured = squares[to_sq]
    if (
        piece.kind == PAWN
        and to_sq == board.ep_square
        and captured is None
        and from_sq % 8 != to_sq % 8
    ):
        victim_sq = to_sq - 8 if stm == WHITE else to_sq + 8
        captured = squares[victim_sq]
        squares[victim_sq] = None

    squares[from_sq] = None
    if move.promotion and piece.kind == PAWN:
        squares[to_sq] = Piece.from_symbol(
            move.promotion.upper() if stm == WHITE else move.promotion
        )
    else:
        squares[to_sq] = piece

    if piece.kind == KING and abs(to_sq - from_sq) == 2:
        _, rook_from, rook_to, _, _ = _CASTLES[to_sq]
        squares[rook_to] = squares[rook_from]
        squares[rook_from] = None

    castling = board.castling
    for sq in (from_sq, to_sq):
        cleared = _RIGHTS_CLEARED_BY_SQUARE.get(sq)
        if cleared:
            castling = "".join(c for c in castling if c not in cleared)

    ep_square = None
    if piece.kind == PAWN and abs(to_sq - from_sq) == 16:
        ep_square = (from_sq + to_sq) // 2

    if piece.kind == PAWN or captured is not None:
        halfmove = 0
    else:
        halfmove = board.halfmove_clock + 1

    return Board(
        squares=tuple(squares),
        side_to_move=opposite(stm),
        castling=castling,
        ep_square=ep_square,
        halfmove_clock=halfmove,
        fullmove_number=board.fullmove_number + (0 if stm == WHITE else 1),
    )


def _is_legal(board: Board, move: Move) -> bool:
    stm = board.side_to_move
    child = make_move(board, move)
    if board.squares[move.from_sq].kind == KING:  # type: ignore[union-attr]
        king_sq = move.to_sq
    else:
        king_sq = child.king_square(stm)
    return not child.is_square_attacked(king_sq, opposite(stm))


def _iter_pseudo_legal(board: Board) -> Iterator[Move]:
    stm = board.side_to_move
    for from_sq, piece in board.pieces(stm):
        kind = piece.kind
        if kind == PAWN:
            yield from _pawn_moves(board, from_sq)
        elif kind == KNIGHT:
            yield from _step_moves(board, from_sq, KNIGHT_TARGETS[from_sq])
        elif kind == BISHOP:
            yield from _slide_moves(board, from_sq, DIAGONAL_RAYS[from_sq])
        elif kind == ROOK:
            yield from _slide_moves(board, from_sq, ORTHOGONAL_RAYS[from_sq])
        elif kind == QUEEN:
            yield from _slide_moves(board, from_sq, DIAGONAL_RAYS[from_sq])
            yield from _slide_moves(board, from_sq, ORTHOGONAL_RAYS[from_sq])
        elif kind == KING:
            yield from _step_moves(board, from_sq, KING_TARGETS[from_sq])
            yield from _castling_moves(board, from_sq)


def _pawn_moves(board: Board, from_sq: int) -> Iterator[Move]:
    squares = board.squares
    stm = board.side_to_move
    step = 8 if stm == WHITE else -8
    start_rank = 1 if stm == WHITE else 6
    last_rank = 7 if stm == WHITE else 0
    file_idx = from_sq % 8

    def emit(to_sq: int, en_passant: bool = False) -> Iterator[Move]:
        if to_sq // 8 == last_rank:
            for promo in PROMOTION_PIECES:
                yield Move(from_sq, to_sq, promotion=promo)
        else:
            yield Move(from_sq, to_sq, is_en_passant=en_passant)

    # Pushes
    one = from_sq + step
    if squares[one] is None:
        yield from emit(one)
        two = one + step
        if from_sq // 8 == start_rank and squares[two] is None:
            yield Move(from_sq, two)

    # Captures (diagonals), including the en-passant target
    for df in (-1, 1):
        if not (0 <= file_idx + df < 8):
            continue
        cap = one + df
        target = squares[cap]
        if target is not None and target.color != stm:
            yield from emit(cap)
        elif target is None and cap == board.ep_square:
            yield from emit(cap, en_passant=True)


def _step_moves(board: Board, from_sq: int, targets: Tuple[int, ...]) -> Iterator[Move]:
    stm = board.side_to_move
    for to_sq in targets:
        target = board.squares[to_sq]
        if target is None or target.color != stm:
            yield Move(from_sq, to_sq)


def _slide_moves(
    board: Board, from_sq: int, rays: Tuple[Tuple[int, ...], ...]
) -> Iterator[Move]:
    stm = board.side_to_move
    for ray in rays:
        for to_sq in ray:
            target = board.squares[to_sq]
            if target is None:
                yield Move(from_sq, to_sq)
                continue
            if target.color != stm:
                yield Move(from_sq, to_sq)
            break


def _castling_moves(board: Board, from_sq: int) -> Iterator[Move]:
    stm = board.side_to_move
    if from_sq != _KING_HOME[stm] or not board.castling:
        return
    enemy = opposite(stm)
    for king_to, (right, rook_from, _, between, king_path) in _CASTLES.items():
        if right not in board.castling:
            continue
        # Right letters are case-coded: uppercase belongs to White
        if right.isupper() != (stm == WHITE):
            continue
        rook = board.squares[rook_from]
        if rook is None or rook.kind != ROOK or rook.color != stm:
            continue
        if any(board.squares[sq] is not None for sq in between):
            continue
        # King may not start in, pass through, or land on an attacked square
        if any(board.is_square_attacked(sq, enemy) for sq in king_path):
            continue
        yield Move(from_sq, king_to, is_castle=True)
